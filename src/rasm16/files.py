"""
Source and Image Files
======================

Host I/O for the assembler: reading source and include files into lines
and writing the assembled image. None of this transforms the data; the
pipeline itself only sees line lists and returns bytes.

Failures are raised as OSError (usually FileNotFoundError) and reach the
caller unchanged.
"""

from pathlib import Path
from typing import Iterable
import errno
import logging
import os

from rasm16.config import INCLUDE_EXTENSION

logger = logging.getLogger(__name__)


def read_source(path: str | Path) -> list[str]:
    """Read a source file into a list of lines."""
    path = Path(path)
    logger.debug(f"Reading {path}")
    lines = path.read_text(encoding="utf-8").splitlines()
    logger.debug(f"Read {path} ({len(lines)} lines)")
    return lines


def write_binary(path: str | Path, image: bytes) -> None:
    """Write an assembled image to disk."""
    Path(path).write_bytes(image)
    logger.info(f"Wrote {len(image)} bytes to {path}")


class FileIncludeReader:
    """
    Include reader that searches a list of directories.

    The include extension is appended to the name, and the directories
    are searched in order; the first match wins.

    Usage:
        reader = FileIncludeReader([Path("src"), Path("lib")])
        lines = reader("stdio")     # reads src/stdio._rasm or lib/stdio._rasm

    Attributes:
        search_paths: Directories to search
        extension: Extension appended to include names
    """

    def __init__(self, search_paths: Iterable[str | Path] = (), extension: str = INCLUDE_EXTENSION):
        self.search_paths = [Path(p) for p in search_paths] or [Path(".")]
        self.extension = extension

    def find(self, name: str) -> Path:
        """
        Locate an include file.

        Raises:
            FileNotFoundError: If no search path contains the file
        """
        filename = name + self.extension
        for directory in self.search_paths:
            candidate = directory / filename
            if candidate.is_file():
                return candidate

        searched = ", ".join(str(p) for p in self.search_paths)
        raise FileNotFoundError(
            errno.ENOENT,
            f"{os.strerror(errno.ENOENT)} (searched in: {searched})",
            filename,
        )

    def __call__(self, name: str) -> list[str]:
        return read_source(self.find(name))
