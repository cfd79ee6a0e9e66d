"""
rasm16 Configuration
====================

Assembler configuration: load offset, include search paths, file
extensions and tracing. Configuration can come from:
- Default values (defined here)
- Environment variables (AssemblerConfig.from_env)
- Command-line options (which override both)

Environment Variables
---------------------
RASM16_OFFSET        Load offset in hex (e.g. "1000", "$1000", "0x1000")
RASM16_INCLUDE_PATH  Include search paths, separated by os.pathsep
RASM16_TRACE         Enable pipeline tracing ("1", "true", "yes")
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List
import logging
import os

logger = logging.getLogger(__name__)


# File extensions
SOURCE_EXTENSION = ".rasm"
INCLUDE_EXTENSION = "._rasm"
BINARY_EXTENSION = ".r16"

MAX_LOAD_OFFSET = 0xFFFF


def parse_offset(text: str) -> int:
    """
    Parse a 16-bit hexadecimal load offset.

    Accepts bare hex ("1000") and the "$1000" and "0x1000" forms.

    Raises:
        ValueError: If the text is not hex or is outside 0000..FFFF
    """
    value_str = text.strip()
    if value_str.startswith("$"):
        value_str = value_str[1:]
    elif value_str.lower().startswith("0x"):
        value_str = value_str[2:]

    value = int(value_str, 16)
    if not 0 <= value <= MAX_LOAD_OFFSET:
        raise ValueError(f"load offset {text!r} is outside 0000..FFFF")
    return value


def _is_truthy(text: str) -> bool:
    return text.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class AssemblerConfig:
    """
    Configuration for an assembly run.

    Attributes:
        load_offset: Address the image is loaded at (default: 0)
        include_paths: Directories searched for include files, in order
        source_extension: Extension of top-level source files
        include_extension: Extension appended to include names
        binary_extension: Extension of the output image
        trace: Log every pipeline stage's output (default: False)
    """

    load_offset: int = 0
    include_paths: List[Path] = field(default_factory=list)
    source_extension: str = SOURCE_EXTENSION
    include_extension: str = INCLUDE_EXTENSION
    binary_extension: str = BINARY_EXTENSION
    trace: bool = False

    @classmethod
    def from_env(cls) -> "AssemblerConfig":
        """
        Create an AssemblerConfig from environment variables.

        Invalid values are ignored with a warning.
        """
        config = cls()

        if offset := os.environ.get("RASM16_OFFSET"):
            try:
                config.load_offset = parse_offset(offset)
            except ValueError:
                logger.warning(f"Ignoring invalid RASM16_OFFSET: {offset!r}")

        if paths := os.environ.get("RASM16_INCLUDE_PATH"):
            config.include_paths = [Path(p) for p in paths.split(os.pathsep) if p]

        if trace := os.environ.get("RASM16_TRACE"):
            config.trace = _is_truthy(trace)

        return config

    def source_path(self, path: Path) -> Path:
        """Return the source path, adding the source extension if missing."""
        if path.suffix:
            return path
        return path.with_suffix(self.source_extension)

    def binary_path(self, source: Path) -> Path:
        """Return the default output path for a source file."""
        return source.with_suffix(self.binary_extension)
