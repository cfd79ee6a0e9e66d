"""
rasm16 Preprocessor
===================

The preprocessor turns raw source lines into the fully expanded line list
the structural parser consumes. It runs these steps, in order:

1. **Cleanup**: strip comments, collapse whitespace, trim
2. **Constant expansion**: harvest [NAME] value definitions, then
   substitute every constant reference with its hex value
3. **Namespacing**: prefix every label-shaped token with the file's
   namespace (the file name up to its first '.')
4. **Includes**: replace each <name> line with the include file, which is
   itself cleaned, constant-expanded and namespaced
5. **Duplicate labels**: reject any label line seen twice

Line count is preserved through cleanup, constant expansion and
namespacing: blank and definition lines remain as empty strings so that
positions stay usable as line numbers. Include expansion replaces the
directive line with the include file's lines, so positions after an
include refer to the expanded source.

Constant Tables
---------------
Every file gets its own table: the built-in constants from the ISA plus
the file's own definitions. Definitions in the main source are therefore
not visible inside include files, and vice versa.

Example
-------
>>> from rasm16.preprocessor import Preprocessor
>>> pp = Preprocessor()
>>> pp.process(["[LIMIT] 0010", "start", "CO $[LIMIT],[GP0]  # copy"], "prog.rasm")
['', 'prog.start', 'CO $0010,FFF0']
"""

from pathlib import PurePath
from typing import Mapping, Optional
import logging

from rasm16.context import AssemblyContext
from rasm16.errors import (
    DuplicateConstantError,
    DuplicateLabelError,
    IncludeError,
    InvalidConstantError,
    NestedIncludeError,
    SourceLocation,
    UndefinedConstantError,
)
from rasm16.lexer import (
    CONSTANT_ASSIGN,
    CONSTANT_END,
    CONSTANT_REFERENCE,
    CONSTANT_START,
    DATA_START,
    INCLUDE_END,
    INCLUDE_START,
    LABEL_TOKEN,
    NAMESPACE_DELIMITER,
    clean_line,
    is_label,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Cleanup
# =============================================================================

def clean_source(lines: list[str]) -> list[str]:
    """Remove comments and extraneous whitespace from every line."""
    return [clean_line(line) for line in lines]


# =============================================================================
# Constants
# =============================================================================

def parse_constant_definition(
    text: str,
    location: Optional[SourceLocation] = None,
) -> tuple[str, str]:
    """
    Split a definition line into its bracketed name and value.

    Accepts "[NAME] value" and "[NAME] = value".

    Raises:
        InvalidConstantError: If the name or the value is missing
    """
    end = text.find(CONSTANT_END)
    if not text.startswith(CONSTANT_START) or end < 2:
        raise InvalidConstantError(text, location)

    name = text[:end + 1]
    value = text[end + 1:].strip()
    if value.startswith(CONSTANT_ASSIGN):
        value = value[len(CONSTANT_ASSIGN):].strip()
    if not value:
        raise InvalidConstantError(text, location)

    return name, value


def collect_constants(
    lines: list[str],
    builtins: Mapping[str, str],
    filename: str = "<input>",
) -> dict[str, str]:
    """
    Build the constant table for one file.

    Args:
        lines: Cleaned source lines
        builtins: Built-in constants, which may not be redefined
        filename: File name for error locations

    Returns:
        Built-in constants followed by the file's definitions

    Raises:
        DuplicateConstantError: If a name is defined twice
        InvalidConstantError: If a definition line is malformed
    """
    constants = dict(builtins)

    for number, text in enumerate(lines, start=1):
        if not text.startswith(CONSTANT_START):
            continue
        location = SourceLocation(filename, number)
        name, value = parse_constant_definition(text, location)
        if name in constants:
            raise DuplicateConstantError(name, location)
        constants[name] = value

    return constants


def expand_constants(
    lines: list[str],
    builtins: Mapping[str, str],
    filename: str = "<input>",
) -> list[str]:
    """
    Substitute constant references and blank out definition lines.

    Raises:
        UndefinedConstantError: If a bracketed reference remains
    """
    constants = collect_constants(lines, builtins, filename)
    expanded_lines = []

    for number, text in enumerate(lines, start=1):
        if text.startswith(CONSTANT_START):
            expanded_lines.append("")
            continue

        expanded = text
        for name, value in constants.items():
            expanded = expanded.replace(name, value)

        unmatched = CONSTANT_REFERENCE.search(expanded)
        if unmatched:
            raise UndefinedConstantError(
                unmatched.group(0),
                SourceLocation(filename, number),
            )

        expanded_lines.append(expanded)

    return expanded_lines


# =============================================================================
# Namespaces
# =============================================================================

def namespace_for(name: str) -> str:
    """Return the namespace for a source name: its basename up to the first '.'."""
    return PurePath(name).name.split(NAMESPACE_DELIMITER, 1)[0]


def qualify_labels(lines: list[str], namespace: str) -> list[str]:
    """
    Prefix unqualified label-shaped tokens with a namespace.

    Include directives and data directive lines are left untouched, as
    are tokens that already contain a '.'.
    """
    def qualify(match) -> str:
        token = match.group(0)
        if NAMESPACE_DELIMITER in token:
            return token
        return f"{namespace}{NAMESPACE_DELIMITER}{token}"

    qualified = []
    for text in lines:
        if text and text[0] not in (INCLUDE_START, DATA_START):
            text = LABEL_TOKEN.sub(qualify, text)
        qualified.append(text)
    return qualified


# =============================================================================
# Duplicate Labels
# =============================================================================

def check_duplicate_labels(lines: list[str], filename: str = "<input>") -> None:
    """
    Reject any label line that repeats an earlier one.

    Raises:
        DuplicateLabelError: Reporting both occurrences
    """
    seen: dict[str, int] = {}

    for number, text in enumerate(lines, start=1):
        if not is_label(text):
            continue
        if text in seen:
            raise DuplicateLabelError(
                text,
                SourceLocation(filename, number),
                original_location=SourceLocation(filename, seen[text]),
            )
        seen[text] = number


# =============================================================================
# Preprocessor
# =============================================================================

class Preprocessor:
    """
    Runs the preprocessing steps over a top-level source file.

    Usage:
        pp = Preprocessor(context)
        lines = pp.process(raw_lines, "prog.rasm")

    Attributes:
        context: Assembly context supplying the ISA constants, the include
                 reader and the trace hook
    """

    def __init__(self, context: Optional[AssemblyContext] = None):
        self.context = context or AssemblyContext()
        self._include_count = 0

    @property
    def include_count(self) -> int:
        """Number of include files spliced by the last process() call."""
        return self._include_count

    def process(self, lines: list[str], name: str) -> list[str]:
        """
        Preprocess a top-level source file.

        Args:
            lines: Raw source lines
            name: Source name, used for the namespace and error locations

        Returns:
            Fully expanded source lines

        Raises:
            AssemblerError: On the first preprocessing error
            OSError: If the include reader fails
        """
        ctx = self.context
        self._include_count = 0

        ctx.emit("source", name, lines=lines)

        lines = clean_source(lines)
        ctx.emit("clean", "Removed comments and extraneous whitespace", lines=lines)

        lines = expand_constants(lines, ctx.isa.constants, name)
        ctx.emit("constants", "Expanded constants", lines=lines)

        lines = qualify_labels(lines, namespace_for(name))
        ctx.emit("namespaces", "Added label namespaces", lines=lines)

        lines = self.expand_includes(lines, name)
        ctx.emit("includes", "Added include files", lines=lines)

        check_duplicate_labels(lines, name)

        logger.debug(
            f"Preprocessed {name}: {len(lines)} lines, {self._include_count} includes"
        )
        return lines

    def expand_includes(self, lines: list[str], name: str = "<input>") -> list[str]:
        """
        Splice every include directive with its processed include file.

        Raises:
            IncludeError: If a directive names no file or no reader is set
            NestedIncludeError: If an include file has includes of its own
            OSError: If the include reader fails
        """
        expanded = []

        for number, text in enumerate(lines, start=1):
            if not text.startswith(INCLUDE_START):
                expanded.append(text)
                continue

            include_name = self._include_name(text)
            location = SourceLocation(name, number)
            if not include_name:
                raise IncludeError(text, "missing file name", location)
            if self.context.include_reader is None:
                raise IncludeError(include_name, "no include reader configured", location)

            expanded.extend(self.process_include(include_name))

        return expanded

    def process_include(self, include_name: str) -> list[str]:
        """
        Read and preprocess a single include file.

        The include is cleaned, constant-expanded with its own constant
        table and namespaced with its own name.
        """
        ctx = self.context
        raw_lines = ctx.include_reader(include_name)
        ctx.emit("source", include_name, lines=raw_lines)

        lines = clean_source(raw_lines)
        ctx.emit("clean", "Removed comments and extraneous whitespace", lines=lines)

        lines = expand_constants(lines, ctx.isa.constants, include_name)
        ctx.emit("constants", "Expanded preprocessor constants", lines=lines)

        if any(text.startswith(INCLUDE_START) for text in lines):
            raise NestedIncludeError(include_name)

        lines = qualify_labels(lines, namespace_for(include_name))
        ctx.emit("namespaces", "Added label namespaces", lines=lines)

        self._include_count += 1
        logger.debug(f"Included {include_name} ({len(lines)} lines)")
        return lines

    @staticmethod
    def _include_name(text: str) -> str:
        name = text[len(INCLUDE_START):].strip()
        if name.endswith(INCLUDE_END):
            name = name[:-len(INCLUDE_END)].strip()
        return name


def preprocess(
    lines: list[str],
    name: str,
    context: Optional[AssemblyContext] = None,
) -> list[str]:
    """Convenience function to preprocess a source file."""
    return Preprocessor(context).process(lines, name)
