"""
rasm16 Error Hierarchy
======================

This module defines the exception hierarchy for the rasm16 assembler.
All exceptions inherit from Rasm16Error, allowing callers to catch every
assembler failure with a single except clause.

Exception Hierarchy
-------------------
Rasm16Error (base)
└── AssemblerError (assembly pipeline)
    ├── DuplicateConstantError - constant defined twice or shadowing a built-in
    ├── UndefinedConstantError - reference to an unknown [NAME]
    ├── InvalidConstantError - malformed constant definition line
    ├── IncludeError - include directive that cannot be honoured
    │   └── NestedIncludeError - include file with includes of its own
    ├── DuplicateLabelError - label defined more than once
    ├── UnknownMnemonicError - mnemonic/directive not in the ISA tables
    ├── InvalidDataWidthError - data value too wide for its directive
    ├── InvalidNullRepeatError - malformed (N) repeat count
    ├── AddressOutOfRangeError - program counter past the usable space
    ├── UndefinedLabelError - operand references an unknown label
    ├── WrongOperandArityError - wrong number of operands for a mnemonic
    └── InvalidOperandError - operand is not a hex literal after resolution

Every AssemblerError carries a kind tag (ErrorKind) and, when known, the
source location of the offending line. The pipeline is fail-fast: the
first error aborts the run and no image is produced.

I/O errors raised by the host (OSError) are never wrapped and reach the
caller unchanged.

Error messages follow this format:
    filename:line: error: description
    hint: additional context (when available)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class Rasm16Error(Exception):
    """
    Base exception for all rasm16 errors.

        try:
            assemble(lines, "prog.rasm")
        except Rasm16Error as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Location of a source line for error reporting.

    Attributes:
        filename: Name of the source or include file
        line: Line number (1-indexed). For errors detected after include
              splicing this is the position in the expanded source.
    """
    filename: str
    line: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}"


class ErrorKind(Enum):
    """Kind tag carried by every AssemblerError."""
    DUPLICATE_CONSTANT = "DuplicateConstant"
    UNDEFINED_CONSTANT = "UndefinedConstant"
    INVALID_CONSTANT = "InvalidConstant"
    INCLUDE = "Include"
    NESTED_INCLUDE = "NestedInclude"
    DUPLICATE_LABEL = "DuplicateLabel"
    UNKNOWN_MNEMONIC = "UnknownMnemonic"
    INVALID_DATA_WIDTH = "InvalidDataWidth"
    INVALID_NULL_REPEAT = "InvalidNullRepeat"
    ADDRESS_OUT_OF_RANGE = "AddressOutOfRange"
    UNDEFINED_LABEL = "UndefinedLabel"
    WRONG_OPERAND_ARITY = "WrongOperandArity"
    INVALID_OPERAND = "InvalidOperand"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(Rasm16Error):
    """
    Base exception for all assembly pipeline errors.

    Attributes:
        kind: ErrorKind tag identifying the failure
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: Additional context for fixing the error (optional)
    """

    kind: Optional[ErrorKind] = None

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        super().__init__(self._format_message())

    @property
    def line(self) -> Optional[int]:
        """1-based line number of the error, if known."""
        return self.location.line if self.location else None

    def _format_message(self) -> str:
        """
        Format the error message with location and hint.

        Example output:
            prog.rasm:12: error: label 'prog.loop' not defined
            hint: labels are qualified with their file's namespace
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class DuplicateConstantError(AssemblerError):
    """
    Preprocessor constant defined more than once.

    Built-in constants ([SP], [GP0], [NULL], ...) are immutable, so a
    user definition with one of those names is also rejected.
    """

    kind = ErrorKind.DUPLICATE_CONSTANT

    def __init__(self, name: str, location: Optional[SourceLocation] = None):
        self.name = name
        super().__init__(
            f"cannot redefine preprocessor constant {name}",
            location=location,
        )


class UndefinedConstantError(AssemblerError):
    """Reference to a preprocessor constant that was never defined."""

    kind = ErrorKind.UNDEFINED_CONSTANT

    def __init__(self, name: str, location: Optional[SourceLocation] = None):
        self.name = name
        super().__init__(
            f"preprocessor constant {name} not defined",
            location=location,
        )


class InvalidConstantError(AssemblerError):
    """Constant definition line without a bracketed name or a value."""

    kind = ErrorKind.INVALID_CONSTANT

    def __init__(self, text: str, location: Optional[SourceLocation] = None):
        self.text = text
        super().__init__(
            f"invalid preprocessor constant definition '{text}'",
            location=location,
            hint="definitions take the form [NAME] value",
        )


class IncludeError(AssemblerError):
    """
    Include directive that cannot be processed.

    Raised when an include directive names no file, or when the source
    contains includes but no include reader was supplied. Failures of the
    reader itself are OSErrors and propagate unchanged.
    """

    kind = ErrorKind.INCLUDE

    def __init__(
        self,
        include_name: str,
        reason: str,
        location: Optional[SourceLocation] = None,
    ):
        self.include_name = include_name
        self.reason = reason
        super().__init__(
            f"cannot include '{include_name}': {reason}",
            location=location,
        )


class NestedIncludeError(IncludeError):
    """
    Include file containing an include directive of its own.

    Only one level of inclusion is permitted.
    """

    kind = ErrorKind.NESTED_INCLUDE

    def __init__(self, include_name: str, location: Optional[SourceLocation] = None):
        super().__init__(
            include_name,
            "include files cannot contain includes of their own",
            location=location,
        )


class DuplicateLabelError(AssemblerError):
    """
    Label defined more than once in the expanded source.

    Labels are compared after namespace qualification, so the same name
    in two different files is not a duplicate.
    """

    kind = ErrorKind.DUPLICATE_LABEL

    def __init__(
        self,
        label: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
    ):
        self.label = label
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{label}' was first defined at line {original_location.line}"

        super().__init__(
            f"duplicate label '{label}'",
            location=location,
            hint=hint,
        )


class UnknownMnemonicError(AssemblerError):
    """Mnemonic or data directive not present in the ISA tables."""

    kind = ErrorKind.UNKNOWN_MNEMONIC

    def __init__(self, mnemonic: str, location: Optional[SourceLocation] = None):
        self.mnemonic = mnemonic
        super().__init__(f"invalid mnemonic {mnemonic}", location=location)


class InvalidDataWidthError(AssemblerError):
    """
    Data directive value that is not a hex literal of the directive's width.

    $8 values must match [0-9A-Fa-f]{1,2}; $16 values [0-9A-Fa-f]{1,4}.
    """

    kind = ErrorKind.INVALID_DATA_WIDTH

    def __init__(
        self,
        width: int,
        value: str,
        location: Optional[SourceLocation] = None,
    ):
        self.width = width
        self.value = value
        super().__init__(
            f"invalid {width}-bit data in directive",
            location=location,
            hint=f"offending value '{value}'",
        )


class InvalidNullRepeatError(AssemblerError):
    """Null repeat (N) whose count is not a positive decimal integer."""

    kind = ErrorKind.INVALID_NULL_REPEAT

    def __init__(self, text: str, location: Optional[SourceLocation] = None):
        self.text = text
        super().__init__(f"invalid data null repeat {text}", location=location)


class AddressOutOfRangeError(AssemblerError):
    """Program counter reached the end of the usable address space."""

    kind = ErrorKind.ADDRESS_OUT_OF_RANGE

    def __init__(self, address: int, location: Optional[SourceLocation] = None):
        self.address = address
        super().__init__(
            "address out of range",
            location=location,
            hint=f"program counter reached ${address:04X}",
        )


class UndefinedLabelError(AssemblerError):
    """Operand references a label that was never defined."""

    kind = ErrorKind.UNDEFINED_LABEL

    def __init__(self, label: str, location: Optional[SourceLocation] = None):
        self.label = label
        super().__init__(f"label {label} not defined", location=location)


class WrongOperandArityError(AssemblerError):
    """Instruction given the wrong number of operands."""

    kind = ErrorKind.WRONG_OPERAND_ARITY

    _COUNT_WORDS = {0: "no operands", 1: "one operand", 2: "two operands"}

    def __init__(
        self,
        mnemonic: str,
        expected: int,
        location: Optional[SourceLocation] = None,
    ):
        self.mnemonic = mnemonic
        self.expected = expected
        needs = self._COUNT_WORDS.get(expected, f"{expected} operands")
        super().__init__(f"{mnemonic} needs {needs}", location=location)


class InvalidOperandError(AssemblerError):
    """Operand that is not an 8- or 16-bit hex literal after resolution."""

    kind = ErrorKind.INVALID_OPERAND

    def __init__(self, operand: str, location: Optional[SourceLocation] = None):
        self.operand = operand
        super().__init__(f"invalid operand {operand}", location=location)
