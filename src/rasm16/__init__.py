"""
rasm16 - Assembler for the RELIC-16
===================================

This package provides an assembler for the RELIC-16, a fictional 16-bit
CPU. It turns line-oriented .rasm source into a binary image: a four
byte magic header, the 16-bit load offset and the encoded program.

Main Components
---------------
- **preprocessor**: comments, constants, label namespaces, includes
- **parser** / **normalizer**: structured statements in canonical form
- **validator**: mnemonic, data and operand checks
- **resolver**: addresses and label substitution
- **encoder**: instruction bytes and the final image
- **assembler**: the pipeline and the Assembler class

Quick Start
-----------
Assemble lines in memory:
    >>> from rasm16 import assemble
    >>> image = assemble(["start", "CO $0001,[GP0]", "JM"], "prog.rasm")

Assemble a file:
    >>> from rasm16 import Assembler
    >>> asm = Assembler(load_offset=0x1000)
    >>> asm.assemble_file("hello.rasm")
    >>> asm.write_binary("hello.r16")

Or use the command-line tool:
    $ rasm16 hello.rasm -o 1000
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from rasm16.assembler import Assembler, AssemblyResult, assemble, assemble_file
from rasm16.context import AssemblyContext, IncludeReader
from rasm16.errors import (
    Rasm16Error,
    AssemblerError,
    ErrorKind,
    SourceLocation,
    DuplicateConstantError,
    UndefinedConstantError,
    InvalidConstantError,
    IncludeError,
    NestedIncludeError,
    DuplicateLabelError,
    UnknownMnemonicError,
    InvalidDataWidthError,
    InvalidNullRepeatError,
    AddressOutOfRangeError,
    UndefinedLabelError,
    WrongOperandArityError,
    InvalidOperandError,
)
from rasm16.files import FileIncludeReader
from rasm16.isa import DEFAULT_ISA, InstructionSet, MnemonicInfo, OperandType
from rasm16.parser import Operand, Statement
from rasm16.trace import TraceEvent, logging_trace_hook

__all__ = [
    # Version
    "__version__",
    # Main classes
    "Assembler",
    "AssemblyResult",
    "AssemblyContext",
    "IncludeReader",
    "FileIncludeReader",
    "InstructionSet",
    "MnemonicInfo",
    "OperandType",
    "Operand",
    "Statement",
    "TraceEvent",
    "DEFAULT_ISA",
    # Convenience functions
    "assemble",
    "assemble_file",
    "logging_trace_hook",
    # Errors
    "Rasm16Error",
    "AssemblerError",
    "ErrorKind",
    "SourceLocation",
    "DuplicateConstantError",
    "UndefinedConstantError",
    "InvalidConstantError",
    "IncludeError",
    "NestedIncludeError",
    "DuplicateLabelError",
    "UnknownMnemonicError",
    "InvalidDataWidthError",
    "InvalidNullRepeatError",
    "AddressOutOfRangeError",
    "UndefinedLabelError",
    "WrongOperandArityError",
    "InvalidOperandError",
]
