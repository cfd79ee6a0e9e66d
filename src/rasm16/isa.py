"""
RELIC-16 Instruction Set Definition
===================================

This module defines the instruction set of the RELIC-16, the fictional
16-bit CPU that rasm16 targets: mnemonics with their opcodes, operand
counts and instruction lengths, the short mnemonic aliases, the two data
directives, and the built-in preprocessor constants.

Instruction Encoding
--------------------
Every instruction starts with a single opcode byte:

    bits 7..3   base opcode (from the mnemonic table)
    bits 2..0   operand type selector (see OPERAND_SELECTORS)

followed by zero, one or two big-endian 16-bit operand words, giving an
instruction length of 1, 3 or 5 bytes.

Operand Types
-------------
| Sigil | Type    | Meaning                                  |
|-------|---------|------------------------------------------|
| $     | LITERAL | value used as-is (immediate)             |
| *     | POINTER | value is an address holding the address  |
| none  | ADDRESS | value is the memory address itself       |

Data Directives
---------------
| Directive | Bytes per value | Values            |
|-----------|-----------------|-------------------|
| $8        | 1               | 00..FF, "string"  |
| $16       | 2               | 0000..FFFF        |

Both directives accept a null repeat (N) expanding to N copies of [NULL].

The tables are exposed as read-only mappings and bundled in a frozen
InstructionSet, which the pipeline receives through its context. Tests
can construct their own InstructionSet to assemble against a custom ISA.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from types import MappingProxyType
from typing import Mapping, Optional


# =============================================================================
# Operand Types
# =============================================================================

class OperandType(Enum):
    """Operand type as written in source (determined by its sigil)."""
    INVALID = auto()    # No operand present
    ADDRESS = auto()    # No sigil
    LITERAL = auto()    # $value
    POINTER = auto()    # *value


# Source sigils for the prefixed operand types
OPERAND_SIGILS: Mapping[str, OperandType] = MappingProxyType({
    "$": OperandType.LITERAL,
    "*": OperandType.POINTER,
})

# Opcode low bits for each legal (operand1, operand2) type pair.
# Pairs not listed (one-operand and zero-operand forms) select 0.
OPERAND_SELECTORS: Mapping[tuple[OperandType, OperandType], int] = MappingProxyType({
    (OperandType.LITERAL, OperandType.ADDRESS): 0x00,
    (OperandType.LITERAL, OperandType.POINTER): 0x01,
    (OperandType.ADDRESS, OperandType.ADDRESS): 0x02,
    (OperandType.ADDRESS, OperandType.POINTER): 0x03,
    (OperandType.POINTER, OperandType.ADDRESS): 0x04,
    (OperandType.POINTER, OperandType.POINTER): 0x05,
})


# =============================================================================
# Mnemonic Descriptor
# =============================================================================

@dataclass(frozen=True)
class MnemonicInfo:
    """
    Static description of a mnemonic or data directive.

    Attributes:
        description: Human-readable operation name
        opcode: Base opcode (5 bits, shifted left by 3 when encoded)
        operand_count: Number of operands the instruction takes (0, 1 or 2)
        length: Total instruction length in bytes (1, 3 or 5; 0 for directives)
    """
    description: str
    opcode: int
    operand_count: int
    length: int


def _insn(description: str, opcode: int, operand_count: int, length: int) -> MnemonicInfo:
    return MnemonicInfo(description, opcode, operand_count, length)


# =============================================================================
# Mnemonic Table
# =============================================================================
# SR16 and CM8 share opcode $15 and no mnemonic uses $14. The numbering is
# kept as-is so images stay byte-compatible with existing RELIC-16 binaries.
# =============================================================================

DATA_8BIT = "$8"
DATA_16BIT = "$16"

MNEMONICS: Mapping[str, MnemonicInfo] = MappingProxyType({
    # Instructions
    "NO":   _insn("NO OPERATION", 0x00, 0, 1),
    "CO8":  _insn("COPY", 0x01, 2, 5),
    "CO16": _insn("COPY", 0x02, 2, 5),
    "AD8":  _insn("ADD", 0x03, 2, 5),
    "AD16": _insn("ADD", 0x04, 2, 5),
    "SU8":  _insn("SUBTRACT", 0x05, 2, 5),
    "SU16": _insn("SUBTRACT", 0x06, 2, 5),
    "MU8":  _insn("MULTIPLY", 0x07, 2, 5),
    "MU16": _insn("MULTIPLY", 0x08, 2, 5),
    "DV8":  _insn("DIVIDE", 0x09, 2, 5),
    "DV16": _insn("DIVIDE", 0x0A, 2, 5),
    "ND8":  _insn("BITWISE AND", 0x0B, 2, 5),
    "ND16": _insn("BITWISE AND", 0x0C, 2, 5),
    "OR8":  _insn("BITWISE OR", 0x0D, 2, 5),
    "OR16": _insn("BITWISE OR", 0x0E, 2, 5),
    "XR8":  _insn("BITWISE XOR", 0x0F, 2, 5),
    "XR16": _insn("BITWISE XOR", 0x10, 2, 5),
    "SL8":  _insn("BITWISE SHIFT LEFT", 0x11, 2, 5),
    "SL16": _insn("BITWISE SHIFT LEFT", 0x12, 2, 5),
    "SR8":  _insn("BITWISE SHIFT RIGHT", 0x13, 2, 5),
    "SR16": _insn("BITWISE SHIFT RIGHT", 0x15, 2, 5),
    "CM8":  _insn("COMPARE", 0x15, 2, 5),
    "CM16": _insn("COMPARE", 0x16, 2, 5),
    "EQ":   _insn("JUMP IF EQUAL", 0x17, 1, 3),
    "NE":   _insn("JUMP IF NOT EQUAL", 0x18, 1, 3),
    "LT":   _insn("JUMP IF LESS THAN", 0x19, 1, 3),
    "GT":   _insn("JUMP IF GREATER THAN", 0x1A, 1, 3),
    "EL":   _insn("JUMP IF EQUAL OR LESS THAN", 0x1B, 1, 3),
    "EG":   _insn("JUMP IF EQUAL OR GREATER THAN", 0x1C, 1, 3),
    "JM":   _insn("JUMP", 0x1D, 0, 1),
    "JS":   _insn("JUMP TO SUBROUTINE", 0x1E, 2, 5),
    "RT":   _insn("RETURN", 0x1F, 1, 3),

    # Directives
    DATA_8BIT:  _insn("DATA DIRECTIVE", 0x00, 0, 0),
    DATA_16BIT: _insn("DATA DIRECTIVE", 0x00, 0, 0),
})

# Short forms resolving to the 16-bit variants
MNEMONIC_ALIASES: Mapping[str, str] = MappingProxyType({
    # Instructions
    "CO": "CO16",
    "AD": "AD16",
    "SU": "SU16",
    "MU": "MU16",
    "DV": "DV16",
    "ND": "ND16",
    "OR": "OR16",
    "XR": "XR16",
    "SL": "SL16",
    "SR": "SR16",
    "CM": "CM16",

    # Directives
    "$": DATA_16BIT,
})

# Bytes emitted per value by each data directive
DATA_DIRECTIVE_WIDTHS: Mapping[str, int] = MappingProxyType({
    DATA_8BIT: 1,
    DATA_16BIT: 2,
})


# =============================================================================
# Built-in Preprocessor Constants
# =============================================================================

DEFAULT_CONSTANTS: Mapping[str, str] = MappingProxyType({
    # Special addresses
    "[SP]":   "FFB0",   # Stack pointer
    "[IO]":   "FFB2",   # Subroutine I/O
    "[PC]":   "FFB4",   # Program counter
    "[ST]":   "FFB6",   # CPU status
    "[UN0]":  "FFB8",
    "[UN1]":  "FFBA",
    "[UN2]":  "FFBC",
    "[UN3]":  "FFBE",
    "[IRQ0]": "FFC0",
    "[IRQ1]": "FFC2",
    "[IRQ2]": "FFC4",
    "[IRQ3]": "FFC6",
    "[IRQ4]": "FFC8",
    "[IRQ5]": "FFCA",
    "[IRQ6]": "FFCC",
    "[IRQ7]": "FFCE",
    "[IN0]":  "FFD0",
    "[IN1]":  "FFD2",
    "[IN2]":  "FFD4",
    "[IN3]":  "FFD6",
    "[IN4]":  "FFD8",
    "[IN5]":  "FFDA",
    "[IN6]":  "FFDC",
    "[IN7]":  "FFDE",
    "[OUT0]": "FFE0",
    "[OUT1]": "FFE2",
    "[OUT2]": "FFE4",
    "[OUT3]": "FFE6",
    "[OUT4]": "FFE8",
    "[OUT5]": "FFEA",
    "[OUT6]": "FFEC",
    "[OUT7]": "FFEE",
    "[GP0]":  "FFF0",
    "[GP0L]": "FFF1",   # Low byte
    "[GP1]":  "FFF2",
    "[GP1L]": "FFF3",
    "[GP2]":  "FFF4",
    "[GP2L]": "FFF5",
    "[GP3]":  "FFF6",
    "[GP3L]": "FFF7",
    "[GP4]":  "FFF8",
    "[GP4L]": "FFF9",
    "[GP5]":  "FFFA",
    "[GP5L]": "FFFB",
    "[GP6]":  "FFFC",
    "[GP6L]": "FFFD",
    "[GP7]":  "FFFE",
    "[GP7L]": "FFFF",

    # Magic values
    "[TRUE]":  "0001",
    "[FALSE]": "FFFF",
    "[NULL]":  "0000",
})

NULL_CONSTANT = "[NULL]"


# =============================================================================
# Memory Layout
# =============================================================================

STACK_POINTER_ADDRESS = 0xFFB0

# Call stack space reserved below the stack pointer
CALL_STACK_SIZE = 2 * 128

MAX_ADDRESS_SPACE = STACK_POINTER_ADDRESS - CALL_STACK_SIZE


# =============================================================================
# Instruction Set Bundle
# =============================================================================

@dataclass(frozen=True)
class InstructionSet:
    """
    Immutable bundle of every table the pipeline consults.

    Attributes:
        mnemonics: Mnemonic/directive descriptors
        aliases: Short mnemonic -> canonical mnemonic
        constants: Built-in preprocessor constants ([NAME] -> hex string)
        data_widths: Data directive -> bytes per value
        max_address: Exclusive upper bound for the program counter
    """
    mnemonics: Mapping[str, MnemonicInfo] = field(default_factory=lambda: MNEMONICS)
    aliases: Mapping[str, str] = field(default_factory=lambda: MNEMONIC_ALIASES)
    constants: Mapping[str, str] = field(default_factory=lambda: DEFAULT_CONSTANTS)
    data_widths: Mapping[str, int] = field(default_factory=lambda: DATA_DIRECTIVE_WIDTHS)
    max_address: int = MAX_ADDRESS_SPACE

    def get_mnemonic(self, mnemonic: str) -> Optional[MnemonicInfo]:
        """Return the descriptor for a mnemonic, or None if unknown."""
        return self.mnemonics.get(mnemonic)

    def unalias(self, mnemonic: str) -> str:
        """Return the canonical form of a mnemonic."""
        return self.aliases.get(mnemonic, mnemonic)

    def is_data_directive(self, mnemonic: str) -> bool:
        """Return True if the mnemonic is a data directive ($8, $16)."""
        return mnemonic in self.data_widths

    def data_width(self, mnemonic: str) -> int:
        """Return the bytes per value for a data directive."""
        return self.data_widths[mnemonic]

    @property
    def null_value(self) -> str:
        """Value of the [NULL] constant used by null repeats."""
        return self.constants[NULL_CONSTANT]


DEFAULT_ISA = InstructionSet()
