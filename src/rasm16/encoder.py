"""
rasm16 Binary Encoder
=====================

Turns resolved statements into bytes and builds the final image.

Image Format
------------
```
Offset  Size  Description
------  ----  -----------
0       4     Magic: $12 $31 $1C $16 ("RELIC16")
4       2     Load offset (big-endian)
6       n     Statement bytes, in source order
```

Instruction Encoding
--------------------
```
opcode byte = (base_opcode << 3) | operand_type_selector
```
followed by the operands as big-endian 16-bit words: none for 1-byte
instructions, operand1 for 3-byte instructions, operand1 and operand2
for 5-byte instructions.
"""

from dataclasses import replace
from typing import Optional
import logging
import struct

from rasm16.context import AssemblyContext
from rasm16.isa import OPERAND_SELECTORS, InstructionSet
from rasm16.lexer import split_data
from rasm16.parser import Statement

logger = logging.getLogger(__name__)


MAGIC_HEADER = bytes([0x12, 0x31, 0x1C, 0x16])

HEADER_SIZE = len(MAGIC_HEADER) + 2


def encode_word(value: int) -> bytes:
    """Encode a 16-bit value big-endian."""
    return struct.pack(">H", value & 0xFFFF)


def encode_data(statement: Statement, isa: InstructionSet) -> bytes:
    """Encode a data directive's payload values."""
    width = isa.data_width(statement.mnemonic)
    values = [int(value, 16) for value in split_data(statement.data)]
    if width == 1:
        return bytes(values)
    return b"".join(encode_word(value) for value in values)


def encode_opcode(statement: Statement, isa: InstructionSet) -> int:
    """Build the opcode byte from the base opcode and operand types."""
    info = isa.mnemonics[statement.mnemonic]
    selector = OPERAND_SELECTORS.get(
        (statement.operand1.type, statement.operand2.type), 0
    )
    return ((info.opcode << 3) | selector) & 0xFF


def encode_instruction(statement: Statement, isa: InstructionSet) -> bytes:
    """Encode an instruction's opcode byte and operand words."""
    length = isa.mnemonics[statement.mnemonic].length
    code = bytes([encode_opcode(statement, isa)])

    if length >= 3:
        code += encode_word(int(statement.operand1.value, 16))
    if length >= 5:
        code += encode_word(int(statement.operand2.value, 16))

    return code


def encode_statement(statement: Statement, isa: InstructionSet) -> Statement:
    """Return a copy of the statement with its encoded bytes."""
    if isa.is_data_directive(statement.mnemonic):
        code = encode_data(statement, isa)
    else:
        code = encode_instruction(statement, isa)
    return replace(statement, code=code)


def encode_statements(statements: list[Statement], isa: InstructionSet) -> list[Statement]:
    return [encode_statement(statement, isa) for statement in statements]


def build_image(statements: list[Statement], load_offset: int) -> bytes:
    """Concatenate the header and every statement's bytes."""
    return MAGIC_HEADER + encode_word(load_offset) + b"".join(
        statement.code for statement in statements
    )


class Encoder:
    """
    Encodes statements and builds the final image.

    Usage:
        encoder = Encoder(context)
        image = encoder.encode(statements, load_offset=0)
        encoded = encoder.statements
    """

    def __init__(self, context: Optional[AssemblyContext] = None):
        self.context = context or AssemblyContext()
        self.statements: list[Statement] = []

    def encode(self, statements: list[Statement], load_offset: int) -> bytes:
        ctx = self.context

        self.statements = encode_statements(statements, ctx.isa)
        ctx.emit("encode", "Built structured binary", statements=self.statements)

        image = build_image(self.statements, load_offset)
        ctx.emit("image", "Built final binary", image=image)

        logger.debug(f"Built image: {len(image)} bytes at ${load_offset:04X}")
        return image
