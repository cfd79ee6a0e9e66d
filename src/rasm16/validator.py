"""
rasm16 Validator
================

Line-numbered checks over the structured statements. Each check stops at
the first offending statement.

- validate_mnemonics: every mnemonic exists in the ISA tables
- validate_data_directives: every $8 value is 1-2 hex digits and every
  $16 value 1-4 hex digits
- validate_operands: operand count matches the mnemonic and every operand
  is a hex literal. This check runs after label resolution, so an
  operand still holding a non-hex token at that point is invalid.
"""

from typing import Optional

from rasm16.context import AssemblyContext
from rasm16.errors import (
    InvalidDataWidthError,
    InvalidOperandError,
    SourceLocation,
    UnknownMnemonicError,
    WrongOperandArityError,
)
from rasm16.isa import InstructionSet
from rasm16.lexer import is_hex8, is_hex16, split_data
from rasm16.parser import Statement


def _location(filename: str, statement: Statement) -> SourceLocation:
    return SourceLocation(filename, statement.line)


def validate_mnemonics(
    statements: list[Statement],
    isa: InstructionSet,
    filename: str = "<input>",
) -> None:
    """
    Raises:
        UnknownMnemonicError: For the first mnemonic not in the ISA
    """
    for statement in statements:
        if isa.get_mnemonic(statement.mnemonic) is None:
            raise UnknownMnemonicError(statement.mnemonic, _location(filename, statement))


def validate_data_directives(
    statements: list[Statement],
    isa: InstructionSet,
    filename: str = "<input>",
) -> None:
    """
    Raises:
        InvalidDataWidthError: For the first value too wide for its directive
    """
    for statement in statements:
        if not isa.is_data_directive(statement.mnemonic):
            continue

        width = isa.data_width(statement.mnemonic)
        is_valid = is_hex8 if width == 1 else is_hex16
        for value in split_data(statement.data):
            if not is_valid(value):
                raise InvalidDataWidthError(width * 8, value, _location(filename, statement))


def is_valid_hex_operand(value: str) -> bool:
    """Return True if an operand value is an 8- or 16-bit hex literal."""
    return is_hex16(value) or is_hex8(value)


def validate_operand_count(statement: Statement, operand_count: int, filename: str = "<input>") -> None:
    """
    Check that exactly the declared operands are present.

    Raises:
        WrongOperandArityError: On a mismatch
    """
    first = statement.operand1.present
    second = statement.operand2.present

    if operand_count == 0:
        valid = not first and not second
    elif operand_count == 1:
        valid = first and not second
    else:
        valid = first and second

    if not valid:
        raise WrongOperandArityError(
            statement.mnemonic,
            operand_count,
            _location(filename, statement),
        )


def validate_operands(
    statements: list[Statement],
    isa: InstructionSet,
    filename: str = "<input>",
) -> None:
    """
    Raises:
        WrongOperandArityError: If an instruction has the wrong operand count
        InvalidOperandError: If an operand is not a hex literal
    """
    for statement in statements:
        if isa.is_data_directive(statement.mnemonic):
            continue

        info = isa.get_mnemonic(statement.mnemonic)
        validate_operand_count(statement, info.operand_count, filename)

        for operand in statement.operands:
            if operand.present and not is_valid_hex_operand(operand.value):
                raise InvalidOperandError(operand.value, _location(filename, statement))


def validate_statements(statements: list[Statement], context: Optional[AssemblyContext] = None) -> None:
    """Run the checks that precede address calculation."""
    ctx = context or AssemblyContext()
    validate_mnemonics(statements, ctx.isa, ctx.filename)
    validate_data_directives(statements, ctx.isa, ctx.filename)
