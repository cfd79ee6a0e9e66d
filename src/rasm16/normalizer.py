"""
rasm16 Statement Normalizer
===========================

Rewrites statements into the canonical form the validator and encoder
expect. The steps run in this order:

1. **Unaliasing**: short mnemonics become their 16-bit form (CO -> CO16,
   $ -> $16)
2. **Data strings**: a quoted $8 payload becomes its bytes as hex
   ("Hi" -> 48,69)
3. **Null repeats**: a (N) payload on any data directive becomes N
   copies of the [NULL] value ($16 (3) -> 0000,0000,0000). [NULL] is a
   16-bit value, so the data width check rejects it on $8.

Because strings are converted before repeats are expanded, a payload is
either a string or a repeat, never a mix of both.
"""

from dataclasses import replace
from typing import Optional

from rasm16.context import AssemblyContext
from rasm16.errors import InvalidNullRepeatError, SourceLocation
from rasm16.isa import DATA_8BIT, InstructionSet
from rasm16.lexer import DATA_DELIMITER, REPEAT_END, REPEAT_START, STRING_QUOTE
from rasm16.parser import Statement


# =============================================================================
# Unaliasing
# =============================================================================

def unalias_mnemonics(statements: list[Statement], isa: InstructionSet) -> list[Statement]:
    """Replace mnemonic aliases with their canonical mnemonics."""
    return [
        replace(statement, mnemonic=isa.unalias(statement.mnemonic))
        if statement.mnemonic in isa.aliases else statement
        for statement in statements
    ]


# =============================================================================
# Data Strings
# =============================================================================

def is_data_string(data: str) -> bool:
    """Return True if a payload is a quoted string."""
    return (
        len(data) >= 2
        and data.startswith(STRING_QUOTE)
        and data.endswith(STRING_QUOTE)
    )


def data_string_to_hex(data: str) -> str:
    """Convert a quoted string payload to comma-separated hex bytes."""
    raw = data[1:-1].encode("utf-8")
    return DATA_DELIMITER.join(f"{b:02X}" for b in raw)


def convert_data_strings(statements: list[Statement]) -> list[Statement]:
    """Convert quoted $8 payloads to byte lists."""
    return [
        replace(statement, data=data_string_to_hex(statement.data))
        if statement.mnemonic == DATA_8BIT and is_data_string(statement.data)
        else statement
        for statement in statements
    ]


# =============================================================================
# Null Repeats
# =============================================================================

def is_null_repeat(data: str) -> bool:
    """Return True if a payload uses (N) null repeat syntax."""
    return (
        len(data) >= 2
        and data.startswith(REPEAT_START)
        and data.endswith(REPEAT_END)
    )


def expand_null_repeat(data: str, null_value: str, location: Optional[SourceLocation] = None) -> str:
    """
    Expand a (N) payload to N copies of the null value.

    Raises:
        InvalidNullRepeatError: If N is not a positive decimal integer
    """
    count_text = data[1:-1].strip()
    if not count_text.isdecimal() or not count_text.isascii():
        raise InvalidNullRepeatError(data, location)
    count = int(count_text)
    if count < 1:
        raise InvalidNullRepeatError(data, location)
    return DATA_DELIMITER.join([null_value] * count)


def expand_null_repeats(
    statements: list[Statement],
    isa: InstructionSet,
    filename: str = "<input>",
) -> list[Statement]:
    """Expand (N) payloads on every data directive."""
    expanded = []
    for statement in statements:
        if isa.is_data_directive(statement.mnemonic) and is_null_repeat(statement.data):
            data = expand_null_repeat(
                statement.data,
                isa.null_value,
                SourceLocation(filename, statement.line),
            )
            statement = replace(statement, data=data)
        expanded.append(statement)
    return expanded


# =============================================================================
# Normalizer
# =============================================================================

def normalize(statements: list[Statement], context: Optional[AssemblyContext] = None) -> list[Statement]:
    """
    Run every normalization step.

    Raises:
        InvalidNullRepeatError: If a (N) count is malformed
    """
    ctx = context or AssemblyContext()

    statements = unalias_mnemonics(statements, ctx.isa)
    ctx.emit("unalias", "Unaliased mnemonics", statements=statements)

    statements = convert_data_strings(statements)
    ctx.emit("strings", "Converted data strings to hex", statements=statements)

    statements = expand_null_repeats(statements, ctx.isa, ctx.filename)
    ctx.emit("repeats", "Expanded data null repeats", statements=statements)

    return statements
