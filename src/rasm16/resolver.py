"""
rasm16 Address & Label Resolver
===============================

Three forward passes over the statements:

Pass 1 (Addresses)
------------------
Each statement gets the running program counter as its address. The
counter then advances by the statement's size:

- $8 data: 1 byte per value
- $16 data: 2 bytes per value
- instructions: the mnemonic's fixed length (1, 3 or 5 bytes)

After each advance the counter must stay below the ISA's address limit
($FFB0 - 256, leaving room for the call stack below the stack pointer).

Pass 2 (Label Table)
--------------------
Collect {label: address} from every statement with an attached label.
Duplicates were already rejected by the preprocessor.

Pass 3 (Substitution)
---------------------
The first label-shaped token of each operand is replaced with its
address as four uppercase hex digits.
"""

from dataclasses import replace
from typing import Optional
import logging

from rasm16.context import AssemblyContext
from rasm16.errors import AddressOutOfRangeError, SourceLocation, UndefinedLabelError
from rasm16.isa import InstructionSet
from rasm16.lexer import find_label, split_data
from rasm16.parser import Operand, Statement

logger = logging.getLogger(__name__)


# =============================================================================
# Pass 1: Addresses
# =============================================================================

def statement_size(statement: Statement, isa: InstructionSet) -> int:
    """Return the number of bytes a statement occupies in the image."""
    if isa.is_data_directive(statement.mnemonic):
        return isa.data_width(statement.mnemonic) * len(split_data(statement.data))
    return isa.mnemonics[statement.mnemonic].length


def assign_addresses(
    statements: list[Statement],
    load_offset: int,
    isa: InstructionSet,
    filename: str = "<input>",
) -> list[Statement]:
    """
    Assign a byte address to every statement.

    Raises:
        AddressOutOfRangeError: When the counter reaches the address limit
    """
    addressed = []
    pc = load_offset

    for statement in statements:
        addressed.append(replace(statement, address=pc))
        pc += statement_size(statement, isa)

        if pc >= isa.max_address:
            raise AddressOutOfRangeError(pc, SourceLocation(filename, statement.line))

    return addressed


# =============================================================================
# Pass 2: Label Table
# =============================================================================

def collect_labels(statements: list[Statement]) -> dict[str, int]:
    """Map every attached label to its statement's address."""
    return {
        statement.label: statement.address
        for statement in statements
        if statement.label
    }


# =============================================================================
# Pass 3: Substitution
# =============================================================================

def resolve_operand(
    operand: Operand,
    labels: dict[str, int],
    location: Optional[SourceLocation] = None,
) -> Operand:
    """
    Replace a label reference inside an operand with its address.

    Raises:
        UndefinedLabelError: If the referenced label is not in the table
    """
    if not operand.present:
        return operand

    label = find_label(operand.value)
    if label is None:
        return operand
    if label not in labels:
        raise UndefinedLabelError(label, location)

    value = operand.value.replace(label, f"{labels[label]:04X}", 1)
    return replace(operand, value=value)


def resolve_labels(
    statements: list[Statement],
    labels: dict[str, int],
    filename: str = "<input>",
) -> list[Statement]:
    """Substitute label references in every operand."""
    resolved = []
    for statement in statements:
        location = SourceLocation(filename, statement.line)
        resolved.append(statement.with_operands(
            resolve_operand(statement.operand1, labels, location),
            resolve_operand(statement.operand2, labels, location),
        ))
    return resolved


# =============================================================================
# Resolver
# =============================================================================

class Resolver:
    """
    Runs the three resolver passes.

    Usage:
        resolver = Resolver(context)
        statements = resolver.resolve(statements, load_offset=0x1000)
        labels = resolver.labels

    Attributes:
        labels: Label table from the last resolve() call
    """

    def __init__(self, context: Optional[AssemblyContext] = None):
        self.context = context or AssemblyContext()
        self.labels: dict[str, int] = {}

    def resolve(self, statements: list[Statement], load_offset: int) -> list[Statement]:
        """
        Assign addresses and substitute label references.

        Raises:
            AddressOutOfRangeError: If the program overflows the address space
            UndefinedLabelError: If an operand references an unknown label
        """
        ctx = self.context

        statements = assign_addresses(statements, load_offset, ctx.isa, ctx.filename)
        ctx.emit("addresses", "Calculated addresses", statements=statements)

        self.labels = collect_labels(statements)
        logger.debug(f"Found {len(self.labels)} label addresses")
        ctx.emit("labels", "Found label addresses", labels=self.labels)

        statements = resolve_labels(statements, self.labels, ctx.filename)
        ctx.emit("resolve", "Expanded labels", statements=statements)

        return statements
