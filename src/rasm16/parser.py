"""
rasm16 Structural Parser
========================

The parser lifts preprocessed lines into Statement records, the
structured form every later stage works on.

Statement Shapes
----------------
1. **Instruction**: mnemonic plus up to two typed operands
   ```
   CO16 $0001,*main.ptr     ; LITERAL 0001, POINTER main.ptr
   EQ main.loop             ; ADDRESS main.loop
   NO
   ```

2. **Data directive**: directive plus raw payload
   ```
   $8 "Hello",00
   $16 (4)
   ```

Label Attachment
----------------
A label is a line of its own. It attaches to a statement only when it is
the nearest non-empty line above that statement; any other line in
between (even another statement) breaks the attachment.

Statements are immutable. Later stages produce updated copies with
dataclasses.replace(), so every stage returns a new statement list.
"""

from dataclasses import dataclass, replace
from typing import Optional
import logging

from rasm16.context import AssemblyContext
from rasm16.isa import OPERAND_SIGILS, OperandType
from rasm16.lexer import LineKind, LineLexer, is_label

logger = logging.getLogger(__name__)


# =============================================================================
# Statement Data Classes
# =============================================================================

@dataclass(frozen=True)
class Operand:
    """
    Typed instruction operand.

    Attributes:
        type: Operand type from the source sigil (INVALID when absent)
        value: Operand text with the sigil stripped (hex literal, or a
               label reference before resolution)
    """
    type: OperandType = OperandType.INVALID
    value: str = ""

    @classmethod
    def parse(cls, text: str) -> "Operand":
        """Classify raw operand text by its leading sigil."""
        text = text.strip()
        if not text:
            return cls()
        operand_type = OPERAND_SIGILS.get(text[0])
        if operand_type is not None:
            return cls(operand_type, text[1:])
        return cls(OperandType.ADDRESS, text)

    @property
    def present(self) -> bool:
        return self.value != ""

    def __str__(self) -> str:
        for sigil, operand_type in OPERAND_SIGILS.items():
            if operand_type == self.type:
                return f"{sigil}{self.value}"
        return self.value


NO_OPERAND = Operand()


@dataclass(frozen=True)
class Statement:
    """
    One instruction or data directive.

    Attributes:
        line: Source line number (1-indexed, in the expanded source)
        mnemonic: Mnemonic or directive (upper-cased for instructions)
        label: Namespace-qualified label attached to this statement
        address: Byte address, filled in by the resolver
        operand1: First operand
        operand2: Second operand
        data: Data directive payload (comma-separated values)
        code: Encoded bytes, filled in by the encoder
    """
    line: int
    mnemonic: str
    label: Optional[str] = None
    address: int = 0
    operand1: Operand = NO_OPERAND
    operand2: Operand = NO_OPERAND
    data: str = ""
    code: bytes = b""

    @property
    def operands(self) -> tuple[Operand, Operand]:
        return (self.operand1, self.operand2)

    def with_operands(self, operand1: Operand, operand2: Operand) -> "Statement":
        return replace(self, operand1=operand1, operand2=operand2)

    def render(self, typed: bool = False) -> str:
        """
        Format the statement as source-like text.

        Args:
            typed: Annotate operands with their type, e.g. (LITERAL)0001
        """
        if self.data or not (self.operand1.present or self.operand2.present):
            text = f"{self.mnemonic}\t{self.data}" if self.data else self.mnemonic
        else:
            parts = []
            for operand in self.operands:
                if not operand.present:
                    continue
                if typed:
                    parts.append(f"({operand.type.name}){operand.value}")
                else:
                    parts.append(str(operand))
            text = f"{self.mnemonic}\t" + ",".join(parts)

        if self.code:
            text += " -> " + " ".join(f"{b:02X}" for b in self.code)
        return text


# =============================================================================
# Parser
# =============================================================================

def find_attached_label(lines: list[str], index: int) -> Optional[str]:
    """
    Return the label attached to the line at index, if any.

    Scans backwards over blank lines; the first non-empty line decides.
    """
    for previous in range(index - 1, -1, -1):
        text = lines[previous]
        if text:
            return text if is_label(text) else None
    return None


class Parser:
    """
    Builds Statements from preprocessed source lines.

    Usage:
        statements = Parser(context).parse(lines)
    """

    def __init__(self, context: Optional[AssemblyContext] = None):
        self.context = context or AssemblyContext()

    def parse(self, lines: list[str]) -> list[Statement]:
        statements = []

        for index, text in enumerate(lines):
            statement = self.parse_line(text, index + 1, find_attached_label(lines, index))
            if statement is not None:
                statements.append(statement)

        logger.debug(f"Built {len(statements)} statements from {len(lines)} lines")
        self.context.emit("structure", "Built structured source", statements=statements)
        return statements

    def parse_line(
        self,
        text: str,
        line: int,
        label: Optional[str] = None,
    ) -> Optional[Statement]:
        """
        Parse a single line.

        Returns:
            A Statement, or None for blank and label-only lines
        """
        lexed = LineLexer(text).lex()

        if lexed.kind == LineKind.DATA:
            return Statement(line=line, mnemonic=lexed.mnemonic, label=label, data=lexed.data)

        if lexed.kind == LineKind.INSTRUCTION:
            first, second = lexed.operands
            return Statement(
                line=line,
                mnemonic=lexed.mnemonic.upper(),
                label=label,
                operand1=Operand.parse(first),
                operand2=Operand.parse(second),
            )

        return None


def parse_lines(lines: list[str], context: Optional[AssemblyContext] = None) -> list[Statement]:
    """Convenience function to build statements from preprocessed lines."""
    return Parser(context).parse(lines)
