"""
rasm16 Line Lexer
=================

rasm16 source is strictly line-oriented, so instead of a token stream the
lexer works one line at a time: a small cursor walks the line once and
splits it into the fields the later stages need.

Line Kinds
----------
| Kind        | Starts with | Example              |
|-------------|-------------|----------------------|
| BLANK       | (empty)     |                      |
| CONSTANT    | [           | [LIMIT] 0010         |
| INCLUDE     | <           | <stdlib>             |
| DATA        | $           | $8 "Hi",00           |
| LABEL       | word chars  | main.loop            |
| INSTRUCTION | anything    | CO $0010,[GP0]       |

A label is a whole line of at least five word or '.' characters. The
same five-character rule identifies label references inside operands,
which is why mnemonics are at most four characters long.

Example
-------
>>> from rasm16.lexer import LineLexer
>>> LineLexer("CO16 $1,*data.ptr").lex()
LexedLine(kind=<LineKind.INSTRUCTION: 6>, mnemonic='CO16', operands=('$1', '*data.ptr'), data='')
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional
import re


# =============================================================================
# Lexical Tokens
# =============================================================================

COMMENT_CHAR = "#"
ESCAPE_CHAR = "\\"
CONSTANT_START = "["
CONSTANT_END = "]"
CONSTANT_ASSIGN = "="
INCLUDE_START = "<"
INCLUDE_END = ">"
DATA_START = "$"
MNEMONIC_DELIMITER = " "
OPERAND_DELIMITER = ","
DATA_DELIMITER = ","
STRING_QUOTE = '"'
REPEAT_START = "("
REPEAT_END = ")"
NAMESPACE_DELIMITER = "."

# Minimum number of characters in a label
LABEL_MIN_LENGTH = 5

# Labels use ASCII word characters only
_LABEL_LINE = re.compile(r"[\w.]+", re.ASCII)
LABEL_TOKEN = re.compile(r"[\w.]{%d,}" % LABEL_MIN_LENGTH, re.ASCII)
CONSTANT_REFERENCE = re.compile(r"\[[^\]]+\]")

HEX_8BIT = re.compile(r"[0-9A-Fa-f]{1,2}")
HEX_16BIT = re.compile(r"[0-9A-Fa-f]{1,4}")


class LineKind(Enum):
    """Classification of a cleaned source line."""
    BLANK = auto()
    LABEL = auto()
    CONSTANT = auto()
    INCLUDE = auto()
    DATA = auto()
    INSTRUCTION = auto()


# =============================================================================
# Recognisers
# =============================================================================

def is_label(text: str) -> bool:
    """Return True if the whole text is a label."""
    return len(text) >= LABEL_MIN_LENGTH and _LABEL_LINE.fullmatch(text) is not None


def find_label(text: str) -> Optional[str]:
    """Return the first label-shaped substring of text, or None."""
    match = LABEL_TOKEN.search(text)
    return match.group(0) if match else None


def is_hex8(text: str) -> bool:
    """Return True if text is a 1-2 digit hex literal."""
    return HEX_8BIT.fullmatch(text) is not None


def is_hex16(text: str) -> bool:
    """Return True if text is a 1-4 digit hex literal."""
    return HEX_16BIT.fullmatch(text) is not None


def classify_line(text: str) -> LineKind:
    """Classify a cleaned (comment-free, trimmed) source line."""
    if not text:
        return LineKind.BLANK
    first = text[0]
    if first == CONSTANT_START:
        return LineKind.CONSTANT
    if first == INCLUDE_START:
        return LineKind.INCLUDE
    if first == DATA_START:
        return LineKind.DATA
    if is_label(text):
        return LineKind.LABEL
    return LineKind.INSTRUCTION


def split_data(data: str) -> list[str]:
    """Split a data payload into its comma-separated values."""
    return data.split(DATA_DELIMITER)


# =============================================================================
# Line Cursor
# =============================================================================

class LineCursor:
    """
    Forward-only cursor over a single line of text.

    Attributes:
        text: The line being scanned
        pos: Index of the next unread character
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self, offset: int = 0) -> str:
        """Return the character at pos + offset, or '' past the end."""
        index = self.pos + offset
        if index < len(self.text):
            return self.text[index]
        return ""

    def advance(self) -> str:
        char = self.peek()
        self.pos += 1
        return char

    def take_until(self, delimiter: str) -> str:
        """
        Consume up to and including the next delimiter.

        Returns the text before the delimiter, or the rest of the line if
        the delimiter does not occur.
        """
        index = self.text.find(delimiter, self.pos)
        if index < 0:
            return self.rest()
        chunk = self.text[self.pos:index]
        self.pos = index + len(delimiter)
        return chunk

    def rest(self) -> str:
        """Consume and return the remainder of the line."""
        chunk = self.text[self.pos:]
        self.pos = len(self.text)
        return chunk


# =============================================================================
# Comment and Whitespace Cleanup
# =============================================================================

def clean_line(text: str) -> str:
    """
    Strip a comment and normalise whitespace.

    Everything from the first unescaped '#' is removed; '\\#' yields a
    literal '#'. Runs of whitespace collapse to one space and the result
    is trimmed.
    """
    cursor = LineCursor(text)
    chars = []
    while not cursor.at_end():
        char = cursor.advance()
        if char == ESCAPE_CHAR and cursor.peek() == COMMENT_CHAR:
            chars.append(cursor.advance())
        elif char == COMMENT_CHAR:
            break
        else:
            chars.append(char)
    return " ".join("".join(chars).split())


# =============================================================================
# Line Lexer
# =============================================================================

@dataclass(frozen=True)
class LexedLine:
    """
    Fields of one source line.

    Attributes:
        kind: Line classification
        mnemonic: Mnemonic or directive text (as written)
        operands: Raw operand1 and operand2 text ('' when absent)
        data: Raw data payload of a data directive
    """
    kind: LineKind
    mnemonic: str = ""
    operands: tuple[str, str] = ("", "")
    data: str = ""


class LineLexer:
    """
    Splits a cleaned source line into mnemonic and operand/data fields.

    Instruction lines split on the first space, then the operand text on
    the first comma. Data lines split on the first space only; the rest
    of the line is the payload.

    Usage:
        lexed = LineLexer("AD16 $2,total").lex()
    """

    def __init__(self, text: str):
        self.text = text

    def lex(self) -> LexedLine:
        kind = classify_line(self.text)
        if kind in (LineKind.DATA, LineKind.INSTRUCTION):
            cursor = LineCursor(self.text)
            mnemonic = cursor.take_until(MNEMONIC_DELIMITER)
            if kind == LineKind.DATA:
                return LexedLine(kind, mnemonic, data=cursor.rest())
            first = cursor.take_until(OPERAND_DELIMITER)
            second = cursor.rest()
            return LexedLine(kind, mnemonic, (first.strip(), second.strip()))
        return LexedLine(kind)
