# =============================================================================
# test_parser.py - Structural Parser Tests
# =============================================================================
# Tests for building Statements from preprocessed lines.
#
# Test coverage includes:
#   - Operand typing by sigil
#   - Instruction and data directive statements
#   - Label attachment rules
#   - Statement rendering
# =============================================================================

import pytest
from rasm16.isa import OperandType
from rasm16.parser import (
    NO_OPERAND,
    Operand,
    Parser,
    Statement,
    find_attached_label,
    parse_lines,
)


# =============================================================================
# Operand Tests
# =============================================================================

class TestOperand:
    """Test operand classification."""

    @pytest.mark.parametrize("text,operand_type,value", [
        ("$0001", OperandType.LITERAL, "0001"),
        ("*prog.table", OperandType.POINTER, "prog.table"),
        ("FFF0", OperandType.ADDRESS, "FFF0"),
        ("", OperandType.INVALID, ""),
    ])
    def test_parse(self, text, operand_type, value):
        operand = Operand.parse(text)
        assert operand.type == operand_type
        assert operand.value == value

    def test_absent_operand(self):
        assert not Operand.parse("").present
        assert Operand.parse("") == NO_OPERAND

    def test_str_restores_sigil(self):
        assert str(Operand(OperandType.LITERAL, "1")) == "$1"
        assert str(Operand(OperandType.POINTER, "FFF0")) == "*FFF0"
        assert str(Operand(OperandType.ADDRESS, "FFF0")) == "FFF0"


# =============================================================================
# Parser Tests
# =============================================================================

class TestParser:
    """Test statement construction."""

    def test_instruction(self):
        statements = parse_lines(["CO $1,*FFF0"])
        assert len(statements) == 1
        statement = statements[0]
        assert statement.line == 1
        assert statement.mnemonic == "CO"
        assert statement.operand1 == Operand(OperandType.LITERAL, "1")
        assert statement.operand2 == Operand(OperandType.POINTER, "FFF0")
        assert statement.address == 0
        assert statement.code == b""

    def test_mnemonic_upper_cased(self):
        assert parse_lines(["no"])[0].mnemonic == "NO"

    def test_data_directive(self):
        statement = parse_lines(["$8 01,02"])[0]
        assert statement.mnemonic == "$8"
        assert statement.data == "01,02"
        assert not statement.operand1.present

    def test_blank_and_label_lines_skipped(self):
        statements = parse_lines(["", "prog.start", "NO", "", "JM"])
        assert [s.line for s in statements] == [3, 5]

    def test_label_attaches_across_blank_lines(self):
        statement = parse_lines(["prog.start", "", "", "NO"])[0]
        assert statement.label == "prog.start"

    def test_label_does_not_skip_statements(self):
        """Only the nearest non-empty line can supply a label."""
        statements = parse_lines(["prog.start", "NO", "JM"])
        assert statements[0].label == "prog.start"
        assert statements[1].label is None

    def test_stacked_labels(self):
        """With two labels in a row, the nearer one attaches."""
        statements = parse_lines(["prog.first", "prog.second", "NO"])
        assert len(statements) == 1
        assert statements[0].label == "prog.second"

    def test_find_attached_label(self):
        lines = ["prog.start", "", "NO"]
        assert find_attached_label(lines, 2) == "prog.start"
        assert find_attached_label(lines, 0) is None

    def test_trace_event(self):
        from rasm16.context import AssemblyContext

        events = []
        Parser(AssemblyContext(trace=events.append)).parse(["NO"])
        assert events[0].stage == "structure"
        assert len(events[0].statements) == 1


# =============================================================================
# Statement Tests
# =============================================================================

class TestStatement:
    """Test statement helpers."""

    def make_copy(self) -> Statement:
        return Statement(
            line=1,
            mnemonic="CO16",
            operand1=Operand(OperandType.LITERAL, "1"),
            operand2=Operand(OperandType.ADDRESS, "FFF0"),
        )

    def test_render(self):
        assert self.make_copy().render() == "CO16\t$1,FFF0"

    def test_render_typed(self):
        assert self.make_copy().render(typed=True) == "CO16\t(LITERAL)1,(ADDRESS)FFF0"

    def test_render_with_code(self):
        statement = Statement(line=1, mnemonic="NO", code=b"\x00")
        assert statement.render() == "NO -> 00"

    def test_render_data(self):
        assert Statement(line=1, mnemonic="$8", data="01,02").render() == "$8\t01,02"

    def test_statements_are_immutable(self):
        statement = self.make_copy()
        with pytest.raises(AttributeError):
            statement.address = 4
