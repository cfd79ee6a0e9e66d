# =============================================================================
# test_preprocessor.py - Preprocessor Tests
# =============================================================================
# Tests for the rasm16 preprocessor.
#
# Test coverage includes:
#   - Constant definitions, built-ins and substitution
#   - Per-file constant tables
#   - Label namespacing
#   - Single-level include expansion
#   - Duplicate label detection across includes
# =============================================================================

import pytest
from rasm16.context import AssemblyContext
from rasm16.errors import (
    DuplicateConstantError,
    DuplicateLabelError,
    IncludeError,
    InvalidConstantError,
    NestedIncludeError,
    UndefinedConstantError,
)
from rasm16.isa import DEFAULT_CONSTANTS
from rasm16.preprocessor import (
    Preprocessor,
    check_duplicate_labels,
    collect_constants,
    expand_constants,
    namespace_for,
    parse_constant_definition,
    preprocess,
    qualify_labels,
)


# =============================================================================
# Helper Functions
# =============================================================================

def make_reader(files: dict):
    """Create an in-memory include reader."""
    def reader(name: str) -> list[str]:
        if name not in files:
            raise FileNotFoundError(name)
        return files[name]
    return reader


def make_preprocessor(files: dict) -> Preprocessor:
    return Preprocessor(AssemblyContext(include_reader=make_reader(files)))


# =============================================================================
# Constant Tests
# =============================================================================

class TestConstantDefinitions:
    """Test parsing constant definition lines."""

    def test_name_and_value(self):
        assert parse_constant_definition("[LIMIT] 0010") == ("[LIMIT]", "0010")

    def test_assignment_form(self):
        """An '=' between name and value is accepted."""
        assert parse_constant_definition("[LIMIT] = 0010") == ("[LIMIT]", "0010")

    def test_missing_value(self):
        with pytest.raises(InvalidConstantError):
            parse_constant_definition("[LIMIT]")

    def test_missing_name(self):
        with pytest.raises(InvalidConstantError):
            parse_constant_definition("[] 0010")


class TestConstantExpansion:
    """Test constant collection and substitution."""

    def test_builtins_available(self):
        """Built-in constants expand without a definition."""
        lines = expand_constants(["CO [TRUE],[GP0]"], DEFAULT_CONSTANTS)
        assert lines == ["CO 0001,FFF0"]

    def test_user_constant(self):
        """User definitions expand and their lines become blank."""
        lines = expand_constants(["[LIMIT] 0010", "CO $[LIMIT],[GP1]"], DEFAULT_CONSTANTS)
        assert lines == ["", "CO $0010,FFF2"]

    def test_low_byte_constant(self):
        """[GP0L] is not confused with [GP0]."""
        lines = expand_constants(["CO8 $1,[GP0L]"], DEFAULT_CONSTANTS)
        assert lines == ["CO8 $1,FFF1"]

    def test_line_count_preserved(self):
        lines = ["[A] 1", "", "NO", "[B] 2"]
        assert len(expand_constants(lines, DEFAULT_CONSTANTS)) == 4

    def test_duplicate_user_constant(self):
        with pytest.raises(DuplicateConstantError) as exc_info:
            collect_constants(["[A] 1", "NO", "[A] 2"], DEFAULT_CONSTANTS, "prog.rasm")
        assert exc_info.value.name == "[A]"
        assert exc_info.value.line == 3

    def test_builtin_cannot_be_redefined(self):
        with pytest.raises(DuplicateConstantError):
            collect_constants(["[SP] 0000"], DEFAULT_CONSTANTS)

    def test_undefined_constant(self):
        with pytest.raises(UndefinedConstantError) as exc_info:
            expand_constants(["NO", "CO $1,[MISSING]"], DEFAULT_CONSTANTS, "prog.rasm")
        assert exc_info.value.name == "[MISSING]"
        assert exc_info.value.location.filename == "prog.rasm"
        assert exc_info.value.line == 2

    def test_builtins_not_modified(self):
        """Collecting user constants leaves the built-in table intact."""
        collect_constants(["[EXTRA] 1"], DEFAULT_CONSTANTS)
        assert "[EXTRA]" not in DEFAULT_CONSTANTS


# =============================================================================
# Namespace Tests
# =============================================================================

class TestNamespaces:
    """Test label namespacing."""

    @pytest.mark.parametrize("name,namespace", [
        ("prog.rasm", "prog"),
        ("stdio", "stdio"),
        ("lib.v2._rasm", "lib"),
        ("src/app/main.rasm", "main"),
    ])
    def test_namespace_for(self, name, namespace):
        assert namespace_for(name) == namespace

    def test_qualifies_labels_and_references(self):
        lines = qualify_labels(["start", "EQ start", "NO"], "prog")
        assert lines == ["prog.start", "EQ prog.start", "NO"]

    def test_qualified_tokens_untouched(self):
        """Tokens that already contain '.' keep their namespace."""
        assert qualify_labels(["EQ other.entry"], "prog") == ["EQ other.entry"]

    def test_data_and_include_lines_untouched(self):
        lines = ['$8 "hello world"', "<stdio>"]
        assert qualify_labels(lines, "prog") == lines

    def test_pointer_operand(self):
        assert qualify_labels(["CO $1,*table"], "prog") == ["CO $1,*prog.table"]


# =============================================================================
# Duplicate Label Tests
# =============================================================================

class TestDuplicateLabels:
    """Test duplicate label detection."""

    def test_duplicate_reports_both_lines(self):
        with pytest.raises(DuplicateLabelError) as exc_info:
            check_duplicate_labels(["prog.start", "NO", "", "prog.start"], "prog.rasm")
        error = exc_info.value
        assert error.label == "prog.start"
        assert error.line == 4
        assert error.original_location.line == 1

    def test_distinct_labels_pass(self):
        check_duplicate_labels(["prog.start", "NO", "prog.again", "NO"])


# =============================================================================
# Preprocessor Tests
# =============================================================================

class TestPreprocessor:
    """Test the complete preprocessing pass."""

    def test_full_pass(self):
        lines = preprocess(["[LIMIT] 0010", "start", "CO $[LIMIT],[GP0]  # copy"], "prog.rasm")
        assert lines == ["", "prog.start", "CO $0010,FFF0"]

    def test_include_expansion(self):
        """Include files are cleaned, expanded and namespaced on their own."""
        pp = make_preprocessor({"stdio": ["print   # entry", "RT [IO]"]})
        lines = pp.process(["<stdio>", "start", "EQ stdio.print"], "prog.rasm")
        assert lines == ["stdio.print", "RT FFB2", "prog.start", "EQ stdio.print"]
        assert pp.include_count == 1

    def test_include_without_closing_bracket(self):
        pp = make_preprocessor({"stdio": ["NO"]})
        assert pp.process(["<stdio"], "prog.rasm") == ["NO"]

    def test_include_sees_only_own_constants(self):
        """Main file constants are not visible inside include files."""
        pp = make_preprocessor({"lib": ["CO $[LIMIT],[GP0]"]})
        with pytest.raises(UndefinedConstantError) as exc_info:
            pp.process(["[LIMIT] 0010", "<lib>"], "prog.rasm")
        assert exc_info.value.location.filename == "lib"
        assert exc_info.value.line == 1

    def test_include_may_define_same_constant(self):
        """Each file has its own table, so names may repeat across files."""
        pp = make_preprocessor({"lib": ["[LIMIT] 0020", "CO $[LIMIT],[GP0]"]})
        lines = pp.process(["[LIMIT] 0010", "<lib>", "CO $[LIMIT],[GP0]"], "prog.rasm")
        assert lines == ["", "", "CO $0020,FFF0", "CO $0010,FFF0"]

    def test_nested_include_rejected(self):
        pp = make_preprocessor({"lib": ["NO", "<other>"], "other": ["NO"]})
        with pytest.raises(NestedIncludeError) as exc_info:
            pp.process(["<lib>"], "prog.rasm")
        assert exc_info.value.include_name == "lib"

    def test_include_without_reader(self):
        with pytest.raises(IncludeError) as exc_info:
            preprocess(["NO", "<stdio>"], "prog.rasm")
        assert exc_info.value.line == 2

    def test_include_without_name(self):
        pp = make_preprocessor({})
        with pytest.raises(IncludeError):
            pp.process(["<>"], "prog.rasm")

    def test_reader_error_propagates(self):
        """I/O errors from the reader are not wrapped."""
        pp = make_preprocessor({})
        with pytest.raises(FileNotFoundError):
            pp.process(["<missing>"], "prog.rasm")

    def test_duplicate_label_across_include(self):
        pp = make_preprocessor({"lib": ["entry", "NO"]})
        with pytest.raises(DuplicateLabelError) as exc_info:
            pp.process(["<lib>", "lib.entry", "NO"], "prog.rasm")
        assert exc_info.value.line == 3
        assert exc_info.value.original_location.line == 1

    def test_same_label_in_different_files(self):
        """Namespacing keeps equal names in different files apart."""
        pp = make_preprocessor({"lib": ["entry", "NO"]})
        lines = pp.process(["<lib>", "entry", "NO"], "prog.rasm")
        assert "lib.entry" in lines
        assert "prog.entry" in lines

    def test_trace_events(self):
        events = []
        pp = Preprocessor(AssemblyContext(trace=events.append))
        pp.process(["NO"], "prog.rasm")
        assert [e.stage for e in events] == ["source", "clean", "constants", "namespaces", "includes"]
        assert events[-1].lines == ("NO",)
