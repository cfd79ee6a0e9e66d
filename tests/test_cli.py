# =============================================================================
# test_cli.py - rasm16 Command-Line Tests
# =============================================================================
# Tests for the rasm16 click command: output files, options, environment
# defaults and exit codes.
# =============================================================================

from pathlib import Path

import pytest
from click.testing import CliRunner

from rasm16 import __version__
from rasm16.cli.errors import ExitCode
from rasm16.cli.rasm import main

PROGRAM = """\
# minimal program
start
CO $1,[GP0]
JM
"""

PROGRAM_CODE = bytes([0x10, 0x00, 0x01, 0xFF, 0xF0, 0xE8])


@pytest.fixture
def runner():
    return CliRunner()


# =============================================================================
# Successful Assembly Tests
# =============================================================================

class TestAssembly:
    """Test assembling files from the command line."""

    def test_default_output(self, runner):
        with runner.isolated_filesystem():
            Path("prog.rasm").write_text(PROGRAM)
            result = runner.invoke(main, ["prog.rasm"])
            assert result.exit_code == ExitCode.SUCCESS, result.output
            image = Path("prog.r16").read_bytes()
            assert image == bytes([0x12, 0x31, 0x1C, 0x16, 0x00, 0x00]) + PROGRAM_CODE

    def test_extension_optional(self, runner):
        with runner.isolated_filesystem():
            Path("prog.rasm").write_text(PROGRAM)
            result = runner.invoke(main, ["prog"])
            assert result.exit_code == 0, result.output
            assert Path("prog.r16").exists()

    def test_offset_and_binary_path(self, runner):
        with runner.isolated_filesystem():
            Path("prog.rasm").write_text(PROGRAM)
            result = runner.invoke(main, ["prog.rasm", "-o", "1000", "-b", "out.r16"])
            assert result.exit_code == 0, result.output
            assert Path("out.r16").read_bytes()[4:6] == bytes([0x10, 0x00])
            assert not Path("prog.r16").exists()

    def test_listing_and_symbols(self, runner):
        with runner.isolated_filesystem():
            Path("prog.rasm").write_text(PROGRAM)
            result = runner.invoke(main, ["prog.rasm", "-l", "prog.lst", "-s", "prog.sym"])
            assert result.exit_code == 0, result.output
            assert "Label Table" in Path("prog.lst").read_text()
            assert "prog.start $0000" in Path("prog.sym").read_text()

    def test_include_option(self, runner):
        with runner.isolated_filesystem():
            Path("lib").mkdir()
            Path("lib/util._rasm").write_text("JM\n")
            Path("prog.rasm").write_text("<util>\n")
            result = runner.invoke(main, ["-I", "lib", "prog.rasm"])
            assert result.exit_code == 0, result.output
            assert Path("prog.r16").read_bytes()[6:] == b"\xE8"

    def test_offset_from_environment(self, runner):
        with runner.isolated_filesystem():
            Path("prog.rasm").write_text(PROGRAM)
            result = runner.invoke(main, ["prog.rasm"], env={"RASM16_OFFSET": "2000"})
            assert result.exit_code == 0, result.output
            assert Path("prog.r16").read_bytes()[4:6] == bytes([0x20, 0x00])

    def test_option_overrides_environment(self, runner):
        with runner.isolated_filesystem():
            Path("prog.rasm").write_text(PROGRAM)
            result = runner.invoke(main, ["prog.rasm", "-o", "$0100"], env={"RASM16_OFFSET": "2000"})
            assert result.exit_code == 0, result.output
            assert Path("prog.r16").read_bytes()[4:6] == bytes([0x01, 0x00])

    def test_verbose(self, runner):
        with runner.isolated_filesystem():
            Path("prog.rasm").write_text(PROGRAM)
            result = runner.invoke(main, ["-v", "prog.rasm"])
            assert result.exit_code == 0, result.output
            assert "Assembly complete: 6 bytes at $0000" in result.output
            assert "Defined 1 labels" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


# =============================================================================
# Error Tests
# =============================================================================

class TestErrors:
    """Test error reporting and exit codes."""

    def test_assembly_error(self, runner):
        with runner.isolated_filesystem():
            Path("prog.rasm").write_text("NO\nRT\n")
            result = runner.invoke(main, ["prog.rasm"])
            assert result.exit_code == ExitCode.ASSEMBLY_ERROR
            assert "prog.rasm:2: error: RT needs one operand" in result.output
            assert not Path("prog.r16").exists()

    def test_missing_source(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["nothere"])
            assert result.exit_code == ExitCode.INVALID_ARGS
            assert "nothere.rasm" in result.output

    def test_missing_include(self, runner):
        with runner.isolated_filesystem():
            Path("prog.rasm").write_text("<nothere>\n")
            result = runner.invoke(main, ["prog.rasm"])
            assert result.exit_code == ExitCode.INVALID_ARGS

    def test_invalid_offset(self, runner):
        with runner.isolated_filesystem():
            Path("prog.rasm").write_text(PROGRAM)
            result = runner.invoke(main, ["prog.rasm", "-o", "zz"])
            assert result.exit_code == ExitCode.INVALID_ARGS
