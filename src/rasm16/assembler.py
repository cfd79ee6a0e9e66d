"""
rasm16 Assembler - Main Interface
=================================

This module wires the pipeline stages together and provides the
Assembler class, the primary interface for assembling RELIC-16 source.

Assembly Pipeline
-----------------
Preprocess
    Clean-up, expand constants, namespacing, includes, validate labels
Structure
    Build statements
Normalize
    Unalias mnemonics, data strings to hex, expand null repeats
Validate
    Mnemonics, data directives
Resolve
    Calculate addresses, collect labels, expand labels
Validate
    Operands
Encode
    Statement bytes, final image

Every stage returns a new list; the first error aborts the run.

Example Usage
-------------
>>> from rasm16 import assemble
>>> assemble(["NO"], "prog.rasm").hex(" ")
'12 31 1c 16 00 00 00'

>>> from rasm16 import Assembler
>>> asm = Assembler(load_offset=0x1000)
>>> asm.assemble_file("hello.rasm")
>>> asm.write_binary("hello.r16")
>>> asm.get_symbols()
{'hello.start': 4096, ...}
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import logging

from rasm16.config import INCLUDE_EXTENSION, MAX_LOAD_OFFSET
from rasm16.context import AssemblyContext, IncludeReader
from rasm16.encoder import Encoder, HEADER_SIZE
from rasm16.files import FileIncludeReader, read_source, write_binary
from rasm16.isa import DEFAULT_ISA, InstructionSet
from rasm16.normalizer import normalize
from rasm16.parser import Parser, Statement
from rasm16.preprocessor import Preprocessor
from rasm16.resolver import Resolver
from rasm16.trace import TraceHook, format_hex_dump
from rasm16.validator import validate_operands, validate_statements

logger = logging.getLogger(__name__)


# =============================================================================
# Pipeline
# =============================================================================

@dataclass(frozen=True)
class AssemblyResult:
    """
    Everything produced by one assembly run.

    Attributes:
        image: Final binary image (header + code)
        statements: Encoded statements in source order
        labels: Label table (qualified label -> address)
        lines: Fully expanded source lines
        load_offset: Load offset written to the header
    """
    image: bytes
    statements: tuple[Statement, ...]
    labels: Mapping[str, int]
    lines: tuple[str, ...]
    load_offset: int

    @property
    def code(self) -> bytes:
        """Program bytes without the header."""
        return self.image[HEADER_SIZE:]


def run_pipeline(
    lines: list[str],
    name: str,
    load_offset: int,
    context: AssemblyContext,
) -> AssemblyResult:
    """
    Assemble raw source lines with an explicit context.

    Raises:
        ValueError: If load_offset is not a 16-bit value
        AssemblerError: On the first assembly error
        OSError: If reading an include file fails
    """
    if not 0 <= load_offset <= MAX_LOAD_OFFSET:
        raise ValueError(f"load offset {load_offset:#x} is outside 0000..FFFF")

    expanded = Preprocessor(context).process(list(lines), name)

    statements = Parser(context).parse(expanded)
    statements = normalize(statements, context)
    validate_statements(statements, context)

    resolver = Resolver(context)
    statements = resolver.resolve(statements, load_offset)
    validate_operands(statements, context.isa, context.filename)

    encoder = Encoder(context)
    image = encoder.encode(statements, load_offset)

    return AssemblyResult(
        image=image,
        statements=tuple(encoder.statements),
        labels=dict(resolver.labels),
        lines=tuple(expanded),
        load_offset=load_offset,
    )


# =============================================================================
# Assembler
# =============================================================================

class Assembler:
    """
    Main rasm16 assembler class.

    Usage:
        asm = Assembler(load_offset=0x1000, include_paths=["lib"])
        image = asm.assemble_file("prog.rasm")
        asm.write_binary("prog.r16")
        asm.write_listing("prog.lst")

    Attributes:
        load_offset: Address the image is loaded at
        isa: Instruction set tables
    """

    def __init__(
        self,
        load_offset: int = 0,
        include_paths: list[str | Path] | None = None,
        isa: InstructionSet = DEFAULT_ISA,
        trace: Optional[TraceHook] = None,
        include_reader: Optional[IncludeReader] = None,
        include_extension: str = INCLUDE_EXTENSION,
    ):
        """
        Initialize the assembler.

        Args:
            load_offset: Load offset written to the image header and used
                         as the first statement's address
            include_paths: Directories to search for include files
            isa: Instruction set tables (default: the stock RELIC-16 ISA)
            trace: Optional hook receiving every stage's output
            include_reader: Custom include reader; overrides include_paths
            include_extension: Extension appended to include names
        """
        self.load_offset = load_offset
        self.isa = isa
        self._trace = trace
        self._include_reader = include_reader
        self._include_extension = include_extension
        self._include_paths: list[Path] = []
        self._result: Optional[AssemblyResult] = None

        if include_paths:
            for path in include_paths:
                self.add_include_path(path)

    # =========================================================================
    # Configuration
    # =========================================================================

    def add_include_path(self, path: str | Path) -> None:
        """Add a directory to search for include files."""
        path = Path(path)
        if path.is_dir():
            self._include_paths.append(path)
        else:
            logger.warning(f"Include path '{path}' is not a directory")

    def get_include_paths(self) -> list[Path]:
        return list(self._include_paths)

    def _context(self, name: str) -> AssemblyContext:
        reader = self._include_reader or FileIncludeReader(
            self._include_paths, self._include_extension
        )
        return AssemblyContext(
            isa=self.isa,
            include_reader=reader,
            trace=self._trace,
            filename=name,
        )

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble_lines(self, lines: list[str], name: str = "main") -> bytes:
        """
        Assemble raw source lines.

        Args:
            lines: Source lines
            name: Source name; its basename up to the first '.' becomes
                  the label namespace

        Returns:
            The binary image

        Raises:
            AssemblerError: If assembly fails
            OSError: If an include file cannot be read
        """
        logger.debug(f"Assembling {name} at ${self.load_offset:04X}")
        self._result = None
        self._result = run_pipeline(lines, name, self.load_offset, self._context(name))
        logger.debug(
            f"Assembled {name}: {len(self._result.statements)} statements, "
            f"{len(self._result.image)} bytes"
        )
        return self._result.image

    def assemble_string(self, source: str, name: str = "main") -> bytes:
        """Assemble source code from a string."""
        return self.assemble_lines(source.splitlines(), name)

    def assemble_file(self, filepath: str | Path) -> bytes:
        """
        Assemble a source file.

        The file's directory is searched for include files first.

        Raises:
            AssemblerError: If assembly fails
            FileNotFoundError: If the source or an include file is missing
        """
        filepath = Path(filepath)

        source_dir = filepath.parent
        if source_dir not in self._include_paths:
            self._include_paths.insert(0, source_dir)

        return self.assemble_lines(read_source(filepath), filepath.name)

    # =========================================================================
    # Output Methods
    # =========================================================================

    def get_result(self) -> AssemblyResult:
        """
        Return the result of the last successful assembly.

        Raises:
            RuntimeError: If nothing has been assembled yet
        """
        if self._result is None:
            raise RuntimeError("no successful assembly to report on")
        return self._result

    def get_image(self) -> bytes:
        return self.get_result().image

    def get_code(self) -> bytes:
        """Program bytes without the header."""
        return self.get_result().code

    def get_symbols(self) -> dict[str, int]:
        """Label table: qualified label -> address."""
        return dict(self.get_result().labels)

    def get_statements(self) -> list[Statement]:
        return list(self.get_result().statements)

    def get_listing(self) -> str:
        """
        Get the assembly listing as a string.

        Returns:
            Addresses, generated bytes, line numbers and statements,
            followed by the label table
        """
        result = self.get_result()

        lines = []
        lines.append("rasm16 Assembler Listing")
        lines.append("=" * 60)
        lines.append("")
        lines.append("Addr  Code                     Line  Source")
        lines.append("-" * 60)

        for statement in result.statements:
            if statement.label:
                lines.append(f"{'':31s}{statement.line:5d}  {statement.label}")
            rows = format_hex_dump(statement.code) or [""]
            source = statement.render().replace("\t", " ")
            lines.append(f"{statement.address:04X}  {rows[0]:23s}  {statement.line:5d}    {source}")
            address = statement.address
            for row in rows[1:]:
                address += 8
                lines.append(f"{address:04X}  {row}")

        lines.append("")
        lines.append("Label Table")
        lines.append("-" * 30)
        for name, address in sorted(result.labels.items()):
            lines.append(f"{name:20s} = ${address:04X}")
        return "\n".join(lines)

    def write_binary(self, filepath: str | Path) -> None:
        """Write the binary image."""
        write_binary(filepath, self.get_image())

    def write_listing(self, filepath: str | Path) -> None:
        """Write the assembly listing file."""
        Path(filepath).write_text(self.get_listing() + "\n")
        logger.info(f"Wrote listing to {filepath}")

    def write_symbols(self, filepath: str | Path) -> None:
        """
        Write the label table file.

        Format: label $ADDR (one per line)
        """
        with open(filepath, "w") as f:
            f.write("# Symbol table\n")
            f.write("# Generated by rasm16\n")
            for name, address in sorted(self.get_symbols().items()):
                f.write(f"{name} ${address:04X}\n")
        logger.info(f"Wrote symbols to {filepath}")


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(
    lines: list[str],
    name: str,
    load_offset: int = 0,
    include_reader: Optional[IncludeReader] = None,
    isa: InstructionSet = DEFAULT_ISA,
    trace: Optional[TraceHook] = None,
) -> bytes:
    """
    Assemble raw source lines into a binary image.

    Args:
        lines: Raw lines of the top-level source
        name: Source name, used for the label namespace
        load_offset: 16-bit load offset
        include_reader: Callable returning an include file's raw lines;
                        without one, any include directive is an error
        isa: Instruction set tables
        trace: Optional trace hook

    Returns:
        The binary image

    Raises:
        AssemblerError: If assembly fails
        OSError: If the include reader fails
    """
    context = AssemblyContext(
        isa=isa,
        include_reader=include_reader,
        trace=trace,
        filename=name,
    )
    return run_pipeline(lines, name, load_offset, context).image


def assemble_file(
    filepath: str | Path,
    load_offset: int = 0,
    include_paths: list[str | Path] | None = None,
) -> bytes:
    """
    Convenience function to assemble a file.

    Raises:
        AssemblerError: If assembly fails
        FileNotFoundError: If the source or an include file is missing
    """
    asm = Assembler(load_offset=load_offset, include_paths=include_paths)
    return asm.assemble_file(filepath)
