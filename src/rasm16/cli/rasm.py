"""
rasm16 - RELIC-16 Assembler Command-Line Interface
==================================================

This module implements the command-line interface for the rasm16
assembler.

Usage Examples
--------------
Basic assembly (the .rasm extension is optional):
    $ rasm16 hello
    $ rasm16 hello.rasm

With load offset and output file:
    $ rasm16 hello.rasm -o 1000 -b build/hello.r16

Generate listing and symbol files:
    $ rasm16 hello.rasm -l hello.lst -s hello.sym

With include paths:
    $ rasm16 -I ./lib hello.rasm

Verbose mode (also traces every pipeline stage):
    $ rasm16 -v hello.rasm

Defaults for the load offset, include paths and tracing can be set with
the RASM16_OFFSET, RASM16_INCLUDE_PATH and RASM16_TRACE environment
variables.
"""

from pathlib import Path
from typing import Optional
import logging

import click

from rasm16 import __version__
from rasm16.assembler import Assembler
from rasm16.cli.errors import handle_cli_exception
from rasm16.config import AssemblerConfig, parse_offset
from rasm16.trace import logging_trace_hook


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


def _parse_offset_option(ctx: click.Context, param: click.Parameter, value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return parse_offset(value)
    except ValueError:
        raise click.BadParameter(f"'{value}' is not a 16-bit hex offset")


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "source",
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--offset",
    callback=_parse_offset_option,
    metavar="HEX",
    help="Load offset in hex (default: 0000)",
)
@click.option(
    "-b", "--binary",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output image file (default: source.r16)",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file",
)
@click.option(
    "-I", "--include",
    multiple=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Add include search path (can be repeated)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output, including a trace of every assembly stage",
)
@click.version_option(version=__version__, prog_name="rasm16")
def main(
    source: Path,
    offset: Optional[int],
    binary: Optional[Path],
    listing: Optional[Path],
    symbols: Optional[Path],
    include: tuple[Path, ...],
    verbose: bool,
) -> None:
    """
    Assemble RELIC-16 source code.

    SOURCE is the assembly source file; the .rasm extension may be omitted.

    \b
    Examples:
        rasm16 hello                 # Outputs hello.r16
        rasm16 hello.rasm -o 1000    # Load at $1000
        rasm16 -I lib/ hello.rasm    # Add include path
    """
    config = AssemblerConfig.from_env()
    setup_logging(verbose or config.trace)

    try:
        input_file = config.source_path(source)
        if not input_file.is_file():
            raise FileNotFoundError(f"source file not found: {input_file}")

        load_offset = offset if offset is not None else config.load_offset
        output_file = binary if binary is not None else config.binary_path(input_file)

        asm = Assembler(
            load_offset=load_offset,
            include_paths=[*include, *config.include_paths],
            trace=logging_trace_hook() if verbose or config.trace else None,
            include_extension=config.include_extension,
        )

        if verbose:
            click.echo(f"Assembling {input_file} at ${load_offset:04X}...")

        asm.assemble_file(input_file)
        asm.write_binary(output_file)

        if listing:
            asm.write_listing(listing)
            if verbose:
                click.echo(f"Wrote listing to {listing}")

        if symbols:
            asm.write_symbols(symbols)
            if verbose:
                click.echo(f"Wrote symbols to {symbols}")

        if verbose:
            code = asm.get_code()
            click.echo(f"Assembly complete: {len(code)} bytes at ${load_offset:04X}")
            click.echo(f"Defined {len(asm.get_symbols())} labels")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


if __name__ == "__main__":
    main()
