"""
micc - Mica Compiler Command-Line Interface
===========================================

This module implements the command-line interface for the Mica compiler.
It reads a ``.mi`` source file, expands its includes, compiles it, and
writes the resulting LLVM IR.

Usage Examples
--------------
Basic compilation:
    $ micc hello.mi

With output file:
    $ micc hello.mi -o hello.ll

Show the include-expanded source:
    $ micc -E hello.mi

Full pipeline to a native binary:
    $ micc hello.mi && clang hello.ll -o hello

Verbose mode:
    $ micc -v hello.mi
"""

import logging
from pathlib import Path
from typing import Optional

import click

from mica import __version__
from mica.cli.errors import handle_cli_exception
from mica.lang.compiler import CompilerOptions, MicaCompiler
from mica.lang.lexer import Lexer
from mica.source import Source


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output LLVM IR file (default: input.ll)",
)
@click.option(
    "-E", "--preprocess-only",
    is_flag=True,
    help="Expand includes only, output to stdout",
)
@click.option(
    "--tokens",
    is_flag=True,
    help="Print the token stream and exit (for debugging)",
)
@click.option(
    "--entry-wrapper",
    is_flag=True,
    help="Also emit a void start routine that calls main",
)
@click.option(
    "--context-lines",
    type=click.IntRange(min=0),
    default=2,
    show_default=True,
    help="Source lines shown around an error",
)
@click.option(
    "--triple",
    default=None,
    help="Target triple recorded in the module",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="micc")
def main(
    input_file: Path,
    output: Optional[Path],
    preprocess_only: bool,
    tokens: bool,
    entry_wrapper: bool,
    context_lines: int,
    triple: Optional[str],
    verbose: bool,
) -> None:
    """
    Compile Mica source code to LLVM IR.

    INPUT_FILE is the Mica source file (.mi) to compile.

    \b
    Examples:
        micc hello.mi                # Outputs hello.ll
        micc hello.mi -o out.ll      # Specify output file
        micc -E hello.mi             # Expand includes only
        micc --tokens hello.mi       # Dump tokens
        micc -v hello.mi             # Verbose output
    """
    setup_logging(verbose)

    if output is None:
        output = input_file.with_suffix(".ll")

    options = CompilerOptions(
        context_lines=context_lines,
        emit_entry_wrapper=entry_wrapper,
        triple=triple,
    )

    try:
        if verbose:
            click.echo(f"Compiling {input_file}...")

        if preprocess_only or tokens:
            source = Source.from_file(input_file, options.include_extension)
            if preprocess_only:
                click.echo(source.text)
            else:
                for token in Lexer(source).tokenize():
                    click.echo(repr(token))
            return

        result = MicaCompiler(options).compile_file(input_file)
        output.write_text(result.ir, encoding="utf-8")

        if verbose:
            click.echo(f"Tokenized: {result.token_count} tokens")
            click.echo(f"Functions: {len(result.module.functions)}")
            click.echo(f"Wrote {len(result.ir)} bytes to {output}")

        click.echo(f"Compiled {input_file} -> {output}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


if __name__ == "__main__":
    main()
