"""
Mica Compiler Main Module
=========================

This module provides the main compiler interface for Mica.
It orchestrates the complete compilation process:

    Source (+ #include expansion) → Lex → Parse/Generate → LLVM IR

Usage
-----
Command line:
    $ micc hello.mi -o hello.ll

Programmatic:
    >>> from mica.lang import compile_mi
    >>> ir_text = compile_mi('fn main do end', "hello")

The result is an llvmlite module (plus its textual form) ready for a
native backend such as ``llc`` or ``clang``. Running that backend is up to
the caller.

Error Handling
--------------
There is no error recovery: the first ParseError aborts the unit and is
re-raised to the caller with its context trail and source span intact.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from llvmlite import ir

from mica.errors import ParseError
from mica.lang.codegen import ModuleCompiler
from mica.lang.cursor import TokenCursor
from mica.lang.lexer import Lexer
from mica.source import DEFAULT_EXTENSION, Source

logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        context_lines: Source lines shown above and below an error's span
        emit_entry_wrapper: Add a function that calls the entry point and
                            returns void (for runtimes that want a fixed
                            start symbol distinct from the user's main)
        entry_point: Name of the user function the wrapper calls
        entry_wrapper_name: IR name of the synthesized wrapper
        include_extension: Suffix appended to #include targets
        triple: Target triple stored on the module (None = leave unset)
    """
    context_lines: int = 2
    emit_entry_wrapper: bool = False
    entry_point: str = "main"
    entry_wrapper_name: str = "_mica_start"
    include_extension: str = DEFAULT_EXTENSION
    triple: Optional[str] = None


@dataclass
class CompilerResult:
    """
    Result of a compilation.

    Attributes:
        unit_name: Name of the compilation unit (and of the IR module)
        module: The generated llvmlite module
        ir: Textual LLVM IR of the module
        source: The include-expanded Source that was compiled
        token_count: Number of tokens lexed
        success: True if compilation succeeded
    """
    unit_name: str = ""
    module: Optional[ir.Module] = None
    ir: str = ""
    source: Optional[Source] = None
    token_count: int = 0
    success: bool = False


class MicaCompiler:
    """
    Mica compiler front end.

    Example:
        compiler = MicaCompiler()
        result = compiler.compile_file("hello.mi")
        print(result.ir)

    Attributes:
        options: Compiler configuration options
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def compile_source(self, text: str, unit_name: str = "main", path: Optional[str] = None) -> CompilerResult:
        """
        Compile source text that needs no include expansion.

        Args:
            text: Mica source code
            unit_name: Name for the IR module
            path: Provenance shown in error messages (default ``<string>``)

        Raises:
            ParseError: If compilation fails
        """
        return self.compile(Source(text, path), unit_name)

    def compile_file(self, filepath: Union[str, Path]) -> CompilerResult:
        """
        Load, include-expand and compile a source file.

        The unit name is the file name without its extension.

        Raises:
            SourceIOError: If the file or one of its includes cannot be read
            ParseError: If compilation fails
        """
        path = Path(filepath)
        try:
            source = Source.from_file(path, self.options.include_extension)
        except ParseError as err:
            err.context_lines = self.options.context_lines
            raise
        return self.compile(source, path.stem)

    def compile(self, source: Source, unit_name: str) -> CompilerResult:
        """Compile an already-loaded Source."""
        result = CompilerResult(unit_name=unit_name, source=source)

        try:
            tokens = list(Lexer(source).tokenize())
            result.token_count = len(tokens)

            compiler = ModuleCompiler(TokenCursor(tokens), unit_name, triple=self.options.triple)
            module = compiler.compile()
            if self.options.emit_entry_wrapper:
                compiler.emit_entry_wrapper(
                    self.options.entry_wrapper_name, self.options.entry_point
                )
        except ParseError as err:
            err.context_lines = self.options.context_lines
            logger.debug(f"Compilation of '{unit_name}' failed: {err.message}")
            raise

        result.module = module
        result.ir = str(module)
        result.success = True
        logger.debug(
            f"Compiled '{unit_name}': {result.token_count} tokens, "
            f"{len(module.functions)} functions"
        )
        return result


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_mi(
    text: str,
    unit_name: str = "main",
    options: Optional[CompilerOptions] = None,
) -> str:
    """
    Compile Mica source text to textual LLVM IR.

    Raises:
        ParseError: If compilation fails

    Example:
        >>> ir_text = compile_mi('''
        ... extern fn puts i32 with ptr s end
        ... fn main do
        ...     call puts with literal ptr "hi" end
        ... end
        ... ''', "hello")
    """
    return MicaCompiler(options).compile_source(text, unit_name).ir


def compile_file(
    filepath: Union[str, Path],
    output_path: Optional[Union[str, Path]] = None,
    options: Optional[CompilerOptions] = None,
) -> str:
    """
    Compile a Mica source file to textual LLVM IR.

    Args:
        filepath: Path to the .mi source file
        output_path: Optional path to write the IR to

    Returns:
        The textual LLVM IR

    Example:
        >>> ir_text = compile_file("hello.mi", "hello.ll")
    """
    result = MicaCompiler(options).compile_file(filepath)

    if output_path:
        Path(output_path).write_text(result.ir, encoding="utf-8")

    return result.ir
