"""
Mica - A Toy Ahead-of-Time Compiler Front End
=============================================

This package compiles Mica, a minimal keyword-driven imperative language,
into LLVM IR using llvmlite. The IR can then be handed to any LLVM backend
(``llc``, ``clang``) to produce native code.

Main Components
---------------
- **source**: source text ownership, ``#include`` expansion, positions,
  spans and annotated excerpts
- **errors**: the error hierarchy and context chaining
- **lang**: lexer, token cursor, symbol tables, and the single-pass
  parser/code generator
- **cli**: the ``micc`` command-line compiler

Quick Start
-----------
Compile a string:
    >>> from mica import compile_mi
    >>> print(compile_mi('fn main do end', "hello"))

Compile a file:
    >>> from mica import MicaCompiler
    >>> result = MicaCompiler().compile_file("hello.mi")
    >>> result.module.name
    'hello'

Or use the command-line tool:
    $ micc hello.mi -o hello.ll
"""

__version__ = "0.1.0"

# =============================================================================
# Public API Exports
# =============================================================================

from mica.errors import (
    MicaError,
    ErrorKind,
    ParseError,
    EndOfInputError,
    EmptyInputError,
    SourceIOError,
    IncludeError,
    TokenizationError,
    UnexpectedTokenError,
    LiteralParseError,
    UnresolvedVariableError,
    UnsupportedOperatorError,
    TypeMismatchError,
    DuplicateDefinitionError,
)
from mica.source import Source, CodePoint, Span
from mica.lang import (
    MicaCompiler,
    CompilerOptions,
    CompilerResult,
    compile_mi,
    compile_file,
)

__all__ = [
    "__version__",
    # Compiler
    "MicaCompiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_mi",
    "compile_file",
    # Source tracking
    "Source",
    "CodePoint",
    "Span",
    # Errors
    "MicaError",
    "ErrorKind",
    "ParseError",
    "EndOfInputError",
    "EmptyInputError",
    "SourceIOError",
    "IncludeError",
    "TokenizationError",
    "UnexpectedTokenError",
    "LiteralParseError",
    "UnresolvedVariableError",
    "UnsupportedOperatorError",
    "TypeMismatchError",
    "DuplicateDefinitionError",
]
