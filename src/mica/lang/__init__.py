"""
Mica Language Front End
=======================

This package implements the Mica compiler front end: a lexer, a shared
token cursor, two-tier symbol tables, and a single-pass parser that emits
LLVM IR (via llvmlite) while it parses.

Pipeline
--------
    Source → Lexer → TokenCursor → ModuleCompiler → llvmlite ir.Module

There is no syntax tree and no separate semantic pass. The first error
aborts the compilation unit.

Usage
-----
>>> from mica.lang import compile_mi
>>> ir_text = compile_mi('''
... extern fn puts i32 with ptr s end
... fn main do
...     call puts with literal ptr "hello" end
... end
... ''', "hello")

Language Summary
----------------
- Declarations: const, extern fn, fn
- Statements: let, return, expression
- Expressions: call (functions and + - * / & |), literal, names
- Types: void ptr bool i8 i32 i64 i128 f32 f64
"""

from mica.lang.compiler import (
    CompilerOptions,
    CompilerResult,
    MicaCompiler,
    compile_file,
    compile_mi,
)
from mica.lang.codegen import ModuleCompiler, FunctionSignature, compile_tokens
from mica.lang.cursor import TokenCursor
from mica.lang.lexer import Lexer, Literal, LiteralKind, Token, TokenKind, tokenize
from mica.lang.symbols import Scope, Symbol, SymbolTable
from mica.lang.types import PRIMITIVE_TYPES, resolve_type

__all__ = [
    # Main API
    "MicaCompiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_mi",
    "compile_file",
    # Code generator
    "ModuleCompiler",
    "FunctionSignature",
    "compile_tokens",
    # Tokens
    "Lexer",
    "Literal",
    "LiteralKind",
    "Token",
    "TokenKind",
    "TokenCursor",
    "tokenize",
    # Symbols and types
    "Scope",
    "Symbol",
    "SymbolTable",
    "PRIMITIVE_TYPES",
    "resolve_type",
]
