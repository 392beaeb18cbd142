"""
Mica Parser / Code Generator
============================

This module implements a single-pass recursive descent compiler. It
consumes tokens from a TokenCursor and emits LLVM IR through llvmlite as
a side effect of recognising each production; no syntax tree is built.

Grammar
-------
Keywords are ordinary identifiers compared by text.

unit        ::= declaration*
declaration ::= const_decl | extern_decl | fn_decl
const_decl  ::= 'const' type NAME 'is' STRING
extern_decl ::= 'extern' fn_sig ('end' if the signature ended with 'do')
fn_sig      ::= 'fn' NAME type? ('with' 'vararg'? (type NAME)*)? ('do' | 'end')
fn_decl     ::= fn_sig statement* 'end'      (signature ended with 'do')
              | fn_sig                       (signature ended with 'end')

statement   ::= 'let' type NAME 'be' expression
              | 'return' ('end' | expression)
              | expression

expression  ::= 'call' (NAME | PARTICLE) ('with' expression* 'end')?
              | 'literal' type LITERAL
              | NAME

Optional parts are decided by looking at the next token without consuming
it: after ``fn <name>`` anything other than ``with``/``do``/``end`` is a
return type, and a parameter list stops where a type is expected but
``do``/``end`` is found.

Code Generation
---------------
- Every function gets a single ``entry`` block; there is no control flow.
- A function is bound in the global table before its body is compiled,
  so it can call itself.
- Parameters and ``let`` bindings live in a local table that is dropped
  when the function's ``end`` is reached.
- Names are bound to values directly. There are no stack slots and no
  loads: ``let`` just gives a value a name.
- ``call +`` (and ``- * / & |``) compiles exactly two operands, first
  parsed on the left.

Example
-------
>>> from mica.lang.lexer import tokenize
>>> from mica.lang.cursor import TokenCursor
>>> tokens = tokenize('fn add i32 with i32 a i32 b do return call + with a b end end')
>>> module = ModuleCompiler(TokenCursor(tokens), "demo").compile()
>>> print(module.get_global("add").blocks[0].instructions[0].opname)
add
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from llvmlite import ir

from mica.errors import (
    DuplicateDefinitionError,
    LiteralParseError,
    TypeMismatchError,
    UnexpectedTokenError,
    UnsupportedOperatorError,
    error_context,
)
from mica.lang.cursor import TokenCursor
from mica.lang.lexer import Literal, LiteralKind, Token, TokenKind
from mica.lang.symbols import Scope
from mica.lang.types import (
    I1,
    I32,
    I8,
    PTR,
    VOID,
    is_float,
    is_integer,
    resolve_type,
    type_name,
)
from mica.source import Span

logger = logging.getLogger(__name__)

# Identifiers that end the optional parts of a function signature
SIGNATURE_MARKERS = ("with", "do", "end")

# Builtin operators: particle -> (integer instruction, float instruction)
OPERATORS: dict[str, tuple[str, Optional[str]]] = {
    "+": ("add", "fadd"),
    "-": ("sub", "fsub"),
    "*": ("mul", "fmul"),
    "/": ("sdiv", "fdiv"),
    "&": ("and_", None),
    "|": ("or_", None),
}

ZERO = ir.Constant(I32, 0)


# =============================================================================
# Signature Data
# =============================================================================

@dataclass
class Parameter:
    """One typed parameter of a function signature."""
    name: str
    type: ir.Type
    span: Span


@dataclass
class FunctionSignature:
    """
    Everything parsed from ``fn <name> [type] [with ...] (do|end)``.

    Attributes:
        name: Function name
        name_span: Location of the name token
        return_type: Declared return type, or None when omitted
        params: Parameters in declaration order
        var_arg: True when the parameter list started with 'vararg'
        has_body: True when terminated by 'do' (a body follows)
    """
    name: str
    name_span: Span
    return_type: Optional[ir.Type] = None
    params: list[Parameter] = field(default_factory=list)
    var_arg: bool = False
    has_body: bool = False

    @property
    def returns_void(self) -> bool:
        return self.return_type is None or isinstance(self.return_type, ir.VoidType)

    @property
    def function_type(self) -> ir.FunctionType:
        return ir.FunctionType(
            self.return_type or VOID,
            [param.type for param in self.params],
            var_arg=self.var_arg,
        )


@dataclass
class _FunctionState:
    """The function whose body is being compiled and its positioned builder."""
    signature: FunctionSignature
    function: ir.Function
    builder: ir.IRBuilder


# =============================================================================
# Module Compiler
# =============================================================================

class ModuleCompiler:
    """
    Compiles one unit of tokens into one llvmlite module.

    Usage:
        compiler = ModuleCompiler(TokenCursor(tokens), "hello")
        module = compiler.compile()

    Attributes:
        cursor: Shared token cursor; consumption is visible to the caller
        unit_name: Name of the compilation unit (and of the module)
        module: The IR module being filled
        scope: Global table plus the current function's local table
    """

    def __init__(
        self,
        cursor: TokenCursor,
        unit_name: str,
        scope: Optional[Scope] = None,
        triple: Optional[str] = None,
    ):
        self.cursor = cursor
        self.unit_name = unit_name
        self.module = ir.Module(name=unit_name)
        if triple:
            self.module.triple = triple
        self.scope = scope if scope is not None else Scope()

        # Names of functions that already have a body
        self._defined: set[str] = set()

        # Set only while a function body is being compiled
        self._current: Optional[_FunctionState] = None

    def compile(self) -> ir.Module:
        """
        Compile declarations until the tokens run out.

        Returns:
            The filled IR module

        Raises:
            ParseError: On the first error; nothing is recovered
        """
        with error_context(f"compiling module '{self.unit_name}'"):
            while not self.cursor.at_end():
                self._compile_declaration()

        logger.debug(
            f"Compiled module '{self.unit_name}': "
            f"{len(self.scope.globals)} global bindings"
        )
        return self.module

    def emit_entry_wrapper(self, name: str, entry: str = "main") -> ir.Function:
        """
        Add a ``void()`` function that calls ``entry`` and returns.

        Raises:
            UnresolvedVariableError: If ``entry`` was never declared
            TypeMismatchError: If ``entry`` is not a parameterless function
            DuplicateDefinitionError: If ``name`` is already taken
        """
        with error_context("synthesizing entry point"):
            target = self.scope.resolve(entry)
            if not target.is_function or target.type.args:
                raise TypeMismatchError(f"'{entry}' must be a function without parameters")
            if name in self.module.globals:
                raise DuplicateDefinitionError(name)

            wrapper = ir.Function(self.module, ir.FunctionType(VOID, []), name=name)
            builder = ir.IRBuilder(wrapper.append_basic_block("entry"))
            builder.call(target.value, [])
            builder.ret_void()

        logger.debug(f"Synthesized entry wrapper '{name}' calling '{entry}'")
        return wrapper

    # =========================================================================
    # Declarations
    # =========================================================================

    def _compile_declaration(self) -> None:
        token = self.cursor.peek()
        if token.is_identifier("const"):
            self._compile_const()
        elif token.is_identifier("extern"):
            self._compile_extern()
        elif token.is_identifier("fn"):
            self._compile_function()
        else:
            raise UnexpectedTokenError("[const|extern|fn]", token.describe(), token.span)

    def _compile_const(self) -> None:
        """const <type> <name> is "<text>" -- the declared type is not checked."""
        self.cursor.expect("const")
        with error_context("compiling global constant"):
            self.cursor.next_identifier("<type>")
            name = self.cursor.next_identifier("<name>").value
            self.cursor.expect("is")

            token = self.cursor.peek()
            if token.kind != TokenKind.LITERAL or token.value.kind != LiteralKind.STRING:
                raise UnexpectedTokenError(
                    "string literal [only literal type supported]",
                    token.describe(),
                    token.span,
                )
            self.cursor.advance()

        pointer = self._global_string(token.value.value, name)
        self.scope.define_global(name, PTR, pointer)
        logger.debug(f"Compiled constant '{name}'")

    def _compile_extern(self) -> None:
        self.cursor.expect("extern")
        with error_context("compiling external declaration"):
            signature = self._parse_signature()
            if signature.has_body:
                # 'do end': an extern may only have an empty body
                self.cursor.expect("end")
            function = self._declare_function(signature)

        self.scope.define_global(signature.name, function.function_type, function)
        logger.debug(f"Declared external function '{signature.name}'")

    def _compile_function(self) -> None:
        with error_context("compiling function signature"):
            signature = self._parse_signature()

        name = signature.name
        with error_context(f"compiling function '{name}'"):
            if name in self._defined:
                raise DuplicateDefinitionError(name, signature.name_span)
            function = self._declare_function(signature)
            self._defined.add(name)

            # Bound before the body so the function can call itself
            self.scope.define_global(name, function.function_type, function)

            # A reused extern declaration may have named its parameters differently
            for arg, param in zip(function.args, signature.params):
                if arg.name != param.name:
                    arg.name = param.name

            builder = ir.IRBuilder(function.append_basic_block("entry"))
            self._current = _FunctionState(signature, function, builder)
            try:
                with self.scope.local_scope():
                    for arg, param in zip(function.args, signature.params):
                        self.scope.define_local(param.name, param.type, arg)

                    if signature.has_body:
                        with error_context("compiling function body"):
                            end = self._compile_body()
                    else:
                        end = signature.name_span
                    self._finish_function(end)
            finally:
                self._current = None

        logger.debug(f"Compiled function '{name}' ({len(signature.params)} parameters)")

    def _parse_signature(self) -> FunctionSignature:
        """Parse ``fn <name> [type] [with [vararg] {type name}] (do|end)``."""
        self.cursor.expect("fn")
        name_token = self.cursor.next_identifier("<name>")
        signature = FunctionSignature(name_token.value, name_token.span)

        if not self.cursor.check(*SIGNATURE_MARKERS):
            type_token = self.cursor.next_identifier("[with|do|end|<type>]")
            signature.return_type = resolve_type(type_token.value, type_token.span)

        if self.cursor.accept("with"):
            signature.var_arg = self.cursor.accept("vararg") is not None
            while not self.cursor.check("do", "end"):
                type_token = self.cursor.next_identifier("[do|end|<type>]")
                param_type = resolve_type(type_token.value, type_token.span)
                if isinstance(param_type, ir.VoidType):
                    raise UnexpectedTokenError("parameter type", "'void'", type_token.span)
                param_token = self.cursor.next_identifier("<name>")
                signature.params.append(Parameter(param_token.value, param_type, param_token.span))

        terminator = self.cursor.peek()
        if not terminator.is_identifier("do", "end"):
            raise UnexpectedTokenError("[with|do|end]", terminator.describe(), terminator.span)
        self.cursor.advance()

        signature.has_body = terminator.value == "do"
        return signature

    def _declare_function(self, signature: FunctionSignature) -> ir.Function:
        """
        Create the IR function for a signature, or reuse a matching declaration.

        Raises:
            DuplicateDefinitionError: If the name is taken by something else
        """
        existing = self.module.globals.get(signature.name)
        if existing is None:
            function = ir.Function(self.module, signature.function_type, name=signature.name)
            for arg, param in zip(function.args, signature.params):
                arg.name = param.name
            return function

        if isinstance(existing, ir.Function) and existing.function_type == signature.function_type:
            return existing
        raise DuplicateDefinitionError(signature.name, signature.name_span)

    def _compile_body(self) -> Span:
        """
        Compile statements up to the function's ``end``.

        Returns:
            Span of the closing ``end``
        """
        builder = self._current.builder
        while not self.cursor.check("end"):
            if builder.block.is_terminated:
                token = self.cursor.peek()
                raise UnexpectedTokenError(
                    "'end' [function already returned]", token.describe(), token.span
                )
            with error_context("compiling statement"):
                self._compile_statement()
        return self.cursor.expect("end").span

    def _finish_function(self, end: Span) -> None:
        """Add the implicit ``ret void`` or complain about a missing return."""
        state = self._current
        if state.builder.block.is_terminated:
            return
        if state.signature.returns_void:
            state.builder.ret_void()
            return
        raise UnexpectedTokenError("return", "'end'", end)

    # =========================================================================
    # Statements
    # =========================================================================

    def _compile_statement(self) -> None:
        token = self.cursor.peek()
        if token.is_identifier("let"):
            self._compile_let()
        elif token.is_identifier("return"):
            self._compile_return()
        else:
            # Expression evaluated for its side effect
            self._compile_expression()

    def _compile_let(self) -> None:
        """let <type> <name> be <expression>"""
        self.cursor.expect("let")
        type_token = self.cursor.next_identifier("<type>")
        declared = resolve_type(type_token.value, type_token.span)
        name = self.cursor.next_identifier("<name>").value

        with error_context(f"compiling let binding '{name}'"):
            self.cursor.expect("be")
            value = self._compile_expression(label=name)

        # The declared type is recorded as-is, not checked against the value
        self.scope.define_local(name, declared, value)

    def _compile_return(self) -> None:
        """return end | return <expression>"""
        state = self._current
        return_token = self.cursor.expect("return")
        expected = state.signature.return_type or VOID

        if self.cursor.accept("end"):
            if not state.signature.returns_void:
                raise TypeMismatchError(
                    f"function '{state.signature.name}' must return {type_name(expected)}",
                    return_token.span,
                )
            state.builder.ret_void()
            return

        with error_context("compiling return value"):
            value = self._compile_expression()
        if value.type != expected:
            raise TypeMismatchError(
                f"function '{state.signature.name}' returns {type_name(expected)}, "
                f"not {type_name(value.type)}",
                return_token.span,
            )
        state.builder.ret(value)

    # =========================================================================
    # Expressions
    # =========================================================================

    def _compile_expression(self, label: str = "") -> ir.Value:
        """
        Compile one expression and return its value.

        Args:
            label: IR name given to a newly emitted instruction (from ``let``)
        """
        token = self.cursor.peek()
        if token.kind != TokenKind.IDENTIFIER:
            raise UnexpectedTokenError(
                "expression [call|literal|<name>]", token.describe(), token.span
            )

        if token.value == "call":
            return self._compile_call(label)
        if token.value == "literal":
            return self._compile_literal()

        self.cursor.advance()
        return self.scope.resolve(token.value, token.span).value

    def _compile_arguments(self) -> list[ir.Value]:
        """Parse ``[with {expression} end]``; no clause means no arguments."""
        if not self.cursor.accept("with"):
            return []
        values = []
        while not self.cursor.accept("end"):
            values.append(self._compile_expression())
        return values

    def _compile_call(self, label: str) -> ir.Value:
        self.cursor.expect("call")
        target = self.cursor.peek()

        if target.kind == TokenKind.PARTICLE:
            self.cursor.advance()
            if target.value not in OPERATORS:
                raise UnsupportedOperatorError(target.value, target.span)
            with error_context(f"compiling operator '{target.value}'"):
                operands = self._compile_arguments()
                return self._emit_operator(target, operands, label)

        if target.kind != TokenKind.IDENTIFIER:
            raise UnexpectedTokenError("[<name>|<particle>]", target.describe(), target.span)
        self.cursor.advance()

        with error_context(f"compiling call to '{target.value}'"):
            symbol = self.scope.resolve(target.value, target.span)
            if not symbol.is_function:
                raise TypeMismatchError(f"'{target.value}' is not a function", target.span)
            args = self._compile_arguments()
            return self._emit_call(symbol.value, symbol.type, args, target.span, label)

    def _emit_call(
        self,
        function: ir.Value,
        function_type: ir.FunctionType,
        args: list[ir.Value],
        span: Span,
        label: str,
    ) -> ir.Value:
        fixed = len(function_type.args)
        if len(args) < fixed or (len(args) > fixed and not function_type.var_arg):
            raise UnexpectedTokenError(f"{fixed} arguments", f"{len(args)} arguments", span)

        # Void results cannot carry a name in LLVM IR
        name = "" if isinstance(function_type.return_type, ir.VoidType) else label
        try:
            return self._current.builder.call(function, args, name=name)
        except TypeError as exc:
            raise TypeMismatchError(str(exc), span) from exc

    def _emit_operator(self, particle: Token, operands: list[ir.Value], label: str) -> ir.Value:
        symbol = particle.value
        if len(operands) != 2:
            raise UnexpectedTokenError("2 operands", f"{len(operands)} operands", particle.span)

        lhs, rhs = operands
        if lhs.type != rhs.type:
            raise TypeMismatchError(
                f"operands of '{symbol}' differ: "
                f"{type_name(lhs.type)} and {type_name(rhs.type)}",
                particle.span,
            )

        integer_op, float_op = OPERATORS[symbol]
        if is_integer(lhs.type):
            method = integer_op
        elif is_float(lhs.type) and float_op is not None:
            method = float_op
        else:
            raise TypeMismatchError(
                f"operator '{symbol}' cannot be applied to {type_name(lhs.type)}",
                particle.span,
            )
        return getattr(self._current.builder, method)(lhs, rhs, name=label)

    def _compile_literal(self) -> ir.Value:
        """literal <type> <literal-token>"""
        self.cursor.expect("literal")
        type_token = self.cursor.next_identifier("<type>")
        declared = resolve_type(type_token.value, type_token.span)

        token = self.cursor.peek()
        if token.kind != TokenKind.LITERAL:
            raise UnexpectedTokenError("literal value", token.describe(), token.span)
        self.cursor.advance()

        with error_context(f"compiling {token.value.kind.value} literal"):
            return self._literal_constant(token.value, declared, token.span)

    def _literal_constant(self, literal: Literal, declared: ir.Type, span: Span) -> ir.Value:
        kind = literal.kind

        if kind == LiteralKind.STRING:
            if declared != PTR:
                raise LiteralParseError(kind, f"string literal needs type ptr, not {type_name(declared)}", span)
            return self._global_string(literal.value, ".str")

        if kind == LiteralKind.BOOL:
            if not is_integer(declared):
                raise LiteralParseError(kind, f"bool literal needs an integer type, not {type_name(declared)}", span)
            return ir.Constant(I1, int(literal.value))

        if kind == LiteralKind.FLOAT:
            if not is_float(declared):
                raise LiteralParseError(kind, f"float literal needs type f32 or f64, not {type_name(declared)}", span)
            return ir.Constant(declared, literal.value)

        if not is_integer(declared):
            raise LiteralParseError(kind, f"{kind.value} literal needs an integer type, not {type_name(declared)}", span)

        value = ord(literal.value) if kind == LiteralKind.CHAR else literal.value
        width = declared.width
        # Accept both the signed and the unsigned range of the width
        if not -(1 << (width - 1)) <= value < (1 << width):
            raise LiteralParseError(kind, f"{literal.value!r} does not fit in {type_name(declared)}", span)
        return ir.Constant(declared, value)

    # =========================================================================
    # Globals
    # =========================================================================

    def _global_string(self, text: str, name: str) -> ir.Value:
        """
        Emit a private NUL-terminated byte array and return an ``i8*`` to it.

        The global's IR name is de-duplicated so redefining a constant never
        clashes with the earlier one.
        """
        data = bytearray(text.encode("utf-8") + b"\0")
        array_type = ir.ArrayType(I8, len(data))

        variable = ir.GlobalVariable(self.module, array_type, name=self.module.get_unique_name(name))
        variable.linkage = "private"
        variable.global_constant = True
        variable.unnamed_addr = True
        variable.initializer = ir.Constant(array_type, data)
        return variable.gep([ZERO, ZERO])


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_tokens(
    tokens: list[Token],
    unit_name: str,
    scope: Optional[Scope] = None,
) -> ir.Module:
    """
    Compile a token list into an IR module.

    Example:
        >>> from mica.lang.lexer import tokenize
        >>> module = compile_tokens(tokenize('fn main do end'), "demo")
        >>> [f.name for f in module.functions]
        ['main']
    """
    return ModuleCompiler(TokenCursor(tokens), unit_name, scope).compile()
