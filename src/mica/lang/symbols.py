"""
Symbol Tables
=============

Two-tier name resolution for the code generator.

- The **global** table lives for a whole compilation unit and holds
  constants, external declarations and functions.
- The **local** table exists only while one function body is being
  compiled and holds its parameters and ``let`` bindings.

Lookups check the local table first, so a local binding completely hides a
global one of the same name until the function ends. There is no block
scoping beyond these two tiers.

Example:
    scope = Scope()
    scope.define_global("greeting", PTR, greeting_ptr)
    with scope.local_scope():
        scope.define_local("greeting", I32, forty_two)
        scope.resolve("greeting").value     # forty_two
    scope.resolve("greeting").value         # greeting_ptr
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from llvmlite import ir

from mica.errors import UnresolvedVariableError
from mica.source import Span


@dataclass(frozen=True)
class Symbol:
    """
    A resolved name.

    Attributes:
        name: The bound name
        type: Recorded IR type (a FunctionType for callables)
        value: The IR value the name stands for
    """
    name: str
    type: ir.Type
    value: ir.Value

    @property
    def is_function(self) -> bool:
        return isinstance(self.type, ir.FunctionType)


class SymbolTable:
    """Flat name -> Symbol mapping. Defining an existing name overwrites it."""

    def __init__(self) -> None:
        self._symbols: dict[str, Symbol] = {}

    def define(self, name: str, type: ir.Type, value: ir.Value) -> Symbol:
        symbol = Symbol(name, type, value)
        self._symbols[name] = symbol
        return symbol

    def lookup(self, name: str) -> Optional[Symbol]:
        return self._symbols.get(name)

    def names(self) -> list[str]:
        return list(self._symbols)

    def __contains__(self, name: str) -> bool:
        return name in self._symbols

    def __len__(self) -> int:
        return len(self._symbols)


class Scope:
    """
    Resolver over the global table and at most one local table.

    The global table is owned by the compilation unit. A local table is
    pushed at function entry and popped at function exit; it never outlives
    the function it was created for.
    """

    def __init__(self, globals: Optional[SymbolTable] = None):
        self.globals = globals if globals is not None else SymbolTable()
        self.locals: Optional[SymbolTable] = None

    @property
    def in_function(self) -> bool:
        return self.locals is not None

    def push_local(self) -> SymbolTable:
        if self.locals is not None:
            raise RuntimeError("a local scope is already active")
        self.locals = SymbolTable()
        return self.locals

    def pop_local(self) -> SymbolTable:
        if self.locals is None:
            raise RuntimeError("no local scope to pop")
        table, self.locals = self.locals, None
        return table

    @contextmanager
    def local_scope(self) -> Iterator[SymbolTable]:
        """Open a local table for the duration of a function body."""
        table = self.push_local()
        try:
            yield table
        finally:
            self.pop_local()

    def define_global(self, name: str, type: ir.Type, value: ir.Value) -> Symbol:
        return self.globals.define(name, type, value)

    def define_local(self, name: str, type: ir.Type, value: ir.Value) -> Symbol:
        if self.locals is None:
            raise RuntimeError(f"cannot bind local '{name}' outside a function")
        return self.locals.define(name, type, value)

    def lookup(self, name: str) -> Optional[Symbol]:
        if self.locals is not None:
            symbol = self.locals.lookup(name)
            if symbol is not None:
                return symbol
        return self.globals.lookup(name)

    def resolve(self, name: str, span: Optional[Span] = None) -> Symbol:
        """
        Find ``name``, locals first.

        Raises:
            UnresolvedVariableError: If neither tier binds the name
        """
        symbol = self.lookup(name)
        if symbol is None:
            raise UnresolvedVariableError(name, span)
        return symbol
