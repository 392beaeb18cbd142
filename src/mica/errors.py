"""
Mica Error Hierarchy
====================

This module defines the exception hierarchy for the Mica compiler.
All exceptions inherit from MicaError, allowing callers to catch all
compiler-related errors with a single except clause if desired.

Exception Hierarchy
-------------------
MicaError (base)
└── ParseError (base for every compilation failure)
    ├── EndOfInputError - ran past the last token or character
    ├── EmptyInputError - token stream was empty
    ├── SourceIOError - reading a source file failed
    │   └── IncludeError - missing or circular #include
    ├── TokenizationError - raw text could not be tokenized
    ├── UnexpectedTokenError - "expected X found Y"
    ├── LiteralParseError - literal does not fit its declared type
    ├── UnresolvedVariableError - name not found in any scope
    ├── UnsupportedOperatorError - unknown particle after 'call'
    ├── TypeMismatchError - operand or argument types disagree
    └── DuplicateDefinitionError - function defined twice

Error Propagation
-----------------
There is no error recovery: the first ParseError aborts the whole unit.
As an error unwinds it is annotated in two ways:

- ``at(span)`` attaches the source span once, at the innermost point
  that knows one. Outer calls never overwrite it.
- ``when(reason)`` appends a context phrase. Phrases are printed in the
  order they were pushed, innermost first.

Error Message Format
--------------------
    Parsing error:
        expected [const|extern|fn] found 'fnn'
        while compiling module 'hello'

    at: hello.mi:3:1..3:4
      1 | extern fn puts i32 with ptr s end
      2 |
      3 | fnn main do
        | ^^^
"""

from contextlib import contextmanager
from enum import Enum, auto
from typing import TYPE_CHECKING, Iterator, Optional

if TYPE_CHECKING:
    from mica.source import Span


# =============================================================================
# Base Exception Class
# =============================================================================

class MicaError(Exception):
    """
    Base exception for all Mica errors.

    All exceptions in the package inherit from this class, allowing callers
    to catch all compiler errors with a single except clause:

        try:
            compiler.compile_file("hello.mi")
        except MicaError as e:
            print(f"Error: {e}")
    """
    pass


class ErrorKind(Enum):
    """Classification of a ParseError, independent of its Python class."""
    END_OF_INPUT = auto()
    EMPTY_INPUT = auto()
    IO = auto()
    TOKENIZATION = auto()
    SYNTAX = auto()
    LITERAL = auto()
    UNRESOLVED = auto()
    TYPE = auto()
    DUPLICATE = auto()


# =============================================================================
# Parse Error Base
# =============================================================================

class ParseError(MicaError):
    """
    Base exception for all compilation failures.

    Attributes:
        message: One-line description of what went wrong
        span: Where in the source the error occurred (optional)
        context: Human-readable phrases describing what was being compiled
        context_lines: Source lines shown above and below the span
    """

    kind = ErrorKind.SYNTAX
    heading = "Parsing error"

    def __init__(
        self,
        message: str,
        span: Optional["Span"] = None,
        context: Optional[list[str]] = None,
    ):
        self.message = message
        self.span = span
        self.context = list(context or [])
        self.context_lines = 2
        super().__init__(message)

    def at(self, span: Optional["Span"]) -> "ParseError":
        """Attach a source span unless a more precise one is already set."""
        if self.span is None and span is not None:
            self.span = span
        return self

    def when(self, reason: str) -> "ParseError":
        """Record what the compiler was doing when the error unwound past it."""
        self.context.append(reason)
        return self

    def __str__(self) -> str:
        return self.render()

    def render(self, context_lines: Optional[int] = None) -> str:
        """
        Format the error with its context trail and source excerpt.

        Args:
            context_lines: Lines of source shown around the span. Defaults
                to the value stored on the error (set by the compiler from
                its options).
        """
        if context_lines is None:
            context_lines = self.context_lines

        parts = [f"{self.heading}:", f"    {self.message}"]
        for reason in self.context:
            parts.append(f"    while {reason}")

        if self.span is not None:
            parts.append("")
            parts.append(f"at: {self.span.location()}")
            parts.append(self.span.render(context_lines))

        return "\n".join(parts)


# =============================================================================
# Input Errors
# =============================================================================

class EndOfInputError(ParseError):
    """
    Ran past the end of the input.

    Raised by the token cursor when a production needs another token, and
    by position lookups for offsets beyond the end of the text. A missing
    ``end`` keyword always surfaces as this error.
    """

    kind = ErrorKind.END_OF_INPUT
    heading = "Input error"

    def __init__(self, span: Optional["Span"] = None):
        super().__init__("reached end of file", span=span)


class EmptyInputError(ParseError):
    """The token stream contained no tokens at all."""

    kind = ErrorKind.EMPTY_INPUT
    heading = "Input error"

    def __init__(self, span: Optional["Span"] = None):
        super().__init__("input was empty", span=span)


class SourceIOError(ParseError):
    """
    Reading a source file failed.

    Wraps the underlying OSError message; the original exception is kept
    as ``__cause__`` by the code raising it.
    """

    kind = ErrorKind.IO
    heading = "IO error"


class IncludeError(SourceIOError):
    """
    Error including a file.

    Raised when:
        - Include file not found
        - Circular include detected
    """

    def __init__(self, filename: str, reason: str, span: Optional["Span"] = None):
        self.included_filename = filename
        self.reason = reason
        super().__init__(f"cannot include '{filename}': {reason}", span=span)


class TokenizationError(ParseError):
    """Raw text could not be split into tokens (bad escape, unterminated string)."""

    kind = ErrorKind.TOKENIZATION
    heading = "Tokenization error"


# =============================================================================
# Syntax Errors
# =============================================================================

class UnexpectedTokenError(ParseError):
    """
    The parser found something other than what the grammar requires.

    Both sides are kept as text so the message reads
    ``expected <expected> found <found>``.
    """

    def __init__(self, expected: str, found: str, span: Optional["Span"] = None):
        self.expected = expected
        self.found = found
        super().__init__(f"expected {expected} found {found}", span=span)


class UnsupportedOperatorError(ParseError):
    """A particle after ``call`` does not name a builtin operator."""

    def __init__(self, symbol: str, span: Optional["Span"] = None):
        self.symbol = symbol
        super().__init__(f"unsupported operator '{symbol}'", span=span)


class LiteralParseError(ParseError):
    """
    A literal cannot be represented as the type it was declared with.

    Examples:
        literal i8 300      // does not fit in 8 bits
        literal i32 1.5     // float literal for an integer type
    """

    kind = ErrorKind.LITERAL

    def __init__(self, literal_kind, message: str, span: Optional["Span"] = None):
        self.literal_kind = literal_kind
        self.heading = f"{literal_kind.value.capitalize()} literal parsing error"
        super().__init__(message, span=span)


# =============================================================================
# Semantic Errors
# =============================================================================

class UnresolvedVariableError(ParseError):
    """A name is bound in neither the local nor the global table."""

    kind = ErrorKind.UNRESOLVED
    heading = "Unresolved variable"

    def __init__(self, name: str, span: Optional["Span"] = None):
        self.name = name
        super().__init__(f"cannot find '{name}'", span=span)


class TypeMismatchError(ParseError):
    """Operand or argument types disagree with what an instruction accepts."""

    kind = ErrorKind.TYPE
    heading = "Type error"


class DuplicateDefinitionError(ParseError):
    """A function body or an incompatible declaration was given twice."""

    kind = ErrorKind.DUPLICATE
    heading = "Definition error"

    def __init__(self, name: str, span: Optional["Span"] = None):
        self.name = name
        super().__init__(f"'{name}' is already defined", span=span)


# =============================================================================
# Context Helpers
# =============================================================================

@contextmanager
def error_context(reason: str) -> Iterator[None]:
    """
    Push ``reason`` onto any ParseError escaping the block.

    Example:
        with error_context("compiling function body"):
            self._compile_statement()
    """
    try:
        yield
    except ParseError as err:
        err.when(reason)
        raise
