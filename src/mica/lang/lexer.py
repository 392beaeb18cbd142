"""
Mica Lexer (Tokenizer)
======================

This module converts include-expanded source text into a list of located
tokens for the parser/code generator.

Token Categories
----------------
Mica has exactly three token kinds. Keywords are not a separate category:
``fn``, ``do``, ``end`` and friends are plain identifiers that the parser
compares by text.

| Kind       | Examples                          |
|------------|-----------------------------------|
| IDENTIFIER | main, fn, i32, with, end          |
| LITERAL    | "hi", 'a', 42, -7, 0xFF, 1.5, true |
| PARTICLE   | + - * / & | (any other symbol)    |

Number Formats
--------------
| Format      | Prefix | Example | Value |
|-------------|--------|---------|-------|
| Decimal     | (none) | 123     | 123   |
| Hexadecimal | 0x/0X  | 0x7F    | 127   |
| Binary      | 0b/0B  | 0b1010  | 10    |
| Float       | (none) | 2.5     | 2.5   |

A ``-`` immediately followed by a digit starts a negative number;
a ``-`` followed by anything else is the subtraction particle.

Comments
--------
- Single-line: // comment

Example Usage
-------------
>>> from mica.source import Source
>>> from mica.lang.lexer import tokenize
>>> for token in tokenize(Source.from_string('call + with literal i32 2')):
...     print(token)
Token(IDENTIFIER, 'call', 0..4)
Token(PARTICLE, '+', 5..6)
Token(IDENTIFIER, 'with', 7..11)
Token(IDENTIFIER, 'literal', 12..19)
Token(IDENTIFIER, 'i32', 20..23)
Token(LITERAL, integer 2, 24..25)
"""

import string
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional, Union

from mica.errors import TokenizationError
from mica.source import Source, Span


# =============================================================================
# Token Kinds
# =============================================================================

class TokenKind(Enum):
    """The three lexical categories of Mica."""
    IDENTIFIER = auto()
    LITERAL = auto()
    PARTICLE = auto()


class LiteralKind(Enum):
    """Variant of a literal token. Values double as user-facing names."""
    STRING = "string"
    CHAR = "char"
    INTEGER = "integer"
    FLOAT = "float"
    BOOL = "bool"


@dataclass(frozen=True)
class Literal:
    """
    A literal value as written in source.

    Attributes:
        kind: Which literal variant this is
        value: str for STRING and CHAR, int, float or bool otherwise
    """
    kind: LiteralKind
    value: Union[str, int, float, bool]

    def __str__(self) -> str:
        if self.kind == LiteralKind.STRING:
            return f"string literal {self.value!r}"
        if self.kind == LiteralKind.CHAR:
            return f"char literal {self.value!r}"
        if self.kind == LiteralKind.BOOL:
            return f"bool literal {str(self.value).lower()}"
        return f"{self.kind.value} literal {self.value}"


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    Represents a single token.

    Tokens are immutable once produced. The span is used for every
    diagnostic that mentions the token.

    Attributes:
        kind: The TokenKind classification
        value: Identifier text, Literal, or the particle character
        span: Where the token sits in the Source
    """
    kind: TokenKind
    value: Union[str, Literal]
    span: Span

    def __repr__(self) -> str:
        if self.kind == TokenKind.LITERAL:
            return f"Token({self.kind.name}, {self.value.kind.value} {self.value.value!r}, {self.span!r})"
        return f"Token({self.kind.name}, {self.value!r}, {self.span!r})"

    def is_identifier(self, *names: str) -> bool:
        """True for identifiers, optionally restricted to the given texts."""
        if self.kind != TokenKind.IDENTIFIER:
            return False
        return not names or self.value in names

    def describe(self) -> str:
        """Render the token for 'expected X found Y' messages."""
        if self.kind == TokenKind.IDENTIFIER:
            return f"'{self.value}'"
        if self.kind == TokenKind.PARTICLE:
            return f"particle '{self.value}'"
        return str(self.value)


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes Mica source code.

    Usage:
        lexer = Lexer(source)
        tokens = list(lexer.tokenize())

    Attributes:
        source: The Source being tokenized
    """

    # Characters that can start an identifier
    IDENT_START = string.ascii_letters + "_"

    # Characters that can continue an identifier
    IDENT_CHARS = string.ascii_letters + string.digits + "_"

    # Single characters emitted as particles
    PARTICLES = frozenset(string.punctuation) - {'"', "'", "_"}

    # Identifiers that are really boolean literals
    BOOL_WORDS = {"true": True, "false": False}

    # Escape sequences in strings and characters
    ESCAPE_SEQUENCES = {
        "n": "\n",      # Newline
        "r": "\r",      # Carriage return
        "t": "\t",      # Tab
        "\\": "\\",     # Backslash
        "'": "'",       # Single quote
        '"': '"',       # Double quote
        "0": "\0",      # Null
    }

    def __init__(self, source: Source):
        self.source = source
        self._text = source.text
        self._pos = 0

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the source text.

        Yields:
            Token objects in source order

        Raises:
            TokenizationError: If invalid text is encountered
        """
        while True:
            self._skip_whitespace_and_comments()
            if self._at_end():
                return
            yield self._scan_token()

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self._text)

    def _peek(self, offset: int = 0) -> str:
        """Character at current position + offset, or '' past the end."""
        pos = self._pos + offset
        if pos >= len(self._text):
            return ""
        return self._text[pos]

    def _peek_digit(self, offset: int = 0) -> bool:
        """True if the character at current position + offset is an ASCII digit."""
        char = self._peek(offset)
        return char != "" and char in string.digits

    def _advance(self) -> str:
        char = self._peek()
        self._pos += 1
        return char

    def _span_from(self, start: int) -> Span:
        return Span(self.source, start, self._pos)

    def _error(self, message: str, start: int) -> TokenizationError:
        return TokenizationError(message, span=self._span_from(start))

    # =========================================================================
    # Whitespace and Comment Handling
    # =========================================================================

    def _skip_whitespace_and_comments(self) -> None:
        while not self._at_end():
            char = self._peek()

            if char.isspace():
                self._advance()
                continue

            # Single-line comment: //
            if char == "/" and self._peek(1) == "/":
                while not self._at_end() and self._peek() != "\n":
                    self._advance()
                continue

            break

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        start = self._pos
        char = self._peek()

        if char in self.IDENT_START:
            return self._scan_identifier(start)

        if self._peek_digit() or (char == "-" and self._peek_digit(1)):
            return self._scan_number(start)

        if char == '"':
            return self._scan_string(start)

        if char == "'":
            return self._scan_char(start)

        if char in self.PARTICLES:
            self._advance()
            return Token(TokenKind.PARTICLE, char, self._span_from(start))

        self._advance()
        raise self._error(f"invalid character {char!r} (U+{ord(char):04X})", start)

    def _scan_identifier(self, start: int) -> Token:
        while self._peek() and self._peek() in self.IDENT_CHARS:
            self._advance()

        name = self._text[start:self._pos]
        span = self._span_from(start)

        if name in self.BOOL_WORDS:
            return Token(TokenKind.LITERAL, Literal(LiteralKind.BOOL, self.BOOL_WORDS[name]), span)
        return Token(TokenKind.IDENTIFIER, name, span)

    def _scan_number(self, start: int) -> Token:
        """
        Scan a numeric literal.

        Handles decimal, 0x hexadecimal, 0b binary and decimal floats,
        each optionally preceded by '-'.
        """
        negative = self._peek() == "-"
        if negative:
            self._advance()

        digits_start = self._pos
        prefix = (self._peek() + self._peek(1)).lower()

        if prefix in ("0x", "0b"):
            self._advance()
            self._advance()
            base = 16 if prefix == "0x" else 2
            valid = string.hexdigits if base == 16 else "01"
            while self._peek() and self._peek() in valid:
                self._advance()
            digits = self._text[digits_start + 2:self._pos]
            if not digits:
                raise self._error(f"missing digits after '{prefix}'", start)
            value = int(digits, base)
            kind = LiteralKind.INTEGER
        else:
            while self._peek_digit():
                self._advance()
            if self._peek() == "." and self._peek_digit(1):
                self._advance()
                while self._peek_digit():
                    self._advance()
                value = float(self._text[digits_start:self._pos])
                kind = LiteralKind.FLOAT
            else:
                value = int(self._text[digits_start:self._pos])
                kind = LiteralKind.INTEGER

        if self._peek() and self._peek() in self.IDENT_CHARS:
            while self._peek() and self._peek() in self.IDENT_CHARS:
                self._advance()
            raise self._error(f"invalid number {self._text[start:self._pos]!r}", start)

        if negative:
            value = -value
        return Token(TokenKind.LITERAL, Literal(kind, value), self._span_from(start))

    def _scan_escape(self, start: int) -> str:
        """Consume the character after a backslash and return its meaning."""
        char = self._advance()
        if char not in self.ESCAPE_SEQUENCES:
            raise self._error(f"unknown escape sequence '\\{char}'", start)
        return self.ESCAPE_SEQUENCES[char]

    def _scan_string(self, start: int) -> Token:
        self._advance()  # opening quote
        chars = []
        while True:
            char = self._peek()
            if char == "" or char == "\n":
                raise self._error("unterminated string literal", start)
            self._advance()
            if char == '"':
                break
            if char == "\\":
                chars.append(self._scan_escape(start))
            else:
                chars.append(char)

        literal = Literal(LiteralKind.STRING, "".join(chars))
        return Token(TokenKind.LITERAL, literal, self._span_from(start))

    def _scan_char(self, start: int) -> Token:
        self._advance()  # opening quote
        char = self._advance()
        if char == "" or char == "\n" or char == "'":
            raise self._error("empty or unterminated character literal", start)
        if char == "\\":
            char = self._scan_escape(start)
        if self._advance() != "'":
            raise self._error("character literal must contain exactly one character", start)

        literal = Literal(LiteralKind.CHAR, char)
        return Token(TokenKind.LITERAL, literal, self._span_from(start))


# =============================================================================
# Convenience Functions
# =============================================================================

def tokenize(source: Union[Source, str], path: Optional[str] = None) -> list[Token]:
    """
    Tokenize a Source (or raw text) into a list of tokens.

    Args:
        source: A Source, or text that is wrapped in one
        path: Provenance for raw text (ignored when a Source is given)
    """
    if isinstance(source, str):
        source = Source(source, path)
    return list(Lexer(source).tokenize())
