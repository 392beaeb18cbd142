"""
Token Cursor
============

A position-addressable view over a shared token list.

The cursor is passed by reference to every sub-parser, so consumption in a
callee is visible to its caller. Lookahead is done with ``check``/``accept``,
which inspect the current token and only advance on a match; productions
never need to consume a token and then rewind.

Running past the last token raises EndOfInputError located at the last
token, which is how an unterminated construct (a missing ``end``) is
reported.
"""

from typing import Optional

from mica.errors import EmptyInputError, EndOfInputError, UnexpectedTokenError
from mica.lang.lexer import Token, TokenKind
from mica.source import Span


class TokenCursor:
    """
    Shared, mutable token sequence plus a current index.

    Attributes:
        tokens: The token list (shared with any forked cursor)
        index: Position of the current token; writable for backtracking
    """

    def __init__(self, tokens: list[Token], index: int = 0):
        self.tokens = tokens
        self.index = index

    def fork(self) -> "TokenCursor":
        """Second cursor over the same token list, starting at the same index."""
        return TokenCursor(self.tokens, self.index)

    def __len__(self) -> int:
        return len(self.tokens)

    def remaining(self) -> int:
        return max(len(self.tokens) - self.index, 0)

    def at_end(self) -> bool:
        return self.index >= len(self.tokens)

    # =========================================================================
    # Token Access
    # =========================================================================

    def nearest_span(self) -> Span:
        """
        Best location for an error at the cursor.

        Raises:
            EmptyInputError: If there are no tokens at all
        """
        if not self.tokens:
            raise EmptyInputError()
        if self.index >= len(self.tokens):
            return self.tokens[-1].span
        return self.tokens[self.index].span

    def get(self, index: int) -> Token:
        """
        Token at an absolute index.

        Raises:
            EndOfInputError: If ``index`` is past the end
            EmptyInputError: If there are no tokens at all
        """
        if 0 <= index < len(self.tokens):
            return self.tokens[index]
        raise EndOfInputError(self.nearest_span()).when("trying to get token")

    def peek(self, offset: int = 0) -> Token:
        """Look at the token at current position + offset without consuming it."""
        return self.get(self.index + offset)

    def advance(self) -> Token:
        """Consume and return the current token."""
        token = self.peek()
        self.index += 1
        return token

    def check(self, *names: str) -> bool:
        """True if the current token is one of the given identifiers. Never raises."""
        if self.at_end():
            return False
        return self.tokens[self.index].is_identifier(*names)

    def accept(self, *names: str) -> Optional[Token]:
        """
        Consume the current token if it is one of the given identifiers.

        Returns:
            The consumed token, or None (and the cursor does not move)
        """
        if self.check(*names):
            return self.advance()
        return None

    def expect(self, name: str) -> Token:
        """
        Consume the identifier ``name``.

        Raises:
            UnexpectedTokenError: If the current token is anything else
            EndOfInputError: If there is no current token
        """
        token = self.peek()
        if token.is_identifier(name):
            self.index += 1
            return token
        raise UnexpectedTokenError(name, token.describe(), token.span)

    def next_identifier(self, expected: str) -> Token:
        """
        Consume any identifier.

        Args:
            expected: What the grammar wants here, for the error message
        """
        token = self.peek()
        if token.kind != TokenKind.IDENTIFIER:
            raise UnexpectedTokenError(expected, token.describe(), token.span)
        self.index += 1
        return token

    # =========================================================================
    # Token List Editing
    # =========================================================================

    def insert(self, token: Token) -> None:
        """
        Insert ``token`` before the cursor; the cursor stays after it.

        Raises:
            EndOfInputError: If the cursor is past the end
        """
        if self.index >= len(self.tokens):
            raise EndOfInputError(self.nearest_span()).when("trying to insert Token")
        self.tokens.insert(self.index, token)
        self.index += 1

    def push(self, token: Token) -> None:
        """Append ``token`` at the end of the list; the cursor does not move."""
        self.tokens.append(token)

    def pop(self) -> Token:
        """
        Remove and return the last token.

        Raises:
            EmptyInputError: If the list is empty
        """
        if not self.tokens:
            raise EmptyInputError().when("trying to pop Token")
        token = self.tokens.pop()
        self.index = min(self.index, len(self.tokens))
        return token

    def remove(self) -> Token:
        """
        Remove and return the token at the cursor.

        The following token becomes current.

        Raises:
            EndOfInputError: If the cursor is past the end
        """
        if self.index >= len(self.tokens):
            raise EndOfInputError(self.nearest_span()).when("trying to remove Token")
        return self.tokens.pop(self.index)

    def __repr__(self) -> str:
        return f"TokenCursor({self.index}/{len(self.tokens)})"
