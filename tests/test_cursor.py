# =============================================================================
# test_cursor.py - Token Cursor Tests
# =============================================================================
# Tests for the shared token cursor used by the parser/code generator.
#
# Test coverage includes:
#   - Lookahead (peek/check/accept) and consumption (advance/expect)
#   - End-of-input and empty-input errors and their locations
#   - Forking and shared state
#   - Token list editing (insert/push/pop/remove)
# =============================================================================

import pytest

from mica.errors import EmptyInputError, EndOfInputError, UnexpectedTokenError
from mica.lang.cursor import TokenCursor
from mica.lang.lexer import TokenKind, tokenize


# =============================================================================
# Helper Function
# =============================================================================

def cursor(text: str) -> TokenCursor:
    """Cursor over the tokens of ``text``."""
    return TokenCursor(tokenize(text))


def values(c: TokenCursor) -> list:
    return [t.value for t in c.tokens]


# =============================================================================
# Lookahead Tests
# =============================================================================

class TestLookahead:
    """Test peeking and consuming tokens."""

    def test_peek_does_not_move(self):
        c = cursor("a b")
        assert c.peek().value == "a"
        assert c.peek().value == "a"
        assert c.index == 0

    def test_peek_offset(self):
        c = cursor("a b c")
        assert c.peek(2).value == "c"

    def test_advance(self):
        c = cursor("a b")
        assert c.advance().value == "a"
        assert c.advance().value == "b"
        assert c.at_end()

    def test_remaining(self):
        c = cursor("a b c")
        c.advance()
        assert c.remaining() == 2
        assert len(c) == 3

    def test_check(self):
        c = cursor("do end")
        assert c.check("do")
        assert c.check("with", "do")
        assert not c.check("end")

    def test_check_at_end_never_raises(self):
        c = cursor("")
        assert not c.check("end")

    def test_check_rejects_literals(self):
        c = cursor('"end"')
        assert not c.check("end")

    def test_accept_consumes_only_on_match(self):
        c = cursor("with x")
        assert c.accept("do") is None
        assert c.index == 0
        assert c.accept("with").value == "with"
        assert c.index == 1

    def test_expect(self):
        c = cursor("fn main")
        assert c.expect("fn").value == "fn"
        assert c.peek().value == "main"

    def test_expect_mismatch(self):
        c = cursor("fnn main")
        with pytest.raises(UnexpectedTokenError) as exc_info:
            c.expect("fn")
        err = exc_info.value
        assert err.message == "expected fn found 'fnn'"
        assert err.span.text == "fnn"
        assert c.index == 0

    def test_next_identifier(self):
        c = cursor("main 5")
        assert c.next_identifier("<name>").value == "main"
        with pytest.raises(UnexpectedTokenError) as exc_info:
            c.next_identifier("<name>")
        assert exc_info.value.message == "expected <name> found integer literal 5"


# =============================================================================
# End of Input Tests
# =============================================================================

class TestEndOfInput:
    """Test running past the last token."""

    def test_peek_past_end(self):
        c = cursor("fn main do")
        c.index = 3
        with pytest.raises(EndOfInputError) as exc_info:
            c.peek()
        err = exc_info.value
        assert err.context == ["trying to get token"]
        assert err.span.text == "do"

    def test_get_negative_index(self):
        c = cursor("a")
        with pytest.raises(EndOfInputError):
            c.get(-1)

    def test_expect_past_end(self):
        c = cursor("fn")
        c.advance()
        with pytest.raises(EndOfInputError):
            c.expect("main")

    def test_empty_input(self):
        c = cursor("")
        with pytest.raises(EmptyInputError):
            c.peek()

    def test_nearest_span(self):
        c = cursor("a b")
        assert c.nearest_span().text == "a"
        c.index = 5
        assert c.nearest_span().text == "b"


# =============================================================================
# Fork Tests
# =============================================================================

class TestFork:
    """Test cursors sharing one token list."""

    def test_fork_starts_at_same_index(self):
        c = cursor("a b c")
        c.advance()
        fork = c.fork()
        assert fork.peek().value == "b"

    def test_fork_moves_independently(self):
        c = cursor("a b c")
        fork = c.fork()
        fork.advance()
        assert c.index == 0

    def test_fork_shares_token_list(self):
        c = cursor("a b")
        fork = c.fork()
        fork.pop()
        assert values(c) == ["a"]


# =============================================================================
# Editing Tests
# =============================================================================

class TestEditing:
    """Test token list editing operations."""

    def test_insert_before_cursor(self):
        c = cursor("a b")
        extra = tokenize("x")[0]
        c.advance()
        c.insert(extra)
        assert values(c) == ["a", "x", "b"]
        assert c.peek().value == "b"

    def test_insert_past_end(self):
        c = cursor("a")
        c.advance()
        with pytest.raises(EndOfInputError):
            c.insert(tokenize("x")[0])

    def test_push_does_not_move(self):
        c = cursor("a")
        c.push(tokenize("z")[0])
        assert values(c) == ["a", "z"]
        assert c.index == 0

    def test_pop(self):
        c = cursor("a b")
        assert c.pop().value == "b"
        assert values(c) == ["a"]

    def test_pop_clamps_index(self):
        c = cursor("a b")
        c.index = 2
        c.pop()
        assert c.index == 1

    def test_pop_empty(self):
        c = cursor("")
        with pytest.raises(EmptyInputError):
            c.pop()

    def test_remove_current(self):
        c = cursor("a b c")
        c.advance()
        assert c.remove().value == "b"
        assert c.peek().value == "c"

    def test_remove_past_end(self):
        c = cursor("a")
        c.advance()
        with pytest.raises(EndOfInputError):
            c.remove()

    def test_tokens_keep_kinds(self):
        c = cursor("call + 1")
        assert [t.kind for t in c.tokens] == [
            TokenKind.IDENTIFIER,
            TokenKind.PARTICLE,
            TokenKind.LITERAL,
        ]
