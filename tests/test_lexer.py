# =============================================================================
# test_lexer.py - Lexer Unit Tests
# =============================================================================
# Tests for the Mica lexer/tokenizer.
#
# Test coverage includes:
#   - Identifiers, keywords and particles
#   - Number formats: decimal, hexadecimal (0x), binary (0b), float, negative
#   - String and character literals with escape sequences
#   - Boolean literals
#   - Comments and whitespace handling
#   - Token spans
#   - Error conditions
# =============================================================================

import pytest

from mica.errors import TokenizationError
from mica.lang.lexer import Literal, LiteralKind, Token, TokenKind, tokenize
from mica.source import Source


# =============================================================================
# Helper Functions
# =============================================================================

def kinds(text: str) -> list:
    """Token kinds of ``text`` in order."""
    return [t.kind for t in tokenize(text)]


def single_literal(text: str) -> Literal:
    """Tokenize text that must contain exactly one literal token."""
    tokens = tokenize(text)
    assert len(tokens) == 1
    assert tokens[0].kind == TokenKind.LITERAL
    return tokens[0].value


# =============================================================================
# Basic Token Recognition Tests
# =============================================================================

class TestBasicTokens:
    """Test basic token recognition for simple inputs."""

    def test_empty_input(self):
        assert tokenize("") == []

    def test_whitespace_only(self):
        assert tokenize("  \t\n\r\n ") == []

    def test_identifier(self):
        tokens = tokenize("main")
        assert len(tokens) == 1
        assert tokens[0].kind == TokenKind.IDENTIFIER
        assert tokens[0].value == "main"

    def test_identifier_with_underscore_and_digits(self):
        tokens = tokenize("_start2 my_name")
        assert [t.value for t in tokens] == ["_start2", "my_name"]

    def test_keywords_are_identifiers(self):
        tokens = tokenize("fn do end let be return call literal with")
        assert all(t.kind == TokenKind.IDENTIFIER for t in tokens)

    def test_particles(self):
        tokens = tokenize("+ - * / & | %")
        assert all(t.kind == TokenKind.PARTICLE for t in tokens)
        assert [t.value for t in tokens] == ["+", "-", "*", "/", "&", "|", "%"]

    def test_particles_need_no_spaces(self):
        assert [t.value for t in tokenize("a+b")] == ["a", "+", "b"]

    def test_call_expression(self):
        assert kinds("call + with literal i32 2") == [
            TokenKind.IDENTIFIER,
            TokenKind.PARTICLE,
            TokenKind.IDENTIFIER,
            TokenKind.IDENTIFIER,
            TokenKind.IDENTIFIER,
            TokenKind.LITERAL,
        ]


# =============================================================================
# Number Tests
# =============================================================================

class TestNumbers:
    """Test numeric literal formats."""

    def test_decimal(self):
        assert single_literal("123") == Literal(LiteralKind.INTEGER, 123)

    def test_hexadecimal(self):
        assert single_literal("0x7F") == Literal(LiteralKind.INTEGER, 127)
        assert single_literal("0XfF") == Literal(LiteralKind.INTEGER, 255)

    def test_binary(self):
        assert single_literal("0b1010") == Literal(LiteralKind.INTEGER, 10)

    def test_float(self):
        assert single_literal("2.5") == Literal(LiteralKind.FLOAT, 2.5)

    def test_negative_integer(self):
        assert single_literal("-7") == Literal(LiteralKind.INTEGER, -7)

    def test_negative_hex(self):
        assert single_literal("-0x10") == Literal(LiteralKind.INTEGER, -16)

    def test_negative_float(self):
        assert single_literal("-0.5") == Literal(LiteralKind.FLOAT, -0.5)

    def test_minus_followed_by_space_is_particle(self):
        tokens = tokenize("- 7")
        assert tokens[0].kind == TokenKind.PARTICLE
        assert tokens[1].value == Literal(LiteralKind.INTEGER, 7)

    def test_invalid_suffix(self):
        with pytest.raises(TokenizationError) as exc_info:
            tokenize("12abc")
        assert "invalid number '12abc'" in exc_info.value.message

    def test_non_ascii_digit_is_invalid_character(self):
        with pytest.raises(TokenizationError) as exc_info:
            tokenize("fn f i32 do return literal i32 ² end")
        err = exc_info.value
        assert "invalid character" in err.message
        assert err.span.text == "²"

    def test_non_ascii_digit_after_number(self):
        with pytest.raises(TokenizationError):
            tokenize("1²")

    def test_missing_hex_digits(self):
        with pytest.raises(TokenizationError):
            tokenize("0x")


# =============================================================================
# String and Character Tests
# =============================================================================

class TestStrings:
    """Test string and character literals."""

    def test_simple_string(self):
        assert single_literal('"hello"') == Literal(LiteralKind.STRING, "hello")

    def test_empty_string(self):
        assert single_literal('""') == Literal(LiteralKind.STRING, "")

    def test_string_with_spaces(self):
        assert single_literal('"hello world"').value == "hello world"

    def test_escape_sequences(self):
        literal = single_literal(r'"a\nb\tc\\d\"e\0"')
        assert literal.value == 'a\nb\tc\\d"e\0'

    def test_unknown_escape(self):
        with pytest.raises(TokenizationError) as exc_info:
            tokenize(r'"\q"')
        assert "unknown escape sequence" in exc_info.value.message

    def test_unterminated_string(self):
        with pytest.raises(TokenizationError) as exc_info:
            tokenize('"hello')
        assert exc_info.value.message == "unterminated string literal"

    def test_string_cannot_span_lines(self):
        with pytest.raises(TokenizationError):
            tokenize('"hello\nworld"')

    def test_char(self):
        assert single_literal("'A'") == Literal(LiteralKind.CHAR, "A")

    def test_escaped_char(self):
        assert single_literal(r"'\n'") == Literal(LiteralKind.CHAR, "\n")

    def test_empty_char(self):
        with pytest.raises(TokenizationError):
            tokenize("''")

    def test_char_with_two_characters(self):
        with pytest.raises(TokenizationError):
            tokenize("'ab'")


# =============================================================================
# Boolean Tests
# =============================================================================

class TestBooleans:
    """Test that true/false become literals rather than identifiers."""

    def test_true(self):
        assert single_literal("true") == Literal(LiteralKind.BOOL, True)

    def test_false(self):
        assert single_literal("false") == Literal(LiteralKind.BOOL, False)

    def test_prefix_is_identifier(self):
        tokens = tokenize("trueish")
        assert tokens[0].kind == TokenKind.IDENTIFIER


# =============================================================================
# Comment Tests
# =============================================================================

class TestComments:
    """Test comment handling."""

    def test_line_comment(self):
        tokens = tokenize("fn // a comment\nmain")
        assert [t.value for t in tokens] == ["fn", "main"]

    def test_comment_at_end(self):
        assert tokenize("// only a comment") == []

    def test_single_slash_is_particle(self):
        assert tokenize("/")[0].kind == TokenKind.PARTICLE


# =============================================================================
# Span Tests
# =============================================================================

class TestSpans:
    """Test token locations."""

    def test_spans_cover_token_text(self):
        source = Source.from_string('call puts with "hi" end')
        tokens = tokenize(source)
        assert [t.span.text for t in tokens] == ["call", "puts", "with", '"hi"', "end"]

    def test_spans_share_source(self):
        source = Source.from_string("a b")
        tokens = tokenize(source)
        assert all(t.span.source is source for t in tokens)

    def test_location_on_second_line(self):
        tokens = tokenize("fn main do\n  end", "t.mi")
        assert tokens[-1].span.location() == "t.mi:2:3..2:6"


# =============================================================================
# Token Helper Tests
# =============================================================================

class TestTokenHelpers:
    """Test Token convenience methods."""

    def test_is_identifier(self):
        token = tokenize("end")[0]
        assert token.is_identifier()
        assert token.is_identifier("do", "end")
        assert not token.is_identifier("do")

    def test_literal_is_not_identifier(self):
        assert not tokenize("5")[0].is_identifier()

    def test_describe(self):
        ident, particle, number, string = tokenize('main + 5 "hi"')
        assert ident.describe() == "'main'"
        assert particle.describe() == "particle '+'"
        assert number.describe() == "integer literal 5"
        assert string.describe() == "string literal 'hi'"

    def test_repr(self):
        assert repr(tokenize("call")[0]) == "Token(IDENTIFIER, 'call', 0..4)"


# =============================================================================
# Error Tests
# =============================================================================

class TestErrors:
    """Test tokenization failures."""

    def test_invalid_character(self):
        with pytest.raises(TokenizationError) as exc_info:
            tokenize("fn §")
        err = exc_info.value
        assert "invalid character" in err.message
        assert err.span.text == "§"

    def test_error_heading(self):
        with pytest.raises(TokenizationError) as exc_info:
            tokenize('"open')
        assert str(exc_info.value).startswith("Tokenization error:")
