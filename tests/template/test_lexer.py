"""
Tokenizer tests.

Tests for splitting preprocessed template source into tokens, including
sign handling, keyword recognition and string escapes.
"""

import pytest

from chatplate.exceptions import TemplateSyntaxError
from chatplate.template.lexer import Token, TokenKind, tokenize

T = TokenKind


def kinds(source):
    return [token.kind for token in tokenize(source)]


class TestTextAndDelimiters:
    """Tests for text runs and tag delimiters."""

    def test_plain_text(self):
        """Text without tags is a single token."""
        assert tokenize("Hello world!") == [Token("Hello world!", T.TEXT)]

    def test_empty_source(self):
        """Empty source produces no tokens."""
        assert tokenize("") == []

    def test_interleaved_text_and_expressions(self):
        """Text between expressions is kept as separate tokens."""
        tokens = tokenize("0{{ 'A' }}1{{ 'B' }}{{ 'C' }}2{{ 'D' }}3")

        assert tokens == [
            Token("0", T.TEXT),
            Token("{{", T.OPEN_EXPRESSION),
            Token("A", T.STRING_LITERAL),
            Token("}}", T.CLOSE_EXPRESSION),
            Token("1", T.TEXT),
            Token("{{", T.OPEN_EXPRESSION),
            Token("B", T.STRING_LITERAL),
            Token("}}", T.CLOSE_EXPRESSION),
            Token("{{", T.OPEN_EXPRESSION),
            Token("C", T.STRING_LITERAL),
            Token("}}", T.CLOSE_EXPRESSION),
            Token("2", T.TEXT),
            Token("{{", T.OPEN_EXPRESSION),
            Token("D", T.STRING_LITERAL),
            Token("}}", T.CLOSE_EXPRESSION),
            Token("3", T.TEXT),
        ]

    def test_statement_delimiters(self):
        """Statement tags produce open/close statement tokens."""
        assert kinds("{% if x %}y{% endif %}") == [
            T.OPEN_STATEMENT,
            T.IF,
            T.IDENTIFIER,
            T.CLOSE_STATEMENT,
            T.TEXT,
            T.OPEN_STATEMENT,
            T.END_IF,
            T.CLOSE_STATEMENT,
        ]

    def test_lone_brace_is_text(self):
        """A single brace outside a tag is ordinary text."""
        assert tokenize("a { b } c") == [Token("a { b } c", T.TEXT)]

    def test_whitespace_inside_tags_is_skipped(self):
        """Spacing inside a tag does not produce tokens."""
        assert tokenize("{{x}}") == tokenize("{{   x   }}")


class TestKeywordsAndLiterals:
    """Tests for keyword and literal recognition."""

    def test_logical_and(self):
        """Boolean literals and ``and`` are recognized."""
        assert tokenize("{{ true and false }}") == [
            Token("{{", T.OPEN_EXPRESSION),
            Token("true", T.BOOLEAN_LITERAL),
            Token("and", T.AND),
            Token("false", T.BOOLEAN_LITERAL),
            Token("}}", T.CLOSE_EXPRESSION),
        ]

    @pytest.mark.parametrize(
        "word,kind",
        [
            ("set", T.SET),
            ("for", T.FOR),
            ("in", T.IN),
            ("is", T.IS),
            ("if", T.IF),
            ("else", T.ELSE),
            ("elif", T.ELSE_IF),
            ("endif", T.END_IF),
            ("endfor", T.END_FOR),
            ("or", T.OR),
            ("not", T.UNARY_OPERATOR),
            ("none", T.NULL_LITERAL),
        ],
    )
    def test_keyword_kinds(self, word, kind):
        """Each keyword maps to its own token kind."""
        assert tokenize(f"{{{{ {word} }}}}")[1] == Token(word, kind)

    def test_capitalized_constants_are_identifiers(self):
        """``True``/``None`` are identifiers resolved at runtime."""
        assert kinds("{{ True None }}")[1:3] == [T.IDENTIFIER, T.IDENTIFIER]

    def test_identifier_with_underscore_and_digits(self):
        """Identifiers may contain underscores and digits."""
        assert tokenize("{{ add_generation_prompt2 }}")[1] == Token(
            "add_generation_prompt2", T.IDENTIFIER
        )

    def test_not_in_is_fused(self):
        """``not in`` becomes a single operator token."""
        assert tokenize("{{ a not in b }}")[1:4] == [
            Token("a", T.IDENTIFIER),
            Token("not in", T.NOT_IN),
            Token("b", T.IDENTIFIER),
        ]

    def test_integer_literal(self):
        """Digit runs are numeric literals."""
        assert tokenize("{{ 42 }}")[1] == Token("42", T.NUMERIC_LITERAL)


class TestSigns:
    """Tests for ``+``/``-`` disambiguation."""

    def test_binary_minus_after_identifier(self):
        """A minus after an operand is a binary operator."""
        assert tokenize("{{ x - 1 }}")[1:4] == [
            Token("x", T.IDENTIFIER),
            Token("-", T.ADDITIVE_BINARY_OPERATOR),
            Token("1", T.NUMERIC_LITERAL),
        ]

    def test_negative_literal_at_start(self):
        """A minus opening an expression joins the following digits."""
        assert tokenize("{{ -1 }}")[1] == Token("-1", T.NUMERIC_LITERAL)

    def test_negative_literal_after_operator(self):
        """A minus after a binary operator starts a signed literal."""
        assert tokenize("{{ 5 - -3 }}")[1:4] == [
            Token("5", T.NUMERIC_LITERAL),
            Token("-", T.ADDITIVE_BINARY_OPERATOR),
            Token("-3", T.NUMERIC_LITERAL),
        ]

    def test_unary_minus_before_identifier(self):
        """A sign without digits is a unary operator."""
        assert tokenize("{{ -x }}")[1:3] == [
            Token("-", T.UNARY_OPERATOR),
            Token("x", T.IDENTIFIER),
        ]

    def test_binary_after_closing_bracket(self):
        """Closing brackets end an operand."""
        assert tokenize("{{ a[0] + 1 }}")[5] == Token("+", T.ADDITIVE_BINARY_OPERATOR)


class TestOperators:
    """Tests for operator and punctuation tokens."""

    @pytest.mark.parametrize(
        "op,kind",
        [
            ("==", T.COMPARISON_BINARY_OPERATOR),
            ("!=", T.COMPARISON_BINARY_OPERATOR),
            ("<=", T.COMPARISON_BINARY_OPERATOR),
            (">=", T.COMPARISON_BINARY_OPERATOR),
            ("<", T.COMPARISON_BINARY_OPERATOR),
            (">", T.COMPARISON_BINARY_OPERATOR),
            ("~", T.ADDITIVE_BINARY_OPERATOR),
            ("*", T.MULTIPLICATIVE_BINARY_OPERATOR),
            ("/", T.MULTIPLICATIVE_BINARY_OPERATOR),
            ("//", T.MULTIPLICATIVE_BINARY_OPERATOR),
            ("%", T.MULTIPLICATIVE_BINARY_OPERATOR),
        ],
    )
    def test_binary_operators(self, op, kind):
        """Multi-character operators are matched before their prefixes."""
        assert tokenize(f"{{{{ a {op} b }}}}")[2] == Token(op, kind)

    def test_punctuation(self):
        """Brackets, commas, dots, colons and pipes each get a kind."""
        assert kinds("{{ f(a, b.c)[1:2] | g }}")[1:-1] == [
            T.IDENTIFIER,
            T.OPEN_PAREN,
            T.IDENTIFIER,
            T.COMMA,
            T.IDENTIFIER,
            T.DOT,
            T.IDENTIFIER,
            T.CLOSE_PAREN,
            T.OPEN_SQUARE_BRACKET,
            T.NUMERIC_LITERAL,
            T.COLON,
            T.NUMERIC_LITERAL,
            T.CLOSE_SQUARE_BRACKET,
            T.PIPE,
            T.IDENTIFIER,
        ]

    def test_object_literal_braces(self):
        """Braces inside a tag are curly bracket tokens."""
        assert kinds("{{ {'a': 1} }}")[1:-1] == [
            T.OPEN_CURLY_BRACKET,
            T.STRING_LITERAL,
            T.COLON,
            T.NUMERIC_LITERAL,
            T.CLOSE_CURLY_BRACKET,
        ]

    def test_assignment(self):
        """A single ``=`` is an equals token."""
        assert kinds("{% set x = 1 %}")[2:4] == [T.IDENTIFIER, T.EQUALS]


class TestStringLiterals:
    """Tests for quoted strings and escapes."""

    @pytest.mark.parametrize("quote", ["'", '"'])
    def test_both_quote_styles(self, quote):
        """Single and double quotes delimit strings."""
        assert tokenize(f"{{{{ {quote}hi{quote} }}}}")[1] == Token("hi", T.STRING_LITERAL)

    @pytest.mark.parametrize(
        "escape,expected",
        [
            (r"\n", "\n"),
            (r"\t", "\t"),
            (r"\r", "\r"),
            (r"\\", "\\"),
            (r"\'", "'"),
            (r"\"", '"'),
        ],
    )
    def test_escape_sequences(self, escape, expected):
        """Backslash escapes are decoded."""
        assert tokenize("{{ 'a" + escape + "b' }}")[1].value == f"a{expected}b"

    def test_other_quote_needs_no_escape(self):
        """The non-delimiting quote is literal."""
        assert tokenize("""{{ "it's" }}""")[1].value == "it's"

    def test_tag_text_inside_string(self):
        """Delimiters inside a string do not end the tag."""
        assert tokenize("{{ '}}' }}")[1] == Token("}}", T.STRING_LITERAL)

    def test_unknown_escape_raises(self):
        """Unknown escapes are syntax errors."""
        with pytest.raises(TemplateSyntaxError, match="Unexpected escaped character"):
            tokenize(r"{{ '\q' }}")

    def test_unterminated_string_raises(self):
        """A string running to end of input is a syntax error."""
        with pytest.raises(TemplateSyntaxError, match="Unexpected end of input"):
            tokenize("{{ 'abc")


class TestLexerErrors:
    """Tests for characters that start no token."""

    @pytest.mark.parametrize("char", ["^", "@", "$", "?"])
    def test_unexpected_character(self, char):
        """Unknown characters raise with their position."""
        with pytest.raises(TemplateSyntaxError, match="Unexpected character") as exc_info:
            tokenize(f"{{{{ a {char} b }}}}")

        assert exc_info.value.details["char"] == char
        assert exc_info.value.details["position"] == 5
