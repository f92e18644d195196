"""
Template preprocessing and tokenization.

``preprocess`` applies the whitespace rules (comment removal, ``trim_blocks``,
``lstrip_blocks`` and dash trimming). ``tokenize`` then splits the cleaned
source into a flat list of :class:`Token` values for the parser.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from ..exceptions import TemplateSyntaxError

__all__ = [
    "PreprocessOptions",
    "Token",
    "TokenKind",
    "preprocess",
    "tokenize",
]


class TokenKind(Enum):
    """Closed set of token kinds produced by the lexer."""

    TEXT = "Text"

    NUMERIC_LITERAL = "NumericLiteral"
    BOOLEAN_LITERAL = "BooleanLiteral"
    NULL_LITERAL = "NullLiteral"
    STRING_LITERAL = "StringLiteral"
    IDENTIFIER = "Identifier"
    EQUALS = "Equals"
    OPEN_PAREN = "OpenParen"
    CLOSE_PAREN = "CloseParen"
    OPEN_STATEMENT = "OpenStatement"
    CLOSE_STATEMENT = "CloseStatement"
    OPEN_EXPRESSION = "OpenExpression"
    CLOSE_EXPRESSION = "CloseExpression"
    OPEN_SQUARE_BRACKET = "OpenSquareBracket"
    CLOSE_SQUARE_BRACKET = "CloseSquareBracket"
    OPEN_CURLY_BRACKET = "OpenCurlyBracket"
    CLOSE_CURLY_BRACKET = "CloseCurlyBracket"
    COMMA = "Comma"
    DOT = "Dot"
    COLON = "Colon"
    PIPE = "Pipe"

    CALL_OPERATOR = "CallOperator"
    ADDITIVE_BINARY_OPERATOR = "AdditiveBinaryOperator"
    MULTIPLICATIVE_BINARY_OPERATOR = "MultiplicativeBinaryOperator"
    COMPARISON_BINARY_OPERATOR = "ComparisonBinaryOperator"
    UNARY_OPERATOR = "UnaryOperator"

    SET = "Set"
    IF = "If"
    FOR = "For"
    IN = "In"
    IS = "Is"
    NOT_IN = "NotIn"
    ELSE = "Else"
    END_IF = "EndIf"
    ELSE_IF = "ElseIf"
    END_FOR = "EndFor"
    AND = "And"
    OR = "Or"


@dataclass(frozen=True, slots=True)
class Token:
    """A lexeme and its kind."""

    value: str
    kind: TokenKind


@dataclass(frozen=True, slots=True)
class PreprocessOptions:
    """Whitespace handling applied before tokenization.

    Attributes
    ----------
    trim_blocks : bool
        Remove the first newline after a block or comment tag.
    lstrip_blocks : bool
        Strip spaces and tabs from the start of a line up to a block or
        comment tag.
    """

    trim_blocks: bool = False
    lstrip_blocks: bool = False


# =============================================================================
# Lookup tables
# =============================================================================

KEYWORDS: dict[str, TokenKind] = {
    "set": TokenKind.SET,
    "for": TokenKind.FOR,
    "in": TokenKind.IN,
    "is": TokenKind.IS,
    "if": TokenKind.IF,
    "else": TokenKind.ELSE,
    "endif": TokenKind.END_IF,
    "elif": TokenKind.ELSE_IF,
    "endfor": TokenKind.END_FOR,
    "and": TokenKind.AND,
    "or": TokenKind.OR,
    "not": TokenKind.UNARY_OPERATOR,
    "true": TokenKind.BOOLEAN_LITERAL,
    "false": TokenKind.BOOLEAN_LITERAL,
    "none": TokenKind.NULL_LITERAL,
}

# Ordered: multi-character entries must precede their one-character prefixes.
ORDERED_MAPPING_TABLE: tuple[tuple[str, TokenKind], ...] = (
    ("{%", TokenKind.OPEN_STATEMENT),
    ("%}", TokenKind.CLOSE_STATEMENT),
    ("{{", TokenKind.OPEN_EXPRESSION),
    ("}}", TokenKind.CLOSE_EXPRESSION),
    ("(", TokenKind.OPEN_PAREN),
    (")", TokenKind.CLOSE_PAREN),
    ("{", TokenKind.OPEN_CURLY_BRACKET),
    ("}", TokenKind.CLOSE_CURLY_BRACKET),
    ("[", TokenKind.OPEN_SQUARE_BRACKET),
    ("]", TokenKind.CLOSE_SQUARE_BRACKET),
    (",", TokenKind.COMMA),
    (".", TokenKind.DOT),
    (":", TokenKind.COLON),
    ("|", TokenKind.PIPE),
    ("<=", TokenKind.COMPARISON_BINARY_OPERATOR),
    (">=", TokenKind.COMPARISON_BINARY_OPERATOR),
    ("==", TokenKind.COMPARISON_BINARY_OPERATOR),
    ("!=", TokenKind.COMPARISON_BINARY_OPERATOR),
    ("<", TokenKind.COMPARISON_BINARY_OPERATOR),
    (">", TokenKind.COMPARISON_BINARY_OPERATOR),
    ("+", TokenKind.ADDITIVE_BINARY_OPERATOR),
    ("-", TokenKind.ADDITIVE_BINARY_OPERATOR),
    ("~", TokenKind.ADDITIVE_BINARY_OPERATOR),
    ("*", TokenKind.MULTIPLICATIVE_BINARY_OPERATOR),
    ("//", TokenKind.MULTIPLICATIVE_BINARY_OPERATOR),
    ("/", TokenKind.MULTIPLICATIVE_BINARY_OPERATOR),
    ("%", TokenKind.MULTIPLICATIVE_BINARY_OPERATOR),
    ("=", TokenKind.EQUALS),
)

ESCAPE_CHARACTERS: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "'": "'",
    '"': '"',
    "\\": "\\",
}

# A sign after one of these is a binary operator rather than part of a literal.
_PRIMARY_ENDERS = frozenset(
    {
        TokenKind.IDENTIFIER,
        TokenKind.NUMERIC_LITERAL,
        TokenKind.BOOLEAN_LITERAL,
        TokenKind.NULL_LITERAL,
        TokenKind.STRING_LITERAL,
        TokenKind.CLOSE_PAREN,
        TokenKind.CLOSE_SQUARE_BRACKET,
    }
)

_COMMENT_RE = re.compile(r"\{#.*?#\}", re.DOTALL)
_LSTRIP_RE = re.compile(r"^[ \t]*(\{[#%])", re.MULTILINE)
_TRIM_RE = re.compile(r"([#%]\})\n")
_DASH_RULES = (
    (re.compile(r"-%\}\s*"), "%}"),
    (re.compile(r"\s*\{%-"), "{%"),
    (re.compile(r"-\}\}\s*"), "}}"),
    (re.compile(r"\s*\{\{-"), "{{"),
)


# =============================================================================
# Preprocessing
# =============================================================================


def preprocess(source: str, options: PreprocessOptions | None = None) -> str:
    """
    Apply comment removal and whitespace control to template source.

    Parameters
    ----------
    source : str
        Raw template text.
    options : PreprocessOptions, optional
        Block trimming settings. Defaults to no trimming.

    Returns
    -------
    str
        Source with comments removed and whitespace rules applied.
    """
    options = options or PreprocessOptions()

    if source.endswith("\n"):
        source = source[:-1]

    source = _COMMENT_RE.sub("{##}", source)

    if options.lstrip_blocks:
        source = _LSTRIP_RE.sub(r"\1", source)
    if options.trim_blocks:
        source = _TRIM_RE.sub(r"\1", source)

    source = source.replace("{##}", "")

    for pattern, replacement in _DASH_RULES:
        source = pattern.sub(replacement, source)
    return source


# =============================================================================
# Tokenization
# =============================================================================


class _Scanner:
    """Cursor over preprocessed source."""

    __slots__ = ("source", "pos")

    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.source)

    def peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        return self.source[index] if index < len(self.source) else ""

    def startswith(self, text: str) -> bool:
        return self.source.startswith(text, self.pos)

    def consume_while(self, predicate) -> str:
        start = self.pos
        while self.pos < len(self.source) and predicate(self.source[self.pos]):
            self.pos += 1
        return self.source[start : self.pos]

    def consume_text(self) -> str:
        """Consume raw text up to the next ``{%`` or ``{{``."""
        start = self.pos
        ends = [i for i in (self.source.find("{%", start), self.source.find("{{", start)) if i >= 0]
        self.pos = min(ends) if ends else len(self.source)
        return self.source[start : self.pos]

    def consume_string(self, quote: str) -> str:
        chars: list[str] = []
        while True:
            if self.at_end():
                raise TemplateSyntaxError(
                    "Unexpected end of input", details={"position": self.pos}
                )
            char = self.source[self.pos]
            if char == quote:
                return "".join(chars)
            self.pos += 1
            if char == "\\":
                if self.at_end():
                    raise TemplateSyntaxError(
                        "Unexpected end of input", details={"position": self.pos}
                    )
                escaped = self.source[self.pos]
                self.pos += 1
                if escaped not in ESCAPE_CHARACTERS:
                    raise TemplateSyntaxError(
                        f"Unexpected escaped character: {escaped!r}",
                        details={"position": self.pos - 1, "char": escaped},
                    )
                chars.append(ESCAPE_CHARACTERS[escaped])
            else:
                chars.append(char)


def _is_word_char(char: str) -> bool:
    return char.isalnum() or char == "_"


def _is_digit(char: str) -> bool:
    return "0" <= char <= "9"


def tokenize(source: str, options: PreprocessOptions | None = None) -> list[Token]:
    """
    Split template source into tokens.

    Parameters
    ----------
    source : str
        Raw template text. It is preprocessed with ``options`` first.
    options : PreprocessOptions, optional
        Whitespace handling. Defaults to no trimming.

    Returns
    -------
    list[Token]
        Tokens in source order.

    Raises
    ------
    TemplateSyntaxError
        On an unterminated string literal, an unknown escape sequence,
        or a character that starts no token.
    """
    scanner = _Scanner(preprocess(source, options))
    tokens: list[Token] = []

    while not scanner.at_end():
        last_kind = tokens[-1].kind if tokens else None

        if last_kind in (None, TokenKind.CLOSE_STATEMENT, TokenKind.CLOSE_EXPRESSION):
            text = scanner.consume_text()
            if text:
                tokens.append(Token(text, TokenKind.TEXT))
                continue

        scanner.consume_while(str.isspace)
        if scanner.at_end():
            break

        char = scanner.peek()

        if char in "+-":
            if last_kind in (None, TokenKind.TEXT):
                raise TemplateSyntaxError(
                    f"Unexpected character: {char!r}",
                    details={"position": scanner.pos, "char": char},
                )
            if last_kind not in _PRIMARY_ENDERS:
                scanner.pos += 1
                digits = scanner.consume_while(_is_digit)
                if digits:
                    tokens.append(Token(char + digits, TokenKind.NUMERIC_LITERAL))
                else:
                    tokens.append(Token(char, TokenKind.UNARY_OPERATOR))
                continue

        token = _match_mapping(scanner)
        if token is not None:
            tokens.append(token)
            continue

        if char in ("'", '"'):
            scanner.pos += 1
            value = scanner.consume_string(char)
            scanner.pos += 1
            tokens.append(Token(value, TokenKind.STRING_LITERAL))
            continue

        if _is_digit(char):
            tokens.append(Token(scanner.consume_while(_is_digit), TokenKind.NUMERIC_LITERAL))
            continue

        if _is_word_char(char):
            word = scanner.consume_while(_is_word_char)
            kind = KEYWORDS.get(word, TokenKind.IDENTIFIER)
            if (
                kind is TokenKind.IN
                and tokens
                and tokens[-1] == Token("not", TokenKind.UNARY_OPERATOR)
            ):
                tokens[-1] = Token("not in", TokenKind.NOT_IN)
            else:
                tokens.append(Token(word, kind))
            continue

        raise TemplateSyntaxError(
            f"Unexpected character: {char!r}",
            details={"position": scanner.pos, "char": char},
        )

    return tokens


def _match_mapping(scanner: _Scanner) -> Token | None:
    for text, kind in ORDERED_MAPPING_TABLE:
        if scanner.startswith(text):
            scanner.pos += len(text)
            return Token(text, kind)
    return None
