"""
Recursive-descent parser turning tokens into a :class:`~.nodes.Program`.

Precedence, lowest to highest::

    ternary  <  or  <  and  <  not  <  comparison  <  additive
    <  multiplicative  <  unary sign  <  test  <  filter
    <  call / member  <  primary
"""

from __future__ import annotations

from ..exceptions import TemplateParserError
from .lexer import Token, TokenKind
from .nodes import (
    ArrayLiteral,
    BinaryExpression,
    BooleanLiteral,
    CallExpression,
    Expression,
    FilterExpression,
    ForStatement,
    Identifier,
    IfStatement,
    KeywordArgumentExpression,
    MemberExpression,
    NullLiteral,
    NumericLiteral,
    ObjectLiteral,
    Program,
    SetStatement,
    SliceExpression,
    Statement,
    StringLiteral,
    TernaryExpression,
    TestExpression,
    TupleLiteral,
    UnaryExpression,
)

__all__ = ["Parser", "parse"]


class Parser:
    """Single-use parser over a token list."""

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.current = 0

    # =========================================================================
    # Cursor helpers
    # =========================================================================

    def _peek(self, offset: int = 0) -> Token | None:
        index = self.current + offset
        return self.tokens[index] if index < len(self.tokens) else None

    def _is(self, *kinds: TokenKind) -> bool:
        """Check that the next ``len(kinds)`` tokens have the given kinds."""
        for offset, kind in enumerate(kinds):
            token = self._peek(offset)
            if token is None or token.kind is not kind:
                return False
        return True

    def _advance(self) -> Token:
        token = self._peek()
        if token is None:
            raise TemplateParserError("Unexpected end of input")
        self.current += 1
        return token

    def _expect(self, kind: TokenKind, message: str) -> Token:
        token = self._peek()
        if token is None:
            raise TemplateParserError(
                f"{message}: unexpected end of input", details={"expected": kind.value}
            )
        if token.kind is not kind:
            raise TemplateParserError(
                f"{message}: got {token.kind.value} {token.value!r}",
                details={"expected": kind.value, "found": token.kind.value},
            )
        self.current += 1
        return token

    def _is_operator(self, kind: TokenKind, *values: str) -> bool:
        token = self._peek()
        return token is not None and token.kind is kind and (not values or token.value in values)

    # =========================================================================
    # Statements
    # =========================================================================

    def parse(self) -> Program:
        body: list[Statement] = []
        while self._peek() is not None:
            body.append(self.parse_any())
        return Program(tuple(body))

    def parse_any(self) -> Statement:
        token = self._peek()
        if token is None:
            raise TemplateParserError("Unexpected end of input")
        match token.kind:
            case TokenKind.TEXT:
                self.current += 1
                return StringLiteral(token.value)
            case TokenKind.OPEN_STATEMENT:
                return self._parse_jinja_statement()
            case TokenKind.OPEN_EXPRESSION:
                return self._parse_jinja_expression()
            case _:
                raise TemplateParserError(
                    f"Unexpected token type: {token.kind.value}",
                    details={"token": token.value},
                )

    def _parse_jinja_expression(self) -> Statement:
        self._expect(TokenKind.OPEN_EXPRESSION, "Expected opening expression token")
        result = self.parse_expression()
        self._expect(TokenKind.CLOSE_EXPRESSION, "Expected closing expression token")
        return result

    def _parse_jinja_statement(self) -> Statement:
        self._expect(TokenKind.OPEN_STATEMENT, "Expected opening statement token")
        token = self._peek()
        if token is None:
            raise TemplateParserError("Unexpected end of input")

        result: Statement
        match token.kind:
            case TokenKind.SET:
                self.current += 1
                result = self._parse_set_statement()
                self._expect(TokenKind.CLOSE_STATEMENT, "Expected closing statement token")
            case TokenKind.IF:
                self.current += 1
                result = self._parse_if_statement()
                self._expect(TokenKind.OPEN_STATEMENT, "Expected {% token")
                self._expect(TokenKind.END_IF, "Expected endif token")
                self._expect(TokenKind.CLOSE_STATEMENT, "Expected %} token")
            case TokenKind.FOR:
                self.current += 1
                result = self._parse_for_statement()
                self._expect(TokenKind.OPEN_STATEMENT, "Expected {% token")
                self._expect(TokenKind.END_FOR, "Expected endfor token")
                self._expect(TokenKind.CLOSE_STATEMENT, "Expected %} token")
            case _:
                raise TemplateParserError(
                    f"Unknown statement type: {token.kind.value}",
                    details={"token": token.value},
                )
        return result

    def _parse_set_statement(self) -> Statement:
        left = self.parse_expression()
        if self._is(TokenKind.EQUALS):
            self.current += 1
            value = self._parse_set_statement()
            return SetStatement(left, value)
        return left

    def _parse_block_until(self, *terminators: TokenKind) -> tuple[Statement, ...]:
        """Parse statements until ``{%`` followed by one of ``terminators``."""
        body: list[Statement] = []
        while not any(self._is(TokenKind.OPEN_STATEMENT, kind) for kind in terminators):
            if self._peek() is None:
                expected = " or ".join(kind.value for kind in terminators)
                raise TemplateParserError(
                    f"Unexpected end of input: expected {expected}",
                    details={"expected": [kind.value for kind in terminators]},
                )
            body.append(self.parse_any())
        return tuple(body)

    def _parse_if_statement(self) -> IfStatement:
        test = self.parse_expression()
        self._expect(TokenKind.CLOSE_STATEMENT, "Expected closing statement token")

        body = self._parse_block_until(TokenKind.ELSE_IF, TokenKind.ELSE, TokenKind.END_IF)
        alternate: tuple[Statement, ...] = ()

        if self._is(TokenKind.OPEN_STATEMENT, TokenKind.ELSE_IF):
            self.current += 2
            alternate = (self._parse_if_statement(),)
        elif self._is(TokenKind.OPEN_STATEMENT, TokenKind.ELSE):
            self.current += 2
            self._expect(TokenKind.CLOSE_STATEMENT, "Expected closing statement token")
            alternate = self._parse_block_until(TokenKind.END_IF)

        return IfStatement(test, body, alternate)

    def _parse_for_statement(self) -> ForStatement:
        loopvar = self._parse_expression_sequence(primary=True)
        if not isinstance(loopvar, (Identifier, TupleLiteral)):
            raise TemplateParserError(
                f"Expected identifier/tuple for the loop variable, got {loopvar.type} instead",
                details={"found": loopvar.type},
            )

        self._expect(TokenKind.IN, "Expected `in` keyword following loop variable")
        iterable = self.parse_expression()
        self._expect(TokenKind.CLOSE_STATEMENT, "Expected closing statement token")

        body = self._parse_block_until(TokenKind.END_FOR)
        return ForStatement(loopvar, iterable, body)

    # =========================================================================
    # Expressions
    # =========================================================================

    def parse_expression(self) -> Expression:
        return self._parse_ternary_expression()

    def _parse_ternary_expression(self) -> Expression:
        a = self._parse_logical_or_expression()
        if self._is(TokenKind.IF):
            self.current += 1
            condition = self._parse_logical_or_expression()
            self._expect(TokenKind.ELSE, "Expected else token")
            b = self._parse_logical_or_expression()
            return TernaryExpression(condition, a, b)
        return a

    def _parse_expression_sequence(self, primary: bool = False) -> Expression:
        parse_item = self._parse_primary_expression if primary else self.parse_expression
        expressions = [parse_item()]
        is_tuple = self._is(TokenKind.COMMA)
        while self._is(TokenKind.COMMA):
            self.current += 1
            expressions.append(parse_item())
        return TupleLiteral(tuple(expressions)) if is_tuple else expressions[0]

    def _parse_logical_or_expression(self) -> Expression:
        left = self._parse_logical_and_expression()
        while self._is(TokenKind.OR):
            operator = self._advance()
            right = self._parse_logical_and_expression()
            left = BinaryExpression(operator.value, left, right)
        return left

    def _parse_logical_and_expression(self) -> Expression:
        left = self._parse_logical_negation_expression()
        while self._is(TokenKind.AND):
            operator = self._advance()
            right = self._parse_logical_negation_expression()
            left = BinaryExpression(operator.value, left, right)
        return left

    def _parse_logical_negation_expression(self) -> Expression:
        if self._is_operator(TokenKind.UNARY_OPERATOR, "not"):
            operator = self._advance()
            return UnaryExpression(operator.value, self._parse_logical_negation_expression())
        return self._parse_comparison_expression()

    def _parse_comparison_expression(self) -> Expression:
        left = self._parse_additive_expression()
        while (
            self._is(TokenKind.COMPARISON_BINARY_OPERATOR)
            or self._is(TokenKind.IN)
            or self._is(TokenKind.NOT_IN)
        ):
            operator = self._advance()
            right = self._parse_additive_expression()
            left = BinaryExpression(operator.value, left, right)
        return left

    def _parse_additive_expression(self) -> Expression:
        left = self._parse_multiplicative_expression()
        while self._is(TokenKind.ADDITIVE_BINARY_OPERATOR):
            operator = self._advance()
            right = self._parse_multiplicative_expression()
            left = BinaryExpression(operator.value, left, right)
        return left

    def _parse_multiplicative_expression(self) -> Expression:
        left = self._parse_unary_sign_expression()
        while self._is(TokenKind.MULTIPLICATIVE_BINARY_OPERATOR):
            operator = self._advance()
            right = self._parse_unary_sign_expression()
            left = BinaryExpression(operator.value, left, right)
        return left

    def _parse_unary_sign_expression(self) -> Expression:
        if self._is_operator(TokenKind.UNARY_OPERATOR, "-", "+"):
            operator = self._advance()
            return UnaryExpression(operator.value, self._parse_unary_sign_expression())
        return self._parse_test_expression()

    def _parse_test_expression(self) -> Expression:
        operand = self._parse_filter_expression()

        while self._is(TokenKind.IS):
            self.current += 1
            negate = self._is_operator(TokenKind.UNARY_OPERATOR, "not")
            if negate:
                self.current += 1

            test = self._parse_primary_expression()
            match test:
                case BooleanLiteral(value=value):
                    test = Identifier("true" if value else "false")
                case NullLiteral():
                    test = Identifier("none")
            if not isinstance(test, Identifier):
                raise TemplateParserError(
                    f"Expected identifier for the test, got {test.type}",
                    details={"found": test.type},
                )

            args: tuple[Expression, ...] = ()
            if self._is(TokenKind.OPEN_PAREN):
                args = self._parse_args()
            operand = TestExpression(operand, negate, test, args)

        return operand

    def _parse_filter_expression(self) -> Expression:
        operand = self._parse_call_member_expression()

        while self._is(TokenKind.PIPE):
            self.current += 1
            filter_node: Expression = self._parse_primary_expression()
            if not isinstance(filter_node, Identifier):
                raise TemplateParserError(
                    f"Expected identifier for the filter, got {filter_node.type}",
                    details={"found": filter_node.type},
                )
            if self._is(TokenKind.OPEN_PAREN):
                filter_node = CallExpression(filter_node, self._parse_args())
            operand = FilterExpression(operand, filter_node)

        return operand

    def _parse_call_member_expression(self) -> Expression:
        expression = self._parse_primary_expression()

        while True:
            if self._is(TokenKind.DOT):
                self.current += 1
                prop = self._parse_primary_expression()
                if not isinstance(prop, Identifier):
                    raise TemplateParserError(
                        f"Expected identifier following dot operator, got {prop.type}",
                        details={"found": prop.type},
                    )
                expression = MemberExpression(expression, prop, computed=False)
            elif self._is(TokenKind.OPEN_SQUARE_BRACKET):
                self.current += 1
                prop = self._parse_member_expression_arguments()
                self._expect(TokenKind.CLOSE_SQUARE_BRACKET, "Expected closing square bracket")
                expression = MemberExpression(expression, prop, computed=True)
            elif self._is(TokenKind.OPEN_PAREN):
                expression = CallExpression(expression, self._parse_args())
            else:
                return expression

    def _parse_member_expression_arguments(self) -> Expression:
        parts: list[Expression | None] = []
        is_slice = False

        while not self._is(TokenKind.CLOSE_SQUARE_BRACKET):
            if self._peek() is None:
                raise TemplateParserError("Unexpected end of input: expected ]")
            if self._is(TokenKind.COLON):
                parts.append(None)
                self.current += 1
                is_slice = True
            else:
                parts.append(self.parse_expression())
                if self._is(TokenKind.COLON):
                    self.current += 1
                    is_slice = True

        if not parts:
            raise TemplateParserError("Expected at least one argument for member/slice expression")

        if is_slice:
            if len(parts) > 3:
                raise TemplateParserError(
                    "Expected 0-3 arguments for slice expression",
                    details={"found": len(parts)},
                )
            start, stop, step = (parts + [None, None, None])[:3]
            return SliceExpression(start, stop, step)

        # ``parts`` holds exactly one entry when no colon was seen.
        return parts[0]

    def _parse_args(self) -> tuple[Expression, ...]:
        self._expect(TokenKind.OPEN_PAREN, "Expected opening parenthesis for arguments list")

        args: list[Expression] = []
        while not self._is(TokenKind.CLOSE_PAREN):
            if self._peek() is None:
                raise TemplateParserError("Unexpected end of input: expected )")

            argument = self.parse_expression()
            if self._is(TokenKind.EQUALS):
                self.current += 1
                if not isinstance(argument, Identifier):
                    raise TemplateParserError(
                        f"Expected identifier for keyword argument, got {argument.type}",
                        details={"found": argument.type},
                    )
                argument = KeywordArgumentExpression(argument, self.parse_expression())
            args.append(argument)

            if not self._is(TokenKind.CLOSE_PAREN):
                self._expect(TokenKind.COMMA, "Expected comma between arguments")

        self._expect(TokenKind.CLOSE_PAREN, "Expected closing parenthesis for arguments list")
        return tuple(args)

    def _parse_primary_expression(self) -> Expression:
        token = self._advance()

        match token.kind:
            case TokenKind.NUMERIC_LITERAL:
                return NumericLiteral(int(token.value))
            case TokenKind.STRING_LITERAL:
                return StringLiteral(token.value)
            case TokenKind.BOOLEAN_LITERAL:
                return BooleanLiteral(token.value == "true")
            case TokenKind.NULL_LITERAL:
                return NullLiteral()
            case TokenKind.IDENTIFIER:
                return Identifier(token.value)
            case TokenKind.OPEN_PAREN:
                expression = self._parse_expression_sequence()
                self._expect(TokenKind.CLOSE_PAREN, "Expected closing parenthesis")
                return expression
            case TokenKind.OPEN_SQUARE_BRACKET:
                values: list[Expression] = []
                while not self._is(TokenKind.CLOSE_SQUARE_BRACKET):
                    values.append(self.parse_expression())
                    if not self._is(TokenKind.CLOSE_SQUARE_BRACKET):
                        self._expect(TokenKind.COMMA, "Expected comma in array literal")
                self._expect(TokenKind.CLOSE_SQUARE_BRACKET, "Expected closing square bracket")
                return ArrayLiteral(tuple(values))
            case TokenKind.OPEN_CURLY_BRACKET:
                pairs: list[tuple[Expression, Expression]] = []
                while not self._is(TokenKind.CLOSE_CURLY_BRACKET):
                    key = self.parse_expression()
                    self._expect(TokenKind.COLON, "Expected colon in object literal")
                    pairs.append((key, self.parse_expression()))
                    if not self._is(TokenKind.CLOSE_CURLY_BRACKET):
                        self._expect(TokenKind.COMMA, "Expected comma in object literal")
                self._expect(TokenKind.CLOSE_CURLY_BRACKET, "Expected closing curly bracket")
                return ObjectLiteral(tuple(pairs))
            case _:
                raise TemplateParserError(
                    f"Unexpected token: {token.kind.value} {token.value!r}",
                    details={"token": token.value, "kind": token.kind.value},
                )


def parse(tokens: list[Token]) -> Program:
    """
    Parse a token list into a program.

    Parameters
    ----------
    tokens : list[Token]
        Output of :func:`~.lexer.tokenize`.

    Returns
    -------
    Program
        Root of the syntax tree. Every token is consumed.

    Raises
    ------
    TemplateParserError
        If the tokens do not form a valid template.
    """
    return Parser(tokens).parse()
