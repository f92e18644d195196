"""
Template syntax tree.

Nodes are frozen dataclasses with tuple children, so a compiled
:class:`Program` is immutable and can be rendered from many threads.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "Node",
    "Statement",
    "Expression",
    "Program",
    "SetStatement",
    "IfStatement",
    "ForStatement",
    "MemberExpression",
    "CallExpression",
    "Identifier",
    "Literal",
    "NumericLiteral",
    "StringLiteral",
    "BooleanLiteral",
    "NullLiteral",
    "ArrayLiteral",
    "TupleLiteral",
    "ObjectLiteral",
    "BinaryExpression",
    "FilterExpression",
    "TestExpression",
    "UnaryExpression",
    "SliceExpression",
    "KeywordArgumentExpression",
    "TernaryExpression",
]


class Node:
    __slots__ = ()

    @property
    def type(self) -> str:
        return type(self).__name__


class Statement(Node):
    __slots__ = ()


class Expression(Statement):
    """A statement that produces a value."""

    __slots__ = ()


# =============================================================================
# Statements
# =============================================================================


@dataclass(frozen=True, slots=True)
class Program(Statement):
    body: tuple[Statement, ...]


@dataclass(frozen=True, slots=True)
class SetStatement(Statement):
    """``value`` is itself a :class:`SetStatement` for chained assignments."""

    assignee: Expression
    value: Statement


@dataclass(frozen=True, slots=True)
class IfStatement(Statement):
    test: Expression
    body: tuple[Statement, ...]
    alternate: tuple[Statement, ...]


@dataclass(frozen=True, slots=True)
class ForStatement(Statement):
    """``loopvar`` is an :class:`Identifier` or a :class:`TupleLiteral`."""

    loopvar: Expression
    iterable: Expression
    body: tuple[Statement, ...]


# =============================================================================
# Expressions
# =============================================================================


@dataclass(frozen=True, slots=True)
class Identifier(Expression):
    value: str


@dataclass(frozen=True, slots=True)
class MemberExpression(Expression):
    """``object.property`` or, when ``computed``, ``object[property]``."""

    object: Expression
    property: Expression
    computed: bool


@dataclass(frozen=True, slots=True)
class CallExpression(Expression):
    callee: Expression
    args: tuple[Expression, ...]


class Literal(Expression):
    __slots__ = ()


@dataclass(frozen=True, slots=True)
class NumericLiteral(Literal):
    value: int | float


@dataclass(frozen=True, slots=True)
class StringLiteral(Literal):
    value: str


@dataclass(frozen=True, slots=True)
class BooleanLiteral(Literal):
    value: bool


@dataclass(frozen=True, slots=True)
class NullLiteral(Literal):
    pass


@dataclass(frozen=True, slots=True)
class ArrayLiteral(Literal):
    value: tuple[Expression, ...]


@dataclass(frozen=True, slots=True)
class TupleLiteral(Literal):
    value: tuple[Expression, ...]


@dataclass(frozen=True, slots=True)
class ObjectLiteral(Literal):
    """Key/value pairs in source order."""

    value: tuple[tuple[Expression, Expression], ...]


@dataclass(frozen=True, slots=True)
class BinaryExpression(Expression):
    operator: str
    left: Expression
    right: Expression


@dataclass(frozen=True, slots=True)
class FilterExpression(Expression):
    """``filter`` is an :class:`Identifier` or a :class:`CallExpression`."""

    operand: Expression
    filter: Expression


@dataclass(frozen=True, slots=True)
class TestExpression(Expression):
    operand: Expression
    negate: bool
    test: Identifier
    args: tuple[Expression, ...] = ()


@dataclass(frozen=True, slots=True)
class UnaryExpression(Expression):
    operator: str
    argument: Expression


@dataclass(frozen=True, slots=True)
class SliceExpression(Expression):
    start: Expression | None = None
    stop: Expression | None = None
    step: Expression | None = None


@dataclass(frozen=True, slots=True)
class KeywordArgumentExpression(Expression):
    key: Identifier
    value: Expression


@dataclass(frozen=True, slots=True)
class TernaryExpression(Expression):
    """``true_expr if condition else false_expr``."""

    condition: Expression
    true_expr: Expression
    false_expr: Expression
