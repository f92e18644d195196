"""
Static analysis of compiled templates.

Finds the variables a template reads from its caller, split into those it
uses directly and those it only probes with ``is defined``-style tests or
the ``default`` filter.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .nodes import (
    ArrayLiteral,
    BinaryExpression,
    CallExpression,
    FilterExpression,
    ForStatement,
    Identifier,
    IfStatement,
    KeywordArgumentExpression,
    MemberExpression,
    Node,
    ObjectLiteral,
    Program,
    SetStatement,
    SliceExpression,
    TernaryExpression,
    TestExpression,
    TupleLiteral,
    UnaryExpression,
)

__all__ = ["TemplateVariables", "find_variables", "BUILTIN_NAMES"]

BUILTIN_NAMES = frozenset(
    {"true", "false", "True", "False", "None", "range", "raise_exception", "namespace"}
)

_GUARD_TESTS = frozenset({"defined", "undefined", "none"})
_GUARD_FILTERS = frozenset({"default", "d"})


@dataclass
class TemplateVariables:
    """
    Caller-supplied variables referenced by a template.

    Attributes
    ----------
        required: Names used directly, e.g. ``{{ name }}``.
        optional: Names only guarded, e.g. ``{% if tools is defined %}``
            or ``{{ context | default('') }}``.
    """

    required: set[str] = field(default_factory=set)
    optional: set[str] = field(default_factory=set)

    @property
    def all(self) -> set[str]:
        return self.required | self.optional


class _Collector:
    def __init__(self) -> None:
        self.required: set[str] = set()
        self.guarded: set[str] = set()

    def visit_block(self, body, bound: set[str]) -> None:
        for statement in body:
            self.visit(statement, bound)

    def visit(self, node: Node | None, bound: set[str], *, guarded: bool = False) -> None:
        match node:
            case None:
                return
            case Program(body=body):
                self.visit_block(body, bound)
            case Identifier(value=name):
                if name not in bound and name not in BUILTIN_NAMES:
                    (self.guarded if guarded else self.required).add(name)
            case SetStatement(assignee=assignee, value=value):
                self.visit(value, bound)
                if isinstance(assignee, Identifier):
                    bound.add(assignee.value)
                else:
                    self.visit(assignee, bound)
            case IfStatement(test=test, body=body, alternate=alternate):
                self.visit(test, bound)
                self.visit_block(body, bound)
                self.visit_block(alternate, bound)
            case ForStatement(loopvar=loopvar, iterable=iterable, body=body):
                self.visit(iterable, bound)
                inner = set(bound) | {"loop"}
                targets = loopvar.value if isinstance(loopvar, TupleLiteral) else (loopvar,)
                inner.update(t.value for t in targets if isinstance(t, Identifier))
                self.visit_block(body, inner)
            case MemberExpression(object=obj, property=prop, computed=computed):
                self.visit(obj, bound, guarded=guarded)
                if computed:
                    self.visit(prop, bound)
            case CallExpression(callee=callee, args=args):
                self.visit(callee, bound)
                for arg in args:
                    self.visit(arg, bound)
            case BinaryExpression(left=left, right=right):
                self.visit(left, bound)
                self.visit(right, bound)
            case UnaryExpression(argument=argument):
                self.visit(argument, bound)
            case FilterExpression(operand=operand, filter=filter_node):
                name = filter_node.value if isinstance(filter_node, Identifier) else None
                if isinstance(filter_node, CallExpression):
                    name = getattr(filter_node.callee, "value", None)
                    for arg in filter_node.args:
                        self.visit(arg, bound)
                self.visit(operand, bound, guarded=name in _GUARD_FILTERS)
            case TestExpression(operand=operand, test=test, args=args):
                self.visit(operand, bound, guarded=test.value in _GUARD_TESTS)
                for arg in args:
                    self.visit(arg, bound)
            case TernaryExpression(condition=condition, true_expr=a, false_expr=b):
                self.visit(condition, bound)
                self.visit(a, bound)
                self.visit(b, bound)
            case SliceExpression(start=start, stop=stop, step=step):
                self.visit(start, bound)
                self.visit(stop, bound)
                self.visit(step, bound)
            case KeywordArgumentExpression(value=value):
                self.visit(value, bound)
            case ArrayLiteral(value=items) | TupleLiteral(value=items):
                for item in items:
                    self.visit(item, bound)
            case ObjectLiteral(value=pairs):
                for key, value in pairs:
                    self.visit(key, bound)
                    self.visit(value, bound)


def find_variables(program: Program) -> TemplateVariables:
    """
    Collect the variables a template expects from its caller.

    Names bound inside the template (``set`` targets, loop variables,
    ``loop``) and built-in globals are excluded. A name used both directly
    and under a guard counts as required.

    Example:
        >>> program = compile_template("{{ name }}{% if extra is defined %}!{% endif %}")
        >>> find_variables(program)
        TemplateVariables(required={'name'}, optional={'extra'})
    """
    collector = _Collector()
    collector.visit(program, set())
    return TemplateVariables(
        required=collector.required,
        optional=collector.guarded - collector.required,
    )
