"""
Tree-walking evaluator for compiled templates.

The :class:`Interpreter` walks a :class:`~.nodes.Program` against an
:class:`~.environment.Environment` and produces the rendered string. All
failures raise subclasses of :class:`~chatplate.exceptions.TemplateError`;
no partial output is ever returned.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from ..exceptions import (
    TemplateNotSupportedError,
    TemplateRuntimeError,
    TemplateUndefinedError,
)
from .environment import Environment
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
from .utils import slice_sequence
from .values import (
    ArrayValue,
    BooleanValue,
    FunctionValue,
    KeywordArgumentsValue,
    NullValue,
    NumericValue,
    ObjectValue,
    RuntimeValue,
    StringValue,
    UndefinedValue,
    from_python,
    to_python,
)

__all__ = ["Interpreter"]

_EQUALITY_KINDS = (StringValue, NumericValue, BooleanValue)


class Interpreter:
    """
    Evaluate template syntax trees.

    Args:
        env: Root scope holding the render variables. A fresh one is
            created when omitted.
        filters: Host filters, consulted before the built-in filters.
            Each is called as ``func(value, *args, **kwargs)`` with plain
            Python values and its result is converted back.
        strict: When True, rendering an undefined value raises
            :class:`TemplateUndefinedError` instead of producing nothing.

    Example:
        >>> env = Environment()
        >>> env.set("name", "World")
        >>> program = parse(tokenize("Hello {{ name }}!"))
        >>> Interpreter(env).run(program).value
        'Hello World!'
    """

    def __init__(
        self,
        env: Environment | None = None,
        *,
        filters: Mapping[str, Callable[..., Any]] | None = None,
        strict: bool = False,
    ) -> None:
        self.global_env = env if env is not None else Environment()
        self.filters = dict(filters or {})
        self.strict = strict

    def run(self, program: Program) -> StringValue:
        return self._evaluate_block(program.body, self.global_env)

    def evaluate(self, node: Statement, env: Environment) -> RuntimeValue:
        match node:
            case Program(body=body):
                return self._evaluate_block(body, env)
            case SetStatement():
                return self._evaluate_set(node, env)
            case IfStatement():
                test = self.evaluate(node.test, env)
                return self._evaluate_block(node.body if test else node.alternate, env)
            case ForStatement():
                return self._evaluate_for(node, env)
            case NumericLiteral(value=number):
                return NumericValue(number)
            case StringLiteral(value=text):
                return StringValue(text)
            case BooleanLiteral(value=flag):
                return BooleanValue(flag)
            case NullLiteral():
                return NullValue()
            case ArrayLiteral(value=items) | TupleLiteral(value=items):
                return ArrayValue(tuple(self.evaluate(item, env) for item in items))
            case ObjectLiteral():
                return self._evaluate_object_literal(node, env)
            case Identifier(value=name):
                return env.lookup(name)
            case TernaryExpression():
                branch = node.true_expr if self.evaluate(node.condition, env) else node.false_expr
                return self.evaluate(branch, env)
            case BinaryExpression():
                return self._evaluate_binary(node, env)
            case UnaryExpression():
                return self._evaluate_unary(node, env)
            case MemberExpression():
                return self._evaluate_member(node, env)
            case CallExpression():
                return self._evaluate_call(node, env)
            case FilterExpression():
                return self._evaluate_filter(node, env)
            case TestExpression():
                return self._evaluate_test(node, env)
            case KeywordArgumentExpression():
                raise TemplateRuntimeError("Keyword arguments are only allowed in calls")
            case SliceExpression():
                raise TemplateRuntimeError("Slices are only allowed inside []")
            case _:
                raise TemplateRuntimeError(
                    f"Unknown node type: {node.type}", details={"node": node.type}
                )

    # =========================================================================
    # Statements
    # =========================================================================

    def _evaluate_block(self, statements: Sequence[Statement], env: Environment) -> StringValue:
        parts: list[str] = []
        for statement in statements:
            value = self.evaluate(statement, env)
            match value:
                case NullValue():
                    continue
                case UndefinedValue():
                    if self.strict:
                        raise _undefined_error(statement)
                case NumericValue(value=number):
                    parts.append(str(number))
                case StringValue(value=text):
                    parts.append(text)
                case _:
                    raise TemplateRuntimeError(
                        f"Cannot render value of type {value.type}",
                        details={"type": value.type},
                    )
        return StringValue("".join(parts))

    def _evaluate_set(self, node: SetStatement, env: Environment) -> NullValue:
        value = self.evaluate(node.value, env)

        match node.assignee:
            case Identifier(value=name):
                env.assign(name, value)
            case MemberExpression(object=target_node, property=Identifier(value=key), computed=False):
                target = self.evaluate(target_node, env)
                if not isinstance(target, ObjectValue):
                    raise TemplateRuntimeError(
                        f"Cannot assign to member of non-object type {target.type}",
                        details={"type": target.type},
                    )
                target.value[key] = value
            case _:
                raise TemplateRuntimeError(
                    f"Invalid assignee type: {node.assignee.type}",
                    details={"assignee": node.assignee.type},
                )
        return NullValue()

    def _evaluate_for(self, node: ForStatement, env: Environment) -> StringValue:
        scope = Environment(env)

        iterable = self.evaluate(node.iterable, scope)
        if not isinstance(iterable, ArrayValue):
            raise TemplateRuntimeError(
                f"Expected iterable type in for loop: got {iterable.type}",
                details={"type": iterable.type},
            )

        items = iterable.value
        length = len(items)
        parts: list[str] = []
        for i, current in enumerate(items):
            scope.set_variable(
                "loop",
                ObjectValue(
                    {
                        "index": NumericValue(i + 1),
                        "index0": NumericValue(i),
                        "revindex": NumericValue(length - i),
                        "revindex0": NumericValue(length - i - 1),
                        "first": BooleanValue(i == 0),
                        "last": BooleanValue(i == length - 1),
                        "length": NumericValue(length),
                        "previtem": items[i - 1] if i > 0 else UndefinedValue(),
                        "nextitem": items[i + 1] if i < length - 1 else UndefinedValue(),
                    }
                ),
            )
            self._bind_loop_variable(node.loopvar, current, scope)
            parts.append(self._evaluate_block(node.body, scope).value)

        return StringValue("".join(parts))

    def _bind_loop_variable(
        self, loopvar: Expression, current: RuntimeValue, scope: Environment
    ) -> None:
        match loopvar:
            case Identifier(value=name):
                scope.set_variable(name, current)
            case TupleLiteral(value=targets):
                if not isinstance(current, ArrayValue):
                    raise TemplateRuntimeError(
                        f"Cannot unpack non-iterable type: {current.type}",
                        details={"type": current.type},
                    )
                if len(current.value) < len(targets):
                    raise TemplateRuntimeError(
                        "Too few items to unpack",
                        details={"expected": len(targets), "found": len(current.value)},
                    )
                if len(current.value) > len(targets):
                    raise TemplateRuntimeError(
                        "Too many items to unpack",
                        details={"expected": len(targets), "found": len(current.value)},
                    )
                for target, item in zip(targets, current.value):
                    if not isinstance(target, Identifier):
                        raise TemplateRuntimeError(
                            f"Cannot unpack into non-identifier type: {target.type}",
                            details={"target": target.type},
                        )
                    scope.set_variable(target.value, item)
            case _:
                raise TemplateRuntimeError(
                    f"Invalid loop variable type: {loopvar.type}",
                    details={"loopvar": loopvar.type},
                )

    # =========================================================================
    # Operators
    # =========================================================================

    def _evaluate_binary(self, node: BinaryExpression, env: Environment) -> RuntimeValue:
        left = self.evaluate(node.left, env)

        # Logical operators short-circuit and return an operand
        if node.operator == "and":
            return self.evaluate(node.right, env) if left else left
        if node.operator == "or":
            return left if left else self.evaluate(node.right, env)

        right = self.evaluate(node.right, env)
        return self.apply_binary(node.operator, left, right)

    def apply_binary(self, op: str, left: RuntimeValue, right: RuntimeValue) -> RuntimeValue:
        """Apply a non-logical binary operator to two evaluated operands."""
        if op in ("==", "!="):
            return BooleanValue(_compare_equality(op, left, right))

        if op == "~":
            return StringValue(_tilde_text(left) + _tilde_text(right))

        if isinstance(left, (UndefinedValue, NullValue)) or isinstance(
            right, (UndefinedValue, NullValue)
        ):
            raise TemplateRuntimeError(
                f"Cannot perform operation '{op}' on {left.type} and {right.type}",
                details={"operator": op, "left": left.type, "right": right.type},
            )

        match left, right:
            case NumericValue(value=a), NumericValue(value=b):
                return _numeric_binary(op, a, b)

            case ArrayValue(value=a), ArrayValue(value=b) if op == "+":
                return ArrayValue(a + b)

            case _, ArrayValue(value=items) if op in ("in", "not in"):
                found = any(left == item for item in items)
                return BooleanValue(found if op == "in" else not found)

            case ArrayValue(), ArrayValue():
                pass

            case _, ArrayValue():
                raise _not_supported(op, left, right)

            case (StringValue(), _) | (_, StringValue()) if op == "+":
                return StringValue(_concat_text(left, op) + _concat_text(right, op))

            case StringValue(value=a), StringValue(value=b):
                match op:
                    case "in":
                        return BooleanValue(a in b)
                    case "not in":
                        return BooleanValue(a not in b)
                    case "<":
                        return BooleanValue(a < b)
                    case ">":
                        return BooleanValue(a > b)
                    case "<=":
                        return BooleanValue(a <= b)
                    case ">=":
                        return BooleanValue(a >= b)

            case StringValue(value=key), ObjectValue(value=mapping):
                if op in ("in", "not in"):
                    found = key in mapping
                    return BooleanValue(found if op == "in" else not found)
                raise _not_supported(op, left, right)

            case _, ObjectValue():
                raise _not_supported(op, left, right)

        raise TemplateRuntimeError(
            f"Unknown operator '{op}' between {left.type} and {right.type}",
            details={"operator": op, "left": left.type, "right": right.type},
        )

    def _evaluate_unary(self, node: UnaryExpression, env: Environment) -> RuntimeValue:
        argument = self.evaluate(node.argument, env)
        match node.operator, argument:
            case "not", _:
                return BooleanValue(not argument)
            case "-", NumericValue(value=number):
                return NumericValue(-number)
            case "+", NumericValue(value=number):
                return NumericValue(+number)
        raise TemplateRuntimeError(
            f"Unknown operator '{node.operator}' for {argument.type}",
            details={"operator": node.operator, "type": argument.type},
        )

    # =========================================================================
    # Member access, slicing and calls
    # =========================================================================

    def _evaluate_member(self, node: MemberExpression, env: Environment) -> RuntimeValue:
        obj = self.evaluate(node.object, env)

        if not node.computed:
            # The parser only builds non-computed access with an identifier
            prop: RuntimeValue = StringValue(node.property.value)  # type: ignore[attr-defined]
        elif isinstance(node.property, SliceExpression):
            return self._evaluate_slice(obj, node.property, env)
        else:
            prop = self.evaluate(node.property, env)

        return get_member(obj, prop)

    def _evaluate_slice(
        self, obj: RuntimeValue, node: SliceExpression, env: Environment
    ) -> RuntimeValue:
        if not isinstance(obj, (ArrayValue, StringValue)):
            raise TemplateRuntimeError(
                f"Slice access is only supported on arrays and strings, got {obj.type}",
                details={"type": obj.type},
            )

        bounds: list[int | None] = []
        for part in (node.start, node.stop, node.step):
            if part is None:
                bounds.append(None)
                continue
            match self.evaluate(part, env):
                case NumericValue(value=int(bound)):
                    bounds.append(bound)
                case UndefinedValue() | NullValue():
                    bounds.append(None)
                case other:
                    raise TemplateRuntimeError(
                        f"Slice bounds must be integers, got {other.type}",
                        details={"type": other.type},
                    )

        result = slice_sequence(obj.value, *bounds)
        return StringValue(result) if isinstance(obj, StringValue) else ArrayValue(result)

    def _evaluate_args(
        self, arg_nodes: Sequence[Expression], env: Environment
    ) -> list[RuntimeValue]:
        """Evaluate call arguments; keyword arguments become a trailing object."""
        args: list[RuntimeValue] = []
        kwargs: dict[str, RuntimeValue] = {}
        for arg in arg_nodes:
            if isinstance(arg, KeywordArgumentExpression):
                kwargs[arg.key.value] = self.evaluate(arg.value, env)
            else:
                args.append(self.evaluate(arg, env))
        if kwargs:
            args.append(KeywordArgumentsValue(kwargs))
        return args

    def _evaluate_call(self, node: CallExpression, env: Environment) -> RuntimeValue:
        args = self._evaluate_args(node.args, env)
        callee = self.evaluate(node.callee, env)
        if not isinstance(callee, FunctionValue):
            raise TemplateRuntimeError(
                f"Cannot call something that is not a function: got {callee.type}",
                details={"type": callee.type},
            )
        return callee(args, env)

    def _evaluate_object_literal(self, node: ObjectLiteral, env: Environment) -> ObjectValue:
        mapping: dict[str, RuntimeValue] = {}
        for key_node, value_node in node.value:
            key = self.evaluate(key_node, env)
            if not isinstance(key, StringValue):
                raise TemplateRuntimeError(
                    f"Object keys must be strings: got {key.type}", details={"type": key.type}
                )
            mapping[key.value] = self.evaluate(value_node, env)
        return ObjectValue(mapping)

    # =========================================================================
    # Filters and tests
    # =========================================================================

    def _evaluate_filter(self, node: FilterExpression, env: Environment) -> RuntimeValue:
        operand = self.evaluate(node.operand, env)

        match node.filter:
            case Identifier(value=name):
                args: list[RuntimeValue] = []
            case CallExpression(callee=Identifier(value=name), args=arg_nodes):
                args = self._evaluate_args(arg_nodes, env)
            case _:
                raise TemplateRuntimeError(
                    f"Unknown filter type: {node.filter.type}", details={"type": node.filter.type}
                )

        return self.apply_filter(name, operand, args)

    def apply_filter(
        self, name: str, operand: RuntimeValue, args: list[RuntimeValue]
    ) -> RuntimeValue:
        """Apply a host or built-in filter to an evaluated operand."""
        positional, kwargs = _split_args(args)

        if name in self.filters:
            result = self.filters[name](
                to_python(operand),
                *[to_python(arg) for arg in positional],
                **{key: to_python(value) for key, value in kwargs.items()},
            )
            return from_python(result)

        match name:
            case "default" | "d":
                fallback = _pick_arg(positional, kwargs, 0, "default_value", StringValue(""))
                boolean = _pick_arg(positional, kwargs, 1, "boolean", BooleanValue(False))
                if isinstance(operand, UndefinedValue) or (boolean and not operand):
                    return fallback
                return operand
            case "tojson":
                indent = _pick_arg(positional, kwargs, 0, "indent", NullValue())
                try:
                    return StringValue(
                        json.dumps(to_python(operand), ensure_ascii=False, indent=indent.value)
                    )
                except TypeError as e:
                    raise TemplateRuntimeError(
                        f"Cannot serialize {operand.type} to JSON: {e}",
                        details={"type": operand.type},
                    ) from e
            case "string":
                if isinstance(operand, StringValue):
                    return operand
                if isinstance(operand, UndefinedValue):
                    return StringValue("")
                if isinstance(operand, BooleanValue):
                    return StringValue(_concat_text(operand, "string"))
                return StringValue(str(to_python(operand)))

        match operand:
            case ArrayValue(value=items):
                match name:
                    case "list":
                        return operand
                    case "first":
                        return items[0] if items else UndefinedValue()
                    case "last":
                        return items[-1] if items else UndefinedValue()
                    case "length" | "count":
                        return NumericValue(len(items))
                    case "reverse":
                        return ArrayValue(items[::-1])
                    case "sort":
                        raise TemplateNotSupportedError(
                            "Filter 'sort' is not supported", details={"filter": "sort"}
                        )
                    case "join":
                        separator = _pick_arg(positional, kwargs, 0, "d", StringValue(""))
                        if not isinstance(separator, StringValue):
                            raise TemplateRuntimeError(
                                f"join() separator must be a string, got {separator.type}",
                                details={"filter": "join", "type": separator.type},
                            )
                        return StringValue(separator.value.join(_join_text(item) for item in items))
            case StringValue(value=text):
                match name:
                    case "length" | "count":
                        return NumericValue(len(text))
                    case "upper":
                        return StringValue(text.upper())
                    case "lower":
                        return StringValue(text.lower())
                    case "title" | "capitalize":
                        return StringValue(text.title())
                    case "trim":
                        return StringValue(text.strip())
            case NumericValue(value=number):
                if name == "abs":
                    return NumericValue(abs(number))
            case ObjectValue(value=mapping):
                match name:
                    case "items":
                        return ArrayValue(
                            tuple(ArrayValue((StringValue(k), v)) for k, v in mapping.items())
                        )
                    case "length" | "count":
                        return NumericValue(len(mapping))

        raise TemplateRuntimeError(
            f"Unknown filter '{name}' for type {operand.type}",
            details={"filter": name, "type": operand.type},
        )

    def _evaluate_test(self, node: TestExpression, env: Environment) -> BooleanValue:
        operand = self.evaluate(node.operand, env)
        name = node.test.value
        test = env.tests.get(name)
        if test is None:
            raise TemplateRuntimeError(f"Unknown test: {name}", details={"test": name})
        args = self._evaluate_args(node.args, env)
        return BooleanValue(test(operand, *args) != node.negate)


# =============================================================================
# Helpers
# =============================================================================


def get_member(obj: RuntimeValue, prop: RuntimeValue) -> RuntimeValue:
    """Look up ``obj[prop]``. Misses return :class:`UndefinedValue`."""
    match obj, prop:
        case ObjectValue(value=mapping), StringValue(value=key):
            if key in mapping:
                return mapping[key]
            return obj.builtins.get(key, UndefinedValue())
        case (ArrayValue(value=sequence) | StringValue(value=sequence)), NumericValue(
            value=int(index)
        ):
            length = len(sequence)
            position = index + length if index < 0 else index
            if not 0 <= position < length:
                raise TemplateRuntimeError(
                    f"Index {index} out of range for {obj.type} of length {length}",
                    details={"index": index, "length": length},
                )
            item = sequence[position]
            return StringValue(item) if isinstance(obj, StringValue) else item
        case (ArrayValue() | StringValue()), StringValue(value=key):
            return obj.builtins.get(key, UndefinedValue())
    raise TemplateRuntimeError(
        f"Cannot access property of type {prop.type} on {obj.type}",
        details={"object": obj.type, "property": prop.type},
    )


def _compare_equality(op: str, left: RuntimeValue, right: RuntimeValue) -> bool:
    if type(left) is type(right) and isinstance(left, _EQUALITY_KINDS):
        equal = left.value == right.value
        return equal if op == "==" else not equal
    if op == "!=" and type(left) is not type(right):
        return True
    raise TemplateRuntimeError(
        f"Cannot compare {left.type} and {right.type} with '{op}'",
        details={"operator": op, "left": left.type, "right": right.type},
    )


def _numeric_binary(op: str, a: int | float, b: int | float) -> RuntimeValue:
    match op:
        case "+":
            return NumericValue(a + b)
        case "-":
            return NumericValue(a - b)
        case "*":
            return NumericValue(a * b)
        case "/" | "//" | "%" if b == 0:
            raise TemplateRuntimeError(
                f"Division by zero in '{op}'", details={"operator": op}
            )
        case "/":
            return NumericValue(a / b)
        case "//":
            return NumericValue(a // b)
        case "%":
            return NumericValue(a % b)
        case "<":
            return BooleanValue(a < b)
        case ">":
            return BooleanValue(a > b)
        case "<=":
            return BooleanValue(a <= b)
        case ">=":
            return BooleanValue(a >= b)
    raise TemplateRuntimeError(
        f"Unknown operator '{op}' between NumericValue and NumericValue",
        details={"operator": op},
    )


def _concat_text(value: RuntimeValue, op: str) -> str:
    match value:
        case StringValue(value=text):
            return text
        case NumericValue(value=number):
            return str(number)
        case BooleanValue(value=flag):
            return "true" if flag else "false"
    raise TemplateRuntimeError(
        f"Cannot concatenate {value.type} with '{op}'",
        details={"operator": op, "type": value.type},
    )


def _tilde_text(value: RuntimeValue) -> str:
    if isinstance(value, (UndefinedValue, NullValue)):
        return ""
    return _concat_text(value, "~")


def _join_text(value: RuntimeValue) -> str:
    if isinstance(value, StringValue):
        return value.value
    return str(to_python(value))


def _split_args(
    args: list[RuntimeValue],
) -> tuple[list[RuntimeValue], dict[str, RuntimeValue]]:
    if args and isinstance(args[-1], KeywordArgumentsValue):
        return args[:-1], dict(args[-1].value)
    return args, {}


def _pick_arg(
    positional: list[RuntimeValue],
    kwargs: dict[str, RuntimeValue],
    index: int,
    name: str,
    default: RuntimeValue,
) -> RuntimeValue:
    if index < len(positional):
        return positional[index]
    return kwargs.get(name, default)


def _not_supported(op: str, left: RuntimeValue, right: RuntimeValue) -> TemplateNotSupportedError:
    return TemplateNotSupportedError(
        f"Operator '{op}' is not supported between {left.type} and {right.type}",
        details={"operator": op, "left": left.type, "right": right.type},
    )


def _undefined_error(statement: Statement) -> TemplateUndefinedError:
    if isinstance(statement, Identifier):
        return TemplateUndefinedError(
            f"Undefined variable: {statement.value}", details={"name": statement.value}
        )
    return TemplateUndefinedError(
        f"Undefined value rendered from {statement.type}", details={"node": statement.type}
    )
