"""
Runtime value model.

Every value a template manipulates is one of the :class:`RuntimeValue`
subclasses below. Host (Python) values enter through :func:`from_python`
and leave through :func:`to_python`.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..exceptions import TemplateRuntimeError, TemplateValueError

if TYPE_CHECKING:
    from .environment import Environment

__all__ = [
    "RuntimeValue",
    "NumericValue",
    "BooleanValue",
    "StringValue",
    "NullValue",
    "UndefinedValue",
    "ArrayValue",
    "ObjectValue",
    "KeywordArgumentsValue",
    "FunctionValue",
    "from_python",
    "to_python",
]

NativeFunction = Callable[[list["RuntimeValue"], "Environment | None"], "RuntimeValue"]


class RuntimeValue:
    """Base class for template values.

    ``bool(value)`` gives template truthiness.
    """

    __slots__ = ()

    @property
    def type(self) -> str:
        return type(self).__name__

    @property
    def builtins(self) -> dict[str, FunctionValue]:
        """Methods reachable through member access, bound to this value."""
        return {}

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class NumericValue(RuntimeValue):
    value: int | float

    def __bool__(self) -> bool:
        return self.value != 0


@dataclass(frozen=True, slots=True)
class BooleanValue(RuntimeValue):
    value: bool

    def __bool__(self) -> bool:
        return self.value


@dataclass(frozen=True, slots=True)
class NullValue(RuntimeValue):
    @property
    def value(self) -> None:
        return None

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class UndefinedValue(RuntimeValue):
    @property
    def value(self) -> None:
        return None

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class StringValue(RuntimeValue):
    value: str

    def __bool__(self) -> bool:
        return bool(self.value)

    @property
    def builtins(self) -> dict[str, FunctionValue]:
        s = self.value

        def strip_with(method: Callable[..., str]) -> NativeFunction:
            def call(args: list[RuntimeValue], env: Environment | None) -> RuntimeValue:
                chars = _string_args(args, method.__name__, max_count=1)
                return StringValue(method(s, *chars))

            return call

        def affix_check(method: Callable[[str, str], bool]) -> NativeFunction:
            def call(args: list[RuntimeValue], env: Environment | None) -> RuntimeValue:
                (affix,) = _string_args(args, method.__name__, min_count=1, max_count=1)
                return BooleanValue(method(s, affix))

            return call

        def split(args: list[RuntimeValue], env: Environment | None) -> RuntimeValue:
            separator = _string_args(args, "split", max_count=1)
            return ArrayValue(tuple(StringValue(part) for part in s.split(*separator)))

        def replace(args: list[RuntimeValue], env: Environment | None) -> RuntimeValue:
            match args:
                case [StringValue(value=old), StringValue(value=new)]:
                    return StringValue(s.replace(old, new))
                case [StringValue(value=old), StringValue(value=new), NumericValue(value=int(count))]:
                    return StringValue(s.replace(old, new, count))
            raise TemplateRuntimeError(
                "replace() expects two string arguments and an optional count",
                details={"args": [arg.type for arg in args]},
            )

        return {
            "upper": FunctionValue(lambda args, env: StringValue(s.upper()), "upper"),
            "lower": FunctionValue(lambda args, env: StringValue(s.lower()), "lower"),
            "title": FunctionValue(lambda args, env: StringValue(s.title()), "title"),
            "length": FunctionValue(lambda args, env: NumericValue(len(s)), "length"),
            "strip": FunctionValue(strip_with(str.strip), "strip"),
            "lstrip": FunctionValue(strip_with(str.lstrip), "lstrip"),
            "rstrip": FunctionValue(strip_with(str.rstrip), "rstrip"),
            "startswith": FunctionValue(affix_check(str.startswith), "startswith"),
            "endswith": FunctionValue(affix_check(str.endswith), "endswith"),
            "split": FunctionValue(split, "split"),
            "replace": FunctionValue(replace, "replace"),
        }


@dataclass(frozen=True, slots=True)
class ArrayValue(RuntimeValue):
    value: tuple[RuntimeValue, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.value)

    @property
    def builtins(self) -> dict[str, FunctionValue]:
        items = self.value
        return {
            "length": FunctionValue(lambda args, env: NumericValue(len(items)), "length"),
        }


@dataclass(slots=True)
class ObjectValue(RuntimeValue):
    """String-keyed mapping. The only value kind that is mutated in place."""

    value: dict[str, RuntimeValue] = dataclasses.field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.value)

    @property
    def builtins(self) -> dict[str, FunctionValue]:
        mapping = self.value

        def get(args: list[RuntimeValue], env: Environment | None) -> RuntimeValue:
            match args:
                case [StringValue(value=key)]:
                    return mapping.get(key, NullValue())
                case [StringValue(value=key), default]:
                    return mapping.get(key, default)
            raise TemplateRuntimeError(
                "Object.get() expects a string key and an optional default",
                details={"args": [arg.type for arg in args]},
            )

        return {
            "get": FunctionValue(get, "get"),
            "items": FunctionValue(
                lambda args, env: ArrayValue(
                    tuple(ArrayValue((StringValue(k), v)) for k, v in mapping.items())
                ),
                "items",
            ),
            "keys": FunctionValue(
                lambda args, env: ArrayValue(tuple(StringValue(k) for k in mapping)), "keys"
            ),
            "values": FunctionValue(lambda args, env: ArrayValue(tuple(mapping.values())), "values"),
        }


@dataclass(slots=True)
class KeywordArgumentsValue(ObjectValue):
    """Trailing object holding the ``name=value`` arguments of a call."""


@dataclass(frozen=True, eq=False, slots=True)
class FunctionValue(RuntimeValue):
    """Callable value. ``value`` receives evaluated arguments and the calling scope."""

    value: NativeFunction
    name: str = "<function>"

    def __call__(self, args: list[RuntimeValue], env: Environment | None = None) -> RuntimeValue:
        return self.value(args, env)


def _string_args(
    args: list[RuntimeValue], name: str, *, min_count: int = 0, max_count: int
) -> list[str]:
    if not min_count <= len(args) <= max_count or not all(
        isinstance(arg, StringValue) for arg in args
    ):
        raise TemplateRuntimeError(
            f"{name}() expects {min_count}-{max_count} string arguments",
            details={"args": [arg.type for arg in args]},
        )
    return [arg.value for arg in args]


# =============================================================================
# Host conversion
# =============================================================================


def _is_pydantic_model(value: Any) -> bool:
    """Check for a Pydantic model instance (without importing pydantic)."""
    cls = type(value)
    return hasattr(cls, "model_dump") and hasattr(cls, "model_fields")


def _wrap_host_callable(func: Callable[..., Any]) -> NativeFunction:
    def call(args: list[RuntimeValue], env: Environment | None) -> RuntimeValue:
        kwargs: dict[str, Any] = {}
        if args and isinstance(args[-1], KeywordArgumentsValue):
            kwargs = to_python(args[-1])
            args = args[:-1]
        return from_python(func(*[to_python(arg) for arg in args], **kwargs))

    return call


def from_python(value: Any) -> RuntimeValue:
    """
    Convert a Python value into a template value.

    Parameters
    ----------
    value : Any
        bool, int, float, str, None, list, tuple, str-keyed mapping,
        dataclass instance, Pydantic model, callable, or an existing
        :class:`RuntimeValue`. Containers are converted recursively.

    Returns
    -------
    RuntimeValue
        The converted value.

    Raises
    ------
    TemplateValueError
        If the value (or something nested in it) has no template equivalent.
    """
    if isinstance(value, RuntimeValue):
        return value
    if value is None:
        return NullValue()
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return BooleanValue(value)
    if isinstance(value, (int, float)):
        return NumericValue(value)
    if isinstance(value, str):
        return StringValue(value)
    if isinstance(value, (list, tuple)):
        return ArrayValue(tuple(from_python(item) for item in value))
    if isinstance(value, Mapping):
        converted: dict[str, RuntimeValue] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise TemplateValueError(
                    f"Object keys must be strings, got {type(key).__name__}",
                    details={"key": repr(key)},
                )
            converted[key] = from_python(item)
        return ObjectValue(converted)
    if _is_pydantic_model(value):
        return from_python(value.model_dump())
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return from_python(dataclasses.asdict(value))
    if callable(value):
        return FunctionValue(_wrap_host_callable(value), getattr(value, "__name__", "<function>"))
    raise TemplateValueError(
        f"Cannot convert value of type {type(value).__name__} to a template value",
        details={"type": type(value).__name__},
    )


def to_python(value: RuntimeValue) -> Any:
    """
    Convert a template value back into plain Python data.

    Arrays become lists, objects become dicts, ``Null`` and ``Undefined``
    become ``None`` and functions become Python callables.
    """
    match value:
        case ArrayValue(value=items):
            return [to_python(item) for item in items]
        case ObjectValue(value=mapping):
            return {key: to_python(item) for key, item in mapping.items()}
        case NullValue() | UndefinedValue():
            return None
        case FunctionValue():
            return lambda *args: to_python(value([from_python(arg) for arg in args]))
        case _:
            return value.value
