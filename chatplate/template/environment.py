"""
Variable scopes and shared template configuration.

:class:`Environment` is the runtime scope chain used while a template is
evaluated. :class:`TemplateEnvironment` is the user-facing container for
filters and globals shared by a group of templates.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..exceptions import (
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    ValidationError,
)
from .values import (
    ArrayValue,
    BooleanValue,
    FunctionValue,
    NullValue,
    NumericValue,
    ObjectValue,
    RuntimeValue,
    StringValue,
    UndefinedValue,
    from_python,
)

if TYPE_CHECKING:
    from .prompt import PromptTemplate

__all__ = ["Environment", "TemplateEnvironment", "TestFunction", "default_tests"]

TestFunction = Callable[..., bool]


# =============================================================================
# Tests (``x is name``)
# =============================================================================


def _numeric_parity(name: str, remainder: int) -> TestFunction:
    def test(value: RuntimeValue, *args: RuntimeValue) -> bool:
        if not isinstance(value, NumericValue) or not isinstance(value.value, int):
            raise TemplateRuntimeError(
                f"Cannot apply test '{name}' to type: {value.type}",
                details={"test": name, "type": value.type},
            )
        return value.value % 2 == remainder

    return test


def _equalto(value: RuntimeValue, *args: RuntimeValue) -> bool:
    if len(args) != 1:
        raise TemplateRuntimeError(
            "Test 'equalto' expects exactly one argument",
            details={"test": "equalto", "args": len(args)},
        )
    return value == args[0]


def default_tests() -> dict[str, TestFunction]:
    """Build a fresh table of the built-in tests."""
    return {
        "boolean": lambda value, *args: isinstance(value, BooleanValue),
        "callable": lambda value, *args: isinstance(value, FunctionValue),
        "odd": _numeric_parity("odd", 1),
        "even": _numeric_parity("even", 0),
        "false": lambda value, *args: isinstance(value, BooleanValue) and not value.value,
        "true": lambda value, *args: isinstance(value, BooleanValue) and value.value,
        "number": lambda value, *args: isinstance(value, NumericValue),
        "integer": lambda value, *args: (
            isinstance(value, NumericValue) and isinstance(value.value, int)
        ),
        "iterable": lambda value, *args: isinstance(value, (ArrayValue, StringValue)),
        "lower": lambda value, *args: (
            isinstance(value, StringValue) and value.value == value.value.lower()
        ),
        "upper": lambda value, *args: (
            isinstance(value, StringValue) and value.value == value.value.upper()
        ),
        "none": lambda value, *args: isinstance(value, NullValue),
        "defined": lambda value, *args: not isinstance(value, UndefinedValue),
        "undefined": lambda value, *args: isinstance(value, UndefinedValue),
        "equalto": _equalto,
        "string": lambda value, *args: isinstance(value, StringValue),
        "mapping": lambda value, *args: isinstance(value, ObjectValue),
        "sequence": lambda value, *args: isinstance(value, (ArrayValue, StringValue)),
    }


def _namespace(args: list[RuntimeValue], env: Environment | None) -> RuntimeValue:
    match args:
        case []:
            return ObjectValue({})
        case [ObjectValue(value=initial)]:
            return ObjectValue(dict(initial))
    raise TemplateRuntimeError(
        "namespace() expects keyword arguments or a single object",
        details={"args": [arg.type for arg in args]},
    )


# =============================================================================
# Scope chain
# =============================================================================


class Environment:
    """
    A scope in the chain of variable bindings.

    Lookups walk from this scope to the root, so inner scopes shadow outer
    ones. The root scope holds the ``namespace`` factory and the table of
    tests; child scopes share their parent's table.

    Args:
        parent: Enclosing scope, or None for a root scope.
        tests: Replacement test table. A root scope defaults to
            :func:`default_tests`, a child scope to its parent's table.

    Example:
        >>> env = Environment()
        >>> env.set("name", "Alice")
        >>> env.lookup("name")
        StringValue(value='Alice')
    """

    __slots__ = ("parent", "variables", "tests")

    def __init__(
        self,
        parent: Environment | None = None,
        *,
        tests: dict[str, TestFunction] | None = None,
    ) -> None:
        self.parent = parent
        self.variables: dict[str, RuntimeValue] = {}
        if parent is None:
            self.variables["namespace"] = FunctionValue(_namespace, "namespace")
            self.tests = default_tests() if tests is None else tests
        else:
            self.tests = parent.tests if tests is None else tests

    def set(self, name: str, value: Any) -> RuntimeValue:
        """Convert a host value and declare it in this scope."""
        return self.declare(name, from_python(value))

    def declare(self, name: str, value: RuntimeValue) -> RuntimeValue:
        if name in self.variables:
            raise TemplateSyntaxError(
                f"Variable already declared: {name}", details={"name": name}
            )
        self.variables[name] = value
        return value

    def set_variable(self, name: str, value: RuntimeValue) -> RuntimeValue:
        self.variables[name] = value
        return value

    def assign(self, name: str, value: RuntimeValue) -> RuntimeValue:
        """Overwrite ``name`` where it resolves, or bind it here if it is unbound."""
        scope = self._find(name)
        return (scope or self).set_variable(name, value)

    def resolve(self, name: str) -> Environment:
        scope = self._find(name)
        if scope is None:
            raise TemplateRuntimeError(
                f"Unknown variable: {name}", details={"name": name}
            )
        return scope

    def lookup(self, name: str) -> RuntimeValue:
        scope = self._find(name)
        if scope is None:
            return UndefinedValue()
        return scope.variables[name]

    def _find(self, name: str) -> Environment | None:
        scope: Environment | None = self
        while scope is not None:
            if name in scope.variables:
                return scope
            scope = scope.parent
        return None


# =============================================================================
# Shared template configuration
# =============================================================================


class TemplateEnvironment:
    """
    Shared configuration for a group of templates.

    Use an environment when you have multiple templates that share:

    - **Custom filters**: Date formatting, text processing, domain logic
    - **Global variables**: App name, version, feature flags, constants
    - **Default settings**: Strict mode

    Parameters
    ----------
        strict: Default strict mode for templates. When True, rendering an
            undefined value raises instead of producing an empty string.

    Example:
        >>> from chatplate import TemplateEnvironment
        >>> env = TemplateEnvironment()
        >>> env.globals["app_name"] = "MyAssistant"
        >>> env.register_filter("currency", lambda x: f"${x:,.2f}")
        >>> env.from_string("Welcome to {{ app_name }}!")()
        'Welcome to MyAssistant!'
        >>> env.from_string("Total: {{ amount | currency }}")(amount=99.5)
        'Total: $99.50'

    See Also
    --------
        PromptTemplate : For standalone templates without shared config.
    """

    def __init__(self, *, strict: bool = False):
        self._strict = strict
        self._filters: dict[str, Callable] = {}
        self._globals: dict[str, Any] = {}

    @property
    def strict(self) -> bool:
        """Default strict mode for templates created from this environment."""
        return self._strict

    @property
    def filters(self) -> dict[str, Callable]:
        """Custom filters for this environment. Modify directly or use ``register_filter()``."""
        return self._filters

    @property
    def globals(self) -> dict[str, Any]:
        """
        Global variables available to all templates in this environment.

        Partial and render-time variables take precedence over globals.
        """
        return self._globals

    def register_filter(self, name: str, func: Callable) -> TemplateEnvironment:
        """
        Register a filter for this environment.

        Returns
        -------
            Self, for method chaining.

        Raises
        ------
            ValidationError: If func is not callable.
        """
        if not callable(func):
            raise ValidationError(
                f"Filter must be callable, got {type(func).__name__}",
                details={"param": "func", "type": type(func).__name__},
            )
        self._filters[name] = func
        return self

    def from_string(self, source: str, *, strict: bool | None = None) -> PromptTemplate:
        """Create a template that uses this environment's filters and globals."""
        # Import here to avoid circular import
        from .prompt import PromptTemplate

        use_strict = self._strict if strict is None else strict
        template = PromptTemplate(source, strict=use_strict)
        for name, func in self._filters.items():
            template.register_filter(name, func)
        template._env_globals = self._globals
        return template

    def from_file(self, path: str | Path, *, strict: bool | None = None) -> PromptTemplate:
        """
        Load a template from a file with this environment's configuration.

        Raises
        ------
            TemplateNotFoundError: If the template file doesn't exist.
        """
        path = Path(path)
        if not path.is_file():
            raise TemplateNotFoundError(
                f"Template file not found: {path}", details={"path": str(path)}
            )
        return self.from_string(path.read_text(encoding="utf-8"), strict=strict)
