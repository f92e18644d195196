"""
Compile and render entry points.

``compile_template`` turns source text into an immutable
:class:`~.nodes.Program`; ``render`` evaluates a program against a fresh
environment. A program may be rendered any number of times, from any
number of threads.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from ..exceptions import TemplateRuntimeError
from .environment import Environment
from .interpreter import Interpreter
from .lexer import PreprocessOptions, tokenize
from .nodes import Program
from .parser import parse
from .utils import make_range
from .values import (
    ArrayValue,
    BooleanValue,
    FunctionValue,
    KeywordArgumentsValue,
    NullValue,
    NumericValue,
    RuntimeValue,
    StringValue,
    to_python,
)

__all__ = ["DEFAULT_OPTIONS", "compile_template", "create_environment", "render"]

# Chat templates are written for trim_blocks + lstrip_blocks.
DEFAULT_OPTIONS = PreprocessOptions(trim_blocks=True, lstrip_blocks=True)


def compile_template(source: str, options: PreprocessOptions = DEFAULT_OPTIONS) -> Program:
    """
    Preprocess, tokenize and parse template source.

    Parameters
    ----------
    source : str
        Template text.
    options : PreprocessOptions, optional
        Whitespace handling. Defaults to ``trim_blocks`` and
        ``lstrip_blocks`` both enabled.

    Returns
    -------
    Program
        The syntax tree, reusable across renders.

    Raises
    ------
    TemplateSyntaxError
        On lexical errors. Structural errors raise the
        :class:`~chatplate.exceptions.TemplateParserError` subclass.
    """
    return parse(tokenize(source, options))


def _range(args: list[RuntimeValue], env: Environment | None) -> RuntimeValue:
    keywords: dict[str, RuntimeValue] = {}
    if args and isinstance(args[-1], KeywordArgumentsValue):
        args, keywords = args[:-1], dict(args[-1].value)
    if set(keywords) - {"step"} or (keywords and len(args) not in (1, 2)):
        raise TemplateRuntimeError(
            "range() accepts 'step' as its only keyword, after stop or start and stop",
            details={"keywords": sorted(keywords)},
        )
    values = [*args, *keywords.values()]
    if not 1 <= len(values) <= 3 or not all(
        isinstance(arg, NumericValue) and isinstance(arg.value, int) for arg in values
    ):
        raise TemplateRuntimeError(
            "range() expects 1 to 3 integer arguments",
            details={"args": [arg.type for arg in values]},
        )
    numbers = [arg.value for arg in values]
    if keywords and len(args) == 1:
        numbers.insert(0, 0)
    return ArrayValue(tuple(NumericValue(n) for n in make_range(*numbers)))


def _raise_exception(args: list[RuntimeValue], env: Environment | None) -> RuntimeValue:
    match args:
        case [StringValue(value=message), *_]:
            pass
        case [other, *_]:
            message = str(to_python(other))
        case _:
            message = "raise_exception() called"
    raise TemplateRuntimeError(message, details={"source": "raise_exception"})


def create_environment(variables: Mapping[str, Any] | None = None) -> Environment:
    """
    Build the root scope for one render.

    The scope holds ``true``, ``false``, ``True``, ``False``, ``None``,
    ``range`` and ``raise_exception``; ``variables`` are then declared on
    top, so redeclaring any of those names raises
    :class:`~chatplate.exceptions.TemplateSyntaxError`.
    """
    env = Environment()
    env.declare("true", BooleanValue(True))
    env.declare("false", BooleanValue(False))
    env.declare("True", BooleanValue(True))
    env.declare("False", BooleanValue(False))
    env.declare("None", NullValue())
    env.declare("range", FunctionValue(_range, "range"))
    env.declare("raise_exception", FunctionValue(_raise_exception, "raise_exception"))

    for name, value in (variables or {}).items():
        env.set(name, value)
    return env


def render(
    program: Program,
    variables: Mapping[str, Any] | None = None,
    *,
    filters: Mapping[str, Callable[..., Any]] | None = None,
    strict: bool = False,
) -> str:
    """
    Render a compiled program.

    Parameters
    ----------
    program : Program
        Output of :func:`compile_template`.
    variables : Mapping[str, Any], optional
        Host values made available to the template.
    filters : Mapping[str, Callable], optional
        Host filters, checked before the built-in filters.
    strict : bool, default False
        Raise on rendering undefined values instead of skipping them.

    Returns
    -------
    str
        The rendered text.

    Raises
    ------
    TemplateError
        Any evaluation failure. No partial output is returned.
    """
    env = create_environment(variables)
    return Interpreter(env, filters=filters, strict=strict).run(program).value
