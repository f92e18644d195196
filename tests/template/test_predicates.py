"""
Tests for ``is`` tests.

Covers every built-in test, negation with ``is not``, test arguments and
unknown test names.
"""

import pytest

from chatplate.exceptions import TemplateRuntimeError

VALUES = {
    "b": True,
    "f": False,
    "n": 3,
    "x": 2.5,
    "s": "text",
    "u": "TEXT",
    "none_": None,
    "items": [1],
    "obj": {"a": 1},
    "fn": len,
}


def holds(Template, expression):
    return Template("{{ 'y' if " + expression + " else 'n' }}")(**VALUES) == "y"


class TestBuiltinTests:
    """Tests for each built-in test."""

    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("b is boolean", True),
            ("n is boolean", False),
            ("fn is callable", True),
            ("s is callable", False),
            ("n is odd", True),
            ("n is even", False),
            ("4 is even", True),
            ("f is false", True),
            ("b is false", False),
            ("b is true", True),
            ("n is true", False),
            ("n is number", True),
            ("x is number", True),
            ("s is number", False),
            ("n is integer", True),
            ("x is integer", False),
            ("items is iterable", True),
            ("s is iterable", True),
            ("obj is iterable", False),
            ("s is lower", True),
            ("u is lower", False),
            ("u is upper", True),
            ("n is upper", False),
            ("none_ is none", True),
            ("missing is none", False),
            ("s is defined", True),
            ("missing is defined", False),
            ("none_ is defined", True),
            ("missing is undefined", True),
            ("s is string", True),
            ("n is string", False),
            ("obj is mapping", True),
            ("items is mapping", False),
            ("items is sequence", True),
            ("s is sequence", True),
            ("obj is sequence", False),
        ],
    )
    def test_builtin(self, Template, expression, expected):
        """Each test classifies values by kind."""
        assert holds(Template, expression) is expected

    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("n is equalto(3)", True),
            ("n is equalto(4)", False),
            ("s is equalto('text')", True),
            ("s is equalto(3)", False),
        ],
    )
    def test_equalto(self, Template, expression, expected):
        """equalto compares against its argument."""
        assert holds(Template, expression) is expected


class TestNegation:
    """Tests for ``is not``."""

    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("missing is not defined", True),
            ("s is not defined", False),
            ("none_ is not none", False),
            ("s is not string", False),
        ],
    )
    def test_is_not(self, Template, expression, expected):
        """``is not`` inverts the result."""
        assert holds(Template, expression) is expected

    def test_optional_tools_pattern(self, Template):
        """The common ``tools is defined and tools`` guard."""
        t = Template("{% if tools is defined and tools %}T{% else %}-{% endif %}")
        assert t() == "-"
        assert t(tools=[]) == "-"
        assert t(tools=[{"name": "f"}]) == "T"


class TestTestErrors:
    """Tests for misuse of tests."""

    @pytest.mark.parametrize("expression", ["s is odd", "x is even", "none_ is odd"])
    def test_parity_needs_integer(self, Template, expression):
        """odd/even only apply to integers."""
        with pytest.raises(TemplateRuntimeError, match="Cannot apply test"):
            holds(Template, expression)

    def test_unknown_test(self, Template):
        """Unknown test names raise."""
        with pytest.raises(TemplateRuntimeError, match="Unknown test: prime"):
            holds(Template, "n is prime")

    def test_equalto_needs_one_argument(self, Template):
        """equalto takes exactly one argument."""
        with pytest.raises(TemplateRuntimeError, match="exactly one argument"):
            holds(Template, "n is equalto")
