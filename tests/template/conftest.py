"""
Template test fixtures.

Pytest fixtures and test data for template tests.
"""

from functools import partial

import pytest


@pytest.fixture(scope="session")
def Template():
    """The PromptTemplate class, with its default (lenient) mode."""
    from chatplate import PromptTemplate

    return PromptTemplate


@pytest.fixture(scope="session")
def LenientTemplate():
    """
    Factory for lenient (strict=False) templates.

    Example:
        def test_undefined_renders_empty(LenientTemplate):
            t = LenientTemplate("{{ x }}")
            assert t() == ""
    """
    from chatplate import PromptTemplate

    return partial(PromptTemplate, strict=False)


@pytest.fixture(scope="session")
def StrictTemplate():
    """Factory for strict templates, where rendering undefined values raises."""
    from chatplate import PromptTemplate

    return partial(PromptTemplate, strict=True)


@pytest.fixture(scope="session")
def render_raw():
    """
    Render through the low-level pipeline with explicit preprocessing options.

    Binds ``True`` the way the original whitespace fixtures expect.
    """
    from chatplate.template.environment import Environment
    from chatplate.template.interpreter import Interpreter
    from chatplate.template.lexer import PreprocessOptions, tokenize
    from chatplate.template.parser import parse

    def render(source, trim_blocks=False, lstrip_blocks=False, **variables):
        env = Environment()
        env.set("True", True)
        for name, value in variables.items():
            env.set(name, value)
        options = PreprocessOptions(trim_blocks=trim_blocks, lstrip_blocks=lstrip_blocks)
        return Interpreter(env).run(parse(tokenize(source, options))).value

    return render


@pytest.fixture
def messages():
    """A three-turn conversation without a system message."""
    return [dict(m) for m in MESSAGES]


@pytest.fixture
def messages_with_system():
    """The same conversation preceded by a system message."""
    return [dict(m) for m in MESSAGES_WITH_SYSTEM]


# =============================================================================
# Test Data (shared across test modules)
# =============================================================================

MESSAGES = [
    {"role": "user", "content": "Hello, how are you?"},
    {"role": "assistant", "content": "I'm doing great. How can I help you today?"},
    {"role": "user", "content": "I'd like to show off how chat templating works!"},
]

MESSAGES_WITH_SYSTEM = [
    {
        "role": "system",
        "content": "You are a friendly chatbot who always responds in the style of a pirate",
    },
    *MESSAGES,
]

SEQ = [1, 2, 3, 4, 5, 6, 7, 8, 9]

# Basic variable substitution cases
BASIC_CASES = [
    ("{{ x }}", {"x": "hello"}, "hello"),
    ("Hello {{ name }}!", {"name": "Alice"}, "Hello Alice!"),
    ("{{ a }} and {{ b }}", {"a": "one", "b": "two"}, "one and two"),
    ("No variables here", {}, "No variables here"),
    ("{{ x }}", {"x": 42}, "42"),
    ("{{ x }}", {"x": 3.14}, "3.14"),
    ("{{ x }}", {"x": -1}, "-1"),
    ("{{ x }}", {"x": None}, ""),
]

# Operator cases
OPERATOR_CASES = [
    ("{{ a + b }}", {"a": 1, "b": 2}, "3"),
    ("{{ a - b }}", {"a": 5, "b": 3}, "2"),
    ("{{ a * b }}", {"a": 3, "b": 4}, "12"),
    ("{{ a / b }}", {"a": 10, "b": 2}, "5.0"),
    ("{{ a // b }}", {"a": 7, "b": 2}, "3"),
    ("{{ a % b }}", {"a": 7, "b": 3}, "1"),
    ("{{ a ~ b }}", {"a": "hello", "b": "world"}, "helloworld"),
    ("{{ a + b }}", {"a": "n=", "b": 4}, "n=4"),
    ("{{ 'yes' if 'x' in items else 'no' }}", {"items": ["x", "y"]}, "yes"),
    ("{{ 'yes' if 'z' not in items else 'no' }}", {"items": ["x", "y"]}, "yes"),
]

# AI pattern templates
RAG_TEMPLATE = """
Based on the following context:
{% for doc in documents %}
---
Source: {{ doc.source }}
{{ doc.content }}
{% endfor %}
---

Question: {{ question }}
"""

FEW_SHOT_TEMPLATE = """
{% for example in examples %}
Input: {{ example.input }}
Output: {{ example.output }}

{% endfor %}
Input: {{ query }}
Output:
"""
