"""
Jinja2-style template engine for LLM chat prompts.

Templates are preprocessed, tokenized and parsed once into an immutable
syntax tree, then rendered any number of times against fresh variables.

Common Use Cases
----------------

**Few-shot learning**::

    template = PromptTemplate('''
    {% for example in examples %}
    Input: {{example.input}}
    Output: {{example.output}}
    {% endfor %}
    Input: {{query}}
    Output:''')

**Chat Formatting**::

    template = PromptTemplate.from_preset("chatml")
    prompt = template.apply([
        {"role": "system", "content": "You are helpful."},
        {"role": "user", "content": "Hello!"},
    ])

**A model's own chat template**::

    template = PromptTemplate.from_chat_template("./models/qwen")
    prompt = template.apply(messages, bos_token="<s>")

Low-level Pipeline
------------------

The stages are available separately::

    from chatplate.template import compile_template, render

    program = compile_template("{{ greeting }}, {{ name }}!")
    render(program, {"greeting": "Hi", "name": "Ada"})
"""

from .config import config as config
from .engine import compile_template, render
from .environment import Environment, TemplateEnvironment
from .lexer import PreprocessOptions, preprocess, tokenize
from .loaders import get_chat_template_source, resolve_model_path
from .meta import TemplateVariables, find_variables
from .parser import parse
from .presets import PRESETS, preset_names
from .prompt import PromptTemplate
from .results import ValidationResult

__all__ = [
    # Core
    "PromptTemplate",
    "TemplateEnvironment",
    # Results
    "ValidationResult",
    "TemplateVariables",
    # Pipeline
    "PreprocessOptions",
    "preprocess",
    "tokenize",
    "parse",
    "compile_template",
    "render",
    "Environment",
    "find_variables",
    # Loading
    "PRESETS",
    "preset_names",
    "get_chat_template_source",
    "resolve_model_path",
    # Configuration
    "config",
]
