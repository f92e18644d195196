"""
Chatplate - Jinja2-style chat templates for LLM prompts.

Renders the chat templates shipped with language models (the
``chat_template`` in ``tokenizer_config.json``) and user-defined prompt
templates. No dependencies beyond the standard library.

Quick Start
-----------

    >>> from chatplate import PromptTemplate
    >>>
    >>> t = PromptTemplate("Hello {{ name }}!")
    >>> t(name="World")
    'Hello World!'

Chat formatting with a preset:

    >>> t = PromptTemplate.from_preset("chatml")
    >>> t.apply([{"role": "user", "content": "Hi"}])
    '<|im_start|>user\\nHi<|im_end|>\\n<|im_start|>assistant\\n'

Shared filters and globals:

    >>> from chatplate import TemplateEnvironment
    >>>
    >>> env = TemplateEnvironment()
    >>> env.globals["bot"] = "Ada"
    >>> env.from_string("I am {{ bot }}.")()
    'I am Ada.'

Logging
-------

Set ``CHATPLATE_LOG_LEVEL=debug`` to see compile and render activity, or
call :func:`setup_logging`.
"""

from ._logging import setup_logging
from ._version import __version__ as __version__
from .exceptions import (
    ChatplateError,
    TemplateError,
    TemplateNotFoundError,
    TemplateNotSupportedError,
    TemplateParserError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    TemplateUndefinedError,
    TemplateValueError,
    ValidationError,
)
from .template import PromptTemplate, TemplateEnvironment, ValidationResult

__all__ = [
    "__version__",
    # Templates
    "PromptTemplate",
    "TemplateEnvironment",
    "ValidationResult",
    # Errors
    "ChatplateError",
    "TemplateError",
    "TemplateSyntaxError",
    "TemplateParserError",
    "TemplateRuntimeError",
    "TemplateUndefinedError",
    "TemplateValueError",
    "TemplateNotSupportedError",
    "TemplateNotFoundError",
    "ValidationError",
    # Logging
    "setup_logging",
]
