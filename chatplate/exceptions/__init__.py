"""
Chatplate exceptions.

This module defines the exception hierarchy for chatplate:

    ChatplateError (base)
    ├── TemplateError - Errors during template compilation or rendering
    │   ├── TemplateSyntaxError - Invalid characters, literals or declarations
    │   │   └── TemplateParserError - Malformed template structure
    │   ├── TemplateRuntimeError - Errors while evaluating a template
    │   │   ├── TemplateUndefinedError - Undefined variable in strict mode
    │   │   └── TemplateValueError - Host value cannot enter a template
    │   ├── TemplateNotSupportedError - Recognised but unimplemented feature
    │   └── TemplateNotFoundError - Template file not found
    └── ValidationError - Invalid parameter value
"""

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

__all__ = [
    # Base
    "ChatplateError",
    # Template
    "TemplateError",
    "TemplateSyntaxError",
    "TemplateParserError",
    "TemplateRuntimeError",
    "TemplateUndefinedError",
    "TemplateValueError",
    "TemplateNotSupportedError",
    "TemplateNotFoundError",
    # Validation
    "ValidationError",
]
