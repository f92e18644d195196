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

Usage:
    try:
        PromptTemplate("{{ name ")
    except chatplate.TemplateSyntaxError as e:
        print(f"Bad template: {e}")
    except chatplate.ChatplateError as e:
        # Catch any chatplate error with structured details
        print(f"Error {e.code}: {e}")
        print(f"Details: {e.details}")

See Also
--------
    ChatplateError : Base exception for all chatplate errors.
"""

from typing import Any

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


class ChatplateError(Exception):
    """
    Base exception for all chatplate errors.

    All chatplate-specific exceptions inherit from this class, enabling:
    - Catch-all handling: ``except chatplate.ChatplateError``
    - Stable string-based error codes for programmatic handling
    - Structured details for debugging and logging

    Attributes
    ----------
    message : str
        Human-readable error description.
    code : str
        Stable, string-based error code (e.g., "TEMPLATE_SYNTAX_ERROR").
        Use this for programmatic error handling.
    details : dict[str, Any]
        Structured context (e.g., {"filter": "sort", "type": "ArrayValue"}).

    Example
    -------
    >>> try:
    ...     PromptTemplate("{{ raise_exception('bad role') }}")()
    ... except chatplate.ChatplateError as e:
    ...     print(f"Error code: {e.code}")
    Error code: TEMPLATE_RUNTIME_ERROR
    """

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.args[0]!r}, code={self.code!r})"


# =============================================================================
# Template Errors
# =============================================================================


class TemplateError(ChatplateError, RuntimeError):
    """
    Base error for template operations.

    This exception (or its subclasses) is raised when compiling or
    rendering a template fails.
    """

    def __init__(
        self,
        message: str,
        code: str = "TEMPLATE_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)


class TemplateSyntaxError(TemplateError, SyntaxError):
    """
    Invalid template syntax.

    Raised by the lexer for characters it cannot tokenize, unterminated
    string literals and unknown escapes, and by scopes when a name is
    declared twice. Structural problems raise the
    :class:`TemplateParserError` subclass, so catching this class covers
    both.
    """

    def __init__(
        self,
        message: str,
        code: str = "TEMPLATE_SYNTAX_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)
        # SyntaxError.msg
        self.msg = message


class TemplateParserError(TemplateSyntaxError):
    """
    Malformed template structure.

    Raised when a token stream cannot be parsed, such as:
    - Unclosed tags: ``{{ name`` without ``}}``
    - Invalid expressions: ``{{ 1 + }}``
    - Unclosed blocks: ``{% if x %}`` without ``{% endif %}``
    """

    def __init__(
        self,
        message: str,
        code: str = "TEMPLATE_PARSER_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)


class TemplateRuntimeError(TemplateError):
    """
    Error while evaluating a template.

    Raised for type mismatches, unknown filters or tests, out-of-range
    indexing, invalid unpacking and explicit ``raise_exception`` calls.
    """

    def __init__(
        self,
        message: str,
        code: str = "TEMPLATE_RUNTIME_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)


class TemplateUndefinedError(TemplateRuntimeError, NameError):
    """
    Undefined value rendered in strict mode.

    Raised when a template outputs a variable that wasn't provided and
    ``strict=True`` was set. In non-strict mode (default), undefined
    values render as empty strings.

    Solutions:
        - Provide the missing variable
        - Use ``| default(value)`` filter for optional variables
        - Use ``strict=False`` (default) if empty strings are acceptable
    """

    def __init__(
        self,
        message: str,
        code: str = "TEMPLATE_UNDEFINED_VAR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)


class TemplateValueError(TemplateRuntimeError, TypeError):
    """
    Host value that cannot be converted to a template value.

    Raised when a variable, partial value or filter result is not one of
    the supported kinds: bool, int, float, str, None, list, tuple,
    str-keyed dict, dataclass, Pydantic model or callable.
    """

    def __init__(
        self,
        message: str,
        code: str = "TEMPLATE_INVALID_VALUE",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)


class TemplateNotSupportedError(TemplateError, NotImplementedError):
    """
    Recognised construct that is deliberately not implemented.

    Raised for operator pairings and filters that parse correctly but have
    no evaluation rule, such as the ``sort`` filter.
    """

    def __init__(
        self,
        message: str,
        code: str = "TEMPLATE_NOT_SUPPORTED",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)


class TemplateNotFoundError(TemplateError, FileNotFoundError):
    """
    Template file not found.

    Raised when:
    - A model doesn't have a chat_template in tokenizer_config.json
    - No chat_template.jinja file exists in the model directory
    - PromptTemplate.from_file() is given a non-existent path
    """

    def __init__(
        self,
        message: str,
        code: str = "TEMPLATE_NOT_FOUND",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(ChatplateError, ValueError):
    """
    Invalid parameter value.

    Raised when a public API receives an argument of the wrong type or
    an unknown name, such as a non-string template source or an unknown
    preset.
    """

    def __init__(
        self,
        message: str,
        code: str = "INVALID_ARGUMENT",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)
