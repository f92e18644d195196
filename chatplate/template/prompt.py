"""
Prompt templates with Jinja2 syntax for LLM workflows.

Provides the PromptTemplate class for Jinja2-compatible prompt templating with
introspection, partial application, and strict validation modes.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .._logging import scoped_logger
from ..exceptions import TemplateError, TemplateNotFoundError, ValidationError
from . import engine
from .config import config
from .lexer import PreprocessOptions, tokenize
from .loaders import get_chat_template_source, resolve_model_path
from .meta import TemplateVariables, find_variables
from .nodes import Program
from .parser import parse
from .presets import PRESETS
from .results import ValidationResult
from .values import from_python

log = scoped_logger("template")


class PromptTemplate:
    r"""
    Prompt template with Jinja2 syntax for AI/LLM workflows.

    A PromptTemplate compiles once and can be rendered many times with different
    variables. The compiled program is immutable, so one template may be
    rendered from several threads at once.

    Features for Prompt Engineering
    -------------------------------

    **Introspection** - Discover required variables without running:

        >>> t = PromptTemplate("Hello {{ name }}, you are {{ age }} years old")
        >>> t.input_variables
        {'name', 'age'}

    **Partial Application** - Pre-fill variables for pipelines:

        >>> system = PromptTemplate("System: {{ persona }}\\nUser: {{ query }}")
        >>> chat = system.partial(persona="You are a helpful assistant")
        >>> chat(query="Hello!")  # Only need to provide query
        'System: You are a helpful assistant\nUser: Hello!'

    **Custom Filters** - Register Python functions as template filters:

        >>> t = PromptTemplate("{{ name | shout }}")
        >>> t.register_filter("shout", lambda s: s.upper() + "!!!")
        >>> t(name="hello")
        'HELLO!!!'

    Chat Formatting
    ---------------

        >>> t = PromptTemplate.from_preset("chatml")
        >>> t.apply([{"role": "user", "content": "Hello!"}])
        '<|im_start|>user\nHello!<|im_end|>\n<|im_start|>assistant\n'

    Available presets: ``chatml``, ``llama2``, ``alpaca``, ``vicuna``, ``zephyr``

    Supported Syntax
    ----------------

        - Variables: ``{{ name }}``, ``{{ user.name }}``, ``{{ items[1:] }}``
        - Control flow: ``{% if %}``/``{% elif %}``/``{% else %}``,
          ``{% for %}`` with ``loop``, ``{% set %}``
        - Filters: ``| upper``, ``| join``, ``| default``, ``| tojson``, etc.
        - Tests: ``is defined``, ``is string``, ``is even``, etc.
        - Operators: ``+ - * / // % ~``, comparisons, ``in``, ``not in``,
          ``and``, ``or``, ``not``, ``a if b else c``
        - Functions: ``range()``, ``namespace()``, ``raise_exception()``
        - Comments: ``{# comment #}``
        - Whitespace control: ``{{- name -}}``, ``{%- if -%}``

    **Not Supported:** macros, includes, template inheritance, blocks.

    Args:
        source: The template string with Jinja2 syntax.

    Raises
    ------
        TemplateSyntaxError: If the template has invalid syntax.
    """

    __slots__ = (
        "_source",
        "_strict",
        "_options",
        "_program",
        "_partial_vars",
        "_cached_variables",
        "_custom_filters",
        "_env_globals",
    )

    def __init__(
        self,
        source: str,
        *,
        strict: bool = False,
        trim_blocks: bool = True,
        lstrip_blocks: bool = True,
    ):
        """
        Create a new template.

        Args:
            source: Template string with Jinja2 syntax.
            strict: If True, rendering an undefined value raises
                TemplateUndefinedError. If False (default), it renders as an
                empty string, as Jinja2 does.
            trim_blocks: Remove the first newline after a block tag.
            lstrip_blocks: Strip whitespace before a block tag at line start.

        Raises
        ------
            ValidationError: If source is not a string.
            TemplateSyntaxError: If template syntax is invalid.
        """
        if not isinstance(source, str):
            raise ValidationError(
                f"Template source must be str, got {type(source).__name__}",
                details={"param": "source", "type": type(source).__name__},
            )

        self._source = source
        self._strict = strict
        self._options = PreprocessOptions(trim_blocks=trim_blocks, lstrip_blocks=lstrip_blocks)
        self._partial_vars: dict[str, Any] = {}
        self._cached_variables: TemplateVariables | None = None
        self._custom_filters: dict[str, Callable[..., Any]] = {}
        # Environment globals (set by TemplateEnvironment.from_string())
        self._env_globals: dict[str, Any] = {}
        self._program = self._compile()

    def _compile(self) -> Program:
        tokens = tokenize(self._source, self._options)
        program = parse(tokens)
        log.log(
            config.log_level,
            "Compiled template",
            extra={"tokens": len(tokens), "nodes": len(program.body), "chars": len(self._source)},
        )
        return program

    @classmethod
    def from_file(cls, path: str | Path, *, strict: bool = False) -> PromptTemplate:
        """
        Load a template from a file.

        Args:
            path: Path to the template file.
            strict: If True, undefined variables raise errors.

        Returns
        -------
            A new PromptTemplate instance.

        Raises
        ------
            TemplateNotFoundError: If the file doesn't exist.
            TemplateSyntaxError: If template syntax is invalid.

        Example:
            >>> template = PromptTemplate.from_file("prompts/rag.j2")
            >>> result = template(documents=docs, question="...")
        """
        template_path = Path(path)
        if not template_path.is_file():
            raise TemplateNotFoundError(
                f"Template file not found: {path}", details={"path": str(path)}
            )
        return cls(template_path.read_text(encoding="utf-8"), strict=strict)

    @classmethod
    def from_chat_template(cls, model: str | Path, *, strict: bool = False) -> PromptTemplate:
        """
        Load a model's chat template as an inspectable PromptTemplate.

        Args:
            model: Path to a local model directory.
            strict: If True, undefined variables raise errors.

        Returns
        -------
            PromptTemplate with the model's chat template.

        Raises
        ------
            FileNotFoundError: If the model directory does not exist.
            TemplateNotFoundError: If the model has no chat template.

        Example:
            >>> t = PromptTemplate.from_chat_template("./models/qwen")
            >>> t.input_variables
            {'messages', 'add_generation_prompt', ...}
        """
        source = get_chat_template_source(resolve_model_path(model))
        return cls(source, strict=strict)

    # =========================================================================
    # Introspection
    # =========================================================================

    def _variables(self) -> TemplateVariables:
        if self._cached_variables is None:
            self._cached_variables = find_variables(self._program)
        return self._cached_variables

    @property
    def input_variables(self) -> set[str]:
        """
        Return the set of variable names required by this template.

        Returns
        -------
            Set of variable names the caller may supply.

        Note:
            Extraction walks the parsed syntax tree, so it sees names in
            attribute access, indexing, filter arguments, conditions and loop
            iterables. Loop variables, ``set`` targets, ``loop``, built-ins
            and partially applied variables are excluded.

        Example:
            >>> rag = PromptTemplate('''
            ... {% for doc in docs %}
            ... {{ doc.content }}
            ... {% endfor %}
            ... Question: {{ question }}
            ... ''')
            >>> rag.input_variables
            {'docs', 'question'}
        """
        return self._variables().all - set(self._partial_vars)

    # =========================================================================
    # Partial Application
    # =========================================================================

    def partial(self, **kwargs: Any) -> PromptTemplate:
        r"""
        Return a new PromptTemplate with some variables pre-filled.

        Args:
            **kwargs: Variables to pre-fill in the new template.

        Returns
        -------
            A new PromptTemplate with the variables baked in.

        Raises
        ------
            TemplateValueError: If a value has no template equivalent.

        Example:
            >>> t = PromptTemplate("{{ persona }}\\n{{ query }}")
            >>> chat = t.partial(persona="You are helpful")
            >>> chat(query="Hello!")
            'You are helpful\nHello!'
        """
        for value in kwargs.values():
            from_python(value)

        new_template = PromptTemplate.__new__(PromptTemplate)
        new_template._source = self._source
        new_template._strict = self._strict
        new_template._options = self._options
        new_template._program = self._program
        new_template._cached_variables = self._cached_variables
        new_template._partial_vars = {**self._partial_vars, **kwargs}
        new_template._custom_filters = self._custom_filters.copy()
        # Shared by reference: changes to the environment affect all its templates
        new_template._env_globals = self._env_globals
        return new_template

    # =========================================================================
    # Custom Filters
    # =========================================================================

    def register_filter(self, name: str, func: Callable[..., Any]) -> PromptTemplate:
        """
        Register a custom Python filter function.

        The function receives the piped value and any filter arguments as
        plain Python values, and its result is converted back.

        Args:
            name: Filter name to use in templates (e.g., ``{{ x | name }}``).
            func: Callable that takes the piped value and returns a result.

        Returns
        -------
            Self, for method chaining.

        Raises
        ------
            ValidationError: If func is not callable.

        Example:
            >>> t = PromptTemplate("{{ price | fmt(2) }}")
            >>> t.register_filter("fmt", lambda x, n: f"{x:.{n}f}")
            >>> t(price=3.14159)
            '3.14'
        """
        if not callable(func):
            raise ValidationError(
                f"Filter function must be callable, got {type(func).__name__}",
                details={"param": "func", "type": type(func).__name__},
            )
        self._custom_filters[name] = func
        return self

    # =========================================================================
    # Validation
    # =========================================================================

    def validate(self, **kwargs: Any) -> ValidationResult:
        """
        Validate inputs and prepare for rendering.

        Args:
            **kwargs: Variables to validate against template requirements.

        Returns
        -------
            ValidationResult with ``is_valid``, ``required``, ``optional``,
            ``extra`` and ``invalid``. Use ``result.render()`` to render with
            the validated variables.

        Example:
            >>> t = PromptTemplate("Hello {{ name }}, age {{ age }}")
            >>> result = t.validate(name="Alice")
            >>> result.is_valid
            False
            >>> result.required
            {'age'}
        """
        invalid: dict[str, str] = {}
        valid_vars: dict[str, Any] = {}

        for key, value in kwargs.items():
            try:
                from_python(value)
            except TemplateError as e:
                invalid[key] = str(e)
            else:
                valid_vars[key] = value

        variables = self._variables()
        provided = self._env_globals.keys() | self._partial_vars.keys() | kwargs.keys()

        return ValidationResult(
            required=variables.required - provided,
            optional=variables.optional - provided,
            extra=kwargs.keys() - variables.all,
            invalid=invalid,
            _template=self,
            _variables=valid_vars,
            _strict=self._strict,
        )

    # =========================================================================
    # Rendering
    # =========================================================================

    def __call__(self, *, strict: bool | None = None, **variables: Any) -> str:
        """
        Render the template with the given variables.

        Args:
            strict: Override strict mode for this render only.
            **variables: Variables to substitute in the template.

        Returns
        -------
            Rendered string.

        Example:
            >>> t = PromptTemplate("Hello {{ name }}!")
            >>> t(name="World")
            'Hello World!'
        """
        use_strict = self._strict if strict is None else strict
        return self._render(variables, use_strict)

    def render(self, *, strict: bool | None = None, **variables: Any) -> str:
        """
        Render the template with the given variables.

        Familiar API for Jinja2 users.

        Args:
            strict: Override the instance's strict mode for this render only.
                If None (default), uses the instance's strict setting.
            **variables: Variables to substitute in the template.

        Returns
        -------
            The rendered template string.
        """
        use_strict = self._strict if strict is None else strict
        return self._render(variables, use_strict)

    def format(self, **variables: Any) -> str:
        """
        Render the template with the given variables.

        Familiar API for str.format() users.
        """
        return self._render(variables, self._strict)

    def _render(self, variables: dict[str, Any], strict: bool) -> str:
        # env globals < partial vars < render-time variables
        merged_vars = {**self._env_globals, **self._partial_vars, **variables}

        start = time.perf_counter()
        text = engine.render(
            self._program, merged_vars, filters=self._custom_filters, strict=strict
        )
        log.log(
            config.log_level,
            "Rendered template",
            extra={
                "chars": len(text),
                "elapsed_ms": round((time.perf_counter() - start) * 1000, 3),
                "strict": strict,
            },
        )
        return text

    @property
    def source(self) -> str:
        """The original template source string."""
        return self._source

    @property
    def strict(self) -> bool:
        """Whether strict mode is enabled (undefined values raise errors)."""
        return self._strict

    @property
    def program(self) -> Program:
        """The compiled syntax tree."""
        return self._program

    @property
    def supports_system_role(self) -> bool:
        """
        Check if this chat template explicitly handles the 'system' role.

        Returns True if the template source contains explicit handling for
        system messages (e.g., ``message.role == 'system'``) or renders roles
        generically (``message['role']``).

        Note:
            This is a heuristic based on source inspection.
        """
        source = self._source.lower()
        if "'system'" in source or '"system"' in source:
            return True
        if ".role" in source or "['role']" in source or '["role"]' in source:
            return True
        if "<<sys>>" in source or "<|system|>" in source:
            return True
        return False

    @property
    def supports_tools(self) -> bool:
        """
        Check if this chat template has built-in tool/function calling support.

        Returns True if the template source mentions ``tools``,
        ``functions`` or ``tool_call``.

        Example:
            >>> PromptTemplate.from_preset("chatml").supports_tools
            False

        Note:
            This is a heuristic based on source inspection.
        """
        source = self._source.lower()
        if "tools" in source or "functions" in source:
            return True
        if "tool_call" in source:
            return True
        return False

    # =========================================================================
    # Chat Template Presets
    # =========================================================================

    @classmethod
    def from_preset(cls, name: str) -> PromptTemplate:
        r"""
        Create a PromptTemplate from a built-in chat format preset.

        Available presets: ``chatml``, ``llama2``, ``alpaca``, ``vicuna``,
        ``zephyr``.

        Args:
            name: Preset name (case-sensitive).

        Raises
        ------
        ValidationError
            If *name* is not a known preset.

        Example:
            >>> t = PromptTemplate.from_preset("chatml")
            >>> t.apply([{"role": "user", "content": "Hi"}])
            '<|im_start|>user\\nHi<|im_end|>\\n<|im_start|>assistant\\n'
        """
        try:
            source = PRESETS[name]
        except KeyError:
            available = ", ".join(sorted(PRESETS))
            raise ValidationError(
                f"Unknown preset {name!r}. Available presets: {available}",
                details={"param": "name", "value": name},
            ) from None
        return cls(source)

    # =========================================================================
    # Chat Apply Method
    # =========================================================================

    def apply(
        self,
        messages: list[dict[str, Any]],
        *,
        strict: bool | None = None,
        add_generation_prompt: bool = True,
        bos_token: str = "",
        eos_token: str = "",
        **kwargs: Any,
    ) -> str:
        """
        Render chat messages using this template.

        Convenience wrapper around ``__call__()`` with named parameters for
        common chat template variables.

        Args:
            messages: List of message dicts with ``role`` and ``content`` keys.
            strict: Override strict mode for this render only.
            add_generation_prompt: Add assistant marker at end (default True).
            bos_token: Beginning of sequence token (model-specific).
            eos_token: End of sequence token (model-specific).
            **kwargs: Additional template variables (e.g., ``tools``).

        Returns
        -------
            Formatted prompt string.
        """
        return self(
            messages=messages,
            strict=strict,
            add_generation_prompt=add_generation_prompt,
            bos_token=bos_token,
            eos_token=eos_token,
            **kwargs,
        )

    def __repr__(self) -> str:
        preview = self._source[:50]
        if len(self._source) > 50:
            preview += "..."
        return f"PromptTemplate({preview!r})"

    def __str__(self) -> str:
        return self._source
