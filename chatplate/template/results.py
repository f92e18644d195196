"""
Result types for template validation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..exceptions import TemplateError

if TYPE_CHECKING:
    from .prompt import PromptTemplate


@dataclass
class ValidationResult:
    """
    Result of template input validation.

    Distinguishes between required and optional variables. Required variables
    are used "naked" in the template (``{{ name }}``), while optional variables
    are only probed (``{% if tools is defined %}``) or have a ``default()``
    filter (``{{ context | default('') }}``).

    This distinction helps when loading third-party templates via
    ``PromptTemplate.from_chat_template()`` - you know which variables will break
    the template vs which will safely fall back to defaults.

    Attributes
    ----------
        required: Variables required by the template but not provided.
        optional: Guarded variables that are not provided.
            These are safe to omit.
        extra: Variables provided but not used by the template.
            These are warnings, not errors - extra variables are ignored.
        invalid: Dictionary mapping variable names to error messages for
            values that cannot be converted to template values.

    Example:
        >>> t = PromptTemplate("Hello {{ name }}! {{ context | default('N/A') }}")
        >>> result = t.validate(name="Alice")
        >>> result.is_valid
        True
        >>> result.optional
        {'context'}
        >>> result.render()
        'Hello Alice! N/A'
    """

    required: set[str] = field(default_factory=set)
    optional: set[str] = field(default_factory=set)
    extra: set[str] = field(default_factory=set)
    invalid: dict[str, str] = field(default_factory=dict)

    # Render context (not part of public API)
    _template: PromptTemplate | None = field(default=None, repr=False, compare=False)
    _variables: dict[str, Any] | None = field(default=None, repr=False, compare=False)
    _strict: bool = field(default=False, repr=False, compare=False)

    @property
    def is_valid(self) -> bool:
        """
        Whether validation passed.

        Optional and extra variables do NOT cause validation to fail.
        Only missing required variables and invalid values matter.
        """
        return not self.required and not self.invalid

    @property
    def summary(self) -> str:
        """
        Human-readable summary of validation issues.

        Returns empty string if there is nothing to report.
        """
        parts = []

        if self.required:
            parts.append(f"Missing required variables: {', '.join(sorted(self.required))}")

        if self.invalid:
            invalid_str = ", ".join(f"{k} ({v})" for k, v in sorted(self.invalid.items()))
            parts.append(f"Invalid values: {invalid_str}")

        if self.optional:
            parts.append(
                f"Missing optional variables (have defaults): {', '.join(sorted(self.optional))}"
            )

        if self.extra:
            parts.append(f"Extra variables (will be ignored): {', '.join(sorted(self.extra))}")

        return ". ".join(parts)

    def render(self, *, strict: bool | None = None) -> str:
        """
        Render the template using the validated variables.

        Args:
            strict: Override strict mode for this render only.
                If None (default), uses the mode from validation.

        Raises
        ------
            TemplateError: If validation failed, the result was not created
                by ``PromptTemplate.validate()``, or rendering fails.
        """
        if self._template is None or self._variables is None:
            raise TemplateError(
                "ValidationResult.render() requires a result created by "
                "PromptTemplate.validate(). This result has no template context.",
                code="TEMPLATE_STATE_INVALID",
            )

        if not self.is_valid:
            raise TemplateError(
                f"Cannot render invalid template. {self.summary}",
                code="TEMPLATE_VALIDATION_FAILED",
                details={"required": sorted(self.required), "invalid": dict(self.invalid)},
            )

        use_strict = self._strict if strict is None else strict
        return self._template.render(strict=use_strict, **self._variables)

    def __bool__(self) -> bool:
        """True if validation passed (``is_valid``)."""
        return self.is_valid
