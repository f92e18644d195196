"""
Template module configuration.

Provides runtime configuration for template behavior. Settings can be
modified programmatically without environment variables.

Example:
    >>> from chatplate.template import config
    >>> config.debug = True  # Log compile and render activity at INFO
"""

import logging

from ..exceptions import ValidationError


class _TemplateConfig:
    """
    Singleton configuration for template module settings.

    This is a singleton - import and modify `config` directly:

        from chatplate.template import config
        config.debug = True

    Attributes
    ----------
        debug: When True, compile and render records are logged at INFO
            instead of DEBUG, so they show up with the default log level.
    """

    __slots__ = ("_debug",)

    def __init__(self) -> None:
        self._debug = False

    @property
    def debug(self) -> bool:
        """Promote template activity logging to INFO."""
        return self._debug

    @debug.setter
    def debug(self, value: bool) -> None:
        if not isinstance(value, bool):
            raise ValidationError(
                f"debug must be bool, got {type(value).__name__}",
                details={"param": "debug", "type": type(value).__name__},
            )
        self._debug = value

    @property
    def log_level(self) -> int:
        """Level used for template activity records."""
        return logging.INFO if self._debug else logging.DEBUG

    def __repr__(self) -> str:
        return f"TemplateConfig(debug={self._debug})"


# Module-level singleton
config = _TemplateConfig()
