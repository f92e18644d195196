"""
Template loading utilities.

Provides functions for loading chat templates from model directories.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .._logging import scoped_logger
from ..exceptions import TemplateError, TemplateNotFoundError
from .config import config

log = scoped_logger("loader")


def _select_template(value: Any) -> str | None:
    """Pick a template from a ``chat_template`` entry.

    The entry is either a string or a list of ``{"name", "template"}``
    objects, in which case the one named ``default`` wins.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        named = {
            entry.get("name"): entry.get("template")
            for entry in value
            if isinstance(entry, dict) and isinstance(entry.get("template"), str)
        }
        if "default" in named:
            return named["default"]
        if named:
            return next(iter(named.values()))
    return None


def get_chat_template_source(model_path: str | Path) -> str:
    """
    Get the raw chat template source from a model directory.

    Looks at ``chat_template`` in ``tokenizer_config.json`` first, then at a
    standalone ``chat_template.jinja`` file.

    Args:
        model_path: Path to model directory containing tokenizer_config.json

    Returns
    -------
        The chat template source string.

    Raises
    ------
        TemplateNotFoundError: If model has no chat template.
        TemplateError: If tokenizer_config.json is not valid JSON.
    """
    model_dir = Path(model_path)
    config_path = model_dir / "tokenizer_config.json"

    if config_path.is_file():
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise TemplateError(
                f"Invalid JSON in {config_path}: {e}",
                details={"path": str(config_path)},
            ) from e
        source = _select_template(data.get("chat_template")) if isinstance(data, dict) else None
        if source is not None:
            log.log(
                config.log_level,
                "Loaded chat template",
                extra={"path": str(config_path), "chars": len(source)},
            )
            return source

    jinja_path = model_dir / "chat_template.jinja"
    if jinja_path.is_file():
        source = jinja_path.read_text(encoding="utf-8")
        log.log(
            config.log_level,
            "Loaded chat template",
            extra={"path": str(jinja_path), "chars": len(source)},
        )
        return source

    raise TemplateNotFoundError(
        f"No chat template found for model '{model_path}'. "
        "Ensure the model has a chat_template in tokenizer_config.json "
        "or a chat_template.jinja file.",
        details={"path": str(model_path)},
    )


def resolve_model_path(model: str | Path) -> str:
    """
    Resolve a model reference to a local directory.

    Args:
        model: Path to a local model directory.

    Returns
    -------
        The directory path as a string.

    Raises
    ------
        FileNotFoundError: If the directory does not exist.
    """
    path = Path(model).expanduser()
    if path.is_dir():
        return str(path)

    raise FileNotFoundError(
        f"Model '{model}' not found. Provide a local model directory "
        "containing tokenizer_config.json or chat_template.jinja."
    )
