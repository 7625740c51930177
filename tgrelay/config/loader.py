"""Config loading: explicit JSON file, environment, default file."""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from tgrelay.config.schema import RelayConfig
from tgrelay.errors import ConfigError


def load_config(path: Path | None = None) -> RelayConfig:
    """Build the RelayConfig, raising ConfigError on any problem.

    When path is given its values take precedence over the environment.
    Without it, environment variables override ~/.tgrelay/config.json.
    """
    raw: dict = {}
    if path is not None:
        config_path = path.expanduser().resolve()
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        try:
            raw = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Cannot read {config_path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"{config_path} must contain a JSON object")
        logger.debug("Loaded config overrides from {}", config_path)

    try:
        return RelayConfig(**raw)
    except ValidationError as exc:
        raise ConfigError(_format_validation_error(exc)) from exc


def _format_validation_error(exc: ValidationError) -> str:
    """Flatten pydantic errors to 'field: message' lines without echoing input values."""
    lines = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error.get("loc", ())) or "config"
        lines.append(f"{field}: {error.get('msg', 'invalid value')}")
    return "Invalid configuration:\n  " + "\n  ".join(lines)
