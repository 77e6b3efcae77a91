"""Runtime configuration loaded from PROJECTFLOW_* environment variables and an optional .env file."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Configuration loading error with user-facing message text."""


@dataclass(frozen=True)
class StudioConfig:
    """Where projects live and how the collaborators are set up."""

    state_dir: Path = Path(".")
    templates_file: Path | None = None
    cover_base_url: str = "https://image.pollinations.ai/prompt/"
    cover_size: int = 1024
    log_level: str = "WARNING"


def _settings(dotenv_path: Path | None) -> dict[str, str]:
    """Environment variables layered over the `.env` values they override."""
    values: dict[str, str] = {}
    if dotenv_path is not None and dotenv_path.exists():
        values.update((k, v) for k, v in dotenv_values(dotenv_path).items() if v is not None)
    values.update(os.environ)
    return values


def _get(settings: Mapping[str, str], name: str) -> str | None:
    return settings.get(name, "").strip() or None


def _positive_int(settings: Mapping[str, str], name: str, default: int) -> int:
    value = _get(settings, name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ConfigError(
            f"Configuration error: {name} must be an integer, got {value!r}."
        ) from exc
    if parsed <= 0:
        raise ConfigError(f"Configuration error: {name} must be positive, got {parsed}.")
    return parsed


def load_config(dotenv_path: Path | str | None = Path(".env")) -> StudioConfig:
    """Load config from the environment, filling gaps from `.env` if present."""
    settings = _settings(Path(dotenv_path) if dotenv_path is not None else None)

    log_level = (_get(settings, "PROJECTFLOW_LOG_LEVEL") or "WARNING").upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(
            f"Configuration error: PROJECTFLOW_LOG_LEVEL must be one of "
            f"{', '.join(LOG_LEVELS)}, got {log_level!r}."
        )

    templates = _get(settings, "PROJECTFLOW_TEMPLATES")
    defaults = StudioConfig()
    return StudioConfig(
        state_dir=Path(_get(settings, "PROJECTFLOW_HOME") or defaults.state_dir),
        templates_file=Path(templates) if templates else None,
        cover_base_url=_get(settings, "PROJECTFLOW_COVER_URL") or defaults.cover_base_url,
        cover_size=_positive_int(settings, "PROJECTFLOW_COVER_SIZE", defaults.cover_size),
        log_level=log_level,
    )
