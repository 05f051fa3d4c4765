"""Settings loaded from ``TASKS_*`` environment variables.

Malformed values fall back to their defaults rather than failing startup.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from task_manager.errors import ValidationError
from task_manager.models import Priority

ENV_PREFIX = "TASKS"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_PRIORITY = Priority.MEDIUM
DEFAULT_REJECT_DUPLICATE_TITLES = True


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_path(name: str) -> Path | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return Path(raw).expanduser()


def _env_log_level(name: str, default: str) -> str:
    raw = (os.getenv(name) or "").strip().upper()
    return raw if raw in _LOG_LEVELS else default


def _env_priority(name: str, default: Priority) -> Priority:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return Priority.parse(raw)
    except ValidationError:
        return default


@dataclass(frozen=True, slots=True)
class Settings:
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Path | None = None
    default_priority: Priority = DEFAULT_PRIORITY
    reject_duplicate_titles: bool = DEFAULT_REJECT_DUPLICATE_TITLES

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            log_level=_env_log_level(_k("LOG_LEVEL"), DEFAULT_LOG_LEVEL),
            log_file=_env_path(_k("LOG_FILE")),
            default_priority=_env_priority(_k("DEFAULT_PRIORITY"), DEFAULT_PRIORITY),
            reject_duplicate_titles=_env_bool(
                _k("REJECT_DUPLICATE_TITLES"), DEFAULT_REJECT_DUPLICATE_TITLES
            ),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
