"""JSON config loading.

Resolves history depth, lock wait, history location, and picker backend.
All access is defensive: malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir

from .navigation import DEFAULT_MAX_HISTORY

APP_NAME = "wsnav"
CONFIG_FILENAME = "config.json"
HISTORY_FILENAME = "history"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
DEFAULT_HISTORY_PATH = Path(user_data_dir(APP_NAME, appauthor=False)) / HISTORY_FILENAME
DEFAULT_LOCK_TIMEOUT = 0.5
PICKER_BACKENDS = ("fzf", "inquirer")
DEFAULT_PICKER = "fzf"


@dataclass(frozen=True)
class Settings:
    history_path: Path
    max_history: int = DEFAULT_MAX_HISTORY
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT
    picker: str = DEFAULT_PICKER


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def _coerce_positive_int(value: object, default: int) -> int:
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return value if value >= 1 else default


def _coerce_nonnegative_float(value: object, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value) if value >= 0 else default


def _coerce_path(value: object, default: Path) -> Path:
    if not isinstance(value, str) or not value.strip():
        return default
    return Path(os.path.expanduser(value.strip()))


def _coerce_picker(value: object) -> str:
    if isinstance(value, str) and value.strip().lower() in PICKER_BACKENDS:
        return value.strip().lower()
    return DEFAULT_PICKER


def load_settings(
    history_path: Path | None = None,
    max_history: int | None = None,
) -> Settings:
    """Resolve settings from config, letting explicit arguments win."""
    data = load_config()
    return Settings(
        history_path=history_path or _coerce_path(data.get("history_path"), DEFAULT_HISTORY_PATH),
        max_history=_coerce_positive_int(max_history, 0)
        or _coerce_positive_int(data.get("max_history"), DEFAULT_MAX_HISTORY),
        lock_timeout=_coerce_nonnegative_float(data.get("lock_timeout"), DEFAULT_LOCK_TIMEOUT),
        picker=_coerce_picker(data.get("picker")),
    )
