"""Persistent JSON config helpers.

Stores the pane split, UI theme and watcher timing. Malformed or missing
values fall back to defaults; config trouble is never fatal.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

logger = logging.getLogger(__name__)

APP_NAME = "lazyjj"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

DEFAULT_LEFT_PANE_PERCENT = 40.0
DEFAULT_THEME_NAME = "default"
DEFAULT_DEBOUNCE_MS = 100
DEFAULT_POLL_INTERVAL_MS = 500


@dataclass(frozen=True)
class Settings:
    """Effective persisted settings after validation."""

    left_pane_percent: float = DEFAULT_LEFT_PANE_PERCENT
    theme: str = DEFAULT_THEME_NAME
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    @property
    def poll_seconds(self) -> float:
        return self.poll_interval_ms / 1000.0


def load_config(path: Path | None = None) -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    config_path = path or CONFIG_PATH
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable config %s: %s", config_path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object], path: Path | None = None) -> None:
    """Persist config data as pretty-printed JSON; write errors are logged."""
    config_path = path or CONFIG_PATH
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except (OSError, TypeError, ValueError) as exc:
        logger.warning("could not write config %s: %s", config_path, exc)


def _percent(value: object) -> float | None:
    """Accept numbers in the open interval (0, 100)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value <= 0 or value >= 100:
        return None
    return float(value)


def _positive_int(value: object) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if value > 0 else None


def load_settings(path: Path | None = None) -> Settings:
    data = load_config(path)
    theme = data.get("theme")
    return Settings(
        left_pane_percent=_percent(data.get("left_pane_percent")) or DEFAULT_LEFT_PANE_PERCENT,
        theme=theme.strip().lower() if isinstance(theme, str) and theme.strip() else DEFAULT_THEME_NAME,
        debounce_ms=_positive_int(data.get("debounce_ms")) or DEFAULT_DEBOUNCE_MS,
        poll_interval_ms=_positive_int(data.get("poll_interval_ms")) or DEFAULT_POLL_INTERVAL_MS,
    )


def save_left_pane_percent(total_width: int, left_width: int, path: Path | None = None) -> None:
    """Store the left pane width as a percentage clamped to ``[1.0, 99.0]``."""
    if total_width <= 0:
        return
    percent = max(1.0, min(99.0, (left_width / total_width) * 100.0))
    config = load_config(path)
    config["left_pane_percent"] = round(percent, 2)
    save_config(config, path)


def save_theme(name: str, path: Path | None = None) -> None:
    config = load_config(path)
    config["theme"] = name
    save_config(config, path)


__all__ = [
    "CONFIG_PATH",
    "Settings",
    "load_config",
    "load_settings",
    "save_config",
    "save_left_pane_percent",
    "save_theme",
]
