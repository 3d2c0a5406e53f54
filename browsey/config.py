"""Persistent JSON preferences and shared defaults.

Stores the hidden-file preference and default ignore patterns.
All access is defensive: malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "browsey"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

REGISTRY_DIR = Path.home() / ".browsey"
REGISTRY_PATH = REGISTRY_DIR / "instances.json"
REGISTRY_VERSION = 1

MAX_SEARCH_DEPTH = 20
DEFAULT_SEARCH_LIMIT = 50
MAX_SEARCH_LIMIT = 200

DEFAULT_API_PORT = 4200
DEFAULT_HOST = "0.0.0.0"
MAX_TEXT_SIZE = 5 * 1024 * 1024
MAX_IMAGE_SIZE = 20 * 1024 * 1024


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Any filesystem/serialization error is ignored to keep runtime behavior
    non-fatal when config cannot be written.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except Exception:
        pass


def load_show_hidden() -> bool:
    """Return persisted hidden-file visibility preference.

    Only explicit boolean values are accepted; any other type falls back to
    ``False``.
    """
    value = load_config().get("show_hidden")
    return bool(value) if isinstance(value, bool) else False


def save_show_hidden(show_hidden: bool) -> None:
    """Persist hidden-file visibility preference as a boolean."""
    config = load_config()
    config["show_hidden"] = bool(show_hidden)
    save_config(config)


def load_ignore_patterns() -> list[str]:
    """Return persisted default ignore globs.

    Non-list values yield ``[]``; non-string or blank items are dropped.
    """
    value = load_config().get("ignore_patterns")
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def save_ignore_patterns(patterns: list[str]) -> None:
    """Persist default ignore globs in normalized form."""
    config = load_config()
    config["ignore_patterns"] = [pattern.strip() for pattern in patterns if pattern.strip()]
    save_config(config)
