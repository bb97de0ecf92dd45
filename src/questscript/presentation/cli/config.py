"""CLI configuration helpers for options persistence."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict

from questscript.data.paths import get_scripts_path
from questscript.domain.templates import DEFAULT_COMPANION_ID, DEFAULT_PLAYER_RACE

_CONFIG_KEYS = ("scripts_dir", "flags_path", "companion_id", "player_race")


def get_user_data_dir() -> Path:
    """Return the per-user data directory."""
    if os.name == "nt":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / "QuestScript"
        return Path.home() / "QuestScript"
    return Path.home() / ".config" / "questscript"


def get_default_config_path() -> Path:
    """Return the default per-user config path."""
    return get_user_data_dir() / "config.json"


def default_config() -> Dict[str, str]:
    return {
        "scripts_dir": str(get_scripts_path()),
        "flags_path": str(get_user_data_dir() / "flags.json"),
        "companion_id": DEFAULT_COMPANION_ID,
        "player_race": DEFAULT_PLAYER_RACE,
    }


def _normalize(raw: object) -> Dict[str, str]:
    config = default_config()
    if not isinstance(raw, dict):
        return config
    for key in _CONFIG_KEYS:
        value = raw.get(key)
        if isinstance(value, str) and value.strip():
            config[key] = value.strip()
    return config


def load_config(path: Path | None = None) -> Dict[str, str]:
    """Load config from disk or return defaults."""
    config_path = path or get_default_config_path()
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return default_config()
    except (OSError, json.JSONDecodeError):
        return default_config()
    return _normalize(raw)


def save_config(config: Dict[str, str], path: Path | None = None) -> None:
    """Persist config to disk."""
    config_path = path or get_default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    payload = _normalize(config)
    config_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
