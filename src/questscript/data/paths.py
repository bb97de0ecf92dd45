"""Helpers for resolving script file locations."""
from __future__ import annotations

from pathlib import Path

SCRIPT_SUFFIX = ".json"


def get_repo_root() -> Path:
    """Return the repository root."""
    return Path(__file__).resolve().parents[3]


def get_scripts_path(base_path: Path | str | None = None) -> Path:
    """Return the directory containing quest script files."""
    if base_path is not None:
        return Path(base_path)
    return get_repo_root() / "data" / "scripts"


def resolve_script_path(script_id: str, base_path: Path | str | None = None) -> Path:
    """Map a script id such as ``intro`` or ``intro.json`` to its file."""
    filename = script_id if script_id.endswith(SCRIPT_SUFFIX) else f"{script_id}{SCRIPT_SUFFIX}"
    return get_scripts_path(base_path) / filename
