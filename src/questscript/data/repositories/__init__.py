"""Repository exports."""

from .script_repo import ScriptRepository, load_script_file, parse_script

__all__ = [
    "ScriptRepository",
    "load_script_file",
    "parse_script",
]
