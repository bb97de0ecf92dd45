"""Data layer utilities for loading quest scripts."""

from .errors import (
    AmbiguousEntryError,
    DataError,
    DataLoadError,
    DataValidationError,
    GraphIntegrityError,
)
from .paths import get_repo_root, get_scripts_path, resolve_script_path

__all__ = [
    "AmbiguousEntryError",
    "DataError",
    "DataLoadError",
    "DataValidationError",
    "GraphIntegrityError",
    "get_repo_root",
    "get_scripts_path",
    "resolve_script_path",
]
