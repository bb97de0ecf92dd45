"""Base repository implementation for JSON script data."""
from __future__ import annotations

from pathlib import Path

from questscript.data import paths
from questscript.data.errors import DataValidationError
from questscript.data.json_loader import load_json


class RepositoryBase:
    """Common file resolution and structural checks for repositories."""

    def __init__(self, base_path: Path | str | None = None) -> None:
        self._base_path = Path(base_path) if base_path is not None else None

    @property
    def base_dir(self) -> Path:
        return paths.get_scripts_path(self._base_path)

    def _get_file_path(self, def_id: str) -> Path:
        return paths.resolve_script_path(def_id, self._base_path)

    def _load_raw(self, def_id: str) -> dict[str, object]:
        file_path = self._get_file_path(def_id)
        raw = load_json(file_path)
        if not isinstance(raw, dict):
            raise DataValidationError(f"Expected top-level object in {file_path}")
        return raw

    @staticmethod
    def _require_mapping(value: object, context: str) -> dict[str, object]:
        if not isinstance(value, dict):
            raise DataValidationError(f"{context} must be an object/dict.")
        return value
