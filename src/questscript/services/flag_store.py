"""Durable key/value storage for quest progress flags."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Mapping

from questscript.core.types import FlagValue
from questscript.services.errors import FlagStoreError

logger = logging.getLogger(__name__)


class FlagStore:
    """Flags loaded once at construction and written through on every ``set``.

    With no ``path`` the store lives in memory only, which is what tests
    and throwaway runs want.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path) if path is not None else None
        self._flags: Dict[str, FlagValue] = self._read()

    @property
    def path(self) -> Path | None:
        return self._path

    def get(self, name: str) -> FlagValue | None:
        return self._flags.get(name)

    def has(self, name: str) -> bool:
        return name in self._flags

    def set(self, name: str, value: FlagValue) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError("Flag name must be a non-empty string.")
        if not isinstance(value, (bool, int, float, str)):
            raise ValueError(f"Flag '{name}' value must be a boolean, number or string.")
        self._flags[name] = value
        self._write()
        logger.debug("Flag set: %s=%r", name, value)

    def snapshot(self) -> Dict[str, FlagValue]:
        """Return a copy of every stored flag."""
        return dict(self._flags)

    def _read(self) -> Dict[str, FlagValue]:
        if self._path is None:
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            raise FlagStoreError(f"Unable to read flags from {self._path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise FlagStoreError(f"Flag file {self._path} must contain a JSON object.")
        return _coerce_flags(raw, self._path)

    def _write(self) -> None:
        if self._path is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(self._flags, indent=2, sort_keys=True), encoding="utf-8")
        except OSError as exc:
            raise FlagStoreError(f"Unable to write flags to {self._path}: {exc}") from exc


def _coerce_flags(raw: Mapping[str, object], path: Path) -> Dict[str, FlagValue]:
    flags: Dict[str, FlagValue] = {}
    for name, value in raw.items():
        if not isinstance(value, (bool, int, float, str)):
            raise FlagStoreError(f"Flag '{name}' in {path} has unsupported value {value!r}.")
        flags[name] = value
    return flags
