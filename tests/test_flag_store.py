import json
from pathlib import Path

import pytest

from questscript.services.errors import FlagStoreError
from questscript.services.flag_store import FlagStore


def test_flags_survive_reload(tmp_path: Path) -> None:
    path = tmp_path / "flags.json"
    store = FlagStore(path)
    store.set("metKing", True)
    store.set("reputation", 3)

    reloaded = FlagStore(path)

    assert reloaded.get("metKing") is True
    assert reloaded.get("reputation") == 3
    assert json.loads(path.read_text(encoding="utf-8")) == {"metKing": True, "reputation": 3}


def test_missing_file_starts_empty(tmp_path: Path) -> None:
    store = FlagStore(tmp_path / "nested" / "flags.json")

    assert store.snapshot() == {}
    assert not store.has("metKing")
    store.set("metKing", True)
    assert (tmp_path / "nested" / "flags.json").is_file()


def test_memory_only_store() -> None:
    store = FlagStore()
    store.set("door", "open")

    assert store.path is None
    assert store.get("door") == "open"


def test_corrupt_file_raises(tmp_path: Path) -> None:
    path = tmp_path / "flags.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(FlagStoreError):
        FlagStore(path)


def test_rejects_unsupported_values() -> None:
    store = FlagStore()
    with pytest.raises(ValueError):
        store.set("items", ["a"])  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        store.set("", True)
