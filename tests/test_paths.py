from pathlib import Path

from questscript.data import paths


def test_get_scripts_path_base_path(tmp_path: Path) -> None:
    assert paths.get_scripts_path(tmp_path) == tmp_path


def test_get_scripts_path_source_repo_exists() -> None:
    scripts_path = paths.get_scripts_path()
    assert scripts_path.name == "scripts"
    assert (scripts_path / "intro.json").exists()


def test_resolve_script_path_appends_suffix_once(tmp_path: Path) -> None:
    assert paths.resolve_script_path("intro", tmp_path) == tmp_path / "intro.json"
    assert paths.resolve_script_path("intro.json", tmp_path) == tmp_path / "intro.json"
