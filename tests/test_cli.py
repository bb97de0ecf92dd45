import json
from pathlib import Path

from questscript.presentation.cli import config
from questscript.presentation.cli.app import main
from tests.helpers.recording_host import edge, node, script


def _write_script(tmp_path: Path, name: str, raw: dict) -> Path:
    path = tmp_path / f"{name}.json"
    path.write_text(json.dumps(raw), encoding="utf-8")
    return path


def _feed_input(monkeypatch, answers: list[str]) -> None:
    replies = iter(answers)
    monkeypatch.setattr("builtins.input", lambda prompt="": next(replies))


def test_play_walks_dialogue_choice_and_battle(tmp_path: Path, monkeypatch, capsys) -> None:
    raw = script(
        node("d", "dialogue", speaker="Guard", text="Halt! Who goes there?"),
        node("q", "choice", question="Answer the guard?", options=["Leave", "Fight"]),
        node("bye", "end"),
        node("f", "combat", enemy="guard", level=2),
        node("won", "dialogue", text="You win."),
        connections=[edge("d", "q"), edge("q", "bye", 0), edge("q", "f", 1), edge("f", "won", 0)],
    )
    path = _write_script(tmp_path, "gate", raw)
    _feed_input(monkeypatch, ["", "3", "2", "maybe", "y", ""])
    monkeypatch.delenv("QUESTSCRIPT_DEBUG", raising=False)

    code = main(["--config", str(tmp_path / "config.json"), "play", str(path), "--flags", str(tmp_path / "flags.json")])

    out = capsys.readouterr().out
    assert code == 0
    assert "Guard: Halt! Who goes there?" in out
    assert "=== Answer the guard? ===" in out
    assert "Invalid selection. Please enter a number from 1 to 2." in out
    assert "Battle: guard (level 2)" in out
    assert "Please answer y or n." in out
    assert "You win." in out
    assert out.rstrip().endswith("Script stopped.")


def test_play_uses_companion_templates_after_link(tmp_path: Path, monkeypatch, capsys) -> None:
    path = _write_script(
        tmp_path,
        "hello",
        script(node("l", "link_script", scriptPath="greeting", useTemplates=True)),
    )
    _write_script(tmp_path, "greeting", script(node("d", "dialogue", text="Hi {{companion_name}}")))
    _feed_input(monkeypatch, [""])

    code = main(
        [
            "--config",
            str(tmp_path / "config.json"),
            "play",
            str(path),
            "--flags",
            str(tmp_path / "flags.json"),
            "--companion",
            "elf_male",
        ]
    )

    out = capsys.readouterr().out
    assert code == 0
    assert "companion: Hi Elf" in out
    assert "{{companion_name}}" not in out


def test_tutorial_plays_one_catalog_entry(tmp_path: Path, monkeypatch, capsys) -> None:
    catalog = tmp_path / "tutorials.json"
    catalog.write_text(
        json.dumps(
            {
                "tutorials": {
                    "game_start": {"title": "Welcome", "messages": [{"text": "Use WASD to move."}, {"text": "Press E."}]},
                    "first_fight": {"title": "Combat", "messages": [{"text": "Click to attack."}]},
                }
            }
        ),
        encoding="utf-8",
    )
    _feed_input(monkeypatch, ["", ""])

    code = main(
        [
            "--config",
            str(tmp_path / "config.json"),
            "tutorial",
            str(catalog),
            "game_start",
            "--flags",
            str(tmp_path / "flags.json"),
        ]
    )

    out = capsys.readouterr().out
    assert code == 0
    assert "Use WASD to move." in out
    assert "Press E." in out
    assert "Click to attack." not in out
    assert out.rstrip().endswith("Script stopped.")


def test_tutorial_unknown_id_fails(tmp_path: Path, capsys) -> None:
    catalog = tmp_path / "tutorials.json"
    catalog.write_text(json.dumps({"tutorials": {}}), encoding="utf-8")

    code = main(
        [
            "--config",
            str(tmp_path / "config.json"),
            "tutorial",
            str(catalog),
            "game_start",
            "--flags",
            str(tmp_path / "flags.json"),
        ]
    )

    out = capsys.readouterr().out
    assert code == 1
    assert "Script failed: Tutorial 'game_start' is not in" in out


def test_play_with_corrupt_flag_file_fails(tmp_path: Path, capsys) -> None:
    path = _write_script(tmp_path, "hello", script(node("d", "dialogue", text="Hi")))
    flags = tmp_path / "flags.json"
    flags.write_text("{not json", encoding="utf-8")

    code = main(["--config", str(tmp_path / "config.json"), "play", str(path), "--flags", str(flags)])

    assert code == 1
    assert "Script failed: Unable to read flags" in capsys.readouterr().out


def test_play_with_bad_trigger_params_fails(tmp_path: Path, capsys) -> None:
    raw = script(node("t", "trigger", event="setTime", params={"hour": 25}))
    path = _write_script(tmp_path, "clock", raw)

    code = main(
        ["--config", str(tmp_path / "config.json"), "play", str(path), "--flags", str(tmp_path / "flags.json")]
    )

    assert code == 1
    assert "Script failed: setTime.hour must be between 0 and 24." in capsys.readouterr().out


def test_play_missing_script_fails(tmp_path: Path, capsys) -> None:
    code = main(
        [
            "--config",
            str(tmp_path / "config.json"),
            "play",
            "nowhere",
            "--scripts-dir",
            str(tmp_path),
            "--flags",
            str(tmp_path / "flags.json"),
        ]
    )

    assert code == 1
    assert "Script failed:" in capsys.readouterr().out


def test_validate_reports_and_sets_exit_code(tmp_path: Path, capsys) -> None:
    good = _write_script(tmp_path, "good", script(node("d", "dialogue"), node("e", "end"), connections=[edge("d", "e")]))
    bad = _write_script(tmp_path, "bad", script(node("a", "dialogue"), node("b", "dialogue")))

    assert main(["--config", str(tmp_path / "config.json"), "validate", str(good)]) == 0
    assert main(["--config", str(tmp_path / "config.json"), "validate", str(good), str(bad)]) == 1

    out = capsys.readouterr().out
    assert f"{good}: OK" in out
    assert "AMBIGUOUS_ENTRY" in out


def test_config_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    settings = config.default_config()
    settings["companion_id"] = "elf_male"
    config.save_config(settings, path)

    loaded = config.load_config(path)

    assert loaded["companion_id"] == "elf_male"
    assert loaded["player_race"] == settings["player_race"]


def test_config_falls_back_to_defaults_on_bad_file(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("[oops", encoding="utf-8")

    assert config.load_config(path) == config.default_config()
