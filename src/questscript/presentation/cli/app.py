"""Console entry point: play, validate or walk through tutorial scripts."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Callable, Dict, Sequence

from questscript.core.types import BattleOutcome
from questscript.data.errors import DataError, DataValidationError
from questscript.data.json_loader import load_json
from questscript.data.repositories import ScriptRepository
from questscript.domain.graph import ScriptGraph
from questscript.domain.templates import PlayerSnapshot
from questscript.presentation.cli import config, render
from questscript.presentation.cli.console_host import ConsoleHost
from questscript.services.errors import FlagStoreError, QuestRuntimeError
from questscript.services.flag_store import FlagStore
from questscript.services.quest_runner import QuestRunner
from questscript.services.script_validator import format_issue, has_errors, validate_script_file
from questscript.services.tutorial_converter import tutorial_script

logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="questscript", description="Run and check quest scripts.")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.json.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    session = argparse.ArgumentParser(add_help=False)
    session.add_argument("--scripts-dir", default=None, help="Directory that link targets are loaded from.")
    session.add_argument("--flags", default=None, help="Flag file to load and write through.")
    session.add_argument("--companion", default=None, help="Companion id used for templates.")
    session.add_argument("--race", default=None, help="Player race used for templates.")

    play = subparsers.add_parser("play", parents=[session], help="Play a script in the terminal.")
    play.add_argument("script", help="Script id (resolved in the scripts dir) or path to a .json file.")

    tutorial = subparsers.add_parser("tutorial", parents=[session], help="Play one tutorial from a catalog.")
    tutorial.add_argument("catalog", type=Path, help="Tutorial catalog JSON file.")
    tutorial.add_argument("tutorial_id", help="Id of the tutorial to play.")

    validate = subparsers.add_parser("validate", help="Report problems in script files.")
    validate.add_argument("scripts", nargs="+", help="Script files to check.")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI and return a process exit code."""
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if render.debug_enabled() else logging.WARNING)
    settings = config.load_config(args.config)
    if args.command == "validate":
        return _validate(args.scripts)
    if args.command == "tutorial":
        return _play_tutorial(args, settings)
    return _play(args, settings)


def _validate(paths: Sequence[str]) -> int:
    failed = False
    for raw_path in paths:
        issues = validate_script_file(raw_path)
        if not issues:
            print(f"{raw_path}: OK")
            continue
        print(f"{raw_path}:")
        for issue in issues:
            print(f" - {format_issue(issue)}")
        failed = failed or has_errors(issues)
    return 1 if failed else 0


def _play(args: argparse.Namespace, settings: Dict[str, str]) -> int:
    script_path = Path(args.script)
    if script_path.is_file():
        scripts_dir = Path(args.scripts_dir) if args.scripts_dir else script_path.parent
        script_id = script_path.name
    else:
        scripts_dir = Path(args.scripts_dir or settings["scripts_dir"])
        script_id = args.script
    return _run_session(
        args,
        settings,
        scripts_dir,
        lambda runner: runner.start(script_id, on_complete=_print_ledger),
    )


def _play_tutorial(args: argparse.Namespace, settings: Dict[str, str]) -> int:
    def begin(runner: QuestRunner) -> None:
        catalog = load_json(args.catalog)
        if not isinstance(catalog, dict):
            raise DataValidationError(f"Expected top-level object in {args.catalog}")
        try:
            script = tutorial_script(catalog, args.tutorial_id)
        except KeyError as exc:
            raise DataValidationError(f"Tutorial '{args.tutorial_id}' is not in {args.catalog}.") from exc
        runner.start_graph(ScriptGraph(script), on_complete=_print_ledger)

    return _run_session(args, settings, Path(args.scripts_dir or settings["scripts_dir"]), begin)


def _run_session(
    args: argparse.Namespace,
    settings: Dict[str, str],
    scripts_dir: Path,
    begin: Callable[[QuestRunner], None],
) -> int:
    snapshot = PlayerSnapshot(
        companion_id=args.companion or settings["companion_id"],
        player_race=args.race or settings["player_race"],
    )
    host = ConsoleHost(snapshot)
    runner: QuestRunner | None = None
    try:
        flag_store = FlagStore(args.flags or settings["flags_path"])
        runner = QuestRunner(ScriptRepository(scripts_dir), host, flag_store)
        begin(runner)
        _run_play_loop(runner, host)
    except (DataError, QuestRuntimeError, FlagStoreError, ValueError) as exc:
        print(f"Script failed: {exc}")
        return 1
    except (KeyboardInterrupt, EOFError):
        if runner is not None:
            runner.stop()
        print("\nStopped.")
        return 130

    if host.warnings:
        render.render_heading("Warnings")
        render.render_warnings(host.warnings)
    print(f"Script {runner.phase}.")
    return 0


def _run_play_loop(runner: QuestRunner, host: ConsoleHost) -> None:
    while runner.phase == "suspended":
        kind = runner.waiting_for
        if kind == "choice":
            assert host.last_choice is not None
            runner.advance(_prompt_choice(len(host.last_choice.options)))
        elif kind == "combat":
            host.resolve_battle(_prompt_battle_outcome())
        elif kind in ("dialogue", "image"):
            input("(Enter to continue) ")
            runner.advance()
        else:
            logger.warning("Runner is waiting on %s; nothing to do in the console", kind)
            runner.stop()


def _prompt_choice(option_count: int) -> int:
    while True:
        raw_value = input("Select an option: ").strip()
        if raw_value.isdigit() and 1 <= int(raw_value) <= option_count:
            return int(raw_value) - 1
        print(f"Invalid selection. Please enter a number from 1 to {option_count}.")


def _prompt_battle_outcome() -> BattleOutcome:
    while True:
        raw_value = input("Did you win? [y/n]: ").strip().lower()
        if raw_value in ("y", "yes"):
            return "victory"
        if raw_value in ("n", "no"):
            return "defeat"
        print("Please answer y or n.")


def _print_ledger(ledger: Dict[str, int]) -> None:
    if ledger and render.debug_enabled():
        print(f"Choices: {ledger}")
