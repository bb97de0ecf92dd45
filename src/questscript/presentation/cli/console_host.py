"""Console implementation of the quest host contracts."""
from __future__ import annotations

from typing import Callable, Dict, List, Mapping

from questscript.core.types import BattleOutcome
from questscript.domain.templates import PlayerSnapshot, build_template_table
from questscript.presentation.cli import render
from questscript.services.host import (
    ChoicePayload,
    DialoguePayload,
    ImagePayload,
    PresentationKind,
    PresentationPayload,
    QuestHost,
    QuestWarning,
    SpawnRequest,
)


class ConsoleHost(QuestHost):
    """Prints presentation requests and keeps a small in-memory inventory.

    Battles are not resolved here: the play loop asks the player for the
    outcome and calls ``resolve_battle``.
    """

    def __init__(self, snapshot: PlayerSnapshot | None = None) -> None:
        self.snapshot = snapshot or PlayerSnapshot()
        self.inventory: Dict[str, int] = {}
        self.npcs: Dict[str, SpawnRequest] = {}
        self.warnings: List[QuestWarning] = []
        self.last_choice: ChoicePayload | None = None
        self._pending_battle: Callable[[BattleOutcome], None] | None = None
        self.pending_opponent: Mapping[str, object] | None = None

    def present(self, kind: PresentationKind, payload: PresentationPayload) -> None:
        if isinstance(payload, DialoguePayload):
            render.render_dialogue(payload)
        elif isinstance(payload, ChoicePayload):
            self.last_choice = payload
            render.render_choices(payload.question, payload.options)
        elif isinstance(payload, ImagePayload):
            render.render_image(payload)
        else:
            raise TypeError(f"Unsupported presentation kind {kind!r}")

    def give_item(self, item_id: str, amount: int) -> bool:
        self.inventory[item_id] = self.inventory.get(item_id, 0) + amount
        print(f"+ {amount}x {item_id}")
        return True

    def take_item(self, item_id: str, amount: int) -> bool:
        current = self.inventory.get(item_id, 0)
        if current < amount:
            return False
        remaining = current - amount
        if remaining:
            self.inventory[item_id] = remaining
        else:
            self.inventory.pop(item_id, None)
        print(f"- {amount}x {item_id}")
        return True

    def count_item(self, item_id: str) -> int:
        return self.inventory.get(item_id, 0)

    def start_battle(
        self, opponent: Mapping[str, object], on_complete: Callable[[BattleOutcome], None]
    ) -> None:
        render.render_heading(f"Battle: {opponent.get('enemy', 'unknown foe')} (level {opponent.get('level', 1)})")
        self.pending_opponent = opponent
        self._pending_battle = on_complete

    def resolve_battle(self, outcome: BattleOutcome) -> None:
        callback, self._pending_battle = self._pending_battle, None
        self.pending_opponent = None
        if callback is not None:
            callback(outcome)

    def spawn_npc(self, request: SpawnRequest) -> str:
        self.npcs[request.npc_id] = request
        prefix = f"{request.emoji} " if request.emoji else ""
        print(f"* {prefix}{request.name or request.npc_id} appears")
        return request.npc_id

    def remove_npc(self, npc_id: str) -> None:
        if self.npcs.pop(npc_id, None) is not None:
            print(f"* {npc_id} leaves")

    def play_music(self, track_path: str) -> None:
        print(f"~ music: {track_path}")

    def stop_music(self) -> None:
        print("~ music stops")

    def show_status(self, message: str, status_type: str) -> None:
        print(f"[{status_type}] {message}")

    def teleport(self, x: float, y: float, z: float) -> None:
        print(f"* teleported to ({x:g}, {y:g}, {z:g})")

    def set_time(self, hour: float) -> None:
        print(f"* time is now {hour:g}:00")

    def set_weather(self, weather: str) -> None:
        print(f"* weather: {weather}")

    def template_table(self) -> Mapping[str, str]:
        return build_template_table(self.snapshot)

    def report_warning(self, warning: QuestWarning) -> None:
        self.warnings.append(warning)
        if render.debug_enabled():
            render.render_warnings([warning])
