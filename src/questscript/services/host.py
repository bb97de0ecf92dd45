"""Contracts the interpreter calls outward through.

A host game subclasses ``QuestHost`` and overrides the methods it
supports. Methods without a sensible default raise NotImplementedError;
world-event hooks default to doing nothing. Player responses travel the
other way: the host calls ``QuestRunner.advance`` when the player
continues a dialogue or picks a choice.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Literal, Mapping

from questscript.core.types import BattleOutcome

PresentationKind = Literal["dialogue", "choice", "image"]
CancelTimer = Callable[[], None]


@dataclass(slots=True)
class DialoguePayload:
    node_id: str
    speaker: str
    text: str
    character: str | None = None
    emoji: str | None = None
    portrait: str | None = None


@dataclass(slots=True)
class ChoicePayload:
    node_id: str
    question: str
    options: List[str] = field(default_factory=list)


@dataclass(slots=True)
class ImagePayload:
    node_id: str
    path: str
    duration: float


PresentationPayload = DialoguePayload | ChoicePayload | ImagePayload


@dataclass(frozen=True, slots=True)
class QuestWarning:
    """Non-fatal problem surfaced to the host; never changes control flow."""

    code: str
    message: str
    context: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SpawnRequest:
    npc_id: str
    emoji: str | None = None
    name: str | None = None
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    scale: float = 1.0


class QuestHost:
    """Base class for the game-side collaborators of a QuestRunner."""

    # Presentation

    def present(self, kind: PresentationKind, payload: PresentationPayload) -> None:
        raise NotImplementedError

    def start_timer(self, seconds: float, callback: Callable[[], None]) -> CancelTimer | None:
        """Call ``callback`` after ``seconds``; return a cancel function if supported.

        Returning None means the host has no timer and an image waits for
        ``advance`` only.
        """
        return None

    def call_soon(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` on the thread that drives the quest.

        The runner routes durable-write completions through here, since a
        future may be resolved on a worker thread. Hosts with an event loop
        should post ``callback`` onto it; the default calls it directly.
        """
        callback()

    # Inventory

    def give_item(self, item_id: str, amount: int) -> bool:
        raise NotImplementedError

    def take_item(self, item_id: str, amount: int) -> bool:
        """Remove items; return False if the player holds fewer than ``amount``."""
        raise NotImplementedError

    def count_item(self, item_id: str) -> int:
        raise NotImplementedError

    # Combat

    def start_battle(
        self, opponent: Mapping[str, object], on_complete: Callable[[BattleOutcome], None]
    ) -> None:
        raise NotImplementedError

    # NPCs

    def spawn_npc(self, request: SpawnRequest) -> str:
        """Spawn an NPC and return the id the host will know it by."""
        raise NotImplementedError

    def remove_npc(self, npc_id: str) -> None:
        raise NotImplementedError

    # World events

    def play_music(self, track_path: str) -> None:
        return None

    def stop_music(self) -> None:
        return None

    def show_status(self, message: str, status_type: str) -> None:
        return None

    def teleport(self, x: float, y: float, z: float) -> None:
        return None

    def set_time(self, hour: float) -> None:
        return None

    def set_weather(self, weather: str) -> None:
        return None

    # Templates and reporting

    def template_table(self) -> Mapping[str, str]:
        """Return a fresh ``{{key}} -> value`` table from current player state."""
        return {}

    def report_warning(self, warning: QuestWarning) -> None:
        return None
