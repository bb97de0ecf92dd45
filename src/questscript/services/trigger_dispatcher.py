"""Dispatch table for trigger node events."""
from __future__ import annotations

import logging
from typing import Callable, Dict, Mapping

from questscript.domain.defs import TriggerNode
from questscript.domain.run_state import RunState
from questscript.services.errors import UnknownTriggerEvent
from questscript.services.flag_store import FlagStore
from questscript.services.host import QuestHost, SpawnRequest

logger = logging.getLogger(__name__)

TriggerHandler = Callable[[Mapping[str, object], RunState], None]

KNOWN_TRIGGER_EVENTS: tuple[str, ...] = (
    "playMusic",
    "stopMusic",
    "setFlag",
    "spawnNPC",
    "removeNPC",
    "showStatus",
    "teleport",
    "setTime",
    "setWeather",
)


class TriggerDispatcher:
    """Maps trigger event names to host effects."""

    def __init__(self, host: QuestHost, flag_store: FlagStore) -> None:
        self._host = host
        self._flag_store = flag_store
        self._handlers: Dict[str, TriggerHandler] = {
            "playMusic": self._play_music,
            "stopMusic": self._stop_music,
            "setFlag": self._set_flag,
            "spawnNPC": self._spawn_npc,
            "removeNPC": self._remove_npc,
            "showStatus": self._show_status,
            "teleport": self._teleport,
            "setTime": self._set_time,
            "setWeather": self._set_weather,
        }

    def dispatch(self, node: TriggerNode, state: RunState) -> None:
        """Apply the node's event; raises UnknownTriggerEvent for unknown names."""
        handler = self._handlers.get(node.event)
        if handler is None:
            raise UnknownTriggerEvent(node.event)
        logger.debug("Trigger %s on node %s: %s", node.event, node.id, node.params)
        handler(node.params, state)

    def _play_music(self, params: Mapping[str, object], state: RunState) -> None:
        self._host.play_music(_require_str(params.get("trackPath"), "playMusic.trackPath"))

    def _stop_music(self, params: Mapping[str, object], state: RunState) -> None:
        self._host.stop_music()

    def _set_flag(self, params: Mapping[str, object], state: RunState) -> None:
        name = _require_str(params.get("flag"), "setFlag.flag")
        value = params.get("value", True)
        if not isinstance(value, (bool, int, float, str)):
            raise ValueError("setFlag.value must be a boolean, number or string.")
        self._flag_store.set(name, value)

    def _spawn_npc(self, params: Mapping[str, object], state: RunState) -> None:
        request = SpawnRequest(
            npc_id=_require_str(params.get("npcId"), "spawnNPC.npcId"),
            emoji=_optional_str(params.get("emoji"), "spawnNPC.emoji"),
            name=_optional_str(params.get("name"), "spawnNPC.name"),
            x=_number(params.get("x", 0), "spawnNPC.x"),
            y=_number(params.get("y", 0), "spawnNPC.y"),
            z=_number(params.get("z", 0), "spawnNPC.z"),
            scale=_number(params.get("scale", 1), "spawnNPC.scale"),
        )
        spawned_id = self._host.spawn_npc(request)
        state.active_npc_ids.add(spawned_id)

    def _remove_npc(self, params: Mapping[str, object], state: RunState) -> None:
        npc_id = _require_str(params.get("npcId"), "removeNPC.npcId")
        self._host.remove_npc(npc_id)
        state.active_npc_ids.discard(npc_id)

    def _show_status(self, params: Mapping[str, object], state: RunState) -> None:
        message = _require_str(params.get("message"), "showStatus.message")
        status_type = _optional_str(params.get("type"), "showStatus.type") or "info"
        self._host.show_status(message, status_type)

    def _teleport(self, params: Mapping[str, object], state: RunState) -> None:
        self._host.teleport(
            _number(params.get("x"), "teleport.x"),
            _number(params.get("y"), "teleport.y"),
            _number(params.get("z"), "teleport.z"),
        )

    def _set_time(self, params: Mapping[str, object], state: RunState) -> None:
        hour = _number(params.get("hour"), "setTime.hour")
        if not 0 <= hour < 24:
            raise ValueError("setTime.hour must be between 0 and 24.")
        self._host.set_time(hour)

    def _set_weather(self, params: Mapping[str, object], state: RunState) -> None:
        self._host.set_weather(_require_str(params.get("weather"), "setWeather.weather"))


def _require_str(value: object, context: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{context} must be a non-empty string.")
    return value


def _optional_str(value: object, context: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{context} must be a string if provided.")
    return value


def _number(value: object, context: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{context} must be a number.")
    return float(value)


def is_known_event(event: str) -> bool:
    return event in KNOWN_TRIGGER_EVENTS
