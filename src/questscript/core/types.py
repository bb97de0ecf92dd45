"""Shared type aliases for the core, domain and service layers."""
from typing import Literal

NodeType = Literal[
    "dialogue",
    "choice",
    "image",
    "item",
    "trigger",
    "condition",
    "combat",
    "link_script",
    "end",
]
RunPhase = Literal["running", "suspended", "paused", "stopped"]
ExecutorState = Literal["idle", "running", "awaiting_input", "awaiting_external", "advancing"]
ItemAction = Literal["give", "take"]
CheckType = Literal["hasFlag", "hasItem"]
BattleOutcome = Literal["victory", "defeat"]
FlagValue = bool | int | float | str

__all__ = [
    "BattleOutcome",
    "CheckType",
    "ExecutorState",
    "FlagValue",
    "ItemAction",
    "NodeType",
    "RunPhase",
]
