"""Service layer exports."""

from .errors import FlagStoreError, LinkTargetError, QuestRuntimeError, RunnerStateError, UnknownTriggerEvent
from .flag_store import FlagStore
from .host import (
    ChoicePayload,
    DialoguePayload,
    ImagePayload,
    QuestHost,
    QuestWarning,
    SpawnRequest,
)
from .quest_runner import QuestRunner

__all__ = [
    "ChoicePayload",
    "DialoguePayload",
    "FlagStore",
    "FlagStoreError",
    "ImagePayload",
    "LinkTargetError",
    "QuestHost",
    "QuestRunner",
    "QuestRuntimeError",
    "QuestWarning",
    "RunnerStateError",
    "SpawnRequest",
    "UnknownTriggerEvent",
]
