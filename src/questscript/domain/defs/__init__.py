"""Domain definition exports."""

from .script_def import (
    ChoiceNode,
    CombatNode,
    ConditionNode,
    Connection,
    DialogueNode,
    EndNode,
    ImageNode,
    ItemNode,
    LinkScriptNode,
    ScriptDef,
    ScriptNode,
    TriggerNode,
)

__all__ = [
    "ChoiceNode",
    "CombatNode",
    "ConditionNode",
    "Connection",
    "DialogueNode",
    "EndNode",
    "ImageNode",
    "ItemNode",
    "LinkScriptNode",
    "ScriptDef",
    "ScriptNode",
    "TriggerNode",
]
