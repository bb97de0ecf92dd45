"""Quest script definition structures used by the runtime.

Each node type is its own dataclass carrying only the fields that type
needs. ``ScriptNode`` is the union the executor dispatches over.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Union

from questscript.core.types import CheckType, FlagValue, ItemAction, NodeType


@dataclass(slots=True)
class DialogueNode:
    """A line of speech shown to the player until they continue."""

    id: str
    text: str
    speaker: str = "companion"
    character: str | None = None
    emoji: str | None = None
    portrait: str | None = None

    type: NodeType = field(default="dialogue", init=False)


@dataclass(slots=True)
class ChoiceNode:
    """A question with ordered options; output ``i`` follows option ``i``."""

    id: str
    question: str
    options: List[str] = field(default_factory=lambda: ["Yes", "No"])

    type: NodeType = field(default="choice", init=False)


@dataclass(slots=True)
class ImageNode:
    id: str
    path: str
    duration: float = 3.0

    type: NodeType = field(default="image", init=False)


@dataclass(slots=True)
class ItemNode:
    id: str
    item_id: str
    action: ItemAction = "give"
    amount: int = 1

    type: NodeType = field(default="item", init=False)


@dataclass(slots=True)
class TriggerNode:
    """Fires one host event and moves on without waiting."""

    id: str
    event: str
    params: Dict[str, object] = field(default_factory=dict)

    type: NodeType = field(default="trigger", init=False)


@dataclass(slots=True)
class ConditionNode:
    """Checks a flag or inventory count; output 0 on match, 1 otherwise."""

    id: str
    check_type: CheckType
    target: str
    expected: FlagValue = True
    amount: int = 1

    type: NodeType = field(default="condition", init=False)


@dataclass(slots=True)
class CombatNode:
    """Hands an opponent descriptor to the host battle subsystem."""

    id: str
    opponent: Dict[str, object] = field(default_factory=dict)

    type: NodeType = field(default="combat", init=False)


@dataclass(slots=True)
class LinkScriptNode:
    id: str
    target_script_id: str
    use_templates: bool = False

    type: NodeType = field(default="link_script", init=False)


@dataclass(slots=True)
class EndNode:
    id: str

    type: NodeType = field(default="end", init=False)


ScriptNode = Union[
    DialogueNode,
    ChoiceNode,
    ImageNode,
    ItemNode,
    TriggerNode,
    ConditionNode,
    CombatNode,
    LinkScriptNode,
    EndNode,
]


@dataclass(frozen=True, slots=True)
class Connection:
    """Directed edge leaving ``from_node_id`` through ``output_index``."""

    from_node_id: str
    output_index: int
    to_node_id: str


@dataclass(slots=True)
class ScriptDef:
    """Fully parsed quest script: ordered nodes plus connections."""

    id: str
    nodes: List[ScriptNode] = field(default_factory=list)
    connections: List[Connection] = field(default_factory=list)
