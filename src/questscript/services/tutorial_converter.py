"""Conversion between tutorial message catalogs and quest scripts.

A tutorial catalog looks like::

    {"tutorials": {"game_start": {"title": "...", "trigger": "onGameStart",
                                  "once": true, "messages": [{"text": "...", "delay": 0}]}}}

Each tutorial becomes a chain of dialogue nodes. Tutorial metadata rides
along on the script so the conversion can be reversed.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping

from questscript.data.errors import DataValidationError
from questscript.domain.defs import Connection, DialogueNode, ScriptDef

CATALOG_VERSION = "1.0.0"
_DEFAULT_TRIGGER = "onGameStart"
_TITLE_LIMIT = 20


@dataclass(slots=True)
class TutorialMessage:
    text: str
    delay: int = 0


@dataclass(slots=True)
class TutorialDef:
    id: str
    title: str
    trigger: str = _DEFAULT_TRIGGER
    once: bool = True
    messages: List[TutorialMessage] = field(default_factory=list)


@dataclass(slots=True)
class TutorialNodeMeta:
    """Per-node metadata kept beside the script for the reverse conversion."""

    tutorial_id: str
    name: str
    delay: int
    trigger: str
    once: bool


@dataclass(slots=True)
class TutorialScript:
    script: ScriptDef
    meta: Dict[str, TutorialNodeMeta] = field(default_factory=dict)


def parse_catalog(raw: Mapping[str, object]) -> List[TutorialDef]:
    """Parse a tutorial catalog into definitions, in catalog order."""
    tutorials = raw.get("tutorials", {})
    if not isinstance(tutorials, dict):
        raise DataValidationError("tutorials must be an object/dict.")
    parsed: List[TutorialDef] = []
    for key, entry in tutorials.items():
        if not isinstance(entry, dict):
            raise DataValidationError(f"tutorial '{key}' must be an object/dict.")
        tutorial_id = entry.get("id", key)
        messages_raw = entry.get("messages", [])
        if not isinstance(messages_raw, list):
            raise DataValidationError(f"tutorial '{key}' messages must be a list.")
        messages: List[TutorialMessage] = []
        for index, message in enumerate(messages_raw):
            if not isinstance(message, dict) or not isinstance(message.get("text"), str):
                raise DataValidationError(f"tutorial '{key}' messages[{index}] needs a text string.")
            delay = message.get("delay", 0)
            if isinstance(delay, bool) or not isinstance(delay, int) or delay < 0:
                raise DataValidationError(f"tutorial '{key}' messages[{index}] delay must be a non-negative integer.")
            messages.append(TutorialMessage(text=message["text"], delay=delay))
        parsed.append(
            TutorialDef(
                id=str(tutorial_id),
                title=str(entry.get("title") or tutorial_id),
                trigger=str(entry.get("trigger") or _DEFAULT_TRIGGER),
                once=entry.get("once") is not False,
                messages=messages,
            )
        )
    return parsed


def node_name(tutorial: TutorialDef, message_index: int) -> str:
    """Readable editor label, e.g. ``Welcome to the wo... [2]``."""
    title = tutorial.title
    short_title = title[:_TITLE_LIMIT] + "..." if len(title) > _TITLE_LIMIT else title
    return f"{short_title} [{message_index + 1}]"


def tutorials_to_script(raw: Mapping[str, object], script_id: str = "tutorials") -> TutorialScript:
    """Convert a tutorial catalog into one script of dialogue chains.

    The result has one chain per tutorial, so a catalog with several
    tutorials is meant for editing and validation rather than running.
    """
    nodes: List[DialogueNode] = []
    connections: List[Connection] = []
    meta: Dict[str, TutorialNodeMeta] = {}
    next_id = 0
    for tutorial in parse_catalog(raw):
        previous: DialogueNode | None = None
        for index, message in enumerate(tutorial.messages):
            node = DialogueNode(id=str(next_id), text=message.text, speaker="companion")
            next_id += 1
            nodes.append(node)
            meta[node.id] = TutorialNodeMeta(
                tutorial_id=tutorial.id,
                name=node_name(tutorial, index),
                delay=message.delay,
                trigger=tutorial.trigger,
                once=tutorial.once,
            )
            if previous is not None:
                connections.append(Connection(from_node_id=previous.id, output_index=0, to_node_id=node.id))
            previous = node
    return TutorialScript(script=ScriptDef(id=script_id, nodes=list(nodes), connections=connections), meta=meta)


def script_to_tutorials(converted: TutorialScript) -> Dict[str, object]:
    """Rebuild a tutorial catalog from a converted script."""
    grouped: Dict[str, List[DialogueNode]] = {}
    for node in converted.script.nodes:
        if not isinstance(node, DialogueNode):
            continue
        info = converted.meta.get(node.id)
        tutorial_id = info.tutorial_id if info is not None else "unknown"
        grouped.setdefault(tutorial_id, []).append(node)

    tutorials: Dict[str, object] = {}
    for tutorial_id, group in grouped.items():
        ordered = _follow_chain(group, converted.script.connections)
        first_meta = converted.meta.get(ordered[0].id)
        title = first_meta.name.split("[")[0].strip() if first_meta is not None else tutorial_id
        tutorials[tutorial_id] = {
            "id": tutorial_id,
            "title": title,
            "trigger": first_meta.trigger if first_meta is not None else _DEFAULT_TRIGGER,
            "once": first_meta.once if first_meta is not None else True,
            "messages": [
                {
                    "text": node.text,
                    "delay": converted.meta[node.id].delay if node.id in converted.meta else 0,
                }
                for node in ordered
            ],
        }
    return {
        "version": CATALOG_VERSION,
        "description": "Companion tutorial scripts - exported from quest scripts",
        "tutorials": tutorials,
    }


def _follow_chain(group: List[DialogueNode], connections: List[Connection]) -> List[DialogueNode]:
    by_id = {node.id: node for node in group}
    next_of = {
        connection.from_node_id: connection.to_node_id
        for connection in connections
        if connection.from_node_id in by_id and connection.to_node_id in by_id
    }
    incoming = set(next_of.values())
    start = next((node for node in group if node.id not in incoming), group[0])
    ordered: List[DialogueNode] = []
    current: DialogueNode | None = start
    while current is not None and current not in ordered:
        ordered.append(current)
        target = next_of.get(current.id)
        current = by_id.get(target) if target is not None else None
    return ordered


def tutorial_script(raw: Mapping[str, object], tutorial_id: str) -> ScriptDef:
    """Return a runnable single-chain script for one tutorial."""
    for tutorial in parse_catalog(raw):
        if tutorial.id != tutorial_id:
            continue
        converted = tutorials_to_script({"tutorials": {tutorial.id: _as_raw(tutorial)}}, script_id=tutorial.id)
        return converted.script
    raise KeyError(tutorial_id)


def _as_raw(tutorial: TutorialDef) -> Dict[str, object]:
    return {
        "id": tutorial.id,
        "title": tutorial.title,
        "trigger": tutorial.trigger,
        "once": tutorial.once,
        "messages": [{"text": message.text, "delay": message.delay} for message in tutorial.messages],
    }
