"""In-memory graph model for one quest script."""
from __future__ import annotations

from typing import Dict, List, Tuple

from questscript.data.errors import AmbiguousEntryError, GraphIntegrityError
from questscript.domain.defs import (
    ChoiceNode,
    CombatNode,
    ConditionNode,
    Connection,
    EndNode,
    ScriptDef,
    ScriptNode,
)

DEFAULT_OUTPUT = 0
TRUE_OUTPUT = 0
FALSE_OUTPUT = 1
VICTORY_OUTPUT = 0
DEFEAT_OUTPUT = 1


def output_count(node: ScriptNode) -> int:
    """Return how many output indices the node type can produce."""
    if isinstance(node, ChoiceNode):
        return len(node.options)
    if isinstance(node, (ConditionNode, CombatNode)):
        return 2
    if isinstance(node, EndNode):
        return 0
    return 1


class ScriptGraph:
    """Nodes plus an ``(node_id, output_index)`` edge index built once at load."""

    def __init__(self, script: ScriptDef) -> None:
        self._script = script
        self._nodes: Dict[str, ScriptNode] = {}
        for node in script.nodes:
            if node.id in self._nodes:
                raise GraphIntegrityError(f"Script '{script.id}' defines node '{node.id}' more than once.")
            self._nodes[node.id] = node
        self._edges: Dict[Tuple[str, int], str] = {}
        for connection in script.connections:
            self._index_connection(connection)
        self._entry = self._find_entry()

    @property
    def script_id(self) -> str:
        return self._script.id

    @property
    def script(self) -> ScriptDef:
        return self._script

    @property
    def entry_node(self) -> ScriptNode:
        return self._entry

    def nodes(self) -> List[ScriptNode]:
        """Return nodes in authored order."""
        return list(self._script.nodes)

    def node(self, node_id: str) -> ScriptNode:
        try:
            return self._nodes[node_id]
        except KeyError as exc:
            raise KeyError(node_id) from exc

    def connection_from(self, node_id: str, output_index: int) -> ScriptNode | None:
        """Return the node reached through ``output_index``, or None if unconnected."""
        target_id = self._edges.get((node_id, output_index))
        if target_id is None:
            return None
        return self._nodes[target_id]

    def _index_connection(self, connection: Connection) -> None:
        source = self._nodes.get(connection.from_node_id)
        if source is None:
            raise GraphIntegrityError(
                f"Script '{self.script_id}' connection starts at unknown node '{connection.from_node_id}'."
            )
        if connection.to_node_id not in self._nodes:
            raise GraphIntegrityError(
                f"Script '{self.script_id}' connection targets unknown node '{connection.to_node_id}'."
            )
        if not 0 <= connection.output_index < output_count(source):
            raise GraphIntegrityError(
                f"Script '{self.script_id}' node '{source.id}' ({source.type}) has no output "
                f"{connection.output_index}."
            )
        key = (connection.from_node_id, connection.output_index)
        if key in self._edges:
            raise GraphIntegrityError(
                f"Script '{self.script_id}' node '{source.id}' output {connection.output_index} "
                "is connected more than once."
            )
        self._edges[key] = connection.to_node_id

    def _find_entry(self) -> ScriptNode:
        targets = set(self._edges.values())
        candidates = [
            node for node in self._script.nodes if node.id not in targets and not isinstance(node, EndNode)
        ]
        if len(candidates) != 1:
            found = ", ".join(node.id for node in candidates) or "none"
            raise AmbiguousEntryError(
                f"Script '{self.script_id}' must have exactly one entry node (found: {found})."
            )
        return candidates[0]
