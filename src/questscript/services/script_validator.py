"""Static quest script validation utilities."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Set, Tuple

from questscript.data.errors import DataError
from questscript.data.json_loader import load_json
from questscript.data.repositories import parse_script
from questscript.domain.defs import (
    ChoiceNode,
    CombatNode,
    ConditionNode,
    EndNode,
    LinkScriptNode,
    ScriptDef,
    ScriptNode,
    TriggerNode,
)
from questscript.domain.graph import output_count
from questscript.services.trigger_dispatcher import is_known_event

Severity = str


@dataclass(frozen=True, slots=True)
class Issue:
    severity: Severity
    code: str
    message: str
    context: dict[str, str]


def format_issue(issue: Issue) -> str:
    context = " ".join(f"{key}={value}" for key, value in issue.context.items())
    suffix = f" ({context})" if context else ""
    return f"[{issue.severity}] {issue.code}: {issue.message}{suffix}"


def has_errors(issues: Iterable[Issue]) -> bool:
    return any(issue.severity == "ERROR" for issue in issues)


def validate_script_file(path: Path | str) -> list[Issue]:
    """Load and validate one script file, reporting load failures as issues."""
    file_path = Path(path)
    try:
        raw = load_json(file_path)
        script = parse_script(file_path.stem, raw)
    except DataError as exc:
        return [
            Issue(
                severity="ERROR",
                code="LOAD_ERROR",
                message=str(exc),
                context={"script_id": file_path.stem},
            )
        ]
    return validate_script(script)


def validate_script(script: ScriptDef) -> list[Issue]:
    """Return every problem found in ``script`` without raising."""
    issues: list[Issue] = []
    nodes: Dict[str, ScriptNode] = {}
    for node in script.nodes:
        if node.id in nodes:
            issues.append(_issue("ERROR", "DUPLICATE_NODE_ID", "Duplicate node id detected.", script, node.id))
            continue
        nodes[node.id] = node

    edges: Dict[Tuple[str, int], str] = {}
    for connection in script.connections:
        source = nodes.get(connection.from_node_id)
        if source is None or connection.to_node_id not in nodes:
            missing = connection.from_node_id if source is None else connection.to_node_id
            issues.append(
                _issue(
                    "ERROR",
                    "MISSING_NODE_REF",
                    "Connection references missing node.",
                    script,
                    connection.from_node_id,
                    referenced_id=missing,
                )
            )
            continue
        if not 0 <= connection.output_index < output_count(source):
            issues.append(
                _issue(
                    "ERROR",
                    "INVALID_OUTPUT_INDEX",
                    f"{source.type} node has no output {connection.output_index}.",
                    script,
                    source.id,
                )
            )
            continue
        key = (connection.from_node_id, connection.output_index)
        if key in edges:
            issues.append(
                _issue(
                    "ERROR",
                    "DUPLICATE_CONNECTION",
                    f"Output {connection.output_index} is connected more than once.",
                    script,
                    source.id,
                )
            )
            continue
        edges[key] = connection.to_node_id

    entries = _validate_entry(script, nodes, edges, issues)
    if len(entries) == 1:
        _validate_reachability(script, nodes, edges, entries[0], issues)
    for node in nodes.values():
        _validate_node(script, node, edges, issues)
    return issues


def _validate_entry(
    script: ScriptDef,
    nodes: Dict[str, ScriptNode],
    edges: Dict[Tuple[str, int], str],
    issues: list[Issue],
) -> list[str]:
    targets = set(edges.values())
    entries = [node_id for node_id, node in nodes.items() if node_id not in targets and not isinstance(node, EndNode)]
    if len(entries) != 1:
        issues.append(
            Issue(
                severity="ERROR",
                code="AMBIGUOUS_ENTRY",
                message="Script must have exactly one entry node.",
                context={"script_id": script.id, "candidates": ",".join(entries) or "none"},
            )
        )
    return entries


def _validate_reachability(
    script: ScriptDef,
    nodes: Dict[str, ScriptNode],
    edges: Dict[Tuple[str, int], str],
    entry_id: str,
    issues: list[Issue],
) -> None:
    adjacency: Dict[str, List[str]] = {}
    for (source_id, _), target_id in edges.items():
        adjacency.setdefault(source_id, []).append(target_id)
    seen: Set[str] = {entry_id}
    queue = deque([entry_id])
    while queue:
        current = queue.popleft()
        for target in adjacency.get(current, []):
            if target not in seen:
                seen.add(target)
                queue.append(target)
    for node_id in nodes:
        if node_id not in seen:
            issues.append(
                _issue("WARN", "UNREACHABLE_NODE", "Node cannot be reached from the entry node.", script, node_id)
            )


def _validate_node(
    script: ScriptDef,
    node: ScriptNode,
    edges: Dict[Tuple[str, int], str],
    issues: list[Issue],
) -> None:
    if isinstance(node, ChoiceNode):
        if not node.options:
            issues.append(_issue("ERROR", "EMPTY_CHOICE", "Choice node has no options.", script, node.id))
        for index, option in enumerate(node.options):
            if (node.id, index) not in edges:
                issues.append(
                    _issue(
                        "WARN",
                        "MISSING_CHOICE_BRANCH",
                        f"Option {index} ({option!r}) leads nowhere; choosing it stops the script.",
                        script,
                        node.id,
                    )
                )
        return
    if isinstance(node, (ConditionNode, CombatNode)):
        labels = ("true", "false") if isinstance(node, ConditionNode) else ("victory", "defeat")
        for index, label in enumerate(labels):
            if (node.id, index) not in edges:
                issues.append(
                    _issue(
                        "WARN",
                        "MISSING_CONDITION_BRANCH" if isinstance(node, ConditionNode) else "MISSING_COMBAT_BRANCH",
                        f"The {label} output is not connected.",
                        script,
                        node.id,
                    )
                )
        return
    if isinstance(node, TriggerNode) and not is_known_event(node.event):
        issues.append(
            _issue(
                "WARN",
                "UNKNOWN_TRIGGER_EVENT",
                f"Trigger event '{node.event}' is not recognised and will be skipped.",
                script,
                node.id,
            )
        )
    if isinstance(node, LinkScriptNode):
        if not node.target_script_id.strip():
            issues.append(_issue("ERROR", "EMPTY_LINK_TARGET", "Link node has no target script.", script, node.id))
        return
    if isinstance(node, (EndNode, TriggerNode)):
        return
    if (node.id, 0) not in edges:
        issues.append(
            _issue(
                "WARN",
                "DEAD_END",
                f"{node.type} node has no outgoing connection; the script stops here.",
                script,
                node.id,
            )
        )


def _issue(
    severity: Severity,
    code: str,
    message: str,
    script: ScriptDef,
    node_id: str,
    **extra: str,
) -> Issue:
    context = {"script_id": script.id, "node_id": node_id}
    context.update(extra)
    return Issue(severity=severity, code=code, message=message, context=context)
