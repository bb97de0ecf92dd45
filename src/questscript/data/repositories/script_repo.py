"""Repository for quest script files."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from questscript.data.errors import DataValidationError, GraphIntegrityError
from questscript.data.repositories.base import RepositoryBase
from questscript.domain.defs import (
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
from questscript.domain.graph import ScriptGraph

_FROM_KEYS = ("fromNodeId", "fromId", "sourceId", "from")
_TO_KEYS = ("toNodeId", "toId", "targetId", "to")
_LINK_TARGET_KEYS = ("scriptPath", "target", "nextScript")


class ScriptRepository(RepositoryBase):
    """Loads quest scripts from disk and validates their graph.

    Nothing is cached: every call reads the file again and returns fresh
    node objects, so template rewrites never leak between runs.
    """

    def load(self, script_id: str) -> ScriptGraph:
        """Return the validated graph for ``script_id``."""
        raw = self._load_raw(script_id)
        return ScriptGraph(parse_script(script_id, raw))

    def exists(self, script_id: str) -> bool:
        return self._get_file_path(script_id).is_file()

    def list_script_ids(self) -> List[str]:
        """Return ids of all scripts in the scripts directory, sorted."""
        base_dir = self.base_dir
        if not base_dir.is_dir():
            return []
        return sorted(path.stem for path in base_dir.glob("*.json"))


def load_script_file(path: Path | str) -> ScriptGraph:
    """Load a script from an explicit file path."""
    file_path = Path(path)
    repo = ScriptRepository(file_path.parent)
    return repo.load(file_path.name)


def parse_script(script_id: str, raw: object) -> ScriptDef:
    """Convert a raw ``{nodes, connections}`` payload into a ScriptDef."""
    if not isinstance(raw, dict):
        raise DataValidationError(f"script '{script_id}' must be an object/dict.")
    raw_nodes = raw.get("nodes", [])
    raw_connections = raw.get("connections", [])
    if not isinstance(raw_nodes, list):
        raise DataValidationError(f"script '{script_id}' nodes must be a list.")
    if not isinstance(raw_connections, list):
        raise DataValidationError(f"script '{script_id}' connections must be a list.")
    nodes = [_parse_node(entry, f"script '{script_id}' nodes[{index}]") for index, entry in enumerate(raw_nodes)]
    connections = [
        _parse_connection(entry, f"script '{script_id}' connections[{index}]")
        for index, entry in enumerate(raw_connections)
    ]
    return ScriptDef(id=script_id, nodes=nodes, connections=connections)


def _parse_node(entry: object, context: str) -> ScriptNode:
    node_data = RepositoryBase._require_mapping(entry, context)
    node_id = _require_id(node_data.get("id"), f"{context} id")
    node_type = node_data.get("type")
    data = node_data.get("data", {})
    if data is None:
        data = {}
    data = RepositoryBase._require_mapping(data, f"{context} data")
    ctx = f"node '{node_id}'"

    if node_type == "dialogue":
        return DialogueNode(
            id=node_id,
            text=_optional_str(data.get("text"), f"{ctx} text", default="Hello!"),
            speaker=_optional_str(data.get("speaker"), f"{ctx} speaker", default="companion"),
            character=_optional_str(data.get("character"), f"{ctx} character", default=None),
            emoji=_optional_str(data.get("emoji"), f"{ctx} emoji", default=None),
            portrait=_optional_str(data.get("portrait"), f"{ctx} portrait", default=None),
        )
    if node_type == "choice":
        options = data.get("options", ["Yes", "No"])
        if not isinstance(options, list) or not all(isinstance(option, str) for option in options):
            raise DataValidationError(f"{ctx} options must be a list of strings.")
        return ChoiceNode(
            id=node_id,
            question=_optional_str(data.get("question"), f"{ctx} question", default="Choose:"),
            options=list(options),
        )
    if node_type == "image":
        duration = data.get("duration", 3)
        if isinstance(duration, bool) or not isinstance(duration, (int, float)) or duration < 0:
            raise DataValidationError(f"{ctx} duration must be a non-negative number.")
        return ImageNode(
            id=node_id,
            path=_optional_str(data.get("path"), f"{ctx} path", default=""),
            duration=float(duration),
        )
    if node_type == "item":
        action = data.get("action", "give")
        if action not in ("give", "take"):
            raise DataValidationError(f"{ctx} action must be 'give' or 'take'.")
        return ItemNode(
            id=node_id,
            item_id=_require_str(data.get("itemId"), f"{ctx} itemId"),
            action=action,
            amount=_positive_int(data.get("amount", 1), f"{ctx} amount"),
        )
    if node_type == "trigger":
        params = data.get("params", {})
        if params is None:
            params = {}
        params = RepositoryBase._require_mapping(params, f"{ctx} params")
        return TriggerNode(
            id=node_id,
            event=_require_str(data.get("event"), f"{ctx} event"),
            params=dict(params),
        )
    if node_type == "condition":
        return _parse_condition(node_id, data, ctx)
    if node_type == "combat":
        opponent = dict(RepositoryBase._require_mapping(data.get("opponent", data), f"{ctx} opponent"))
        opponent.setdefault("level", 1)
        return CombatNode(id=node_id, opponent=opponent)
    if node_type == "link_script":
        target = None
        for key in _LINK_TARGET_KEYS:
            if data.get(key):
                target = data[key]
                break
        use_templates = data.get("useTemplates", False)
        if not isinstance(use_templates, bool):
            raise DataValidationError(f"{ctx} useTemplates must be a boolean.")
        return LinkScriptNode(
            id=node_id,
            target_script_id=_require_str(target, f"{ctx} scriptPath"),
            use_templates=use_templates,
        )
    if node_type == "end":
        return EndNode(id=node_id)
    raise GraphIntegrityError(f"{ctx} has unknown type {node_type!r}.")


def _parse_condition(node_id: str, data: Dict[str, object], ctx: str) -> ConditionNode:
    check_type = data.get("checkType", "hasItem")
    if check_type not in ("hasFlag", "hasItem"):
        raise DataValidationError(f"{ctx} checkType must be 'hasFlag' or 'hasItem'.")
    if "target" in data:
        target = _require_str(data.get("target"), f"{ctx} target")
        expected = data.get("value", data.get("expected", True))
    else:
        # Editor format: ``value`` names the flag or item being checked.
        target = _require_str(data.get("value"), f"{ctx} value")
        expected = data.get("expected", True)
    if not isinstance(expected, (bool, int, float, str)):
        raise DataValidationError(f"{ctx} expected value must be a boolean, number or string.")
    return ConditionNode(
        id=node_id,
        check_type=check_type,
        target=target,
        expected=expected,
        amount=_positive_int(data.get("amount", 1), f"{ctx} amount"),
    )


def _parse_connection(entry: object, context: str) -> Connection:
    data = RepositoryBase._require_mapping(entry, context)
    from_id = _require_id(_first_present(data, _FROM_KEYS), f"{context} fromId")
    to_id = _require_id(_first_present(data, _TO_KEYS), f"{context} toId")
    return Connection(
        from_node_id=from_id,
        output_index=_output_index(data, context),
        to_node_id=to_id,
    )


def _output_index(data: Dict[str, object], context: str) -> int:
    if "outputIndex" in data:
        value = data["outputIndex"]
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise DataValidationError(f"{context} outputIndex must be a non-negative integer.")
        return value
    handle = data.get("sourceHandle")
    if handle is None:
        return 0
    if not isinstance(handle, str) or not handle.startswith("output_"):
        raise DataValidationError(f"{context} sourceHandle must look like 'output_<n>'.")
    suffix = handle[len("output_"):]
    if not suffix.isdigit():
        raise DataValidationError(f"{context} sourceHandle must look like 'output_<n>'.")
    return int(suffix)


def _first_present(data: Dict[str, object], keys: tuple[str, ...]) -> object:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _require_id(value: object, context: str) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise DataValidationError(f"{context} must be a string or integer.")
    return str(value)


def _require_str(value: object, context: str) -> str:
    if not isinstance(value, str) or not value:
        raise DataValidationError(f"{context} must be a non-empty string.")
    return value


def _optional_str(value: object, context: str, *, default: str | None) -> str | None:
    if value is None:
        return default
    if not isinstance(value, str):
        raise DataValidationError(f"{context} must be a string if provided.")
    return value


def _positive_int(value: object, context: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise DataValidationError(f"{context} must be a positive integer.")
    return value
