"""Template token substitution for script text fields."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping

from questscript.domain.defs import ScriptDef

TemplateTable = Dict[str, str]

TEMPLATE_FIELDS: tuple[str, ...] = ("text", "speaker", "question", "character")
DEFAULT_COMPANION_ID = "rat"
DEFAULT_PLAYER_RACE = "unknown"

_TOKEN_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")


@dataclass(frozen=True, slots=True)
class PlayerSnapshot:
    """Read-only view of the player fields templates are built from."""

    companion_id: str = DEFAULT_COMPANION_ID
    player_race: str = DEFAULT_PLAYER_RACE


def apply_template(text: str, table: Mapping[str, str]) -> str:
    """Replace every ``{{key}}`` present in ``table``; unknown tokens stay verbatim."""
    result = text
    for key, value in table.items():
        result = result.replace("{{" + key + "}}", value)
    return result


def find_tokens(text: str) -> List[str]:
    """Return the names of all ``{{name}}`` tokens in ``text`` in order."""
    return _TOKEN_PATTERN.findall(text)


def companion_display_name(companion_id: str) -> str:
    """``elf_male`` -> ``Elf``: the capitalized leading word of the id."""
    head = companion_id.split("_")[0]
    if not head:
        return companion_id
    return head[:1].upper() + head[1:]


def build_template_table(
    snapshot: PlayerSnapshot,
    name_for: Callable[[str], str] = companion_display_name,
) -> TemplateTable:
    """Build a fresh substitution table from a player snapshot."""
    race = snapshot.player_race
    return {
        "companion_id": snapshot.companion_id,
        "companion_name": name_for(snapshot.companion_id),
        "player_race": race[:1].upper() + race[1:],
    }


def apply_templates_to_script(script: ScriptDef, table: Mapping[str, str]) -> int:
    """Rewrite every template field across the script's nodes in place.

    Returns the number of fields whose value changed.
    """
    changed = 0
    for node in script.nodes:
        for field_name in TEMPLATE_FIELDS:
            value = getattr(node, field_name, None)
            if not isinstance(value, str):
                continue
            rewritten = apply_template(value, table)
            if rewritten != value:
                setattr(node, field_name, rewritten)
                changed += 1
    return changed
