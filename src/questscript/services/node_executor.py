"""Per-node effects and edge resolution for the quest runner."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal

from questscript.core.types import BattleOutcome
from questscript.data.errors import GraphIntegrityError
from questscript.domain.defs import (
    ChoiceNode,
    CombatNode,
    ConditionNode,
    DialogueNode,
    EndNode,
    ImageNode,
    ItemNode,
    LinkScriptNode,
    ScriptNode,
    TriggerNode,
)
from questscript.domain.graph import (
    DEFAULT_OUTPUT,
    DEFEAT_OUTPUT,
    FALSE_OUTPUT,
    TRUE_OUTPUT,
    VICTORY_OUTPUT,
    ScriptGraph,
)
from questscript.domain.run_state import RunState, Suspension
from questscript.domain.templates import find_tokens
from questscript.services.errors import UnknownTriggerEvent
from questscript.services.flag_store import FlagStore
from questscript.services.host import (
    ChoicePayload,
    DialoguePayload,
    ImagePayload,
    QuestHost,
    QuestWarning,
)
from questscript.services.trigger_dispatcher import TriggerDispatcher

logger = logging.getLogger(__name__)

COMPANION_SPEAKER = "companion"
COMPANION_EMOJI = "🐈‍⬛"
DEFAULT_SPEAKER_EMOJI = "🙂"

StepAction = Literal["continue", "suspend", "link", "end", "terminal"]


@dataclass(slots=True)
class Step:
    """What the runner should do after a node has been processed.

    ``engage`` is set for suspensions: the runner records the suspension
    first and only then calls ``engage`` to hand control to the host, so a
    host that answers synchronously finds the run already suspended.
    """

    action: StepAction
    node: ScriptNode
    next_node: ScriptNode | None = None
    suspension: Suspension | None = None
    engage: Callable[[], None] | None = None


class NodeExecutor:
    """Performs node effects through the host and picks the next node."""

    def __init__(
        self,
        host: QuestHost,
        flag_store: FlagStore,
        dispatcher: TriggerDispatcher | None = None,
    ) -> None:
        self._host = host
        self._flag_store = flag_store
        self._dispatcher = dispatcher or TriggerDispatcher(host, flag_store)

    def execute(self, node: ScriptNode, state: RunState, graph: ScriptGraph) -> Step:
        """Run ``node``'s effect and return the resulting step."""
        state.current_node_id = node.id
        state.executor_state = "running"
        logger.debug("Executing %s (node %s) in %s", state.next_label(node.type), node.id, graph.script_id)

        if isinstance(node, DialogueNode):
            return self._suspend_for_dialogue(node, state)
        if isinstance(node, ChoiceNode):
            return self._suspend_for_choice(node, state)
        if isinstance(node, ImageNode):
            return self._suspend_for_image(node, state)
        if isinstance(node, ItemNode):
            self._apply_item(node, state)
            return self.follow(node, DEFAULT_OUTPUT, state, graph)
        if isinstance(node, TriggerNode):
            try:
                self._dispatcher.dispatch(node, state)
            except UnknownTriggerEvent as exc:
                self.report(
                    state,
                    QuestWarning(
                        code="UNKNOWN_TRIGGER_EVENT",
                        message=str(exc),
                        context={"node_id": node.id, "event": exc.event},
                    ),
                )
            return self.follow(node, DEFAULT_OUTPUT, state, graph)
        if isinstance(node, ConditionNode):
            output = TRUE_OUTPUT if self._check_condition(node) else FALSE_OUTPUT
            logger.debug("Condition %s on %r took output %d", node.check_type, node.target, output)
            return self.follow(node, output, state, graph)
        if isinstance(node, CombatNode):
            return Step(action="suspend", node=node, suspension=Suspension(kind="combat", node_id=node.id))
        if isinstance(node, LinkScriptNode):
            return Step(action="link", node=node)
        if isinstance(node, EndNode):
            return Step(action="end", node=node)
        raise TypeError(f"Unhandled node variant {type(node).__name__}")

    def after_input(
        self,
        node: ScriptNode,
        state: RunState,
        graph: ScriptGraph,
        choice_index: int | None = None,
    ) -> Step:
        """Resolve a dialogue, image or choice suspension with the player's response."""
        if isinstance(node, ChoiceNode):
            if choice_index is None:
                raise ValueError(f"Choice node '{node.id}' needs a choice index to advance.")
            if isinstance(choice_index, bool) or not 0 <= choice_index < len(node.options):
                raise GraphIntegrityError(
                    f"Choice index {choice_index} is invalid for node '{node.id}' "
                    f"with {len(node.options)} options."
                )
            state.choice_tracking[node.id] = choice_index
            logger.info("Choice tracked: %s = %d (%s)", node.id, choice_index, node.options[choice_index])
            return self.follow(node, choice_index, state, graph)
        return self.follow(node, DEFAULT_OUTPUT, state, graph)

    def after_battle(
        self, node: CombatNode, state: RunState, graph: ScriptGraph, outcome: BattleOutcome
    ) -> Step:
        if outcome not in ("victory", "defeat"):
            raise ValueError(f"Battle outcome must be 'victory' or 'defeat', got {outcome!r}.")
        logger.info("Battle on node %s ended in %s", node.id, outcome)
        output = VICTORY_OUTPUT if outcome == "victory" else DEFEAT_OUTPUT
        return self.follow(node, output, state, graph)

    def follow(self, node: ScriptNode, output_index: int, state: RunState, graph: ScriptGraph) -> Step:
        """Resolve ``output_index``; an unconnected output makes the node terminal."""
        state.executor_state = "advancing"
        next_node = graph.connection_from(node.id, output_index)
        if next_node is None:
            logger.debug("Node %s output %d is unconnected; path ends", node.id, output_index)
            return Step(action="terminal", node=node)
        return Step(action="continue", node=node, next_node=next_node)

    def report(self, state: RunState, warning: QuestWarning) -> None:
        state.warnings.append(warning)
        logger.warning("%s: %s", warning.code, warning.message)
        self._host.report_warning(warning)

    def render(self, text: str, node_id: str, field_name: str, state: RunState) -> str:
        """Return ``text`` for display, reporting any template token still in it.

        Substitution happens only when a link asks for it; tokens left here
        are shown verbatim.
        """
        for token in find_tokens(text):
            self.report(
                state,
                QuestWarning(
                    code="UNRESOLVED_TEMPLATE_TOKEN",
                    message=f"Template token '{{{{{token}}}}}' was not substituted.",
                    context={"node_id": node_id, "field": field_name, "token": token},
                ),
            )
        return text

    def _suspend_for_dialogue(self, node: DialogueNode, state: RunState) -> Step:
        payload = DialoguePayload(
            node_id=node.id,
            speaker=self.render(node.speaker, node.id, "speaker", state),
            text=self.render(node.text, node.id, "text", state),
            character=self.render(node.character, node.id, "character", state) if node.character else None,
            emoji=_dialogue_emoji(node),
            portrait=node.portrait,
        )
        return Step(
            action="suspend",
            node=node,
            suspension=Suspension(kind="dialogue", node_id=node.id),
            engage=lambda: self._host.present("dialogue", payload),
        )

    def _suspend_for_choice(self, node: ChoiceNode, state: RunState) -> Step:
        payload = ChoicePayload(
            node_id=node.id,
            question=self.render(node.question, node.id, "question", state),
            options=list(node.options),
        )
        return Step(
            action="suspend",
            node=node,
            suspension=Suspension(kind="choice", node_id=node.id),
            engage=lambda: self._host.present("choice", payload),
        )

    def _suspend_for_image(self, node: ImageNode, state: RunState) -> Step:
        payload = ImagePayload(node_id=node.id, path=node.path, duration=node.duration)
        return Step(
            action="suspend",
            node=node,
            suspension=Suspension(kind="image", node_id=node.id),
            engage=lambda: self._host.present("image", payload),
        )

    def _apply_item(self, node: ItemNode, state: RunState) -> None:
        logger.info("%s %dx %s", node.action, node.amount, node.item_id)
        if node.action == "give":
            self._host.give_item(node.item_id, node.amount)
            return
        if not self._host.take_item(node.item_id, node.amount):
            self.report(
                state,
                QuestWarning(
                    code="ITEM_SHORTFALL",
                    message=f"Could not take {node.amount}x {node.item_id}: not enough in inventory.",
                    context={"node_id": node.id, "item_id": node.item_id, "amount": str(node.amount)},
                ),
            )

    def _check_condition(self, node: ConditionNode) -> bool:
        if node.check_type == "hasFlag":
            value = self._flag_store.get(node.target)
            if value is None and isinstance(node.expected, bool):
                value = False
            if isinstance(value, bool) or isinstance(node.expected, bool):
                return type(value) is type(node.expected) and value == node.expected
            return value == node.expected
        has_item = self._host.count_item(node.target) >= node.amount
        if isinstance(node.expected, bool):
            return has_item == node.expected
        return has_item


def _dialogue_emoji(node: DialogueNode) -> str:
    if node.speaker == COMPANION_SPEAKER:
        return COMPANION_EMOJI
    return node.emoji or DEFAULT_SPEAKER_EMOJI
