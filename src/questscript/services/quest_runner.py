"""Runner that owns one quest run from ``start`` to termination."""
from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Deque, Dict, FrozenSet, List, Tuple

from questscript.core.types import BattleOutcome, ExecutorState, RunPhase
from questscript.data.errors import DataError
from questscript.data.repositories import ScriptRepository
from questscript.domain.defs import CombatNode, ImageNode, ScriptNode, TriggerNode
from questscript.domain.graph import ScriptGraph
from questscript.domain.run_state import CompletionCallback, RunState, Suspension
from questscript.services.errors import LinkTargetError, RunnerStateError
from questscript.services.flag_store import FlagStore
from questscript.services.host import QuestHost, QuestWarning
from questscript.services.link_controller import LinkController
from questscript.services.node_executor import NodeExecutor, Step

logger = logging.getLogger(__name__)

_INPUT_KINDS = ("dialogue", "choice", "image")


class QuestRunner:
    """Application service that drives a quest script against a host.

    Execution is cooperative: nodes run synchronously until one needs the
    player or another subsystem, then control returns to the host. The host
    resumes the run with ``advance`` (dialogue, image, choice) or through the
    callbacks it was handed (battle outcome, image timer, durable write).
    Callbacks that outlive the wait they were issued for are ignored.
    """

    def __init__(
        self,
        script_repo: ScriptRepository,
        host: QuestHost,
        flag_store: FlagStore,
        *,
        executor: NodeExecutor | None = None,
        link_controller: LinkController | None = None,
    ) -> None:
        self._script_repo = script_repo
        self._host = host
        self._flag_store = flag_store
        self._executor = executor or NodeExecutor(host, flag_store)
        self._links = link_controller or LinkController(script_repo, host)
        self._state: RunState | None = None
        self._graph: ScriptGraph | None = None
        self._last_error: Exception | None = None
        self._pending: Deque[Tuple[RunState, Callable[[], Step]]] = deque()
        self._draining = False

    @property
    def phase(self) -> RunPhase:
        return self._state.phase if self._state is not None else "stopped"

    @property
    def executor_state(self) -> ExecutorState:
        return self._state.executor_state if self._state is not None else "idle"

    @property
    def script_id(self) -> str | None:
        return self._state.script_id if self._state is not None else None

    @property
    def current_node_id(self) -> str | None:
        return self._state.current_node_id if self._state is not None else None

    @property
    def graph(self) -> ScriptGraph | None:
        return self._graph

    @property
    def choice_tracking(self) -> Dict[str, int]:
        return dict(self._state.choice_tracking) if self._state is not None else {}

    @property
    def active_npc_ids(self) -> FrozenSet[str]:
        return frozenset(self._state.active_npc_ids) if self._state is not None else frozenset()

    @property
    def warnings(self) -> List[QuestWarning]:
        return list(self._state.warnings) if self._state is not None else []

    @property
    def last_error(self) -> Exception | None:
        return self._last_error

    @property
    def waiting_for(self) -> str | None:
        """Kind of the outstanding suspension, if any."""
        if self._state is None or self._state.suspension is None:
            return None
        return self._state.suspension.kind

    def start(self, script_id: str, on_complete: CompletionCallback | None = None) -> None:
        """Load ``script_id`` and run it until the first suspension point."""
        self._ensure_idle()
        try:
            graph = self._script_repo.load(script_id)
        except DataError as exc:
            logger.error("Failed to load script %s: %s", script_id, exc)
            self._last_error = exc
            self.stop()
            raise
        self.start_graph(graph, on_complete)

    def start_graph(self, graph: ScriptGraph, on_complete: CompletionCallback | None = None) -> None:
        """Run an already-loaded graph."""
        self._ensure_idle()
        carried = set()
        if self._state is not None and self._state.phase == "paused":
            carried = set(self._state.active_npc_ids)
        state = RunState(script_id=graph.script_id, completion_callback=on_complete, active_npc_ids=carried)
        self._state = state
        self._graph = graph
        self._last_error = None
        logger.info("Starting script %s with %d nodes", graph.script_id, len(graph.nodes()))
        entry = graph.entry_node
        self._run(state, lambda: self._executor.execute(entry, state, graph))

    def advance(self, choice_index: int | None = None) -> None:
        """Report that the player continued (dialogue, image) or picked ``choice_index``."""
        state = self._state
        if state is None or state.phase != "suspended" or state.suspension is None:
            raise RunnerStateError("The runner is not waiting for the player.")
        suspension = state.suspension
        if suspension.kind not in _INPUT_KINDS:
            raise RunnerStateError(f"The runner is waiting on {suspension.kind}, not on the player.")
        if suspension.kind == "choice" and choice_index is None:
            raise RunnerStateError("A choice is waiting; advance needs a choice index.")
        self._resume_input(state, suspension, choice_index)

    def stop(self) -> None:
        """Stop the run and remove every NPC it spawned; safe to call at any time."""
        state = self._state
        if state is None or state.phase == "stopped":
            return
        self._terminate(state, "stopped")

    def _ensure_idle(self) -> None:
        if self._state is not None and self._state.is_active:
            raise RunnerStateError(f"Script '{self._state.script_id}' is already running.")

    def _run(self, state: RunState, first: Callable[[], Step]) -> None:
        """Queue ``first`` and drive the queue unless a caller further up already is.

        Hosts may resume the run from inside ``present`` or ``start_battle``;
        those resumptions are picked up by the outer loop instead of nesting.
        """
        self._pending.append((state, first))
        if self._draining:
            return
        self._draining = True
        try:
            while self._pending:
                queued_state, queued_first = self._pending.popleft()
                self._drive(queued_state, queued_first)
        except Exception:
            self._pending.clear()
            raise
        finally:
            self._draining = False

    def _drive(self, state: RunState, first: Callable[[], Step]) -> None:
        if not self._owns(state):
            logger.debug("Dropping queued work for inactive run of %s", state.script_id)
            return
        try:
            step = first()
            while step.action == "continue":
                if not self._owns(state):
                    return
                assert step.next_node is not None and self._graph is not None
                step = self._executor.execute(step.next_node, state, self._graph)
            if self._owns(state):
                self._settle(state, step)
        except Exception as exc:
            logger.error("Script %s failed at node %s: %s", state.script_id, state.current_node_id, exc)
            self._last_error = exc
            if state.is_active:
                self._terminate(state, "stopped")
            raise

    def _settle(self, state: RunState, step: Step) -> None:
        if step.action == "suspend":
            assert step.suspension is not None
            self._suspend(state, step.node, step.suspension, step.engage)
        elif step.action == "link":
            self._links.transfer(
                step.node,
                state,
                install=lambda graph: self._install(state, graph),
                wait=lambda suspension: self._mark_suspended(state, suspension),
                fail=lambda exc: self._fail_link(state, exc),
            )
        elif step.action == "end":
            logger.info("End node %s reached; quest complete", step.node.id)
            self._terminate(state, "stopped")
        elif step.action == "terminal":
            # A trigger at the end of a path leaves its effects in the world.
            phase: RunPhase = "paused" if isinstance(step.node, TriggerNode) else "stopped"
            logger.info("Path ended at %s node %s", step.node.type, step.node.id)
            self._terminate(state, phase)
        else:
            raise ValueError(f"Unexpected step action {step.action!r}")

    def _suspend(
        self,
        state: RunState,
        node: ScriptNode,
        suspension: Suspension,
        engage: Callable[[], None] | None,
    ) -> None:
        self._mark_suspended(state, suspension)
        if isinstance(node, CombatNode):
            self._host.start_battle(node.opponent, self._battle_callback(state, suspension, node))
            return
        if engage is not None:
            engage()
        if isinstance(node, ImageNode) and state.is_waiting_on(suspension):
            suspension.cancel_timer = self._host.start_timer(
                node.duration, self._timer_callback(state, suspension)
            )

    def _mark_suspended(self, state: RunState, suspension: Suspension) -> None:
        state.suspension = suspension
        state.phase = "suspended"
        state.executor_state = "awaiting_input" if suspension.kind in _INPUT_KINDS else "awaiting_external"
        logger.debug("Suspended on %s at node %s", suspension.kind, suspension.node_id)

    def _resume_input(self, state: RunState, suspension: Suspension, choice_index: int | None) -> None:
        assert self._graph is not None
        node = self._graph.node(suspension.node_id)
        graph = self._graph
        self._clear_suspension(state)
        self._run(state, lambda: self._executor.after_input(node, state, graph, choice_index))

    def _battle_callback(
        self, state: RunState, suspension: Suspension, node: CombatNode
    ) -> Callable[[BattleOutcome], None]:
        def on_complete(outcome: BattleOutcome) -> None:
            if not self._waiting(state, suspension):
                logger.debug("Ignoring stale battle result for node %s", node.id)
                return
            assert self._graph is not None
            graph = self._graph
            self._clear_suspension(state)
            self._run(state, lambda: self._executor.after_battle(node, state, graph, outcome))

        return on_complete

    def _timer_callback(self, state: RunState, suspension: Suspension) -> Callable[[], None]:
        def on_elapsed() -> None:
            if not self._waiting(state, suspension):
                logger.debug("Ignoring stale image timer for node %s", suspension.node_id)
                return
            suspension.cancel_timer = None
            self._resume_input(state, suspension, None)

        return on_elapsed

    def _install(self, state: RunState, graph: ScriptGraph) -> None:
        logger.info("Transitioning from %s to linked script %s", state.script_id, graph.script_id)
        self._graph = graph
        state.script_id = graph.script_id
        state.current_node_id = None
        state.phase = "running"
        state.executor_state = "running"
        entry = graph.entry_node
        self._run(state, lambda: self._executor.execute(entry, state, graph))

    def _fail_link(self, state: RunState, exc: LinkTargetError) -> None:
        logger.error("Link transfer failed: %s", exc)
        self._last_error = exc
        if state.is_active:
            self._terminate(state, "stopped")

    def _clear_suspension(self, state: RunState) -> None:
        if state.suspension is not None:
            state.suspension.cancel()
            state.suspension = None
        state.phase = "running"
        state.executor_state = "running"

    def _owns(self, state: RunState) -> bool:
        return state is self._state and state.is_active

    def _waiting(self, state: RunState, suspension: Suspension) -> bool:
        return state is self._state and state.is_waiting_on(suspension)

    def _terminate(self, state: RunState, phase: RunPhase) -> None:
        if state.suspension is not None:
            state.suspension.cancel()
            state.suspension = None
        callback = state.release_callback()
        ledger = dict(state.choice_tracking)
        state.phase = phase
        state.executor_state = "idle"
        state.current_node_id = None
        state.choice_tracking = {}
        if state is self._state:
            self._graph = None
        if phase == "stopped":
            self._cleanup_npcs(state)
        logger.info("Script %s %s", state.script_id, phase)
        if callback is not None:
            logger.info("Calling completion callback with choices: %s", ledger)
            callback(ledger)

    def _cleanup_npcs(self, state: RunState) -> None:
        for npc_id in sorted(state.active_npc_ids):
            self._host.remove_npc(npc_id)
        state.active_npc_ids.clear()
