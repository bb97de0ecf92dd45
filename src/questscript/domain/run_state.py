"""Mutable state for one quest run."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Literal, Set

from questscript.core.types import ExecutorState, RunPhase

SuspensionKind = Literal["dialogue", "choice", "image", "combat", "link"]
ChoiceLedger = Dict[str, int]
CompletionCallback = Callable[[ChoiceLedger], object]


@dataclass(eq=False, slots=True)
class Suspension:
    """Token for one outstanding wait; callbacks holding a stale token are ignored."""

    kind: SuspensionKind
    node_id: str
    cancel_timer: Callable[[], None] | None = None

    def cancel(self) -> None:
        if self.cancel_timer is not None:
            cancel, self.cancel_timer = self.cancel_timer, None
            cancel()


@dataclass(eq=False, slots=True)
class RunState:
    """Everything the runner tracks between ``start`` and termination."""

    script_id: str
    current_node_id: str | None = None
    phase: RunPhase = "running"
    executor_state: ExecutorState = "running"
    choice_tracking: ChoiceLedger = field(default_factory=dict)
    active_npc_ids: Set[str] = field(default_factory=set)
    completion_callback: CompletionCallback | None = None
    suspension: Suspension | None = None
    node_counters: Dict[str, int] = field(default_factory=dict)
    warnings: List[object] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.phase in ("running", "suspended")

    def is_waiting_on(self, suspension: Suspension) -> bool:
        """True while ``suspension`` is the wait this run is actually blocked on."""
        return self.phase == "suspended" and self.suspension is suspension

    def next_label(self, node_type: str) -> str:
        """Return a debug label such as ``Dialogue 2`` and bump the counter."""
        count = self.node_counters.get(node_type, 0) + 1
        self.node_counters[node_type] = count
        return f"{node_type.replace('_', ' ').capitalize()} {count}"

    def release_callback(self) -> CompletionCallback | None:
        """Detach the completion callback so it can fire at most once."""
        callback, self.completion_callback = self.completion_callback, None
        return callback
