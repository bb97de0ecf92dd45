"""Cross-script transfer for link_script nodes."""
from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Callable

from questscript.data.errors import DataError
from questscript.data.repositories import ScriptRepository
from questscript.domain.defs import LinkScriptNode
from questscript.domain.graph import ScriptGraph
from questscript.domain.run_state import RunState, Suspension
from questscript.domain.templates import apply_templates_to_script
from questscript.services.errors import LinkTargetError
from questscript.services.host import QuestHost

logger = logging.getLogger(__name__)

InstallGraph = Callable[[ScriptGraph], None]
WaitForWrite = Callable[[Suspension], None]
FailTransfer = Callable[[LinkTargetError], None]


class LinkController:
    """Replaces the running script with a link target.

    The order is fixed: hand the ledger to the completion callback, wait
    for the host's durable write, load the target, apply templates, then
    install the new graph.
    """

    def __init__(self, script_repo: ScriptRepository, host: QuestHost) -> None:
        self._script_repo = script_repo
        self._host = host

    def transfer(
        self,
        node: LinkScriptNode,
        state: RunState,
        *,
        install: InstallGraph,
        wait: WaitForWrite,
        fail: FailTransfer,
    ) -> None:
        """Run the transfer; raises LinkTargetError when it fails synchronously."""
        logger.info("Linking from %s to script %s", state.script_id, node.target_script_id)
        signal = self._release_completion(state)
        if isinstance(signal, Future) and not signal.done():
            suspension = Suspension(kind="link", node_id=node.id)
            wait(suspension)
            signal.add_done_callback(
                lambda future: self._host.call_soon(
                    lambda: self._on_written(node, state, suspension, future, install, fail)
                )
            )
            return
        self._complete(node, signal, install)

    def load_target(self, node: LinkScriptNode) -> ScriptGraph:
        """Load the target script and apply templates when the node asks for them."""
        try:
            graph = self._script_repo.load(node.target_script_id)
        except DataError as exc:
            raise LinkTargetError(f"Failed to load linked script '{node.target_script_id}': {exc}") from exc
        if node.use_templates:
            table = dict(self._host.template_table())
            changed = apply_templates_to_script(graph.script, table)
            logger.debug("Applied templates to %d field(s) in %s", changed, graph.script_id)
        return graph

    def _release_completion(self, state: RunState) -> object:
        callback = state.release_callback()
        if callback is None:
            return None
        logger.info("Link calling completion callback with choices: %s", state.choice_tracking)
        return callback(dict(state.choice_tracking))

    def _on_written(
        self,
        node: LinkScriptNode,
        state: RunState,
        suspension: Suspension,
        future: Future,
        install: InstallGraph,
        fail: FailTransfer,
    ) -> None:
        if not state.is_waiting_on(suspension):
            logger.debug("Ignoring stale durable-write signal for link node %s", node.id)
            return
        state.suspension = None
        try:
            self._complete(node, future, install)
        except LinkTargetError as exc:
            fail(exc)

    def _complete(self, node: LinkScriptNode, signal: object, install: InstallGraph) -> None:
        if isinstance(signal, Future):
            if signal.cancelled():
                raise LinkTargetError(f"Durable write before linking to '{node.target_script_id}' was cancelled.")
            error = signal.exception()
            if error is not None:
                raise LinkTargetError(
                    f"Durable write before linking to '{node.target_script_id}' failed: {error}"
                ) from error
        install(self.load_target(node))
