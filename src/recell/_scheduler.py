"""Stabilization scheduler — drains pending effects to a fixed point.

Every write ends in stabilize(). It actualizes a snapshot of the pending
active cells, then repeats with whatever was enqueued meanwhile, until no
pending cell is stale. A graph that keeps re-dirtying itself is reported as
a CycleError once config.max_iterations passes have run.

Batching: inside an action or `with transaction()` stabilize() is a no-op.
The outermost batch exit performs the single real drain.
"""

from __future__ import annotations

import logging

from recell._anchor import CellState, Graph, get_graph
from recell._errors import CycleError

logger = logging.getLogger("recell.scheduler")


def schedule(graph: Graph, cid: int) -> None:
    """Enqueue an active cell for the current (or next) drain."""
    graph.pending[cid] = None


def stabilize(graph: Graph) -> None:
    """Drain the pending set. Reentrant calls fold into the running drain."""
    if graph.draining or graph.batch_depth > 0:
        return

    passes = 0
    graph.draining = True
    try:
        while graph.pending:
            if passes >= graph.config.max_iterations:
                logger.error(
                    "No fixed point after %d passes, %d cell(s) still pending",
                    passes, len(graph.pending),
                )
                raise CycleError(
                    f"Cycle dependencies: graph did not stabilize after {passes} passes"
                )
            passes += 1
            for cid in list(graph.pending):
                # Disposed by an earlier effect in this pass.
                if cid in graph.pending:
                    graph.handles[cid].actualize()
            settled = [cid for cid in graph.pending if graph.states[cid] is CellState.ACTUAL]
            for cid in settled:
                del graph.pending[cid]
    finally:
        graph.draining = False

    if passes:
        logger.debug("Stabilized in %d pass(es)", passes)


def begin_batch(graph: Graph) -> None:
    """Enter a batching scope. Nested batches are supported."""
    graph.batch_depth += 1


def end_batch(graph: Graph) -> None:
    """Exit a batching scope. The outermost exit drains."""
    graph.batch_depth -= 1
    if graph.batch_depth == 0:
        stabilize(graph)


def get_pending_count() -> int:
    """Number of effects waiting to run. Useful for testing."""
    return len(get_graph().pending)
