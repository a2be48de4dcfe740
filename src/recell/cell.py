"""Cell — the atomic reactive unit.

A cell holds a value and optionally a producer. Cells without a producer are
plain observable storage; cells with one are derived values, and active
cells are effects that the scheduler keeps up to date eagerly.

Propagation is push/pull. A write marks direct dependents DIRTY and their
dependents CHECK (push). A CHECK cell recomputes only if actualizing its
dependencies proves one of them changed (pull), so each cell runs at most
once per stabilization pass no matter how many paths reach it.

All state lives in the Graph arena; a Cell is a thin handle holding an id.
"""

from __future__ import annotations

import logging
import weakref
from typing import Any, Callable

from recell import _tracking
from recell._anchor import CellState, Graph, get_graph
from recell._errors import RecellError
from recell._scheduler import schedule, stabilize

logger = logging.getLogger("recell.cell")

ACTUAL = CellState.ACTUAL
CHECK = CellState.CHECK
DIRTY = CellState.DIRTY


def _not_yet_read(graph: Graph, source: int, dependent: int) -> bool:
    """True if `dependent` is mid-run and has not re-read `source` yet.

    Such a dependent will see the new value when it gets there, so marking
    it would only make it run a second time.
    """
    return dependent in graph.running and source not in graph.dependencies[dependent]


def _forget(graph_ref: weakref.ref[Graph], cid: int) -> None:
    graph = graph_ref()
    if graph is not None:
        graph.forget(cid)


class Cell:
    """A value, an optional producer, a staleness state and graph edges."""

    __slots__ = ("_id", "_graph", "_producer", "__weakref__")

    def __init__(
        self,
        value: Any = None,
        producer: Callable[[], Any] | None = None,
        active: bool = False,
        *,
        graph: Graph | None = None,
    ) -> None:
        g = graph if graph is not None else get_graph()
        cid = g.new_id()
        self._id = cid
        self._graph = g
        self._producer = producer
        g.values[cid] = value
        g.states[cid] = DIRTY if producer is not None else ACTUAL
        g.active[cid] = active
        g.dependents[cid] = {}
        g.dependencies[cid] = {}
        g.handles[cid] = self
        if active:
            g.retained[cid] = self
        weakref.finalize(self, _forget, weakref.ref(g), cid).atexit = False

    # --- Introspection ---

    @property
    def id(self) -> int:
        return self._id

    @property
    def graph(self) -> Graph:
        return self._graph

    @property
    def state(self) -> CellState:
        return self._graph.states[self._id]

    @property
    def active(self) -> bool:
        return self._graph.active[self._id]

    @property
    def producer(self) -> Callable[[], Any] | None:
        return self._producer

    @property
    def dependents(self) -> tuple[Cell, ...]:
        g = self._graph
        return tuple(g.handles[cid] for cid in g.dependents[self._id])

    @property
    def dependencies(self) -> tuple[Cell, ...]:
        g = self._graph
        return tuple(g.handles[cid] for cid in g.dependencies[self._id])

    @property
    def disposed(self) -> bool:
        return self._id in self._graph.released

    # --- Read / write ---

    def get(self) -> Any:
        """Read the value, recording a dependency if a producer is running."""
        g, cid = self._graph, self._id
        if g.states[cid] is not ACTUAL:
            self.actualize()
        observer = _tracking.observer_in(g)
        if observer is not None and observer != cid:
            g.dependents[cid][observer] = None
            g.dependencies[observer][cid] = None
        return g.values[cid]

    def peek(self) -> Any:
        """Read the (actualized) value without recording a dependency."""
        if self._graph.states[self._id] is not ACTUAL:
            self.actualize()
        return self._graph.values[self._id]

    def set(self, value: Any) -> bool:
        """Write a value. Returns False, and notifies nobody, if unchanged."""
        g, cid = self._graph, self._id
        if g.config.equals(g.values[cid], value):
            return False
        g.values[cid] = value
        for dependent in list(g.dependents[cid]):
            handle = g.handles.get(dependent)
            if handle is not None and not _not_yet_read(g, cid, dependent):
                handle.mark(True)
        stabilize(g)
        return True

    # --- Propagation ---

    def mark(self, dirty: bool = False) -> None:
        """Flag this cell stale and push CHECK to its up-to-date dependents."""
        g, cid = self._graph, self._id
        if dirty:
            g.states[cid] = DIRTY
        elif g.states[cid] is not DIRTY:
            g.states[cid] = CHECK
        for dependent in list(g.dependents[cid]):
            handle = g.handles.get(dependent)
            if handle is None or g.states[dependent] is not ACTUAL:
                continue
            if not _not_yet_read(g, cid, dependent):
                handle.mark()
        if g.active[cid]:
            schedule(g, cid)

    def run(self) -> None:
        """Evaluate the producer, rebuilding dependencies from scratch."""
        g, cid = self._graph, self._id
        producer = self._producer
        g.released.discard(cid)
        if g.active[cid]:
            g.retained[cid] = self
        if producer is None:
            g.states[cid] = ACTUAL
            return

        previous = g.dependencies[cid]
        g.dependencies[cid] = {}
        g.states[cid] = ACTUAL
        g.running.append(cid)
        token = _tracking.enter(g, cid)
        produced = False
        try:
            value = producer()
            produced = True
        except RecellError:
            g.states[cid] = DIRTY
            raise
        except Exception:
            if not g.config.catch_errors:
                g.states[cid] = DIRTY
                raise
            # Edges read before the failure stay committed.
            logger.exception("Exception in producer %r", producer)
        finally:
            _tracking.leave(token)
            g.running.pop()
            current = g.dependencies[cid]
            for dep in previous:
                if dep not in current and dep in g.dependents:
                    g.dependents[dep].pop(cid, None)
            if cid in g.released:
                # Unsubscribed by its own producer; drop what it read afterwards.
                self._drop_edges()

        if produced and cid not in g.released:
            self.set(value)

    def actualize(self) -> None:
        """Bring the value up to date, recomputing only if needed."""
        g, cid = self._graph, self._id
        state = g.states[cid]
        if state is CHECK:
            for dep in list(g.dependencies[cid]):
                if g.states[cid] is DIRTY:
                    break
                # Collected by a producer that ran earlier in this loop.
                handle = g.handles.get(dep)
                if handle is not None:
                    handle.actualize()
            if g.states[cid] is DIRTY:
                self.run()
            else:
                g.states[cid] = ACTUAL
        elif state is DIRTY:
            self.run()

    # --- Teardown ---

    def unsubscribe(self) -> None:
        """Detach from the graph. Safe to call repeatedly or from own producer."""
        g, cid = self._graph, self._id
        self._drop_edges()
        g.states[cid] = DIRTY
        g.pending.pop(cid, None)
        g.released.add(cid)
        g.retained.pop(cid, None)

    def _drop_edges(self) -> None:
        g, cid = self._graph, self._id
        dependencies = g.dependencies[cid]
        g.dependencies[cid] = {}
        for dep in dependencies:
            dependents = g.dependents.get(dep)
            if dependents is None:
                continue
            dependents.pop(cid, None)
            handle = g.handles.get(dep)
            if not dependents and handle is not None:
                handle.unsubscribe()

    def __repr__(self) -> str:
        g, cid = self._graph, self._id
        return f"Cell(id={cid}, state={g.states[cid].value}, value={g.values[cid]!r})"
