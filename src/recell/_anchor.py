"""Data anchor — plain Python structures that hold all reactive state.

A Graph is an arena: every cell is an integer id, and its value, staleness
state and edges live in dicts keyed by that id. Edges are stored as ids,
never as object references, so no cell owns another.

Handles (Cell, Observable, Computed, Reaction) are thin objects holding an
id, the graph it lives in and the producer. The graph only refers to them
weakly, except for active cells that have not been unsubscribed. When a
handle is collected its id is forgotten, edges included.

The graph used for newly created cells is selected through a ContextVar,
so independent graphs can coexist.
"""

from __future__ import annotations

import contextvars
import dataclasses
import enum
import itertools
import weakref
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator

from recell.config import GraphConfig

if TYPE_CHECKING:
    from recell.cell import Cell


class CellState(enum.Enum):
    """Staleness of a cell's value."""

    ACTUAL = "actual"  # value is trustworthy
    CHECK = "check"  # a dependency may have changed; recompute only if it did
    DIRTY = "dirty"  # must recompute


class Graph:
    """An independent dependency graph plus its scheduler state."""

    __slots__ = (
        "config",
        "values",
        "states",
        "active",
        "dependents",
        "dependencies",
        "handles",
        "retained",
        "pending",
        "running",
        "released",
        "draining",
        "batch_depth",
        "_ids",
        "__weakref__",
    )

    def __init__(self, config: GraphConfig | None = None) -> None:
        self.config = config if config is not None else GraphConfig()

        # Cell state
        self.values: dict[int, Any] = {}
        self.states: dict[int, CellState] = {}
        self.active: dict[int, bool] = {}
        # Handles are weak: a cell nothing refers to is forgotten. Active cells
        # stay retained until unsubscribed.
        self.handles: weakref.WeakValueDictionary[int, Cell] = weakref.WeakValueDictionary()
        self.retained: dict[int, Cell] = {}

        # Edges. Dicts with None values are insertion-ordered sets.
        self.dependents: dict[int, dict[int, None]] = {}  # cell -> cells that read it
        self.dependencies: dict[int, dict[int, None]] = {}  # cell -> cells it read

        # Scheduler state
        self.pending: dict[int, None] = {}  # active cells awaiting actualize
        self.running: list[int] = []  # producers on the stack, innermost last
        self.released: set[int] = set()  # unsubscribed cells
        self.draining = False
        self.batch_depth = 0

        self._ids = itertools.count(1)

    def new_id(self) -> int:
        return next(self._ids)

    def forget(self, cid: int) -> None:
        """Remove a collected cell and every edge touching it."""
        if cid not in self.values:
            return
        for dep in self.dependencies.pop(cid):
            dependents = self.dependents.get(dep)
            if dependents is None:
                continue
            dependents.pop(cid, None)
            handle = self.handles.get(dep)
            if not dependents and handle is not None:
                handle.unsubscribe()
        for dependent in self.dependents.pop(cid):
            dependencies = self.dependencies.get(dependent)
            if dependencies is not None:
                dependencies.pop(cid, None)
        del self.values[cid], self.states[cid], self.active[cid]
        self.pending.pop(cid, None)
        self.released.discard(cid)
        self.retained.pop(cid, None)

    def __len__(self) -> int:
        return len(self.values)

    def __repr__(self) -> str:
        return f"Graph(cells={len(self.values)}, pending={len(self.pending)})"


_default_graph = Graph()

current_graph: contextvars.ContextVar[Graph] = contextvars.ContextVar(
    "current_graph", default=_default_graph
)


def get_graph() -> Graph:
    """The graph new cells are created in."""
    return current_graph.get()


@contextmanager
def use_graph(graph: Graph | None = None) -> Iterator[Graph]:
    """Create cells in `graph` (a fresh one if omitted) inside the block.

    Usage:
        with use_graph() as graph:
            counter = Observable(0)
    """
    graph = graph if graph is not None else Graph()
    token = current_graph.set(graph)
    try:
        yield graph
    finally:
        current_graph.reset(token)


def configure(**changes: Any) -> GraphConfig:
    """Replace fields of the current graph's config. Returns the new config."""
    graph = get_graph()
    graph.config = dataclasses.replace(graph.config, **changes)
    return graph.config
