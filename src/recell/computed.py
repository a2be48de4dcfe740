"""Computed values — derived state with automatic dependency tracking.

A Computed wraps a function. It is lazy: the function does not run until
the first get(), and its result is cached until a dependency actually
changes. Writes upstream only mark it stale; the next read recomputes.

When another derivation reads it, it becomes part of that derivation's
graph, and a recomputation that yields an equal value stops there.
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

from recell._anchor import CellState, Graph
from recell.cell import Cell

T = TypeVar("T")


class Computed(Generic[T]):
    """A derived value that auto-tracks dependencies and caches the result."""

    __slots__ = ("_cell",)

    def __init__(self, fn: Callable[[], T], *, graph: Graph | None = None) -> None:
        self._cell = Cell(None, fn, graph=graph)

    @property
    def cell(self) -> Cell:
        return self._cell

    @property
    def _fn(self) -> Callable[[], T]:
        return self._cell.producer

    def get(self) -> T:
        """Read the computed value. Recomputes if stale."""
        return self._cell.get()

    def peek(self) -> T:
        """Read the computed value without registering a dependency."""
        return self._cell.peek()

    def dispose(self) -> None:
        """Disconnect from all dependencies. The next get() re-evaluates."""
        self._cell.unsubscribe()

    def __repr__(self) -> str:
        cell = self._cell
        name = getattr(self._fn, "__name__", repr(self._fn))
        if cell.state is CellState.ACTUAL:
            return f"Computed({name}, cached={cell.graph.values[cell.id]!r})"
        return f"Computed({name}, {cell.state.value})"


def computed(fn: Callable[[], T]) -> Computed[T]:
    """Decorator/factory to create a Computed from a function.

    Usage:
        counter = Observable(0)

        @computed
        def doubled():
            return counter.get() * 2

        doubled.get()  # 0
        counter.set(5)
        doubled.get()  # 10
    """
    return Computed(fn)
