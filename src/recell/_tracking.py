"""Dependency tracker — who is reading right now.

Uses contextvars to hold the cell whose producer is running. Any Cell.get()
in that window records a dependency edge to it, building the graph
automatically. run() installs itself and restores the outer observer when
the producer returns, so nested evaluations track into the right cell.
"""

from __future__ import annotations

import contextvars
from typing import TYPE_CHECKING, Any, Callable, TypeVar

if TYPE_CHECKING:
    from recell._anchor import Graph

R = TypeVar("R")

# (graph, cell id) of the currently-evaluating cell.
current_observer: contextvars.ContextVar[tuple[Graph, int] | None] = contextvars.ContextVar(
    "current_observer", default=None
)


def enter(graph: Graph, cid: int) -> contextvars.Token:
    """Install a cell as the current observer. Pair with leave()."""
    return current_observer.set((graph, cid))


def leave(token: contextvars.Token) -> None:
    current_observer.reset(token)


def observer_in(graph: Graph) -> int | None:
    """Id of the current observer, if it belongs to `graph`.

    Reads across graphs are never tracked.
    """
    observer = current_observer.get()
    if observer is None or observer[0] is not graph:
        return None
    return observer[1]


def untracked(fn: Callable[..., R], *args: Any, **kwargs: Any) -> R:
    """Call fn without recording any of its reads as dependencies.

    Usage:
        autorun(lambda: log.append((a.get(), untracked(b.get))))
        # re-runs when a changes, not when b does
    """
    token = current_observer.set(None)
    try:
        return fn(*args, **kwargs)
    finally:
        current_observer.reset(token)
