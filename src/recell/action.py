"""Actions and transactions — batched state mutations.

Wrapping mutations in an @action, `with transaction()` or run_in_action()
suppresses stabilization until the outermost scope exits. Any number of
interior writes then cost a single drain, and each effect runs at most once,
seeing only the final values.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Callable, Iterator, ParamSpec, TypeVar

from recell._anchor import Graph, get_graph
from recell._scheduler import begin_batch, end_batch

P = ParamSpec("P")
R = TypeVar("R")


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: batch all observable mutations inside fn.

    Effects only fire after fn returns, not during.

    Usage:
        counter_a = Observable(0)
        counter_b = Observable(0)

        @action
        def swap():
            a, b = counter_a.get(), counter_b.get()
            counter_a.set(b)
            counter_b.set(a)
            # effects see both changes at once, not one at a time
    """

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        with transaction():
            return fn(*args, **kwargs)

    return wrapper


@contextmanager
def transaction(graph: Graph | None = None) -> Iterator[None]:
    """Context manager for batching mutations.

    Usage:
        with transaction():
            counter_a.set(1)
            counter_b.set(2)
            # effects fire here, after both are set
    """
    graph = graph if graph is not None else get_graph()
    begin_batch(graph)
    try:
        yield
    finally:
        end_batch(graph)


def run_in_action(fn: Callable[P, R], *args: P.args, **kwargs: P.kwargs) -> R:
    """Call fn inside a transaction and return its result."""
    with transaction():
        return fn(*args, **kwargs)
