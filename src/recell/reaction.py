"""Reactions — side effects triggered by observable state changes.

Unlike Computed (which is lazy and only evaluates on read), a Reaction is an
active cell: it runs once when created and again in every stabilization
pass in which something it read actually changed.

Every constructor here returns the Reaction, which doubles as its disposer:
call it, or call .dispose(), to stop it. Disposing is idempotent and works
from inside the reaction's own effect.

- autorun(fn): run fn now and whenever anything it read changes.
- observe(source, cb): call cb with source.get() whenever it changes.
- reaction(data_fn, effect_fn): observe(computed(data_fn), effect_fn).
- whenever(fn, effect): run effect every time fn() turns truthy.
- when(fn, effect): run effect the first time fn() is truthy, then stop.
- observe_object(obj, effect): call effect(obj) when a container's shallow
  contents change.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, TypeVar

from recell._anchor import Graph, get_graph
from recell._errors import NotObservableError
from recell._tracking import untracked
from recell.cell import Cell
from recell.computed import computed
from recell.observable import are_equal_shallow, is_observable_object

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Readable(Protocol[T_co]):
    def get(self) -> T_co: ...


class Reaction:
    """A reactive side effect that re-runs when its dependencies change."""

    __slots__ = ("_cell",)

    def __init__(self, fn: Callable[[], Any], *, graph: Graph | None = None) -> None:
        self._cell = Cell(None, fn, True, graph=graph)

    @property
    def cell(self) -> Cell:
        return self._cell

    @property
    def _fn(self) -> Callable[[], Any]:
        return self._cell.producer

    @property
    def disposed(self) -> bool:
        return self._cell.disposed

    def dispose(self) -> None:
        """Stop this reaction. Disconnects from all dependencies."""
        self._cell.unsubscribe()

    def __call__(self) -> None:
        self.dispose()

    def __repr__(self) -> str:
        state = "disposed" if self.disposed else "active"
        name = getattr(self._fn, "__name__", repr(self._fn))
        return f"Reaction({name}, {state})"


def autorun(fn: Callable[[], Any]) -> Reaction:
    """Run fn immediately, then re-run whenever any observable it reads changes.

    Returns the Reaction (call it, or .dispose(), to stop).

    Usage:
        counter = Observable(0)
        log = []

        stop = autorun(lambda: log.append(counter.get()))
        # log == [0] — ran immediately

        counter.set(1)
        # log == [0, 1] — re-ran because counter changed

        stop()
        counter.set(2)
        # log == [0, 1] — stopped
    """
    r = Reaction(fn)
    r._cell.get()  # Initial run to establish dependencies
    return r


def observe(
    source: Readable[T],
    callback: Callable[[T], Any],
    *,
    fire_immediately: bool = False,
) -> Reaction:
    """Call callback(source.get()) whenever the source's value changes.

    source is anything with get(): an Observable, a Computed or a Cell.
    The callback runs untracked, so what it reads does not re-trigger it.
    """
    fire = fire_immediately

    def _observe_effect() -> None:
        nonlocal fire
        value = source.get()
        if fire:
            untracked(callback, value)
        else:
            fire = True

    return autorun(_observe_effect)


def reaction(
    data_fn: Callable[[], T],
    effect_fn: Callable[[T], Any],
    *,
    fire_immediately: bool = False,
) -> Reaction:
    """Track data_fn's observables; call effect_fn when the result changes.

    Unlike autorun, effect_fn only fires when data_fn's *return value* changes,
    not on every dependency notification.

    Usage:
        first = Observable("Alice")
        last = Observable("Smith")

        effects = []
        r = reaction(
            lambda: f"{first.get()} {last.get()}",
            lambda name: effects.append(name),
        )
        # effects == [] — data_fn ran to establish deps, but effect doesn't fire yet

        first.set("Bob")
        # effects == ["Bob Smith"]

        last.set("Jones")
        # effects == ["Bob Smith", "Bob Jones"]

        r.dispose()
    """
    return observe(computed(data_fn), effect_fn, fire_immediately=fire_immediately)


def whenever(fn: Callable[[], Any], effect: Callable[[], Any]) -> Reaction:
    """Run effect each time fn() becomes truthy, including right away."""

    def _whenever_check(result: Any) -> None:
        if result:
            effect()

    return reaction(fn, _whenever_check, fire_immediately=True)


def when(fn: Callable[[], Any], effect: Callable[[], Any]) -> Reaction:
    """Run effect once, the first time fn() is truthy, then dispose.

    If fn() is already truthy the effect runs during this call and the
    returned reaction is already disposed.
    """
    creating = True

    def _when_effect() -> None:
        nonlocal creating
        effect()
        if not creating:
            stop()
        creating = False

    stop = whenever(fn, _when_effect)
    if not creating:
        stop()
    creating = False
    return stop


def observe_object(obj: Any, effect: Callable[[Any], Any]) -> Reaction:
    """Call effect(obj) whenever an observable container's shallow contents change.

    Key additions, removals and value replacements all count; mutations
    deeper inside nested containers do not.
    """
    if not is_observable_object(obj):
        raise NotObservableError("First argument should be an observable object")
    previous = None

    def _observe_object_check() -> None:
        nonlocal previous
        current = dict(obj.items()) if hasattr(obj, "items") else list(obj)
        if previous is not None and not are_equal_shallow(previous, current):
            untracked(effect, obj)
        previous = current

    return autorun(_observe_object_check)


def clear(graph: Graph | None = None) -> None:
    """Dispose every reaction in the graph (the current one by default)."""
    graph = graph if graph is not None else get_graph()
    for cell in list(graph.retained.values()):
        cell.unsubscribe()
