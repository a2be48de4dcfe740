"""Textual integration for recell. Opt-in — requires textual.

Guarded effects for Textual apps, and mount(): the boundary a rendering
layer uses, one observable local-state object plus one effect per mounted
instance, disposed on unmount.

Pause state is keyed by id(app), so multiple apps work in tests, and lives
only in this module: pause() never touches the app object.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable

from textual.css.query import NoMatches

from recell.action import transaction
from recell.cell import Cell
from recell.observable import ObservableDict, observable_object
from recell.reaction import Reaction, autorun as _autorun, reaction as _reaction

logger = logging.getLogger("recell.textual")

# Module-owned pause state.
_paused_apps: set[int] = set()
# Mounted renders skipped while their app was unsafe, by app.
_owed: dict[int, dict[int, Cell]] = {}


@contextmanager
def pause(app):
    """Suspend guarded effects during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)
    flush(app)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def flush(app) -> None:
    """Render every mounted instance that was skipped while app was unsafe.

    pause() calls this on exit. Call it yourself once an app that was not
    running yet has started.
    """
    if not is_safe(app):
        return
    for cell in _owed.pop(id(app), {}).values():
        if not cell.disposed:
            with transaction(cell.graph):
                cell.mark(True)


def _bridge(app, fn: Callable[..., Any]) -> Callable[..., None]:
    """Wrap fn so it only runs while app is safe, on the app's thread."""
    main = threading.get_ident()

    def _safe(*args):
        try:
            fn(*args)
        except NoMatches as exc:
            logger.debug("Skipped effect, widget not found: %s", exc)

    def _guarded(*args):
        if not is_safe(app):
            return
        if threading.get_ident() != main:
            app.call_from_thread(_safe, *args)
        else:
            _safe(*args)

    return _guarded


def reaction(app, data_fn, effect_fn, *, fire_immediately=False) -> Reaction:
    """reaction() that safely bridges to Textual widgets.

    Guards against firing during pause/not-running, swallows NoMatches
    from widget queries, and marshals cross-thread calls via call_from_thread.
    """
    return _reaction(data_fn, _bridge(app, effect_fn), fire_immediately=fire_immediately)


def autorun(app, fn) -> Reaction:
    """autorun() that safely bridges to Textual widgets.

    A run skipped while unsafe reads nothing, so it also drops the
    autorun's dependencies; prefer reaction() for effects that must
    survive a pause.
    """
    return _autorun(_bridge(app, fn))


class Mounted:
    """Handle for one mounted instance: its local state and its render effect."""

    __slots__ = ("state", "_reaction")

    def __init__(self, state: ObservableDict, reaction: Reaction) -> None:
        self.state = state
        self._reaction = reaction

    @property
    def mounted(self) -> bool:
        return not self._reaction.disposed

    def unmount(self) -> None:
        self._reaction.dispose()


def mount(app, render: Callable[[ObservableDict], Any], state: dict | None = None) -> Mounted:
    """Render now and re-render whenever anything render() reads changes.

    render receives the instance's local state, an ObservableDict; writing
    to it re-renders. Call unmount() on the returned handle when the
    instance goes away.

    While app is paused or not running the render is skipped and owed;
    flush(app) (run by pause() on exit) renders it.
    """
    local = observable_object(state if state is not None else {})
    draw = _bridge(app, render)

    def _mounted_render() -> None:
        if is_safe(app):
            draw(local)
        else:
            _owed.setdefault(id(app), {})[handle.cell.id] = handle.cell

    handle = Reaction(_mounted_render)
    handle.cell.get()
    return Mounted(local, handle)
