"""Tests for the error hierarchy and producer exception policy."""

import logging

import pytest

from recell import (
    Computed,
    ConfigError,
    CycleError,
    NotObservableError,
    Observable,
    RecellError,
    autorun,
    configure,
)


class TestErrorHierarchy:
    """All recell errors inherit from RecellError."""

    def test_recell_error_is_exception(self) -> None:
        assert issubclass(RecellError, Exception)

    def test_cycle_error_inherits(self) -> None:
        assert issubclass(CycleError, RecellError)

    def test_not_observable_is_a_type_error(self) -> None:
        assert issubclass(NotObservableError, RecellError)
        assert issubclass(NotObservableError, TypeError)

    def test_config_error_is_a_value_error(self) -> None:
        assert issubclass(ConfigError, RecellError)
        assert issubclass(ConfigError, ValueError)


class TestProducerExceptions:
    def test_logged_and_previous_value_kept(self, caplog):
        o = Observable(1)

        def fragile():
            if o.get() == 0:
                raise ZeroDivisionError("boom")
            return 10 // o.get()

        c = Computed(fragile)
        assert c.get() == 10
        with caplog.at_level(logging.ERROR, logger="recell.cell"):
            o.set(0)
            assert c.get() == 10
        assert "Exception in producer" in caplog.text
        assert "boom" in caplog.text

    def test_failed_run_does_not_notify(self):
        o = Observable(1)
        c = Computed(lambda: 1 / o.get())
        seen = []
        autorun(lambda: seen.append(c.get()))
        o.set(0)
        assert seen == [1.0]
        o.set(2)
        assert seen == [1.0, 0.5]

    def test_partial_edges_stay_committed(self):
        """Reads made before the exception are tracked; later ones are pruned."""
        trigger = Observable(False)
        before = Observable("a")
        after = Observable("b")
        runs = []

        def effect():
            runs.append(1)
            before.get()
            if trigger.get():
                raise RuntimeError("halfway")
            after.get()

        r = autorun(effect)
        assert r.cell.dependencies == (before.cell, trigger.cell, after.cell)
        trigger.set(True)
        assert r.cell.dependencies == (before.cell, trigger.cell)
        assert after.cell.dependents == ()

        after.set("changed")
        assert len(runs) == 2
        before.set("changed")
        assert len(runs) == 3

    def test_propagates_when_not_caught(self):
        configure(catch_errors=False)
        o = Observable(1)
        autorun(lambda: 1 / o.get())
        with pytest.raises(ZeroDivisionError):
            o.set(0)

    def test_type_errors_in_effects_fail_fast(self):
        from recell import observable_object

        o = Observable(1)
        with pytest.raises(NotObservableError):
            autorun(lambda: observable_object(o.get()))
