"""Tests for the stabilization scheduler."""

import logging

import pytest

from recell import CycleError, Observable, autorun, configure, get_pending_count


class TestStabilize:
    def test_set_returns_after_effects_ran(self):
        o = Observable(0)
        seen = []
        autorun(lambda: seen.append(o.get()))
        o.set(1)
        assert seen[-1] == 1
        assert get_pending_count() == 0

    def test_pending_holds_only_active_cells(self, graph):
        o = Observable(0)
        r = autorun(lambda: o.get())
        graph.batch_depth += 1
        o.set(1)
        assert list(graph.pending) == [r.cell.id]
        assert all(graph.active[cid] for cid in graph.pending)
        graph.batch_depth -= 1

    def test_cycle_cap_is_configurable(self):
        configure(max_iterations=3)
        o = Observable(0)
        runs = []

        def bump():
            runs.append(o.get())
            if 0 < o.get() < 10:
                o.set(o.get() + 1)

        autorun(bump)
        with pytest.raises(CycleError):
            o.set(1)
        assert len(runs) == 4  # creation + three passes

    def test_bounded_chain_of_writes_stabilizes(self):
        configure(max_iterations=5)
        o = Observable(0)
        autorun(lambda: 0 < o.get() < 4 and o.set(o.get() + 1))
        o.set(1)
        assert o.get() == 4

    def test_cycle_is_logged(self, caplog):
        o = Observable(1)
        autorun(lambda: o.get() > 1 and o.set(o.get() + 1))
        with caplog.at_level(logging.ERROR, logger="recell.scheduler"):
            with pytest.raises(CycleError):
                o.set(2)
        assert "No fixed point after 100 passes" in caplog.text

    def test_graph_usable_for_reads_after_cycle(self, graph):
        o = Observable(1)
        autorun(lambda: o.get() > 1 and o.set(o.get() + 1))
        with pytest.raises(CycleError):
            o.set(2)
        assert not graph.draining
        assert o.get() > 2
