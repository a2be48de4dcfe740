"""Tests for Graph isolation and the use_graph() context."""

import gc
import weakref

from recell import Computed, Graph, Observable, autorun, clear, get_graph, reaction, use_graph


class TestGraph:
    def test_cells_live_in_the_current_graph(self, graph):
        o = Observable(1)
        assert o.cell.graph is graph
        assert len(graph) == 1

    def test_use_graph_restores_previous(self, graph):
        with use_graph() as inner:
            assert get_graph() is inner
            assert inner is not graph
        assert get_graph() is graph

    def test_use_given_graph(self):
        mine = Graph()
        with use_graph(mine) as g:
            assert g is mine

    def test_graphs_are_independent(self):
        with use_graph() as g1:
            a = Observable(1)
            log = []
            autorun(lambda: log.append(a.get()))
        with use_graph() as g2:
            b = Observable(1)
            autorun(lambda: b.get())
        assert len(g1) == 2
        assert len(g2) == 2
        b.set(2)
        assert log == [1]
        a.set(2)
        assert log == [1, 2]

    def test_cross_graph_reads_are_not_tracked(self):
        with use_graph():
            other = Observable(1)
        log = []
        autorun(lambda: log.append(other.get()))
        other.set(2)
        assert log == [1]

    def test_writes_use_the_cells_own_graph(self):
        with use_graph() as g:
            o = Observable(1)
            log = []
            autorun(lambda: log.append(o.get()))
        o.set(2)  # outside the block, still drains g
        assert log == [1, 2]
        assert not g.pending

    def test_repr(self):
        g = Graph()
        assert repr(g) == "Graph(cells=0, pending=0)"


class _Payload:
    pass


class TestCollection:
    def test_dropped_cells_leave_the_graph(self, graph):
        payload = _Payload()
        payload_ref = weakref.ref(payload)
        o = Observable(payload)
        stop = autorun(o.get)
        stop()
        del o, stop, payload
        gc.collect()
        assert len(graph) == 0
        assert payload_ref() is None

    def test_disposed_reactions_do_not_accumulate(self, graph):
        o = Observable(0)
        for _ in range(100):
            reaction(lambda: o.get(), lambda v: None).dispose()
        gc.collect()
        assert len(graph) == 1
        assert o.cell.dependents == ()

    def test_running_effects_are_kept_alive(self, graph):
        o = Observable(0)
        log = []
        autorun(lambda: log.append(o.get()))
        gc.collect()
        o.set(1)
        assert log == [0, 1]
        assert len(graph) == 2

    def test_collected_reader_is_unlinked(self, graph):
        o = Observable(0)
        c = Computed(lambda: o.get() + 1)
        assert c.get() == 1
        assert len(o.cell.dependents) == 1
        del c
        gc.collect()
        assert o.cell.dependents == ()
        assert len(graph) == 1

    def test_clear_releases_unreferenced_effects(self, graph):
        o = Observable(0)
        autorun(lambda: o.get())
        clear()
        gc.collect()
        assert len(graph) == 1
