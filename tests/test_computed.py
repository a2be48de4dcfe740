"""Tests for Computed values."""

from recell import Computed, Observable, autorun, computed, reaction


class TestComputed:
    def test_lazy_eval(self):
        call_count = 0
        o = Observable(5)

        def fn():
            nonlocal call_count
            call_count += 1
            return o.get() * 2

        c = Computed(fn)
        assert call_count == 0  # not yet evaluated
        assert c.get() == 10
        assert call_count == 1

    def test_caches_until_dirty(self):
        call_count = 0
        o = Observable(5)

        def fn():
            nonlocal call_count
            call_count += 1
            return o.get() * 2

        c = Computed(fn)
        c.get()
        c.get()
        assert call_count == 1  # cached, no re-eval

    def test_stays_lazy_across_writes(self):
        """At most one evaluation per read, however many writes happened."""
        call_count = 0
        o = Observable("cat")

        def fn():
            nonlocal call_count
            call_count += 1
            return o.get().upper()

        c = Computed(fn)
        o.set("dog")
        o.set("cow")
        assert call_count == 0
        assert c.get() == "COW"
        assert call_count == 1
        o.set("pig")
        assert call_count == 1
        assert c.get() == "PIG"
        assert call_count == 2

    def test_not_lazy_when_observed(self):
        call_count = 0
        o = Observable("cat")

        def fn():
            nonlocal call_count
            call_count += 1
            return o.get()

        c = Computed(fn)
        autorun(lambda: c.get())
        assert call_count == 1
        o.set("dog")
        assert call_count == 2

    def test_invalidation(self):
        o = Observable(5)
        c = Computed(lambda: o.get() * 2)
        assert c.get() == 10
        o.set(10)
        assert c.get() == 20

    def test_dependency_tracking(self):
        """Computed tracks dependencies dynamically."""
        flag = Observable(True)
        a = Observable(1)
        b = Observable(2)

        c = Computed(lambda: a.get() if flag.get() else b.get())
        assert c.get() == 1

        flag.set(False)
        assert c.get() == 2  # now depends on b, not a

    def test_chained_computed(self):
        o = Observable(3)
        doubled = Computed(lambda: o.get() * 2)
        quadrupled = Computed(lambda: doubled.get() * 2)
        assert quadrupled.get() == 12
        o.set(5)
        assert quadrupled.get() == 20

    def test_diamond_runs_once_per_write(self):
        o = Observable(1)
        left = Computed(lambda: o.get() + 1)
        right = Computed(lambda: o.get() * 10)
        runs = []

        def bottom():
            runs.append((left.get(), right.get()))
            return runs[-1]

        c = Computed(bottom)
        log = []
        autorun(lambda: log.append(c.get()))
        assert runs == [(2, 10)]

        o.set(2)
        assert runs == [(2, 10), (3, 20)]  # never a mixed (3, 10)
        assert log == [(2, 10), (3, 20)]

    def test_unchanged_result_stops_propagation(self):
        o = Observable(1)
        parity = Computed(lambda: o.get() % 2)
        downstream_runs = []
        autorun(lambda: downstream_runs.append(parity.get()))
        o.set(3)
        assert downstream_runs == [1]
        o.set(4)
        assert downstream_runs == [1, 0]

    def test_dispose(self):
        o = Observable(5)
        c = Computed(lambda: o.get() * 2)
        c.get()
        c.dispose()
        # After dispose, the computed is inert
        o.set(10)
        # get() re-evaluates from scratch since dispose cleared everything
        assert c.get() == 20  # still works, just re-evals

    def test_propagates_to_reactions(self):
        """Computed invalidation propagates to downstream reactions."""
        o = Observable(5)
        c = Computed(lambda: o.get() * 2)
        log = []
        autorun(lambda: log.append(c.get()))
        assert log == [10]
        o.set(10)
        assert log == [10, 20]

    def test_observed_through_reaction(self):
        o = Observable("cat")
        effects = []
        reaction(lambda: o.get().upper(), effects.append)
        o.set("dog")
        assert effects == ["DOG"]

    def test_repr(self):
        o = Observable(2)

        def doubled():
            return o.get() * 2

        c = Computed(doubled)
        assert repr(c) == "Computed(doubled, dirty)"
        c.get()
        assert repr(c) == "Computed(doubled, cached=4)"


class TestComputedDecorator:
    def test_decorator_factory(self):
        o = Observable(7)

        @computed
        def doubled():
            return o.get() * 2

        assert doubled.get() == 14
        o.set(3)
        assert doubled.get() == 6
