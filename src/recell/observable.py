"""Observable values — state that tracks its readers.

Observable is a single reactive slot. ObservableDict and ObservableList wrap
plain containers so that every key/index is its own cell: an effect that
reads d["a"] re-runs when d["a"] changes and not when d["b"] does.

Structure is tracked separately from contents. Enumerating an ObservableDict
reads its shape cell, which flips whenever a key is added or removed; an
ObservableList keeps a length cell in step with its items. Plain dicts and
lists written into a wrapped container are wrapped too, so nested mutation
is tracked as deeply as the data goes.
"""

from __future__ import annotations

import operator
from collections.abc import Iterable, Iterator, Mapping, MutableMapping, MutableSequence
from typing import Any, Generic, TypeVar, overload

from recell._anchor import Graph, get_graph
from recell._errors import NotObservableError
from recell.action import transaction
from recell.cell import Cell
from recell.config import same_value

T = TypeVar("T")
KT = TypeVar("KT")
VT = TypeVar("VT")


class _Absent:
    """Value of a key/index cell that currently holds nothing."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<absent>"


_ABSENT = _Absent()


class Observable(Generic[T]):
    """A single observable value with automatic dependency tracking."""

    __slots__ = ("_cell",)

    def __init__(self, value: T = None, *, graph: Graph | None = None) -> None:
        self._cell = Cell(value, graph=graph)

    @property
    def cell(self) -> Cell:
        return self._cell

    def get(self) -> T:
        """Read the value. If inside a derivation, registers the dependency."""
        return self._cell.get()

    def peek(self) -> T:
        """Read the value without registering a dependency."""
        return self._cell.peek()

    def set(self, value: T) -> bool:
        """Write a new value. Returns True if observers were notified."""
        return self._cell.set(value)

    def __repr__(self) -> str:
        return f"Observable({self._cell.peek()!r})"


def box(value: Any = None) -> Observable:
    """Make a single value observable, as-is."""
    return Observable(value)


def observable(value: Any = None) -> Observable:
    """Like box(), but plain dicts and lists are made deeply observable first."""
    return Observable(_wrap(value, get_graph()))


def is_observable_object(value: Any) -> bool:
    """Is this an observable container (ObservableDict / ObservableList)?"""
    return getattr(type(value), "__observable__", False) is True


def _wrap(value: Any, graph: Graph) -> Any:
    if isinstance(value, dict):
        return ObservableDict(value, graph=graph)
    if isinstance(value, list):
        return ObservableList(value, graph=graph)
    return value


class ObservableDict(MutableMapping[KT, VT]):
    """A mapping whose keys are individually observable.

    A missing key raises KeyError like a dict does, but the read is still
    tracked: the reader re-runs once the key is assigned.
    """

    __slots__ = ("_graph", "_data", "_cells", "_shape")
    __observable__ = True

    def __init__(
        self,
        data: Mapping[KT, VT] | Iterable[tuple[KT, VT]] | None = None,
        *,
        graph: Graph | None = None,
    ) -> None:
        self._graph = graph if graph is not None else get_graph()
        self._data: dict[KT, Any] = {}
        self._cells: dict[KT, Cell] = {}
        for key, value in dict(data or {}).items():
            value = _wrap(value, self._graph)
            self._data[key] = value
            self._cells[key] = Cell(value, graph=self._graph)
        self._shape = Cell(False, graph=self._graph)

    def _cell(self, key: KT) -> Cell:
        cell = self._cells.get(key)
        if cell is None:
            cell = self._cells[key] = Cell(_ABSENT, graph=self._graph)
        return cell

    def _flip_shape(self) -> None:
        self._shape.set(not self._shape.peek())

    # --- Read operations (track) ---

    def __getitem__(self, key: KT) -> VT:
        value = self._cell(key).get()
        if value is _ABSENT:
            raise KeyError(key)
        return value

    def __iter__(self) -> Iterator[KT]:
        self._shape.get()
        return iter(list(self._data))

    def __len__(self) -> int:
        self._shape.get()
        return len(self._data)

    # --- Write operations (notify) ---

    def __setitem__(self, key: KT, value: VT) -> None:
        value = _wrap(value, self._graph)
        added = key not in self._data
        self._data[key] = value
        with transaction(self._graph):
            self._cell(key).set(value)
            if added:
                self._flip_shape()

    def __delitem__(self, key: KT) -> None:
        if key not in self._data:
            raise KeyError(key)
        del self._data[key]
        with transaction(self._graph):
            self._cells[key].set(_ABSENT)
            self._flip_shape()

    def pop(self, key: KT, *default: Any) -> Any:
        if key not in self._data:
            if default:
                return default[0]
            raise KeyError(key)
        value = self._data[key]
        del self[key]
        return value

    def update(self, other: Any = (), /, **kwargs: VT) -> None:
        with transaction(self._graph):
            super().update(other, **kwargs)

    def clear(self) -> None:
        with transaction(self._graph):
            for key in list(self._data):
                del self[key]

    def __repr__(self) -> str:
        return f"ObservableDict({self._data!r})"


class ObservableList(MutableSequence[T]):
    """A list whose indices and length are individually observable.

    Reading lst[i] tracks only index i; len() and iteration track the
    length cell. Every mutation commits in one batch, so effects see the
    list before or after an operation, never halfway through it.
    """

    __slots__ = ("_graph", "_items", "_cells", "_length")
    __observable__ = True

    def __init__(self, items: Iterable[T] | None = None, *, graph: Graph | None = None) -> None:
        self._graph = graph if graph is not None else get_graph()
        self._items: list[Any] = [_wrap(item, self._graph) for item in (items or ())]
        self._cells: list[Cell] = [Cell(item, graph=self._graph) for item in self._items]
        self._length = Cell(len(self._items), graph=self._graph)

    def _commit(self) -> None:
        """Push the backing list into the index cells and the length cell."""
        items = self._items
        with transaction(self._graph):
            while len(self._cells) < len(items):
                self._cells.append(Cell(_ABSENT, graph=self._graph))
            for index, cell in enumerate(self._cells):
                cell.set(items[index] if index < len(items) else _ABSENT)
            self._length.set(len(items))

    # --- Read operations (track) ---

    @overload
    def __getitem__(self, index: int) -> T: ...

    @overload
    def __getitem__(self, index: slice) -> list[T]: ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return [self._cells[i].get() for i in range(*index.indices(self._length.get()))]
        index = operator.index(index)
        if index < 0:
            index += self._length.get()
        if 0 <= index < len(self._items):
            return self._cells[index].get()
        # Track the length so the reader re-runs once the index exists.
        self._length.get()
        raise IndexError("list index out of range")

    def __len__(self) -> int:
        return self._length.get()

    def __iter__(self) -> Iterator[T]:
        return iter([self._cells[i].get() for i in range(self._length.get())])

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (list, ObservableList)):
            return list(self) == list(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    # --- Write operations (notify) ---

    def __setitem__(self, index, value) -> None:
        if isinstance(index, slice):
            self._items[index] = [_wrap(item, self._graph) for item in value]
        else:
            self._items[index] = _wrap(value, self._graph)
        self._commit()

    def __delitem__(self, index) -> None:
        del self._items[index]
        self._commit()

    def insert(self, index: int, value: T) -> None:
        self._items.insert(index, _wrap(value, self._graph))
        self._commit()

    def append(self, value: T) -> None:
        self._items.append(_wrap(value, self._graph))
        self._commit()

    def extend(self, values: Iterable[T]) -> None:
        self._items.extend(_wrap(item, self._graph) for item in values)
        self._commit()

    def __iadd__(self, values: Iterable[T]) -> ObservableList[T]:
        self.extend(values)
        return self

    def pop(self, index: int = -1) -> T:
        value = self._items.pop(index)
        self._commit()
        return value

    def remove(self, value: T) -> None:
        self._items.remove(value)
        self._commit()

    def clear(self) -> None:
        self._items.clear()
        self._commit()

    def reverse(self) -> None:
        self._items.reverse()
        self._commit()

    def sort(self, *, key: Any = None, reverse: bool = False) -> None:
        self._items.sort(key=key, reverse=reverse)
        self._commit()

    def __repr__(self) -> str:
        return f"ObservableList({self._items!r})"


def observable_object(obj: Any, *, graph: Graph | None = None) -> Any:
    """Make a dict (or list) deeply observable. Idempotent."""
    if is_observable_object(obj):
        return obj
    if isinstance(obj, (list, tuple)):
        return observable_array(obj, graph=graph)
    if isinstance(obj, Mapping):
        return ObservableDict(obj, graph=graph)
    raise NotObservableError(
        f"Argument must be a mapping or a list, got {type(obj).__name__}"
    )


def observable_array(arr: Any, *, graph: Graph | None = None) -> ObservableList:
    """Make a list deeply observable, including its length. Idempotent."""
    if isinstance(arr, ObservableList):
        return arr
    if not isinstance(arr, (list, tuple)):
        raise NotObservableError(f"Argument must be a list, got {type(arr).__name__}")
    return ObservableList(arr, graph=graph)


def are_equal_shallow(a: Any, b: Any) -> bool:
    """Same keys (or length) and pairwise-identical values, one level deep."""
    if a is b:
        return True
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if len(a) != len(b):
            return False
        return all(key in b and same_value(a[key], b[key]) for key in a)
    if isinstance(a, (list, tuple, ObservableList)) and isinstance(b, (list, tuple, ObservableList)):
        if len(a) != len(b):
            return False
        return all(same_value(x, y) for x, y in zip(a, b))
    return False


def to_plain(value: Any) -> Any:
    """Deep copy of observable containers back into plain dicts and lists.

    Reads every key and index, so calling it inside an effect subscribes to
    the whole structure.
    """
    if isinstance(value, (ObservableDict, dict)):
        return {key: to_plain(item) for key, item in value.items()}
    if isinstance(value, (ObservableList, list)):
        return [to_plain(item) for item in value]
    return value
