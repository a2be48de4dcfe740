"""decorate() — retrofit reactivity onto an existing object.

Each named attribute is replaced by a property backed by whatever the
factory builds from the attribute's current value, usually box or
observable. Plain Python properties on the object's class that read those
attributes then become reactive for free.

The instance is moved to a one-off subclass holding the new properties, so
other instances of the class are untouched.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, TypeVar

from recell._errors import NotObservableError

T = TypeVar("T")


def _accessor(key: str, handle: Any) -> property:
    def fget(self: Any) -> Any:
        return handle.get()

    fset = None
    if callable(getattr(handle, "set", None)):

        def fset(self: Any, value: Any) -> None:
            handle.set(value)

    return property(fget, fset, doc=f"Reactive attribute {key!r}.")


def decorate(target: T, decorators: Mapping[str, Callable[[Any], Any]]) -> T:
    """Make the named attributes of target observable.

    Usage:
        class Person:
            def __init__(self):
                self.name = "John"
                self.show_age = False
                self.age = 42

            @property
            def label(self):
                return f"{self.name} ({self.age})" if self.show_age else self.name

        person = decorate(Person(), {"name": box, "age": box, "show_age": box})
        reaction(lambda: person.label, print)
        person.show_age = True  # prints "John (42)"

    A factory returning something without set() (e.g. a Computed) makes the
    attribute read-only.
    """
    cls = type(target)
    namespace: dict[str, Any] = {"__module__": cls.__module__, "__qualname__": cls.__qualname__}
    for key, factory in decorators.items():
        namespace[key] = _accessor(key, factory(getattr(target, key, None)))

    try:
        target.__class__ = type(cls.__name__, (cls,), namespace)
    except TypeError as exc:
        raise NotObservableError(f"Cannot decorate {cls.__name__} instance: {exc}") from exc

    # The properties shadow these now; drop the stale copies.
    instance_dict = getattr(target, "__dict__", None)
    if instance_dict is not None:
        for key in decorators:
            instance_dict.pop(key, None)
    return target
