"""Graph configuration.

GraphConfig is frozen after creation. Swap it on a live graph with
recell.configure(), which replaces the whole object.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from recell._errors import ConfigError

# Immutable scalars compare by value; everything else compares by identity.
_VALUE_TYPES = (int, float, complex, str, bytes, bool, type(None), frozenset)


def same_value(old: Any, new: Any) -> bool:
    """Strict equality: the cutoff that stops unchanged writes propagating.

    Two objects are the same if they are identical, or if both are the same
    immutable scalar type and compare equal. Tuples of the same type match
    when their items match pairwise by this same rule. Mutable containers and
    other objects only match themselves, so replacing a list with an equal
    copy still counts as a change, inside a tuple or not.
    """
    if old is new:
        return True
    if type(old) is not type(new):
        return False
    if isinstance(old, tuple):
        return len(old) == len(new) and all(map(same_value, old, new))
    if isinstance(old, _VALUE_TYPES):
        return old == new
    return False


@dataclass(frozen=True, slots=True)
class GraphConfig:
    """Configuration for a reactive Graph.

    Attributes:
        max_iterations: Stabilization passes allowed per drain before the
            graph gives up with CycleError.
        catch_errors: Log producer exceptions and keep the previous value.
            When False, the exception propagates to whoever triggered the run.
        equals: Write cutoff. set() is a no-op when equals(old, new) is true.

    """

    max_iterations: int = 100
    catch_errors: bool = True
    equals: Callable[[Any, Any], bool] = same_value

    def __post_init__(self) -> None:
        if self.max_iterations < 1:
            raise ConfigError(f"max_iterations must be at least 1, got {self.max_iterations}")
        if not callable(self.equals):
            raise ConfigError("equals must be callable")
