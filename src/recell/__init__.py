"""recell: fine-grained reactive cells for Python."""

from importlib.metadata import version as _version

__version__ = _version("recell")

from recell._anchor import CellState, Graph, configure, get_graph, use_graph
from recell._errors import ConfigError, CycleError, NotObservableError, RecellError
from recell._scheduler import get_pending_count
from recell._tracking import untracked
from recell.config import GraphConfig, same_value
from recell.cell import Cell
from recell.observable import (
    Observable,
    ObservableDict,
    ObservableList,
    are_equal_shallow,
    box,
    is_observable_object,
    observable,
    observable_array,
    observable_object,
    to_plain,
)
from recell.computed import Computed, computed
from recell.reaction import (
    Reaction,
    autorun,
    clear,
    observe,
    observe_object,
    reaction,
    when,
    whenever,
)
from recell.action import action, run_in_action, transaction
from recell.decorate import decorate
# textual NOT auto-imported — opt-in only

__all__ = [
    "Cell",
    "CellState",
    "Graph",
    "GraphConfig",
    "configure",
    "get_graph",
    "use_graph",
    "same_value",
    "untracked",
    "Observable",
    "ObservableDict",
    "ObservableList",
    "box",
    "observable",
    "observable_object",
    "observable_array",
    "is_observable_object",
    "are_equal_shallow",
    "to_plain",
    "Computed",
    "computed",
    "Reaction",
    "autorun",
    "reaction",
    "observe",
    "observe_object",
    "when",
    "whenever",
    "clear",
    "action",
    "transaction",
    "run_in_action",
    "decorate",
    "get_pending_count",
    "RecellError",
    "ConfigError",
    "CycleError",
    "NotObservableError",
]
