"""Every test runs in its own graph, so nothing leaks between tests."""

import pytest

from recell import Graph, use_graph


@pytest.fixture(autouse=True)
def graph():
    with use_graph(Graph()) as g:
        yield g
