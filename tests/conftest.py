import os
import random

import pytest

from polynodes.editor import GraphEditor
from polynodes.nodes import NodeGraph

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture
def graph():
    return NodeGraph(rng=random.Random(7))


@pytest.fixture
def editor(graph):
    return GraphEditor(graph)


@pytest.fixture(scope="session")
def qt_app():
    from PySide6.QtWidgets import QApplication

    return QApplication.instance() or QApplication([])
