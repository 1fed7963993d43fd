from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from polynodes.service import GraphFile


class LibraryPanel(QGroupBox):
    """
    Sidebar component listing the graphs saved on the server and the images
    available to image loader nodes.
    """

    loadRequested = Signal(str)  # graph name
    deleteRequested = Signal(str)  # graph name
    refreshGraphsRequested = Signal()
    refreshImagesRequested = Signal()

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__("Library", parent)
        self._busy = False

        self._graph_list = QListWidget()
        self._graph_list.setSelectionMode(QListWidget.SingleSelection)
        self._graph_list.currentItemChanged.connect(self._handle_current_change)
        self._graph_list.itemDoubleClicked.connect(lambda _item: self._load_current())

        self._load_button = QPushButton("Load")
        self._delete_button = QPushButton("Delete")
        self._refresh_graphs_button = QPushButton("Refresh")

        self._image_list = QListWidget()
        self._image_list.setSelectionMode(QListWidget.NoSelection)
        self._refresh_images_button = QPushButton("Refresh Images")

        graph_buttons = QHBoxLayout()
        graph_buttons.addWidget(self._load_button)
        graph_buttons.addWidget(self._delete_button)
        graph_buttons.addWidget(self._refresh_graphs_button)

        layout = QVBoxLayout(self)
        layout.addWidget(QLabel("Saved Graphs"))
        layout.addWidget(self._graph_list, 3)
        layout.addLayout(graph_buttons)
        layout.addSpacing(12)
        layout.addWidget(QLabel("Available Images"))
        layout.addWidget(self._image_list, 2)
        layout.addWidget(self._refresh_images_button)

        self._load_button.clicked.connect(self._load_current)
        self._delete_button.clicked.connect(self._delete_current)
        self._refresh_graphs_button.clicked.connect(self.refreshGraphsRequested.emit)
        self._refresh_images_button.clicked.connect(self.refreshImagesRequested.emit)

        self.set_graphs([])
        self.set_images([])

    def set_graphs(self, graphs: List[GraphFile]) -> None:
        """
        Populate the saved graph list, newest first.
        """

        self._graph_list.clear()
        if not graphs:
            placeholder = QListWidgetItem("No saved graphs")
            placeholder.setFlags(Qt.NoItemFlags)
            self._graph_list.addItem(placeholder)
            self._graph_list.setEnabled(False)
        else:
            self._graph_list.setEnabled(True)
            for graph in sorted(graphs, key=lambda entry: entry.mtime, reverse=True):
                item = QListWidgetItem(graph.name)
                item.setData(Qt.UserRole, graph.name)
                if graph.mtime:
                    stamp = datetime.fromtimestamp(graph.mtime).strftime("%Y-%m-%d %H:%M")
                    item.setToolTip(f"Saved {stamp}")
                self._graph_list.addItem(item)
        self._update_buttons_state()

    def set_images(self, images: List[str]) -> None:
        self._image_list.clear()
        if not images:
            placeholder = QListWidgetItem("No images found")
            placeholder.setFlags(Qt.NoItemFlags)
            self._image_list.addItem(placeholder)
            return
        for image in images:
            self._image_list.addItem(QListWidgetItem(image))

    def set_busy(self, busy: bool) -> None:
        self._busy = busy
        self._refresh_graphs_button.setEnabled(not busy)
        self._refresh_images_button.setEnabled(not busy)
        self._update_buttons_state()

    def current_graph(self) -> Optional[str]:
        item = self._graph_list.currentItem()
        if item is None:
            return None
        return item.data(Qt.UserRole) or None

    def _handle_current_change(self, current: QListWidgetItem, previous: QListWidgetItem) -> None:
        _ = current, previous
        self._update_buttons_state()

    def _load_current(self) -> None:
        name = self.current_graph()
        if name:
            self.loadRequested.emit(name)

    def _delete_current(self) -> None:
        name = self.current_graph()
        if not name:
            return
        answer = QMessageBox.question(
            self,
            "Delete Graph",
            f"Delete the saved graph '{name}'?",
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No,
        )
        if answer == QMessageBox.Yes:
            self.deleteRequested.emit(name)

    def _update_buttons_state(self) -> None:
        enabled = self.current_graph() is not None and not self._busy
        self._load_button.setEnabled(enabled)
        self._delete_button.setEnabled(enabled)
