from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QSplitter,
    QToolBar,
    QVBoxLayout,
    QWidget,
)

from polynodes.config import Settings
from polynodes.editor import GraphEditor
from polynodes.nodes import NodeType, get_node_templates
from polynodes.service import (
    ExecutionResults,
    GraphFile,
    SaveReceipt,
    ServiceClient,
    ServiceDispatcher,
)
from polynodes.storage import GraphSerializer

from .library_panel import LibraryPanel
from .node_editor import NodeEditorView
from .node_inspector import NodeInspector


logger = logging.getLogger(__name__)

SEED_NODE_TYPES = (NodeType.IMAGE_LOADER, NodeType.MATH, NodeType.COMBINE)

_REQUEST_TITLES = {
    "run": "Failed to Run Graph",
    "save": "Failed to Save Graph",
    "load": "Failed to Load Graph",
    "delete": "Failed to Delete Graph",
    "list_graphs": "Failed to Load Graphs List",
    "list_images": "Failed to Load Images List",
}


class MainWindow(QMainWindow):
    """
    Top-level window for the PolyNodes editor.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[ServiceClient] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._settings = settings or Settings()
        self.setWindowTitle("PolyNodes")
        self.setMinimumSize(1024, 720)

        self._editor = GraphEditor()
        self._serializer = GraphSerializer()
        self._client = client or ServiceClient(
            self._settings.service_url, timeout=self._settings.request_timeout
        )
        self._dispatcher = ServiceDispatcher(parent=self)
        self._node_editor = NodeEditorView(self._editor)
        self._node_inspector = NodeInspector()
        self._node_inspector.setMinimumWidth(280)
        self._library_panel = LibraryPanel()
        self._library_panel.setMinimumWidth(240)
        self._graph_name_edit = QLineEdit()
        self._run_action: Optional[QAction] = None
        self._save_action: Optional[QAction] = None
        self._add_actions: Dict[NodeType, QAction] = {}
        self._last_export_dir: Path = Path.home()
        self._status_bar = self.statusBar()
        self._status_bar.showMessage(f"Service: {self._client.base_url}")

        self._setup_ui()
        self._setup_toolbar()
        self._setup_menus()
        self._setup_service()
        self._start()

    @property
    def editor(self) -> GraphEditor:
        return self._editor

    def _setup_ui(self) -> None:
        container = QWidget(self)
        layout = QHBoxLayout(container)
        layout.setContentsMargins(0, 0, 0, 0)

        sidebar = QWidget(container)
        sidebar_layout = QVBoxLayout(sidebar)
        sidebar_layout.setContentsMargins(0, 0, 0, 0)
        sidebar_layout.addWidget(self._node_inspector, 3)
        sidebar_layout.addWidget(self._library_panel, 2)

        splitter = QSplitter(Qt.Horizontal, container)
        splitter.addWidget(self._node_editor)
        splitter.addWidget(sidebar)
        splitter.setCollapsible(0, False)
        splitter.setCollapsible(1, False)
        splitter.setStretchFactor(0, 3)
        splitter.setStretchFactor(1, 1)
        splitter.setSizes([960, 360])

        layout.addWidget(splitter)
        self.setCentralWidget(container)

        self._node_editor.selectionChanged.connect(self._on_node_selection_changed)
        self._node_editor.graphChanged.connect(self._refresh_inspector)
        self._node_inspector.paramChanged.connect(self._on_param_changed)
        self._node_inspector.titleChanged.connect(self._on_title_changed)
        self._node_inspector.removeRequested.connect(self._node_editor.remove_node)
        self._library_panel.loadRequested.connect(self._load_graph)
        self._library_panel.deleteRequested.connect(self._delete_graph)
        self._library_panel.refreshGraphsRequested.connect(self._refresh_graphs)
        self._library_panel.refreshImagesRequested.connect(self._refresh_images)

    def _setup_toolbar(self) -> None:
        toolbar = QToolBar("Graph", self)
        toolbar.setMovable(False)
        self.addToolBar(Qt.TopToolBarArea, toolbar)

        for template in get_node_templates():
            action = toolbar.addAction(f"Add {template.title}")
            action.setStatusTip(template.description)
            action.triggered.connect(
                lambda _checked=False, node_type=template.type: self._add_node(node_type)
            )
            self._add_actions[template.type] = action

        toolbar.addSeparator()
        self._run_action = toolbar.addAction("Run")
        self._run_action.setShortcut(QKeySequence("Ctrl+R"))
        self._run_action.triggered.connect(self._run_graph)  # type: ignore[arg-type]

        clear_action = toolbar.addAction("Clear")
        clear_action.triggered.connect(self._clear_graph)  # type: ignore[arg-type]

        toolbar.addSeparator()
        toolbar.addWidget(QLabel(" Name: "))
        self._graph_name_edit.setPlaceholderText("graph name")
        self._graph_name_edit.setMaximumWidth(220)
        self._graph_name_edit.returnPressed.connect(self._save_graph)
        toolbar.addWidget(self._graph_name_edit)
        self._save_action = toolbar.addAction("Save")
        self._save_action.triggered.connect(self._save_graph)  # type: ignore[arg-type]

    def _setup_menus(self) -> None:
        file_menu = self.menuBar().addMenu("&File")

        export_action = QAction("&Export JSON…", self)
        export_action.triggered.connect(self._export_json)  # type: ignore[arg-type]
        file_menu.addAction(export_action)

        import_action = QAction("&Import JSON…", self)
        import_action.triggered.connect(self._import_json)  # type: ignore[arg-type]
        file_menu.addAction(import_action)

        file_menu.addSeparator()

        quit_action = QAction("&Quit", self)
        quit_action.triggered.connect(self.close)  # type: ignore[arg-type]
        file_menu.addAction(quit_action)

        nodes_menu = self.menuBar().addMenu("&Nodes")
        for action in self._add_actions.values():
            nodes_menu.addAction(action)
        nodes_menu.addSeparator()
        delete_action = nodes_menu.addAction("Delete Selected Node")
        delete_action.triggered.connect(self._node_editor.remove_selected_node)  # type: ignore[arg-type]

        help_menu = self.menuBar().addMenu("&Help")
        quickstart_action = QAction("Quick &Start", self)
        quickstart_action.triggered.connect(self._show_quick_start)  # type: ignore[arg-type]
        help_menu.addAction(quickstart_action)

    def _setup_service(self) -> None:
        self._dispatcher.busyChanged.connect(self._on_busy_changed)
        self._dispatcher.failed.connect(self._on_request_failed)

    def _start(self) -> None:
        if self._settings.seed_graph:
            for node_type in SEED_NODE_TYPES:
                self._node_editor.add_node(node_type)
        self._refresh_graphs(then=self._refresh_images)

    def _submit(
        self,
        label: str,
        call: Callable[[], Any],
        on_success: Optional[Callable[[Any], None]] = None,
        on_failure: Optional[Callable[[Exception], None]] = None,
    ) -> bool:
        if not self._dispatcher.submit(label, call, on_success, on_failure):
            self._status_bar.showMessage("Another request is still running.", 4000)
            return False
        return True

    def _add_node(self, node_type: NodeType) -> None:
        self._node_editor.add_node(node_type)

    def _clear_graph(self) -> None:
        self._editor.clear()
        self._node_editor.reload()
        self._refresh_inspector()
        self._status_bar.showMessage("Graph cleared.", 4000)

    def _run_graph(self) -> None:
        model = self._editor.export_graph()
        self._editor.apply_results(None)
        self._refresh_inspector()
        self._submit("run", lambda: self._client.run_graph(model), self._on_run_finished)

    def _on_run_finished(self, results: ExecutionResults) -> None:
        self._editor.apply_results(results)
        for line in results.log:
            logger.info("run: %s", line)
        self._refresh_inspector()
        state = "completed" if results.ok else "finished with errors"
        self._status_bar.showMessage(f"Run {state}: {len(results.results)} result(s).", 6000)

    def _save_graph(self) -> None:
        name = self._graph_name_edit.text().strip()
        if not name:
            QMessageBox.warning(self, "Save Graph", "Please enter a name for the graph.")
            return
        model = self._editor.export_graph()

        def on_saved(receipt: SaveReceipt) -> None:
            saved_as = receipt.filename or name
            self._status_bar.showMessage(f"Graph '{name}' saved as {saved_as}.", 6000)
            self._refresh_graphs()

        self._submit("save", lambda: self._client.save_graph(name, model), on_saved)

    def _load_graph(self, name: str) -> None:
        self._submit("load", lambda: self._client.load_graph(name), self._on_graph_loaded)

    def _on_graph_loaded(self, loaded: Tuple[str, Dict[str, Any]]) -> None:
        name, model = loaded
        if not self._apply_model(model, f"graph '{name}'"):
            return
        self._graph_name_edit.setText(name)
        self._status_bar.showMessage(f"Graph '{name}' loaded.", 6000)

    def _delete_graph(self, name: str) -> None:
        def on_deleted(ok: bool) -> None:
            if ok:
                self._status_bar.showMessage(f"Graph '{name}' deleted.", 6000)
            else:
                QMessageBox.warning(self, "Delete Graph", f"The server did not delete '{name}'.")
            self._refresh_graphs()

        self._submit("delete", lambda: self._client.delete_graph(name), on_deleted)

    def _refresh_graphs(self, then: Optional[Callable[[], None]] = None) -> None:
        """
        List the saved graphs, then run ``then`` whether or not listing worked.
        """

        def on_listed(graphs: List[GraphFile]) -> None:
            self._library_panel.set_graphs(graphs)
            if then is not None:
                then()

        def on_failed(_error: Exception) -> None:
            if then is not None:
                then()

        self._submit("list_graphs", self._client.list_graphs, on_listed, on_failed)

    def _refresh_images(self) -> None:
        def on_listed(images: List[str]) -> None:
            self._library_panel.set_images(images)
            self._node_inspector.set_images(images)

        self._submit("list_images", self._client.list_images, on_listed)

    def _export_json(self) -> None:
        file_name, _ = QFileDialog.getSaveFileName(
            self,
            "Export Graph",
            str(self._last_export_dir / "graph.json"),
            "Graph Files (*.json)",
        )
        if not file_name:
            return

        path = Path(file_name)
        if path.suffix.lower() != ".json":
            path = path.with_suffix(".json")
        try:
            self._serializer.save(path, self._editor.graph)
        except OSError as exc:
            logger.exception("Failed to export graph to %s", path)
            QMessageBox.warning(self, "Failed to Export Graph", str(exc))
            return
        self._last_export_dir = path.parent
        self._status_bar.showMessage(f"Graph exported: {path.name}", 5000)

    def _import_json(self) -> None:
        file_name, _ = QFileDialog.getOpenFileName(
            self,
            "Import Graph",
            str(self._last_export_dir),
            "Graph Files (*.json)",
        )
        if not file_name:
            return

        path = Path(file_name)
        try:
            payload = self._serializer.read(path)
        except (OSError, ValueError) as exc:
            logger.exception("Failed to read graph from %s", path)
            QMessageBox.warning(self, "Failed to Import Graph", str(exc))
            return
        if self._apply_model(payload, path.name):
            self._last_export_dir = path.parent
            self._status_bar.showMessage(f"Graph imported: {path.name}", 5000)

    def _apply_model(self, model: Dict[str, Any], source: str) -> bool:
        try:
            self._editor.load_graph(model)
        except ValueError as exc:
            logger.exception("Rejected %s", source)
            QMessageBox.warning(self, "Failed to Load Graph", f"Could not load {source}: {exc}")
            return False
        self._node_editor.reload()
        self._refresh_inspector()
        return True

    def _show_quick_start(self) -> None:
        QMessageBox.information(
            self,
            "PolyNodes Quick Start",
            (
                "1. Add nodes from the toolbar and drag them by their body.\n"
                "2. Click an output port, then an input port, to connect them.\n"
                "3. Click a connection to remove it; Escape cancels a pending one.\n"
                "4. Press Run to execute the graph and inspect node outputs."
            ),
        )

    @Slot(object)
    def _on_node_selection_changed(self, node_id: Optional[str]) -> None:
        _ = node_id
        self._refresh_inspector()

    @Slot(str, str, object)
    def _on_param_changed(self, node_id: str, name: str, value: Any) -> None:
        if self._editor.update_param(node_id, name, value):
            self._node_editor.refresh()

    @Slot(str, str)
    def _on_title_changed(self, node_id: str, title: str) -> None:
        if self._editor.update_node(node_id, title=title):
            self._node_editor.refresh()
            self._refresh_inspector()

    @Slot(bool)
    def _on_busy_changed(self, busy: bool) -> None:
        if self._run_action is not None:
            self._run_action.setEnabled(not busy)
            self._run_action.setText("Running..." if busy else "Run")
        if self._save_action is not None:
            self._save_action.setEnabled(not busy)
        self._library_panel.set_busy(busy)

    @Slot(str, object)
    def _on_request_failed(self, label: str, error: Exception) -> None:
        title = _REQUEST_TITLES.get(label, "Request Failed")
        self._status_bar.showMessage(title, 6000)
        QMessageBox.warning(self, title, str(error))

    def _refresh_inspector(self) -> None:
        selection = self._editor.selection
        self._node_inspector.set_node(selection.selected_node(), selection.selected_result())
