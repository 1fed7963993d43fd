from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from PySide6.QtCore import QEvent, QObject, QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QKeyEvent, QPainter, QPen
from PySide6.QtWidgets import QGraphicsScene, QGraphicsView, QWidget

from polynodes.editor import GraphEditor, Point, target_at
from polynodes.nodes import NodeType, PortDirection, PortRef

from .connection_graphics import ConnectionGraphicsItem
from .node_graphics import NodeGraphicsItem

logger = logging.getLogger(__name__)


class NodeEditorScene(QGraphicsScene):
    """
    Scene responsible for rendering the node graph and managing graphics items.

    ``sync`` rebuilds every position and curve from the editor state; nothing
    is cached between frames.
    """

    GRID_SIZE = 32
    GRID_PEN = QPen(QColor(70, 76, 92, 110), 1)
    CANVAS_RECT = QRectF(0, 0, 4000, 3000)
    BACKGROUND = QColor("#001021")

    portPressed = Signal(str, str, str)  # node_id, direction, port_name
    nodeBodyPressed = Signal(str, float, float)  # node_id, scene x, scene y
    connectionRemoveRequested = Signal(str)

    def __init__(self, editor: GraphEditor, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._editor = editor
        self._node_items: Dict[str, NodeGraphicsItem] = {}
        self._connection_items: Dict[str, ConnectionGraphicsItem] = {}
        self._preview_item: Optional[ConnectionGraphicsItem] = None
        self.setSceneRect(self.CANVAS_RECT)
        self.setBackgroundBrush(self.BACKGROUND)

    def drawBackground(self, painter, rect):  # type: ignore[override]
        super().drawBackground(painter, rect)

        start_x = int(rect.left()) - (int(rect.left()) % self.GRID_SIZE)
        start_y = int(rect.top()) - (int(rect.top()) % self.GRID_SIZE)

        painter.setPen(self.GRID_PEN)

        for x in range(start_x, int(rect.right()) + self.GRID_SIZE, self.GRID_SIZE):
            painter.drawLine(x, rect.top(), x, rect.bottom())

        for y in range(start_y, int(rect.bottom()) + self.GRID_SIZE, self.GRID_SIZE):
            painter.drawLine(rect.left(), y, rect.right(), y)

    def sync(self) -> None:
        self.sync_nodes()
        self.sync_connections()
        self.sync_preview()
        self._grow_canvas()

    def sync_nodes(self) -> None:
        nodes = self._editor.graph.nodes()
        for node_id in [
            node_id
            for node_id, item in self._node_items.items()
            if nodes.get(node_id) is not item.node
        ]:
            self.removeItem(self._node_items.pop(node_id))

        selected = self._editor.selection.selected_id
        connecting = self._editor.interaction.pending_source is not None
        for node_id, node in nodes.items():
            item = self._node_items.get(node_id)
            if item is None:
                item = NodeGraphicsItem(node, self._editor.resolver.layout)
                item.bodyPressed.connect(self.nodeBodyPressed.emit)
                item.portPressed.connect(self.portPressed.emit)
                self._node_items[node_id] = item
                self.addItem(item)
            item.sync_from_model()
            item.set_highlight(node_id == selected, connecting)

    def sync_connections(self) -> None:
        curves = {curve.connection_id: curve for curve in self._editor.renderer.edges()}

        for connection_id in set(self._connection_items) - set(curves):
            self.removeItem(self._connection_items.pop(connection_id))

        for connection_id, curve in curves.items():
            item = self._connection_items.get(connection_id)
            if item is None:
                item = ConnectionGraphicsItem(connection_id)
                item.removeRequested.connect(self.connectionRemoveRequested.emit)
                self._connection_items[connection_id] = item
                self.addItem(item)
            item.set_curve(curve)

    def sync_preview(self) -> None:
        curve = self._editor.renderer.preview()
        if curve is None:
            self.clear_preview()
            return
        if self._preview_item is None:
            self._preview_item = ConnectionGraphicsItem()
            self.addItem(self._preview_item)
        self._preview_item.set_curve(curve)

    def clear_preview(self) -> None:
        if self._preview_item is not None:
            self.removeItem(self._preview_item)
            self._preview_item = None

    def clear_items(self) -> None:
        for item in list(self._node_items.values()) + list(self._connection_items.values()):
            self.removeItem(item)
        self._node_items.clear()
        self._connection_items.clear()
        self.clear_preview()

    def _grow_canvas(self) -> None:
        bounds = self.itemsBoundingRect().adjusted(-200, -200, 400, 400)
        rect = self.sceneRect()
        if not rect.contains(bounds):
            self.setSceneRect(rect.united(bounds))


class GesturePointerFilter(QObject):
    """
    Viewport event filter that feeds pointer moves and releases to the active
    gesture. Installed only while a gesture is in progress.
    """

    def __init__(
        self,
        on_move: Callable[[QPointF], None],
        on_release: Callable[[QPointF], None],
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._on_move = on_move
        self._on_release = on_release

    def eventFilter(self, watched, event) -> bool:  # type: ignore[override]
        if event.type() == QEvent.MouseMove:
            self._on_move(event.position())
        elif event.type() == QEvent.MouseButtonRelease and event.button() == Qt.LeftButton:
            self._on_release(event.position())
        return False


class NodeEditorView(QGraphicsView):
    """
    Graphics view wrapper around the node editor scene.
    """

    selectionChanged = Signal(object)  # Optional[str] node id
    graphChanged = Signal()

    def __init__(self, editor: GraphEditor, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._editor = editor
        self._scene = NodeEditorScene(editor, self)
        self._last_selection: Optional[str] = None
        self._gesture_filter = GesturePointerFilter(self._gesture_move, self._gesture_release, self)

        self.setScene(self._scene)
        self.setRenderHint(QPainter.Antialiasing)
        self.setRenderHint(QPainter.TextAntialiasing)
        self.setDragMode(QGraphicsView.NoDrag)
        self.setViewportUpdateMode(QGraphicsView.FullViewportUpdate)
        self.setTransformationAnchor(QGraphicsView.AnchorUnderMouse)
        self.setResizeAnchor(QGraphicsView.AnchorViewCenter)
        self.setFocusPolicy(Qt.StrongFocus)

        self._editor.interaction.set_capture(self._capture_pointer)
        self._scene.portPressed.connect(self._on_port_pressed)
        self._scene.nodeBodyPressed.connect(self._on_node_body_pressed)
        # Queued so a connection item is never deleted inside its own press handler.
        self._scene.connectionRemoveRequested.connect(
            self._on_connection_remove_requested, Qt.QueuedConnection
        )

        self.refresh()
        self.ensureVisible(0, 0, 1, 1)

    @property
    def editor(self) -> GraphEditor:
        return self._editor

    @property
    def node_scene(self) -> NodeEditorScene:
        return self._scene

    def add_node(self, node_type: NodeType) -> str:
        origin = self.mapToScene(0, 0)
        x, y = self._editor.graph.default_position()
        node_id = self._editor.add_node(node_type, (origin.x() + x, origin.y() + y))
        self._changed()
        return node_id

    def remove_node(self, node_id: str) -> None:
        if self._editor.graph.get_node(node_id) is None:
            return
        self._editor.remove_node(node_id)
        self._changed()

    def remove_selected_node(self) -> None:
        node_id = self._editor.selection.selected_id
        if node_id is not None:
            self.remove_node(node_id)

    def reload(self) -> None:
        self._scene.clear_items()
        self.refresh()

    def refresh(self) -> None:
        self._scene.sync()
        selected = self._editor.selection.selected_id
        if selected != self._last_selection:
            self._last_selection = selected
            self.selectionChanged.emit(selected)

    def keyPressEvent(self, event: QKeyEvent) -> None:  # type: ignore[override]
        if event.key() in {Qt.Key_Delete, Qt.Key_Backspace}:
            self.remove_selected_node()
            event.accept()
            return
        if event.key() == Qt.Key_Escape and not self._editor.interaction.is_idle:
            self._editor.interaction.cancel()
            self.refresh()
            event.accept()
            return
        super().keyPressEvent(event)

    def wheelEvent(self, event) -> None:  # type: ignore[override]
        if event.modifiers() & Qt.ControlModifier:
            zoom_factor = 1.2 if event.angleDelta().y() > 0 else 1 / 1.2
            self.scale(zoom_factor, zoom_factor)
        else:
            super().wheelEvent(event)

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        if event.button() == Qt.LeftButton and self.itemAt(event.position().toPoint()) is None:
            if self._editor.click_empty_canvas():
                self.refresh()
        super().mousePressEvent(event)

    def _capture_pointer(self) -> Callable[[], None]:
        viewport = self.viewport()
        tracking = viewport.hasMouseTracking()
        viewport.installEventFilter(self._gesture_filter)
        viewport.setMouseTracking(True)

        def release() -> None:
            viewport.removeEventFilter(self._gesture_filter)
            viewport.setMouseTracking(tracking)

        return release

    def _scene_point(self, position: QPointF) -> Point:
        scene_pos = self.mapToScene(position.toPoint())
        return Point(scene_pos.x(), scene_pos.y())

    def _gesture_move(self, position: QPointF) -> None:
        self._editor.interaction.pointer_move(self._scene_point(position))
        self.refresh()

    def _gesture_release(self, position: QPointF) -> None:
        point = self._scene_point(position)
        connection = self._editor.interaction.pointer_release(point, target_at(self._editor.resolver, point))
        if connection is not None:
            logger.debug("Connected %s", connection.id)
            self._changed()
        else:
            self.refresh()

    def _on_node_body_pressed(self, node_id: str, x: float, y: float) -> None:
        self.setFocus()
        if self._editor.press_node_body(node_id, Point(x, y)):
            self.refresh()

    def _on_port_pressed(self, node_id: str, direction: str, port_name: str) -> None:
        self.setFocus()
        ref = PortRef(node_id, port_name)
        if PortDirection(direction) == PortDirection.OUTPUT:
            self._editor.interaction.click_output_port(ref)
            self.refresh()
            return
        if self._editor.interaction.click_input_port(ref) is not None:
            self._changed()
        else:
            self.refresh()

    def _on_connection_remove_requested(self, connection_id: str) -> None:
        if self._editor.remove_connection(connection_id):
            self._changed()

    def _changed(self) -> None:
        self.refresh()
        self.graphChanged.emit()
