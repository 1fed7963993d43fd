from __future__ import annotations

from typing import Optional, Tuple

from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QFont, QPainter, QPen
from PySide6.QtWidgets import QGraphicsItem, QGraphicsObject

from polynodes.editor import NodeLayout
from polynodes.nodes import MATH_OPERATIONS, Node, NodeType, PortDirection


class PortHandleItem(QGraphicsObject):
    """
    Invisible interactive hotspot for a node port.
    """

    pressed = Signal(str, str)  # direction, port name
    hovered = Signal(str, str, bool)

    def __init__(self, direction: PortDirection, port_name: str, radius: float, parent=None):
        super().__init__(parent)
        self._direction = direction
        self._port_name = port_name
        self._radius = radius
        self.setAcceptedMouseButtons(Qt.LeftButton)
        self.setAcceptHoverEvents(True)
        self.setCursor(Qt.CrossCursor)
        self.setToolTip(port_name)

    def boundingRect(self) -> QRectF:  # type: ignore[override]
        size = self._radius * 2 + 6
        return QRectF(-size / 2, -size / 2, size, size)

    def paint(self, painter, option, widget=None) -> None:  # type: ignore[override]
        # Hotspot does not render visible content.
        _ = painter, option, widget

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        if event.button() == Qt.LeftButton:
            self.pressed.emit(self._direction.value, self._port_name)
            event.accept()
        else:
            super().mousePressEvent(event)

    def hoverEnterEvent(self, event) -> None:  # type: ignore[override]
        self.hovered.emit(self._direction.value, self._port_name, True)
        super().hoverEnterEvent(event)

    def hoverLeaveEvent(self, event) -> None:  # type: ignore[override]
        self.hovered.emit(self._direction.value, self._port_name, False)
        super().hoverLeaveEvent(event)


_OPERATION_SYMBOLS = dict(MATH_OPERATIONS)


def param_summary(node: Node, name: str, value: object) -> str:
    if node.type == NodeType.MATH and name == "op":
        return f"{name}: {_OPERATION_SYMBOLS.get(str(value), value)}"
    if node.type == NodeType.IMAGE_LOADER and name == "filename" and not value:
        return f"{name}: -- no image --"
    return f"{name}: {value}"


class NodeGraphicsItem(QGraphicsObject):
    """
    Visual representation of a node in the graphics scene.

    The item never moves itself: presses on the body are reported through
    ``bodyPressed`` and the scene positions the item from the graph model.
    """

    bodyPressed = Signal(str, float, float)  # node_id, scene x, scene y
    portPressed = Signal(str, str, str)  # node_id, direction, port_name

    TITLE_BRUSH = QColor("#101b2e")
    BODY_BRUSH = QColor("#0a1220")
    PARAMS_BRUSH = QColor(17, 24, 39, 128)
    BORDER_PEN = QPen(QColor("#1f2937"), 1.5)
    SELECTED_BORDER_PEN = QPen(QColor("#60a5fa"), 2.4)
    TEXT_COLOR = QColor("#bfdbfe")
    LABEL_COLOR = QColor("#d1d5db")
    INPUT_COLOR = QColor("#c084fc")
    OUTPUT_COLOR = QColor("#60a5fa")
    PORT_HOVER_COLOR = QColor("#ffffff")
    PORT_ARMED_PEN = QPen(QColor("#d8b4fe"), 2.0)

    def __init__(self, node: Node, layout: NodeLayout, parent: Optional[QGraphicsItem] = None) -> None:
        super().__init__(parent)
        self._node = node
        self._layout = layout
        self._hover_port: Optional[Tuple[str, str]] = None  # direction, name
        self._selected = False
        self._connecting = False

        self.setZValue(5)
        self.setToolTip(node.title)
        self._create_port_handles()

    @property
    def node(self) -> Node:
        return self._node

    def boundingRect(self) -> QRectF:  # type: ignore[override]
        width, height = self._layout.size(self._node)
        return QRectF(0, 0, width, height)

    def set_highlight(self, selected: bool, connecting: bool) -> None:
        if selected != self._selected or connecting != self._connecting:
            self._selected = selected
            self._connecting = connecting
            self.update()

    def sync_from_model(self) -> None:
        """
        Re-read position, title and parameters from the node.
        """

        self.prepareGeometryChange()
        self.setPos(self._node.x, self._node.y)
        self.setToolTip(self._node.title)
        self.update()

    def paint(self, painter: QPainter, option, widget=None) -> None:  # type: ignore[override, unused-argument]
        rect = self.boundingRect()
        layout = self._layout

        # Body
        painter.setPen(Qt.NoPen)
        painter.setBrush(self.BODY_BRUSH)
        painter.drawRoundedRect(rect, 8, 8)

        # Header
        header_rect = QRectF(rect.left(), rect.top(), rect.width(), layout.header_height)
        painter.setBrush(self.TITLE_BRUSH)
        painter.drawRoundedRect(header_rect, 8, 8)
        painter.drawRect(
            QRectF(
                header_rect.left(),
                header_rect.top() + layout.header_height / 2,
                header_rect.width(),
                layout.header_height / 2,
            )
        )

        # Border
        painter.setBrush(Qt.NoBrush)
        painter.setPen(self.SELECTED_BORDER_PEN if self._selected else self.BORDER_PEN)
        painter.drawRoundedRect(rect.adjusted(0.5, 0.5, -0.5, -0.5), 8, 8)

        # Title
        painter.setPen(self.TEXT_COLOR)
        font = QFont()
        font.setPointSizeF(10.5)
        font.setBold(True)
        painter.setFont(font)
        title_rect = header_rect.adjusted(layout.padding, 0, -layout.padding, 0)
        title = painter.fontMetrics().elidedText(self._node.title, Qt.ElideRight, int(title_rect.width()))
        painter.drawText(title_rect, Qt.AlignVCenter | Qt.AlignLeft, title)

        painter.setFont(QFont("Sans Serif", 9))
        self._draw_ports(painter, rect)
        self._draw_params(painter, rect)

    def _draw_ports(self, painter: QPainter, rect: QRectF) -> None:
        layout = self._layout
        half_width = rect.width() / 2 - layout.padding
        for direction, color in (
            (PortDirection.INPUT, self.INPUT_COLOR),
            (PortDirection.OUTPUT, self.OUTPUT_COLOR),
        ):
            for port in self._node.ports(direction):
                anchor = layout.local_port_position(self._node, direction, port.name)
                if anchor is None:
                    continue
                position = QPointF(anchor.x, anchor.y)
                hovered = self._hover_port == (direction.value, port.name)
                painter.setBrush(self.PORT_HOVER_COLOR if hovered else color)
                if self._connecting and direction == PortDirection.INPUT:
                    painter.setPen(self.PORT_ARMED_PEN)
                else:
                    painter.setPen(Qt.NoPen)
                painter.drawEllipse(position, layout.port_radius, layout.port_radius)

                painter.setPen(self.LABEL_COLOR)
                label_top = anchor.y - layout.port_height / 2
                if direction == PortDirection.INPUT:
                    label_rect = QRectF(anchor.x + layout.padding, label_top, half_width, layout.port_height)
                    painter.drawText(label_rect, Qt.AlignVCenter | Qt.AlignLeft, port.name)
                else:
                    label_rect = QRectF(
                        anchor.x - layout.padding - half_width, label_top, half_width, layout.port_height
                    )
                    painter.drawText(label_rect, Qt.AlignVCenter | Qt.AlignRight, port.name)

    def _draw_params(self, painter: QPainter, rect: QRectF) -> None:
        if not self._node.params:
            return
        layout = self._layout
        top = layout.params_top(self._node)
        box = QRectF(
            rect.left() + layout.padding / 2,
            top,
            rect.width() - layout.padding,
            len(self._node.params) * layout.param_height + layout.padding / 2,
        )
        painter.setPen(Qt.NoPen)
        painter.setBrush(self.PARAMS_BRUSH)
        painter.drawRoundedRect(box, 6, 6)

        painter.setPen(self.LABEL_COLOR)
        metrics = painter.fontMetrics()
        text_width = box.width() - layout.padding
        for index, (name, value) in enumerate(self._node.params.items()):
            line_rect = QRectF(
                box.left() + layout.padding / 2,
                box.top() + layout.padding / 4 + index * layout.param_height,
                text_width,
                layout.param_height,
            )
            text = metrics.elidedText(param_summary(self._node, name, value), Qt.ElideRight, int(text_width))
            painter.drawText(line_rect, Qt.AlignVCenter | Qt.AlignLeft, text)

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        if event.button() == Qt.LeftButton:
            scene_pos = event.scenePos()
            self.bodyPressed.emit(self._node.id, scene_pos.x(), scene_pos.y())
            event.accept()
        else:
            super().mousePressEvent(event)

    def _create_port_handles(self) -> None:
        for direction in (PortDirection.INPUT, PortDirection.OUTPUT):
            for port in self._node.ports(direction):
                anchor = self._layout.local_port_position(self._node, direction, port.name)
                if anchor is None:
                    continue
                handle = PortHandleItem(direction, port.name, self._layout.port_radius, self)
                handle.setPos(anchor.x, anchor.y)
                handle.pressed.connect(self._emit_port_pressed)
                handle.hovered.connect(self._set_hover_port)

    def _emit_port_pressed(self, direction: str, port_name: str) -> None:
        self.portPressed.emit(self._node.id, direction, port_name)

    def _set_hover_port(self, direction: str, port_name: str, hovered: bool) -> None:
        self._hover_port = (direction, port_name) if hovered else None
        self.update()
