from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QPointF, Qt, Signal
from PySide6.QtGui import QColor, QPainterPath, QPainterPathStroker, QPen
from PySide6.QtWidgets import QGraphicsObject

from polynodes.editor import EdgeCurve, Point


def _qpoint(point: Point) -> QPointF:
    return QPointF(point.x, point.y)


class ConnectionGraphicsItem(QGraphicsObject):
    """
    Visual cable between two node ports.

    Committed connections are clickable along a wide invisible stroke and ask
    to be removed when clicked. The preview of a connection being drawn is
    dashed and ignores the mouse.
    """

    removeRequested = Signal(str)  # connection id

    NORMAL_PEN = QPen(QColor(96, 165, 250, 204), 3.0)
    HOVER_PEN = QPen(QColor("#c0d7ff"), 3.0)
    PREVIEW_PEN = QPen(QColor("#a78bfa"), 3.0, Qt.DashLine)
    HIT_WIDTH = 15.0

    def __init__(self, connection_id: Optional[str] = None, parent=None) -> None:
        super().__init__(parent)
        self._connection_id = connection_id
        self._path = QPainterPath()
        self._hit_shape = QPainterPath()
        self._hovered = False

        if connection_id is None:
            self.setAcceptedMouseButtons(Qt.NoButton)
            self.setZValue(20)
        else:
            self.setAcceptedMouseButtons(Qt.LeftButton)
            self.setAcceptHoverEvents(True)
            self.setCursor(Qt.PointingHandCursor)
            self.setToolTip("Click to remove connection")
            self.setZValue(1)

    @property
    def connection_id(self) -> Optional[str]:
        return self._connection_id

    @property
    def is_preview(self) -> bool:
        return self._connection_id is None

    def set_curve(self, curve: EdgeCurve) -> None:
        path = QPainterPath(_qpoint(curve.start))
        path.cubicTo(_qpoint(curve.ctrl1), _qpoint(curve.ctrl2), _qpoint(curve.end))
        self.prepareGeometryChange()
        self._path = path
        stroker = QPainterPathStroker()
        stroker.setWidth(self.HIT_WIDTH)
        self._hit_shape = stroker.createStroke(path)
        self.update()

    def boundingRect(self):  # type: ignore[override]
        return self._hit_shape.boundingRect()

    def shape(self) -> QPainterPath:  # type: ignore[override]
        return self._hit_shape

    def paint(self, painter, option, widget=None) -> None:  # type: ignore[override]
        if self.is_preview:
            pen = self.PREVIEW_PEN
        else:
            pen = self.HOVER_PEN if self._hovered else self.NORMAL_PEN
        painter.setPen(pen)
        painter.setBrush(Qt.NoBrush)
        painter.drawPath(self._path)

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        if self._connection_id is not None and event.button() == Qt.LeftButton:
            self.removeRequested.emit(self._connection_id)
            event.accept()
            return
        super().mousePressEvent(event)

    def hoverEnterEvent(self, event) -> None:  # type: ignore[override]
        self._hovered = True
        self.update()
        super().hoverEnterEvent(event)

    def hoverLeaveEvent(self, event) -> None:  # type: ignore[override]
        self._hovered = False
        self.update()
        super().hoverLeaveEvent(event)
