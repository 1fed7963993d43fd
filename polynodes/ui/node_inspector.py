from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import List, Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QPixmap
from PySide6.QtWidgets import (
    QComboBox,
    QFormLayout,
    QFrame,
    QGroupBox,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QLineEdit,
    QPlainTextEdit,
    QPushButton,
    QScrollArea,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)

from polynodes.nodes import MATH_OPERATIONS, Node, NodeType, get_node_template
from polynodes.service import ExecutionResult, ResultKind

logger = logging.getLogger(__name__)


class NodeInspector(QGroupBox):
    """
    Inspector panel for the selected node: title, parameters and the output
    of the last run.
    """

    paramChanged = Signal(str, str, object)  # node_id, param name, value
    titleChanged = Signal(str, str)  # node_id, title
    removeRequested = Signal(str)  # node_id

    THUMBNAIL_SIZE = 240

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__("Inspector", parent)
        self._node: Optional[Node] = None
        self._result: Optional[ExecutionResult] = None
        self._images: List[str] = []
        self._is_updating = False

        self.setSizePolicy(QSizePolicy.Preferred, QSizePolicy.Expanding)

        self._scroll_area = QScrollArea(self)
        self._scroll_area.setWidgetResizable(True)
        self._scroll_area.setFrameShape(QFrame.NoFrame)

        self._content_widget = QWidget(self._scroll_area)
        self._content_layout = QVBoxLayout()
        self._content_layout.setContentsMargins(0, 0, 0, 0)
        self._content_widget.setLayout(self._content_layout)
        self._scroll_area.setWidget(self._content_widget)

        root_layout = QVBoxLayout()
        root_layout.setContentsMargins(8, 8, 8, 8)
        root_layout.addWidget(self._scroll_area)
        self.setLayout(root_layout)

        self.refresh()

    def set_node(self, node: Optional[Node], result: Optional[ExecutionResult] = None) -> None:
        self._node = node
        self._result = result
        self.refresh()

    def set_images(self, images: List[str]) -> None:
        self._images = list(images)
        if self._node is not None and self._node.type == NodeType.IMAGE_LOADER:
            self.refresh()

    def refresh(self) -> None:
        self._clear_content()

        node = self._node
        if node is None:
            self._content_layout.addWidget(QLabel("Select a node to edit its properties."))
            self._content_layout.addStretch()
            return

        header = QLabel(f"{node.title} ({node.type.value})")
        header.setWordWrap(True)
        header.setStyleSheet("font-weight: bold;")
        self._content_layout.addWidget(header)

        id_label = QLabel(node.id)
        id_label.setStyleSheet("color: palette(mid);")
        id_label.setTextInteractionFlags(Qt.TextSelectableByMouse)
        self._content_layout.addWidget(id_label)

        description = get_node_template(node.type).description
        desc_label = QLabel(description)
        desc_label.setWordWrap(True)
        desc_label.setStyleSheet("color: palette(mid);")
        self._content_layout.addWidget(desc_label)

        button_row = QHBoxLayout()
        rename_button = QPushButton("Rename…")
        rename_button.clicked.connect(self._on_rename_clicked)
        delete_button = QPushButton("Delete Node")
        delete_button.clicked.connect(self._on_delete_clicked)
        button_row.addWidget(rename_button)
        button_row.addWidget(delete_button)
        buttons = QWidget(self)
        buttons.setLayout(button_row)
        self._content_layout.addWidget(buttons)

        self._build_params_editor(node)
        self._build_output_section()

        self._content_layout.addStretch()

    def _build_params_editor(self, node: Node) -> None:
        if not node.params:
            self._content_layout.addWidget(QLabel("No editable properties for this node."))
            return

        form = QFormLayout()
        container = QWidget(self)
        container.setLayout(form)
        self._content_layout.addWidget(container)

        self._is_updating = True
        for name, value in node.params.items():
            if node.type == NodeType.MATH and name == "op":
                form.addRow("Operation", self._create_operation_combo(node, value))
            elif node.type == NodeType.IMAGE_LOADER and name == "filename":
                form.addRow("Image", self._create_image_combo(node, value))
            else:
                edit = QLineEdit()
                edit.setText("" if value is None else str(value))
                edit.editingFinished.connect(
                    lambda key=name, widget=edit: self._set_param(node, key, widget.text())
                )
                form.addRow(name, edit)
        self._is_updating = False

    def _create_operation_combo(self, node: Node, current: object) -> QComboBox:
        combo = QComboBox()
        for operation, symbol in MATH_OPERATIONS:
            combo.addItem(f"{symbol}  ({operation})", operation)
        index = combo.findData(str(current))
        combo.setCurrentIndex(index if index != -1 else 0)
        combo.currentIndexChanged.connect(
            lambda idx: self._set_param(node, "op", combo.itemData(idx))
        )
        return combo

    def _create_image_combo(self, node: Node, current: object) -> QComboBox:
        combo = QComboBox()
        combo.addItem("-- no image --", "")
        for image in self._images:
            combo.addItem(image, image)
        filename = str(current or "")
        index = combo.findData(filename)
        if index == -1 and filename:
            # Keep a filename the server no longer lists.
            combo.addItem(f"{filename} (missing)", filename)
            index = combo.count() - 1
        combo.setCurrentIndex(max(index, 0))
        combo.currentIndexChanged.connect(
            lambda idx: self._set_param(node, "filename", combo.itemData(idx))
        )
        return combo

    def _build_output_section(self) -> None:
        box = QGroupBox("Node Output", self)
        layout = QVBoxLayout(box)
        self._content_layout.addWidget(box)

        result = self._result
        if result is None:
            hint = QLabel("Run the graph to see output.")
            hint.setStyleSheet("color: palette(mid);")
            layout.addWidget(hint)
            return

        if result.kind == ResultKind.ERROR:
            error_label = QLabel(f"Error: {result.error_message}")
            error_label.setWordWrap(True)
            error_label.setStyleSheet("color: #f87171;")
            layout.addWidget(error_label)
            return

        if result.kind == ResultKind.IMAGE:
            layout.addWidget(self._create_thumbnail(result))
            details = [str(result.filename or "")]
            if result.width and result.height:
                details.append(f"{result.width}×{result.height}")
            info = QLabel(" ".join(part for part in details if part))
            info.setStyleSheet("color: palette(mid);")
            layout.addWidget(info)
            return

        kind_label = QLabel(f"Type: {result.kind.value}")
        kind_label.setStyleSheet("color: palette(mid);")
        layout.addWidget(kind_label)

        value_view = QPlainTextEdit()
        value_view.setReadOnly(True)
        value_view.setPlainText(json.dumps(result.value, indent=2, default=str))
        value_view.setMaximumHeight(160)
        layout.addWidget(value_view)

    def _create_thumbnail(self, result: ExecutionResult) -> QLabel:
        label = QLabel()
        label.setAlignment(Qt.AlignCenter)
        encoded = result.thumbnail_b64
        if not encoded:
            label.setText("No preview available.")
            return label
        pixmap = QPixmap()
        try:
            loaded = pixmap.loadFromData(base64.b64decode(encoded))
        except (binascii.Error, ValueError):
            loaded = False
        if not loaded:
            logger.warning("Could not decode thumbnail for %s", result.filename)
            label.setText("Preview could not be decoded.")
            return label
        label.setPixmap(
            pixmap.scaled(self.THUMBNAIL_SIZE, self.THUMBNAIL_SIZE, Qt.KeepAspectRatio, Qt.SmoothTransformation)
        )
        return label

    def _set_param(self, node: Node, key: str, value) -> None:
        if self._is_updating:
            return
        if node.params.get(key) == value:
            return
        self.paramChanged.emit(node.id, key, value)

    def _on_rename_clicked(self) -> None:
        node = self._node
        if node is None:
            return
        title, ok = QInputDialog.getText(self, "Rename Node", "Title:", text=node.title)
        if not ok or not title.strip() or title.strip() == node.title:
            return
        self.titleChanged.emit(node.id, title.strip())

    def _on_delete_clicked(self) -> None:
        if self._node is not None:
            self.removeRequested.emit(self._node.id)

    def _clear_content(self) -> None:
        while self._content_layout.count():
            item = self._content_layout.takeAt(0)
            widget = item.widget()
            if widget is not None:
                widget.deleteLater()
