from __future__ import annotations

import os
import sys
from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QColor, QPalette
from PySide6.QtWidgets import QApplication


def build_dark_palette() -> QPalette:
    palette = QPalette()
    base_color = QColor("#0b1220")
    alt_base_color = QColor("#111827")
    text_color = QColor("#e5e7eb")
    disabled_text = QColor(128, 128, 128)
    highlight_color = QColor("#3b82f6")

    palette.setColor(QPalette.Window, alt_base_color)
    palette.setColor(QPalette.WindowText, text_color)
    palette.setColor(QPalette.Base, base_color)
    palette.setColor(QPalette.AlternateBase, alt_base_color)
    palette.setColor(QPalette.ToolTipBase, alt_base_color)
    palette.setColor(QPalette.ToolTipText, text_color)
    palette.setColor(QPalette.Text, text_color)
    palette.setColor(QPalette.Button, QColor("#1f2937"))
    palette.setColor(QPalette.ButtonText, text_color)
    palette.setColor(QPalette.BrightText, QColor(Qt.red))
    palette.setColor(QPalette.Link, QColor("#93c5fd"))
    palette.setColor(QPalette.Highlight, highlight_color)
    palette.setColor(QPalette.HighlightedText, QColor(255, 255, 255))
    palette.setColor(QPalette.PlaceholderText, QColor(156, 163, 175))

    palette.setColor(QPalette.Disabled, QPalette.Text, disabled_text)
    palette.setColor(QPalette.Disabled, QPalette.ButtonText, disabled_text)
    palette.setColor(QPalette.Disabled, QPalette.WindowText, disabled_text)

    return palette


def create_application(argv: Optional[list[str]] = None, *, dark: bool = True) -> QApplication:
    """
    Create and configure the global QApplication instance.

    Parameters
    ----------
    argv:
        Optional command line arguments. Defaults to ``sys.argv``.
    dark:
        Use the Fusion style with the dark palette matching the canvas.

    Returns
    -------
    QApplication
        A configured Qt application object.
    """

    # XCB is only forced when an X display is available; otherwise Qt picks
    # its own platform plugin.
    app_platform = os.environ.get("QT_QPA_PLATFORM")
    if sys.platform.startswith("linux") and not app_platform and os.environ.get("DISPLAY"):
        os.environ["QT_QPA_PLATFORM"] = "xcb"

    app = QApplication(argv or sys.argv)
    app.setApplicationName("PolyNodes")
    app.setOrganizationName("PolyNodes")
    app.setOrganizationDomain("polynodes.local")

    if dark:
        app.setStyle("Fusion")
        app.setPalette(build_dark_palette())
    return app
