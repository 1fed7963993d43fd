from __future__ import annotations

import sys
from typing import NoReturn

try:
    from .application import create_application
    from .config import Settings, configure_logging
    from .ui.main_window import MainWindow
except ImportError:  # pragma: no cover - fallback when executed as a script
    from polynodes.application import create_application  # type: ignore[no-redef]
    from polynodes.config import Settings, configure_logging  # type: ignore[no-redef]
    from polynodes.ui.main_window import MainWindow  # type: ignore[no-redef]


def main() -> NoReturn:
    """
    Entry point for the PolyNodes editor.
    """

    settings = Settings.from_env()
    configure_logging(settings)
    app = create_application()
    window = MainWindow(settings)
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
