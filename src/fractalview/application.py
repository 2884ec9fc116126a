from PySide6.QtWidgets import QApplication
from PySide6.QtCore import QCoreApplication

import os
import sys
from typing import Optional, Sequence

ORG_ID = "fractalview"
APP_ID = "fractal-noise-viewer"

VISIBLE_APP_NAME = "Fractal Noise Viewer"


def create_app(argv: Optional[Sequence[str]] = None) -> QApplication:
    """Create and configure the QApplication instance, or return the existing one."""
    existing = QApplication.instance()
    if existing is not None:
        return existing

    os.environ.setdefault("QT_ENABLE_HIGHDPI_SCALING", "1")

    QCoreApplication.setOrganizationName(ORG_ID)
    QCoreApplication.setApplicationName(APP_ID)

    app = QApplication(list(argv) if argv is not None else sys.argv)

    # Set the visible, translatable display name
    visible_name = QCoreApplication.translate("App", VISIBLE_APP_NAME)
    app.setApplicationDisplayName(visible_name)

    return app
