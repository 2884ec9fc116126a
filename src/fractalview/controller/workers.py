"""
Background Workers (Threading)
==============================
This module contains QThread subclasses for handling long-running tasks.

Why is this file needed?
------------------------
1. Responsiveness: Generating a large point set on the main thread freezes
   the sliders. This class pushes generation to a background thread.
2. Signals: The finished handle is delivered back to the UI thread through a
   Qt Signal, so the chart can be swapped in a single assignment there. The
   previous handle keeps rendering until then.

Classes:
    GenerationWorker: Runs one GeneratorBridge.generate call.
"""
from __future__ import annotations

import logging
import time
from typing import Optional, TYPE_CHECKING

from PySide6.QtCore import QObject, QThread, Signal

if TYPE_CHECKING:
    from fractalview.controller.bridge import GeneratorBridge
    from fractalview.model.parameters import GenerationParameters

logger = logging.getLogger(__name__)


class GenerationWorker(QThread):
    # Signals to update the UI from the background
    generated = Signal(object, object)  # (GenerationParameters, PointSetHandle)
    error_occurred = Signal(object, str)  # (GenerationParameters, message)

    def __init__(
        self,
        bridge: GeneratorBridge,
        params: GenerationParameters,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.bridge = bridge
        self.params = params

    def run(self) -> None:
        try:
            logger.info(f"Generating point set in background thread for {self.params}")
            start = time.perf_counter()
            handle = self.bridge.generate(self.params)
            logger.debug(f"Background generation took {(time.perf_counter() - start) * 1000.0:.1f} ms")
            self.generated.emit(self.params, handle)
        except Exception as e:
            logger.error(f"Error in GenerationWorker: {e}")
            self.error_occurred.emit(self.params, str(e))
