"""
Main Application Window
=======================
The primary GUI container that holds the control panel and the canvas.

Why is this file needed?
------------------------
1. Layout: It organizes the control panel (left) and the responsive canvas
   (right) in a splitter.
2. Routing: It is the UI binding of the pipeline. Raw control edits go into
   ParameterStore.apply; the resulting ChangeKind goes to the scheduler;
   layout changes go to the scheduler's resize path; scheduler status goes
   to the status label.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import QMainWindow, QScrollArea, QSplitter

from fractalview.application import VISIBLE_APP_NAME
from fractalview.config import AppConfig
from fractalview.controller.bridge import FractalNoiseBridge, GeneratorBridge
from fractalview.controller.scheduler import RenderScheduler
from fractalview.model.errors import InvalidInput
from fractalview.model.parameters import ChangeKind, ParameterStore, ViewParameters
from fractalview.model.surface import SurfaceManager
from fractalview.view.canvas import CanvasContainer, CanvasWidget
from fractalview.view.controls import ControlPanel

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(
        self,
        app_config: Optional[AppConfig] = None,
        bridge: Optional[GeneratorBridge] = None,
    ) -> None:
        super().__init__()
        self.app_config = app_config or AppConfig()
        self.setWindowTitle(VISIBLE_APP_NAME)
        self.resize(1200, 850)

        # --- MODEL ---
        self.store = ParameterStore(view=ViewParameters(iterations=self.app_config.point_count))

        # --- SPLITTER (CONTENT AREA) ---
        splitter = QSplitter(Qt.Orientation.Horizontal)
        self.setCentralWidget(splitter)

        # --- LEFT SIDE: Controls ---
        self.controls = ControlPanel(point_count=self.app_config.point_count)
        splitter.addWidget(self.controls)

        # --- RIGHT SIDE: Canvas ---
        self.canvas = CanvasWidget()
        self.canvas_container = CanvasContainer(self.canvas)
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOn)
        scroll.setWidget(self.canvas_container)
        splitter.addWidget(scroll)

        # Set initial proportions (1 part sidebar : 3 parts canvas)
        splitter.setSizes([300, 900])

        # --- PIPELINE ---
        self.surfaces = SurfaceManager(
            self.canvas,
            aspect_ratio=self.canvas.intrinsic_aspect_ratio,
            presentation_factor=self.app_config.presentation_factor,
        )
        self.bridge: GeneratorBridge = bridge or FractalNoiseBridge(depth=self.app_config.point_depth)
        self.scheduler = RenderScheduler(
            self.store,
            self.bridge,
            self.surfaces,
            frame_interval_ms=self.app_config.frame_interval_ms,
            threaded=self.app_config.threaded_generation,
            parent=self,
        )

        # --- SIGNAL CONNECTIONS ---
        # 1. Control edits -> store -> scheduler
        self.controls.parameter_edited.connect(self.on_parameter_edited)

        # 2. Layout/DPR changes -> resize + redraw
        self.canvas_container.layout_changed.connect(self.on_layout_changed)

        # 3. Scheduler status -> status label
        self.scheduler.status_changed.connect(self.on_status_changed)

        # Initial Render
        self.scheduler.request(ChangeKind.GENERATION)

    # --- SLOTS ---

    def on_parameter_edited(self, field: str, raw: Any) -> None:
        """Slot called for every raw control edit."""
        try:
            kind = self.store.apply(field, raw)
        except InvalidInput as exc:
            logger.debug(f"Ignoring edit: {exc}")
            self.controls.show_warning(f"Ignored {exc.field} value {exc.raw!r}")
            return
        self.scheduler.request(kind)

    def on_layout_changed(self, width: float, device_pixel_ratio: float) -> None:
        """Slot called when the canvas container's width or pixel density changes."""
        self.scheduler.notify_resize(width, device_pixel_ratio)

    def on_status_changed(self, text: str) -> None:
        self.controls.status_message = text

    def closeEvent(self, event: QCloseEvent) -> None:
        self.scheduler.shutdown()
        super().closeEvent(event)
