"""
Canvas Widgets
==============
The drawing surface and the responsive container around it.

CanvasWidget owns the QImage backing store that the renderer draws into.
CanvasContainer reports its available width and the screen's device pixel
ratio whenever either may have changed.
"""
from __future__ import annotations

import logging
import math
from typing import Optional

from PySide6.QtCore import QEvent, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QImage, QPainter, QPaintEvent, QResizeEvent, QShowEvent
from PySide6.QtWidgets import QSizePolicy, QVBoxLayout, QWidget

from fractalview import config
from fractalview.controller.bridge import SURFACE_FORMAT, clear_surface
from fractalview.model.surface import SurfaceGeometry

logger = logging.getLogger(__name__)


class CanvasWidget(QWidget):
    """
    Widget displaying a backing-store image at its logical size.

    Implements the DrawingSurface protocol: ``resize_surface``,
    ``backing_store`` and ``present``.
    """

    def __init__(
        self,
        intrinsic_size: tuple[int, int] = config.CANVAS_INTRINSIC_SIZE,
        background: str = config.CANVAS_BACKGROUND,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        width, height = intrinsic_size
        self._background = QColor(background)
        self._image = QImage(max(1, width), max(1, height), SURFACE_FORMAT)
        clear_surface(self._image)
        self._geometry: Optional[SurfaceGeometry] = None
        self.setAttribute(Qt.WidgetAttribute.WA_OpaquePaintEvent, True)
        self.setSizePolicy(QSizePolicy.Policy.Fixed, QSizePolicy.Policy.Fixed)
        self.setFixedSize(max(1, width), max(1, height))

    # --- PROPERTIES ---

    @property
    def intrinsic_aspect_ratio(self) -> float:
        """Aspect ratio of the current backing store (width / height)."""
        return self._image.width() / self._image.height()

    @property
    def surface_geometry(self) -> Optional[SurfaceGeometry]:
        return self._geometry

    # --- DRAWING SURFACE ---

    def resize_surface(self, geometry: SurfaceGeometry) -> None:
        """Set the logical size and reallocate the backing store."""
        image = QImage(geometry.device_width, geometry.device_height, SURFACE_FORMAT)
        image.setDevicePixelRatio(geometry.device_pixel_ratio)
        clear_surface(image)
        self._image = image
        self._geometry = geometry
        self.setFixedSize(math.ceil(geometry.css_width), math.ceil(geometry.css_height))

    def backing_store(self) -> QImage:
        return self._image

    def present(self) -> None:
        self.update()

    # --- EVENTS ---

    def paintEvent(self, event: QPaintEvent) -> None:
        del event
        painter = QPainter(self)
        try:
            painter.fillRect(self.rect(), self._background)
            dpr = self._image.devicePixelRatio()
            target = QRectF(0.0, 0.0, self._image.width() / dpr, self._image.height() / dpr)
            painter.drawImage(target, self._image)
        finally:
            painter.end()


class CanvasContainer(QWidget):
    """
    Hosts the canvas and emits ``layout_changed(width, device_pixel_ratio)``
    on resize, on first show, and when the window moves to a screen with a
    different pixel density.
    """
    layout_changed = Signal(float, float)

    def __init__(self, canvas: CanvasWidget, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.canvas = canvas
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(canvas, 0, Qt.AlignmentFlag.AlignHCenter | Qt.AlignmentFlag.AlignTop)
        layout.addStretch()
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Preferred)
        self.setMinimumWidth(1)

    def available_width(self) -> float:
        margins = self.contentsMargins()
        return float(max(0, self.width() - margins.left() - margins.right()))

    def emit_layout(self) -> None:
        width = self.available_width()
        dpr = self.devicePixelRatioF()
        logger.debug(f"Layout changed: width={width:g}, dpr={dpr:g}")
        self.layout_changed.emit(width, dpr)

    # --- EVENTS ---

    def resizeEvent(self, event: QResizeEvent) -> None:
        super().resizeEvent(event)
        if event.size().width() != event.oldSize().width():
            self.emit_layout()

    def showEvent(self, event: QShowEvent) -> None:
        super().showEvent(event)
        self.emit_layout()

    def event(self, event: QEvent) -> bool:
        handled = super().event(event)
        if event.type() == QEvent.Type.DevicePixelRatioChange:
            self.emit_layout()
        return handled
