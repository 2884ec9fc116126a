"""
Generator Bridge
================
The boundary between the scheduling core and the point-cloud engine.

Why is this file needed?
------------------------
1. Contract: The scheduler only needs two operations, ``generate`` and
   ``render``. The ``GeneratorBridge`` protocol states them so that tests
   (and alternative engines) can plug in their own implementation.
2. Adaptation: ``FractalNoiseBridge`` turns the raw midpoint field into an
   immutable ``PointSetHandle`` and draws handles onto a ``QImage``.
3. All-or-nothing drawing: A frame is composed off-surface and copied in one
   step. If anything fails, the surface is left cleared, never half drawn.

Classes:
    GeneratorBridge: Protocol consumed by the RenderScheduler.
    FractalNoiseBridge: NumPy/Numba implementation.
"""
from __future__ import annotations

import logging
import time
from typing import Protocol, TYPE_CHECKING

import numpy as np
from PySide6.QtCore import Qt
from PySide6.QtGui import QImage, QPainter

from fractalview import config
from fractalview.controller import projection
from fractalview.controller.fractal_noise import MidpointField, displace
from fractalview.model.chart import PointSetHandle
from fractalview.model.errors import GenerationFailure, RenderFailure
from fractalview.model.parameters import GenerationParameters, ViewParameters

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

_OPAQUE = np.uint32(0xFF000000)
_GRAY = np.uint32(0x00010101)

SURFACE_FORMAT = QImage.Format.Format_ARGB32_Premultiplied


class GeneratorBridge(Protocol):
    def generate(self, params: GenerationParameters) -> PointSetHandle: ...

    def render(self, handle: PointSetHandle, surface: QImage, view: ViewParameters) -> None: ...


def clear_surface(surface: QImage) -> None:
    surface.fill(Qt.GlobalColor.transparent)


def graymap(ratio: npt.NDArray[np.float64]) -> npt.NDArray[np.uint8]:
    """Gray level for a height given as a fraction of the upper bound."""
    ratio = np.clip(ratio, 0.0, None)
    return np.clip(512.0 * ratio ** 3, 0.0, 255.0).astype(np.uint8)


def handle_from_field(params: GenerationParameters, field: MidpointField) -> PointSetHandle:
    """Normalise a midpoint field into the unit cube and wrap it in a handle."""
    span = float(field.size - 1)
    if field.upper_bound != 0.0:
        ratio = field.heights / field.upper_bound
    else:
        ratio = np.full(field.heights.shape, 0.5)

    positions = np.empty((field.heights.shape[0], 3), dtype=np.float64)
    positions[:, 0] = field.xs / span - 0.5
    positions[:, 1] = ratio - 0.5
    positions[:, 2] = field.zs / span - 0.5

    return PointSetHandle(
        params=params,
        positions=positions,
        shades=graymap(ratio),
        levels=field.levels,
        upper_bound=field.upper_bound,
    )


class FractalNoiseBridge:
    """
    Generates fractal midpoint-displacement point sets and draws them.

    Args:
        depth: Subdivision steps per generation (4**depth points).
        projection_scale: Unbounded scale, as a fraction of the shorter side.
        bounded_margin: Bounded fit, as a fraction of the surface.
    """

    def __init__(
        self,
        depth: int = config.DEFAULT_POINT_DEPTH,
        projection_scale: float = config.PROJECTION_SCALE,
        bounded_margin: float = config.BOUNDED_MARGIN,
    ) -> None:
        self.depth = depth
        self.projection_scale = projection_scale
        self.bounded_margin = bounded_margin

    @property
    def point_count(self) -> int:
        return config.point_count(self.depth)

    # ------------------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------------------

    def generate(self, params: GenerationParameters) -> PointSetHandle:
        start = time.perf_counter()
        try:
            field = displace(params.seed, params.noise, params.decay, self.depth)
            handle = handle_from_field(params, field)
        except GenerationFailure:
            raise
        except (MemoryError, ArithmeticError, ValueError) as exc:
            raise GenerationFailure(f"{params}: {exc}") from exc

        elapsed = (time.perf_counter() - start) * 1000.0
        logger.debug(f"Generated {len(handle)} points (depth {handle.depth}) in {elapsed:.1f} ms for {params}")
        return handle

    # ------------------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------------------

    def render(self, handle: PointSetHandle, surface: QImage, view: ViewParameters) -> None:
        clear_surface(surface)
        count = min(view.iterations, len(handle))
        if count <= 0:
            return

        try:
            frame = self._compose(handle, count, surface.width(), surface.height(),
                                  surface.devicePixelRatio(), view)
            self._blit(frame, surface)
        except Exception as exc:
            clear_surface(surface)
            raise RenderFailure(str(exc)) from exc

    def _compose(
        self,
        handle: PointSetHandle,
        count: int,
        width: int,
        height: int,
        device_pixel_ratio: float,
        view: ViewParameters,
    ) -> npt.NDArray[np.uint32]:
        """Rasterise the first ``count`` points into an ARGB32 frame."""
        projected = projection.project(handle.positions[:count], view.pitch, view.yaw)
        px, py = projection.to_pixels(
            projected,
            width,
            height,
            scale=self.projection_scale,
            fit=view.bounded,
            margin=self.bounded_margin,
        )

        # far points first, so nearer ones overwrite them
        order = np.argsort(projected[:, 2], kind="stable")
        px = px[order]
        py = py[order]
        colors = _OPAQUE | (handle.shades[:count][order].astype(np.uint32) * _GRAY)

        frame = np.zeros((height, width), dtype=np.uint32)
        dot = max(1, int(round(device_pixel_ratio)))
        for dy in range(dot):
            for dx in range(dot):
                xs = px + dx
                ys = py + dy
                inside = (xs >= 0) & (xs < width) & (ys >= 0) & (ys < height)
                frame[ys[inside], xs[inside]] = colors[inside]
        return frame

    @staticmethod
    def _blit(frame: npt.NDArray[np.uint32], surface: QImage) -> None:
        height, width = frame.shape
        pixels = frame.tobytes()
        image = QImage(pixels, width, height, width * 4, SURFACE_FORMAT)
        image.setDevicePixelRatio(surface.devicePixelRatio())
        painter = QPainter(surface)
        try:
            painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_Source)
            painter.drawImage(0, 0, image)
        finally:
            painter.end()
