"""
Surface Geometry
================
Logical ("CSS") versus physical (backing-store) size of the drawing surface.

Why is this file needed?
------------------------
1. High DPI: A canvas laid out at 400 logical pixels on a 2x display needs an
   800 pixel backing store, or the plot is blurry.
2. Responsiveness: The surface follows the width of its container and keeps
   a fixed aspect ratio.
3. Flicker: Reallocating the backing store discards its pixels, so it is only
   done on layout events and never on plain view-parameter changes.

Classes:
    SurfaceGeometry: Derived sizes of the surface.
    SurfaceManager: Applies geometries to a drawing surface.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Optional, Protocol, TYPE_CHECKING

from fractalview import config

if TYPE_CHECKING:
    from PySide6.QtGui import QImage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SurfaceGeometry:
    css_width: float
    css_height: float
    device_width: int
    device_height: int
    device_pixel_ratio: float

    @property
    def aspect_ratio(self) -> float:
        return self.device_width / self.device_height


class DrawingSurface(Protocol):
    """What the pipeline needs from a canvas."""

    def resize_surface(self, geometry: SurfaceGeometry) -> None: ...

    def backing_store(self) -> QImage: ...

    def present(self) -> None: ...


def _sanitize_aspect_ratio(aspect_ratio: float, default: float) -> float:
    if not math.isfinite(aspect_ratio) or aspect_ratio <= 0.0:
        return default
    return aspect_ratio


def _sanitize_pixel_ratio(device_pixel_ratio: float) -> float:
    if not math.isfinite(device_pixel_ratio) or device_pixel_ratio < 1.0:
        return 1.0
    return float(device_pixel_ratio)


def compute_geometry(
    container_width: float,
    aspect_ratio: float,
    device_pixel_ratio: float,
    presentation_factor: float = 1.0,
    default_aspect_ratio: float = config.DEFAULT_ASPECT_RATIO,
) -> SurfaceGeometry:
    """
    Pure function (container width, aspect ratio, DPR) -> SurfaceGeometry.

    The device width is rounded first and the device height is derived from
    it; the logical size is then reported back from the integral device size
    so that both sizes share exactly the same aspect ratio.
    """
    aspect = _sanitize_aspect_ratio(aspect_ratio, default_aspect_ratio)
    dpr = _sanitize_pixel_ratio(device_pixel_ratio)

    width = container_width if math.isfinite(container_width) else 0.0
    css_width = max(0.0, width) * presentation_factor

    device_width = max(1, round(dpr * css_width))
    device_height = max(1, round(device_width / aspect))

    return SurfaceGeometry(
        css_width=device_width / dpr,
        css_height=device_height / dpr,
        device_width=device_width,
        device_height=device_height,
        device_pixel_ratio=dpr,
    )


class SurfaceManager:
    """
    Owns the configuration of a drawing surface and its current geometry.

    ``compute`` is side-effect free; ``apply`` resizes the target surface and
    is the only place where its backing store gets reallocated.
    """

    def __init__(
        self,
        target: DrawingSurface,
        aspect_ratio: float = config.DEFAULT_ASPECT_RATIO,
        presentation_factor: float = 1.0,
    ) -> None:
        self.target = target
        self.aspect_ratio = _sanitize_aspect_ratio(aspect_ratio, config.DEFAULT_ASPECT_RATIO)
        self.presentation_factor = presentation_factor
        self._current: Optional[SurfaceGeometry] = None

    @property
    def current(self) -> Optional[SurfaceGeometry]:
        return self._current

    def compute(self, container_width: float, device_pixel_ratio: float) -> SurfaceGeometry:
        return compute_geometry(
            container_width,
            self.aspect_ratio,
            device_pixel_ratio,
            presentation_factor=self.presentation_factor,
        )

    def apply(self, geometry: SurfaceGeometry) -> None:
        logger.debug(
            f"Resizing surface to {geometry.css_width:g}x{geometry.css_height:g} "
            f"({geometry.device_width}x{geometry.device_height} @ {geometry.device_pixel_ratio:g})"
        )
        self.target.resize_surface(geometry)
        self._current = geometry
