"""Pytest configuration for fractalview."""

from __future__ import annotations

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from typing import Any, Optional

import pytest
from PySide6.QtCore import QEventLoop, QTimer, Qt
from PySide6.QtGui import QImage
from PySide6.QtWidgets import QApplication

from fractalview.controller.bridge import SURFACE_FORMAT
from fractalview.model.parameters import GenerationParameters, ParameterStore, ViewParameters
from fractalview.model.surface import SurfaceGeometry, SurfaceManager


@pytest.fixture(scope="session")
def qapp() -> QApplication:
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    return app


class FakeHandle:
    """Stand-in for a PointSetHandle; compared by identity."""

    def __init__(self, params: GenerationParameters) -> None:
        self.params = params

    def __repr__(self) -> str:
        return f"FakeHandle({self.params})"


class FakeBridge:
    """Records generate/render calls and optionally fails them."""

    def __init__(self) -> None:
        self.generate_calls: list[GenerationParameters] = []
        self.render_calls: list[tuple[Any, ViewParameters]] = []
        self.generate_error: Optional[Exception] = None
        self.render_error: Optional[Exception] = None
        self.on_render = None

    def generate(self, params: GenerationParameters) -> FakeHandle:
        self.generate_calls.append(params)
        if self.generate_error is not None:
            raise self.generate_error
        return FakeHandle(params)

    def render(self, handle: Any, surface: QImage, view: ViewParameters) -> None:
        self.render_calls.append((handle, view))
        # a partial draw before any failure
        surface.fill(Qt.GlobalColor.white)
        if self.on_render is not None:
            self.on_render()
        if self.render_error is not None:
            raise self.render_error

    def reset(self) -> None:
        self.generate_calls.clear()
        self.render_calls.clear()


class FakeSurface:
    """DrawingSurface backed by a plain QImage."""

    def __init__(self, width: int = 16, height: int = 16) -> None:
        self.image = QImage(width, height, SURFACE_FORMAT)
        self.image.fill(Qt.GlobalColor.transparent)
        self.resize_calls: list[SurfaceGeometry] = []
        self.present_count = 0

    def resize_surface(self, geometry: SurfaceGeometry) -> None:
        self.resize_calls.append(geometry)
        self.image = QImage(geometry.device_width, geometry.device_height, SURFACE_FORMAT)
        self.image.setDevicePixelRatio(geometry.device_pixel_ratio)
        self.image.fill(Qt.GlobalColor.transparent)

    def backing_store(self) -> QImage:
        return self.image

    def present(self) -> None:
        self.present_count += 1


def is_cleared(image: QImage) -> bool:
    return all(
        image.pixel(x, y) == 0
        for y in range(image.height())
        for x in range(image.width())
    )


def run_event_loop(duration_ms: int) -> None:
    """Spin a real Qt event loop so timers and queued signals fire."""
    loop = QEventLoop()
    QTimer.singleShot(duration_ms, loop.quit)
    loop.exec()


@pytest.fixture
def bridge() -> FakeBridge:
    return FakeBridge()


@pytest.fixture
def surface() -> FakeSurface:
    return FakeSurface()


@pytest.fixture
def surfaces(surface: FakeSurface) -> SurfaceManager:
    return SurfaceManager(surface, aspect_ratio=1.0)


@pytest.fixture
def store() -> ParameterStore:
    return ParameterStore()
