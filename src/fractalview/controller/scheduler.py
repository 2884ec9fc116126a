"""
Render Scheduler
================
Coalesces bursts of parameter changes into at most one redraw per frame.

Why is this file needed?
------------------------
1. Efficiency: Dragging a slider emits dozens of changes per frame. Only the
   last value of each field matters, so one flush per frame is enough.
2. Cost control: A seed/noise/decay change needs a new point set; anything
   else only needs a re-projection of the existing one. The pending state
   remembers the most expensive kind of work requested in the frame.
3. Robustness: Every failure of the generator or the renderer is caught here
   and turned into status text; nothing propagates into the Qt event loop.

States:
    IDLE -> VIEW -> GENERATION (requests only ever escalate within a frame)

Classes:
    PendingWork: Scheduler state.
    RenderScheduler: The frame-coalescing orchestrator.
"""
from __future__ import annotations

from enum import IntEnum
import logging
import math
import time
from typing import Optional, TYPE_CHECKING

from PySide6.QtCore import QObject, QTimer, Signal

from fractalview import config
from fractalview.controller.bridge import clear_surface
from fractalview.controller.workers import GenerationWorker
from fractalview.model.chart import ChartInstance
from fractalview.model.errors import GenerationFailure, RenderFailure
from fractalview.model.parameters import ChangeKind

if TYPE_CHECKING:
    from fractalview.controller.bridge import GeneratorBridge
    from fractalview.model.chart import PointSetHandle
    from fractalview.model.parameters import GenerationParameters, ParameterStore
    from fractalview.model.surface import SurfaceGeometry, SurfaceManager

logger = logging.getLogger(__name__)


class PendingWork(IntEnum):
    IDLE = 0
    VIEW = 1
    GENERATION = 2


_PENDING_FOR_KIND = {
    ChangeKind.VIEW: PendingWork.VIEW,
    ChangeKind.GENERATION: PendingWork.GENERATION,
}


class RenderScheduler(QObject):
    """
    Decides, once per frame, whether to regenerate-then-render or render only.

    Args:
        store: Source of the current generation and view parameters.
        bridge: Generator/renderer collaborator.
        surfaces: Manager of the drawing surface (resizes and backing store).
        frame_interval_ms: Length of the coalescing window.
        threaded: Run generation on a GenerationWorker instead of inline.
    """
    status_changed = Signal(str)
    frame_rendered = Signal(int)  # elapsed milliseconds, rounded up
    chart_replaced = Signal(object)

    def __init__(
        self,
        store: ParameterStore,
        bridge: GeneratorBridge,
        surfaces: SurfaceManager,
        frame_interval_ms: int = config.FRAME_INTERVAL_MS,
        threaded: bool = False,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._store = store
        self._bridge = bridge
        self._surfaces = surfaces
        self._threaded = threaded

        self._pending = PendingWork.IDLE
        self._chart: Optional[ChartInstance] = None
        self._flushing = False
        self._worker: Optional[GenerationWorker] = None

        # Frame timer: armed by the first request of a frame, never restarted
        self._frame_timer = QTimer(self)
        self._frame_timer.setSingleShot(True)
        self._frame_timer.setInterval(frame_interval_ms)
        self._frame_timer.timeout.connect(self.flush)

    # ------------------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------------------

    @property
    def pending(self) -> PendingWork:
        return self._pending

    @property
    def chart(self) -> Optional[ChartInstance]:
        return self._chart

    @property
    def is_flushing(self) -> bool:
        return self._flushing

    @property
    def frame_scheduled(self) -> bool:
        return self._frame_timer.isActive()

    @property
    def frame_remaining_ms(self) -> int:
        """Milliseconds until the armed frame flushes, or -1 if none is armed."""
        return self._frame_timer.remainingTime()

    @property
    def worker(self) -> Optional[GenerationWorker]:
        return self._worker

    # ------------------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------------------

    def request(self, kind: ChangeKind) -> None:
        """Queue work for the next frame; GENERATION subsumes VIEW."""
        wanted = _PENDING_FOR_KIND[kind]
        if wanted > self._pending:
            self._pending = wanted
        if not self._frame_timer.isActive():
            self._frame_timer.start()

    def notify_resize(self, container_width: float, device_pixel_ratio: float) -> SurfaceGeometry:
        """Resize the surface now and queue exactly one redraw."""
        geometry = self._surfaces.compute(container_width, device_pixel_ratio)
        self._surfaces.apply(geometry)
        self.request(ChangeKind.VIEW)
        return geometry

    # ------------------------------------------------------------------------------
    # Flush
    # ------------------------------------------------------------------------------

    def flush(self) -> None:
        """
        Execute the pending work. Changes that arrive while this runs are
        queued for the next frame.
        """
        self._frame_timer.stop()
        pending, self._pending = self._pending, PendingWork.IDLE
        if pending is PendingWork.IDLE:
            return

        self._flushing = True
        self.status_changed.emit(config.RENDERING_STATUS)
        start = time.perf_counter()
        try:
            rendered = self._execute(pending)
        except GenerationFailure as exc:
            logger.error(f"Generation failed: {exc}")
            self.status_changed.emit(f"Generation failed: {exc}")
            return
        except RenderFailure as exc:
            logger.error(f"Render failed: {exc}")
            self.status_changed.emit(f"Render failed: {exc}")
            return
        except Exception as exc:
            logger.exception("Unexpected error while flushing a frame")
            self.status_changed.emit(f"Render failed: {exc}")
            return
        finally:
            self._flushing = False
            self._surfaces.target.present()

        if not rendered:
            self.status_changed.emit(config.GENERATING_STATUS)
            return

        elapsed_ms = math.ceil((time.perf_counter() - start) * 1000.0)
        logger.debug(f"Flushed {pending.name} frame in {elapsed_ms} ms")
        self.frame_rendered.emit(elapsed_ms)
        self.status_changed.emit(f"Rendered 3d plot in {elapsed_ms}ms")

    def shutdown(self) -> None:
        """Stop the frame timer and wait for a background generation to end."""
        self._frame_timer.stop()
        self._pending = PendingWork.IDLE
        if self._worker is not None:
            self._worker.wait()

    # ------------------------------------------------------------------------------
    # Internal methods
    # ------------------------------------------------------------------------------

    def _execute(self, pending: PendingWork) -> bool:
        """Run one flush. Returns False if there was nothing to draw yet."""
        params = self._store.generation
        stale = self._chart is None or not self._chart.matches(params)
        if stale and (pending is PendingWork.GENERATION or self._chart is None):
            if self._threaded:
                self._start_worker(params)
                if self._chart is None:
                    return False
            else:
                self._generate(params)
        self._render()
        return True

    def _generate(self, params: GenerationParameters) -> None:
        try:
            handle = self._bridge.generate(params)
        except GenerationFailure:
            self._redraw_previous_chart()
            raise
        except Exception as exc:
            self._redraw_previous_chart()
            raise GenerationFailure(str(exc)) from exc
        self._replace_chart(params, handle)

    def _render(self) -> None:
        if self._chart is None:
            return
        surface = self._surfaces.target.backing_store()
        try:
            self._bridge.render(self._chart.handle, surface, self._store.view)
        except Exception as exc:
            clear_surface(surface)
            if isinstance(exc, RenderFailure):
                raise
            raise RenderFailure(str(exc)) from exc

    def _redraw_previous_chart(self) -> None:
        """Keep the last good chart on screen after a failed generation."""
        if self._chart is None:
            return
        try:
            self._render()
        except RenderFailure as exc:
            # the generation error is the one reported; the surface stays cleared
            logger.error(f"Redrawing the previous chart failed: {exc}")

    def _replace_chart(self, params: GenerationParameters, handle: PointSetHandle) -> None:
        self._chart = ChartInstance(params=params, handle=handle)
        logger.info(f"Chart replaced for {params}")
        self.chart_replaced.emit(self._chart)

    # ---- threaded generation ----

    def _start_worker(self, params: GenerationParameters) -> None:
        if self._worker is not None:
            # the running worker re-checks the parameters when it finishes
            return
        worker = GenerationWorker(self._bridge, params, parent=self)
        worker.generated.connect(self._on_generated)
        worker.error_occurred.connect(self._on_generation_error)
        worker.finished.connect(self._on_worker_finished)
        self._worker = worker
        worker.start()

    def _on_generated(self, params: GenerationParameters, handle: PointSetHandle) -> None:
        self._replace_chart(params, handle)
        self.request(ChangeKind.VIEW)

    def _on_generation_error(self, params: GenerationParameters, message: str) -> None:
        self.status_changed.emit(f"Generation failed: {message}")

    def _on_worker_finished(self) -> None:
        worker, self._worker = self._worker, None
        if worker is None:
            return
        worker.deleteLater()
        if self._store.generation != worker.params:
            self.request(ChangeKind.GENERATION)
