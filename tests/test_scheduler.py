"""Tests for frame coalescing and flush behavior of the render scheduler."""

from __future__ import annotations

import time

import pytest

from fractalview import config
from fractalview.controller.scheduler import PendingWork, RenderScheduler
from fractalview.model.errors import GenerationFailure, RenderFailure
from fractalview.model.parameters import ChangeKind, GenerationParameters, ParameterStore
from fractalview.model.surface import SurfaceManager

from conftest import FakeBridge, FakeSurface, is_cleared, run_event_loop


@pytest.fixture(autouse=True)
def _app(qapp):
    return qapp


@pytest.fixture
def scheduler(store: ParameterStore, bridge: FakeBridge, surfaces: SurfaceManager) -> RenderScheduler:
    scheduler = RenderScheduler(store, bridge, surfaces)
    yield scheduler
    scheduler.shutdown()


@pytest.fixture
def statuses(scheduler: RenderScheduler) -> list[str]:
    messages: list[str] = []
    scheduler.status_changed.connect(messages.append)
    return messages


def edit(store: ParameterStore, scheduler: RenderScheduler, field: str, raw: object) -> None:
    scheduler.request(store.apply(field, raw))


def setup_chart(store: ParameterStore, scheduler: RenderScheduler, bridge: FakeBridge) -> None:
    scheduler.request(ChangeKind.GENERATION)
    scheduler.flush()
    assert scheduler.chart is not None
    bridge.reset()


# --- Scenarios ---

def test_initial_setup_generates_once(
    store: ParameterStore, scheduler: RenderScheduler, bridge: FakeBridge
) -> None:
    edit(store, scheduler, "seed", "1")
    edit(store, scheduler, "noise", "10000")
    edit(store, scheduler, "decay", config.DECAY_MAX)
    scheduler.flush()

    assert bridge.generate_calls == [GenerationParameters(seed=1, noise=10000.0, decay=1.0)]
    assert len(bridge.render_calls) == 1


def test_view_drag_renders_once_without_generating(
    store: ParameterStore, scheduler: RenderScheduler, bridge: FakeBridge
) -> None:
    setup_chart(store, scheduler, bridge)
    handle = scheduler.chart.handle

    for raw in range(5, 55, 5):
        edit(store, scheduler, "pitch", raw)
    assert scheduler.pending is PendingWork.VIEW
    scheduler.flush()

    assert bridge.generate_calls == []
    assert len(bridge.render_calls) == 1
    rendered_handle, view = bridge.render_calls[0]
    assert rendered_handle is handle
    assert view.pitch == pytest.approx(0.5)


def test_seed_change_replaces_handle(
    store: ParameterStore, scheduler: RenderScheduler, bridge: FakeBridge
) -> None:
    setup_chart(store, scheduler, bridge)
    previous = scheduler.chart
    replaced = []
    scheduler.chart_replaced.connect(replaced.append)

    edit(store, scheduler, "seed", "2")
    scheduler.flush()

    assert [params.seed for params in bridge.generate_calls] == [2]
    assert len(bridge.render_calls) == 1
    assert scheduler.chart is not previous
    assert scheduler.chart.params.seed == 2
    assert bridge.render_calls[0][0] is scheduler.chart.handle
    assert replaced == [scheduler.chart]


def test_resize_renders_once_at_new_geometry(
    store: ParameterStore, bridge: FakeBridge, surface: FakeSurface
) -> None:
    surfaces = SurfaceManager(surface, aspect_ratio=1.0)
    scheduler = RenderScheduler(store, bridge, surfaces)
    scheduler.notify_resize(800, 2.0)
    scheduler.flush()
    bridge.reset()

    geometry = scheduler.notify_resize(400, 2.0)
    scheduler.flush()

    assert geometry.css_width == 400
    assert geometry.device_width == 800
    assert surface.resize_calls[-1] == geometry
    assert bridge.generate_calls == []
    assert len(bridge.render_calls) == 1
    assert bridge.render_calls[0][1] == store.view
    scheduler.shutdown()


def test_resize_with_presentation_factor(
    store: ParameterStore, bridge: FakeBridge, surface: FakeSurface
) -> None:
    surfaces = SurfaceManager(surface, aspect_ratio=1.0, presentation_factor=0.8)
    scheduler = RenderScheduler(store, bridge, surfaces)
    geometry = scheduler.notify_resize(400, 2.0)
    scheduler.flush()

    assert geometry.css_width == 320
    assert geometry.device_width == 640
    assert len(bridge.render_calls) == 1
    scheduler.shutdown()


# --- Coalescing ---

def test_generation_subsumes_view(scheduler: RenderScheduler) -> None:
    scheduler.request(ChangeKind.VIEW)
    assert scheduler.pending is PendingWork.VIEW
    scheduler.request(ChangeKind.GENERATION)
    assert scheduler.pending is PendingWork.GENERATION
    scheduler.request(ChangeKind.VIEW)
    assert scheduler.pending is PendingWork.GENERATION


def test_request_arms_a_single_frame(scheduler: RenderScheduler) -> None:
    assert not scheduler.frame_scheduled
    scheduler.request(ChangeKind.VIEW)
    assert scheduler.frame_scheduled
    scheduler.flush()
    assert not scheduler.frame_scheduled
    assert scheduler.pending is PendingWork.IDLE


def test_flush_without_pending_work_does_nothing(
    scheduler: RenderScheduler, bridge: FakeBridge, statuses: list[str]
) -> None:
    scheduler.flush()
    assert bridge.generate_calls == []
    assert bridge.render_calls == []
    assert statuses == []


def test_many_generation_changes_use_latest_values(
    store: ParameterStore, scheduler: RenderScheduler, bridge: FakeBridge
) -> None:
    setup_chart(store, scheduler, bridge)
    for seed in range(10, 20):
        edit(store, scheduler, "seed", str(seed))
    edit(store, scheduler, "yaw", 100)
    scheduler.flush()

    assert [params.seed for params in bridge.generate_calls] == [19]
    assert len(bridge.render_calls) == 1
    assert bridge.render_calls[0][1].yaw == pytest.approx(1.0)


def test_unchanged_generation_parameters_do_not_regenerate(
    store: ParameterStore, scheduler: RenderScheduler, bridge: FakeBridge
) -> None:
    setup_chart(store, scheduler, bridge)
    edit(store, scheduler, "seed", "1")
    scheduler.flush()

    assert bridge.generate_calls == []
    assert len(bridge.render_calls) == 1


def test_view_sequence_keeps_the_same_handle(
    store: ParameterStore, scheduler: RenderScheduler, bridge: FakeBridge
) -> None:
    setup_chart(store, scheduler, bridge)
    handle = scheduler.chart.handle
    for field, raw in [("pitch", 10), ("yaw", -20), ("iterations", 5), ("bounded", True)]:
        edit(store, scheduler, field, raw)
        scheduler.flush()

    assert bridge.generate_calls == []
    assert [call[0] for call in bridge.render_calls] == [handle] * 4


def test_view_request_without_chart_generates_first(
    scheduler: RenderScheduler, bridge: FakeBridge
) -> None:
    scheduler.request(ChangeKind.VIEW)
    scheduler.flush()
    assert len(bridge.generate_calls) == 1
    assert len(bridge.render_calls) == 1


def test_request_during_flush_is_queued_for_next_frame(
    store: ParameterStore, scheduler: RenderScheduler, bridge: FakeBridge
) -> None:
    setup_chart(store, scheduler, bridge)
    seen = []

    def during_render() -> None:
        seen.append(scheduler.is_flushing)
        edit(store, scheduler, "pitch", 100)

    bridge.on_render = during_render
    edit(store, scheduler, "pitch", 20)
    scheduler.flush()

    assert seen == [True]
    assert len(bridge.render_calls) == 1
    assert scheduler.pending is PendingWork.VIEW
    assert scheduler.frame_scheduled

    bridge.on_render = None
    scheduler.flush()
    assert len(bridge.render_calls) == 2
    assert bridge.render_calls[1][1].pitch == pytest.approx(1.0)


# --- Status and failures ---

def test_successful_flush_reports_elapsed_time(
    scheduler: RenderScheduler, surface: FakeSurface, statuses: list[str]
) -> None:
    frames = []
    scheduler.frame_rendered.connect(frames.append)
    scheduler.request(ChangeKind.GENERATION)
    scheduler.flush()

    assert statuses[0] == config.RENDERING_STATUS
    assert statuses[-1] == f"Rendered 3d plot in {frames[0]}ms"
    assert frames[0] >= 0
    assert surface.present_count == 1


def test_generation_failure_keeps_previous_chart(
    store: ParameterStore, scheduler: RenderScheduler, bridge: FakeBridge, statuses: list[str]
) -> None:
    setup_chart(store, scheduler, bridge)
    previous = scheduler.chart
    bridge.generate_error = GenerationFailure("boom")

    edit(store, scheduler, "seed", "3")
    scheduler.flush()

    assert scheduler.chart is previous
    assert statuses[-1] == "Generation failed: boom"
    assert [call[0] for call in bridge.render_calls] == [previous.handle]


def test_unexpected_generation_error_is_wrapped(
    store: ParameterStore, scheduler: RenderScheduler, bridge: FakeBridge, statuses: list[str]
) -> None:
    bridge.generate_error = MemoryError("too large")
    scheduler.request(ChangeKind.GENERATION)
    scheduler.flush()

    assert scheduler.chart is None
    assert statuses[-1] == "Generation failed: too large"
    assert bridge.render_calls == []


def test_failed_generation_is_retried_on_next_generation_request(
    store: ParameterStore, scheduler: RenderScheduler, bridge: FakeBridge
) -> None:
    setup_chart(store, scheduler, bridge)
    bridge.generate_error = GenerationFailure("boom")
    edit(store, scheduler, "seed", "3")
    scheduler.flush()

    bridge.generate_error = None
    edit(store, scheduler, "noise", "500")
    scheduler.flush()

    assert scheduler.chart.params == store.generation
    assert scheduler.chart.params.seed == 3


@pytest.mark.parametrize("error", [RenderFailure("bad pixels"), RuntimeError("bad pixels")])
def test_render_failure_leaves_cleared_surface(
    scheduler: RenderScheduler,
    bridge: FakeBridge,
    surface: FakeSurface,
    statuses: list[str],
    error: Exception,
) -> None:
    bridge.render_error = error
    scheduler.request(ChangeKind.GENERATION)
    scheduler.flush()

    assert is_cleared(surface.backing_store())
    assert statuses[-1] == "Render failed: bad pixels"
    assert surface.present_count == 1
    assert not scheduler.is_flushing


def test_shutdown_cancels_pending_frame(scheduler: RenderScheduler) -> None:
    scheduler.request(ChangeKind.GENERATION)
    scheduler.shutdown()
    assert not scheduler.frame_scheduled
    assert scheduler.pending is PendingWork.IDLE


# --- Frame timer ---

def test_frame_timer_flushes_a_burst_once(
    store: ParameterStore, scheduler: RenderScheduler, bridge: FakeBridge
) -> None:
    setup_chart(store, scheduler, bridge)
    handle = scheduler.chart.handle

    for raw in range(5, 55, 5):
        edit(store, scheduler, "pitch", raw)
    run_event_loop(200)

    assert bridge.generate_calls == []
    assert len(bridge.render_calls) == 1
    assert bridge.render_calls[0][0] is handle
    assert bridge.render_calls[0][1].pitch == pytest.approx(0.5)
    assert scheduler.pending is PendingWork.IDLE
    assert not scheduler.frame_scheduled


def test_later_request_does_not_restart_the_frame(
    store: ParameterStore, bridge: FakeBridge, surfaces: SurfaceManager
) -> None:
    scheduler = RenderScheduler(store, bridge, surfaces, frame_interval_ms=200)
    scheduler.request(ChangeKind.VIEW)
    time.sleep(0.08)
    scheduler.request(ChangeKind.GENERATION)

    remaining = scheduler.frame_remaining_ms
    assert 0 <= remaining <= 150
    assert scheduler.pending is PendingWork.GENERATION
    scheduler.shutdown()
    assert scheduler.frame_remaining_ms == -1


def test_generation_error_survives_a_failed_redraw(
    store: ParameterStore,
    scheduler: RenderScheduler,
    bridge: FakeBridge,
    surface: FakeSurface,
    statuses: list[str],
) -> None:
    setup_chart(store, scheduler, bridge)
    previous = scheduler.chart
    bridge.generate_error = GenerationFailure("oom")
    bridge.render_error = RenderFailure("gpu")

    edit(store, scheduler, "seed", "3")
    scheduler.flush()

    assert statuses[-1] == "Generation failed: oom"
    assert scheduler.chart is previous
    assert is_cleared(surface.backing_store())
