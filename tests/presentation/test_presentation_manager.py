"""Tests for keyboard command mapping and the dashboard canvas."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import numpy as np
import pytest

from communication.protocols import MODE_MENU, ProcessingMode
from core.navigation.navigation_decision_engine import Direction, NavigationInstruction, Priority
from core.navigation.session_state import ServerStatus, SessionState
from core.vision.detected_object import AttentionStats, DetectedObject, ProcessingResult
from presentation.dashboards.opencv_dashboard import OpenCVDashboard
from presentation.presentation_manager import KEY_ESC, PresentationManager
from presentation.renderers.overlay_renderer import RenderSettings


class FakeCoordinator:
    def __init__(self):
        self.state = SessionState(mode=ProcessingMode.BASIC)
        self.display_size = (96, 72)
        self.render_settings = RenderSettings()
        self.calls = []

    @property
    def can_process_manually(self):
        return self.state.camera_running and not self.state.auto_process

    async def start_camera(self):
        self.calls.append("start")
        self.state.camera_running = True

    async def stop_camera(self):
        self.calls.append("stop")
        self.state.camera_running = False

    async def process_frame(self):
        self.calls.append("process")
        return True

    async def check_server_status(self):
        self.calls.append("status")
        return True

    def set_auto_process(self, enabled):
        self.state.auto_process = enabled

    def set_voice_enabled(self, enabled):
        self.state.voice_enabled = enabled

    def select_mode(self, mode):
        self.state.mode = mode
        return mode

    def set_camera_index(self, index):
        if index > 5:
            raise ValueError("Camera index must be between 0 and 5")
        self.state.camera_index = index
        return True

    def render(self):
        self.calls.append("render")

    def download_annotated_image(self):
        raise OSError("disk full")

    def composite(self):
        return None


@pytest.fixture()
def manager():
    coordinator = FakeCoordinator()
    return PresentationManager(coordinator, OpenCVDashboard(display_size=(96, 72), panel_width=200))


def press(manager: PresentationManager, key: str) -> bool:
    async def scenario():
        handled = await manager.handle_key(ord(key))
        await asyncio.sleep(0)
        return handled

    return asyncio.run(scenario())


def test_s_toggles_camera(manager) -> None:
    press(manager, "s")
    press(manager, "s")
    assert manager.coordinator.calls == ["start", "stop"]


def test_p_processes_only_when_allowed(manager) -> None:
    press(manager, "p")
    assert "process" not in manager.coordinator.calls

    manager.coordinator.state.camera_running = True
    press(manager, "p")
    assert "process" in manager.coordinator.calls


def test_toggles_and_mode_cycle(manager) -> None:
    state = manager.coordinator.state

    press(manager, "a")
    press(manager, "v")
    press(manager, "m")

    assert state.auto_process is True
    assert state.voice_enabled is False
    assert state.mode is MODE_MENU[(MODE_MENU.index(ProcessingMode.BASIC) + 1) % len(MODE_MENU)]


def test_digit_sets_camera_index(manager) -> None:
    press(manager, "3")
    assert manager.coordinator.state.camera_index == 3

    press(manager, "9")
    assert manager.coordinator.state.camera_index == 3
    assert "between 0 and 5" in manager.coordinator.state.error


def test_overlay_layer_toggles(manager) -> None:
    press(manager, "b")
    press(manager, "o")

    settings = manager.coordinator.render_settings
    assert settings.show_bounding_boxes is False
    assert settings.show_direction_overlay is False
    assert manager.coordinator.calls.count("render") == 2


def test_download_failure_is_reported(manager) -> None:
    press(manager, "d")
    assert manager.coordinator.state.error == "Download failed: disk full"


def test_quit_and_unknown_keys(manager) -> None:
    assert press(manager, "x") is False
    assert manager.should_stop is False

    asyncio.run(manager.handle_key(KEY_ESC))
    assert manager.should_stop is True


def test_r_rechecks_server(manager) -> None:
    press(manager, "r")
    assert manager.coordinator.calls == ["status"]


# ----------------------------------------------------------------------
# dashboard canvas
# ----------------------------------------------------------------------

def test_canvas_places_stream_next_to_panel() -> None:
    dashboard = OpenCVDashboard(display_size=(96, 72), panel_width=200)
    stream = np.full((72, 96, 3), 77, dtype=np.uint8)

    canvas = dashboard.compose_canvas(SessionState(), stream)

    assert canvas.shape == (72, 296, 3)
    assert (canvas[:40, :96] == 77).all()


def test_canvas_placeholder_without_stream() -> None:
    dashboard = OpenCVDashboard(display_size=(320, 240), panel_width=300)

    canvas = dashboard.compose_canvas(SessionState(), None)

    assert canvas.shape == (240, 620, 3)
    assert canvas[:, :320].any()


def test_canvas_renders_full_session() -> None:
    dashboard = OpenCVDashboard(display_size=(640, 480), panel_width=420)
    state = SessionState(
        server_status=ServerStatus.OFFLINE,
        error="Cannot connect to server. Make sure backend is running on http://localhost:5000",
        camera_running=True,
        request_in_flight=True,
    )
    state.result = ProcessingResult(
        caption="a long corridor with a person walking towards the camera and a chair on the side",
        objects=(DetectedObject("person", 0.93, (300, 100, 340, 400)),),
        guidance="Person ahead",
        llm_description="The corridor is narrow.",
        attention_stats=AttentionStats(0.1, 0.8, 0.05),
    )
    state.instruction = NavigationInstruction(
        Direction.LEFT, Priority.CAUTION, "Path blocked ahead. Move left.", "Obstacle detected: person"
    )

    canvas = dashboard.compose_canvas(state, np.zeros((480, 640, 3), dtype=np.uint8))

    assert canvas.shape == (480, 1060, 3)
    assert canvas[:, 640:].any()


def test_download_path_is_remembered(manager, tmp_path) -> None:
    manager.coordinator.download_annotated_image = lambda: Path(tmp_path) / "annotated.jpg"
    press(manager, "d")
    assert manager.last_download == Path(tmp_path) / "annotated.jpg"


def test_failed_manual_processing_is_logged(manager, caplog) -> None:
    async def broken_process():
        raise RuntimeError("renderer exploded")

    manager.coordinator.process_frame = broken_process
    manager.coordinator.state.camera_running = True

    async def scenario():
        await manager.handle_key(ord("p"))
        task = manager.process_task
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        return task

    with caplog.at_level(logging.ERROR, logger="presentation.presentation_manager"):
        task = asyncio.run(scenario())

    assert task.done()
    assert manager.process_task is None
    assert "Manual processing failed" in caplog.text
    assert "renderer exploded" in caplog.text
