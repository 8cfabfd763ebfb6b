#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Presentation Manager - UI layer

Responsibilities:
- OpenCV window showing the stream with overlay and the session panel
- Keyboard input mapped onto Coordinator commands
- Runs as one more cooperative task on the Coordinator's event loop
"""

import asyncio
import logging
from dataclasses import replace
from typing import Optional

import cv2

from communication.protocols import MODE_MENU
from core.exceptions import NavAidError
from presentation.dashboards.opencv_dashboard import OpenCVDashboard

log = logging.getLogger(__name__)

KEY_ESC = 27


class PresentationManager:
    """Drives the dashboard and translates key presses into commands"""

    def __init__(self, coordinator, dashboard: Optional[OpenCVDashboard] = None, ui_interval: float = 0.03):
        self.coordinator = coordinator
        self.dashboard = dashboard or OpenCVDashboard(display_size=coordinator.display_size)
        self.ui_interval = ui_interval
        self.should_stop = False
        self.last_download = None
        self.process_task: Optional[asyncio.Task] = None

    async def run(self):
        """UI loop until quit is requested"""
        self.dashboard.open()
        log.info("UI loop started (window: %s)", self.dashboard.window_name)
        try:
            while not self.should_stop:
                self.refresh()
                key = cv2.waitKey(1) & 0xFF
                if key != 0xFF:
                    await self.handle_key(key)
                await asyncio.sleep(self.ui_interval)
        finally:
            self.dashboard.close()
            log.info("UI loop stopped")

    def refresh(self):
        coordinator = self.coordinator
        settings = coordinator.render_settings
        canvas = self.dashboard.compose_canvas(
            coordinator.state,
            coordinator.composite(),
            can_process=coordinator.can_process_manually,
            boxes_on=settings.show_bounding_boxes,
            zones_on=settings.show_direction_overlay,
        )
        self.dashboard.show(canvas)

    async def handle_key(self, key: int) -> bool:
        """Apply the command bound to key. Returns False for unbound keys."""
        coordinator = self.coordinator
        state = coordinator.state
        char = chr(key).lower() if 0 <= key < 256 else ""

        if key == KEY_ESC or char == "q":
            self.should_stop = True
        elif char == "s":
            if state.camera_running:
                await coordinator.stop_camera()
            else:
                await coordinator.start_camera()
        elif char == "p":
            if coordinator.can_process_manually:
                # Runs alongside the UI loop; the in-flight flag guards re-entry
                self.process_task = asyncio.get_running_loop().create_task(coordinator.process_frame())
                self.process_task.add_done_callback(self._process_done)
        elif char == "a":
            coordinator.set_auto_process(not state.auto_process)
        elif char == "v":
            coordinator.set_voice_enabled(not state.voice_enabled)
        elif char == "m":
            index = MODE_MENU.index(state.mode) if state.mode in MODE_MENU else -1
            coordinator.select_mode(MODE_MENU[(index + 1) % len(MODE_MENU)])
        elif char.isdigit():
            try:
                coordinator.set_camera_index(int(char))
            except ValueError as e:
                state.error = str(e)
        elif char == "b":
            settings = coordinator.render_settings
            coordinator.render_settings = replace(settings, show_bounding_boxes=not settings.show_bounding_boxes)
            coordinator.render()
        elif char == "o":
            settings = coordinator.render_settings
            coordinator.render_settings = replace(settings, show_direction_overlay=not settings.show_direction_overlay)
            coordinator.render()
        elif char == "d":
            try:
                self.last_download = coordinator.download_annotated_image()
            except (OSError, NavAidError) as e:
                state.error = f"Download failed: {e}"
        elif char == "r":
            await coordinator.check_server_status()
        else:
            return False
        return True

    def _process_done(self, task: asyncio.Task):
        if task is self.process_task:
            self.process_task = None
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            log.error("Manual processing failed: %r", error, exc_info=error)
