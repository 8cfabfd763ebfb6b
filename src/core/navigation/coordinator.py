#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Navigation Coordinator - Navigation aid front-end

Orchestrates data flow between the camera/inference backend, the navigation
decision engine, the overlay renderer and voice feedback.

Two independently cancellable periodic activities share the camera lifecycle:
- Display refresh (~100ms): fetch newest frame, swap display buffer, re-render
  the overlay with whatever result is currently held.
- Auto-process (~3000ms, optional): issue one processing request; a tick that
  finds a request still in flight is skipped, never queued.

Pipeline Flow:
    Frame fetch → Display buffer → Overlay render
    Processing request → ProcessingResult → Zone partition →
    Navigation decision → Overlay render → Voice announcement

Everything runs on one asyncio loop; blocking HTTP calls go through the
default executor. Results that complete after the camera was stopped (or
restarted) are discarded using the session epoch.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Set, Tuple, Union

import cv2
import numpy as np

from communication.protocols import ProcessingMode, decode_image
from core.exceptions import (
    ConnectivityError,
    ImageDecodeError,
    InvalidDimensionError,
    MalformedResponseError,
)
from core.navigation.navigation_decision_engine import NavigationDecisionEngine
from core.navigation.session_state import ServerStatus, SessionState
from core.processing.periodic_task import PeriodicTask
from core.telemetry.loggers.navigation_logger import get_navigation_logger
from core.vision.detected_object import ProcessingResult
from presentation.renderers.overlay_renderer import (
    OverlayRenderer,
    RenderSettings,
    compose,
    new_surface,
)
from utils.artifact_store import save_annotated_image
from utils.config import Config
from utils.config_sections import SchedulerConfig, load_scheduler_config

MSG_CAMERA_STARTED = "Camera started"
MSG_CAMERA_FAILED = "Failed to start camera"
MSG_CAMERA_STOPPED = "Camera stopped"
MSG_VOICE_ENABLED = "Voice feedback enabled"


class Coordinator:
    """
    Top-level controller owning the SessionState.

    Receives pre-configured dependencies via dependency injection and only
    coordinates them. All public command methods are coroutines meant to run
    on the same event loop as the periodic activities.

    Attributes:
        client: BackendClient (camera lifecycle, frames, processing requests)
        voice: VoiceFeedback for spoken announcements
        decision_engine: NavigationDecisionEngine
        renderer: OverlayRenderer
        state: SessionState
        display_frame: Latest frame rescaled to display size (BGR)
        overlay: BGRA overlay surface at display size
    """

    def __init__(
        self,
        client,
        voice,
        decision_engine: Optional[NavigationDecisionEngine] = None,
        renderer: Optional[OverlayRenderer] = None,
        *,
        state: Optional[SessionState] = None,
        scheduler_config: Optional[SchedulerConfig] = None,
        obstacle_labels: Optional[Iterable[str]] = None,
        render_settings: Optional[RenderSettings] = None,
        executor_call: Optional[Callable[..., Any]] = None,
    ):
        """
        Initialize coordinator with injected dependencies.

        Args:
            client: Pre-configured BackendClient
            voice: Pre-configured VoiceFeedback
            decision_engine: Optional NavigationDecisionEngine (created if not provided)
            renderer: Optional OverlayRenderer (created if not provided)
            state: Optional initial SessionState (built from Config if not provided)
            scheduler_config: Optional scheduling periods
            obstacle_labels: Optional obstacle label set overriding the engine's
            render_settings: Which overlay layers to draw
            executor_call: Optional coroutine function used to run blocking calls
        """
        self.client = client
        self.voice = voice
        self.decision_engine = decision_engine or NavigationDecisionEngine()
        self.renderer = renderer or OverlayRenderer()
        self.scheduler_config = scheduler_config or load_scheduler_config()
        self.obstacle_labels = frozenset(label.lower() for label in obstacle_labels) if obstacle_labels else None
        self.render_settings = render_settings or RenderSettings(
            show_bounding_boxes=self.renderer.config.show_bounding_boxes,
            show_direction_overlay=self.renderer.config.show_direction_overlay,
        )
        self._executor_call = executor_call or self._run_in_executor

        self.state = state or SessionState(
            camera_index=Config.CAMERA_INDEX,
            auto_process=self.scheduler_config.auto_process_enabled,
            voice_enabled=Config.VOICE_ENABLED,
            mode=ProcessingMode.parse(Config.DEFAULT_PROCESSING_MODE),
        )

        self.display_size: Tuple[int, int] = (
            self.renderer.config.display_width,
            self.renderer.config.display_height,
        )
        self.display_frame: Optional[np.ndarray] = None
        self.overlay = new_surface(*self.display_size)
        self.annotated_image: Optional[bytes] = None
        self.annotated_view: Optional[np.ndarray] = None
        self.requests_issued = 0
        self.results_discarded = 0
        self.auto_ticks_skipped = 0
        self.request_tasks: Set[asyncio.Task] = set()
        self._start_pending = False

        self.log = get_navigation_logger().scheduler
        self.display_task = PeriodicTask(
            "display-refresh",
            self.scheduler_config.display_refresh_interval,
            self._refresh_display,
            logger=self.log,
        )
        self.auto_process_task = PeriodicTask(
            "auto-process",
            self.scheduler_config.auto_process_interval,
            self._auto_process_tick,
            logger=self.log,
        )

        self.log.info(
            "Coordinator initialized (client=%s, voice=%s, display=%sx%s)",
            type(client).__name__, type(voice).__name__, *self.display_size,
        )

    @staticmethod
    async def _run_in_executor(func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    def _announce(self, text: str) -> None:
        self.voice.announce(text, self.state.voice_enabled)

    # ------------------------------------------------------------------
    # server status
    # ------------------------------------------------------------------

    async def check_server_status(self) -> bool:
        """Health check; the only way to leave OFFLINE is calling this again."""
        self.state.server_status = ServerStatus.CHECKING
        try:
            await self._executor_call(self.client.check_status)
        except ConnectivityError as e:
            self.state.server_status = ServerStatus.OFFLINE
            if e.status_code is not None:
                self.state.error = "Server returned error"
            else:
                self.state.error = (
                    f"Cannot connect to server. Make sure backend is running on {self.client.base_url}"
                )
            self.log.warning("Server offline: %s", e)
            return False

        self.state.server_status = ServerStatus.ONLINE
        self.state.error = ""
        self.log.info("Server online")
        return True

    # ------------------------------------------------------------------
    # camera lifecycle
    # ------------------------------------------------------------------

    async def start_camera(self) -> bool:
        """
        Ask the backend to start the camera, then begin the periodic activities.

        A stop_camera() issued while the start request is pending wins: the
        late acknowledgement releases the camera again instead of running it.
        """
        if self.state.camera_running:
            return True
        if self._start_pending:
            self.log.debug("Camera start already pending")
            return False

        self.state.error = ""
        self.state.epoch += 1
        epoch = self.state.epoch
        self._start_pending = True
        index = self.state.camera_index
        try:
            await self._executor_call(self.client.start_camera, index)
        except ConnectivityError as e:
            if self.state.epoch != epoch:
                self.log.info("Camera %s start failed after stop: %s", index, e)
                return False
            self._start_pending = False
            self.state.error = str(e) or MSG_CAMERA_FAILED
            if e.status_code is None:
                self.state.server_status = ServerStatus.OFFLINE
            self.log.warning("Camera %s failed to start: %s", index, e)
            self._announce(MSG_CAMERA_FAILED)
            return False

        if self.state.epoch != epoch:
            self.log.info("Camera %s acknowledged after stop, releasing it", index)
            try:
                await self._executor_call(self.client.stop_camera)
            except ConnectivityError as e:
                self.log.warning("Camera release request failed: %s", e)
            return False

        # Only after the backend acknowledged the start
        self._start_pending = False
        self.state.camera_running = True
        self.state.frame_count = 0
        self.display_task.start()
        if self.state.auto_process:
            self.auto_process_task.start(immediate=False)
        self.log.info("Camera %s running (epoch %d)", index, self.state.epoch)
        self._announce(MSG_CAMERA_STARTED)
        return True

    async def stop_camera(self) -> None:
        """Cancel both activities, silence speech and clear derived state. Idempotent."""
        was_running = self.state.camera_running
        was_starting = self._start_pending
        self.display_task.cancel()
        self.auto_process_task.cancel()
        self.voice.cancel()

        if was_running or was_starting:
            self.state.epoch += 1
        self._start_pending = False
        self.state.reset()
        self.display_frame = None
        self.annotated_image = None
        self.annotated_view = None
        self.overlay[:] = 0

        if was_starting:
            # start_camera() releases the backend camera once its request returns
            self.log.info("Pending camera start cancelled (epoch %d)", self.state.epoch)
            self._announce(MSG_CAMERA_STOPPED)
            return
        if not was_running:
            return

        self.log.info("Camera stopped (epoch %d)", self.state.epoch)
        try:
            await self._executor_call(self.client.stop_camera)
        except ConnectivityError as e:
            self.state.error = f"Error stopping camera: {e}"
            self.log.warning("Camera stop request failed: %s", e)
        self._announce(MSG_CAMERA_STOPPED)

    # ------------------------------------------------------------------
    # settings
    # ------------------------------------------------------------------

    def set_auto_process(self, enabled: bool) -> None:
        self.state.auto_process = bool(enabled)
        if self.state.auto_process and self.state.camera_running:
            self.auto_process_task.start(immediate=False)
        else:
            self.auto_process_task.cancel()
        self.log.info("Auto-process %s", "enabled" if self.state.auto_process else "disabled")

    def set_voice_enabled(self, enabled: bool) -> None:
        self.state.voice_enabled = bool(enabled)
        if not self.state.voice_enabled:
            self.voice.cancel()
        self._announce(MSG_VOICE_ENABLED)

    def select_mode(self, mode: Union[str, ProcessingMode]) -> ProcessingMode:
        if not isinstance(mode, ProcessingMode):
            mode = ProcessingMode.parse(mode)
        self.state.mode = mode
        self.log.info("Processing mode: %s", mode.value)
        return mode

    def set_camera_index(self, index: int) -> bool:
        if self.state.camera_running:
            self.log.warning("Camera index cannot change while the camera is running")
            return False
        index = int(index)
        if not Config.CAMERA_INDEX_MIN <= index <= Config.CAMERA_INDEX_MAX:
            raise ValueError(
                f"Camera index must be between {Config.CAMERA_INDEX_MIN} and {Config.CAMERA_INDEX_MAX}"
            )
        self.state.camera_index = index
        return True

    # ------------------------------------------------------------------
    # processing
    # ------------------------------------------------------------------

    @property
    def can_process_manually(self) -> bool:
        s = self.state
        return s.camera_running and not s.auto_process and not s.request_in_flight

    async def process_frame(self) -> bool:
        """Manual one-shot processing request."""
        if not self.state.camera_running:
            self.state.error = "Please start the camera first"
            return False
        if self.state.auto_process:
            self.log.debug("Manual processing disabled while auto-process is active")
            return False
        if self.state.request_in_flight:
            self.log.debug("Manual processing refused: request already in flight")
            return False
        await self._request_processing("manual")
        return True

    async def _auto_process_tick(self) -> None:
        if not (self.state.camera_running and self.state.auto_process):
            return
        if self.state.request_in_flight:
            self.auto_ticks_skipped += 1
            self.log.debug("Auto-process tick skipped: request in flight")
            return
        # The request outlives the tick so the timer keeps its period
        request = self._request_processing("auto", self.state.epoch)
        self.track_request(asyncio.get_running_loop().create_task(request))

    def track_request(self, task: asyncio.Task) -> asyncio.Task:
        """Keep a reference to a spawned processing task and log unexpected failures."""
        self.request_tasks.add(task)
        task.add_done_callback(self._request_done)
        return task

    def _request_done(self, task: asyncio.Task) -> None:
        self.request_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.log.error("Processing task failed: %r", error, exc_info=error)

    async def _request_processing(self, trigger: str, epoch: Optional[int] = None) -> None:
        state = self.state
        if epoch is None:
            epoch = state.epoch
        elif not self._is_current(epoch):
            self.log.debug("Auto-process request dropped: camera stopped before it began")
            return
        mode = state.mode
        state.request_in_flight = True
        state.error = ""
        self.requests_issued += 1
        self.log.debug("Processing request #%d (%s, mode=%s, epoch=%d)", self.requests_issued, trigger, mode.value, epoch)

        try:
            result = await self._executor_call(self.client.process_frame, mode)
        except ConnectivityError as e:
            if self._is_current(epoch):
                state.error = str(e) or "Processing failed"
                if e.status_code is None:
                    state.server_status = ServerStatus.OFFLINE
            self.log.warning("Processing request failed: %s", e)
            return
        except MalformedResponseError as e:
            if self._is_current(epoch):
                state.error = f"Malformed response: {e}"
            self.log.warning("Malformed processing response: %s", e)
            return
        finally:
            if self._is_current(epoch):
                state.request_in_flight = False

        if not self._is_current(epoch):
            self.results_discarded += 1
            self.log.info("Discarding late result from epoch %d (now %d)", epoch, state.epoch)
            return
        self.apply_result(result)

    def _is_current(self, epoch: int) -> bool:
        return self.state.camera_running and self.state.epoch == epoch

    def apply_result(self, result: ProcessingResult) -> None:
        """Replace the current result, derive the instruction, redraw and announce."""
        state = self.state
        state.result = result
        state.error = ""

        self.annotated_image = None
        self.annotated_view = None
        if result.annotated_image is not None:
            try:
                self.annotated_view = decode_image(result.annotated_image)
                self.annotated_image = result.annotated_image
            except ImageDecodeError as e:
                self.log.warning("Annotated image not displayable: %s", e)

        instruction = None
        if result.objects:
            try:
                instruction = self.decision_engine.decide(
                    result.objects,
                    self.obstacle_labels,
                    image_width=self.native_frame_size()[0],
                )
            except InvalidDimensionError as e:
                self.log.warning("Navigation decision skipped: %s", e)
        state.instruction = instruction

        self.render()
        if instruction is not None:
            self._announce(instruction.message)

    # ------------------------------------------------------------------
    # display
    # ------------------------------------------------------------------

    def native_frame_size(self) -> Tuple[int, int]:
        """Native (width, height) the detections refer to."""
        result = self.state.result
        if result is not None and result.image_size:
            return result.image_size
        if self.state.frame_size is not None:
            return self.state.frame_size
        return Config.DEFAULT_FRAME_WIDTH, Config.DEFAULT_FRAME_HEIGHT

    async def _refresh_display(self) -> None:
        if not self.state.camera_running:
            return
        epoch = self.state.epoch
        try:
            data = await self._executor_call(self.client.fetch_frame)
            frame = decode_image(data)
        except (ConnectivityError, ImageDecodeError) as e:
            self.log.debug("Frame fetch skipped: %s", e)
            return

        if not self._is_current(epoch):
            return

        self.state.frame = frame
        self.state.frame_count += 1
        width, height = self.display_size
        if width > 0 and height > 0:
            self.display_frame = cv2.resize(frame, (width, height))
        self.render()

    def render(self) -> np.ndarray:
        return self.renderer.render(
            self.overlay,
            self.native_frame_size(),
            self.state.result,
            self.render_settings,
        )

    def composite(self) -> Optional[np.ndarray]:
        """Display frame with the overlay blended on top, None before the first frame."""
        if self.display_frame is None:
            return None
        return compose(self.display_frame, self.overlay)

    # ------------------------------------------------------------------
    # artifacts
    # ------------------------------------------------------------------

    def download_annotated_image(self, directory: Optional[Union[str, Path]] = None) -> Optional[Path]:
        if self.annotated_image is None:
            self.log.info("No annotated image to download")
            return None
        return save_annotated_image(self.annotated_image, directory or Config.DOWNLOAD_DIR)

    async def shutdown(self) -> None:
        await self.stop_camera()
        for task in list(self.request_tasks):
            task.cancel()
        self.voice.close()
        self.client.close()
