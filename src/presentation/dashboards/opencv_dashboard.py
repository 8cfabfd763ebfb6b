import textwrap
from typing import List, Optional, Tuple

import cv2
import numpy as np

from communication.protocols import MODE_INFO
from core.navigation.navigation_decision_engine import Priority
from core.navigation.session_state import ServerStatus, SessionState
from presentation.renderers.overlay_renderer import percent

PRIORITY_COLORS = {
    Priority.SAFE: (80, 175, 76),
    Priority.CAUTION: (0, 193, 255),
    Priority.DANGER: (54, 67, 244),
}

STATUS_COLORS = {
    ServerStatus.CHECKING: (200, 200, 200),
    ServerStatus.ONLINE: (0, 255, 0),
    ServerStatus.OFFLINE: (0, 0, 255),
}

HELP_LINES = [
    "[s] start/stop  [p] process  [a] auto",
    "[v] voice  [m] mode  [0-5] camera",
    "[b] boxes  [o] zones  [d] download",
    "[r] retry server  [q] quit",
]


class OpenCVDashboard:
    """
    Single OpenCV window: camera stream with overlay on the left, session
    panel (status, instruction, result details, key help) on the right.
    """

    def __init__(self, display_size=(960, 720), panel_width=420, window_name="Navigation Aid"):
        self.display_w, self.display_h = int(display_size[0]), int(display_size[1])
        self.panel_w = int(panel_width)
        self.canvas_w = self.display_w + self.panel_w
        self.canvas_h = self.display_h
        self.window_name = window_name
        self.window_open = False

    def open(self):
        cv2.namedWindow(self.window_name, cv2.WINDOW_NORMAL)
        cv2.resizeWindow(self.window_name, self.canvas_w, self.canvas_h)
        self.window_open = True

    def close(self):
        if self.window_open:
            cv2.destroyWindow(self.window_name)
            self.window_open = False

    def show(self, canvas: np.ndarray):
        if not self.window_open:
            self.open()
        cv2.imshow(self.window_name, canvas)

    # ------------------------------------------------------------------
    # composition
    # ------------------------------------------------------------------

    def compose_canvas(
        self,
        state: SessionState,
        stream: Optional[np.ndarray],
        *,
        can_process: bool = False,
        boxes_on: bool = True,
        zones_on: bool = True,
    ) -> np.ndarray:
        canvas = np.zeros((self.canvas_h, self.canvas_w, 3), dtype=np.uint8)

        if stream is not None and stream.shape[:2] == (self.display_h, self.display_w):
            canvas[:, :self.display_w] = stream
            cv2.putText(canvas, f"Frames: {state.frame_count}", (10, self.display_h - 15),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 2, cv2.LINE_AA)
        else:
            self._draw_placeholder(canvas, state)

        canvas[:, self.display_w:] = self._panel(state, can_process, boxes_on, zones_on)
        return canvas

    def _draw_placeholder(self, canvas: np.ndarray, state: SessionState):
        lines = ["Camera is off", 'Press "s" to start'] if not state.camera_running else ["Waiting for frames..."]
        for i, line in enumerate(lines):
            (w, _), _ = cv2.getTextSize(line, cv2.FONT_HERSHEY_SIMPLEX, 0.9, 2)
            cv2.putText(canvas, line, ((self.display_w - w) // 2, self.display_h // 2 + i * 40),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.9, (160, 160, 160), 2, cv2.LINE_AA)

    def _panel(self, state: SessionState, can_process: bool, boxes_on: bool, zones_on: bool) -> np.ndarray:
        panel = np.full((self.canvas_h, self.panel_w, 3), 30, dtype=np.uint8)
        y = 30

        status = f"Server: {state.server_status.value.upper()}"
        y = self._line(panel, status, y, STATUS_COLORS[state.server_status], scale=0.65, thickness=2)

        info = MODE_INFO[state.mode]
        y = self._line(panel, f"Mode: {info.name} ({info.expected_time})", y)
        y = self._line(panel, f"Camera {state.camera_index}: {'ON' if state.camera_running else 'OFF'}", y)
        flags = (
            f"Auto: {'ON' if state.auto_process else 'OFF'}  "
            f"Voice: {'ON' if state.voice_enabled else 'OFF'}  "
            f"Boxes: {'ON' if boxes_on else 'OFF'}  Zones: {'ON' if zones_on else 'OFF'}"
        )
        y = self._line(panel, flags, y, scale=0.45)
        if state.request_in_flight:
            y = self._line(panel, "Processing...", y, (0, 255, 255))
        elif can_process:
            y = self._line(panel, "Ready: press [p] to process", y, (180, 180, 180), scale=0.45)

        if state.error:
            y = self._wrapped(panel, f"! {state.error}", y + 5, (0, 0, 255))

        y += 10
        if state.instruction is not None:
            color = PRIORITY_COLORS[state.instruction.priority]
            y = self._line(panel, f"{state.instruction.direction.name} - {state.instruction.priority.name}",
                           y, color, scale=0.8, thickness=2)
            y = self._wrapped(panel, state.instruction.message, y, color)
            y = self._wrapped(panel, state.instruction.reason, y, (200, 200, 200), scale=0.45)

        result = state.result
        if result is not None:
            y += 10
            y = self._wrapped(panel, f"Caption: {result.caption}", y)
            y = self._line(panel, f"Detected objects ({len(result.objects)}):", y)
            for obj in result.objects[:6]:
                y = self._line(panel, f"  {obj.label} {percent(obj.confidence)}%", y, scale=0.45)
            if result.guidance:
                y = self._wrapped(panel, f"Guidance: {result.guidance}", y, scale=0.45)
            if result.llm_description:
                y = self._wrapped(panel, f"AI: {result.llm_description}", y, scale=0.45)
            if result.attention_stats is not None:
                stats = result.attention_stats
                y = self._line(panel, f"Attention mean {stats.mean:.4f} max {stats.max:.4f} std {stats.std:.4f}",
                               y, scale=0.4)
            y = self._line(panel, f"Model: {result.model_used}  Fusion: {'yes' if result.fusion_enabled else 'no'}",
                           y, (180, 180, 180), scale=0.45)

        help_y = self.canvas_h - 22 * len(HELP_LINES) - 10
        for i, line in enumerate(HELP_LINES):
            cv2.putText(panel, line, (10, help_y + i * 22), cv2.FONT_HERSHEY_SIMPLEX, 0.45,
                        (150, 150, 150), 1, cv2.LINE_AA)
        return panel

    # ------------------------------------------------------------------
    # text helpers
    # ------------------------------------------------------------------

    def _line(self, img, text: str, y: int, color: Tuple[int, int, int] = (255, 255, 255),
              scale: float = 0.55, thickness: int = 1) -> int:
        if y > self.canvas_h - 110:
            return y
        cv2.putText(img, text, (10, y), cv2.FONT_HERSHEY_SIMPLEX, scale, color, thickness, cv2.LINE_AA)
        return y + int(34 * scale) + 8

    def _wrapped(self, img, text: str, y: int, color: Tuple[int, int, int] = (255, 255, 255),
                 scale: float = 0.5) -> int:
        width_chars = max(20, int(self.panel_w / (20 * scale)))
        lines: List[str] = textwrap.wrap(text, width_chars)[:4]
        for line in lines:
            y = self._line(img, line, y, color, scale=scale)
        return y
