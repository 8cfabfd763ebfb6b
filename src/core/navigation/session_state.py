"""Session state owned by the Coordinator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from communication.protocols import ProcessingMode
from core.navigation.navigation_decision_engine import NavigationInstruction
from core.vision.detected_object import ProcessingResult


class ServerStatus(Enum):
    CHECKING = "checking"
    ONLINE = "online"
    OFFLINE = "offline"


@dataclass
class SessionState:
    """Mutable state shared by the scheduled activities and the command handlers.

    Only touched from the event loop, so no locking. ``epoch`` changes on
    every camera start/stop; a request remembers the epoch it was issued in
    and its result is dropped if the epoch moved on.
    """

    # User preferences (survive stop)
    camera_index: int = 1
    auto_process: bool = False
    voice_enabled: bool = True
    mode: ProcessingMode = ProcessingMode.GPT2_MINI_FUSION

    # Connection
    server_status: ServerStatus = ServerStatus.CHECKING
    error: str = ""

    # Session
    camera_running: bool = False
    epoch: int = 0
    request_in_flight: bool = False

    # Derived display/result state
    frame: Optional[np.ndarray] = None
    frame_count: int = 0
    result: Optional[ProcessingResult] = None
    instruction: Optional[NavigationInstruction] = None

    @property
    def frame_size(self) -> Optional[Tuple[int, int]]:
        """(width, height) of the latest frame, None before the first frame."""
        if self.frame is None:
            return None
        height, width = self.frame.shape[:2]
        return width, height

    def reset(self) -> None:
        """Back to initial display/result values (on camera stop)."""
        self.camera_running = False
        self.request_in_flight = False
        self.frame = None
        self.frame_count = 0
        self.result = None
        self.instruction = None
