"""Voice feedback coordinator: gated, preemptive spoken announcements."""

from __future__ import annotations

from typing import Optional

from core.telemetry.loggers.navigation_logger import get_navigation_logger


class VoiceFeedback:
    """Serializes announcements so the most recent one always wins.

    Cancellation always precedes speaking, so nothing queues up behind an
    utterance and at most one is audible at a time.
    """

    def __init__(self, audio_system) -> None:
        self.audio_system = audio_system
        self.last_announcement: Optional[str] = None
        self._log = get_navigation_logger().audio

    def announce(self, text: str, enabled: bool) -> bool:
        if not enabled:
            self._log.debug("Voice disabled, skipping: %s", text)
            return False
        if not text:
            return False

        self.audio_system.cancel()
        spoken = self.audio_system.speak(text)
        if spoken:
            self.last_announcement = text
        return spoken

    def cancel(self) -> None:
        self.audio_system.cancel()

    def close(self) -> None:
        self.audio_system.close()
