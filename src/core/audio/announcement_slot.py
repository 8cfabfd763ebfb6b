"""Single-slot announcement channel.

Posting replaces whatever is waiting in the slot; the consumer always picks up
the newest item. Each post bumps a generation counter so a consumer can tell
that the utterance it is speaking has been superseded.
"""

import threading
from typing import Optional, Tuple


class AnnouncementSlot:
    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._item: Optional[str] = None
        self._generation = 0
        self._closed = False

    @property
    def generation(self) -> int:
        with self._cond:
            return self._generation

    def post(self, text: str) -> int:
        with self._cond:
            self._generation += 1
            self._item = text
            self._cond.notify_all()
            return self._generation

    def clear(self) -> int:
        """Drop the pending item and invalidate the one being consumed."""
        with self._cond:
            self._generation += 1
            self._item = None
            self._cond.notify_all()
            return self._generation

    def take(self, timeout: Optional[float] = None) -> Optional[Tuple[int, str]]:
        """Block until an item is posted; returns (generation, text) or None on timeout/close."""
        with self._cond:
            if not self._cond.wait_for(lambda: self._item is not None or self._closed, timeout=timeout):
                return None
            if self._closed:
                return None
            item = self._item
            self._item = None
            return self._generation, item

    def is_current(self, generation: int) -> bool:
        with self._cond:
            return generation == self._generation

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._item = None
            self._cond.notify_all()
