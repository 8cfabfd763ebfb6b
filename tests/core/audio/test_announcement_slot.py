"""Tests for the single-slot announcement channel."""

from __future__ import annotations

import threading

from core.audio.announcement_slot import AnnouncementSlot


def test_post_replaces_pending_item() -> None:
    slot = AnnouncementSlot()
    slot.post("old")
    newest = slot.post("new")

    assert slot.take(timeout=0) == (newest, "new")
    assert slot.take(timeout=0) is None


def test_clear_invalidates_taken_item() -> None:
    slot = AnnouncementSlot()
    generation = slot.post("speaking")
    assert slot.take(timeout=0) == (generation, "speaking")

    slot.clear()

    assert slot.is_current(generation) is False
    assert slot.take(timeout=0) is None


def test_take_times_out_when_empty() -> None:
    assert AnnouncementSlot().take(timeout=0.01) is None


def test_close_wakes_waiting_consumer() -> None:
    slot = AnnouncementSlot()
    results = []
    consumer = threading.Thread(target=lambda: results.append(slot.take()))
    consumer.start()

    slot.close()
    consumer.join(timeout=1.0)

    assert not consumer.is_alive()
    assert results == [None]


def test_consumer_receives_posted_item() -> None:
    slot = AnnouncementSlot()
    results = []
    consumer = threading.Thread(target=lambda: results.append(slot.take(timeout=1.0)))
    consumer.start()

    generation = slot.post("Camera started")
    consumer.join(timeout=1.0)

    assert results == [(generation, "Camera started")]
    assert slot.generation == generation
