"""Tests for the overlay renderer and compositing."""

from __future__ import annotations

import numpy as np
import pytest

from core.vision.detected_object import DetectedObject, ProcessingResult
from presentation.renderers.overlay_renderer import (
    OverlayRenderer,
    RenderSettings,
    compose,
    new_surface,
    percent,
)
from utils.config_sections import OverlayConfig

GREEN = (80, 175, 76)
BLUE = (243, 150, 33)

BOXES_ONLY = RenderSettings(show_bounding_boxes=True, show_direction_overlay=False)
ZONES_ONLY = RenderSettings(show_bounding_boxes=False, show_direction_overlay=True)


@pytest.fixture()
def renderer() -> OverlayRenderer:
    return OverlayRenderer(OverlayConfig())


def result_with(*objects: DetectedObject) -> ProcessingResult:
    return ProcessingResult(caption="scene", objects=tuple(objects))


def test_no_result_leaves_surface_clear(renderer: OverlayRenderer) -> None:
    surface = new_surface(640, 480)
    renderer.render(surface, (640, 480), None)
    assert not surface.any()


def test_render_is_idempotent(renderer: OverlayRenderer) -> None:
    result = result_with(
        DetectedObject("person", 0.9, (300, 100, 340, 400)),
        DetectedObject("chair", 0.6, (10, 200, 100, 400)),
    )
    surface = new_surface(640, 480)

    renderer.render(surface, (640, 480), result)
    first = surface.copy()
    renderer.render(surface, (640, 480), result)

    assert first.any()
    assert np.array_equal(first, surface)


def test_empty_objects_clear_previous_drawing(renderer: OverlayRenderer) -> None:
    surface = new_surface(640, 480)
    renderer.render(surface, (640, 480), result_with(DetectedObject("person", 0.9, (300, 100, 340, 400))))
    assert surface.any()

    renderer.render(surface, (640, 480), result_with())

    assert not surface.any()


def test_zero_sizes_are_noops(renderer: OverlayRenderer) -> None:
    result = result_with(DetectedObject("person", 0.9, (300, 100, 340, 400)))

    empty = new_surface(0, 0)
    renderer.render(empty, (640, 480), result)
    assert empty.size == 0

    surface = new_surface(64, 48)
    renderer.render(surface, (0, 480), result)
    assert not surface.any()


def test_box_colored_by_zone(renderer: OverlayRenderer) -> None:
    # Left third of the screen is the user's RIGHT zone (green)
    surface = new_surface(640, 480)
    renderer.render(surface, (640, 480), result_with(DetectedObject("chair", 0.8, (10, 200, 100, 400))), BOXES_ONLY)

    assert tuple(surface[300, 10]) == (*GREEN, 255)


def test_boxes_scaled_to_display(renderer: OverlayRenderer) -> None:
    surface = new_surface(320, 240)
    renderer.render(surface, (640, 480), result_with(DetectedObject("cup", 0.5, (100, 100, 200, 200))), BOXES_ONLY)

    assert tuple(surface[75, 50]) == (*GREEN, 255)
    assert not surface[150:, 150:].any()


def test_zone_band_covers_occupied_third(renderer: OverlayRenderer) -> None:
    surface = new_surface(640, 480)
    renderer.render(surface, (640, 480), result_with(DetectedObject("person", 0.9, (300, 100, 340, 400))), ZONES_ONLY)

    assert tuple(surface[400, 320]) == (*BLUE, 51)
    assert not surface[:, :200].any()
    assert not surface[:, 440:].any()


def test_both_layers_off_draws_nothing(renderer: OverlayRenderer) -> None:
    surface = new_surface(640, 480)
    settings = RenderSettings(show_bounding_boxes=False, show_direction_overlay=False)
    renderer.render(surface, (640, 480), result_with(DetectedObject("person", 0.9, (300, 100, 340, 400))), settings)
    assert not surface.any()


def test_compose_blends_alpha() -> None:
    frame = np.zeros((4, 4, 3), dtype=np.uint8)
    surface = new_surface(4, 4)
    surface[0, 0] = (*BLUE, 255)
    surface[1, 1] = (200, 200, 200, 0)

    out = compose(frame, surface)

    assert tuple(out[0, 0]) == BLUE
    assert tuple(out[1, 1]) == (0, 0, 0)


def test_compose_size_mismatch_raises() -> None:
    with pytest.raises(ValueError):
        compose(np.zeros((4, 4, 3), dtype=np.uint8), new_surface(5, 4))


def test_percent_rounds_half_up() -> None:
    assert percent(0.125) == 13
    assert percent(0.92) == 92
    assert percent(0.004) == 0
    assert percent(1.0) == 100
