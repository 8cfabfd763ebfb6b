"""
Overlay rendering for the navigation display.

The overlay lives on its own BGRA surface (alpha = coverage) so it can be
redrawn on every display refresh without touching the camera frame, then
blended on top with compose().
"""

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

import cv2
import numpy as np

from core.navigation.zone_classifier import SCREEN_ORDER, Zone, partition_by_zone, screen_third
from core.telemetry.loggers.navigation_logger import get_navigation_logger
from core.vision.detected_object import ProcessingResult
from utils.config_sections import OverlayConfig, load_overlay_config


@dataclass(frozen=True)
class RenderSettings:
    show_bounding_boxes: bool = True
    show_direction_overlay: bool = True


ZONE_TITLES = {
    Zone.LEFT: "LEFT",
    Zone.FRONT: "FRONT",
    Zone.RIGHT: "RIGHT",
}


def new_surface(width: int, height: int) -> np.ndarray:
    """Transparent BGRA drawing surface."""
    return np.zeros((max(0, int(height)), max(0, int(width)), 4), dtype=np.uint8)


def percent(confidence: float) -> int:
    """Confidence in [0, 1] as a whole percentage, halves rounded up."""
    return int(confidence * 100 + 0.5)


def compose(frame: np.ndarray, surface: np.ndarray) -> np.ndarray:
    """Alpha-blend a BGRA overlay surface onto a BGR frame of the same size."""
    if frame.shape[:2] != surface.shape[:2]:
        raise ValueError(f"Frame {frame.shape[:2]} and overlay {surface.shape[:2]} sizes differ")
    alpha = surface[:, :, 3:4].astype(np.float32) / 255.0
    blended = frame.astype(np.float32) * (1.0 - alpha) + surface[:, :, :3].astype(np.float32) * alpha
    return blended.round().astype(np.uint8)


class OverlayRenderer:
    """Draws zone bands, detection boxes and zone banners onto an overlay surface"""

    def __init__(self, config: Optional[OverlayConfig] = None):
        self.config = config or load_overlay_config()
        self.zone_colors: Dict[Zone, Tuple[int, int, int]] = {
            zone: tuple(self.config.zone_colors[zone.value]) for zone in Zone
        }
        self.log = get_navigation_logger().renderer

    def render(
        self,
        surface: np.ndarray,
        frame_size: Sequence[int],
        result: Optional[ProcessingResult],
        settings: RenderSettings = RenderSettings(),
    ) -> np.ndarray:
        """Redraw the overlay for the latest frame and result.

        Args:
            surface: BGRA surface at display size, modified in place
            frame_size: (width, height) of the native frame the detections refer to
            result: Latest processing result, or None
            settings: Which overlay layers to draw
        """
        if surface is None or surface.ndim != 3 or surface.shape[0] == 0 or surface.shape[1] == 0:
            return surface

        surface[:] = 0
        if result is None or not result.objects:
            return surface
        if not (settings.show_bounding_boxes or settings.show_direction_overlay):
            return surface

        native_w, native_h = int(frame_size[0]), int(frame_size[1])
        if native_w <= 0 or native_h <= 0:
            self.log.debug("Skipping overlay: native frame size %sx%s", native_w, native_h)
            return surface

        display_h, display_w = surface.shape[:2]
        scale_x = display_w / native_w
        scale_y = display_h / native_h
        zones = partition_by_zone(result.objects, native_w)

        if settings.show_direction_overlay:
            self._draw_zone_bands(surface, zones)

        if settings.show_bounding_boxes:
            for zone, items in zones.items():
                for obj in items:
                    x1, y1, x2, y2 = obj.bbox
                    box = (
                        int(round(x1 * scale_x)),
                        int(round(y1 * scale_y)),
                        int(round(x2 * scale_x)),
                        int(round(y2 * scale_y)),
                    )
                    self._draw_detection(surface, box, f"{obj.label} {percent(obj.confidence)}%", zone)

        if settings.show_direction_overlay:
            self._draw_zone_banners(surface, zones)

        self.log.debug(
            "Rendered %d objects at %sx%s (scale %.3f, %.3f)",
            len(result.objects), display_w, display_h, scale_x, scale_y,
        )
        return surface

    # ------------------------------------------------------------------
    # layers
    # ------------------------------------------------------------------

    def _third_bounds(self, width: int, zone: Zone) -> Tuple[int, int]:
        index = screen_third(zone)
        return (width * index) // 3, (width * (index + 1)) // 3

    def _draw_zone_bands(self, surface: np.ndarray, zones):
        """Translucent full-height band over each occupied third"""
        height, width = surface.shape[:2]
        alpha = int(round(255 * self.config.band_alpha))
        for zone in SCREEN_ORDER:
            if not zones[zone]:
                continue
            left, right = self._third_bounds(width, zone)
            surface[:, left:right] = (*self.zone_colors[zone], alpha)

    def _draw_detection(self, surface: np.ndarray, box: Tuple[int, int, int, int], label: str, zone: Zone):
        """Draw detection box and filled label tag above it"""
        color = (*self.zone_colors[zone], 255)
        x1, y1, x2, y2 = box
        cv2.rectangle(surface, (x1, y1), (x2, y2), color, self.config.box_thickness)

        font = cv2.FONT_HERSHEY_SIMPLEX
        (text_w, text_h), baseline = cv2.getTextSize(label, font, self.config.label_font_scale, 1)
        tag_h = text_h + baseline + 6
        tag_top = y1 - tag_h if y1 - tag_h >= 0 else y1
        cv2.rectangle(surface, (x1, tag_top), (x1 + text_w + 8, tag_top + tag_h), color, cv2.FILLED)
        cv2.putText(surface, label, (x1 + 4, tag_top + text_h + 3), font,
                    self.config.label_font_scale, (255, 255, 255, 255), 1, cv2.LINE_AA)

    def _draw_zone_banners(self, surface: np.ndarray, zones):
        """Centered banner naming each occupied zone"""
        width = surface.shape[1]
        font = cv2.FONT_HERSHEY_SIMPLEX
        scale = self.config.banner_font_scale
        for zone in SCREEN_ORDER:
            items = zones[zone]
            if not items:
                continue
            text = f"{ZONE_TITLES[zone]} ({len(items)})"
            (text_w, text_h), baseline = cv2.getTextSize(text, font, scale, 2)
            left, right = self._third_bounds(width, zone)
            center = (left + right) // 2
            x = center - text_w // 2 - 8
            cv2.rectangle(surface, (x, 8), (x + text_w + 16, 8 + text_h + baseline + 12),
                          (*self.zone_colors[zone], 220), cv2.FILLED)
            cv2.putText(surface, text, (x + 8, 8 + text_h + 6), font, scale,
                        (255, 255, 255, 255), 2, cv2.LINE_AA)
