"""Lateral zone classification for detections.

The camera faces the user, so screen-left is the user's right: objects in the
left third of the image are reported in the RIGHT zone and vice versa.
Boundaries at exactly w/3 and 2w/3 belong to FRONT.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, List, Sequence

from core.exceptions import InvalidDimensionError
from core.vision.detected_object import DetectedObject


class Zone(Enum):
    LEFT = "left"
    FRONT = "front"
    RIGHT = "right"


# Zones in screen order (left third, middle third, right third)
SCREEN_ORDER = (Zone.RIGHT, Zone.FRONT, Zone.LEFT)


def zone_of(bbox: Sequence[float], image_width: float) -> Zone:
    """Classify a bounding box (x1, y1, x2, y2) into a lateral zone."""
    if image_width is None or image_width <= 0:
        raise InvalidDimensionError(f"image width must be positive, got {image_width!r}")

    center_x = (bbox[0] + bbox[2]) / 2
    # center*3 vs width: exact boundaries compare equal and fall through to FRONT
    if center_x * 3 < image_width:
        return Zone.RIGHT
    if center_x * 3 > 2 * image_width:
        return Zone.LEFT
    return Zone.FRONT


def screen_third(zone: Zone) -> int:
    """Index (0, 1, 2) of the screen third a zone is drawn in."""
    return SCREEN_ORDER.index(zone)


def partition_by_zone(
    objects: Iterable[DetectedObject],
    image_width: float,
) -> Dict[Zone, List[DetectedObject]]:
    """Group objects by zone, keeping detection order inside each zone."""
    zones: Dict[Zone, List[DetectedObject]] = {zone: [] for zone in Zone}
    for obj in objects:
        zones[zone_of(obj.bbox, image_width)].append(obj)
    return zones


__all__ = [
    "Zone",
    "SCREEN_ORDER",
    "zone_of",
    "screen_third",
    "partition_by_zone",
]
