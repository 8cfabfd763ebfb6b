"""Decision engine turning zone-partitioned detections into a navigation instruction."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from core.navigation.zone_classifier import Zone, partition_by_zone
from core.telemetry.loggers.navigation_logger import get_navigation_logger
from core.vision.detected_object import DetectedObject
from utils.config_sections import NavigationConfig, load_navigation_config


class Direction(Enum):
    LEFT = "left"
    RIGHT = "right"
    FORWARD = "forward"
    STOP = "stop"


class Priority(Enum):
    SAFE = "safe"
    CAUTION = "caution"
    DANGER = "danger"


@dataclass(frozen=True)
class NavigationInstruction:
    """Directional instruction derived from a single processing result."""

    direction: Direction
    priority: Priority
    message: str
    reason: str


MSG_BLOCKED_MOVE_LEFT = "Path blocked ahead. Move left."
MSG_BLOCKED_MOVE_RIGHT = "Path blocked ahead. Move right."
MSG_STOP = "Stop! Obstacles in all directions."
MSG_CLEAR = "Clear path ahead. Safe to proceed."
MSG_OBSTACLE_LEFT = "Obstacle on left. Stay right."
MSG_OBSTACLE_RIGHT = "Obstacle on right. Stay left."
MSG_CAUTION = "Proceed with caution. Objects nearby."


class NavigationDecisionEngine:
    """Applies the fixed obstacle-avoidance decision tree to one result's detections.

    The tree favours clearing the forward path over lateral avoidance; the
    first matching rule wins. There is no memory between calls.
    """

    def __init__(self, config: Optional[NavigationConfig] = None) -> None:
        self.config = config or load_navigation_config()
        self.obstacle_labels = frozenset(label.lower() for label in self.config.obstacle_labels)

    # ------------------------------------------------------------------
    # decision
    # ------------------------------------------------------------------

    def decide(
        self,
        objects: Sequence[DetectedObject],
        obstacle_labels: Optional[Iterable[str]] = None,
        *,
        image_width: Optional[float] = None,
    ) -> NavigationInstruction:
        """Derive the navigation instruction for a set of detections.

        Args:
            objects: Detections in backend order
            obstacle_labels: Override of the configured obstacle label set
            image_width: Native width of the frame the detector used

        Raises:
            InvalidDimensionError: if image_width is zero or negative
        """
        labels = (
            frozenset(label.lower() for label in obstacle_labels)
            if obstacle_labels is not None
            else self.obstacle_labels
        )
        width = self.config.default_frame_width if image_width is None else image_width

        zones = partition_by_zone(objects, width)
        obstacles = {zone: self._filter_obstacles(items, labels) for zone, items in zones.items()}

        instruction = self._apply_rules(zones, obstacles, objects)

        logger = get_navigation_logger().decision
        logger.debug(
            "Zones: left=%s front=%s right=%s (obstacles: left=%s front=%s right=%s)",
            self._labels(zones[Zone.LEFT]), self._labels(zones[Zone.FRONT]), self._labels(zones[Zone.RIGHT]),
            self._labels(obstacles[Zone.LEFT]), self._labels(obstacles[Zone.FRONT]), self._labels(obstacles[Zone.RIGHT]),
        )
        logger.info(
            "Decision: %s/%s - %s (%s)",
            instruction.direction.name, instruction.priority.name, instruction.message, instruction.reason,
        )
        return instruction

    def _apply_rules(
        self,
        zones: Dict[Zone, List[DetectedObject]],
        obstacles: Dict[Zone, List[DetectedObject]],
        objects: Sequence[DetectedObject],
    ) -> NavigationInstruction:
        front = obstacles[Zone.FRONT]
        left = obstacles[Zone.LEFT]
        right = obstacles[Zone.RIGHT]

        if front:
            reason = f"Obstacle detected: {self._join(front)}"
            if not left:
                return NavigationInstruction(Direction.LEFT, Priority.CAUTION, MSG_BLOCKED_MOVE_LEFT, reason)
            if not right:
                return NavigationInstruction(Direction.RIGHT, Priority.CAUTION, MSG_BLOCKED_MOVE_RIGHT, reason)
            return NavigationInstruction(Direction.STOP, Priority.DANGER, MSG_STOP, "Multiple obstacles detected")

        if not zones[Zone.LEFT] and not zones[Zone.RIGHT]:
            return NavigationInstruction(Direction.FORWARD, Priority.SAFE, MSG_CLEAR, "No obstacles detected")

        if left and not right:
            return NavigationInstruction(
                Direction.RIGHT, Priority.CAUTION, MSG_OBSTACLE_LEFT, f"Left side: {self._join(left)}"
            )
        if right and not left:
            return NavigationInstruction(
                Direction.LEFT, Priority.CAUTION, MSG_OBSTACLE_RIGHT, f"Right side: {self._join(right)}"
            )

        nearby = list(objects)[: self.config.max_nearby_labels]
        return NavigationInstruction(
            Direction.FORWARD, Priority.CAUTION, MSG_CAUTION, f"Objects nearby: {self._join(nearby)}"
        )

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _filter_obstacles(items: List[DetectedObject], labels: frozenset) -> List[DetectedObject]:
        return [obj for obj in items if obj.label.lower() in labels]

    def _join(self, items: Iterable[DetectedObject]) -> str:
        return self.config.reason_separator.join(obj.label for obj in items)

    @staticmethod
    def _labels(items: Iterable[DetectedObject]) -> List[str]:
        return [obj.label for obj in items]


__all__ = [
    "Direction",
    "Priority",
    "NavigationInstruction",
    "NavigationDecisionEngine",
]
