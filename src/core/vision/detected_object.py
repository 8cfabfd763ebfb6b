"""
Detection result data structures received from the inference backend.

This module defines the DetectedObject dataclass (one detection with its
bounding box in native image pixels) and the ProcessingResult bundle that the
backend returns for each processed frame.

Usage:
    obj = DetectedObject(
        label="person",
        confidence=0.95,
        bbox=(100, 150, 200, 300),
    )
    result = ProcessingResult(caption="a person in a hallway", objects=(obj,))
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class DetectedObject:
    """
    A detected object as reported by the backend.

    Attributes:
        label: Object class name (e.g., "person", "chair", "car")
        confidence: Detection confidence score (0-1)
        bbox: Bounding box (x1, y1, x2, y2) in native image pixels
    """
    label: str
    confidence: float
    bbox: Tuple[float, float, float, float]

    def __post_init__(self):
        if len(self.bbox) != 4:
            raise ValueError(f"bbox must have 4 coordinates, got {self.bbox!r}")
        x1, y1, x2, y2 = self.bbox
        if not (x1 < x2 and y1 < y2):
            raise ValueError(f"bbox must satisfy x1<x2 and y1<y2, got {self.bbox!r}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence!r}")

    @property
    def center_x(self) -> float:
        return (self.bbox[0] + self.bbox[2]) / 2


@dataclass(frozen=True)
class AttentionStats:
    """Summary statistics of the fusion model's attention map."""
    mean: float
    max: float
    std: float


@dataclass(frozen=True)
class ProcessingResult:
    """
    Per-frame output bundle of the inference backend.

    Attributes:
        caption: Scene caption
        objects: Detections in the order the backend reported them
        guidance: Backend spatial guidance text
        model_used: Model identifier
        fusion_enabled: Whether cross-modal fusion was used
        llm_description: Optional rich description
        attention_stats: Optional attention summary
        annotated_image: Optional annotated image bytes (already decoded from base64)
        image_size: Optional (width, height) of the frame the backend processed
    """
    caption: str
    objects: Tuple[DetectedObject, ...] = ()
    guidance: str = ""
    model_used: str = ""
    fusion_enabled: bool = False
    llm_description: Optional[str] = None
    attention_stats: Optional[AttentionStats] = None
    annotated_image: Optional[bytes] = None
    image_size: Optional[Tuple[int, int]] = None

    @property
    def has_objects(self) -> bool:
        return len(self.objects) > 0
