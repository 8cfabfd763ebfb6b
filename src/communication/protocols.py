#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Communication Protocols - Navigation aid front-end
Contracts between the front-end and the inference backend

Architecture:
Front-end → POST /process_camera/<mode>?annotate=... → Backend
Front-end ← JSON envelope (ProcessingResult [+ base64 image]) ← Backend

The backend envelope is loosely typed: the result can be nested under "data"
or sent flat, and the image payload can appear under several field names,
with or without a data-URL prefix. normalize_response() turns any accepted
shape into one ProcessingResult and rejects everything else.
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

import cv2
import numpy as np

from core.exceptions import ImageDecodeError, MalformedResponseError
from core.vision.detected_object import AttentionStats, DetectedObject, ProcessingResult

log = logging.getLogger(__name__)


# =================================================================
# PROCESSING MODES
# =================================================================

class ProcessingMode(Enum):
    BASIC = "basic"
    GPT2 = "gpt2"
    GPT2_MINI = "gpt2-mini"
    GPT2_FUSION = "gpt2-fusion"
    GPT2_MINI_FUSION = "gpt2-mini-fusion"

    @classmethod
    def parse(cls, value: str) -> "ProcessingMode":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(mode.value for mode in cls)
            raise ValueError(f"Unknown processing mode '{value}' (allowed: {allowed})") from None


@dataclass(frozen=True)
class ModeInfo:
    name: str
    description: str
    expected_time: str


MODE_INFO: Dict[ProcessingMode, ModeInfo] = {
    ProcessingMode.BASIC: ModeInfo("Basic", "Fast detection only", "~1s"),
    ProcessingMode.GPT2: ModeInfo("GPT-2", "Detailed descriptions", "~3-5s"),
    ProcessingMode.GPT2_MINI: ModeInfo("GPT-2 Mini", "Fast + good quality", "~2-3s"),
    ProcessingMode.GPT2_FUSION: ModeInfo("GPT-2 + Fusion", "Highest quality", "~5-8s"),
    ProcessingMode.GPT2_MINI_FUSION: ModeInfo("GPT-2 Mini + Fusion", "Best balance", "~4-6s"),
}

# Order in which modes are offered to the user
MODE_MENU = (
    ProcessingMode.BASIC,
    ProcessingMode.GPT2_MINI,
    ProcessingMode.GPT2,
    ProcessingMode.GPT2_MINI_FUSION,
    ProcessingMode.GPT2_FUSION,
)


# =================================================================
# IMAGE (DE)CODING HELPERS
# =================================================================

# Field names that may carry the annotated image, in lookup order
IMAGE_FIELDS = ("annotated_image", "image", "image_base64", "annotated_image_base64")

DATA_URL_MARKER = ";base64,"


def decode_image_payload(payload: str) -> bytes:
    """Strip an optional data-URL prefix and decode base64 into raw image bytes."""
    if not isinstance(payload, str) or not payload.strip():
        raise ImageDecodeError("Image payload is empty or not a string")

    text = payload.strip()
    if text.startswith("data:"):
        marker = text.find(DATA_URL_MARKER)
        if marker < 0:
            raise ImageDecodeError("Data URL is not base64 encoded")
        text = text[marker + len(DATA_URL_MARKER):]

    try:
        data = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeError(f"Invalid base64 image payload: {exc}") from exc
    if not data:
        raise ImageDecodeError("Image payload decoded to zero bytes")
    return data


def decode_image(data: bytes) -> np.ndarray:
    """Decode bytes into a BGR uint8 image (contiguous)."""
    arr = np.frombuffer(data, dtype=np.uint8)
    img = cv2.imdecode(arr, cv2.IMREAD_COLOR)
    if img is None:
        raise ImageDecodeError("Image decode failed")
    return np.ascontiguousarray(img)


def image_extension(data: bytes) -> str:
    """File extension matching the image signature (defaults to .jpg)."""
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return ".png"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return ".webp"
    return ".jpg"


# =================================================================
# RESPONSE NORMALIZATION
# =================================================================

def unwrap_envelope(body: Any) -> Mapping[str, Any]:
    """Return the result mapping from a nested ({"data": {...}}) or flat envelope."""
    if not isinstance(body, Mapping):
        raise MalformedResponseError(f"Response body must be a JSON object, got {type(body).__name__}")
    data = body.get("data")
    if isinstance(data, Mapping):
        return data
    if data is not None:
        raise MalformedResponseError("'data' field must be a JSON object")
    return body


def _parse_object(raw: Any, index: int) -> DetectedObject:
    if not isinstance(raw, Mapping):
        raise MalformedResponseError(f"detected_objects[{index}] must be an object")
    try:
        label = raw["label"]
        confidence = float(raw["confidence"])
        bbox = tuple(float(v) for v in raw["bounding_box"])
    except KeyError as exc:
        raise MalformedResponseError(f"detected_objects[{index}] missing field {exc}") from exc
    except (TypeError, ValueError) as exc:
        raise MalformedResponseError(f"detected_objects[{index}] has invalid values: {exc}") from exc
    if not isinstance(label, str):
        raise MalformedResponseError(f"detected_objects[{index}].label must be a string")
    try:
        return DetectedObject(label=label, confidence=confidence, bbox=bbox)
    except ValueError as exc:
        raise MalformedResponseError(f"detected_objects[{index}]: {exc}") from exc


def _parse_attention(raw: Any) -> Optional[AttentionStats]:
    if raw is None:
        return None
    try:
        return AttentionStats(mean=float(raw["mean"]), max=float(raw["max"]), std=float(raw["std"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedResponseError(f"attention_stats is invalid: {exc}") from exc


def _parse_image_size(data: Mapping[str, Any]) -> Optional[Tuple[int, int]]:
    width = data.get("image_width")
    height = data.get("image_height")
    if width is None or height is None:
        return None
    try:
        size = (int(width), int(height))
    except (TypeError, ValueError) as exc:
        raise MalformedResponseError(f"image size is invalid: {exc}") from exc
    if size[0] <= 0 or size[1] <= 0:
        raise MalformedResponseError(f"image size must be positive, got {size}")
    return size


def _extract_image(data: Mapping[str, Any]) -> Optional[bytes]:
    for field in IMAGE_FIELDS:
        payload = data.get(field)
        if payload:
            try:
                return decode_image_payload(payload)
            except ImageDecodeError as exc:
                log.warning("Annotated image dropped (%s): %s", field, exc)
                return None
    return None


def normalize_response(body: Any) -> ProcessingResult:
    """
    Convert a backend response body into a canonical ProcessingResult.

    Raises:
        MalformedResponseError: if the envelope or required fields are invalid.
            An undecodable image payload is not an error: the result is
            returned without annotated_image.
    """
    data = unwrap_envelope(body)

    if "caption" not in data or "detected_objects" not in data:
        raise MalformedResponseError("Response is missing 'caption' or 'detected_objects'")
    raw_objects = data["detected_objects"]
    if not isinstance(raw_objects, list):
        raise MalformedResponseError("'detected_objects' must be a list")

    objects = tuple(_parse_object(raw, index) for index, raw in enumerate(raw_objects))
    description = data.get("llm_description")

    return ProcessingResult(
        caption=str(data["caption"] or ""),
        objects=objects,
        guidance=str(data.get("guidance") or ""),
        model_used=str(data.get("model_used") or ""),
        fusion_enabled=bool(data.get("fusion_enabled", False)),
        llm_description=str(description) if description else None,
        attention_stats=_parse_attention(data.get("attention_stats")),
        annotated_image=_extract_image(data),
        image_size=_parse_image_size(data),
    )


def error_message(body: Any, default: str) -> str:
    """Error text of a non-2xx response ("error" first, then "detail")."""
    if isinstance(body, Mapping):
        for key in ("error", "detail"):
            value = body.get(key)
            if value:
                return str(value)
    return default
