"""
Centralized configuration for the navigation aid front-end.

This module provides all configuration constants and runtime settings for:
- Backend connection (inference server, camera lifecycle endpoints)
- Frame/result scheduling (display refresh, auto-process cadence)
- Navigation decision engine (obstacle label set, zone fallback width)
- Voice feedback (enabled flag, TTS rate, volume)
- Overlay rendering (zone colors, label tags)

The Config class contains all constants as class attributes, making them
accessible throughout the application without instantiation. Obstacle types
and the backend URL can be changed without touching code, through environment
variables, a JSON config file or the command line (see apply_overrides).

Usage:
    from utils.config import Config

    labels = Config.OBSTACLE_LABELS
    if Config.AUTO_PROCESS_ENABLED:
        # Start periodic processing
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Union

log = logging.getLogger(__name__)


class Config:
    """System configuration constants for the navigation aid front-end."""

    # ==========================================================================
    # BACKEND: Inference server and camera lifecycle
    # ==========================================================================

    API_BASE_URL = "http://localhost:5000"
    REQUEST_TIMEOUT = 5.0                   # Health check, camera start/stop
    FRAME_TIMEOUT = 2.0                     # Frame polling (must stay short)
    PROCESS_TIMEOUT = 30.0                  # Fusion modes take ~5-8s
    ANNOTATE_RESULTS = True                 # Ask the backend for an annotated image

    # ==========================================================================
    # CAMERA
    # ==========================================================================

    CAMERA_INDEX = 1
    CAMERA_INDEX_MIN = 0
    CAMERA_INDEX_MAX = 5

    # ==========================================================================
    # FRAME DIMENSIONS: Fallback native size before the first frame arrives
    # ==========================================================================

    DEFAULT_FRAME_WIDTH = 640
    DEFAULT_FRAME_HEIGHT = 480

    # Display window size (frames are rescaled to this for display)
    DISPLAY_WIDTH = 960
    DISPLAY_HEIGHT = 720

    # ==========================================================================
    # SCHEDULING
    # ==========================================================================

    DISPLAY_REFRESH_INTERVAL = 0.1          # Seconds between frame fetches
    AUTO_PROCESS_INTERVAL = 3.0             # Seconds between automatic requests
    AUTO_PROCESS_ENABLED = False

    # ==========================================================================
    # PROCESSING MODES
    # ==========================================================================

    DEFAULT_PROCESSING_MODE = "gpt2-mini-fusion"

    # ==========================================================================
    # NAVIGATION: Obstacle label set
    # ==========================================================================

    OBSTACLE_LABELS = (
        "person",
        "car",
        "truck",
        "bicycle",
        "motorcycle",
        "chair",
        "table",
        "bench",
        "couch",
        "bed",
    )
    REASON_SEPARATOR = ", "
    REASON_MAX_NEARBY_LABELS = 3

    # ==========================================================================
    # VOICE FEEDBACK
    # ==========================================================================

    VOICE_ENABLED = True
    VOICE_RATE = 0.9                        # Relative to the backend default rate
    VOICE_VOLUME = 1.0
    TTS_BASE_RATE_SAY = 175                 # macOS `say` default words per minute
    TTS_BASE_RATE_PYTTSX3 = 200             # pyttsx3 default words per minute

    # ==========================================================================
    # OVERLAY RENDERING (BGR)
    # ==========================================================================

    SHOW_BOUNDING_BOXES = True
    SHOW_DIRECTION_OVERLAY = True
    ZONE_COLORS = {
        "right": (80, 175, 76),             # Green
        "front": (243, 150, 33),            # Blue
        "left": (0, 152, 255),              # Orange
    }
    ZONE_BAND_ALPHA = 0.2                   # Translucent zone highlight
    BOX_THICKNESS = 3
    LABEL_FONT_SCALE = 0.5
    BANNER_FONT_SCALE = 0.7

    # ==========================================================================
    # ARTIFACTS & LOGS
    # ==========================================================================

    DOWNLOAD_DIR = "downloads"
    LOG_DIR = None                          # None = <project>/logs/session_<ts>


# Environment variables that override Config attributes (name -> attribute)
ENV_OVERRIDES = {
    "NAVAID_API_URL": "API_BASE_URL",
    "NAVAID_OBSTACLE_LABELS": "OBSTACLE_LABELS",
    "NAVAID_CAMERA_INDEX": "CAMERA_INDEX",
    "NAVAID_DOWNLOAD_DIR": "DOWNLOAD_DIR",
}


def parse_label_list(value: Union[str, Iterable[str]]) -> tuple:
    """Normalize a comma separated string (or iterable) into a label tuple."""
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = list(value)
    labels = []
    for item in items:
        label = str(item).strip().lower()
        if label and label not in labels:
            labels.append(label)
    return tuple(labels)


def _coerce(attribute: str, value: Any) -> Any:
    current = getattr(Config, attribute)
    if attribute == "OBSTACLE_LABELS":
        return parse_label_list(value)
    if isinstance(current, bool):
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
    if isinstance(current, int):
        return int(value)
    if isinstance(current, float):
        return float(value)
    return value


def apply_overrides(overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Apply configuration overrides onto Config.

    Keys are Config attribute names (case-insensitive). Unknown keys raise
    KeyError so typos in config files do not go unnoticed.

    Returns:
        Dict of attribute -> applied value
    """
    applied: Dict[str, Any] = {}
    for key, value in overrides.items():
        attribute = str(key).upper()
        if not hasattr(Config, attribute):
            raise KeyError(f"Unknown configuration key: {key}")
        coerced = _coerce(attribute, value)
        setattr(Config, attribute, coerced)
        applied[attribute] = coerced
    if applied:
        log.info("Config overrides applied: %s", sorted(applied))
    return applied


def load_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a JSON object of overrides from disk and apply it."""
    with open(path, "r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")
    return apply_overrides(data)


def apply_env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Apply NAVAID_* environment variables onto Config."""
    environ = os.environ if environ is None else environ
    overrides = {
        attribute: environ[name]
        for name, attribute in ENV_OVERRIDES.items()
        if environ.get(name)
    }
    return apply_overrides(overrides)


apply_env_overrides()
