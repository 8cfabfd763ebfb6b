"""Saves the last annotated image as a timestamped download."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from communication.protocols import image_extension

logger = logging.getLogger(__name__)


def artifact_filename(data: bytes, now: Optional[datetime] = None) -> str:
    """annotated_<YYYYmmdd_HHMMSS><ext>, extension taken from the image signature."""
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return f"annotated_{stamp}{image_extension(data)}"


def save_annotated_image(
    data: bytes,
    directory: Union[str, Path],
    now: Optional[datetime] = None,
) -> Path:
    """Write the image bytes unchanged and return the file path."""
    if not data:
        raise ValueError("No annotated image to save")
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)

    name = artifact_filename(data, now)
    path = out_dir / name
    counter = 1
    while path.exists():
        path = out_dir / f"{Path(name).stem}_{counter}{Path(name).suffix}"
        counter += 1

    path.write_bytes(data)
    logger.info("Annotated image saved: %s (%d bytes)", path, len(data))
    return path
