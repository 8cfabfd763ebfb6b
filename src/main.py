#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Navigation aid front-end for blind and low-vision users.

Polls a camera/inference backend over HTTP, turns detections into spoken
directional instructions and draws a zone overlay on the live stream.

Architecture:
- BackendClient: HTTP camera lifecycle, frames and processing requests
- Coordinator: scheduling, decisions, overlay and voice (single asyncio loop)
- PresentationManager: OpenCV window and keyboard commands
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Dict, List, Optional

from communication.protocols import ProcessingMode
from core.navigation.builder import build_navigation_system
from presentation.presentation_manager import PresentationManager
from utils.config import Config, load_config_file, apply_overrides, parse_label_list

log = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger; navigation channels add their own file handlers."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
        force=True,
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Navigation aid front-end: camera stream, obstacle guidance and voice feedback.",
    )
    p.add_argument("--api-url", type=str, default=None,
                   help=f"Backend base URL (default {Config.API_BASE_URL})")
    p.add_argument("--obstacles", type=str, default=None,
                   help="Comma separated obstacle labels, e.g. person,car,chair")
    p.add_argument("--config", type=str, default=None, help="JSON file with Config overrides")
    p.add_argument("--camera-index", type=int, default=None,
                   help=f"Camera index {Config.CAMERA_INDEX_MIN}-{Config.CAMERA_INDEX_MAX}")
    p.add_argument("--mode", choices=[m.value for m in ProcessingMode], default=None,
                   help="Processing mode")
    p.add_argument("--auto", action="store_true", help="Enable auto-process on start")
    p.add_argument("--no-voice", action="store_true", help="Disable voice feedback")
    p.add_argument("--log-level", type=str, default="INFO", help="Log level")
    return p.parse_args(argv)


def cli_overrides(args: argparse.Namespace) -> Dict[str, object]:
    """Config overrides requested on the command line (applied after --config)."""
    overrides: Dict[str, object] = {}
    if args.api_url:
        overrides["API_BASE_URL"] = args.api_url
    if args.obstacles:
        labels = parse_label_list(args.obstacles)
        if not labels:
            raise ValueError("--obstacles needs at least one label")
        overrides["OBSTACLE_LABELS"] = labels
    if args.camera_index is not None:
        if not Config.CAMERA_INDEX_MIN <= args.camera_index <= Config.CAMERA_INDEX_MAX:
            raise ValueError(
                f"--camera-index must be between {Config.CAMERA_INDEX_MIN} and {Config.CAMERA_INDEX_MAX}"
            )
        overrides["CAMERA_INDEX"] = args.camera_index
    if args.mode:
        overrides["DEFAULT_PROCESSING_MODE"] = args.mode
    if args.auto:
        overrides["AUTO_PROCESS_ENABLED"] = True
    if args.no_voice:
        overrides["VOICE_ENABLED"] = False
    return overrides


async def run_app(coordinator, presentation: PresentationManager) -> None:
    await coordinator.check_server_status()
    try:
        await presentation.run()
    finally:
        await coordinator.shutdown()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        if args.config:
            load_config_file(args.config)
        apply_overrides(cli_overrides(args))
    except (OSError, ValueError, KeyError) as e:
        log.error("Invalid configuration: %s", e)
        return 2

    log.info("Backend: %s | obstacles: %s", Config.API_BASE_URL, ", ".join(Config.OBSTACLE_LABELS))

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    coordinator = build_navigation_system()
    presentation = PresentationManager(coordinator)

    def shutdown() -> None:
        presentation.should_stop = True

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown)
        except NotImplementedError:
            pass  # Windows

    try:
        loop.run_until_complete(run_app(coordinator, presentation))
    except KeyboardInterrupt:
        presentation.should_stop = True
        loop.run_until_complete(coordinator.shutdown())
    finally:
        loop.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
