"""Shared fixtures: keep navigation channel logs out of the project tree."""

from __future__ import annotations

import pytest

from utils.config import Config


@pytest.fixture(autouse=True, scope="session")
def navigation_log_dir(tmp_path_factory: pytest.TempPathFactory):
    log_dir = tmp_path_factory.mktemp("nav_logs")
    Config.LOG_DIR = str(log_dir)
    yield log_dir

    from core.telemetry.loggers.navigation_logger import get_navigation_logger

    get_navigation_logger().close()
