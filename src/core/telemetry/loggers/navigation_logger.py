"""
Per-session channel loggers for the navigation aid front-end.

Each subsystem writes to its own file inside one session directory, so a
field session can be replayed channel by channel (why did it say "Stop"?
when did the backend go offline?). Warnings and errors are echoed to the
console as well.

Channels:
- decision  -> decision_engine.log: zone partitions and the rule that fired
- audio     -> audio_system.log: announcements, preemptions, TTS backend
- renderer  -> frame_renderer.log: overlay redraws and skipped renders
- scheduler -> scheduler.log: camera lifecycle, ticks, discarded results
- client    -> backend_client.log: HTTP calls to the inference backend

Usage:
    from core.telemetry.loggers.navigation_logger import get_navigation_logger

    nav_logger = get_navigation_logger()
    nav_logger.decision.info("Decision: LEFT/CAUTION")
    nav_logger.channel("client").debug("GET /camera/frame -> 200")
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

CHANNELS = {
    "decision": "decision_engine.log",
    "audio": "audio_system.log",
    "renderer": "frame_renderer.log",
    "scheduler": "scheduler.log",
    "client": "backend_client.log",
}

LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)s] %(message)s"
LOG_DATEFMT = "%H:%M:%S"


def default_session_dir() -> Path:
    """Config.LOG_DIR when set, otherwise <project>/logs/session_<timestamp>."""
    from utils.config import Config

    if Config.LOG_DIR:
        return Path(Config.LOG_DIR)
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    project_root = Path(__file__).resolve().parents[4]
    return project_root / "logs" / f"session_{timestamp}"


class NavigationLogger:
    """Singleton owning one ``nav.<channel>`` logger per subsystem."""

    _instance = None
    _initialized = False

    def __new__(cls, session_dir: Optional[Path] = None):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, session_dir: Optional[Path] = None):
        if self._initialized:
            return

        self.log_dir = Path(session_dir) if session_dir is not None else default_session_dir()
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._channels: Dict[str, logging.Logger] = {}

        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)
        for name, filename in CHANNELS.items():
            logger = self._attach(name, self.log_dir / filename, formatter)
            self._channels[name] = logger
            setattr(self, name, logger)

        self._initialized = True

    @staticmethod
    def _attach(name: str, path: Path, formatter: logging.Formatter) -> logging.Logger:
        logger = logging.getLogger(f"nav.{name}")
        logger.setLevel(logging.DEBUG)
        logger.propagate = False
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

        file_handler = logging.FileHandler(path, mode="w", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)

        console = logging.StreamHandler()
        console.setLevel(logging.WARNING)
        console.setFormatter(formatter)

        logger.addHandler(file_handler)
        logger.addHandler(console)
        return logger

    def channel(self, name: str) -> logging.Logger:
        """Logger for a channel name; KeyError for unknown channels."""
        return self._channels[name]

    def close(self):
        """Flush and detach every handler; the next get_navigation_logger() starts a new session."""
        global _nav_logger
        for logger in self._channels.values():
            for handler in logger.handlers[:]:
                handler.close()
                logger.removeHandler(handler)
        self._channels.clear()
        type(self)._instance = None
        type(self)._initialized = False
        _nav_logger = None


# Global instance
_nav_logger: Optional[NavigationLogger] = None


def get_navigation_logger(session_dir: Optional[Path] = None) -> NavigationLogger:
    """Get or create the navigation logger for this session."""
    global _nav_logger
    if _nav_logger is None:
        _nav_logger = NavigationLogger(session_dir=session_dir)
    return _nav_logger
