"""Backend client - HTTP boundary to the inference server and its camera."""

from __future__ import annotations

from typing import Any, Optional

import requests

from communication.protocols import ProcessingMode, error_message, normalize_response
from core.exceptions import ConnectivityError, MalformedResponseError
from core.telemetry.loggers.navigation_logger import get_navigation_logger
from core.vision.detected_object import ProcessingResult
from utils.config_sections import BackendConfig, load_backend_config


class BackendClient:
    """Blocking client for the inference backend.

    Every call raises ConnectivityError when the server is unreachable or
    answers non-2xx; callers on the event loop run these through an executor.
    """

    def __init__(self, config: Optional[BackendConfig] = None, session: Optional[requests.Session] = None) -> None:
        self.config = config or load_backend_config()
        self._base_url = self.config.base_url.rstrip("/")
        self._session = session or requests.Session()
        self._log = get_navigation_logger().client

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------
    # requests
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, *, timeout: float, **kwargs: Any) -> requests.Response:
        url = f"{self._base_url}{path}"
        try:
            resp = self._session.request(method, url, timeout=timeout, **kwargs)
        except requests.RequestException as exc:
            self._log.warning("%s %s failed: %s", method, path, exc)
            raise ConnectivityError(f"Cannot connect to server at {self._base_url}: {exc}") from exc

        self._log.debug("%s %s -> %s", method, path, resp.status_code)
        if not resp.ok:
            message = error_message(self._json_or_none(resp), f"Server returned {resp.status_code}")
            raise ConnectivityError(message, status_code=resp.status_code)
        return resp

    @staticmethod
    def _json_or_none(resp: requests.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            return None

    def check_status(self) -> bool:
        """GET / health check. True when the server answers 2xx."""
        self._request("GET", "/", timeout=self.config.request_timeout)
        return True

    def start_camera(self, camera_index: int) -> None:
        self._request(
            "POST",
            "/camera/start",
            params={"camera_index": int(camera_index)},
            timeout=self.config.request_timeout,
        )
        self._log.info("Camera %s started", camera_index)

    def stop_camera(self) -> None:
        self._request("POST", "/camera/stop", timeout=self.config.request_timeout)
        self._log.info("Camera stopped")

    def fetch_frame(self) -> bytes:
        """GET the newest camera frame as raw image bytes."""
        resp = self._request("GET", "/camera/frame", timeout=self.config.frame_timeout)
        return resp.content

    def process_frame(self, mode: ProcessingMode, annotate: Optional[bool] = None) -> ProcessingResult:
        """Ask the backend to process the current camera frame.

        Raises:
            ConnectivityError: server unreachable or non-2xx
            MalformedResponseError: body is not a valid result envelope
        """
        annotate = self.config.annotate if annotate is None else annotate
        resp = self._request(
            "POST",
            f"/process_camera/{mode.value}",
            params={"annotate": "true" if annotate else "false"},
            timeout=self.config.process_timeout,
        )
        try:
            body = resp.json()
        except ValueError as exc:
            raise MalformedResponseError(f"Response is not valid JSON: {exc}") from exc

        result = normalize_response(body)
        self._log.info(
            "Processed frame with %s: %d objects, model=%s, annotated=%s",
            mode.value, len(result.objects), result.model_used, result.annotated_image is not None,
        )
        return result

    def close(self) -> None:
        self._session.close()
