"""
Error taxonomy for the navigation aid front-end.

- ConnectivityError: backend unreachable or non-2xx response. Surfaced as a
  status banner, retried only on explicit user action.
- MalformedResponseError: unexpected envelope shape or missing fields. The
  current result is left unchanged.
- ImageDecodeError: annotated image payload could not be materialized. The
  rest of the result is kept.
- InvalidDimensionError: zero/negative image size during classification or
  rendering. Fails that cycle only.
"""

from typing import Optional


class NavAidError(Exception):
    """Base class for all navigation aid errors."""


class ConnectivityError(NavAidError):
    """Backend could not be reached or answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(NavAidError):
    """Backend response does not match the expected envelope."""


class ImageDecodeError(NavAidError):
    """Image payload is not valid base64 or not a decodable image."""


class InvalidDimensionError(NavAidError, ValueError):
    """Image dimensions are zero or negative."""
