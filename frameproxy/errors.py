"""
Error types shared by the proxy and inspection endpoints.

- InputError: the caller sent something unusable (HTTP 400, upstream is
  never contacted).
- UpstreamError: the target could not be reached at the transport level
  (HTTP 500, message surfaced to the caller as-is).
"""

from typing import Optional


class InputError(Exception):
    """Raised when a request is rejected before any upstream fetch."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UpstreamError(Exception):
    """Raised when the outbound request fails below the HTTP layer."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.url = url
