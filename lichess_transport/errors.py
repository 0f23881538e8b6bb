"""Client error types for Lichess API interactions."""

from __future__ import annotations

from typing import Any


class LichessClientError(Exception):
    """Base error for Lichess client failures."""


class LichessTimeout(LichessClientError):
    """Timeout while communicating with the server."""


class LichessConnectionError(LichessClientError):
    """Network connection to the server failed or broke mid-stream."""


class LichessDecodeError(LichessClientError):
    """A body or stream line could not be parsed into the expected shape."""

    def __init__(self, message: str, *, text: str | None = None) -> None:
        super().__init__(message)
        self.text = text


class LichessResponseError(LichessClientError):
    """The server rejected the request with a non-success response."""

    def __init__(self, status: int, message: str, payload: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.payload = payload
