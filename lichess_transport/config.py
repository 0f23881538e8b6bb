"""
Configuration for the Lichess transport.

All configuration can be set via environment variables with sensible defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class LichessConfig:
    """Connection settings shared by every request of one transport."""

    base_url: str = field(
        default_factory=lambda: os.environ.get("LICHESS_BASE_URL", "https://lichess.org")
    )
    # Total budget for a unary request, body included.
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("LICHESS_REQUEST_TIMEOUT", "10"))
    )
    # Budget for a stream to connect and deliver its headers. Reads after that are unbounded.
    connect_timeout: float = field(
        default_factory=lambda: float(os.environ.get("LICHESS_CONNECT_TIMEOUT", "15"))
    )
    # Emit an unterminated final line when a stream ends instead of dropping it.
    keep_trailing_line: bool = False

    @property
    def api_root(self) -> str:
        return f"{self.base_url.rstrip('/')}/api"
