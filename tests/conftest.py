"""Pytest configuration and fixtures for lichess_transport tests."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable
from unittest.mock import AsyncMock, MagicMock

import pytest

from lichess_transport import LichessConfig

TOKEN = "lip_test-token"


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock aiohttp ClientSession."""
    import aiohttp

    return MagicMock(spec=aiohttp.ClientSession)


@pytest.fixture
def config() -> LichessConfig:
    return LichessConfig(
        base_url="https://lichess.test",
        request_timeout=10,
        connect_timeout=15,
    )


def create_mock_response(
    status: int = 200,
    read_data: bytes = b"",
) -> AsyncMock:
    """Create a configured mock response for ``async with session.request(...)``.

    Args:
        status: HTTP status code
        read_data: Data to return from read() call

    Returns:
        Configured AsyncMock response
    """
    response = AsyncMock()
    response.status = status
    response.read.return_value = read_data

    response.__aenter__.return_value = response
    response.__aexit__.return_value = None

    return response


class ChunkSource:
    """Async chunk producer that records how far it has been read."""

    def __init__(self, chunks: Iterable[bytes], *, error: Exception | None = None) -> None:
        self._chunks = list(chunks)
        self._error = error
        self.reads = 0

    async def iter_any(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            self.reads += 1
            yield chunk
        if self._error is not None:
            raise self._error


def create_stream_response(
    status: int = 200,
    chunks: Iterable[bytes] = (),
    *,
    error: Exception | None = None,
    read_data: bytes = b"",
) -> MagicMock:
    """Create a mock response as returned by ``await session.request(...)``."""
    response = MagicMock()
    response.status = status
    response.content = ChunkSource(chunks, error=error)
    response.read = AsyncMock(return_value=read_data)
    return response
