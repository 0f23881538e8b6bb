"""NDJSON stream decoding for long-lived Lichess connections.

Bytes arrive in chunks of arbitrary size. They flow through three stages,
each an async generator pulling from the previous one:

    split_lines -> drop_blank_lines -> decode_lines

Nothing is read ahead: a stage only asks upstream for more when its own
consumer asks for the next item. Closing a stage closes its upstream, so
closing the outermost ``LichessStream`` releases the HTTP response.
"""

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable
from contextlib import aclosing, nullcontext
from typing import Any, Generic, TypeVar

from .errors import LichessDecodeError

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_TERMINATOR = b"\n"


class LineSplitter:
    """Reassemble text lines from byte chunks.

    The buffer only ever holds the unterminated tail of the data seen so far.
    """

    def __init__(self, *, keep_trailing: bool = False) -> None:
        self._keep_trailing = keep_trailing
        self._buffer = bytearray()

    @property
    def pending(self) -> bytes:
        """Bytes received after the last terminator."""
        return bytes(self._buffer)

    def feed(self, chunk: bytes) -> list[str]:
        """Append a chunk and return every line it completes."""
        self._buffer += chunk
        if _TERMINATOR not in chunk:
            return []

        *complete, rest = bytes(self._buffer).split(_TERMINATOR)
        self._buffer = bytearray(rest)
        return [self._decode(line) for line in complete]

    def finish(self) -> list[str]:
        """Signal end of stream and return the residual line, if kept."""
        residual = bytes(self._buffer)
        self._buffer.clear()
        if not residual:
            return []
        if not self._keep_trailing:
            _LOGGER.debug("Discarding %d bytes of unterminated trailing line", len(residual))
            return []
        return [self._decode(residual)]

    @staticmethod
    def _decode(raw: bytes) -> str:
        # Invalid UTF-8 survives as lone surrogates; decode_lines rejects it.
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        return raw.decode("utf-8", errors="surrogateescape")


def _closing(source: AsyncIterable[Any]) -> Any:
    if hasattr(source, "aclose"):
        return aclosing(source)
    return nullcontext(source)


async def split_lines(
    chunks: AsyncIterable[bytes], *, keep_trailing: bool = False
) -> AsyncIterator[str]:
    """Turn a byte chunk source into its lines, terminators stripped."""
    splitter = LineSplitter(keep_trailing=keep_trailing)
    async with _closing(chunks):
        async for chunk in chunks:
            for line in splitter.feed(chunk):
                yield line
    for line in splitter.finish():
        yield line


async def drop_blank_lines(lines: AsyncIterable[str]) -> AsyncIterator[str]:
    """Remove keep-alive heartbeats (empty lines)."""
    async with _closing(lines):
        async for line in lines:
            if line:
                yield line


async def decode_lines(
    lines: AsyncIterable[str],
    shape: Callable[[Any], T] | None = None,
    *,
    strict: bool = False,
    on_error: Callable[[str, Exception], None] | None = None,
) -> AsyncIterator[T]:
    """Parse each line as JSON and map it through ``shape``.

    Args:
        lines: Non-blank text lines.
        shape: Converts a parsed JSON value into the target type, raising
            any exception when it does not fit. The parsed value is yielded
            unchanged when omitted. Lines that were not valid UTF-8 on the
            wire fail the same way.
        strict: End the sequence with ``LichessDecodeError`` on the first bad
            line instead of skipping it.
        on_error: Called with the line and the error for every skipped line.

    Yields:
        Decoded items, in wire order.
    """
    async with _closing(lines):
        async for line in lines:
            try:
                line.encode("utf-8")
                value = json.loads(line)
                item = shape(value) if shape is not None else value
            except Exception as err:
                if strict:
                    raise LichessDecodeError(
                        f"Undecodable stream line: {line[:80]!r}", text=line
                    ) from err
                _LOGGER.debug("Skipping undecodable stream line: %.80r (%s)", line, err)
                if on_error is not None:
                    on_error(line, err)
                continue
            yield item


class LichessStream(Generic[T]):
    """Caller handle for an open stream.

    Iterate it with ``async for``; leave it through ``async with`` or
    ``aclose()``. Closing stops all reads and releases the connection.
    """

    def __init__(
        self,
        source: AsyncIterator[T],
        *,
        on_close: Callable[[], Awaitable[None] | None] | None = None,
    ) -> None:
        self._source = source
        self._on_close = on_close
        self._closed = False
        self._reading = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> LichessStream[T]:
        return self

    async def __anext__(self) -> T:
        if self._closed:
            raise StopAsyncIteration
        self._reading = True
        try:
            item = await self._source.__anext__()
        finally:
            self._reading = False
        if self._closed:
            raise StopAsyncIteration
        return item

    async def aclose(self) -> None:
        """Stop the stream and release its resources. Safe to call twice.

        May be called from another task while a read is pending. The source
        is then left to the reader, and ``on_close`` alone ends the pending
        read.
        """
        if self._closed:
            return
        self._closed = True
        try:
            running = self._reading or getattr(self._source, "ag_running", False)
            aclose = getattr(self._source, "aclose", None)
            if aclose is not None and not running:
                await aclose()
        finally:
            if self._on_close is not None:
                result = self._on_close()
                if inspect.isawaitable(result):
                    await result

    async def __aenter__(self) -> LichessStream[T]:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
