"""High-level Lichess API client.

Wraps a ``LichessTransport`` with unary helpers that return parsed values
(raising on failure) and streaming helpers that return ``LichessStream``
handles of lines or decoded records.

Usage:
    async with aiohttp.ClientSession() as session:
        client = LichessClient(session, token)
        account = await client.account()
        async with await client.stream_events() as events:
            async for event in events:
                ...
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

import aiohttp

from .classify import ClassifiedResponse, ClassifierPolicy, Success
from .config import LichessConfig
from .errors import LichessDecodeError, LichessResponseError
from .http import LichessTransport
from .models import ClockSettings, Color, StreamEvent
from .protocol import (
    EVENT_STREAM_PATH,
    Request,
    board_stream_path,
    build_ai_challenge,
    build_move,
    build_resign,
    build_seek,
    get_request,
    post_request,
)
from .stream import LichessStream, decode_lines, drop_blank_lines, split_lines

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def _reject_error_envelope(success: Success, payload: Any) -> dict[str, Any]:
    """Return the payload as an object, raising if it is an error envelope."""
    if not isinstance(payload, dict):
        raise LichessDecodeError(
            f"Expected a JSON object, got {type(payload).__name__}",
            text=success.body.decode("utf-8", errors="replace"),
        )
    error = payload.get("error")
    if error is not None:
        raise LichessResponseError(success.status, str(error), payload)
    return payload


def _field(payload: dict[str, Any], key: str, expected: type[T]) -> T:
    value = payload.get(key)
    if not isinstance(value, expected):
        raise LichessDecodeError(
            f"Response field {key!r} is missing or not a {expected.__name__}",
            text=repr(payload),
        )
    return value


class LichessClient:
    """Client for the Lichess HTTP/NDJSON API."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        token: str,
        *,
        config: LichessConfig | None = None,
        policy: ClassifierPolicy | None = None,
    ) -> None:
        self._transport = LichessTransport(session, token, config=config, policy=policy)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._transport!r})"

    @property
    def transport(self) -> LichessTransport:
        return self._transport

    # -------------------------------------------------------------------------
    # Unary calls
    # -------------------------------------------------------------------------

    async def execute(self, request: Request) -> ClassifiedResponse:
        """Send a request and return its classified outcome without raising."""
        return await self._transport.execute(request)

    async def _send(self, request: Request) -> Success:
        result = await self._transport.execute(request)
        return result.unwrap()

    async def get_raw(self, path: str) -> str:
        """GET a path and return the body text."""
        return (await self._send(get_request(path))).text()

    async def get(self, path: str) -> Any:
        """GET a path and return the parsed JSON body."""
        return (await self._send(get_request(path))).json()

    async def post_raw(self, path: str, fields: Mapping[str, Any] | str = "") -> str:
        """POST form fields (or a pre-encoded body) and return the body text."""
        return (await self._send(post_request(path, fields))).text()

    async def post(self, path: str, fields: Mapping[str, Any] | str = "") -> Any:
        """POST form fields (or a pre-encoded body) and return the parsed JSON body."""
        return (await self._send(post_request(path, fields))).json()

    async def _send_json_object(self, request: Request) -> dict[str, Any]:
        success = await self._send(request)
        return _reject_error_envelope(success, success.json())

    # -------------------------------------------------------------------------
    # Streaming calls
    # -------------------------------------------------------------------------

    async def stream_lines(self, path: str) -> LichessStream[str]:
        """Open a stream of non-blank text lines."""
        raw = await self._transport.open_stream(get_request(path))
        lines = drop_blank_lines(
            split_lines(raw, keep_trailing=self._transport.config.keep_trailing_line)
        )
        return LichessStream(lines, on_close=raw.aclose)

    async def ndjson_stream(
        self,
        path: str,
        shape: Callable[[Any], T] | None = None,
        *,
        strict: bool = False,
        on_error: Callable[[str, Exception], None] | None = None,
    ) -> LichessStream[T]:
        """Open a stream of NDJSON records decoded through ``shape``.

        Malformed records are skipped (reported to ``on_error`` when given)
        unless ``strict`` is set, in which case they end the stream with
        ``LichessDecodeError``.
        """
        raw = await self._transport.open_stream(get_request(path))
        lines = drop_blank_lines(
            split_lines(raw, keep_trailing=self._transport.config.keep_trailing_line)
        )
        items = decode_lines(lines, shape, strict=strict, on_error=on_error)
        return LichessStream(items, on_close=raw.aclose)

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------

    async def account(self) -> dict[str, Any]:
        """Get the account profile. Requires no scope."""
        return await self._send_json_object(get_request("account"))

    async def email(self) -> str:
        """Get the account email. Requires ``email:read``."""
        payload = await self._send_json_object(get_request("account/email"))
        return _field(payload, "email", str)

    async def challenge_ai(
        self,
        level: int,
        color: Color,
        clock: ClockSettings,
        fen: str | None = None,
    ) -> str:
        """Challenge the AI and return the new game id."""
        payload = await self._send_json_object(build_ai_challenge(level, color, clock, fen))
        game_id = _field(payload, "id", str)
        _LOGGER.debug("Started AI game %s at level %d", game_id, level)
        return game_id

    async def seek(
        self,
        rated: bool,
        color: Color,
        clock: ClockSettings,
        fen: str | None = None,
    ) -> str | None:
        """Create a seek and wait for it to be accepted.

        Returns the raw response body, or None when the server sent nothing.
        """
        body = (await self._send(build_seek(rated, color, clock, fen))).text()
        return body or None

    async def make_move(self, game_id: str, move: str, *, offering_draw: bool = False) -> bool:
        """Play a move in a board game."""
        payload = await self._send_json_object(build_move(game_id, move, offering_draw))
        return _field(payload, "ok", bool)

    async def resign(self, game_id: str) -> bool:
        """Resign a board game."""
        payload = await self._send_json_object(build_resign(game_id))
        return _field(payload, "ok", bool)

    async def stream_events(
        self, shape: Callable[[Any], T] = StreamEvent.from_json  # type: ignore[assignment]
    ) -> LichessStream[T]:
        """Listen to incoming events (game starts, challenges, ...)."""
        return await self.ndjson_stream(EVENT_STREAM_PATH, shape)

    async def stream_board_game(
        self,
        game_id: str,
        shape: Callable[[Any], T] = StreamEvent.from_json,  # type: ignore[assignment]
    ) -> LichessStream[T]:
        """Listen to the state of one board game."""
        return await self.ndjson_stream(board_stream_path(game_id), shape)
