"""Request builders for Lichess API endpoints."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final
from urllib.parse import quote, urlencode

from .models import ClockSettings, Color

EVENT_STREAM_PATH: Final = "stream/event"

AI_LEVELS: Final = range(1, 9)


@dataclass(frozen=True, slots=True)
class Request:
    """One outgoing call; the transport adds the credential."""

    method: str
    path: str
    body: str | None = None
    params: Mapping[str, str] | None = None


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Color):
        return value.value
    return str(value)


def build_form_body(fields: Mapping[str, Any]) -> str:
    """Encode fields as application/x-www-form-urlencoded, skipping None values."""
    return urlencode(
        [(key, _form_value(value)) for key, value in fields.items() if value is not None]
    )


def get_request(path: str, params: Mapping[str, str] | None = None) -> Request:
    return Request("GET", path, params=params)


def post_request(
    path: str,
    fields: Mapping[str, Any] | str | None = None,
    params: Mapping[str, str] | None = None,
) -> Request:
    if isinstance(fields, str):
        body = fields
    else:
        body = build_form_body(fields or {})
    return Request("POST", path, body=body, params=params)


def _segment(value: str) -> str:
    return quote(value, safe="")


def build_ai_challenge(
    level: int,
    color: Color,
    clock: ClockSettings,
    fen: str | None = None,
) -> Request:
    """Challenge the Lichess AI (``challenge:write`` scope)."""
    if level not in AI_LEVELS:
        raise ValueError(f"AI level must be between 1 and 8, got {level}")
    fields: dict[str, Any] = {"level": level, "color": color}
    if clock.is_correspondence:
        fields["days"] = clock.days
    else:
        fields["clock.limit"] = clock.limit
        fields["clock.increment"] = clock.increment
    fields["fen"] = fen
    return post_request("challenge/ai", fields)


def build_seek(
    rated: bool,
    color: Color,
    clock: ClockSettings,
    fen: str | None = None,
) -> Request:
    """Create a public seek (``board:play`` scope).

    Real-time seeks take the initial time in minutes.
    """
    fields: dict[str, Any] = {"rated": rated, "color": color}
    if clock.is_correspondence:
        fields["days"] = clock.days
    else:
        minutes = (clock.limit or 0) / 60
        fields["time"] = int(minutes) if minutes.is_integer() else minutes
        fields["increment"] = clock.increment
    fields["fen"] = fen
    return post_request("board/seek", fields)


def build_move(game_id: str, move: str, offering_draw: bool = False) -> Request:
    """Play a UCI move in a board game (``board:play`` scope)."""
    params = {"offeringDraw": "true"} if offering_draw else None
    return post_request(
        f"board/game/{_segment(game_id)}/move/{_segment(move)}", params=params
    )


def build_resign(game_id: str) -> Request:
    return post_request(f"board/game/{_segment(game_id)}/resign")


def board_stream_path(game_id: str) -> str:
    return f"board/game/stream/{_segment(game_id)}"
