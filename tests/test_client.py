"""Tests for LichessClient unary helpers, endpoints, and NDJSON streams."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from lichess_transport import LichessClient, LichessConfig
from lichess_transport.classify import ENVELOPE_POLICY, ApplicationError
from lichess_transport.errors import (
    LichessConnectionError,
    LichessDecodeError,
    LichessResponseError,
)
from lichess_transport.models import ClockSettings, Color, StreamEvent
from lichess_transport.protocol import get_request

from .conftest import TOKEN, create_mock_response, create_stream_response


@pytest.fixture
def client(mock_session: MagicMock, config: LichessConfig) -> LichessClient:
    return LichessClient(mock_session, TOKEN, config=config)


class TestUnaryCalls:
    """Tests for get/post helpers."""

    async def test_get_returns_json(self, client: LichessClient, mock_session: MagicMock) -> None:
        """Test get() parses the JSON body."""
        mock_session.request.return_value = create_mock_response(
            read_data=b'{"id":"bobby","username":"Bobby"}'
        )

        assert await client.get("account") == {"id": "bobby", "username": "Bobby"}

    async def test_get_raw_returns_text(
        self, client: LichessClient, mock_session: MagicMock
    ) -> None:
        """Test get_raw() returns the body as text."""
        mock_session.request.return_value = create_mock_response(read_data=b"1. e4 e5")

        assert await client.get_raw("game/export/abc") == "1. e4 e5"

    async def test_post_raw_accepts_encoded_body(
        self, client: LichessClient, mock_session: MagicMock
    ) -> None:
        """Test post_raw() sends a pre-encoded body unchanged."""
        mock_session.request.return_value = create_mock_response(read_data=b"done")

        assert await client.post_raw("board/seek", "time=5&increment=3") == "done"
        assert mock_session.request.call_args.kwargs["data"] == "time=5&increment=3"

    async def test_post_raises_on_rejection(
        self, client: LichessClient, mock_session: MagicMock
    ) -> None:
        """Test post() raises LichessResponseError on a 400."""
        mock_session.request.return_value = create_mock_response(
            status=400, read_data=b'{"error":{"color":["Invalid value"]}}'
        )

        with pytest.raises(LichessResponseError) as excinfo:
            await client.post("challenge/ai", {"color": "purple"})

        assert excinfo.value.status == 400
        assert excinfo.value.payload == {"error": {"color": ["Invalid value"]}}

    async def test_get_raises_transport_error(
        self, client: LichessClient, mock_session: MagicMock
    ) -> None:
        """Test get() raises the transport failure cause."""
        mock_session.request.side_effect = aiohttp.ClientError("boom")

        with pytest.raises(LichessConnectionError):
            await client.get("account")

    async def test_execute_does_not_raise(
        self, client: LichessClient, mock_session: MagicMock
    ) -> None:
        """Test execute() returns the outcome as a value."""
        mock_session.request.return_value = create_mock_response(status=500)

        assert await client.execute(get_request("account")) == ApplicationError(500)

    async def test_get_malformed_success_body(
        self, client: LichessClient, mock_session: MagicMock
    ) -> None:
        """Test get() raises LichessDecodeError on a malformed body."""
        mock_session.request.return_value = create_mock_response(read_data=b"{truncated")

        with pytest.raises(LichessDecodeError):
            await client.get("account")


class TestEndpoints:
    """Tests for endpoint methods."""

    async def test_email(self, client: LichessClient, mock_session: MagicMock) -> None:
        """Test email() returns the address from account/email."""
        mock_session.request.return_value = create_mock_response(
            read_data=b'{"email":"bobby@example.com"}'
        )

        assert await client.email() == "bobby@example.com"
        assert mock_session.request.call_args.args == (
            "GET",
            "https://lichess.test/api/account/email",
        )

    async def test_email_unexpected_shape(
        self, client: LichessClient, mock_session: MagicMock
    ) -> None:
        """Test email() raises when the field is missing."""
        mock_session.request.return_value = create_mock_response(read_data=b'{"mail":1}')

        with pytest.raises(LichessDecodeError, match="'email'"):
            await client.email()

    async def test_challenge_ai(self, client: LichessClient, mock_session: MagicMock) -> None:
        """Test challenge_ai() posts the form and returns the game id."""
        mock_session.request.return_value = create_mock_response(
            status=201, read_data=b'{"id":"q7ZvsdUF","variant":{"key":"standard"}}'
        )

        game_id = await client.challenge_ai(3, Color.WHITE, ClockSettings(limit=300, increment=2))

        assert game_id == "q7ZvsdUF"
        call_args = mock_session.request.call_args
        assert call_args.args == ("POST", "https://lichess.test/api/challenge/ai")
        assert call_args.kwargs["data"] == (
            "level=3&color=white&clock.limit=300&clock.increment=2"
        )

    async def test_challenge_ai_error_envelope(
        self, mock_session: MagicMock, config: LichessConfig
    ) -> None:
        """Test an error envelope raises under the envelope policy."""
        client = LichessClient(mock_session, TOKEN, config=config, policy=ENVELOPE_POLICY)
        mock_session.request.return_value = create_mock_response(
            status=400, read_data=b'{"error":"Invalid FEN"}'
        )

        with pytest.raises(LichessResponseError, match="Invalid FEN") as excinfo:
            await client.challenge_ai(1, Color.BLACK, ClockSettings(days=2), fen="bad")

        assert excinfo.value.status == 400

    async def test_challenge_ai_non_object_body(
        self, client: LichessClient, mock_session: MagicMock
    ) -> None:
        """Test a non-object body raises LichessDecodeError."""
        mock_session.request.return_value = create_mock_response(read_data=b"[]")

        with pytest.raises(LichessDecodeError, match="JSON object"):
            await client.challenge_ai(1, Color.BLACK, ClockSettings(days=2))

    async def test_make_move(self, client: LichessClient, mock_session: MagicMock) -> None:
        """Test make_move() posts to the move path with the draw offer."""
        mock_session.request.return_value = create_mock_response(read_data=b'{"ok":true}')

        assert await client.make_move("abc", "e2e4", offering_draw=True) is True
        call_args = mock_session.request.call_args
        assert call_args.args == (
            "POST",
            "https://lichess.test/api/board/game/abc/move/e2e4",
        )
        assert call_args.kwargs["params"] == {"offeringDraw": "true"}

    async def test_resign(self, client: LichessClient, mock_session: MagicMock) -> None:
        """Test resign() posts to the resign path."""
        mock_session.request.return_value = create_mock_response(read_data=b'{"ok":true}')

        assert await client.resign("abc") is True
        assert mock_session.request.call_args.args[1].endswith("/board/game/abc/resign")

    async def test_resign_missing_ok(self, client: LichessClient, mock_session: MagicMock) -> None:
        """Test resign() raises when "ok" is missing."""
        mock_session.request.return_value = create_mock_response(read_data=b"{}")

        with pytest.raises(LichessDecodeError):
            await client.resign("abc")

    async def test_seek_empty_body(self, client: LichessClient, mock_session: MagicMock) -> None:
        """Test seek() accepts an empty body and encodes minutes."""
        mock_session.request.return_value = create_mock_response(read_data=b"")

        assert await client.seek(True, Color.RANDOM, ClockSettings(limit=600)) is None
        assert mock_session.request.call_args.kwargs["data"] == (
            "rated=true&color=random&time=10&increment=0"
        )


class TestStreams:
    """Tests for line and NDJSON streams over a mocked transport."""

    async def test_stream_events_decodes_and_skips(
        self, client: LichessClient, mock_session: MagicMock
    ) -> None:
        """Test stream_events() decodes events and skips bad lines."""
        response = create_stream_response(
            chunks=[
                b'{"type":"gameStart","game":{"id":"a"}}\n\n',
                b'{"type":"chall',
                b'enge"}\nnot json\n\n{"no_type":1}\n',
                b'{"type":"gameFinish"}\n{"type":"trunc',
            ]
        )
        mock_session.request = AsyncMock(return_value=response)

        async with await client.stream_events() as events:
            received = [event async for event in events]

        assert [event.type for event in received] == ["gameStart", "challenge", "gameFinish"]
        assert received[0] == StreamEvent(
            "gameStart", {"type": "gameStart", "game": {"id": "a"}}
        )
        assert mock_session.request.call_args.args[1] == "https://lichess.test/api/stream/event"

    async def test_stream_board_game_path(
        self, client: LichessClient, mock_session: MagicMock
    ) -> None:
        """Test stream_board_game() opens the board stream path."""
        mock_session.request = AsyncMock(return_value=create_stream_response())

        async with await client.stream_board_game("abc"):
            pass

        assert mock_session.request.call_args.args[1] == (
            "https://lichess.test/api/board/game/stream/abc"
        )

    async def test_stream_lines_filters_heartbeats(
        self, client: LichessClient, mock_session: MagicMock
    ) -> None:
        """Test stream_lines() drops heartbeat lines."""
        response = create_stream_response(chunks=[b"\n\na\n", b"\nb\n\n"])
        mock_session.request = AsyncMock(return_value=response)

        async with await client.stream_lines("stream/event") as lines:
            assert [line async for line in lines] == ["a", "b"]

    async def test_trailing_line_kept_when_configured(self, mock_session: MagicMock) -> None:
        """Test keep_trailing_line emits the final partial line."""
        config = LichessConfig(base_url="https://lichess.test", keep_trailing_line=True)
        client = LichessClient(mock_session, TOKEN, config=config)
        response = create_stream_response(chunks=[b"a\nb"])
        mock_session.request = AsyncMock(return_value=response)

        async with await client.stream_lines("stream/event") as lines:
            assert [line async for line in lines] == ["a", "b"]

    async def test_strict_ndjson_stream(
        self, client: LichessClient, mock_session: MagicMock
    ) -> None:
        """Test a strict stream raises and closes the response."""
        response = create_stream_response(chunks=[b'{"x":1}\nnope\n{"x":2}\n'])
        mock_session.request = AsyncMock(return_value=response)

        stream = await client.ndjson_stream("stream/x", strict=True)
        with pytest.raises(LichessDecodeError):
            async for _ in stream:
                pass
        response.close.assert_called()

    async def test_closing_ndjson_stream_stops_reads(
        self, client: LichessClient, mock_session: MagicMock
    ) -> None:
        """Test closing the stream stops further reads."""
        response = create_stream_response(chunks=[b'{"x":1}\n', b'{"x":2}\n', b'{"x":3}\n'])
        mock_session.request = AsyncMock(return_value=response)

        async with await client.ndjson_stream("stream/x") as stream:
            assert await stream.__anext__() == {"x": 1}

        response.close.assert_called()
        assert response.content.reads == 1
