"""Classification of HTTP exchanges into success, rejection, or transport fault.

Every unary call ends in exactly one of three outcomes:

- ``Success``: the status is in the policy's accepted set; the raw body is kept.
- ``ApplicationError``: the server answered but rejected the request. The
  body, when present, is parsed into a payload describing why.
- ``TransportFailure``: the exchange never produced a usable answer
  (timeout, broken connection, or an error body that could not be parsed).

Which statuses count as success is a ``ClassifierPolicy`` value, never a
hard-coded check at the call site.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from http import HTTPStatus
from typing import Any, Final

from .errors import LichessClientError, LichessDecodeError, LichessResponseError

DEFAULT_SUCCESS_STATUSES: Final[frozenset[int]] = frozenset(
    {HTTPStatus.OK, HTTPStatus.CREATED}
)

# Lichess answers most rejected board/challenge calls with a 4xx and a JSON
# {"error": ...} body. Under this set those responses are handed back as
# Success and the caller inspects the envelope itself.
ENVELOPE_SUCCESS_STATUSES: Final[frozenset[int]] = DEFAULT_SUCCESS_STATUSES | frozenset(
    range(400, 500)
)


def json_payload(text: str) -> Any:
    """Parse an error body as structured data."""
    return json.loads(text)


def text_payload(text: str) -> str:
    """Keep an error body as the plain string the server sent."""
    return text


@dataclass(frozen=True, slots=True)
class ClassifierPolicy:
    """Accepted statuses and the shape given to error payloads."""

    success_statuses: frozenset[int] = DEFAULT_SUCCESS_STATUSES
    error_payload: Callable[[str], Any] = field(default=json_payload)

    def is_success(self, status: int) -> bool:
        return status in self.success_statuses

    def streaming(self) -> ClassifierPolicy:
        """Return the policy used when opening a stream.

        Only 2xx statuses from the accepted set are kept. A stream opened on
        an error status carries an error body rather than records, so it is
        always rejected, even under ``ENVELOPE_POLICY``.
        """
        statuses = frozenset(s for s in self.success_statuses if 200 <= s < 300)
        return replace(self, success_statuses=statuses)


DEFAULT_POLICY: Final = ClassifierPolicy()
ENVELOPE_POLICY: Final = ClassifierPolicy(success_statuses=ENVELOPE_SUCCESS_STATUSES)


@dataclass(frozen=True, slots=True)
class Success:
    """Accepted response with its untouched body."""

    status: int
    body: bytes

    def unwrap(self) -> Success:
        return self

    def text(self) -> str:
        try:
            return self.body.decode("utf-8")
        except UnicodeDecodeError as err:
            raise LichessDecodeError("Response body is not valid UTF-8") from err

    def json(self) -> Any:
        text = self.text()
        try:
            return json.loads(text)
        except ValueError as err:
            raise LichessDecodeError("Response body is not valid JSON", text=text) from err


@dataclass(frozen=True, slots=True)
class ApplicationError:
    """Well-formed rejection from the server."""

    status: int
    payload: Any = None

    def unwrap(self) -> Success:
        raise LichessResponseError(
            self.status,
            f"HTTP request returned bad code: {self.status}",
            self.payload,
        )


@dataclass(frozen=True, slots=True)
class TransportFailure:
    """The exchange failed below the application level."""

    cause: LichessClientError

    def unwrap(self) -> Success:
        raise self.cause


ClassifiedResponse = Success | ApplicationError | TransportFailure


def classify(
    status: int, body: bytes, policy: ClassifierPolicy = DEFAULT_POLICY
) -> ClassifiedResponse:
    """Decide the outcome of one HTTP exchange.

    Args:
        status: HTTP status code of the response.
        body: Raw response body.
        policy: Accepted statuses and error payload shape.

    Returns:
        ``Success`` for accepted statuses, otherwise ``ApplicationError``
        carrying the parsed body (``None`` when empty). An error body that
        cannot be parsed yields ``TransportFailure``.
    """
    if policy.is_success(status):
        return Success(status, body)

    if not body:
        return ApplicationError(status)

    try:
        text = body.decode("utf-8")
        payload = policy.error_payload(text)
    except ValueError as err:
        failure = LichessDecodeError(
            f"Could not parse error body of HTTP {status} response",
            text=body.decode("utf-8", errors="replace"),
        )
        failure.__cause__ = err
        return TransportFailure(failure)

    return ApplicationError(status, payload)
