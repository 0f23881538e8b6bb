"""Lichess HTTP/NDJSON transport package."""

__version__ = "0.1.0"

from .classify import (
    DEFAULT_POLICY,
    DEFAULT_SUCCESS_STATUSES,
    ENVELOPE_POLICY,
    ENVELOPE_SUCCESS_STATUSES,
    ApplicationError,
    ClassifiedResponse,
    ClassifierPolicy,
    Success,
    TransportFailure,
    classify,
    json_payload,
    text_payload,
)
from .client import LichessClient
from .config import LichessConfig
from .errors import (
    LichessClientError,
    LichessConnectionError,
    LichessDecodeError,
    LichessResponseError,
    LichessTimeout,
)
from .http import LichessTransport
from .models import ClockSettings, Color, StreamEvent
from .protocol import Request, build_form_body, get_request, post_request
from .stream import (
    LichessStream,
    LineSplitter,
    decode_lines,
    drop_blank_lines,
    split_lines,
)

__all__ = [
    "DEFAULT_POLICY",
    "DEFAULT_SUCCESS_STATUSES",
    "ENVELOPE_POLICY",
    "ENVELOPE_SUCCESS_STATUSES",
    "ApplicationError",
    "ClassifiedResponse",
    "ClassifierPolicy",
    "ClockSettings",
    "Color",
    "LichessClient",
    "LichessClientError",
    "LichessConfig",
    "LichessConnectionError",
    "LichessDecodeError",
    "LichessResponseError",
    "LichessStream",
    "LichessTimeout",
    "LichessTransport",
    "LineSplitter",
    "Request",
    "StreamEvent",
    "Success",
    "TransportFailure",
    "__version__",
    "build_form_body",
    "classify",
    "decode_lines",
    "drop_blank_lines",
    "get_request",
    "json_payload",
    "post_request",
    "split_lines",
    "text_payload",
]
