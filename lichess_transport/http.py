"""HTTP transport for Lichess API endpoints."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

import aiohttp

from .classify import (
    DEFAULT_POLICY,
    ClassifiedResponse,
    ClassifierPolicy,
    TransportFailure,
    classify,
)
from .config import LichessConfig
from .errors import (
    LichessClientError,
    LichessConnectionError,
    LichessTimeout,
)
from .protocol import Request
from .stream import LichessStream

_LOGGER = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _failure(error: LichessClientError, cause: BaseException) -> TransportFailure:
    error.__cause__ = cause
    _LOGGER.warning("%s (%s)", error, cause.__class__.__name__)
    return TransportFailure(error)


class LichessTransport:
    """Issues authenticated requests over a shared aiohttp session.

    The bearer token is fixed at construction and attached to every request.
    Any number of calls and streams may run concurrently on one transport.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        token: str,
        *,
        config: LichessConfig | None = None,
        policy: ClassifierPolicy | None = None,
    ) -> None:
        self._session = session
        self._token = token
        self._config = config or LichessConfig()
        self._policy = policy or DEFAULT_POLICY

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(base_url={self._config.base_url!r})"

    @property
    def config(self) -> LichessConfig:
        return self._config

    @property
    def policy(self) -> ClassifierPolicy:
        return self._policy

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self._config.api_root}/{path.lstrip('/')}"

    def _headers(self, request: Request) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self._token}"}
        if request.method == "POST":
            headers["Content-Type"] = FORM_CONTENT_TYPE
        return headers

    async def execute(self, request: Request) -> ClassifiedResponse:
        """Send one request and classify its response.

        Network faults are returned as ``TransportFailure``, never raised and
        never retried.
        """
        url = self._url(request.path)
        _LOGGER.debug("%s %s", request.method, url)
        try:
            async with self._session.request(
                request.method,
                url,
                headers=self._headers(request),
                params=request.params,
                data=request.body,
                timeout=aiohttp.ClientTimeout(total=self._config.request_timeout),
            ) as resp:
                status = resp.status
                body = await resp.read()
        except TimeoutError as err:
            return _failure(
                LichessTimeout(f"{request.method} {request.path} timed out"), err
            )
        except aiohttp.ClientError as err:
            return _failure(
                LichessConnectionError(f"{request.method} {request.path} failed"), err
            )

        return classify(status, body, self._policy)

    async def open_stream(self, request: Request) -> LichessStream[bytes]:
        """Open a long-lived response and hand back its body as byte chunks.

        Connecting and receiving headers is bounded by ``connect_timeout``;
        after that the stream waits for data indefinitely.

        Raises:
            LichessTimeout: If the server does not answer in time.
            LichessConnectionError: If the connection cannot be made.
            LichessResponseError: If the server rejects the request.
            LichessDecodeError: If the rejection body cannot be parsed.
        """
        url = self._url(request.path)
        _LOGGER.debug("Opening stream %s %s", request.method, url)
        try:
            resp = await asyncio.wait_for(
                self._session.request(
                    request.method,
                    url,
                    headers=self._headers(request),
                    params=request.params,
                    data=request.body,
                    timeout=aiohttp.ClientTimeout(
                        total=None, sock_connect=self._config.connect_timeout
                    ),
                ),
                timeout=self._config.connect_timeout,
            )
        except TimeoutError as err:
            raise LichessTimeout(f"Stream {request.path} did not open in time") from err
        except aiohttp.ClientError as err:
            raise LichessConnectionError(f"Stream {request.path} failed to open") from err

        policy = self._policy.streaming()
        if not policy.is_success(resp.status):
            await self._reject(request, resp, policy)

        reader = _ChunkReader(request, resp)
        return LichessStream(reader.chunks(), on_close=reader.close)

    async def _reject(
        self, request: Request, resp: aiohttp.ClientResponse, policy: ClassifierPolicy
    ) -> None:
        try:
            body = await asyncio.wait_for(
                resp.read(), timeout=self._config.request_timeout
            )
        except TimeoutError as err:
            raise LichessTimeout(f"Stream {request.path} error body timed out") from err
        except aiohttp.ClientError as err:
            raise LichessConnectionError(
                f"Stream {request.path} error body could not be read"
            ) from err
        finally:
            resp.close()
        _LOGGER.warning("Stream %s rejected with HTTP %d", request.path, resp.status)
        classify(resp.status, body, policy).unwrap()


class _ChunkReader:
    """Yields the body of one open stream response."""

    def __init__(self, request: Request, resp: aiohttp.ClientResponse) -> None:
        self._request = request
        self._resp = resp
        self._closed = False

    def close(self) -> None:
        """Release the response. A read pending in another task then ends."""
        if self._closed:
            return
        self._closed = True
        self._resp.close()
        _LOGGER.debug("Stream %s closed", self._request.path)

    async def chunks(self) -> AsyncIterator[bytes]:
        path = self._request.path
        try:
            async for chunk in self._resp.content.iter_any():
                if self._closed:
                    return
                yield chunk
        except TimeoutError as err:
            if self._closed:
                return
            raise LichessTimeout(f"Stream {path} read timed out") from err
        except aiohttp.ClientError as err:
            if self._closed:
                return
            raise LichessConnectionError(f"Stream {path} was interrupted") from err
        finally:
            self.close()
