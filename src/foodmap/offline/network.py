"""Network access for the offline layer.

The fetch policy and the lifecycle controller never talk to the network
directly; they receive a ``Fetcher``. ``HttpxFetcher`` is the real one.
Transport failures (DNS, refused connection, timeouts, redirect loops,
undecodable bodies) raise ``NetworkError``; HTTP error statuses are ordinary responses, as with the
browser ``fetch``.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

import httpx

from foodmap.offline.models import Request, Response, ResponseType, normalize_origin

logger = logging.getLogger(__name__)

_USER_AGENT = "foodmap/0.1"


class NetworkError(OSError):
    """Raised when a request cannot be completed at the transport level."""


@runtime_checkable
class Fetcher(Protocol):
    """Anything that can turn a Request into a Response."""

    async def fetch(self, request: Request) -> Response:
        """Perform *request* over the network.

        Raises:
            NetworkError: If no response could be obtained.
        """
        ...


class OfflineFetcher:
    """Fetcher for a device with no connectivity: every request fails."""

    async def fetch(self, request: Request) -> Response:
        raise NetworkError(f"{request.method} {request.url} failed: offline")


class HttpxFetcher:
    """Fetcher backed by ``httpx.AsyncClient``.

    Responses from *origin* are typed ``basic``; all others ``cors``.
    The client is created lazily and must be closed with ``aclose()``
    (or by using the fetcher as an async context manager).
    """

    def __init__(
        self,
        origin: str = "",
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialise the fetcher.

        Args:
            origin: Application origin, used to label same-origin responses.
            timeout: Per-request timeout in seconds; None leaves it to the transport.
            transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
        """
        self._origin = normalize_origin(origin) if origin else ""
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                headers={"User-Agent": _USER_AGENT},
                transport=self._transport,
            )
        return self._client

    async def fetch(self, request: Request) -> Response:
        try:
            raw = await self.client.request(
                request.method, request.url, headers=dict(request.headers)
            )
        except httpx.RequestError as exc:
            # Redirect loops and undecodable bodies count as network failures too.
            logger.debug("Network failure for %s: %s", request.url, exc)
            raise NetworkError(f"{request.method} {request.url} failed: {exc}") from exc

        response_type = (
            ResponseType.BASIC if request.origin == self._origin else ResponseType.CORS
        )
        return Response(
            raw.content,
            status=raw.status_code,
            headers=dict(raw.headers),
            type=response_type,
            url=str(raw.url),
        )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpxFetcher":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
