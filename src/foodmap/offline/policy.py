"""Fetch interception policy.

Every intercepted request is routed to one of three strategies:

  cross-origin tile/font host  → PROVIDER_CACHE_FIRST (runtime cache, 503 offline)
  other cross-origin           → NETWORK_FIRST (fall back to any cached copy)
  same-origin                  → SAME_ORIGIN_CACHE_FIRST (write-through,
                                 navigation falls back to the cached root)

Non-GET requests are never cached and go straight to the network.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Iterable

from foodmap.offline.lifecycle import CacheNames
from foodmap.offline.models import Destination, Request, Response, ResponseType, normalize_origin
from foodmap.offline.network import Fetcher, NetworkError
from foodmap.offline.storage import CacheStorage

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_PATTERNS: tuple[str, ...] = (
    r"tile",
    r"carto",
    r"openstreetmap",
    r"(^|\.)demotiles\.maplibre\.org$",
    r"(^|\.)fonts\.gstatic\.com$",
    r"(^|\.)fonts\.googleapis\.com$",
)
DEFAULT_RUNTIME_PREFIX = "/_app/"


class Strategy(str, Enum):
    PASSTHROUGH = "passthrough"
    PROVIDER_CACHE_FIRST = "provider-cache-first"
    NETWORK_FIRST = "network-first"
    SAME_ORIGIN_CACHE_FIRST = "same-origin-cache-first"


class FetchPolicy:
    """Answer intercepted requests from cache and network.

    Example:
        ```python
        policy = FetchPolicy(storage, fetcher, origin="https://foodmap.example")
        response = await policy.handle(Request("https://foodmap.example/"))
        ```
    """

    def __init__(
        self,
        storage: CacheStorage,
        fetcher: Fetcher,
        origin: str,
        names: CacheNames | None = None,
        provider_patterns: Iterable[str] = DEFAULT_PROVIDER_PATTERNS,
        runtime_prefix: str = DEFAULT_RUNTIME_PREFIX,
    ) -> None:
        """Initialise the policy.

        Args:
            storage: Cache storage holding the static and runtime generations.
            fetcher: Network access.
            origin: The application's own origin (scheme://host[:port]).
            names: Live cache generation names.
            provider_patterns: Regexes matched against the hostname of
                cross-origin requests that should be served cache-first.
            runtime_prefix: Same-origin path prefix of build assets that
                belong in the runtime cache.
        """
        self._storage = storage
        self._fetcher = fetcher
        self._origin = normalize_origin(origin)
        self._names = names or CacheNames()
        self._providers = [re.compile(p, re.IGNORECASE) for p in provider_patterns]
        self._runtime_prefix = runtime_prefix

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def classify(self, request: Request) -> Strategy:
        if request.method != "GET":
            return Strategy.PASSTHROUGH
        if request.origin != self._origin:
            if any(p.search(request.hostname) for p in self._providers):
                return Strategy.PROVIDER_CACHE_FIRST
            return Strategy.NETWORK_FIRST
        return Strategy.SAME_ORIGIN_CACHE_FIRST

    def cache_for(self, request: Request) -> str:
        """Name of the cache a same-origin response is written to."""
        if request.path.startswith(self._runtime_prefix):
            return self._names.runtime
        return self._names.static

    async def handle(self, request: Request) -> Response:
        """Return the response for *request*.

        Raises:
            NetworkError: Only for network-first and passthrough requests
                when the network is down and nothing is cached.
        """
        strategy = self.classify(request)
        logger.debug("%s %s → %s", request.method, request.url, strategy.value)

        if strategy is Strategy.PROVIDER_CACHE_FIRST:
            return await self._provider_cache_first(request)
        if strategy is Strategy.NETWORK_FIRST:
            return await self._network_first(request)
        if strategy is Strategy.SAME_ORIGIN_CACHE_FIRST:
            return await self._same_origin_cache_first(request)
        return await self._fetcher.fetch(request)

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    async def _provider_cache_first(self, request: Request) -> Response:
        cache = await self._storage.open(self._names.runtime)
        cached = await cache.match(request)
        if cached is not None:
            logger.debug("Cache hit: %s", request.url)
            return cached

        try:
            response = await self._fetcher.fetch(request)
        except NetworkError:
            logger.debug("Offline, no cached copy: %s", request.url)
            return Response.offline()

        if response.ok and response.type is not ResponseType.ERROR:
            await cache.put(request, response.clone())
        return response

    async def _network_first(self, request: Request) -> Response:
        try:
            return await self._fetcher.fetch(request)
        except NetworkError:
            cached = await self._storage.match(request)
            if cached is None:
                raise
            logger.debug("Network failed, served from cache: %s", request.url)
            return cached

    async def _same_origin_cache_first(self, request: Request) -> Response:
        cached = await self._storage.match(request)
        if cached is not None:
            logger.debug("Cache hit: %s", request.url)
            return cached

        try:
            response = await self._fetcher.fetch(request)
        except NetworkError:
            return await self._offline_fallback(request)

        if not _is_storable(response):
            return response

        cache = await self._storage.open(self.cache_for(request))
        await cache.put(request, response.clone())
        return response

    async def _offline_fallback(self, request: Request) -> Response:
        if request.destination is Destination.DOCUMENT:
            root = await self._storage.match(Request.for_path(self._origin, "/"))
            if root is not None:
                logger.debug("Offline navigation, serving cached app shell: %s", request.url)
                return root
        return Response.offline()


def _is_storable(response: Response) -> bool:
    """Same-origin write-through only keeps plain 200 responses."""
    return response.status == 200 and response.type not in (
        ResponseType.ERROR,
        ResponseType.OPAQUE,
    )
