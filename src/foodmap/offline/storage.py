"""Cache storage protocols and the in-memory backend.

Two levels, as in the browser Cache API:

- ``CacheStorage``: the set of named caches (``open``, ``has``, ``delete``,
  ``keys``, and ``match`` across every cache in creation order).
- ``CacheStore``: one named cache of request → response snapshots
  (``match``, ``put``, ``add_all``, ``delete``, ``keys``).

Policy code receives these as arguments and never reaches for a global.
Backends subclass ``BaseCache`` / ``BaseCacheStorage`` and only provide the
raw entry primitives; the caching rules live here:

- only GET requests with successful (2xx, non-error) responses are stored;
- ``put`` consumes the response body;
- ``add_all`` is all-or-nothing.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Iterable, Protocol, runtime_checkable

from foodmap.offline.models import BodyUsedError, CacheEntry, Request, Response, ResponseType
from foodmap.offline.network import Fetcher, NetworkError

logger = logging.getLogger(__name__)


class CacheAddError(RuntimeError):
    """Raised by ``add_all`` when any URL could not be fetched successfully."""


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for a single named cache."""

    name: str

    async def match(self, request: Request) -> Response | None:
        """Return a fresh copy of the stored response for *request*, or None."""
        ...

    async def put(self, request: Request, response: Response) -> None:
        """Store *response* under *request*, consuming its body.

        Raises:
            BodyUsedError: If the body was already consumed.
            ValueError: If the request is not GET or the response is not successful.
        """
        ...

    async def add_all(self, requests: Iterable[Request]) -> None:
        """Fetch and store every request; store nothing if any fails.

        Raises:
            CacheAddError: If a fetch failed or returned a non-ok response.
        """
        ...

    async def delete(self, request: Request) -> bool:
        """Remove the entry for *request*. Returns True if one existed."""
        ...

    async def keys(self) -> list[str]:
        """Return the cache keys (URLs) currently stored."""
        ...


@runtime_checkable
class CacheStorage(Protocol):
    """Protocol for the collection of named caches."""

    async def open(self, name: str) -> CacheStore:
        """Return the cache called *name*, creating it if needed."""
        ...

    async def has(self, name: str) -> bool:
        ...

    async def delete(self, name: str) -> bool:
        """Drop the cache called *name* and all its entries. Returns True if it existed."""
        ...

    async def keys(self) -> list[str]:
        """Return cache names in creation order."""
        ...

    async def match(self, request: Request) -> Response | None:
        """Return the first stored response for *request* across all caches."""
        ...


# ---------------------------------------------------------------------------
# Shared rules
# ---------------------------------------------------------------------------


def check_cacheable(request: Request, response: Response) -> None:
    """Raise if *response* may not be stored for *request*."""
    if response.body_used:
        raise BodyUsedError("cannot store a response whose body was consumed")
    if request.method != "GET":
        raise ValueError(f"only GET requests can be cached, got {request.method}")
    if response.type is ResponseType.ERROR or not response.ok:
        raise ValueError(
            f"refusing to cache unsuccessful response ({response.status}) for {request.url}"
        )


class BaseCache(ABC):
    """Caching rules on top of four storage primitives."""

    def __init__(self, name: str, fetcher: Fetcher | None = None) -> None:
        self.name = name
        self._fetcher = fetcher

    @abstractmethod
    def _get(self, key: str) -> CacheEntry | None: ...

    @abstractmethod
    def _set(self, entry: CacheEntry) -> None: ...

    @abstractmethod
    def _remove(self, key: str) -> bool: ...

    @abstractmethod
    def _keys(self) -> list[str]: ...

    async def match(self, request: Request) -> Response | None:
        entry = self._get(request.cache_key)
        return entry.to_response() if entry else None

    async def put(self, request: Request, response: Response) -> None:
        check_cacheable(request, response)
        self._set(CacheEntry.capture(request, response))

    async def add_all(self, requests: Iterable[Request]) -> None:
        requests = list(requests)
        if self._fetcher is None:
            raise CacheAddError(f"cache {self.name!r} has no fetcher; cannot add_all")

        # The first failure cancels and awaits the remaining fetches.
        try:
            async with asyncio.TaskGroup() as tg:
                tasks = [tg.create_task(self._fetcher.fetch(r)) for r in requests]
        except ExceptionGroup as group:
            network, other = group.split(NetworkError)
            if other is not None:
                raise other.exceptions[0] from group
            exc = network.exceptions[0]
            raise CacheAddError(f"precache fetch failed: {exc}") from exc
        responses = [task.result() for task in tasks]

        for request, response in zip(requests, responses):
            if not response.ok or response.type is ResponseType.ERROR:
                raise CacheAddError(
                    f"precache fetch for {request.url} returned status {response.status}"
                )

        entries = [CacheEntry.capture(req, resp) for req, resp in zip(requests, responses)]
        for entry in entries:
            self._set(entry)
        logger.debug("Added %d entries to cache %s", len(entries), self.name)

    async def delete(self, request: Request) -> bool:
        return self._remove(request.cache_key)

    async def keys(self) -> list[str]:
        return self._keys()


class BaseCacheStorage(ABC):
    """Named-cache bookkeeping on top of backend primitives."""

    def __init__(self, fetcher: Fetcher | None = None) -> None:
        self._fetcher = fetcher

    @abstractmethod
    def _open(self, name: str) -> BaseCache: ...

    @abstractmethod
    def _names(self) -> list[str]: ...

    @abstractmethod
    def _drop(self, name: str) -> bool: ...

    def _existing(self, name: str) -> BaseCache:
        """Handle for a cache already listed by ``_names``; must not create anything."""
        return self._open(name)

    async def open(self, name: str) -> BaseCache:
        return self._open(name)

    async def has(self, name: str) -> bool:
        return name in self._names()

    async def delete(self, name: str) -> bool:
        return self._drop(name)

    async def keys(self) -> list[str]:
        return self._names()

    async def match(self, request: Request) -> Response | None:
        for name in self._names():
            response = await self._existing(name).match(request)
            if response is not None:
                return response
        return None


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class MemoryCache(BaseCache):
    """A cache held in a plain dict (last write wins)."""

    def __init__(self, name: str, fetcher: Fetcher | None = None) -> None:
        super().__init__(name, fetcher)
        self._entries: dict[str, CacheEntry] = {}

    def _get(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    def _set(self, entry: CacheEntry) -> None:
        self._entries[entry.key] = entry

    def _remove(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def _keys(self) -> list[str]:
        return list(self._entries)


class MemoryCacheStorage(BaseCacheStorage):
    """Process-local cache storage; contents vanish with the object."""

    def __init__(self, fetcher: Fetcher | None = None) -> None:
        super().__init__(fetcher)
        self._caches: dict[str, MemoryCache] = {}

    def _open(self, name: str) -> MemoryCache:
        if name not in self._caches:
            self._caches[name] = MemoryCache(name, self._fetcher)
        return self._caches[name]

    def _names(self) -> list[str]:
        return list(self._caches)

    def _drop(self, name: str) -> bool:
        return self._caches.pop(name, None) is not None
