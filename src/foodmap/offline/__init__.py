"""Offline layer: cache storage, install/activate lifecycle, fetch policy.

The SQLite backend lives in ``foodmap.offline.sqlite_storage`` and is
imported from there directly.
"""

from foodmap.offline.lifecycle import (
    CacheNames,
    InstallError,
    LifecycleController,
    LifecycleError,
    LifecycleState,
)
from foodmap.offline.models import BodyUsedError, CacheEntry, Destination, Request, Response, ResponseType
from foodmap.offline.network import Fetcher, HttpxFetcher, NetworkError
from foodmap.offline.policy import FetchPolicy, Strategy
from foodmap.offline.storage import (
    CacheAddError,
    CacheStorage,
    CacheStore,
    MemoryCache,
    MemoryCacheStorage,
)
from foodmap.offline.worker import (
    ActivateEvent,
    FetchEvent,
    InstallEvent,
    MessageEvent,
    ServiceWorker,
)

__all__ = [
    "ActivateEvent",
    "BodyUsedError",
    "CacheAddError",
    "CacheEntry",
    "CacheNames",
    "CacheStorage",
    "CacheStore",
    "Destination",
    "FetchEvent",
    "FetchPolicy",
    "Fetcher",
    "HttpxFetcher",
    "InstallError",
    "InstallEvent",
    "LifecycleController",
    "LifecycleError",
    "LifecycleState",
    "MemoryCache",
    "MemoryCacheStorage",
    "MessageEvent",
    "NetworkError",
    "Request",
    "Response",
    "ResponseType",
    "ServiceWorker",
    "Strategy",
]
