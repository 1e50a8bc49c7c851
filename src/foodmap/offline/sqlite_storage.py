"""Durable cache storage backed by SQLite (see foodmap.db)."""

from __future__ import annotations

import sqlite3

from foodmap.db.repository import CacheRepository
from foodmap.offline.models import CacheEntry
from foodmap.offline.network import Fetcher
from foodmap.offline.storage import BaseCache, BaseCacheStorage


class SqliteCache(BaseCache):
    """One named cache whose entries live in the ``cache_entries`` table."""

    def __init__(self, name: str, repo: CacheRepository, fetcher: Fetcher | None = None) -> None:
        super().__init__(name, fetcher)
        self._repo = repo

    def _get(self, key: str) -> CacheEntry | None:
        return self._repo.get_entry(self.name, key)

    def _set(self, entry: CacheEntry) -> None:
        # The cache may have been deleted since it was opened.
        self._repo.ensure_cache(self.name)
        self._repo.put_entry(self.name, entry)

    def _remove(self, key: str) -> bool:
        return self._repo.delete_entry(self.name, key)

    def _keys(self) -> list[str]:
        return self._repo.list_keys(self.name)


class SqliteCacheStorage(BaseCacheStorage):
    """Cache storage persisted in a SQLite database.

    The connection is owned by the caller (open it with ``Database.connect()``
    and run ``initialize()`` first).
    """

    def __init__(self, conn: sqlite3.Connection, fetcher: Fetcher | None = None) -> None:
        super().__init__(fetcher)
        self._repo = CacheRepository(conn)

    def _open(self, name: str) -> SqliteCache:
        self._repo.ensure_cache(name)
        return SqliteCache(name, self._repo, self._fetcher)

    def _existing(self, name: str) -> SqliteCache:
        return SqliteCache(name, self._repo, self._fetcher)

    def _names(self) -> list[str]:
        return self._repo.list_caches()

    def _drop(self, name: str) -> bool:
        return self._repo.delete_cache(name)

    def count_entries(self, name: str) -> int:
        return self._repo.count_entries(name)
