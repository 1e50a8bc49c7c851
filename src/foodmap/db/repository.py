"""Repository for cache generations and cache entries.

Single interface for: cache names (generations) and their stored responses.
"""

from __future__ import annotations

import json
import sqlite3

from foodmap.offline.models import CacheEntry, ResponseType


class CacheRepository:
    """Data access layer for the durable cache backend.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use. Every write commits immediately, so each
    operation is atomic per key.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with the schema initialised
                (see foodmap.db.schema.initialize).
        """
        self._conn = conn

    # ------------------------------------------------------------------
    # Caches
    # ------------------------------------------------------------------

    def ensure_cache(self, name: str) -> None:
        """Create the cache *name* if it does not exist yet."""
        self._conn.execute("INSERT OR IGNORE INTO caches (name) VALUES (?)", (name,))
        self._conn.commit()

    def list_caches(self) -> list[str]:
        """Return cache names in creation order."""
        rows = self._conn.execute("SELECT name FROM caches ORDER BY rowid").fetchall()
        return [r["name"] for r in rows]

    def delete_cache(self, name: str) -> bool:
        """Delete cache *name*; its entries go with it (ON DELETE CASCADE).

        Returns:
            True if the cache existed.
        """
        cur = self._conn.execute("DELETE FROM caches WHERE name = ?", (name,))
        self._conn.commit()
        return cur.rowcount > 0

    def count_entries(self, name: str) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) FROM cache_entries WHERE cache_name = ?", (name,)
        ).fetchone()
        return row[0]

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def put_entry(self, cache_name: str, entry: CacheEntry) -> None:
        """Insert or replace *entry* in *cache_name* (last write wins)."""
        self._conn.execute(
            """
            INSERT OR REPLACE INTO cache_entries (cache_name, key, status, headers, body, type, url)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                cache_name,
                entry.key,
                entry.status,
                json.dumps([list(h) for h in entry.headers]),
                entry.body,
                entry.type.value,
                entry.url,
            ),
        )
        self._conn.commit()

    def get_entry(self, cache_name: str, key: str) -> CacheEntry | None:
        """Return the entry stored under *key*, or None."""
        row = self._conn.execute(
            """
            SELECT key, status, headers, body, type, url FROM cache_entries
            WHERE cache_name = ? AND key = ?
            """,
            (cache_name, key),
        ).fetchone()
        return _row_to_entry(row) if row else None

    def delete_entry(self, cache_name: str, key: str) -> bool:
        cur = self._conn.execute(
            "DELETE FROM cache_entries WHERE cache_name = ? AND key = ?",
            (cache_name, key),
        )
        self._conn.commit()
        return cur.rowcount > 0

    def list_keys(self, cache_name: str) -> list[str]:
        """Return entry keys of *cache_name* in insertion order."""
        rows = self._conn.execute(
            "SELECT key FROM cache_entries WHERE cache_name = ? ORDER BY rowid",
            (cache_name,),
        ).fetchall()
        return [r["key"] for r in rows]


# ------------------------------------------------------------------
# Row mappers
# ------------------------------------------------------------------


def _row_to_entry(row: sqlite3.Row) -> CacheEntry:
    return CacheEntry(
        key=row["key"],
        status=row["status"],
        headers=tuple((k, v) for k, v in json.loads(row["headers"])),
        body=bytes(row["body"]),
        type=ResponseType(row["type"]),
        url=row["url"],
    )
