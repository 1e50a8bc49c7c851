"""Foodmap database layer (durable cache backend)."""

from foodmap.db.connection import Database
from foodmap.db.migrations import MIGRATIONS, run_migrations
from foodmap.db.repository import CacheRepository
from foodmap.db.schema import initialize

__all__ = [
    "CacheRepository",
    "Database",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
]
