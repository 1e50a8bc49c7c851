"""Tests for CacheRepository."""

from __future__ import annotations

import pytest

from foodmap.db.repository import CacheRepository
from foodmap.offline.models import CacheEntry, ResponseType


@pytest.fixture
def repo(tmp_db):
    return CacheRepository(tmp_db)


def _entry(key="https://foodmap.example/", body=b"<html/>", status=200, headers=()):
    return CacheEntry(
        key=key,
        status=status,
        headers=headers,
        body=body,
        type=ResponseType.BASIC,
        url=key,
    )


# ------------------------------------------------------------------
# Caches
# ------------------------------------------------------------------

def test_list_caches_empty(repo):
    assert repo.list_caches() == []


def test_ensure_cache_is_idempotent(repo):
    repo.ensure_cache("foodmap-v1")
    repo.ensure_cache("foodmap-v1")
    assert repo.list_caches() == ["foodmap-v1"]


def test_list_caches_in_creation_order(repo):
    for name in ("foodmap-v1", "foodmap-runtime", "foodmap-old"):
        repo.ensure_cache(name)
    assert repo.list_caches() == ["foodmap-v1", "foodmap-runtime", "foodmap-old"]


def test_delete_cache(repo):
    repo.ensure_cache("foodmap-old")
    repo.put_entry("foodmap-old", _entry())
    assert repo.delete_cache("foodmap-old") is True
    assert repo.list_caches() == []
    assert repo.count_entries("foodmap-old") == 0


def test_delete_missing_cache(repo):
    assert repo.delete_cache("nope") is False


# ------------------------------------------------------------------
# Entries
# ------------------------------------------------------------------

def test_put_and_get_entry(repo):
    repo.ensure_cache("foodmap-v1")
    entry = _entry(headers=(("content-type", "text/html"),))
    repo.put_entry("foodmap-v1", entry)
    assert repo.get_entry("foodmap-v1", entry.key) == entry


def test_get_entry_missing(repo):
    repo.ensure_cache("foodmap-v1")
    assert repo.get_entry("foodmap-v1", "https://foodmap.example/x") is None


def test_entries_are_scoped_per_cache(repo):
    repo.ensure_cache("a")
    repo.ensure_cache("b")
    repo.put_entry("a", _entry())
    assert repo.get_entry("b", _entry().key) is None


def test_put_entry_replaces(repo):
    repo.ensure_cache("foodmap-v1")
    repo.put_entry("foodmap-v1", _entry(body=b"old"))
    repo.put_entry("foodmap-v1", _entry(body=b"new"))
    assert repo.get_entry("foodmap-v1", _entry().key).body == b"new"
    assert repo.count_entries("foodmap-v1") == 1


def test_binary_body_round_trips(repo):
    repo.ensure_cache("foodmap-runtime")
    body = bytes(range(256))
    repo.put_entry("foodmap-runtime", _entry(body=body))
    assert repo.get_entry("foodmap-runtime", _entry().key).body == body


def test_list_keys_in_insertion_order(repo):
    repo.ensure_cache("foodmap-v1")
    keys = ["https://foodmap.example/", "https://foodmap.example/manifest.json"]
    for key in keys:
        repo.put_entry("foodmap-v1", _entry(key=key))
    assert repo.list_keys("foodmap-v1") == keys


def test_delete_entry(repo):
    repo.ensure_cache("foodmap-v1")
    repo.put_entry("foodmap-v1", _entry())
    assert repo.delete_entry("foodmap-v1", _entry().key) is True
    assert repo.delete_entry("foodmap-v1", _entry().key) is False
    assert repo.list_keys("foodmap-v1") == []
