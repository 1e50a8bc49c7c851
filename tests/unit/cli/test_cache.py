"""Tests for the foodmap cache CLI commands."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest
from typer.testing import CliRunner

import foodmap.cli.cache as cache_module
from foodmap.cli.main import app
from foodmap.db.connection import Database
from foodmap.db.repository import CacheRepository
from foodmap.db.schema import initialize
from foodmap.offline.network import HttpxFetcher

runner = CliRunner()

ORIGIN = "http://localhost:5173"

_SITE = {
    "/": b"<html>shell</html>",
    "/manifest.json": b'{"name": "Foodmap"}',
    "/icon.svg": b"<svg/>",
    "/about": b"<html>about</html>",
}


# ------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------


@pytest.fixture(autouse=True)
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("FOODMAP_ORIGIN", raising=False)
    return tmp_path


@pytest.fixture
def requests_seen(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Serve _SITE through httpx.MockTransport instead of the network."""
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        body = _SITE.get(request.url.path) if request.url.host == "localhost" else None
        if body is None:
            return httpx.Response(404, content=b"not found")
        return httpx.Response(200, content=body)

    def factory(origin: str = "", **kwargs) -> HttpxFetcher:
        return HttpxFetcher(origin=origin, transport=httpx.MockTransport(handler))

    monkeypatch.setattr(cache_module, "HttpxFetcher", factory)
    return seen


def _add_stale_cache(db_path: Path, name: str) -> None:
    conn = Database(db_path).connect()
    initialize(conn)
    CacheRepository(conn).ensure_cache(name)
    conn.close()


def _cache_names(db_path: Path) -> list[str]:
    conn = Database(db_path).connect()
    names = CacheRepository(conn).list_caches()
    conn.close()
    return names


# ------------------------------------------------------------------
# install
# ------------------------------------------------------------------


def test_install_precaches_shell(project, requests_seen):
    result = runner.invoke(app, ["cache", "install"])

    assert result.exit_code == 0, result.output
    assert "Installed 3 assets into foodmap-v1" in result.output
    assert "No stale generations" in result.output
    assert sorted(requests_seen) == sorted(f"{ORIGIN}{p}" for p in ("/", "/manifest.json", "/icon.svg"))
    assert (project / ".foodmap-cache.db").exists()


def test_install_deletes_stale_generations(project, requests_seen):
    db = project / "cache.db"
    _add_stale_cache(db, "foodmap-old")

    result = runner.invoke(app, ["cache", "install", "--db", str(db)])

    assert result.exit_code == 0, result.output
    assert "Deleted old cache: foodmap-old" in result.output
    assert _cache_names(db) == ["foodmap-v1"]


def test_install_failure_caches_nothing(project, requests_seen):
    (project / "foodmap.yaml").write_text(
        "cache:\n  precache: ['/', '/missing.js']\n", encoding="utf-8"
    )
    db = project / "cache.db"

    result = runner.invoke(app, ["cache", "install", "--db", str(db)])

    assert result.exit_code == 1
    assert "Install failed" in result.output
    conn = Database(db).connect()
    assert CacheRepository(conn).count_entries("foodmap-v1") == 0
    conn.close()


def test_install_invalid_config(project):
    (project / "foodmap.yaml").write_text("cache:\n  origin: localhost\n", encoding="utf-8")
    result = runner.invoke(app, ["cache", "install"])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


# ------------------------------------------------------------------
# activate
# ------------------------------------------------------------------


def test_activate_without_db(project):
    result = runner.invoke(app, ["cache", "activate"])
    assert result.exit_code == 1
    assert "No cache database" in result.output


def test_activate_requires_install(project):
    db = project / "cache.db"
    _add_stale_cache(db, "foodmap-old")

    result = runner.invoke(app, ["cache", "activate", "--db", str(db)])

    assert result.exit_code == 1
    assert "not installed" in result.output
    assert _cache_names(db) == ["foodmap-old"]


def test_activate_deletes_only_stale(project, requests_seen):
    db = project / "cache.db"
    runner.invoke(app, ["cache", "install", "--db", str(db)])
    _add_stale_cache(db, "foodmap-runtime")
    _add_stale_cache(db, "foodmap-old")

    result = runner.invoke(app, ["cache", "activate", "--db", str(db)])

    assert result.exit_code == 0, result.output
    assert "Deleted old cache: foodmap-old" in result.output
    assert _cache_names(db) == ["foodmap-v1", "foodmap-runtime"]


# ------------------------------------------------------------------
# fetch
# ------------------------------------------------------------------


def test_fetch_offline_serves_cached_shell(project, requests_seen):
    runner.invoke(app, ["cache", "install"])

    result = runner.invoke(app, ["cache", "fetch", f"{ORIGIN}/", "--offline"])

    assert result.exit_code == 0, result.output
    assert "200" in result.output
    assert "same-origin-cache-first" in result.output


def test_fetch_offline_navigation_falls_back_to_root(project, requests_seen):
    runner.invoke(app, ["cache", "install"])

    result = runner.invoke(
        app, ["cache", "fetch", f"{ORIGIN}/restaurants/7", "-d", "document", "--offline"]
    )

    assert result.exit_code == 0, result.output
    assert "200" in result.output


def test_fetch_offline_uncached_asset_is_503(project):
    result = runner.invoke(app, ["cache", "fetch", f"{ORIGIN}/logo.png", "-d", "image", "--offline"])
    assert result.exit_code == 0, result.output
    assert "503" in result.output


def test_fetch_online_writes_through(project, requests_seen):
    runner.invoke(app, ["cache", "fetch", f"{ORIGIN}/about"])
    requests_seen.clear()

    result = runner.invoke(app, ["cache", "fetch", f"{ORIGIN}/about", "--offline"])

    assert "200" in result.output
    assert requests_seen == []


def test_fetch_provider_offline_is_503(project):
    result = runner.invoke(
        app, ["cache", "fetch", "https://tiles.example.org/1/2/3.pbf", "--offline"]
    )
    assert "503" in result.output
    assert "provider-cache-first" in result.output


def test_fetch_unknown_destination(project):
    result = runner.invoke(app, ["cache", "fetch", f"{ORIGIN}/", "-d", "video"])
    assert result.exit_code == 1
    assert "Unknown destination" in result.output


# ------------------------------------------------------------------
# status
# ------------------------------------------------------------------


def test_status_without_db(project):
    result = runner.invoke(app, ["cache", "status"])
    assert result.exit_code == 1


def test_status_empty_db(project):
    _open = Database(project / ".foodmap-cache.db").connect()
    initialize(_open)
    _open.close()

    result = runner.invoke(app, ["cache", "status"])

    assert result.exit_code == 0
    assert "No caches yet" in result.output


def test_status_lists_generations(project, requests_seen):
    runner.invoke(app, ["cache", "install"])
    _add_stale_cache(project / ".foodmap-cache.db", "foodmap-old")

    result = runner.invoke(app, ["cache", "status"])

    assert result.exit_code == 0, result.output
    assert "foodmap-v1" in result.output
    assert "current" in result.output
    assert "foodmap-old" in result.output
    assert "stale" in result.output
