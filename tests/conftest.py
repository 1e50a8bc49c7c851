"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from foodmap.db.connection import Database
from foodmap.db.schema import initialize
from foodmap.offline.models import Request, Response, ResponseType
from foodmap.offline.network import NetworkError

ORIGIN = "https://foodmap.example"


class FakeFetcher:
    """Fetcher serving canned responses by URL and recording every call.

    Unknown URLs get a 404. ``offline = True`` makes every call fail.
    """

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, bytes, ResponseType] | Exception] = {}
        self.calls: list[str] = []
        self.offline = False

    def add(
        self,
        url: str,
        body: bytes | str = b"ok",
        status: int = 200,
        type: ResponseType = ResponseType.BASIC,
    ) -> None:
        data = body.encode() if isinstance(body, str) else body
        self.routes[url] = (status, data, type)

    def fail(self, url: str) -> None:
        self.routes[url] = NetworkError(f"GET {url} failed")

    async def fetch(self, request: Request) -> Response:
        self.calls.append(request.url)
        if self.offline:
            raise NetworkError(f"GET {request.url} failed: offline")
        route = self.routes.get(request.url)
        if route is None:
            return Response(b"not found", status=404, url=request.url)
        if isinstance(route, Exception):
            raise route
        status, body, rtype = route
        return Response(body, status=status, type=rtype, url=request.url)


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def tmp_db(tmp_path):
    """File-based cache DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / ".foodmap-cache.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()
