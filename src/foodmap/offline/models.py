"""Request/response value types for the offline cache layer.

``Request`` is immutable. ``Response`` mirrors the browser object closely
enough for the caching rules to hold: its body can be consumed once, and a
caller that needs to both store and return a response must ``clone()`` it
before either use.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping
from urllib.parse import urldefrag, urljoin, urlsplit


class BodyUsedError(TypeError):
    """Raised when a response body is read, stored or cloned after being consumed."""


class Destination(str, Enum):
    """What the page intends to do with a fetched resource."""

    EMPTY = ""
    DOCUMENT = "document"
    SCRIPT = "script"
    STYLE = "style"
    IMAGE = "image"
    FONT = "font"
    MANIFEST = "manifest"


class ResponseType(str, Enum):
    BASIC = "basic"
    CORS = "cors"
    OPAQUE = "opaque"
    ERROR = "error"


_DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_origin(url: str) -> str:
    """Return ``scheme://host[:port]`` for *url*, omitting the scheme's default port."""
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if ":" in host:
        host = f"[{host}]"
    try:
        port = parts.port
    except ValueError:
        return f"{scheme}://{parts.netloc.lower()}"
    if port is None or port == _DEFAULT_PORTS.get(scheme):
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def _freeze(headers: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType({k.lower(): v for k, v in (headers or {}).items()})


@dataclass(frozen=True)
class Request:
    """An intercepted request.

    Attributes:
        url: Absolute URL.
        method: HTTP method (upper case).
        destination: Destination of the request; ``DOCUMENT`` for navigations.
        headers: Request headers (lower-cased names).
    """

    url: str
    method: str = "GET"
    destination: Destination = Destination.EMPTY
    headers: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "destination", Destination(self.destination))
        object.__setattr__(self, "headers", _freeze(self.headers))

    @classmethod
    def for_path(cls, origin: str, path: str, **kwargs: object) -> "Request":
        """Build a request for *path* resolved against *origin*."""
        return cls(urljoin(origin, path), **kwargs)  # type: ignore[arg-type]

    @property
    def cache_key(self) -> str:
        """Identity used by cache stores: the URL without its fragment."""
        return urldefrag(self.url).url

    @property
    def origin(self) -> str:
        return normalize_origin(self.url)

    @property
    def hostname(self) -> str:
        return (urlsplit(self.url).hostname or "").lower()

    @property
    def path(self) -> str:
        return urlsplit(self.url).path or "/"


class Response:
    """A fetched or cached HTTP response with a read-once body."""

    def __init__(
        self,
        body: bytes | str = b"",
        status: int = 200,
        headers: Mapping[str, str] | None = None,
        type: ResponseType = ResponseType.BASIC,
        url: str = "",
    ) -> None:
        self._body = body.encode("utf-8") if isinstance(body, str) else bytes(body)
        self.status = status
        self.headers = _freeze(headers)
        self.type = ResponseType(type)
        self.url = url
        self.body_used = False

    @classmethod
    def offline(cls) -> "Response":
        """The synthetic reply used when neither cache nor network can answer."""
        return cls(b"Offline", status=503, headers={"content-type": "text/plain"})

    @classmethod
    def error(cls) -> "Response":
        """A network-error response (status 0), as seen by a failed page fetch."""
        return cls(b"", status=0, type=ResponseType.ERROR)

    @property
    def ok(self) -> bool:
        return 200 <= self.status <= 299

    def read(self) -> bytes:
        """Consume and return the body."""
        if self.body_used:
            raise BodyUsedError("response body already consumed")
        self.body_used = True
        return self._body

    def text(self) -> str:
        return self.read().decode("utf-8", errors="replace")

    def clone(self) -> "Response":
        """Return an independent copy; the body must not have been consumed."""
        if self.body_used:
            raise BodyUsedError("cannot clone a response whose body was consumed")
        return Response(
            self._body,
            status=self.status,
            headers=dict(self.headers),
            type=self.type,
            url=self.url,
        )

    def __repr__(self) -> str:
        return f"Response(status={self.status}, type={self.type.value!r}, url={self.url!r})"


@dataclass(frozen=True)
class CacheEntry:
    """Stored snapshot of a response, keyed by the request's cache key."""

    key: str
    status: int
    headers: tuple[tuple[str, str], ...]
    body: bytes
    type: ResponseType
    url: str

    @classmethod
    def capture(cls, request: Request, response: Response) -> "CacheEntry":
        """Snapshot *response* for *request*. Consumes the response body."""
        body = response.read()
        return cls(
            key=request.cache_key,
            status=response.status,
            headers=tuple(sorted(response.headers.items())),
            body=body,
            type=response.type,
            url=response.url or request.url,
        )

    def to_response(self) -> Response:
        """Return a fresh, unread Response for this entry."""
        return Response(
            self.body,
            status=self.status,
            headers=dict(self.headers),
            type=self.type,
            url=self.url,
        )
