"""Base parser interface for restaurant source documents."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from foodmap.models import Coordinates, Restaurant

_URL_SCHEMES = ("http://", "https://")


class ParseError(ValueError):
    """Raised when a source document cannot be parsed (or, in strict mode, an entry is skipped)."""


@dataclass(frozen=True)
class SkippedEntry:
    """An input entry that did not become a record.

    Attributes:
        position: 1-based line number (line text) or entry index (structured).
        reason: Short human-readable cause.
    """

    position: int
    reason: str


class BaseParser(ABC):
    """Abstract base for all source parsers.

    Subclasses implement ``parse()`` and build records through
    ``_make_record()``, which applies the name/URL precondition shared by
    every format. Entries failing it are dropped and noted in ``skipped``;
    with ``strict=True`` the first one raises ``ParseError`` instead.
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict
        self.skipped: list[SkippedEntry] = []

    @abstractmethod
    def parse(self, content: str) -> list[Restaurant]:
        """Convert *content* into an ordered list of Restaurant records.

        Args:
            content: Full decoded text of the source document.

        Returns:
            Records in document order. ``self.skipped`` describes the
            entries that were dropped during this call.
        """

    def _make_record(
        self,
        position: int,
        name: Any,
        url: Any,
        coordinates: Coordinates | None = None,
        tags: tuple[str, ...] = (),
        comment: str | None = None,
    ) -> Restaurant | None:
        """Return a Restaurant, or None (after recording why) if the entry is unusable."""
        name = str(name).strip() if name is not None else ""
        url = str(url).strip() if url is not None else ""

        if not name:
            self._skip(position, "missing name")
            return None
        if not url:
            self._skip(position, "missing url")
            return None
        if not url.startswith(_URL_SCHEMES):
            self._skip(position, f"url is not http(s): {url!r}")
            return None

        return Restaurant(
            name=name,
            url=url,
            coordinates=coordinates,
            tags=tags,
            comment=comment or None,
        )

    def _skip(self, position: int, reason: str) -> None:
        if self.strict:
            raise ParseError(f"entry {position}: {reason}")
        self.skipped.append(SkippedEntry(position=position, reason=reason))


def split_tags(raw: Any) -> tuple[str, ...]:
    """Normalise a tags field into a tuple.

    Accepts a whitespace-separated string or a list of strings. Empty tokens
    are dropped; order is preserved.
    """
    if raw is None:
        return ()
    if isinstance(raw, str):
        return tuple(raw.split())
    if isinstance(raw, (list, tuple)):
        tokens: list[str] = []
        for item in raw:
            if item is None:
                continue
            tokens.extend(str(item).split())
        return tuple(tokens)
    return tuple(str(raw).split())
