"""Structured parser: YAML (or JSON) list of restaurant entries."""

from __future__ import annotations

import math
from typing import Any

import yaml

from foodmap.ingest.base import BaseParser, ParseError, split_tags
from foodmap.ingest.coordinates import parse_coordinates
from foodmap.models import Coordinates, Restaurant


class StructuredParser(BaseParser):
    """Parse a list of entries with named fields.

    Supported top-level shapes:
    - **List** ``[{name: ..., url: ...}, ...]``
    - **Mapping** with a ``restaurants:`` list (other keys are ignored).

    Per entry, ``coordinates`` may be ``"lat,lng"`` or ``{lat: .., lng: ..}``
    (the shape written by the materializer), ``tags`` a whitespace-separated
    string or a list. Malformed coordinates become None. JSON input works
    because it goes through the same YAML loader.
    """

    def parse(self, content: str) -> list[Restaurant]:
        self.skipped = []
        if not content.strip():
            return []

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise ParseError(f"invalid YAML: {exc}") from exc

        entries = _entries(data)
        records: list[Restaurant] = []
        for index, entry in enumerate(entries, start=1):
            if not isinstance(entry, dict):
                self._skip(index, f"entry is not a mapping: {type(entry).__name__}")
                continue
            comment = entry.get("comment")
            record = self._make_record(
                index,
                entry.get("name"),
                entry.get("url"),
                coordinates=_coordinates(entry.get("coordinates")),
                tags=split_tags(entry.get("tags")),
                comment=str(comment).strip() if comment is not None else None,
            )
            if record is not None:
                records.append(record)
        return records


def _entries(data: Any) -> list[Any]:
    if data is None:
        return []
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("restaurants"), list):
        return data["restaurants"]
    raise ParseError(
        "expected a list of entries or a mapping with a 'restaurants' list, "
        f"got {type(data).__name__}"
    )


def _coordinates(raw: Any) -> Coordinates | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        return parse_coordinates(raw)
    if isinstance(raw, dict):
        lat, lng = raw.get("lat"), raw.get("lng")
        if isinstance(lat, bool) or isinstance(lng, bool):
            return None
        if (
            isinstance(lat, (int, float))
            and isinstance(lng, (int, float))
            and math.isfinite(lat)
            and math.isfinite(lng)
        ):
            return Coordinates(lat=float(lat), lng=float(lng))
    return None
