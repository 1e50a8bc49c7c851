"""Dataset materializer: restaurant records → JSON artifact (or line text).

Responsibilities:
  1. Convert records into the JSON shape the map front-end loads:
     ``{name, url, coordinates: {lat, lng} | null, tags?, comment?}``.
  2. Write the artifact as a full replace of any previous one
     (temp file → rename, so readers never see a half-written file).
  3. Render records back into the line-text source format.
"""

from __future__ import annotations

import json
import os
import tempfile
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable

from foodmap.models import Coordinates, Restaurant


# ------------------------------------------------------------------
# JSON artifact
# ------------------------------------------------------------------


def to_artifact(records: Iterable[Restaurant]) -> list[dict[str, Any]]:
    """Return the JSON-ready list for *records*, preserving order.

    ``tags`` is only present when non-empty and ``comment`` only when set;
    ``coordinates`` is always present (None when unresolved).
    """
    artifact: list[dict[str, Any]] = []
    for r in records:
        item: dict[str, Any] = {
            "name": r.name,
            "url": r.url,
            "coordinates": r.coordinates.as_dict() if r.coordinates else None,
        }
        if r.tags:
            item["tags"] = list(r.tags)
        if r.comment:
            item["comment"] = r.comment
        artifact.append(item)
    return artifact


def render_json(records: Iterable[Restaurant]) -> str:
    """Serialise *records* as pretty-printed JSON with a trailing newline."""
    return json.dumps(to_artifact(records), indent=2, ensure_ascii=False) + "\n"


def write_dataset(records: Iterable[Restaurant], path: Path) -> int:
    """Write *records* to *path*, replacing any previous artifact.

    Creates parent directories if needed.

    Returns:
        Number of records written.
    """
    records = list(records)
    _write_atomic(path, render_json(records))
    return len(records)


# ------------------------------------------------------------------
# Line text
# ------------------------------------------------------------------


def render_line_text(records: Iterable[Restaurant]) -> str:
    """Render *records* in the blank-line separated text format.

    Tags and comments have no place in this format and are dropped.
    """
    parts: list[str] = []
    for r in records:
        lines = [r.name, r.url]
        if r.coordinates:
            lines.append(format_coordinates(r.coordinates))
        parts.append("\n".join(lines) + "\n\n")
    return "".join(parts)


def format_coordinates(coords: Coordinates) -> str:
    """Return ``"lat,lng"`` using plain decimal notation (never ``1e-05``)."""
    return f"{_format_decimal(coords.lat)},{_format_decimal(coords.lng)}"


def _format_decimal(value: float) -> str:
    text = repr(float(value))
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    if "." not in text:
        text += ".0"
    return text


# ------------------------------------------------------------------
# Atomic write
# ------------------------------------------------------------------


def _write_atomic(path: Path, content: str) -> None:
    """Write *content* to *path* via a temp file in the same directory."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
