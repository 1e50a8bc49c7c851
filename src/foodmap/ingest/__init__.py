"""Foodmap ingest pipeline: parsers, coordinate validation, dataset materializer."""

from __future__ import annotations

from pathlib import Path

from foodmap.ingest.base import BaseParser, ParseError, SkippedEntry
from foodmap.ingest.line_text import LineTextParser
from foodmap.ingest.structured import StructuredParser

_TEXT_EXTS = {".txt", ".text", ".md"}
_STRUCTURED_EXTS = {".yaml", ".yml", ".json"}

FORMATS = ("auto", "text", "yaml")


def detect_format(path: Path | str) -> str:
    """Infer the source format ("text" or "yaml") from the file suffix.

    Raises:
        ParseError: If the suffix is not recognised.
    """
    ext = Path(path).suffix.lower()
    if ext in _STRUCTURED_EXTS:
        return "yaml"
    if ext in _TEXT_EXTS:
        return "text"
    raise ParseError(f"cannot infer source format from extension {ext!r}")


def get_parser(fmt: str, strict: bool = False) -> BaseParser:
    """Return a parser for *fmt* ("text" or "yaml")."""
    if fmt == "text":
        return LineTextParser(strict=strict)
    if fmt == "yaml":
        return StructuredParser(strict=strict)
    raise ParseError(f"unsupported source format: {fmt!r}")


__all__ = [
    "BaseParser",
    "FORMATS",
    "LineTextParser",
    "ParseError",
    "SkippedEntry",
    "StructuredParser",
    "detect_format",
    "get_parser",
]
