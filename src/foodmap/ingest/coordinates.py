"""Coordinate string validation and classification.

A coordinate string is ``"lat,lng"`` where both parts are plain decimals
(``-?\\d+\\.\\d+``). The loose form allows whitespace around the comma; the
strict form, used for the line-text format, does not.

High precision means at least ten fractional digits in both components.
Map providers only give that much precision when the value was copied from
the place page itself, so the threshold doubles as a provenance check for
values coming out of the scraping tools. Ingestion never re-applies it.
"""

from __future__ import annotations

import re
from enum import Enum

from foodmap.models import Coordinates

HIGH_PRECISION_DIGITS = 10

_DECIMAL = r"-?\d+\.(\d+)"
_LOOSE_RE: re.Pattern[str] = re.compile(rf"^{_DECIMAL}\s*,\s*{_DECIMAL}$")
_STRICT_RE: re.Pattern[str] = re.compile(rf"^{_DECIMAL},{_DECIMAL}$")


class CoordinateQuality(str, Enum):
    PRECISE = "precise"
    COARSE = "coarse"
    INVALID = "invalid"


def _match(value: str, strict: bool) -> re.Match[str] | None:
    pattern = _STRICT_RE if strict else _LOOSE_RE
    return pattern.match(value.strip())


def validate(value: str, strict: bool = False) -> bool:
    """Return True if *value* is a syntactically valid ``lat,lng`` pair."""
    return _match(value, strict) is not None


def is_high_precision(value: str, min_digits: int = HIGH_PRECISION_DIGITS) -> bool:
    """Return True if both fractions of *value* carry at least *min_digits* digits.

    Invalid strings are never high precision.
    """
    m = _match(value, strict=False)
    if m is None:
        return False
    return all(len(fraction) >= min_digits for fraction in m.groups())


def parse_coordinates(value: str | None, strict: bool = False) -> Coordinates | None:
    """Parse *value* into Coordinates, or None if it is missing or malformed."""
    if not value or _match(value, strict) is None:
        return None
    lat, lng = (float(part) for part in value.split(","))
    return Coordinates(lat=lat, lng=lng)


def classify(value: str) -> CoordinateQuality:
    """Grade a scraped coordinate string."""
    if not validate(value):
        return CoordinateQuality.INVALID
    if is_high_precision(value):
        return CoordinateQuality.PRECISE
    return CoordinateQuality.COARSE
