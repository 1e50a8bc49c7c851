"""Domain models for the restaurant dataset."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float

    def as_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class Restaurant:
    """One restaurant marker.

    Attributes:
        name: Display name; may carry a free-text qualifier such as "(Korean)".
        url: Map-provider page the record was taken from (http/https only).
        coordinates: Resolved position, or None when not yet geocoded.
        tags: Short labels in display order.
        comment: Optional free-text note.
    """

    name: str
    url: str
    coordinates: Coordinates | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)
    comment: str | None = None
