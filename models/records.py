"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True, slots=True)
class PartitionKey:
    """Storage coordinate derived from a measurement timestamp (UTC)."""

    date: str
    hour: str
    minute: str

    def __str__(self) -> str:
        return f"{self.date}:{self.hour}:{self.minute}"


@dataclass(frozen=True, slots=True)
class Coordinates:
    lat: float
    lng: float

    def to_document(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    @classmethod
    def from_document(cls, payload: Any) -> Optional["Coordinates"]:
        """Build from a stored ``coordenadas`` map, or ``None`` if incomplete."""
        if not isinstance(payload, dict):
            return None
        lat = payload.get("lat")
        lng = payload.get("lng")
        if lat is None or lng is None:
            return None
        return cls(lat=lat, lng=lng)


@dataclass(slots=True)
class Measurement:
    """A single decibel reading flattened out of a DateRecord tree."""

    sector: str
    date: str
    hour: str
    minute: str
    decibel: Any
    coordinates: Optional[Dict[str, Any]] = None


@dataclass(slots=True)
class NearbyRecord:
    """A DateRecord whose coordinates fall inside a search radius."""

    sector: str
    date: str
    coordinates: Dict[str, Any]
    distance_km: float
    hours: Dict[str, Dict[str, Any]]
