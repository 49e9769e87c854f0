from __future__ import annotations

import math
from dataclasses import dataclass

from ..core.constants import DEFAULT_CAMPUS_RADIUS_METERS, EARTH_RADIUS_METERS


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class GeofenceResult:
    verified: bool
    distance_meters: float
    radius_meters: float


def distance_between(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance in meters (haversine, mean Earth radius)."""

    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    d_lat = math.radians(b.latitude - a.latitude)
    d_lng = math.radians(b.longitude - a.longitude)

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    # Floating error can push h a hair outside [0, 1] for antipodal points.
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


class GeofenceVerifier:
    """Checks a claimed position against a circle around the campus anchor.

    Inputs are expected to be range-checked by the caller.
    """

    def __init__(self, anchor: Coordinates, radius_meters: float = DEFAULT_CAMPUS_RADIUS_METERS):
        self._anchor = anchor
        self._radius = float(radius_meters)

    @property
    def anchor(self) -> Coordinates:
        return self._anchor

    @property
    def radius_meters(self) -> float:
        return self._radius

    def verify(self, point: Coordinates) -> GeofenceResult:
        distance = distance_between(point, self._anchor)
        return GeofenceResult(
            verified=distance <= self._radius,
            distance_meters=distance,
            radius_meters=self._radius,
        )
