"""
gmaps-gpx — Google Maps route URL to GPX converter
Data models: Coordinate, RouteData
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field
from typing import Optional, Tuple

EARTH_RADIUS_M = 6371000


@dataclass(frozen=True)
class Coordinate:
    """A single point along a route, in decimal degrees."""
    lat: float = 0.0
    lng: float = 0.0
    name: Optional[str] = None

    def __bool__(self) -> bool:
        return self.lat != 0.0 or self.lng != 0.0

    def with_name(self, name: Optional[str]) -> Coordinate:
        return Coordinate(self.lat, self.lng, name)

    def distance_from(self, other: Coordinate) -> float:
        """Haversine distance in meters."""
        lat1, lat2 = math.radians(self.lat), math.radians(other.lat)
        dlat = math.radians(other.lat - self.lat)
        dlng = math.radians(other.lng - self.lng)
        a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
        return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


@dataclass(frozen=True)
class RouteData:
    """Ordered waypoints recovered from a URL, plus the inferred route name."""
    waypoints: Tuple[Coordinate, ...] = field(default_factory=tuple)
    route_name: str = ""

    def __post_init__(self):
        # Accept any sequence but store a tuple so instances stay immutable
        object.__setattr__(self, "waypoints", tuple(self.waypoints))

    def __len__(self) -> int:
        return len(self.waypoints)

    def __iter__(self):
        return iter(self.waypoints)

    def __getitem__(self, index) -> Coordinate:
        return self.waypoints[index]

    def total_distance(self) -> float:
        """Straight-line distance between consecutive waypoints, in meters."""
        total = 0.0
        for i in range(1, len(self.waypoints)):
            total += self.waypoints[i - 1].distance_from(self.waypoints[i])
        return total
