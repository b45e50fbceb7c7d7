"""Domain Port(s) for Coverage I/O.

Defines interfaces (Protocols) that infrastructure adapters must implement.
No concrete I/O here.
"""

from __future__ import annotations

from typing import Protocol

from domain.coverage.value_objects import CoveragePoint
from domain.geo.value_objects import GeoPoint


class CoveragePointRepository(Protocol):
    """Port for obtaining coverage observations from external sources.

    Implementations live in infrastructure (e.g., GeoJSON adapter).
    """

    def load_points(self) -> list[CoveragePoint]:
        """Return the full, immutable point set."""
        ...

    def find_nearby(
        self, point: GeoPoint, max_distance_m: float = 10_000.0
    ) -> list[CoveragePoint]:
        """Return observations within ``max_distance_m`` of ``point``."""
        ...


class RouteProvider(Protocol):
    """Port for a directions service turning two place names into a polyline."""

    def route(self, origin: str, destination: str) -> list[GeoPoint]:
        """Return the ordered route points from origin to destination."""
        ...
