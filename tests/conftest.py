"""Root pytest configuration for all tests.

Provides factories for coverage observations and routes. Domain tests build
Value Objects directly; no fixture files are needed outside the adapter tests,
which write their documents to ``tmp_path``.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from domain.coverage.value_objects import CoveragePoint
from domain.geo.value_objects import GeoPoint

# Reference coordinates
TORONTO = (43.6532, -79.3832)
VANCOUVER = (49.2827, -123.1207)


# ---------------------------------------------------------------------------
# Factories - build Value Objects directly (no I/O)
# ---------------------------------------------------------------------------
def make_point(
    lat: float,
    lng: float,
    status: str = "5G",
    operator: str = "Test Operator",
    city_name: str = "Test City",
    country: str | None = None,
    device_type: str | None = None,
) -> CoveragePoint:
    """Build a CoveragePoint at (lat, lng)."""
    return CoveragePoint(
        status=status,
        operator=operator,
        city_name=city_name,
        country=country,
        device_type=device_type,
        location=GeoPoint(latitude=lat, longitude=lng),
    )


def make_route(
    start: tuple[float, float], n_points: int, step_deg: float = 0.001
) -> list[GeoPoint]:
    """Straight northbound route of ``n_points`` points spaced ``step_deg``."""
    lat, lng = start
    return [
        GeoPoint(latitude=lat + i * step_deg, longitude=lng) for i in range(n_points)
    ]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def point_factory() -> Callable[..., CoveragePoint]:
    return make_point


@pytest.fixture
def route_factory() -> Callable[..., list[GeoPoint]]:
    return make_route
