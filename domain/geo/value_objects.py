"""Geo Bounded Context - Value Objects.

Immutable geographic primitives. All validation occurs at construction time
via Pydantic, so a GeoPoint instance is always a finite WGS84 coordinate.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from domain.geo.errors import InvalidCoordinateError


class GeoPoint(BaseModel):
    """Geographic coordinate in WGS84 (Value Object).

    Invariants:
        latitude in [-90, 90], finite
        longitude in [-180, 180], finite

    Pydantic frozen models compare by value, so two GeoPoints built from the
    same floats are equal and hash identically.
    """

    latitude: float = Field(ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(ge=-180, le=180, allow_inf_nan=False)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def coerce(cls, value: Any) -> "GeoPoint":
        """Build a GeoPoint from a GeoPoint or a ``(lat, lng)`` pair.

        Raises:
            InvalidCoordinateError: If the value is not a valid coordinate.
        """
        if isinstance(value, GeoPoint):
            return value
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
            raise InvalidCoordinateError(
                f"Expected GeoPoint or (lat, lng) pair, got {type(value).__name__}"
            )
        if len(value) != 2:
            raise InvalidCoordinateError(
                f"Expected (lat, lng) pair, got {len(value)} values"
            )
        try:
            return cls(latitude=value[0], longitude=value[1])
        except ValidationError as e:
            raise InvalidCoordinateError(
                f"Invalid coordinate ({value[0]!r}, {value[1]!r})"
            ) from e

    def as_tuple(self) -> tuple[float, float]:
        """Return ``(latitude, longitude)``."""
        return (self.latitude, self.longitude)
