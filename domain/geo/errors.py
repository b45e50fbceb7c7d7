"""Geo Bounded Context - Error Hierarchy."""

from __future__ import annotations


class GeoError(Exception):
    """Base error for geographic operations."""


class InvalidCoordinateError(GeoError, ValueError):
    """Coordinate is non-finite, out of range, or not a (lat, lng) pair."""
