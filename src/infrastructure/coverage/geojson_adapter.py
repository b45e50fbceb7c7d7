"""GeoJSON adapter for CoveragePointRepository.

Implements loading of coverage observations from a static GeoJSON
FeatureCollection and returns domain CoveragePoint Value Objects.

Lifecycle:
1) Validate the path (exists, allowed extension, not a symlink, not empty)
2) Read and decode the JSON document
3) Parse every Point feature into a CoveragePoint ([lng, lat] order)
4) Keep the parsed tuple for the adapter's lifetime (the set is immutable)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from domain.coverage.errors import InvalidCoverageDataError
from domain.coverage.value_objects import CoveragePoint
from domain.geo.distance import haversine_km
from domain.geo.value_objects import GeoPoint

# Module-level logger (reused across all calls)
logger = logging.getLogger(__name__)

ALLOWED_SUFFIXES = (".json", ".geojson")
DEFAULT_NEARBY_DISTANCE_M = 10_000.0


def _parse_coordinates(geometry: Any, index: int) -> GeoPoint:
    if not isinstance(geometry, Mapping) or geometry.get("type") != "Point":
        raise InvalidCoverageDataError("geometry must be a GeoJSON Point", index)
    coords = geometry.get("coordinates")
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        raise InvalidCoverageDataError("Point needs [lng, lat] coordinates", index)
    try:
        # Numeric strings are accepted; GeoJSON order is [lng, lat]
        lng, lat = float(coords[0]), float(coords[1])
        return GeoPoint(latitude=lat, longitude=lng)
    except (TypeError, ValueError) as e:
        raise InvalidCoverageDataError(f"Invalid coordinates {coords!r}", index) from e


def parse_feature(feature: Any, index: int = 0) -> CoveragePoint:
    """Convert one GeoJSON Feature into a CoveragePoint.

    Raises:
        InvalidCoverageDataError: If the feature is malformed or misses a
            required property (status, operator, city_name).
    """
    if not isinstance(feature, Mapping):
        raise InvalidCoverageDataError("Feature must be an object", index)
    props = feature.get("properties")
    if not isinstance(props, Mapping):
        raise InvalidCoverageDataError("Feature has no properties", index)

    location = _parse_coordinates(feature.get("geometry"), index)
    try:
        return CoveragePoint(
            status=props["status"],
            operator=props["operator"],
            city_name=props["city_name"],
            country=props.get("country"),
            device_type=props.get("phone_type"),
            technology=props.get("technology"),
            location=location,
        )
    except KeyError as e:
        raise InvalidCoverageDataError(f"Missing property {e.args[0]!r}", index) from e
    except ValidationError as e:
        raise InvalidCoverageDataError(f"Invalid properties: {e}", index) from e


def parse_feature_collection(document: Any) -> list[CoveragePoint]:
    """Convert a decoded FeatureCollection into CoveragePoints (document order).

    Raises:
        InvalidCoverageDataError: If the document is not a FeatureCollection
            or any feature is malformed.
    """
    if not isinstance(document, Mapping) or document.get("type") != "FeatureCollection":
        raise InvalidCoverageDataError("Document is not a GeoJSON FeatureCollection")
    features = document.get("features")
    if not isinstance(features, list):
        raise InvalidCoverageDataError("FeatureCollection has no features list")
    return [parse_feature(f, i) for i, f in enumerate(features)]


class GeoJsonCoverageAdapter:
    """Infrastructure adapter for coverage points stored as a GeoJSON file.

    Parameters
    ----------
    file_path: Path | str
        Location of the FeatureCollection document.
    """

    def __init__(self, file_path: Path | str) -> None:
        self.path = Path(file_path)
        self._points: tuple[CoveragePoint, ...] | None = None

    def load_points(self) -> list[CoveragePoint]:
        """Load (once) and return all coverage points.

        Raises:
            FileNotFoundError: If the file does not exist
            InvalidCoverageDataError: If the file is not a valid FeatureCollection
        """
        if self._points is None:
            self._points = tuple(self._read())
        return list(self._points)

    def find_nearby(
        self, point: GeoPoint, max_distance_m: float = DEFAULT_NEARBY_DISTANCE_M
    ) -> list[CoveragePoint]:
        """Points within ``max_distance_m`` meters (haversine) of ``point``."""
        if max_distance_m < 0:
            raise ValueError("max_distance_m must be >= 0")
        max_km = max_distance_m / 1000.0
        return [
            p
            for p in self.load_points()
            if haversine_km(
                point.latitude,
                point.longitude,
                p.location.latitude,
                p.location.longitude,
            )
            <= max_km
        ]

    def _read(self) -> list[CoveragePoint]:
        path = self.path

        # Check existence first to ensure missing files surface as FileNotFoundError
        if not path.exists():
            raise FileNotFoundError(str(path))

        if path.suffix.lower() not in ALLOWED_SUFFIXES:
            raise InvalidCoverageDataError(f"Unsupported file extension: {path.suffix}")

        try:
            if path.is_symlink():
                raise InvalidCoverageDataError("Symlinks are not permitted")
            if path.stat().st_size == 0:
                raise InvalidCoverageDataError("Empty file")
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            # Log only filename, errno and strerror; never the absolute path
            logger.error(
                "Failed to read %s (errno=%s, strerror=%s)",
                path.name,
                getattr(e, "errno", "unknown"),
                getattr(e, "strerror", "unknown"),
            )
            raise

        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidCoverageDataError(f"Corrupted or invalid JSON: {e}") from e

        points = parse_feature_collection(document)
        if not points:
            logger.warning("Coverage file %s: contains no features", path.name)
        logger.info("Coverage file %s: loaded %d points", path.name, len(points))
        return points
