"""Coverage Bounded Context - Domain Services.

Pure domain logic for route coverage analysis.
NO I/O operations - point loading is implemented by infrastructure adapters
under `src/infrastructure/coverage/geojson_adapter.py` via domain ports.

Per-segment pipeline (two-phase spatial filter):
1) Cache lookup on the (segment, filters, radius) fingerprint
2) Broad phase: GeoGrid 3x3-cell query around every segment point,
   candidates unioned and deduplicated by identity
3) FilterState on each candidate
4) Narrow phase: haversine distance <= radius to at least one segment point
5) Mean-weight score and per-class breakdown, stored in the cache
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Iterable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from domain.coverage.cache import (
    InMemorySegmentCache,
    SegmentCache,
    segment_fingerprint,
)
from domain.coverage.errors import InvalidRouteError
from domain.coverage.scoring import CoverageScorer, ScoringWeights, coverage_color
from domain.coverage.value_objects import (
    CoverageBreakdown,
    CoveragePoint,
    CoverageStats,
    FilterState,
    RouteAnalysis,
    RouteSegment,
)
from domain.geo.distance import degrees_to_km, geodesic_length_m, haversine_matrix_km
from domain.geo.grid import GeoGrid, GridConfig
from domain.geo.value_objects import GeoPoint

# Module-level logger (reused across all calls)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
DEFAULT_SEGMENT_LENGTH = 5  # Route points per segment
DEFAULT_SEARCH_RADIUS_DEG = 0.01  # About 1.1 km at the equator

_NO_FILTERS = FilterState()


class EngineConfig(BaseModel):
    """Route analysis parameters (Value Object).

    max_workers > 1 scores segments on a thread pool; results are still
    aggregated in route order.
    """

    segment_length: int = Field(default=DEFAULT_SEGMENT_LENGTH, ge=1)
    search_radius_deg: float = Field(
        default=DEFAULT_SEARCH_RADIUS_DEG, ge=0, allow_inf_nan=False
    )
    max_workers: int = Field(default=1, ge=1)

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Route splitting
# ---------------------------------------------------------------------------
def split_route(
    path: Sequence[GeoPoint], segment_length: int = DEFAULT_SEGMENT_LENGTH
) -> list[tuple[GeoPoint, ...]]:
    """Split ``path`` into contiguous chunks of ``segment_length`` points.

    Order is preserved and the final, possibly shorter, remainder is kept.
    A 12-point path with length 5 gives chunks of sizes [5, 5, 2].

    Raises:
        InvalidRouteError: If segment_length is not positive.
    """
    if segment_length < 1:
        raise InvalidRouteError(
            f"segment_length must be positive, got {segment_length}"
        )
    return [
        tuple(path[i : i + segment_length]) for i in range(0, len(path), segment_length)
    ]


def _coerce_path(path: Iterable[Any]) -> tuple[GeoPoint, ...]:
    # Fails fast with InvalidCoordinateError on non-finite or malformed input
    return tuple(GeoPoint.coerce(p) for p in path)


# ---------------------------------------------------------------------------
# Main Service: RouteCoverageEngine
# ---------------------------------------------------------------------------
class RouteCoverageEngine:
    """Scores route coverage against one immutable set of observations.

    The grid is built once at construction and the cache lives as long as the
    engine. When the point set changes, build a new engine.

    Parameters
    ----------
    points: Iterable[CoveragePoint]
        The observation set. Points are referenced, not copied.
    grid_config: GridConfig | None
        Spatial index parameters (default 0.1 degree cells).
    weights: ScoringWeights | None
        Technology weights (default 5G 1.0, 4G 0.7, 3G 0.4, other 0.1).
    config: EngineConfig | None
        Segment length, default search radius and worker count.
    cache: SegmentCache | None
        Result cache; defaults to an unbounded InMemorySegmentCache.

    Example:
        >>> engine = RouteCoverageEngine(points)
        >>> segments, stats = engine.analyze_route(route_points, FilterState())
        >>> if stats.has_data:
        ...     print(f"{stats.average_coverage:.1%}")
    """

    def __init__(
        self,
        points: Iterable[CoveragePoint],
        *,
        grid_config: GridConfig | None = None,
        weights: ScoringWeights | None = None,
        config: EngineConfig | None = None,
        cache: SegmentCache | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.grid: GeoGrid[CoveragePoint] = GeoGrid.build(points, grid_config)
        self.scorer = CoverageScorer(weights)
        if cache is None:
            cache = InMemorySegmentCache()
        self.cache: SegmentCache = cache

    # -----------------------------------------------------------------------
    # Segment scoring
    # -----------------------------------------------------------------------
    def segment_coverage(
        self,
        chunk: Iterable[Any],
        filters: FilterState | None = None,
        radius_deg: float | None = None,
    ) -> RouteSegment:
        """Coverage of one route chunk.

        Args:
            chunk: Route points (GeoPoint or (lat, lng) pairs), at least one
            filters: Allow-lists; None or all-empty means no filtering
            radius_deg: Search radius in degrees of arc; defaults to the
                engine config (0.01 degree, about 1.1 km)

        Returns:
            RouteSegment with score in [0, 1] and per-class breakdown. Calling
            twice with the same arguments returns the cached object.

        Raises:
            InvalidCoordinateError: If any chunk point is not a valid coordinate
            InvalidRouteError: If chunk is empty or radius_deg is negative
                or not finite
        """
        path = _coerce_path(chunk)
        if not path:
            raise InvalidRouteError("Segment must contain at least one point")
        if filters is None:
            filters = _NO_FILTERS
        radius_deg = self._check_radius(radius_deg)

        key = segment_fingerprint(path, filters, radius_deg)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        segment = self._compute_segment(path, filters, radius_deg)
        self.cache.put(key, segment)
        return segment

    def _check_radius(self, radius_deg: float | None) -> float:
        if radius_deg is None:
            return self.config.search_radius_deg
        if not math.isfinite(radius_deg) or radius_deg < 0:
            raise InvalidRouteError(
                f"radius_deg must be a finite number >= 0, got {radius_deg}"
            )
        return radius_deg

    def _compute_segment(
        self, path: Sequence[GeoPoint], filters: FilterState, radius_deg: float
    ) -> RouteSegment:
        """Scores one chunk without touching the cache."""
        candidates = self._broad_phase(path)
        passing = [p for p in candidates if filters.matches(p)]
        nearby = self._narrow_phase(path, passing, degrees_to_km(radius_deg))

        score, breakdown = self.scorer.tally(p.status for p in nearby)
        return RouteSegment(
            path=tuple(path),
            score=score,
            breakdown=breakdown,
            length_m=geodesic_length_m(path),
        )

    def _broad_phase(self, path: Sequence[GeoPoint]) -> list[CoveragePoint]:
        """Grid candidates around every chunk point, deduplicated by identity."""
        seen: dict[int, CoveragePoint] = {}
        for anchor in path:
            for candidate in self.grid.query(anchor.latitude, anchor.longitude):
                seen.setdefault(id(candidate), candidate)
        return list(seen.values())

    @staticmethod
    def _narrow_phase(
        path: Sequence[GeoPoint], candidates: Sequence[CoveragePoint], radius_km: float
    ) -> list[CoveragePoint]:
        """Candidates within ``radius_km`` of at least one chunk point."""
        if not candidates:
            return []
        distances = haversine_matrix_km(
            [c.location.latitude for c in candidates],
            [c.location.longitude for c in candidates],
            [p.latitude for p in path],
            [p.longitude for p in path],
        )
        within = np.any(distances <= radius_km, axis=1)
        return [c for c, keep in zip(candidates, within) if keep]

    # -----------------------------------------------------------------------
    # Route analysis
    # -----------------------------------------------------------------------
    def analyze_route(
        self, path: Iterable[Any], filters: FilterState | None = None
    ) -> RouteAnalysis:
        """Split a route into segments, score each, and aggregate statistics.

        Segments with no qualifying observation of any class are dropped from
        both the returned segments and the statistics.

        Args:
            path: Ordered route points (GeoPoint or (lat, lng) pairs)
            filters: Allow-lists; None or all-empty means no filtering

        Returns:
            RouteAnalysis(segments, stats). ``stats.average_coverage`` is NaN
            when no segment was kept; check ``stats.has_data`` first.

        Raises:
            InvalidCoordinateError: If any route point is not a valid coordinate
        """
        points = _coerce_path(path)
        if filters is None:
            filters = _NO_FILTERS
        chunks = split_route(points, self.config.segment_length)

        if self.config.max_workers > 1 and len(chunks) > 1:
            results = self._score_chunks_threaded(chunks, filters)
        else:
            results = [self.segment_coverage(c, filters) for c in chunks]

        status_totals = sum((r.breakdown for r in results), CoverageBreakdown())
        kept = tuple(r for r in results if r.breakdown.has_observations)
        stats = CoverageStats.from_segments(
            kept, (coverage_color(s.score) for s in kept), status_totals
        )

        logger.debug(
            "Route of %d points: %d/%d segments kept, %d observations",
            len(points),
            len(kept),
            len(chunks),
            status_totals.total,
        )
        return RouteAnalysis(segments=kept, stats=stats)

    def _score_chunks_threaded(
        self, chunks: Sequence[tuple[GeoPoint, ...]], filters: FilterState
    ) -> list[RouteSegment]:
        """Score chunks on a thread pool with sequential cache semantics.

        Chunks absent from the cache are computed on the pool. Every get and
        put is then issued from the calling thread in route order, so bounded
        caches evict the same entries as they do in the sequential loop.
        """
        radius_deg = self.config.search_radius_deg
        keys = [segment_fingerprint(c, filters, radius_deg) for c in chunks]

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
            pending: dict[str, Future[RouteSegment]] = {}
            for key, chunk in zip(keys, chunks):
                if key not in pending and key not in self.cache:
                    pending[key] = pool.submit(
                        self._compute_segment, chunk, filters, radius_deg
                    )

            results: list[RouteSegment] = []
            for key, chunk in zip(keys, chunks):
                segment = self.cache.get(key)
                if segment is None:
                    future = pending.pop(key, None)
                    if future is not None:
                        segment = future.result()
                    else:
                        # Evicted earlier in this route
                        segment = self._compute_segment(chunk, filters, radius_deg)
                    self.cache.put(key, segment)
                results.append(segment)
        return results


# ---------------------------------------------------------------------------
# Point set helpers
# ---------------------------------------------------------------------------
class PointSetSummary(BaseModel):
    """Counts of observations by operator and by status (Value Object)."""

    total_points: int = Field(ge=0)
    by_operator: dict[str, int]
    by_status: dict[str, int]

    model_config = ConfigDict(frozen=True)


def available_filters(points: Iterable[CoveragePoint]) -> FilterState:
    """Distinct values present in the point set, per filter dimension (sorted).

    Missing optional attributes and empty strings are not offered as options.
    """
    countries: set[str] = set()
    device_types: set[str] = set()
    operators: set[str] = set()
    statuses: set[str] = set()
    for point in points:
        if point.country:
            countries.add(point.country)
        if point.device_type:
            device_types.add(point.device_type)
        if point.operator:
            operators.add(point.operator)
        if point.status:
            statuses.add(point.status)
    return FilterState(
        countries=tuple(sorted(countries)),
        device_types=tuple(sorted(device_types)),
        operators=tuple(sorted(operators)),
        statuses=tuple(sorted(statuses)),
    )


def summarize_points(points: Iterable[CoveragePoint]) -> PointSetSummary:
    """Observation counts per operator and per raw status label."""
    by_operator: Counter[str] = Counter()
    by_status: Counter[str] = Counter()
    total = 0
    for point in points:
        by_operator[point.operator] += 1
        by_status[point.status] += 1
        total += 1
    return PointSetSummary(
        total_points=total,
        by_operator=dict(by_operator.most_common()),
        by_status=dict(by_status.most_common()),
    )
