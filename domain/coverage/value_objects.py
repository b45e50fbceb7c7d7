"""Coverage Bounded Context - Value Objects.

Immutable data structures for coverage observations and route analysis
results. All validation occurs at construction time via Pydantic.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from domain.geo.value_objects import GeoPoint


# ---------------------------------------------------------------------------
# TechnologyClass
# ---------------------------------------------------------------------------
class TechnologyClass(str, Enum):
    """Closed set of network technology classes with an "other" catch-all."""

    FIVE_G = "5G"
    FOUR_G = "4G"
    THREE_G = "3G"
    OTHER = "other"

    @classmethod
    def from_status(cls, status: str) -> "TechnologyClass":
        """Map a raw status label to its class; unknown labels are OTHER."""
        if status in _KNOWN_STATUSES:
            return cls(status)
        return cls.OTHER


_KNOWN_STATUSES = frozenset({"5G", "4G", "3G"})


# ---------------------------------------------------------------------------
# CoveragePoint
# ---------------------------------------------------------------------------
class CoveragePoint(BaseModel):
    """A single geo-tagged coverage observation (Value Object).

    Immutable once loaded. The spatial index and the engine hold references
    to these objects and deduplicate them by identity, so two observations
    with identical fields still count twice.
    """

    status: str  # Technology/status label, e.g. "5G"
    operator: str
    city_name: str
    location: GeoPoint
    country: str | None = None
    device_type: str | None = None  # "phone_type" in source documents
    technology: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def technology_class(self) -> TechnologyClass:
        return TechnologyClass.from_status(self.status)


# ---------------------------------------------------------------------------
# FilterState
# ---------------------------------------------------------------------------
class FilterState(BaseModel):
    """Four independent allow-lists (Value Object).

    An empty dimension imposes no restriction. A point passes iff it passes
    every dimension; within a dimension membership is enough.

    ``country`` and ``device_type`` are optional on points: a point that
    does not carry the attribute is not excluded by that dimension.
    """

    countries: tuple[str, ...] = ()
    device_types: tuple[str, ...] = ()
    operators: tuple[str, ...] = ()
    statuses: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)

    def matches(self, point: CoveragePoint) -> bool:
        if (
            self.countries
            and point.country is not None
            and point.country not in self.countries
        ):
            return False
        if (
            self.device_types
            and point.device_type is not None
            and point.device_type not in self.device_types
        ):
            return False
        if self.operators and point.operator not in self.operators:
            return False
        if self.statuses and point.status not in self.statuses:
            return False
        return True

    def is_empty(self) -> bool:
        return not (
            self.countries or self.device_types or self.operators or self.statuses
        )

    def canonical(self) -> dict[str, list[str]]:
        """Order-insensitive form: each dimension sorted and de-duplicated."""
        return {
            "countries": sorted(set(self.countries)),
            "device_types": sorted(set(self.device_types)),
            "operators": sorted(set(self.operators)),
            "statuses": sorted(set(self.statuses)),
        }


# ---------------------------------------------------------------------------
# CoverageBreakdown
# ---------------------------------------------------------------------------
class CoverageBreakdown(BaseModel):
    """Observation count per technology class (Value Object)."""

    five_g: int = Field(default=0, ge=0)
    four_g: int = Field(default=0, ge=0)
    three_g: int = Field(default=0, ge=0)
    other: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_counts(
        cls, counts: Mapping[TechnologyClass, int]
    ) -> "CoverageBreakdown":
        return cls(
            five_g=counts.get(TechnologyClass.FIVE_G, 0),
            four_g=counts.get(TechnologyClass.FOUR_G, 0),
            three_g=counts.get(TechnologyClass.THREE_G, 0),
            other=counts.get(TechnologyClass.OTHER, 0),
        )

    def count(self, tech: TechnologyClass) -> int:
        return self.as_dict()[tech.value]

    def as_dict(self) -> dict[str, int]:
        """Counts keyed by class label (``"5G"``, ``"4G"``, ``"3G"``, ``"other"``)."""
        return {
            TechnologyClass.FIVE_G.value: self.five_g,
            TechnologyClass.FOUR_G.value: self.four_g,
            TechnologyClass.THREE_G.value: self.three_g,
            TechnologyClass.OTHER.value: self.other,
        }

    @property
    def total(self) -> int:
        return self.five_g + self.four_g + self.three_g + self.other

    @property
    def has_observations(self) -> bool:
        return self.total > 0

    def __add__(self, other: "CoverageBreakdown") -> "CoverageBreakdown":
        if not isinstance(other, CoverageBreakdown):
            return NotImplemented
        return CoverageBreakdown(
            five_g=self.five_g + other.five_g,
            four_g=self.four_g + other.four_g,
            three_g=self.three_g + other.three_g,
            other=self.other + other.other,
        )


# ---------------------------------------------------------------------------
# RouteSegment
# ---------------------------------------------------------------------------
class RouteSegment(BaseModel):
    """A contiguous chunk of route points with its coverage result (Value Object).

    Invariants:
        path is non-empty
        score in [0, 1]
        score == 0 when the breakdown has no observations
    """

    path: tuple[GeoPoint, ...]
    score: float = Field(ge=0, le=1)
    breakdown: CoverageBreakdown
    length_m: float = Field(default=0.0, ge=0)  # WGS84 geodesic length of path

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_segment(self) -> "RouteSegment":
        if not self.path:
            raise ValueError("Segment path must contain at least one point")
        if not self.breakdown.has_observations and self.score != 0:
            raise ValueError(
                f"Segment without observations must score 0, got {self.score}"
            )
        return self

    @property
    def nearby_points(self) -> int:
        return self.breakdown.total


# ---------------------------------------------------------------------------
# CoverageStats
# ---------------------------------------------------------------------------
class DistributionEntry(BaseModel):
    """Per-segment reporting record."""

    score: float
    color: str
    nearby_points: int = Field(ge=0)

    model_config = ConfigDict(frozen=True)


class CoverageStats(BaseModel):
    """Route-level aggregate over kept segments (Value Object).

    ``average_coverage`` is NaN when ``total_segments == 0``; callers must
    check ``has_data`` before treating it as a score.
    """

    total_segments: int = Field(ge=0)
    average_coverage: float
    coverage_distribution: tuple[DistributionEntry, ...] = ()
    status_totals: CoverageBreakdown = CoverageBreakdown()
    covered_length_m: float = Field(default=0.0, ge=0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_stats(self) -> "CoverageStats":
        if len(self.coverage_distribution) != self.total_segments:
            raise ValueError(
                f"coverage_distribution has {len(self.coverage_distribution)} "
                f"entries for {self.total_segments} segments"
            )
        if self.total_segments == 0 and not math.isnan(self.average_coverage):
            raise ValueError("average_coverage must be NaN when there are no segments")
        return self

    @property
    def has_data(self) -> bool:
        return self.total_segments > 0

    @classmethod
    def from_segments(
        cls,
        kept: Iterable[RouteSegment],
        colors: Iterable[str],
        status_totals: CoverageBreakdown | None = None,
    ) -> "CoverageStats":
        """Aggregate kept segments; ``colors`` is aligned with ``kept``."""
        segments = list(kept)
        distribution = tuple(
            DistributionEntry(score=s.score, color=c, nearby_points=s.nearby_points)
            for s, c in zip(segments, colors, strict=True)
        )
        if segments:
            average = sum(s.score for s in segments) / len(segments)
        else:
            average = math.nan
        return cls(
            total_segments=len(segments),
            average_coverage=average,
            coverage_distribution=distribution,
            status_totals=status_totals or CoverageBreakdown(),
            covered_length_m=sum(s.length_m for s in segments),
        )


class RouteAnalysis(NamedTuple):
    """Result of analysing one route; unpacks as ``segments, stats``."""

    segments: tuple[RouteSegment, ...]
    stats: CoverageStats
