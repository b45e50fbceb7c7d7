"""Geo Bounded Context - Uniform Grid Spatial Index.

Broad-phase index for "which points are near (lat, lng)?" queries.

The grid partitions items into square cells of ``cell_size_deg`` degrees and
answers queries with the 3x3 block of cells around the query cell. It is a
PRE-FILTER: callers must still run an exact distance test on the returned
candidates.

Boundary behavior:
    Only the 3x3 neighbourhood is searched, whatever radius the caller has in
    mind. Any search radius larger than one cell width (0.1 degree, about
    11 km at the equator) is silently truncated: points more than one cell
    away are never returned. This is the contract, not a bug; widening the
    search means changing the contract and its tests together.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from typing import Generic, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from domain.geo.value_objects import GeoPoint

# Module-level logger (reused across all calls)
logger = logging.getLogger(__name__)

DEFAULT_CELL_SIZE_DEG = 0.1


class GridConfig(BaseModel):
    """Grid index parameters (Value Object)."""

    cell_size_deg: float = Field(default=DEFAULT_CELL_SIZE_DEG, gt=0, le=180)

    model_config = ConfigDict(frozen=True)


class Located(Protocol):
    """Anything with a ``location`` GeoPoint."""

    @property
    def location(self) -> GeoPoint: ...


T = TypeVar("T", bound=Located)

CellIndex = tuple[int, int]
CellKey = tuple[float, float]


class GeoGrid(Generic[T]):
    """Immutable uniform-cell index over a fixed item set.

    Items are referenced, never copied. There is no insert API: a changed
    item set means building a new grid.

    Complexity:
        build: O(n)
        query: O(1) average for roughly uniform density, O(n) worst case
        when every item shares one cell.

    Example::

        grid = GeoGrid.build(points)
        candidates = grid.query(43.6532, -79.3832)
    """

    def __init__(
        self, buckets: dict[CellIndex, list[T]], config: GridConfig, size: int
    ) -> None:
        self._buckets = buckets
        self.config = config
        self._size = size

    @classmethod
    def build(
        cls, items: Iterable[T], config: GridConfig | None = None
    ) -> "GeoGrid[T]":
        """Partition ``items`` into cells in a single pass."""
        config = config or GridConfig()
        buckets: dict[CellIndex, list[T]] = {}
        size = 0
        for item in items:
            loc = item.location
            index = _cell_index(loc.latitude, loc.longitude, config.cell_size_deg)
            buckets.setdefault(index, []).append(item)
            size += 1

        logger.debug(
            "GeoGrid: indexed %d items into %d cells (cell size %.4f deg)",
            size,
            len(buckets),
            config.cell_size_deg,
        )
        return cls(buckets, config, size)

    @property
    def cell_size(self) -> float:
        return self.config.cell_size_deg

    def cell_key(self, lat: float, lng: float) -> CellKey:
        """Return the ``(lat_bucket, lng_bucket)`` of the cell holding (lat, lng).

        Each bucket is ``floor(coord / cell_size) * cell_size``.
        """
        i, j = _cell_index(lat, lng, self.cell_size)
        return (i * self.cell_size, j * self.cell_size)

    def query(self, lat: float, lng: float) -> list[T]:
        """Return items in the 3x3 block of cells centred on (lat, lng)'s cell.

        No ordering guarantee. An item is returned at most once because each
        item lives in exactly one cell.
        """
        ci, cj = _cell_index(lat, lng, self.cell_size)
        out: list[T] = []
        for di in (-1, 0, 1):
            for dj in (-1, 0, 1):
                bucket = self._buckets.get((ci + di, cj + dj))
                if bucket:
                    out.extend(bucket)
        return out

    def cell_count(self) -> int:
        """Number of non-empty cells."""
        return len(self._buckets)

    def __len__(self) -> int:
        return self._size


def _cell_index(lat: float, lng: float, cell_size: float) -> CellIndex:
    # Neighbour lookups step on integer indices so they always land on the
    # exact key a build-time item received.
    return (math.floor(lat / cell_size), math.floor(lng / cell_size))
