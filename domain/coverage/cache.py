"""Coverage Bounded Context - Segment Cache.

Memoization of RouteSegment results keyed by a fingerprint of
(segment coordinates, canonical filters, search radius).

The cache policy is decoupled from the engine through the SegmentCache port:
- InMemorySegmentCache: unbounded, no expiry, lives as long as its engine
- LRUSegmentCache: bounded, evicts the least recently used entry

There is no invalidation API. A cache belongs to one engine, which belongs
to one immutable point set; a new point set means a new engine and cache.
"""

from __future__ import annotations

import hashlib
import json
import threading
from collections import OrderedDict
from collections.abc import Iterable
from typing import Protocol

from domain.coverage.value_objects import FilterState, RouteSegment
from domain.geo.value_objects import GeoPoint


class SegmentCache(Protocol):
    """Port for segment result caches.

    The engine issues every get and put from the thread that called it, in
    route order. ``__contains__`` must not count as a lookup or refresh
    recency; it is used to plan work before any get is issued.
    """

    def get(self, key: str) -> RouteSegment | None: ...

    def put(self, key: str, segment: RouteSegment) -> None: ...

    def __len__(self) -> int: ...

    def __contains__(self, key: object) -> bool: ...


class InMemorySegmentCache:
    """Unbounded, never-expiring dict cache guarded by a lock."""

    def __init__(self) -> None:
        self._entries: dict[str, RouteSegment] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> RouteSegment | None:
        with self._lock:
            segment = self._entries.get(key)
            if segment is None:
                self.misses += 1
            else:
                self.hits += 1
            return segment

    def put(self, key: str, segment: RouteSegment) -> None:
        with self._lock:
            self._entries[key] = segment

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries


class LRUSegmentCache:
    """Bounded cache that evicts the least recently used entry.

    Parameters
    ----------
    max_entries: int
        Maximum number of cached segments; must be positive.
    """

    def __init__(self, max_entries: int) -> None:
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self.max_entries = max_entries
        self._entries: OrderedDict[str, RouteSegment] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> RouteSegment | None:
        with self._lock:
            segment = self._entries.get(key)
            if segment is not None:
                self._entries.move_to_end(key)
            return segment

    def put(self, key: str, segment: RouteSegment) -> None:
        with self._lock:
            self._entries[key] = segment
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries


def segment_fingerprint(
    path: Iterable[GeoPoint], filters: FilterState, radius_deg: float
) -> str:
    """Deterministic key for a (segment, filters, radius) triple.

    Coordinates are serialized with ``repr`` so distinct floats never share a
    key. Filters are canonicalized (sorted, de-duplicated) so reordered but
    identical allow-lists produce the same key. The document is hashed with
    SHA-256.
    """
    document = {
        "path": [[repr(p.latitude), repr(p.longitude)] for p in path],
        "filters": filters.canonical(),
        "radius_deg": repr(float(radius_deg)),
    }
    payload = json.dumps(document, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
