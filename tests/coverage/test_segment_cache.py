"""Tests for segment caches and cache fingerprints."""

from __future__ import annotations

import threading

import pytest

from domain.coverage.cache import (
    InMemorySegmentCache,
    LRUSegmentCache,
    segment_fingerprint,
)
from domain.coverage.value_objects import CoverageBreakdown, FilterState, RouteSegment
from domain.geo.value_objects import GeoPoint

PATH = (
    GeoPoint(latitude=43.6532, longitude=-79.3832),
    GeoPoint(latitude=43.6542, longitude=-79.3832),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _segment(score: float = 1.0) -> RouteSegment:
    return RouteSegment(path=PATH, score=score, breakdown=CoverageBreakdown(five_g=1))


# ===========================================================================
# Fingerprint
# ===========================================================================
def test_fingerprint_is_deterministic():
    f = FilterState(operators=("A", "B"))
    assert segment_fingerprint(PATH, f, 0.01) == segment_fingerprint(PATH, f, 0.01)


def test_fingerprint_ignores_filter_order_and_duplicates():
    a = FilterState(operators=("B", "A"), statuses=("5G", "4G"))
    b = FilterState(operators=("A", "B", "A"), statuses=("4G", "5G"))
    assert segment_fingerprint(PATH, a, 0.01) == segment_fingerprint(PATH, b, 0.01)


def test_fingerprint_distinguishes_filters():
    no_filter = segment_fingerprint(PATH, FilterState(), 0.01)
    op_filter = segment_fingerprint(PATH, FilterState(operators=("A",)), 0.01)
    country_filter = segment_fingerprint(PATH, FilterState(countries=("A",)), 0.01)
    assert len({no_filter, op_filter, country_filter}) == 3


def test_fingerprint_distinguishes_paths_and_radius():
    base = segment_fingerprint(PATH, FilterState(), 0.01)
    reversed_path = segment_fingerprint(tuple(reversed(PATH)), FilterState(), 0.01)
    shifted = segment_fingerprint(
        (GeoPoint(latitude=43.6532 + 1e-12, longitude=-79.3832), PATH[1]),
        FilterState(),
        0.01,
    )
    wider = segment_fingerprint(PATH, FilterState(), 0.02)
    assert len({base, reversed_path, shifted, wider}) == 4


def test_fingerprint_is_hex_sha256():
    key = segment_fingerprint(PATH, FilterState(), 0.01)
    assert len(key) == 64
    int(key, 16)


# ===========================================================================
# InMemorySegmentCache
# ===========================================================================
def test_in_memory_cache_get_put():
    cache = InMemorySegmentCache()
    seg = _segment()

    assert cache.get("k") is None
    cache.put("k", seg)

    assert cache.get("k") is seg
    assert "k" in cache
    assert len(cache) == 1
    assert (cache.hits, cache.misses) == (1, 1)


def test_in_memory_cache_last_writer_wins():
    cache = InMemorySegmentCache()
    first, second = _segment(1.0), _segment(0.5)
    cache.put("k", first)
    cache.put("k", second)
    assert cache.get("k") is second
    assert len(cache) == 1


def test_in_memory_cache_concurrent_puts():
    cache = InMemorySegmentCache()
    seg = _segment()

    def writer(offset: int) -> None:
        for i in range(200):
            cache.put(f"{offset}-{i}", seg)

    threads = [threading.Thread(target=writer, args=(t,)) for t in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(cache) == 8 * 200


# ===========================================================================
# LRUSegmentCache
# ===========================================================================
def test_lru_cache_evicts_least_recently_used():
    cache = LRUSegmentCache(max_entries=2)
    a, b, c = _segment(1.0), _segment(0.5), _segment(0.4)

    cache.put("a", a)
    cache.put("b", b)
    assert cache.get("a") is a  # "b" is now least recently used
    cache.put("c", c)

    assert len(cache) == 2
    assert "b" not in cache
    assert cache.get("a") is a
    assert cache.get("c") is c


def test_lru_cache_rejects_non_positive_size():
    with pytest.raises(ValueError):
        LRUSegmentCache(max_entries=0)
