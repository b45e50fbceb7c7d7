"""Tests for the GeoGrid broad-phase spatial index."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from domain.geo.grid import GeoGrid, GridConfig

TORONTO = (43.6532, -79.3832)


# ===========================================================================
# Build
# ===========================================================================
def test_build_counts_items_and_cells(point_factory):
    points = [
        point_factory(*TORONTO),
        point_factory(TORONTO[0] + 0.001, TORONTO[1]),  # same cell
        point_factory(49.2827, -123.1207),  # Vancouver
    ]
    grid = GeoGrid.build(points)

    assert len(grid) == 3
    assert grid.cell_count() == 2
    assert grid.cell_size == pytest.approx(0.1)


def test_build_empty_point_set():
    grid = GeoGrid.build([])
    assert len(grid) == 0
    assert grid.cell_count() == 0
    assert grid.query(*TORONTO) == []


def test_grid_config_rejects_non_positive_cell_size():
    with pytest.raises(ValidationError):
        GridConfig(cell_size_deg=0)


def test_cell_key_floors_each_coordinate():
    grid = GeoGrid.build([])
    lat_key, lng_key = grid.cell_key(*TORONTO)
    assert lat_key == pytest.approx(43.6)
    assert lng_key == pytest.approx(-79.4)


# ===========================================================================
# Query
# ===========================================================================
def test_query_finds_point_at_its_own_coordinates(point_factory):
    points = [
        point_factory(lat, lng)
        for lat, lng in [TORONTO, (0.0, 0.0), (-33.8688, 151.2093), (89.95, 179.95)]
    ]
    grid = GeoGrid.build(points)

    for p in points:
        found = grid.query(p.location.latitude, p.location.longitude)
        assert any(c is p for c in found)


def test_query_returns_neighbouring_cells(point_factory):
    center = point_factory(*TORONTO)
    north = point_factory(TORONTO[0] + 0.1, TORONTO[1])  # next cell north
    south_west = point_factory(TORONTO[0] - 0.1, TORONTO[1] - 0.1)
    grid = GeoGrid.build([center, north, south_west])

    found = grid.query(*TORONTO)

    assert {id(p) for p in found} == {id(center), id(north), id(south_west)}


def test_query_never_returns_points_beyond_one_cell(point_factory):
    """Points two or more cells away are invisible, whatever the intended radius."""
    two_cells_north = point_factory(TORONTO[0] + 0.2, TORONTO[1])
    far_east = point_factory(TORONTO[0], TORONTO[1] + 0.25)
    grid = GeoGrid.build([two_cells_north, far_east])

    assert grid.query(*TORONTO) == []


def test_query_returns_each_item_once(point_factory):
    points = [point_factory(*TORONTO) for _ in range(4)]
    grid = GeoGrid.build(points)

    found = grid.query(*TORONTO)

    assert len(found) == 4
    assert len({id(p) for p in found}) == 4


def test_query_references_original_items(point_factory):
    p = point_factory(*TORONTO)
    grid = GeoGrid.build([p])
    assert grid.query(*TORONTO)[0] is p


def test_alternate_cell_size_widens_neighbourhood(point_factory):
    p = point_factory(TORONTO[0] + 0.25, TORONTO[1])
    assert GeoGrid.build([p]).query(*TORONTO) == []
    assert GeoGrid.build([p], GridConfig(cell_size_deg=0.5)).query(*TORONTO) == [p]


def test_query_across_negative_coordinates(point_factory):
    # Cells on both sides of the prime meridian and equator are neighbours
    p = point_factory(0.05, -0.05)
    grid = GeoGrid.build([p])
    assert grid.query(-0.05, 0.05) == [p]
