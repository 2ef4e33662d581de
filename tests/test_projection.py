"""Test Web Mercator projection and tile footprints.

Tests for src.heatmap.projection:
    - Known projections (origin, antimeridian, latitude limit)
    - project/unproject inverse
    - tile_bounds corners project back onto the tile rectangle
    - Padding grows the bbox by exactly that many pixels
    - Latitudes beyond the Mercator limit → ProjectionError

Test cases:
    - test_project_known_points()
    - test_project_unproject_roundtrip()
    - test_tile_bounds_roundtrip()
    - test_tile_bounds_padding()
    - test_tile_bounds_edge_rows_clamped()
    - test_tile_bounds_world()
    - test_project_rejects_polar_latitudes()
    - test_tile_padding()

Run:
    pytest tests/test_projection.py -v
"""

import pytest

from src.heatmap.projection import (
    MAX_LATITUDE,
    TILE_SIZE,
    project,
    tile_bounds,
    tile_padding,
    unproject,
    world_size,
)
from src.utils.errors import ProjectionError


def test_project_known_points():
    assert world_size(0) == 256
    assert world_size(5) == 8192

    centre = project(0.0, 0.0, 0)
    assert centre.x == pytest.approx(128.0)
    assert centre.y == pytest.approx(128.0)

    top_left = project(-180.0, MAX_LATITUDE, 1)
    assert top_left.x == pytest.approx(0.0)
    assert top_left.y == pytest.approx(0.0, abs=1e-6)

    bottom_right = project(180.0, -MAX_LATITUDE, 1)
    assert bottom_right.x == pytest.approx(512.0)
    assert bottom_right.y == pytest.approx(512.0, abs=1e-6)


@pytest.mark.parametrize("lon,lat,zoom", [
    (2.3522, 48.8566, 12),
    (-122.4194, 37.7749, 16),
    (151.2093, -33.8688, 8),
    (0.0, 0.0, 0),
])
def test_project_unproject_roundtrip(lon, lat, zoom):
    point = project(lon, lat, zoom)
    lon2, lat2 = unproject(point.x, point.y, zoom)
    assert lon2 == pytest.approx(lon, abs=1e-9)
    assert lat2 == pytest.approx(lat, abs=1e-9)


@pytest.mark.parametrize("x,y,z", [(0, 0, 0), (0, 0, 5), (31, 31, 5), (16, 10, 5), (2048, 1361, 12)])
def test_tile_bounds_roundtrip(x, y, z):
    west, south, east, north = tile_bounds(x, y, z)
    assert west < east and south < north

    nw = project(west, north, z)
    se = project(east, south, z)
    assert nw.x == pytest.approx(x * TILE_SIZE, abs=1e-6)
    assert nw.y == pytest.approx(y * TILE_SIZE, abs=1e-6)
    assert se.x == pytest.approx((x + 1) * TILE_SIZE, abs=1e-6)
    assert se.y == pytest.approx((y + 1) * TILE_SIZE, abs=1e-6)


def test_tile_bounds_padding():
    x, y, z, padding = 16, 10, 5, 3
    west, south, east, north = tile_bounds(x, y, z, padding)
    nw = project(west, north, z)
    se = project(east, south, z)
    assert nw.x == pytest.approx(x * TILE_SIZE - padding, abs=1e-6)
    assert nw.y == pytest.approx(y * TILE_SIZE - padding, abs=1e-6)
    assert se.x == pytest.approx((x + 1) * TILE_SIZE + padding, abs=1e-6)
    assert se.y == pytest.approx((y + 1) * TILE_SIZE + padding, abs=1e-6)


def test_tile_bounds_edge_rows_clamped():
    # padding pushes past the plane edge on the top and bottom rows
    for y in (0, 31):
        west, south, east, north = tile_bounds(7, y, 5, padding=3)
        assert -MAX_LATITUDE <= south < north <= MAX_LATITUDE
        project(west, north, 5)
        project(east, south, 5)

    assert tile_bounds(0, 0, 5, padding=3)[3] == MAX_LATITUDE
    assert tile_bounds(0, 31, 5, padding=3)[1] == -MAX_LATITUDE


def test_tile_bounds_world():
    west, south, east, north = tile_bounds(0, 0, 0)
    assert west == pytest.approx(-180.0)
    assert east == pytest.approx(180.0)
    assert north == pytest.approx(MAX_LATITUDE, abs=1e-9)
    assert south == pytest.approx(-MAX_LATITUDE, abs=1e-9)


@pytest.mark.parametrize("lat", [85.06, -85.06, 90.0, -90.0])
def test_project_rejects_polar_latitudes(lat):
    with pytest.raises(ProjectionError):
        project(0.0, lat, 5)


@pytest.mark.parametrize("line_width,expected", [(1, 1), (2, 1), (2.5, 2), (3, 2), (10, 5)])
def test_tile_padding(line_width, expected):
    assert tile_padding(line_width) == expected
