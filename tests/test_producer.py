"""Test the tile engine end to end.

Tests for src.heatmap.producer:
    - Output is 256·256·4 bytes, row-major RGBA
    - Source is queried once with the padded tile bbox and the filter
    - 10 px horizontal path at tile (0, 0, 5) → 2 px band only
    - Bad tile address → ValidationError before any source call
    - Bad options → ConfigError before any source call
    - One-coordinate path from the source → GeometryError
    - Source returning unclipped data → BoundsError
    - PNG and sync variants

Test cases:
    - test_render_tile_bytes()
    - test_source_called_with_padded_bbox()
    - test_render_tile_band()
    - test_render_tile_from_in_memory_source()
    - test_invalid_address_never_queries_source()
    - test_invalid_options_never_queries_source()
    - test_one_coordinate_path_raises()
    - test_unclipped_path_raises()
    - test_render_tile_png()
    - test_render_tile_sync()

Run:
    pytest tests/test_producer.py -v
"""

import asyncio
import io

import numpy as np
import pytest
from PIL import Image

from src.heatmap.producer import HeatmapProducer
from src.heatmap.projection import TILE_SIZE, tile_bounds, unproject
from src.heatmap.sources import InMemoryPathSource, PathFilter
from src.utils.errors import BoundsError, ConfigError, GeometryError, ValidationError


class SpySource:
    """Path source returning fixed paths and recording every call."""

    def __init__(self, paths=None):
        self.paths = paths or []
        self.calls = []

    async def get_paths(self, bbox, path_filter=None):
        self.calls.append((bbox, path_filter))
        return self.paths


def band_path(zoom=5):
    """10 px horizontal path at world pixels (100, 100) → (110, 100)."""
    return [unproject(100, 100, zoom), unproject(110, 100, zoom)]


@pytest.fixture
def spy():
    return SpySource([band_path()])


# ============================================================================
# RENDERING
# ============================================================================

def test_render_tile_bytes(spy):
    data = asyncio.run(HeatmapProducer(spy).render_tile(0, 0, 5))
    assert isinstance(data, bytes)
    assert len(data) == TILE_SIZE * TILE_SIZE * 4


def test_source_called_with_padded_bbox():
    spy = SpySource()
    path_filter = PathFilter(sport_types=("Run",))
    asyncio.run(HeatmapProducer(spy).render_tile(16, 10, 5, {"lineWidth": 6}, path_filter))

    assert len(spy.calls) == 1
    bbox, received_filter = spy.calls[0]
    assert bbox == pytest.approx(tile_bounds(16, 10, 5, padding=3))
    assert received_filter is path_filter


def test_render_tile_band(spy):
    data = asyncio.run(HeatmapProducer(spy).render_tile(0, 0, 5))
    bitmap = np.frombuffer(data, dtype=np.uint8).reshape(TILE_SIZE, TILE_SIZE, 4)

    rows, cols = np.nonzero(bitmap[..., 3])
    assert set(rows) == {99, 100, 101}
    assert set(cols) == set(range(100, 111))
    assert not bitmap[bitmap[..., 3] == 0].any()


def test_render_tile_from_in_memory_source():
    source = InMemoryPathSource.from_paths([band_path()])
    producer = HeatmapProducer(source)
    from_memory = asyncio.run(producer.render_tile(0, 0, 5))
    from_spy = asyncio.run(HeatmapProducer(SpySource([band_path()])).render_tile(0, 0, 5))
    assert from_memory == from_spy

    # a tile far away receives nothing
    empty = asyncio.run(producer.render_tile(20, 20, 5))
    assert not any(empty)


# ============================================================================
# ERRORS
# ============================================================================

@pytest.mark.parametrize("x,y,z", [(-1, 0, 5), (0, -1, 5), (0, 0, -1), (1.5, 0, 5), ("a", 0, 5)])
def test_invalid_address_never_queries_source(spy, x, y, z):
    with pytest.raises(ValidationError):
        asyncio.run(HeatmapProducer(spy).render_tile(x, y, z))
    assert spy.calls == []


def test_invalid_options_never_queries_source(spy):
    with pytest.raises(ConfigError):
        asyncio.run(HeatmapProducer(spy).render_tile(0, 0, 5, {"lineWidth": 0}))
    assert spy.calls == []


def test_one_coordinate_path_raises():
    source = SpySource([[unproject(100, 100, 5)]])
    with pytest.raises(GeometryError):
        asyncio.run(HeatmapProducer(source).render_tile(0, 0, 5))


def test_unclipped_path_raises():
    source = SpySource([[unproject(100, 100, 5), unproject(600, 100, 5)]])
    with pytest.raises(BoundsError):
        asyncio.run(HeatmapProducer(source).render_tile(0, 0, 5))


# ============================================================================
# VARIANTS
# ============================================================================

def test_render_tile_png(spy):
    png = asyncio.run(HeatmapProducer(spy).render_tile_png(0, 0, 5))
    assert png[:8] == b"\x89PNG\r\n\x1a\n"

    image = Image.open(io.BytesIO(png))
    assert image.mode == "RGBA"
    assert image.size == (TILE_SIZE, TILE_SIZE)
    decoded = np.asarray(image)
    assert decoded[100, 105, 3] > 0
    assert decoded[0, 0, 3] == 0


def test_render_tile_sync(spy):
    producer = HeatmapProducer(spy)
    data = producer.render_tile_sync(0, 0, 5)
    assert data == asyncio.run(producer.render_tile(0, 0, 5))

    png = producer.render_tile_sync(0, 0, 5, png=True)
    assert png.startswith(b"\x89PNG")
