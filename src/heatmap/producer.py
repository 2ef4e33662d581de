"""Tile engine: one XYZ address in, one RGBA heatmap tile out.

Pipeline per tile:
    validate address → resolve options → padded bbox → source.get_paths()
    → rasterize_paths() → bytes / ndarray / PNG

Invariants:
    - The address is validated before the source is touched
    - The only await point is source.get_paths(); everything after it is
      synchronous CPU work
    - No state is shared between renders; any error aborts the whole tile

Usage:
    producer = HeatmapProducer(InMemoryPathSource.from_yaml("activities.yaml"))
    bitmap = await producer.render_tile(16, 10, 5, {"lineWidth": 3})
    png = producer.render_tile_sync(16, 10, 5, png=True)
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Union

import numpy as np

from src.utils import fs, profiler, validators
from src.utils.validators import RenderingOptions

from .projection import tile_bounds, tile_padding
from .rasterize import rasterize_paths
from .sources import PathFilter, PathSource

logger = logging.getLogger(__name__)

OptionsLike = Union[None, Dict[str, Any], RenderingOptions]


class HeatmapProducer:
    """Render heatmap tiles from the paths of a PathSource.

    Parameters
    ----------
    source : PathSource
        Anything with ``async get_paths(bbox, path_filter)``
    """

    def __init__(self, source: PathSource):
        self.source = source

    async def render_tile_array(
        self,
        x: Any,
        y: Any,
        z: Any,
        options: OptionsLike = None,
        path_filter: Optional[PathFilter] = None
    ) -> np.ndarray:
        """Render tile (x, y, z) as an array.

        Parameters
        ----------
        x, y, z : int
            Tile column, row and zoom (non-negative)
        options : None, dict or RenderingOptions
            Partial rendering options merged over the defaults
        path_filter : PathFilter, optional
            Forwarded to the source unchanged

        Returns
        -------
        np.ndarray
            Bitmap, shape (256, 256, 4), uint8, straight alpha

        Raises
        ------
        ValidationError
            Bad tile address (raised before the source is queried)
        ConfigError
            Invalid rendering options
        GeometryError, ProjectionError, BoundsError
            From rasterization of the returned paths
        """
        x, y, z = validators.validate_tile_address(x, y, z)
        resolved = validators.resolve_rendering_options(options)

        padding = tile_padding(resolved.line_width)
        bbox = tile_bounds(x, y, z, padding)

        with profiler.timer(f"fetch {z}/{x}/{y}"):
            paths = await self.source.get_paths(bbox, path_filter)

        with profiler.timer(f"rasterize {z}/{x}/{y} ({len(paths)} paths)"):
            return rasterize_paths(paths, x, y, z, resolved)

    async def render_tile(
        self,
        x: Any,
        y: Any,
        z: Any,
        options: OptionsLike = None,
        path_filter: Optional[PathFilter] = None
    ) -> bytes:
        """Render tile (x, y, z) as 256·256·4 bytes, row-major RGBA."""
        bitmap = await self.render_tile_array(x, y, z, options, path_filter)
        return bitmap.tobytes()

    async def render_tile_png(
        self,
        x: Any,
        y: Any,
        z: Any,
        options: OptionsLike = None,
        path_filter: Optional[PathFilter] = None
    ) -> bytes:
        """Render tile (x, y, z) as PNG-encoded bytes."""
        bitmap = await self.render_tile_array(x, y, z, options, path_filter)
        return fs.encode_png(bitmap)

    def render_tile_sync(
        self,
        x: Any,
        y: Any,
        z: Any,
        options: OptionsLike = None,
        path_filter: Optional[PathFilter] = None,
        png: bool = False
    ) -> bytes:
        """Blocking wrapper for callers without an event loop.

        Must not be called from inside a running loop (asyncio.run refuses).
        """
        render = self.render_tile_png if png else self.render_tile
        return asyncio.run(render(x, y, z, options, path_filter))
