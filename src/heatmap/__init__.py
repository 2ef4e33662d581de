"""Tile pipeline: projection, stroking, rasterization and the tile engine.

Depends only on src.utils. Convenience imports:
    from src.heatmap import HeatmapProducer, InMemoryPathSource, PathFilter
"""

from .producer import HeatmapProducer
from .sources import Activity, InMemoryPathSource, PathFilter, PathSource

__all__ = [
    'HeatmapProducer',
    'Activity',
    'InMemoryPathSource',
    'PathFilter',
    'PathSource',
]
