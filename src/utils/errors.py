"""Exception taxonomy for tile rendering.

Every failure aborts the whole tile render; nothing here is retried.

Hierarchy:
    HeatmapError
    ├── ValidationError   tile address not made of non-negative integers
    ├── ConfigError       invalid rendering options or config file
    ├── GeometryError     path too short to stroke
    ├── ProjectionError   latitude outside the Web Mercator range
    └── BoundsError       projected point outside the padded raster
"""


class HeatmapError(Exception):
    """Base class for all tile rendering errors."""

    pass


class ValidationError(HeatmapError, ValueError):
    """Raised when tile coordinates are not non-negative integers."""

    pass


class ConfigError(HeatmapError, ValueError):
    """Raised when rendering options or a config file fail validation."""

    pass


class GeometryError(HeatmapError):
    """Raised when a path has too few points to build a stroke."""

    pass


class ProjectionError(HeatmapError):
    """Raised when a latitude cannot be projected to Web Mercator."""

    pass


class BoundsError(HeatmapError):
    """Raised when a projected point falls outside the padded tile raster.

    Means the path source returned data beyond the requested bounding box.
    """

    pass
