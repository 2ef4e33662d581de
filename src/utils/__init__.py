"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Error taxonomy (errors)
    - Geometry primitives and polygon/polyline clipping (geometry)
    - Path simplification (simplify)
    - Gradient color mapping (color)
    - Option and config validation (validators)
    - YAML loading and atomic PNG output (fs)
    - Profiling (profiler)
    - Unified logging (logging_config)

No module in utils/ may import from src.heatmap.

Convenience imports:
    from src.utils import fs, color, validators
    from src.utils.logging_config import setup_logging, get_logger
"""

# Re-export commonly used modules for convenience
from . import color
from . import errors
from . import fs
from . import geometry
from . import logging_config
from . import profiler
from . import simplify
from . import validators

# Common functions for direct import
from .logging_config import get_logger, push_context, setup_logging

__all__ = [
    # Modules
    'color',
    'errors',
    'fs',
    'geometry',
    'logging_config',
    'profiler',
    'simplify',
    'validators',
    # Direct exports
    'setup_logging',
    'get_logger',
    'push_context',
]
