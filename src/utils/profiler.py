"""Lightweight wall-clock profiling.

Provides:
    - timer(): context manager reporting elapsed seconds to a sink
    - TimerAccumulator: collect repeated timings (e.g. per tile) for averaging

Used to measure:
    - Path fetch from the path source
    - Rasterization + colorization of a tile

No heavy dependencies; timings go to logging by default.
"""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@contextmanager
def timer(name: str, sink: Optional[Callable[[str, float], None]] = None):
    """Context manager for wall-clock timing.

    Parameters
    ----------
    name : str
        Timer name (for logging/display)
    sink : Optional[Callable[[str, float], None]]
        Optional callback(name, elapsed_seconds).
        If None, logs at DEBUG level.

    Examples
    --------
    >>> with timer("rasterize"):
    ...     bitmap = rasterize_paths(paths, x, y, z, options)

    >>> acc = TimerAccumulator()
    >>> with timer("fetch", sink=acc.add):
    ...     paths = await source.get_paths(bbox)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if sink is not None:
            sink(name, elapsed)
        else:
            logger.debug(f"{name}: {elapsed:.3f} s")


class TimerAccumulator:
    """Accumulate timing measurements by name."""

    def __init__(self):
        self.timings: Dict[str, List[float]] = {}

    def add(self, name: str, elapsed: float) -> None:
        self.timings.setdefault(name, []).append(elapsed)

    def mean(self, name: str) -> float:
        """Average elapsed seconds for ``name``; 0.0 if never recorded."""
        values = self.timings.get(name, [])
        if not values:
            return 0.0
        return sum(values) / len(values)

    def summary(self) -> Dict[str, Dict[str, float]]:
        """Per-name count, total and mean."""
        return {
            name: {
                'count': len(values),
                'total': sum(values),
                'mean': sum(values) / len(values),
            }
            for name, values in self.timings.items()
        }
