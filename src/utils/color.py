"""Gradient color mapping for heatmap tiles.

Provides:
    - DEFAULT_GRADIENT: 6-stop indigo → light-yellow ramp with rising alpha
    - parse_hex_color(): "#RRGGBB" / "#RRGGBBAA" → RGBA tuple
    - color_for(): visit count → RGBA via evenly spaced gradient stops
    - colorize(): vectorised color_for over a coverage array

Mapping:
    r = min(value / value_for_max_color, 1) * (n_stops - 1)
    lerp between stops floor(r) and ceil(r) by r - floor(r), per channel,
    rounded half up.

Invariants:
    - value 0 → first stop exactly; value ≥ value_for_max_color → last stop
    - Channels are monotonic between adjacent stops
    - colorize() leaves cells with zero coverage fully transparent (0,0,0,0)

Colors are straight (non-premultiplied) RGBA, 0-255 per channel.
"""

import math
from typing import Tuple

import numpy as np

Color = Tuple[int, int, int, int]

DEFAULT_GRADIENT: Tuple[Color, ...] = (
    (0x4B, 0x00, 0x82, 130),  # #4B0082: 0%
    (0xB2, 0x22, 0x22, 155),  # #B22222: 20%
    (0xFF, 0x00, 0x00, 180),  # #FF0000: 40%
    (0xFF, 0x45, 0x00, 205),  # #FF4500: 60%
    (0xFF, 0x69, 0x00, 230),  # #FF6900: 80%
    (0xFF, 0xFF, 0xE0, 255),  # #FFFFE0: 100%
)

TRANSPARENT: Color = (0, 0, 0, 0)


def parse_hex_color(value: str) -> Color:
    """Convert a hex color string to RGBA.

    Parameters
    ----------
    value : str
        "#RRGGBB" (alpha 255) or "#RRGGBBAA"; leading '#' optional

    Returns
    -------
    Color
        (r, g, b, a) integers in [0, 255]

    Raises
    ------
    ValueError
        If the string is not 6 or 8 hex digits
    """
    digits = value.strip().lstrip('#')
    if len(digits) not in (6, 8):
        raise ValueError(f"Invalid hex color: {value!r}")
    try:
        channels = [int(digits[i:i + 2], 16) for i in range(0, len(digits), 2)]
    except ValueError as e:
        raise ValueError(f"Invalid hex color: {value!r}") from e
    if len(channels) == 3:
        channels.append(255)
    return tuple(channels)


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def color_for(value: float, options) -> Color:
    """Map an accumulated visit count to a gradient color.

    Parameters
    ----------
    value : float
        Accumulated coverage (≥ 0)
    options : RenderingOptions
        Supplies value_for_max_color and gradient_colors

    Returns
    -------
    Color
        Interpolated RGBA
    """
    stops = options.gradient_colors
    ratio = min(value / options.value_for_max_color, 1.0) * (len(stops) - 1)
    lower_index = math.floor(ratio)
    upper_index = math.ceil(ratio)
    lower = stops[lower_index]
    upper = stops[upper_index]
    blend = ratio - lower_index
    return tuple(
        _round_half_up(lower[c] + (upper[c] - lower[c]) * blend)
        for c in range(4)
    )


def colorize(values: np.ndarray, options) -> np.ndarray:
    """Vectorised color_for over a 2D coverage array.

    Parameters
    ----------
    values : np.ndarray
        Coverage, shape (H, W), non-negative
    options : RenderingOptions
        Supplies value_for_max_color and gradient_colors

    Returns
    -------
    np.ndarray
        RGBA bitmap, shape (H, W, 4), uint8; zero cells are (0, 0, 0, 0)
    """
    values = np.asarray(values, dtype=np.float64)
    stops = np.asarray(options.gradient_colors, dtype=np.float64)  # (N, 4)

    ratio = np.minimum(values / options.value_for_max_color, 1.0) * (len(stops) - 1)
    lower_index = np.floor(ratio).astype(np.intp)
    upper_index = np.ceil(ratio).astype(np.intp)
    blend = (ratio - lower_index)[..., None]

    lower = stops[lower_index]
    upper = stops[upper_index]
    rgba = np.floor(lower + (upper - lower) * blend + 0.5)

    rgba[values == 0] = TRANSPARENT
    return np.clip(rgba, 0, 255).astype(np.uint8)
