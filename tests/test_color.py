"""Test gradient color mapping.

Tests for src.utils.color:
    - Hex parsing (#RRGGBB, #RRGGBBAA, invalid strings)
    - color_for endpoints: 0 → first stop, ≥ max → last stop
    - Stop positions hit exactly; midpoints round half up
    - Channels monotonic between adjacent stops
    - colorize matches color_for and keeps zero cells transparent

Test cases:
    - test_parse_hex_color()
    - test_parse_hex_color_invalid()
    - test_default_gradient_stops()
    - test_color_for_endpoints()
    - test_color_for_stop_positions()
    - test_color_for_rounds_half_up()
    - test_color_for_monotonic_between_stops()
    - test_colorize_matches_color_for()
    - test_colorize_zero_is_transparent()

Run:
    pytest tests/test_color.py -v
"""

import numpy as np
import pytest

from src.utils import color
from src.utils.validators import RenderingOptions


@pytest.fixture
def options():
    return RenderingOptions()


@pytest.fixture
def two_stop_options():
    return RenderingOptions(
        value_for_max_color=10.0,
        gradient_colors=[(0, 0, 0, 0), (255, 100, 1, 255)],
    )


# ============================================================================
# HEX PARSING
# ============================================================================

def test_parse_hex_color():
    assert color.parse_hex_color("#4B0082") == (0x4B, 0x00, 0x82, 255)
    assert color.parse_hex_color("#FFFFE0FF") == (255, 255, 224, 255)
    assert color.parse_hex_color("b22222") == (0xB2, 0x22, 0x22, 255)
    assert color.parse_hex_color("#00000080") == (0, 0, 0, 128)


@pytest.mark.parametrize("value", ["", "#123", "#12345", "#GGGGGG", "#123456789"])
def test_parse_hex_color_invalid(value):
    with pytest.raises(ValueError):
        color.parse_hex_color(value)


def test_default_gradient_stops():
    assert len(color.DEFAULT_GRADIENT) == 6
    assert [c[3] for c in color.DEFAULT_GRADIENT] == [130, 155, 180, 205, 230, 255]
    assert color.DEFAULT_GRADIENT[0][:3] == color.parse_hex_color("#4B0082")[:3]
    assert color.DEFAULT_GRADIENT[-1][:3] == color.parse_hex_color("#FFFFE0")[:3]


# ============================================================================
# COLOR_FOR
# ============================================================================

def test_color_for_endpoints(options):
    stops = options.gradient_colors
    assert color.color_for(0.0, options) == stops[0]
    assert color.color_for(options.value_for_max_color, options) == stops[-1]
    assert color.color_for(options.value_for_max_color * 10, options) == stops[-1]


def test_color_for_stop_positions(options):
    # 6 stops over 25 → one stop every 5
    for i, stop in enumerate(options.gradient_colors):
        assert color.color_for(5.0 * i, options) == stop


def test_color_for_rounds_half_up(two_stop_options):
    # halfway: 127.5 → 128, 50 → 50, 0.5 → 1, 127.5 → 128
    assert color.color_for(5.0, two_stop_options) == (128, 50, 1, 128)


def test_color_for_monotonic_between_stops(options):
    values = np.linspace(0.0, options.value_for_max_color, 251)
    colors = [color.color_for(v, options) for v in values]
    stops = options.gradient_colors
    segment = options.value_for_max_color / (len(stops) - 1)

    for k in range(len(stops) - 1):
        lower, upper = stops[k], stops[k + 1]
        in_segment = [
            c for v, c in zip(values, colors)
            if k * segment <= v <= (k + 1) * segment
        ]
        for channel in range(4):
            series = [c[channel] for c in in_segment]
            if upper[channel] >= lower[channel]:
                assert series == sorted(series)
            else:
                assert series == sorted(series, reverse=True)


# ============================================================================
# COLORIZE
# ============================================================================

def test_colorize_matches_color_for(options):
    rng = np.random.default_rng(3)
    values = rng.uniform(0.01, 40.0, size=(8, 8)).astype(np.float32)
    rgba = color.colorize(values, options)

    assert rgba.shape == (8, 8, 4)
    assert rgba.dtype == np.uint8
    for (row, col), value in np.ndenumerate(values):
        assert tuple(int(c) for c in rgba[row, col]) == color.color_for(float(value), options)


def test_colorize_zero_is_transparent(options):
    values = np.zeros((4, 4), dtype=np.float32)
    values[1, 2] = 0.5
    rgba = color.colorize(values, options)

    assert tuple(rgba[1, 2]) != color.TRANSPARENT
    mask = np.ones((4, 4), dtype=bool)
    mask[1, 2] = False
    assert np.all(rgba[mask] == 0)
