"""Rendering option validation and YAML config loading.

Provides centralized validation using pydantic:
    - RenderingOptions: value_for_max_color, line_width, gradient_colors
    - Rendering config schema (rendering.v1.yaml)
    - Tile address validation (non-negative integers)

All entrypoints must use these validators so bad input fails fast with an
actionable message, before any path data is fetched.

Units:
    - line_width: pixels
    - value_for_max_color: accumulated stroke coverage (≈ number of passes)
    - gradient_colors: RGBA 0-255, or hex strings "#RRGGBB" / "#RRGGBBAA"

Usage:
    from src.utils import validators

    options = validators.resolve_rendering_options({"lineWidth": 3})
    options = validators.load_rendering_config("configs/rendering.v1.yaml")
    x, y, z = validators.validate_tile_address(x, y, z)
"""

import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
import yaml

from .color import DEFAULT_GRADIENT, Color, parse_hex_color
from .errors import ConfigError, ValidationError


# ============================================================================
# RENDERING OPTIONS
# ============================================================================

class RenderingOptions(BaseModel):
    """Options controlling stroke width and color ramp of a tile.

    Accepts snake_case field names or the camelCase aliases used by tile
    clients (valueForMaxColor, lineWidth, gradientColors).
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra='forbid')

    value_for_max_color: float = Field(
        25.0, gt=0.0, alias="valueForMaxColor",
        description="Coverage at which the last gradient stop is reached"
    )
    line_width: float = Field(
        2.0, gt=0.0, alias="lineWidth",
        description="Stroke width in pixels"
    )
    gradient_colors: Tuple[Color, ...] = Field(
        DEFAULT_GRADIENT, alias="gradientColors",
        description="Evenly spaced RGBA stops from 0% to 100%"
    )

    @field_validator('value_for_max_color', 'line_width')
    @classmethod
    def validate_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError(f"must be finite, got {v}")
        return v

    @field_validator('gradient_colors', mode='before')
    @classmethod
    def parse_colors(cls, v: Any) -> Any:
        """Allow hex strings alongside 4-int sequences."""
        if isinstance(v, (list, tuple)):
            return tuple(parse_hex_color(c) if isinstance(c, str) else c for c in v)
        return v

    @field_validator('gradient_colors')
    @classmethod
    def validate_stops(cls, v: Tuple[Color, ...]) -> Tuple[Color, ...]:
        if len(v) < 2:
            raise ValueError(f"gradient needs at least 2 colors, got {len(v)}")
        for i, stop in enumerate(v):
            for channel in stop:
                if not 0 <= channel <= 255:
                    raise ValueError(f"gradient color {i} channel {channel} out of range [0, 255]")
        return v


class RenderingConfigV1(BaseModel):
    """Rendering config file (rendering.v1.yaml schema)."""
    model_config = ConfigDict(populate_by_name=True, extra='forbid')

    schema_version: str = Field("rendering.v1", alias="schema", description="Schema version")
    value_for_max_color: Optional[float] = None
    line_width: Optional[float] = None
    gradient_colors: Optional[List[Union[str, Tuple[int, int, int, int]]]] = None

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "rendering.v1":
            raise ValueError(f"Expected schema 'rendering.v1', got '{v}'")
        return v

    def to_options(self) -> RenderingOptions:
        values = self.model_dump(exclude={'schema_version'}, exclude_none=True)
        return RenderingOptions(**values)


# ============================================================================
# PUBLIC API
# ============================================================================

def _format_errors(e: PydanticValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = '.'.join(str(p) for p in err['loc']) or '<root>'
        parts.append(f"{loc}: {err['msg']}")
    return '; '.join(parts)


def resolve_rendering_options(
    options: Union[None, Dict[str, Any], RenderingOptions] = None
) -> RenderingOptions:
    """Merge user options over defaults and validate.

    Parameters
    ----------
    options : None, dict or RenderingOptions
        Partial options (snake_case or camelCase keys); None for defaults

    Returns
    -------
    RenderingOptions
        Validated, immutable options

    Raises
    ------
    ConfigError
        If any value is invalid (non-positive width, < 2 stops, ...)
    """
    if options is None:
        return RenderingOptions()
    if isinstance(options, RenderingOptions):
        return options
    if not isinstance(options, dict):
        raise ConfigError(f"Rendering options must be a dict, got {type(options).__name__}")
    try:
        return RenderingOptions(**options)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid rendering options: {_format_errors(e)}") from e


def load_rendering_config(path: Union[str, Path]) -> RenderingOptions:
    """Load and validate rendering options from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to rendering.v1.yaml file

    Returns
    -------
    RenderingOptions
        Options with unspecified fields at their defaults

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ConfigError
        If the file does not match the schema
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Rendering config not found: {path}")

    try:
        data = fs.load_yaml(path) or {}
    except yaml.YAMLError as e:
        raise ConfigError(str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError(f"Rendering config at {path} must be a mapping")
    try:
        return RenderingConfigV1(**data).to_options()
    except PydanticValidationError as e:
        raise ConfigError(f"Rendering config validation failed at {path}: {_format_errors(e)}") from e


def _as_tile_index(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer, got bool")
    if isinstance(value, int):
        index = value
    elif isinstance(value, float) and value.is_integer():
        index = int(value)
    else:
        raise ValidationError(f"x, y, and z must be integers, got {name}={value!r}")
    if index < 0:
        raise ValidationError(f"x, y, and z must be non-negative integers, got {name}={value!r}")
    return index


def validate_tile_address(x: Any, y: Any, z: Any) -> Tuple[int, int, int]:
    """Check an XYZ tile address.

    Parameters
    ----------
    x, y, z : Any
        Tile column, row and zoom. Integral floats (e.g. 3.0) are accepted.

    Returns
    -------
    Tuple[int, int, int]
        The address as ints

    Raises
    ------
    ValidationError
        If any value is not an integer or is negative
    """
    return (
        _as_tile_index("x", x),
        _as_tile_index("y", y),
        _as_tile_index("z", z),
    )
