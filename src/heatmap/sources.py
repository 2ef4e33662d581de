"""Path sources: where tile rendering gets its geographic paths from.

The renderer depends on one capability only: "return every path that
intersects this bounding box, optionally filtered". Database-backed or
archive-backed adapters implement PathSource outside this package;
InMemoryPathSource is the reference implementation used by the CLI and
tests.

Contract:
    - get_paths(bbox, path_filter) is awaited once per tile
    - Returned paths are lists of (lon, lat) positions already clipped to
      bbox; positions outside it make the render fail with BoundsError
    - Empty paths are skipped; one-position paths fail with GeometryError
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
import yaml

from src.utils import fs
from src.utils.errors import ConfigError
from src.utils.geometry import BBox, LonLat, clip_polyline_to_bbox

logger = logging.getLogger(__name__)

GeoPath = List[LonLat]
DateLike = Union[date, datetime]


def _as_utc(value: datetime) -> datetime:
    """Aware datetime in UTC; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _calendar_day(value: DateLike) -> date:
    """Day of the activity as recorded, in its own offset."""
    if isinstance(value, datetime):
        return value.date()
    return value


@dataclass(frozen=True)
class PathFilter:
    """Optional activity filter; unset fields match everything.

    Date bounds are inclusive. A plain date bound is compared against the
    calendar day the activity was recorded on, so ``end_date`` covers that
    whole day. A datetime bound is an exact instant; naive datetimes on
    either side count as UTC.
    """
    start_date: Optional[DateLike] = None
    end_date: Optional[DateLike] = None
    sport_types: Optional[Tuple[str, ...]] = None

    def matches(self, activity: "Activity") -> bool:
        if self.start_date is not None and self._compare(activity.date, self.start_date) < 0:
            return False
        if self.end_date is not None and self._compare(activity.date, self.end_date) > 0:
            return False
        if self.sport_types is not None and activity.sport_type not in self.sport_types:
            return False
        return True

    @staticmethod
    def _compare(when: DateLike, bound: DateLike) -> int:
        """-1, 0 or 1 as ``when`` falls before, on or after ``bound``."""
        if isinstance(bound, datetime):
            if not isinstance(when, datetime):
                when = datetime(when.year, when.month, when.day)
            lhs, rhs = _as_utc(when), _as_utc(bound)
        else:
            lhs, rhs = _calendar_day(when), bound
        return (lhs > rhs) - (lhs < rhs)


@dataclass(frozen=True)
class Activity:
    """One recorded activity: metadata plus its track segments."""
    name: str
    sport_type: str
    date: DateLike
    tracks: Tuple[Tuple[LonLat, ...], ...] = field(default_factory=tuple)


class PathSource(Protocol):
    """Capability consumed by the tile engine."""

    async def get_paths(
        self,
        bbox: BBox,
        path_filter: Optional[PathFilter] = None
    ) -> List[GeoPath]:
        ...


# ============================================================================
# ACTIVITIES FILE SCHEMA V1
# ============================================================================

class ActivityV1(BaseModel):
    """Single activity entry of an activities.v1.yaml file."""
    name: str = ""
    sport_type: str = Field("", description="Activity category, e.g. 'Run'")
    date: Union[datetime, date]
    tracks: List[List[List[float]]] = Field(..., description="Track segments of [lon, lat(, ele)]")

    @field_validator('tracks')
    @classmethod
    def validate_positions(cls, v: List[List[List[float]]]) -> List[List[Tuple[float, float]]]:
        """Keep lon/lat of each position (elevation is ignored)."""
        result = []
        for track in v:
            positions = []
            for position in track:
                if len(position) < 2:
                    raise ValueError(f"Position {position} needs at least [lon, lat]")
                lon, lat = position[0], position[1]
                if not (-180.0 <= lon <= 180.0 and -90.0 <= lat <= 90.0):
                    raise ValueError(f"Position ({lon}, {lat}) is not a valid lon/lat pair")
                positions.append((lon, lat))
            result.append(positions)
        return result


class ActivitiesFileV1(BaseModel):
    """Container for activities (YAML file format)."""
    model_config = ConfigDict(populate_by_name=True)

    schema_version: str = Field("activities.v1", alias="schema", description="Schema version")
    activities: List[ActivityV1] = Field(default_factory=list)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "activities.v1":
            raise ValueError(f"Expected schema 'activities.v1', got '{v}'")
        return v


# ============================================================================
# IN-MEMORY SOURCE
# ============================================================================

class InMemoryPathSource:
    """Path source over a list of activities held in memory.

    Parameters
    ----------
    activities : Iterable[Activity]
        Activities to serve
    """

    def __init__(self, activities: Iterable[Activity]):
        self.activities: Tuple[Activity, ...] = tuple(activities)
        logger.debug(f"InMemoryPathSource holding {len(self.activities)} activities")

    @classmethod
    def from_paths(cls, paths: Sequence[Sequence[Sequence[float]]], sport_type: str = "") -> "InMemoryPathSource":
        """Wrap bare lon/lat paths as one undated activity each."""
        activities = [
            Activity(
                name=f"path-{i}",
                sport_type=sport_type,
                date=datetime(1970, 1, 1),
                tracks=(tuple((float(p[0]), float(p[1])) for p in path),),
            )
            for i, path in enumerate(paths)
        ]
        return cls(activities)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "InMemoryPathSource":
        """Load an activities.v1.yaml file.

        Raises
        ------
        FileNotFoundError
            If path doesn't exist
        ConfigError
            If the file does not match the schema
        """
        try:
            data = fs.load_yaml(path) or {}
        except yaml.YAMLError as e:
            raise ConfigError(str(e)) from e
        try:
            parsed = ActivitiesFileV1(**data)
        except (PydanticValidationError, TypeError) as e:
            raise ConfigError(f"Activities file validation failed at {path}: {e}") from e

        activities = [
            Activity(
                name=a.name,
                sport_type=a.sport_type,
                date=a.date,
                tracks=tuple(tuple(track) for track in a.tracks),
            )
            for a in parsed.activities
        ]
        logger.info(f"Loaded {len(activities)} activities from {path}")
        return cls(activities)

    async def get_paths(
        self,
        bbox: BBox,
        path_filter: Optional[PathFilter] = None
    ) -> List[GeoPath]:
        """Every track piece inside ``bbox`` of the activities matching the filter."""
        result: List[GeoPath] = []
        for activity in self.activities:
            if path_filter is not None and not path_filter.matches(activity):
                continue
            for track in activity.tracks:
                result.extend(clip_polyline_to_bbox(track, bbox))
        return result
