"""
Typed records for earthquake events and administrative regions.

Tabular inputs (the USGS CSV, TIGER county shapefiles) are converted into
these immutable records at the ingestion boundary so that every downstream
step works with validated coordinates, string identifiers and clean polygons.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

import pandas as pd
from shapely.geometry.base import BaseGeometry
from shapely.validation import explain_validity

from quake_regions.errors import ConfigurationError, GeometryError

logger = logging.getLogger(__name__)

REQUIRED_EVENT_COLUMNS = ("latitude", "longitude")
POLYGON_TYPES = ("Polygon", "MultiPolygon")


def _missing(value):
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _optional_float(value):
    return None if _missing(value) else float(value)


def _optional_str(value):
    return None if _missing(value) else str(value)


@dataclass(frozen=True)
class QuakeEvent:
    """A single earthquake: epicentre in decimal degrees plus catalog fields."""

    event_id: str
    latitude: float
    longitude: float
    time: Optional[pd.Timestamp] = None
    magnitude: Optional[float] = None
    depth_km: Optional[float] = None
    place: str = ""
    mag_type: Optional[str] = None

    def __post_init__(self):
        for name in ("latitude", "longitude"):
            value = getattr(self, name)
            if _missing(value):
                raise ConfigurationError(f"Event {self.event_id!r} is missing {name}")
            try:
                value = float(value)
            except (TypeError, ValueError):
                raise ConfigurationError(f"Event {self.event_id!r} has non-numeric {name}: {value!r}")
            if not math.isfinite(value):
                raise GeometryError(f"Event {self.event_id!r} has non-finite {name}: {value}")
            object.__setattr__(self, name, value)

        if not -90.0 <= self.latitude <= 90.0:
            raise GeometryError(f"Event {self.event_id!r} latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise GeometryError(f"Event {self.event_id!r} longitude out of range: {self.longitude}")

    @property
    def coordinates(self):
        """(x, y) ordering, as shapely expects."""
        return (self.longitude, self.latitude)


def validate_region_geometry(region_id, geometry):
    """Raise GeometryError unless geometry is a non-empty, valid (multi)polygon."""
    if geometry is None or not isinstance(geometry, BaseGeometry):
        raise GeometryError(f"Region {region_id!r} has no geometry")
    if geometry.is_empty:
        raise GeometryError(f"Region {region_id!r} has an empty geometry")
    if geometry.geom_type not in POLYGON_TYPES:
        raise GeometryError(f"Region {region_id!r} is a {geometry.geom_type}, expected a polygon")
    if not geometry.is_valid:
        raise GeometryError(f"Region {region_id!r} has invalid geometry: {explain_validity(geometry)}")


@dataclass(frozen=True)
class Region:
    """An administrative unit, keyed by region_id."""

    region_id: str
    geometry: BaseGeometry
    name: str = ""
    land_area: Optional[float] = None

    def __post_init__(self):
        if _missing(self.region_id) or str(self.region_id) == "":
            raise ConfigurationError("Region is missing its region_id")
        object.__setattr__(self, "region_id", str(self.region_id))
        validate_region_geometry(self.region_id, self.geometry)


def events_from_frame(df: pd.DataFrame) -> tuple:
    """
    Convert a USGS-style event table into QuakeEvent records.

    Parameters
    ----------
    df : pd.DataFrame
        Must have 'latitude' and 'longitude'; 'id', 'time', 'mag', 'depth',
        'place' and 'magType' are picked up when present.

    Returns
    -------
    tuple of QuakeEvent

    Raises
    ------
    ConfigurationError
        If a required column is absent or a row lacks coordinates
    GeometryError
        If a row has out-of-range coordinates
    """
    missing = [c for c in REQUIRED_EVENT_COLUMNS if c not in df.columns]
    if missing:
        raise ConfigurationError(f"Event table missing required columns: {', '.join(missing)}")

    times = pd.to_datetime(df["time"], utc=True, errors="coerce") if "time" in df.columns else None

    events = []
    for position, (idx, row) in enumerate(df.iterrows()):
        event_id = _optional_str(row.get("id")) or f"row-{idx}"
        time = None
        if times is not None and not _missing(times.iloc[position]):
            time = times.iloc[position]
        events.append(QuakeEvent(
            event_id=event_id,
            latitude=row["latitude"],
            longitude=row["longitude"],
            time=time,
            magnitude=_optional_float(row.get("mag")),
            depth_km=_optional_float(row.get("depth")),
            place=_optional_str(row.get("place")) or "",
            mag_type=_optional_str(row.get("magType")),
        ))

    logger.info(f"Built {len(events)} event records")
    return tuple(events)


def regions_from_frame(gdf, id_column, name_column=None, area_column=None) -> tuple:
    """Convert a boundary GeoDataFrame into Region records (row order kept)."""
    if id_column not in gdf.columns:
        raise ConfigurationError(f"Boundary table has no {id_column!r} column; available: {list(gdf.columns)}")
    for col in (name_column, area_column):
        if col is not None and col not in gdf.columns:
            raise ConfigurationError(f"Boundary table has no {col!r} column")

    regions = []
    for _, row in gdf.iterrows():
        regions.append(Region(
            region_id=row[id_column],
            geometry=row.geometry,
            name=str(row[name_column]) if name_column else "",
            land_area=_optional_float(row[area_column]) if area_column else None,
        ))

    logger.info(f"Built {len(regions)} region records")
    return tuple(regions)
