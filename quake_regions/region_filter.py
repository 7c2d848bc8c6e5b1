"""
Point-in-polygon assignment of earthquake events to regions.

Every event is tested against every region with a geopandas spatial join.
Events on a shared boundary, or inside overlapping regions, go to the first
region in the order the regions were given; each event gets at most one
region. Events outside every region are associated with None.
"""

import logging
from typing import NamedTuple, Optional

import geopandas as gpd
import pandas as pd
from pyproj import CRS
from pyproj.exceptions import CRSError

from quake_regions.errors import ConfigurationError, GeometryError
from quake_regions.records import QuakeEvent, Region

logger = logging.getLogger(__name__)


class Association(NamedTuple):
    """An event and the id of the region containing it (None if outside all)."""

    event: QuakeEvent
    region_id: Optional[str]


def as_crs(value, label="Dataset"):
    """Parse a CRS identifier, raising ConfigurationError if absent or unknown."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ConfigurationError(f"{label} CRS is missing")
    try:
        return CRS.from_user_input(value)
    except CRSError as e:
        raise ConfigurationError(f"{label} CRS {value!r} is not recognised: {e}") from e


def check_region_catalog(regions):
    """Region ids must be unique and every entry a Region record."""
    seen = set()
    for region in regions:
        if not isinstance(region, Region):
            raise GeometryError(f"Expected Region records, got {type(region).__name__}")
        if region.region_id in seen:
            raise ConfigurationError(f"Duplicate region_id in region catalog: {region.region_id!r}")
        seen.add(region.region_id)


def filter_points(points, regions, points_crs, regions_crs, reproject=False) -> tuple:
    """
    Associate each event with the region that contains it.

    Parameters
    ----------
    points : sequence of QuakeEvent
        Events to place; coordinates are read as (longitude, latitude)
    regions : sequence of Region
        Region catalog; input order decides boundary ties
    points_crs, regions_crs : str or pyproj.CRS
        CRS of each dataset
    reproject : bool
        When the two CRS differ, transform the events into the regions' CRS
        instead of raising

    Returns
    -------
    tuple of Association
        One per input event, in input order

    Raises
    ------
    ConfigurationError
        If a CRS is missing or unknown, if the CRS differ and reproject is
        False, or if region ids repeat
    GeometryError
        If a region geometry is malformed
    """
    points = tuple(points)
    regions = tuple(regions)

    src = as_crs(points_crs, "Point")
    dst = as_crs(regions_crs, "Region")
    if src != dst and not reproject:
        raise ConfigurationError(
            f"CRS mismatch: points are in {src.to_string()}, regions are in {dst.to_string()}"
        )

    check_region_catalog(regions)

    if not points:
        return ()
    if not regions:
        logger.warning("Region catalog is empty; no event can be assigned")
        return tuple(Association(p, None) for p in points)

    point_frame = gpd.GeoDataFrame(
        {"_point": range(len(points))},
        geometry=gpd.points_from_xy([p.longitude for p in points], [p.latitude for p in points]),
        crs=src,
    )
    if src != dst:
        logger.info(f"Reprojecting {len(points)} events from {src.to_string()} to {dst.to_string()}")
        point_frame = point_frame.to_crs(dst)

    region_frame = gpd.GeoDataFrame(
        {"_region": range(len(regions))},
        geometry=[r.geometry for r in regions],
        crs=dst,
    )

    # intersects rather than within so boundary points are kept and tie-broken
    joined = gpd.sjoin(point_frame, region_frame, how="left", predicate="intersects")
    joined = joined.sort_values(["_point", "_region"], na_position="last")
    joined = joined.drop_duplicates(subset="_point", keep="first")

    hits = {
        int(point): int(region)
        for point, region in zip(joined["_point"], joined["_region"])
        if not pd.isna(region)
    }

    associations = tuple(
        Association(point, regions[hits[i]].region_id if i in hits else None)
        for i, point in enumerate(points)
    )
    logger.info(f"Assigned {len(hits)} out of {len(points)} events to regions")
    return associations


def inside_only(associations, region_ids=None) -> tuple:
    """
    Keep associations that landed in a region.

    If region_ids is given, keep only those whose region is in that set.
    """
    if region_ids is not None:
        region_ids = {str(r) for r in region_ids}
    return tuple(
        a for a in associations
        if a.region_id is not None and (region_ids is None or a.region_id in region_ids)
    )
