"""Write tagged events and per-region counts to geometry files."""

import logging
from pathlib import Path

import geopandas as gpd
import pandas as pd

from quake_regions.region_filter import as_crs

logger = logging.getLogger(__name__)

FORMATS = {
    "shp": "ESRI Shapefile",
    "geojson": "GeoJSON",
}


def events_to_frame(associations, crs) -> gpd.GeoDataFrame:
    """Tagged events as a GeoDataFrame with a 'region_id' column."""
    crs = as_crs(crs, "Event")
    rows = []
    for association in associations:
        event = association.event
        rows.append({
            "event_id": event.event_id,
            "time": event.time,
            "magnitude": event.magnitude,
            "depth_km": event.depth_km,
            "mag_type": event.mag_type,
            "place": event.place,
            "region_id": association.region_id,
            "latitude": event.latitude,
            "longitude": event.longitude,
        })

    columns = ["event_id", "time", "magnitude", "depth_km", "mag_type", "place",
               "region_id", "latitude", "longitude"]
    frame = pd.DataFrame(rows, columns=columns)
    frame["time"] = pd.to_datetime(frame["time"], utc=True)
    return gpd.GeoDataFrame(
        frame,
        geometry=gpd.points_from_xy(frame["longitude"], frame["latitude"]),
        crs=crs,
    )


def _with_text_dates(frame):
    # Neither driver round-trips timezone-aware datetimes reliably
    safe = frame.copy()
    for col in safe.columns:
        if col != safe.geometry.name and pd.api.types.is_datetime64_any_dtype(safe[col]):
            safe[col] = safe[col].dt.strftime("%Y-%m-%dT%H:%M:%S%z")
    return safe


def write_outputs(frame, directory, stem, formats=("shp", "geojson")) -> list:
    """
    Write a GeoDataFrame in each requested format.

    Returns the list of written paths.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    out = _with_text_dates(frame)
    written = []
    for fmt in formats:
        if fmt not in FORMATS:
            raise ValueError(f"Unsupported export format {fmt!r}; choose from {sorted(FORMATS)}")
        path = directory / f"{stem}.{fmt}"
        out.to_file(path, driver=FORMATS[fmt])
        logger.info(f"Wrote {len(frame)} features to {path}")
        written.append(path)
    return written
