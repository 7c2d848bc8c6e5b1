"""
Dataset ingestion: USGS earthquake catalog, TIGER county boundaries and
Census county population.
"""

import io
import logging
import zipfile
from pathlib import Path

import geopandas as gpd
import pandas as pd
import requests
from census import Census

from quake_regions import settings
from quake_regions.errors import ConfigurationError

logger = logging.getLogger(__name__)

EVENT_COLUMNS = ["time", "latitude", "longitude", "depth", "mag", "magType", "place", "id"]


def read_events_csv(source) -> pd.DataFrame:
    """Read a USGS FDSN CSV (path or buffer) and check the columns we rely on."""
    try:
        df = pd.read_csv(source)
    except pd.errors.EmptyDataError:
        raise ConfigurationError(f"Event file is empty: {source}")

    missing = [c for c in ("time", "latitude", "longitude", "mag", "place") if c not in df.columns]
    if missing:
        raise ConfigurationError(f"Event CSV missing required columns: {', '.join(missing)}")

    df["time"] = pd.to_datetime(df["time"], utc=True, errors="coerce")
    keep = [c for c in EVENT_COLUMNS if c in df.columns]
    logger.info(f"Read {len(df)} events")
    return df[keep]


def fetch_usgs_events(start, end, min_magnitude=settings.DEFAULT_MIN_MAGNITUDE,
                      bbox=None, cache_path=None) -> pd.DataFrame:
    """
    Download events from the USGS FDSN event service as CSV.

    Parameters
    ----------
    start, end : str
        ISO dates bounding the query
    min_magnitude : float
        Lower magnitude bound
    bbox : tuple, optional
        (min_lon, min_lat, max_lon, max_lat) to narrow the query
    cache_path : Path, optional
        If the file exists it is read instead of downloading; otherwise the
        downloaded CSV is written there

    Returns
    -------
    pd.DataFrame
    """
    if cache_path is not None and Path(cache_path).exists():
        logger.info(f"Using cached events file {cache_path}")
        return read_events_csv(cache_path)

    params = {
        "format": "csv",
        "starttime": start,
        "endtime": end,
        "minmagnitude": min_magnitude,
        "orderby": "time-asc",
        "limit": settings.USGS_EVENT_LIMIT,
    }
    if bbox is not None:
        min_lon, min_lat, max_lon, max_lat = bbox
        params.update({
            "minlongitude": min_lon,
            "minlatitude": min_lat,
            "maxlongitude": max_lon,
            "maxlatitude": max_lat,
        })

    logger.info(f"Fetching USGS events {start} to {end} (mag {min_magnitude}+)")
    response = requests.get(settings.USGS_EVENT_API, params=params, timeout=settings.REQUEST_TIMEOUT)
    response.raise_for_status()

    count = max(len(response.text.strip().splitlines()) - 1, 0)
    if count >= settings.USGS_EVENT_LIMIT:
        # A truncated catalog would undercount; nothing is cached
        raise ConfigurationError(
            f"USGS returned {count} events for {start} to {end} (mag {min_magnitude}+), "
            f"the {settings.USGS_EVENT_LIMIT} event limit; narrow the date range or raise the magnitude"
        )

    if cache_path is not None:
        Path(cache_path).parent.mkdir(parents=True, exist_ok=True)
        Path(cache_path).write_text(response.text)

    return read_events_csv(io.StringIO(response.text))


def download_county_boundaries(data_dir=settings.DATA_DIR, year=settings.TIGER_YEAR) -> Path:
    """Download and extract the TIGER/Line county shapefile; return the .shp path."""
    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)

    name = f"tl_{year}_us_county"
    zip_path = data_dir / f"{name}.zip"
    extract_dir = data_dir / name

    if not zip_path.exists():
        url = settings.TIGER_COUNTY_URL.format(year=year)
        logger.info(f"Downloading county boundaries from {url}")
        response = requests.get(url, timeout=settings.REQUEST_TIMEOUT)
        response.raise_for_status()
        zip_path.write_bytes(response.content)
        logger.info(f"Downloaded {len(response.content)} bytes")
    else:
        logger.info("Using existing county boundaries archive")

    if not zipfile.is_zipfile(zip_path):
        zip_path.unlink()
        raise ConfigurationError(f"{zip_path} is not a valid zip file; it has been removed, please retry")

    with zipfile.ZipFile(zip_path, "r") as zip_ref:
        zip_ref.extractall(extract_dir)

    return extract_dir / f"{name}.shp"


def load_regions(path, state_fips=None, state_column=settings.STATE_FIPS_COLUMN) -> gpd.GeoDataFrame:
    """Read a boundary file, optionally keeping only one state's units."""
    regions = gpd.read_file(path)
    if regions.crs is None:
        raise ConfigurationError(f"Boundary file {path} has no CRS")

    if state_fips is not None:
        if state_column not in regions.columns:
            raise ConfigurationError(f"Boundary file has no {state_column!r} column to filter on")
        regions = regions[regions[state_column].astype(str).str.zfill(2) == str(state_fips).zfill(2)]
        if regions.empty:
            raise ConfigurationError(f"No boundaries found for state FIPS {state_fips}")

    regions = regions.reset_index(drop=True)
    logger.info(f"Loaded {len(regions)} boundaries from {path}")
    return regions


def state_bbox(regions_frame, margin=0.1):
    """(min_lon, min_lat, max_lon, max_lat) of the regions in geographic degrees."""
    geographic = regions_frame.to_crs(settings.GEOGRAPHIC_CRS)
    min_lon, min_lat, max_lon, max_lat = geographic.total_bounds
    return (
        max(min_lon - margin, -180.0),
        max(min_lat - margin, -90.0),
        min(max_lon + margin, 180.0),
        min(max_lat + margin, 90.0),
    )


def fetch_county_population(api_key, state_fips, year=2022) -> pd.DataFrame:
    """
    Total population per county from the ACS 5-year estimates.

    Returns a DataFrame with 'GEOID' (state + county FIPS) and 'population'.
    """
    if not api_key:
        raise ConfigurationError("A Census API key is required to fetch population")

    client = Census(api_key)
    rows = client.acs5.state_county(
        fields=("NAME", "B01003_001E"),
        state_fips=str(state_fips).zfill(2),
        county_fips=Census.ALL,
        year=year,
    )

    records = []
    for row in rows:
        value = row.get("B01003_001E")
        records.append({
            settings.COUNTY_ID_COLUMN: f"{row['state']}{row['county']}",
            "population": int(float(value)) if value is not None else None,
        })

    population = pd.DataFrame(records, columns=[settings.COUNTY_ID_COLUMN, "population"])
    logger.info(f"Retrieved population for {len(population)} counties")
    return population
