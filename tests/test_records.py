"""
Unit tests for records module.
"""

import dataclasses

import geopandas as gpd
import numpy as np
import pandas as pd
import pytest
from shapely.geometry import LineString, Point, Polygon, box

from quake_regions.errors import ConfigurationError, GeometryError
from quake_regions.records import QuakeEvent, Region, events_from_frame, regions_from_frame


def test_event_is_immutable():
    event = QuakeEvent("e1", latitude=34.0, longitude=-118.0)
    with pytest.raises(dataclasses.FrozenInstanceError):
        event.latitude = 0.0


def test_event_coordinates_coerced_to_float():
    event = QuakeEvent("e1", latitude="34.5", longitude=np.float32(-118.25))
    assert event.latitude == 34.5
    assert isinstance(event.longitude, float)
    assert event.coordinates == (-118.25, 34.5)


@pytest.mark.parametrize("lat, lon", [(None, 0.0), (0.0, float("nan")), (pd.NA, 1.0)])
def test_event_missing_coordinate(lat, lon):
    with pytest.raises(ConfigurationError, match="missing"):
        QuakeEvent("bad", latitude=lat, longitude=lon)


@pytest.mark.parametrize("lat, lon", [(91.0, 0.0), (0.0, -180.5), (float("inf"), 0.0)])
def test_event_out_of_range(lat, lon):
    with pytest.raises(GeometryError):
        QuakeEvent("bad", latitude=lat, longitude=lon)


def test_event_non_numeric_coordinate():
    with pytest.raises(ConfigurationError, match="non-numeric"):
        QuakeEvent("bad", latitude="north", longitude=0.0)


def test_region_id_stored_as_string():
    region = Region(6037, box(0, 0, 1, 1))
    assert region.region_id == "6037"


@pytest.mark.parametrize("geometry", [
    None,
    Polygon(),
    Point(0, 0),
    LineString([(0, 0), (1, 1)]),
    Polygon([(0, 0), (1, 1), (1, 0), (0, 1), (0, 0)]),
])
def test_region_bad_geometry(geometry):
    with pytest.raises(GeometryError):
        Region("r", geometry)


def test_region_missing_id():
    with pytest.raises(ConfigurationError):
        Region("", box(0, 0, 1, 1))


def test_events_from_frame():
    df = pd.DataFrame({
        "time": ["2024-01-01T00:00:00Z", None],
        "latitude": [34.0, 35.0],
        "longitude": [-118.0, -119.0],
        "mag": [3.2, np.nan],
        "depth": [7.5, 2.0],
        "place": ["5 km N of Somewhere", None],
        "id": ["ci1", np.nan],
        "magType": ["ml", "md"],
    })

    events = events_from_frame(df)

    assert len(events) == 2
    first, second = events
    assert first.event_id == "ci1"
    assert first.magnitude == pytest.approx(3.2)
    assert first.time == pd.Timestamp("2024-01-01T00:00:00Z")
    assert first.place == "5 km N of Somewhere"
    assert second.event_id == "row-1"
    assert second.magnitude is None
    assert second.time is None
    assert second.place == ""


def test_events_from_frame_missing_columns():
    with pytest.raises(ConfigurationError, match="longitude"):
        events_from_frame(pd.DataFrame({"latitude": [1.0]}))


def test_events_from_frame_names_bad_row():
    df = pd.DataFrame({"id": ["ok", "broken"], "latitude": [1.0, np.nan], "longitude": [1.0, 2.0]})
    with pytest.raises(ConfigurationError, match="broken"):
        events_from_frame(df)


def test_regions_from_frame(regions_frame):
    regions = regions_from_frame(regions_frame, "GEOID", "NAMELSAD", "ALAND")

    assert [r.region_id for r in regions] == ["06001", "06003", "06005"]
    assert regions[1].name == "Beta County"
    assert regions[2].land_area == 3000.0


def test_regions_from_frame_unknown_column(regions_frame):
    with pytest.raises(ConfigurationError):
        regions_from_frame(regions_frame, "COUNTYNS")
    with pytest.raises(ConfigurationError):
        regions_from_frame(regions_frame, "GEOID", name_column="NAME")


def test_regions_from_frame_empty_geometry(regions_frame):
    broken = regions_frame.copy()
    broken.loc[1, "geometry"] = Polygon()
    broken = gpd.GeoDataFrame(broken, geometry="geometry", crs=regions_frame.crs)

    with pytest.raises(GeometryError, match="06003"):
        regions_from_frame(broken, "GEOID")
