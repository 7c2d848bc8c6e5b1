"""
Shared fixtures: two adjacent unit squares and a handful of events.

Region "A" covers lon 0..1, lat 0..1; region "B" covers lon 1..2, lat 0..1,
so they share the edge lon == 1.
"""

import matplotlib

matplotlib.use("Agg")

import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import box

from quake_regions.records import QuakeEvent, Region


def make_event(event_id, lon, lat, mag=3.0):
    return QuakeEvent(event_id=event_id, latitude=lat, longitude=lon, magnitude=mag,
                      depth_km=10.0, place=f"near {event_id}")


@pytest.fixture
def region_a():
    return Region("A", box(0, 0, 1, 1), name="Alpha County", land_area=1.0)


@pytest.fixture
def region_b():
    return Region("B", box(1, 0, 2, 1), name="Beta County", land_area=1.0)


@pytest.fixture
def regions(region_a, region_b):
    return (region_a, region_b)


@pytest.fixture
def events():
    """Three events inside A and one outside every region."""
    return (
        make_event("e1", 0.2, 0.2),
        make_event("e2", 0.5, 0.5, mag=4.5),
        make_event("e3", 0.8, 0.3),
        make_event("e4", 5.0, 5.0),
    )


@pytest.fixture
def regions_frame():
    return gpd.GeoDataFrame(
        {
            "GEOID": ["06001", "06003", "06005"],
            "NAMELSAD": ["Alpha County", "Beta County", "Gamma County"],
            "ALAND": [1000.0, 2000.0, 3000.0],
            "STATEFP": ["06", "06", "06"],
        },
        geometry=[box(0, 0, 1, 1), box(1, 0, 2, 1), box(0, 1, 2, 2)],
        crs="EPSG:4326",
    )


@pytest.fixture
def events_csv(tmp_path):
    df = pd.DataFrame({
        "time": ["2024-01-01T00:00:00.000Z", "2024-02-01T12:30:00.000Z",
                 "2024-03-01T06:00:00.000Z", "2024-04-01T00:00:00.000Z",
                 "2024-05-01T00:00:00.000Z"],
        "latitude": [0.5, 0.5, 1.5, 0.2, 9.0],
        "longitude": [0.5, 1.5, 0.5, 0.3, 9.0],
        "depth": [5.0, 8.0, 12.0, 3.0, 30.0],
        "mag": [3.1, 2.7, 4.0, 1.2, 5.5],
        "magType": ["ml", "ml", "mw", "md", "mw"],
        "place": ["a", "b", "c", "d", "offshore"],
        "id": ["q1", "q2", "q3", "q4", "q5"],
    })
    path = tmp_path / "events.csv"
    df.to_csv(path, index=False)
    return path
