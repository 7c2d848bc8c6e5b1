"""
Unit tests for aggregate module.
"""

import random

import pandas as pd
import pytest
from shapely.geometry import box

from quake_regions.aggregate import COUNT_COLUMN, RATE_COLUMN, add_rates, aggregate, join_counts
from quake_regions.errors import ConfigurationError, ReferentialIntegrityError
from quake_regions.records import Region
from quake_regions.region_filter import Association, filter_points, inside_only

from conftest import make_event


def _catalog(*ids):
    return tuple(Region(rid, box(i, 0, i + 1, 1)) for i, rid in enumerate(ids))


def _associations(*region_ids):
    return tuple(
        Association(make_event(f"e{i}", 0.5, 0.5), rid) for i, rid in enumerate(region_ids)
    )


def test_zero_filled_for_untouched_regions():
    result = aggregate(_associations("R1", "R1"), _catalog("R1", "R2", "R3"))
    assert result == {"R1": 2, "R2": 0, "R3": 0}


def test_one_entry_per_region():
    catalog = _catalog("a", "b", "c", "d", "e")
    result = aggregate(_associations("a", "b", "b", "c", "c", "c"), catalog)

    assert len(result) == 5
    assert sorted(result.values()) == [0, 0, 1, 2, 3]


def test_unassigned_events_are_ignored():
    result = aggregate(_associations("R1", None, None), _catalog("R1", "R2"))
    assert result == {"R1": 1, "R2": 0}


def test_order_independent():
    catalog = _catalog("a", "b", "c")
    associations = list(_associations("a", "b", "a", None, "c", "a", "b"))
    expected = aggregate(associations, catalog)

    rng = random.Random(7)
    for _ in range(5):
        rng.shuffle(associations)
        assert aggregate(associations, catalog) == expected


def test_unknown_region_raises():
    with pytest.raises(ReferentialIntegrityError, match="ghost"):
        aggregate(_associations("R1", "ghost"), _catalog("R1"))


def test_empty_associations():
    assert aggregate((), _catalog("x", "y")) == {"x": 0, "y": 0}


def test_counts_are_plain_ints():
    result = aggregate(_associations("R1"), _catalog("R1"))
    assert type(result["R1"]) is int


def test_end_to_end_filter_then_count(events, regions):
    """3 events in A and 1 outside -> 3 filtered events tagged A, counts {A: 3, B: 0}."""
    associations = filter_points(events, regions, "EPSG:4326", "EPSG:4326")
    inside = inside_only(associations)

    assert len(inside) == 3
    assert {a.region_id for a in inside} == {"A"}
    assert aggregate(associations, regions) == {"A": 3, "B": 0}
    assert aggregate(inside, regions) == {"A": 3, "B": 0}


def test_join_counts_left_join(regions_frame):
    joined = join_counts(regions_frame, {"06001": 4, "06005": 0}, "GEOID")

    assert list(joined[COUNT_COLUMN]) == [4, 0, 0]
    assert len(joined) == len(regions_frame)
    assert COUNT_COLUMN not in regions_frame.columns


def test_join_counts_unknown_region(regions_frame):
    with pytest.raises(ReferentialIntegrityError):
        join_counts(regions_frame, {"99999": 1}, "GEOID")


def test_join_counts_missing_column(regions_frame):
    with pytest.raises(ConfigurationError):
        join_counts(regions_frame, {}, "COUNTYFP")


def test_add_rates(regions_frame):
    counts = join_counts(regions_frame, {"06001": 5, "06003": 1}, "GEOID")
    population = pd.DataFrame({"GEOID": ["06001", "06003"], "population": [50_000, 0]})

    rated = add_rates(counts, population, "GEOID")

    assert rated.loc[0, RATE_COLUMN] == pytest.approx(10.0)
    # Zero or unknown population gives no rate
    assert pd.isna(rated.loc[1, RATE_COLUMN])
    assert pd.isna(rated.loc[2, RATE_COLUMN])


def test_add_rates_requires_counts(regions_frame):
    population = pd.DataFrame({"GEOID": ["06001"], "population": [10]})
    with pytest.raises(ConfigurationError, match="join_counts"):
        add_rates(regions_frame, population, "GEOID")
