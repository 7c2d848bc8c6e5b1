"""
Per-region event counts.

Counts always cover the whole region catalog: regions that received no event
are reported with zero so they still appear on a choropleth.
"""

import logging

import pandas as pd

from quake_regions.errors import ConfigurationError, ReferentialIntegrityError
from quake_regions.region_filter import check_region_catalog

logger = logging.getLogger(__name__)

# Shapefile field names are limited to 10 characters
COUNT_COLUMN = "n_events"
RATE_COLUMN = "rate_100k"


def aggregate(associations, all_regions) -> dict:
    """
    Count associations per region, zero-filled over all_regions.

    Parameters
    ----------
    associations : sequence of Association
        Output of filter_points; entries with region_id None are ignored
    all_regions : sequence of Region
        Full region catalog

    Returns
    -------
    dict
        region_id -> count, one key per region in all_regions

    Raises
    ------
    ReferentialIntegrityError
        If an association names a region that is not in all_regions
    """
    all_regions = tuple(all_regions)
    check_region_catalog(all_regions)
    catalog = [r.region_id for r in all_regions]
    known = set(catalog)

    region_ids = []
    for association in associations:
        if association.region_id is None:
            continue
        if association.region_id not in known:
            raise ReferentialIntegrityError(
                f"Event {association.event.event_id!r} references unknown region {association.region_id!r}"
            )
        region_ids.append(association.region_id)

    counts = (
        pd.Series(region_ids, dtype="object")
        .value_counts()
        .reindex(catalog, fill_value=0)
    )
    result = {region_id: int(count) for region_id, count in counts.items()}

    logger.info(f"Counted {len(region_ids)} events across {sum(1 for c in result.values() if c)} "
                f"of {len(result)} regions")
    return result


def join_counts(regions_frame, counts, id_column):
    """
    Left-join a count mapping onto the full region GeoDataFrame.

    Regions missing from counts get 0. The input frame is not modified.
    """
    if id_column not in regions_frame.columns:
        raise ConfigurationError(f"Region table has no {id_column!r} column")

    ids = regions_frame[id_column].astype(str)
    unknown = set(counts) - set(ids)
    if unknown:
        raise ReferentialIntegrityError(f"Counts reference regions not in the table: {sorted(unknown)}")

    joined = regions_frame.copy()
    joined[COUNT_COLUMN] = ids.map(counts).fillna(0).astype(int).values
    return joined


def add_rates(counts_frame, population, id_column, population_column="population"):
    """
    Add an events-per-100k-residents column from a population table.

    population is a DataFrame with id_column and population_column. Regions
    without a population figure get NaN.
    """
    if COUNT_COLUMN not in counts_frame.columns:
        raise ConfigurationError(f"Count table has no {COUNT_COLUMN!r} column; call join_counts first")
    for col in (id_column, population_column):
        if col not in population.columns:
            raise ConfigurationError(f"Population table has no {col!r} column")

    lookup = dict(zip(population[id_column].astype(str), population[population_column]))
    pop = counts_frame[id_column].astype(str).map(lookup).astype(float)

    rated = counts_frame.copy()
    rated[population_column] = pop.values
    rate = rated[COUNT_COLUMN] / pop.where(pop > 0) * 100_000
    rated[RATE_COLUMN] = rate.values
    return rated
