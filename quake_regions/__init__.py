"""
Earthquake events per administrative region.

Downloads USGS earthquake records and Census county boundaries, restricts the
events to a target state with a point-in-polygon join, counts events per
county (zero-filled), and writes maps and geometry files of the result.
"""

from quake_regions.errors import (
    ConfigurationError,
    GeometryError,
    QuakeRegionsError,
    ReferentialIntegrityError,
)
from quake_regions.records import QuakeEvent, Region
from quake_regions.region_filter import Association, filter_points, inside_only
from quake_regions.aggregate import aggregate, join_counts

__version__ = "0.1.0"

__all__ = [
    "Association",
    "ConfigurationError",
    "GeometryError",
    "QuakeEvent",
    "QuakeRegionsError",
    "ReferentialIntegrityError",
    "Region",
    "aggregate",
    "filter_points",
    "inside_only",
    "join_counts",
]
