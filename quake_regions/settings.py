"""Paths, endpoints and per-run parameters."""

import os
from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

from us import states

from quake_regions.errors import ConfigurationError

# Configuration
DATA_DIR = Path("./data")
OUTPUT_DIR = Path("./output")

USGS_EVENT_API = "https://earthquake.usgs.gov/fdsnws/event/1/query"
USGS_EVENT_LIMIT = 20000
TIGER_COUNTY_URL = "https://www2.census.gov/geo/tiger/TIGER{year}/COUNTY/tl_{year}_us_county.zip"
TIGER_YEAR = 2020

REQUEST_TIMEOUT = 300

DEFAULT_STATE = "CA"
DEFAULT_MIN_MAGNITUDE = 2.5
DEFAULT_WINDOW_DAYS = 365

GEOGRAPHIC_CRS = "EPSG:4326"
PROJECTED_CRS = "EPSG:3857"  # Web Mercator

# TIGER county attribute names
COUNTY_ID_COLUMN = "GEOID"
COUNTY_NAME_COLUMN = "NAMELSAD"
COUNTY_AREA_COLUMN = "ALAND"
STATE_FIPS_COLUMN = "STATEFP"


def resolve_state(value):
    """Look up a US state by name, postal abbreviation or FIPS code."""
    text = "" if value is None else str(value).strip()
    state = states.lookup(text) if text else None
    if state is None:
        raise ConfigurationError(f"Unknown US state: {value!r}")
    return state


def _default_start():
    return (date.today() - timedelta(days=DEFAULT_WINDOW_DAYS)).isoformat()


def _default_end():
    return date.today().isoformat()


@dataclass(frozen=True)
class AnalysisConfig:
    """Parameters for one run of the regional earthquake analysis."""

    state: str = DEFAULT_STATE
    start: str = field(default_factory=_default_start)
    end: str = field(default_factory=_default_end)
    min_magnitude: float = DEFAULT_MIN_MAGNITUDE
    data_dir: Path = DATA_DIR
    output_dir: Path = OUTPUT_DIR
    census_api_key: Optional[str] = None
    population_year: int = 2022
    tiger_year: int = TIGER_YEAR

    def __post_init__(self):
        # Fail early on a bad state rather than after the downloads
        resolve_state(self.state)
        if self.min_magnitude < -2:
            raise ConfigurationError(f"Implausible minimum magnitude: {self.min_magnitude}")
        try:
            start, end = date.fromisoformat(self.start), date.fromisoformat(self.end)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Dates must be YYYY-MM-DD: {e}") from e
        if start >= end:
            raise ConfigurationError(f"Start date {self.start} is not before end date {self.end}")
        object.__setattr__(self, "data_dir", Path(self.data_dir))
        object.__setattr__(self, "output_dir", Path(self.output_dir))

    @property
    def state_fips(self) -> str:
        return resolve_state(self.state).fips

    @property
    def state_name(self) -> str:
        return resolve_state(self.state).name

    @classmethod
    def from_env(cls, **overrides):
        """Build a config from QUAKE_REGIONS_* and CENSUS_API_KEY variables."""
        values = {}
        env_map = {
            "state": "QUAKE_REGIONS_STATE",
            "data_dir": "QUAKE_REGIONS_DATA_DIR",
            "output_dir": "QUAKE_REGIONS_OUTPUT_DIR",
            "census_api_key": "CENSUS_API_KEY",
        }
        for name, var in env_map.items():
            if os.environ.get(var):
                values[name] = os.environ[var]
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
