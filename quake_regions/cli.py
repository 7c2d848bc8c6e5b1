"""
Command-line entry point: count earthquakes per county for one state.

Examples:
  quake-regions --state CA --start 2024-01-01 --end 2025-01-01
  quake-regions --state OK --min-magnitude 3 --no-maps
  quake-regions --events-csv quakes.csv --boundaries counties.shp --state 06
"""

import argparse
import logging
import sys

import requests

from quake_regions import settings
from quake_regions.analysis import RegionalQuakeAnalysis
from quake_regions.errors import QuakeRegionsError

logger = logging.getLogger(__name__)


def setup_parser():
    parser = argparse.ArgumentParser(
        prog="quake-regions",
        description="Count earthquakes per county and map the results",
    )
    parser.add_argument("--state", default=None,
                        help=f"State name, postal code or FIPS (default: $QUAKE_REGIONS_STATE or {settings.DEFAULT_STATE})")
    parser.add_argument("--start", default=None, help="Start date, YYYY-MM-DD (default: one year ago)")
    parser.add_argument("--end", default=None, help="End date, YYYY-MM-DD (default: today)")
    parser.add_argument("--min-magnitude", type=float, default=None,
                        help=f"Minimum magnitude (default: {settings.DEFAULT_MIN_MAGNITUDE})")
    parser.add_argument("--data-dir", default=None, help="Directory for downloaded data")
    parser.add_argument("--output-dir", default=None, help="Directory for maps and exports")
    parser.add_argument("--events-csv", default=None,
                        help="Use a local USGS-format CSV instead of querying USGS")
    parser.add_argument("--boundaries", default=None,
                        help="Use a local county boundary file instead of downloading TIGER counties")
    parser.add_argument("--no-maps", action="store_true", help="Skip static and interactive maps")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def main(argv=None):
    parser = setup_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    try:
        config = settings.AnalysisConfig.from_env(
            state=args.state,
            start=args.start,
            end=args.end,
            min_magnitude=args.min_magnitude,
            data_dir=args.data_dir,
            output_dir=args.output_dir,
        )
        analysis = RegionalQuakeAnalysis(config)
        analysis.run(events_path=args.events_csv, boundaries_path=args.boundaries,
                     make_maps=not args.no_maps)
    except QuakeRegionsError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 2
    except requests.exceptions.RequestException as e:
        logger.error(f"Download failed: {e}")
        return 3
    return 0


if __name__ == "__main__":
    sys.exit(main())
