"""
Regional earthquake count analysis.

Counts USGS earthquakes per county for one US state and maps the result.
"""

from pathlib import Path

import pandas as pd

from quake_regions import export, maps, settings, sources
from quake_regions.aggregate import COUNT_COLUMN, RATE_COLUMN, add_rates, aggregate, join_counts
from quake_regions.records import events_from_frame, regions_from_frame
from quake_regions.region_filter import filter_points, inside_only


class RegionalQuakeAnalysis:
    def __init__(self, config, id_column=settings.COUNTY_ID_COLUMN,
                 name_column=settings.COUNTY_NAME_COLUMN, area_column=settings.COUNTY_AREA_COLUMN):
        self.config = config
        self.id_column = id_column
        self.name_column = name_column
        self.area_column = area_column

    def load_boundaries(self, path=None):
        """Load county boundaries for the configured state, downloading TIGER data if no path is given."""
        print(f"Loading county boundaries for {self.config.state_name}...")

        if path is None:
            path = sources.download_county_boundaries(self.config.data_dir, self.config.tiger_year)

        regions_gdf = sources.load_regions(path, state_fips=self.config.state_fips)
        area_column = self.area_column if self.area_column in regions_gdf.columns else None
        regions = regions_from_frame(regions_gdf, self.id_column, self.name_column, area_column)

        print(f"Loaded {len(regions)} counties")
        return regions_gdf, regions

    def load_events(self, regions_gdf, path=None):
        """Load events from a local CSV, or query USGS inside the state's bounding box."""
        print("Loading earthquake events...")

        if path is not None:
            events_df = sources.read_events_csv(path)
        else:
            cache = self.config.data_dir / (
                f"usgs_{self.config.state_fips}_{self.config.start}_{self.config.end}"
                f"_m{self.config.min_magnitude}.csv"
            )
            events_df = sources.fetch_usgs_events(
                self.config.start,
                self.config.end,
                min_magnitude=self.config.min_magnitude,
                bbox=sources.state_bbox(regions_gdf),
                cache_path=cache,
            )

        if "mag" in events_df.columns:
            events_df = events_df[events_df["mag"].isna() | (events_df["mag"] >= self.config.min_magnitude)]

        events = events_from_frame(events_df)
        print(f"Loaded {len(events)} events with magnitude >= {self.config.min_magnitude}")
        return events

    def assign_events_to_regions(self, events, regions, regions_crs):
        """Tag every event with its county and keep those inside the state."""
        print("Assigning events to counties...")

        associations = filter_points(events, regions, settings.GEOGRAPHIC_CRS, regions_crs, reproject=True)
        inside = inside_only(associations)

        print(f"Assigned {len(inside)} out of {len(associations)} events to counties")
        return associations, inside

    def count_events(self, associations, regions, regions_gdf):
        """Events per county, zero-filled, joined onto the county geometry."""
        print("Counting events by county...")

        counts = aggregate(associations, regions)
        counts_gdf = join_counts(regions_gdf, counts, self.id_column)

        touched = sum(1 for c in counts.values() if c)
        print(f"{touched} of {len(counts)} counties recorded at least one event")
        return counts_gdf

    def attach_population(self, counts_gdf):
        """Add population and events per 100k residents when a Census key is configured."""
        if not self.config.census_api_key:
            print("No CENSUS_API_KEY set; skipping per-capita rates")
            return counts_gdf

        print("Fetching county population from Census API...")
        population = sources.fetch_county_population(
            self.config.census_api_key, self.config.state_fips, self.config.population_year
        )
        return add_rates(counts_gdf, population, self.id_column)

    def create_visualizations(self, counts_gdf, events_gdf, regions_gdf):
        """Write static PNG maps and the interactive HTML map; return their paths."""
        print("\nCreating visualizations...")
        out = self.config.output_dir
        state = self.config.state_name
        written = []

        fig = maps.plot_events(events_gdf, regions_gdf, title=f"Earthquakes in {state}")
        written.append(maps.save_figure(fig, out / "events.png"))

        fig = maps.plot_choropleth(counts_gdf, title=f"Earthquakes per county, {state}")
        written.append(maps.save_figure(fig, out / "event_counts.png"))

        if RATE_COLUMN in counts_gdf.columns and counts_gdf[RATE_COLUMN].notna().any():
            fig = maps.plot_choropleth(counts_gdf, column=RATE_COLUMN,
                                       title=f"Earthquakes per 100k residents, {state}")
            written.append(maps.save_figure(fig, out / "event_rates.png"))

        fig = maps.plot_top_regions(counts_gdf, self.name_column,
                                    title=f"Counties with the most earthquakes, {state}")
        written.append(maps.save_figure(fig, out / "top_counties.png"))

        m = maps.interactive_map(counts_gdf, self.id_column, self.name_column, events_frame=events_gdf)
        written.append(maps.save_map(m, out / "event_map.html"))
        return written

    def export_results(self, counts_gdf, events_gdf):
        print("\nExporting results...")
        written = export.write_outputs(counts_gdf, self.config.output_dir, "county_event_counts")
        written += export.write_outputs(events_gdf, self.config.output_dir, "events_in_state")
        for path in written:
            print(f"  {path}")
        return written

    def generate_report(self, counts_gdf, n=10):
        """Print a summary and save the per-county table as CSV."""
        print("\n" + "=" * 60)
        print(f"EARTHQUAKES BY COUNTY: {self.config.state_name.upper()}")
        print(f"{self.config.start} to {self.config.end}, magnitude >= {self.config.min_magnitude}")
        print("=" * 60)

        table = pd.DataFrame(counts_gdf.drop(columns=counts_gdf.geometry.name))
        total = int(table[COUNT_COLUMN].sum())
        print(f"\nTotal events inside the state: {total:,}")
        print(f"Counties with no events: {int((table[COUNT_COLUMN] == 0).sum())} of {len(table)}")

        print(f"\nTOP {n} COUNTIES:")
        for _, row in table.nlargest(n, COUNT_COLUMN).iterrows():
            line = f"{row[self.name_column]}: {row[COUNT_COLUMN]:,} events"
            if RATE_COLUMN in table.columns and pd.notna(row[RATE_COLUMN]):
                line += f" ({row[RATE_COLUMN]:.1f} per 100k residents)"
            print(line)

        self.config.output_dir.mkdir(parents=True, exist_ok=True)
        csv_path = Path(self.config.output_dir) / "county_event_counts.csv"
        table.to_csv(csv_path, index=False)
        print(f"\nDetailed results saved to '{csv_path}'")
        return table

    def run(self, events_path=None, boundaries_path=None, make_maps=True):
        """Run every step; returns the per-county GeoDataFrame."""
        regions_gdf, regions = self.load_boundaries(boundaries_path)
        events = self.load_events(regions_gdf, events_path)

        associations, inside = self.assign_events_to_regions(events, regions, regions_gdf.crs)
        counts_gdf = self.count_events(associations, regions, regions_gdf)
        counts_gdf = self.attach_population(counts_gdf)

        events_gdf = export.events_to_frame(inside, settings.GEOGRAPHIC_CRS)
        if make_maps:
            self.create_visualizations(counts_gdf, events_gdf, regions_gdf)
        self.export_results(counts_gdf, events_gdf)
        self.generate_report(counts_gdf)

        print(f"\nAnalysis complete! {len(inside)} events across {len(regions)} counties.")
        return counts_gdf
