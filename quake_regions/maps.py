"""
Static and interactive maps of events and per-region counts.

These functions only read the final outputs (tagged events, counted regions);
they never feed anything back into the filtering or counting steps.
"""

import logging
from pathlib import Path

import branca.colormap as cm
import folium
import mapclassify
import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns
from folium.plugins import MarkerCluster

from quake_regions import settings
from quake_regions.aggregate import COUNT_COLUMN

logger = logging.getLogger(__name__)

DEFAULT_SCHEME = "FisherJenks"


def class_breaks(values, scheme=DEFAULT_SCHEME, k=5):
    """
    Class edges for a choropleth, or None when the data cannot be binned.

    The returned list starts at the minimum value and ends at the maximum,
    strictly increasing, so it can be passed straight to folium.Choropleth.
    """
    y = np.asarray([v for v in values if v is not None and not np.isnan(v)], dtype=float)
    n_unique = len(np.unique(y))
    if n_unique < 2:
        return None

    classifier = mapclassify.classify(y, scheme, k=min(k, n_unique))
    edges = sorted(set([float(y.min())] + [float(b) for b in classifier.bins]))
    return edges if len(edges) >= 2 else None


def choropleth_bins(values, scheme=DEFAULT_SCHEME, k=5):
    """
    Bin edges for folium.Choropleth, always at least 3 classes.

    ColorBrewer palettes need 3 or more colours, so two-valued data (one busy
    region, the rest at zero) and constant data get evenly spaced edges.
    """
    edges = class_breaks(values, scheme=scheme, k=k)
    if edges is not None and len(edges) >= 4:
        return edges

    y = np.asarray([v for v in values if v is not None and not np.isnan(v)], dtype=float)
    low = float(y.min()) if y.size else 0.0
    high = float(y.max()) if y.size else 1.0
    if high <= low:
        high = low + 1.0
    return [float(e) for e in np.linspace(low, high, 4)]


def plot_events(events_frame, regions_frame, title="Earthquake epicentres", ax=None):
    """Events as magnitude-scaled dots over the region outlines."""
    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 10))
    else:
        fig = ax.figure

    regions_frame.boundary.plot(ax=ax, color="grey", linewidth=0.5)
    if not events_frame.empty:
        events = events_frame.to_crs(regions_frame.crs)
        sizes = (events["magnitude"].fillna(0).clip(lower=0) + 1) ** 2 * 2
        events.plot(ax=ax, markersize=sizes, color="firebrick", alpha=0.6)

    ax.set_title(title)
    ax.set_axis_off()
    return fig


def plot_choropleth(counts_frame, column=COUNT_COLUMN, scheme=DEFAULT_SCHEME, k=5,
                    title="Earthquakes per region", cmap="OrRd", ax=None):
    """
    Regions shaded by column.

    Uses a mapclassify scheme when the values support it and falls back to a
    continuous colormap otherwise (e.g. every region has the same count).
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 10))
    else:
        fig = ax.figure

    values = counts_frame[column].astype(float)
    n_unique = values.dropna().nunique()
    if n_unique >= 2:
        counts_frame.plot(column=column, scheme=scheme, k=min(k, n_unique), cmap=cmap,
                          legend=True, edgecolor="black", linewidth=0.3, ax=ax,
                          missing_kwds={"color": "lightgrey"},
                          legend_kwds={"title": column.replace("_", " ")})
    else:
        counts_frame.plot(column=column, cmap=cmap, legend=True, edgecolor="black",
                          linewidth=0.3, ax=ax, missing_kwds={"color": "lightgrey"})

    ax.set_title(title)
    ax.set_axis_off()
    return fig


def plot_top_regions(counts_frame, name_column, column=COUNT_COLUMN, n=15,
                     title="Regions with the most earthquakes", ax=None):
    """Horizontal bar chart of the n regions with the highest values."""
    top = counts_frame.nlargest(n, column)

    if ax is None:
        fig, ax = plt.subplots(figsize=(10, max(4, 0.4 * len(top))))
    else:
        fig = ax.figure

    sns.barplot(x=top[column].values, y=top[name_column].astype(str).values, color="steelblue", ax=ax)
    ax.set_xlabel(column.replace("_", " ").capitalize())
    ax.set_ylabel("")
    ax.set_title(title)
    return fig


def save_figure(fig, path, dpi=300):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    logger.info(f"Saved figure {path}")
    return path


def _event_popup(row):
    return (
        f"<b>{row.get('place') or 'Unknown location'}</b><br>"
        f"Magnitude: {row.get('magnitude')}<br>"
        f"Depth: {row.get('depth_km')} km<br>"
        f"Time: {row.get('time')}"
    )


def interactive_map(counts_frame, id_column, name_column, events_frame=None,
                    column=COUNT_COLUMN, scheme=DEFAULT_SCHEME, k=5, zoom_start=6):
    """
    Folium map with a choropleth layer and clustered event markers.

    Parameters
    ----------
    counts_frame : GeoDataFrame
        Regions with the value column (see join_counts)
    id_column, name_column : str
        Region key and display name columns
    events_frame : GeoDataFrame, optional
        Tagged events (see export.events_to_frame)

    Returns
    -------
    folium.Map
    """
    regions = counts_frame[[id_column, name_column, column, counts_frame.geometry.name]]
    regions = regions.to_crs(settings.GEOGRAPHIC_CRS)
    regions[id_column] = regions[id_column].astype(str)

    min_lon, min_lat, max_lon, max_lat = regions.total_bounds
    m = folium.Map(location=[(min_lat + max_lat) / 2, (min_lon + max_lon) / 2],
                   zoom_start=zoom_start, tiles="OpenStreetMap")

    bins = choropleth_bins(regions[column].astype(float).tolist(), scheme=scheme, k=k)
    folium.Choropleth(
        geo_data=regions,
        data=regions,
        columns=[id_column, column],
        key_on=f"feature.properties.{id_column}",
        fill_color="YlOrRd",
        fill_opacity=0.7,
        line_opacity=0.3,
        bins=bins,
        legend_name=column.replace("_", " ").capitalize(),
        name="Choropleth",
    ).add_to(m)

    folium.GeoJson(
        regions,
        name="Region details",
        style_function=lambda feature: {"fillOpacity": 0, "weight": 0},
        tooltip=folium.GeoJsonTooltip(fields=[name_column, column], aliases=["Region", "Events"]),
    ).add_to(m)

    if events_frame is not None and not events_frame.empty:
        events = events_frame.to_crs(settings.GEOGRAPHIC_CRS)
        mags = events["magnitude"].dropna()
        vmin = float(mags.min()) if not mags.empty else 0.0
        vmax = float(mags.max()) if not mags.empty else 1.0
        if vmax <= vmin:
            vmax = vmin + 1.0
        colormap = cm.LinearColormap(["yellow", "orange", "red"], vmin=vmin, vmax=vmax,
                                     caption="Magnitude")

        cluster = MarkerCluster(name="Earthquakes").add_to(m)
        for _, row in events.iterrows():
            mag = row["magnitude"]
            has_mag = mag is not None and not np.isnan(mag)
            folium.CircleMarker(
                location=[row.geometry.y, row.geometry.x],
                radius=3 + 2 * max(mag, 0) if has_mag else 3,
                color=colormap(mag) if has_mag else "grey",
                fill=True,
                fill_opacity=0.7,
                popup=folium.Popup(_event_popup(row), max_width=300),
            ).add_to(cluster)
        colormap.add_to(m)

    folium.LayerControl(collapsed=False).add_to(m)
    return m


def save_map(m, path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    m.save(str(path))
    logger.info(f"Saved interactive map {path}")
    return path
