# app_core.py
# Economic & Environmental Dashboard: GDP choropleth with air-quality and
# environmental-index overlays, country panel, charts and a France view.

import argparse
import logging

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from dash import Dash, dcc, html, Input, Output, exceptions

import dashboard_hook as SH
from air_quality import (
    COMPOSITE,
    AirQualityParameter,
    BAND_COLORS,
    BAND_LABELS,
    aggregate_measurements,
    available_year_months,
    heatmap_points,
    index_measurements,
    regional_averages,
    value_color,
)
from api import register_routes
from color_scales import ScaleType, build_color_scale, country_color, environmental_color
from data_sources import AssetStore, feature_collection, load_or_empty
from environment import (
    METRIC_LABELS,
    POLLUTANT_LABELS,
    Metric,
    available_periods,
    environmental_ranges,
    filter_indices,
    metric_label,
    metric_profile,
    prepare_environmental_points,
)
from gdp_data import country_data, data_for_year, data_for_year_range, previous_year, process_gdp_data
from reconcile import find_country_record, match_measurement, pair_records
from records import GeoFeature
from regional import (
    IDF_POLLUTION_TYPES,
    flatten_france_sensors,
    france_revenus,
    idf_month_years,
    idf_pollution_color,
    idf_pollution_rows,
    idf_revenus,
    parse_geo_point,
    income_color,
    revenus_years,
    sensor_dates,
    sensor_value,
)
from stats_lib import (
    change_percentage,
    country_rank,
    format_gdp_value,
    pearson_correlation,
    top_n,
    trend_line,
)

logger = logging.getLogger(__name__)

EMPTY_GEOJSON = {"type": "FeatureCollection", "features": []}


# -----------------------------
# Helpers
# -----------------------------

def _empty_fig(msg: str):
    fig = go.Figure()
    fig.add_annotation(text=msg, showarrow=False, xref="paper", yref="paper", x=0.5, y=0.5)
    fig.update_layout(
        xaxis=dict(visible=False),
        yaxis=dict(visible=False),
        margin=dict(l=40, r=20, t=40, b=40),
    )
    return fig


def _label(key):
    return SH.LABELS.get(key, str(key).replace("_", " ").title())


def _options(values, labels=None):
    labels = labels or {}
    return [{"label": labels.get(v, _label(v)), "value": v} for v in values]


def _with_ids(geojson):
    """Copy of a FeatureCollection with a positional `id` on each feature."""
    feats = [dict(f, id=str(i)) for i, f in enumerate(geojson.get("features", []))]
    return {"type": "FeatureCollection", "features": feats}


def load_gdp(store):
    return process_gdp_data(load_or_empty(store.load_gdp, []))


def load_geojson(store):
    raw = load_or_empty(store.load_map, None)
    return feature_collection(raw) if raw else EMPTY_GEOJSON


def load_measurements(store, parameter, year_month):
    points = aggregate_measurements(load_or_empty(store.load_pollutants, {}), parameter, year_month or "")
    return list(index_measurements(points).values())


def load_environment_points(store, period, pollutant, metric):
    filtered = filter_indices(load_or_empty(store.load_indices, {}), period or None, pollutant, metric)
    return prepare_environmental_points(filtered, pollutant, metric, period or "")


def load_idf_pollution(store, kind):
    return load_or_empty(lambda: store.load_idf_pollution(kind or IDF_POLLUTION_TYPES[0]), {})


def map_frame(geojson, records, color_of):
    """One row per boundary feature with its reconciled value and colour.

    `color_of` receives the matched value, or None when nothing matched.
    """
    rows = []
    for i, raw_feature in enumerate(geojson.get("features", [])):
        feature = GeoFeature.from_geojson(raw_feature)
        rec = find_country_record(feature, records)
        value = rec.value if rec is not None else None
        rows.append({
            "fid": str(i),
            "name": feature.name,
            "code": feature.code,
            "value": np.nan if value is None else value,
            "color": color_of(value),
        })
    return pd.DataFrame(rows, columns=["fid", "name", "code", "value", "color"])


def country_panel(feature, by_year, year):
    """Name, GDP, global rank and YoY change for the selected country."""
    year = str(year)
    current = data_for_year(by_year, year)
    rec = find_country_record(feature, current)
    if rec is None:
        return {"name": feature.name or "-", "gdp": "N/A", "rank": "N/A", "change": "N/A"}

    prev = previous_year(year)
    change = change_percentage(rec.country_code, current, data_for_year(by_year, prev) if prev else [])
    rank = country_rank(rec.country_code, current)
    return {
        "name": rec.country_name,
        "gdp": format_gdp_value(rec.value),
        "rank": f"#{rank} of {len(current)}" if rank > 0 else "N/A",
        "change": change.formatted,
    }


# -----------------------------
# Figures
# -----------------------------

def world_map_figure(geojson, frame, measurements=(), parameter=SH.DEFAULT_PARAMETER, title=""):
    if frame.empty:
        return _empty_fig("No map data")

    d = frame.copy()
    d["label"] = d["value"].map(lambda v: format_gdp_value(None if pd.isna(v) else v))
    fig = px.choropleth(
        d,
        geojson=_with_ids(geojson),
        locations="fid",
        featureidkey="id",
        color="color",
        color_discrete_map="identity",
        hover_name="name",
        custom_data=["fid", "label", "name", "code"],
        projection=SH.MAP_PROJECTION,
    )
    fig.update_traces(
        marker_line_width=0.3,
        marker_line_color="#FFFFFF",
        hovertemplate="%{hovertext}<br>%{customdata[1]}<extra></extra>",
    )

    if measurements:
        heat = heatmap_points(measurements, parameter)
        fig.add_trace(go.Scattergeo(
            lat=[p.latitude for p in measurements],
            lon=[p.longitude for p in measurements],
            mode="markers",
            marker=dict(
                size=[6 + 14 * intensity for _, _, intensity in heat],
                color=[value_color(p.value, parameter) for p in measurements],
                line=dict(width=0.5, color="#333333"),
                opacity=0.85,
            ),
            text=[f"{p.country}: {p.value:.1f} {p.unit}" for p in measurements],
            hoverinfo="text",
            name="Air quality",
        ))

    fig.update_geos(showframe=False, showcoastlines=False)
    fig.update_layout(margin=dict(l=10, r=10, t=40, b=10), title=title, showlegend=False)
    return fig


def trend_figure(by_year, country_code, country_name):
    xs, ys = [], []
    for year in data_for_year_range(by_year, SH.GDP_YEARS[0], SH.GDP_YEARS[-1]):
        rec = country_data(by_year, country_code, year)
        if rec is not None:
            xs.append(int(year))
            ys.append(rec.value)
    if not xs:
        return _empty_fig(f"No GDP data for {country_name}")

    label = _label("gdp")
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=xs,
        y=ys,
        mode="lines+markers",
        name=country_name,
        hovertemplate=f"{country_name}<br>Year=%{{x}}<br>{label}=%{{y:$,.0f}}<extra></extra>",
    ))
    fig.update_layout(
        title=f"{label}: {country_name}",
        xaxis_title="Year",
        yaxis_title=label,
        margin=dict(l=40, r=20, t=60, b=40),
        hovermode="x unified",
    )
    return fig


def correlation_figure(records, measurements, parameter):
    pairs = pair_records(records, measurements)
    if len(pairs) < SH.MIN_SCATTER_POINTS:
        return _empty_fig("Not enough matching countries for a correlation")

    xs = [rec.value for rec, _ in pairs]
    ys = [m.value for _, m in pairs]
    r = pearson_correlation(xs, ys)

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=xs,
        y=ys,
        mode="markers",
        text=[rec.country_name for rec, _ in pairs],
        marker=dict(color=[value_color(y, parameter) for y in ys], size=9, line=dict(width=0.5, color="#333")),
        hovertemplate="%{text}<br>GDP=%{x:$,.0f}<br>Value=%{y:.1f}<extra></extra>",
        name="Countries",
    ))
    line = trend_line(xs, ys)
    if line:
        fig.add_trace(go.Scatter(
            x=[p[0] for p in line],
            y=[p[1] for p in line],
            mode="lines",
            line=dict(dash="dash", color="#555"),
            name="Trend",
        ))

    r_text = f"r = {r:.2f}" if r is not None else "No correlation available"
    fig.update_layout(
        title=f"GDP vs {_label(parameter)} ({r_text})",
        xaxis_title=_label("gdp"),
        yaxis_title=_label(parameter),
        margin=dict(l=40, r=20, t=60, b=40),
        showlegend=False,
    )
    return fig


def top_countries_figure(records, measurements, parameter, scale_type=SH.DEFAULT_SCALE_TYPE):
    top = top_n(records, SH.TOP_N)
    if not top:
        return _empty_fig("No GDP data")

    names = [r.country_name for r in top]
    aq = []
    for rec in top:
        m = match_measurement(rec.country_name, measurements)
        aq.append(m.value if m is not None else None)

    # bars use the map's colour for each country
    scale = build_color_scale([r.value for r in records], scale_type)
    fig = go.Figure()
    fig.add_trace(go.Bar(x=names, y=[r.value for r in top], name=_label("gdp"),
                         marker_color=[country_color(r.country_code, records, scale) for r in top]))
    fig.add_trace(go.Scatter(
        x=names,
        y=aq,
        mode="markers",
        yaxis="y2",
        name=_label(parameter),
        marker=dict(size=11, color=[value_color(v, parameter) if v is not None else SH.FALLBACK_COLOR for v in aq],
                    line=dict(width=0.5, color="#333")),
    ))
    fig.update_layout(
        title=f"Top {SH.TOP_N} GDP per capita",
        yaxis=dict(title=_label("gdp")),
        yaxis2=dict(title=_label(parameter), overlaying="y", side="right", showgrid=False),
        margin=dict(l=40, r=40, t=60, b=80),
        legend=dict(orientation="h"),
    )
    return fig


def ranking_figure(ranges, metric):
    if not ranges:
        return _empty_fig("No environmental index data")

    names = [s.country for s in ranges]
    label = metric_label(metric)
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=names, y=[s.max for s in ranges], mode="lines",
                             line=dict(width=0), showlegend=False, hoverinfo="skip"))
    fig.add_trace(go.Scatter(x=names, y=[s.min for s in ranges], mode="lines", line=dict(width=0),
                             fill="tonexty", fillcolor="rgba(16,185,129,0.24)", name=f"{label} (min-max)"))
    fig.add_trace(go.Scatter(x=names, y=[s.avg for s in ranges], mode="lines+markers",
                             line=dict(color="#10B981"), name=f"{label} (average)"))
    fig.update_layout(
        title=f"Top {len(ranges)}: {label}",
        margin=dict(l=40, r=20, t=60, b=80),
        legend=dict(orientation="h"),
    )
    return fig


def radar_figure(profile, country):
    present = {k: v for k, v in profile.items() if v is not None}
    if not present:
        return _empty_fig(f"No environmental profile for {country}")
    theta = [METRIC_LABELS[Metric(k)] for k in present]
    r = list(present.values())
    fig = go.Figure(go.Scatterpolar(r=r + r[:1], theta=theta + theta[:1], fill="toself", name=country))
    fig.update_layout(title=f"Environmental profile: {country}", margin=dict(l=40, r=40, t=60, b=40))
    return fig


def distribution_figure(averages):
    if not averages:
        return _empty_fig("No air quality data for this month")
    regions = sorted(averages)
    fig = go.Figure()
    for p in AirQualityParameter:
        ys = [averages[reg].get(p.value) for reg in regions]
        if all(v is None for v in ys):
            continue
        fig.add_trace(go.Bar(x=regions, y=ys, name=_label(p.value)))
    fig.update_layout(
        barmode="group",
        title="Air quality by region",
        margin=dict(l=40, r=20, t=60, b=40),
        legend=dict(orientation="h"),
    )
    return fig


def sensors_figure(rows):
    pts = [r for r in rows if sensor_value(r) is not None]
    if not pts:
        return _empty_fig("No sensor readings")
    fig = go.Figure(go.Scattergeo(
        lat=[r["coordinates_latitude"] for r in pts],
        lon=[r["coordinates_longitude"] for r in pts],
        mode="markers",
        marker=dict(size=8, color=[value_color(sensor_value(r), r.get("pollutant") or "pm25") for r in pts],
                    line=dict(width=0.5, color="#333")),
        text=[f"{r['commune']} ({r.get('pollutant')}): {sensor_value(r):.1f}" for r in pts],
        hoverinfo="text",
    ))
    fig.update_geos(fitbounds="locations", showcountries=True, resolution=50)
    fig.update_layout(title="Sensor readings", margin=dict(l=10, r=10, t=40, b=10))
    return fig


def revenus_figure(rows):
    pts = [r for r in rows if r["coordinates"]["latitude"] or r["coordinates"]["longitude"]]
    if not pts:
        return _empty_fig("No income data")
    fig = go.Figure(go.Scattergeo(
        lat=[r["coordinates"]["latitude"] for r in pts],
        lon=[r["coordinates"]["longitude"] for r in pts],
        mode="markers",
        marker=dict(size=7, color=[income_color(r["revenu_moyen"]) for r in pts]),
        text=[f"{r['nom_commune']}: {r['revenu_moyen']:,.0f} €" for r in pts],
        hoverinfo="text",
    ))
    fig.update_geos(fitbounds="locations", showcountries=True, resolution=50)
    fig.update_layout(title="Mean income per fiscal household", margin=dict(l=10, r=10, t=40, b=10))
    return fig


def idf_pollution_figure(rows, kind, month_year):
    pts = [r for r in rows if r["latitude"] or r["longitude"]]
    if not pts:
        return _empty_fig(f"No {kind} data for {month_year or 'this month'}")
    fig = go.Figure(go.Scattergeo(
        lat=[r["latitude"] for r in pts],
        lon=[r["longitude"] for r in pts],
        mode="markers",
        marker=dict(size=12, color=[idf_pollution_color(r["mean"], kind) for r in pts],
                    line=dict(width=0.5, color="#333")),
        text=[f"{r['nom']}: {r['mean']:.1f} ({r['count'] or 0} readings)" for r in pts],
        hoverinfo="text",
    ))
    fig.update_geos(fitbounds="locations", showcountries=True, resolution=50)
    fig.update_layout(title=f"Ile-de-France {kind}, monthly mean ({month_year})",
                      margin=dict(l=10, r=10, t=40, b=10))
    return fig


def idf_revenus_figure(revenus):
    pts = []
    for commune in revenus.values():
        lat, lon = parse_geo_point(commune.get("geo_point_2d"))
        if lat or lon:
            pts.append((lat, lon, commune.get("nom") or "?", commune["data"]["revenu_moyen"]))
    if not pts:
        return _empty_fig("No Ile-de-France income data")
    fig = go.Figure(go.Scattergeo(
        lat=[p[0] for p in pts],
        lon=[p[1] for p in pts],
        mode="markers",
        marker=dict(size=10, color=[income_color(p[3]) for p in pts], opacity=0.8),
        text=[f"{p[2]}: {p[3]:,.0f} €" for p in pts],
        hoverinfo="text",
    ))
    fig.update_geos(fitbounds="locations", showcountries=True, resolution=50)
    fig.update_layout(title="Ile-de-France mean income", margin=dict(l=10, r=10, t=40, b=10))
    return fig


# -----------------------------
# App layout
# -----------------------------

def _legend():
    return html.Div(
        style={"display": "flex", "gap": "10px", "fontSize": "12px", "flexWrap": "wrap"},
        children=[
            html.Span([html.Span("■ ", style={"color": color}), BAND_LABELS[band]])
            for band, color in BAND_COLORS.items()
        ],
    )


def _panel_row(label, cid):
    return html.Div([html.Span(f"{label}: ", style={"color": "#555"}), html.B(id=cid)])


def build_layout(store):
    year_months = available_year_months(load_or_empty(store.load_pollutants, {}))
    periods = available_periods(load_or_empty(store.load_indices, {}))
    revenus = revenus_years(load_or_empty(store.load_france_revenus, {}))
    dates = sensor_dates(flatten_france_sensors(load_or_empty(store.load_france_sensors, {})))

    default_ym = SH.DEFAULT_YEAR_MONTH if SH.DEFAULT_YEAR_MONTH in year_months else (year_months[-1] if year_months else None)
    years = [int(y) for y in SH.GDP_YEARS]

    world_tab = html.Div([
        html.Div(
            style={"display": "grid", "gridTemplateColumns": "1fr 1fr 1fr 1fr", "gap": "12px",
                   "alignItems": "center", "margin": "12px 0 12px 0"},
            children=[
                html.Div([
                    html.Label("Color scale"),
                    dcc.RadioItems(
                        id="scale-type",
                        options=[{"label": f" {t.value.title()}", "value": t.value} for t in ScaleType],
                        value=SH.DEFAULT_SCALE_TYPE,
                        inline=True,
                    ),
                ]),
                html.Div([
                    html.Label("Air quality parameter"),
                    dcc.Dropdown(
                        id="parameter",
                        options=_options([p.value for p in AirQualityParameter] + [COMPOSITE]),
                        value=SH.DEFAULT_PARAMETER,
                        clearable=False,
                    ),
                ]),
                html.Div([
                    html.Label("Month"),
                    dcc.Dropdown(id="year-month", options=_options(year_months, {m: m for m in year_months}),
                                 value=default_ym, clearable=True),
                ]),
                html.Div([
                    html.Label("Overlay"),
                    dcc.Checklist(
                        id="overlays",
                        options=[{"label": " Air quality", "value": "aq"},
                                 {"label": " Environmental index", "value": "env"}],
                        value=["aq"],
                    ),
                ]),
            ],
        ),
        html.Div(
            style={"display": "grid", "gridTemplateColumns": "1fr 1fr 1fr", "gap": "12px", "marginBottom": "12px"},
            children=[
                dcc.Dropdown(id="env-pollutant", options=_options([p.value for p in POLLUTANT_LABELS],
                                                                  {p.value: l for p, l in POLLUTANT_LABELS.items()}),
                             value=SH.DEFAULT_POLLUTANT, clearable=False),
                dcc.Dropdown(id="env-metric", options=_options([m.value for m in METRIC_LABELS],
                                                               {m.value: l for m, l in METRIC_LABELS.items()}),
                             value=SH.DEFAULT_METRIC, clearable=False),
                dcc.Dropdown(id="env-period", options=_options(periods, {p: p for p in periods}),
                             value=periods[-1] if periods else None, clearable=True),
            ],
        ),
        html.Div([
            html.Label("Year"),
            dcc.Slider(
                id="year",
                min=years[0],
                max=years[-1],
                step=1,
                value=int(SH.DEFAULT_YEAR),
                marks={y: str(y) for y in years},
            ),
        ], style={"marginBottom": "16px"}),
        html.Div(
            style={"display": "grid", "gridTemplateColumns": "3fr 1fr", "gap": "16px"},
            children=[
                dcc.Graph(id="world_map", config={"displaylogo": False}, style={"height": "65vh"}),
                html.Div([
                    html.H4("Country"),
                    _panel_row("Country", "panel-name"),
                    _panel_row(_label("gdp"), "panel-gdp"),
                    _panel_row(_label("rank"), "panel-rank"),
                    _panel_row(_label("change"), "panel-change"),
                    html.Hr(),
                    _legend(),
                ]),
            ],
        ),
        html.Div(
            style={"display": "grid", "gridTemplateColumns": "1fr 1fr", "gap": "16px"},
            children=[
                dcc.Graph(id="country_trend", config={"displaylogo": False}),
                dcc.Graph(id="correlation", config={"displaylogo": False}),
                dcc.Graph(id="top-countries", config={"displaylogo": False}),
                dcc.Graph(id="distribution", config={"displaylogo": False}),
                dcc.Graph(id="env-ranking", config={"displaylogo": False}),
                dcc.Graph(id="env-radar", config={"displaylogo": False}),
            ],
        ),
    ])

    france_tab = html.Div([
        html.Div(
            style={"display": "grid", "gridTemplateColumns": "1fr 1fr", "gap": "12px", "margin": "12px 0"},
            children=[
                dcc.Dropdown(id="sensor-date", options=_options(dates, {d: d for d in dates}),
                             value=dates[-1] if dates else None, clearable=True),
                dcc.Dropdown(id="revenus-year", options=_options(revenus, {y: y for y in revenus}),
                             value=revenus[-1] if revenus else None, clearable=True),
            ],
        ),
        html.Div(
            style={"display": "grid", "gridTemplateColumns": "1fr 1fr", "gap": "16px"},
            children=[
                dcc.Graph(id="france-sensors", style={"height": "65vh"}),
                dcc.Graph(id="france-revenus", style={"height": "65vh"}),
            ],
        ),
        html.H4("Ile-de-France"),
        html.Div(
            style={"display": "grid", "gridTemplateColumns": "1fr 1fr", "gap": "12px", "margin": "12px 0"},
            children=[
                dcc.Dropdown(id="idf-kind", options=_options(IDF_POLLUTION_TYPES, {k: k for k in IDF_POLLUTION_TYPES}),
                             value=IDF_POLLUTION_TYPES[0], clearable=False),
                dcc.Dropdown(id="idf-month", options=[], value=None, clearable=False),
            ],
        ),
        html.Div(
            style={"display": "grid", "gridTemplateColumns": "1fr 1fr", "gap": "16px"},
            children=[
                dcc.Graph(id="idf-pollution", style={"height": "65vh"}),
                dcc.Graph(id="idf-revenus", style={"height": "65vh"}),
            ],
        ),
    ])

    return html.Div(
        style={"fontFamily": "system-ui, -apple-system, Segoe UI, Roboto, Helvetica, Arial",
               "padding": "16px", "maxWidth": "1400px", "margin": "0 auto"},
        children=[
            html.H2(SH.APP_TITLE, style={"marginBottom": "8px"}),
            dcc.Tabs([
                dcc.Tab(label="World", children=world_tab),
                dcc.Tab(label="France", children=france_tab),
            ]),
            dcc.Store(id="selected-country"),
        ],
    )


# -----------------------------
# App factory
# -----------------------------

def create_app(store=None):
    """Build the Dash app and its /api routes around one AssetStore."""
    store = store or AssetStore()
    app = Dash(__name__, title=SH.APP_TITLE)
    app.layout = lambda: build_layout(store)
    register_routes(app.server, store)

    @app.callback(
        Output("world_map", "figure"),
        Input("scale-type", "value"),
        Input("year", "value"),
        Input("parameter", "value"),
        Input("year-month", "value"),
        Input("overlays", "value"),
        Input("env-pollutant", "value"),
        Input("env-metric", "value"),
        Input("env-period", "value"),
    )
    def update_map(scale_type, year, parameter, year_month, overlays, pollutant, metric, period):
        overlays = overlays or []
        geojson = load_geojson(store)

        if "env" in overlays:
            points = load_environment_points(store, period, pollutant, metric)
            frame = map_frame(geojson, points, environmental_color)
            title = f"{metric_label(metric)} ({period or 'latest'})"
        else:
            records = data_for_year(load_gdp(store), year)
            scale = build_color_scale([r.value for r in records], scale_type or SH.DEFAULT_SCALE_TYPE)
            frame = map_frame(geojson, records, scale)
            title = f"{_label('gdp')} ({year})"

        measurements = load_measurements(store, parameter, year_month) if "aq" in overlays else []
        return world_map_figure(geojson, frame, measurements, parameter, title)

    @app.callback(
        Output("selected-country", "data"),
        Input("world_map", "clickData"),
        prevent_initial_call=True,
    )
    def select_country(click):
        try:
            custom = click["points"][0]["customdata"]
        except (KeyError, IndexError, TypeError):
            raise exceptions.PreventUpdate
        return {"name": custom[2], "code": custom[3]}

    @app.callback(
        Output("panel-name", "children"),
        Output("panel-gdp", "children"),
        Output("panel-rank", "children"),
        Output("panel-change", "children"),
        Input("selected-country", "data"),
        Input("year", "value"),
    )
    def update_panel(selected, year):
        if not selected:
            return "Click a country", "-", "-", "-"
        feature = GeoFeature(name=selected.get("name") or "", iso_a3=selected.get("code") or "")
        p = country_panel(feature, load_gdp(store), year)
        return p["name"], p["gdp"], p["rank"], p["change"]

    @app.callback(
        Output("country_trend", "figure"),
        Input("selected-country", "data"),
        Input("year", "value"),
    )
    def update_trend(selected, year):
        by_year = load_gdp(store)
        if selected:
            feature = GeoFeature(name=selected.get("name") or "", iso_a3=selected.get("code") or "")
            pool = [r for recs in by_year.values() for r in recs]
            rec = find_country_record(feature, pool)
            if rec is None:
                return _empty_fig(f"No GDP data for {feature.name}")
        else:
            # Nothing clicked yet: show the richest country of the selected year
            top = top_n(data_for_year(by_year, year), 1)
            if not top:
                return _empty_fig("No GDP data")
            rec = top[0]
        return trend_figure(by_year, rec.country_code, rec.country_name)

    @app.callback(
        Output("correlation", "figure"),
        Output("top-countries", "figure"),
        Input("year", "value"),
        Input("parameter", "value"),
        Input("year-month", "value"),
        Input("scale-type", "value"),
    )
    def update_gdp_air_quality(year, parameter, year_month, scale_type):
        records = data_for_year(load_gdp(store), year)
        measurements = load_measurements(store, parameter, year_month)
        return (
            correlation_figure(records, measurements, parameter),
            top_countries_figure(records, measurements, parameter, scale_type or SH.DEFAULT_SCALE_TYPE),
        )

    @app.callback(
        Output("distribution", "figure"),
        Input("year-month", "value"),
    )
    def update_distribution(year_month):
        raw = load_or_empty(store.load_pollutants, {})
        points = []
        for p in AirQualityParameter:
            points.extend(aggregate_measurements(raw, p.value, year_month or ""))
        return distribution_figure(regional_averages(points))

    @app.callback(
        Output("env-ranking", "figure"),
        Input("env-pollutant", "value"),
        Input("env-metric", "value"),
    )
    def update_ranking(pollutant, metric):
        raw = load_or_empty(store.load_indices, {})
        return ranking_figure(environmental_ranges(raw, pollutant, metric), metric)

    @app.callback(
        Output("env-radar", "figure"),
        Input("selected-country", "data"),
        Input("env-period", "value"),
        Input("env-pollutant", "value"),
        Input("env-metric", "value"),
    )
    def update_radar(selected, period, pollutant, metric):
        if not selected:
            return _empty_fig("Click a country to see its environmental profile")
        feature = GeoFeature(name=selected.get("name") or "", iso_a3=selected.get("code") or "")
        point = find_country_record(feature, load_environment_points(store, period, pollutant, metric))
        if point is None:
            return _empty_fig(f"No environmental data for {feature.name}")
        raw = load_or_empty(store.load_indices, {})
        return radar_figure(metric_profile(raw, point.country_key, period, pollutant), point.country_key)

    @app.callback(
        Output("france-sensors", "figure"),
        Output("france-revenus", "figure"),
        Input("sensor-date", "value"),
        Input("revenus-year", "value"),
    )
    def update_france(date, year):
        rows = flatten_france_sensors(load_or_empty(store.load_france_sensors, {}))
        if date:
            rows = [r for r in rows if r["date"] == date]
        revenus = france_revenus(load_or_empty(store.load_france_revenus, {}), year)
        return sensors_figure(rows), revenus_figure(revenus)

    @app.callback(
        Output("idf-month", "options"),
        Output("idf-month", "value"),
        Input("idf-kind", "value"),
    )
    def update_idf_months(kind):
        months = idf_month_years(load_idf_pollution(store, kind))
        return _options(months, {m: m for m in months}), (months[-1] if months else None)

    @app.callback(
        Output("idf-pollution", "figure"),
        Output("idf-revenus", "figure"),
        Input("idf-kind", "value"),
        Input("idf-month", "value"),
    )
    def update_idf(kind, month_year):
        rows = idf_pollution_rows(load_idf_pollution(store, kind), month_year)
        revenus = idf_revenus(load_or_empty(store.load_idf_revenus, {}), month_year=month_year)
        return idf_pollution_figure(rows, kind, month_year), idf_revenus_figure(revenus)

    return app


# -----------------------------
# Run
# -----------------------------

def main(argv=None):
    parser = argparse.ArgumentParser(description=SH.APP_TITLE)
    parser.add_argument("--assets", default=None, help="directory holding the JSON assets")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8050)
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    store = AssetStore(args.assets)
    app = create_app(store)
    print(f"Assets: {store.assets_dir.resolve()}")
    app.run(host=args.host, port=args.port, debug=args.debug, dev_tools_hot_reload=False)


if __name__ == "__main__":
    main()
