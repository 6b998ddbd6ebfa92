import math

import dashboard_hook as SH
from app_core import (
    _empty_fig,
    build_layout,
    correlation_figure,
    country_panel,
    create_app,
    distribution_figure,
    idf_pollution_figure,
    idf_revenus_figure,
    load_idf_pollution,
    load_geojson,
    map_frame,
    radar_figure,
    ranking_figure,
    top_countries_figure,
    trend_figure,
    world_map_figure,
)
from color_scales import build_color_scale
from data_sources import AssetStore, feature_collection
from regional import IDF_POLLUTION_FILLS, idf_pollution_rows, idf_revenus
from gdp_data import process_gdp_data
from records import CountryRecord, GeoFeature, MeasurementPoint, RangeSummary


def _annotation_text(fig):
    return fig.layout.annotations[0].text if fig.layout.annotations else None


def test_map_frame_reconciles_and_colours(boundaries_raw, records_2020):
    geojson = feature_collection(boundaries_raw)
    scale = build_color_scale([r.value for r in records_2020], "linear")
    frame = map_frame(geojson, records_2020, scale)
    assert list(frame["name"]) == ["France", "Germany", "Niger"]
    assert frame.loc[0, "value"] == 38000.0
    assert frame.loc[1, "color"] != SH.FALLBACK_COLOR
    # No NER record, so the name fallback lands on Nigeria
    assert frame.loc[2, "value"] == 2100.0


def test_map_frame_code_match_blocks_substring(boundaries_raw, records_2020):
    geojson = feature_collection(boundaries_raw)
    records = records_2020 + [CountryRecord("Niger", "NER", 2020, 600.0)]
    frame = map_frame(geojson, records, build_color_scale([600, 46200], "linear"))
    assert frame.loc[2, "value"] == 600.0


def test_map_frame_unmatched_feature_uses_fallback(boundaries_raw):
    geojson = feature_collection(boundaries_raw)
    frame = map_frame(geojson, [CountryRecord("Japan", "JPN", 2020, 1.0)], build_color_scale([1], "log"))
    assert math.isnan(frame.loc[0, "value"])
    assert set(frame["color"]) == {SH.FALLBACK_COLOR}


def test_world_map_figure(boundaries_raw, records_2020):
    geojson = feature_collection(boundaries_raw)
    frame = map_frame(geojson, records_2020, build_color_scale([1, 2], "quantile"))
    points = [MeasurementPoint("France", 46.6, 1.9, "pm25", 12.0, "µg/m³", "2022-09")]
    fig = world_map_figure(geojson, frame, points, "pm25", "GDP")
    assert fig.data[-1].name == "Air quality"
    assert _annotation_text(world_map_figure(geojson, frame.iloc[0:0])) == "No map data"


def test_country_panel(gdp_rows):
    by_year = process_gdp_data(gdp_rows)
    panel = country_panel(GeoFeature(name="France", iso_a3="FRA"), by_year, 2020)
    assert panel == {"name": "France", "gdp": "$38.0k", "rank": "#2 of 3", "change": "-5.0%"}
    missing = country_panel(GeoFeature(name="Japan", iso_a3="JPN"), by_year, 2020)
    assert missing["gdp"] == "N/A" and missing["change"] == "N/A"
    first_year = country_panel(GeoFeature(name="France", iso_a3="FRA"), process_gdp_data(
        [{"Country Name": "France", "Country Code": "FRA", "2016": 1}]), "2016")
    assert first_year["change"] == "N/A"


def test_trend_figure(gdp_rows):
    fig = trend_figure(process_gdp_data(gdp_rows), "FRA", "France")
    assert list(fig.data[0].x) == [2019, 2020, 2021]
    assert _annotation_text(trend_figure({}, "FRA", "France")).startswith("No GDP data")


def test_correlation_figure(records_2020):
    points = [
        MeasurementPoint("France", 0, 0, "pm25", 12.0, "", "2022-09"),
        MeasurementPoint("Germany", 0, 0, "pm25", 20.0, "", "2022-09"),
        MeasurementPoint("Nigeria", 0, 0, "pm25", 60.0, "", "2022-09"),
    ]
    fig = correlation_figure(records_2020, points, "pm25")
    assert len(fig.data) == 2
    assert "r = " in fig.layout.title.text
    assert _annotation_text(correlation_figure(records_2020, points[:2], "pm25")).startswith("Not enough")


def test_correlation_without_variance(records_2020):
    points = [MeasurementPoint(n, 0, 0, "pm25", 10.0, "", "p") for n in ("France", "Germany", "Nigeria")]
    fig = correlation_figure(records_2020, points, "pm25")
    assert "No correlation available" in fig.layout.title.text


def test_other_figures(records_2020):
    assert len(top_countries_figure(records_2020, [], "pm25").data) == 2
    ranking = ranking_figure([RangeSummary("FRA", 1.0, 3.0, 2.0)], "composite_index")
    assert len(ranking.data) == 3
    assert _annotation_text(ranking_figure([], "composite_index")) == "No environmental index data"
    radar = radar_figure({"composite_index": 1.0, "normalized_ratio": None}, "FRA")
    assert list(radar.data[0].theta) == ["Composite Index", "Composite Index"]
    assert len(distribution_figure({"Europe": {"pm25": 10.0}}).data) == 1
    assert _annotation_text(_empty_fig("x")) == "x"


def test_create_app_registers_api(store):
    app = create_app(store)
    client = app.server.test_client()
    assert client.get("/api/gdp-data/2020").status_code == 200
    assert client.get("/api/gdp-data/1990").status_code == 400


def test_missing_map_asset_gives_empty_collection(tmp_path):
    assert load_geojson(AssetStore(tmp_path)) == {"type": "FeatureCollection", "features": []}


def test_top_countries_lookup_is_one_way():
    records = [CountryRecord("Oman", "OMN", 2020, 50000.0), CountryRecord("Romania", "ROU", 2020, 10000.0)]
    points = [MeasurementPoint("Romania", 0, 0, "pm25", 30.0, "", "2022-09")]
    fig = top_countries_figure(records, points, "pm25")
    assert list(fig.data[1].y) == [None, 30.0]


def test_top_countries_bars_follow_map_colours(records_2020):
    fig = top_countries_figure(records_2020, [], "pm25", "quantile")
    scale = build_color_scale([r.value for r in records_2020], "quantile")
    assert list(fig.data[0].marker.color) == [scale(46200.0), scale(38000.0), scale(2100.0)]


def test_figure_titles_use_plain_separators(gdp_rows):
    trend = trend_figure(process_gdp_data(gdp_rows), "FRA", "France")
    assert trend.layout.title.text.endswith(": France")
    ranking = ranking_figure([RangeSummary("FRA", 1.0, 3.0, 2.0)], "composite_index")
    radar = radar_figure({"composite_index": 1.0}, "FRA")
    for fig in (trend, ranking, radar):
        assert "—" not in fig.layout.title.text


def test_idf_pollution_figure(store):
    raw = load_idf_pollution(store, "PM10")
    fig = idf_pollution_figure(idf_pollution_rows(raw, "2023-01"), "PM10", "2023-01")
    assert list(fig.data[0].marker.color) == [IDF_POLLUTION_FILLS[1]]
    assert "2023-01" in fig.layout.title.text
    assert _annotation_text(idf_pollution_figure([], "PM25", "2023-01")).startswith("No PM25 data")


def test_missing_idf_pollution_file_is_empty(store):
    assert load_idf_pollution(store, "NOx") == {}


def test_idf_revenus_figure(idf_revenus_raw):
    fig = idf_revenus_figure(idf_revenus(idf_revenus_raw, month_year="2023-01"))
    assert list(fig.data[0].text)[0].startswith("Paris: ")
    assert _annotation_text(idf_revenus_figure({})) == "No Ile-de-France income data"


def test_france_tab_has_idf_view(store):
    text = repr(build_layout(store))
    for cid in ("idf-kind", "idf-month", "idf-pollution", "idf-revenus"):
        assert cid in text
