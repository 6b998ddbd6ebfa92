import copy

import pytest

import dashboard_hook as SH
from errors import InvalidQuery
from gdp_data import (
    country_data,
    data_for_year,
    data_for_year_range,
    gdp_for_year,
    gdp_rows_from_asset,
    previous_year,
    process_gdp_data,
    to_long_frame,
)
from records import CountryRecord


def test_france_2020_example():
    raw = [{"Country Name": "France", "Country Code": "FRA", "2020": "2630318673200"}]
    result = process_gdp_data(raw)
    assert result["2020"] == [CountryRecord("France", "FRA", 2020, 2630318673200.0)]
    assert result["2020"][0].gdp_value == 2630318673200


def test_every_year_key_present():
    result = process_gdp_data([])
    assert list(result) == SH.GDP_YEARS
    assert all(v == [] for v in result.values())


def test_accepts_numbers_and_nested_values(gdp_rows):
    result = process_gdp_data(gdp_rows + [{"Country Name": "Chad", "Country Code": "TCD", "2019": 700}])
    assert {r.country_code for r in result["2020"]} == {"FRA", "DEU", "NGA"}
    assert {r.country_code for r in result["2019"]} == {"FRA", "DEU", "TCD"}
    assert result["2016"] == []


def test_drops_bad_rows_and_values():
    raw = [
        {"Country Name": "NaN", "Country Code": "XXX", "2020": "10"},
        {"Country Name": "", "Country Code": "YYY", "2020": "10"},
        {"Country Name": "Nocode", "2020": "10"},
        {"Country Name": "Zero", "Country Code": "ZER", "2020": 0},
        {"Country Name": "Neg", "Country Code": "NEG", "2020": "-5"},
        {"Country Name": "Text", "Country Code": "TXT", "2020": "abc"},
        {"Country Name": "Inf", "Country Code": "INF", "2020": "inf"},
        {"Country Name": "Bool", "Country Code": "BOO", "2020": True},
        "not a row",
    ]
    assert process_gdp_data(raw)["2020"] == []


def test_idempotent_and_input_untouched(gdp_rows):
    snapshot = copy.deepcopy(gdp_rows)
    first = process_gdp_data(gdp_rows)
    second = process_gdp_data(gdp_rows)
    assert first == second
    assert gdp_rows == snapshot


def test_gdp_rows_from_asset(gdp_rows):
    rows = gdp_rows_from_asset(gdp_rows)
    assert [r["Country Name"] for r in rows] == ["France", "Germany", "Nigeria"]
    assert rows[0]["2021"] == 43500.5
    assert rows[1]["2021"] is None
    assert set(rows[0]) == {"Country Name", "Country Code", *SH.GDP_YEARS}


def test_gdp_for_year(gdp_rows):
    rows = gdp_for_year(gdp_rows, "2020")
    assert rows[0] == {"countryName": "France", "countryCode": "FRA", "gdpValue": 38000.0}
    assert gdp_for_year(gdp_rows, "2016")[0]["gdpValue"] is None


@pytest.mark.parametrize("year", ["2015", "2024", "abc", ""])
def test_gdp_for_year_rejects_out_of_range(gdp_rows, year):
    with pytest.raises(InvalidQuery, match="between 2016 and 2023"):
        gdp_for_year(gdp_rows, year)


def test_lookups(gdp_rows):
    by_year = process_gdp_data(gdp_rows)
    assert len(data_for_year(by_year, "2020")) == 3
    assert data_for_year(by_year, "1999") == []
    assert list(data_for_year_range(by_year, "2019", "2021")) == ["2019", "2020", "2021"]
    assert country_data(by_year, "DEU", "2019").value == 46800.0
    assert country_data(by_year, "DEU", "2021") is None


def test_previous_year():
    assert previous_year("2020") == "2019"
    assert previous_year("2016") is None


def test_to_long_frame(gdp_rows):
    df = to_long_frame(process_gdp_data(gdp_rows))
    assert list(df.columns) == ["iso3", "country", "year", "indicator", "value"]
    assert len(df) == 6
    assert set(df["indicator"]) == {"gdp"}
    assert to_long_frame(process_gdp_data([])).empty
