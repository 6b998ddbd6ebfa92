import json

import pytest

from data_sources import AssetStore
from records import CountryRecord


@pytest.fixture
def gdp_rows():
    return [
        {"Country Name": "France", "Country Code": "FRA", "GDP": {"2019": 40000.0, "2020": 38000.0, "2021": 43500.5}},
        {"Country Name": "Germany", "Country Code": "DEU", "GDP": {"2019": 46800.0, "2020": 46200.0}},
        {"Country Name": "Nigeria", "Country Code": "NGA", "GDP": {"2020": 2100.0}},
        {"Country Name": "NaN", "Country Code": "XXX", "GDP": {"2020": 1.0}},
    ]


@pytest.fixture
def records_2020():
    return [
        CountryRecord("France", "FRA", 2020, 38000.0),
        CountryRecord("Germany", "DEU", 2020, 46200.0),
        CountryRecord("Nigeria", "NGA", 2020, 2100.0),
    ]


@pytest.fixture
def pollutant_raw():
    return {
        "France": {
            "2022-09": {"pm25": {"value": 12.0}, "no2": {"value": 30.0}, "composite": {"value": 55}},
            "2022-10": {"pm25": {"value": 14.0}},
        },
        "Germany": {"2022-09": {"pm25": {"value": 20.0}}},
        "Nigeria": {"2022-09": {"pm25": {"value": 60.0}}},
        "Atlantis": {"2022-09": {"pm25": {"value": "n/a"}, "pm10": {"value": 5.0}}},
    }


@pytest.fixture
def indices_raw():
    return {
        "FRA": {"periods": {
            "2022-08": {
                "no2": {"composite_index": 1.0, "normalized_ratio": 0.5},
                "composite": {"composite_index": 2.0},
            },
            "2022-09": {"composite": {"composite_index": 3.0}},
        }},
        "Germany": {"periods": {"2022-08": {"composite": {"composite_index": 1.5}}}},
    }


@pytest.fixture
def boundaries_raw():
    def shape(name, a2, a3):
        return {
            "name": name,
            "geo_shape": {
                "properties": {"name": name, "iso_a2": a2, "iso_a3": a3},
                "geometry": {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 0]]]},
            },
        }
    return [shape("France", "FR", "FRA"), shape("Germany", "DE", "DEU"), shape("Niger", "NE", "NER")]


@pytest.fixture
def france_sensors_raw():
    return {
        "75056": {
            "localisation": {"commune": "Paris", "coordinates": {"latitude": 48.85, "longitude": 2.35}},
            "data": {
                "2024-01-01": {"pollutant": "PM2.5", "sensor_id": 1, "value": 12.5, "min": 3, "max": 40,
                               "avg": 12.5, "median": 11, "q02": 4, "q25": 8, "q75": 15, "q98": 35, "sd": 5.1},
                "2024-01-02": {"pollutant": "PM2.5", "sensor_id": 1, "value": 30.0},
            },
        },
        "00000": {"localisation": {"commune": "Nowhere"}, "data": {"2024-01-01": {"value": 1}}},
    }


@pytest.fixture
def france_revenus_raw():
    return {
        "75056": {
            "nom_commune": "Paris",
            "geo": {"geo_point_2d": "48.8566, 2.3522", "geo_shape": {"type": "Polygon"}},
            "annee": {"2021": {"revenus": {"revenu_fiscal_reference_total": 3000000},
                               "foyers_fiscaux": {"total": 100}}},
        },
        "13055": {
            "nom_commune": "Marseille",
            "geo": {},
            "annee": {"2020": {"revenus": {"revenu_fiscal_reference_total": 10},
                               "foyers_fiscaux": {"total": 1}}},
        },
    }


@pytest.fixture
def idf_revenus_raw():
    return {
        "75056": {
            "nom_commune": "Paris",
            "geo": {"geo_point_2d": "48.8566, 2.3522", "geo_shape": {"type": "Polygon"}},
            "annee": {
                "2022": {"revenus": {"revenu_fiscal_reference_total": 2000000, "impot_net_total": 5},
                         "foyers_fiscaux": {"total": 50, "imposes": 20}},
                "2023": {"revenus": {"revenu_fiscal_reference_total": 3000000},
                         "foyers_fiscaux": {"total": 100}},
            },
        },
        "92012": {
            "nom_commune": "Boulogne",
            "geo": {"geo_point_2d": "48.83, 2.24"},
            "annee": {"2023": {"revenus": {"revenu_fiscal_reference_total": 1}, "foyers_fiscaux": {"total": 1}}},
        },
    }


@pytest.fixture
def idf_pollution_raw():
    return {
        "75056": {
            "nom": "Paris",
            "geo_point_2d": "48.8566, 2.3522",
            "geo_shape": "{\"type\": \"Polygon\", \"coordinates\": []}",
            "data": {
                "2023-01": {"mean": 60.0, "min": 20.0, "max": 110.0, "median": 55.0, "q1": 40.0, "q3": 70.0, "count": 31},
                "2023-02": {"mean": 15.0, "min": 5.0, "max": 30.0, "median": 14.0, "q1": 10.0, "q3": 20.0, "count": 28},
            },
        },
        "92012": {
            "nom": "Boulogne-Billancourt",
            "geo_point_2d": "48.8352, 2.2410",
            "data": {"2023-02": {"mean": 25.0, "count": 28}, "2023-03": {"count": 0}},
        },
    }


@pytest.fixture
def assets_dir(tmp_path, gdp_rows, pollutant_raw, indices_raw, boundaries_raw,
               france_sensors_raw, france_revenus_raw, idf_revenus_raw, idf_pollution_raw):
    files = {
        "PIB_2016_2023.json": gdp_rows,
        "world-administrative-boundaries.json": boundaries_raw,
        "pollutant_data_completed.json": pollutant_raw,
        "indices_by_country.json": indices_raw,
        "air-quality-france.json": france_sensors_raw,
        "ircom_filtered_France.json": france_revenus_raw,
        "ircom_filtered_idf.json": idf_revenus_raw,
        "idf_pollution_PM10.json": idf_pollution_raw,
    }
    for name, payload in files.items():
        (tmp_path / name).write_text(json.dumps(payload), encoding="utf-8")
    return tmp_path


@pytest.fixture
def store(assets_dir):
    return AssetStore(assets_dir)
