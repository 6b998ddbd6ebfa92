# dashboard_hook.py
# Settings for the GDP & Air Quality dashboard. Edit the right hand side of
# anything below; app_core.py, the API routes and the pipeline modules all
# read their defaults from here.

import os
from pathlib import Path

APP_TITLE = "Economic & Environmental Dashboard"

# Where the static JSON assets live. GDP_DASHBOARD_ASSETS wins over the
# default, and `gdp-dashboard --assets <dir>` wins over both.
ASSETS_DIR = Path(os.environ.get("GDP_DASHBOARD_ASSETS", "attached_assets"))

GDP_ASSET = "PIB_2016_2023.json"
MAP_ASSET = "world-administrative-boundaries.json"
POLLUTANT_ASSET = "pollutant_data_completed.json"
INDICES_ASSET = "indices_by_country.json"
FRANCE_SENSORS_ASSET = "air-quality-france.json"
FRANCE_REVENUS_ASSET = "ircom_filtered_France.json"
IDF_REVENUS_ASSET = "ircom_filtered_idf.json"
IDF_POLLUTION_ASSET = "idf_pollution_{kind}.json"

# Years carried by the GDP asset (string keys, as they appear in the JSON)
GDP_YEARS = ["2016", "2017", "2018", "2019", "2020", "2021", "2022", "2023"]

# Friendly labels for the UI
LABELS = {
    "gdp": "GDP per capita (USD)",
    "rank": "Global Rank",
    "change": "YoY Change",
    "pm25": "PM2.5",
    "pm10": "PM10",
    "co": "CO",
    "no2": "NO₂",
    "so2": "SO₂",
    "o3": "O₃",
    "composite": "Composite",
}

# ----- Colour scales -----
# Lightest -> darkest. Linear and log scales use the first five stops,
# quantile scales use all six buckets.
GDP_PALETTE = [
    "#E6F0FA",  # lowest GDP
    "#B6D8F2",
    "#80B5E8",
    "#4186D9",
    "#1F5FC9",
    "#0A337A",  # highest GDP
]

# Countries without data. Must stay visibly different from GDP_PALETTE[0].
FALLBACK_COLOR = "#CCCCCC"

# Extent used when a dataset has no valid (finite, positive) value
DEFAULT_EXTENT = (0.0, 100000.0)

# Default visualisation settings
DEFAULT_SCALE_TYPE = "linear"      # "linear" | "log" | "quantile"
DEFAULT_YEAR = "2023"
DEFAULT_PARAMETER = "pm25"
DEFAULT_YEAR_MONTH = "2022-09"
DEFAULT_POLLUTANT = "composite"
DEFAULT_METRIC = "composite_index"
MAP_PROJECTION = "natural earth"  # Try: "orthographic", "equirectangular", "mercator", "miller"

# Bar charts / rankings show this many countries
TOP_N = 10

# Below this many joined points the scatter shows a notice instead of a fit
MIN_SCATTER_POINTS = 3
