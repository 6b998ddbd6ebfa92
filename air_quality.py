"""
Air-quality aggregation
=======================

The pollutant asset is keyed country -> "YYYY-MM" -> parameter:

    {"France": {"2022-09": {"pm25": {"value": 11.2}, "composite": {...}}}}

`aggregate_measurements` flattens it into MeasurementPoint records for one
parameter and (optionally) one year-month, with a display coordinate per
country. Severity bands and heat intensity come from one threshold table per
pollutant (WHO-style guideline values).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from records import MeasurementPoint
from reconcile import match_name

logger = logging.getLogger(__name__)


class AirQualityParameter(str, Enum):
    PM25 = "pm25"
    PM10 = "pm10"
    CO = "co"
    NO2 = "no2"
    SO2 = "so2"
    O3 = "o3"


COMPOSITE = "composite"


@dataclass(frozen=True)
class Thresholds:
    low: float
    medium: float
    high: float
    very_high: float


@dataclass(frozen=True)
class ParameterInfo:
    name: str
    full_name: str
    unit: str
    thresholds: Thresholds


PARAMETER_INFO: Dict[AirQualityParameter, ParameterInfo] = {
    AirQualityParameter.PM25: ParameterInfo("PM2.5", "Fine Particulate Matter", "µg/m³", Thresholds(10, 25, 50, 75)),
    AirQualityParameter.PM10: ParameterInfo("PM10", "Particulate Matter", "µg/m³", Thresholds(20, 50, 100, 150)),
    AirQualityParameter.CO: ParameterInfo("CO", "Carbon Monoxide", "ppm", Thresholds(4, 10, 30, 50)),
    AirQualityParameter.NO2: ParameterInfo("NO₂", "Nitrogen Dioxide", "ppb", Thresholds(40, 100, 200, 400)),
    AirQualityParameter.SO2: ParameterInfo("SO₂", "Sulfur Dioxide", "ppb", Thresholds(20, 50, 100, 200)),
    AirQualityParameter.O3: ParameterInfo("O₃", "Ozone", "ppb", Thresholds(50, 100, 150, 200)),
}

UNITS = {p.value: info.unit for p, info in PARAMETER_INFO.items()}
UNITS[COMPOSITE] = "AQI"


class SeverityBand(str, Enum):
    GOOD = "good"
    MODERATE = "moderate"
    UNHEALTHY_SENSITIVE = "unhealthy-sensitive"
    UNHEALTHY = "unhealthy"
    HAZARDOUS = "hazardous"


BAND_COLORS = {
    SeverityBand.GOOD: "#00E400",
    SeverityBand.MODERATE: "#FFFF00",
    SeverityBand.UNHEALTHY_SENSITIVE: "#FF7E00",
    SeverityBand.UNHEALTHY: "#FF0000",
    SeverityBand.HAZARDOUS: "#99004C",
}

BAND_LABELS = {
    SeverityBand.GOOD: "Good",
    SeverityBand.MODERATE: "Moderate",
    SeverityBand.UNHEALTHY_SENSITIVE: "Unhealthy for Sensitive Groups",
    SeverityBand.UNHEALTHY: "Unhealthy",
    SeverityBand.HAZARDOUS: "Hazardous",
}


def normalize_parameter(parameter: Union[str, AirQualityParameter]) -> str:
    """'PM2.5', 'PM25', 'pm25' -> 'pm25'; NO2/No2 -> 'no2'."""
    p = str(getattr(parameter, "value", parameter)).lower().replace(".", "").replace("_", "")
    return p


def parameter_info(parameter: Union[str, AirQualityParameter]) -> ParameterInfo:
    """Threshold table for a parameter; PM2.5's for anything unknown (e.g. composite)."""
    try:
        return PARAMETER_INFO[AirQualityParameter(normalize_parameter(parameter))]
    except ValueError:
        return PARAMETER_INFO[AirQualityParameter.PM25]


def severity_band(value: float, parameter: Union[str, AirQualityParameter]) -> SeverityBand:
    t = parameter_info(parameter).thresholds
    if value <= t.low:
        return SeverityBand.GOOD
    if value <= t.medium:
        return SeverityBand.MODERATE
    if value <= t.high:
        return SeverityBand.UNHEALTHY_SENSITIVE
    if value <= t.very_high:
        return SeverityBand.UNHEALTHY
    return SeverityBand.HAZARDOUS


def value_color(value: float, parameter: Union[str, AirQualityParameter]) -> str:
    return BAND_COLORS[severity_band(value, parameter)]


def value_intensity(value: float, parameter: Union[str, AirQualityParameter]) -> float:
    """Heat intensity in [0, 1]; each threshold band takes a quarter of the range."""
    t = parameter_info(parameter).thresholds
    if value <= t.low:
        return value / t.low * 0.25
    if value <= t.medium:
        return 0.25 + (value - t.low) / (t.medium - t.low) * 0.25
    if value <= t.high:
        return 0.5 + (value - t.medium) / (t.high - t.medium) * 0.25
    cap = t.very_high * 1.5
    return 0.75 + min(value - t.high, cap - t.high) / (cap - t.high) * 0.25


# -----------------------------
# Display coordinates
# -----------------------------

# Approximate country centres (lat, lon)
COUNTRY_CENTROIDS: Dict[str, Tuple[float, float]] = {
    "Afghanistan": (33.9391, 67.7100),
    "Algeria": (28.0339, 1.6596),
    "Argentina": (-38.4161, -63.6167),
    "Australia": (-25.2744, 133.7751),
    "Austria": (47.5162, 14.5501),
    "Bangladesh": (23.6850, 90.3563),
    "Belgium": (50.5039, 4.4699),
    "Bolivia": (-16.2902, -63.5887),
    "Brazil": (-14.2350, -51.9253),
    "Bulgaria": (42.7339, 25.4858),
    "Canada": (56.1304, -106.3468),
    "Chad": (15.4542, 18.7322),
    "Chile": (-35.6751, -71.5430),
    "China": (35.8617, 104.1954),
    "Colombia": (4.5709, -74.2973),
    "Congo": (-0.2280, 15.8277),
    "Czech Republic": (49.8175, 15.4730),
    "Denmark": (56.2639, 9.5018),
    "DR Congo": (-4.0383, 21.7587),
    "Ecuador": (-1.8312, -78.1834),
    "Egypt": (26.8206, 30.8025),
    "Ethiopia": (9.1450, 40.4897),
    "Finland": (61.9241, 25.7482),
    "France": (46.603354, 1.888334),
    "Germany": (51.1657, 10.4515),
    "Ghana": (7.9465, -1.0232),
    "Greece": (39.0742, 21.8243),
    "Guatemala": (15.7835, -90.2308),
    "Hungary": (47.1625, 19.5033),
    "India": (20.5937, 78.9629),
    "Indonesia": (-0.7893, 113.9213),
    "Iran": (32.4279, 53.6880),
    "Iraq": (33.2232, 43.6793),
    "Ireland": (53.1424, -7.6921),
    "Israel": (31.0461, 34.8516),
    "Italy": (41.8719, 12.5674),
    "Japan": (36.2048, 138.2529),
    "Kazakhstan": (48.0196, 66.9237),
    "Kenya": (-0.0236, 37.9062),
    "Kuwait": (29.3117, 47.4818),
    "Malaysia": (4.2105, 101.9758),
    "Mexico": (23.6345, -102.5528),
    "Mongolia": (46.8625, 103.8467),
    "Morocco": (31.7917, -7.0926),
    "Nepal": (28.3949, 84.1240),
    "Netherlands": (52.1326, 5.2913),
    "New Zealand": (-40.9006, 174.8860),
    "Niger": (17.6078, 8.0817),
    "Nigeria": (9.0820, 8.6753),
    "Norway": (60.4720, 8.4689),
    "Pakistan": (30.3753, 69.3451),
    "Peru": (-9.1900, -75.0152),
    "Philippines": (12.8797, 121.7740),
    "Poland": (51.9194, 19.1451),
    "Portugal": (39.3999, -8.2245),
    "Romania": (45.9432, 24.9668),
    "Russia": (61.5240, 105.3188),
    "Saudi Arabia": (23.8859, 45.0792),
    "South Africa": (-30.5595, 22.9375),
    "South Korea": (35.9078, 127.7669),
    "Spain": (40.4637, -3.7492),
    "Sweden": (60.1282, 18.6435),
    "Switzerland": (46.8182, 8.2275),
    "Taiwan": (23.6978, 120.9605),
    "Thailand": (15.8700, 100.9925),
    "Turkey": (38.9637, 35.2433),
    "Ukraine": (48.3794, 31.1656),
    "United Arab Emirates": (23.4241, 53.8478),
    "United Kingdom": (55.3781, -3.4360),
    "United States": (37.0902, -95.7129),
    "Vietnam": (14.0583, 108.2772),
}

DEFAULT_CENTROID = (0.0, 0.0)


def country_centroid(country: str) -> Tuple[float, float]:
    """Display coordinate for a country (exact table key); (0, 0) when unknown."""
    centroid = COUNTRY_CENTROIDS.get(country)
    if centroid is None:
        logger.debug("No centroid for %r, using default", country)
        return DEFAULT_CENTROID
    return centroid


# -----------------------------
# Aggregation
# -----------------------------

def _measure_value(param_data: Any) -> Optional[float]:
    if not isinstance(param_data, Mapping):
        return None
    v = param_data.get("value")
    if isinstance(v, bool) or v is None:
        return None
    try:
        fv = float(v)
    except (TypeError, ValueError):
        return None
    return fv if math.isfinite(fv) else None


def aggregate_measurements(
    raw: Mapping[str, Any],
    parameter: str = AirQualityParameter.PM25.value,
    year_month: str = "",
) -> List[MeasurementPoint]:
    """Flatten the pollutant asset for one parameter and optional 'YYYY-MM'."""
    param = str(parameter).lower()
    unit = UNITS.get(param, "µg/m³")
    points: List[MeasurementPoint] = []

    for country, by_period in raw.items():
        if not isinstance(by_period, Mapping):
            continue
        if year_month and year_month not in by_period:
            continue
        for period, pollutants in by_period.items():
            if year_month and period != year_month:
                continue
            if not isinstance(pollutants, Mapping):
                continue
            value = _measure_value(pollutants.get(param))
            if value is None:
                continue
            lat, lon = country_centroid(country)
            points.append(MeasurementPoint(
                country=country,
                latitude=lat,
                longitude=lon,
                parameter=param,
                value=value,
                unit=unit,
                period=period,
            ))
    return points


def index_measurements(points: Iterable[MeasurementPoint]) -> Dict[Tuple[str, str, str], MeasurementPoint]:
    """(country, parameter, period) -> point; later duplicates replace earlier ones."""
    out: Dict[Tuple[str, str, str], MeasurementPoint] = {}
    for p in points:
        out[p.key] = p
    return out


def heatmap_points(points: Sequence[MeasurementPoint], parameter: str) -> List[Tuple[float, float, float]]:
    return [(p.latitude, p.longitude, value_intensity(p.value, parameter)) for p in points]


def available_year_months(raw: Mapping[str, Any]) -> List[str]:
    periods = set()
    for by_period in raw.values():
        if isinstance(by_period, Mapping):
            periods.update(str(k) for k in by_period.keys())
    return sorted(periods)


# Country groups for the regional distribution chart
REGIONS: Dict[str, List[str]] = {
    "North America": ["United States", "Canada", "Mexico"],
    "Europe": ["Germany", "France", "United Kingdom", "Italy", "Spain", "Russia"],
    "Asia": ["China", "Japan", "India", "South Korea", "Indonesia"],
    "South America": ["Brazil", "Argentina", "Colombia", "Chile"],
    "Africa": ["South Africa", "Nigeria", "Egypt", "Morocco"],
    "Oceania": ["Australia", "New Zealand"],
}
OTHER_REGION = "Other"


def region_of(country: str) -> str:
    for region, countries in REGIONS.items():
        if match_name(country, countries, key=lambda c: c) is not None:
            return region
    return OTHER_REGION


def regional_averages(points: Sequence[MeasurementPoint]) -> Dict[str, Dict[str, float]]:
    """region -> parameter -> mean value; regions without data are left out."""
    acc: Dict[str, Dict[str, List[float]]] = {}
    for p in points:
        acc.setdefault(region_of(p.country), {}).setdefault(p.parameter, []).append(p.value)
    return {
        region: {param: sum(vs) / len(vs) for param, vs in by_param.items()}
        for region, by_param in acc.items()
    }
