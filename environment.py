"""
Environmental indices
=====================

Asset shape:

    {"FRA": {"periods": {"2022-09": {"no2": {"composite_index": 1.3, ...}}}}}

Countries are keyed by whatever the source used (name or ISO code); the
reconciler handles both.
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

import dashboard_hook as SH
from errors import InvalidQuery
from records import EnvironmentalPoint, RangeSummary
from stats_lib import range_summary

logger = logging.getLogger(__name__)


class Pollutant(str, Enum):
    COMPOSITE = "composite"
    NO2 = "no2"
    O3 = "o3"
    SO2 = "so2"


class Metric(str, Enum):
    POLLUTION_GDP_RATIO = "pollution_gdp_ratio"
    GDP_POLLUTION_RATIO = "gdp_pollution_ratio"
    NORMALIZED_RATIO = "normalized_ratio"
    ENV_INEQUALITY_INDEX = "env_inequality_index"
    COMPOSITE_INDEX = "composite_index"


POLLUTANT_LABELS = {
    Pollutant.COMPOSITE: "Composite",
    Pollutant.NO2: "NO₂",
    Pollutant.O3: "O₃",
    Pollutant.SO2: "SO₂",
}

METRIC_LABELS = {
    Metric.COMPOSITE_INDEX: "Composite Index",
    Metric.POLLUTION_GDP_RATIO: "Pollution / GDP",
    Metric.GDP_POLLUTION_RATIO: "GDP / Pollution",
    Metric.NORMALIZED_RATIO: "Normalized Ratio",
    Metric.ENV_INEQUALITY_INDEX: "Environmental Inequality",
}


def metric_label(metric: str) -> str:
    try:
        return METRIC_LABELS[Metric(metric)]
    except ValueError:
        return "Environmental Index"


def parse_pollutant(value: Optional[str]) -> Pollutant:
    try:
        return Pollutant(value or SH.DEFAULT_POLLUTANT)
    except ValueError:
        raise InvalidQuery(f"Unknown pollutant: {value!r}") from None


def parse_metric(value: Optional[str]) -> Metric:
    try:
        return Metric(value or SH.DEFAULT_METRIC)
    except ValueError:
        raise InvalidQuery(f"Unknown metric: {value!r}") from None


def _periods(entry: Any) -> Mapping[str, Any]:
    if isinstance(entry, Mapping) and isinstance(entry.get("periods"), Mapping):
        return entry["periods"]
    return {}


def _select(period_data: Mapping[str, Any], pollutant: str, metric: str) -> Any:
    """Narrow one period's indices to the pollutant/metric when they exist."""
    by_pollutant = period_data.get(pollutant)
    if not pollutant or not isinstance(by_pollutant, Mapping):
        return dict(period_data)
    if metric and metric in by_pollutant:
        return {pollutant: {metric: by_pollutant[metric]}}
    return {pollutant: dict(by_pollutant)}


def filter_indices(
    raw: Mapping[str, Any],
    period: Optional[str] = None,
    pollutant: str = SH.DEFAULT_POLLUTANT,
    metric: str = SH.DEFAULT_METRIC,
) -> Dict[str, Dict[str, Any]]:
    """country -> {"period", "indices"}.

    With `period`, countries lacking it are left out. Without it, each
    country reports its own latest period.
    """
    out: Dict[str, Dict[str, Any]] = {}
    for country, entry in raw.items():
        periods = _periods(entry)
        if not periods:
            continue
        if period:
            if not periods.get(period):
                continue
            chosen = period
        else:
            chosen = sorted(periods.keys())[-1]
            if not periods.get(chosen):
                continue
        data = periods[chosen]
        if not isinstance(data, Mapping):
            continue
        out[country] = {"period": chosen, "indices": _select(data, pollutant, metric)}
    return out


def _finite(v: Any) -> Optional[float]:
    if isinstance(v, bool):
        return None
    try:
        fv = float(v)
    except (TypeError, ValueError):
        return None
    return fv if math.isfinite(fv) else None


def prepare_environmental_points(
    filtered: Mapping[str, Any],
    pollutant: str = SH.DEFAULT_POLLUTANT,
    metric: str = SH.DEFAULT_METRIC,
    period: str = "",
) -> List[EnvironmentalPoint]:
    """One scalar per country; countries without the pollutant/metric are skipped."""
    points: List[EnvironmentalPoint] = []
    for country, entry in filtered.items():
        if not isinstance(entry, Mapping):
            continue
        indices = entry.get("indices") or {}
        value = _finite((indices.get(pollutant) or {}).get(metric))
        if value is None:
            continue
        points.append(EnvironmentalPoint(
            country_key=country,
            value=value,
            period=str(entry.get("period") or period),
        ))
    return points


def available_periods(raw: Mapping[str, Any]) -> List[str]:
    found = set()
    for entry in raw.values():
        found.update(_periods(entry).keys())
    return sorted(found)


def _series(raw: Mapping[str, Any], pollutant: str, metric: str) -> Dict[str, List[float]]:
    series: Dict[str, List[float]] = {}
    for country, entry in raw.items():
        for data in _periods(entry).values():
            if not isinstance(data, Mapping):
                continue
            value = _finite((data.get(pollutant) or {}).get(metric))
            if value is not None:
                series.setdefault(country, []).append(value)
    return series


def environmental_ranges(
    raw: Mapping[str, Any],
    pollutant: str = SH.DEFAULT_POLLUTANT,
    metric: str = SH.DEFAULT_METRIC,
    top_n: int = SH.TOP_N,
) -> List[RangeSummary]:
    """Min/max/avg of a metric across all periods, highest averages first."""
    ranges = range_summary(_series(raw, pollutant, metric))
    logger.debug("Ranges for %s/%s: %d countries", pollutant, metric, len(ranges))
    return ranges[:top_n]


def metric_profile(
    raw: Mapping[str, Any],
    country: str,
    period: Optional[str] = None,
    pollutant: str = SH.DEFAULT_POLLUTANT,
) -> Dict[str, Optional[float]]:
    """All five metrics for one country (radar chart); None where missing."""
    periods = _periods(raw.get(country))
    if not periods:
        return {m.value: None for m in Metric}
    chosen = period if period in periods else sorted(periods.keys())[-1]
    data = (periods.get(chosen) or {}).get(pollutant) or {}
    return {m.value: _finite(data.get(m.value)) for m in Metric}
