"""Statistics used by the info panel and the chart views.

Functions:
1) country_rank        - 1-based rank by value, -1 when absent
2) change_percentage   - year-over-year change with an "N/A" sentinel
3) pearson_correlation - r over paired samples, None when undefined
4) linear_regression   - OLS slope/intercept, None when undefined
5) trend_line          - the two end points of the regression line
6) range_summary       - min / max / avg per country, sorted by avg
7) top_n               - largest records by value

Sums-based formulas:
    r     = (nΣxy − ΣxΣy) / sqrt((nΣx² − (Σx)²)(nΣy² − (Σy)²))
    slope = (nΣxy − ΣxΣy) / (nΣx² − (Σx)²)
    intercept = (Σy − slope·Σx) / n

Ties in rank are not shared: Python's sort is stable, so equal values keep
their input order and get consecutive ranks.
"""

from __future__ import annotations

import math
from typing import List, Mapping, Optional, Sequence, Tuple

import numpy as np

from records import NO_CHANGE, Change, CountryRecord, RangeSummary


def _sorted_desc(records: Sequence[CountryRecord]) -> List[CountryRecord]:
    return sorted(records, key=lambda r: r.value, reverse=True)


def country_rank(country_code: str, records: Sequence[CountryRecord]) -> int:
    for i, rec in enumerate(_sorted_desc(records)):
        if rec.country_code == country_code:
            return i + 1
    return -1


def _find(country_code: str, records: Sequence[CountryRecord]) -> Optional[CountryRecord]:
    return next((r for r in records if r.country_code == country_code), None)


def change_percentage(
    country_code: str,
    current_year: Sequence[CountryRecord],
    previous_year: Sequence[CountryRecord],
) -> Change:
    current = _find(country_code, current_year)
    previous = _find(country_code, previous_year)
    if current is None or previous is None or previous.value == 0:
        return NO_CHANGE

    change = (current.value - previous.value) / previous.value * 100
    formatted = f"+{change:.1f}%" if change >= 0 else f"{change:.1f}%"
    return Change(change, formatted)


def _sums(xs: Sequence[float], ys: Sequence[float]) -> Tuple[int, float, float, float, float, float]:
    if len(xs) != len(ys):
        raise ValueError("x and y must have the same length")
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    return (
        len(x),
        float(x.sum()),
        float(y.sum()),
        float((x * y).sum()),
        float((x * x).sum()),
        float((y * y).sum()),
    )


def pearson_correlation(xs: Sequence[float], ys: Sequence[float]) -> Optional[float]:
    """Pearson r, or None when fewer than two points or either series is constant."""
    n, sx, sy, sxy, sxx, syy = _sums(xs, ys)
    if n < 2:
        return None
    denom_sq = (n * sxx - sx * sx) * (n * syy - sy * sy)
    if denom_sq <= 0:
        return None
    r = (n * sxy - sx * sy) / math.sqrt(denom_sq)
    if not math.isfinite(r):
        return None
    return max(-1.0, min(1.0, r))


def linear_regression(xs: Sequence[float], ys: Sequence[float]) -> Optional[Tuple[float, float]]:
    """(slope, intercept), or None for an empty set or zero x-variance."""
    n, sx, sy, sxy, sxx, _ = _sums(xs, ys)
    if n == 0:
        return None
    denom = n * sxx - sx * sx
    if denom == 0:
        return None
    slope = (n * sxy - sx * sy) / denom
    intercept = (sy - slope * sx) / n
    return slope, intercept


def trend_line(xs: Sequence[float], ys: Sequence[float]) -> List[Tuple[float, float]]:
    fit = linear_regression(xs, ys)
    if fit is None:
        return []
    slope, intercept = fit
    lo, hi = min(xs), max(xs)
    return [(lo, slope * lo + intercept), (hi, slope * hi + intercept)]


def range_summary(values_by_country: Mapping[str, Sequence[float]]) -> List[RangeSummary]:
    out: List[RangeSummary] = []
    for country, values in values_by_country.items():
        vals = [float(v) for v in values]
        if not vals:
            continue
        out.append(RangeSummary(country=country, min=min(vals), max=max(vals), avg=sum(vals) / len(vals)))
    out.sort(key=lambda s: s.avg, reverse=True)
    return out


def top_n(records: Sequence[CountryRecord], n: int) -> List[CountryRecord]:
    return _sorted_desc(records)[:n]


def format_gdp_value(value: Optional[float]) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "N/A"
    if value >= 1000:
        return f"${value / 1000:.1f}k"
    return f"${value:.1f}"
