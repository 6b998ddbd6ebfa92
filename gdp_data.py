"""
GDP aggregation
===============

Raw rows look like the World Bank export:

    {"Country Name": "France", "Country Code": "FRA", "2016": "2471.3", ...}

Values may be strings (CSV origin), numbers (JSON origin) or nested under
`{"GDP": {"2016": ...}}`. Rows without a usable name or code are skipped and
year values that are not finite and positive are dropped, never zero-filled.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

import dashboard_hook as SH
from errors import InvalidQuery
from records import CountryRecord

GdpByYear = Dict[str, List[CountryRecord]]


def _parse_value(x: Any) -> Optional[float]:
    """Float from a str/int/float cell, None if missing or unparseable."""
    if isinstance(x, bool):
        return None
    if isinstance(x, (int, float)):
        return float(x)
    if isinstance(x, str):
        try:
            return float(x.strip())
        except ValueError:
            return None
    return None


def _year_value(row: Mapping[str, Any], year: str) -> Optional[float]:
    cell = row.get(year)
    if isinstance(cell, (str, int, float)) and not isinstance(cell, bool):
        return _parse_value(cell)
    nested = row.get("GDP")
    if isinstance(nested, Mapping):
        return _parse_value(nested.get(year))
    return None


def _valid_country(row: Mapping[str, Any]) -> bool:
    name = row.get("Country Name")
    if not isinstance(name, str) or not name or name == "NaN":
        return False
    return bool(row.get("Country Code"))


def process_gdp_data(raw_rows: Iterable[Mapping[str, Any]], years: Sequence[str] = SH.GDP_YEARS) -> GdpByYear:
    """Raw rows -> {year: [CountryRecord]} (every year key present)."""
    result: GdpByYear = {year: [] for year in years}

    for row in raw_rows:
        if not isinstance(row, Mapping) or not _valid_country(row):
            continue
        for year in years:
            v = _year_value(row, year)
            if v is None or not math.isfinite(v) or v <= 0:
                continue
            result[year].append(CountryRecord(
                country_name=row["Country Name"],
                country_code=str(row["Country Code"]),
                year=int(year),
                value=v,
            ))
    return result


# -----------------------------
# Asset reshaping (server side)
# -----------------------------

def _asset_row_ok(row: Any) -> bool:
    if not isinstance(row, Mapping):
        return False
    name = row.get("Country Name")
    if not name or name == "NaN" or isinstance(name, (dict, list)):
        return False
    return True


def gdp_rows_from_asset(raw: Iterable[Any], years: Sequence[str] = SH.GDP_YEARS) -> List[Dict[str, Any]]:
    """Nested asset rows -> flat rows with one key per year (None when absent)."""
    out: List[Dict[str, Any]] = []
    for row in raw:
        if not _asset_row_ok(row):
            continue
        gdp = row.get("GDP") if isinstance(row.get("GDP"), Mapping) else {}
        flat: Dict[str, Any] = {
            "Country Name": row["Country Name"],
            "Country Code": row.get("Country Code"),
        }
        for year in years:
            flat[year] = gdp.get(year) or None
        out.append(flat)
    return out


def gdp_for_year(raw: Iterable[Any], year: str, years: Sequence[str] = SH.GDP_YEARS) -> List[Dict[str, Any]]:
    """Per-year view of the asset; raises InvalidQuery for a year outside the data."""
    try:
        y = int(year)
    except (TypeError, ValueError):
        y = None
    if y is None or str(y) not in years:
        raise InvalidQuery(f"Invalid year. Must be between {years[0]} and {years[-1]}")

    out: List[Dict[str, Any]] = []
    for row in raw:
        if not _asset_row_ok(row):
            continue
        gdp = row.get("GDP") if isinstance(row.get("GDP"), Mapping) else {}
        out.append({
            "countryName": row["Country Name"],
            "countryCode": row.get("Country Code"),
            "gdpValue": gdp.get(str(y)) or None,
        })
    return out


# -----------------------------
# Lookups
# -----------------------------

def data_for_year(by_year: GdpByYear, year: str) -> List[CountryRecord]:
    return list(by_year.get(str(year), []))


def data_for_year_range(by_year: GdpByYear, start: str, end: str) -> GdpByYear:
    out: GdpByYear = {}
    for y in range(int(start), int(end) + 1):
        if str(y) in by_year:
            out[str(y)] = by_year[str(y)]
    return out


def country_data(by_year: GdpByYear, country_code: str, year: str) -> Optional[CountryRecord]:
    return next((r for r in by_year.get(str(year), []) if r.country_code == country_code), None)


def previous_year(year: str, years: Sequence[str] = SH.GDP_YEARS) -> Optional[str]:
    prev = str(int(year) - 1)
    return prev if prev in years else None


def to_long_frame(by_year: GdpByYear, indicator: str = "gdp") -> pd.DataFrame:
    """Long format (iso3, country, year, indicator, value) for plotting."""
    rows = [
        {"iso3": r.country_code, "country": r.country_name, "year": r.year,
         "indicator": indicator, "value": r.value}
        for recs in by_year.values() for r in recs
    ]
    if not rows:
        return pd.DataFrame(columns=["iso3", "country", "year", "indicator", "value"])
    df = pd.DataFrame(rows)
    return df.sort_values(["iso3", "year"]).reset_index(drop=True)
