"""France / Ile-de-France views: sensor readings, commune pollution and incomes."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Tuple

from air_quality import parameter_info
from errors import InvalidQuery

logger = logging.getLogger(__name__)

DEFAULT_REVENUS_YEAR = "2021"
DEFAULT_IDF_YEAR = "2023"

IDF_POLLUTION_TYPES = ("PM25", "PM10", "NOx", "No2")

SENSOR_STATS = ("value", "min", "max", "avg", "median", "q02", "q25", "q75", "q98", "sd")

# Mean household income (EUR) -> blue, highest first
INCOME_STEPS: List[Tuple[float, str]] = [
    (50000, "#1E40AF"),
    (40000, "#1D4ED8"),
    (30000, "#3B82F6"),
    (20000, "#60A5FA"),
]
INCOME_FLOOR = "#93C5FD"

# Commune pollution fills, worst band first
IDF_POLLUTION_FILLS = (
    "rgba(255, 32, 64, 0.6)",
    "rgba(255, 128, 0, 0.6)",
    "rgba(240, 208, 0, 0.6)",
    "rgba(0, 204, 102, 0.3)",
)


def check_idf_pollution_type(kind: str) -> str:
    if kind not in IDF_POLLUTION_TYPES:
        raise InvalidQuery("Invalid pollution type. Use " + ", ".join(IDF_POLLUTION_TYPES))
    return kind


def income_color(mean: float) -> str:
    for bound, color in INCOME_STEPS:
        if mean > bound:
            return color
    return INCOME_FLOOR


def idf_pollution_color(value: Optional[float], kind: str) -> str:
    """Fill for a commune's monthly mean, using the pollutant's thresholds."""
    if value is None:
        return IDF_POLLUTION_FILLS[-1]
    t = parameter_info(kind.lower()).thresholds
    for bound, fill in zip((t.high, t.medium, t.low), IDF_POLLUTION_FILLS):
        if value > bound:
            return fill
    return IDF_POLLUTION_FILLS[-1]


def idf_month_years(raw: Mapping[str, Any]) -> List[str]:
    months = set()
    for commune in raw.values():
        if isinstance(commune, Mapping):
            months.update(str(m) for m in (commune.get("data") or {}).keys())
    return sorted(months)


def idf_pollution_rows(raw: Mapping[str, Any], month_year: Optional[str]) -> List[Dict[str, Any]]:
    """One row per commune with a monthly summary for `month_year`."""
    rows: List[Dict[str, Any]] = []
    if not month_year:
        return rows
    for cid, commune in raw.items():
        if not isinstance(commune, Mapping):
            continue
        stats = (commune.get("data") or {}).get(month_year)
        if not isinstance(stats, Mapping) or stats.get("mean") is None:
            continue
        lat, lon = parse_geo_point(commune.get("geo_point_2d"))
        rows.append({
            "id": cid,
            "nom": commune.get("nom") or cid,
            "latitude": lat,
            "longitude": lon,
            "mean": float(stats["mean"]),
            "median": stats.get("median"),
            "min": stats.get("min"),
            "max": stats.get("max"),
            "count": stats.get("count"),
        })
    return rows


def flatten_france_sensors(raw: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """commune -> date -> reading  ==>  one flat row per (commune, date)."""
    rows: List[Dict[str, Any]] = []
    for code, commune in raw.items():
        if not isinstance(commune, Mapping):
            continue
        loc = commune.get("localisation") or {}
        coords = loc.get("coordinates") or {}
        lat, lon = coords.get("latitude"), coords.get("longitude")
        if not lat or not lon:
            continue
        for date, reading in (commune.get("data") or {}).items():
            reading = reading or {}
            row = {
                "commune": loc.get("commune") or "Inconnue",
                "code_commune": code,
                "date": date,
                "coordinates_latitude": lat,
                "coordinates_longitude": lon,
                "pollutant": reading.get("pollutant"),
                "sensor_id": reading.get("sensor_id"),
            }
            row.update({k: reading.get(k) for k in SENSOR_STATS})
            rows.append(row)
    return rows


def parse_geo_point(geo_point: Optional[str]) -> Tuple[float, float]:
    """'48.85, 2.35' -> (48.85, 2.35); (0, 0) when absent or malformed."""
    if not geo_point:
        return 0.0, 0.0
    parts = str(geo_point).split(",")
    if len(parts) != 2:
        return 0.0, 0.0
    try:
        return float(parts[0].strip()), float(parts[1].strip())
    except ValueError:
        return 0.0, 0.0


def france_revenus(raw: Mapping[str, Any], year: Optional[str] = None) -> List[Dict[str, Any]]:
    year = year or DEFAULT_REVENUS_YEAR
    out: List[Dict[str, Any]] = []
    for code, commune in raw.items():
        if not isinstance(commune, Mapping):
            continue
        year_data = (commune.get("annee") or {}).get(year)
        if not year_data:
            continue
        geo = commune.get("geo") or {}
        total = (year_data.get("revenus") or {}).get("revenu_fiscal_reference_total") or 0
        foyers = (year_data.get("foyers_fiscaux") or {}).get("total") or 0
        lat, lon = parse_geo_point(geo.get("geo_point_2d"))
        out.append({
            "code_commune": code,
            "nom_commune": commune.get("nom_commune") or "Inconnue",
            "annee": year,
            "revenu_total": total,
            "foyers_total": foyers,
            "revenu_moyen": total / foyers if foyers > 0 else 0,
            "geo_point_2d": geo.get("geo_point_2d"),
            "geo_shape": geo.get("geo_shape"),
            "coordinates": {"latitude": lat, "longitude": lon},
        })
    return out


def month_variance(month_year: str, commune_id: str) -> float:
    """Deterministic variation in [-0.10, +0.09] for a (month, commune) pair."""
    seed = len(month_year) + len(commune_id) + ord(month_year[0])
    return (seed % 20 - 10) / 100


def _year_from_month(month_year: Optional[str], fallback: str) -> str:
    if month_year and "-" in month_year:
        head = month_year.split("-")[0]
        if head.isdigit():
            return head
    return fallback


def idf_revenus(
    raw: Mapping[str, Any],
    annee: Optional[str] = None,
    month_year: Optional[str] = None,
    month: Optional[str] = None,
) -> Dict[str, Dict[str, Any]]:
    year = _year_from_month(month_year, annee or DEFAULT_IDF_YEAR)
    logger.info("IDF incomes for year %s (monthYear=%s)", year, month_year)

    out: Dict[str, Dict[str, Any]] = {}
    for cid, commune in raw.items():
        if not isinstance(commune, Mapping):
            continue
        year_data = (commune.get("annee") or {}).get(year)
        geo = commune.get("geo") or {}
        if not year_data or not geo.get("geo_shape"):
            continue
        revenus = year_data.get("revenus") or {}
        foyers_fiscaux = year_data.get("foyers_fiscaux") or {}
        total = revenus.get("revenu_fiscal_reference_total") or 0
        foyers = foyers_fiscaux.get("total") or 1

        mean = total / foyers
        median = mean * 0.85
        if month_year:
            variance = month_variance(month_year, cid)
            mean *= 1 + variance
            median *= 1 + variance * 0.9

        out[cid] = {
            "nom": commune.get("nom_commune"),
            "geo_point_2d": geo.get("geo_point_2d"),
            "geo_shape": geo.get("geo_shape"),
            "data": {
                "revenu_total": total,
                "revenu_fiscal_reference_total": total,
                "revenu_fiscal_reference_imposes": revenus.get("revenu_fiscal_reference_imposes") or 0,
                "impot_net_total": revenus.get("impot_net_total") or 0,
                "foyers_total": foyers,
                "foyers_imposes": foyers_fiscaux.get("imposes") or 0,
                "revenu_moyen": mean,
                "revenu_median": median,
                "annee": year,
                "month": month or "all",
                "monthYear": month_year or "all",
            },
        }
    return out


def revenus_years(raw: Mapping[str, Any]) -> List[str]:
    years = set()
    for commune in raw.values():
        if isinstance(commune, Mapping):
            years.update(str(y) for y in (commune.get("annee") or {}).keys())
    return sorted(years)


def sensor_dates(rows: List[Dict[str, Any]]) -> List[str]:
    return sorted({str(r["date"]) for r in rows})


def sensor_value(row: Mapping[str, Any]) -> Optional[float]:
    v = row.get("value")
    if v is None or isinstance(v, bool):
        return None
    try:
        fv = float(v)
    except (TypeError, ValueError):
        return None
    return fv if math.isfinite(fv) else None
