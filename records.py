"""
Data model
==========

Every dataset the dashboard reads (GDP, air quality, environmental indices,
boundaries) is turned into small immutable records. They are rebuilt on each
recompute and never edited afterwards: filters and views select records,
they do not change them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, NamedTuple, Optional, Tuple


@dataclass(frozen=True)
class CountryRecord:
    """One (country, year, metric value) tuple produced by an aggregator.

    `country_code` is the primary join key (ISO-3 preferred), the name is the
    fallback key.
    """
    country_name: str
    country_code: str
    year: int
    value: float

    @property
    def gdp_value(self) -> float:
        return self.value


@dataclass(frozen=True)
class GeoFeature:
    """Boundary polygon properties, read only for matching keys."""
    name: str
    iso_a2: str = ""
    iso_a3: str = ""
    geometry: Optional[Dict[str, Any]] = field(default=None, compare=False, repr=False)

    @property
    def code(self) -> str:
        return self.iso_a3 or self.iso_a2 or ""

    @classmethod
    def from_geojson(cls, feature: Mapping[str, Any]) -> "GeoFeature":
        props = feature.get("properties") or {}
        return cls(
            name=str(props.get("name") or ""),
            iso_a2=str(props.get("iso_a2") or ""),
            iso_a3=str(props.get("iso_a3") or ""),
            geometry=feature.get("geometry"),
        )


@dataclass(frozen=True)
class MeasurementPoint:
    """Air-quality measurement for one country, parameter and period."""
    country: str
    latitude: float
    longitude: float
    parameter: str
    value: float
    unit: str
    period: str

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.country, self.parameter, self.period)

    @property
    def country_name(self) -> str:
        return self.country

    def to_json(self) -> Dict[str, Any]:
        return {
            "location": self.country,
            "city": self.country,
            "country": self.country,
            "coordinates": {"latitude": self.latitude, "longitude": self.longitude},
            "parameter": self.parameter,
            "value": self.value,
            "unit": self.unit,
            "lastUpdated": self.period,
        }


@dataclass(frozen=True)
class EnvironmentalPoint:
    """Single environmental-index scalar for a country and period.

    Sources key countries either by name or by ISO code, so the key answers
    for both when reconciled against a map feature.
    """
    country_key: str
    value: float
    period: str

    @property
    def country_name(self) -> str:
        return self.country_key

    @property
    def country_code(self) -> str:
        return self.country_key


@dataclass(frozen=True)
class RangeSummary:
    country: str
    min: float
    max: float
    avg: float


class Change(NamedTuple):
    """Year-over-year change: raw percentage plus display string."""
    value: float
    formatted: str


NO_CHANGE = Change(0, "N/A")
