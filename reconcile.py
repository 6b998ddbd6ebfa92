"""
Country identifier reconciliation
=================================

The GDP table, the air-quality files, the environmental indices and the
boundary GeoJSON were all sourced independently, so the same country shows up
as "USA", "US", "United States" or "United States of America".

Matching order (first hit wins):

1) exact code: feature ISO-3 (else ISO-2) == record code, case-insensitive
2) exact name: trimmed, case-insensitive
3) substring name: either name contains the other, case-insensitive
   (measurement pairing is one-way: the GDP name contains the measurement country)
4) no match -> None (caller renders the neutral colour)

Step 3 is a heuristic. Short names can hit unrelated longer ones ("Niger"
is a substring of "Nigeria"); steps 1 and 2 run first so that only inputs
without a code and without an exact name reach it.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union

from records import CountryRecord, GeoFeature, MeasurementPoint

T = TypeVar("T")

FeatureLike = Union[GeoFeature, Mapping[str, Any]]


def _as_feature(feature: FeatureLike) -> GeoFeature:
    if isinstance(feature, GeoFeature):
        return feature
    return GeoFeature.from_geojson(feature)


def _norm(text: Optional[str]) -> str:
    return (text or "").strip().lower()


def match_name(name: str, candidates: Iterable[T], key: Callable[[T], Optional[str]]) -> Optional[T]:
    """Name-only matching: exact (trimmed, case-insensitive) then substring."""
    target = _norm(name)
    if not target:
        return None
    items = list(candidates)

    for item in items:
        if _norm(key(item)) == target:
            return item

    for item in items:
        other = _norm(key(item))
        if other and (other in target or target in other):
            return item
    return None


def find_country_record(feature: FeatureLike, records: Sequence[T]) -> Optional[T]:
    """Best record for a map feature, or None.

    `records` can hold anything exposing `country_code` and `country_name`
    (CountryRecord, EnvironmentalPoint). Neither input is modified.
    """
    f = _as_feature(feature)

    code = f.code.upper()
    if code:
        for rec in records:
            if (getattr(rec, "country_code", "") or "").upper() == code:
                return rec

    return match_name(f.name, records, key=lambda r: getattr(r, "country_name", ""))


def match_measurement(name: str, measurements: Iterable[MeasurementPoint]) -> Optional[MeasurementPoint]:
    """Measurement for a GDP country name: exact, then one whose country the name contains.

    Containment is one-way ("United States of America" finds "United States",
    "Oman" never finds "Romania").
    """
    target = _norm(name)
    if not target:
        return None
    items = list(measurements)

    for m in items:
        if _norm(m.country_name) == target:
            return m

    for m in items:
        other = _norm(m.country_name)
        if other and other in target:
            return m
    return None


def pair_records(
    records: Sequence[CountryRecord],
    measurements: Sequence[MeasurementPoint],
) -> List[Tuple[CountryRecord, MeasurementPoint]]:
    """Join GDP records with air-quality measurements by country name."""
    pairs: List[Tuple[CountryRecord, MeasurementPoint]] = []
    for rec in records:
        m = match_measurement(rec.country_name, measurements)
        if m is not None:
            pairs.append((rec, m))
    return pairs
