"""Read-only access to the static JSON assets."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional, Union

import dashboard_hook as SH
from errors import AssetNotFound
from regional import check_idf_pollution_type

logger = logging.getLogger(__name__)


class AssetStore:
    """Loads assets from one directory. Every call re-reads the file."""

    def __init__(self, assets_dir: Optional[Union[str, Path]] = None):
        self.assets_dir = Path(assets_dir) if assets_dir is not None else SH.ASSETS_DIR

    def path(self, name: str) -> Path:
        return self.assets_dir / name

    def load_json(self, name: str) -> Any:
        path = self.path(name)
        if not path.exists():
            logger.error("Asset not found: %s", path)
            raise AssetNotFound(f"Data file not found: {name}")
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)

    def load_gdp(self) -> Any:
        return self.load_json(SH.GDP_ASSET)

    def load_map(self) -> Any:
        return self.load_json(SH.MAP_ASSET)

    def load_pollutants(self) -> Any:
        return self.load_json(SH.POLLUTANT_ASSET)

    def load_indices(self) -> Any:
        return self.load_json(SH.INDICES_ASSET)

    def load_france_sensors(self) -> Any:
        return self.load_json(SH.FRANCE_SENSORS_ASSET)

    def load_france_revenus(self) -> Any:
        return self.load_json(SH.FRANCE_REVENUS_ASSET)

    def load_idf_revenus(self) -> Any:
        return self.load_json(SH.IDF_REVENUS_ASSET)

    def load_idf_pollution(self, kind: str) -> Any:
        check_idf_pollution_type(kind)
        return self.load_json(SH.IDF_POLLUTION_ASSET.format(kind=kind))


def feature_collection(raw: Any) -> dict:
    """Boundary records (one dict per country with a `geo_shape`) -> GeoJSON.

    An input that already is a FeatureCollection is returned as is.
    """
    if isinstance(raw, dict) and raw.get("type") == "FeatureCollection":
        return raw
    features = []
    for country in raw or []:
        shape = country.get("geo_shape") or {}
        props = shape.get("properties") or {}
        features.append({
            "type": "Feature",
            "properties": {
                "name": props.get("name") or country.get("name") or "Unknown",
                "iso_a2": props.get("iso_a2") or country.get("iso_a2") or "",
                "iso_a3": props.get("iso_a3") or country.get("iso_a3") or "",
            },
            "geometry": shape.get("geometry") or {"type": "Polygon", "coordinates": []},
        })
    return {"type": "FeatureCollection", "features": features}


def load_or_empty(loader: Callable[[], Any], empty: Any) -> Any:
    """Dashboard helper: a missing asset becomes an empty dataset."""
    try:
        return loader()
    except AssetNotFound:
        return empty
