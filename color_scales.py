"""
Value -> colour scales for the choropleths.

Three families are supported and picked through a lookup table keyed by
`ScaleType`, so an unknown type fails at construction time:

- linear: five evenly spaced stops over [0, max], interpolated in HCL
- log: [max(1, min), max] in log space, interpolated in HCL
- quantile: equal-count buckets at the data's own quantile cut points

All three clamp out-of-domain values. Missing / NaN values get the fallback
grey. A scale is built once per (dataset, year, scale type) and reused.
"""

from __future__ import annotations

import math
from bisect import bisect_right
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
from plotly.colors import hex_to_rgb

import dashboard_hook as SH


class ScaleType(str, Enum):
    LINEAR = "linear"
    LOG = "log"
    QUANTILE = "quantile"


Domain = Tuple[float, float]


@dataclass(frozen=True)
class ColorScale:
    scale_type: ScaleType
    domain: Domain
    colors: Tuple[str, ...]
    thresholds: Tuple[float, ...] = ()
    fallback: str = SH.FALLBACK_COLOR
    _fn: Optional[Callable[[float], str]] = field(default=None, repr=False, compare=False)

    def __call__(self, value: Optional[float]) -> str:
        if value is None or self._fn is None:
            return self.fallback
        try:
            v = float(value)
        except (TypeError, ValueError):
            return self.fallback
        if not math.isfinite(v):
            return self.fallback
        return self._fn(v)


# -----------------------------
# Domain
# -----------------------------

def valid_values(values: Iterable[Optional[float]]) -> List[float]:
    """Finite, strictly positive values; the only ones that shape a domain."""
    out: List[float] = []
    for v in values:
        if v is None:
            continue
        try:
            fv = float(v)
        except (TypeError, ValueError):
            continue
        if math.isfinite(fv) and fv > 0:
            out.append(fv)
    return out


def color_extent(values: Iterable[Optional[float]]) -> Domain:
    """[0, max rounded up to the next thousand]."""
    vals = valid_values(values)
    if not vals:
        return SH.DEFAULT_EXTENT
    return (0.0, float(math.ceil(max(vals) / 1000.0) * 1000))


# -----------------------------
# HCL interpolation (CIE LCh, D50 white as in d3-color)
# -----------------------------

_XN, _YN, _ZN = 0.96422, 1.0, 0.82521
_T0 = 4 / 29
_T1 = 6 / 29
_T2 = 3 * _T1 * _T1
_T3 = _T1 * _T1 * _T1


def _rgb2lrgb(x: float) -> float:
    x /= 255.0
    return x / 12.92 if x <= 0.04045 else ((x + 0.055) / 1.055) ** 2.4


def _lrgb2rgb(x: float) -> float:
    return 255.0 * (12.92 * x if x <= 0.0031308 else 1.055 * x ** (1 / 2.4) - 0.055)


def _xyz2lab(t: float) -> float:
    return t ** (1 / 3) if t > _T3 else t / _T2 + _T0


def _lab2xyz(t: float) -> float:
    return t * t * t if t > _T1 else _T2 * (t - _T0)


def hex_to_lch(color: str) -> Tuple[float, float, float]:
    r, g, b = (_rgb2lrgb(c) for c in hex_to_rgb(color))
    y = _xyz2lab((0.2225045 * r + 0.7168786 * g + 0.0606169 * b) / _YN)
    if r == g == b:
        x = z = y
    else:
        x = _xyz2lab((0.4360747 * r + 0.3850649 * g + 0.1430804 * b) / _XN)
        z = _xyz2lab((0.0139322 * r + 0.0971045 * g + 0.7141733 * b) / _ZN)
    L, a, bb = 116 * y - 16, 500 * (x - y), 200 * (y - z)
    c = math.hypot(a, bb)
    h = math.degrees(math.atan2(bb, a)) % 360 if c > 1e-9 else float("nan")
    return L, c, h


def lch_to_hex(L: float, c: float, h: float) -> str:
    hr = 0.0 if math.isnan(h) else math.radians(h)
    a, b = math.cos(hr) * c, math.sin(hr) * c
    y = (L + 16) / 116
    x = y + a / 500
    z = y - b / 200
    x, y, z = _XN * _lab2xyz(x), _YN * _lab2xyz(y), _ZN * _lab2xyz(z)
    rgb = (
        _lrgb2rgb(3.1338561 * x - 1.6168667 * y - 0.4906146 * z),
        _lrgb2rgb(-0.9787684 * x + 1.9161415 * y + 0.0334540 * z),
        _lrgb2rgb(0.0719453 * x - 0.2289914 * y + 1.4052427 * z),
    )
    return "#" + "".join(f"{int(round(min(255.0, max(0.0, ch)))):02X}" for ch in rgb)


def interpolate_hcl(start: str, end: str, t: float) -> str:
    """Colour at fraction t between two hex colours, shortest hue path."""
    if t <= 0:
        return start
    if t >= 1:
        return end
    l0, c0, h0 = hex_to_lch(start)
    l1, c1, h1 = hex_to_lch(end)
    if math.isnan(h0):
        h0 = h1
    if math.isnan(h1):
        h1 = h0
    if math.isnan(h0):
        h = float("nan")
    else:
        d = h1 - h0
        if d > 180 or d < -180:
            d -= 360 * round(d / 360)
        h = h0 + t * d
    return lch_to_hex(l0 + t * (l1 - l0), c0 + t * (c1 - c0), h)


def _piecewise(stops: Sequence[float], colors: Sequence[str], v: float) -> str:
    """Clamp v to the stops, then interpolate inside its segment."""
    if v <= stops[0]:
        return colors[0]
    if v >= stops[-1]:
        return colors[len(stops) - 1]
    i = bisect_right(stops, v) - 1
    lo, hi = stops[i], stops[i + 1]
    t = 0.0 if hi == lo else (v - lo) / (hi - lo)
    return interpolate_hcl(colors[i], colors[i + 1], t)


# -----------------------------
# Builders
# -----------------------------

def _linear(values: List[float], palette: Sequence[str]) -> ColorScale:
    lo, hi = color_extent(values)
    stops = [lo + (hi - lo) * f for f in (0.0, 0.25, 0.5, 0.75, 1.0)]
    colors = tuple(palette[:5])
    return ColorScale(
        scale_type=ScaleType.LINEAR,
        domain=(lo, hi),
        colors=colors,
        _fn=lambda v: _piecewise(stops, colors, v),
    )


def _log(values: List[float], palette: Sequence[str]) -> ColorScale:
    lo, hi = color_extent(values)
    lo = max(1.0, lo)
    log_lo, log_hi = math.log(lo), math.log(hi)
    colors = (palette[0], palette[4])

    def fn(v: float) -> str:
        v = min(max(v, lo), hi)
        if log_hi == log_lo:
            return interpolate_hcl(colors[0], colors[1], 0.5)
        t = (math.log(v) - log_lo) / (log_hi - log_lo)
        return interpolate_hcl(colors[0], colors[1], t)

    return ColorScale(scale_type=ScaleType.LOG, domain=(lo, hi), colors=colors, _fn=fn)


def _quantile(values: List[float], palette: Sequence[str]) -> ColorScale:
    colors = tuple(palette)
    if not values:
        return ColorScale(scale_type=ScaleType.QUANTILE, domain=SH.DEFAULT_EXTENT, colors=colors)
    data = np.sort(np.asarray(values, dtype=float))
    k = len(colors)
    thresholds = tuple(float(q) for q in np.quantile(data, [i / k for i in range(1, k)]))
    return ColorScale(
        scale_type=ScaleType.QUANTILE,
        domain=(float(data[0]), float(data[-1])),
        colors=colors,
        thresholds=thresholds,
        _fn=lambda v: colors[bisect_right(thresholds, v)],
    )


def _finite(values: Iterable[Optional[float]]) -> List[float]:
    out: List[float] = []
    for v in values:
        try:
            fv = float(v)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            continue
        if math.isfinite(fv):
            out.append(fv)
    return out


_BUILDERS: Dict[ScaleType, Callable[[List[float], Sequence[str]], ColorScale]] = {
    ScaleType.LINEAR: _linear,
    ScaleType.LOG: _log,
    ScaleType.QUANTILE: _quantile,
}


def build_color_scale(
    values: Iterable[Optional[float]],
    scale_type: Union[ScaleType, str] = SH.DEFAULT_SCALE_TYPE,
    palette: Sequence[str] = tuple(SH.GDP_PALETTE),
) -> ColorScale:
    """Build the scale for one dataset/year/scale-type triple.

    Raises ValueError for an unknown scale type.
    """
    kind = ScaleType(scale_type)
    if len(palette) < 5:
        raise ValueError("palette needs at least five colours")
    return _BUILDERS[kind](_finite(values), palette)


def country_color(country_code: str, records: Sequence, scale: ColorScale) -> str:
    """Colour for one country code, fallback grey when absent."""
    for rec in records:
        if rec.country_code == country_code:
            return scale(rec.value)
    return scale.fallback


# Stepped greens for environmental indices (higher = better performance)
ENVIRONMENTAL_STEPS: List[Tuple[float, str]] = [
    (2.5, "#1B5E20"),
    (2.0, "#2E7D32"),
    (1.5, "#388E3C"),
    (1.2, "#43A047"),
    (1.0, "#4CAF50"),
    (0.8, "#66BB6A"),
    (0.6, "#81C784"),
    (0.4, "#A5D6A7"),
]
ENVIRONMENTAL_FLOOR = "#C8E6C9"


def environmental_color(value: Optional[float]) -> str:
    if value is None or not math.isfinite(float(value)):
        return SH.FALLBACK_COLOR
    for bound, color in ENVIRONMENTAL_STEPS:
        if value > bound:
            return color
    return ENVIRONMENTAL_FLOOR
