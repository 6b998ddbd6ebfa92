import math

import pytest

import dashboard_hook as SH
from color_scales import (
    ENVIRONMENTAL_FLOOR,
    ScaleType,
    build_color_scale,
    color_extent,
    country_color,
    environmental_color,
    interpolate_hcl,
)
from records import CountryRecord

PALETTE = SH.GDP_PALETTE


def test_color_extent_rounds_up_and_ignores_invalid():
    assert color_extent([1500, None, float("nan"), -3, 0]) == (0.0, 2000.0)
    assert color_extent([1000]) == (0.0, 1000.0)
    assert color_extent([]) == SH.DEFAULT_EXTENT
    assert color_extent([None, float("inf")]) == SH.DEFAULT_EXTENT


def test_linear_endpoints_and_clamping():
    scale = build_color_scale([0, 250, 1000], ScaleType.LINEAR)
    assert scale.domain == (0.0, 1000.0)
    assert scale(0) == PALETTE[0]
    assert scale(1000) == PALETTE[4]
    assert scale(-50) == PALETTE[0]
    assert scale(10 ** 6) == PALETTE[4]
    assert scale(250) == PALETTE[1]


def test_linear_interpolates_between_stops():
    scale = build_color_scale([1000], "linear")
    mid = scale(125)
    assert mid not in (PALETTE[0], PALETTE[1])
    assert mid.startswith("#") and len(mid) == 7


def test_log_domain_and_endpoints():
    scale = build_color_scale([10, 1000], "log")
    assert scale.domain == (1.0, 1000.0)
    assert scale(1) == PALETTE[0]
    assert scale(1000) == PALETTE[4]
    assert scale(0.01) == PALETTE[0]
    assert scale(10 ** 9) == PALETTE[4]


def test_quantile_thresholds_are_data_cut_points():
    values = list(range(1, 13))
    scale = build_color_scale(values, ScaleType.QUANTILE)
    expected = [1 + 11 * k / 6 for k in range(1, 6)]
    assert list(scale.thresholds) == pytest.approx(expected)
    assert scale(1) == PALETTE[0]
    assert scale(12) == PALETTE[5]
    assert scale(7) == PALETTE[3]


def test_quantile_without_data_uses_fallback():
    scale = build_color_scale([], "quantile")
    assert scale(5) == SH.FALLBACK_COLOR


@pytest.mark.parametrize("kind", ["linear", "log", "quantile"])
def test_missing_values_get_fallback(kind):
    scale = build_color_scale([100, 2000, 3000], kind)
    assert scale(None) == SH.FALLBACK_COLOR
    assert scale(float("nan")) == SH.FALLBACK_COLOR
    assert scale("abc") == SH.FALLBACK_COLOR
    assert SH.FALLBACK_COLOR != PALETTE[0]


def test_unknown_scale_type_rejected():
    with pytest.raises(ValueError):
        build_color_scale([1, 2], "sqrt")
    with pytest.raises(ValueError):
        build_color_scale([1, 2], "linear", palette=["#000000"])


def test_interpolate_hcl_endpoints():
    assert interpolate_hcl("#E6F0FA", "#1F5FC9", 0) == "#E6F0FA"
    assert interpolate_hcl("#E6F0FA", "#1F5FC9", 1) == "#1F5FC9"
    assert interpolate_hcl("#000000", "#FFFFFF", 0.5) not in ("#000000", "#FFFFFF")


def test_country_color():
    records = [CountryRecord("France", "FRA", 2020, 1000.0)]
    scale = build_color_scale([1000], "linear")
    assert country_color("FRA", records, scale) == PALETTE[4]
    assert country_color("DEU", records, scale) == SH.FALLBACK_COLOR


def test_environmental_color_steps():
    assert environmental_color(3.0) == "#1B5E20"
    assert environmental_color(1.1) == "#4CAF50"
    assert environmental_color(0.1) == ENVIRONMENTAL_FLOOR
    assert environmental_color(None) == SH.FALLBACK_COLOR
    assert environmental_color(math.nan) == SH.FALLBACK_COLOR
