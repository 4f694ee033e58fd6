"""Filter normalization: fallbacks and clamping."""

import pytest

from core.filters import DashboardFilters, normalize_filters

CODES = [649, 1842, 1233]


def test_defaults():
    f = normalize_filters({}, available_codes=CODES)
    assert f == DashboardFilters(prod_code=649, y_axis="rate", n_rows=4, wrap="reset")
    assert f.n_factors == 3


def test_known_code_kept_and_coerced():
    assert normalize_filters({"prod_code": "1842"}, available_codes=CODES).prod_code == 1842


@pytest.mark.parametrize("code", [None, "abc", 1])
def test_unknown_code_falls_back_to_first(code):
    assert normalize_filters({"prod_code": code}, available_codes=CODES).prod_code == 649


def test_no_available_codes_keeps_value():
    assert normalize_filters({"prod_code": 5}).prod_code == 5


@pytest.mark.parametrize("raw,expected", [(1, 2), (2, 2), (7, 7), (10, 10), (50, 10), ("x", 4), (None, 4)])
def test_n_rows_clamped(raw, expected):
    assert normalize_filters({"n_rows": raw}, available_codes=CODES).n_rows == expected


@pytest.mark.parametrize("raw,expected", [("count", "count"), ("RATE", "rate"), ("log", "rate"), (None, "rate")])
def test_y_axis(raw, expected):
    assert normalize_filters({"y_axis": raw}, available_codes=CODES).y_axis == expected


@pytest.mark.parametrize("raw,expected", [("modulo", "modulo"), ("reset", "reset"), ("bounce", "reset")])
def test_wrap(raw, expected):
    assert normalize_filters({"wrap": raw}, available_codes=CODES).wrap == expected
