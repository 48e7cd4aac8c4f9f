# ABOUTME: Tests the least-squares trend helper and rounding utilities.
# ABOUTME: Includes degenerate series that must not produce NaN.

import math

import pytest

from src.common.stats import clamp, linear_regression, round_half_up


def test_flat_series_has_zero_slope():
    fit = linear_regression([5, 5, 5, 5])
    assert fit.slope == pytest.approx(0.0)
    assert fit.intercept == pytest.approx(5.0)


def test_increasing_series():
    fit = linear_regression([1, 2, 3, 4])
    assert fit.slope == pytest.approx(1.0)
    assert fit.intercept == pytest.approx(1.0)
    assert fit.predict(4) == pytest.approx(5.0)


def test_short_series_are_finite():
    empty = linear_regression([])
    assert (empty.slope, empty.intercept) == (0.0, 0.0)

    single = linear_regression([3])
    assert single.slope == 0.0
    assert single.intercept == 3.0
    assert not math.isnan(single.predict(1))


def test_round_half_up_rounds_ties_up():
    assert round_half_up(2.25, 1) == pytest.approx(2.3)
    assert round_half_up(2.5) == 3
    assert round_half_up(0.125, 2) == pytest.approx(0.13)


def test_clamp():
    assert clamp(7, 1, 5) == 5
    assert clamp(-1, 1, 5) == 1
    assert clamp(3, 1, 5) == 3
