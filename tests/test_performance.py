# ABOUTME: Tests quality-trend prediction for individual students.
# ABOUTME: Uses a frozen clock and synthetic daily scores to pin trend and confidence.

from datetime import datetime

import pandas as pd
import pytest

from src.common.clock import fixed_clock
from src.predictive.performance import RECOMMENDATIONS, classify_trend, predict_performance

CLOCK = fixed_clock(datetime(2024, 3, 15, 12))


def _mk_scores(scores, start="2024-03-10 09:00"):
    return pd.DataFrame(
        {
            "student_id": ["s1"] * len(scores),
            "timestamp": pd.date_range(start, periods=len(scores), freq="D", tz="UTC"),
            "quality_score": scores,
        }
    )


def test_too_few_observations_returns_none():
    assert predict_performance(_mk_scores([3, 4]), "s1", clock=CLOCK) is None


def test_unscored_observations_return_none():
    assert predict_performance(_mk_scores([None, 0, None]), "s1", clock=CLOCK) is None


def test_old_observations_are_ignored():
    old = _mk_scores([2, 3, 4], start="2024-01-01 09:00")
    assert predict_performance(old, "s1", clock=CLOCK) is None


def test_improving_trend_clamps_prediction_and_confidence():
    prediction = predict_performance(_mk_scores([2, 3, 4]), "s1", clock=CLOCK)

    assert prediction.current_trend == "improving"
    assert prediction.predicted_quality == 5.0
    assert prediction.confidence == 0.3
    assert prediction.recommendation == RECOMMENDATIONS["improving"]
    assert [p.date for p in prediction.historical_data] == ["2024-03-10", "2024-03-11", "2024-03-12"]


def test_declining_trend():
    prediction = predict_performance(_mk_scores([4, 3, 2]), "s1", clock=CLOCK)
    assert prediction.current_trend == "declining"
    assert prediction.predicted_quality == 1.0


def test_stable_trend_has_capped_confidence():
    prediction = predict_performance(_mk_scores([3, 3, 3]), "s1", clock=CLOCK)
    assert prediction.current_trend == "stable"
    assert prediction.predicted_quality == 3.0
    assert prediction.confidence == 0.95


def test_same_day_scores_are_averaged():
    df = pd.DataFrame(
        {
            "student_id": ["s1"] * 4,
            "timestamp": pd.to_datetime(
                ["2024-03-12 08:00", "2024-03-12 18:00", "2024-03-13 09:00", "2024-03-14 09:00"], utc=True
            ),
            "quality_score": [2, 3, 3, 3],
        }
    )
    prediction = predict_performance(df, "s1", clock=CLOCK)
    assert prediction.historical_data[0].quality == 2.5
    assert len(prediction.historical_data) == 3


@pytest.mark.parametrize("slope,expected", [(0.11, "improving"), (0.1, "stable"), (-0.1, "stable"), (-0.2, "declining")])
def test_classify_trend(slope, expected):
    assert classify_trend(slope) == expected
