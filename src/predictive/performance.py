# ABOUTME: Predicts a student's next question-quality score from recent daily averages.
# ABOUTME: Fits a linear trend over the trailing window and scores confidence by spread.

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import pandas as pd

from src.common.clock import Clock, now_timestamp, utc_now
from src.common.observations import normalize_observations, scored_only, within_window
from src.common.schemas import PerformancePrediction, QualityPoint
from src.common.stats import clamp, linear_regression, round_half_up

_LOGGER = logging.getLogger(__name__)


class PerformanceThresholds:
    WINDOW_DAYS = 30
    MIN_OBSERVATIONS = 3
    TREND_SLOPE = 0.1
    MIN_QUALITY = 1.0
    MAX_QUALITY = 5.0
    MIN_CONFIDENCE = 0.3
    MAX_CONFIDENCE = 0.95


RECOMMENDATIONS = {
    "improving": "Great progress! Continue with current study habits.",
    "declining": "Consider reviewing question formulation strategies and focusing on higher-order thinking.",
    "stable": "Consistent performance. Try challenging yourself with more complex questions.",
}


def classify_trend(slope: float) -> str:
    if slope > PerformanceThresholds.TREND_SLOPE:
        return "improving"
    if slope < -PerformanceThresholds.TREND_SLOPE:
        return "declining"
    return "stable"


def daily_quality(observations: pd.DataFrame) -> pd.DataFrame:
    """Average scored observations per UTC calendar day, rounded to one decimal."""
    scored = scored_only(observations)
    if scored.empty:
        return pd.DataFrame(columns=["date", "quality"])

    dates = scored["timestamp"].dt.strftime("%Y-%m-%d")
    daily = scored.groupby(dates)["quality_score"].mean().sort_index()
    return pd.DataFrame(
        {
            "date": daily.index.tolist(),
            "quality": [round_half_up(float(v), 1) for v in daily.values],
        }
    )


def predict_performance(
    observations: pd.DataFrame,
    student_id: str,
    clock: Clock = utc_now,
) -> Optional[PerformancePrediction]:
    """
    Forecast the next daily quality average for one student.

    Returns None when the trailing window holds fewer than three observations
    or none of them has been evaluated yet.
    """
    now = now_timestamp(clock)
    recent = within_window(normalize_observations(observations), now, PerformanceThresholds.WINDOW_DAYS)
    if len(recent) < PerformanceThresholds.MIN_OBSERVATIONS:
        _LOGGER.debug("student=%s has %d observations in window; skipping", student_id, len(recent))
        return None

    daily = daily_quality(recent)
    if daily.empty:
        _LOGGER.debug("student=%s has no evaluated observations in window; skipping", student_id)
        return None

    values = daily["quality"].astype(float).to_numpy()
    fit = linear_regression(values)

    predicted = clamp(
        fit.predict(len(values)),
        PerformanceThresholds.MIN_QUALITY,
        PerformanceThresholds.MAX_QUALITY,
    )
    trend = classify_trend(fit.slope)

    variance = float(np.mean((values - predicted) ** 2))
    confidence = clamp(
        1 - variance / 5,
        PerformanceThresholds.MIN_CONFIDENCE,
        PerformanceThresholds.MAX_CONFIDENCE,
    )

    return PerformancePrediction(
        student_id=student_id,
        current_trend=trend,
        predicted_quality=round_half_up(predicted, 1),
        confidence=round_half_up(confidence, 2),
        historical_data=[
            QualityPoint(date=row.date, quality=float(row.quality)) for row in daily.itertuples(index=False)
        ],
        recommendation=RECOMMENDATIONS[trend],
    )
