# ABOUTME: Projects question volume for an activity and finds its peak posting hours.
# ABOUTME: Buckets recent submissions by hour and by Sunday-start week, then extrapolates.

from __future__ import annotations

import logging
from typing import List

import pandas as pd

from src.common.clock import Clock, now_timestamp, utc_now
from src.common.observations import normalize_observations, within_window
from src.common.schemas import EngagementPrediction, WeeklyProjection
from src.common.stats import linear_regression, round_half_up

_LOGGER = logging.getLogger(__name__)


class EngagementThresholds:
    WINDOW_DAYS = 28
    TOP_HOURS = 3
    PROJECTION_WEEKS = 4
    HIGH_WEEKLY = 20
    MEDIUM_WEEKLY = 5


def format_hour(hour: int) -> str:
    """Render a 0-23 hour as a 12-hour clock label, e.g. 14 -> '2:00 PM'."""
    period = "PM" if hour >= 12 else "AM"
    if hour > 12:
        display = hour - 12
    elif hour == 0:
        display = 12
    else:
        display = hour
    return f"{display}:00 {period}"


def classify_engagement(avg_weekly: float) -> str:
    if avg_weekly > EngagementThresholds.HIGH_WEEKLY:
        return "high"
    if avg_weekly > EngagementThresholds.MEDIUM_WEEKLY:
        return "medium"
    return "low"


def peak_hours(observations: pd.DataFrame, top: int = EngagementThresholds.TOP_HOURS) -> List[int]:
    """Busiest UTC hours, ties broken by which hour appeared first."""
    if observations.empty:
        return []
    hours = observations["timestamp"].dt.hour
    counts = hours.groupby(hours, sort=False).size()
    ranked = counts.sort_values(ascending=False, kind="mergesort")
    return [int(h) for h in ranked.index[:top]]


def weekly_counts(observations: pd.DataFrame) -> pd.Series:
    """Submissions per week keyed by the ISO date of the Sunday starting that week."""
    if observations.empty:
        return pd.Series(dtype="int64")
    ts = observations["timestamp"]
    days_since_sunday = (ts.dt.dayofweek + 1) % 7
    week_start = (ts.dt.normalize() - pd.to_timedelta(days_since_sunday, unit="D")).dt.strftime("%Y-%m-%d")
    return week_start.groupby(week_start).size().sort_index()


def predict_engagement(
    observations: pd.DataFrame,
    activity_id: str,
    clock: Clock = utc_now,
) -> EngagementPrediction:
    """Forecast the next four weeks of submissions for one activity."""
    now = now_timestamp(clock)
    recent = within_window(normalize_observations(observations), now, EngagementThresholds.WINDOW_DAYS)

    hours = peak_hours(recent)
    optimal_posting_times = [format_hour(h) for h in hours]

    weekly = weekly_counts(recent)
    weekly_values = weekly.astype(float).tolist()
    fit = linear_regression(weekly_values)

    projection = []
    for i in range(EngagementThresholds.PROJECTION_WEEKS):
        week_date = (now + pd.Timedelta(days=7 * i)).strftime("%Y-%m-%d")
        expected = max(0, int(round_half_up(fit.predict(len(weekly_values) + i))))
        projection.append(WeeklyProjection(week=week_date, expected_questions=expected))

    avg_weekly = sum(weekly_values) / len(weekly_values) if weekly_values else 0.0
    engagement = classify_engagement(avg_weekly)

    factors: List[str] = []
    if fit.slope > 0:
        factors.append("Upward engagement trend")
    if fit.slope < 0:
        factors.append("Declining engagement - may need refresh")
    if optimal_posting_times:
        factors.append(f"Peak activity at {optimal_posting_times[0]}")

    _LOGGER.debug(
        "activity=%s weeks=%d avg_weekly=%.2f slope=%.3f",
        activity_id,
        len(weekly_values),
        avg_weekly,
        fit.slope,
    )
    return EngagementPrediction(
        activity_id=activity_id,
        predicted_engagement=engagement,
        optimal_posting_times=optimal_posting_times,
        factors_affecting=factors,
        weekly_projection=projection,
    )
