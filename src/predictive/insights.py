# ABOUTME: Summarizes cohort health across a teacher's groups from recent submissions.
# ABOUTME: Computes activity, quality, and week-over-week metrics, then asks a provider for text.

from __future__ import annotations

import logging
from typing import Iterable, Optional

import pandas as pd

from src.common.clock import Clock, now_timestamp, utc_now
from src.common.observations import normalize_observations, scored_only
from src.common.schemas import InsightMetrics, InsightsSummary
from src.common.stats import round_half_up

from .insight_providers import TemplateInsightProvider, TextInsightProvider

_LOGGER = logging.getLogger(__name__)


class HealthThresholds:
    RECENT_QUESTIONS_PER_ACTIVITY = 100
    ACTIVE_WINDOW_DAYS = 7
    EXCELLENT_RATE = 70
    EXCELLENT_QUALITY = 3.5
    GOOD_RATE = 50
    GOOD_QUALITY = 3.0
    ATTENTION_RATE = 30
    ATTENTION_QUALITY = 2.5


def classify_health(active_student_rate: float, avg_quality: float) -> str:
    if active_student_rate >= HealthThresholds.EXCELLENT_RATE and avg_quality >= HealthThresholds.EXCELLENT_QUALITY:
        return "excellent"
    if active_student_rate >= HealthThresholds.GOOD_RATE and avg_quality >= HealthThresholds.GOOD_QUALITY:
        return "good"
    if active_student_rate >= HealthThresholds.ATTENTION_RATE or avg_quality >= HealthThresholds.ATTENTION_QUALITY:
        return "needs_attention"
    return "critical"


def compute_insight_metrics(
    observations: pd.DataFrame,
    member_ids: Iterable[str],
    clock: Clock = utc_now,
) -> InsightMetrics:
    """
    Aggregate a cohort's recent activity.

    Only the newest questions of each activity are considered. A student
    counts as active with any submission in the last seven days; the rate is
    relative to the distinct group members.
    """
    now = now_timestamp(clock)
    obs = normalize_observations(observations)
    obs = obs.assign(_activity=obs["activity_id"].fillna("").astype(str))
    obs = (
        obs.sort_values("timestamp", ascending=False, kind="mergesort")
        .groupby("_activity", sort=False)
        .head(HealthThresholds.RECENT_QUESTIONS_PER_ACTIVITY)
        .drop(columns=["_activity"])
    )

    members = {m for m in member_ids if m is not None}
    week_start = now - pd.Timedelta(days=HealthThresholds.ACTIVE_WINDOW_DAYS)
    prev_week_start = week_start - pd.Timedelta(days=HealthThresholds.ACTIVE_WINDOW_DAYS)

    this_week = obs[obs["timestamp"] >= week_start]
    last_week = obs[(obs["timestamp"] >= prev_week_start) & (obs["timestamp"] < week_start)]

    active_students = int(this_week["student_id"].dropna().nunique())
    active_rate = active_students / len(members) * 100 if members else 0.0

    scores = scored_only(obs)["quality_score"]
    avg_quality = float(scores.mean()) if not scores.empty else 0.0

    questions_this_week = len(this_week)
    questions_last_week = len(last_week)
    if questions_last_week > 0:
        engagement_trend = (questions_this_week - questions_last_week) / questions_last_week * 100
    else:
        engagement_trend = 0.0

    return InsightMetrics(
        total_members=len(members),
        active_students=active_students,
        active_student_rate=active_rate,
        avg_quality=avg_quality,
        questions_this_week=questions_this_week,
        questions_last_week=questions_last_week,
        engagement_trend=engagement_trend,
    )


def summarize_insights(
    observations: pd.DataFrame,
    member_ids: Iterable[str],
    provider: Optional[TextInsightProvider] = None,
    clock: Clock = utc_now,
) -> InsightsSummary:
    metrics = compute_insight_metrics(observations, member_ids, clock)
    health = classify_health(metrics.active_student_rate, metrics.avg_quality)
    _LOGGER.debug(
        "members=%d active=%d quality=%.2f health=%s",
        metrics.total_members,
        metrics.active_students,
        metrics.avg_quality,
        health,
    )

    text = (provider or TemplateInsightProvider()).generate(metrics, health)
    return InsightsSummary(
        overall_health=health,
        key_insights=list(text.insights),
        recommendations=list(text.recommendations),
        metrics={
            "active_student_rate": round_half_up(metrics.active_student_rate, 1),
            "avg_quality_trend": round_half_up(metrics.avg_quality, 1),
            "engagement_trend": round_half_up(metrics.engagement_trend, 1),
        },
    )
