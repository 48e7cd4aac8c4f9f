# ABOUTME: Tests cohort health metrics, health classification, and insight summaries.
# ABOUTME: Verifies a failing text provider still yields template insights.

from datetime import datetime

import pandas as pd
import pytest

from src.common.clock import fixed_clock
from src.predictive.insight_providers import FallbackInsightProvider, InsightText
from src.predictive.insights import classify_health, compute_insight_metrics, summarize_insights

CLOCK = fixed_clock(datetime(2024, 3, 15, 12))
MEMBERS = ["a", "b", "c", "d"]


def _mk_cohort():
    return pd.DataFrame(
        {
            "student_id": ["a", "b", "c"],
            "activity_id": ["act1", "act1", "act2"],
            "timestamp": pd.to_datetime(["2024-03-12 10:00", "2024-03-13 10:00", "2024-03-05 10:00"], utc=True),
            "quality_score": [4, 3, 2],
        }
    )


class FailingProvider:
    def generate(self, metrics, overall_health):
        raise RuntimeError("provider offline")


class EchoProvider:
    def generate(self, metrics, overall_health):
        return InsightText(insights=[f"health is {overall_health}"], recommendations=["keep going"])


@pytest.mark.parametrize(
    "rate,quality,expected",
    [
        (70, 3.5, "excellent"),
        (69.9, 4.0, "good"),
        (50, 3.0, "good"),
        (30, 1.0, "needs_attention"),
        (10, 2.5, "needs_attention"),
        (29.9, 2.4, "critical"),
    ],
)
def test_classify_health(rate, quality, expected):
    assert classify_health(rate, quality) == expected


def test_compute_insight_metrics():
    metrics = compute_insight_metrics(_mk_cohort(), MEMBERS, clock=CLOCK)

    assert metrics.total_members == 4
    assert metrics.active_students == 2
    assert metrics.active_student_rate == pytest.approx(50.0)
    assert metrics.avg_quality == pytest.approx(3.0)
    assert metrics.questions_this_week == 2
    assert metrics.questions_last_week == 1
    assert metrics.engagement_trend == pytest.approx(100.0)


def test_no_members_and_no_prior_week():
    df = _mk_cohort().iloc[:2]
    metrics = compute_insight_metrics(df, [], clock=CLOCK)
    assert metrics.active_student_rate == 0
    assert metrics.engagement_trend == 0


def test_recent_questions_capped_per_activity():
    count = 120
    df = pd.DataFrame(
        {
            "student_id": ["a"] * count,
            "activity_id": ["act1"] * count,
            "timestamp": pd.date_range(end="2024-03-15 11:00", periods=count, freq="min", tz="UTC"),
            "quality_score": [3] * count,
        }
    )
    metrics = compute_insight_metrics(df, MEMBERS, clock=CLOCK)
    assert metrics.questions_this_week == 100


def test_summarize_insights_with_template_text():
    summary = summarize_insights(_mk_cohort(), MEMBERS, clock=CLOCK)

    assert summary.overall_health == "good"
    assert summary.key_insights == [
        "50% of students active this week",
        "Average question quality: 3.0/5",
        "Positive engagement trend",
    ]
    assert summary.recommendations == []
    assert summary.metrics == {"active_student_rate": 50.0, "avg_quality_trend": 3.0, "engagement_trend": 100.0}


def test_summarize_insights_uses_provider_text():
    summary = summarize_insights(_mk_cohort(), MEMBERS, provider=EchoProvider(), clock=CLOCK)
    assert summary.key_insights == ["health is good"]
    assert summary.recommendations == ["keep going"]


def test_failing_provider_falls_back_to_template():
    summary = summarize_insights(_mk_cohort(), MEMBERS, provider=FallbackInsightProvider(FailingProvider()), clock=CLOCK)

    assert summary.key_insights
    assert summary.key_insights[0] == "50% of students active this week"


def test_critical_cohort_gets_outreach_recommendation():
    df = pd.DataFrame(
        {
            "student_id": ["a"],
            "activity_id": ["act1"],
            "timestamp": pd.to_datetime(["2024-02-01 10:00"], utc=True),
            "quality_score": [1],
        }
    )
    summary = summarize_insights(df, MEMBERS, clock=CLOCK)

    assert summary.overall_health == "critical"
    assert summary.recommendations == [
        "Consider reaching out to inactive students",
        "Provide question formulation guidance",
    ]
