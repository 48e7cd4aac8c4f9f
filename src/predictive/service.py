# ABOUTME: Request-scoped facade that fetches observations and runs the predictive engines.
# ABOUTME: Mirrors the analytics API surface: performance, engagement, risk, timing, insights.

from __future__ import annotations

from typing import List, Optional

from src.common.clock import Clock, utc_now
from src.common.schemas import (
    AtRiskStudent,
    EngagementPrediction,
    InsightsSummary,
    OptimalTiming,
    PerformancePrediction,
)

from .at_risk import score_at_risk
from .engagement import predict_engagement
from .insight_providers import TemplateInsightProvider, TextInsightProvider
from .insights import summarize_insights
from .performance import predict_performance
from .sources import ObservationSource
from .timing import optimal_timing


class PredictiveAnalyticsService:
    def __init__(
        self,
        source: ObservationSource,
        insight_provider: Optional[TextInsightProvider] = None,
        clock: Clock = utc_now,
    ):
        self.source = source
        self.insight_provider = insight_provider or TemplateInsightProvider()
        self.clock = clock

    def student_performance(self, student_id: str) -> Optional[PerformancePrediction]:
        return predict_performance(self.source.student_observations(student_id), student_id, clock=self.clock)

    def activity_engagement(self, activity_id: str) -> Optional[EngagementPrediction]:
        if not self.source.activity_exists(activity_id):
            return None
        return predict_engagement(self.source.activity_observations([activity_id]), activity_id, clock=self.clock)

    def at_risk_students(self, group_id: Optional[str] = None) -> List[AtRiskStudent]:
        roster = self.source.group_member_ids([group_id]) if group_id is not None else None
        return score_at_risk(
            self.source.cohort_observations(),
            clock=self.clock,
            group_id=group_id,
            students=self.source.users(),
            roster=roster,
        )

    def optimal_timing(self, user_id: str) -> List[OptimalTiming]:
        activity_ids = self.source.member_activity_ids(user_id)
        if not activity_ids:
            return []
        return optimal_timing(self.source.activity_observations(activity_ids))

    def insights_summary(self, user_id: str) -> Optional[InsightsSummary]:
        group_ids = self.source.owned_group_ids(user_id)
        if not group_ids:
            return None
        activity_ids = self.source.group_activity_ids(group_ids)
        return summarize_insights(
            self.source.activity_observations(activity_ids),
            self.source.group_member_ids(group_ids),
            provider=self.insight_provider,
            clock=self.clock,
        )
