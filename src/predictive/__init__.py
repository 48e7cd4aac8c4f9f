# ABOUTME: Exposes the predictive analytics engine entrypoints.
# ABOUTME: Groups performance, engagement, risk, timing, and insight computations plus the service facade.

from .performance import predict_performance
from .engagement import predict_engagement
from .at_risk import score_at_risk
from .timing import optimal_timing
from .insights import classify_health, compute_insight_metrics, summarize_insights
from .insight_providers import (
    FallbackInsightProvider,
    InsightGenerationError,
    TemplateInsightProvider,
    build_insight_provider,
)
from .sources import FrameObservationSource
from .service import PredictiveAnalyticsService

__all__ = [
    "predict_performance",
    "predict_engagement",
    "score_at_risk",
    "optimal_timing",
    "classify_health",
    "compute_insight_metrics",
    "summarize_insights",
    "FallbackInsightProvider",
    "InsightGenerationError",
    "TemplateInsightProvider",
    "build_insight_provider",
    "FrameObservationSource",
    "PredictiveAnalyticsService",
]
