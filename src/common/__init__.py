# ABOUTME: Makes the shared common package importable across engines.
# ABOUTME: Re-exports schema types, the clock, observation helpers, and trend fitting.

from .schemas import (
    AtRiskStudent,
    EngagementPrediction,
    InsightMetrics,
    InsightsSummary,
    LevelInfo,
    LevelProgress,
    Observation,
    OptimalTiming,
    PerformancePrediction,
    Tier,
)
from .clock import Clock, fixed_clock, utc_now
from .observations import normalize_observations, observations_to_frame
from .stats import TrendFit, linear_regression

__all__ = [
    "AtRiskStudent",
    "EngagementPrediction",
    "InsightMetrics",
    "InsightsSummary",
    "LevelInfo",
    "LevelProgress",
    "Observation",
    "OptimalTiming",
    "PerformancePrediction",
    "Tier",
    "Clock",
    "fixed_clock",
    "utc_now",
    "normalize_observations",
    "observations_to_frame",
    "TrendFit",
    "linear_regression",
]
