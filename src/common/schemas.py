# ABOUTME: Defines canonical data structures shared by the tier and predictive engines.
# ABOUTME: Centralizes observation, tier, and analytics result schema definitions.

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Observation:
    """One scored, timestamped question submission."""

    student_id: str
    timestamp: datetime
    quality_score: Optional[float] = None
    activity_id: Optional[str] = None
    group_id: Optional[str] = None


@dataclass(frozen=True)
class Tier:
    """A named band of cumulative points."""

    name: str
    min_points: int
    max_points: Optional[int]
    color: str
    icon: str
    description: str
    level_range: Optional[Tuple[int, int]] = None


@dataclass(frozen=True)
class LevelInfo:
    current_tier: Tier
    next_tier: Optional[Tier]
    progress_percentage: float
    points_to_next: int
    is_max_tier: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LevelProgress:
    """Position of a point total on the per-level point curve."""

    level: int
    points_in_current_level: int
    points_for_next_level: int
    level_progress: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class QualityPoint:
    date: str
    quality: float


@dataclass
class PerformancePrediction:
    student_id: str
    current_trend: str  # improving / stable / declining
    predicted_quality: float
    confidence: float
    historical_data: List[QualityPoint]
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class WeeklyProjection:
    week: str
    expected_questions: int


@dataclass
class EngagementPrediction:
    activity_id: str
    predicted_engagement: str  # high / medium / low
    optimal_posting_times: List[str]
    factors_affecting: List[str]
    weekly_projection: List[WeeklyProjection]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AtRiskStudent:
    student_id: str
    student_name: str
    risk_score: int
    risk_level: str  # high / medium / low
    risk_factors: List[str]
    last_activity: Optional[str]
    question_count: int
    avg_quality: float
    suggested_intervention: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class OptimalTiming:
    day_of_week: str
    hour: int
    engagement_score: float
    question_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class InsightMetrics:
    """Raw cohort metrics behind an insights summary."""

    total_members: int
    active_students: int
    active_student_rate: float
    avg_quality: float
    questions_this_week: int
    questions_last_week: int
    engagement_trend: float


@dataclass
class InsightsSummary:
    overall_health: str  # excellent / good / needs_attention / critical
    key_insights: List[str]
    recommendations: List[str]
    metrics: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
