# ABOUTME: Finds the weekday/hour slots where a cohort submits the most questions.
# ABOUTME: Keeps an engagement sum/count per slot so slots can later be weighted.

from __future__ import annotations

from typing import List, Optional

import pandas as pd

from src.common.observations import most_recent, normalize_observations
from src.common.schemas import OptimalTiming
from src.common.stats import round_half_up

MAX_OBSERVATIONS = 1000
MAX_SLOTS = 20


def optimal_timing(
    observations: pd.DataFrame,
    weight_column: Optional[str] = None,
    limit: int = MAX_SLOTS,
) -> List[OptimalTiming]:
    """
    Rank (day-of-week, UTC hour) slots by submission count.

    Each submission adds 1 to its slot's engagement unless ``weight_column``
    names a column whose value (missing -> 0) is added instead.
    """
    obs = normalize_observations(observations)
    if weight_column is not None and weight_column not in obs.columns:
        raise ValueError(f"Unknown weight column '{weight_column}'.")
    recent = most_recent(obs, MAX_OBSERVATIONS)
    if recent.empty:
        return []

    slots = pd.DataFrame(
        {
            "day_of_week": recent["timestamp"].dt.day_name().str[:3],
            "hour": recent["timestamp"].dt.hour,
            "engagement": (
                pd.to_numeric(recent[weight_column], errors="coerce").fillna(0.0)
                if weight_column is not None
                else 1.0
            ),
        }
    )
    grouped = (
        slots.groupby(["day_of_week", "hour"], sort=False)
        .agg(engagement=("engagement", "sum"), question_count=("engagement", "size"))
        .reset_index()
        .sort_values("question_count", ascending=False, kind="mergesort")
    )

    return [
        OptimalTiming(
            day_of_week=str(row.day_of_week),
            hour=int(row.hour),
            engagement_score=round_half_up(float(row.engagement) / int(row.question_count), 2),
            question_count=int(row.question_count),
        )
        for row in grouped.head(limit).itertuples(index=False)
    ]
