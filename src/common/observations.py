# ABOUTME: Normalizes scored question submissions into the canonical observation frame.
# ABOUTME: Shared by every predictive engine so windows and scores behave identically.

from __future__ import annotations

from typing import Iterable

import pandas as pd

from .schemas import Observation

OBSERVATION_COLUMNS = ["student_id", "activity_id", "group_id", "timestamp", "quality_score"]


def observations_to_frame(observations: Iterable[Observation]) -> pd.DataFrame:
    """Convert ``Observation`` records into a normalized observation frame."""

    rows = [
        {
            "student_id": obs.student_id,
            "activity_id": obs.activity_id,
            "group_id": obs.group_id,
            "timestamp": obs.timestamp,
            "quality_score": obs.quality_score,
        }
        for obs in observations
    ]
    return normalize_observations(pd.DataFrame(rows, columns=OBSERVATION_COLUMNS))


def normalize_observations(df: pd.DataFrame) -> pd.DataFrame:
    """
    Return a copy of ``df`` in canonical form.

    - Missing canonical columns are added empty.
    - Timestamps become tz-aware UTC; unparseable rows are dropped.
    - Scores are numeric (NaN when unevaluated).
    - Soft-deleted rows (``is_deleted`` truthy) are dropped.
    - Canonical columns come first, in canonical order; extra columns follow.
    - Rows are ordered chronologically (stable for equal timestamps).
    """

    if df is None:
        df = pd.DataFrame(columns=OBSERVATION_COLUMNS)
    frame = df.copy()

    for column in OBSERVATION_COLUMNS:
        if column not in frame.columns:
            frame[column] = None

    if "is_deleted" in frame.columns:
        deleted = frame["is_deleted"].fillna(False).astype(bool)
        frame = frame[~deleted].drop(columns=["is_deleted"])

    frame["timestamp"] = pd.to_datetime(frame["timestamp"], utc=True, errors="coerce")
    frame = frame.dropna(subset=["timestamp"])
    frame["quality_score"] = pd.to_numeric(frame["quality_score"], errors="coerce")

    extras = [c for c in frame.columns if c not in OBSERVATION_COLUMNS]
    frame = frame[OBSERVATION_COLUMNS + extras]
    return frame.sort_values("timestamp", kind="mergesort").reset_index(drop=True)


def within_window(df: pd.DataFrame, now: pd.Timestamp, days: int) -> pd.DataFrame:
    """Rows whose timestamp is on or after ``now - days``."""
    start = now - pd.Timedelta(days=days)
    return df[df["timestamp"] >= start]


def scored_only(df: pd.DataFrame) -> pd.DataFrame:
    """Rows carrying an evaluation score (missing and zero scores are unevaluated)."""
    scores = df["quality_score"]
    return df[scores.notna() & (scores != 0)]


def most_recent(df: pd.DataFrame, limit: int) -> pd.DataFrame:
    """The ``limit`` newest rows, newest first."""
    return df.sort_values("timestamp", ascending=False, kind="mergesort").head(limit)
