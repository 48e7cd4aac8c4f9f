# ABOUTME: Tests normalization of raw question rows into the observation frame.
# ABOUTME: Covers soft deletes, bad timestamps, ordering, and evaluated-score filtering.

from datetime import datetime, timezone

import numpy as np
import pandas as pd

from src.common.observations import (
    OBSERVATION_COLUMNS,
    most_recent,
    normalize_observations,
    observations_to_frame,
    scored_only,
    within_window,
)
from src.common.schemas import Observation


def test_normalize_drops_deleted_and_unparseable_rows():
    raw = pd.DataFrame(
        {
            "student_id": ["s1", "s1", "s2", "s2"],
            "timestamp": ["2024-03-02T10:00:00Z", "not a date", "2024-03-01T09:00:00Z", "2024-03-03T09:00:00Z"],
            "quality_score": [4, 3, None, "5"],
            "is_deleted": [False, False, False, True],
        }
    )

    df = normalize_observations(raw)

    assert list(df.columns) == OBSERVATION_COLUMNS
    assert len(df) == 2
    assert df["student_id"].tolist() == ["s2", "s1"]
    assert str(df["timestamp"].dt.tz) == "UTC"
    assert np.isnan(df["quality_score"].iloc[0])


def test_normalize_does_not_mutate_input():
    raw = pd.DataFrame({"student_id": ["s1"], "timestamp": ["2024-03-02"]})
    normalize_observations(raw)
    assert list(raw.columns) == ["student_id", "timestamp"]


def test_scored_only_excludes_missing_and_zero():
    df = normalize_observations(
        pd.DataFrame(
            {
                "student_id": ["a", "a", "a"],
                "timestamp": pd.date_range("2024-01-01", periods=3, freq="D", tz="UTC"),
                "quality_score": [0, None, 4],
            }
        )
    )
    assert scored_only(df)["quality_score"].tolist() == [4]


def test_window_and_most_recent():
    df = normalize_observations(
        pd.DataFrame(
            {
                "student_id": ["a"] * 5,
                "timestamp": pd.date_range("2024-01-01", periods=5, freq="D", tz="UTC"),
            }
        )
    )
    now = pd.Timestamp("2024-01-05", tz="UTC")
    assert len(within_window(df, now, 2)) == 3

    newest = most_recent(df, 2)
    assert newest["timestamp"].dt.day.tolist() == [5, 4]


def test_extra_columns_follow_canonical_columns():
    raw = pd.DataFrame(
        {
            "views": [3],
            "timestamp": ["2024-03-02T10:00:00Z"],
            "student_id": ["s1"],
        }
    )

    df = normalize_observations(raw)

    assert list(df.columns) == OBSERVATION_COLUMNS + ["views"]
    assert df["views"].tolist() == [3]


def test_observations_to_frame():
    df = observations_to_frame(
        [
            Observation("s1", datetime(2024, 3, 1, 12, tzinfo=timezone.utc), 3.0, "a1", "g1"),
            Observation("s2", datetime(2024, 2, 1, 12, tzinfo=timezone.utc), None),
        ]
    )
    assert df["student_id"].tolist() == ["s2", "s1"]
    assert df["group_id"].tolist()[1] == "g1"
