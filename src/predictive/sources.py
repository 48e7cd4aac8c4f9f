# ABOUTME: Data-access collaborator that supplies observation rows to the predictive engines.
# ABOUTME: Ships an in-memory implementation over pandas frames loaded from parquet or CSV.

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Protocol

import pandas as pd

from src.common.observations import OBSERVATION_COLUMNS, normalize_observations

_LOGGER = logging.getLogger(__name__)

TABLES = ("questions", "activities", "groups", "memberships", "users")
ID_COLUMNS = ("student_id", "activity_id", "group_id", "creator_id", "user_id")


class ObservationSource(Protocol):
    def student_observations(self, student_id: str) -> pd.DataFrame:
        ...

    def activity_exists(self, activity_id: str) -> bool:
        ...

    def activity_observations(self, activity_ids: Iterable[str]) -> pd.DataFrame:
        ...

    def cohort_observations(self) -> pd.DataFrame:
        ...

    def users(self) -> pd.DataFrame:
        ...

    def member_activity_ids(self, user_id: str) -> List[str]:
        ...

    def owned_group_ids(self, user_id: str) -> List[str]:
        ...

    def group_member_ids(self, group_ids: Optional[Iterable[str]] = None) -> List[str]:
        ...

    def group_activity_ids(self, group_ids: Iterable[str]) -> List[str]:
        ...


class FrameObservationSource:
    """
    Serves observations from in-memory tables.

    Expected columns:
    - questions: student_id, activity_id, timestamp, quality_score, [is_deleted]
    - activities: activity_id, group_id
    - groups: group_id, creator_id
    - memberships: group_id, user_id
    - users: student_id, [first_name, last_name, email]
    """

    def __init__(
        self,
        questions: pd.DataFrame,
        activities: Optional[pd.DataFrame] = None,
        groups: Optional[pd.DataFrame] = None,
        memberships: Optional[pd.DataFrame] = None,
        users: Optional[pd.DataFrame] = None,
    ):
        self.activities = _or_empty(activities, ["activity_id", "group_id"])
        self.groups = _or_empty(groups, ["group_id", "creator_id"])
        self.memberships = _or_empty(memberships, ["group_id", "user_id"])
        self._users = _or_empty(users, ["student_id", "first_name", "last_name", "email"])

        missing = {"student_id", "timestamp"} - set(questions.columns)
        if missing:
            raise ValueError(f"questions table is missing required columns: {sorted(missing)}")

        frame = questions.copy()
        if "group_id" not in frame.columns and "activity_id" in frame.columns and not self.activities.empty:
            frame = frame.merge(self.activities[["activity_id", "group_id"]], on="activity_id", how="left")
        self.observations = normalize_observations(frame)[OBSERVATION_COLUMNS]

    @classmethod
    def from_directory(cls, data_dir: Path) -> "FrameObservationSource":
        """Load ``<table>.parquet`` or ``<table>.csv`` files; only ``questions`` is required."""
        data_dir = Path(data_dir)
        tables = {name: _read_table(data_dir, name) for name in TABLES}
        if tables["questions"] is None:
            raise FileNotFoundError(f"Missing questions table (questions.parquet or questions.csv) in {data_dir}")
        _LOGGER.info("Loaded %d question rows from %s", len(tables["questions"]), data_dir)
        return cls(**tables)

    def student_observations(self, student_id: str) -> pd.DataFrame:
        return self.observations[self.observations["student_id"] == student_id]

    def activity_exists(self, activity_id: str) -> bool:
        if not self.activities.empty:
            return activity_id in set(self.activities["activity_id"])
        return activity_id in set(self.observations["activity_id"].dropna())

    def activity_observations(self, activity_ids: Iterable[str]) -> pd.DataFrame:
        ids = set(activity_ids)
        return self.observations[self.observations["activity_id"].isin(ids)]

    def cohort_observations(self) -> pd.DataFrame:
        return self.observations

    def users(self) -> pd.DataFrame:
        return self._users

    def member_activity_ids(self, user_id: str) -> List[str]:
        group_ids = self.memberships.loc[self.memberships["user_id"] == user_id, "group_id"]
        return self.group_activity_ids(group_ids)

    def owned_group_ids(self, user_id: str) -> List[str]:
        return _unique(self.groups.loc[self.groups["creator_id"] == user_id, "group_id"])

    def group_member_ids(self, group_ids: Optional[Iterable[str]] = None) -> List[str]:
        members = self.memberships
        if group_ids is not None:
            members = members[members["group_id"].isin(set(group_ids))]
        return _unique(members["user_id"])

    def group_activity_ids(self, group_ids: Iterable[str]) -> List[str]:
        ids = set(group_ids)
        return _unique(self.activities.loc[self.activities["group_id"].isin(ids), "activity_id"])


def _read_table(data_dir: Path, name: str) -> Optional[pd.DataFrame]:
    """Read one exported table; id columns always come back as strings."""
    parquet_path = data_dir / f"{name}.parquet"
    csv_path = data_dir / f"{name}.csv"
    if parquet_path.exists():
        return _ids_as_str(pd.read_parquet(parquet_path))
    if csv_path.exists():
        header = pd.read_csv(csv_path, nrows=0).columns
        return pd.read_csv(csv_path, dtype={c: str for c in ID_COLUMNS if c in header})
    return None


def _ids_as_str(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    for column in ID_COLUMNS:
        if column in df.columns:
            df[column] = df[column].map(lambda v: None if pd.isna(v) else str(v))
    return df


def _or_empty(df: Optional[pd.DataFrame], columns: List[str]) -> pd.DataFrame:
    if df is None:
        return pd.DataFrame(columns=columns)
    return df


def _unique(values: pd.Series) -> List[str]:
    return list(dict.fromkeys(values.dropna().tolist()))
