# ABOUTME: Tests the frame-backed observation source and the analytics service facade.
# ABOUTME: Writes small CSV exports to a temp directory and queries them through the service.

from datetime import datetime

import pandas as pd
import pytest

from src.common.clock import fixed_clock
from src.predictive import FrameObservationSource, PredictiveAnalyticsService

CLOCK = fixed_clock(datetime(2024, 3, 15, 12))


def write_export(data_dir):
    data_dir.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(
        {
            "student_id": ["s1", "s1", "s1", "s2", "s2"],
            "activity_id": ["act1", "act1", "act1", "act2", "act1"],
            "timestamp": [
                "2024-03-12T09:00:00Z",
                "2024-03-13T09:00:00Z",
                "2024-03-14T09:00:00Z",
                "2024-02-20T09:00:00Z",
                "2024-03-14T10:00:00Z",
            ],
            "quality_score": [3, 4, 5, 2, None],
            "is_deleted": [False, False, False, False, True],
        }
    ).to_csv(data_dir / "questions.csv", index=False)
    pd.DataFrame({"activity_id": ["act1", "act2"], "group_id": ["g1", "g2"]}).to_csv(
        data_dir / "activities.csv", index=False
    )
    pd.DataFrame({"group_id": ["g1", "g2"], "creator_id": ["teacher", "teacher"]}).to_csv(
        data_dir / "groups.csv", index=False
    )
    pd.DataFrame({"group_id": ["g1", "g1", "g2", "g1"], "user_id": ["s1", "s3", "s2", "teacher"]}).to_csv(
        data_dir / "memberships.csv", index=False
    )
    pd.DataFrame(
        {
            "student_id": ["s1", "s2", "s3"],
            "first_name": ["Ada", None, None],
            "last_name": ["Lovelace", None, None],
            "email": ["ada@example.org", "grace@example.org", None],
        }
    ).to_csv(data_dir / "users.csv", index=False)


@pytest.fixture
def service(tmp_path):
    write_export(tmp_path)
    source = FrameObservationSource.from_directory(tmp_path)
    return PredictiveAnalyticsService(source, clock=CLOCK)


def test_from_directory_requires_questions(tmp_path):
    with pytest.raises(FileNotFoundError):
        FrameObservationSource.from_directory(tmp_path)


def test_questions_must_have_student_and_timestamp():
    with pytest.raises(ValueError):
        FrameObservationSource(pd.DataFrame({"student_id": ["s1"]}))


def test_source_joins_groups_and_drops_deleted(tmp_path):
    write_export(tmp_path)
    source = FrameObservationSource.from_directory(tmp_path)

    assert len(source.observations) == 4
    assert set(source.observations["group_id"]) == {"g1", "g2"}
    assert source.owned_group_ids("teacher") == ["g1", "g2"]
    assert source.group_member_ids(["g1"]) == ["s1", "s3", "teacher"]
    assert source.member_activity_ids("s2") == ["act2"]


def test_student_performance(service):
    prediction = service.student_performance("s1")
    assert prediction.current_trend == "improving"
    assert service.student_performance("s3") is None


def test_activity_engagement(service):
    prediction = service.activity_engagement("act1")
    assert prediction.activity_id == "act1"
    assert prediction.optimal_posting_times == ["9:00 AM"]
    assert service.activity_engagement("missing") is None


def test_at_risk_students_for_group_include_silent_members(service):
    flagged = service.at_risk_students("g1")

    by_id = {s.student_id: s for s in flagged}
    assert "s3" in by_id
    assert by_id["s3"].question_count == 0
    assert by_id["s3"].student_name == "Student"
    assert "s2" not in by_id


def test_at_risk_students_across_cohort(service):
    flagged = service.at_risk_students()
    by_id = {s.student_id: s for s in flagged}
    assert by_id["s2"].student_name == "grace"
    assert by_id["s2"].risk_level == "high"


def test_optimal_timing(service):
    slots = service.optimal_timing("s1")
    assert {s.hour for s in slots} == {9}
    assert sorted(s.day_of_week for s in slots) == ["Thu", "Tue", "Wed"]
    assert sum(s.question_count for s in slots) == 3
    assert service.optimal_timing("nobody") == []


def test_insights_summary(service):
    summary = service.insights_summary("teacher")
    assert summary.overall_health in {"excellent", "good", "needs_attention", "critical"}
    assert summary.key_insights
    assert service.insights_summary("s1") is None


def test_numeric_ids_in_csv_are_read_as_strings(tmp_path):
    pd.DataFrame(
        {
            "student_id": [42, 42, 42],
            "activity_id": [7, 7, 7],
            "timestamp": ["2024-03-12T09:00:00Z", "2024-03-13T09:00:00Z", "2024-03-14T09:00:00Z"],
            "quality_score": [3, 3, 3],
        }
    ).to_csv(tmp_path / "questions.csv", index=False)
    pd.DataFrame({"activity_id": [7], "group_id": [100]}).to_csv(tmp_path / "activities.csv", index=False)

    service = PredictiveAnalyticsService(FrameObservationSource.from_directory(tmp_path), clock=CLOCK)

    assert service.student_performance("42").current_trend == "stable"
    assert service.activity_engagement("7") is not None
    assert service.source.observations["group_id"].tolist() == ["100"] * 3
