# ABOUTME: Flags disengaged students with an additive volume, quality, and recency rubric.
# ABOUTME: Provides heuristics that rank at-risk students and suggest an intervention.

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from src.common.clock import Clock, now_timestamp, utc_now
from src.common.observations import most_recent, normalize_observations, scored_only
from src.common.schemas import AtRiskStudent
from src.common.stats import round_half_up

_LOGGER = logging.getLogger(__name__)


class RiskThresholds:
    RECENT_QUESTIONS = 50
    VERY_FEW_QUESTIONS = 3
    LIMITED_QUESTIONS = 10
    LOW_QUALITY = 2.5
    BELOW_AVERAGE_QUALITY = 3.0
    INACTIVE_DAYS = 14
    IDLE_DAYS = 7
    NO_ACTIVITY_DAYS = 999
    INCLUSION_SCORE = 40
    MEDIUM_SCORE = 50
    HIGH_SCORE = 70


INTERVENTIONS = {
    "high": "Immediate outreach recommended. Consider one-on-one check-in.",
    "medium": "Send encouragement message. Provide guided activity prompts.",
    "low": "Monitor progress. Consider peer collaboration opportunities.",
}


@dataclass(frozen=True)
class RiskAssessment:
    score: int
    factors: List[str]


def assess_risk(question_count: int, avg_quality: float, days_since_activity: int) -> RiskAssessment:
    """Apply the additive risk rubric to one student's activity signals."""
    score = 0
    factors: List[str] = []

    if question_count < RiskThresholds.VERY_FEW_QUESTIONS:
        score += 30
        factors.append("Very few questions created")
    elif question_count < RiskThresholds.LIMITED_QUESTIONS:
        score += 15
        factors.append("Limited question activity")

    if avg_quality < RiskThresholds.LOW_QUALITY:
        score += 25
        factors.append("Low question quality average")
    elif avg_quality < RiskThresholds.BELOW_AVERAGE_QUALITY:
        score += 15
        factors.append("Below average question quality")

    if days_since_activity >= RiskThresholds.INACTIVE_DAYS:
        score += 45
        factors.append(f"Inactive for {days_since_activity} days")
    elif days_since_activity >= RiskThresholds.IDLE_DAYS:
        score += 20
        factors.append(f"No activity in {days_since_activity} days")

    return RiskAssessment(score=score, factors=factors)


def risk_level(score: int) -> str:
    if score >= RiskThresholds.HIGH_SCORE:
        return "high"
    if score >= RiskThresholds.MEDIUM_SCORE:
        return "medium"
    return "low"


def display_name(
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    email: Optional[str] = None,
) -> str:
    first = _clean(first_name)
    last = _clean(last_name)
    if first and last:
        return f"{first} {last}"
    if first:
        return first
    if last:
        return last
    mail = _clean(email)
    if mail:
        return mail.split("@")[0] or "Student"
    return "Student"


def score_student(
    student_id: str,
    observations: pd.DataFrame,
    now: pd.Timestamp,
    student_name: str = "Student",
) -> Tuple[RiskAssessment, AtRiskStudent]:
    """Score one student's observations; the record is built whether or not they qualify."""
    recent = most_recent(observations, RiskThresholds.RECENT_QUESTIONS)
    question_count = len(recent)

    scores = scored_only(recent)["quality_score"]
    avg_quality = float(scores.mean()) if not scores.empty else 0.0

    if question_count:
        last_ts = recent["timestamp"].iloc[0]
        days_since = math.floor((now - last_ts).total_seconds() / 86400)
        last_activity: Optional[str] = last_ts.strftime("%Y-%m-%d")
    else:
        days_since = RiskThresholds.NO_ACTIVITY_DAYS
        last_activity = None

    assessment = assess_risk(question_count, avg_quality, days_since)
    level = risk_level(assessment.score)
    record = AtRiskStudent(
        student_id=student_id,
        student_name=student_name,
        risk_score=assessment.score,
        risk_level=level,
        risk_factors=list(assessment.factors),
        last_activity=last_activity,
        question_count=question_count,
        avg_quality=round_half_up(avg_quality, 1),
        suggested_intervention=INTERVENTIONS[level],
    )
    return assessment, record


def score_at_risk(
    observations: pd.DataFrame,
    clock: Clock = utc_now,
    group_id: Optional[str] = None,
    students: Optional[pd.DataFrame] = None,
    roster: Optional[Iterable[str]] = None,
) -> List[AtRiskStudent]:
    """
    Rank students whose risk score reaches the inclusion threshold.

    Parameters
    ----------
    observations : pd.DataFrame
        Canonical observation rows for the cohort.
    group_id : str, optional
        Students found in ``observations`` are scored only if at least one of
        their observations belongs to this group.
    students : pd.DataFrame, optional
        Name directory with ``student_id`` and optional ``first_name``,
        ``last_name``, ``email`` columns.
    roster : iterable of str, optional
        Students expected to participate. Those with no observations at all
        are scored as never active; the rest follow the group filter.
    """
    now = now_timestamp(clock)
    obs = normalize_observations(observations)

    student_ids = list(dict.fromkeys(obs["student_id"].dropna().tolist()))
    if group_id is not None:
        in_group = set(obs.loc[obs["group_id"] == group_id, "student_id"].dropna())
        student_ids = [sid for sid in student_ids if sid in in_group]
    observed = set(obs["student_id"].dropna())
    for sid in roster or ():
        if sid not in observed and sid not in student_ids:
            student_ids.append(sid)

    names = {}
    if students is not None and not students.empty:
        for row in students.to_dict("records"):
            if row.get("student_id") is not None:
                names[row["student_id"]] = display_name(row.get("first_name"), row.get("last_name"), row.get("email"))

    grouped = {sid: frame for sid, frame in obs.groupby("student_id", sort=False)}
    empty = obs.iloc[0:0]

    flagged: List[AtRiskStudent] = []
    for sid in student_ids:
        assessment, record = score_student(
            sid,
            grouped.get(sid, empty),
            now,
            student_name=names.get(sid, "Student"),
        )
        if assessment.score >= RiskThresholds.INCLUSION_SCORE:
            flagged.append(record)

    _LOGGER.debug("scored %d students; %d at risk", len(student_ids), len(flagged))
    return sorted(flagged, key=lambda s: s.risk_score, reverse=True)


def _clean(value) -> Optional[str]:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    text = str(value).strip()
    return text or None
