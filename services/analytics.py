"""Read-only analytics facade over a candidate's stored sessions."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from engines.adaptive import SessionMetrics, TimelineEntry, calculate_session_metrics, difficulty_timeline
from engines.behavior_metrics import (
    AnswerBehaviorMetrics,
    SessionBehaviorMetrics,
    calculate_answer_behavior_metrics,
    calculate_session_behavior_metrics,
    generate_behavior_recommendations,
)
from engines.coding_evaluation import CodingPerformance, aggregate_coding_performance, answer_score
from engines.resume_consistency import ConsistencyReport, analyze_consistency, generate_recommendations
from engines.skill_scoring import (
    DifficultyStats,
    ReadinessOverview,
    SkillBreakdown,
    calculate_consistency,
    calculate_difficulty_breakdown,
    calculate_skill_breakdown,
    identify_strengths_and_weaknesses,
    readiness_overview,
    topic_averages,
)
from engines.trajectory import Trajectory, build_for_history, completed_in_order, linear_slope
from engines.types import DIFFICULTY_LEVELS, Recommendation, ResumeProfile, SessionState
from observability.logger import log_event
from prompts.evaluation import SkillSummary

logger = logging.getLogger(__name__)


class GrowthPoint(BaseModel):
    date: datetime
    score: float


class ModeAccuracy(BaseModel):
    average: float = 0.0
    attempts: int = 0


class TopicPerformanceRow(BaseModel):
    topic: str
    average_score: float
    attempts: int


class FullReport(BaseModel):
    skill_growth: List[GrowthPoint] = Field(default_factory=list)
    difficulty_breakdown: Dict[str, int] = Field(default_factory=dict)
    coding: ModeAccuracy = Field(default_factory=ModeAccuracy)
    theoretical: ModeAccuracy = Field(default_factory=ModeAccuracy)
    consistency_score: float = 0.0
    trajectory_slope: float = 0.0
    topic_performance: List[TopicPerformanceRow] = Field(default_factory=list)
    total_sessions: int = 0


class SessionReport(BaseModel):
    session_id: str
    metrics: SessionMetrics
    skill_breakdown: SkillBreakdown
    difficulty_breakdown: Dict[str, DifficultyStats]
    coding_performance: CodingPerformance
    answer_behavior: List[AnswerBehaviorMetrics] = Field(default_factory=list)
    behavior: SessionBehaviorMetrics
    behavior_recommendations: List[Recommendation] = Field(default_factory=list)
    timeline: List[TimelineEntry] = Field(default_factory=list)


class ResumeConsistencyResult(BaseModel):
    report: ConsistencyReport
    recommendations: List[Recommendation] = Field(default_factory=list)


def overview(sessions: Iterable[SessionState]) -> ReadinessOverview:
    return readiness_overview(sessions)


def _mode_accuracy(sessions: List[SessionState], coding: bool) -> ModeAccuracy:
    scores = [answer_score(a) for s in sessions for a in s.answers if a.is_coding == coding]
    if not scores:
        return ModeAccuracy()
    return ModeAccuracy(average=round(sum(scores) / len(scores), 2), attempts=len(scores))


def full_report(sessions: Iterable[SessionState]) -> FullReport:
    """Cross-session report: cumulative growth, mode split, consistency, slope and topics."""

    completed = completed_in_order(sessions)
    growth: List[GrowthPoint] = []
    running = 0.0
    for index, session in enumerate(completed, start=1):
        running += session.average_score
        growth.append(GrowthPoint(date=session.created_at, score=round(running / index, 2)))

    difficulty = {level: 0 for level in DIFFICULTY_LEVELS}
    for session in completed:
        for question in session.questions_asked:
            difficulty[question.difficulty] += 1

    return FullReport(
        skill_growth=growth,
        difficulty_breakdown=difficulty,
        coding=_mode_accuracy(completed, coding=True),
        theoretical=_mode_accuracy(completed, coding=False),
        consistency_score=round(calculate_consistency(completed), 2),
        trajectory_slope=round(linear_slope([s.average_score for s in completed]), 2),
        topic_performance=[
            TopicPerformanceRow(topic=topic, average_score=round(data.avg_score, 2), attempts=data.attempts)
            for topic, data in topic_averages(completed).items()
        ],
        total_sessions=len(completed),
    )


def session_report(session: SessionState) -> SessionReport:
    behavior = calculate_session_behavior_metrics(session.answers)
    report = SessionReport(
        session_id=session.session_id,
        metrics=calculate_session_metrics(session),
        skill_breakdown=calculate_skill_breakdown(session),
        difficulty_breakdown=calculate_difficulty_breakdown(session),
        coding_performance=aggregate_coding_performance(session.answers),
        answer_behavior=[
            calculate_answer_behavior_metrics(answer, session.find_question(answer.question))
            for answer in session.answers
        ],
        behavior=behavior,
        behavior_recommendations=generate_behavior_recommendations(behavior, session.average_score),
        timeline=difficulty_timeline(session),
    )
    log_event(
        "session_report",
        session.session_id,
        count=len(session.answers),
        engagement=behavior.engagement_level,
    )
    return report


def session_analytics_fields(session: SessionState) -> Dict[str, Any]:
    """Computed fields a caller writes back onto the stored session."""

    report = session_report(session)
    return {
        "average_score": round(session.average_score, 2),
        "theoretical_score": round(report.metrics.theoretical_avg, 2),
        "coding_score": round(report.metrics.coding_avg, 2),
        "engagement_level": report.behavior.engagement_level,
        "score_trend": report.behavior.score_trend,
        "behavior_pattern": report.behavior.behavior_pattern,
        "strong_topics": [topic.topic for topic in report.metrics.strong_topics],
        "weak_topics": [topic.topic for topic in report.metrics.weak_topics],
    }


def trajectories(sessions: Iterable[SessionState]) -> List[Trajectory]:
    return build_for_history(sessions)


def resume_consistency(resume: Optional[ResumeProfile], sessions: Iterable[SessionState]) -> ResumeConsistencyResult:
    report = analyze_consistency(resume, sessions)
    return ResumeConsistencyResult(report=report, recommendations=generate_recommendations(report))


def skill_gap_summary(sessions: Iterable[SessionState]) -> SkillSummary:
    """Digest of strengths and weaknesses used to prompt the skill-gap report."""

    completed = completed_in_order(sessions)
    standings = identify_strengths_and_weaknesses(completed)
    topics = sorted({question.topic for s in completed for question in s.questions_asked})
    average = sum(s.average_score for s in completed) / len(completed) if completed else 0.0
    logger.info("Skill gap summary sessions=%d topics=%d", len(completed), len(topics))
    return SkillSummary(
        strongest_skills=[standing.skill for standing in standings.strengths[:5]],
        weakest_skills=[standing.skill for standing in standings.weaknesses[:5]],
        topics_attempted=topics,
        average_score=round(average, 2),
        session_count=len(completed),
    )


__all__ = [
    "FullReport",
    "ResumeConsistencyResult",
    "SessionReport",
    "full_report",
    "overview",
    "resume_consistency",
    "session_analytics_fields",
    "session_report",
    "skill_gap_summary",
    "trajectories",
]
