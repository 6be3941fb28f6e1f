"""Skill analytics over one session or a candidate's session history.

Every score here is the uniform answer score (theoretical ``score`` or the
normalized coding score), and answers join to their question by exact text.
"""
from __future__ import annotations

import statistics
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, Field

from .coding_evaluation import answer_score
from .trajectory import completed_in_order
from .types import DIFFICULTY_LEVELS, Answer, SessionState

STRENGTH_THRESHOLD = 7.0

READINESS_WEIGHTS = {"average": 0.4, "coding": 0.3, "consistency": 0.2, "velocity": 0.1}


class TopicScore(BaseModel):
    score: float
    difficulty: str
    timestamp: datetime


class SkillBreakdown(BaseModel):
    topic_scores: Dict[str, List[TopicScore]] = Field(default_factory=dict)
    skill_levels: Dict[str, str] = Field(default_factory=dict)
    average_by_topic: Dict[str, float] = Field(default_factory=dict)


class TrendPoint(BaseModel):
    session_number: int
    score: float
    date: datetime


class SessionAggregate(BaseModel):
    overall_score: float = 0.0
    theoretical_score: float = 0.0
    coding_score: float = 0.0
    improvement_trend: List[TrendPoint] = Field(default_factory=list)
    session_count: int = 0


class DifficultyStats(BaseModel):
    attempted: int = 0
    avg_score: float = 0.0
    max_score: float = 0.0
    min_score: float = 0.0


class TopicAverage(BaseModel):
    avg_score: float
    attempts: int


class SkillStanding(BaseModel):
    skill: str
    avg_score: float
    consistency: float


class StrengthsAndWeaknesses(BaseModel):
    strengths: List[SkillStanding] = Field(default_factory=list)
    weaknesses: List[SkillStanding] = Field(default_factory=list)


class SkillAttempt(BaseModel):
    score: float
    date: datetime
    difficulty: str


class SkillDetails(BaseModel):
    skill: str
    scores: List[SkillAttempt] = Field(default_factory=list)
    attempts: int = 0
    average_score: float = 0.0
    improvement_trend: float = 0.0
    last_attempt_score: float = 0.0


class ReadinessOverview(BaseModel):
    readiness_score: int = 0
    readiness_percentage: int = 0
    strongest_skill: str = "N/A"
    weakest_skill: str = "N/A"
    total_sessions: int = 0
    average_score: float = 0.0
    coding_accuracy: float = 0.0
    theoretical_accuracy: float = 0.0
    learning_velocity: float = 0.0
    consistency_score: float = 0.0


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def get_skill_level(avg_score: float) -> str:
    if avg_score >= 8.5:
        return "Expert"
    if avg_score >= 7:
        return "Proficient"
    if avg_score >= 5.5:
        return "Intermediate"
    if avg_score >= 4:
        return "Beginner"
    return "Novice"


def calculate_skill_breakdown(session: SessionState) -> SkillBreakdown:
    """Group a session's answers by question topic; answers without a known question are skipped."""

    grouped: Dict[str, List[TopicScore]] = {}
    for answer in session.answers:
        question = session.find_question(answer.question)
        if question is None:
            continue
        grouped.setdefault(question.topic, []).append(
            TopicScore(score=answer_score(answer), difficulty=question.difficulty, timestamp=answer.submitted_at)
        )

    averages = {topic: _mean([item.score for item in items]) for topic, items in grouped.items()}
    return SkillBreakdown(
        topic_scores=grouped,
        skill_levels={topic: get_skill_level(avg) for topic, avg in averages.items()},
        average_by_topic=averages,
    )


def _scores(answers: Iterable[Answer]) -> List[float]:
    return [answer_score(answer) for answer in answers]


def aggregate_session_scores(sessions: Iterable[SessionState]) -> SessionAggregate:
    completed = completed_in_order(sessions)
    if not completed:
        return SessionAggregate()

    theoretical: List[float] = []
    coding: List[float] = []
    overall: List[float] = []
    for session in completed:
        theory_avg = _mean(_scores(a for a in session.answers if not a.is_coding))
        coding_avg = _mean(_scores(a for a in session.answers if a.is_coding))
        if theory_avg > 0:
            theoretical.append(theory_avg)
        if coding_avg > 0:
            coding.append(coding_avg)
        overall.append(session.average_score)

    return SessionAggregate(
        overall_score=_mean(overall),
        theoretical_score=_mean(theoretical),
        coding_score=_mean(coding),
        improvement_trend=[
            TrendPoint(session_number=index + 1, score=score, date=session.created_at)
            for index, (score, session) in enumerate(zip(overall, completed))
        ],
        session_count=len(completed),
    )


def calculate_learning_velocity(sessions: Iterable[SessionState]) -> float:
    """Average change in session score per completed session."""

    completed = completed_in_order(sessions)
    if len(completed) < 2:
        return 0.0
    return (completed[-1].average_score - completed[0].average_score) / (len(completed) - 1)


def score_stddev(scores: Sequence[float]) -> float:
    if len(scores) < 2:
        return 0.0
    return statistics.pstdev(scores)


def calculate_consistency(sessions: Iterable[SessionState]) -> float:
    """10 minus the population std dev of session averages, floored at 0."""

    averages = [session.average_score for session in completed_in_order(sessions)]
    if not averages:
        return 0.0
    return max(0.0, 10.0 - score_stddev(averages))


def calculate_difficulty_breakdown(session: SessionState) -> Dict[str, DifficultyStats]:
    buckets: Dict[str, List[float]] = {level: [] for level in DIFFICULTY_LEVELS}
    for answer in session.answers:
        question = session.find_question(answer.question)
        if question is None:
            continue
        buckets[question.difficulty].append(answer_score(answer))
    return {
        level: DifficultyStats(
            attempted=len(scores),
            avg_score=_mean(scores),
            max_score=max(scores) if scores else 0.0,
            min_score=min(scores) if scores else 0.0,
        )
        for level, scores in buckets.items()
    }


def topic_averages(sessions: Iterable[SessionState]) -> Dict[str, TopicAverage]:
    """Per-topic (lower-cased) average over every answer in ``sessions``."""

    grouped: Dict[str, List[float]] = {}
    for session in sessions:
        for answer in session.answers:
            question = session.find_question(answer.question)
            if question is None or not question.topic.strip():
                continue
            grouped.setdefault(question.topic.strip().lower(), []).append(answer_score(answer))
    return {topic: TopicAverage(avg_score=_mean(scores), attempts=len(scores)) for topic, scores in grouped.items()}


def identify_strengths_and_weaknesses(
    sessions: Iterable[SessionState],
    threshold: float = STRENGTH_THRESHOLD,
) -> StrengthsAndWeaknesses:
    per_topic: Dict[str, List[float]] = {}
    for session in sessions:
        for topic, average in calculate_skill_breakdown(session).average_by_topic.items():
            per_topic.setdefault(topic, []).append(average)

    standings = [
        SkillStanding(skill=topic, avg_score=_mean(scores), consistency=score_stddev(scores))
        for topic, scores in per_topic.items()
    ]
    return StrengthsAndWeaknesses(
        strengths=sorted((s for s in standings if s.avg_score >= threshold), key=lambda s: s.avg_score, reverse=True),
        weaknesses=sorted((s for s in standings if s.avg_score < threshold), key=lambda s: s.avg_score),
    )


def skill_details(sessions: Iterable[SessionState], skill: str) -> SkillDetails:
    """History of one skill across sessions, with second-half minus first-half improvement."""

    wanted = skill.lower()
    attempts: List[SkillAttempt] = []
    for session in sorted(sessions, key=lambda s: s.created_at):
        for answer in session.answers:
            question = session.find_question(answer.question)
            if question is None or question.topic.lower() != wanted:
                continue
            attempts.append(
                SkillAttempt(score=answer_score(answer), date=answer.submitted_at, difficulty=question.difficulty)
            )

    details = SkillDetails(skill=skill)
    if not attempts:
        return details

    scores = [attempt.score for attempt in attempts]
    details.scores = attempts
    details.attempts = len(attempts)
    details.average_score = round(_mean(scores), 2)
    details.last_attempt_score = scores[-1]
    if len(scores) > 1:
        middle = len(scores) // 2
        details.improvement_trend = round(_mean(scores[middle:]) - _mean(scores[:middle]), 2)
    return details


def readiness_overview(sessions: Iterable[SessionState]) -> ReadinessOverview:
    completed = completed_in_order(sessions)
    if not completed:
        return ReadinessOverview()

    average = _mean([session.average_score for session in completed])
    answers = [answer for session in completed for answer in session.answers]
    coding = _mean(_scores(a for a in answers if a.is_coding))
    theoretical = _mean(_scores(a for a in answers if not a.is_coding))
    velocity = calculate_learning_velocity(completed)
    consistency = calculate_consistency(completed)

    readiness = (
        READINESS_WEIGHTS["average"] * average
        + READINESS_WEIGHTS["coding"] * coding
        + READINESS_WEIGHTS["consistency"] * consistency
        + READINESS_WEIGHTS["velocity"] * velocity
    )

    ranked = sorted(topic_averages(completed).items(), key=lambda item: item[1].avg_score, reverse=True)
    strongest: Optional[str] = ranked[0][0] if ranked else None
    weakest: Optional[str] = ranked[-1][0] if ranked else None

    return ReadinessOverview(
        readiness_score=round(readiness),
        readiness_percentage=min(100, round(readiness * 10)),
        strongest_skill=strongest or "N/A",
        weakest_skill=weakest or "N/A",
        total_sessions=len(completed),
        average_score=round(average, 2),
        coding_accuracy=round(coding, 2),
        theoretical_accuracy=round(theoretical, 2),
        learning_velocity=round(velocity, 2),
        consistency_score=round(consistency, 2),
    )


__all__ = [
    "DifficultyStats",
    "ReadinessOverview",
    "SessionAggregate",
    "SkillBreakdown",
    "SkillDetails",
    "StrengthsAndWeaknesses",
    "TopicAverage",
    "aggregate_session_scores",
    "calculate_consistency",
    "calculate_difficulty_breakdown",
    "calculate_learning_velocity",
    "calculate_skill_breakdown",
    "get_skill_level",
    "identify_strengths_and_weaknesses",
    "readiness_overview",
    "score_stddev",
    "skill_details",
    "topic_averages",
]
