"""Adaptive difficulty controller and topic-targeting policy."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, Field

from config.settings import settings
from observability.logger import log_event

from .coding_evaluation import answer_score
from .types import (
    DIFFICULTY_LEVELS,
    Answer,
    Difficulty,
    Question,
    SessionClosedError,
    SessionState,
    SkillPerformanceEntry,
    utcnow,
)

logger = logging.getLogger(__name__)

PROMOTE_ABOVE = 8.0
DEMOTE_BELOW = 4.0
STRONG_TOPIC_THRESHOLD = 7.0


class WeakSkill(BaseModel):
    topic: str
    score: float
    attempt_count: int = 1
    last_attempt: Optional[datetime] = None


class TopicPerformance(BaseModel):
    topic: str
    avg_score: float
    attempt_count: int


class SessionMetrics(BaseModel):
    answered_count: int = 0
    average_score: float = 0.0
    theoretical_avg: float = 0.0
    coding_avg: float = 0.0
    difficulty_distribution: Dict[str, int] = Field(
        default_factory=lambda: {level: 0 for level in DIFFICULTY_LEVELS}
    )
    strong_topics: List[TopicPerformance] = Field(default_factory=list)
    weak_topics: List[TopicPerformance] = Field(default_factory=list)
    topic_performance: List[TopicPerformance] = Field(default_factory=list)


class TimelineEntry(BaseModel):
    question_number: int
    difficulty: Difficulty
    score: Optional[float] = None
    reason: str


def get_next_difficulty(current: Optional[str], last_score: float) -> Difficulty:
    """Promote above 8, demote below 4, otherwise hold; never leaves the level set."""

    level = current or "medium"
    if level not in DIFFICULTY_LEVELS:
        raise ValueError(f"Unknown difficulty level: {current!r}")
    index = DIFFICULTY_LEVELS.index(level)  # type: ignore[arg-type]
    if last_score > PROMOTE_ABOVE and index < len(DIFFICULTY_LEVELS) - 1:
        return DIFFICULTY_LEVELS[index + 1]
    if last_score < DEMOTE_BELOW and index > 0:
        return DIFFICULTY_LEVELS[index - 1]
    return DIFFICULTY_LEVELS[index]


def identify_weak_skills(
    topic_map: Mapping[str, SkillPerformanceEntry],
    threshold: Optional[float] = None,
) -> List[WeakSkill]:
    """Topics scoring under ``threshold``; lowest first, ties by most recent attempt."""

    limit = settings.WEAK_TOPIC_THRESHOLD if threshold is None else threshold
    now = utcnow()
    weak = [
        WeakSkill(
            topic=topic,
            score=entry.score,
            attempt_count=len(entry.timestamps) or 1,
            last_attempt=entry.last_attempt or now,
        )
        for topic, entry in topic_map.items()
        if entry.score < limit
    ]
    weak.sort(key=lambda skill: skill.last_attempt, reverse=True)
    weak.sort(key=lambda skill: skill.score)
    return weak


def recommend_next_topics(
    topic_map: Mapping[str, SkillPerformanceEntry],
    session_history: Sequence[SessionState] = (),
    count: Optional[int] = None,
) -> List[str]:
    """Weak topics that were not asked in either of the two most recent sessions."""

    limit = settings.RECOMMENDED_TOPIC_COUNT if count is None else count
    recent = {
        question.topic
        for session in list(session_history)[-2:]
        for question in session.questions_asked
    }
    picks = [skill.topic for skill in identify_weak_skills(topic_map) if skill.topic not in recent]
    return picks[:limit]


def should_avoid_topic(questions_asked: Sequence[Question], topic: str, window: Optional[int] = None) -> bool:
    size = settings.RECENT_TOPIC_WINDOW if window is None else window
    if size <= 0:
        return False
    return any(question.topic == topic for question in list(questions_asked)[-size:])


def record_answer(state: SessionState, question: Question, answer: Answer) -> Difficulty:
    """Apply one submitted answer to the session and return the next difficulty.

    This is the only function that mutates ``SessionState``. The question is
    appended when its text is not already recorded, the answer is appended, the
    topic entry takes the latest score plus a timestamp, and the difficulty
    transition is applied.
    """

    if state.is_completed:
        raise SessionClosedError(f"Session {state.session_id} is completed")
    if answer.question != question.question:
        raise ValueError("answer does not reference the given question")

    if state.find_question(question.question) is None:
        state.questions_asked.append(question)
    state.answers.append(answer)

    score = answer_score(answer)
    entry = state.skill_performance.get(question.topic)
    if entry is None:
        entry = SkillPerformanceEntry(topic=question.topic, score=score)
        state.skill_performance[question.topic] = entry
    else:
        entry.score = score
    entry.timestamps.append(answer.submitted_at or utcnow())

    previous = state.difficulty
    state.difficulty = get_next_difficulty(previous, score)
    if state.difficulty != previous:
        logger.info(
            "Difficulty changed session=%s %s->%s score=%.2f",
            state.session_id,
            previous,
            state.difficulty,
            score,
        )
    log_event(
        "answer_recorded",
        state.session_id,
        topic=question.topic,
        score=score,
        difficulty=state.difficulty,
    )
    return state.difficulty


def _topic_performance(session: SessionState) -> List[TopicPerformance]:
    grouped: Dict[str, List[float]] = {}
    for answer in session.answers:
        question = session.find_question(answer.question)
        topic = question.topic if question is not None and question.topic else "General"
        grouped.setdefault(topic, []).append(answer_score(answer))
    return [
        TopicPerformance(topic=topic, avg_score=sum(scores) / len(scores), attempt_count=len(scores))
        for topic, scores in grouped.items()
    ]


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def calculate_session_metrics(session: SessionState) -> SessionMetrics:
    if not session.answers:
        return SessionMetrics()

    theoretical = [answer_score(a) for a in session.answers if not a.is_coding]
    coding = [answer_score(a) for a in session.answers if a.is_coding]
    distribution = {level: 0 for level in DIFFICULTY_LEVELS}
    for question in session.questions_asked:
        distribution[question.difficulty] += 1

    performance = _topic_performance(session)
    strong = sorted(
        (t for t in performance if t.avg_score >= STRONG_TOPIC_THRESHOLD),
        key=lambda t: t.avg_score,
        reverse=True,
    )
    weak = sorted((t for t in performance if t.avg_score < STRONG_TOPIC_THRESHOLD), key=lambda t: t.avg_score)

    return SessionMetrics(
        answered_count=len(session.answers),
        average_score=session.average_score,
        theoretical_avg=_mean(theoretical),
        coding_avg=_mean(coding),
        difficulty_distribution=distribution,
        strong_topics=strong,
        weak_topics=weak,
        topic_performance=performance,
    )


def validate_question_metadata(question: Union[Question, Mapping[str, Any]]) -> bool:
    """True when the question text, difficulty, topic, domain and a positive time limit are present."""

    data = question.model_dump() if isinstance(question, Question) else dict(question)
    time_limit = data.get("time_limit")
    return (
        bool(data.get("question"))
        and data.get("difficulty") in DIFFICULTY_LEVELS
        and bool(data.get("topic"))
        and bool(data.get("domain"))
        and isinstance(time_limit, (int, float))
        and not isinstance(time_limit, bool)
        and time_limit > 0
    )


def _timeline_reason(index: int, previous: Optional[str], current: str) -> str:
    if index == 0:
        return "Initial question"
    if previous is None or previous == current:
        return "Difficulty maintained"
    rank = DIFFICULTY_LEVELS.index
    if current in DIFFICULTY_LEVELS and previous in DIFFICULTY_LEVELS:
        if rank(current) > rank(previous):  # type: ignore[arg-type]
            return "Increased due to high performance"
        return "Decreased due to low performance"
    return "Adaptive adjustment"


def difficulty_timeline(session: SessionState) -> List[TimelineEntry]:
    """Per-question difficulty progression with the score each question received."""

    scores: Dict[str, float] = {}
    for answer in session.answers:
        scores[answer.question] = answer_score(answer)

    timeline: List[TimelineEntry] = []
    previous: Optional[str] = None
    for index, question in enumerate(session.questions_asked):
        timeline.append(
            TimelineEntry(
                question_number=index + 1,
                difficulty=question.difficulty,
                score=scores.get(question.question),
                reason=_timeline_reason(index, previous, question.difficulty),
            )
        )
        previous = question.difficulty
    return timeline


__all__ = [
    "SessionMetrics",
    "TimelineEntry",
    "TopicPerformance",
    "WeakSkill",
    "calculate_session_metrics",
    "difficulty_timeline",
    "get_next_difficulty",
    "identify_weak_skills",
    "record_answer",
    "recommend_next_topics",
    "should_avoid_topic",
    "validate_question_metadata",
]
