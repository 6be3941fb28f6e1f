"""Behavioral telemetry analysis for answers and whole sessions."""
from __future__ import annotations

import statistics
from typing import List, Literal, Optional, Sequence

from pydantic import BaseModel

from .coding_evaluation import answer_score
from .types import Answer, InteractionMetrics, Question, Recommendation

DEFAULT_TIME_LIMIT_S = 300
IDLE_RATIO_THRESHOLD = 0.3
TREND_BAND = 0.5

EngagementLevel = Literal["none", "very-low", "low", "rushed", "moderate", "high", "very-high"]
ScoreTrend = Literal["insufficient-data", "improving", "declining", "stable"]


class TimeManagement(BaseModel):
    time_spent: float
    time_limit: float
    percentage_used: float
    classification: Literal["rushed", "optimal", "thorough", "time-exceeded"]


class AnswerBehaviorMetrics(BaseModel):
    time_spent: float
    time_limit: float
    time_utilization: float
    edit_count: int
    edits_per_minute: float
    revision_intensity: str
    response_type: str
    pause_indicator: bool
    confidence: int
    time_management: TimeManagement


class SessionBehaviorMetrics(BaseModel):
    total_time_spent: float = 0.0
    average_time_per_question: float = 0.0
    total_edits: int = 0
    average_edits_per_question: float = 0.0
    timeout_count: int = 0
    consistency_score: float = 0.0
    engagement_level: EngagementLevel = "none"
    score_trend: ScoreTrend = "insufficient-data"
    behavior_pattern: str = "no-data"


def _metrics(answer: Answer) -> InteractionMetrics:
    return answer.interaction_metrics or InteractionMetrics()


def calculate_revision_intensity(edit_count: int) -> str:
    if edit_count == 0:
        return "no-revision"
    if edit_count <= 2:
        return "minimal"
    if edit_count <= 5:
        return "moderate"
    if edit_count <= 10:
        return "high"
    return "very-high"


def classify_response(response: Optional[str], edit_count: int) -> str:
    length = len(response or "")
    if length == 0:
        return "empty"
    if length < 50:
        return "minimal"
    if edit_count == 0:
        return "brief-first-attempt" if length < 200 else "detailed-first-attempt"
    if edit_count <= 2:
        return "refined"
    return "heavily-revised"


def detect_pauses(metrics: InteractionMetrics) -> bool:
    """True when more than 30% of the time spent was idle."""

    total_ms = metrics.time_spent_sec * 1000
    if total_ms <= 0:
        return False
    if metrics.idle_time_ms is not None:
        idle_ms = metrics.idle_time_ms
    else:
        idle_ms = total_ms - metrics.typing_duration_ms
    return idle_ms / total_ms > IDLE_RATIO_THRESHOLD


def estimate_confidence(answer: Answer) -> int:
    metrics = _metrics(answer)
    confidence = 5
    length = len(answer.response or "")
    if length > 300:
        confidence += 1
    if length > 500:
        confidence += 1
    if metrics.edit_count == 0:
        confidence += 1
    if metrics.edit_count > 10:
        confidence -= 2
    if metrics.auto_submitted:
        confidence -= 1
    score = answer_score(answer)
    if score > 7:
        confidence += 1
    if score < 4:
        confidence -= 1
    return min(10, max(1, confidence))


def analyze_time_management(time_spent: float, time_limit: float) -> TimeManagement:
    used = time_spent / time_limit * 100 if time_limit > 0 else 0.0
    if used < 30:
        classification = "rushed"
    elif used < 70:
        classification = "optimal"
    elif used < 95:
        classification = "thorough"
    else:
        classification = "time-exceeded"
    return TimeManagement(
        time_spent=time_spent,
        time_limit=time_limit,
        percentage_used=round(used, 1),
        classification=classification,
    )


def calculate_answer_behavior_metrics(answer: Answer, question: Optional[Question] = None) -> AnswerBehaviorMetrics:
    metrics = _metrics(answer)
    time_spent = metrics.time_spent_sec
    time_limit = question.time_limit if question is not None else DEFAULT_TIME_LIMIT_S
    return AnswerBehaviorMetrics(
        time_spent=time_spent,
        time_limit=time_limit,
        time_utilization=min(100.0, time_spent / time_limit * 100) if time_spent > 0 else 0.0,
        edit_count=metrics.edit_count,
        edits_per_minute=round(metrics.edit_count / time_spent * 60, 2) if time_spent > 0 else 0.0,
        revision_intensity=calculate_revision_intensity(metrics.edit_count),
        response_type=classify_response(answer.response, metrics.edit_count),
        pause_indicator=detect_pauses(metrics),
        confidence=estimate_confidence(answer),
        time_management=analyze_time_management(time_spent, time_limit),
    )


def classify_engagement_level(avg_time: float, total_edits: int, timeout_count: int) -> EngagementLevel:
    if timeout_count >= 3:
        return "very-low"
    if timeout_count > 0:
        return "low"
    if avg_time < 60 and total_edits == 0:
        return "rushed"
    if avg_time > 300:
        return "very-high"
    if avg_time > 200:
        return "high"
    return "moderate"


def score_trend(scores: Sequence[float]) -> ScoreTrend:
    """Compare first-half and second-half averages."""

    if len(scores) < 2:
        return "insufficient-data"
    middle = len(scores) // 2
    first = sum(scores[:middle]) / middle
    second = sum(scores[middle:]) / (len(scores) - middle)
    delta = second - first
    if delta > TREND_BAND:
        return "improving"
    if delta < -TREND_BAND:
        return "declining"
    return "stable"


def identify_behavior_pattern(answers: Sequence[Answer]) -> str:
    if len(answers) < 2:
        return "insufficient-data"
    scores = [answer_score(answer) for answer in answers]
    edits = [_metrics(answer).edit_count for answer in answers]

    if max(scores) - min(scores) > 5 and max(edits) - min(edits) > 5:
        return "inconsistent"
    if scores[-1] > scores[0]:
        return "improving"
    if scores[-1] < scores[0] - 2:
        return "declining"
    if all(edit == 0 for edit in edits):
        return "confident"
    if all(edit > 5 for edit in edits):
        return "perfectionist"
    return "stable"


def _timing_consistency(times: Sequence[float]) -> float:
    mean = sum(times) / len(times)
    if mean <= 0:
        return 0.0
    variation = statistics.pstdev(times) / mean * 100
    return max(0.0, 100 - min(100.0, variation))


def calculate_session_behavior_metrics(answers: Sequence[Answer]) -> SessionBehaviorMetrics:
    if not answers:
        return SessionBehaviorMetrics()

    times = [_metrics(answer).time_spent_sec for answer in answers]
    total_time = sum(times)
    average_time = total_time / len(answers)
    total_edits = sum(_metrics(answer).edit_count for answer in answers)
    timeouts = sum(1 for answer in answers if _metrics(answer).auto_submitted)

    return SessionBehaviorMetrics(
        total_time_spent=round(total_time, 2),
        average_time_per_question=round(average_time, 2),
        total_edits=total_edits,
        average_edits_per_question=round(total_edits / len(answers), 2),
        timeout_count=timeouts,
        consistency_score=round(_timing_consistency(times), 2),
        engagement_level=classify_engagement_level(average_time, total_edits, timeouts),
        score_trend=score_trend([answer_score(answer) for answer in answers]),
        behavior_pattern=identify_behavior_pattern(answers),
    )


def generate_behavior_recommendations(
    metrics: SessionBehaviorMetrics,
    average_score: float,
) -> List[Recommendation]:
    recommendations: List[Recommendation] = []

    if metrics.engagement_level == "rushed":
        recommendations.append(
            Recommendation(
                severity="medium",
                type="time-management",
                message="You answered questions quickly. Try spending more time to think through complex problems.",
            )
        )
    elif metrics.engagement_level == "very-high":
        recommendations.append(
            Recommendation(
                severity="low",
                type="time-management",
                message="You spent significant time on questions. Be mindful of time constraints in real interviews.",
            )
        )

    if metrics.average_edits_per_question > 10:
        recommendations.append(
            Recommendation(
                severity="medium",
                type="confidence",
                message="You made many revisions. Try to be more confident in your first responses.",
            )
        )
    elif metrics.engagement_level != "none" and metrics.average_edits_per_question == 0:
        recommendations.append(
            Recommendation(
                severity="low",
                type="quality",
                message="No revisions detected. Consider reviewing and refining your answers for better quality.",
            )
        )

    if metrics.score_trend == "declining":
        recommendations.append(
            Recommendation(
                severity="medium",
                type="focus",
                message="Your performance declined through the interview. Stay focused and maintain energy levels.",
            )
        )
    elif metrics.score_trend == "improving":
        recommendations.append(
            Recommendation(
                severity="positive",
                type="positive",
                message="Great! Your performance improved throughout the interview.",
            )
        )

    if metrics.timeout_count > 0:
        recommendations.append(
            Recommendation(
                severity="high",
                type="time-management",
                message=(
                    f"You had {metrics.timeout_count} auto-submissions. "
                    "Ensure you complete all responses within time limits."
                ),
            )
        )

    if metrics.engagement_level != "none":
        if average_score < 5:
            recommendations.append(
                Recommendation(
                    severity="high",
                    type="fundamentals",
                    message="Average score is below 5. Revisit the fundamentals of the topics covered.",
                )
            )
        elif average_score >= 8:
            recommendations.append(
                Recommendation(
                    severity="positive",
                    type="positive",
                    message="Strong overall performance. Try harder questions to keep progressing.",
                )
            )

    return recommendations


__all__ = [
    "AnswerBehaviorMetrics",
    "SessionBehaviorMetrics",
    "TimeManagement",
    "analyze_time_management",
    "calculate_answer_behavior_metrics",
    "calculate_revision_intensity",
    "calculate_session_behavior_metrics",
    "classify_engagement_level",
    "classify_response",
    "detect_pauses",
    "estimate_confidence",
    "generate_behavior_recommendations",
    "identify_behavior_pattern",
    "score_trend",
]
