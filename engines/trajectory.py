from __future__ import annotations  # Cross-session skill trajectories

from typing import Dict, Iterable, List, Literal, Optional, Sequence

from pydantic import BaseModel

from config.settings import settings

from .types import SessionState

TREND_THRESHOLD = 0.1
PLATEAU_RANGE = 0.4
PLATEAU_POINTS = 3

ImprovementTrend = Literal["Upward", "Declining", "Stable"]


class Trajectory(BaseModel):
    topic: str
    current_level: str
    growth_rate: float
    plateau_detected: bool
    improvement_trend: ImprovementTrend
    rolling_average: float
    data_points: int


def rolling_average(scores: Sequence[float], window: Optional[int] = None) -> float:
    size = settings.ROLLING_WINDOW if window is None else window
    recent = list(scores)[-size:] if size > 0 else []
    return sum(recent) / len(recent) if recent else 0.0


def get_mastery_level(score: float) -> str:
    if score >= 8.5:
        return "Expert"
    if score >= 7:
        return "Advanced"
    if score >= 5.5:
        return "Intermediate"
    if score >= 4:
        return "Beginner"
    return "Novice"


def linear_slope(scores: Sequence[float]) -> float:
    """Least-squares slope of the scores against their index (0 for fewer than two points)."""

    n = len(scores)
    if n < 2:
        return 0.0
    x_mean = (n - 1) / 2
    y_mean = sum(scores) / n
    numerator = sum((x - x_mean) * (y - y_mean) for x, y in enumerate(scores))
    denominator = sum((x - x_mean) ** 2 for x in range(n))
    return numerator / denominator if denominator else 0.0


def detect_plateau(scores: Sequence[float]) -> bool:
    if len(scores) < PLATEAU_POINTS:
        return False
    recent = list(scores)[-PLATEAU_POINTS:]
    return max(recent) - min(recent) < PLATEAU_RANGE


def _trend(slope: float) -> ImprovementTrend:
    if slope > TREND_THRESHOLD:
        return "Upward"
    if slope < -TREND_THRESHOLD:
        return "Declining"
    return "Stable"


def build_topic_trajectory(topic: str, scores: Sequence[float]) -> Trajectory:
    average = rolling_average(scores)
    slope = linear_slope(scores)
    return Trajectory(
        topic=topic,
        current_level=get_mastery_level(average),
        growth_rate=round(slope, 2),
        plateau_detected=detect_plateau(scores),
        improvement_trend=_trend(slope),
        rolling_average=round(average, 2),
        data_points=len(scores),
    )


def completed_in_order(sessions: Iterable[SessionState]) -> List[SessionState]:
    """Completed sessions, oldest first."""

    return sorted((s for s in sessions if s.is_completed), key=lambda s: s.created_at)


def topic_histories(sessions: Iterable[SessionState]) -> Dict[str, List[float]]:
    """Ordered score history per topic: one point per completed session touching it."""

    histories: Dict[str, List[float]] = {}
    for session in completed_in_order(sessions):
        for topic, entry in session.skill_performance.items():
            histories.setdefault(topic, []).append(float(entry.score))
    return histories


def build_for_history(sessions: Iterable[SessionState]) -> List[Trajectory]:
    return [build_topic_trajectory(topic, scores) for topic, scores in topic_histories(sessions).items()]


__all__ = [
    "Trajectory",
    "build_for_history",
    "build_topic_trajectory",
    "completed_in_order",
    "detect_plateau",
    "get_mastery_level",
    "linear_slope",
    "rolling_average",
    "topic_histories",
]
