from __future__ import annotations  # Heuristic trust score for a single oracle evaluation

import statistics
from typing import List, Sequence

from pydantic import BaseModel

GENERIC_PHRASES = (
    "good answer",
    "it depends",
    "best practice",
    "in general",
    "optimize",
    "scalable",
    "industry standard",
)


class ReliabilityScore(BaseModel):
    evaluation_reliability: float
    ai_confidence_score: int
    response_length: int
    generic_flags: List[str]


def generic_phrases(text: str) -> List[str]:
    lowered = (text or "").lower()
    return [phrase for phrase in GENERIC_PHRASES if phrase in lowered]


def calculate_evaluation_reliability(response: str, attempt_scores: Sequence[float] = ()) -> ReliabilityScore:
    """Penalize short or boilerplate responses and unstable repeat scores; result in [0.1, 1]."""

    length = len((response or "").strip())
    reliability = 1.0

    if length < 40:
        reliability -= 0.35
    elif length < 100:
        reliability -= 0.2

    flags = generic_phrases(response)
    reliability -= min(0.25, len(flags) * 0.08)

    if len(attempt_scores) > 1:
        spread = statistics.pstdev(attempt_scores)
        if spread > 2.5:
            reliability -= 0.2
        elif spread > 1.5:
            reliability -= 0.1

    normalized = max(0.1, min(1.0, reliability))
    return ReliabilityScore(
        evaluation_reliability=round(normalized, 2),
        ai_confidence_score=round(normalized * 100),
        response_length=length,
        generic_flags=flags,
    )


__all__ = ["GENERIC_PHRASES", "ReliabilityScore", "calculate_evaluation_reliability", "generic_phrases"]
