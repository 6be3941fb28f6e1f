from __future__ import annotations  # Answer evaluation and skill-gap report prompts

from textwrap import dedent
from typing import List

from pydantic import BaseModel, Field

VERSION = "evaluation.v1"
REQUIRED_KEYS = [
    "score",
    "technicalAccuracy",
    "clarity",
    "depth",
    "strengths",
    "weaknesses",
    "improvements",
]
SKILL_GAP_REQUIRED_KEYS = [
    "strongestSkills",
    "weakestSkills",
    "recommendedFocusAreas",
    "learningSuggestions",
    "estimatedRoadmapWeeks",
    "summary",
]


class SkillSummary(BaseModel):  # Performance digest fed to the skill-gap report
    strongest_skills: List[str] = Field(default_factory=list)
    weakest_skills: List[str] = Field(default_factory=list)
    topics_attempted: List[str] = Field(default_factory=list)
    average_score: float = 0.0
    session_count: int = 0


def build_evaluation_prompt(question: str, answer: str) -> str:
    template = dedent(
        """
        Evaluate the technical interview answer.
        Question: {question}
        Answer: {answer}

        Respond with a JSON object following this contract:
        - score: number from 0 to 10.
        - technicalAccuracy: string.
        - clarity: string.
        - depth: string.
        - strengths: list of strings.
        - weaknesses: list of strings.
        - improvements: list of strings.
        - genericFlags: list of generic or boilerplate phrases found in the answer.
        Return only JSON without markdown fences, text, or commentary.
        """
    ).strip()
    return template.format(question=question, answer=answer)


def build_skill_gap_prompt(summary: SkillSummary) -> str:
    return dedent(
        f"""
        You are a career development advisor. Based on interview performance, generate a
        personalized skill gap report.

        Performance data:
        - Interviews completed: {summary.session_count}
        - Average score: {summary.average_score:.2f}/10
        - Strongest skills: {", ".join(summary.strongest_skills) or "None identified"}
        - Weakest skills: {", ".join(summary.weakest_skills) or "None identified"}
        - Topics attempted: {", ".join(summary.topics_attempted) or "General"}

        Respond with a JSON object following this contract:
        - strongestSkills: list of strings.
        - weakestSkills: list of strings.
        - recommendedFocusAreas: list of strings.
        - learningSuggestions: list of strings.
        - estimatedRoadmapWeeks: number.
        - summary: string.
        Return only JSON without markdown fences, text, or commentary.
        """
    ).strip()


__all__ = [
    "REQUIRED_KEYS",
    "SKILL_GAP_REQUIRED_KEYS",
    "SkillSummary",
    "VERSION",
    "build_evaluation_prompt",
    "build_skill_gap_prompt",
]
