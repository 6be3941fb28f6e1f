from __future__ import annotations  # Interview question generation prompt

from textwrap import dedent
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

VERSION = "question.v1"
REQUIRED_KEYS = ["questions"]
QUESTION_COUNT = 6


class QuestionContext(BaseModel):  # Candidate context for question generation
    skills: List[str] = Field(default_factory=list)
    technologies: List[str] = Field(default_factory=list)
    experience_years: float = 0.0
    primary_domain: str = "General"
    raw_text: Optional[str] = None
    focus_topics: List[str] = Field(default_factory=list)
    has_profile: bool = True


def _joined(items: Sequence[str], default: str) -> str:
    return ", ".join(items) if items else default


def build_question_prompt(context: QuestionContext) -> str:
    if context.has_profile:
        candidate = dedent(
            f"""
            Domain: {context.primary_domain or "General"}
            Skills: {_joined(context.skills, "General")}
            Technologies: {_joined(context.technologies, "N/A")}
            Years of Exp: {context.experience_years:g}
            """
        ).strip()
    else:
        candidate = f"Context extracted from raw text: {(context.raw_text or '')[:1000]}"

    focus = (
        f"Prioritize these topics: {', '.join(context.focus_topics)}." if context.focus_topics else ""
    )
    header = dedent(
        f"""
        You are an interview system. Generate adaptive interview questions with detailed metadata.

        Return only JSON without markdown fences, text, or commentary, using double-quoted strings.
        The JSON object must follow this contract:
        - questions: array of objects, each with
            - question: string under 35 words.
            - difficulty: one of easy, medium, hard.
            - topic: string under 4 words, unique per question.
            - domain: string.
            - timeLimit: positive number of seconds.
            - isCoding: boolean, true for at most 2 questions.
            - testCases: exactly 2 concise items of {{"input": [...], "expectedOutput": ..., "description": "..."}}
              when isCoding is true, otherwise an empty array.

        Generate exactly {QUESTION_COUNT} questions: 2 easy, 2 medium, 2 hard.
        Match candidate skills: {_joined(context.skills, "General")}
        {focus}
        """
    ).strip()
    return f"{header}\n\nCandidate info:\n{candidate}"


__all__ = ["QUESTION_COUNT", "QuestionContext", "REQUIRED_KEYS", "VERSION", "build_question_prompt"]
