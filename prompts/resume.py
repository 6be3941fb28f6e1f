from __future__ import annotations  # Resume parsing prompt

from textwrap import dedent

VERSION = "resume.v1"
REQUIRED_KEYS = [
    "isResume",
    "confidence",
    "skills",
    "technologies",
    "experienceYears",
    "education",
    "primaryDomain",
]


def build_resume_prompt(resume_text: str) -> str:
    return dedent(
        """
        You are a professional resume parser. Analyze the provided text.
        If it is NOT a resume (a recipe, a book, random text, or extremely sparse), set isResume to false.

        Respond with a JSON object following this contract:
        - isResume: boolean.
        - confidence: number from 0 to 100.
        - skills: list of strings.
        - technologies: list of strings.
        - experienceYears: number.
        - education: list of strings.
        - primaryDomain: string.
        Return only JSON without markdown fences, text, or commentary.

        Text:
        """
    ).strip() + "\n" + resume_text


__all__ = ["REQUIRED_KEYS", "VERSION", "build_resume_prompt"]
