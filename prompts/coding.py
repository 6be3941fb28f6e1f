from __future__ import annotations  # Code review prompt

from textwrap import dedent

VERSION = "coding.v1"
REQUIRED_KEYS = [
    "logicScore",
    "readabilityScore",
    "edgeCaseHandling",
    "timeComplexity",
    "spaceComplexity",
    "improvementSuggestions",
]


def build_coding_prompt(question: str, code: str, language: str) -> str:
    return dedent(
        f"""
        You are a code reviewer for an interview platform. Evaluate this code solution.

        Question: {question}
        Language: {language}
        Code:
        {{code}}

        Respond with a JSON object following this contract:
        - logicScore: number from 0 to 10.
        - readabilityScore: number from 0 to 10.
        - edgeCaseHandling: short qualitative assessment (comprehensive, good, partial, minimal or none).
        - timeComplexity: Big-O expression such as O(n log n).
        - spaceComplexity: Big-O expression.
        - improvementSuggestions: list of strings.
        - genericFlags: list of strings.
        Return only JSON without markdown fences, text, or commentary.
        """
    ).strip().replace("{code}", code)


__all__ = ["REQUIRED_KEYS", "VERSION", "build_coding_prompt"]
