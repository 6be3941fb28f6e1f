"""Oracle tasks: prompt, call the gateway, and shape the result.

Every task returns a fully shaped value even when the oracle is unavailable;
evaluation tasks degrade to neutral fallback evaluations flagged ``fallback=True``.
"""
from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from config import LlmRoute, load_app_registry
from engines.adaptive import validate_question_metadata
from engines.types import (
    CodingEvaluation,
    CodingTestCase,
    Difficulty,
    Question,
    ResumeProfile,
    TheoreticalEvaluation,
)
from llm_gateway import HttpClient, invoke
from observability.logger import log_event
from prompts import coding, evaluation, question, resume
from prompts.evaluation import SkillSummary
from prompts.question import QUESTION_COUNT, QuestionContext

logger = logging.getLogger(__name__)

QUESTIONS_TASK = "oracle.generate_interview_questions"
EVALUATION_TASK = "oracle.evaluate_answer"
CODING_TASK = "oracle.evaluate_code_submission"
RESUME_TASK = "oracle.extract_resume"
SKILL_GAP_TASK = "oracle.generate_skill_gap_report"

NOT_EVALUATED = "Not evaluated"
FALLBACK_NOTE = "Automatic evaluation unavailable; neutral score assigned"
DEFAULT_TIME_LIMIT_S = 60
PRACTICE_TIME_LIMIT_S = 90
MAX_TEST_CASES = 5

FALLBACK_TEMPLATES: Dict[str, List[str]] = {
    "aptitude": [
        "Explain how you would approach a ratio and proportion problem under time pressure.",
        "Solve a percentages question and explain each step clearly.",
        "How do you eliminate wrong options quickly in logical reasoning?",
    ],
    "coding": [
        "Write a function to return the first non-repeating character in a string.",
        "Write a function to merge two sorted arrays.",
        "Write a function to detect if an array contains duplicates.",
    ],
    "technical": [
        "What is normalization in DBMS and why is it important?",
        "Explain the difference between stack and queue with use cases.",
        "What are RESTful APIs and common HTTP methods?",
    ],
    "behavioral": [
        "Describe a time you handled conflict in a team.",
        "Tell me about a challenging deadline and how you managed it.",
        "Describe a mistake you made and what you learned from it.",
    ],
}

_DEFAULT_TEST_CASES = (
    CodingTestCase(input=[1], expected_output=1, description="Basic case"),
    CodingTestCase(input=[0], expected_output=0, description="Edge case"),
)


class SkillGapReport(BaseModel):
    strongest_skills: List[str] = Field(default_factory=list)
    weakest_skills: List[str] = Field(default_factory=list)
    recommended_focus_areas: List[str] = Field(default_factory=list)
    learning_suggestions: List[str] = Field(default_factory=list)
    estimated_roadmap_weeks: int = Field(default=0, ge=0)
    summary: str = ""
    prompt_version: str = evaluation.VERSION


# ---------------------------------------------------------------------------
# Coercion helpers for loosely typed oracle payloads
# ---------------------------------------------------------------------------

def _number(value: Any, default: Optional[float] = None) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _score(value: Any) -> Optional[float]:
    number = _number(value)
    if number is None:
        return None
    return min(10.0, max(0.0, number))


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def _str_list(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def _tag(result: Mapping[str, Any], version: str) -> Dict[str, Any]:
    return {**result, "promptVersion": version}


def _degraded(task: str, route: LlmRoute, reason: str) -> None:
    logger.warning("Oracle task degraded task=%s route=%s reason=%s", task, route.name, reason)
    log_event("oracle_fallback", level=logging.WARNING, route=route.name, task=task, reason=reason)


# ---------------------------------------------------------------------------
# Question generation
# ---------------------------------------------------------------------------

def normalize_question(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Trim text, lowercase difficulty, default topic/domain/time limit, cap test cases."""

    cases = raw.get("testCases")
    test_cases: List[Dict[str, Any]] = []
    if isinstance(cases, list):
        for case in cases[:MAX_TEST_CASES]:
            case = case if isinstance(case, Mapping) else {}
            value = case.get("input")
            test_cases.append(
                {
                    "input": value if isinstance(value, list) else [value],
                    "expected_output": case.get("expectedOutput"),
                    "description": _text(case.get("description"), "Generated test case"),
                }
            )
    time_limit = _number(raw.get("timeLimit") or DEFAULT_TIME_LIMIT_S)
    return {
        "question": _text(raw.get("question")),
        "difficulty": _text(raw.get("difficulty"), "medium").lower(),
        "topic": _text(raw.get("topic"), "General"),
        "domain": _text(raw.get("domain"), "General"),
        "time_limit": round(time_limit) if time_limit is not None else None,
        "is_coding": bool(raw.get("isCoding")),
        "test_cases": test_cases,
    }


def normalize_questions_payload(payload: Any) -> Optional[List[Question]]:
    """Exactly six well-formed questions, or None."""

    if not isinstance(payload, Mapping) or not isinstance(payload.get("questions"), list):
        return None
    normalized = [normalize_question(item if isinstance(item, Mapping) else {}) for item in payload["questions"]]
    if len(normalized) != QUESTION_COUNT or not all(validate_question_metadata(item) for item in normalized):
        return None
    try:
        return [Question.model_validate(item) for item in normalized]
    except ValidationError as exc:
        logger.warning("Generated questions rejected: %s", exc)
        return None


def generate_interview_questions(
    context: QuestionContext,
    *,
    route: LlmRoute,
    client: Optional[HttpClient] = None,
) -> Optional[List[Question]]:
    prompt = question.build_question_prompt(context)
    result = invoke(prompt, question.REQUIRED_KEYS, None, cfg=route, client=client)
    if result is None:
        _degraded(QUESTIONS_TASK, route, "no oracle result")
        return None
    questions = normalize_questions_payload(_tag(result, question.VERSION))
    if questions is None:
        _degraded(QUESTIONS_TASK, route, "question set failed validation")
    return questions


def fallback_questions(
    topic: str,
    difficulty: Difficulty = "medium",
    count: int = 5,
    mode: str = "technical",
) -> List[Question]:
    """Template questions for degraded paths; unknown modes use the technical set."""

    templates = FALLBACK_TEMPLATES.get(mode, FALLBACK_TEMPLATES["technical"])
    is_coding = mode == "coding"
    return [
        Question(
            question=templates[index % len(templates)],
            difficulty=difficulty,
            topic=topic or "General",
            domain=mode,
            time_limit=PRACTICE_TIME_LIMIT_S,
            is_coding=is_coding,
            test_cases=[case.model_copy() for case in _DEFAULT_TEST_CASES] if is_coding else [],
        )
        for index in range(max(0, count))
    ]


# ---------------------------------------------------------------------------
# Answer and code evaluation
# ---------------------------------------------------------------------------

def fallback_evaluation() -> TheoreticalEvaluation:
    return TheoreticalEvaluation(
        score=5,
        technical_accuracy=NOT_EVALUATED,
        clarity=NOT_EVALUATED,
        depth=NOT_EVALUATED,
        strengths=["Response provided"],
        weaknesses=["Evaluation pending"],
        improvements=["Retry evaluation"],
        prompt_version=evaluation.VERSION,
        fallback=True,
        note=FALLBACK_NOTE,
    )


def fallback_coding_evaluation() -> CodingEvaluation:
    return CodingEvaluation(
        logic_score=5,
        readability_score=5,
        edge_case_handling=NOT_EVALUATED,
        time_complexity=NOT_EVALUATED,
        space_complexity=NOT_EVALUATED,
        improvement_suggestions=["Retry evaluation"],
        prompt_version=coding.VERSION,
        fallback=True,
        note=FALLBACK_NOTE,
    )


def evaluate_answer(
    question_text: str,
    answer: str,
    *,
    route: LlmRoute,
    client: Optional[HttpClient] = None,
) -> TheoreticalEvaluation:
    prompt = evaluation.build_evaluation_prompt(question_text, answer)
    fallback = fallback_evaluation()
    result = invoke(prompt, evaluation.REQUIRED_KEYS, fallback, cfg=route, client=client)
    if result is fallback:
        _degraded(EVALUATION_TASK, route, "gateway fallback")
        return fallback

    data = _tag(result, evaluation.VERSION)
    score = _score(data.get("score"))
    if score is None:
        _degraded(EVALUATION_TASK, route, "non-numeric score")
        return fallback_evaluation()
    return TheoreticalEvaluation(
        score=score,
        technical_accuracy=_text(data.get("technicalAccuracy")),
        clarity=_text(data.get("clarity")),
        depth=_text(data.get("depth")),
        strengths=_str_list(data.get("strengths")),
        weaknesses=_str_list(data.get("weaknesses")),
        improvements=_str_list(data.get("improvements")),
        generic_flags=_str_list(data.get("genericFlags")),
        prompt_version=data["promptVersion"],
    )


def evaluate_code_submission(
    question_text: str,
    code: str,
    language: str,
    *,
    route: LlmRoute,
    client: Optional[HttpClient] = None,
) -> CodingEvaluation:
    prompt = coding.build_coding_prompt(question_text, code, language)
    fallback = fallback_coding_evaluation()
    result = invoke(prompt, coding.REQUIRED_KEYS, fallback, cfg=route, client=client)
    if result is fallback:
        _degraded(CODING_TASK, route, "gateway fallback")
        return fallback

    data = _tag(result, coding.VERSION)
    logic = _score(data.get("logicScore"))
    readability = _score(data.get("readabilityScore"))
    if logic is None or readability is None:
        _degraded(CODING_TASK, route, "non-numeric sub-score")
        return fallback_coding_evaluation()
    return CodingEvaluation(
        logic_score=logic,
        readability_score=readability,
        edge_case_handling=_text(data.get("edgeCaseHandling")),
        time_complexity=_text(data.get("timeComplexity")),
        space_complexity=_text(data.get("spaceComplexity")),
        improvement_suggestions=_str_list(data.get("improvementSuggestions")),
        generic_flags=_str_list(data.get("genericFlags")),
        prompt_version=data["promptVersion"],
    )


# ---------------------------------------------------------------------------
# Resume extraction and skill-gap report
# ---------------------------------------------------------------------------

def extract_resume(
    text: str,
    *,
    route: LlmRoute,
    client: Optional[HttpClient] = None,
) -> Optional[ResumeProfile]:
    """Structured resume profile, or None when the text is not a resume or the oracle failed."""

    result = invoke(resume.build_resume_prompt(text), resume.REQUIRED_KEYS, None, cfg=route, client=client)
    if result is None:
        _degraded(RESUME_TASK, route, "no oracle result")
        return None
    if result.get("isResume") is not True:
        logger.info("Resume rejected by oracle confidence=%s", result.get("confidence"))
        return None
    return ResumeProfile(
        skills=_str_list(result.get("skills")),
        technologies=_str_list(result.get("technologies")),
        experience_years=max(0.0, _number(result.get("experienceYears"), 0.0) or 0.0),
        education=_str_list(result.get("education")),
        primary_domain=_text(result.get("primaryDomain"), "General"),
    )


def generate_skill_gap_report(
    summary: SkillSummary,
    *,
    route: LlmRoute,
    client: Optional[HttpClient] = None,
) -> Optional[SkillGapReport]:
    prompt = evaluation.build_skill_gap_prompt(summary)
    result = invoke(prompt, evaluation.SKILL_GAP_REQUIRED_KEYS, None, cfg=route, client=client)
    if result is None:
        _degraded(SKILL_GAP_TASK, route, "no oracle result")
        return None
    weeks = _number(result.get("estimatedRoadmapWeeks"), 0.0)
    try:
        return SkillGapReport(
            strongest_skills=_str_list(result.get("strongestSkills")),
            weakest_skills=_str_list(result.get("weakestSkills")),
            recommended_focus_areas=_str_list(result.get("recommendedFocusAreas")),
            learning_suggestions=_str_list(result.get("learningSuggestions")),
            estimated_roadmap_weeks=round(weeks) if weeks is not None else 0,
            summary=_text(result.get("summary")),
        )
    except ValidationError as exc:
        _degraded(SKILL_GAP_TASK, route, f"invalid report: {exc.error_count()} errors")
        return None


# ---------------------------------------------------------------------------
# Config-driven helpers
# ---------------------------------------------------------------------------

def _route_for(task: str, config_path: Path) -> LlmRoute:
    return load_app_registry(config_path, [task])[task]


def generate_questions_with_config(context: QuestionContext, *, config_path: Path) -> Optional[List[Question]]:
    return generate_interview_questions(context, route=_route_for(QUESTIONS_TASK, config_path))


def evaluate_answer_with_config(question_text: str, answer: str, *, config_path: Path) -> TheoreticalEvaluation:
    return evaluate_answer(question_text, answer, route=_route_for(EVALUATION_TASK, config_path))


def evaluate_code_with_config(
    question_text: str,
    code: str,
    language: str,
    *,
    config_path: Path,
) -> CodingEvaluation:
    return evaluate_code_submission(question_text, code, language, route=_route_for(CODING_TASK, config_path))


def extract_resume_with_config(text: str, *, config_path: Path) -> Optional[ResumeProfile]:
    return extract_resume(text, route=_route_for(RESUME_TASK, config_path))


def skill_gap_report_with_config(summary: SkillSummary, *, config_path: Path) -> Optional[SkillGapReport]:
    return generate_skill_gap_report(summary, route=_route_for(SKILL_GAP_TASK, config_path))


__all__ = [
    "CODING_TASK",
    "EVALUATION_TASK",
    "QUESTIONS_TASK",
    "RESUME_TASK",
    "SKILL_GAP_TASK",
    "SkillGapReport",
    "evaluate_answer",
    "evaluate_answer_with_config",
    "evaluate_code_submission",
    "evaluate_code_with_config",
    "extract_resume",
    "extract_resume_with_config",
    "fallback_coding_evaluation",
    "fallback_evaluation",
    "fallback_questions",
    "generate_interview_questions",
    "generate_questions_with_config",
    "generate_skill_gap_report",
    "normalize_question",
    "normalize_questions_payload",
    "skill_gap_report_with_config",
]
