"""Shared domain models for sessions, answers and evaluations."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

Difficulty = Literal["easy", "medium", "hard"]
DIFFICULTY_LEVELS: tuple[Difficulty, ...] = ("easy", "medium", "hard")

SessionStatus = Literal["in-progress", "completed"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionClosedError(RuntimeError):
    """Raised when a completed session is asked to accept more answers."""


class CodingTestCase(BaseModel):
    input: List[Any] = Field(default_factory=list)
    expected_output: Any = None
    description: str = "Generated test case"


class Question(BaseModel):
    question: str
    difficulty: Difficulty = "medium"
    topic: str = "General"
    domain: str = "General"
    time_limit: int = Field(default=60, gt=0)
    is_coding: bool = False
    test_cases: List[CodingTestCase] = Field(default_factory=list, max_length=5)


class InteractionMetrics(BaseModel):
    time_spent_sec: float = Field(default=0.0, ge=0.0)
    edit_count: int = Field(default=0, ge=0)
    typing_duration_ms: float = Field(default=0.0, ge=0.0)
    idle_time_ms: Optional[float] = Field(default=None, ge=0.0)
    auto_submitted: bool = False


class TheoreticalEvaluation(BaseModel):
    kind: Literal["theoretical"] = "theoretical"
    score: float = Field(ge=0.0, le=10.0)
    technical_accuracy: str = ""
    clarity: str = ""
    depth: str = ""
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    generic_flags: List[str] = Field(default_factory=list)
    prompt_version: str = ""
    fallback: bool = False
    note: Optional[str] = None


class CodingEvaluation(BaseModel):
    kind: Literal["coding"] = "coding"
    logic_score: float = Field(ge=0.0, le=10.0)
    readability_score: float = Field(ge=0.0, le=10.0)
    edge_case_handling: str = ""
    time_complexity: str = ""
    space_complexity: str = ""
    improvement_suggestions: List[str] = Field(default_factory=list)
    generic_flags: List[str] = Field(default_factory=list)
    prompt_version: str = ""
    fallback: bool = False
    note: Optional[str] = None


EvaluationResult = Annotated[
    Union[TheoreticalEvaluation, CodingEvaluation],
    Field(discriminator="kind"),
]


class Answer(BaseModel):
    question: str
    response: str = ""
    is_coding: bool = False
    language: Optional[str] = None
    evaluation: EvaluationResult
    submitted_at: datetime = Field(default_factory=utcnow)
    interaction_metrics: Optional[InteractionMetrics] = None

    @model_validator(mode="after")
    def _kind_matches_flag(self) -> "Answer":  # Evaluation variant must agree with the coding flag
        expected = "coding" if self.is_coding else "theoretical"
        if self.evaluation.kind != expected:
            raise ValueError(
                f"evaluation kind '{self.evaluation.kind}' does not match is_coding={self.is_coding}"
            )
        return self


class SkillPerformanceEntry(BaseModel):
    topic: str
    score: float = Field(ge=0.0, le=10.0)
    timestamps: List[datetime] = Field(default_factory=list)

    @property
    def last_attempt(self) -> Optional[datetime]:
        return self.timestamps[-1] if self.timestamps else None


class SessionState(BaseModel):
    """Per-interview state; ``skill_performance`` holds the last observed score per topic."""

    session_id: str
    candidate_id: str = ""
    status: SessionStatus = "in-progress"
    created_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    difficulty: Difficulty = "medium"
    skill_performance: Dict[str, SkillPerformanceEntry] = Field(default_factory=dict)
    questions_asked: List[Question] = Field(default_factory=list)
    answers: List[Answer] = Field(default_factory=list)
    analytics: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"validate_assignment": True}

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def average_score(self) -> float:
        from engines.coding_evaluation import answer_score

        if not self.answers:
            return 0.0
        return sum(answer_score(answer) for answer in self.answers) / len(self.answers)

    def find_question(self, text: str) -> Optional[Question]:
        """Join an answer to its question by exact text."""

        for question in self.questions_asked:
            if question.question == text:
                return question
        return None

    def complete(self) -> None:
        if not self.is_completed:
            self.status = "completed"
            self.completed_at = utcnow()


class ResumeProfile(BaseModel):
    skills: List[str] = Field(default_factory=list)
    technologies: List[str] = Field(default_factory=list)
    experience_years: float = 0.0
    education: List[str] = Field(default_factory=list)
    primary_domain: str = "General"

    @field_validator("skills", "technologies", "education", mode="before")
    @classmethod
    def _drop_blank(cls, value: Any) -> List[str]:  # Oracle lists may hold nulls or blanks
        if not isinstance(value, list):
            return []
        return [str(item).strip() for item in value if item is not None and str(item).strip()]


class Recommendation(BaseModel):
    severity: Literal["critical", "high", "warning", "medium", "suggestion", "low", "positive"]
    message: str
    type: str = "general"


__all__ = [
    "Answer",
    "CodingEvaluation",
    "DIFFICULTY_LEVELS",
    "Difficulty",
    "EvaluationResult",
    "InteractionMetrics",
    "Question",
    "Recommendation",
    "ResumeProfile",
    "SessionClosedError",
    "SessionState",
    "SessionStatus",
    "SkillPerformanceEntry",
    "CodingTestCase",
    "TheoreticalEvaluation",
    "utcnow",
]
