"""Answer submission flow: evaluate, record, and persist one interview step at a time."""
from __future__ import annotations

import logging
import uuid
from typing import List, Optional, Sequence

from pydantic import BaseModel

from config import LlmRoute
from engines.adaptive import record_answer, recommend_next_topics, should_avoid_topic
from engines.coding_evaluation import answer_score
from engines.evaluation_reliability import ReliabilityScore, calculate_evaluation_reliability
from engines.types import (
    Answer,
    Difficulty,
    InteractionMetrics,
    Question,
    SessionClosedError,
    SessionState,
)
from llm_gateway import HttpClient
from observability.logger import log_event
from prompts.question import QuestionContext
from storage.sessions import SessionRepository

from . import analytics, oracle

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "javascript"


class SubmissionResult(BaseModel):
    answer: Answer
    score: float
    next_difficulty: Difficulty
    reliability: ReliabilityScore


def start_session(candidate_id: str, *, repository: Optional[SessionRepository] = None) -> SessionState:
    """Create a new in-progress session at medium difficulty."""

    state = SessionState(session_id=str(uuid.uuid4()), candidate_id=candidate_id)
    if repository is not None:
        repository.save(state)
    log_event("session_started", state.session_id, candidate=candidate_id)
    return state


def _pick_questions(state: SessionState, candidates: Sequence[Question]) -> List[Question]:
    # Current difficulty first, recently asked topics last.
    def rank(question: Question) -> tuple:
        return (
            should_avoid_topic(state.questions_asked, question.topic),
            question.difficulty != state.difficulty,
        )

    return sorted(candidates, key=rank)


def next_questions(
    state: SessionState,
    context: QuestionContext,
    *,
    route: LlmRoute,
    history: Sequence[SessionState] = (),
    client: Optional[HttpClient] = None,
) -> List[Question]:
    """Generate the next question set, steered toward weak topics; template questions on failure."""

    focus = recommend_next_topics(state.skill_performance, history)
    steered = context.model_copy(update={"focus_topics": [*context.focus_topics, *focus]})
    generated = oracle.generate_interview_questions(steered, route=route, client=client)
    if generated is None:
        topic = focus[0] if focus else (context.skills[0] if context.skills else "General")
        logger.warning("Question generation failed session=%s; using templates topic=%s", state.session_id, topic)
        return oracle.fallback_questions(topic, state.difficulty)
    return _pick_questions(state, generated)


def submit_answer(
    state: SessionState,
    question: Question,
    response: str,
    *,
    route: LlmRoute,
    language: Optional[str] = None,
    metrics: Optional[InteractionMetrics] = None,
    repository: Optional[SessionRepository] = None,
    client: Optional[HttpClient] = None,
) -> SubmissionResult:
    """Evaluate ``response`` through the oracle, apply it to the session and persist the session."""

    if state.is_completed:
        raise SessionClosedError(f"Session {state.session_id} is completed")

    if question.is_coding:
        language = language or DEFAULT_LANGUAGE
        evaluation = oracle.evaluate_code_submission(
            question.question,
            response,
            language,
            route=route,
            client=client,
        )
    else:
        evaluation = oracle.evaluate_answer(question.question, response, route=route, client=client)

    answer = Answer(
        question=question.question,
        response=response,
        is_coding=question.is_coding,
        language=language if question.is_coding else None,
        evaluation=evaluation,
        interaction_metrics=metrics,
    )
    previous: List[float] = []
    for prior in state.answers:
        asked = state.find_question(prior.question)
        if asked is not None and asked.topic == question.topic:
            previous.append(answer_score(prior))
    next_difficulty = record_answer(state, question, answer)
    score = answer_score(answer)
    reliability = calculate_evaluation_reliability(response, [*previous, score])

    if repository is not None:
        repository.save(state)
    log_event(
        "answer_evaluated",
        state.session_id,
        topic=question.topic,
        score=score,
        fallback=evaluation.fallback,
        reliability=reliability.evaluation_reliability,
    )
    return SubmissionResult(answer=answer, score=score, next_difficulty=next_difficulty, reliability=reliability)


def complete_session(state: SessionState, *, repository: Optional[SessionRepository] = None) -> SessionState:
    """Mark the session completed and write its computed analytics back."""

    state.complete()
    state.analytics = {**state.analytics, **analytics.session_analytics_fields(state)}
    if repository is not None:
        repository.save(state)
    log_event("session_completed", state.session_id, count=len(state.answers))
    return state


__all__ = ["SubmissionResult", "complete_session", "next_questions", "start_session", "submit_answer"]
