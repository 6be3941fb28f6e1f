import pytest

from config.routes import LlmRoute
from engines.types import CodingEvaluation, SessionClosedError, SkillPerformanceEntry, TheoreticalEvaluation
from prompts.question import QuestionContext
from services import interview_flow, oracle
from storage import SqliteSessionStore

from factories import BASE_TIME, make_metrics, make_question

ROUTE = LlmRoute(name="test", base_url="http://oracle.local", endpoint="/chat", model="m", pacing_delay_s=0.0)

DETAILED = (
    "An index is a separate sorted structure, usually a B-tree, that lets the database find rows "
    "without scanning the whole table, at the cost of slower writes."
)


@pytest.fixture
def store(tmp_db):
    return SqliteSessionStore(tmp_db)


def _score_with(monkeypatch, *scores):
    pending = list(scores)
    seen = []

    def fake_evaluate(question_text, answer, *, route, client=None):
        seen.append((question_text, answer))
        return TheoreticalEvaluation(score=pending.pop(0))

    monkeypatch.setattr(oracle, "evaluate_answer", fake_evaluate)
    return seen


def test_start_session_persists(store):
    state = interview_flow.start_session("cand-1", repository=store)
    assert state.status == "in-progress"
    assert state.difficulty == "medium"
    assert store.get(state.session_id).candidate_id == "cand-1"


def test_submit_answer_records_and_persists(monkeypatch, store):
    seen = _score_with(monkeypatch, 9.0, 8.5)
    state = interview_flow.start_session("cand-1", repository=store)
    question = make_question("What is an index?", topic="databases")

    result = interview_flow.submit_answer(
        state, question, DETAILED, route=ROUTE, metrics=make_metrics(), repository=store
    )
    assert seen == [("What is an index?", DETAILED)]
    assert result.score == 9.0
    assert result.next_difficulty == "hard"
    assert result.reliability.evaluation_reliability == 1.0
    assert result.answer.interaction_metrics.edit_count == 1

    stored = store.get(state.session_id)
    assert len(stored.answers) == 1
    assert stored.difficulty == "hard"
    assert stored.skill_performance["databases"].score == 9.0

    second = interview_flow.submit_answer(state, question, DETAILED, route=ROUTE, repository=store)
    assert second.next_difficulty == "hard"
    assert len(store.get(state.session_id).answers) == 2


def test_unstable_scores_lower_reliability(monkeypatch):
    _score_with(monkeypatch, 1.0, 9.0)
    state = interview_flow.start_session("cand-1")
    question = make_question("What is an index?", topic="databases")
    interview_flow.submit_answer(state, question, DETAILED, route=ROUTE)
    result = interview_flow.submit_answer(state, question, DETAILED, route=ROUTE)
    assert result.reliability.evaluation_reliability == pytest.approx(0.8)


def test_coding_submission_defaults_language(monkeypatch):
    calls = []

    def fake_code(question_text, code, language, *, route, client=None):
        calls.append(language)
        return CodingEvaluation(logic_score=8, readability_score=7, edge_case_handling="good")

    monkeypatch.setattr(oracle, "evaluate_code_submission", fake_code)
    state = interview_flow.start_session("cand-1")
    question = make_question("Reverse a list", topic="arrays", is_coding=True)

    result = interview_flow.submit_answer(state, question, "const r = a => a.reverse()", route=ROUTE)
    assert calls == ["javascript"]
    assert result.answer.language == "javascript"
    assert result.score == pytest.approx(7.5)

    interview_flow.submit_answer(state, question, "def r(a): return a[::-1]", route=ROUTE, language="python")
    assert calls[-1] == "python"


def test_complete_session_writes_analytics_and_closes(monkeypatch, store):
    _score_with(monkeypatch, 6.0, 8.0)
    state = interview_flow.start_session("cand-1", repository=store)
    for index, topic in enumerate(["sql", "graphs"]):
        question = make_question(f"q{index}", topic=topic)
        interview_flow.submit_answer(state, question, DETAILED, route=ROUTE, repository=store)

    interview_flow.complete_session(state, repository=store)
    stored = store.get(state.session_id)
    assert stored.status == "completed"
    assert stored.completed_at is not None
    assert stored.analytics["average_score"] == pytest.approx(7.0)
    assert stored.analytics["strong_topics"] == ["graphs"]
    assert stored.analytics["weak_topics"] == ["sql"]
    assert [s.session_id for s in store.list_completed("cand-1")] == [state.session_id]

    with pytest.raises(SessionClosedError):
        interview_flow.submit_answer(state, make_question("late"), DETAILED, route=ROUTE)


def test_next_questions_steer_and_rank(monkeypatch):
    state = interview_flow.start_session("cand-1")
    state.questions_asked.append(make_question("earlier", topic="sql"))
    state.skill_performance["graphs"] = SkillPerformanceEntry(topic="graphs", score=3.0, timestamps=[BASE_TIME])
    generated = [
        make_question("g1", topic="sql"),
        make_question("g2", topic="arrays", difficulty="hard"),
        make_question("g3", topic="graphs"),
    ]
    contexts = []

    def fake_generate(context, *, route, client=None):
        contexts.append(context)
        return generated

    monkeypatch.setattr(oracle, "generate_interview_questions", fake_generate)
    picked = interview_flow.next_questions(state, QuestionContext(skills=["Python"], focus_topics=["apis"]), route=ROUTE)

    assert contexts[0].focus_topics == ["apis", "graphs"]
    assert [q.question for q in picked] == ["g3", "g2", "g1"]


def test_next_questions_fall_back_to_templates(monkeypatch):
    monkeypatch.setattr(oracle, "generate_interview_questions", lambda context, *, route, client=None: None)
    state = interview_flow.start_session("cand-1")
    state.difficulty = "easy"

    picked = interview_flow.next_questions(state, QuestionContext(skills=["Python"]), route=ROUTE)
    assert len(picked) == 5
    assert all(q.topic == "Python" and q.difficulty == "easy" for q in picked)
    assert picked[0].question == oracle.FALLBACK_TEMPLATES["technical"][0]
