from engines.behavior_metrics import calculate_session_behavior_metrics
from engines.coding_evaluation import aggregate_coding_performance
from engines.resume_consistency import analyze_consistency
from engines.trajectory import build_for_history
from engines.types import ResumeProfile
from services import analytics

from factories import make_coding_answer, make_metrics, make_question, make_session


def _history():
    newer = make_session("b", [("sql", 9.0), ("graphs", 6.0)], days=1)
    older = make_session("a", [("sql", 8.0), ("graphs", 4.0)], days=0)
    older.answers[0].interaction_metrics = make_metrics(edits=4, auto=True)
    older.questions_asked.append(make_question("a coding", topic="sql", is_coding=True))
    older.answers.append(make_coding_answer("a coding", 7, 6, "partial", suggestions=["Add tests"]))
    open_session = make_session("open", [("sql", 1.0)], days=2, status="in-progress")
    return [newer, older, open_session]


def test_analytics_leave_sessions_untouched():
    sessions = _history()
    snapshot = [s.model_dump() for s in sessions]
    answers = [answer for s in sessions for answer in s.answers]

    analytics.full_report(sessions)
    analytics.overview(sessions)
    analytics.trajectories(sessions)
    analytics.skill_gap_summary(sessions)
    build_for_history(sessions)
    analyze_consistency(ResumeProfile(skills=["SQL", "Rust"]), sessions)
    calculate_session_behavior_metrics(answers)
    aggregate_coding_performance(answers)
    for session in sessions:
        analytics.session_report(session)

    assert [s.session_id for s in sessions] == ["b", "a", "open"]
    assert [s.model_dump() for s in sessions] == snapshot
