import pytest

from engines.skill_scoring import (
    aggregate_session_scores,
    calculate_consistency,
    calculate_difficulty_breakdown,
    calculate_learning_velocity,
    calculate_skill_breakdown,
    get_skill_level,
    identify_strengths_and_weaknesses,
    readiness_overview,
    skill_details,
    topic_averages,
)

from factories import make_answer, make_question, make_session


@pytest.fixture
def history():
    return [
        make_session("b", [("SQL", 9.0), ("graphs", 6.0)], days=1),
        make_session("a", [("sql", 8.0), ("graphs", 4.0)], days=0),
        make_session("c", [("sql", 1.0)], days=2, status="in-progress"),
    ]


def test_skill_breakdown_groups_by_topic():
    session = make_session("s", [("sql", 9.0), ("sql", 5.0), ("graphs", 3.0)])
    session.answers.append(make_answer("not asked", 10.0))
    breakdown = calculate_skill_breakdown(session)
    assert breakdown.average_by_topic == {"sql": pytest.approx(7.0), "graphs": pytest.approx(3.0)}
    assert breakdown.skill_levels == {"sql": "Proficient", "graphs": "Novice"}
    assert len(breakdown.topic_scores["sql"]) == 2


@pytest.mark.parametrize(
    "avg,level",
    [(8.5, "Expert"), (7.0, "Proficient"), (6.0, "Intermediate"), (4.5, "Beginner"), (1.0, "Novice")],
)
def test_skill_levels(avg, level):
    assert get_skill_level(avg) == level


def test_aggregate_session_scores(history):
    aggregate = aggregate_session_scores(history)
    assert aggregate.session_count == 2
    assert aggregate.overall_score == pytest.approx(6.75)
    assert aggregate.theoretical_score == pytest.approx(6.75)
    assert aggregate.coding_score == 0.0
    assert [p.score for p in aggregate.improvement_trend] == [pytest.approx(6.0), pytest.approx(7.5)]
    assert [p.session_number for p in aggregate.improvement_trend] == [1, 2]


def test_velocity_and_consistency(history):
    assert calculate_learning_velocity(history) == pytest.approx(1.5)
    assert calculate_consistency(history) == pytest.approx(9.25)
    assert calculate_learning_velocity(history[:1]) == 0.0
    assert calculate_consistency([]) == 0.0


def test_difficulty_breakdown():
    session = make_session("s", [("sql", 6.0), ("sql", 8.0)])
    session.questions_asked.append(make_question("hard one", difficulty="hard"))
    session.answers.append(make_answer("hard one", 3.0))
    stats = calculate_difficulty_breakdown(session)
    assert stats["medium"].attempted == 2
    assert stats["medium"].avg_score == pytest.approx(7.0)
    assert stats["medium"].max_score == 8.0
    assert stats["hard"].min_score == 3.0
    assert stats["easy"].attempted == 0


def test_topic_averages_are_case_insensitive(history):
    averages = topic_averages(history[:2])
    assert averages["sql"].avg_score == pytest.approx(8.5)
    assert averages["sql"].attempts == 2
    assert averages["graphs"].avg_score == pytest.approx(5.0)


def test_strengths_and_weaknesses(history):
    result = identify_strengths_and_weaknesses([make_session("x", [("dp", 9.0)]), *history[:2]])
    assert [s.skill for s in result.strengths] == ["dp", "SQL", "sql"]
    assert [s.skill for s in result.weaknesses] == ["graphs"]
    graphs = result.weaknesses[0]
    assert graphs.avg_score == pytest.approx(5.0)
    assert graphs.consistency == pytest.approx(1.0)


def test_skill_details(history):
    details = skill_details(history[:2], "SQL")
    assert details.attempts == 2
    assert [a.score for a in details.scores] == [8.0, 9.0]
    assert details.average_score == pytest.approx(8.5)
    assert details.improvement_trend == pytest.approx(1.0)
    assert details.last_attempt_score == 9.0
    assert skill_details(history, "rust").attempts == 0


def test_readiness_overview(history):
    overview = readiness_overview(history)
    assert overview.total_sessions == 2
    assert overview.average_score == pytest.approx(6.75)
    assert overview.consistency_score == pytest.approx(9.25)
    assert overview.learning_velocity == pytest.approx(1.5)
    assert overview.coding_accuracy == 0.0
    assert overview.readiness_score == 5
    assert overview.readiness_percentage == 47
    assert overview.strongest_skill == "sql"
    assert overview.weakest_skill == "graphs"


def test_readiness_without_history():
    overview = readiness_overview([make_session("open", [("sql", 9.0)], status="in-progress")])
    assert overview.total_sessions == 0
    assert overview.strongest_skill == "N/A"
    assert overview.readiness_percentage == 0
