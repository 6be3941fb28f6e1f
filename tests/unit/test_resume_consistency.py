import pytest

from engines.resume_consistency import (
    analyze_consistency,
    analyze_topic_averages,
    categorize_performance,
    claimed_skills,
    generate_recommendations,
    match_topic,
)
from engines.skill_scoring import TopicAverage
from engines.types import ResumeProfile

from factories import make_session


def _averages(**scores):
    return {topic: TopicAverage(avg_score=score, attempts=1) for topic, score in scores.items()}


def test_verified_untested_and_hidden_skills():
    report = analyze_topic_averages(["React", "Rust"], _averages(react=8.0, docker=8.0))
    assert [f.skill for f in report.verified_strengths] == ["React"]
    assert report.untested_skills == ["Rust"]
    assert [f.skill for f in report.hidden_strengths] == ["docker"]
    assert report.hidden_strengths[0].recommendation == "Consider adding to resume"
    assert report.resume_claim_accuracy == 50
    assert report.resume_consistency_score == 100
    assert report.skill_comparison["React"].category == "exceptional"
    assert report.skill_comparison["Rust"].tested is False
    assert report.analysis == "1 of 2 claimed skills tested; 1 verified, 0 inflated"


def test_weak_and_inflated_claims_reduce_score():
    report = analyze_topic_averages(["sql", "graphs", "http"], _averages(sql=4.0, graphs=6.0, http=7.5))
    assert [f.skill for f in report.inflated_skills] == ["sql"]
    assert [f.skill for f in report.weak_areas] == ["graphs"]
    assert [f.skill for f in report.verified_strengths] == ["http"]
    assert report.resume_consistency_score == 100 - 15 - 8 + 10
    assert report.inflated_skills[0].recommendation == "Remove or study before interviews"


def test_score_is_clamped_at_zero():
    claims = [f"skill{i}" for i in range(7)]
    report = analyze_topic_averages(claims, _averages(**{c: 2.0 for c in claims}))
    assert len(report.inflated_skills) == 7
    assert report.resume_consistency_score == 0
    kinds = [r.type for r in generate_recommendations(report)]
    assert kinds == ["inflated_skills", "low_consistency"]


def test_substring_topic_matching():
    averages = _averages(**{"react hooks": 6.0, "sql": 9.0})
    assert match_topic("React", averages) == "react hooks"
    assert match_topic("SQL", averages) == "sql"
    assert match_topic("PostgreSQL", averages) == "sql"
    assert match_topic("Kotlin", averages) is None


def test_claims_dedupe_case_insensitively():
    resume = ResumeProfile(skills=["Python", "python ", "SQL"], technologies=["Docker", "sql", None, ""])
    assert claimed_skills(resume) == ["Python", "SQL", "Docker"]


@pytest.mark.parametrize(
    "score,claimed,category",
    [
        (8.0, True, "exceptional"),
        (8.0, False, "outstanding"),
        (7.0, True, "verified"),
        (7.0, False, "strong"),
        (5.0, True, "needs-improvement"),
        (4.9, True, "inflated"),
        (4.9, False, "weak"),
    ],
)
def test_categorize_performance(score, claimed, category):
    assert categorize_performance(score, claimed) == category


def test_missing_resume_gives_neutral_report():
    for resume in (None, ResumeProfile()):
        report = analyze_consistency(resume, [make_session("s", [("sql", 9.0)])])
        assert report.resume_consistency_score == 0
        assert report.analysis == "No resume data available"
        assert generate_recommendations(report) == []


def test_consistency_over_completed_sessions_only():
    sessions = [
        make_session("a", [("Python", 8.0)], days=0),
        make_session("b", [("python", 9.0)], days=1),
        make_session("c", [("python", 1.0)], days=2, status="in-progress"),
    ]
    report = analyze_consistency(ResumeProfile(skills=["Python"]), sessions)
    assert report.verified_strengths[0].average_score == 8.5
    assert report.verified_strengths[0].attempts == 2
    assert report.resume_consistency_score == 100


def test_recommendations_cover_weak_and_hidden():
    report = analyze_topic_averages(["graphs"], _averages(graphs=6.0, docker=9.0))
    recommendations = generate_recommendations(report)
    assert [(r.severity, r.type) for r in recommendations] == [
        ("warning", "weak_areas"),
        ("suggestion", "hidden_strengths"),
    ]
    assert recommendations[1].message.endswith("docker")


def test_five_inflated_claims_stay_positive():
    claims = [f"skill{i}" for i in range(5)]
    report = analyze_topic_averages(claims, _averages(**{c: 1.0 for c in claims}))
    assert report.resume_consistency_score == 25
    assert report.verified_strengths == []
