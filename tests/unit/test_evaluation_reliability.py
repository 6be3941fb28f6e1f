import pytest

from engines.evaluation_reliability import calculate_evaluation_reliability, generic_phrases

DETAILED = (
    "A hash map stores key/value pairs in buckets chosen by hashing the key; lookups are O(1) on average "
    "and collisions are resolved by chaining or open addressing."
)


def test_detailed_stable_response_is_fully_reliable():
    result = calculate_evaluation_reliability(DETAILED, [7.0, 7.5])
    assert result.evaluation_reliability == 1.0
    assert result.ai_confidence_score == 100
    assert result.generic_flags == []
    assert result.response_length == len(DETAILED)


def test_short_generic_response_is_penalized():
    result = calculate_evaluation_reliability("Good answer, it depends.")
    assert result.generic_flags == ["good answer", "it depends"]
    assert result.evaluation_reliability == pytest.approx(0.49)
    assert result.ai_confidence_score == 49


def test_medium_length_penalty():
    result = calculate_evaluation_reliability("x" * 60)
    assert result.evaluation_reliability == pytest.approx(0.8)


def test_unstable_repeat_scores_are_penalized():
    assert calculate_evaluation_reliability(DETAILED, [2.0, 9.0]).evaluation_reliability == pytest.approx(0.8)
    assert calculate_evaluation_reliability(DETAILED, [4.0, 8.0]).evaluation_reliability == pytest.approx(0.9)


def test_generic_penalty_is_capped():
    text = "In general it depends; a good answer follows best practice and industry standard scalable optimize steps."
    result = calculate_evaluation_reliability(text)
    assert len(result.generic_flags) == 7
    assert result.evaluation_reliability == pytest.approx(0.75)


def test_generic_phrases_case_insensitive():
    assert generic_phrases("This is SCALABLE") == ["scalable"]
    assert generic_phrases("") == []
