from __future__ import annotations  # Re-export analytics engine public API

from .adaptive import (  # noqa: F401
    SessionMetrics,
    calculate_session_metrics,
    difficulty_timeline,
    get_next_difficulty,
    identify_weak_skills,
    record_answer,
    recommend_next_topics,
    should_avoid_topic,
    validate_question_metadata,
)
from .behavior_metrics import (  # noqa: F401
    calculate_answer_behavior_metrics,
    calculate_session_behavior_metrics,
    generate_behavior_recommendations,
)
from .coding_evaluation import (  # noqa: F401
    ComplexityRating,
    aggregate_coding_performance,
    answer_score,
    calculate_overall_coding_score,
    rate_complexity,
    score_edge_case_handling,
)
from .evaluation_reliability import calculate_evaluation_reliability  # noqa: F401
from .resume_consistency import (  # noqa: F401
    ConsistencyReport,
    analyze_consistency,
    analyze_topic_averages,
    generate_recommendations,
)
from .trajectory import Trajectory, build_for_history, build_topic_trajectory  # noqa: F401

__all__ = [
    "ComplexityRating",
    "ConsistencyReport",
    "SessionMetrics",
    "Trajectory",
    "aggregate_coding_performance",
    "analyze_consistency",
    "analyze_topic_averages",
    "answer_score",
    "build_for_history",
    "build_topic_trajectory",
    "calculate_answer_behavior_metrics",
    "calculate_evaluation_reliability",
    "calculate_overall_coding_score",
    "calculate_session_behavior_metrics",
    "calculate_session_metrics",
    "difficulty_timeline",
    "generate_behavior_recommendations",
    "generate_recommendations",
    "get_next_difficulty",
    "identify_weak_skills",
    "rate_complexity",
    "record_answer",
    "recommend_next_topics",
    "score_edge_case_handling",
    "should_avoid_topic",
    "validate_question_metadata",
]
