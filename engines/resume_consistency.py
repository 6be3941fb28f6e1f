"""Resume claims versus demonstrated interview performance."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from .skill_scoring import TopicAverage, topic_averages
from .trajectory import completed_in_order
from .types import Recommendation, ResumeProfile, SessionState

logger = logging.getLogger(__name__)

INFLATED_BELOW = 5.0
VERIFIED_FROM = 7.5

INFLATED_PENALTY = 15
WEAK_PENALTY = 8
VERIFIED_BONUS = 10
HIDDEN_BONUS = 5
LOW_CONSISTENCY = 50


class SkillFinding(BaseModel):
    skill: str
    average_score: float
    attempts: int = 0
    recommendation: Optional[str] = None


class SkillComparison(BaseModel):
    claimed: bool = True
    tested: bool
    average_score: Optional[float] = None
    attempts: int = 0
    category: str


class ConsistencyReport(BaseModel):
    resume_consistency_score: int = 0
    inflated_skills: List[SkillFinding] = Field(default_factory=list)
    verified_strengths: List[SkillFinding] = Field(default_factory=list)
    hidden_strengths: List[SkillFinding] = Field(default_factory=list)
    weak_areas: List[SkillFinding] = Field(default_factory=list)
    untested_skills: List[str] = Field(default_factory=list)
    skill_comparison: Dict[str, SkillComparison] = Field(default_factory=dict)
    resume_claim_accuracy: int = 0
    analysis: str = ""


def claimed_skills(resume: ResumeProfile) -> List[str]:
    """Skills plus technologies, first spelling kept, de-duplicated case-insensitively."""

    seen: Dict[str, str] = {}
    for skill in [*resume.skills, *resume.technologies]:
        key = skill.strip().lower()
        if key and key not in seen:
            seen[key] = skill.strip()
    return list(seen.values())


def match_topic(skill: str, averages: Mapping[str, TopicAverage]) -> Optional[str]:
    """Exact case-insensitive match first, then substring containment either way."""

    needle = skill.strip().lower()
    if needle in averages:
        return needle
    for topic in averages:
        if needle in topic or topic in needle:
            return topic
    return None


def categorize_performance(score: float, claimed: bool = True) -> str:
    if score >= 8:
        return "exceptional" if claimed else "outstanding"
    if score >= 7:
        return "verified" if claimed else "strong"
    if score >= 5:
        return "needs-improvement"
    return "inflated" if claimed else "weak"


def _one_dp(value: float) -> float:
    return round(value, 1)


def _consistency_score(report: ConsistencyReport) -> int:
    score = (
        100
        - INFLATED_PENALTY * len(report.inflated_skills)
        - WEAK_PENALTY * len(report.weak_areas)
        + VERIFIED_BONUS * len(report.verified_strengths)
        + HIDDEN_BONUS * len(report.hidden_strengths)
    )
    return max(0, min(100, score))


def _neutral_report() -> ConsistencyReport:
    return ConsistencyReport(analysis="No resume data available")


def analyze_topic_averages(
    claims: Sequence[str],
    averages: Mapping[str, TopicAverage],
) -> ConsistencyReport:
    """Classify each claim against lower-cased topic averages and score the overall fit."""

    if not claims:
        return _neutral_report()

    report = ConsistencyReport()
    matched_topics = set()
    tested = 0
    for skill in claims:
        topic = match_topic(skill, averages)
        if topic is None:
            report.untested_skills.append(skill)
            report.skill_comparison[skill] = SkillComparison(tested=False, category="untested")
            continue

        tested += 1
        matched_topics.add(topic)
        data = averages[topic]
        report.skill_comparison[skill] = SkillComparison(
            tested=True,
            average_score=data.avg_score,
            attempts=data.attempts,
            category=categorize_performance(data.avg_score, claimed=True),
        )
        finding = SkillFinding(skill=skill, average_score=_one_dp(data.avg_score), attempts=data.attempts)
        if data.avg_score < INFLATED_BELOW:
            finding.recommendation = "Remove or study before interviews"
            report.inflated_skills.append(finding)
        elif data.avg_score >= VERIFIED_FROM:
            report.verified_strengths.append(finding)
        else:
            finding.recommendation = "Needs improvement"
            report.weak_areas.append(finding)

    for topic, data in averages.items():
        if topic in matched_topics or data.avg_score < VERIFIED_FROM:
            continue
        report.hidden_strengths.append(
            SkillFinding(
                skill=topic,
                average_score=_one_dp(data.avg_score),
                attempts=data.attempts,
                recommendation="Consider adding to resume",
            )
        )

    report.resume_claim_accuracy = round(tested / len(claims) * 100)
    report.resume_consistency_score = _consistency_score(report)
    report.analysis = (
        f"{tested} of {len(claims)} claimed skills tested; "
        f"{len(report.verified_strengths)} verified, {len(report.inflated_skills)} inflated"
    )
    return report


def analyze_consistency(
    resume: Optional[ResumeProfile],
    sessions: Iterable[SessionState],
) -> ConsistencyReport:
    if resume is None:
        return _neutral_report()
    claims = claimed_skills(resume)
    if not claims:
        return _neutral_report()
    averages = topic_averages(completed_in_order(sessions))
    report = analyze_topic_averages(claims, averages)
    logger.info(
        "Resume consistency score=%d claims=%d topics=%d",
        report.resume_consistency_score,
        len(claims),
        len(averages),
    )
    return report


def _names(findings: Iterable[SkillFinding]) -> str:
    return ", ".join(finding.skill for finding in findings)


def generate_recommendations(report: ConsistencyReport) -> List[Recommendation]:
    recommendations: List[Recommendation] = []
    if report.inflated_skills:
        recommendations.append(
            Recommendation(
                severity="critical",
                type="inflated_skills",
                message=f"Remove or study these inflated skills: {_names(report.inflated_skills)}",
            )
        )
    if report.weak_areas:
        recommendations.append(
            Recommendation(
                severity="warning",
                type="weak_areas",
                message=f"Focus on improving: {_names(report.weak_areas)}",
            )
        )
    if report.hidden_strengths:
        recommendations.append(
            Recommendation(
                severity="suggestion",
                type="hidden_strengths",
                message=f"Consider adding to resume: {_names(report.hidden_strengths)}",
            )
        )
    if report.resume_consistency_score < LOW_CONSISTENCY and report.skill_comparison:
        recommendations.append(
            Recommendation(
                severity="critical",
                type="low_consistency",
                message=(
                    "Low consistency between resume claims and demonstrated performance. "
                    "Consider updating your resume."
                ),
            )
        )
    return recommendations


__all__ = [
    "ConsistencyReport",
    "SkillComparison",
    "SkillFinding",
    "analyze_consistency",
    "analyze_topic_averages",
    "categorize_performance",
    "claimed_skills",
    "generate_recommendations",
    "match_topic",
]
