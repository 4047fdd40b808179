"""Deterministic weighted scoring of a ResumeAnalysis against JobRequirements."""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .models import (
    DegreeLevel,
    Education,
    JobRequirements,
    MatchDetails,
    MatchScore,
    Recommendation,
    ResumeAnalysis,
    SkillSet,
    clamp_score,
)
from .skills import DEFAULT_SKILL_RESOURCES, SKILL_RESOURCES

DEFAULT_WEIGHTS: Dict[str, float] = {
    "skills": 0.40,
    "experience": 0.30,
    "education": 0.15,
    "professionalism": 0.10,
    "completeness": 0.05,
}

# Lower bounds, checked top to bottom.
RECOMMENDATION_TIERS: Tuple[Tuple[int, Recommendation], ...] = (
    (85, Recommendation("Highly Recommended", "green", "Schedule Interview", 1)),
    (70, Recommendation("Recommended", "blue", "Review Further", 2)),
    (50, Recommendation("Potential", "yellow", "Consider for Other Roles", 3)),
)
NOT_RECOMMENDED = Recommendation("Not Recommended", "red", "Archive", 4)


def get_recommendation(score: float) -> Recommendation:
    for threshold, recommendation in RECOMMENDATION_TIERS:
        if score >= threshold:
            return recommendation
    return NOT_RECOMMENDED


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def skills_overlap(candidate_skill: str, required_skill: str) -> bool:
    """Case-insensitive containment in either direction ("java" matches "javascript")."""
    candidate = candidate_skill.lower().strip()
    required = required_skill.lower().strip()
    if not candidate or not required:
        return False
    return candidate == required or required in candidate or candidate in required


def split_required_skills(
    required_skills: Sequence[str], candidate_skills: Sequence[str]
) -> Tuple[List[str], List[str]]:
    matched: List[str] = []
    missing: List[str] = []
    for skill in required_skills:
        if any(skills_overlap(candidate, skill) for candidate in candidate_skills):
            matched.append(skill)
        else:
            missing.append(skill)
    return matched, missing


def skill_importance(index: int) -> int:
    if index < 3:
        return 3
    if index < 6:
        return 2
    return 1


@dataclass(frozen=True)
class RankedCandidate:
    candidate_id: str
    analysis: ResumeAnalysis
    match_score: MatchScore
    rank: int

    @property
    def recommendation(self) -> Recommendation:
        return self.match_score.recommendation


class ScoringEngine:
    def __init__(self, weights: Optional[Dict[str, float]] = None):
        self.weights = dict(weights or DEFAULT_WEIGHTS)

    def score(self, analysis: ResumeAnalysis, job: JobRequirements) -> MatchScore:
        breakdown = {
            "skills": self.calculate_skills_score(analysis.skills, job.skills),
            "experience": self.calculate_experience_score(analysis.experience.total_years, job),
            "education": self.calculate_education_score(analysis.education, job.education),
            "professionalism": float(analysis.sentiment.professionalism_score),
            "completeness": float(self.calculate_completeness_score(analysis)),
        }

        total = sum(breakdown[key] * weight for key, weight in self.weights.items())
        overall = int(clamp_score(round_half_up(total)))
        return MatchScore(
            overall_score=overall,
            match_details=self.get_match_details(analysis, job),
            recommendation=get_recommendation(overall),
            breakdown=breakdown,
        )

    def calculate_skills_score(self, skills: SkillSet, required_skills: Sequence[str]) -> float:
        if not required_skills:
            return 70.0 if skills.total_skills > 0 else 30.0

        candidate_skills = skills.flatten()
        matched_weight = 0
        total_weight = 0
        for index, skill in enumerate(required_skills):
            importance = skill_importance(index)
            total_weight += importance
            if any(skills_overlap(candidate, skill) for candidate in candidate_skills):
                matched_weight += importance

        score = (matched_weight / total_weight) * 100
        bonus = min(len(candidate_skills) - len(required_skills), 10)
        if bonus > 0:
            score += bonus
        return min(100.0, score)

    def calculate_experience_score(self, years: float, job: JobRequirements) -> float:
        minimum = job.min_experience
        maximum = job.max_experience
        if minimum <= years <= maximum:
            return 100.0
        if years < minimum:
            return max(20.0, (years / minimum) * 100)
        return max(60.0, 100 - (years - maximum) * 5)

    def calculate_education_score(self, education: Education, required: DegreeLevel) -> float:
        candidate = education.highest_level
        if candidate is None:
            return 40.0
        if candidate >= required:
            return 100.0
        return (int(candidate) / int(required)) * 100

    def calculate_completeness_score(self, analysis: ResumeAnalysis) -> int:
        contact = analysis.contact
        checks = (
            (bool(contact.name), 15),
            (bool(contact.email), 20),
            (bool(contact.phone), 10),
            (analysis.experience.total_years > 0, 15),
            (bool(analysis.education.degrees), 15),
            (analysis.skills.total_skills > 5, 15),
            (bool(contact.linkedin or contact.github), 10),
        )
        return sum(points for passed, points in checks if passed)

    def get_match_details(self, analysis: ResumeAnalysis, job: JobRequirements) -> MatchDetails:
        matched, missing = split_required_skills(job.skills, analysis.skills.flatten())
        candidate_degree = analysis.education.highest_level
        if job.skills:
            percentage = round_half_up(len(matched) / len(job.skills) * 100)
        else:
            percentage = 100
        return MatchDetails(
            skills_match=matched,
            missing_skills=missing,
            experience_match=analysis.experience.total_years >= job.min_experience,
            education_match=candidate_degree is not None and candidate_degree >= job.education,
            skill_match_percentage=percentage,
        )

    def rank_candidates(
        self, candidates: Sequence[Tuple[str, ResumeAnalysis]], job: JobRequirements
    ) -> List[RankedCandidate]:
        scored = [
            (candidate_id, analysis, self.score(analysis, job))
            for candidate_id, analysis in candidates
        ]
        # sorted() is stable, ties keep submission order
        scored = sorted(scored, key=lambda item: item[2].overall_score, reverse=True)
        return [
            RankedCandidate(candidate_id, analysis, match_score, rank)
            for rank, (candidate_id, analysis, match_score) in enumerate(scored, start=1)
        ]

    def analyze_skill_gaps(self, analysis: ResumeAnalysis, job: JobRequirements) -> Dict[str, object]:
        details = self.get_match_details(analysis, job)
        required = set(job.skills)
        return {
            "matchedSkills": details.skills_match,
            "missingSkills": details.missing_skills,
            "additionalSkills": [skill for skill in analysis.skills.flatten() if skill not in required],
            "recommendations": [
                {
                    "skill": skill,
                    "suggestion": f"Consider upskilling in {skill}",
                    "resources": list(SKILL_RESOURCES.get(skill.lower(), DEFAULT_SKILL_RESOURCES)),
                }
                for skill in details.missing_skills
            ],
        }
