"""Canonical shapes shared by both analysis paths and the scoring engine."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional

from .errors import ValidationError

SKILL_CATEGORIES = (
    "programming",
    "frontend",
    "backend",
    "database",
    "cloud",
    "ml_ai",
    "soft_skills",
    "other",
)

SEVERITIES = ("low", "medium", "high")


class ExperienceLevel(str, Enum):
    ENTRY = "Entry Level"
    JUNIOR = "Junior"
    MID = "Mid-Level"
    SENIOR = "Senior"
    LEAD = "Lead/Staff"
    PRINCIPAL = "Principal/Director"

    @property
    def rank(self) -> int:
        return list(ExperienceLevel).index(self)


LEADERSHIP_LEVELS = {ExperienceLevel.SENIOR, ExperienceLevel.LEAD, ExperienceLevel.PRINCIPAL}


def categorize_experience_level(years: float) -> ExperienceLevel:
    if years <= 0:
        return ExperienceLevel.ENTRY
    if years <= 2:
        return ExperienceLevel.JUNIOR
    if years <= 5:
        return ExperienceLevel.MID
    if years <= 8:
        return ExperienceLevel.SENIOR
    if years <= 12:
        return ExperienceLevel.LEAD
    return ExperienceLevel.PRINCIPAL


class DegreeLevel(IntEnum):
    DIPLOMA = 1
    ASSOCIATE = 2
    BACHELORS = 3
    MASTERS = 4
    PHD = 5

    @property
    def label(self) -> str:
        return DEGREE_LABELS[self]

    @classmethod
    def from_label(cls, label: Optional[str]) -> Optional["DegreeLevel"]:
        if not label:
            return None
        normalized = str(label).strip().lower()
        for level, name in DEGREE_LABELS.items():
            if name.lower() == normalized:
                return level
        return None


DEGREE_LABELS = {
    DegreeLevel.DIPLOMA: "Diploma",
    DegreeLevel.ASSOCIATE: "Associate",
    DegreeLevel.BACHELORS: "Bachelors",
    DegreeLevel.MASTERS: "Masters",
    DegreeLevel.PHD: "PhD",
}

NO_DEGREE = "Not specified"


def clamp_score(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class Flag:
    type: str
    message: str
    severity: str = "low"

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type, "message": self.message, "severity": self.severity}


@dataclass(frozen=True)
class ContactInfo:
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "location": self.location,
            "linkedin": self.linkedin,
            "github": self.github,
        }


@dataclass(frozen=True)
class SkillSet:
    categorized: Dict[str, List[str]] = field(default_factory=dict)
    keywords: List[str] = field(default_factory=list)

    @property
    def total_skills(self) -> int:
        return sum(len(skills) for skills in self.categorized.values())

    def flatten(self) -> List[str]:
        flat: List[str] = []
        for category in SKILL_CATEGORIES:
            flat.extend(self.categorized.get(category, []))
        for category, skills in self.categorized.items():
            if category not in SKILL_CATEGORIES:
                flat.extend(skills)
        return flat

    def to_dict(self) -> Dict[str, Any]:
        return {
            "categorized": {key: list(value) for key, value in self.categorized.items()},
            "keywords": list(self.keywords),
            "totalSkills": self.total_skills,
        }


@dataclass(frozen=True)
class Position:
    title: str = ""
    company: str = ""
    duration: str = ""
    summary: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "title": self.title,
            "company": self.company,
            "duration": self.duration,
            "summary": self.summary,
        }


@dataclass(frozen=True)
class Experience:
    total_years: float = 0
    experience_level: ExperienceLevel = ExperienceLevel.ENTRY
    job_titles: List[str] = field(default_factory=list)
    positions: List[Position] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalYears": self.total_years,
            "experienceLevel": self.experience_level.value,
            "jobTitles": list(self.job_titles),
            "positions": [position.to_dict() for position in self.positions],
        }


@dataclass(frozen=True)
class Education:
    degrees: List[str] = field(default_factory=list)
    universities: List[str] = field(default_factory=list)
    fields: List[str] = field(default_factory=list)
    certifications: List[str] = field(default_factory=list)
    highest_degree: str = NO_DEGREE
    score: int = 20

    @property
    def highest_level(self) -> Optional[DegreeLevel]:
        return DegreeLevel.from_label(self.highest_degree)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "degrees": list(self.degrees),
            "universities": list(self.universities),
            "fields": list(self.fields),
            "certifications": list(self.certifications),
            "highestDegree": self.highest_degree,
            "score": self.score,
        }


@dataclass(frozen=True)
class Sentiment:
    score: int = 0
    comparative: float = 0.0
    professionalism_score: int = 50
    tone: str = "Neutral"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "comparative": self.comparative,
            "professionalismScore": self.professionalism_score,
            "tone": self.tone,
        }


@dataclass(frozen=True)
class InterviewQuestion:
    category: str
    question: str
    focus: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"category": self.category, "question": self.question, "focus": self.focus}


@dataclass(frozen=True)
class Recommendation:
    status: str
    color: str
    action: str
    priority: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "color": self.color,
            "action": self.action,
            "priority": self.priority,
        }


@dataclass(frozen=True)
class MatchDetails:
    skills_match: List[str] = field(default_factory=list)
    missing_skills: List[str] = field(default_factory=list)
    experience_match: bool = False
    education_match: bool = False
    skill_match_percentage: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "skillsMatch": list(self.skills_match),
            "missingSkills": list(self.missing_skills),
            "experienceMatch": self.experience_match,
            "educationMatch": self.education_match,
            "skillMatchPercentage": self.skill_match_percentage,
        }


@dataclass(frozen=True)
class MatchScore:
    overall_score: int
    match_details: MatchDetails
    recommendation: Recommendation
    breakdown: Optional[Dict[str, float]] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "overallScore": self.overall_score,
            "matchDetails": self.match_details.to_dict(),
            "recommendation": self.recommendation.to_dict(),
        }
        if self.breakdown is not None:
            payload["breakdown"] = dict(self.breakdown)
        return payload


@dataclass(frozen=True)
class ResumeAnalysis:
    contact: ContactInfo
    skills: SkillSet
    experience: Experience
    education: Education
    sentiment: Sentiment
    red_flags: List[Flag] = field(default_factory=list)
    warnings: List[Flag] = field(default_factory=list)
    suggestions: List[Flag] = field(default_factory=list)
    word_count: int = 0
    ai_powered: bool = False
    interview_questions: List[InterviewQuestion] = field(default_factory=list)
    match_score: Optional[MatchScore] = None
    summary: Optional[str] = None
    overall_assessment: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "contact": self.contact.to_dict(),
            "skills": self.skills.to_dict(),
            "experience": self.experience.to_dict(),
            "education": self.education.to_dict(),
            "sentiment": self.sentiment.to_dict(),
            "redFlags": [flag.to_dict() for flag in self.red_flags],
            "warnings": [flag.to_dict() for flag in self.warnings],
            "suggestions": [flag.to_dict() for flag in self.suggestions],
            "wordCount": self.word_count,
            "aiPowered": self.ai_powered,
            "interviewQuestions": [question.to_dict() for question in self.interview_questions],
        }
        if self.match_score is not None:
            payload["matchScore"] = self.match_score.to_dict()
        if self.summary is not None:
            payload["summary"] = self.summary
        if self.overall_assessment is not None:
            payload["overallAssessment"] = self.overall_assessment
        return payload


@dataclass(frozen=True)
class JobRequirements:
    skills: List[str] = field(default_factory=list)
    min_experience: float = 0
    max_experience: float = 20
    education: DegreeLevel = DegreeLevel.BACHELORS

    @classmethod
    def from_dict(cls, payload: Any) -> "JobRequirements":
        """Build requirements from a persisted job record (camelCase or snake_case keys)."""
        if not isinstance(payload, dict):
            raise ValidationError("Job requirements must be an object.")

        skills = payload.get("skills") or []
        if isinstance(skills, str):
            skills = [item.strip() for item in skills.split(",")]
        if not isinstance(skills, list) or not all(isinstance(item, str) for item in skills):
            raise ValidationError("Job requirement skills must be a list of strings.")
        skills = [item.strip() for item in skills if item.strip()]

        min_experience = _read_years(payload, ("minExperience", "min_experience"), 0)
        max_experience = _read_years(payload, ("maxExperience", "max_experience"), 20)
        if min_experience > max_experience:
            raise ValidationError(
                f"minExperience ({min_experience}) cannot exceed maxExperience ({max_experience})."
            )

        raw_education = payload.get("education")
        if raw_education in (None, ""):
            education = DegreeLevel.BACHELORS
        else:
            education = DegreeLevel.from_label(raw_education)
            if education is None:
                raise ValidationError(f"Unknown education level: {raw_education!r}")

        return cls(
            skills=skills,
            min_experience=min_experience,
            max_experience=max_experience,
            education=education,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "skills": list(self.skills),
            "minExperience": self.min_experience,
            "maxExperience": self.max_experience,
            "education": self.education.label,
        }


def _read_years(payload: Dict[str, Any], keys, default: float) -> float:
    for key in keys:
        if key in payload and payload[key] not in (None, ""):
            value = payload[key]
            if isinstance(value, bool):
                raise ValidationError(f"{key} must be a number.")
            try:
                years = float(value)
            except (TypeError, ValueError):
                raise ValidationError(f"{key} must be a number.") from None
            if years < 0:
                raise ValidationError(f"{key} cannot be negative.")
            return years
    return default
