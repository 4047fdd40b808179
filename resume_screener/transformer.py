"""Normalise the AI analyzer's free-form JSON into a ResumeAnalysis.

Everything coming back from the model is treated as untrusted: each field is
coerced with an explicit default, so a partial or oddly shaped reply still
yields a complete analysis instead of an exception.
"""

import logging
import math
from typing import Any, Dict, List, Optional

from . import entities
from .analyzer import DEGREE_PATTERNS, EDUCATION_SCORES, NO_DEGREE_SCORE
from .models import (
    NO_DEGREE,
    SEVERITIES,
    SKILL_CATEGORIES,
    ContactInfo,
    DegreeLevel,
    Education,
    Experience,
    ExperienceLevel,
    Flag,
    InterviewQuestion,
    JobRequirements,
    MatchDetails,
    MatchScore,
    Position,
    ResumeAnalysis,
    Sentiment,
    SkillSet,
    categorize_experience_level,
    clamp_score,
)
from .scoring import get_recommendation, round_half_up, split_required_skills
from .skills import FRONTEND_FRAMEWORK_HINTS, ML_HINTS, SKILLS_DATABASE

logger = logging.getLogger(__name__)

# Checked in order; the first hint contained in the AI's label wins.
EXPERIENCE_LEVEL_HINTS = (
    ("principal", ExperienceLevel.PRINCIPAL),
    ("director", ExperienceLevel.PRINCIPAL),
    ("executive", ExperienceLevel.PRINCIPAL),
    ("lead", ExperienceLevel.LEAD),
    ("staff", ExperienceLevel.LEAD),
    ("senior", ExperienceLevel.SENIOR),
    ("mid", ExperienceLevel.MID),
    ("intermediate", ExperienceLevel.MID),
    ("junior", ExperienceLevel.JUNIOR),
    ("entry", ExperienceLevel.ENTRY),
    ("intern", ExperienceLevel.ENTRY),
    ("graduate", ExperienceLevel.ENTRY),
)

MAX_KEYWORDS = 30


def transform_ai_response(
    payload: Any,
    text: str = "",
    job_requirements: Optional[JobRequirements] = None,
) -> ResumeAnalysis:
    if not isinstance(payload, dict):
        logger.warning("AI payload was %s, not an object; using empty defaults", type(payload).__name__)
    data = _as_dict(payload)
    text = text or ""

    contact = _build_contact(_as_dict(data.get("contact")))
    skills = _build_skills(_as_dict(data.get("skills")), text)
    experience = _build_experience(_as_dict(data.get("experience")))
    education = _build_education(_as_dict(data.get("education")))

    assessment = _as_dict(data.get("analysis"))
    red_flags = _build_red_flags(assessment.get("redFlags"))
    warnings = [Flag("weakness", weakness, "low") for weakness in _ensure_list_of_strings(assessment.get("weaknesses"))]

    raw_match = _as_dict(data.get("matchScore"))
    projects = data.get("projects") if isinstance(data.get("projects"), list) else []
    achievements = _ensure_list_of_strings(data.get("achievements"))

    professionalism = 50
    if experience.positions:
        professionalism += 10
    if education.degrees:
        professionalism += 10
    if achievements:
        professionalism += 10
    if projects:
        professionalism += 10
    if contact.linkedin:
        professionalism += 5
    if contact.github:
        professionalism += 5
    professionalism -= 5 * len(red_flags)

    suggestions: List[Flag] = []
    missing_reported = _ensure_list_of_strings(raw_match.get("missingSkills"))
    if missing_reported:
        suggestions.append(
            Flag("skill_gap", f"Missing key skills: {', '.join(missing_reported[:5])}", "medium")
        )
    if not contact.linkedin:
        suggestions.append(Flag("missing_linkedin", "Consider adding a LinkedIn profile", "low"))
    if not projects:
        suggestions.append(Flag("no_projects", "Consider adding a projects section", "low"))

    match_score = None
    if job_requirements is not None:
        match_score = _build_match_score(raw_match, skills, education, job_requirements)

    return ResumeAnalysis(
        contact=contact,
        skills=skills,
        experience=experience,
        education=education,
        sentiment=Sentiment(professionalism_score=int(clamp_score(professionalism))),
        red_flags=red_flags,
        warnings=warnings,
        suggestions=suggestions,
        word_count=len(text.split()),
        ai_powered=True,
        interview_questions=_build_questions(data.get("interviewQuestions")),
        match_score=match_score,
        summary=_optional_str(data.get("summary")),
        overall_assessment=_optional_str(data.get("overallAssessment")),
    )


def _build_contact(contact: Dict[str, Any]) -> ContactInfo:
    return ContactInfo(
        name=_optional_str(contact.get("name")),
        email=_optional_str(contact.get("email")),
        phone=_optional_str(contact.get("phone")),
        location=_optional_str(contact.get("location")),
        linkedin=_optional_str(contact.get("linkedin")),
        github=_optional_str(contact.get("github")),
    )


def _build_skills(skills: Dict[str, Any], text: str) -> SkillSet:
    categorized: Dict[str, List[str]] = {category: [] for category in SKILL_CATEGORIES}

    categorized["programming"].extend(_ensure_list_of_strings(skills.get("programming")))
    for framework in _ensure_list_of_strings(skills.get("frameworks")):
        lowered = framework.lower()
        if any(hint in lowered for hint in FRONTEND_FRAMEWORK_HINTS):
            categorized["frontend"].append(framework)
        elif any(hint in lowered for hint in ML_HINTS):
            categorized["ml_ai"].append(framework)
        else:
            categorized["backend"].append(framework)
    categorized["database"].extend(_ensure_list_of_strings(skills.get("databases")))
    categorized["cloud"].extend(_ensure_list_of_strings(skills.get("cloud")))
    categorized["soft_skills"].extend(_ensure_list_of_strings(skills.get("soft")))

    for key in ("technical", "other"):
        for skill in _ensure_list_of_strings(skills.get(key)):
            categorized[classify_skill(skill)].append(skill)

    categorized = {category: _dedupe(values) for category, values in categorized.items()}
    keywords = [entry["word"] for entry in entities.extract_keywords(text, top_n=MAX_KEYWORDS)]
    return SkillSet(categorized=categorized, keywords=keywords)


def classify_skill(skill: str) -> str:
    """Bucket a loose AI-reported skill into one of the canonical categories."""
    lowered = skill.lower().strip()
    for category, known_skills in SKILLS_DATABASE.items():
        if lowered in known_skills:
            return category
    if any(hint in lowered for hint in ML_HINTS):
        return "ml_ai"
    if any(hint in lowered for hint in FRONTEND_FRAMEWORK_HINTS):
        return "frontend"
    return "other"


def _build_experience(experience: Dict[str, Any]) -> Experience:
    total_years = max(0.0, _coerce_float(experience.get("totalYears")))
    if total_years.is_integer():
        total_years = int(total_years)

    positions: List[Position] = []
    raw_positions = experience.get("positions")
    for item in raw_positions if isinstance(raw_positions, list) else []:
        if not isinstance(item, dict):
            continue
        duration = _optional_str(item.get("duration"))
        if duration is None:
            start = _optional_str(item.get("startDate"))
            end = _optional_str(item.get("endDate"))
            duration = " - ".join(part for part in (start, end) if part)
        responsibilities = _ensure_list_of_strings(item.get("responsibilities"))
        positions.append(
            Position(
                title=_optional_str(item.get("title")) or "",
                company=_optional_str(item.get("company")) or "",
                duration=duration,
                summary=responsibilities[0] if responsibilities else "",
            )
        )

    level = map_experience_level(experience.get("level"))
    if level is None:
        level = categorize_experience_level(total_years)

    return Experience(
        total_years=total_years,
        experience_level=level,
        job_titles=_dedupe([position.title for position in positions])[:5],
        positions=positions,
    )


def map_experience_level(label: Any) -> Optional[ExperienceLevel]:
    if not isinstance(label, str) or not label.strip():
        return None
    lowered = label.lower()
    for hint, level in EXPERIENCE_LEVEL_HINTS:
        if hint in lowered:
            return level
    return None


def map_degree(label: Any) -> Optional[DegreeLevel]:
    if not isinstance(label, str):
        return None
    for level, pattern in DEGREE_PATTERNS:
        if pattern.search(label):
            return level
    return None


def _build_education(education: Dict[str, Any]) -> Education:
    degrees: List[str] = []
    universities: List[str] = []
    fields: List[str] = []
    levels: List[DegreeLevel] = []

    raw_degrees = education.get("degrees")
    for item in raw_degrees if isinstance(raw_degrees, list) else []:
        if isinstance(item, str):
            item = {"degree": item}
        if not isinstance(item, dict):
            continue
        name = _optional_str(item.get("degree"))
        level = map_degree(name)
        if level is not None:
            levels.append(level)
        if name:
            degrees.append(level.label if level is not None else name)
        universities.append(_optional_str(item.get("institution")) or "")
        fields.append(_optional_str(item.get("field")) or "")

    certifications: List[str] = []
    raw_certifications = education.get("certifications")
    for item in raw_certifications if isinstance(raw_certifications, list) else []:
        if isinstance(item, dict):
            item = item.get("name")
        if isinstance(item, str) and item.strip():
            certifications.append(item.strip())

    highest = map_degree(education.get("highestDegree"))
    if highest is None and levels:
        highest = max(levels)

    return Education(
        degrees=_dedupe(degrees),
        universities=_dedupe(universities)[:3],
        fields=_dedupe(fields),
        certifications=_dedupe(certifications),
        highest_degree=highest.label if highest is not None else NO_DEGREE,
        score=EDUCATION_SCORES[highest] if highest is not None else NO_DEGREE_SCORE,
    )


def _build_red_flags(raw_flags: Any) -> List[Flag]:
    flags: List[Flag] = []
    for item in raw_flags if isinstance(raw_flags, list) else []:
        if isinstance(item, str):
            item = {"issue": item}
        if not isinstance(item, dict):
            continue
        message = _optional_str(item.get("issue"))
        if not message:
            continue
        flags.append(Flag("ai_detected", message, normalize_severity(item.get("severity"))))
    return flags


def normalize_severity(value: Any) -> str:
    if isinstance(value, str) and value.strip().lower() in SEVERITIES:
        return value.strip().lower()
    return "medium"


def _build_questions(raw_questions: Any) -> List[InterviewQuestion]:
    questions: List[InterviewQuestion] = []
    for item in raw_questions if isinstance(raw_questions, list) else []:
        if not isinstance(item, dict):
            continue
        question = _optional_str(item.get("question"))
        if not question:
            continue
        questions.append(
            InterviewQuestion(
                category=_optional_str(item.get("category")) or "General",
                question=question,
                focus=_optional_str(item.get("purpose")) or "",
            )
        )
    return questions


def _build_match_score(
    raw_match: Dict[str, Any],
    skills: SkillSet,
    education: Education,
    job: JobRequirements,
) -> MatchScore:
    overall = int(clamp_score(round_half_up(_coerce_float(raw_match.get("overall")))))

    matched = _ensure_list_of_strings(raw_match.get("matchedSkills"))
    missing = _ensure_list_of_strings(raw_match.get("missingSkills"))
    if not matched and not missing and job.skills:
        matched, missing = split_required_skills(job.skills, skills.flatten())

    if job.skills:
        percentage = int(clamp_score(round_half_up(len(matched) / len(job.skills) * 100)))
    else:
        percentage = 100

    candidate_degree = education.highest_level
    raw_breakdown = raw_match.get("breakdown")
    breakdown = None
    if isinstance(raw_breakdown, dict):
        breakdown = {str(key): _coerce_float(value) for key, value in raw_breakdown.items()}

    return MatchScore(
        overall_score=overall,
        match_details=MatchDetails(
            skills_match=matched,
            missing_skills=missing,
            experience_match=not _coerce_bool(raw_match.get("underqualified")),
            education_match=candidate_degree is not None and candidate_degree >= job.education,
            skill_match_percentage=percentage,
        ),
        recommendation=get_recommendation(overall),
        breakdown=breakdown,
    )


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _optional_str(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    text = str(value).strip()
    if not text or text.lower() in ("null", "none", "n/a"):
        return None
    return text


def _ensure_list_of_strings(payload: Any) -> List[str]:
    if not isinstance(payload, list):
        if isinstance(payload, str):
            return [payload.strip()] if payload.strip() else []
        return []
    output: List[str] = []
    for item in payload:
        if isinstance(item, str):
            stripped = item.strip()
            if stripped:
                output.append(stripped)
    return output


def _dedupe(items: List[str]) -> List[str]:
    seen = set()
    result: List[str] = []
    for item in items:
        if not item or item.lower() in seen:
            continue
        seen.add(item.lower())
        result.append(item)
    return result


def _coerce_float(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)
