"""Rule-based resume analysis engine.

Works entirely offline (regex batteries, the static skills dictionary, spaCy
for person names and the AFINN lexicon for sentiment), so it always succeeds
and is the fallback for the AI path.
"""

import logging
import re
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from afinn import Afinn
from spacy.lang.en.stop_words import STOP_WORDS

from . import entities
from .models import (
    LEADERSHIP_LEVELS,
    NO_DEGREE,
    ContactInfo,
    DegreeLevel,
    Education,
    Experience,
    Flag,
    InterviewQuestion,
    JobRequirements,
    MatchDetails,
    MatchScore,
    ResumeAnalysis,
    Sentiment,
    SkillSet,
    categorize_experience_level,
    clamp_score,
)
from .scoring import get_recommendation, round_half_up, split_required_skills
from .skills import SKILLS_DATABASE

logger = logging.getLogger(__name__)

# --- Constants & Regex helpers -------------------------------------------------

YEARS_OF_EXPERIENCE_PATTERNS = (
    re.compile(r"(\d+)\+?\s*years?\s*(?:of)?\s*(?:experience|exp)", re.IGNORECASE),
    re.compile(r"experience[:\s]*(\d+)\+?\s*years?", re.IGNORECASE),
    re.compile(r"(\d+)\+?\s*years?\s*(?:in|with|as)", re.IGNORECASE),
)
MAX_PLAUSIBLE_YEARS = 50

JOB_TITLE_PATTERNS = (
    re.compile(
        r"(?:as|position|role|title)[:\s]+([A-Za-z ]+(?:Developer|Engineer|Manager|Designer|Analyst|Lead|Director|Architect))",
        re.IGNORECASE,
    ),
    re.compile(
        r"((?:Senior|Junior|Lead|Principal|Staff)?\s*"
        r"(?:Software|Full[\s-]?Stack|Frontend|Backend|DevOps|Data|ML|AI)?\s*"
        r"(?:Developer|Engineer|Architect|Manager|Designer|Analyst))",
        re.IGNORECASE,
    ),
)

# Priority order: the first hit is the highest degree.
DEGREE_PATTERNS: Tuple[Tuple[DegreeLevel, re.Pattern], ...] = (
    (DegreeLevel.PHD, re.compile(r"\bph\.?\s?d\b|\bdoctorate\b|\bdoctor of philosophy\b", re.IGNORECASE)),
    (
        DegreeLevel.MASTERS,
        re.compile(r"\bmaster'?s?\b|\bm\.s\.|\bm\.?sc\b|\bm\.?tech\b|\bmba\b|\bm\.?eng\b", re.IGNORECASE),
    ),
    (
        DegreeLevel.BACHELORS,
        re.compile(r"\bbachelor'?s?\b|\bb\.s\.|\bb\.?sc\b|\bb\.?tech\b|\bb\.e\.|\bb\.a\.|\bbba\b", re.IGNORECASE),
    ),
    (
        DegreeLevel.ASSOCIATE,
        re.compile(r"\bassociate'?s? (?:degree|of)\b|\ba\.s\.|\ba\.a\.", re.IGNORECASE),
    ),
    (DegreeLevel.DIPLOMA, re.compile(r"\bdiploma\b|\bcertificate\b|\bcertification\b", re.IGNORECASE)),
)

EDUCATION_SCORES = {
    DegreeLevel.PHD: 100,
    DegreeLevel.MASTERS: 85,
    DegreeLevel.BACHELORS: 70,
    DegreeLevel.ASSOCIATE: 55,
    DegreeLevel.DIPLOMA: 40,
}
NO_DEGREE_SCORE = 20

UNIVERSITY_PATTERNS = (
    re.compile(r"(?:university of|institute of|college of)\s+([A-Za-z ]+)", re.IGNORECASE),
    re.compile(r"([A-Z][a-zA-Z]+)\s+(?:University|Institute|College)"),
)

FIELD_OF_STUDY_PATTERN = re.compile(
    r"(?:in|degree in|major in)\s+(computer science|information technology|software engineering|data science|"
    r"electrical engineering|mechanical engineering|business administration|mathematics|physics)",
    re.IGNORECASE,
)

LOCATION_PATTERN = re.compile(r"(?:location|address|city)[:\s]+([A-Za-z ,]+)", re.IGNORECASE)
DIGIT_RE = re.compile(r"\d")

PROFESSIONAL_WORDS = (
    "achieved", "developed", "implemented", "led", "managed", "created",
    "designed", "improved", "increased", "reduced", "delivered", "collaborated",
)
UNPROFESSIONAL_WORDS = ("hate", "stupid", "boring", "easy", "simple")

EMPLOYMENT_GAP_RE = re.compile(r"gap|break|unemployed|sabbatical|career break", re.IGNORECASE)
JOB_MENTION_RE = re.compile(r"(?:worked at|employed at|position at)", re.IGNORECASE)
QUANTIFIABLE_RE = re.compile(r"\d+%|\$[\d,]+|\d+\s*(?:users|customers|projects|clients)", re.IGNORECASE)
KEYWORD_TOKEN_RE = re.compile(r"[a-z0-9+#]+(?:[.\-/][a-z0-9+#]+)*")
SENTIMENT_TOKEN_RE = re.compile(r"[a-z0-9']+")

MIN_WORDS = 100
MAX_WORDS = 1500
MAX_KEYWORDS = 30
MAX_INTERVIEW_QUESTIONS = 8


@lru_cache(maxsize=1)
def _load_afinn() -> Afinn:
    """Lazy-load the AFINN lexicon once per process."""
    return Afinn(language="en")


def _unique(items: List[str], limit: Optional[int] = None) -> List[str]:
    result = list(dict.fromkeys(item for item in items if item))
    return result[:limit] if limit is not None else result


class RuleBasedAnalyzer:
    def analyze(self, text: str, job_requirements: Optional[JobRequirements] = None) -> ResumeAnalysis:
        text = text or ""
        skills = self.extract_skills(text)
        experience = self.extract_experience(text)
        education = self.extract_education(text)
        contact = self.extract_contact_info(text)
        sentiment = self.analyze_sentiment(text)
        red_flags, warnings, suggestions = self.detect_red_flags(text, experience)

        match_score = None
        if job_requirements is not None:
            match_score = self.calculate_match_score(skills, experience, education, job_requirements)

        logger.debug(
            "Rule analysis finished: %s skills, %s years, degree=%s",
            skills.total_skills,
            experience.total_years,
            education.highest_degree,
        )
        return ResumeAnalysis(
            contact=contact,
            skills=skills,
            experience=experience,
            education=education,
            sentiment=sentiment,
            red_flags=red_flags,
            warnings=warnings,
            suggestions=suggestions,
            word_count=len(text.split()),
            ai_powered=False,
            interview_questions=self.generate_interview_questions(skills, experience),
            match_score=match_score,
        )

    # --- Skills -------------------------------------------------------------

    def extract_skills(self, text: str) -> SkillSet:
        lowered = text.lower()
        categorized: Dict[str, List[str]] = {}
        for category, known_skills in SKILLS_DATABASE.items():
            categorized[category] = [skill for skill in known_skills if skill.lower() in lowered]
        categorized["other"] = []
        return SkillSet(categorized=categorized, keywords=self.extract_keywords(text))

    def extract_keywords(self, text: str) -> List[str]:
        tokens = KEYWORD_TOKEN_RE.findall(text.lower())
        return _unique([token for token in tokens if token not in STOP_WORDS], limit=MAX_KEYWORDS)

    # --- Experience ---------------------------------------------------------

    def extract_experience(self, text: str) -> Experience:
        total_years = 0
        for pattern in YEARS_OF_EXPERIENCE_PATTERNS:
            for match in pattern.finditer(text):
                years = int(match.group(1))
                if total_years < years < MAX_PLAUSIBLE_YEARS:
                    total_years = years

        titles: List[str] = []
        for pattern in JOB_TITLE_PATTERNS:
            for match in pattern.finditer(text):
                title = (match.group(1) or "").strip()
                if len(title) > 3:
                    titles.append(title)

        return Experience(
            total_years=total_years,
            experience_level=categorize_experience_level(total_years),
            job_titles=_unique(titles, limit=5),
        )

    # --- Education ----------------------------------------------------------

    def extract_education(self, text: str) -> Education:
        levels = [level for level, pattern in DEGREE_PATTERNS if pattern.search(text)]

        universities = []
        for pattern in UNIVERSITY_PATTERNS:
            universities.extend(match.group(1).strip() for match in pattern.finditer(text))

        fields = [match.group(1).strip() for match in FIELD_OF_STUDY_PATTERN.finditer(text)]

        return Education(
            degrees=[level.label for level in levels],
            universities=_unique(universities, limit=3),
            fields=_unique(fields),
            certifications=entities.extract_certifications(text),
            highest_degree=levels[0].label if levels else NO_DEGREE,
            score=EDUCATION_SCORES[levels[0]] if levels else NO_DEGREE_SCORE,
        )

    # --- Contact ------------------------------------------------------------

    def extract_contact_info(self, text: str) -> ContactInfo:
        emails = entities.EMAIL_RE.findall(text)
        phones = entities.extract_phones(text)
        urls = entities.extract_urls(text)
        people = entities.entities_with_label(text, ("PERSON",))
        location_match = LOCATION_PATTERN.search(text)
        location = location_match.group(1).strip(" ,") if location_match else ""

        return ContactInfo(
            name=people[0] if people else self.extract_name(text),
            email=emails[0] if emails else None,
            phone=phones[0] if phones else None,
            location=location or None,
            linkedin=urls["linkedin"],
            github=urls["github"],
        )

    def extract_name(self, text: str) -> Optional[str]:
        first_line = entities.first_nonempty_line(text)
        if first_line and len(first_line) < 50 and "@" not in first_line and not DIGIT_RE.search(first_line):
            return first_line
        return None

    # --- Sentiment ----------------------------------------------------------

    def analyze_sentiment(self, text: str) -> Sentiment:
        lowered = text.lower()
        score = int(_load_afinn().score(text))
        tokens = SENTIMENT_TOKEN_RE.findall(lowered)
        comparative = score / len(tokens) if tokens else 0.0

        professionalism = 50
        professionalism += 3 * sum(1 for word in PROFESSIONAL_WORDS if word in lowered)
        professionalism -= 5 * sum(1 for word in UNPROFESSIONAL_WORDS if word in lowered)

        if score > 0:
            tone = "Positive"
        elif score < 0:
            tone = "Negative"
        else:
            tone = "Neutral"

        return Sentiment(
            score=score,
            comparative=comparative,
            professionalism_score=int(clamp_score(professionalism)),
            tone=tone,
        )

    # --- Flags --------------------------------------------------------------

    def detect_red_flags(self, text: str, experience: Experience) -> Tuple[List[Flag], List[Flag], List[Flag]]:
        red_flags: List[Flag] = []
        warnings: List[Flag] = []
        suggestions: List[Flag] = []

        if EMPLOYMENT_GAP_RE.search(text):
            warnings.append(Flag("employment_gap", "Potential employment gap detected", "medium"))

        if len(JOB_MENTION_RE.findall(text)) > 5 and experience.total_years < 8:
            warnings.append(Flag("job_hopping", "Frequent job changes detected", "medium"))

        if "@" not in text:
            red_flags.append(Flag("missing_email", "No email address found", "high"))

        if not QUANTIFIABLE_RE.search(text):
            suggestions.append(Flag("no_metrics", "Consider adding quantifiable achievements", "low"))

        word_count = len(text.split())
        if word_count < MIN_WORDS:
            red_flags.append(Flag("too_short", "Resume appears too short", "high"))
        elif word_count > MAX_WORDS:
            warnings.append(Flag("too_long", "Resume may be too lengthy", "low"))

        return red_flags, warnings, suggestions

    # --- Matching -----------------------------------------------------------

    def calculate_match_score(
        self,
        skills: SkillSet,
        experience: Experience,
        education: Education,
        job: JobRequirements,
    ) -> MatchScore:
        """Quick 50/30/20 fit score attached to rule-based analyses."""
        score = 0.0

        matched, missing = split_required_skills(job.skills, skills.flatten())
        if job.skills:
            score += (len(matched) / len(job.skills)) * 50
        else:
            score += 25

        experience_match = experience.total_years >= job.min_experience
        if experience_match:
            score += 30
        else:
            score += min(30.0, (experience.total_years / job.min_experience) * 30)

        candidate_degree = DegreeLevel.from_label(education.highest_degree)
        education_match = candidate_degree is not None and candidate_degree >= job.education
        if education_match:
            score += 20
        elif candidate_degree is not None:
            score += (int(candidate_degree) / int(job.education)) * 20

        overall = round_half_up(score)
        percentage = round_half_up(len(matched) / len(job.skills) * 100) if job.skills else 100
        return MatchScore(
            overall_score=overall,
            match_details=MatchDetails(
                skills_match=matched,
                missing_skills=missing,
                experience_match=experience_match,
                education_match=education_match,
                skill_match_percentage=percentage,
            ),
            recommendation=get_recommendation(overall),
        )

    # --- Interview prep -----------------------------------------------------

    def generate_interview_questions(self, skills: SkillSet, experience: Experience) -> List[InterviewQuestion]:
        questions: List[InterviewQuestion] = []

        for skill in skills.flatten()[:3]:
            questions.append(
                InterviewQuestion(
                    "Technical",
                    f"Can you describe a challenging project where you used {skill}?",
                    skill,
                )
            )

        if experience.total_years > 0:
            questions.append(
                InterviewQuestion(
                    "Experience",
                    f"With {experience.total_years} years of experience, "
                    "what's been your most significant career achievement?",
                    "achievements",
                )
            )

        if experience.experience_level in LEADERSHIP_LEVELS:
            questions.append(
                InterviewQuestion(
                    "Leadership",
                    "Can you describe your experience mentoring junior team members?",
                    "leadership",
                )
            )

        questions.append(
            InterviewQuestion(
                "Behavioral",
                "Tell me about a time you had to deal with a difficult team situation.",
                "teamwork",
            )
        )
        return questions[:MAX_INTERVIEW_QUESTIONS]
