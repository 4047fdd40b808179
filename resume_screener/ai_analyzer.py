import json
import logging
import re
from typing import Any, Dict, Optional, Sequence, Tuple

from openai import OpenAI

from .config import AIAvailability, Settings, settings as default_settings
from .errors import AIResponseError, ConfigurationError
from .models import JobRequirements
from .retry import RetryPolicy

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """You are an expert HR recruiter and resume analyst with 20 years of experience.
Your task is to analyze resumes thoroughly and provide detailed, accurate assessments.

You MUST respond with valid JSON only. No markdown, no explanations outside JSON.

Be objective, thorough, and provide actionable insights.
Extract information even if it's not explicitly stated but can be inferred.
If information is not found, use null or empty arrays - never make up data."""

ANALYSIS_SCHEMA = """{
  "contact": {
    "name": "Full name of the candidate",
    "email": "Email address",
    "phone": "Phone number",
    "location": "City, State/Country",
    "linkedin": "LinkedIn URL if found",
    "github": "GitHub URL if found",
    "portfolio": "Portfolio/Website URL if found"
  },
  "summary": "A 2-3 sentence professional summary of the candidate",
  "skills": {
    "technical": ["Technical/hard skills"],
    "programming": ["Programming languages"],
    "frameworks": ["Frameworks and libraries"],
    "databases": ["Database technologies"],
    "cloud": ["Cloud platforms and DevOps tools"],
    "soft": ["Soft skills"],
    "other": ["Other relevant skills"],
    "proficiencyLevels": {
      "expert": ["Skills they're expert in"],
      "proficient": ["Skills they're proficient in"],
      "familiar": ["Skills they're familiar with"]
    }
  },
  "experience": {
    "totalYears": 0,
    "level": "Entry/Junior/Mid-Level/Senior/Lead/Principal/Executive",
    "positions": [
      {
        "title": "Job Title",
        "company": "Company Name",
        "startDate": "Start date",
        "endDate": "End date or Present",
        "duration": "Duration in years/months",
        "responsibilities": ["Key responsibilities"],
        "achievements": ["Quantifiable achievements"],
        "technologies": ["Technologies used"]
      }
    ],
    "industries": ["Industries worked in"],
    "careerProgression": "Description of career growth"
  },
  "education": {
    "degrees": [
      {
        "degree": "Degree type (PhD/Masters/Bachelors/Associate/Diploma)",
        "field": "Field of study",
        "institution": "University/College name",
        "graduationYear": 2020
      }
    ],
    "certifications": [{"name": "Certification name", "issuer": "Issuing organization", "year": 2023}],
    "highestDegree": "Highest degree obtained"
  },
  "projects": [
    {"name": "Project name", "description": "Brief description", "technologies": ["Technologies used"]}
  ],
  "achievements": ["Notable achievements, awards, publications"],
  "analysis": {
    "strengths": ["Top 5 strengths of this candidate"],
    "weaknesses": ["Potential concerns or gaps"],
    "redFlags": [
      {"issue": "Description of concern", "severity": "high/medium/low", "explanation": "Why this might be a concern"}
    ]
  },
  "matchScore": {
    "overall": 0,
    "breakdown": {"skills": 0, "experience": 0, "education": 0, "culture": 0},
    "matchedSkills": ["Skills that match job requirements"],
    "missingSkills": ["Required skills not found"],
    "overqualified": false,
    "underqualified": false,
    "recommendationReason": "Explanation for the score"
  },
  "interviewQuestions": [
    {"category": "Technical/Behavioral/Experience/Culture", "question": "Suggested interview question", "purpose": "What this question aims to assess"}
  ],
  "salaryEstimate": {"min": 0, "max": 0, "currency": "USD", "basis": "Explanation of salary estimate"},
  "overallAssessment": "A comprehensive 3-4 sentence assessment of the candidate"
}"""

ANALYSIS_RULES = """Important:
- Match score should be 0-100
- If no job requirements provided, score based on overall resume quality
- Be specific and extract actual data from the resume
- For missing information, use null or empty arrays
- Ensure all JSON is valid and properly formatted"""

SECTION_PRIORITY = (
    "experience",
    "project",
    "employment",
    "work history",
    "technical",
    "technology",
    "skills",
    "summary",
    "objective",
    "profile",
)

CODE_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
SECTION_BREAK_RE = re.compile(r"\n{2,}")


class OpenAIBackend:
    """Prompt-in / text-out wrapper around an OpenAI-compatible chat completions API."""

    def __init__(self, client: OpenAI, model_name: str, temperature: float = 0.3, max_tokens: int = 4000):
        self.client = client
        self.model_name = model_name
        self.temperature = temperature
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, config: Settings) -> Optional["OpenAIBackend"]:
        if not config.api_key:
            logger.info("AI Analyzer: no API key configured, AI analysis disabled.")
            return None
        headers = {
            "HTTP-Referer": config.http_referer,
            "X-Title": config.app_title,
        }
        client = OpenAI(api_key=config.api_key, base_url=config.base_url, default_headers=headers)
        logger.info("AI Analyzer: initialized OpenAI-compatible client for base_url=%s", config.base_url)
        return cls(client, config.model_name, config.temperature, config.max_tokens)

    def generate(self, prompt: str, system: Optional[str] = None, temperature: Optional[float] = None) -> str:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        request_kwargs: Dict[str, Any] = {
            "model": self.model_name,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": self.max_tokens,
        }
        if not self.model_name.startswith("minimax/"):
            request_kwargs["response_format"] = {"type": "json_object"}

        response = self.client.chat.completions.create(**request_kwargs)
        return response.choices[0].message.content or ""


def clean_json_response(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    """Best-effort extraction of a JSON object from LLM output; None when there is none."""
    if not raw:
        return None

    text = CODE_FENCE_RE.sub("", raw).strip()
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None

    try:
        parsed = json.loads(text[start : end + 1])
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def prepare_resume_excerpt(resume_text: str, max_chars: int) -> str:
    """Trim resume text to the budget, keeping experience/skills sections first."""
    if not resume_text:
        return ""
    cleaned = resume_text.strip()
    if len(cleaned) <= max_chars:
        return cleaned

    sections = [section.strip() for section in SECTION_BREAK_RE.split(cleaned) if section.strip()]
    # sorted() is stable, so sections of equal rank keep resume order
    ordered = sorted(sections, key=section_rank)
    return "\n\n".join(ordered)[:max_chars]


def section_rank(section: str) -> int:
    """Position of the section heading in SECTION_PRIORITY; unknown headings rank last."""
    heading = section.splitlines()[0].lower() if section else ""
    for rank, keyword in enumerate(SECTION_PRIORITY):
        if keyword in heading:
            return rank
    return len(SECTION_PRIORITY)


class AIAnalyzer:
    def __init__(
        self,
        backend: Optional[Any],
        availability: AIAvailability,
        retry_policy: Optional[RetryPolicy] = None,
        config: Settings = default_settings,
    ):
        self.backend = backend
        self.availability = availability
        self.config = config
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=config.ai_max_attempts,
            base_delay=config.ai_retry_base_delay,
            multiplier=config.ai_retry_multiplier,
        )

    @classmethod
    def from_settings(cls, config: Settings, availability: AIAvailability) -> "AIAnalyzer":
        backend = OpenAIBackend.from_settings(config) if availability else None
        return cls(backend, availability, config=config)

    @property
    def is_configured(self) -> bool:
        return bool(self.availability) and self.backend is not None

    @property
    def model_name(self) -> str:
        return getattr(self.backend, "model_name", "unknown")

    def analyze(self, text: str, job_requirements: Optional[JobRequirements] = None) -> Dict[str, Any]:
        """Full structured analysis of one resume, optionally matched against a job."""
        prompt = self.build_analysis_prompt(text, job_requirements)
        analysis = self._request_json(prompt, SYSTEM_PROMPT, label="resume analysis")
        analysis["aiPowered"] = True
        analysis["aiModel"] = self.model_name
        return analysis

    def build_analysis_prompt(self, text: str, job_requirements: Optional[JobRequirements] = None) -> str:
        excerpt = prepare_resume_excerpt(text, self.config.resume_char_budget)
        parts = [
            "Analyze the following resume and extract all relevant information.",
            "",
            "RESUME TEXT:",
            '"""',
            excerpt,
            '"""',
            "",
        ]
        if job_requirements is not None:
            parts.extend(
                [
                    "JOB REQUIREMENTS TO MATCH AGAINST (skills are listed by importance):",
                    json.dumps(job_requirements.to_dict(), indent=2),
                    "",
                ]
            )
        parts.extend(
            [
                "Provide your analysis in the following JSON structure:",
                "",
                ANALYSIS_SCHEMA,
                "",
                ANALYSIS_RULES,
            ]
        )
        return "\n".join(parts)

    def generate_interview_questions(
        self, text: str, job_title: str, focus_areas: Sequence[str] = ()
    ) -> Dict[str, Any]:
        focus_line = f"Focus areas: {', '.join(focus_areas)}" if focus_areas else ""
        prompt = f"""Based on this resume, generate 10 interview questions for a {job_title} position.

RESUME:
{prepare_resume_excerpt(text, self.config.resume_char_budget)}

{focus_line}

Return JSON with this structure:
{{
  "questions": [
    {{
      "category": "Technical/Behavioral/Situational/Experience",
      "difficulty": "Easy/Medium/Hard",
      "question": "The question",
      "purpose": "What this assesses",
      "idealAnswer": "Key points to look for in the answer",
      "redFlags": "Warning signs in responses",
      "followUps": ["Follow-up questions"]
    }}
  ]
}}"""
        system = (
            "You are an expert technical interviewer. Generate thoughtful, probing interview questions "
            "that will help assess the candidate's true abilities and fit for the role."
        )
        return self._request_json(prompt, system, temperature=0.5, label="interview questions")

    def compare_resumes(
        self, resumes: Sequence[Tuple[str, str]], job_requirements: Optional[JobRequirements]
    ) -> Dict[str, Any]:
        """Rank several candidates, given as (name, resume text) pairs, in one prompt."""
        budget = self.config.compare_char_budget
        summaries = "\n---\n".join(
            f"\nCANDIDATE {index}:\nName: {name or 'Unknown'}\n{(text or '')[:budget]}...\n"
            for index, (name, text) in enumerate(resumes, start=1)
        )
        requirements = json.dumps(job_requirements.to_dict() if job_requirements else {}, indent=2)
        prompt = f"""Compare these {len(resumes)} candidates for a position with these requirements:
{requirements}

CANDIDATES:
{summaries}

Return JSON with:
{{
  "ranking": [
    {{
      "rank": 1,
      "candidateName": "Name",
      "score": 85,
      "strengths": ["Key strengths"],
      "concerns": ["Concerns"],
      "bestFor": "What role/aspect they're best suited for"
    }}
  ],
  "comparison": {{
    "skillsComparison": "Comparison of technical skills",
    "experienceComparison": "Comparison of experience",
    "cultureComparison": "Comparison of soft skills/culture fit"
  }},
  "recommendation": "Overall hiring recommendation"
}}"""
        system = "You are an expert HR recruiter comparing candidates for a position."
        return self._request_json(prompt, system, label="resume comparison")

    def analyze_ats_optimization(self, text: str, job_description: str) -> Dict[str, Any]:
        prompt = f"""Analyze this resume for ATS optimization against the job description.

RESUME:
{prepare_resume_excerpt(text, self.config.resume_char_budget)}

JOB DESCRIPTION:
{job_description}

Return JSON:
{{
  "atsScore": 0,
  "keywordMatch": {{
    "found": ["Keywords from JD found in resume"],
    "missing": ["Important keywords missing"],
    "matchPercentage": 0
  }},
  "formatting": {{
    "score": 0,
    "issues": ["Formatting issues"],
    "suggestions": ["Improvement suggestions"]
  }},
  "sections": {{
    "present": ["Sections found"],
    "missing": ["Recommended sections missing"],
    "order": "Assessment of section order"
  }},
  "improvements": [
    {{
      "priority": "high/medium/low",
      "issue": "Issue description",
      "suggestion": "How to fix it",
      "example": "Example of improvement"
    }}
  ],
  "overallAssessment": "Summary of ATS readiness"
}}"""
        system = "You are an expert in ATS (Applicant Tracking Systems) and resume optimization."
        return self._request_json(prompt, system, label="ATS optimization")

    def generate_job_description(self, requirements: Dict[str, Any]) -> Dict[str, Any]:
        prompt = f"""Generate a professional job description based on:
{json.dumps(requirements, indent=2)}

Return JSON:
{{
  "title": "Job title",
  "summary": "Engaging job summary",
  "responsibilities": ["List of responsibilities"],
  "requirements": ["Required qualifications"],
  "niceToHave": ["Preferred qualifications"],
  "benefits": ["Company benefits"],
  "equalOpportunity": "EEO statement"
}}"""
        system = "You are an expert HR professional who writes compelling, inclusive job descriptions."
        return self._request_json(prompt, system, temperature=0.7, label="job description")

    def _request_json(
        self,
        prompt: str,
        system: str,
        temperature: Optional[float] = None,
        label: str = "AI call",
    ) -> Dict[str, Any]:
        if not self.is_configured:
            raise ConfigurationError(self.availability.reason or "AI backend is not configured.")

        raw = self.retry_policy.call(
            lambda: self.backend.generate(prompt, system=system, temperature=temperature),
            label=label,
        )
        logger.debug("AI Analyzer raw response (%s): %s", label, raw)

        parsed = clean_json_response(raw)
        if parsed is None:
            logger.warning("AI Analyzer: %s reply did not contain a JSON object", label)
            raise AIResponseError(f"AI {label} returned an unparsable response.")
        return parsed
