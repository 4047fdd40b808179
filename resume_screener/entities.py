"""Pattern and dictionary based entity extraction from raw resume text.

Every function here is pure: it never raises on odd input and returns empty
lists / ``None`` when nothing matches.
"""

import logging
import re
from collections import Counter
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Tuple

import spacy

from .config import settings

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

PHONE_PATTERNS = (
    re.compile(r"(?:\+?1[-.\s]?)?\(?[0-9]{3}\)?[-.\s]?[0-9]{3}[-.\s]?[0-9]{4}"),
    re.compile(r"(?:\+?91[-.\s]?)?[6-9]\d{9}"),  # India
    re.compile(r"(?:\+?44[-.\s]?)?\d{4}[-.\s]?\d{6}"),  # UK
)

URL_RE = re.compile(r"https?://[^\s<>\"{}|\\^`\[\]]+", re.IGNORECASE)
LINKEDIN_HANDLE_RE = re.compile(r"linkedin\.com/in/([a-zA-Z0-9-]+)", re.IGNORECASE)
GITHUB_HANDLE_RE = re.compile(r"github\.com/([a-zA-Z0-9-]+)", re.IGNORECASE)
IGNORED_URL_DOMAINS = ("google.com", "facebook.com")

MONTH_PATTERN = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|Jun(?:e)?|Jul(?:y)?|"
    r"Aug(?:ust)?|Sep(?:t|tember)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)"
)

DATE_PATTERNS = (
    re.compile(rf"{MONTH_PATTERN}\s*\d{{4}}", re.IGNORECASE),
    re.compile(r"\d{1,2}/\d{1,2}/\d{2,4}"),
    re.compile(r"\d{4}\s*[-–]\s*(?:\d{4}|present|current|now)", re.IGNORECASE),
    re.compile(r"(?:since|from)\s*\d{4}", re.IGNORECASE),
)

LOCATION_PATTERNS = (
    re.compile(r"(?:location|address|city|based in)[:\s]+([A-Za-z ,]+)", re.IGNORECASE),
    re.compile(r"([A-Z][a-z]+(?:\s[A-Z][a-z]+)?),\s*([A-Z]{2})\s*\d{5}"),  # City, ST 12345
    re.compile(r"([A-Z][a-z]+(?: [A-Z][a-z]+)?), *([A-Z][a-z]+)"),  # City, Country
)

COMPANY_PATTERNS = (
    re.compile(
        r"(?:worked at|employed at|experience at|worked for|employed by)\s+([A-Z][A-Za-z\s&.,]+)",
        re.IGNORECASE,
    ),
    re.compile(r"([A-Z][A-Za-z\s&]+)\s*(?:Inc\.|LLC|Ltd\.|Corp\.|Corporation|Company)", re.IGNORECASE),
)

MONEY_PATTERNS = (
    re.compile(
        r"\$[\d,]+(?:\.\d{2})?(?:\s*[-–]\s*\$[\d,]+(?:\.\d{2})?)?"
        r"(?:\s*(?:k|K|per\s*(?:year|month|hour)|/(?:yr|hr|mo)))?"
    ),
    re.compile(
        r"(?:salary|compensation|ctc|package)[:\s]*[$₹€£]?[\d,]+"
        r"(?:\s*[-–]\s*[$₹€£]?[\d,]+)?(?:\s*(?:k|K|lpa|LPA))?",
        re.IGNORECASE,
    ),
    re.compile(r"[\d,]+\s*(?:lpa|LPA|lakhs?)", re.IGNORECASE),
)

CERTIFICATION_PATTERNS = (
    re.compile(r"(?:certified|certification)[:\s]+([A-Za-z\s]+)", re.IGNORECASE),
    re.compile(
        r"(?:AWS|Azure|GCP|Google|Microsoft|Cisco|Oracle|CompTIA|PMP|Scrum|Agile)\s*"
        r"(?:Certified|Certificate|Certification)?[^.]*"
        r"(?:Developer|Architect|Engineer|Professional|Associate|Expert|Master|Practitioner)",
        re.IGNORECASE,
    ),
    re.compile(r"(?:CPA|CFA|CISSP|CISM|CEH|CCNA|CCNP|MCSE|MCSA|OCA|OCP|RHCE|RHCSA)"),
)

PROJECT_PATTERNS = (
    re.compile(
        r"(?:project|built|developed|created)[:\s]+"
        r"([A-Za-z\s]+(?:app|application|system|platform|tool|website|portal|dashboard)?)",
        re.IGNORECASE,
    ),
    re.compile(r"(?:key\s*projects?|personal\s*projects?|notable\s*projects?)[:\s]*([^.]+)", re.IGNORECASE),
)

ACHIEVEMENT_PATTERNS = (
    re.compile(
        r"(?:achieved|accomplished|delivered|improved|increased|reduced|saved|generated|grew|led|managed|drove)"
        r"\s+[^.]*\d+[^.]*",
        re.IGNORECASE,
    ),
    re.compile(r"\d+%\s*(?:improvement|increase|reduction|growth|savings)", re.IGNORECASE),
    re.compile(
        r"(?:\$|₹|€|£)[\d,.]+\s*(?:in\s*)?(?:revenue|savings|cost\s*reduction|growth)",
        re.IGNORECASE,
    ),
)

KNOWN_LANGUAGES = (
    "English", "Spanish", "French", "German", "Chinese", "Mandarin", "Japanese",
    "Korean", "Hindi", "Arabic", "Portuguese", "Russian", "Italian", "Dutch",
    "Swedish", "Norwegian", "Danish", "Finnish", "Polish", "Turkish", "Vietnamese",
    "Thai", "Indonesian", "Malay", "Tamil", "Telugu", "Bengali", "Punjabi",
)

KEYWORD_STOPWORDS = {
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "were", "been",
    "be", "have", "has", "had", "do", "does", "did", "will", "would", "could",
    "should", "may", "might", "must", "shall", "can", "need", "this", "that",
    "these", "those", "i", "you", "he", "she", "it", "we", "they", "my",
    "your", "his", "her", "its", "our", "their", "what", "which", "who",
    "whom", "when", "where", "why", "how", "all", "each", "every", "both",
    "few", "more", "most", "other", "some", "such", "no", "not", "only",
    "own", "same", "so", "than", "too", "very", "just", "also", "now",
}

WORD_TOKEN_RE = re.compile(r"[a-z0-9_]+")
THREE_DIGITS_RE = re.compile(r"\d{3}")


@lru_cache(maxsize=1)
def load_person_tagger():
    """Lazy-load the spaCy model once per process."""
    try:
        return spacy.load(settings.spacy_model)
    except OSError:
        logger.warning(
            "spaCy model %r is not installed; entity tagging falls back to pattern heuristics.",
            settings.spacy_model,
        )
        return spacy.blank("en")


@lru_cache(maxsize=16)
def _tag_entities(text: str) -> Tuple[Tuple[str, str], ...]:
    nlp = load_person_tagger()
    doc = nlp(text[: nlp.max_length])
    return tuple((ent.label_, ent.text.strip()) for ent in doc.ents)


def entities_with_label(text: str, labels: Iterable[str]) -> List[str]:
    if not text:
        return []
    wanted = set(labels)
    return [value for label, value in _tag_entities(text) if label in wanted and value]


def _unique_trimmed(items: Iterable[Optional[str]], limit: Optional[int] = None) -> List[str]:
    seen = set()
    result: List[str] = []
    for item in items:
        if not item:
            continue
        normalized = item.strip()
        if not normalized or normalized.lower() in seen:
            continue
        seen.add(normalized.lower())
        result.append(normalized)
        if limit is not None and len(result) >= limit:
            break
    return result


def _find_all(patterns: Iterable[re.Pattern], text: str, group: int = 0) -> List[str]:
    found: List[str] = []
    for pattern in patterns:
        for match in pattern.finditer(text):
            value = match.group(group) if group <= (pattern.groups or 0) else match.group(0)
            if value:
                found.append(value.strip())
    return found


def first_nonempty_line(text: str) -> str:
    for line in (text or "").splitlines():
        if line.strip():
            return line.strip()
    return ""


def extract_emails(text: str) -> List[str]:
    return _unique_trimmed(EMAIL_RE.findall(text or ""))


def extract_phones(text: str) -> List[str]:
    phones = [re.sub(r"\s+", " ", phone) for phone in _find_all(PHONE_PATTERNS, text or "")]
    return _unique_trimmed(phones)


def extract_urls(text: str) -> Dict[str, object]:
    text = text or ""
    urls: Dict[str, object] = {"linkedin": None, "github": None, "portfolio": None, "other": []}

    for url in URL_RE.findall(text):
        lowered = url.lower()
        if "linkedin.com" in lowered:
            urls["linkedin"] = url
        elif "github.com" in lowered:
            urls["github"] = url
        elif not any(domain in lowered for domain in IGNORED_URL_DOMAINS):
            if urls["portfolio"] is None:
                urls["portfolio"] = url
            else:
                urls["other"].append(url)

    if urls["linkedin"] is None:
        match = LINKEDIN_HANDLE_RE.search(text)
        if match:
            urls["linkedin"] = f"https://linkedin.com/in/{match.group(1)}"

    if urls["github"] is None:
        match = GITHUB_HANDLE_RE.search(text)
        if match:
            urls["github"] = f"https://github.com/{match.group(1)}"

    return urls


def looks_like_name_line(line: str) -> bool:
    if not line or len(line) >= 50 or "@" in line or THREE_DIGITS_RE.search(line):
        return False
    return 2 <= len(line.split()) <= 4


def extract_names(text: str) -> List[str]:
    people = entities_with_label(text, ("PERSON",))
    first_line = first_nonempty_line(text)
    if looks_like_name_line(first_line) and first_line not in people:
        people.insert(0, first_line)
    return _unique_trimmed(people, limit=5)


def extract_dates(text: str) -> List[str]:
    return _unique_trimmed(_find_all(DATE_PATTERNS, text or ""), limit=20)


def extract_locations(text: str) -> List[str]:
    places = entities_with_label(text, ("GPE", "LOC"))
    places.extend(_find_all(LOCATION_PATTERNS, text or "", group=1))
    return _unique_trimmed(places, limit=5)


def extract_organizations(text: str) -> List[str]:
    companies = entities_with_label(text, ("ORG",))
    companies.extend(_find_all(COMPANY_PATTERNS, text or "", group=1))
    return _unique_trimmed([c for c in companies if c and len(c.strip()) > 2], limit=10)


def extract_money(text: str) -> List[str]:
    return _unique_trimmed(_find_all(MONEY_PATTERNS, text or ""))


def extract_certifications(text: str) -> List[str]:
    return _unique_trimmed(_find_all(CERTIFICATION_PATTERNS, text or ""), limit=15)


def extract_projects(text: str) -> List[str]:
    projects = [
        project
        for project in _find_all(PROJECT_PATTERNS, text or "", group=1)
        if 3 < len(project) < 100
    ]
    return _unique_trimmed(projects, limit=10)


def extract_achievements(text: str) -> List[str]:
    return _unique_trimmed(_find_all(ACHIEVEMENT_PATTERNS, text or ""), limit=10)


def extract_languages(text: str) -> List[str]:
    lowered = (text or "").lower()
    return [language for language in KNOWN_LANGUAGES if language.lower() in lowered]


def extract_keywords(text: str, top_n: int = 20) -> List[Dict[str, object]]:
    tokens = WORD_TOKEN_RE.findall((text or "").lower())
    counts = Counter(
        token
        for token in tokens
        if len(token) > 2 and token not in KEYWORD_STOPWORDS and not token.isdigit()
    )
    ranked = sorted(counts.items(), key=lambda item: -item[1])[:top_n]
    return [{"word": word, "count": count} for word, count in ranked]


def extract_entities(text: str) -> Dict[str, object]:
    return {
        "names": extract_names(text),
        "emails": extract_emails(text),
        "phones": extract_phones(text),
        "urls": extract_urls(text),
        "dates": extract_dates(text),
        "locations": extract_locations(text),
        "organizations": extract_organizations(text),
        "money": extract_money(text),
    }


def extract_all(text: str) -> Dict[str, object]:
    return {
        "entities": extract_entities(text),
        "certifications": extract_certifications(text),
        "projects": extract_projects(text),
        "languages": extract_languages(text),
        "achievements": extract_achievements(text),
        "keywords": extract_keywords(text),
    }
