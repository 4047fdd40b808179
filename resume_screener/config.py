import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

PLACEHOLDER_API_KEYS = {"sk-your-openai-api-key-here", "your-api-key", "changeme"}


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = _get_env(name)
    if raw is None:
        return default
    values = [item.strip() for item in raw.split(",") if item.strip()]
    return tuple(values) if values else default


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str]
    base_url: str
    model_name: str
    temperature: float
    max_tokens: int
    http_referer: str
    app_title: str
    ai_max_attempts: int
    ai_retry_base_delay: float
    ai_retry_multiplier: float
    resume_char_budget: int
    compare_char_budget: int
    batch_cooldown_seconds: float
    spacy_model: str
    log_level: str
    progress_ttl_seconds: int
    cors_allowed_origins: Tuple[str, ...]


def load_settings() -> Settings:
    return Settings(
        api_key=_get_env("OPENROUTER_API_KEY") or _get_env("OPENAI_API_KEY"),
        base_url=_get_env("OPENAI_BASE_URL", "https://api.openai.com/v1") or "https://api.openai.com/v1",
        model_name=_get_env("RESUME_LLM_MODEL", "gpt-4o-mini") or "gpt-4o-mini",
        temperature=_get_env_float("LLM_TEMPERATURE", 0.3),
        max_tokens=_get_env_int("LLM_MAX_TOKENS", 4000),
        http_referer=_get_env("LLM_HTTP_REFERER", "Local") or "Local",
        app_title=_get_env("LLM_APP_TITLE", "Resume Screener") or "Resume Screener",
        ai_max_attempts=max(1, _get_env_int("AI_MAX_ATTEMPTS", 3)),
        ai_retry_base_delay=_get_env_float("AI_RETRY_BASE_DELAY", 1.0),
        ai_retry_multiplier=_get_env_float("AI_RETRY_MULTIPLIER", 2.0),
        resume_char_budget=_get_env_int("RESUME_CHAR_BUDGET", 12000),
        compare_char_budget=_get_env_int("COMPARE_CHAR_BUDGET", 2000),
        batch_cooldown_seconds=_get_env_float("BATCH_COOLDOWN_SECONDS", 3.0),
        spacy_model=_get_env("SPACY_MODEL", "en_core_web_sm") or "en_core_web_sm",
        log_level=(_get_env("LOG_LEVEL", "INFO") or "INFO").upper(),
        progress_ttl_seconds=_get_env_int("PROGRESS_TTL_SECONDS", 300),
        cors_allowed_origins=_get_env_list(
            "CORS_ALLOWED_ORIGINS",
            ("http://localhost:3000", "http://localhost:5173"),
        ),
    )


@dataclass(frozen=True)
class AIAvailability:
    """Whether the AI path may be attempted, decided once at start-up."""

    configured: bool
    reason: str = ""

    @classmethod
    def from_settings(cls, settings: Settings) -> "AIAvailability":
        key = (settings.api_key or "").strip()
        if not key:
            return cls(False, "Set OPENROUTER_API_KEY or OPENAI_API_KEY to enable AI analysis.")
        if key in PLACEHOLDER_API_KEYS:
            return cls(False, "API key is still set to a placeholder value.")
        return cls(True)

    def __bool__(self) -> bool:
        return self.configured


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


settings = load_settings()
