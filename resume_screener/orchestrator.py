import logging
from typing import Optional

from .ai_analyzer import AIAnalyzer
from .analyzer import RuleBasedAnalyzer
from .config import AIAvailability
from .models import JobRequirements, ResumeAnalysis
from .transformer import transform_ai_response

logger = logging.getLogger(__name__)

MODE_AI = "ai"
MODE_RULE = "rule"
ANALYSIS_MODES = (MODE_AI, MODE_RULE)


class AnalysisOrchestrator:
    """Pick the AI or rule path for each request and fall back when the AI path fails."""

    def __init__(
        self,
        rule_analyzer: RuleBasedAnalyzer,
        ai_analyzer: Optional[AIAnalyzer],
        availability: AIAvailability,
    ):
        self.rule_analyzer = rule_analyzer
        self.ai_analyzer = ai_analyzer
        self.availability = availability

    def select_mode(self, mode: Optional[str]) -> str:
        requested = (mode or MODE_AI).strip().lower()
        if requested not in ANALYSIS_MODES:
            logger.warning("Unknown analysis mode %r; using rule-based analysis", mode)
            return MODE_RULE
        if requested == MODE_AI and (not self.availability or self.ai_analyzer is None):
            logger.info("AI analysis unavailable (%s); using rule-based analysis", self.availability.reason)
            return MODE_RULE
        return requested

    def analyze(
        self,
        text: str,
        job_requirements: Optional[JobRequirements] = None,
        mode: str = MODE_AI,
    ) -> ResumeAnalysis:
        if self.select_mode(mode) == MODE_AI:
            try:
                payload = self.ai_analyzer.analyze(text, job_requirements)
                return transform_ai_response(payload, text, job_requirements)
            except Exception:
                logger.exception("AI analysis failed; falling back to rule-based analysis")

        return self.rule_analyzer.analyze(text, job_requirements)

    def reanalyze(
        self,
        text: str,
        job_requirements: Optional[JobRequirements] = None,
        mode: str = MODE_AI,
    ) -> ResumeAnalysis:
        # ResumeAnalysis is frozen, so every run yields a fresh object.
        return self.analyze(text, job_requirements, mode)
