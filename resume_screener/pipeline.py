"""Upload, batch and re-analysis flows with progress events."""

import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .config import settings as default_settings
from .errors import ParseError, UnsupportedFormatError, ValidationError
from .models import JobRequirements, MatchScore, ResumeAnalysis
from .orchestrator import MODE_AI, AnalysisOrchestrator
from .parser import extract_text
from .scoring import ScoringEngine

logger = logging.getLogger(__name__)

Emitter = Callable[[str, Dict[str, Any]], None]
JobLookup = Callable[[str], Any]
TextExtractor = Callable[[bytes, str], str]

RESUME_EVENT = "resume-processing"
BATCH_EVENT = "batch-processing"
BATCH_COMPLETE_EVENT = "batch-complete"

PARSE_FAILURE_MESSAGE = "Failed to parse resume file"

UPLOAD_MESSAGES = {
    "started": "Parsing resume",
    "parsing-complete": "Resume parsed",
    "analyzing": "Analyzing resume",
    "completed": "Analysis complete",
}


@dataclass(frozen=True)
class UploadedFile:
    file_name: str
    content: bytes
    mime_type: str


@dataclass(frozen=True)
class ProcessedResume:
    resume_id: str
    text: str
    analysis: ResumeAnalysis
    file_name: Optional[str] = None
    job_id: Optional[str] = None

    @property
    def match_score(self) -> Optional[MatchScore]:
        return self.analysis.match_score

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "resumeId": self.resume_id,
            "fileName": self.file_name,
            "jobId": self.job_id,
            "status": "completed",
            "rawText": self.text,
            "analysis": self.analysis.to_dict(),
        }
        if self.match_score is not None:
            payload["matchScore"] = self.match_score.to_dict()
        return payload


class ScreeningPipeline:
    def __init__(
        self,
        orchestrator: AnalysisOrchestrator,
        scoring_engine: Optional[ScoringEngine] = None,
        job_lookup: Optional[JobLookup] = None,
        emit: Optional[Emitter] = None,
        text_extractor: TextExtractor = extract_text,
        cooldown_seconds: float = default_settings.batch_cooldown_seconds,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.orchestrator = orchestrator
        self.scoring_engine = scoring_engine or ScoringEngine()
        self.job_lookup = job_lookup
        self.emit = emit
        self.text_extractor = text_extractor
        self.cooldown_seconds = cooldown_seconds
        self.sleep = sleep

    def _emit(self, event: str, payload: Dict[str, Any]) -> None:
        if self.emit is None:
            return
        try:
            self.emit(event, payload)
        except Exception:
            logger.exception("Failed to emit %s event", event)

    def resolve_job(self, job_id: Optional[str]) -> Optional[JobRequirements]:
        if not job_id or self.job_lookup is None:
            return None
        job = self.job_lookup(job_id)
        if job is None:
            logger.info("No job found for id %s; analysing without requirements", job_id)
            return None
        if isinstance(job, JobRequirements):
            return job
        return JobRequirements.from_dict(job)

    def process_upload(
        self,
        file_bytes: bytes,
        mime_type: str,
        resume_id: Optional[str] = None,
        job_id: Optional[str] = None,
        mode: str = MODE_AI,
        file_name: Optional[str] = None,
    ) -> ProcessedResume:
        resume_id = resume_id or uuid.uuid4().hex
        self._emit_upload(resume_id, "started", 10)

        try:
            text = self.text_extractor(file_bytes, mime_type)
        except UnsupportedFormatError as exc:
            self._emit_upload(resume_id, "failed", 10, message=str(exc), error=str(exc))
            raise
        except ParseError as exc:
            logger.warning("Parsing resume %s failed: %s", resume_id, exc)
            self._emit_upload(
                resume_id, "failed", 10, message=PARSE_FAILURE_MESSAGE, error=PARSE_FAILURE_MESSAGE
            )
            raise ParseError(PARSE_FAILURE_MESSAGE) from exc

        self._emit_upload(resume_id, "parsing-complete", 30)

        job = self.resolve_job(job_id)
        self._emit_upload(resume_id, "analyzing", 50)

        analysis = self.orchestrator.analyze(text, job, mode)
        processed = ProcessedResume(resume_id, text, analysis, file_name=file_name, job_id=job_id)

        self._emit_upload(resume_id, "completed", 100, data=processed.to_dict())
        return processed

    def _emit_upload(
        self, resume_id: str, status: str, progress: int, message: Optional[str] = None, **extra: Any
    ) -> None:
        payload: Dict[str, Any] = {
            "resumeId": resume_id,
            "status": status,
            "progress": progress,
            "message": message or UPLOAD_MESSAGES.get(status, status),
        }
        payload.update(extra)
        self._emit(RESUME_EVENT, payload)

    def process_batch(
        self,
        files: Sequence[UploadedFile],
        job_id: Optional[str] = None,
        mode: str = MODE_AI,
        cancel_event: Optional[threading.Event] = None,
    ) -> Dict[str, Any]:
        """Analyse files one at a time; one bad file never stops the rest."""
        job = self.resolve_job(job_id)
        ai_backed = self.orchestrator.select_mode(mode) == MODE_AI
        total = len(files)
        results: List[Dict[str, Any]] = []
        processed: List[ProcessedResume] = []
        cancelled = 0
        # set once an item reached the analyzer; parse failures never call the AI
        previous_analyzed = False

        for index, upload in enumerate(files):
            if cancel_event is not None and cancel_event.is_set():
                cancelled = total - index
                logger.info("Batch cancelled with %s of %s files remaining", cancelled, total)
                break

            if ai_backed and previous_analyzed and self.cooldown_seconds > 0:
                self.sleep(self.cooldown_seconds)
            previous_analyzed = False

            self._emit(
                BATCH_EVENT,
                {
                    "current": index + 1,
                    "total": total,
                    "fileName": upload.file_name,
                    "progress": round((index + 1) / total * 100),
                    "message": f"Processing {upload.file_name}",
                },
            )

            try:
                text = self.text_extractor(upload.content, upload.mime_type)
                previous_analyzed = True
                analysis = self.orchestrator.analyze(text, job, mode)
            except Exception as exc:
                logger.warning("Batch item %s failed: %s", upload.file_name, exc)
                results.append({"success": False, "fileName": upload.file_name, "error": str(exc)})
                continue

            item = ProcessedResume(uuid.uuid4().hex, text, analysis, file_name=upload.file_name, job_id=job_id)
            processed.append(item)
            results.append({"success": True, "resume": item.to_dict()})

        successful = sum(1 for result in results if result["success"])
        summary: Dict[str, Any] = {
            "total": total,
            "successful": successful,
            "failed": len(results) - successful,
            "cancelled": cancelled,
            "results": results,
        }
        if job is not None and processed:
            ranked = self.scoring_engine.rank_candidates(
                [(item.resume_id, item.analysis) for item in processed], job
            )
            summary["ranking"] = [
                {
                    "rank": entry.rank,
                    "resumeId": entry.candidate_id,
                    "overallScore": entry.match_score.overall_score,
                    "recommendation": entry.recommendation.to_dict(),
                }
                for entry in ranked
            ]

        self._emit(BATCH_COMPLETE_EVENT, {"results": results})
        return summary

    def reanalyze(
        self,
        text: str,
        job_id: Optional[str] = None,
        mode: str = MODE_AI,
        resume_id: Optional[str] = None,
    ) -> ProcessedResume:
        job = self.resolve_job(job_id)
        analysis = self.orchestrator.reanalyze(text, job, mode)
        return ProcessedResume(resume_id or uuid.uuid4().hex, text, analysis, job_id=job_id)

    def compare_resumes(
        self,
        resumes: Sequence[Tuple[str, str]],
        job: JobRequirements,
        mode: str = MODE_AI,
    ) -> List[Dict[str, Any]]:
        """Analyse (resume_id, text) pairs against one job, best match first."""
        if len(resumes) < 2:
            raise ValidationError("At least two resumes are required for comparison.")

        analyses = [(resume_id, self.orchestrator.analyze(text, job, mode)) for resume_id, text in resumes]
        return [
            {
                "rank": entry.rank,
                "resumeId": entry.candidate_id,
                "name": entry.analysis.contact.name,
                "overallScore": entry.match_score.overall_score,
                "recommendation": entry.recommendation.to_dict(),
                "skills": entry.analysis.skills.flatten(),
                "experienceLevel": entry.analysis.experience.experience_level.value,
                "totalYears": entry.analysis.experience.total_years,
                "redFlags": len(entry.analysis.red_flags),
            }
            for entry in self.scoring_engine.rank_candidates(analyses, job)
        ]
