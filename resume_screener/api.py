# api.py (FastAPI surface over the screening pipeline)
import logging
import threading
import time
import uuid
from typing import Any, Callable, Dict, List, Optional

from fastapi import Body, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .ai_analyzer import AIAnalyzer
from .analyzer import RuleBasedAnalyzer
from .config import AIAvailability, Settings, configure_logging, settings as default_settings
from .errors import ParseError, UnsupportedFormatError, ValidationError
from .models import JobRequirements
from .orchestrator import MODE_AI, AnalysisOrchestrator
from .parser import guess_mime_type
from .pipeline import Emitter, ScreeningPipeline, UploadedFile
from .scoring import ScoringEngine

logger = logging.getLogger(__name__)


class ProgressRegistry:
    """In-memory progress snapshots keyed by request token, expired after a TTL."""

    def __init__(self, ttl_seconds: int, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def start(self, token: str, total: int) -> None:
        now = self.clock()
        with self._lock:
            self._entries[token] = {
                "current": "",
                "processed": 0,
                "total": total,
                "progress": 0,
                "status": "started",
                "done": False,
                "error": None,
                "started_at": now,
                "updated_at": now,
            }

    def record(self, token: str, event: str, payload: Dict[str, Any]) -> None:
        with self._lock:
            entry = self._entries.get(token)
            if entry is None:
                return
            entry["event"] = event
            if "progress" in payload:
                entry["progress"] = payload["progress"]
            if "status" in payload:
                entry["status"] = payload["status"]
            if "fileName" in payload:
                entry["current"] = payload["fileName"]
            if "current" in payload and isinstance(payload["current"], int):
                entry["processed"] = payload["current"] - 1
            if payload.get("status") == "failed":
                entry["error"] = payload.get("error")
            entry["updated_at"] = self.clock()

    def finish(self, token: str, error: Optional[str] = None) -> None:
        with self._lock:
            entry = self._entries.get(token)
            if entry is None:
                return
            entry["current"] = ""
            entry["processed"] = entry["total"]
            entry["done"] = True
            entry["error"] = error or entry["error"]
            entry["status"] = "failed" if entry["error"] else "completed"
            entry["updated_at"] = self.clock()

    def get(self, token: str) -> Optional[Dict[str, Any]]:
        self.purge_stale()
        with self._lock:
            entry = self._entries.get(token)
            return dict(entry) if entry is not None else None

    def purge_stale(self) -> None:
        now = self.clock()
        with self._lock:
            stale_ids = [
                key
                for key, meta in self._entries.items()
                if now - float(meta.get("updated_at", now)) > self.ttl_seconds
            ]
            for key in stale_ids:
                self._entries.pop(key, None)

    def emitter(self, token: str) -> Emitter:
        def emit(event: str, payload: Dict[str, Any]) -> None:
            self.record(token, event, payload)

        return emit


def create_app(
    config: Settings = default_settings,
    orchestrator: Optional[AnalysisOrchestrator] = None,
    registry: Optional[ProgressRegistry] = None,
) -> FastAPI:
    configure_logging(config)

    availability = AIAvailability.from_settings(config)
    if orchestrator is None:
        orchestrator = AnalysisOrchestrator(
            RuleBasedAnalyzer(),
            AIAnalyzer.from_settings(config, availability),
            availability,
        )
    registry = registry or ProgressRegistry(config.progress_ttl_seconds)
    scoring_engine = ScoringEngine()
    jobs: Dict[str, JobRequirements] = {}

    logger.info("Resume screener starting (AI configured: %s)", bool(orchestrator.availability))

    app = FastAPI(title="Resume Screener")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def pipeline_for(token: str) -> ScreeningPipeline:
        return ScreeningPipeline(
            orchestrator,
            scoring_engine=scoring_engine,
            job_lookup=jobs.get,
            emit=registry.emitter(token),
            cooldown_seconds=config.batch_cooldown_seconds,
        )

    def require_job(job_id: Optional[str]) -> Optional[str]:
        if job_id and job_id not in jobs:
            raise HTTPException(status_code=404, detail=f"Job {job_id} not found")
        return job_id or None

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"error": str(exc)})

    @app.exception_handler(UnsupportedFormatError)
    async def handle_unsupported_format(request, exc: UnsupportedFormatError):
        return JSONResponse(status_code=415, content={"error": str(exc)})

    @app.exception_handler(ParseError)
    async def handle_parse_error(request, exc: ParseError):
        return JSONResponse(status_code=400, content={"error": "Failed to parse resume file"})

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "aiConfigured": bool(orchestrator.availability),
            "aiModel": config.model_name if orchestrator.availability else None,
        }

    @app.post("/jobs", status_code=201)
    def create_job(payload: Dict[str, Any] = Body(...)):
        requirements = JobRequirements.from_dict(payload.get("requirements", payload))
        job_id = str(payload.get("jobId") or uuid.uuid4())
        jobs[job_id] = requirements
        return {"jobId": job_id, "requirements": requirements.to_dict()}

    @app.get("/jobs/{job_id}")
    def get_job(job_id: str):
        requirements = jobs.get(job_id)
        if requirements is None:
            raise HTTPException(status_code=404, detail=f"Job {job_id} not found")
        return {"jobId": job_id, "requirements": requirements.to_dict()}

    @app.post("/resumes", status_code=201)
    def upload_resume(
        file: UploadFile = File(...),
        job_id: Optional[str] = Form(None),
        mode: str = Form(MODE_AI),
        progress_token: Optional[str] = Form(None),
    ):
        job_id = require_job(job_id)
        token = progress_token or str(uuid.uuid4())
        registry.start(token, total=1)
        content = file.file.read()
        try:
            processed = pipeline_for(token).process_upload(
                content,
                guess_mime_type(file.filename or "", file.content_type or ""),
                resume_id=token,
                job_id=job_id,
                mode=mode,
                file_name=file.filename,
            )
        except Exception as exc:
            registry.finish(token, error=str(exc))
            raise
        registry.finish(token)
        return {"progressToken": token, **processed.to_dict()}

    @app.post("/resumes/batch", status_code=201)
    def upload_batch(
        files: List[UploadFile] = File(...),
        job_id: Optional[str] = Form(None),
        mode: str = Form(MODE_AI),
        progress_token: Optional[str] = Form(None),
    ):
        if not files:
            raise HTTPException(status_code=400, detail="No files uploaded")
        job_id = require_job(job_id)
        token = progress_token or str(uuid.uuid4())
        registry.start(token, total=len(files))
        uploads = [
            UploadedFile(
                file_name=upload.filename or f"resume-{index}",
                content=upload.file.read(),
                mime_type=guess_mime_type(upload.filename or "", upload.content_type or ""),
            )
            for index, upload in enumerate(files, start=1)
        ]
        try:
            summary = pipeline_for(token).process_batch(uploads, job_id=job_id, mode=mode)
        except Exception as exc:
            registry.finish(token, error=str(exc))
            raise
        registry.finish(token)
        return {"progressToken": token, **summary}

    @app.post("/resumes/reanalyze")
    def reanalyze_resume(payload: Dict[str, Any] = Body(...)):
        text = payload.get("text")
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Field 'text' must be a non-empty string.")
        job_id = require_job(payload.get("jobId"))
        processed = pipeline_for(str(uuid.uuid4())).reanalyze(
            text,
            job_id=job_id,
            mode=payload.get("mode") or MODE_AI,
            resume_id=payload.get("resumeId"),
        )
        return processed.to_dict()

    @app.post("/resumes/compare")
    def compare_resumes(payload: Dict[str, Any] = Body(...)):
        raw_resumes = payload.get("resumes")
        if not isinstance(raw_resumes, list):
            raise ValidationError("Field 'resumes' must be a list.")
        resumes = []
        for index, item in enumerate(raw_resumes, start=1):
            text = item.get("text") if isinstance(item, dict) else None
            if not isinstance(text, str) or not text.strip():
                raise ValidationError(f"Resume {index} needs a non-empty 'text'.")
            resumes.append((str(item.get("resumeId") or f"resume-{index}"), text))

        job_id = require_job(payload.get("jobId"))
        if job_id:
            job = jobs[job_id]
        elif payload.get("requirements") is not None:
            job = JobRequirements.from_dict(payload["requirements"])
        else:
            raise ValidationError("Provide 'jobId' or 'requirements' to compare against.")

        ranking = pipeline_for(str(uuid.uuid4())).compare_resumes(
            resumes, job, mode=payload.get("mode") or MODE_AI
        )
        return {"total": len(ranking), "ranking": ranking}

    @app.get("/progress/{token}")
    def get_progress(token: str):
        progress = registry.get(token)
        if not progress:
            return {
                "current": "",
                "processed": 0,
                "total": 0,
                "done": False,
                "error": None,
                "status": "pending",
            }
        return progress

    return app


app = create_app()
