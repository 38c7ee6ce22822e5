from __future__ import annotations

import logging
from typing import Any

from fastapi import BackgroundTasks, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .job_store import JobStore
from .logging_config import parse_trace_header, set_trace_id
from .models.identity import BrandIdentity
from .models.job import JobOutputs, JobRecord, JobStatus
from .models.quality import QualityThresholds
from .website_service import LandingPageService, OperationResult

logger = logging.getLogger(__name__)


class GeneratePageRequest(BaseModel):
    page_key: str | None = None
    identity: BrandIdentity | None = Field(default=None, description="Optional inline brand identity; saved before generating")
    overrides: dict[str, Any] | None = None


class GeneratePageResponse(BaseModel):
    job_id: str
    status: JobStatus


class PageRequest(BaseModel):
    page_key: str | None = None


class AssessPageRequest(PageRequest):
    thresholds: QualityThresholds | None = None


class RegenerateSectionsRequest(PageRequest):
    sections: list[str] | None = None


class JobResponse(BaseModel):
    id: str
    status: JobStatus
    operation: str
    progress: float
    outputs: JobOutputs
    errors: list[str]

    @staticmethod
    def from_record(record: JobRecord) -> "JobResponse":
        return JobResponse(
            id=record.id,
            status=record.status,
            operation=record.operation,
            progress=record.progress,
            outputs=record.outputs,
            errors=list(record.errors),
        )


def create_app(
    service: LandingPageService,
    job_store: JobStore | None = None,
    *,
    project_id: str | None = None,
) -> FastAPI:
    app = FastAPI(title="Landing Page Drafter API", version="0.1.0")
    jobs = job_store or JobStore()

    @app.middleware("http")
    async def bind_trace(request: Request, call_next):
        set_trace_id(parse_trace_header(request.headers.get("X-Cloud-Trace-Context"), project_id))
        return await call_next(request)

    async def _run_generate(job_id: str, request: GeneratePageRequest) -> None:
        jobs.update_job(job_id, status=JobStatus.in_progress, progress=0.1)
        try:
            if request.identity is not None:
                saved = await service.save_identity(request.identity, request.page_key)
                if not saved.success:
                    jobs.update_job(job_id, status=JobStatus.failed, progress=1.0, errors=[saved.message])
                    return
            result = await service.generate(request.page_key, overrides=request.overrides)
        except Exception as exc:  # pragma: no cover
            logger.error("Generate job crashed", exc_info=True, extra={"job_id": job_id})
            jobs.update_job(job_id, status=JobStatus.failed, progress=1.0, errors=[str(exc)])
            return

        data = result.data or {}
        outputs = JobOutputs(
            message=result.message,
            landing_page=data.get("landingPage"),
            generation_status=data.get("generationStatus"),
        )
        jobs.update_job(
            job_id,
            status=JobStatus.completed if result.success else JobStatus.failed,
            progress=1.0,
            outputs=outputs,
            errors=[] if result.success else [result.message],
        )

    @app.post("/v1/landing-page:generate", response_model=GeneratePageResponse)
    async def generate_page(request: GeneratePageRequest, background_tasks: BackgroundTasks) -> GeneratePageResponse:
        job = jobs.create_job(operation="generate", page_key=request.page_key or service.default_page_key)
        background_tasks.add_task(_run_generate, job.id, request)
        return GeneratePageResponse(job_id=job.id, status=job.status)

    @app.get("/v1/jobs/{job_id}", response_model=JobResponse)
    async def get_job(job_id: str) -> JobResponse:
        record = jobs.get_job(job_id)
        if not record:
            raise HTTPException(status_code=404, detail="Job not found")
        return JobResponse.from_record(record)

    @app.post("/v1/landing-page:edit", response_model=OperationResult)
    async def edit_page(request: PageRequest) -> OperationResult:
        return await service.edit(request.page_key)

    @app.post("/v1/landing-page:assess", response_model=OperationResult)
    async def assess_page(request: AssessPageRequest) -> OperationResult:
        return await service.assess(request.page_key, thresholds=request.thresholds)

    @app.post("/v1/landing-page:apply", response_model=OperationResult)
    async def apply_recommendations(request: AssessPageRequest) -> OperationResult:
        return await service.apply_recommendations(request.page_key, thresholds=request.thresholds)

    @app.post("/v1/landing-page:regenerate-failed", response_model=OperationResult)
    async def regenerate_failed(request: RegenerateSectionsRequest) -> OperationResult:
        return await service.regenerate_failed(request.page_key, sections=request.sections)

    @app.get("/v1/landing-page", response_model=OperationResult)
    async def view_page(page_key: str | None = None) -> OperationResult:
        result = await service.view(page_key)
        if not result.success:
            raise HTTPException(status_code=404, detail=result.message)
        return result

    @app.get("/health")
    async def healthcheck() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    return app


__all__ = ["create_app", "GeneratePageRequest", "GeneratePageResponse", "JobResponse"]
