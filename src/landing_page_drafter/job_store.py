from __future__ import annotations

import threading
import uuid
from datetime import datetime, timezone
from typing import Dict

from .models.job import JobOutputs, JobRecord, JobStatus


class JobStore:
    """In-memory record of background page operations started over HTTP."""

    def __init__(self) -> None:
        self._jobs: Dict[str, JobRecord] = {}
        self._lock = threading.Lock()

    def create_job(self, *, operation: str, page_key: str | None) -> JobRecord:
        with self._lock:
            job_id = self._generate_id(page_key)
            job = JobRecord(
                id=job_id,
                status=JobStatus.queued,
                operation=operation,
                page_key=page_key,
            )
            self._jobs[job_id] = job
            return job

    def get_job(self, job_id: str) -> JobRecord | None:
        with self._lock:
            job = self._jobs.get(job_id)
            return job.model_copy() if job is not None else None

    def update_job(
        self,
        job_id: str,
        *,
        status: JobStatus | None = None,
        progress: float | None = None,
        outputs: JobOutputs | None = None,
        errors: list[str] | None = None,
    ) -> JobRecord:
        with self._lock:
            job = self._jobs[job_id]
            if status is not None:
                job.status = status
            if progress is not None:
                job.progress = progress
            if outputs is not None:
                job.outputs = outputs
            if errors is not None:
                job.errors = list(errors)
            job.updated_at = datetime.now(timezone.utc)
            return job.model_copy()

    def _generate_id(self, page_key: str | None) -> str:
        ts = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
        suffix = uuid.uuid4().hex[:6]
        if page_key:
            safe = page_key.replace("/", "-")
            return f"job_{safe}_{suffix}"
        return f"job_{ts}_{suffix}"


__all__ = ["JobStore"]
