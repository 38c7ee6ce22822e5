from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from .fallback_content import FallbackContentProvider
from .firestore_page_store import FirestorePageStore
from .models.quality import QualityThresholds
from .orchestrator import PageGenerationOrchestrator
from .page_store import LocalPageStore, PageStore, page_directory
from .quality import QualityAssessor
from .section_generator import SectionGenerator
from .segment_cache import SegmentCache
from .vertex_ai_adapter import GenerativeBackend, VertexAIAdapter
from .website_service import LandingPageService


class PipelineSettings(BaseModel):
    environment: str = "dev"
    project_id: str | None = None
    vertex_location: str = "asia-northeast1"
    vertex_model: str = "gemini-1.5-pro"
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    storage_backend: Literal["local", "firestore"] = "local"
    data_dir: Path = Path("data/landing-pages")
    segment_cache_dir: Path = Path("data/segments")
    max_retries: int = Field(default=2, ge=1)
    page_key: str = "default"
    thresholds: QualityThresholds = Field(default_factory=QualityThresholds)

    @classmethod
    def from_env(cls) -> "PipelineSettings":
        """Read settings from the process environment; unset variables keep their defaults."""
        values: dict[str, object] = {
            "environment": os.getenv("ENVIRONMENT"),
            "project_id": os.getenv("PROJECT_ID"),
            "vertex_location": os.getenv("VERTEX_LOCATION"),
            "vertex_model": os.getenv("VERTEX_MODEL"),
            "temperature": os.getenv("LP_TEMPERATURE"),
            "storage_backend": os.getenv("LP_STORAGE_BACKEND"),
            "data_dir": os.getenv("LP_DATA_DIR"),
            "segment_cache_dir": os.getenv("LP_SEGMENT_CACHE_DIR"),
            "max_retries": os.getenv("LP_MAX_RETRIES"),
            "page_key": os.getenv("LP_PAGE_KEY"),
        }
        thresholds = {
            "min_combined_score": os.getenv("LP_MIN_COMBINED_SCORE"),
            "min_quality_score": os.getenv("LP_MIN_QUALITY_SCORE"),
            "min_confidence_score": os.getenv("LP_MIN_CONFIDENCE_SCORE"),
        }
        settings = {key: value for key, value in values.items() if value}
        settings["thresholds"] = {key: value for key, value in thresholds.items() if value}
        return cls.model_validate(settings)


def build_backend(settings: PipelineSettings) -> VertexAIAdapter:
    if not settings.project_id:
        raise ValueError("PROJECT_ID must be set to use Vertex AI")
    return VertexAIAdapter(
        project_id=settings.project_id,
        location=settings.vertex_location,
        model_name=settings.vertex_model,
        temperature=settings.temperature,
    )


def build_page_store(settings: PipelineSettings) -> PageStore:
    if settings.storage_backend == "firestore":
        return FirestorePageStore(project_id=settings.project_id)
    return LocalPageStore(base_path=settings.data_dir.resolve())


def build_service(
    settings: PipelineSettings,
    *,
    backend: GenerativeBackend | None = None,
    page_store: PageStore | None = None,
) -> LandingPageService:
    """Wire every pipeline component for ``settings``.

    Segment caches live under ``segment_cache_dir/<page key>`` so cached copy
    is only ever restored onto the page it was generated for.
    """
    backend = backend or build_backend(settings)
    fallback_provider = FallbackContentProvider()
    section_generator = SectionGenerator(backend=backend, fallback_provider=fallback_provider)
    quality_assessor = QualityAssessor(backend=backend, thresholds=settings.thresholds)
    segment_root = settings.segment_cache_dir.resolve()

    def orchestrator_factory(page_key: str) -> PageGenerationOrchestrator:
        return PageGenerationOrchestrator(
            backend=backend,
            section_generator=section_generator,
            quality_assessor=quality_assessor,
            segment_cache=SegmentCache(cache_path=page_directory(segment_root, page_key)),
            fallback_provider=fallback_provider,
            max_retries=settings.max_retries,
        )

    return LandingPageService(
        orchestrator_factory=orchestrator_factory,
        page_store=page_store or build_page_store(settings),
        default_page_key=settings.page_key,
    )


__all__ = ["PipelineSettings", "build_backend", "build_page_store", "build_service"]
