from __future__ import annotations

from landing_page_drafter.api import create_app
from landing_page_drafter.config import PipelineSettings, build_service
from landing_page_drafter.job_store import JobStore
from landing_page_drafter.logging_config import setup_logging

# Environment configuration
settings = PipelineSettings.from_env()

# Setup logging
setup_logging(environment=settings.environment, project_id=settings.project_id)

app = create_app(build_service(settings), JobStore(), project_id=settings.project_id)
