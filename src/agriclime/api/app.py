"""FastAPI app factory."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agriclime import __version__
from agriclime.api.analysis import router as analysis_router
from agriclime.config import load_analysis_config
from agriclime.pipeline import AnalysisOrchestrator

logger = logging.getLogger(__name__)


def create_app(orchestrator: AnalysisOrchestrator | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    load_dotenv()

    app = FastAPI(
        title="AgriClime Sentinel API",
        description="Severe-weather and climate-trend analytics",
        version=__version__,
    )

    if orchestrator is None:
        orchestrator = AnalysisOrchestrator(config=load_analysis_config())
    app.state.orchestrator = orchestrator

    # Comma-separated list, e.g. "http://localhost:3000"
    cors_origins = os.environ.get("CORS_ORIGINS", "")
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[o.strip() for o in cors_origins.split(",") if o.strip()],
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )
        logger.info("CORS enabled for %s", cors_origins)

    app.include_router(analysis_router, prefix="/api")

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
