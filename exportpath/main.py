"""
FastAPI application entrypoint for the route analysis backend.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from exportpath.api.routes import router as api_router
from exportpath.clients.backend import DEMO_SECRET_HEADER
from exportpath.core.config import get_settings
from exportpath.core.logging import configure_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)
    if not settings.gemini.api_key:
        logger.warning("GEMINI_API_KEY is not set; analysis endpoints will fail.")

    app = FastAPI(
        title="ExportPath Route Analysis",
        version="0.1.0",
        description="Grounded research and structured synthesis for export route feasibility.",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.server.cors_allow_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", DEMO_SECRET_HEADER],
    )
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
