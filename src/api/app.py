"""FastAPI application factory for the PrepView collaborator service."""

from __future__ import annotations

import logging

from fastapi import Depends, FastAPI

from .metrics import instrument_app, router as metrics_router
from .routers import extract, generate, transcribe
from .schemas import HealthResponse
from .settings import APISettings, get_settings

LOGGER = logging.getLogger("prepview.api")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, version=settings.version)
    instrument_app(app)
    app.include_router(transcribe.router)
    app.include_router(generate.router)
    app.include_router(extract.router)
    app.include_router(metrics_router)

    @app.get("/healthz", response_model=HealthResponse)
    async def healthz(current: APISettings = Depends(get_settings)) -> HealthResponse:
        return HealthResponse(
            ok=True,
            openai="configured" if current.openai_api_key else "missing",
            google="configured" if current.google_api_key else "missing",
        )

    if not settings.openai_api_key:
        LOGGER.warning("OPENAI_API_KEY is not set; /api/transcribe and /api/generate-response will fail")
    return app


app = create_app()
