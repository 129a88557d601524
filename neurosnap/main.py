"""
FastAPI application entrypoint for the assessment report service.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from neurosnap.api.routes import router as api_router
from neurosnap.core.config import get_settings
from neurosnap.core.logging import configure_logging
from neurosnap.dependencies import get_backend_client, get_report_registry


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await get_report_registry().aclose()
    await get_backend_client().aclose()


def create_app() -> FastAPI:
    """Factory for the FastAPI application.

    Loading settings here makes a missing frontend key fail at startup.
    """
    settings = get_settings()
    configure_logging(settings.app_log_level)

    app = FastAPI(
        title="Neuro-Snap Assessment",
        version="0.1.0",
        description="Submit personality assessments and follow their AI analysis.",
        lifespan=_lifespan,
    )
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
