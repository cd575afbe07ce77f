"""
FastAPI application entry point.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from callnotify import __version__
from callnotify.config import get_settings
from callnotify.shared.exceptions import NotifierError
from callnotify.shared.logging import get_logger, setup_logging
from callnotify.webhooks.router import close_webhook_processor, error_response
from callnotify.webhooks.router import router as webhooks_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    setup_logging()
    settings = get_settings()

    channels = {
        "email": settings.enable_email_notifications,
        "teams": settings.enable_teams_notifications,
        "sms": settings.enable_sms_notifications,
        "ticketing": settings.enable_ticket_creation,
    }
    logger.info("Application starting", extra={"app_name": settings.app_name, "channels": channels})

    yield

    logger.info("Shutting down application")
    await close_webhook_processor()
    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Call Notify API",
        description="Voice-agent call-analysis webhook with multi-channel notifications",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Domain errors raised while building dependencies (e.g. missing channel settings)
    @app.exception_handler(NotifierError)
    async def _notifier_error(_: Request, exc: NotifierError) -> JSONResponse:
        return error_response(exc)

    app.include_router(webhooks_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    return app


app = create_app()
