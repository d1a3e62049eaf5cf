# backend/tutorbook/main.py
"""
FastAPI application for the tutoring session lifecycle and payroll engine.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI

from .core.config import is_running_tests, settings
from . import models  # noqa: F401  (registers tables on Base.metadata)
from .database import Base, engine
from .errors import register_error_handlers
from .routes.v1 import (
    availability as availability_v1,
    bookings as bookings_v1,
    cancellations as cancellations_v1,
    payroll as payroll_v1,
)

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

API_TITLE = "Tutorbook API"
API_VERSION = "1.0.0"


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info("%s starting up...", API_TITLE)
    logger.info("Environment: %s, timezone: %s", settings.environment, settings.platform_timezone)
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")
    elif settings.environment == "development":
        # Production schemas are managed by migrations
        Base.metadata.create_all(bind=engine)
    yield
    logger.info("%s shutting down...", API_TITLE)


def create_app() -> FastAPI:
    application = FastAPI(
        title=API_TITLE,
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )
    register_error_handlers(application)

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(availability_v1.router)
    api_v1.include_router(bookings_v1.router, prefix="/bookings")
    api_v1.include_router(cancellations_v1.router, prefix="/cancellation-requests")
    api_v1.include_router(payroll_v1.router, prefix="/payroll")
    application.include_router(api_v1)

    @application.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "healthy", "environment": settings.environment}

    return application


app = create_app()
