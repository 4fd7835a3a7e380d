"""
FastAPI application entrypoint.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from apps.api.config import get_settings
from apps.api.logging_config import setup_logging
from apps.api.routers import health
from packages.shared.exceptions import AppException, app_exception_handler
from packages.shared.storage import get_storage_backend

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    setup_logging(settings.log_level)
    # Build and init() the backend at startup so a misconfigured bucket fails fast
    backend = get_storage_backend()
    logger.info(f"Storage backend ready: {backend.backend_name}")
    yield


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_exception_handler(AppException, app_exception_handler)

# Include routers
app.include_router(health.router)
