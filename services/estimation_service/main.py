#!/usr/bin/env python3
"""Estimation Service - FastAPI service for planning poker sessions."""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.providers import DIContainer
from app.services.session_cleanup import cleanup_loop
from config import CLEANUP_INTERVAL_SECONDS, CORS_ORIGINS, ESTIMATION_SERVICE_PORT, LOG_LEVEL
from core.exceptions import StorageError
from services.estimation_service.api import router
from services.estimation_service.health import health_router
from services.estimation_service.metrics import metrics_router
from services.estimation_service.repository import get_broadcaster, get_repository

logger = logging.getLogger(__name__)


def build_container() -> DIContainer:
    """Wire adapters selected by configuration."""
    return DIContainer(session_repo=get_repository(), broadcaster=get_broadcaster())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    logger.info("Estimation Service starting...")
    if getattr(app.state, "container", None) is None:
        app.state.container = build_container()
    container: DIContainer = app.state.container
    cleanup_task = asyncio.create_task(
        cleanup_loop(container.purge_expired, container.metrics, CLEANUP_INTERVAL_SECONDS)
    )
    yield
    logger.info("Estimation Service shutting down...")
    cleanup_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await cleanup_task
    await container.cleanup()


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error(f"Storage failure on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=503, content={"detail": "Session store unavailable"})


def create_app(container: Optional[DIContainer] = None) -> FastAPI:
    """Build the application; tests pass a container with in-memory adapters."""
    app = FastAPI(
        title="Estimation Service",
        description="Real-time planning poker sessions",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StorageError, storage_error_handler)

    app.include_router(health_router, prefix="/health", tags=["health"])
    app.include_router(metrics_router, prefix="/metrics", tags=["metrics"])
    app.include_router(router, prefix="/api/v1", tags=["estimation"])
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=ESTIMATION_SERVICE_PORT)
