"""Health check endpoints for the estimation service."""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from core.exceptions import StorageError

router = APIRouter()
health_router = router  # alias for main.py


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str


@router.get("/", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic liveness."""
    return HealthResponse(status="healthy", service="estimation-service", version="1.0.0")


@router.get("/ready")
async def readiness_check(request: Request) -> dict:
    """Readiness: the session store answers."""
    repo = request.app.state.container.session_repo
    try:
        await repo.ping()
    except StorageError as exc:
        return {"status": "not_ready", "error": exc.message}
    return {"status": "ready"}


@router.get("/live")
async def liveness_check() -> dict:
    """Liveness endpoint."""
    return {"status": "alive"}
