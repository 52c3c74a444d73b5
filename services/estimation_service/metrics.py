"""Metrics endpoints."""

from fastapi import APIRouter, Request

from core.exceptions import StorageError

router = APIRouter()
metrics_router = router  # alias for main.py


@router.get("/", response_model=dict)
async def get_metrics(request: Request) -> dict:
    """Get service metrics."""
    container = request.app.state.container
    metrics = await container.metrics.snapshot()
    try:
        metrics["sessions_count"] = await container.session_repo.count_sessions()
    except StorageError:
        metrics["sessions_count"] = None
    return metrics
