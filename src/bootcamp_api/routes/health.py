"""Health check endpoint."""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends

from bootcamp.config import Settings
from bootcamp_api.dependencies import get_app_settings

router = APIRouter(tags=["health"])


@router.get("/health", summary="Service health")
async def health(settings: Settings = Depends(get_app_settings)) -> dict[str, Any]:
    """Liveness check; does not touch AWS or Stripe."""
    return {
        "status": "healthy",
        "environment": settings.environment,
        "timestamp": datetime.now(UTC).isoformat(),
    }
