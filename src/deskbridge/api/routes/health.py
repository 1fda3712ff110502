"""Health check endpoint."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health(request: Request) -> dict:
    """Liveness check with the configured service name."""
    config = request.app.state.config
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": config.service_name,
    }
