"""
Health check endpoint for the relay service.

Exposes a /health endpoint reporting liveness and Redis connectivity.
"""

from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health(request: Request) -> dict[str, str]:
    """Return ``{"status": "ok"}`` and the state of the Redis connection."""
    redis = getattr(request.app.state, "redis", None)
    if redis is None:
        return {"status": "ok", "redis": "not_configured"}
    healthy = await redis.health_check()
    return {"status": "ok", "redis": "ok" if healthy else "unavailable"}
