"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root(request: Request) -> dict:
    """Simple health check that also reports live session counts."""
    return {
        "status": "ok",
        "service": settings.app_name,
        "activeCalls": len(request.app.state.pushback_tracker.store),
        "activeSessions": len(request.app.state.negotiation_sessions),
    }
