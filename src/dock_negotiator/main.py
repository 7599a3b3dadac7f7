"""FastAPI application entry point."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import health, hos, negotiation, tools
from .config import settings
from .services.sessions.store import PushbackTracker, SessionStore


def create_app() -> FastAPI:
    app = FastAPI(title=settings.app_name, root_path="")
    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Call-scoped state lives on the app, one store per concern.
    app.state.pushback_tracker = PushbackTracker(SessionStore(ttl_seconds=settings.session_ttl_seconds))
    app.state.negotiation_sessions = SessionStore(ttl_seconds=settings.session_ttl_seconds)

    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "api_prefix": settings.api_prefix,
            "health": f"{settings.api_prefix}/health",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(tools.router, prefix=settings.api_prefix)
    app.include_router(negotiation.router, prefix=settings.api_prefix)
    app.include_router(hos.router, prefix=settings.api_prefix)
    return app


app = create_app()
