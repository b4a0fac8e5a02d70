"""FastAPI application for the rendezvous signaling relay."""
from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from .core.config import Settings, settings as default_settings
from .routers import rooms as rooms_router
from .routers import signaling as signaling_router
from .services.coordinator import SessionCoordinator


def create_app(settings: Settings | None = None, coordinator: SessionCoordinator | None = None) -> FastAPI:
    """Build an app with its own coordinator and registry."""

    settings = settings or default_settings
    application = FastAPI(title="Rendezvous Relay", version="0.1.0")
    application.state.settings = settings
    application.state.coordinator = coordinator or SessionCoordinator(send_timeout=settings.send_timeout_seconds)

    if settings.cors_allow_origins:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @application.api_route("/", methods=["GET", "HEAD"], response_class=PlainTextResponse, tags=["meta"])
    async def liveness() -> PlainTextResponse:
        """Plaintext liveness line served on the websocket address."""

        return PlainTextResponse(settings.liveness_message)

    @application.api_route("/api/health", methods=["GET", "HEAD"], tags=["meta"])
    async def health(request: Request) -> dict[str, Any]:
        relay: SessionCoordinator = request.app.state.coordinator
        return {"status": "ok", "rooms": len(relay.registry), "participants": relay.participant_count}

    application.include_router(rooms_router.router, prefix="/api", tags=["rooms"])
    application.include_router(signaling_router.router)
    return application


app = create_app()
