"""
FastAPI server for the AI Team Buddy credential relay.

The relay mints short-lived OpenAI Realtime credentials for clients so the
long-lived API key never leaves the server. Clients then negotiate WebRTC
directly with OpenAI; the relay is not on the media or signaling path.

It also hosts the room channel (``/ws``), which only tracks room membership.
"""

import time
from typing import Optional

from fastapi import FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from team_buddy.config.constants import ERROR_SESSION_GENERATION
from team_buddy.config.logging_config import configure_logging
from team_buddy.config.settings import Settings, get_settings, load_env_file
from team_buddy.errors import TeamBuddyError
from team_buddy.models.rooms import RoomRegistry
from team_buddy.services import credential_relay
from team_buddy.websocket_manager import WebSocketManager

# Load environment variables from .env file if it exists
load_env_file()

logger = configure_logging(get_settings().log_level)

APP_NAME = "AI Team Buddy"
APP_DESCRIPTION = "Credential relay for live voice sessions with the OpenAI Realtime API"
APP_VERSION = "1.0.0"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the relay application."""
    settings = settings or get_settings()

    app = FastAPI(title=APP_NAME, description=APP_DESCRIPTION, version=APP_VERSION)
    app.state.settings = settings
    app.state.rooms = RoomRegistry(max_rooms=settings.max_rooms)
    websocket_manager = WebSocketManager(app.state.rooms)
    app.state.websocket_manager = websocket_manager

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f} ms"
        )
        return response

    @app.post("/session")
    async def create_session():
        """Create an ephemeral OpenAI Realtime session for the caller.

        Returns:
            The upstream session JSON unmodified, including ``client_secret.value``.
            On failure, HTTP 500 with ``{"error": ..., "details": ...}``.
        """
        try:
            return await credential_relay.create_session(
                model=settings.realtime_model,
                voice=settings.realtime_voice,
                timeout=settings.upstream_timeout,
            )
        except TeamBuddyError as e:
            logger.error(f"Error generating session: {e}")
            return JSONResponse(
                status_code=500,
                content={"error": ERROR_SESSION_GENERATION, "details": e.message},
            )

    @app.get("/health")
    async def health_check():
        """Liveness probe."""
        return {"status": "ok"}

    @app.get("/")
    async def root():
        """Basic information about the API."""
        return {
            "name": APP_NAME,
            "description": APP_DESCRIPTION,
            "version": APP_VERSION,
            "endpoints": {
                "/session": "Create an ephemeral Realtime session (POST)",
                "/health": "Health check endpoint",
                "/ws": "Room channel WebSocket",
            },
        }

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Room channel: join_room bookkeeping per connected client."""
        await websocket_manager.handle_websocket(websocket)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = app.state.settings
    logger.info(f"Starting server on http://{settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)
