"""
FastAPI Application - WebSocket game server plus a small REST surface.

Endpoints:
    WS     /ws                          Game protocol (see schemas.py)
    GET    /api/v1/sessions             List live session ids
    GET    /api/v1/sessions/{id}        Snapshot of one session
    GET    /health                      Health check
    GET    /                            API info

Each WebSocket gets an outbound asyncio.Queue drained by a writer task, so
the synchronous session core never awaits a slow client.
"""

from contextlib import asynccontextmanager
from typing import Optional, Union
import asyncio
import contextlib
import json
import logging

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings
from ..engine_core.errors import ErrorCode
from .schemas import ErrorResponse, HealthResponse, SessionListResponse, SessionSnapshot
from .service import GameService

logger = logging.getLogger(__name__)

def create_app(service: Optional[GameService] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional GameService instance (creates new if not provided)
        settings: Optional Settings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    settings = settings or (service.settings if service else Settings.from_env())
    game_service = service or GameService(settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown of the game service."""
        logger.info("Ludo Arena starting (%s, variant=%s)", settings.env, settings.variant)
        yield
        logger.info("Ludo Arena shutting down, closing %d sessions", len(game_service.registry))
        game_service.shutdown()

    app = FastAPI(
        title="Ludo Arena API",
        lifespan=lifespan,
        description="""
Multiplayer Ludo server. Play happens over the `/ws` WebSocket:
send `join`, then `roll` and `move` on your turn.

## Error Codes

| Code | Description |
|------|-------------|
| `RoomFull` | No seat or color left, or the game is in progress |
| `NotYourTurn` | Not your turn, or another seat must move first |
| `AlreadyRolled` | A die is already pending this turn |
| `InvalidMove` | Token cannot move with the pending die |
| `StaleRequest` | Session or seat no longer exists |
| `NotHost` | Only the host can start early |
| `WrongPhase` | Action not allowed in the current status |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )
    app.state.service = game_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """
        Game protocol.

        Messages from client: join, start, roll, move, addBot, removeBot, ping
        Messages from server: joined, state, finished, error, pong
        """
        await websocket.accept()
        outbox: asyncio.Queue = asyncio.Queue()
        connection_id = game_service.connect(send=outbox.put_nowait)

        async def writer():
            while True:
                message = await outbox.get()
                await websocket.send_json(message)

        writer_task = asyncio.create_task(writer())
        try:
            while True:
                raw = await websocket.receive_text()
                try:
                    data = json.loads(raw)
                except json.JSONDecodeError:
                    logger.debug("Non-JSON frame from %s dropped", connection_id)
                    continue
                game_service.handle(connection_id, data)
        except WebSocketDisconnect:
            pass
        finally:
            game_service.disconnect(connection_id)
            writer_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
                await writer_task

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List live sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = game_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionSnapshot,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get a session snapshot",
    )
    async def get_session(session_id: str) -> Union[SessionSnapshot, JSONResponse]:
        """Current public state of a session."""
        snapshot = game_service.get_snapshot(session_id)
        if snapshot is None:
            return JSONResponse(
                status_code=404,
                content=ErrorResponse(
                    error=f"Session {session_id} not found",
                    error_code=ErrorCode.STALE_REQUEST,
                ).model_dump(mode="json"),
            )
        return SessionSnapshot.model_validate(snapshot)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="ludo-arena",
            version=__version__,
            sessions=len(game_service.registry),
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Ludo Arena API",
            "version": __version__,
            "env": settings.env,
            "docs": "/api/docs",
            "health": "/health",
            "websocket": "/ws",
        }

    return app
