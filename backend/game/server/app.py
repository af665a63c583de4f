from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute

from game.messaging.notifier import TopicHub
from game.messaging.router import MessageRouter
from game.server.settings import GameServerSettings
from game.server.websocket import websocket_endpoint
from game.session.service import SessionService
from game.session.store import SessionStore
from shared.build_info import APP_VERSION, GIT_COMMIT
from shared.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from starlette.requests import Request
    from starlette.websockets import WebSocket


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "version": APP_VERSION, "commit": GIT_COMMIT})


async def status(request: Request) -> JSONResponse:
    store: SessionStore = request.app.state.store
    return JSONResponse(
        {
            "status": "ok",
            "version": APP_VERSION,
            "commit": GIT_COMMIT,
            "sessions": store.count(),
        },
    )


async def available_games(request: Request) -> JSONResponse:
    service: SessionService = request.app.state.service
    return JSONResponse([session.model_dump(mode="json") for session in service.list_available()])


def create_app(
    settings: GameServerSettings | None = None,
    store: SessionStore | None = None,
    service: SessionService | None = None,
    hub: TopicHub | None = None,
    message_router: MessageRouter | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = GameServerSettings()

    if store is None:
        store = SessionStore(
            sweep_interval_seconds=settings.sweep_interval_seconds,
            finished_retention_seconds=settings.finished_retention_seconds,
            lobby_max_age_seconds=settings.lobby_max_age_seconds,
            record_ttl_seconds=settings.record_ttl_seconds,
        )
    if service is None:
        service = SessionService(store)
    if hub is None:
        hub = TopicHub()
    if message_router is None:
        message_router = MessageRouter(service, hub)

    async def ws_endpoint(websocket: WebSocket) -> None:
        await websocket_endpoint(websocket, message_router)

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/status", status, methods=["GET"]),
        Route("/api/games/available", available_games, methods=["GET"]),
        WebSocketRoute("/ws", ws_endpoint),
    ]

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncIterator[None]:
        store.start_sweeper()
        logger.info("eviction sweeper started", interval_seconds=settings.sweep_interval_seconds)
        try:
            yield
        finally:
            await store.stop_sweeper()
            logger.info("eviction sweeper stopped")

    app = Starlette(routes=routes, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.store = store
    app.state.service = service
    app.state.hub = hub

    logger.info("game server ready")
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (e.g., uvicorn --factory)."""
    _settings = GameServerSettings()
    setup_logging(log_dir=_settings.log_dir)
    return create_app(settings=_settings)
