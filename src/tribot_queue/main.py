"""FastAPI application wiring for the bot task queue.

Beginner terms used in this file:
- FastAPI app: the main web application object.
- Router: a group of routes mounted under one path prefix (default /tribot).
- Exception handler: turns a raised Python error into an HTTP response.
- app.state: a place to store shared runtime objects (the dispatch service).
"""

from __future__ import annotations

import logging
from typing import Any

import uvicorn
from fastapi import APIRouter, Body, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .app.dispatch import DispatchService
from .app.encoder import EXPECTED_FORMATS
from .app.errors import DispatchError
from .app.models import (
    DEFAULT_BOT_ID,
    BotListResponse,
    BotStatusResponse,
    ClearQueueRequest,
    ClearQueueResponse,
    CompleteTaskRequest,
    CompleteTaskResponse,
    EnqueueRequest,
    EnqueueResponse,
    FetchResponse,
    HealthResponse,
    QueueStatusResponse,
    utcnow,
)
from .app.queue_store import QueueStore
from .app.registry import BotRegistry
from .config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

ENDPOINTS = (
    "GET /healthy - Health check",
    "POST /addTask - Add task to queue",
    "GET /getUpdates - Get and remove next task(s)",
    "POST /completeTask - Mark task as completed",
    "GET /getQueueStatus - Get queue statistics",
    "DELETE /clearQueue - Clear task queue",
    "GET /getBotStatus/:bot_id - Get specific bot status",
    "GET /getBots - Get all active bots",
)


def create_app(
    *,
    dispatch: DispatchService | None = None,
    settings_override: Settings | None = None,
) -> FastAPI:
    """Application factory.

    Each call builds a fresh queue and registry unless ``dispatch`` is given,
    so tests get isolated state.
    """
    settings = settings_override or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title=settings.app_name, version=settings.app_version)
    # The one queue/registry pair for this process lives on app.state.
    app.state.settings = settings
    app.state.dispatch = dispatch or DispatchService(
        queue=QueueStore(max_size=settings.max_queue_size),
        registry=BotRegistry(),
        service_name=settings.app_name,
    )

    @app.exception_handler(DispatchError)
    async def dispatch_error_handler(_: Request, exc: DispatchError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={**exc.to_payload(), "timestamp": utcnow().isoformat()},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "error": "RequestValidationError",
                "message": "Request validation failed",
                "detail": jsonable_encoder(exc.errors()),
                "timestamp": utcnow().isoformat(),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail, "timestamp": utcnow().isoformat()},
            headers=getattr(exc, "headers", None),
        )

    # Multiple health endpoints map to the same function for compatibility with
    # different probes/load balancers.
    @app.get("/health", response_model=HealthResponse)
    @app.get("/healthz", response_model=HealthResponse)
    @app.get("/live", response_model=HealthResponse)
    def health() -> HealthResponse:
        return app.state.dispatch.health()

    app.include_router(build_router(settings), prefix=settings.normalized_prefix())
    logger.info(
        "app event=created prefix=%s max_queue_size=%s",
        settings.normalized_prefix() or "/",
        app.state.dispatch.queue.max_size,
    )
    return app


def build_router(settings: Settings) -> APIRouter:
    router = APIRouter()

    def _dispatch(request: Request) -> DispatchService:
        return request.app.state.dispatch

    @router.get("/")
    def info() -> dict[str, Any]:
        return {
            "message": "Tribot Task Queue API",
            "version": settings.app_version,
            "timestamp": utcnow(),
            "endpoints": list(ENDPOINTS),
            "task_formats": list(EXPECTED_FORMATS),
        }

    @router.get("/healthy", response_model=HealthResponse)
    def healthy(request: Request) -> HealthResponse:
        return _dispatch(request).health()

    # Request body is validated against EnqueueRequest; task-specific fields
    # stay as extras for the encoder. An absent body fails as MissingTask.
    @router.post("/addTask", response_model=EnqueueResponse, status_code=201)
    def add_task(
        request: Request,
        payload: EnqueueRequest | None = Body(default=None),
    ) -> EnqueueResponse:
        if payload is None:
            payload = EnqueueRequest()
        return _dispatch(request).enqueue(
            payload.model_dump(),
            bot_id=payload.bot_id,
            priority=payload.priority,
        )

    @router.get("/getUpdates", response_model=FetchResponse)
    def get_updates(
        request: Request,
        bot_id: str = DEFAULT_BOT_ID,
        limit: str = "1",
    ) -> FetchResponse:
        return _dispatch(request).fetch_next(bot_id=bot_id, limit=limit)

    @router.post("/completeTask", response_model=CompleteTaskResponse)
    def complete_task(payload: CompleteTaskRequest, request: Request) -> CompleteTaskResponse:
        return _dispatch(request).complete_task(
            payload.task_id,
            bot_id=payload.bot_id,
            result=payload.result,
            message=payload.message,
        )

    @router.get("/getQueueStatus", response_model=QueueStatusResponse)
    def get_queue_status(request: Request, bot_id: str | None = None) -> QueueStatusResponse:
        return _dispatch(request).queue_status(bot_id)

    @router.delete("/clearQueue", response_model=ClearQueueResponse)
    def clear_queue(
        request: Request,
        payload: ClearQueueRequest | None = Body(default=None),
    ) -> ClearQueueResponse:
        bot_id = payload.bot_id if payload is not None else None
        return _dispatch(request).clear_queue(bot_id)

    @router.get("/getBotStatus/{bot_id}", response_model=BotStatusResponse)
    def get_bot_status(bot_id: str, request: Request) -> BotStatusResponse:
        return _dispatch(request).bot_status(bot_id)

    @router.get("/getBots", response_model=BotListResponse)
    def get_bots(request: Request) -> BotListResponse:
        return _dispatch(request).list_bots()

    return router


def configure_logging(level: str) -> None:
    """Apply a root log level once; later calls keep existing handlers."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def run() -> None:
    """Console entry point: serve the module-level app with uvicorn."""
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


# Module-level app for `uvicorn tribot_queue.main:app`.
app = create_app()
