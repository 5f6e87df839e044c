"""
FastAPI Application Factory.
Creates and configures the FastAPI application with all routers, middleware, and DI.

Endpoints:
- messages (send, conversations, mark read), current user, /ws notifications
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from dishka import AsyncContainer
from dishka.integrations.fastapi import setup_dishka
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from unilink.config.logging_config import (
    NO_CORRELATION_ID,
    correlation_id_var,
    setup_logging,
)
from unilink.config.settings import Config
from unilink.domain.ports.notifier import Notifier
from unilink.infrastructure.realtime.notification_bus import NotificationBus
from unilink.presentation.api import (
    messages_router,
    notifications_router,
    users_router,
)
from unilink.setup.ioc.container import create_container

logger = logging.getLogger(__name__)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Middleware to extract and set correlation ID from request headers."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-ID", NO_CORRELATION_ID)

        # Set in contextvars (propagates to async tasks and logging)
        correlation_id_var.set(correlation_id)

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response


def create_fastapi_app(container: Optional[AsyncContainer] = None) -> FastAPI:
    """
    Application factory for creating FastAPI app.

    Args:
        container: DI container to use; the production wiring is built when omitted

    Returns:
        FastAPI application instance
    """
    setup_logging(Config.LOG_LEVEL, Config.LOG_PATH)

    # Created before the app: Dishka adds middleware, which must happen before startup
    if container is None:
        container = create_container()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Startup: build the notification bus and notifier eagerly so the relay
        listener (if any) runs before the first request.
        Shutdown: close DI container (closes channels, stops relay, disconnects Prisma).
        """
        await container.get(NotificationBus)
        notifier = await container.get(Notifier)
        logger.info(
            f"[App] Started ({Config.APP_ENV}), notifier: {type(notifier).__name__}"
        )
        yield
        await container.close()
        logger.info("[App] Shutdown complete, DI container closed")

    app = FastAPI(
        title="UniLink API",
        description="Messaging and real-time notifications for the UniLink university network",
        version="1.0.0",
        lifespan=lifespan,
    )

    setup_dishka(container, app)

    # Correlation ID middleware (must be added before CORS)
    app.add_middleware(CorrelationIdMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=Config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Validation error handler - shows detailed Pydantic errors
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        logger.warning(f"[VALIDATION ERROR] {request.method} {request.url.path}: {errors}")
        return JSONResponse(
            status_code=400,
            content={"error": "Validation error", "details": _jsonable_errors(errors)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.info(f"[HTTP ERROR {exc.status_code}] {request.url.path}: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(f"[GLOBAL ERROR] {type(exc).__name__}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
        )

    # Health check routes
    @app.get("/", tags=["health"])
    async def root():
        return {"message": "UniLink API is running."}

    @app.get("/health", tags=["health"])
    async def health():
        bus = await container.get(NotificationBus)
        return {
            "status": "healthy",
            "channels": bus.channel_count,
            "connectedUsers": len(bus.connected_users()),
        }

    app.include_router(messages_router)  # /api/messages/...
    app.include_router(users_router)  # GET /api/auth/user
    app.include_router(notifications_router)  # WS /ws

    return app


def _jsonable_errors(errors: list) -> list:
    """Pydantic error dicts may carry exception objects under "ctx"."""
    cleaned = []
    for error in errors:
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        cleaned.append(error)
    return cleaned
