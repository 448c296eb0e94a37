#!/usr/bin/env python3
"""
FastAPI Application Entry Point

This is the main entry point for the BookShare API.
It configures the FastAPI application, middleware, routes and the
components shared by every request.

Run with:
    uvicorn bookshare.application.app:app
"""

import asyncio
from contextlib import AsyncExitStack, asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bookshare.application.api.middleware import setup_middleware
from bookshare.application.api.routes.books import router as books_router
from bookshare.application.api.routes.health import router as health_router
from bookshare.application.api.routes.metrics import router as metrics_router
from bookshare.application.api.routes.users import router as users_router
from bookshare.application.api.routes.webhooks import router as webhooks_router
from bookshare.application.services import (
    BookService,
    ListingService,
    UserService,
    WebhookService,
)
from bookshare.core.config.constants import HEADER_REQUEST_ID, ExternalCacheState
from bookshare.core.config.settings import Settings, get_settings
from bookshare.core.exceptions import APIError, BookShareError
from bookshare.core.logging.logger import get_logger, get_request_id, setup_logging
from bookshare.infrastructure.cache import BoundedCacheStore, CacheService, ExternalCacheClient
from bookshare.infrastructure.database import Database
from bookshare.infrastructure.identity import ClerkIdentityProvider
from bookshare.infrastructure.monitoring import MetricsCollector
from bookshare.infrastructure.monitoring.health_checker import HealthChecker

logger = get_logger(__name__)


# ============================================================================
# Application Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle (startup and shutdown).

    Builds every shared component once and stores it on ``app.state``.
    Components already present on ``app.state`` (``database``,
    ``external_cache``, ``identity``) are used as given, which is how tests
    inject in-memory stores and fakes.
    """
    settings: Settings = app.state.settings

    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    logger.info(
        "Starting BookShare API",
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
    )

    state = app.state
    connect_task: asyncio.Task | None = None

    async with AsyncExitStack() as stack:
        try:
            metrics = MetricsCollector(settings)
            state.metrics = metrics

            # Relational store
            database = getattr(state, "database", None)
            if database is None:
                database = Database(settings.database.DATABASE_URL, settings.database.DATABASE_ECHO)
                stack.push_async_callback(database.dispose)
                state.database = database
            await database.create_all()
            logger.info("Database ready")

            # External cache tier. The connect attempt runs in the background
            # so startup never waits on Redis.
            external = getattr(state, "external_cache", None)
            if external is None:
                external = ExternalCacheClient(
                    settings.redis.REDIS_URL,
                    connect_timeout=settings.redis.REDIS_CONNECT_TIMEOUT,
                )
                state.external_cache = external
            stack.push_async_callback(external.disconnect)

            if external.state is ExternalCacheState.DISCONNECTED:
                connect_task = asyncio.create_task(external.connect())

            cache_service = CacheService(
                external,
                BoundedCacheStore(settings.cache.CACHE_FALLBACK_MAX_SIZE),
                metrics=metrics,
                default_ttl=settings.cache.CACHE_LISTING_TTL,
            )
            state.cache_service = cache_service
            logger.info("Cache initialized", external_state=external.state.value)

            # Identity provider
            identity = getattr(state, "identity", None)
            if identity is None:
                identity = await stack.enter_async_context(
                    ClerkIdentityProvider(settings.identity)
                )
                state.identity = identity

            # Services
            listing_service = ListingService(
                database,
                cache_service,
                BoundedCacheStore(settings.cache.CACHE_LISTING_LOCAL_MAX_SIZE),
                ttl_seconds=settings.cache.CACHE_LISTING_TTL,
                metrics=metrics,
            )
            state.listing_service = listing_service
            state.book_service = BookService(
                database,
                listing_service,
                invalidate_on_write=settings.cache.CACHE_INVALIDATE_ON_WRITE,
            )
            state.user_service = UserService(
                database,
                identity,
                BoundedCacheStore(settings.cache.CACHE_USER_MAX_SIZE),
                ttl_seconds=settings.cache.CACHE_USER_TTL,
            )
            state.webhook_service = WebhookService(database)
            state.health_checker = HealthChecker(database, cache_service, settings)

            logger.info("Application startup complete")

            yield

        finally:
            logger.info("Shutting down application")

            if connect_task is not None and not connect_task.done():
                connect_task.cancel()
                try:
                    await connect_task
                except asyncio.CancelledError:
                    pass

    logger.info("Application shutdown complete")


# ============================================================================
# Exception Handlers
# ============================================================================


def _record_error(request: Request, error_type: str, stage: str) -> None:
    metrics = getattr(request.app.state, "metrics", None)
    if metrics is not None:
        metrics.record_error(error_type, stage)


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Map domain errors to ``{"error": ...}`` bodies with their status code."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"Request failed: {exc.message}",
        error_type=type(exc).__name__,
        status_code=exc.status_code,
        path=request.url.path,
        details=exc.details,
    )
    _record_error(request, type(exc).__name__, "api")

    body = {"error": exc.message}
    if exc.public_details is not None:
        body["details"] = exc.public_details

    return JSONResponse(
        status_code=exc.status_code,
        content=body,
        headers={HEADER_REQUEST_ID: exc.request_id or get_request_id() or ""},
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed query parameters or request bodies."""
    logger.info("Request validation failed", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


async def bookshare_error_handler(request: Request, exc: BookShareError) -> JSONResponse:
    """Internal errors that escaped the services without an HTTP mapping."""
    logger.error(
        f"BookShare exception: {exc.message}",
        error_type=type(exc).__name__,
        request_id=exc.request_id,
        details=exc.details,
    )
    _record_error(request, type(exc).__name__, "internal")
    return JSONResponse(status_code=500, content={"error": exc.message})


# ============================================================================
# Application Factory
# ============================================================================


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration to use; defaults to the global settings
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Book sharing API with cached, paginated listings",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[HEADER_REQUEST_ID],
    )
    setup_middleware(app, settings)

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(BookShareError, bookshare_error_handler)

    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(books_router)
    app.include_router(users_router)
    app.include_router(webhooks_router)

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app.APP_NAME,
            "version": settings.app.APP_VERSION,
            "environment": settings.app.ENVIRONMENT,
            "docs": "/docs",
            "health": "/health",
        }

    return app


app = create_app()


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "bookshare.application.app:app",
        host=settings.app.API_HOST,
        port=settings.app.API_PORT,
        reload=settings.app.ENVIRONMENT == "development",
        log_level=settings.logging.LOG_LEVEL.lower(),
    )
