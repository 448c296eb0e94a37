"""
Middleware Package
==================

AVAILABLE MIDDLEWARE:
---------------------
1. request_context: request id correlation and request timing
2. error_handler: catch-all for unhandled exceptions

MIDDLEWARE ORDERING:
--------------------
Starlette wraps middleware in reverse registration order, so the LAST one
added is the outermost:

Request flow:  Client -> ErrorHandling -> RequestContext -> Handler
Response flow: Handler -> RequestContext -> ErrorHandling -> Client

Usage:
    app = FastAPI()
    setup_middleware(app, settings)
"""

from fastapi import FastAPI

from bookshare.core.config.settings import Settings, get_settings
from bookshare.core.logging.logger import get_logger

from .error_handler import ErrorHandlingMiddleware, add_error_handling_middleware
from .request_context import RequestContextMiddleware, add_request_context_middleware

logger = get_logger(__name__)


def setup_middleware(app: FastAPI, settings: Settings | None = None) -> None:
    """Register all middleware components in the correct order."""
    settings = settings or get_settings()

    add_request_context_middleware(app)

    # Outermost, so it also catches failures inside the request context middleware
    add_error_handling_middleware(
        app, include_traceback=(settings.app.ENVIRONMENT == "development")
    )

    logger.info("All middleware components registered successfully")


__all__ = [
    "ErrorHandlingMiddleware",
    "RequestContextMiddleware",
    "add_error_handling_middleware",
    "add_request_context_middleware",
    "setup_middleware",
]
