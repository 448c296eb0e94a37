"""
Error Handling Middleware
=========================

Last line of defense for exceptions that no FastAPI exception handler claims.

Domain errors (``APIError`` subclasses) and validation errors are mapped by
the exception handlers registered in ``app.py``; anything that still escapes a
route handler lands here, is logged with its stack trace, counted, and turned
into a plain 500:

    {"error": "Internal server error"}

In development the traceback and the original message are added to the body.
"""

import traceback
from collections.abc import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from bookshare.core.logging.logger import get_logger

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Catch-all for unhandled exceptions.

    Args:
        app: The ASGI application
        include_traceback: Add the stack trace to response bodies
            (never enable outside development)
    """

    def __init__(self, app, include_traceback: bool = False):
        super().__init__(app)
        self.include_traceback = include_traceback

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            method = request.method
            path = request.url.path
            error_type = type(e).__name__

            logger.error(
                f"Unhandled exception in request: {method} {path}",
                method=method,
                path=path,
                error_type=error_type,
                error_message=str(e),
                exc_info=True,
            )

            metrics = getattr(request.app.state, "metrics", None)
            if metrics is not None:
                metrics.record_error(error_type, "unhandled_exception")

            body = {"error": INTERNAL_ERROR_MESSAGE}
            if self.include_traceback:
                body["details"] = str(e)
                body["traceback"] = traceback.format_exc()

            return JSONResponse(status_code=500, content=body)


def add_error_handling_middleware(app, include_traceback: bool = False) -> None:
    """
    Register the catch-all.

    Register it LAST so it becomes the outermost middleware and sees errors
    raised by every other middleware as well as by route handlers.
    """
    app.add_middleware(ErrorHandlingMiddleware, include_traceback=include_traceback)
    logger.info("Error handling middleware registered", include_traceback=include_traceback)
