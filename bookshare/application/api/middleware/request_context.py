"""
Request Context Middleware

Gives every request a correlation id and measures how long it took.

- The id comes from the incoming ``X-Request-ID`` header or is generated,
  is bound to the logging context for the duration of the request and is
  echoed back on the response.
- The duration is recorded in the request-duration histogram, labelled with
  the route template (``/api/books/{book_id}``) rather than the raw path so
  label cardinality stays bounded. Slow requests are logged.
"""

import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from bookshare.core.config.constants import HEADER_REQUEST_ID
from bookshare.core.logging.logger import clear_request_id, get_logger, set_request_id

logger = get_logger(__name__)

SLOW_REQUEST_THRESHOLD = 1.0  # seconds


def _route_label(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class RequestContextMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, slow_threshold: float = SLOW_REQUEST_THRESHOLD):
        super().__init__(app)
        self.slow_threshold = slow_threshold

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(HEADER_REQUEST_ID) or str(uuid.uuid4())
        set_request_id(request_id)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time

            if duration > self.slow_threshold:
                logger.warning(
                    f"Slow request detected: {request.method} {request.url.path}",
                    method=request.method,
                    path=request.url.path,
                    duration_seconds=round(duration, 4),
                    threshold_seconds=self.slow_threshold,
                )

            metrics = getattr(request.app.state, "metrics", None)
            if metrics is not None:
                metrics.record_request_duration(request.method, _route_label(request), duration)

            response.headers[HEADER_REQUEST_ID] = request_id
            return response

        finally:
            clear_request_id()


def add_request_context_middleware(app, slow_threshold: float = SLOW_REQUEST_THRESHOLD) -> None:
    app.add_middleware(RequestContextMiddleware, slow_threshold=slow_threshold)
    logger.info("Request context middleware registered", slow_threshold=slow_threshold)
