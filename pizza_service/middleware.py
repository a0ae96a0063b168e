"""HTTP request logging middleware"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status, caller and duration of every request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        # Set by the get_actor dependency when the route resolves a caller
        actor = getattr(request.state, "actor", None)
        caller = f"user #{actor.id}" if actor is not None else "anonymous"

        logger.info(
            f"{request.method} {request.url.path} → {response.status_code} "
            f"({caller}, {duration_ms:.1f}ms)"
        )
        response.headers["x-response-time"] = f"{duration_ms:.2f}ms"
        return response
