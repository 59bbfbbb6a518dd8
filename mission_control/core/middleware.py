"""Request middleware for Mission Control."""

import secrets
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from mission_control.core.logging import get_logger, request_context

logger = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware to inject request context for logging."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request with context."""
        request_id = request.headers.get("X-Request-ID") or secrets.token_hex(8)
        start_time = time.perf_counter()

        ctx = {
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
        }
        token = request_context.set(ctx)

        try:
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                data={"duration_ms": round(duration_ms, 2)},
            )

            response.headers["X-Request-ID"] = request_id
            return response

        finally:
            request_context.reset(token)
