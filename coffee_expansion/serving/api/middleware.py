"""
API Middleware

Binds a request id into the structlog context so pipeline logs emitted while
serving a request carry it, and logs each request with its latency.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
import structlog

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with its status and duration"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        started = time.perf_counter()

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            logger.info(
                "Request received",
                method=request.method,
                path=request.url.path,
                query=str(request.query_params),
            )
            response = await call_next(request)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            log = logger.warning if response.status_code >= 400 else logger.info
            log("Request served", path=request.url.path, status_code=response.status_code, duration_ms=elapsed_ms)

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms:.2f}ms"
        return response
