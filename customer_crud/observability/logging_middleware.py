"""
FastAPI middleware for structured request logging.

Automatically:
- Generates request_id for each request (or reads X-Request-ID)
- Extracts trace_id from X-Trace-ID header
- Logs method and path when the request starts and finishes
- Propagates context to all log calls made while handling the request
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from customer_crud.observability.logging import RequestContext, get_logger

logger = get_logger(__name__)


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for automatic request logging with structured context.

    Headers:
    - X-Request-ID: Client-provided request ID (optional, auto-generated if missing)
    - X-Trace-ID: Distributed trace ID (optional, auto-generated if missing)
    - Both are returned in the response headers
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or f"req_{uuid.uuid4().hex[:16]}"
        trace_id = request.headers.get("x-trace-id") or f"trace_{uuid.uuid4().hex[:16]}"
        should_log = RequestLoggingFilter.should_log(request.url.path)

        with RequestContext(request_id=request_id, trace_id=trace_id):
            start_time = time.perf_counter()

            if should_log:
                logger.info(
                    "HTTP request started",
                    method=request.method,
                    path=request.url.path,
                    client_host=request.client.host if request.client else None,
                )

            try:
                response = await call_next(request)
            except Exception as exc:
                latency_ms = (time.perf_counter() - start_time) * 1000
                logger.error(
                    "HTTP request failed",
                    method=request.method,
                    path=request.url.path,
                    latency_ms=round(latency_ms, 2),
                    exception_type=type(exc).__name__,
                    exc_info=True,
                )
                # Re-raise for FastAPI exception handlers
                raise

            latency_ms = (time.perf_counter() - start_time) * 1000
            if should_log:
                logger.info(
                    "HTTP request completed",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    latency_ms=round(latency_ms, 2),
                )

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Trace-ID"] = trace_id
            return response


class RequestLoggingFilter:
    """Paths excluded from request logs (health probes, API docs)."""

    EXCLUDED_PATHS = {
        "/health",
        "/docs",
        "/redoc",
        "/openapi.json",
    }

    @classmethod
    def should_log(cls, path: str) -> bool:
        return path not in cls.EXCLUDED_PATHS
