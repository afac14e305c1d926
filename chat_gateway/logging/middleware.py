"""Logging middleware for FastAPI request/response logging."""

import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .config import get_logger


def get_client_ip(request: Request) -> Optional[str]:
    """Extract client IP address from request headers."""
    # Check for forwarded headers first (for reverse proxies)
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host

    return None


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests and responses."""

    def __init__(self, app, logger_name: str = "middleware"):
        super().__init__(app)
        self.logger = get_logger(logger_name)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and log details."""
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.perf_counter()
        method = request.method
        path = request.url.path
        client_ip = get_client_ip(request)

        self.logger.info(
            f"Incoming request: {method} {path}",
            extra={
                "request_id": request_id,
                "method": method,
                "path": path,
                "client_ip": client_ip,
                "request_type": "incoming",
            }
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            self.logger.error(
                f"Request failed: {method} {path}",
                extra={
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "duration_ms": duration_ms,
                    "client_ip": client_ip,
                    "request_type": "failed",
                    "exception_type": type(exc).__name__,
                    "exception_message": str(exc),
                },
                exc_info=exc
            )
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        self.logger.info(
            f"Request completed: {method} {path} - {response.status_code}",
            extra={
                "request_id": request_id,
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "client_ip": client_ip,
                "request_type": "completed",
            }
        )

        # Add request ID to response headers for tracing
        response.headers["X-Request-ID"] = request_id
        return response


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware specifically for error logging and handling."""

    def __init__(self, app, logger_name: str = "errors"):
        super().__init__(app)
        self.logger = get_logger(logger_name)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and handle errors with detailed logging."""
        try:
            response = await call_next(request)
        except Exception as exc:
            self.logger.error(
                "Unhandled exception in request processing",
                extra={
                    "request_id": getattr(request.state, "request_id", None),
                    "method": request.method,
                    "path": request.url.path,
                    "exception_type": type(exc).__name__,
                    "exception_message": str(exc),
                    "client_ip": get_client_ip(request),
                },
                exc_info=exc
            )
            raise

        # Log 4xx and 5xx responses as warnings/errors
        if response.status_code >= 400:
            log_level = "warning" if response.status_code < 500 else "error"
            getattr(self.logger, log_level)(
                f"HTTP error response: {response.status_code}",
                extra={
                    "request_id": getattr(request.state, "request_id", None),
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "client_ip": get_client_ip(request),
                }
            )

        return response
