"""Middleware for rate limiting, security headers and request logging."""

import logging
import time
from collections import defaultdict
from datetime import UTC, datetime, timedelta

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from src.core.config import Settings, get_settings
from src.core.metrics import observe_http_request
from src.core.structured_logging import (
    accept_request_id,
    bind_request_id,
    log_json,
    new_request_id,
)

logger = logging.getLogger(__name__)


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _log_level(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add basic security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")

        if get_settings().environment == "production":
            forwarded_proto = request.headers.get("x-forwarded-proto")
            scheme = forwarded_proto or request.url.scheme
            if scheme == "https":
                response.headers.setdefault(
                    "Strict-Transport-Security",
                    "max-age=63072000; includeSubDomains",
                )

        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP rate limiting for the endpoints that call paid or slow backends.

    Rate limits (per minute, per client IP):
    - Enhancement and analysis endpoints: ``rate_limit_ai_per_minute``
    - Report generation: ``rate_limit_reports_per_minute``
    """

    def __init__(self, app: ASGIApp, settings: Settings | None = None):
        super().__init__(app)
        self.settings = settings or get_settings()
        # Storage: {(bucket, client_ip): [timestamp, ...]}
        self._requests: dict[tuple[str, str], list[datetime]] = defaultdict(list)

    def _bucket(self, request: Request) -> tuple[str, int] | None:
        if request.method != "POST":
            return None
        path = request.url.path
        if "/enhancement/" in path or path.endswith("/analysis"):
            return "ai", self.settings.rate_limit_ai_per_minute
        if path.endswith("/reports"):
            return "reports", self.settings.rate_limit_reports_per_minute
        return None

    def _hit(self, bucket: str, client_ip: str, limit: int) -> bool:
        """Record a request; False when the limit for the window is exhausted."""
        key = (bucket, client_ip)
        cutoff = datetime.now(UTC) - timedelta(minutes=1)
        self._requests[key] = [ts for ts in self._requests[key] if ts > cutoff]
        if len(self._requests[key]) >= limit:
            return False
        self._requests[key].append(datetime.now(UTC))
        return True

    async def dispatch(self, request: Request, call_next):
        """Apply rate limiting based on endpoint."""
        if self.settings.environment != "production":
            return await call_next(request)

        bucket = self._bucket(request)
        if bucket is not None:
            name, limit = bucket
            client_ip = _client_ip(request)
            if not self._hit(name, client_ip, limit):
                log_json(
                    logger,
                    logging.WARNING,
                    "rate_limited",
                    bucket=name,
                    client_ip=client_ip,
                    path=request.url.path,
                )
                return JSONResponse(
                    status_code=429,
                    content={"detail": "Too many requests. Please try again later."},
                )

        return await call_next(request)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One structured log line and one metric sample per request.

    The route template (``/api/projects/{project_id}/assessment``) is used as
    the metric label; the concrete project id goes to the log line only.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = accept_request_id(
            request.headers.get("X-Request-ID") or request.headers.get("X-Correlation-ID")
        ) or new_request_id()
        request.state.request_id = request_id
        started = time.perf_counter()

        with bind_request_id(request_id):
            try:
                response = await call_next(request)
            except Exception as exc:
                log_json(
                    logger,
                    logging.ERROR,
                    "request_error",
                    method=request.method,
                    path=request.url.path,
                    status_code=500,
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                    client_ip=_client_ip(request),
                    exception=exc.__class__.__name__,
                    error=str(exc),
                )
                raise

            duration_ms = (time.perf_counter() - started) * 1000
            response.headers.setdefault("X-Request-ID", request_id)

            route = request.scope.get("route")
            observe_http_request(
                method=request.method,
                route=getattr(route, "path", None) or "unmatched",
                status_code=response.status_code,
                duration_ms=duration_ms,
            )
            log_json(
                logger,
                _log_level(response.status_code),
                "request",
                method=request.method,
                path=request.url.path,
                project_id=request.scope.get("path_params", {}).get("project_id"),
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
                client_ip=_client_ip(request),
            )
            return response
