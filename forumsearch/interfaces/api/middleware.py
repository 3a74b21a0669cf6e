"""
API Middleware - Request/response processing.

Provides:
- Request ID tracking
- Response latency measurement
- Error handling with taxonomy codes
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from forumsearch.config.errors import ErrorCode, ForumSearchError

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach request ID for tracing across logs and responses."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        # Store in request state for access in handlers
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response


class LatencyMiddleware(BaseHTTPMiddleware):
    """Track and log request latency."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"

        logger.info(
            "%s %s%s status=%d latency_ms=%.2f request_id=%s",
            request.method,
            request.url.path,
            f"?{request.url.query}" if request.url.query else "",
            response.status_code,
            duration_ms,
            _request_id(request),
        )

        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Convert ForumSearchError exceptions to structured JSON responses."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            return await call_next(request)
        except ForumSearchError as e:
            status = _error_code_to_status(e.code)
            logger.log(
                logging.WARNING if status < 500 else logging.ERROR,
                "%s: %s status=%d request_id=%s details=%s",
                e.code.value,
                e.message,
                status,
                _request_id(request),
                e.details,
            )
            return _error_response(request, status, e.to_dict())
        except Exception as e:
            logger.exception("Unhandled error: %s request_id=%s", str(e), _request_id(request))
            return _error_response(
                request,
                500,
                {
                    "code": ErrorCode.INTERNAL_ERROR.value,
                    "message": "Internal server error",
                    "details": {},
                },
            )


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def _error_response(request: Request, status: int, error: dict[str, Any]) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"error": error, "request_id": _request_id(request)},
    )


def _error_code_to_status(code: ErrorCode) -> int:
    """Map error codes to HTTP status codes."""
    mapping = {
        # 400 Bad Request
        ErrorCode.SEARCH_INVALID_QUERY: 400,
        ErrorCode.SEARCH_INVALID_FACET: 400,
        ErrorCode.VALIDATION_ERROR: 400,
        # 403 Forbidden
        ErrorCode.SECURITY_FORBIDDEN: 403,
        # 404 Not Found
        ErrorCode.NOT_FOUND: 404,
        # 503 Service Unavailable
        ErrorCode.SEARCH_QUERY_FAILED: 503,
        ErrorCode.STORAGE_CONNECTION_FAILED: 503,
    }
    return mapping.get(code, 500)
