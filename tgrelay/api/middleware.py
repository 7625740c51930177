"""Middleware for the tgrelay HTTP API.

  1. RequestSizeLimitMiddleware: rejects oversized /send bodies before parsing
  2. AccessLogMiddleware: logs every request with method/path/status/duration
"""

from __future__ import annotations

import time

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from tgrelay.api.errors import error_response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests with Content-Length exceeding the configured limit."""

    def __init__(self, app, max_bytes: int = 1_048_576) -> None:
        super().__init__(app)
        self._max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self._max_bytes:
            return error_response(f"Request body too large (max {self._max_bytes} bytes)", 413)
        return await call_next(request)


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Log every request with method, path, status code and duration."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        logger.debug(
            "HTTP {} {} {} {:.0f}ms",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response
