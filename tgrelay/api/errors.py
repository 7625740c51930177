"""Error handlers for the tgrelay HTTP API.

Responses are plain text to match the rest of the relay surface. The
full exception is logged server-side only.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from loguru import logger


def error_response(message: str, status_code: int) -> PlainTextResponse:
    """Plain-text error body terminated by a newline."""
    return PlainTextResponse(f"{message}\n", status_code=status_code)


def register_error_handlers(app: FastAPI) -> None:
    """Attach the catch-all handler for unexpected errors."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> PlainTextResponse:
        """Catch-all: log the real error, return a generic 500 message."""
        logger.exception(
            "Unhandled error on {} {}: {}",
            request.method,
            request.url.path,
            exc,
        )
        return error_response("Internal server error", 500)
