"""FastAPI application factory for the tgrelay HTTP surface.

create_api_app() builds a FastAPI instance wired to the relay queue, the
attachment materializer and the Telegram bot. Those objects are owned
by the caller (the serve command) and stored on app.state for
dependency injection.
"""

from __future__ import annotations

from fastapi import FastAPI
from telegram import Bot

from tgrelay import __version__
from tgrelay.api.errors import register_error_handlers
from tgrelay.api.middleware import AccessLogMiddleware, RequestSizeLimitMiddleware
from tgrelay.api.routers import relay
from tgrelay.bus.queue import RelayQueue
from tgrelay.config.schema import RelayConfig
from tgrelay.media.materializer import AttachmentMaterializer

MAX_REQUEST_BODY_BYTES = 1_048_576


def create_api_app(
    config: RelayConfig,
    queue: RelayQueue,
    materializer: AttachmentMaterializer,
    bot: Bot,
) -> FastAPI:
    """Build the relay FastAPI application."""
    app = FastAPI(
        title="tgrelay",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.state.config = config
    app.state.queue = queue
    app.state.materializer = materializer
    app.state.bot = bot

    # Middleware (outermost applied first = added last in FastAPI)
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=MAX_REQUEST_BODY_BYTES)

    register_error_handlers(app)

    app.include_router(relay.router)

    return app
