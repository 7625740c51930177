"""Shared FastAPI dependencies injected into route handlers.

All dependencies pull from app.state, which create_api_app() populates.
"""

from __future__ import annotations

from fastapi import Request
from telegram import Bot

from tgrelay.bus.queue import RelayQueue
from tgrelay.config.schema import RelayConfig
from tgrelay.media.materializer import AttachmentMaterializer


def get_config(request: Request) -> RelayConfig:
    return request.app.state.config


def get_queue(request: Request) -> RelayQueue:
    return request.app.state.queue


def get_materializer(request: Request) -> AttachmentMaterializer:
    return request.app.state.materializer


def get_bot(request: Request) -> Bot:
    """Retrieve the Telegram Bot used for outbound sends."""
    return request.app.state.bot
