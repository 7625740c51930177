"""Relay endpoints used by the polling agent.

GET  /        : loopback base URL, for address discovery
GET  /message : drain queued messages, materializing attachments
POST /send    : send a message to a Telegram chat
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import PlainTextResponse
from loguru import logger
from pydantic import ValidationError
from telegram import Bot, ReplyParameters
from telegram.error import TelegramError

from tgrelay.api.dependencies import get_bot, get_config, get_materializer, get_queue
from tgrelay.api.errors import error_response
from tgrelay.bus.events import RelayMessage
from tgrelay.bus.queue import RelayQueue
from tgrelay.config.schema import RelayConfig, parse_int64
from tgrelay.errors import MaterializationError
from tgrelay.media.materializer import AttachmentMaterializer

NO_MESSAGES = "No messages\n"

router = APIRouter(tags=["relay"])


@router.get("/", response_class=PlainTextResponse)
async def address_probe(config: RelayConfig = Depends(get_config)) -> str:  # noqa: B008
    return config.base_url


@router.get("/message")
async def poll_messages(
    queue: RelayQueue = Depends(get_queue),  # noqa: B008
    materializer: AttachmentMaterializer = Depends(get_materializer),  # noqa: B008
) -> Response:
    """Drain the relay queue and return one JSON object per line.

    If an attachment cannot be materialized the request fails with 500
    and the rest of the drained batch is lost.
    """
    drained = queue.try_dequeue_all()
    if not drained:
        return PlainTextResponse(NO_MESSAGES)

    lines: list[str] = []
    for message in drained:
        logger.info("Found message: chat_id={} msg_id={}", message.chat_id, message.message_id)
        kind = "voice" if message.voice_url else "image"
        try:
            message = await materializer.materialize_record(message)
        except MaterializationError as exc:
            logger.error("Failed to upload {} file: {}", kind, exc)
            return error_response(f"Failed to upload {kind} file", 500)
        lines.append(message.to_json() + "\n")

    return Response("".join(lines), media_type="application/x-ndjson")


@router.post("/send")
async def send_message(request: Request, bot: Bot = Depends(get_bot)) -> Response:  # noqa: B008
    """Send {"chatId", "text", "msgId"?} to Telegram, threading when msgId is set."""
    body = await request.body()
    try:
        outbound = RelayMessage.from_wire_json(body)
    except ValidationError as exc:
        logger.error("Failed to parse request: {}", exc.errors(include_input=False))
        return error_response("Failed to parse request", 400)

    chat_id = parse_int64(outbound.chat_id)
    if chat_id is None:
        logger.error("Invalid chat ID: {!r}", outbound.chat_id)
        return error_response("Invalid chat ID", 400)

    extra: dict = {}
    if outbound.message_id:
        reply_to = parse_int64(outbound.message_id)
        if reply_to is None:
            logger.error("Invalid message ID: {!r}", outbound.message_id)
            return error_response("Invalid Message ID", 400)
        extra["reply_parameters"] = ReplyParameters(message_id=reply_to)

    try:
        await bot.send_message(chat_id=chat_id, text=outbound.text, **extra)
    except TelegramError as exc:
        logger.error("Failed to send message to chat {}: {}", chat_id, exc)
        return error_response("Failed to send Message", 500)

    logger.info("Sent message to chat {} (reply={})", chat_id, bool(extra))
    return Response(status_code=200)
