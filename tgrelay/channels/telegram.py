"""Telegram inbound listener using python-telegram-bot (async native).

The listener long-polls getUpdates and handles one update at a time:

  1. updates without a message are skipped
  2. the sender is checked against the allow-list; unknown senders are
     dropped with a warning
  3. a RelayMessage is built from the chat id, message id, text (or
     photo caption) and sender name
  4. for a voice note or a photo, the Telegram file is resolved to its
     download URL and extension, which ride along on the record
  5. the record is pushed onto the relay queue

Attachments are not downloaded here. The poll endpoint materializes them
when the agent drains the queue.

A failure while handling one update drops that update and the loop
moves on. A failure of getUpdates itself ends run() with the exception.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import PurePosixPath
from urllib.parse import urlsplit

from loguru import logger
from telegram import Bot, Update, User
from telegram.error import TelegramError, TimedOut

from tgrelay.bus.events import RelayMessage
from tgrelay.bus.queue import RelayQueue
from tgrelay.security.allowlist import AllowList

DEFAULT_POLL_TIMEOUT = 60


def display_name(user: User) -> str:
    """Render a sender as 'First Last (username)'."""
    name = " ".join(part for part in (user.first_name, user.last_name) if part)
    if user.username:
        return f"{name} ({user.username})" if name else f"({user.username})"
    return name


def file_extension(url: str) -> str:
    """Extension of the file a Telegram download URL points to, with the dot."""
    return PurePosixPath(urlsplit(url).path).suffix


class TelegramListener:
    """Feeds authorized Telegram messages into the relay queue."""

    def __init__(
        self,
        bot: Bot,
        allow_list: AllowList,
        queue: RelayQueue,
        poll_timeout: int = DEFAULT_POLL_TIMEOUT,
    ) -> None:
        self._bot = bot
        self._allow_list = allow_list
        self._queue = queue
        self._poll_timeout = poll_timeout

    async def updates(self) -> AsyncIterator[Update]:
        """Yield updates from getUpdates forever, acknowledging each one."""
        offset: int | None = None
        while True:
            try:
                batch = await self._bot.get_updates(
                    offset=offset,
                    timeout=self._poll_timeout,
                    allowed_updates=[Update.MESSAGE],
                )
            except TimedOut:
                # An expired long poll, not a broken feed.
                logger.debug("getUpdates long poll timed out, polling again")
                continue
            for update in batch:
                offset = update.update_id + 1
                yield update

    async def normalize(self, update: Update) -> RelayMessage | None:
        """Turn an update into a queued record, or None if it should be dropped."""
        message = update.message
        if message is None:
            return None

        user = update.effective_user
        if not self._allow_list.is_authorized(user):
            logger.warning(
                "Unauthorized user: id={} username={}",
                user.id if user else None,
                user.username if user else None,
            )
            return None

        text = message.text or message.caption or ""
        logger.info(
            "Received a message: chat_id={} msg_id={} from={} len={}",
            message.chat.id,
            message.message_id,
            user.id,
            len(text),
        )
        record = RelayMessage(
            sender=display_name(user),
            chat_id=str(message.chat.id),
            message_id=str(message.message_id),
            text=text,
        )

        try:
            if message.voice is not None:
                logger.info("Message {} carries a voice note", message.message_id)
                url = await self._resolve_file_url(message.voice.file_id)
                return record.model_copy(update={"voice_url": url, "file_ext": file_extension(url)})
            if message.photo:
                logger.info("Message {} carries a photo", message.message_id)
                url = await self._resolve_file_url(message.photo[0].file_id)
                return record.model_copy(update={"image_url": url, "file_ext": file_extension(url)})
        except TelegramError as exc:
            logger.error("Failed to resolve attachment for message {}: {}", message.message_id, exc)
            return None

        if not text:
            logger.debug("Skipping message {} with no text or supported media", message.message_id)
            return None
        return record

    async def run(self) -> None:
        """Consume the update feed until it fails; never returns normally."""
        logger.info("Telegram listener started (queue capacity {})", self._queue.capacity)
        async for update in self.updates():
            try:
                record = await self.normalize(update)
            except Exception as exc:
                logger.exception("Dropping update {}: {}", update.update_id, exc)
                continue
            if record is not None:
                await self._queue.enqueue(record)

    async def _resolve_file_url(self, file_id: str) -> str:
        tg_file = await self._bot.get_file(file_id)
        if not tg_file.file_path:
            raise TelegramError("Telegram returned a file without a download path")
        return tg_file.file_path
