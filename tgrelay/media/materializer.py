"""Attachment materialization: remote Telegram media to workspace files.

Records leave the relay queue still pointing at a Telegram download URL.
Before a record is handed to the agent the file is downloaded once,
written into the shared workspace under a fresh id, and the record text
is rewritten so the agent can find it:

    <INFO>This message contains a voice file which you can find in the workspace at <id></INFO>
    <MESSAGE>{"user": ..., "chatId": ..., "msgId": ..., "text": ...}</MESSAGE>

The download is a single attempt. Any failure raises MaterializationError.
"""

from __future__ import annotations

import asyncio
import uuid

import httpx
from loguru import logger

from tgrelay.bus.events import RelayMessage
from tgrelay.errors import MaterializationError, WorkspaceError
from tgrelay.workspace.manager import WorkspaceStore

DEFAULT_FETCH_TIMEOUT = 30.0

_KIND_PHRASES = {
    "voice": "a voice file",
    "image": "an image file",
}


def annotate(message: RelayMessage, local_id: str, kind: str) -> RelayMessage:
    """Return a copy of message whose text points the agent at local_id.

    The original record, minus its remote locators, is embedded as JSON
    inside the MESSAGE block. Locators and the extension are cleared on
    the returned copy.
    """
    original = message.model_copy(update={"voice_url": "", "image_url": "", "file_ext": ""})
    text = (
        f"<INFO>This message contains {_KIND_PHRASES[kind]} which you can find "
        f"in the workspace at {local_id}</INFO>\n"
        f"<MESSAGE>{original.to_json()}</MESSAGE>"
    )
    return original.model_copy(update={"text": text})


class AttachmentMaterializer:
    """Downloads remote attachments into the workspace."""

    def __init__(
        self,
        store: WorkspaceStore,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._store = store
        self._timeout = httpx.Timeout(timeout)
        self._transport = transport

    async def materialize(self, remote_url: str, extension: str) -> str:
        """Fetch remote_url and store it; return the workspace-relative id."""
        local_id = f"{uuid.uuid4()}{extension}"
        content = await self._fetch(remote_url)
        try:
            await asyncio.to_thread(self._store.write_file, local_id, content)
        except WorkspaceError as exc:
            raise MaterializationError(remote_url, str(exc)) from exc
        logger.info("Materialized attachment as {} ({} bytes)", local_id, len(content))
        return local_id

    async def materialize_record(self, message: RelayMessage) -> RelayMessage:
        """Materialize the record's attachment, if any, and annotate its text."""
        if not message.has_attachment:
            return message
        if message.voice_url:
            local_id = await self.materialize(message.voice_url, message.file_ext)
            return annotate(message, local_id, "voice")
        local_id = await self.materialize(message.image_url, message.file_ext)
        return annotate(message, local_id, "image")

    async def _fetch(self, url: str) -> bytes:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                resp = await client.get(url)
                resp.raise_for_status()
                return resp.content
        except httpx.HTTPStatusError as exc:
            raise MaterializationError(url, f"HTTP {exc.response.status_code}") from exc
        except httpx.TimeoutException as exc:
            raise MaterializationError(url, "timeout") from exc
        except httpx.HTTPError as exc:
            raise MaterializationError(url, type(exc).__name__) from exc
