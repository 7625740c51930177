"""Tests for the relay HTTP endpoints (/, /message, /send)."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient
from telegram.error import BadRequest

from tgrelay.api.app import create_api_app
from tgrelay.bus.events import RelayMessage
from tgrelay.bus.queue import RelayQueue
from tgrelay.config.schema import RelayConfig
from tgrelay.media.materializer import AttachmentMaterializer
from tgrelay.workspace.manager import WorkspaceStore

VOICE_URL = "https://api.telegram.org/file/bot123:TOKEN/voice/file_1.oga"
IMAGE_URL = "https://api.telegram.org/file/bot123:TOKEN/photos/file_2.jpg"


def _media_transport(fail: bool = False) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if fail:
            return httpx.Response(502)
        return httpx.Response(200, content=b"media:" + request.url.path.encode())

    return httpx.MockTransport(handler)


def _build(
    config: RelayConfig,
    store: WorkspaceStore,
    fail_downloads: bool = False,
) -> tuple[TestClient, RelayQueue, AsyncMock]:
    queue = RelayQueue(capacity=10)
    bot = AsyncMock()
    materializer = AttachmentMaterializer(store, transport=_media_transport(fail_downloads))
    app = create_api_app(config, queue, materializer, bot)
    return TestClient(app), queue, bot


def _fill(queue: RelayQueue, *messages: RelayMessage) -> None:
    async def _push() -> None:
        for message in messages:
            await queue.enqueue(message)

    asyncio.run(_push())


def _lines(body: str) -> list[dict]:
    return [json.loads(line) for line in body.splitlines() if line]


class TestAddressProbe:
    def test_root_returns_base_url(self, config: RelayConfig, store: WorkspaceStore):
        client, _, _ = _build(config, store)
        response = client.get("/")
        assert response.status_code == 200
        assert response.text == "http://127.0.0.1:18999"


class TestPoll:
    def test_empty_queue_returns_no_messages(self, config: RelayConfig, store: WorkspaceStore):
        client, _, _ = _build(config, store)
        response = client.get("/message")
        assert response.status_code == 200
        assert response.text == "No messages\n"

    def test_returns_text_messages_in_order(self, config: RelayConfig, store: WorkspaceStore):
        client, queue, _ = _build(config, store)
        _fill(
            queue,
            RelayMessage(sender="Alice (alice)", chat_id="1", message_id="10", text="first"),
            RelayMessage(sender="Alice (alice)", chat_id="1", message_id="11", text="second"),
        )

        response = client.get("/message")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/x-ndjson")
        assert _lines(response.text) == [
            {"user": "Alice (alice)", "chatId": "1", "msgId": "10", "text": "first"},
            {"user": "Alice (alice)", "chatId": "1", "msgId": "11", "text": "second"},
        ]
        assert queue.pending == 0
        assert client.get("/message").text == "No messages\n"

    def test_voice_message_is_materialized(
        self, config: RelayConfig, store: WorkspaceStore, tmp_workspace: Path
    ):
        client, queue, _ = _build(config, store)
        _fill(
            queue,
            RelayMessage(chat_id="1", message_id="12", voice_url=VOICE_URL, file_ext=".oga"),
        )

        response = client.get("/message")

        assert response.status_code == 200
        (record,) = _lines(response.text)
        assert "voiceURL" not in record
        assert "fileExt" not in record
        assert "contains a voice file" in record["text"]
        (stored,) = list(tmp_workspace.iterdir())
        assert stored.suffix == ".oga"
        assert stored.name in record["text"]
        assert stored.read_bytes() == b"media:/file/bot123:TOKEN/voice/file_1.oga"

    def test_image_message_is_materialized(
        self, config: RelayConfig, store: WorkspaceStore, tmp_workspace: Path
    ):
        client, queue, _ = _build(config, store)
        _fill(queue, RelayMessage(chat_id="1", text="pic", image_url=IMAGE_URL, file_ext=".jpg"))

        (record,) = _lines(client.get("/message").text)

        assert "contains an image file" in record["text"]
        assert '"text": "pic"' in record["text"]
        assert [p.suffix for p in tmp_workspace.iterdir()] == [".jpg"]

    def test_download_failure_returns_500_and_loses_batch(
        self, config: RelayConfig, store: WorkspaceStore
    ):
        client, queue, _ = _build(config, store, fail_downloads=True)
        _fill(
            queue,
            RelayMessage(chat_id="1", voice_url=VOICE_URL, file_ext=".oga"),
            RelayMessage(chat_id="1", text="after"),
        )

        response = client.get("/message")

        assert response.status_code == 500
        assert response.text == "Failed to upload voice file\n"
        assert queue.pending == 0
        assert client.get("/message").text == "No messages\n"

    def test_image_failure_message(self, config: RelayConfig, store: WorkspaceStore):
        client, queue, _ = _build(config, store, fail_downloads=True)
        _fill(queue, RelayMessage(chat_id="1", image_url=IMAGE_URL, file_ext=".jpg"))

        response = client.get("/message")

        assert response.status_code == 500
        assert response.text == "Failed to upload image file\n"


class TestSend:
    def test_send_plain_message(self, config: RelayConfig, store: WorkspaceStore):
        client, _, bot = _build(config, store)

        response = client.post("/send", json={"chatId": "123", "text": "hi"})

        assert response.status_code == 200
        assert response.content == b""
        bot.send_message.assert_awaited_once_with(chat_id=123, text="hi")

    def test_send_threaded_reply(self, config: RelayConfig, store: WorkspaceStore):
        client, _, bot = _build(config, store)

        response = client.post("/send", json={"chatId": "-1001", "text": "re", "msgId": "77"})

        assert response.status_code == 200
        bot.send_message.assert_awaited_once()
        kwargs = bot.send_message.await_args.kwargs
        assert kwargs["chat_id"] == -1001
        assert kwargs["text"] == "re"
        assert kwargs["reply_parameters"].message_id == 77

    def test_non_numeric_chat_id_is_rejected(self, config: RelayConfig, store: WorkspaceStore):
        client, _, bot = _build(config, store)

        response = client.post("/send", json={"chatId": "abc", "text": "hi"})

        assert response.status_code == 400
        assert response.text == "Invalid chat ID\n"
        bot.send_message.assert_not_awaited()

    def test_missing_chat_id_is_rejected(self, config: RelayConfig, store: WorkspaceStore):
        client, _, bot = _build(config, store)
        response = client.post("/send", json={"text": "hi"})
        assert response.status_code == 400
        bot.send_message.assert_not_awaited()

    def test_field_names_are_not_wire_names(self, config: RelayConfig, store: WorkspaceStore):
        client, _, bot = _build(config, store)

        response = client.post("/send", json={"chat_id": "123", "text": "hi"})

        assert response.status_code == 400
        assert response.text == "Invalid chat ID\n"
        bot.send_message.assert_not_awaited()

    def test_non_numeric_msg_id_is_rejected(self, config: RelayConfig, store: WorkspaceStore):
        client, _, bot = _build(config, store)

        response = client.post("/send", json={"chatId": "1", "text": "hi", "msgId": "x1"})

        assert response.status_code == 400
        assert response.text == "Invalid Message ID\n"
        bot.send_message.assert_not_awaited()

    @pytest.mark.parametrize("body", [b"", b"not json", b"[1, 2]", b'{"chatId": 123}'])
    def test_unparseable_body_is_rejected(
        self, config: RelayConfig, store: WorkspaceStore, body: bytes
    ):
        client, _, bot = _build(config, store)

        response = client.post("/send", content=body)

        assert response.status_code == 400
        assert response.text == "Failed to parse request\n"
        bot.send_message.assert_not_awaited()

    def test_platform_failure_returns_500(self, config: RelayConfig, store: WorkspaceStore):
        client, _, bot = _build(config, store)
        bot.send_message.side_effect = BadRequest("Chat not found")

        response = client.post("/send", json={"chatId": "123", "text": "hi"})

        assert response.status_code == 500
        assert response.text == "Failed to send Message\n"
        bot.send_message.assert_awaited_once()

    def test_oversized_body_is_rejected(self, config: RelayConfig, store: WorkspaceStore):
        client, _, bot = _build(config, store)
        response = client.post(
            "/send",
            content=b"x" * 2_000_000,
            headers={"content-type": "application/json"},
        )
        assert response.status_code == 413
        bot.send_message.assert_not_awaited()
