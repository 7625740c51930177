"""Bounded relay queue between the Telegram listener and the poll endpoint.

The listener pushes normalized records with enqueue(), which waits while
the queue is full so a slow agent applies backpressure to the update
feed instead of losing messages. The poll endpoint drains everything
currently buffered with try_dequeue_all(), which never waits.
"""

from __future__ import annotations

import asyncio

from loguru import logger

from tgrelay.bus.events import RelayMessage

DEFAULT_CAPACITY = 100


class RelayQueue:
    """FIFO buffer of RelayMessage records with blocking push and non-blocking drain."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("Relay queue capacity must be at least 1")
        self._queue: asyncio.Queue[RelayMessage] = asyncio.Queue(maxsize=capacity)

    async def enqueue(self, message: RelayMessage) -> None:
        """Append a record, waiting for free space when the queue is full."""
        if self._queue.full():
            logger.debug("Relay queue full ({}), waiting for a drain", self.capacity)
        await self._queue.put(message)
        logger.debug(
            "Queued message: chat_id={} msg_id={} pending={}",
            message.chat_id,
            message.message_id,
            self._queue.qsize(),
        )

    def try_dequeue_all(self) -> list[RelayMessage]:
        """Remove and return every buffered record in arrival order."""
        drained: list[RelayMessage] = []
        while True:
            try:
                drained.append(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                break
            self._queue.task_done()
        if drained:
            logger.debug("Drained {} message(s) from relay queue", len(drained))
        return drained

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def capacity(self) -> int:
        return self._queue.maxsize
