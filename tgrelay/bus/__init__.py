"""Relay queue and message record shared by the listener and the HTTP API."""

from tgrelay.bus.events import RelayMessage
from tgrelay.bus.queue import RelayQueue

__all__ = ["RelayMessage", "RelayQueue"]
