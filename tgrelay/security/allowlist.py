"""Sender allow-list for inbound Telegram updates.

The allow-list is built once at startup from configuration and never
changes afterwards, so the listener can share it without locking. A
sender is admitted when either its numeric user id or its username is
listed; one matching credential is enough.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from tgrelay.config.schema import RelayConfig


class Sender(Protocol):
    """The parts of a telegram.User the gate looks at."""

    id: int
    username: str | None


@dataclass(frozen=True, slots=True)
class AllowList:
    """Immutable set of authorized sender ids and usernames."""

    user_ids: frozenset[int] = field(default_factory=frozenset)
    usernames: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_config(cls, config: RelayConfig) -> AllowList:
        return cls(
            user_ids=frozenset(config.allowed_user_ids),
            usernames=frozenset(config.allowed_usernames),
        )

    def is_authorized(self, sender: Sender | None) -> bool:
        """Return True if the sender's id or username is on the list."""
        if sender is None:
            return False
        if sender.id in self.user_ids:
            return True
        return bool(sender.username) and sender.username in self.usernames

    @property
    def is_empty(self) -> bool:
        return not self.user_ids and not self.usernames
