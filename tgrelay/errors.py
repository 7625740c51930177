"""Exception hierarchy for tgrelay.

Startup code treats ConfigError as fatal. The listener and the HTTP
routes catch the narrower errors and turn them into a dropped event or
an error response for a single caller.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for all tgrelay errors."""


class ConfigError(RelayError):
    """Configuration could not be loaded or is invalid."""


class WorkspaceError(RelayError):
    """A file could not be written to the shared workspace."""


class MaterializationError(RelayError):
    """A remote attachment could not be fetched or stored."""

    def __init__(self, url: str, reason: str) -> None:
        # The URL embeds the bot token, keep it out of the message.
        super().__init__(f"Failed to materialize attachment: {reason}")
        self.url = url
        self.reason = reason
