"""Authorization for inbound chat events."""

from tgrelay.security.allowlist import AllowList

__all__ = ["AllowList"]
