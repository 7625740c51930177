"""Pydantic configuration model for tgrelay.

Values come from init kwargs (an explicit --config JSON file), then
environment variables, then ~/.tgrelay/config.json. The Telegram
settings keep the environment variable names the hosting agent sets
(TELEGRAM_BOT_TOKEN, TELEGRAM_BOT_ALLOWED_USERIDS,
TELEGRAM_BOT_ALLOWED_USERNAMES, PORT); everything else uses the
TGRELAY_ prefix.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic_settings.main import JsonConfigSettingsSource

_INT64_RE = re.compile(r"[+-]?\d+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def parse_int64(value: str) -> int | None:
    """Parse a signed 64-bit decimal integer, or return None if it isn't one."""
    if not _INT64_RE.fullmatch(value):
        return None
    number = int(value)
    if not _INT64_MIN <= number <= _INT64_MAX:
        return None
    return number


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class RelayConfig(BaseSettings):
    """Root configuration, read once at startup and frozen afterwards."""

    model_config = SettingsConfigDict(
        env_prefix="TGRELAY_",
        json_file=Path("~/.tgrelay/config.json").expanduser(),
        json_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    # Only the aliases are read from the environment; field names still
    # work for init kwargs and JSON config files.
    bot_token: SecretStr = Field(
        validation_alias="TELEGRAM_BOT_TOKEN",
        description="Telegram bot API token.",
    )
    allowed_user_ids: Annotated[frozenset[int], NoDecode] = Field(
        default_factory=frozenset,
        validation_alias="TELEGRAM_BOT_ALLOWED_USERIDS",
        description="Numeric Telegram user ids allowed to message the bot.",
    )
    allowed_usernames: Annotated[frozenset[str], NoDecode] = Field(
        default_factory=frozenset,
        validation_alias="TELEGRAM_BOT_ALLOWED_USERNAMES",
        description="Telegram usernames allowed to message the bot.",
    )
    host: str = "127.0.0.1"
    port: int = Field(default=18810, ge=1, le=65535, validation_alias="PORT")
    workspace: Path = Field(
        default=Path("~/.tgrelay/workspace"),
        description="Directory shared with the agent where attachments are written.",
    )
    queue_size: int = Field(default=100, ge=1, le=100_000)
    fetch_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds allowed for one attachment download.",
    )
    poll_timeout: int = Field(
        default=60,
        ge=0,
        le=600,
        description="Long-poll timeout passed to Telegram getUpdates.",
    )

    @field_validator("allowed_user_ids", mode="before")
    @classmethod
    def _parse_user_ids(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        ids: set[int] = set()
        for item in _split_csv(value):
            uid = parse_int64(item)
            if uid is None:
                raise ValueError(f"invalid allowed user id: {item!r}")
            ids.add(uid)
        return frozenset(ids)

    @field_validator("allowed_usernames", mode="before")
    @classmethod
    def _parse_usernames(cls, value: Any) -> Any:
        if isinstance(value, str):
            return frozenset(_split_csv(value))
        return value

    @property
    def base_url(self) -> str:
        """Loopback URL the agent uses to reach the HTTP surface."""
        host = "127.0.0.1" if self.host in ("", "0.0.0.0") else self.host
        return f"http://{host}:{self.port}"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """Enable JSON file loading alongside env vars and init kwargs."""
        return (
            init_settings,
            env_settings,
            JsonConfigSettingsSource(settings_cls),
        )
