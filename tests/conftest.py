"""Shared test fixtures for the tgrelay test suite.

The _isolate_relay_config fixture (autouse) keeps RelayConfig from reading
the user's real ~/.tgrelay/config.json or the Telegram variables of the
shell running the tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from tgrelay.config.schema import RelayConfig
from tgrelay.workspace.manager import WorkspaceStore

_RELAY_ENV_VARS = (
    "TELEGRAM_BOT_TOKEN",
    "TELEGRAM_BOT_ALLOWED_USERIDS",
    "TELEGRAM_BOT_ALLOWED_USERNAMES",
    "PORT",
    "TGRELAY_HOST",
    "TGRELAY_WORKSPACE",
    "TGRELAY_QUEUE_SIZE",
    "TGRELAY_FETCH_TIMEOUT",
    "TGRELAY_POLL_TIMEOUT",
)


@pytest.fixture(autouse=True)
def _isolate_relay_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point RelayConfig's json_file at an empty temp file and clear relay env vars."""
    empty_config = tmp_path / "tgrelay_test_config.json"
    empty_config.write_text("{}", encoding="utf-8")
    monkeypatch.setitem(RelayConfig.model_config, "json_file", empty_config)
    for name in _RELAY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def tmp_workspace(tmp_path: Path) -> Path:
    ws = tmp_path / "workspace"
    ws.mkdir()
    return ws


@pytest.fixture
def store(tmp_workspace: Path) -> WorkspaceStore:
    return WorkspaceStore(tmp_workspace)


@pytest.fixture
def config(tmp_workspace: Path) -> RelayConfig:
    """Create a test config pointing at the temporary workspace."""
    return RelayConfig(
        bot_token="123456:TEST-TOKEN",
        allowed_user_ids="42",
        allowed_usernames="alice",
        port=18999,
        workspace=str(tmp_workspace),
    )
