"""tgrelay check-config: load configuration and show what the relay would use."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tgrelay.config import RelayConfig, load_config
from tgrelay.errors import ConfigError

console = Console()


def _mask(secret: str) -> str:
    if len(secret) <= 8:
        return "*" * len(secret)
    return f"{secret[:4]}...{secret[-4:]}"


def check_config_command() -> None:
    """Validate configuration without contacting Telegram."""
    from tgrelay.cli.app import state

    try:
        config = load_config(state.config_path)
    except ConfigError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]", soft_wrap=True)
        raise typer.Exit(1) from exc

    console.print(summary_table(config))


def summary_table(config: RelayConfig) -> Table:
    table = Table(title="tgrelay configuration", show_header=False)
    table.add_column("setting", style="cyan")
    table.add_column("value")
    table.add_row("bot token", _mask(config.bot_token.get_secret_value()))
    table.add_row("allowed user ids", str(len(config.allowed_user_ids)))
    table.add_row("allowed usernames", str(len(config.allowed_usernames)))
    table.add_row("listen", config.base_url)
    table.add_row("workspace", str(config.workspace.expanduser()))
    table.add_row("queue size", str(config.queue_size))
    table.add_row("fetch timeout", f"{config.fetch_timeout:g}s")
    table.add_row("poll timeout", f"{config.poll_timeout}s")
    return table
