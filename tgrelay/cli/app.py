"""Main CLI application: registers subcommands and global options."""

from __future__ import annotations

from pathlib import Path

import typer

from tgrelay.logging import setup_logging

app = typer.Typer(
    name="tgrelay",
    help="tgrelay - relay Telegram bot messages to a polling agent.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)


class _GlobalState:
    """Shared state set by the top-level callback, consumed by subcommands."""

    config_path: Path | None = None


state = _GlobalState()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show DEBUG-level logs."),  # noqa: B008
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress logs below WARNING."),  # noqa: B008
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to a config JSON file."),  # noqa: B008
) -> None:
    """tgrelay - relay Telegram bot messages to a polling agent."""
    state.config_path = config
    setup_logging(verbose=verbose, quiet=quiet)


# Register subcommands; import at bottom to avoid circular deps
from tgrelay.cli.check_config_cmd import check_config_command  # noqa: E402
from tgrelay.cli.serve_cmd import serve_command  # noqa: E402

app.command(name="serve", help="Run the Telegram listener and the local HTTP relay.")(
    serve_command
)
app.command(name="check-config", help="Validate configuration and print a summary.")(
    check_config_command
)
