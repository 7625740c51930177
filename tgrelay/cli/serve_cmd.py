"""tgrelay serve: run the Telegram listener and the local HTTP relay.

Two long-lived tasks share one event loop:
  - the Telegram listener, pushing authorized messages onto the relay queue
  - the uvicorn server, answering the agent's /message and /send calls

Start: tgrelay serve
       tgrelay serve --port 9000
Stop:  Ctrl+C (SIGINT) or SIGTERM

The process exits with status 1 when configuration is invalid, when the
workspace directory cannot be created, when Telegram rejects the bot
token, or when the update feed fails.
"""

from __future__ import annotations

import asyncio
import contextlib
import signal

import typer
import uvicorn
from loguru import logger
from rich.console import Console
from rich.markup import escape
from telegram import Bot
from telegram.error import TelegramError

from tgrelay.api.app import create_api_app
from tgrelay.bus.queue import RelayQueue
from tgrelay.channels.telegram import TelegramListener
from tgrelay.config import RelayConfig, load_config
from tgrelay.errors import ConfigError
from tgrelay.media.materializer import AttachmentMaterializer
from tgrelay.security.allowlist import AllowList
from tgrelay.workspace.manager import WorkspaceStore

console = Console()


def serve_command(
    host: str = typer.Option(None, "--host", "-H", help="Bind address (overrides config)."),  # noqa: B008
    port: int = typer.Option(None, "--port", "-p", help="Bind port (overrides config)."),  # noqa: B008
) -> None:
    """Start the relay: Telegram listener + HTTP server."""
    from tgrelay.cli.app import state

    try:
        config = load_config(state.config_path)
    except ConfigError as exc:
        console.print(f"[red]tgrelay failed: {escape(str(exc))}[/red]", soft_wrap=True)
        raise typer.Exit(1) from exc

    overrides = {key: value for key, value in (("host", host), ("port", port)) if value}
    if overrides:
        config = config.model_copy(update=overrides)

    try:
        exit_code = asyncio.run(_run_relay(config))
    except KeyboardInterrupt:
        console.print("\n[dim]Relay shutdown by user.[/dim]")
        exit_code = 0
    if exit_code:
        raise typer.Exit(exit_code)


async def _run_relay(config: RelayConfig) -> int:
    """Main async entry point. Returns the process exit code."""
    store = WorkspaceStore(config.workspace)
    try:
        store.initialize()
    except OSError as exc:
        console.print(f"[red]tgrelay failed: cannot create workspace: {escape(str(exc))}[/red]")
        return 1

    bot = Bot(config.bot_token.get_secret_value())
    try:
        await bot.initialize()
    except TelegramError as exc:
        console.print(f"[red]tgrelay failed: cannot create bot: {escape(str(exc))}[/red]")
        return 1
    logger.info("Authorized on account {}", bot.username)

    queue = RelayQueue(config.queue_size)
    allow_list = AllowList.from_config(config)
    if allow_list.is_empty:
        logger.warning("Allow-list is empty: every inbound message will be dropped")

    listener = TelegramListener(bot, allow_list, queue, poll_timeout=config.poll_timeout)
    materializer = AttachmentMaterializer(store, timeout=config.fetch_timeout)
    app = create_api_app(config, queue, materializer, bot)

    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=config.host,
            port=config.port,
            log_level="warning",
            access_log=False,
        )
    )

    shutdown_event = asyncio.Event()
    _install_signal_handlers(shutdown_event)

    listener_task = asyncio.create_task(listener.run(), name="telegram-listener")
    server_task = asyncio.create_task(server.serve(), name="http-server")
    shutdown_task = asyncio.create_task(shutdown_event.wait(), name="shutdown-watcher")

    console.print(
        f"[bold cyan]tgrelay running[/bold cyan] on {config.base_url}. Press Ctrl+C to stop."
    )

    done, _ = await asyncio.wait(
        {listener_task, server_task, shutdown_task},
        return_when=asyncio.FIRST_COMPLETED,
    )

    exit_code = 0
    if listener_task in done and listener_task.exception() is not None:
        exc = listener_task.exception()
        logger.opt(exception=exc).error("Telegram update feed failed: {}", exc)
        console.print(f"[red]tgrelay failed: update feed stopped: {escape(str(exc))}[/red]")
        exit_code = 1

    console.print("\n[dim]Shutting down relay...[/dim]")
    server.should_exit = True
    for task in (listener_task, shutdown_task):
        task.cancel()
    results = await asyncio.gather(
        listener_task, server_task, shutdown_task, return_exceptions=True
    )
    server_result = results[1]
    if isinstance(server_result, Exception):
        logger.opt(exception=server_result).error("HTTP server failed: {}", server_result)
        exit_code = 1

    with contextlib.suppress(TelegramError):
        await bot.shutdown()

    logger.info("Relay shutdown complete ({} message(s) left in queue)", queue.pending)
    return exit_code


def _install_signal_handlers(shutdown_event: asyncio.Event) -> None:
    """Install SIGINT/SIGTERM handlers that trigger graceful shutdown."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown_event.set)
