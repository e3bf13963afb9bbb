"""certbot-expiry CLI (Typer).

Commands:
- `serve`: Telegram bot, one task per inbound message.
- `summarize`: send every user their summary and exit (cron mode).
- `check`: resolve hosts locally, without the registry.
- `doctor`: diagnostics and token setup.
"""

from __future__ import annotations

import asyncio
import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from adapters.json_store import JSONRegistryStore
from adapters.telegram_client import TelegramClient, build_async_client
from adapters.tls_resolver import TLSExpiryResolver
from cli import doctor
from cli.ui_components import build_expiry_table, build_summary_panel, print_banner
from core.config import AppSettings
from core.interfaces.store import RegistryStoreError
from core.services.bot_loop import run_bot, send_summaries
from core.services.classifier import sanitize
from core.services.host_registry import HostRegistry
from core.services.summary import summarize_all

app = typer.Typer(no_args_is_help=True, help="Track TLS certificate expiry for your hostnames.")
app.add_typer(doctor.app, name="doctor")

_console = Console()
logger = logging.getLogger("cli")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def _load_registry(store: JSONRegistryStore) -> HostRegistry:
    try:
        return HostRegistry.from_data(store.load())
    except RegistryStoreError as exc:
        _console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc


def _require_token(settings: AppSettings) -> None:
    if not settings.telegram_token:
        _console.print(
            "[red]Telegram token missing.[/red] Set CERTBOT_TELEGRAM_TOKEN (or BOTAPI) "
            "or run `certbot doctor setup-token`."
        )
        raise typer.Exit(code=2)


async def _summarize_mode(settings: AppSettings, registry: HostRegistry, resolver: TLSExpiryResolver) -> None:
    async with TelegramClient(build_async_client(settings)) as telegram:
        await send_summaries(telegram=telegram, registry=registry, resolver=resolver)


async def _serve(settings: AppSettings, registry: HostRegistry, store: JSONRegistryStore) -> None:
    resolver = TLSExpiryResolver(settings)
    async with TelegramClient(build_async_client(settings)) as telegram:
        await run_bot(
            telegram=telegram,
            registry=registry,
            resolver=resolver,
            store=store,
            poll_timeout=settings.poll_timeout_seconds,
        )


@app.command()
def serve(
    summarize: bool = typer.Option(
        False,
        "--summarize",
        help="Send summarized messages to users and exit.",
    ),
) -> None:
    """Run the Telegram bot."""

    settings = AppSettings()
    configure_logging(settings.log_level)
    _require_token(settings)

    store = JSONRegistryStore(settings.data_file)
    registry = _load_registry(store)

    if summarize:
        asyncio.run(_summarize_mode(settings, registry, TLSExpiryResolver(settings)))
        return

    try:
        asyncio.run(_serve(settings, registry, store))
    except KeyboardInterrupt:
        logger.info("Stopped")


@app.command(name="summarize")
def summarize_command(
    dry_run: bool = typer.Option(False, "--dry-run", help="Print summaries instead of sending them."),
) -> None:
    """Send every user their expiry summary and exit."""

    settings = AppSettings()
    configure_logging(settings.log_level)

    registry = _load_registry(JSONRegistryStore(settings.data_file))
    resolver = TLSExpiryResolver(settings)

    if dry_run:
        summaries = asyncio.run(summarize_all(registry=registry, resolver=resolver))
        for user, text in summaries.items():
            _console.print(build_summary_panel(user, text))
        return

    _require_token(settings)
    asyncio.run(_summarize_mode(settings, registry, resolver))


@app.command()
def check(
    hosts: list[str] = typer.Argument(..., help="Hostnames or URLs to check."),
    banner: bool = typer.Option(True, "--banner/--no-banner", help="Show the banner."),
) -> None:
    """Resolve certificate expiry for HOSTS and print a table."""

    settings = AppSettings()
    configure_logging(settings.log_level)
    if banner:
        print_banner(_console)

    resolver = TLSExpiryResolver(settings)
    names = [sanitize(host) for host in hosts]

    async def _resolve_all():
        return await asyncio.gather(*(resolver.resolve(name) for name in names))

    results = asyncio.run(_resolve_all())
    _console.print(build_expiry_table(list(zip(names, results))))


def run() -> None:
    app()
