"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.json_store import JSONRegistryStore
from adapters.telegram_client import TelegramClient, build_async_client
from adapters.tls_resolver import TLSExpiryResolver
from core.config import AppSettings, write_user_env_vars
from core.interfaces.store import RegistryStoreError
from core.services.formatter import format_expiry

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_telegram(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with TelegramClient(build_async_client(settings)) as telegram:
            me = await telegram.get_me()
        return True, f"@{me.username}" if me.username else str(me.id)
    except Exception as exc:
        return False, str(exc)


async def _check_tls(settings: AppSettings, host: str) -> tuple[bool, str]:
    result = await TLSExpiryResolver(settings).resolve(host)
    return result.ok, format_expiry(host, result)


def _check_store(settings: AppSettings) -> tuple[bool, str]:
    try:
        data = JSONRegistryStore(settings.data_file).load()
    except RegistryStoreError as exc:
        return False, str(exc)
    total = sum(len(hosts) for hosts in data.hosts.values())
    return True, f"{len(data.hosts)} users, {total} hosts"


@app.command()
def run(
    host: str = typer.Option("example.com", help="Host used for the TLS connectivity check."),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="certbot-expiry Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    if settings.telegram_token:
        ok_tg, detail_tg = asyncio.run(_check_telegram(settings))
        table.add_row("Telegram bot", "OK" if ok_tg else "FAIL", detail_tg)
    else:
        table.add_row("Telegram bot", "MISSING", "No token set -> run `certbot doctor setup-token`")
    table.add_row("Data file", "OK", str(settings.data_file))

    ok_store, detail_store = _check_store(settings)
    table.add_row("Registry", "OK" if ok_store else "FAIL", detail_store)

    # Connectivity (best-effort)
    ok_tls, detail_tls = asyncio.run(_check_tls(settings, host))
    table.add_row("TLS connectivity", "OK" if ok_tls else "FAIL", detail_tls)

    _console.print(table)


@app.command(name="setup-token")
def setup_token() -> None:
    """Store the Telegram bot token in the user config .env."""

    token = typer.prompt("Telegram bot token", hide_input=True, confirmation_prompt=False).strip()
    if not token:
        raise typer.BadParameter("token is required")

    env_path = write_user_env_vars({"CERTBOT_TELEGRAM_TOKEN": token})
    _console.print(f"[green]Saved Telegram config to:[/green] {env_path}")
