"""CLI UI components (Rich).

Why separate components:
- Keeps command logic apart from visual details.
- Tables/panels are reused by several commands.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import ExpiryResult
from core.services.formatter import days_remaining, format_expiry


def print_banner(console: Console) -> None:
    title = Text("certbot-expiry", style="bold cyan")
    subtitle = Text("TLS certificate expiry • per-user summaries", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def _days_style(days: int) -> str:
    if days < 0:
        return "bold red"
    if days <= 14:
        return "yellow"
    return "green"


def build_expiry_table(rows: list[tuple[str, ExpiryResult]]) -> Table:
    """Table of resolved hosts: expiry date, days left and the user-facing message."""

    table = Table(title="Certificate Expiry")
    table.add_column("Host", style="cyan", no_wrap=True)
    table.add_column("Expires (UTC)", style="white")
    table.add_column("Days", justify="right")
    table.add_column("Message", style="magenta")

    for host, result in rows:
        message = format_expiry(host, result)
        if result.expires_at is None:
            table.add_row(host, "-", Text("-", style="dim"), Text(message, style="red"))
            continue
        days = days_remaining(result.expires_at)
        table.add_row(
            host,
            result.expires_at.strftime("%Y-%m-%d %H:%M"),
            Text(str(days), style=_days_style(days)),
            message,
        )
    return table


def build_summary_panel(user: int, text: str) -> Panel:
    return Panel(Text(text), title=Text(f"User {user}", style="bold yellow"), border_style="yellow")
