"""Rich console rendering of the balance view."""

from __future__ import annotations

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .constants import NEARBLOCKS_ACCOUNT_URL, PIKESPEAK_MONEY_FLOW_URL
from .fetcher import BalanceRecord
from .lifecycle import BalanceView
from .settings import BalanceSettings, Network


def explorer_links(account_id: str, settings: BalanceSettings) -> list[tuple[str, str]]:
    """Third-party pages with more detail about ``account_id``."""
    links = [
        (
            "NEAR Explorer - Account Details",
            f"{settings.explorer_url}/accounts/{account_id}",
        )
    ]
    if settings.network is Network.MAINNET:
        links.insert(
            0,
            (
                "Pikes Peak - Money Flow",
                PIKESPEAK_MONEY_FLOW_URL.format(account_id=account_id),
            ),
        )
        links.append(
            (
                "NEAR Blocks - Account Explorer",
                NEARBLOCKS_ACCOUNT_URL.format(account_id=account_id),
            )
        )
    return links


def _balance_panel(account_id: str, balance: BalanceRecord) -> Panel:
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="dim")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Available Balance", f"{balance.available} NEAR")
    table.add_row("Staked Balance", f"{balance.staked} NEAR")
    table.add_row("[bold]Total Balance[/]", f"[bold]{balance.total} NEAR[/]")

    parts: list[Table | Text] = [table]
    if balance.failed_validators:
        parts.append(
            Text(
                f"Staked balance excludes {len(balance.failed_validators)} "
                f"unreachable staking pool(s): {', '.join(balance.failed_validators)}",
                style="yellow",
            )
        )
    return Panel(
        Group(*parts),
        title=f"[bold]Balance for [cyan]{account_id}[/][/]",
        border_style="green",
    )


def _links_panel(account_id: str, settings: BalanceSettings) -> Panel:
    links = Table(show_header=False, box=None, padding=(0, 1))
    links.add_column("Name")
    links.add_column("URL", style="cyan")
    for name, url in explorer_links(account_id, settings):
        links.add_row(name, url)
    return Panel(links, title="[bold]More Info[/]", border_style="blue")


def render_view(
    view: BalanceView, settings: BalanceSettings, console: Console | None = None
) -> None:
    """Print the current view to the console."""
    console = console or Console()

    if view.validation_error:
        console.print(Panel(view.validation_error, border_style="red"))
        return
    if view.error:
        console.print(Panel(view.error, title="[bold]Error[/]", border_style="red"))
        return
    if view.balance is not None and view.account_id:
        console.print(_balance_panel(view.account_id, view.balance))
        console.print(_links_panel(view.account_id, settings))
