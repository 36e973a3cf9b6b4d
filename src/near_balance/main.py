"""CLI entrypoint for the NEAR balance checker."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Annotated

import typer

from .fetcher import BalanceFetcher
from .lifecycle import BalanceRequestController, BalanceView
from .logger import setup_logging
from .presenter import render_view
from .settings import BalanceSettings, Network

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Show the available, staked and total NEAR balance of an account.",
)


def _build_logger() -> logging.Logger:
    """Build a logger instance."""
    return logging.getLogger("near_balance")


async def fetch_view(settings: BalanceSettings, account_id: str) -> BalanceView:
    """Run one balance request to completion and return the final view."""
    fetcher = BalanceFetcher.from_settings(settings)
    async with BalanceRequestController(fetcher, settings) as controller:
        request = controller.submit(account_id)
        if request is not None:
            await request.wait()
        return controller.view


@app.callback(invoke_without_command=True)
def balance(
    account_id: Annotated[
        str | None,
        typer.Argument(help="Account ID: alice.near, 0x... or a 64-char hex address."),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [near_balance] table).",
        ),
    ] = None,
    network: Annotated[
        Network | None,
        typer.Option("--network", "-n", help="Network to query (mainnet or testnet)."),
    ] = None,
    rpc_urls: Annotated[
        list[str] | None,
        typer.Option(
            "--rpc-url",
            help="RPC endpoint, repeat for failover order; overrides network defaults.",
        ),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", help="Overall request timeout in seconds."),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the result as JSON instead of a table."),
    ] = False,
    show_config: Annotated[
        bool,
        typer.Option("--show-config", help="Print effective config and exit."),
    ] = False,
):
    """Fetch the balance of ACCOUNT_ID.

    Loads configuration, validates the account ID, then queries the configured
    RPC endpoints in failover order.
    """
    if config_path:
        os.environ["NEAR_BALANCE_CONFIG"] = str(config_path)

    init_kwargs: dict[str, Network | float | str | list[str]] = {}
    if network is not None:
        init_kwargs["network"] = network
    if rpc_urls:
        init_kwargs["rpc_urls"] = rpc_urls
    if timeout is not None:
        init_kwargs["request_timeout_seconds"] = timeout
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    settings = BalanceSettings(**init_kwargs)

    setup_logging(settings.log_level)
    logger = _build_logger()

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    if not account_id:
        raise typer.BadParameter("account_id is required", param_hint="ACCOUNT_ID")

    logger.debug("Effective config: %s", settings.as_safe_dict())
    view = asyncio.run(fetch_view(settings, account_id))

    if view.validation_error:
        raise typer.BadParameter(view.validation_error, param_hint="ACCOUNT_ID")

    if as_json:
        payload = {
            "account_id": view.account_id,
            "network": settings.network.value,
            "balance": view.balance.as_dict() if view.balance else None,
            "error": view.error,
        }
        typer.echo(json.dumps(payload, indent=2))
    else:
        render_view(view, settings)

    if view.error or view.balance is None:
        raise typer.Exit(code=1)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
