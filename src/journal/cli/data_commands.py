"""
Settings and data management commands for the journal CLI.

This module provides commands for account settings, manual and live
market prices, and journal export, import and reset.
"""

import sys
from typing import Optional

import click

from .utils import (
    get_cli_context,
    get_manager,
    money,
    print_error,
    print_json,
    print_success,
    print_warning,
)


@click.command()
@click.option("--account-value", type=float, default=None, help="Total account value ($)")
@click.option("--target-percent", type=float, default=None, help="Monthly income target (% of account)")
@click.option("--goal", type=float, default=None, help="Monthly income goal ($)")
@click.option("--api-key", default=None, help="Finnhub API key")
@click.pass_context
def settings(
    ctx: click.Context,
    account_value: Optional[float],
    target_percent: Optional[float],
    goal: Optional[float],
    api_key: Optional[str],
) -> None:
    """
    Show or change account settings.

    The monthly goal follows account value times target percent; setting
    the goal directly backs out the percent.

    Example: journal settings --account-value 50000 --target-percent 2.5
    """
    cli_ctx = get_cli_context(ctx)
    manager = get_manager(ctx)

    if account_value is not None:
        manager.set_account_value(account_value)
    if target_percent is not None:
        manager.set_income_target_percent(target_percent)
    if goal is not None:
        manager.set_monthly_goal(goal)
    if api_key is not None:
        manager.set_finnhub_api_key(api_key)

    current = manager.get_settings()

    if cli_ctx.json:
        data = current.to_dict()
        data["finnhubApiKey"] = "***" if current.finnhub_api_key else ""
        print_json(data)
        return

    click.echo()
    click.secho("=== Settings ===", bold=True)
    click.echo(f"Account Value:   {money(current.total_account_value)}")
    click.echo(f"Income Target:   {current.income_target_percent:g}%")
    click.echo(f"Monthly Goal:    {money(current.monthly_goal)}")
    click.echo(f"Manual VIX:      {current.manual_vix:g}")
    if current.last_vix:
        click.echo(f"Last VIX:        {current.last_vix:g}")
    click.echo(f"Finnhub Key:     {'set' if current.finnhub_api_key else 'not set'}")
    if current.ticker_prices:
        click.echo()
        click.secho("Ticker Prices", bold=True)
        for ticker, value in sorted(current.ticker_prices.items()):
            click.echo(f"  {ticker:<7} ${value:,.2f}")


@click.command()
@click.argument("ticker")
@click.argument("value", type=float)
@click.pass_context
def price(ctx: click.Context, ticker: str, value: float) -> None:
    """
    Set a manual price for a ticker.

    Example: journal price XYZ 48.25
    """
    manager = get_manager(ctx)

    if value < 0:
        print_error("Price cannot be negative")
        sys.exit(1)

    manager.set_ticker_price(ticker, value)
    print_success(f"{ticker.upper()} price set to ${value:,.2f}")


@click.command()
@click.argument("value", type=float)
@click.pass_context
def vix(ctx: click.Context, value: float) -> None:
    """
    Set the manual VIX used for the cash allocation band.

    Example: journal vix 22
    """
    manager = get_manager(ctx)

    if value < 0:
        print_error("VIX cannot be negative")
        sys.exit(1)

    manager.set_manual_vix(value)
    print_success(f"Manual VIX set to {value:g}")


@click.command()
@click.pass_context
def refresh(ctx: click.Context) -> None:
    """
    Fetch live prices for open positions and the VIX.

    Example: journal refresh
    """
    cli_ctx = get_cli_context(ctx)
    manager = get_manager(ctx)

    fetched = manager.refresh_market_data()
    current = manager.get_settings()

    if cli_ctx.json:
        print_json({"prices": fetched, "vix": current.last_vix})
        return

    if not fetched:
        print_warning("No prices fetched; stored prices kept")
    for ticker, value in sorted(fetched.items()):
        click.echo(f"  {ticker:<7} ${value:,.2f}")
    if current.last_vix:
        click.echo(f"VIX: {current.last_vix:.2f}")


@click.command()
@click.option("--output", "-o", type=click.Path(dir_okay=False, writable=True), default=None, help="Write to file instead of stdout")
@click.pass_context
def export(ctx: click.Context, output: Optional[str]) -> None:
    """
    Export trades and settings as JSON.

    Example: journal export -o backup.json
    """
    manager = get_manager(ctx)
    payload = manager.export_json()

    if output is None:
        click.echo(payload)
        return

    with open(output, "w") as f:
        f.write(payload)
    print_success(f"Exported {len(manager.list_trades())} trades to {output}")


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--yes", "-y", is_flag=True, help="Don't ask for confirmation")
@click.pass_context
def import_journal(ctx: click.Context, path: str, yes: bool) -> None:
    """
    Replace the journal from an exported JSON file.

    Example: journal import backup.json
    """
    manager = get_manager(ctx)

    if not yes and not click.confirm("Replace all trades with the file's contents?"):
        click.echo("Aborted.")
        return

    with open(path) as f:
        payload = f.read()

    if not manager.import_data(payload):
        print_error(f"{path} is not a journal export; nothing was changed")
        sys.exit(1)
    print_success(f"Imported {len(manager.list_trades())} trades")


@click.command()
@click.confirmation_option(prompt="Delete every trade? Settings are kept.")
@click.pass_context
def reset(ctx: click.Context) -> None:
    """
    Delete all trades.

    Example: journal reset --yes
    """
    manager = get_manager(ctx)
    manager.reset_trades()
    print_success("All trades deleted")
