"""
Trade entry commands for the journal CLI.

This module provides commands for adding, editing, closing, deleting
and listing trades.
"""

import sys
from dataclasses import replace
from datetime import datetime
from typing import Any, Optional

import click

from ..exceptions import JournalError, TradeNotFoundError
from ..models import Trade
from ..state import StrategyType, TradeStatus
from .utils import (
    STATUS_CHOICES,
    STRATEGY_CHOICES,
    get_cli_context,
    get_manager,
    money,
    print_error,
    print_json,
    print_success,
    print_trade,
    print_trade_table,
    print_warning,
)

DATE = click.DateTime(formats=["%Y-%m-%d"])


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.date().isoformat() if value else None


def _load_trade(manager, trade_id: str) -> Trade:
    trade = manager.get_trade(trade_id)
    if trade is None:
        raise TradeNotFoundError(f"No trade with id {trade_id}")
    return trade


def _report_save(result) -> None:
    trade = result.trade
    print_success(
        f"Saved {trade.ticker} {trade.strategy.value} ({trade.status.value}) [{trade.id}]"
    )
    if trade.pnl is not None:
        click.echo(f"Realized P&L: {money(trade.pnl)}")
    if result.spawned is not None:
        lot = result.spawned
        click.echo(
            f"Assignment recorded: {lot.shares:g} shares of {lot.ticker} "
            f"at ${lot.underlying_price:.2f} [{lot.id}]"
        )


@click.command()
@click.argument("ticker")
@click.option(
    "--strategy",
    type=click.Choice(STRATEGY_CHOICES, case_sensitive=False),
    default="csp",
    show_default=True,
    help="Trade strategy",
)
@click.option("--strike", type=float, default=0.0, help="Strike, or buy price for long stock ($)")
@click.option("--premium", type=float, default=0.0, help="Premium per share ($)")
@click.option("--contracts", type=float, default=1.0, help="Contracts, lots, or shares for long stock")
@click.option("--entry", type=DATE, default=None, help="Entry date (YYYY-MM-DD, default: today)")
@click.option("--expiration", type=DATE, default=None, help="Expiration date (YYYY-MM-DD)")
@click.option("--underlying", type=float, default=0.0, help="Underlying price at entry ($)")
@click.option("--fees", type=float, default=0.0, help="Entry fees ($)")
@click.option(
    "--status",
    type=click.Choice(STATUS_CHOICES, case_sensitive=False),
    default="open",
    show_default=True,
)
@click.option("--close-price", type=float, default=None, help="Close price per share ($)")
@click.option("--close-date", type=DATE, default=None, help="Close date (YYYY-MM-DD)")
@click.option("--notes", default="", help="Free-text notes")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable)")
@click.option("--cycle", "cycle_id", default=None, help="Attach to an existing cycle id")
@click.pass_context
def add(
    ctx: click.Context,
    ticker: str,
    strategy: str,
    strike: float,
    premium: float,
    contracts: float,
    entry: Optional[datetime],
    expiration: Optional[datetime],
    underlying: float,
    fees: float,
    status: str,
    close_price: Optional[float],
    close_date: Optional[datetime],
    notes: str,
    tags: tuple[str, ...],
    cycle_id: Optional[str],
) -> None:
    """
    Log a new trade.

    Example: journal add XYZ --strike 50 --premium 1.00 --contracts 2 --expiration 2026-01-16
    """
    manager = get_manager(ctx)

    trade = Trade(
        ticker=ticker,
        strategy=StrategyType.parse(strategy),
        entry_date=_iso(entry) or manager.clock().date().isoformat(),
        expiration_date=_iso(expiration) or "",
        strike_price=strike,
        premium=premium,
        contracts=contracts,
        underlying_price=underlying,
        fees=fees,
        status=TradeStatus.parse(status),
        close_date=_iso(close_date),
        close_price=close_price,
        notes=notes,
        tags=list(tags),
        cycle_id=cycle_id,
    )

    try:
        result = manager.save_trade(trade)
    except JournalError as e:
        print_error(str(e))
        sys.exit(1)
    _report_save(result)


@click.command()
@click.argument("trade_id")
@click.option("--ticker", default=None)
@click.option("--strategy", type=click.Choice(STRATEGY_CHOICES, case_sensitive=False), default=None)
@click.option("--strike", type=float, default=None)
@click.option("--premium", type=float, default=None)
@click.option("--contracts", type=float, default=None)
@click.option("--entry", type=DATE, default=None)
@click.option("--expiration", type=DATE, default=None)
@click.option("--underlying", type=float, default=None)
@click.option("--fees", type=float, default=None)
@click.option("--status", type=click.Choice(STATUS_CHOICES, case_sensitive=False), default=None)
@click.option("--close-price", type=float, default=None)
@click.option("--close-date", type=DATE, default=None)
@click.option("--notes", default=None)
@click.option("--tag", "tags", multiple=True, help="Replace tags (repeatable)")
@click.option("--cycle", "cycle_id", default=None)
@click.pass_context
def edit(ctx: click.Context, trade_id: str, **options: Any) -> None:
    """
    Change fields of a logged trade.

    Setting --status assigned on a cash-secured put also logs the
    assigned shares.

    Example: journal edit 3f2a9c1b7d04 --status assigned
    """
    manager = get_manager(ctx)

    try:
        trade = _load_trade(manager, trade_id)
    except TradeNotFoundError as e:
        print_error(str(e))
        sys.exit(1)

    changes: dict[str, Any] = {}
    simple = {
        "ticker": "ticker",
        "strike": "strike_price",
        "premium": "premium",
        "contracts": "contracts",
        "underlying": "underlying_price",
        "fees": "fees",
        "close_price": "close_price",
        "notes": "notes",
        "cycle_id": "cycle_id",
    }
    for option, field_name in simple.items():
        if options[option] is not None:
            changes[field_name] = options[option]
    if options["strategy"]:
        changes["strategy"] = StrategyType.parse(options["strategy"])
    if options["status"]:
        changes["status"] = TradeStatus.parse(options["status"])
    if options["entry"]:
        changes["entry_date"] = _iso(options["entry"])
    if options["expiration"]:
        changes["expiration_date"] = _iso(options["expiration"])
    if options["close_date"]:
        changes["close_date"] = _iso(options["close_date"])
    if options["tags"]:
        changes["tags"] = list(options["tags"])

    if not changes:
        print_warning("Nothing to change")
        return

    try:
        result = manager.save_trade(replace(trade, **changes))
    except JournalError as e:
        print_error(str(e))
        sys.exit(1)
    _report_save(result)


@click.command()
@click.argument("trade_id")
@click.option("--price", required=True, type=float, help="Close price per share ($)")
@click.option(
    "--fee",
    type=float,
    default=None,
    help="Exit fee ($, default: configured fee per contract)",
)
@click.pass_context
def close(ctx: click.Context, trade_id: str, price: float, fee: Optional[float]) -> None:
    """
    Quick-close a trade at a price.

    Example: journal close 3f2a9c1b7d04 --price 0.20 --fee 1.30
    """
    cli_ctx = get_cli_context(ctx)
    manager = get_manager(ctx)

    try:
        trade = _load_trade(manager, trade_id)
    except TradeNotFoundError as e:
        print_error(str(e))
        sys.exit(1)

    fee_note = ""
    if fee is None:
        per_contract = 0.0 if trade.is_equity else cli_ctx.config.default_exit_fee_per_contract
        fee = per_contract * trade.contracts
        fee_note = f" (configured ${per_contract:.2f}/contract, override with --fee)"

    closed = manager.quick_close(trade.id, price, exit_fee=fee)
    print_success(f"Closed {closed.ticker} {closed.strategy.value} at ${price:.2f}/share")
    click.echo(f"Exit fee: ${fee:.2f}{fee_note}")
    click.echo(f"Fees: ${closed.fees:.2f}")
    click.secho(f"Realized P&L: {money(closed.pnl)}", fg="green" if closed.pnl >= 0 else "red")


@click.command()
@click.argument("trade_id")
@click.option("--yes", "-y", is_flag=True, help="Don't ask for confirmation")
@click.pass_context
def delete(ctx: click.Context, trade_id: str, yes: bool) -> None:
    """
    Delete a trade.

    Example: journal delete 3f2a9c1b7d04
    """
    manager = get_manager(ctx)

    if not yes and not click.confirm(f"Delete trade {trade_id}?"):
        click.echo("Aborted.")
        return

    if manager.delete_trade(trade_id):
        print_success(f"Deleted trade {trade_id}")
    else:
        print_warning(f"No trade with id {trade_id}")


@click.command()
@click.option("--ticker", default=None, help="Filter by ticker")
@click.option("--status", type=click.Choice(STATUS_CHOICES, case_sensitive=False), default=None)
@click.option("--strategy", type=click.Choice(STRATEGY_CHOICES, case_sensitive=False), default=None)
@click.option("--open", "open_only", is_flag=True, help="Open trades only")
@click.option("--detail", is_flag=True, help="Show each trade in full")
@click.pass_context
def list_trades(
    ctx: click.Context,
    ticker: Optional[str],
    status: Optional[str],
    strategy: Optional[str],
    open_only: bool,
    detail: bool,
) -> None:
    """
    List logged trades, newest first.

    Example: journal list --ticker XYZ --open
    """
    cli_ctx = get_cli_context(ctx)
    manager = get_manager(ctx)

    trades = manager.list_trades()
    if ticker:
        trades = [t for t in trades if t.ticker == ticker.strip().upper()]
    if status:
        wanted_status = TradeStatus.parse(status)
        trades = [t for t in trades if t.status is wanted_status]
    if strategy:
        wanted_strategy = StrategyType.parse(strategy)
        trades = [t for t in trades if t.strategy is wanted_strategy]
    if open_only:
        trades = [t for t in trades if t.is_open]

    if cli_ctx.json:
        print_json([t.to_dict() for t in trades])
        return

    if detail:
        for trade in trades:
            print_trade(trade, today=manager.clock().date())
        return
    print_trade_table(trades, today=manager.clock().date())
