"""
Analysis and reporting commands for the journal CLI.

This module provides the dashboard, wheel cycle timelines, gain/loss
summaries and the daily P&L calendar.
"""

import sys
from datetime import datetime
from typing import Optional

import click

from ..summary import DateRange
from .utils import (
    cycle_to_dict,
    get_cli_context,
    get_manager,
    metrics_to_dict,
    print_calendar,
    print_cycle,
    print_error,
    print_json,
    print_metrics,
    print_summary,
    summary_to_dict,
)

RANGE_CHOICES = [r.value for r in DateRange]


@click.command()
@click.option("--live-vix", is_flag=True, help="Fetch the current VIX instead of the manual value")
@click.pass_context
def dashboard(ctx: click.Context, live_vix: bool) -> None:
    """
    Show portfolio metrics.

    Example: journal dashboard --live-vix
    """
    cli_ctx = get_cli_context(ctx)
    manager = get_manager(ctx)

    vix = manager.fetch_live_vix() if live_vix else None
    if live_vix and vix is None and cli_ctx.verbose:
        click.echo("! Live VIX unavailable, using manual VIX", err=True)

    metrics = manager.get_metrics(live_vix=vix)

    if cli_ctx.json:
        print_json(metrics_to_dict(metrics))
        return
    print_metrics(metrics, manager.get_settings().monthly_goal)


@click.command()
@click.argument("cycle_id", required=False)
@click.option("--ticker", default=None, help="Only cycles for this ticker")
@click.option("--active", is_flag=True, help="Only cycles still running")
@click.pass_context
def cycles(
    ctx: click.Context,
    cycle_id: Optional[str],
    ticker: Optional[str],
    active: bool,
) -> None:
    """
    Show wheel cycles, most recent first.

    Example: journal cycles --ticker XYZ
    """
    cli_ctx = get_cli_context(ctx)
    manager = get_manager(ctx)

    found = manager.get_cycles(cycle_id)
    if ticker:
        found = [c for c in found if c.ticker == ticker.strip().upper()]
    if active:
        found = [c for c in found if not c.is_complete]

    if cli_ctx.json:
        print_json([cycle_to_dict(c) for c in found])
        return

    if not found:
        click.echo("No wheel cycles found.")
        return
    for cycle in found:
        print_cycle(cycle)


@click.command()
@click.option(
    "--range",
    "date_range",
    type=click.Choice(RANGE_CHOICES),
    default=DateRange.CURRENT_MONTH.value,
    show_default=True,
)
@click.option("--symbol", default="", help="Ticker filter (substring)")
@click.option("--start", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="Custom range start")
@click.option("--end", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="Custom range end")
@click.pass_context
def summary(
    ctx: click.Context,
    date_range: str,
    symbol: str,
    start: Optional[datetime],
    end: Optional[datetime],
) -> None:
    """
    Realized gain/loss for a period.

    Example: journal summary --range last_3_months
    Example: journal summary --range custom --start 2025-01-01 --end 2025-06-30
    """
    cli_ctx = get_cli_context(ctx)
    manager = get_manager(ctx)

    window = DateRange(date_range)
    if window is not DateRange.CUSTOM and (start or end):
        print_error("--start/--end only apply to --range custom")
        sys.exit(1)

    result = manager.get_summary(
        date_range=window,
        symbol=symbol,
        start=start.date() if start else None,
        end=end.date() if end else None,
    )

    if cli_ctx.json:
        print_json(summary_to_dict(result))
        return
    print_summary(result)


@click.command()
@click.option(
    "--month",
    type=click.DateTime(formats=["%Y-%m"]),
    default=None,
    help="Month to show (YYYY-MM, default: current month)",
)
@click.pass_context
def calendar(ctx: click.Context, month: Optional[datetime]) -> None:
    """
    Daily realized P&L for a month.

    Example: journal calendar --month 2025-03
    """
    cli_ctx = get_cli_context(ctx)
    manager = get_manager(ctx)

    when = month or manager.clock()
    result = manager.get_calendar(when.year, when.month)

    if cli_ctx.json:
        print_json(
            {
                "year": result.year,
                "month": result.month,
                "days": {str(day): value for day, value in sorted(result.days.items())},
                "total": result.total,
                "wins": result.wins,
                "losses": result.losses,
            }
        )
        return
    print_calendar(result)
