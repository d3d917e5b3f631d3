"""
CLI utility functions for the journal.

This module provides helper functions for formatting output, displaying
journal data, and accessing the CLI context.
"""

import json
from datetime import date
from typing import Any, Optional

import click

from ..metrics import MONTHLY_WINDOW
from ..models import DailyPnl, GainLossSummary, PortfolioMetrics, Trade, WheelCycle
from ..pnl import (
    annualized_yield,
    break_even,
    collateral,
    days_to_expiration,
    net_premium,
    return_on_risk,
)
from ..state import StrategyType, TradeStatus

STRATEGY_CHOICES = [s.name.lower() for s in StrategyType]
STATUS_CHOICES = [s.name.lower() for s in TradeStatus]


def get_manager(ctx: click.Context):
    """Get the JournalManager from context."""
    return ctx.obj["manager"]


def get_cli_context(ctx: click.Context):
    """Get the CLIContext from context."""
    return ctx.obj["cli_context"]


def print_error(message: str) -> None:
    """Print error message to stderr."""
    click.secho(f"Error: {message}", fg="red", err=True)


def print_success(message: str) -> None:
    """Print success message."""
    click.secho(message, fg="green")


def print_warning(message: str) -> None:
    """Print warning message."""
    click.secho(f"Warning: {message}", fg="yellow")


def print_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))


def money(value: float) -> str:
    """Format a currency amount, sign before the dollar."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def pnl_color(value: float) -> str:
    return "green" if value >= 0 else "red"


def print_trade_table(trades: list[Trade], today: Optional[date] = None) -> None:
    """Print trades as a fixed-width table."""
    if not trades:
        click.echo("No trades found.")
        return

    click.echo(
        f"{'ID':<13} {'Ticker':<7} {'Strategy':<28} {'Status':<18} "
        f"{'Entry':<11} {'Exp':<11} {'Qty':>6} {'Strike':>9} {'Prem':>7} "
        f"{'DTE':>4} {'P&L':>12}"
    )
    click.echo("-" * 132)
    for trade in trades:
        dte = days_to_expiration(trade, today) if trade.is_open else None
        pnl = f"{money(trade.pnl)}" if trade.pnl is not None else "-"
        click.echo(
            f"{trade.id:<13} {trade.ticker:<7} {trade.strategy.value:<28} "
            f"{trade.status.value:<18} {trade.entry_date:<11} "
            f"{trade.expiration_date or 'N/A':<11} {trade.contracts:>6g} "
            f"{trade.strike_price:>9.2f} {trade.premium:>7.2f} "
            f"{'' if dte is None else dte:>4} {pnl:>12}"
        )
    click.echo()
    click.echo(f"Total: {len(trades)} trades")


def print_trade(trade: Trade, today: Optional[date] = None) -> None:
    """Print one trade in detail, with its per-trade returns."""
    click.echo()
    click.secho(f"=== {trade.ticker} {trade.strategy.value} ({trade.id}) ===", bold=True)
    click.echo(f"Status:     {trade.status.value}")
    click.echo(f"Entry:      {trade.entry_date}")
    if trade.expiration_date:
        click.echo(f"Expiration: {trade.expiration_date}")
    click.echo(f"Contracts:  {trade.contracts:g} ({trade.shares:g} shares)")
    click.echo(f"Strike:     ${trade.strike_price:.2f}")
    click.echo(f"Premium:    ${trade.premium:.2f}/share")
    click.echo(f"Fees:       ${trade.fees:.2f}")
    click.echo(f"Collateral: {money(collateral(trade))}")
    if trade.is_open:
        dte = days_to_expiration(trade, today)
        if dte is not None:
            click.echo(f"DTE:        {dte}")
    if break_even(trade):
        click.echo(f"Break-even: ${break_even(trade):.2f}")
    if net_premium(trade):
        click.echo(f"Net prem:   {money(net_premium(trade))}")
    ror = return_on_risk(trade)
    if ror:
        click.echo(f"ROR:        {ror:.2f}%  (APY {annualized_yield(trade, today):.1f}%)")
    if trade.close_date:
        click.echo(f"Closed:     {trade.close_date}")
    if trade.close_price is not None:
        click.echo(f"Close:      ${trade.close_price:.2f}/share")
    if trade.pnl is not None:
        click.secho(f"P&L:        {money(trade.pnl)}", fg=pnl_color(trade.pnl))
    if trade.cycle_id:
        click.echo(f"Cycle:      {trade.cycle_id}")
    if trade.tags:
        click.echo(f"Tags:       {', '.join(trade.tags)}")
    if trade.notes:
        click.echo(f"Notes:      {trade.notes}")


def print_metrics(metrics: PortfolioMetrics, monthly_goal: float) -> None:
    """Print the dashboard."""
    click.echo()
    click.secho("=== Dashboard ===", bold=True)
    click.secho(f"Net P&L:          {money(metrics.total_pnl)}", fg=pnl_color(metrics.total_pnl))
    click.echo(
        f"Win Rate:         {metrics.win_rate_pct:.1f}% "
        f"({metrics.wins}W / {metrics.losses}L)"
    )
    click.echo(f"Premium:          {money(metrics.total_premium)}")
    click.echo(f"Open Positions:   {metrics.open_positions}")
    click.echo(f"Closed Trades:    {metrics.closed_trades}")
    click.echo()
    click.secho("Monthly Income Goal", bold=True)
    click.echo(
        f"  {money(metrics.current_month_income)} of {money(monthly_goal)} "
        f"({metrics.goal_progress_pct:.0f}%)"
    )

    click.echo()
    click.secho("Capital Deployed", bold=True)
    click.echo(f"  CSP:    {money(metrics.cash_secured)}")
    click.echo(f"  Stock:  {money(metrics.stock_value)}")
    click.echo(f"  LEAPS:  {money(metrics.leaps_value)}")
    click.echo(f"  Total:  {money(metrics.total_deployed)}")
    if metrics.allocation_by_ticker:
        click.echo()
        click.secho("By Ticker", bold=True)
        for ticker, value in metrics.allocation_by_ticker:
            click.echo(f"  {ticker:<7} {money(value):>14}")

    alloc = metrics.vix_allocation
    if alloc is not None:
        click.echo()
        click.secho(f"VIX {alloc.vix:.2f}: {alloc.label}", bold=True)
        click.echo(
            f"  Cash: {alloc.min_cash_pct * 100:.0f}-{alloc.max_cash_pct * 100:.0f}% "
            f"({money(alloc.min_cash_amount)} - {money(alloc.max_cash_amount)})"
        )
        click.echo(f"  Invested midpoint: {alloc.invested_midpoint * 100:.1f}%")

    if metrics.monthly_pnl:
        click.echo()
        click.secho(f"Monthly P&L (last {MONTHLY_WINDOW} months)", bold=True)
        for month, value in metrics.monthly_pnl:
            click.secho(f"  {month}  {money(value):>12}", fg=pnl_color(value))


def metrics_to_dict(metrics: PortfolioMetrics) -> dict[str, Any]:
    alloc = metrics.vix_allocation
    return {
        "totalPnl": metrics.total_pnl,
        "wins": metrics.wins,
        "losses": metrics.losses,
        "winRate": metrics.win_rate_pct,
        "totalPremium": metrics.total_premium,
        "openPositions": metrics.open_positions,
        "cashSecured": metrics.cash_secured,
        "stockValue": metrics.stock_value,
        "leapsValue": metrics.leaps_value,
        "totalDeployed": metrics.total_deployed,
        "currentMonthIncome": metrics.current_month_income,
        "goalProgress": metrics.goal_progress_pct,
        "monthlyPnl": [{"month": m, "value": v} for m, v in metrics.monthly_pnl],
        "equityCurve": [{"date": p.date, "value": p.value} for p in metrics.equity_curve],
        "allocationByTicker": dict(metrics.allocation_by_ticker),
        "assetAllocation": dict(metrics.asset_allocation),
        "activeTickers": metrics.active_tickers,
        "vix": None
        if alloc is None
        else {
            "value": alloc.vix,
            "label": alloc.label,
            "minCashPct": alloc.min_cash_pct,
            "maxCashPct": alloc.max_cash_pct,
            "minCash": alloc.min_cash_amount,
            "maxCash": alloc.max_cash_amount,
        },
    }


def print_cycle(cycle: WheelCycle) -> None:
    """Print a wheel cycle as a timeline."""
    click.echo()
    click.secho(
        f"=== {cycle.ticker} [{cycle.status.value}] since {cycle.start_date} ===",
        bold=True,
    )
    click.echo(f"Cycle:      {cycle.id}")
    click.echo(f"Steps:      {cycle.steps}")
    click.echo(f"Last:       {cycle.last_date}")
    click.secho(f"Total P&L:  {money(cycle.total_pnl)}", fg=pnl_color(cycle.total_pnl))
    for step, trade in enumerate(cycle.trades, start=1):
        pnl = money(trade.pnl) if trade.pnl is not None else "-"
        click.echo(
            f"  {step}. {trade.entry_date}  {trade.strategy.value:<28} "
            f"{trade.status.value:<18} {pnl}"
        )


def cycle_to_dict(cycle: WheelCycle) -> dict[str, Any]:
    return {
        "id": cycle.id,
        "ticker": cycle.ticker,
        "status": cycle.status.value,
        "startDate": cycle.start_date,
        "lastDate": cycle.last_date,
        "totalPnl": cycle.total_pnl,
        "steps": cycle.steps,
        "trades": [t.to_dict() for t in cycle.trades],
    }


def print_summary(result: GainLossSummary) -> None:
    """Print a gain/loss summary."""
    click.echo()
    click.secho(
        f"=== Gain/Loss {result.start_date} to {result.end_date} ===", bold=True
    )
    click.echo(f"Trades:            {result.trade_count}")
    click.secho(f"Total G/L:         {money(result.total_gl)}", fg=pnl_color(result.total_gl))
    click.echo(f"Total Collateral:  {money(result.total_collateral)}")
    click.echo(f"Return:            {result.return_pct:.2f}%")
    click.echo()
    click.echo(f"Short-term:  {money(result.short_term):>12}  "
               f"(gains {money(result.short_term_gains)}, losses {money(result.short_term_losses)})")
    click.echo(f"Long-term:   {money(result.long_term):>12}  "
               f"(gains {money(result.long_term_gains)}, losses {money(result.long_term_losses)})")
    click.echo(f"Gain ratio:  {result.gain_ratio_pct:.1f}%")


def summary_to_dict(result: GainLossSummary) -> dict[str, Any]:
    return {
        "startDate": result.start_date,
        "endDate": result.end_date,
        "tradeCount": result.trade_count,
        "totalGL": result.total_gl,
        "totalCollateral": result.total_collateral,
        "returnPercentage": result.return_pct,
        "longTermGains": result.long_term_gains,
        "longTermLosses": result.long_term_losses,
        "shortTermGains": result.short_term_gains,
        "shortTermLosses": result.short_term_losses,
        "totalGains": result.total_gains,
        "totalLosses": result.total_losses,
        "ratio": result.gain_ratio_pct,
    }


def print_calendar(result: DailyPnl) -> None:
    """Print daily realized P&L for a month."""
    click.echo()
    click.secho(f"=== {result.year:04d}-{result.month:02d} ===", bold=True)
    if not result.days:
        click.echo("No realized trades this month.")
        return
    for day in sorted(result.days):
        value = result.days[day]
        click.secho(f"  {day:>2}  {money(value):>12}", fg=pnl_color(value))
    click.echo()
    click.echo(
        f"Month: {money(result.total)} ({result.wins} wins, {result.losses} losses)"
    )
