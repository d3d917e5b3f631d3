"""
Realized gain/loss summaries over a date window.

Used for period reviews (this month, last quarter, last tax year) rather
than the always-on dashboard in metrics.py.
"""

import logging
from datetime import date
from enum import Enum
from typing import Iterable, Optional

from .dates import first_of_month_back, parse_date
from .models import GainLossSummary, Trade
from .pnl import collateral

logger = logging.getLogger(__name__)

LONG_TERM_DAYS = 365


class DateRange(Enum):
    """Preset windows for a gain/loss summary."""

    TODAY = "today"
    CURRENT_MONTH = "current_month"
    LAST_3_MONTHS = "last_3_months"
    LAST_6_MONTHS = "last_6_months"
    PREV_YEAR = "prev_year"
    CUSTOM = "custom"


def resolve_window(
    date_range: DateRange,
    today: Optional[date] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> tuple[date, date]:
    """
    Turn a preset into an inclusive (start, end) pair.

    The trailing-month presets start on the first day of the month N
    months back. For CUSTOM, a missing start leaves the window open at the
    beginning and a missing end means today.
    """
    today = today or date.today()

    if date_range is DateRange.TODAY:
        return today, today
    if date_range is DateRange.CURRENT_MONTH:
        return first_of_month_back(today, 0), today
    if date_range is DateRange.LAST_3_MONTHS:
        return first_of_month_back(today, 3), today
    if date_range is DateRange.LAST_6_MONTHS:
        return first_of_month_back(today, 6), today
    if date_range is DateRange.PREV_YEAR:
        return date(today.year - 1, 1, 1), date(today.year - 1, 12, 31)
    return start or date.min, end or today


def filter_closed_trades(
    trades: Iterable[Trade],
    start: date,
    end: date,
    symbol: str = "",
) -> list[Trade]:
    """Closed trades whose close date is within [start, end] and whose
    ticker contains `symbol` (case-insensitive)."""
    needle = symbol.strip().upper()
    selected = []
    for trade in trades:
        if trade.is_open or not trade.close_date:
            continue
        closed = parse_date(trade.close_date)
        if closed is None or not (start <= closed <= end):
            continue
        if needle and needle not in trade.ticker:
            continue
        selected.append(trade)
    return selected


def summarize(
    trades: Iterable[Trade],
    date_range: DateRange = DateRange.CURRENT_MONTH,
    symbol: str = "",
    start: Optional[date] = None,
    end: Optional[date] = None,
    today: Optional[date] = None,
) -> GainLossSummary:
    """
    Summarize realized gains and losses for a window.

    A trade is long-term if more than 365 days passed between entry and
    close. Return percentage is total gain/loss over total collateral.

    Args:
        trades: Full trade collection
        date_range: Preset window
        symbol: Optional ticker substring filter
        start: Custom window start (CUSTOM only)
        end: Custom window end (CUSTOM only)
        today: Reference date (defaults to today)

    Returns:
        GainLossSummary for the window
    """
    window_start, window_end = resolve_window(date_range, today, start, end)
    selected = filter_closed_trades(trades, window_start, window_end, symbol)

    summary = GainLossSummary(
        start_date=window_start.isoformat(),
        end_date=window_end.isoformat(),
        trade_count=len(selected),
    )

    for trade in selected:
        pnl = trade.pnl or 0.0
        entered = parse_date(trade.entry_date)
        closed = parse_date(trade.close_date)
        held = (closed - entered).days if entered and closed else 0
        long_term = held > LONG_TERM_DAYS

        summary.total_gl += pnl
        if pnl >= 0:
            if long_term:
                summary.long_term_gains += pnl
            else:
                summary.short_term_gains += pnl
        else:
            if long_term:
                summary.long_term_losses += pnl
            else:
                summary.short_term_losses += pnl

        summary.total_collateral += collateral(trade)

    if summary.total_collateral > 0:
        summary.return_pct = summary.total_gl / summary.total_collateral * 100

    logger.debug(
        f"Summary {date_range.value} {summary.start_date}..{summary.end_date}: "
        f"{summary.trade_count} trades, G/L ${summary.total_gl:,.2f}"
    )
    return summary
