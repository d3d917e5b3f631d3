"""
Wheel cycle grouping.

A cycle is never stored. It is rebuilt on demand from the trades that share
a cycle_id, so it can't drift out of sync with the trades themselves.
"""

from datetime import date
from typing import Iterable, Optional

from .dates import parse_date
from .models import CycleStatus, Trade, WheelCycle
from .state import StrategyType, TradeStatus

# Best-effort: a closed put whose notes mention this word is treated as
# having rolled into shares, so the cycle is still running.
ASSIGNMENT_KEYWORD = "Assigned"


def _sort_date(value: str) -> date:
    return parse_date(value) or date.min


def _last_activity(trade: Trade) -> str:
    return trade.close_date or trade.expiration_date or trade.entry_date


def infer_status(ordered_trades: list[Trade]) -> CycleStatus:
    """
    Guess whether a cycle has finished from its last trade.

    Complete when the last trade is a called-away stock sale, or a closed
    cash-secured put whose notes don't mention assignment. This reads free
    text and is a heuristic, not a guarantee.
    """
    if not ordered_trades:
        return CycleStatus.ACTIVE
    last = ordered_trades[-1]
    if last.strategy is StrategyType.STOCK_SELL:
        return CycleStatus.COMPLETE
    if (
        last.strategy is StrategyType.CSP
        and last.status is TradeStatus.CLOSED
        and ASSIGNMENT_KEYWORD not in last.notes
    ):
        return CycleStatus.COMPLETE
    return CycleStatus.ACTIVE


def group_cycles(
    trades: Iterable[Trade],
    cycle_id: Optional[str] = None,
) -> list[WheelCycle]:
    """
    Group trades into wheel cycles.

    Args:
        trades: Trade collection
        cycle_id: Only build this cycle when given

    Returns:
        Cycles sorted by most recent activity first; trades inside each
        cycle are sorted by entry date
    """
    groups: dict[str, WheelCycle] = {}

    for trade in trades:
        if not trade.cycle_id:
            continue
        if cycle_id is not None and trade.cycle_id != cycle_id:
            continue

        cycle = groups.get(trade.cycle_id)
        if cycle is None:
            cycle = WheelCycle(
                id=trade.cycle_id,
                ticker=trade.ticker,
                start_date=trade.entry_date,
                last_date=trade.entry_date,
            )
            groups[trade.cycle_id] = cycle

        cycle.trades.append(trade)
        cycle.total_pnl += trade.pnl or 0.0
        if _sort_date(trade.entry_date) < _sort_date(cycle.start_date):
            cycle.start_date = trade.entry_date
        activity = _last_activity(trade)
        if _sort_date(activity) > _sort_date(cycle.last_date):
            cycle.last_date = activity

    for cycle in groups.values():
        cycle.trades.sort(key=lambda t: _sort_date(t.entry_date))
        cycle.status = infer_status(cycle.trades)

    return sorted(
        groups.values(), key=lambda c: _sort_date(c.last_date), reverse=True
    )
