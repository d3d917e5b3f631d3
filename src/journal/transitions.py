"""
Status transition rules for journal trades.

These functions decide what a save or quick-close does to a trade and
whether it spawns a follow-on trade. They work on copies and never touch
storage; JournalManager persists the results.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Optional

from .models import Trade, generate_trade_id, to_number
from .pnl import calculate_pnl, total_fees
from .state import StrategyType, TradeStatus, is_assignment_transition

logger = logging.getLogger(__name__)

ASSIGNMENT_TAG = "assignment"


@dataclass
class SaveResult:
    """Outcome of preparing a trade for save."""

    trade: Trade
    spawned: Optional[Trade] = None


def generate_cycle_id(ticker: str, now: Optional[datetime] = None) -> str:
    """Cycle id built from the ticker and a millisecond timestamp."""
    now = now or datetime.now()
    return f"cycle_{ticker.lower()}_{int(now.timestamp() * 1000)}"


def build_assignment_trade(parent: Trade, today: Optional[date] = None) -> Trade:
    """
    Stock lot created when a cash-secured put is assigned.

    The lot opens on the put's close date (or expiration, or today), holds
    one lot of 100 shares per put contract, and uses the strike as its cost
    basis. It stays in the parent's cycle.
    """
    today = today or date.today()
    entry = parent.close_date or parent.expiration_date or today.isoformat()
    strike = parent.strike_price

    return Trade(
        id=generate_trade_id(),
        ticker=parent.ticker,
        strategy=StrategyType.STOCK_BUY,
        entry_date=entry,
        expiration_date="",
        strike_price=0.0,
        premium=0.0,
        contracts=parent.contracts,
        underlying_price=strike,
        fees=0.0,
        status=TradeStatus.OPEN,
        notes=f"Auto-generated from CSP Assignment (Strike ${strike:g})",
        tags=[*parent.tags, ASSIGNMENT_TAG],
        cycle_id=parent.cycle_id,
    )


def default_close_date(trade: Trade, today: date) -> str:
    """Close date for a trade saved closed without one."""
    if trade.status is TradeStatus.ASSIGNED and trade.expiration_date:
        return trade.expiration_date
    return today.isoformat()


def prepare_save(
    trade: Trade,
    previous: Optional[Trade] = None,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> SaveResult:
    """
    Apply save-time rules to a trade.

    - Open trades carry no realized P&L.
    - Any other status stamps a close date if missing (an assigned
      option closes on its expiration date, anything else today) and
      recomputes P&L from the current close price and fees.
    - A put without a cycle id starts a new cycle.
    - A put moving into ASSIGNED spawns its stock lot, once.

    Args:
        trade: Trade as entered by the user
        previous: Stored version of the trade, None if new
        today: Reference date for close/assignment dates
        now: Reference time for cycle ids

    Returns:
        SaveResult with the trade to store and any spawned trade
    """
    today = today or date.today()
    saved = replace(trade, tags=list(trade.tags))

    if saved.status is TradeStatus.OPEN:
        saved.pnl = None
    else:
        if not saved.close_date:
            saved.close_date = default_close_date(saved, today)
        saved.pnl = calculate_pnl(saved)

    if not saved.cycle_id and saved.strategy is StrategyType.CSP:
        saved.cycle_id = generate_cycle_id(saved.ticker, now)
        logger.debug(f"Started cycle {saved.cycle_id} for {saved.ticker}")

    spawned = None
    previous_status = previous.status if previous is not None else None
    if is_assignment_transition(saved.strategy, saved.status, previous_status):
        spawned = build_assignment_trade(saved, today)
        logger.info(
            f"Assignment: {saved.ticker} ${saved.strike_price:g} put -> "
            f"{spawned.shares:g} shares in {saved.cycle_id}"
        )

    return SaveResult(trade=saved, spawned=spawned)


def apply_quick_close(
    trade: Trade,
    close_price: Any,
    exit_fee: Any = 0.0,
    today: Optional[date] = None,
) -> Trade:
    """
    Close a trade at a price without going through a full edit.

    Exit fees are added to the stored fees and P&L uses the trade's
    strategy rule.

    Returns:
        Closed copy of the trade
    """
    today = today or date.today()
    price = to_number(close_price)
    fees = total_fees(trade.fees, exit_fee)

    closed = replace(
        trade,
        tags=list(trade.tags),
        status=TradeStatus.CLOSED,
        close_price=price,
        close_date=today.isoformat(),
        fees=fees,
    )
    closed.pnl = calculate_pnl(closed)
    return closed
