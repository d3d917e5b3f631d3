"""
Realized P&L and per-trade return calculations.

All functions are pure and never raise on missing prices or fees: blank
financial inputs count as zero.
"""

from datetime import date
from typing import Any, Optional

from .dates import parse_date
from .models import Trade, to_number
from .positions import AssignedLot, LongEquity, LongOption, to_position
from .state import StrategyType, is_premium_strategy


def total_fees(stored_fees: Any, exit_fee: Any = 0.0) -> float:
    """Entry fees already on the trade plus any fee paid to close."""
    return to_number(stored_fees) + to_number(exit_fee)


def calculate_pnl(
    trade: Trade,
    close_price: Any = None,
    fees: Any = None,
) -> float:
    """
    Realized P&L for a trade being closed.

    Short premium:  premium*M*contracts - close*M*contracts - fees
    LEAPS:          close*M*contracts - premium*M*contracts - fees
    Long stock:     (close - buy price) * shares - fees
    Assigned lot:   0 until sold, then (close - cost basis) * shares - fees

    Args:
        trade: Trade being closed
        close_price: Per-share close price (defaults to trade.close_price)
        fees: Total fees including exit (defaults to trade.fees)

    Returns:
        Signed realized gain in currency
    """
    close = to_number(trade.close_price if close_price is None else close_price)
    fee_total = to_number(trade.fees if fees is None else fees)
    position = to_position(trade)

    if isinstance(position, LongOption):
        exit_credit = close * 100 * position.contracts
        return exit_credit - position.cost - fee_total

    if isinstance(position, LongEquity):
        return (close - position.entry_price) * position.shares - fee_total

    if isinstance(position, AssignedLot):
        if close <= 0:
            return 0.0
        return (close - position.cost_basis) * position.shares - fee_total

    exit_debit = close * 100 * position.contracts
    return position.credit - exit_debit - fee_total


def collateral(trade: Trade) -> float:
    """
    Capital at risk or cost basis for a trade.

    CSP locks strike * 100 per contract. CC is backed by the shares, valued
    at the entry underlying price (or strike if missing). Equity uses its
    cost basis, LEAPS the premium paid. Anything else, put credit spreads
    included, falls back to strike * 100 per contract as a max-risk proxy.
    """
    position = to_position(trade)

    if isinstance(position, (LongOption, LongEquity, AssignedLot)):
        return position.cost

    if position.strategy is StrategyType.CC:
        basis = position.underlying if position.underlying > 0 else position.strike
        return basis * position.shares
    return position.strike * position.shares


def return_on_risk(trade: Trade) -> float:
    """
    Return on risk in percent.

    Closed trades use realized P&L over collateral. Open premium trades use
    premium per share over collateral per share. Zero collateral gives 0.
    """
    risk = collateral(trade)
    if risk <= 0:
        return 0.0

    if not trade.is_open:
        return to_number(trade.pnl) / risk * 100

    if not is_premium_strategy(trade.strategy):
        return 0.0
    position = to_position(trade)
    return position.credit / risk * 100


def holding_days(trade: Trade, today: Optional[date] = None) -> int:
    """Days from entry to close (or to today/expiration while open)."""
    start = parse_date(trade.entry_date)
    if start is None:
        return 0
    if trade.close_date:
        end = parse_date(trade.close_date)
    elif trade.expiration_date:
        end = parse_date(trade.expiration_date)
    else:
        end = today or date.today()
    if end is None:
        return 0
    return max((end - start).days, 0)


def annualized_yield(trade: Trade, today: Optional[date] = None) -> float:
    """Return on risk scaled to a 365-day year by holding period."""
    ror = return_on_risk(trade)
    if ror == 0:
        return 0.0
    days = max(holding_days(trade, today), 1)
    return ror * 365 / days


def days_to_expiration(trade: Trade, today: Optional[date] = None) -> Optional[int]:
    """Calendar days until expiration, or None if the trade has no expiry."""
    expiry = parse_date(trade.expiration_date)
    if expiry is None:
        return None
    today = today or date.today()
    return max((expiry - today).days, 0)


def break_even(trade: Trade) -> float:
    """Break-even share price for short puts and calls, else 0."""
    if trade.strategy is StrategyType.CSP:
        return trade.strike_price - trade.premium
    if trade.strategy is StrategyType.CC:
        return trade.underlying_price - trade.premium
    return 0.0


def net_premium(trade: Trade) -> float:
    """Premium received minus fees, for credit strategies only."""
    if trade.premium > 0 and is_premium_strategy(trade.strategy):
        return trade.premium * trade.contracts * 100 - trade.fees
    return 0.0

