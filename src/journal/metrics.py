"""
Portfolio metrics derived from the trade collection.

Every function here is a pure fold over the trades passed in. Nothing is
cached at this level, so the same inputs always produce the same output;
JournalManager memoizes results per store version.
"""

import logging
from datetime import date, timedelta
from typing import Iterable, Optional

from .dates import first_of_month_back, month_key, parse_date
from .models import DailyPnl, EquityPoint, PortfolioMetrics, Trade, VixAllocation
from .state import StrategyType, TradeStatus, is_premium_strategy

logger = logging.getLogger(__name__)

# (upper VIX bound inclusive, min cash, max cash, label)
VIX_BANDS: list[tuple[float, float, float, str]] = [
    (12.0, 0.40, 0.50, "Extreme Greed"),
    (15.0, 0.30, 0.40, "Greed"),
    (20.0, 0.20, 0.25, "Slight Fear"),
    (25.0, 0.10, 0.15, "Fear"),
    (30.0, 0.05, 0.10, "Very Fearful"),
]
EXTREME_FEAR_BAND = (0.00, 0.05, "Extreme Fear")

MONTHLY_WINDOW = 12


def vix_allocation(vix: float, account_value: float = 0.0) -> VixAllocation:
    """
    Map a VIX reading to a recommended cash band.

    Args:
        vix: Current VIX level
        account_value: Total account value used for the dollar range

    Returns:
        VixAllocation with the percentage band, label and dollar range
    """
    min_cash, max_cash, label = EXTREME_FEAR_BAND
    for upper, band_min, band_max, band_label in VIX_BANDS:
        if vix <= upper:
            min_cash, max_cash, label = band_min, band_max, band_label
            break

    return VixAllocation(
        vix=vix,
        min_cash_pct=min_cash,
        max_cash_pct=max_cash,
        label=label,
        min_cash_amount=account_value * min_cash,
        max_cash_amount=account_value * max_cash,
    )


def win_rate(wins: int, losses: int) -> float:
    """Wins as a percent of decided trades; 0 when there are none."""
    decided = wins + losses
    if decided == 0:
        return 0.0
    return wins / decided * 100


def goal_progress(income: float, goal: float) -> float:
    """Percent of the monthly goal reached, clamped to [0, 100]."""
    return min(max(income / max(goal, 1) * 100, 0.0), 100.0)


def open_exposure(trade: Trade, ticker_prices: dict[str, float]) -> tuple[str, float]:
    """
    Capital tied up by an open trade.

    Returns:
        (asset class, amount) where asset class is "CSP", "STOCK", "LEAPS",
        or "" for strategies that do not count toward deployed capital.
    """
    if trade.strategy is StrategyType.CSP:
        return "CSP", trade.strike_price * trade.contracts * 100
    if trade.strategy in (StrategyType.STOCK_BUY, StrategyType.LONG_STOCK):
        price = ticker_prices.get(trade.ticker) or trade.underlying_price
        return "STOCK", price * trade.shares
    if trade.strategy is StrategyType.LEAPS:
        return "LEAPS", trade.premium * trade.contracts * 100
    return "", 0.0


def monthly_pnl(
    trades: Iterable[Trade],
    today: Optional[date] = None,
    window: int = MONTHLY_WINDOW,
) -> list[tuple[str, float]]:
    """
    Realized P&L per calendar month for the trailing window.

    Trades are booked on their close date, falling back to entry date.

    Returns:
        (YYYY-MM, total) pairs in ascending month order
    """
    today = today or date.today()
    cutoff = month_key(first_of_month_back(today, window - 1))

    totals: dict[str, float] = {}
    for trade in trades:
        if trade.is_open:
            continue
        booked = trade.attribution_date
        if not booked:
            continue
        key = booked[:7]
        totals[key] = totals.get(key, 0.0) + (trade.pnl or 0.0)

    return sorted((k, v) for k, v in totals.items() if k >= cutoff)


def equity_curve(trades: Iterable[Trade]) -> list[EquityPoint]:
    """
    Running total of realized P&L in booking-date order.

    The curve starts with a zero point the day before the first realized
    trade so charts begin at the origin.
    """
    realized = []
    for trade in trades:
        if trade.is_open:
            continue
        booked = parse_date(trade.attribution_date)
        if booked is None:
            continue
        realized.append((booked, trade))
    realized.sort(key=lambda item: item[0])

    curve: list[EquityPoint] = []
    running = 0.0
    for booked, trade in realized:
        running += trade.pnl or 0.0
        curve.append(EquityPoint(date=booked.isoformat(), value=running))

    if curve:
        start = realized[0][0] - timedelta(days=1)
        curve.insert(0, EquityPoint(date=start.isoformat(), value=0.0))
    return curve


def compute_metrics(
    trades: list[Trade],
    ticker_prices: Optional[dict[str, float]] = None,
    vix: Optional[float] = None,
    account_value: float = 0.0,
    monthly_goal: float = 0.0,
    today: Optional[date] = None,
) -> PortfolioMetrics:
    """
    Build the dashboard snapshot for a trade collection.

    Args:
        trades: Full trade collection
        ticker_prices: Live price per ticker; missing tickers fall back to
            each trade's stored underlying price
        vix: VIX reading for the cash allocation band (None skips it)
        account_value: Account value for the VIX dollar range
        monthly_goal: Monthly income goal for progress tracking
        today: Reference date (defaults to today)

    Returns:
        PortfolioMetrics snapshot
    """
    today = today or date.today()
    prices = {k.upper(): v for k, v in (ticker_prices or {}).items()}
    current_month = month_key(today)

    metrics = PortfolioMetrics()
    by_asset = {"CSP": 0.0, "STOCK": 0.0, "LEAPS": 0.0}
    by_ticker: dict[str, float] = {}
    active_tickers: set[str] = set()

    for trade in trades:
        if trade.status is TradeStatus.OPEN:
            metrics.open_positions += 1
            active_tickers.add(trade.ticker)
            asset_class, exposure = open_exposure(trade, prices)
            if asset_class:
                by_asset[asset_class] += exposure
            if exposure > 0:
                by_ticker[trade.ticker] = by_ticker.get(trade.ticker, 0.0) + exposure
        else:
            pnl = trade.pnl or 0.0
            metrics.total_pnl += pnl
            if pnl > 0:
                metrics.wins += 1
            elif pnl < 0:
                metrics.losses += 1
            if trade.close_date and trade.close_date[:7] == current_month:
                metrics.current_month_income += pnl

        if trade.premium and is_premium_strategy(trade.strategy):
            metrics.total_premium += trade.premium * trade.contracts * 100

    metrics.win_rate_pct = win_rate(metrics.wins, metrics.losses)
    metrics.cash_secured = by_asset["CSP"]
    metrics.stock_value = by_asset["STOCK"]
    metrics.leaps_value = by_asset["LEAPS"]
    metrics.goal_progress_pct = goal_progress(metrics.current_month_income, monthly_goal)
    metrics.monthly_pnl = monthly_pnl(trades, today)
    metrics.equity_curve = equity_curve(trades)
    metrics.allocation_by_ticker = sorted(
        by_ticker.items(), key=lambda item: item[1], reverse=True
    )
    metrics.asset_allocation = sorted(
        ((name, value) for name, value in by_asset.items() if value > 0),
        key=lambda item: item[1],
        reverse=True,
    )
    metrics.active_tickers = sorted(active_tickers)
    if vix is not None:
        metrics.vix_allocation = vix_allocation(vix, account_value)

    logger.debug(
        f"Computed metrics over {len(trades)} trades: "
        f"P&L ${metrics.total_pnl:,.2f}, {metrics.open_positions} open"
    )
    return metrics


def daily_pnl(trades: Iterable[Trade], year: int, month: int) -> DailyPnl:
    """
    Realized P&L per day for a calendar month.

    Only closed trades with a close date are counted.
    """
    result = DailyPnl(year=year, month=month)
    for trade in trades:
        if trade.is_open or not trade.close_date:
            continue
        closed = parse_date(trade.close_date)
        if closed is None or closed.year != year or closed.month != month:
            continue
        pnl = trade.pnl or 0.0
        result.days[closed.day] = result.days.get(closed.day, 0.0) + pnl
        result.total += pnl
        if pnl > 0:
            result.wins += 1
        elif pnl < 0:
            result.losses += 1
    return result
