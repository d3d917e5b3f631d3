"""Tests for portfolio metrics aggregation."""

from datetime import date

import pytest

from src.journal.metrics import (
    compute_metrics,
    daily_pnl,
    equity_curve,
    goal_progress,
    monthly_pnl,
    open_exposure,
    vix_allocation,
    win_rate,
)
from src.journal.models import EquityPoint, Trade
from src.journal.state import StrategyType, TradeStatus

TODAY = date(2025, 3, 15)


def closed(ticker: str, pnl: float, close_date: str, **kwargs) -> Trade:
    return Trade(
        ticker=ticker,
        entry_date=kwargs.pop("entry_date", "2025-01-02"),
        status=kwargs.pop("status", TradeStatus.CLOSED),
        close_date=close_date,
        pnl=pnl,
        **kwargs,
    )


@pytest.fixture
def portfolio() -> list[Trade]:
    """Mixed book: open put, open stock lot, open LEAPS, one win, one loss."""
    return [
        Trade(ticker="XYZ", entry_date="2025-03-01", strike_price=50, premium=1.0, contracts=2),
        closed("XYZ", 150.0, "2025-03-10", strike_price=45, premium=2.0, contracts=1),
        closed("ABC", -40.0, "2025-02-05", strategy=StrategyType.CC, premium=0.5, contracts=1),
        Trade(
            ticker="ABC",
            strategy=StrategyType.STOCK_BUY,
            entry_date="2025-01-17",
            underlying_price=30,
            contracts=1,
        ),
        Trade(ticker="QQQ", strategy=StrategyType.LEAPS, entry_date="2025-01-05", premium=10, contracts=1),
    ]


class TestVixAllocation:
    """Tests for the VIX cash band mapping."""

    def test_vix_22_is_fear(self) -> None:
        """VIX 22 falls in the 10-15% Fear band."""
        alloc = vix_allocation(22, account_value=10000)

        assert alloc.label == "Fear"
        assert alloc.min_cash_pct == 0.10
        assert alloc.max_cash_pct == 0.15
        assert alloc.min_cash_amount == pytest.approx(1000)
        assert alloc.max_cash_amount == pytest.approx(1500)
        assert alloc.invested_midpoint == pytest.approx(0.875)

    @pytest.mark.parametrize(
        "vix,label",
        [
            (10, "Extreme Greed"),
            (12, "Extreme Greed"),
            (12.5, "Greed"),
            (15, "Greed"),
            (18, "Slight Fear"),
            (25, "Fear"),
            (28, "Very Fearful"),
            (30, "Very Fearful"),
            (35, "Extreme Fear"),
        ],
    )
    def test_bands(self, vix: float, label: str) -> None:
        """Test band boundaries."""
        assert vix_allocation(vix).label == label

    def test_extreme_fear_band(self) -> None:
        """VIX above 30 is Extreme Fear."""
        alloc = vix_allocation(40)

        assert alloc.min_cash_pct == 0.0
        assert alloc.max_cash_pct == 0.05


class TestRatios:
    """Tests for guarded ratio helpers."""

    def test_win_rate_without_closed_trades(self) -> None:
        """Win rate with no closed trades is 0."""
        assert win_rate(0, 0) == 0.0

    def test_win_rate(self) -> None:
        """Test win rate percentage."""
        assert win_rate(3, 1) == 75.0

    def test_goal_progress_clamped(self) -> None:
        """Goal progress stays within 0-100."""
        assert goal_progress(1500, 1000) == 100.0
        assert goal_progress(-50, 1000) == 0.0
        assert goal_progress(250, 1000) == 25.0

    def test_goal_progress_zero_goal(self) -> None:
        """A goal below 1 is floored to 1."""
        assert goal_progress(0.5, 0) == 50.0


class TestOpenExposure:
    """Tests for open-position exposure."""

    def test_stock_uses_live_price(self) -> None:
        """Stock exposure uses the ticker price when set."""
        trade = Trade(ticker="ABC", strategy=StrategyType.STOCK_BUY, underlying_price=30, contracts=2)

        assert open_exposure(trade, {"ABC": 32.0}) == ("STOCK", 6400.0)
        assert open_exposure(trade, {}) == ("STOCK", 6000.0)

    def test_long_stock_raw_shares(self) -> None:
        """Long stock exposure counts raw shares."""
        trade = Trade(ticker="ABC", strategy=StrategyType.LONG_STOCK, underlying_price=20, contracts=25)

        assert open_exposure(trade, {}) == ("STOCK", 500.0)

    def test_covered_call_not_counted(self) -> None:
        """Covered calls add no exposure."""
        trade = Trade(ticker="ABC", strategy=StrategyType.CC, strike_price=35, contracts=1)

        assert open_exposure(trade, {}) == ("", 0.0)


class TestComputeMetrics:
    """Tests for compute_metrics."""

    def test_totals(self, portfolio: list[Trade]) -> None:
        """Test P&L, win and premium totals."""
        metrics = compute_metrics(
            portfolio, ticker_prices={"abc": 32.0}, monthly_goal=1000, today=TODAY
        )

        assert metrics.total_pnl == pytest.approx(110.0)
        assert metrics.wins == 1
        assert metrics.losses == 1
        assert metrics.win_rate_pct == 50.0
        assert metrics.total_premium == pytest.approx(450.0)
        assert metrics.open_positions == 3

    def test_exposure_buckets(self, portfolio: list[Trade]) -> None:
        """Test CSP, stock and LEAPS exposure."""
        metrics = compute_metrics(portfolio, ticker_prices={"ABC": 32.0}, today=TODAY)

        assert metrics.cash_secured == pytest.approx(10000)
        assert metrics.stock_value == pytest.approx(3200)
        assert metrics.leaps_value == pytest.approx(1000)
        assert metrics.total_deployed == pytest.approx(14200)
        assert metrics.allocation_by_ticker == [("XYZ", 10000), ("ABC", 3200), ("QQQ", 1000)]
        assert metrics.asset_allocation == [("CSP", 10000), ("STOCK", 3200), ("LEAPS", 1000)]
        assert metrics.active_tickers == ["ABC", "QQQ", "XYZ"]

    def test_current_month_and_goal(self, portfolio: list[Trade]) -> None:
        """Test current-month income and goal progress."""
        metrics = compute_metrics(portfolio, monthly_goal=1000, today=TODAY)

        assert metrics.current_month_income == pytest.approx(150)
        assert metrics.goal_progress_pct == pytest.approx(15.0)

    def test_series(self, portfolio: list[Trade]) -> None:
        """Test monthly P&L and equity curve."""
        metrics = compute_metrics(portfolio, today=TODAY)

        assert metrics.monthly_pnl == [("2025-02", -40.0), ("2025-03", 150.0)]
        assert metrics.equity_curve == [
            EquityPoint("2025-02-04", 0.0),
            EquityPoint("2025-02-05", -40.0),
            EquityPoint("2025-03-10", 110.0),
        ]

    def test_vix_band_included_when_given(self, portfolio: list[Trade]) -> None:
        """Test the VIX allocation when a VIX is given."""
        metrics = compute_metrics(portfolio, vix=22, account_value=20000, today=TODAY)

        assert metrics.vix_allocation.label == "Fear"
        assert metrics.vix_allocation.max_cash_amount == pytest.approx(3000)

    def test_no_vix(self, portfolio: list[Trade]) -> None:
        """Without a VIX there is no allocation."""
        assert compute_metrics(portfolio, today=TODAY).vix_allocation is None

    def test_idempotent(self, portfolio: list[Trade]) -> None:
        """Same inputs give identical output."""
        prices = {"ABC": 32.0}
        first = compute_metrics(portfolio, prices, vix=18, account_value=33000, today=TODAY)
        second = compute_metrics(portfolio, prices, vix=18, account_value=33000, today=TODAY)

        assert first == second

    def test_empty(self) -> None:
        """Test metrics for an empty journal."""
        metrics = compute_metrics([], today=TODAY)

        assert metrics.total_pnl == 0
        assert metrics.win_rate_pct == 0.0
        assert metrics.equity_curve == []
        assert metrics.monthly_pnl == []

    def test_zero_pnl_is_neither_win_nor_loss(self) -> None:
        """A break-even trade is neither a win nor a loss."""
        trades = [closed("XYZ", 0.0, "2025-03-01", status=TradeStatus.EXPIRED)]

        metrics = compute_metrics(trades, today=TODAY)

        assert metrics.wins == 0
        assert metrics.losses == 0
        assert metrics.win_rate_pct == 0.0


class TestSeries:
    """Tests for monthly and equity series."""

    def test_monthly_window_drops_old_months(self) -> None:
        """Months outside the window are dropped."""
        trades = [
            closed("XYZ", 10.0, "2024-03-31"),
            closed("XYZ", 20.0, "2024-04-02"),
            closed("XYZ", 30.0, "2025-03-01"),
        ]

        assert monthly_pnl(trades, TODAY) == [("2024-04", 20.0), ("2025-03", 30.0)]

    def test_monthly_falls_back_to_entry_date(self) -> None:
        """Trades without a close date book on entry date."""
        trade = Trade(ticker="XYZ", entry_date="2025-02-10", status=TradeStatus.EXPIRED, pnl=80)

        assert monthly_pnl([trade], TODAY) == [("2025-02", 80.0)]

    def test_equity_curve_orders_by_date(self) -> None:
        """Test equity curve ordering."""
        trades = [
            closed("XYZ", 30.0, "2025-03-01"),
            closed("XYZ", -10.0, "2025-01-01"),
        ]

        curve = equity_curve(trades)

        assert [p.date for p in curve] == ["2024-12-31", "2025-01-01", "2025-03-01"]
        assert [p.value for p in curve] == [0.0, -10.0, 20.0]


class TestDailyPnl:
    """Tests for the daily P&L calendar."""

    def test_month(self) -> None:
        """Test daily P&L for one month."""
        trades = [
            closed("XYZ", 150.0, "2025-03-10"),
            closed("ABC", -20.0, "2025-03-10"),
            closed("ABC", 30.0, "2025-03-12"),
            closed("ABC", 99.0, "2025-04-01"),
            Trade(ticker="QQQ", entry_date="2025-03-11"),
        ]

        result = daily_pnl(trades, 2025, 3)

        assert result.days == {10: 130.0, 12: 30.0}
        assert result.total == pytest.approx(160.0)
        assert result.wins == 2
        assert result.losses == 1
