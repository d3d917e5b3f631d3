"""
Main orchestrator for journal operations.

This module provides the JournalManager class, the single entry point for
reading and writing trades and settings. It applies the transition rules
on save, and serves the metrics, cycle and summary projections.
"""

import json
import logging
from datetime import date, datetime
from typing import Any, Callable, Optional

from .cycles import group_cycles
from .dates import parse_date
from .exceptions import InvalidTradeError, MarketDataError
from .market_data import MarketDataClient
from .metrics import compute_metrics, daily_pnl
from .models import DailyPnl, GainLossSummary, PortfolioMetrics, Settings, Trade, WheelCycle
from .repository import JournalRepository
from .summary import DateRange, summarize
from .transitions import SaveResult, apply_quick_close, prepare_save

logger = logging.getLogger(__name__)


class JournalManager:
    """
    Main orchestrator for the trade journal.

    All writes go through this object. Read-side projections (metrics,
    cycles) are memoized against the repository version, so they are
    recomputed only after the trades or settings change.

    Example:
        manager = JournalManager()
        saved = manager.save_trade(Trade(ticker="XYZ", strike_price=50, premium=1.0))
        manager.quick_close(saved.trade.id, close_price=0.20, exit_fee=1.30)
        metrics = manager.get_metrics()
    """

    def __init__(
        self,
        db_path: str = "~/.wheel_journal/journal.db",
        market_client: Optional[MarketDataClient] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the journal manager.

        Args:
            db_path: Path to SQLite database file
            market_client: Optional client for live quotes and VIX
            clock: Returns the current time; defaults to datetime.now
        """
        self.repository = JournalRepository(db_path)
        self.market_client = market_client
        self.clock = clock or datetime.now
        self._cache: dict[Any, Any] = {}

    def _today(self) -> date:
        return self.clock().date()

    @staticmethod
    def _validate(trade: Trade) -> None:
        """
        Reject trades that can't be stored.

        Raises:
            InvalidTradeError: If the ticker is missing or a date is malformed
        """
        if not trade.ticker:
            raise InvalidTradeError("Ticker is required")
        for label, value in (
            ("entry date", trade.entry_date),
            ("expiration date", trade.expiration_date),
            ("close date", trade.close_date),
        ):
            if value and parse_date(value) is None:
                raise InvalidTradeError(f"Invalid {label} '{value}', expected YYYY-MM-DD")

    def _memoized(self, key: tuple, compute: Callable[[], Any]) -> Any:
        """Cache a projection until the next write to the store."""
        full_key = (self.repository.version, *key)
        if full_key not in self._cache:
            self._cache = {k: v for k, v in self._cache.items() if k[0] == full_key[0]}
            self._cache[full_key] = compute()
        return self._cache[full_key]

    # --- Trades ---

    def list_trades(self) -> list[Trade]:
        """All trades, newest first."""
        return self.repository.load_trades()

    def get_trade(self, trade_id: str) -> Optional[Trade]:
        return self.repository.get_trade(trade_id)

    def save_trade(self, trade: Trade) -> SaveResult:
        """
        Create or update a trade.

        A trade whose id is already stored is updated; otherwise it is
        added. Save-time rules stamp close date and P&L, start a cycle for
        new puts, and add the stock lot when a put is assigned.

        Args:
            trade: Trade as entered

        Returns:
            SaveResult with the stored trade and any spawned trade

        Raises:
            InvalidTradeError: If the trade fails validation
        """
        self._validate(trade)
        previous = self.repository.get_trade(trade.id)
        now = self.clock()
        result = prepare_save(trade, previous, today=now.date(), now=now)

        if previous is None:
            self.repository.add_trade(result.trade)
        else:
            self.repository.update_trade(result.trade)

        if result.spawned is not None:
            self.repository.add_trade(result.spawned)

        logger.info(
            f"Saved {result.trade.ticker} {result.trade.strategy.value} "
            f"({result.trade.status.value})"
        )
        return result

    def quick_close(
        self,
        trade_id: str,
        close_price: float,
        exit_fee: float = 0.0,
    ) -> Optional[Trade]:
        """
        Close a trade at a price, adding any exit fee.

        Args:
            trade_id: Id of the trade to close
            close_price: Per-share close price
            exit_fee: Fee paid to close

        Returns:
            Closed trade, or None if no trade has that id
        """
        trade = self.repository.get_trade(trade_id)
        if trade is None:
            logger.debug(f"Quick close ignored, no trade {trade_id}")
            return None

        closed = apply_quick_close(trade, close_price, exit_fee, today=self._today())
        self.repository.update_trade(closed)
        logger.info(
            f"Closed {closed.ticker} {closed.strategy.value} at "
            f"${closed.close_price:.2f}/share, P&L ${closed.pnl:,.2f}"
        )
        return closed

    def delete_trade(self, trade_id: str) -> bool:
        """Delete a trade; False if the id is unknown."""
        return self.repository.delete_trade(trade_id)

    def reset_trades(self) -> None:
        """Remove every trade. Settings are kept."""
        self.repository.save_trades([])
        logger.info("Cleared all trades")

    # --- Settings ---

    def get_settings(self) -> Settings:
        return self.repository.load_settings()

    def update_settings(self, apply: Callable[[Settings], None]) -> Settings:
        """
        Read, modify and store settings in one step.

        Args:
            apply: Function that mutates the loaded settings

        Returns:
            Stored settings
        """
        settings = self.repository.load_settings()
        apply(settings)
        self.repository.save_settings(settings)
        return settings

    def set_ticker_price(self, ticker: str, price: float) -> Settings:
        """Record a manual price for a ticker."""
        def apply(settings: Settings) -> None:
            settings.ticker_prices[ticker.strip().upper()] = float(price)

        return self.update_settings(apply)

    def set_manual_vix(self, vix: float) -> Settings:
        def apply(settings: Settings) -> None:
            settings.manual_vix = float(vix)

        return self.update_settings(apply)

    def set_account_value(self, value: float) -> Settings:
        return self.update_settings(lambda s: s.set_account_value(value))

    def set_income_target_percent(self, percent: float) -> Settings:
        return self.update_settings(lambda s: s.set_income_target_percent(percent))

    def set_monthly_goal(self, goal: float) -> Settings:
        return self.update_settings(lambda s: s.set_monthly_goal(goal))

    def set_finnhub_api_key(self, api_key: str) -> Settings:
        def apply(settings: Settings) -> None:
            settings.finnhub_api_key = api_key.strip()

        return self.update_settings(apply)

    # --- Market data ---

    def refresh_market_data(self) -> dict[str, float]:
        """
        Fetch prices for tickers with open trades and the VIX.

        Fetched prices are merged into the stored ticker prices; anything
        that fails to fetch keeps its previous value.

        Returns:
            Prices fetched in this refresh
        """
        if self.market_client is None:
            logger.warning("No market data client configured")
            return {}

        settings = self.repository.load_settings()
        if settings.finnhub_api_key and not self.market_client.api_key:
            self.market_client.api_key = settings.finnhub_api_key

        tickers = {t.ticker for t in self.repository.load_trades() if t.is_open}
        fetched: dict[str, float] = {}
        if tickers:
            try:
                fetched = self.market_client.fetch_quotes(tickers)
            except MarketDataError as e:
                logger.warning(f"Price refresh skipped: {e}")

        vix = self.market_client.fetch_vix()

        def apply(s: Settings) -> None:
            s.ticker_prices.update(fetched)
            if vix is not None:
                s.last_vix = vix

        self.update_settings(apply)
        return fetched

    def fetch_live_vix(self) -> Optional[float]:
        """Current VIX from the market client, or None."""
        if self.market_client is None:
            return None
        return self.market_client.fetch_vix()

    # --- Projections ---

    def get_metrics(self, live_vix: Optional[float] = None) -> PortfolioMetrics:
        """
        Dashboard metrics for the whole journal.

        Args:
            live_vix: VIX reading to use; falls back to the manual VIX

        Returns:
            PortfolioMetrics snapshot
        """
        today = self._today()

        def compute() -> PortfolioMetrics:
            settings = self.repository.load_settings()
            return compute_metrics(
                self.repository.load_trades(),
                ticker_prices=settings.ticker_prices,
                vix=live_vix if live_vix is not None else settings.manual_vix,
                account_value=settings.total_account_value,
                monthly_goal=settings.monthly_goal,
                today=today,
            )

        return self._memoized(("metrics", today, live_vix), compute)

    def get_cycles(self, cycle_id: Optional[str] = None) -> list[WheelCycle]:
        """Wheel cycles, most recently active first."""
        return self._memoized(
            ("cycles", cycle_id),
            lambda: group_cycles(self.repository.load_trades(), cycle_id),
        )

    def get_summary(
        self,
        date_range: DateRange = DateRange.CURRENT_MONTH,
        symbol: str = "",
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> GainLossSummary:
        """Realized gain/loss summary for a window."""
        return summarize(
            self.repository.load_trades(),
            date_range=date_range,
            symbol=symbol,
            start=start,
            end=end,
            today=self._today(),
        )

    def get_calendar(self, year: int, month: int) -> DailyPnl:
        """Realized P&L per day for a month."""
        return daily_pnl(self.repository.load_trades(), year, month)

    # --- Export / import ---

    def export_data(self) -> dict[str, Any]:
        return self.repository.export_data()

    def export_json(self) -> str:
        return json.dumps(self.repository.export_data(), indent=2)

    def import_data(self, payload: str) -> bool:
        """
        Replace the journal from an export.

        Returns:
            False if the payload was rejected; nothing is changed then
        """
        return self.repository.import_data(payload)
