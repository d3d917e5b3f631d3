"""Data models for journal trades, settings and derived views."""

import math
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .dates import parse_date
from .state import (
    EQUITY_STRATEGIES,
    StrategyType,
    TradeStatus,
    get_multiplier,
)


def to_number(value: Any, default: float = 0.0) -> float:
    """
    Coerce a user-entered value to a float.

    Blank strings, None, NaN and anything unparseable become `default`
    so that bad input never propagates into P&L arithmetic.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def to_optional_number(value: Any) -> Optional[float]:
    """Like to_number, but keeps "not entered" as None."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return to_number(value)


def to_date_text(value: Any, label: str) -> Optional[str]:
    """
    Check a date read from an exported record.

    Raises:
        ValueError: If the value is set but is not a YYYY-MM-DD string.
    """
    if value is None or value == "":
        return None
    if not isinstance(value, str) or parse_date(value) is None:
        raise ValueError(f"{label} must be a YYYY-MM-DD string, got {value!r}")
    return value[:10]


def generate_trade_id() -> str:
    """Opaque identifier for a new trade."""
    return uuid.uuid4().hex[:12]


@dataclass
class Trade:
    """
    A single journal entry: one option or stock position.

    Some fields are read differently depending on strategy:
    - strike_price is the option strike, or the per-share buy price for
      LONG_STOCK.
    - premium is the per-share credit received for short options, or the
      per-share debit paid for LEAPS.
    - contracts counts 100-share units for options and STOCK_BUY lots, but
      raw shares for LONG_STOCK. Use `shares` for share arithmetic.
    """

    id: str = field(default_factory=generate_trade_id)
    ticker: str = ""
    strategy: StrategyType = StrategyType.CSP
    entry_date: str = ""  # YYYY-MM-DD
    expiration_date: str = ""  # YYYY-MM-DD, empty for stock
    strike_price: float = 0.0
    premium: float = 0.0  # per share
    contracts: float = 1.0
    underlying_price: float = 0.0
    fees: float = 0.0  # cumulative, entry + exit
    status: TradeStatus = TradeStatus.OPEN
    close_date: Optional[str] = None
    close_price: Optional[float] = None  # per share
    notes: str = ""
    tags: list[str] = field(default_factory=list)
    cycle_id: Optional[str] = None
    pnl: Optional[float] = None  # realized, unset while open

    def __post_init__(self) -> None:
        """Normalize enums, ticker and numeric fields."""
        self.strategy = StrategyType.parse(self.strategy)
        self.status = TradeStatus.parse(self.status)
        self.ticker = (self.ticker or "").strip().upper()
        self.entry_date = self.entry_date or ""
        self.expiration_date = self.expiration_date or ""
        self.close_date = self.close_date or None
        self.cycle_id = self.cycle_id or None
        self.notes = self.notes or ""
        self.tags = list(self.tags or [])

        self.strike_price = to_number(self.strike_price)
        self.premium = to_number(self.premium)
        self.underlying_price = to_number(self.underlying_price)
        self.fees = to_number(self.fees)
        self.close_price = to_optional_number(self.close_price)
        self.pnl = None if self.status.is_open else to_optional_number(self.pnl)

        contracts = to_number(self.contracts)
        self.contracts = contracts if contracts > 0 else 1.0

    @property
    def multiplier(self) -> int:
        """Shares represented by one unit of `contracts`."""
        return get_multiplier(self.strategy)

    @property
    def shares(self) -> float:
        """Number of shares this trade represents."""
        return self.contracts * self.multiplier

    @property
    def is_open(self) -> bool:
        return self.status.is_open

    @property
    def is_equity(self) -> bool:
        return self.strategy in EQUITY_STRATEGIES

    @property
    def attribution_date(self) -> str:
        """Date realized P&L is booked on: close date, else entry date."""
        return self.close_date or self.entry_date

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the exported journal's field names."""
        data: dict[str, Any] = {
            "id": self.id,
            "ticker": self.ticker,
            "strategy": self.strategy.value,
            "entryDate": self.entry_date,
            "expirationDate": self.expiration_date,
            "strikePrice": self.strike_price,
            "premium": self.premium,
            "contracts": self.contracts,
            "underlyingPrice": self.underlying_price,
            "fees": self.fees,
            "status": self.status.value,
            "notes": self.notes,
            "tags": list(self.tags),
        }
        if self.close_date is not None:
            data["closeDate"] = self.close_date
        if self.close_price is not None:
            data["closePrice"] = self.close_price
        if self.cycle_id is not None:
            data["cycleId"] = self.cycle_id
        if self.pnl is not None:
            data["pnl"] = self.pnl
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Trade":
        """
        Build a trade from an exported record.

        Raises:
            ValueError: If strategy or status is not recognised, or a date
                or cycle id has the wrong type.
        """
        tags = data.get("tags")
        cycle_id = data.get("cycleId")
        if cycle_id is not None and not isinstance(cycle_id, str):
            raise ValueError(f"cycleId must be a string, got {cycle_id!r}")
        return cls(
            id=str(data.get("id") or generate_trade_id()),
            ticker=str(data.get("ticker") or ""),
            strategy=data.get("strategy", StrategyType.CSP.value),
            entry_date=to_date_text(data.get("entryDate"), "entryDate") or "",
            expiration_date=to_date_text(data.get("expirationDate"), "expirationDate") or "",
            strike_price=data.get("strikePrice"),
            premium=data.get("premium"),
            contracts=data.get("contracts"),
            underlying_price=data.get("underlyingPrice"),
            fees=data.get("fees"),
            status=data.get("status", TradeStatus.OPEN.value),
            close_date=to_date_text(data.get("closeDate"), "closeDate"),
            close_price=data.get("closePrice"),
            notes=str(data.get("notes") or ""),
            tags=[str(t) for t in tags] if isinstance(tags, list) else [],
            cycle_id=cycle_id,
            pnl=data.get("pnl"),
        )


@dataclass
class Settings:
    """User settings consumed by the metrics layer."""

    monthly_goal: float = 1000.0
    total_account_value: float = 33000.0
    income_target_percent: float = 3.0
    ticker_prices: dict[str, float] = field(default_factory=dict)
    finnhub_api_key: str = ""
    last_vix: float = 0.0
    manual_vix: float = 15.0

    def set_account_value(self, value: float) -> None:
        """Change account value and recompute the goal from the percent."""
        self.total_account_value = to_number(value)
        self.monthly_goal = float(
            round(self.total_account_value * self.income_target_percent / 100)
        )

    def set_income_target_percent(self, percent: float) -> None:
        """Change the income target percent and recompute the goal."""
        self.income_target_percent = to_number(percent)
        self.monthly_goal = float(
            round(self.total_account_value * self.income_target_percent / 100)
        )

    def set_monthly_goal(self, goal: float) -> None:
        """Change the goal and back out the percent of account value."""
        self.monthly_goal = to_number(goal)
        if self.total_account_value > 0:
            self.income_target_percent = round(
                self.monthly_goal / self.total_account_value * 100, 2
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "monthlyGoal": self.monthly_goal,
            "totalAccountValue": self.total_account_value,
            "incomeTargetPercent": self.income_target_percent,
            "tickerPrices": dict(self.ticker_prices),
            "finnhubApiKey": self.finnhub_api_key,
            "lastVix": self.last_vix,
            "manualVix": self.manual_vix,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        """Build settings from a stored record, keeping defaults for gaps."""
        defaults = cls()
        prices = data.get("tickerPrices")
        if not isinstance(prices, dict):
            prices = {}
        return cls(
            monthly_goal=to_number(data.get("monthlyGoal"), defaults.monthly_goal),
            total_account_value=to_number(
                data.get("totalAccountValue"), defaults.total_account_value
            ),
            income_target_percent=to_number(
                data.get("incomeTargetPercent"), defaults.income_target_percent
            ),
            ticker_prices={
                str(k).upper(): to_number(v) for k, v in prices.items()
            },
            finnhub_api_key=data.get("finnhubApiKey") or "",
            last_vix=to_number(data.get("lastVix"), defaults.last_vix),
            manual_vix=to_number(data.get("manualVix"), defaults.manual_vix),
        )


class CycleStatus(Enum):
    """Completion state inferred for a wheel cycle."""

    ACTIVE = "Active"
    COMPLETE = "Complete"


@dataclass
class WheelCycle:
    """Trades sharing a cycle id, ordered by entry date."""

    id: str
    ticker: str
    trades: list[Trade] = field(default_factory=list)
    start_date: str = ""
    last_date: str = ""
    total_pnl: float = 0.0
    status: CycleStatus = CycleStatus.ACTIVE

    @property
    def steps(self) -> int:
        return len(self.trades)

    @property
    def is_complete(self) -> bool:
        return self.status is CycleStatus.COMPLETE


@dataclass
class VixAllocation:
    """Recommended cash band for a VIX reading."""

    vix: float
    min_cash_pct: float  # fraction, e.g. 0.10
    max_cash_pct: float
    label: str
    min_cash_amount: float = 0.0
    max_cash_amount: float = 0.0

    @property
    def cash_midpoint(self) -> float:
        return (self.min_cash_pct + self.max_cash_pct) / 2

    @property
    def invested_midpoint(self) -> float:
        return 1 - self.cash_midpoint


@dataclass
class EquityPoint:
    """Cumulative realized P&L as of a date."""

    date: str
    value: float


@dataclass
class PortfolioMetrics:
    """Dashboard snapshot derived from the full trade collection."""

    total_pnl: float = 0.0
    wins: int = 0
    losses: int = 0
    win_rate_pct: float = 0.0
    total_premium: float = 0.0
    open_positions: int = 0
    cash_secured: float = 0.0
    stock_value: float = 0.0
    leaps_value: float = 0.0
    current_month_income: float = 0.0
    goal_progress_pct: float = 0.0
    monthly_pnl: list[tuple[str, float]] = field(default_factory=list)
    equity_curve: list[EquityPoint] = field(default_factory=list)
    allocation_by_ticker: list[tuple[str, float]] = field(default_factory=list)
    asset_allocation: list[tuple[str, float]] = field(default_factory=list)
    active_tickers: list[str] = field(default_factory=list)
    vix_allocation: Optional[VixAllocation] = None

    @property
    def total_deployed(self) -> float:
        return self.cash_secured + self.stock_value + self.leaps_value

    @property
    def closed_trades(self) -> int:
        """Closed trades that counted as a win or a loss."""
        return self.wins + self.losses


@dataclass
class GainLossSummary:
    """Realized gain/loss over a date window."""

    start_date: str
    end_date: str
    trade_count: int = 0
    long_term_gains: float = 0.0
    long_term_losses: float = 0.0
    short_term_gains: float = 0.0
    short_term_losses: float = 0.0
    total_gl: float = 0.0
    total_collateral: float = 0.0
    return_pct: float = 0.0

    @property
    def long_term(self) -> float:
        return self.long_term_gains + self.long_term_losses

    @property
    def short_term(self) -> float:
        return self.short_term_gains + self.short_term_losses

    @property
    def total_gains(self) -> float:
        return self.long_term_gains + self.short_term_gains

    @property
    def total_losses(self) -> float:
        return self.long_term_losses + self.short_term_losses

    @property
    def gain_ratio_pct(self) -> float:
        """Gains as a share of total gain/loss volume."""
        volume = self.total_gains + abs(self.total_losses)
        if volume <= 0:
            return 0.0
        return self.total_gains / volume * 100


@dataclass
class DailyPnl:
    """Realized P&L per calendar day for one month."""

    year: int
    month: int
    days: dict[int, float] = field(default_factory=dict)
    total: float = 0.0
    wins: int = 0
    losses: int = 0
