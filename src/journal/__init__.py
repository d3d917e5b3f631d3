"""
Wheel Journal - log option trades and review wheel strategy performance.

This package records cash-secured puts, covered calls, assigned and
long-term stock and LEAPS, and derives realized P&L, capital allocation,
gain/loss summaries and wheel cycles from the trade log.

Public API:
    JournalManager: Main orchestrator for journal operations
    Trade: A single journal entry
    Settings: Account value, income goal and market inputs
    PortfolioMetrics: Dashboard snapshot
    WheelCycle: Trades grouped by cycle id
    StrategyType: Trade strategies
    TradeStatus: Trade lifecycle statuses
"""

from .exceptions import (
    ImportFormatError,
    InvalidTradeError,
    JournalError,
    MarketDataError,
    TradeNotFoundError,
)
from .models import (
    CycleStatus,
    DailyPnl,
    GainLossSummary,
    PortfolioMetrics,
    Settings,
    Trade,
    VixAllocation,
    WheelCycle,
)
from .pnl import calculate_pnl, collateral, return_on_risk
from .state import (
    StrategyType,
    TradeStatus,
    get_multiplier,
    is_assignment_transition,
    is_premium_strategy,
)

__all__ = [
    # Core classes
    "Trade",
    "Settings",
    "PortfolioMetrics",
    "GainLossSummary",
    "DailyPnl",
    "VixAllocation",
    "WheelCycle",
    "CycleStatus",
    # Strategies and statuses
    "StrategyType",
    "TradeStatus",
    "get_multiplier",
    "is_premium_strategy",
    "is_assignment_transition",
    # P&L
    "calculate_pnl",
    "collateral",
    "return_on_risk",
    # Exceptions
    "JournalError",
    "TradeNotFoundError",
    "InvalidTradeError",
    "ImportFormatError",
    "MarketDataError",
]

# Deferred imports to avoid circular dependencies
def __getattr__(name: str):
    """Lazy import for the manager and repository."""
    if name == "JournalManager":
        from .manager import JournalManager
        return JournalManager
    if name == "JournalRepository":
        from .repository import JournalRepository
        return JournalRepository
    if name == "MarketDataClient":
        from .market_data import MarketDataClient
        return MarketDataClient
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
