"""Strategy and status enums for journal trades."""

from enum import Enum
from typing import Optional


class StrategyType(Enum):
    """
    Strategy a trade was opened under.

    Values are the display strings used in exported journal files, so an
    export from any version of the journal can be read back.
    """

    CSP = "Cash-Secured Put"
    CC = "Covered Call"
    PCS = "Put Credit Spread"
    STOCK_BUY = "Stock Purchase (Assignment)"
    STOCK_SELL = "Stock Sale (Called Away)"
    LONG_STOCK = "Long-Term Stock"
    LEAPS = "LEAPS"

    @classmethod
    def parse(cls, value: "str | StrategyType") -> "StrategyType":
        """
        Resolve a strategy from its display value or member name.

        Raises:
            ValueError: If the value matches no strategy.
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for member in cls:
            if text == member.value or text.upper() == member.name:
                return member
        valid = [m.value for m in cls]
        raise ValueError(f"Invalid strategy '{value}'. Valid: {valid}")


class TradeStatus(Enum):
    """Lifecycle status of a trade."""

    OPEN = "Open"
    CLOSED = "Closed"
    ASSIGNED = "Assigned"
    EXPIRED = "Expired Worthless"
    ROLLED = "Rolled"

    @classmethod
    def parse(cls, value: "str | TradeStatus") -> "TradeStatus":
        """
        Resolve a status from its display value or member name.

        Raises:
            ValueError: If the value matches no status.
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for member in cls:
            if text == member.value or text.upper() == member.name:
                return member
        valid = [m.value for m in cls]
        raise ValueError(f"Invalid status '{value}'. Valid: {valid}")

    @property
    def is_open(self) -> bool:
        return self is TradeStatus.OPEN


# Short option strategies: premium is a credit received at entry
PREMIUM_STRATEGIES = frozenset(
    {
        StrategyType.CSP,
        StrategyType.CC,
        StrategyType.PCS,
        StrategyType.STOCK_SELL,
    }
)

# Strategies that hold shares rather than option contracts
EQUITY_STRATEGIES = frozenset({StrategyType.STOCK_BUY, StrategyType.LONG_STOCK})

# Shares represented by one unit of `contracts`
SHARE_MULTIPLIERS: dict[StrategyType, int] = {
    StrategyType.CSP: 100,
    StrategyType.CC: 100,
    StrategyType.PCS: 100,
    StrategyType.STOCK_BUY: 100,  # lots of 100 shares
    StrategyType.STOCK_SELL: 100,
    StrategyType.LONG_STOCK: 1,  # raw share count
    StrategyType.LEAPS: 100,
}


def get_multiplier(strategy: StrategyType) -> int:
    """Shares per contract unit for a strategy."""
    return SHARE_MULTIPLIERS.get(strategy, 100)


def is_premium_strategy(strategy: StrategyType) -> bool:
    """True if the strategy collects premium income when opened."""
    return strategy in PREMIUM_STRATEGIES


def is_assignment_transition(
    strategy: StrategyType,
    new_status: TradeStatus,
    previous_status: Optional[TradeStatus],
) -> bool:
    """
    Check whether a status change is a put assignment.

    Only a cash-secured put moving into ASSIGNED from some other status
    (or being created already assigned) counts. Re-saving a trade that was
    already assigned is not a transition.
    """
    return (
        strategy is StrategyType.CSP
        and new_status is TradeStatus.ASSIGNED
        and previous_status is not TradeStatus.ASSIGNED
    )
