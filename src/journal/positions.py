"""
Strategy-specific views of a trade.

A stored Trade reuses strike_price, premium and contracts with different
meanings per strategy. `to_position` unpacks a trade into a variant that
only carries the fields that are meaningful for its strategy, so P&L and
capital rules can dispatch on type instead of re-reading overloaded fields.
"""

from dataclasses import dataclass
from typing import Union

from .models import Trade
from .state import StrategyType


@dataclass(frozen=True)
class ShortPremium:
    """Short option opened for a credit (CSP, CC, PCS, called-away sale)."""

    strategy: StrategyType
    strike: float
    premium: float
    contracts: float
    underlying: float

    @property
    def shares(self) -> float:
        return self.contracts * 100

    @property
    def credit(self) -> float:
        return self.premium * 100 * self.contracts


@dataclass(frozen=True)
class LongOption:
    """Long call opened for a debit (LEAPS)."""

    strike: float
    premium: float
    contracts: float

    @property
    def cost(self) -> float:
        return self.premium * 100 * self.contracts


@dataclass(frozen=True)
class LongEquity:
    """Shares bought outright; strike_price holds the buy price."""

    entry_price: float
    shares: float

    @property
    def cost(self) -> float:
        return self.entry_price * self.shares


@dataclass(frozen=True)
class AssignedLot:
    """Shares received through put assignment, in lots of 100."""

    cost_basis: float
    lots: float

    @property
    def shares(self) -> float:
        return self.lots * 100

    @property
    def cost(self) -> float:
        return self.cost_basis * self.shares


Position = Union[ShortPremium, LongOption, LongEquity, AssignedLot]


def to_position(trade: Trade) -> Position:
    """Unpack a trade into its strategy variant."""
    strategy = trade.strategy

    if strategy is StrategyType.LEAPS:
        return LongOption(
            strike=trade.strike_price,
            premium=trade.premium,
            contracts=trade.contracts,
        )
    if strategy is StrategyType.LONG_STOCK:
        return LongEquity(entry_price=trade.strike_price, shares=trade.contracts)
    if strategy is StrategyType.STOCK_BUY:
        # Assigned lots keep the strike in underlying_price; older
        # records may only have it in strike_price or premium
        basis = trade.underlying_price or trade.strike_price or trade.premium
        return AssignedLot(cost_basis=basis, lots=trade.contracts)
    return ShortPremium(
        strategy=strategy,
        strike=trade.strike_price,
        premium=trade.premium,
        contracts=trade.contracts,
        underlying=trade.underlying_price,
    )
