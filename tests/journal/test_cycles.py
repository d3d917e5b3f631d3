"""Tests for wheel cycle grouping."""

from src.journal.cycles import group_cycles, infer_status
from src.journal.models import CycleStatus, Trade
from src.journal.state import StrategyType, TradeStatus


class TestGroupCycles:
    """Tests for group_cycles."""

    def test_trades_ordered_by_entry(self) -> None:
        """Members are sorted by entry date regardless of input order."""
        a = Trade(
            id="A",
            ticker="XYZ",
            cycle_id="X",
            entry_date="2024-01-01",
            status=TradeStatus.CLOSED,
            close_date="2024-01-20",
            pnl=120.0,
        )
        b = Trade(
            id="B",
            ticker="XYZ",
            cycle_id="X",
            entry_date="2024-02-01",
            status=TradeStatus.CLOSED,
            close_date="2024-02-15",
            pnl=75.0,
        )

        (cycle,) = group_cycles([b, a])

        assert [t.id for t in cycle.trades] == ["A", "B"]
        assert cycle.start_date == "2024-01-01"
        assert cycle.last_date == "2024-02-15"
        assert cycle.total_pnl == 195.0
        assert cycle.steps == 2
        assert cycle.ticker == "XYZ"

    def test_trades_without_cycle_are_ignored(self) -> None:
        """Trades with no cycle id are not grouped."""
        trades = [
            Trade(ticker="XYZ", entry_date="2024-01-01"),
            Trade(ticker="XYZ", entry_date="2024-01-02", cycle_id="X"),
        ]

        cycles = group_cycles(trades)

        assert len(cycles) == 1
        assert cycles[0].id == "X"

    def test_sorted_by_last_activity(self) -> None:
        """Cycles are listed most recent activity first."""
        trades = [
            Trade(ticker="AAA", cycle_id="old", entry_date="2024-01-01", expiration_date="2024-02-16"),
            Trade(ticker="BBB", cycle_id="new", entry_date="2024-01-15", expiration_date="2024-03-15"),
        ]

        assert [c.id for c in group_cycles(trades)] == ["new", "old"]

    def test_filter_by_cycle_id(self) -> None:
        """Test selecting a single cycle."""
        trades = [
            Trade(ticker="AAA", cycle_id="one", entry_date="2024-01-01"),
            Trade(ticker="BBB", cycle_id="two", entry_date="2024-01-01"),
        ]

        cycles = group_cycles(trades, cycle_id="two")

        assert [c.id for c in cycles] == ["two"]

    def test_open_trade_pnl_counts_as_zero(self) -> None:
        """Open trades add nothing to the cycle total."""
        trades = [Trade(ticker="XYZ", cycle_id="X", entry_date="2024-01-01")]

        assert group_cycles(trades)[0].total_pnl == 0.0


class TestInferStatus:
    """Tests for the cycle completion heuristic."""

    def test_called_away_is_complete(self) -> None:
        """A called-away sale completes the cycle."""
        trades = [
            Trade(strategy=StrategyType.CSP, status=TradeStatus.ASSIGNED),
            Trade(strategy=StrategyType.STOCK_BUY),
            Trade(strategy=StrategyType.STOCK_SELL, status=TradeStatus.CLOSED),
        ]

        assert infer_status(trades) == CycleStatus.COMPLETE

    def test_closed_put_is_complete(self) -> None:
        """A closed put completes the cycle."""
        trades = [Trade(strategy=StrategyType.CSP, status=TradeStatus.CLOSED)]

        assert infer_status(trades) == CycleStatus.COMPLETE

    def test_closed_put_mentioning_assignment_is_active(self) -> None:
        """A closed put whose notes say Assigned keeps the cycle active."""
        trades = [
            Trade(strategy=StrategyType.CSP, status=TradeStatus.CLOSED, notes="Assigned at 50")
        ]

        assert infer_status(trades) == CycleStatus.ACTIVE

    def test_open_put_is_active(self) -> None:
        """Test that an open put keeps the cycle active."""
        assert infer_status([Trade(strategy=StrategyType.CSP)]) == CycleStatus.ACTIVE

    def test_holding_shares_is_active(self) -> None:
        """Holding assigned shares keeps the cycle active."""
        trades = [
            Trade(strategy=StrategyType.CSP, status=TradeStatus.ASSIGNED),
            Trade(strategy=StrategyType.STOCK_BUY),
        ]

        assert infer_status(trades) == CycleStatus.ACTIVE

    def test_empty_is_active(self) -> None:
        """An empty trade list is active."""
        assert infer_status([]) == CycleStatus.ACTIVE

    def test_complete_cycle_flag(self) -> None:
        """Test the is_complete flag on a grouped cycle."""
        trades = [
            Trade(ticker="XYZ", cycle_id="X", entry_date="2024-01-01", status=TradeStatus.CLOSED)
        ]

        assert group_cycles(trades)[0].is_complete
