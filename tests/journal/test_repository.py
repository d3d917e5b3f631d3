"""Tests for journal repository (SQLite persistence)."""

import json
import os
import sqlite3
import tempfile

import pytest

from src.journal.exceptions import ImportFormatError
from src.journal.models import Settings, Trade
from src.journal.repository import (
    SETTINGS_KEY,
    TRADES_KEY,
    JournalRepository,
    migrate_trades,
    parse_export,
)
from src.journal.state import StrategyType, TradeStatus


@pytest.fixture
def temp_db() -> str:
    """Create a temporary database file."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    yield path
    if os.path.exists(path):
        os.unlink(path)


@pytest.fixture
def repository(temp_db: str) -> JournalRepository:
    """Create a repository with temporary database."""
    return JournalRepository(db_path=temp_db)


def read_raw(path: str, key: str) -> str:
    conn = sqlite3.connect(path)
    try:
        row = conn.execute("SELECT value FROM records WHERE key = ?", (key,)).fetchone()
    finally:
        conn.close()
    return row[0] if row else None


def sample_trades() -> list[Trade]:
    return [
        Trade(
            id="t1",
            ticker="XYZ",
            entry_date="2024-01-01",
            strike_price=50,
            premium=1.0,
            contracts=2,
            fees=2.6,
            status=TradeStatus.CLOSED,
            close_date="2024-01-20",
            close_price=0.2,
            cycle_id="cycle_xyz_1",
            pnl=157.4,
        ),
        Trade(
            id="t2",
            ticker="ABC",
            strategy=StrategyType.LONG_STOCK,
            entry_date="2024-02-01",
            strike_price=20,
            contracts=25,
            tags=["core"],
        ),
    ]


class TestTradeStorage:
    """Tests for trade record operations."""

    def test_empty_store(self, repository: JournalRepository) -> None:
        """A fresh store has no trades and default settings."""
        assert repository.load_trades() == []
        assert repository.load_settings() == Settings()

    def test_add_prepends(self, repository: JournalRepository) -> None:
        """New trades go first."""
        first = repository.add_trade(Trade(id="a", ticker="XYZ"))
        second = repository.add_trade(Trade(id="b", ticker="ABC"))

        assert [t.id for t in repository.load_trades()] == [second.id, first.id]

    def test_get_trade(self, repository: JournalRepository) -> None:
        """Test retrieving a trade by id."""
        repository.add_trade(Trade(id="a", ticker="XYZ"))

        assert repository.get_trade("a").ticker == "XYZ"
        assert repository.get_trade("missing") is None

    def test_update_trade(self, repository: JournalRepository) -> None:
        """Test updating a trade."""
        repository.add_trade(Trade(id="a", ticker="XYZ"))

        updated = repository.update_trade(Trade(id="a", ticker="XYZ", notes="rolled"))

        assert updated is True
        assert repository.get_trade("a").notes == "rolled"

    def test_update_unknown_is_noop(self, repository: JournalRepository) -> None:
        """Updating a non-existent trade should return False."""
        repository.add_trade(Trade(id="a", ticker="XYZ"))

        assert repository.update_trade(Trade(id="zzz", ticker="ABC")) is False
        assert [t.id for t in repository.load_trades()] == ["a"]

    def test_delete_trade(self, repository: JournalRepository) -> None:
        """Test deleting a trade."""
        repository.add_trade(Trade(id="a", ticker="XYZ"))
        repository.add_trade(Trade(id="b", ticker="ABC"))

        assert repository.delete_trade("a") is True
        assert [t.id for t in repository.load_trades()] == ["b"]

    def test_delete_unknown_is_noop(self, repository: JournalRepository) -> None:
        """Deleting a non-existent trade should return False."""
        repository.add_trade(Trade(id="a", ticker="XYZ"))

        assert repository.delete_trade("zzz") is False
        assert len(repository.load_trades()) == 1

    def test_persists_across_instances(self, temp_db: str) -> None:
        """Trades survive reopening the database."""
        JournalRepository(db_path=temp_db).save_trades(sample_trades())

        reloaded = JournalRepository(db_path=temp_db).load_trades()

        assert reloaded == sample_trades()

    def test_stored_as_export_json(self, repository: JournalRepository, temp_db: str) -> None:
        """Records are stored in export format."""
        repository.save_trades(sample_trades())

        stored = json.loads(read_raw(temp_db, TRADES_KEY))

        assert stored[0]["strategy"] == "Cash-Secured Put"
        assert stored[0]["cycleId"] == "cycle_xyz_1"

    def test_version_increments_on_write(self, repository: JournalRepository) -> None:
        """Every write bumps the version."""
        before = repository.version

        repository.add_trade(Trade(ticker="XYZ"))
        repository.save_settings(Settings())

        assert repository.version == before + 2

    def test_unreadable_trades_load_empty(self, repository: JournalRepository) -> None:
        """A corrupt record loads as no trades."""
        with repository._connect() as conn:
            repository._write(conn, TRADES_KEY, "{broken")

        assert repository.load_trades() == []


class TestMigration:
    """Tests for legacy stock lot migration."""

    def test_migrate_trades(self) -> None:
        """Legacy share counts become lots."""
        trades = [
            Trade(strategy=StrategyType.STOCK_BUY, contracts=200),
            Trade(strategy=StrategyType.STOCK_BUY, contracts=2),
            Trade(strategy=StrategyType.LONG_STOCK, contracts=300),
        ]

        assert migrate_trades(trades) is True
        assert [t.contracts for t in trades] == [2, 2, 300]

    def test_migrate_noop(self) -> None:
        """Current lots are left alone."""
        assert migrate_trades([Trade(strategy=StrategyType.STOCK_BUY, contracts=1)]) is False

    def test_load_writes_back(self, repository: JournalRepository, temp_db: str) -> None:
        """Migrated trades are written back."""
        repository.save_trades([Trade(id="lot", strategy=StrategyType.STOCK_BUY, contracts=300)])

        loaded = repository.load_trades()

        assert loaded[0].contracts == 3
        assert json.loads(read_raw(temp_db, TRADES_KEY))[0]["contracts"] == 3


class TestSettingsStorage:
    """Tests for settings record operations."""

    def test_round_trip(self, repository: JournalRepository) -> None:
        """Test settings save and load."""
        settings = Settings(monthly_goal=1500, ticker_prices={"XYZ": 48.0}, manual_vix=22)

        repository.save_settings(settings)

        assert repository.load_settings() == settings

    def test_partial_record_merges_defaults(self, repository: JournalRepository) -> None:
        """A partial settings record merges over defaults."""
        with repository._connect() as conn:
            repository._write(conn, SETTINGS_KEY, json.dumps({"manualVix": 25}))

        settings = repository.load_settings()

        assert settings.manual_vix == 25
        assert settings.monthly_goal == 1000


class TestExportImport:
    """Tests for export/import."""

    def test_round_trip(self, repository: JournalRepository, temp_db: str) -> None:
        """Importing an export restores the same trades and settings."""
        settings = Settings(monthly_goal=1500, total_account_value=50000, manual_vix=18)
        repository.save_trades(sample_trades())
        repository.save_settings(settings)
        payload = json.dumps(repository.export_data())

        other = JournalRepository(db_path=temp_db + ".copy")
        try:
            assert other.import_data(payload) is True
            assert other.load_trades() == sample_trades()
            assert other.load_settings() == settings
        finally:
            os.unlink(temp_db + ".copy")

    def test_export_shape(self, repository: JournalRepository) -> None:
        """Test the export document shape."""
        data = repository.export_data()

        assert data["version"] == 1
        assert data["trades"] == []
        assert data["settings"]["monthlyGoal"] == 1000

    def test_import_bare_list_keeps_settings(self, repository: JournalRepository) -> None:
        """A bare trade list keeps current settings."""
        repository.save_settings(Settings(monthly_goal=2222))
        payload = json.dumps([t.to_dict() for t in sample_trades()])

        assert repository.import_data(payload) is True
        assert len(repository.load_trades()) == 2
        assert repository.load_settings().monthly_goal == 2222

    @pytest.mark.parametrize(
        "payload",
        [
            "not json",
            '{"foo": 1}',
            '"just a string"',
            "[1, 2]",
            '[{"ticker": "XYZ", "strategy": "Iron Condor"}]',
            '{"trades": [], "settings": [1]}',
            '[{"ticker": "XYZ", "status": "Closed", "closeDate": 20250115}]',
            '[{"ticker": "XYZ", "entryDate": 20250101}]',
            '[{"ticker": "XYZ", "cycleId": 42}]',
        ],
    )
    def test_rejected_import_changes_nothing(
        self, repository: JournalRepository, payload: str
    ) -> None:
        """Rejected payloads leave stored trades unchanged."""
        repository.save_trades(sample_trades())

        assert repository.import_data(payload) is False
        assert repository.load_trades() == sample_trades()

    def test_parse_export_errors(self) -> None:
        """Test parse errors name the problem."""
        with pytest.raises(ImportFormatError, match="not valid JSON"):
            parse_export("{")
        with pytest.raises(ImportFormatError, match="Trade #1"):
            parse_export('[{"ticker": "A"}, "x"]')

    def test_parse_export_rejects_numeric_close_date(self) -> None:
        """A close date stored as a number is an import error, not a later crash."""
        with pytest.raises(ImportFormatError, match="closeDate"):
            parse_export('[{"ticker": "XYZ", "status": "Closed", "closeDate": 20250115}]')

    def test_import_migrates_legacy_lots(self, repository: JournalRepository) -> None:
        """Imported legacy lots are migrated."""
        payload = json.dumps(
            [{"id": "lot", "ticker": "XYZ", "strategy": "Stock Purchase (Assignment)", "contracts": 100}]
        )

        repository.import_data(payload)

        assert repository.get_trade("lot").contracts == 1
