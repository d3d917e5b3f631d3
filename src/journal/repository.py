"""SQLite persistence layer for journal trades and settings."""

import json
import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Optional

from .exceptions import ImportFormatError
from .models import Settings, Trade
from .state import StrategyType

logger = logging.getLogger(__name__)

TRADES_KEY = "wheeltradr_data_v1"
SETTINGS_KEY = "wheeltradr_settings_v1"
EXPORT_VERSION = 1


def migrate_trades(trades: list[Trade]) -> bool:
    """
    Convert legacy stock lots stored as raw shares into lots of 100.

    Older journals saved assignment lots with contracts = shares. Any
    STOCK_BUY with 100 or more contracts is one of those.

    Returns:
        True if any trade was changed
    """
    modified = False
    for trade in trades:
        if trade.strategy is StrategyType.STOCK_BUY and trade.contracts >= 100:
            trade.contracts = trade.contracts / 100
            modified = True
    return modified


def parse_export(payload: str) -> tuple[list[Trade], Optional[Settings]]:
    """
    Parse an export document.

    Accepts `{"version": ..., "trades": [...], "settings": {...}}` or, for
    older exports, a bare list of trades.

    Raises:
        ImportFormatError: If the payload is not JSON or matches neither shape
    """
    try:
        parsed = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise ImportFormatError(f"Import is not valid JSON: {e}") from e

    settings_data: Any = None
    if isinstance(parsed, list):
        records = parsed
    elif isinstance(parsed, dict) and isinstance(parsed.get("trades"), list):
        records = parsed["trades"]
        settings_data = parsed.get("settings")
    else:
        raise ImportFormatError("Import must be a trade list or an export document")

    if settings_data is not None and not isinstance(settings_data, dict):
        raise ImportFormatError("Export settings must be an object")

    trades = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise ImportFormatError(f"Trade #{index} is not an object")
        try:
            trades.append(Trade.from_dict(record))
        except ValueError as e:
            raise ImportFormatError(f"Trade #{index} is invalid: {e}") from e

    settings = Settings.from_dict(settings_data) if settings_data else None
    return trades, settings


class JournalRepository:
    """
    Key-value record store for the journal, backed by SQLite.

    The trade list and the settings are each stored as one JSON record.
    Every write runs in a single transaction.
    """

    def __init__(self, db_path: str = "~/.wheel_journal/journal.db"):
        """
        Initialize the repository.

        Args:
            db_path: Path to SQLite database file. Supports ~ expansion.
        """
        self.db_path = os.path.expanduser(db_path)
        self.version = 0
        self._ensure_directory()
        self._init_database()

    def _ensure_directory(self) -> None:
        """Create database directory if it doesn't exist."""
        db_dir = os.path.dirname(self.db_path)
        if db_dir and not os.path.exists(db_dir):
            os.makedirs(db_dir, exist_ok=True)
            logger.info(f"Created database directory: {db_dir}")

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self) -> None:
        """Create tables if they don't exist."""
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS records (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
            """
            )
        logger.debug(f"Database initialized at {self.db_path}")

    # Record operations

    def _read(self, conn: sqlite3.Connection, key: str) -> Optional[str]:
        row = conn.execute(
            "SELECT value FROM records WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def _write(self, conn: sqlite3.Connection, key: str, value: str) -> None:
        conn.execute(
            """
            INSERT INTO records (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value, updated_at = excluded.updated_at
            """,
            (key, value, datetime.now().isoformat()),
        )
        self.version += 1

    def _decode_trades(self, raw: Optional[str]) -> list[Trade]:
        if not raw:
            return []
        try:
            return [Trade.from_dict(record) for record in json.loads(raw)]
        except (TypeError, ValueError, AttributeError) as e:
            logger.error(f"Stored trades are unreadable: {e}")
            return []

    @staticmethod
    def _encode_trades(trades: list[Trade]) -> str:
        return json.dumps([t.to_dict() for t in trades])

    # Trade operations

    def load_trades(self) -> list[Trade]:
        """
        Load all trades, newest first.

        Legacy stock lots are migrated and written back.
        """
        with self._connect() as conn:
            trades = self._decode_trades(self._read(conn, TRADES_KEY))
            if migrate_trades(trades):
                self._write(conn, TRADES_KEY, self._encode_trades(trades))
                logger.info("Migrated legacy stock lots to lots of 100")
        return trades

    def save_trades(self, trades: list[Trade]) -> None:
        """Replace the stored trade list."""
        with self._connect() as conn:
            self._write(conn, TRADES_KEY, self._encode_trades(trades))
        logger.debug(f"Saved {len(trades)} trades")

    def get_trade(self, trade_id: str) -> Optional[Trade]:
        """Get a trade by id, or None."""
        for trade in self.load_trades():
            if trade.id == trade_id:
                return trade
        return None

    def add_trade(self, trade: Trade) -> Trade:
        """Insert a trade at the front of the list."""
        with self._connect() as conn:
            trades = self._decode_trades(self._read(conn, TRADES_KEY))
            trades.insert(0, trade)
            self._write(conn, TRADES_KEY, self._encode_trades(trades))
        logger.info(
            f"Created trade {trade.id}: {trade.strategy.value} "
            f"{trade.contracts:g}x {trade.ticker}"
        )
        return trade

    def update_trade(self, trade: Trade) -> bool:
        """
        Replace a stored trade with the same id.

        Returns:
            True if updated, False if no trade has that id
        """
        with self._connect() as conn:
            trades = self._decode_trades(self._read(conn, TRADES_KEY))
            for index, existing in enumerate(trades):
                if existing.id == trade.id:
                    trades[index] = trade
                    self._write(conn, TRADES_KEY, self._encode_trades(trades))
                    break
            else:
                return False
        logger.debug(f"Updated trade {trade.id} to status {trade.status.value}")
        return True

    def delete_trade(self, trade_id: str) -> bool:
        """
        Delete a trade by id.

        Returns:
            True if deleted, False if not found
        """
        with self._connect() as conn:
            trades = self._decode_trades(self._read(conn, TRADES_KEY))
            remaining = [t for t in trades if t.id != trade_id]
            if len(remaining) == len(trades):
                return False
            self._write(conn, TRADES_KEY, self._encode_trades(remaining))
        logger.info(f"Deleted trade {trade_id}")
        return True

    # Settings operations

    def load_settings(self) -> Settings:
        """Load settings, filling gaps with defaults."""
        with self._connect() as conn:
            raw = self._read(conn, SETTINGS_KEY)
        if not raw:
            return Settings()
        try:
            return Settings.from_dict(json.loads(raw))
        except (TypeError, ValueError, AttributeError) as e:
            logger.error(f"Stored settings are unreadable, using defaults: {e}")
            return Settings()

    def save_settings(self, settings: Settings) -> None:
        with self._connect() as conn:
            self._write(conn, SETTINGS_KEY, json.dumps(settings.to_dict()))
        logger.debug("Saved settings")

    # Export / import

    def export_data(self) -> dict[str, Any]:
        """Full export document: version, trades and settings."""
        return {
            "version": EXPORT_VERSION,
            "trades": [t.to_dict() for t in self.load_trades()],
            "settings": self.load_settings().to_dict(),
        }

    def import_data(self, payload: str) -> bool:
        """
        Replace all trades (and settings, if present) from an export.

        Nothing is written unless the whole payload is valid.

        Returns:
            True on success, False if the payload was rejected
        """
        try:
            trades, settings = parse_export(payload)
        except ImportFormatError as e:
            logger.warning(f"Rejected import: {e}")
            return False

        migrate_trades(trades)
        with self._connect() as conn:
            self._write(conn, TRADES_KEY, self._encode_trades(trades))
            if settings is not None:
                self._write(conn, SETTINGS_KEY, json.dumps(settings.to_dict()))
        logger.info(f"Imported {len(trades)} trades")
        return True
