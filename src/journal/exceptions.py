"""Custom exceptions for trade journal operations."""


class JournalError(Exception):
    """Base exception for journal operations."""

    pass


class TradeNotFoundError(JournalError):
    """No trade found for the given id."""

    pass


class InvalidTradeError(JournalError):
    """Trade data cannot be interpreted."""

    pass


class ImportFormatError(JournalError):
    """Import payload is not a recognised export document."""

    pass


class MarketDataError(JournalError):
    """Error fetching market data."""

    pass
