"""
Market data client for live quotes and the VIX.

Quotes come from Finnhub (/quote, free tier). The VIX comes from the Yahoo
Finance chart endpoint since Finnhub's index data is not on the free tier.
Callers treat everything here as optional input: a failed fetch leaves the
journal's stored prices in place.
"""

import logging
import time
from typing import Any, Iterable, Optional

import requests

from .exceptions import MarketDataError

logger = logging.getLogger(__name__)

FINNHUB_BASE_URL = "https://finnhub.io/api/v1"
YAHOO_VIX_URL = "https://query1.finance.yahoo.com/v8/finance/chart/%5EVIX"


class MarketDataClient:
    """
    Fetch current prices for journal tickers.

    Handles retry with exponential backoff on connection errors and reuses
    a single requests.Session.
    """

    def __init__(
        self,
        api_key: str = "",
        timeout: int = 10,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Finnhub API key (quotes are unavailable without one)
            timeout: Request timeout in seconds
            max_retries: Attempts per request on connection errors
            retry_delay: Initial backoff delay in seconds
            session: Optional session, mainly for tests
        """
        if timeout <= 0:
            raise ValueError("Timeout must be positive")
        if max_retries < 1:
            raise ValueError("Max retries must be at least 1")

        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.session = session or requests.Session()
        self.session.headers.update(
            {"Accept": "application/json", "User-Agent": "WheelJournal/1.0"}
        )

    def fetch_quote(self, ticker: str) -> Optional[float]:
        """
        Current price for one ticker.

        Returns:
            Price, or None if Finnhub has no quote for it

        Raises:
            MarketDataError: If no API key is set or the request fails
        """
        if not self.api_key:
            raise MarketDataError("Finnhub API key not configured")

        symbol = ticker.strip().upper()
        data = self._get_json(
            f"{FINNHUB_BASE_URL}/quote",
            params={"symbol": symbol, "token": self.api_key},
        )
        price = data.get("c") if isinstance(data, dict) else None
        if not price:
            logger.debug(f"No quote returned for {symbol}")
            return None
        return float(price)

    def fetch_quotes(self, tickers: Iterable[str]) -> dict[str, float]:
        """
        Current prices for several tickers.

        Tickers that fail are skipped with a warning so one bad symbol
        doesn't block the rest.

        Raises:
            MarketDataError: If no API key is set
        """
        if not self.api_key:
            raise MarketDataError("Finnhub API key not configured")

        results: dict[str, float] = {}
        for ticker in sorted({t.strip().upper() for t in tickers if t}):
            try:
                price = self.fetch_quote(ticker)
            except MarketDataError as e:
                logger.warning(f"Failed to fetch price for {ticker}: {e}")
                continue
            if price is not None:
                results[ticker] = price

        logger.info(f"Fetched {len(results)} quotes")
        return results

    def fetch_vix(self) -> Optional[float]:
        """
        Latest VIX level.

        Returns:
            VIX value, or None if unavailable
        """
        try:
            data = self._get_json(YAHOO_VIX_URL, params={"interval": "1d", "range": "1d"})
        except MarketDataError as e:
            logger.warning(f"Failed to fetch VIX: {e}")
            return None

        try:
            price = data["chart"]["result"][0]["meta"]["regularMarketPrice"]
        except (KeyError, IndexError, TypeError):
            logger.warning("VIX response missing regularMarketPrice")
            return None
        if isinstance(price, (int, float)) and not isinstance(price, bool):
            return float(price)
        return None

    def _get_json(self, url: str, params: dict[str, str]) -> Any:
        """
        GET a URL and decode JSON.

        Raises:
            MarketDataError: On HTTP errors, timeouts or invalid JSON
        """
        try:
            response = self._make_request_with_retry(url, params)
            if response.status_code == 401:
                raise MarketDataError("Authentication failed. Check your API key.")
            if response.status_code == 429:
                raise MarketDataError("Rate limit exceeded.")
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout as e:
            raise MarketDataError(f"Request timeout after {self.timeout}s") from e
        except requests.exceptions.ConnectionError as e:
            raise MarketDataError("Connection error. Check your internet connection.") from e
        except requests.exceptions.RequestException as e:
            raise MarketDataError(f"Request failed: {e}") from e
        except ValueError as e:
            raise MarketDataError(f"Invalid JSON response: {e}") from e

    def _make_request_with_retry(
        self, url: str, params: dict[str, str], attempt: int = 1
    ) -> requests.Response:
        """Make an HTTP GET with exponential backoff retry."""
        try:
            return self.session.get(url, params=params, timeout=self.timeout)
        except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
            if attempt >= self.max_retries:
                logger.error(f"All {self.max_retries} retry attempts failed")
                raise

            delay = self.retry_delay * (2 ** (attempt - 1))
            logger.warning(
                f"Request failed (attempt {attempt}/{self.max_retries}). "
                f"Retrying in {delay:.1f}s... Error: {e}"
            )
            time.sleep(delay)
            return self._make_request_with_retry(url, params, attempt + 1)

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
