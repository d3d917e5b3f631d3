"""Date helpers for journal records (ISO YYYY-MM-DD strings)."""

import logging
from datetime import date
from typing import Optional

logger = logging.getLogger(__name__)


def parse_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a stored date string.

    Accepts YYYY-MM-DD or a full ISO timestamp (only the date part is
    used). Empty or malformed values return None rather than raising.
    """
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        logger.debug(f"Ignoring unparseable date {value!r}")
        return None


def month_key(day: date) -> str:
    """Calendar month as YYYY-MM."""
    return f"{day.year:04d}-{day.month:02d}"


def first_of_month_back(today: date, months: int) -> date:
    """First day of the month `months` before today's month."""
    index = today.year * 12 + (today.month - 1) - months
    return date(index // 12, index % 12 + 1, 1)
