"""
Tenor utilities.

Provides:
- Tenor parsing ("3M", "10Y")
- Adding a tenor to a date (calendar arithmetic, no holiday adjustment)

Used to resolve tenor-labelled curve nodes to dates when sensitivities
are re-bucketed.
"""

from datetime import date, timedelta
from typing import Tuple
import calendar
import re


class DateUtils:
    """Utility class for tenor manipulation."""

    # Tenor regex pattern: number + unit (D/W/M/Y)
    TENOR_PATTERN = re.compile(r'^(\d+)([DWMY])$', re.IGNORECASE)

    @staticmethod
    def parse_tenor(tenor: str) -> Tuple[int, str]:
        """
        Parse a tenor string into (amount, unit).

        Args:
            tenor: Tenor string like "1D", "3M", "2Y"

        Returns:
            Tuple of (amount, unit) where unit is D/W/M/Y

        Raises:
            ValueError: If tenor format is invalid
        """
        match = DateUtils.TENOR_PATTERN.match(tenor.upper().strip())
        if not match:
            raise ValueError(f"Invalid tenor format: {tenor}. Expected format like '3M', '2Y'")

        return int(match.group(1)), match.group(2).upper()

    @staticmethod
    def add_tenor(start: date, tenor: str) -> date:
        """
        Add a tenor to a date.

        Days and weeks are calendar days. Months and years keep the day of
        month where possible and otherwise roll back to the month end.

        Args:
            start: Starting date
            tenor: Tenor string (e.g., "1D", "3M", "2Y")

        Returns:
            End date
        """
        amount, unit = DateUtils.parse_tenor(tenor)

        if unit == 'D':
            return start + timedelta(days=amount)

        if unit == 'W':
            return start + timedelta(weeks=amount)

        if unit == 'M':
            year = start.year + (start.month + amount - 1) // 12
            month = (start.month + amount - 1) % 12 + 1
        else:
            year = start.year + amount
            month = start.month
        day = min(start.day, calendar.monthrange(year, month)[1])
        return date(year, month, day)


__all__ = [
    "DateUtils",
]
