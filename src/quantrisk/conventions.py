"""
Day count conventions used to turn dates into curve times.

Supported Day Counts:
- ACT/360: Actual days / 360
- ACT/365: Actual days / 365
- ACT/ACT: Actual days / actual days in year (ISDA split by calendar year)
- 30/360: 30 days per month / 360

Business day calendars are not modelled; curves and providers only need
a date-to-year-fraction measure.
"""

from datetime import date
from enum import Enum
import calendar


class DayCount(Enum):
    """Day count convention enumeration."""
    ACT_360 = "ACT/360"
    ACT_365 = "ACT/365"
    ACT_ACT = "ACT/ACT"
    THIRTY_360 = "30/360"


def year_fraction(start: date, end: date, day_count: DayCount) -> float:
    """
    Calculate year fraction between two dates using specified day count convention.

    Args:
        start: Start date
        end: End date
        day_count: Day count convention

    Returns:
        Year fraction as float (zero if end is not after start)
    """
    if start >= end:
        return 0.0

    actual_days = (end - start).days

    if day_count == DayCount.ACT_360:
        return actual_days / 360.0

    elif day_count == DayCount.ACT_365:
        return actual_days / 365.0

    elif day_count == DayCount.ACT_ACT:
        if start.year == end.year:
            days_in_year = 366 if calendar.isleap(start.year) else 365
            return actual_days / days_in_year
        total = 0.0
        for year in range(start.year, end.year + 1):
            days_in_year = 366 if calendar.isleap(year) else 365
            period_start = start if year == start.year else date(year, 1, 1)
            period_end = end if year == end.year else date(year + 1, 1, 1)
            total += (period_end - period_start).days / days_in_year
        return total

    elif day_count == DayCount.THIRTY_360:
        # 30/360 US convention
        d1 = min(start.day, 30)
        d2 = end.day
        if end.day == 31 and d1 == 30:
            d2 = 30
        return (360 * (end.year - start.year) + 30 * (end.month - start.month) + (d2 - d1)) / 360.0

    else:
        raise ValueError(f"Unknown day count: {day_count}")


__all__ = [
    "DayCount",
    "year_fraction",
]
