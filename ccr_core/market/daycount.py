"""Day-count and calendar helpers shared by the grid, the market objects and the config."""

import calendar

from ccr_core._types import Date

DAYS_PER_YEAR = 365.0


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(date: Date, months: int) -> Date:
    """
    Shift a date by whole months.

    Days past the end of the target month clamp to its last day
    (31 Jan + 1 month is 28 or 29 Feb).
    """
    total_months = date.month + months
    year = date.year + (total_months - 1) // 12
    month = (total_months - 1) % 12 + 1
    return date.replace(year=year, month=month, day=min(date.day, days_in_month(year, month)))


def one_year_after(date: Date) -> Date:
    """Same calendar day one year later (28 Feb for 29 Feb)."""
    return add_months(date, 12)


def year_fraction(start: Date, end: Date) -> float:
    """ACT/365F year fraction between two dates."""
    return (end - start).days / DAYS_PER_YEAR
