"""Date manipulation utilities"""

from datetime import date, datetime, timedelta
from typing import List, Optional
from dateutil.relativedelta import relativedelta


def to_iso_date(value: date) -> str:
    """Format a date as YYYY-MM-DD from its calendar fields (no timezone shift)"""
    if isinstance(value, datetime):
        value = value.date()
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def _to_int(part: str) -> Optional[int]:
    try:
        return int(part)
    except (TypeError, ValueError):
        return None


def parse_iso_date(value) -> Optional[date]:
    """
    Parse a YYYY-MM-DD string into a date.

    Missing or non-numeric month/day parts default to 1. Out-of-range parts
    roll over into the following month/year (2024-13-01 -> 2025-01-01).
    Returns None when the year itself is unusable.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None:
        return None

    parts = str(value).strip().split("-")
    year = _to_int(parts[0])
    if year is None or not 1 <= year <= 9999:
        return None

    month = _to_int(parts[1]) if len(parts) > 1 else None
    day = _to_int(parts[2]) if len(parts) > 2 else None

    try:
        return date(year, 1, 1) + relativedelta(months=(month or 1) - 1) + timedelta(days=(day or 1) - 1)
    except (OverflowError, ValueError):
        return None


def add_days(from_date: date, days: int) -> date:
    return from_date + timedelta(days=days)


def add_months(from_date: date, months: int) -> date:
    """
    Add calendar months, clamping to the last day of a shorter target month.

    Jan 31 + 1 month -> Feb 28 (Feb 29 in leap years), never Mar 2/3.
    """
    return from_date + relativedelta(months=months)


def add_years(from_date: date, years: int) -> date:
    """Add calendar years; Feb 29 lands on Feb 28 in non-leap years"""
    return from_date + relativedelta(years=years)


def generate_date_range(start: date, end: date) -> List[date]:
    """Generate list of dates from start to end (inclusive)"""
    days = (end - start).days + 1
    return [start + timedelta(days=i) for i in range(days)]
