"""Date parsing utilities."""

import calendar
import re
from datetime import date, timedelta

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

# Numeric dates that do not open with a four-digit year, e.g. "05-01-2024"
DAY_FIRST = re.compile(r"\d{1,2}[/.-]\d{1,2}[/.-]\d{2,4}")

RELATIVE_DAYS = {
    "today": 0,
    "hoy": 0,
    "yesterday": -1,
    "ayer": -1,
    "tomorrow": 1,
    "mañana": 1,
}


def parse_date(date_str: str, today: date | None = None) -> date:
    """Parse a date string into a date object.

    Supports ISO-8601 dates and date-times (the time part is dropped, since
    the ledger compares at day granularity), day-first numeric formats such as
    "15/01/2024", "15-01-2024" or "15.01.2024", and a few relative forms:
    - "today", "yesterday", "tomorrow" (also "hoy", "ayer", "mañana")
    - "start of month", "end of month", "start of year"
    - "last month" (first day of the previous month)

    Args:
        date_str: Date string
        today: Reference date for relative forms (default: today)

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = today or date.today()

    if text in RELATIVE_DAYS:
        return today + timedelta(days=RELATIVE_DAYS[text])
    if text == "start of month":
        return today.replace(day=1)
    if text == "end of month":
        return month_bounds(today.year, today.month)[1]
    if text == "start of year":
        return today.replace(month=1, day=1)
    if text == "last month":
        return (today - relativedelta(months=1)).replace(day=1)

    day_first = DAY_FIRST.fullmatch(text) is not None
    if not day_first:
        try:
            return date_parser.isoparse(text).date()
        except (ValueError, OverflowError):
            pass
    try:
        return date_parser.parse(text, dayfirst=day_first).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Return the first and last day of a calendar month.

    Raises:
        ValueError: If month is out of range
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])
