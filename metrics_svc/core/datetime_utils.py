"""
Calendar-date utilities for the chart transforms.

The transforms work on calendar dates, not instants: a heatmap cell is a day
and a growth point's age is counted in whole calendar months. This module
provides:
- Lenient ISO date parsing (malformed input becomes None, never raises)
- Week arithmetic with Sunday as day 0
- Calendar-month age calculation
- Age label formatting for chart axes

Usage:
    from core.datetime_utils import parse_date_safe, sunday_on_or_before

    day = parse_date_safe("2024-03-05")          # date(2024, 3, 5)
    parse_date_safe("not a date")                # None
    sunday_on_or_before(date(2024, 1, 1))        # date(2023, 12, 31)
"""
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

logger = logging.getLogger(__name__)

DateLike = Union[str, date, datetime, None]


# =============================================================================
# CORE UTILITIES
# =============================================================================

def utc_today() -> date:
    """Current calendar date in UTC."""
    return datetime.now(timezone.utc).date()


def utc_timestamp() -> str:
    """Current UTC time as an ISO 8601 string with 'Z' suffix."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


# =============================================================================
# PARSING
# =============================================================================

def parse_date(value: DateLike) -> date:
    """
    Parse a calendar date.

    Accepts a date, a datetime (its date part is used), or an ISO 8601 string
    with or without a time portion ("2024-01-15", "2024-01-15T10:30:00Z").

    Raises:
        ValueError: If the value cannot be parsed.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected date or string, got {type(value).__name__}")

    cleaned = value.strip()
    if not cleaned:
        raise ValueError("Empty date string")

    try:
        return date.fromisoformat(cleaned[:10])
    except ValueError:
        pass

    if cleaned.endswith('Z'):
        cleaned = cleaned[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(cleaned).date()
    except ValueError:
        raise ValueError(f"Cannot parse date: '{value}'")


def parse_date_safe(value: DateLike, **context) -> Optional[date]:
    """
    Parse a calendar date with graceful error handling.

    Returns None for None, empty, or malformed input; malformed input is
    logged with the supplied context.
    """
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        logger.warning("Skipping unparseable date", extra={"value": str(value), "error": str(e), **context})
        return None


# =============================================================================
# WEEK ARITHMETIC
# =============================================================================

def day_of_week(day: date) -> int:
    """Day of week with Sunday as 0 and Saturday as 6."""
    return (day.weekday() + 1) % 7


def sunday_on_or_before(day: date) -> date:
    """The Sunday that starts the week containing `day`."""
    return day - timedelta(days=day_of_week(day))


def saturday_on_or_after(day: date) -> date:
    """The Saturday that ends the week containing `day`."""
    return day + timedelta(days=6 - day_of_week(day))


# =============================================================================
# AGE CALCULATION
# =============================================================================

def age_in_months(birth: date, on: date) -> int:
    """
    Whole calendar months between birth and a later date, floored at 0.

    A month only counts once its day-of-month has been reached:
    born Jan 31, measured Feb 28 -> 0 months.
    """
    months = (on.year - birth.year) * 12 + (on.month - birth.month)
    if on.day < birth.day:
        months -= 1
    return max(0, months)


def age_in_days(birth: date, on: date) -> int:
    """Days between birth and a later date, floored at 0."""
    return max(0, (on - birth).days)


# =============================================================================
# FORMATTING
# =============================================================================

def format_age_label(age_months: int) -> str:
    """
    Format an age in months for chart axes.

    Examples:
        >>> format_age_label(11)
        '11m'
        >>> format_age_label(24)
        '2y'
        >>> format_age_label(27)
        '2y 3m'
    """
    if age_months < 12:
        return f"{age_months}m"
    years, months = divmod(age_months, 12)
    if months == 0:
        return f"{years}y"
    return f"{years}y {months}m"
