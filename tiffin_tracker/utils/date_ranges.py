"""
Date range presets for reports and calendar month views
"""
import calendar
from datetime import date, datetime
from typing import Optional, Union

from tiffin_tracker.schemas import DateRange
from tiffin_tracker.utils.validators import DATE_FORMAT, validate_range

THIS_MONTH = "thisMonth"
LAST_MONTH = "lastMonth"
CUSTOM = "custom"

PRESETS = (THIS_MONTH, LAST_MONTH, CUSTOM)


def month_bounds(year: int, month: int) -> DateRange:
    """First and last calendar day of a month"""
    last_day = calendar.monthrange(year, month)[1]
    return DateRange(
        start=date(year, month, 1).strftime(DATE_FORMAT),
        end=date(year, month, last_day).strftime(DATE_FORMAT),
    )


def previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def today_str(now: Optional[Union[date, datetime]] = None) -> str:
    now = now or datetime.now()
    return now.strftime(DATE_FORMAT)


def resolve(preset: str, now: Optional[Union[date, datetime]] = None) -> DateRange:
    """
    Resolve a symbolic preset into concrete start/end dates.

    "custom" ranges are supplied by the caller and go through
    validate_custom_range instead.
    """
    now = now or datetime.now()

    if preset == THIS_MONTH:
        return month_bounds(now.year, now.month)
    if preset == LAST_MONTH:
        return month_bounds(*previous_month(now.year, now.month))
    if preset == CUSTOM:
        raise ValueError("Custom ranges are not resolved from a preset; pass explicit dates")
    raise ValueError(f"Unknown date range preset: {preset!r}. Must be one of: {PRESETS}")


def validate_custom_range(start: str, end: str) -> DateRange:
    """Check a user-entered range: both dates parse and start <= end"""
    validate_range(start, end)
    return DateRange(start=start, end=end)
