"""
Input validation utilities
"""
from datetime import date, datetime
from typing import Optional

from tiffin_tracker.exceptions import InvalidDateError, InvalidPriceError, InvalidRangeError

DATE_FORMAT = "%Y-%m-%d"


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD string into a date"""
    if not isinstance(value, str) or len(value) != 10:
        raise InvalidDateError(f"Invalid date {value!r}: expected YYYY-MM-DD")
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise InvalidDateError(f"Invalid date {value!r}: expected YYYY-MM-DD")


def validate_date(value: str) -> str:
    """Validate that a date string is a real calendar date"""
    parse_date(value)
    return value


def validate_range(start_date: str, end_date: str) -> tuple[str, str]:
    """Validate both bounds and that start is not after end"""
    start = parse_date(start_date)
    end = parse_date(end_date)
    if start > end:
        raise InvalidRangeError(f"Start date {start_date} is after end date {end_date}")
    return start_date, end_date


def validate_price(amount: Optional[float]) -> Optional[float]:
    """Validate a price override is not negative"""
    if amount is not None and amount < 0:
        raise InvalidPriceError("Price must not be negative")
    return amount


def validate_default_price(amount: float) -> float:
    """Validate a settings price is positive"""
    if amount <= 0:
        raise InvalidPriceError("Default price must be positive")
    return amount
