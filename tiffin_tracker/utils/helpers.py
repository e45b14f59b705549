"""
General helper utilities
"""
import uuid
from datetime import datetime, timezone

from tiffin_tracker.utils.validators import parse_date

# ASCII stand-ins for currency codes in exported text
CURRENCY_PREFIXES = {
    "INR": "Rs.",
}

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def generate_id() -> str:
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision"""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def currency_prefix(code: str) -> str:
    return CURRENCY_PREFIXES.get(code, code)


def format_amount(amount: float) -> str:
    """Render a number without a trailing .0 for whole values"""
    if float(amount).is_integer():
        return str(int(amount))
    return repr(float(amount))


def format_currency(amount: float, code: str) -> str:
    """Format amount with the ASCII currency prefix, e.g. Rs.120"""
    return f"{currency_prefix(code)}{format_amount(amount)}"


def format_display_date(value: str) -> str:
    """YYYY-MM-DD -> '05 Mar 2024', independent of the process locale"""
    day = parse_date(value)
    return f"{day.day:02d} {MONTH_ABBREVIATIONS[day.month - 1]} {day.year}"
