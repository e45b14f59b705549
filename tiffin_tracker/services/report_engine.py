"""
Report engine - aggregates day entries into per-meal counts and totals
"""
from typing import Optional, Sequence

from tiffin_tracker.models.day_entry import MealType
from tiffin_tracker.schemas import DayEntry, MealCounts, ReportData, UserSettings
from tiffin_tracker.utils.validators import validate_range


def effective_price(meal_type: MealType, override: Optional[float], settings: UserSettings) -> float:
    """
    Price charged for one meal slot.
    None is always 0; otherwise the entry override wins over the
    settings price for the portion size.
    """
    if meal_type == MealType.NONE:
        return 0
    if override is not None:
        return override
    return settings.half_price if meal_type == MealType.HALF else settings.full_price


def _tally(counts: MealCounts, meal_type: MealType) -> None:
    if meal_type == MealType.NONE:
        counts.none += 1
    elif meal_type == MealType.HALF:
        counts.half += 1
    elif meal_type == MealType.FULL:
        counts.full += 1


def generate_report(
    entries: Sequence[DayEntry],
    settings: UserSettings,
    start_date: str,
    end_date: str,
) -> ReportData:
    """Aggregate entries (already sorted by date) for the given range. No I/O."""
    validate_range(start_date, end_date)
    lunch_counts = MealCounts()
    dinner_counts = MealCounts()
    total_lunch = 0
    total_dinner = 0

    for entry in entries:
        _tally(lunch_counts, entry.lunch_type)
        total_lunch += effective_price(entry.lunch_type, entry.lunch_price, settings)

        _tally(dinner_counts, entry.dinner_type)
        total_dinner += effective_price(entry.dinner_type, entry.dinner_price, settings)

    return ReportData(
        start_date=start_date,
        end_date=end_date,
        lunch_counts=lunch_counts,
        dinner_counts=dinner_counts,
        total_lunch_amount=total_lunch,
        total_dinner_amount=total_dinner,
        grand_total=total_lunch + total_dinner,
        entries=list(entries),
    )


async def build_report(store, start_date: str, end_date: str) -> ReportData:
    """Validate the range, load entries and settings from the store, aggregate"""
    entries = await store.get_range(start_date, end_date)
    settings = await store.get_settings()
    return generate_report(entries, settings, start_date, end_date)
