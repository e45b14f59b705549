from tiffin_tracker.models.day_entry import DayEntryRecord, MealType
from tiffin_tracker.models.app_settings import SettingsRecord

__all__ = [
    "DayEntryRecord",
    "MealType",
    "SettingsRecord",
]
