"""
Domain schemas shared by the store, report engine and exporter.

JSON uses the camelCase names of the backup format (``lunchType``,
``createdAt``...); both camelCase and snake_case are accepted on input.
"""
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from tiffin_tracker.models.day_entry import MealType
from tiffin_tracker.utils.validators import validate_date, validate_price, validate_default_price


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# --- Entries ---

class DayEntry(CamelModel):
    id: str
    date: str
    lunch_type: MealType = MealType.NONE
    dinner_type: MealType = MealType.NONE
    lunch_price: Optional[float] = None
    dinner_price: Optional[float] = None
    notes: str = ""
    created_at: str
    updated_at: str

    @field_validator("date")
    @classmethod
    def check_date(cls, v):
        return validate_date(v)

    @field_validator("lunch_price", "dinner_price")
    @classmethod
    def check_prices(cls, v):
        return validate_price(v)


class DayEntryPatch(CamelModel):
    """
    Partial day entry for upserts.

    A field that is not passed, or passed as None, keeps the stored value.
    ``notes=""`` is a real value and blanks the notes. ``id``,
    ``created_at`` and ``updated_at`` are only honoured when the entry is
    first created (backup restore); existing records never change identity
    and always get a fresh ``updated_at``.
    """
    date: str
    lunch_type: Optional[MealType] = None
    dinner_type: Optional[MealType] = None
    lunch_price: Optional[float] = None
    dinner_price: Optional[float] = None
    notes: Optional[str] = None

    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("date")
    @classmethod
    def check_date(cls, v):
        return validate_date(v)

    @field_validator("lunch_price", "dinner_price")
    @classmethod
    def check_prices(cls, v):
        return validate_price(v)

    def changes(self) -> dict:
        """Mutable fields that carry a value"""
        return self.model_dump(
            exclude_unset=True,
            exclude_none=True,
            exclude={"date", "id", "created_at", "updated_at"},
        )


# --- Settings ---

class UserSettings(CamelModel):
    half_price: float = 50
    full_price: float = 60
    currency: str = "INR"
    display_name: str = "User"
    has_demo_data: bool = False

    @field_validator("half_price", "full_price")
    @classmethod
    def check_prices(cls, v):
        return validate_default_price(v)


class SettingsPatch(CamelModel):
    half_price: Optional[float] = None
    full_price: Optional[float] = None
    currency: Optional[str] = None
    display_name: Optional[str] = None
    has_demo_data: Optional[bool] = None

    @field_validator("half_price", "full_price")
    @classmethod
    def check_prices(cls, v):
        return v if v is None else validate_default_price(v)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)


# --- Reports ---

class MealCounts(CamelModel):
    none: int = 0
    half: int = 0
    full: int = 0


class ReportData(CamelModel):
    start_date: str
    end_date: str
    lunch_counts: MealCounts = Field(default_factory=MealCounts)
    dinner_counts: MealCounts = Field(default_factory=MealCounts)
    total_lunch_amount: float = 0
    total_dinner_amount: float = 0
    grand_total: float = 0
    entries: List[DayEntry] = []


class DateRange(CamelModel):
    start: str
    end: str


# --- Backup ---

class BackupPayload(CamelModel):
    """Parsed backup document; either key may be missing"""
    entries: Optional[List[DayEntryPatch]] = None
    settings: Optional[SettingsPatch] = None


class ImportResult(BaseModel):
    created: int = 0
    updated: int = 0
    settings_applied: bool = False
