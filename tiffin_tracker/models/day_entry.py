"""
Day entry model - one row per calendar date with lunch/dinner consumption
"""
from sqlalchemy import Column, String, Float, Text, Enum, UniqueConstraint
from tiffin_tracker.database import Base
import enum


class MealType(str, enum.Enum):
    NONE = "None"
    HALF = "Half"
    FULL = "Full"


def _enum_values(enum_cls):
    return [m.value for m in enum_cls]


class DayEntryRecord(Base):
    """Lunch and dinner portions taken on a single day"""
    __tablename__ = "day_entries"

    id = Column(String, primary_key=True)  # UUID4, generated on first insert
    date = Column(String, nullable=False)  # YYYY-MM-DD, unique

    lunch_type = Column(Enum(MealType, native_enum=False, values_callable=_enum_values), nullable=False, default=MealType.NONE)
    dinner_type = Column(Enum(MealType, native_enum=False, values_callable=_enum_values), nullable=False, default=MealType.NONE)

    # Per-entry overrides; NULL falls back to the settings price
    lunch_price = Column(Float, nullable=True)
    dinner_price = Column(Float, nullable=True)

    notes = Column(Text, nullable=False, default="")

    # ISO-8601 timestamps
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint("date", name="uq_day_entries_date"),
    )
