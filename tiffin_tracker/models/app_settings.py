"""
Settings model - single row of user preferences
"""
from sqlalchemy import Column, Integer, String, Float, Boolean, CheckConstraint
from tiffin_tracker.database import Base


class SettingsRecord(Base):
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True)
    half_price = Column(Float, nullable=False, default=50)
    full_price = Column(Float, nullable=False, default=60)
    currency = Column(String, nullable=False, default="INR")  # display label only
    display_name = Column(String, nullable=False, default="User")
    has_demo_data = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        CheckConstraint("id = 1", name="ck_settings_single_row"),
    )
