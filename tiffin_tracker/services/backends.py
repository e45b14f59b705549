"""
Storage backends behind the entry store.

The store talks to exactly one backend, chosen once at startup by
``create_backend``: SQLite through SQLAlchemy/aiosqlite for durable storage,
or a plain in-memory backend when no durable engine is available.
"""
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from tiffin_tracker.config import Settings, get_settings
from tiffin_tracker.database import create_engine_from_settings, create_session_factory, init_models
from tiffin_tracker.models import DayEntryRecord, SettingsRecord
from tiffin_tracker.schemas import DayEntry, UserSettings

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = 1


class StorageBackend(ABC):
    """
    Raw persistence for day entries and the settings row.
    Merge rules, validation and locking live in EntryStore.
    """

    def __init__(self, defaults: Optional[UserSettings] = None):
        self.defaults = defaults or UserSettings()

    async def initialize(self) -> None:
        pass

    async def close(self) -> None:
        pass

    @abstractmethod
    async def get_entry(self, date: str) -> Optional[DayEntry]:
        pass

    @abstractmethod
    async def get_entry_by_id(self, entry_id: str) -> Optional[DayEntry]:
        pass

    @abstractmethod
    async def save_entry(self, entry: DayEntry) -> None:
        """Insert or replace the entry stored for entry.date"""
        pass

    @abstractmethod
    async def delete_entry(self, date: str) -> None:
        pass

    @abstractmethod
    async def list_entries(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        descending: bool = False,
    ) -> List[DayEntry]:
        """Entries with start_date <= date <= end_date, ordered by date"""
        pass

    @abstractmethod
    async def delete_all_entries(self) -> int:
        pass

    @abstractmethod
    async def get_settings(self) -> UserSettings:
        """Settings row, created from the defaults on first access"""
        pass

    @abstractmethod
    async def save_settings(self, settings: UserSettings) -> None:
        pass


class InMemoryBackend(StorageBackend):
    """Non-durable backend; contents live only as long as the instance"""

    def __init__(self, defaults: Optional[UserSettings] = None):
        super().__init__(defaults)
        self._entries: Dict[str, DayEntry] = {}
        self._settings: Optional[UserSettings] = None

    async def get_entry(self, date: str) -> Optional[DayEntry]:
        entry = self._entries.get(date)
        return entry.model_copy() if entry else None

    async def get_entry_by_id(self, entry_id: str) -> Optional[DayEntry]:
        for entry in self._entries.values():
            if entry.id == entry_id:
                return entry.model_copy()
        return None

    async def save_entry(self, entry: DayEntry) -> None:
        self._entries[entry.date] = entry.model_copy()

    async def delete_entry(self, date: str) -> None:
        self._entries.pop(date, None)

    async def list_entries(self, start_date=None, end_date=None, descending=False) -> List[DayEntry]:
        entries = [
            e.model_copy() for e in self._entries.values()
            if (start_date is None or e.date >= start_date)
            and (end_date is None or e.date <= end_date)
        ]
        entries.sort(key=lambda e: e.date, reverse=descending)
        return entries

    async def delete_all_entries(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    async def get_settings(self) -> UserSettings:
        if self._settings is None:
            self._settings = self.defaults.model_copy()
        return self._settings.model_copy()

    async def save_settings(self, settings: UserSettings) -> None:
        self._settings = settings.model_copy()


def _to_entry(record: DayEntryRecord) -> DayEntry:
    return DayEntry(
        id=record.id,
        date=record.date,
        lunch_type=record.lunch_type,
        dinner_type=record.dinner_type,
        lunch_price=record.lunch_price,
        dinner_price=record.dinner_price,
        notes=record.notes or "",
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _to_settings(record: SettingsRecord) -> UserSettings:
    return UserSettings(
        half_price=record.half_price,
        full_price=record.full_price,
        currency=record.currency,
        display_name=record.display_name,
        has_demo_data=bool(record.has_demo_data),
    )


class SqlAlchemyBackend(StorageBackend):
    """Durable backend on an async SQLAlchemy engine (sqlite+aiosqlite)"""

    def __init__(self, engine: AsyncEngine, defaults: Optional[UserSettings] = None):
        super().__init__(defaults)
        self.engine = engine
        self.session_factory = create_session_factory(engine)

    async def initialize(self) -> None:
        await init_models(self.engine)
        logger.info("Database tables created")

    async def close(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def _session(self):
        """One transaction per operation: commit on success, rollback and re-raise on failure"""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Storage operation failed: {e}")
                raise
            except Exception:
                await session.rollback()
                raise

    async def get_entry(self, date: str) -> Optional[DayEntry]:
        async with self._session() as session:
            result = await session.execute(
                select(DayEntryRecord).where(DayEntryRecord.date == date)
            )
            record = result.scalar_one_or_none()
            return _to_entry(record) if record else None

    async def get_entry_by_id(self, entry_id: str) -> Optional[DayEntry]:
        async with self._session() as session:
            record = await session.get(DayEntryRecord, entry_id)
            return _to_entry(record) if record else None

    async def save_entry(self, entry: DayEntry) -> None:
        async with self._session() as session:
            result = await session.execute(
                select(DayEntryRecord).where(DayEntryRecord.date == entry.date)
            )
            record = result.scalar_one_or_none()

            # A different id for the same date means a replace (demo seeding)
            if record and record.id != entry.id:
                await session.delete(record)
                await session.flush()
                record = None

            if record is None:
                record = DayEntryRecord(id=entry.id, date=entry.date)
                session.add(record)

            record.lunch_type = entry.lunch_type
            record.dinner_type = entry.dinner_type
            record.lunch_price = entry.lunch_price
            record.dinner_price = entry.dinner_price
            record.notes = entry.notes
            record.created_at = entry.created_at
            record.updated_at = entry.updated_at

    async def delete_entry(self, date: str) -> None:
        async with self._session() as session:
            await session.execute(
                delete(DayEntryRecord).where(DayEntryRecord.date == date)
            )

    async def list_entries(self, start_date=None, end_date=None, descending=False) -> List[DayEntry]:
        query = select(DayEntryRecord)
        if start_date is not None:
            query = query.where(DayEntryRecord.date >= start_date)
        if end_date is not None:
            query = query.where(DayEntryRecord.date <= end_date)
        query = query.order_by(DayEntryRecord.date.desc() if descending else DayEntryRecord.date.asc())

        async with self._session() as session:
            result = await session.execute(query)
            return [_to_entry(r) for r in result.scalars().all()]

    async def delete_all_entries(self) -> int:
        async with self._session() as session:
            result = await session.execute(delete(DayEntryRecord))
            return result.rowcount or 0

    async def get_settings(self) -> UserSettings:
        async with self._session() as session:
            record = await session.get(SettingsRecord, SETTINGS_ROW_ID)
            if record is None:
                record = SettingsRecord(id=SETTINGS_ROW_ID, **self.defaults.model_dump())
                session.add(record)
                logger.info("Created default settings")
            return _to_settings(record)

    async def save_settings(self, settings: UserSettings) -> None:
        async with self._session() as session:
            record = await session.get(SettingsRecord, SETTINGS_ROW_ID)
            if record is None:
                record = SettingsRecord(id=SETTINGS_ROW_ID)
                session.add(record)
            for field, value in settings.model_dump().items():
                setattr(record, field, value)


def default_user_settings(settings: Settings) -> UserSettings:
    return UserSettings(
        half_price=settings.DEFAULT_HALF_PRICE,
        full_price=settings.DEFAULT_FULL_PRICE,
        currency=settings.DEFAULT_CURRENCY,
        display_name=settings.DEFAULT_DISPLAY_NAME,
    )


def create_backend(settings: Settings = None, engine: AsyncEngine = None) -> StorageBackend:
    """Pick the storage backend named by STORAGE_BACKEND"""
    settings = settings or get_settings()
    defaults = default_user_settings(settings)

    if settings.STORAGE_BACKEND == "memory":
        logger.info("Using in-memory storage backend")
        return InMemoryBackend(defaults)
    if settings.STORAGE_BACKEND == "sqlite":
        return SqlAlchemyBackend(engine or create_engine_from_settings(settings), defaults)
    raise ValueError(f"Unknown storage backend: {settings.STORAGE_BACKEND!r}. Must be 'sqlite' or 'memory'")
