"""
Entry store - day entries keyed by calendar date plus the settings record.

Every mutation goes through here; UI collaborators never touch the backend
directly. Upserts merge field by field: a field the patch leaves unset (or
sets to None) keeps its stored value. Read-modify-write for a date runs
under that date's lock, so two upserts to the same date never interleave.
"""
import asyncio
import logging
import random
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import date
from typing import Callable, Dict, List, Optional, Union

from tiffin_tracker.models.day_entry import MealType
from tiffin_tracker.schemas import DayEntry, DayEntryPatch, UserSettings, SettingsPatch
from tiffin_tracker.services.backends import StorageBackend
from tiffin_tracker.utils.date_ranges import month_bounds
from tiffin_tracker.utils.helpers import generate_id, utc_now_iso
from tiffin_tracker.utils.validators import DATE_FORMAT, validate_date, validate_range

logger = logging.getLogger(__name__)

MEAL_TYPES = [MealType.NONE, MealType.HALF, MealType.FULL]
MEALS = ("lunch", "dinner")


class EntryStore:

    def __init__(
        self,
        backend: StorageBackend,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], str]] = None,
    ):
        self.backend = backend
        self.rng = rng or random.Random()
        self.clock = clock or utc_now_iso
        self._date_locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = defaultdict(int)
        self._settings_lock = asyncio.Lock()

    @asynccontextmanager
    async def _locked(self, entry_date: str):
        """Hold the lock for one date; dropped again once nobody holds or awaits it"""
        lock = self._date_locks.get(entry_date)
        if lock is None:
            lock = self._date_locks[entry_date] = asyncio.Lock()
        self._lock_users[entry_date] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[entry_date] -= 1
            if not self._lock_users[entry_date]:
                del self._lock_users[entry_date]
                del self._date_locks[entry_date]

    # --- Entries ---

    async def get_by_date(self, entry_date: str) -> Optional[DayEntry]:
        validate_date(entry_date)
        return await self.backend.get_entry(entry_date)

    async def upsert(self, patch: Union[DayEntryPatch, dict]) -> DayEntry:
        """Create the entry for patch.date or merge the patch into it"""
        if not isinstance(patch, DayEntryPatch):
            validate_date(patch.get("date"))
            patch = DayEntryPatch.model_validate(patch)

        async with self._locked(patch.date):
            existing = await self.backend.get_entry(patch.date)
            now = self.clock()
            changes = patch.changes()

            if existing:
                entry = existing.model_copy(update={**changes, "updated_at": now})
            else:
                entry = DayEntry(
                    id=await self._new_id(patch),
                    date=patch.date,
                    created_at=patch.created_at or patch.updated_at or now,
                    updated_at=patch.updated_at or now,
                    **changes,
                )

            await self.backend.save_entry(entry)
            return entry

    async def _new_id(self, patch: DayEntryPatch) -> str:
        if patch.id is None:
            return generate_id()
        holder = await self.backend.get_entry_by_id(patch.id)
        if holder is not None:
            logger.warning(f"Id {patch.id} already belongs to {holder.date}; {patch.date} gets a new one")
            return generate_id()
        return patch.id

    async def clear_price_override(self, entry_date: str, meal: str) -> Optional[DayEntry]:
        """Drop the lunch or dinner override so the settings price applies again"""
        validate_date(entry_date)
        if meal not in MEALS:
            raise ValueError(f"Invalid meal {meal!r}. Must be one of: {MEALS}")

        async with self._locked(entry_date):
            existing = await self.backend.get_entry(entry_date)
            if existing is None:
                return None
            entry = existing.model_copy(update={f"{meal}_price": None, "updated_at": self.clock()})
            await self.backend.save_entry(entry)
            return entry

    async def delete(self, entry_date: str) -> None:
        validate_date(entry_date)
        async with self._locked(entry_date):
            await self.backend.delete_entry(entry_date)

    async def get_range(self, start_date: str, end_date: str) -> List[DayEntry]:
        """Entries with start_date <= date <= end_date, oldest first"""
        validate_range(start_date, end_date)
        return await self.backend.list_entries(start_date, end_date)

    async def get_all(self) -> List[DayEntry]:
        """Every entry, newest first"""
        return await self.backend.list_entries(descending=True)

    async def get_month(self, year: int, month: int) -> Dict[str, DayEntry]:
        bounds = month_bounds(year, month)
        entries = await self.get_range(bounds.start, bounds.end)
        return {e.date: e for e in entries}

    # --- Settings ---

    async def get_settings(self) -> UserSettings:
        return await self.backend.get_settings()

    async def update_settings(self, patch: Union[SettingsPatch, dict]) -> UserSettings:
        if not isinstance(patch, SettingsPatch):
            patch = SettingsPatch.model_validate(patch)

        async with self._settings_lock:
            current = await self.backend.get_settings()
            updated = current.model_copy(update=patch.changes())
            await self.backend.save_settings(updated)
            return updated

    # --- Bulk ---

    async def clear_all(self) -> None:
        """Delete every entry and reset the demo flag; prices and labels stay"""
        removed = await self.backend.delete_all_entries()
        await self.update_settings(SettingsPatch(has_demo_data=False))
        logger.info(f"Cleared all data ({removed} entries)")

    async def seed_demo_data(self, today: Optional[date] = None) -> List[DayEntry]:
        """
        Fill the 1st of the month through today with random lunch/dinner
        types, replacing whatever was stored for those dates.
        """
        today = today or date.today()
        seeded = []

        for day in range(1, today.day + 1):
            entry_date = today.replace(day=day).strftime(DATE_FORMAT)
            lunch_type = self.rng.choice(MEAL_TYPES)
            dinner_type = self.rng.choice(MEAL_TYPES)
            timestamp = self.clock()

            entry = DayEntry(
                id=generate_id(),
                date=entry_date,
                lunch_type=lunch_type,
                dinner_type=dinner_type,
                lunch_price=None,
                dinner_price=None,
                notes="",
                created_at=timestamp,
                updated_at=timestamp,
            )
            async with self._locked(entry_date):
                await self.backend.save_entry(entry)
            seeded.append(entry)

        await self.update_settings(SettingsPatch(has_demo_data=True))
        logger.info(f"Seeded {len(seeded)} demo entries")
        return seeded
