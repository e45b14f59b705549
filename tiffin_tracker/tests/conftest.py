"""
Test fixtures - in-memory SQLite backend, in-memory backend, and a store over each
"""
import itertools
import random
from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from tiffin_tracker.database import Base
from tiffin_tracker.schemas import DayEntry, UserSettings
from tiffin_tracker.services.backends import InMemoryBackend, SqlAlchemyBackend
from tiffin_tracker.services.entry_store import EntryStore


def make_clock(start=datetime(2024, 3, 1, 8, 0, 0)):
    """Clock that moves forward one second per call"""
    counter = itertools.count()

    def clock() -> str:
        moment = start + timedelta(seconds=next(counter))
        return moment.strftime("%Y-%m-%dT%H:%M:%S.000Z")

    return clock


def make_entry(date, lunch="None", dinner="None", lunch_price=None, dinner_price=None, notes=""):
    return DayEntry(
        id=f"id-{date}",
        date=date,
        lunch_type=lunch,
        dinner_type=dinner,
        lunch_price=lunch_price,
        dinner_price=dinner_price,
        notes=notes,
        created_at="2024-03-01T08:00:00.000Z",
        updated_at="2024-03-01T08:00:00.000Z",
    )


@pytest_asyncio.fixture()
async def sql_backend():
    """Fresh in-memory SQLite database for each test"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    backend = SqlAlchemyBackend(engine)
    await backend.initialize()

    yield backend

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture()
def memory_backend():
    return InMemoryBackend()


@pytest.fixture(params=["sqlite", "memory"])
def store(request, sql_backend, memory_backend):
    """EntryStore over each backend, with a seeded RNG and a stepping clock"""
    backend = sql_backend if request.param == "sqlite" else memory_backend
    return EntryStore(backend, rng=random.Random(42), clock=make_clock())


@pytest.fixture()
def settings():
    return UserSettings(half_price=50, full_price=60, currency="INR", display_name="User")


@pytest.fixture()
def entry():
    """Factory for DayEntry rows built in memory"""
    return make_entry
