"""
Backend selection, durability and storage failure tests
"""
from unittest.mock import patch

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from tiffin_tracker.app import create_store
from tiffin_tracker.config import Settings
from tiffin_tracker.exceptions import (
    ErrorKind,
    ImportMalformedError,
    InvalidDateError,
    InvalidPriceError,
    InvalidRangeError,
    error_kind,
)
from tiffin_tracker.schemas import DayEntryPatch, SettingsPatch
from tiffin_tracker.services.backends import InMemoryBackend, SqlAlchemyBackend, create_backend


def file_settings(tmp_path, **overrides):
    return Settings(DATABASE_URL=f"sqlite:///{tmp_path / 'tiffin.db'}", **overrides)


class TestCreateBackend:

    def test_memory(self):
        backend = create_backend(Settings(STORAGE_BACKEND="memory"))
        assert isinstance(backend, InMemoryBackend)

    async def test_sqlite(self, tmp_path):
        backend = create_backend(file_settings(tmp_path))
        assert isinstance(backend, SqlAlchemyBackend)
        await backend.close()

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown storage backend"):
            create_backend(Settings(STORAGE_BACKEND="redis"))

    async def test_configured_defaults_seed_settings_row(self):
        backend = create_backend(Settings(STORAGE_BACKEND="memory", DEFAULT_HALF_PRICE=35, DEFAULT_CURRENCY="USD"))
        s = await backend.get_settings()
        assert s.half_price == 35
        assert s.full_price == 60
        assert s.currency == "USD"


class TestDurability:

    async def test_data_survives_reopen(self, tmp_path):
        store = await create_store(file_settings(tmp_path))
        created = await store.upsert(DayEntryPatch(date="2024-03-01", lunch_type="Full", lunch_price=65))
        await store.update_settings(SettingsPatch(display_name="Meera"))
        await store.backend.close()

        reopened = await create_store(file_settings(tmp_path))
        assert await reopened.get_by_date("2024-03-01") == created
        assert (await reopened.get_settings()).display_name == "Meera"
        await reopened.backend.close()

    async def test_memory_store_bootstrap(self):
        store = await create_store(Settings(STORAGE_BACKEND="memory"))
        assert await store.get_all() == []
        assert (await store.get_settings()).currency == "INR"


class TestStorageFailure:

    async def test_engine_errors_propagate_unmodified(self, sql_backend):
        error = OperationalError("SELECT 1", {}, Exception("disk I/O error"))
        with patch("sqlalchemy.ext.asyncio.AsyncSession.execute", side_effect=error):
            with pytest.raises(OperationalError) as exc_info:
                await sql_backend.get_entry("2024-03-01")
        assert exc_info.value is error
        assert error_kind(exc_info.value) == ErrorKind.STORAGE_FAILURE

    async def test_failed_write_is_rolled_back(self, sql_backend):
        current = await sql_backend.get_settings()
        changed = current.model_copy(update={"currency": "EUR"})

        with patch("sqlalchemy.ext.asyncio.AsyncSession.commit", side_effect=OperationalError("COMMIT", {}, Exception("locked"))):
            with pytest.raises(OperationalError):
                await sql_backend.save_settings(changed)

        assert (await sql_backend.get_settings()).currency == "INR"


@pytest.mark.parametrize("exc, kind", [
    (InvalidDateError("x"), ErrorKind.INVALID_DATE),
    (InvalidPriceError("x"), ErrorKind.INVALID_PRICE),
    (InvalidRangeError("x"), ErrorKind.INVALID_RANGE),
    (ImportMalformedError("x"), ErrorKind.IMPORT_MALFORMED),
    (OSError("x"), ErrorKind.STORAGE_FAILURE),
    (KeyError("x"), ErrorKind.UNKNOWN),
])
def test_error_kind(exc, kind):
    assert error_kind(exc) == kind


def test_error_kind_of_mixed_validation_errors():
    with pytest.raises(ValidationError) as exc_info:
        DayEntryPatch(date="2024-02-30", lunch_type="Quarter")
    assert error_kind(exc_info.value) == ErrorKind.UNKNOWN
