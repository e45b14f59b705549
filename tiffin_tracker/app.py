"""
Application bootstrap: logging, backend selection and store creation
"""
import random
from typing import Optional

from tiffin_tracker.config import Settings, get_settings
from tiffin_tracker.services.backends import create_backend
from tiffin_tracker.services.entry_store import EntryStore
from tiffin_tracker.utils.logger import get_logger


async def create_store(settings: Optional[Settings] = None, rng: Optional[random.Random] = None) -> EntryStore:
    """Build the store once at startup; the backend is fixed for the process"""
    settings = settings or get_settings()
    logger = get_logger("tiffin_tracker")

    backend = create_backend(settings)
    await backend.initialize()

    store = EntryStore(backend, rng=rng)
    current = await store.get_settings()
    logger.info(
        f"{settings.APP_NAME} {settings.APP_VERSION} ready "
        f"(backend={settings.STORAGE_BACKEND}, currency={current.currency})"
    )
    return store
