"""Initialize database tables and the default settings row"""
import asyncio

from tiffin_tracker.app import create_store


async def init():
    store = await create_store()
    await store.backend.close()
    print("Database tables created successfully.")


if __name__ == "__main__":
    asyncio.run(init())
