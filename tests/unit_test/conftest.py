import pytest_asyncio

from kv_user_store.model import UserRepository
from kv_user_store.store.memory import MemoryKvStore


@pytest_asyncio.fixture
async def memory_store():
    async with MemoryKvStore(page_size=2) as store:
        yield store


@pytest_asyncio.fixture
async def repository(memory_store):
    return UserRepository(memory_store)
