import json
import uuid
import pytest
import pytest_asyncio
import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from unittest.mock import AsyncMock

from kv_user_store.etc.consts import SERVICE_CONFIG
from kv_user_store.model import User, UserRepository
from kv_user_store.store.redis_driver import RedisKvStore


@pytest_asyncio.fixture
async def redis_store():
    client = redis.Redis(
        host=SERVICE_CONFIG.redis_host,
        port=SERVICE_CONFIG.redis_port,
        db=SERVICE_CONFIG.redis_db,
        decode_responses=True,
    )
    store = RedisKvStore(client, namespace=f'test-{uuid.uuid4().hex}', page_size=2)

    try:
        await store.open()
    except (RedisConnectionError, OSError):
        pytest.skip('Redis server is not reachable')

    yield store

    async for key in client.scan_iter(match=f'{store.namespace}:*'):
        await client.delete(key)
    await store.close()


class TestRedisKvStore:
    @pytest.mark.asyncio
    async def test_set_get_delete(self, redis_store):
        result = await redis_store.atomic().set(('user', '1'), {'id': '1'}).commit()

        assert result

        entry = await redis_store.get(('user', '1'))

        assert entry.value == {'id': '1'}
        assert entry.versionstamp == result.versionstamp

        result = await redis_store.atomic().check(entry).delete(('user', '1')).commit()

        assert result
        assert (await redis_store.get(('user', '1'))).value is None

    @pytest.mark.asyncio
    async def test_stale_check_rejected(self, redis_store):
        stale = await redis_store.get(('user', '1'))
        await redis_store.atomic().set(('user', '1'), {'id': '1'}).commit()

        result = await redis_store.atomic() \
            .check(stale) \
            .set(('user', '1'), {'id': 'other'}) \
            .commit()

        assert not result
        assert (await redis_store.get(('user', '1'))).value == {'id': '1'}

    @pytest.mark.asyncio
    async def test_scan_pages_in_key_order(self, redis_store):
        operation = redis_store.atomic()
        for i in range(5):
            operation.set(('user', str(i)), {'id': str(i)})
        operation.set(('user_address', '0'), {'city': 'Zurich'})
        await operation.commit()

        keys = []
        cursor = None
        pages = 0
        while True:
            page = await redis_store.scan(('user',), cursor)
            keys.extend(e.key for e in page.entries)
            pages += 1
            cursor = page.cursor
            if cursor is None:
                break

        assert pages == 3
        assert keys == [('user', str(i)) for i in range(5)]

    @pytest.mark.asyncio
    async def test_repository_round_trip(self, redis_store):
        repository = UserRepository(redis_store)
        user = User(user_id='1', email='a@x.com', name='A', password='p')

        assert await repository.upsert_user(user)
        assert await repository.get_user_by_email('a@x.com') == user

        assert await repository.delete_user_by_id('1')
        assert await repository.get_user_by_id('1') is None
        assert await repository.get_all_users() == []

    @pytest.mark.asyncio
    async def test_write_between_watch_and_exec_rejected(self, redis_store, monkeypatch):
        await redis_store.atomic().set(('user', '1'), {'id': '1'}).commit()
        entry = await redis_store.get(('user', '1'))

        other_client = redis.Redis(
            host=SERVICE_CONFIG.redis_host,
            port=SERVICE_CONFIG.redis_port,
            db=SERVICE_CONFIG.redis_db,
            decode_responses=True,
        )
        record_key = redis_store.record_key('user\x001')
        original_pipeline = redis_store._db.pipeline

        def pipeline(*args, **kwargs):
            pipe = original_pipeline(*args, **kwargs)

            if kwargs.get('transaction'):
                original_hget = pipe.hget

                async def hget(name, key):
                    value = await original_hget(name, key)
                    # Lands after the versionstamp was read, before EXEC
                    await other_client.hset(record_key, mapping={
                        'value': json.dumps({'id': 'other'}),
                        'versionstamp': 'ffffffffffffffffffff',
                    })
                    return value

                pipe.hget = hget

            return pipe

        monkeypatch.setattr(redis_store._db, 'pipeline', pipeline)

        try:
            result = await redis_store.atomic() \
                .check(entry) \
                .set(('user', '1'), {'id': 'mine'}) \
                .set(('user', '2'), {'id': 'mine'}) \
                .commit()
        finally:
            monkeypatch.undo()
            await other_client.aclose()

        assert not result
        assert result.versionstamp is None
        assert (await redis_store.get(('user', '1'))).value == {'id': 'other'}
        assert (await redis_store.get(('user', '2'))).value is None


class TestRedisKvStoreLifecycle:
    @pytest.mark.asyncio
    async def test_failed_open_closes_client(self):
        client = AsyncMock()
        client.ping.side_effect = RedisConnectionError('unreachable')
        store = RedisKvStore(client, namespace='test')

        with pytest.raises(RedisConnectionError):
            await store.open()

        client.aclose.assert_awaited_once()
        assert not store.is_open
