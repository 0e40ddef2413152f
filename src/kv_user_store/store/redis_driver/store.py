import json
import redis.asyncio as redis
from redis.exceptions import WatchError

from kv_user_store.etc.consts import LOGGER
from kv_user_store.etc.enums import MutationType
from ..keys import KvKey, ScanRange, encode_key, decode_key, encode_cursor
from ..store import KvStore, KvEntry, KvCheck, KvMutation, ScanPage, CommitResult


class RedisKvStore(KvStore):
    """
    A Redis-based implementation of the KvStore.

    Every key is a Redis hash holding the JSON value and its versionstamp.
    A sorted set of encoded keys, all with score 0, keeps them in
    lexicographic order for prefix scans. Commits run under WATCH on the
    checked keys, so a concurrent writer aborts the transaction.
    """
    def __init__(self,
                 client: redis.Redis,
                 *,
                 namespace: str = 'kv',
                 page_size: int | None = None,
                 ):
        """
        A Redis-based implementation of the KvStore.
        :param client: Redis client, created with decode_responses=True.
        :param namespace: Prefix for every Redis key written by this store.
        :param page_size: Default maximum number of entries per scan page.
        """
        super().__init__(page_size=page_size)

        self._db = client
        self.namespace = namespace

    @property
    def db(self) -> redis.Redis:
        """
        Get the Redis database instance.
        :return: The Redis database instance.
        """
        self.ensure_open()
        return self._db

    @property
    def index_key(self) -> str:
        return f'{self.namespace}:index'

    @property
    def counter_key(self) -> str:
        return f'{self.namespace}:versionstamp'

    def record_key(self, encoded_key: str) -> str:
        return f'{self.namespace}:record:{encoded_key}'

    async def open(self):
        if self.is_open:
            return

        try:
            await self._db.ping()
        except Exception:
            LOGGER.error('Could not connect to Redis key-value store, namespace=%s', self.namespace)
            await self._db.aclose()
            raise

        await super().open()

        LOGGER.info('Connected to Redis key-value store, namespace=%s', self.namespace)

    async def close(self):
        if not self.is_open:
            return

        await super().close()
        await self._db.aclose()

        LOGGER.info('Closed Redis key-value store, namespace=%s', self.namespace)

    async def _read_records(self, encoded_keys: list[str]) -> list[tuple[dict | None, str | None]]:
        if not encoded_keys:
            return []

        async with self.db.pipeline(transaction=False) as pipe:
            for encoded in encoded_keys:
                pipe.hmget(self.record_key(encoded), 'value', 'versionstamp')
            results = await pipe.execute()

        records = []
        for value, versionstamp in results:
            if value is None:
                records.append((None, None))
            else:
                records.append((json.loads(value), versionstamp))

        return records

    async def get_many(self, keys: list[KvKey]) -> list[KvEntry]:
        records = await self._read_records([encode_key(key) for key in keys])

        return [
            KvEntry(key=key, value=value, versionstamp=versionstamp)
            for key, (value, versionstamp) in zip(keys, records)
        ]

    async def scan(self,
                   prefix: KvKey,
                   cursor: str | None = None,
                   limit: int | None = None,
                   ) -> ScanPage:
        limit = limit or self.page_size
        scan_range = ScanRange(prefix, cursor)

        if scan_range.after is not None:
            lower = f'({scan_range.after}'
        elif scan_range.start:
            lower = f'[{scan_range.start}'
        else:
            lower = '-'
        upper = f'({scan_range.end}' if scan_range.end is not None else '+'

        # One extra key tells whether another page follows
        encoded_keys = await self.db.zrangebylex(
            self.index_key,
            lower,
            upper,
            start=0,
            num=limit + 1,
        )
        page_keys = encoded_keys[:limit]
        records = await self._read_records(page_keys)

        entries = []
        for encoded, (value, versionstamp) in zip(page_keys, records):
            # Deleted between the index read and the record read
            if value is None:
                continue
            entries.append(KvEntry(
                key=decode_key(encoded),
                value=value,
                versionstamp=versionstamp,
            ))

        next_cursor = None
        if len(encoded_keys) > limit:
            next_cursor = encode_cursor(page_keys[-1])

        return ScanPage(entries=entries, cursor=next_cursor)

    async def commit_atomic(self,
                            checks: list[KvCheck],
                            mutations: list[KvMutation],
                            ) -> CommitResult:
        checked_keys = [self.record_key(encode_key(check.key)) for check in checks]

        async with self.db.pipeline(transaction=True) as pipe:
            try:
                if checked_keys:
                    await pipe.watch(*checked_keys)

                for check, record_key in zip(checks, checked_keys):
                    current = await pipe.hget(record_key, 'versionstamp')

                    if current != check.versionstamp:
                        LOGGER.debug(
                            'Redis store commit rejected: key=%s, expected=%s, current=%s',
                            check.key,
                            check.versionstamp,
                            current,
                        )
                        return CommitResult(ok=False)

                versionstamp = format(await self.db.incr(self.counter_key), '020x')

                pipe.multi()
                for mutation in mutations:
                    encoded = encode_key(mutation.key)

                    if mutation.kind == MutationType.SET:
                        pipe.hset(
                            self.record_key(encoded),
                            mapping={
                                'value': json.dumps(mutation.value),
                                'versionstamp': versionstamp,
                            },
                        )
                        pipe.zadd(self.index_key, {encoded: 0})
                    else:
                        pipe.delete(self.record_key(encoded))
                        pipe.zrem(self.index_key, encoded)

                await pipe.execute()
            except WatchError:
                LOGGER.debug('Redis store commit rejected: watched key modified')
                return CommitResult(ok=False)

        LOGGER.debug(
            'Redis store commit accepted: versionstamp=%s, checks=%d, mutations=%d',
            versionstamp,
            len(checks),
            len(mutations),
        )

        return CommitResult(ok=True, versionstamp=versionstamp)
