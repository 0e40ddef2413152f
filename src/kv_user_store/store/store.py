from dataclasses import dataclass, field

from kv_user_store.etc.consts import LOGGER, SERVICE_CONFIG, ServiceConfig
from kv_user_store.etc.enums import MutationType, StoreDriver
from kv_user_store.etc.errors import ConfigurationParsingException, StoreNotOpenException
from .keys import KvKey, encode_key


@dataclass(frozen=True)
class KvEntry:
    """
    A key read from the store. Absent keys have value and versionstamp None.
    """
    key: KvKey
    value: dict | None
    versionstamp: str | None


@dataclass(frozen=True)
class KvCheck:
    """
    Assertion that a key still carries the given versionstamp at commit time.
    """
    key: KvKey
    versionstamp: str | None


@dataclass(frozen=True)
class KvMutation:
    key: KvKey
    kind: MutationType
    value: dict | None = None


@dataclass(frozen=True)
class ScanPage:
    """
    One page of a prefix scan. cursor is None once the scan is exhausted.
    """
    entries: list[KvEntry] = field(default_factory=list)
    cursor: str | None = None


@dataclass(frozen=True)
class CommitResult:
    """
    Outcome of an atomic commit, truthy when the commit was accepted.
    """
    ok: bool
    versionstamp: str | None = None

    def __bool__(self):
        return self.ok


class AtomicOperation:
    """
    Builder for an atomic commit made of version checks and mutations.

    Nothing is sent to the store until commit() is awaited, and the store
    applies either every mutation or none of them.
    """
    def __init__(self, store: 'KvStore'):
        self.store = store
        self.checks: list[KvCheck] = []
        self.mutations: list[KvMutation] = []

    def check(self, *entries: KvEntry | KvCheck) -> 'AtomicOperation':
        """
        Assert that each key is unchanged since it was read.
        :param entries: Entries returned by a read, or explicit checks.
        :return: This operation, for chaining.
        """
        for entry in entries:
            encode_key(entry.key)
            self.checks.append(KvCheck(key=entry.key, versionstamp=entry.versionstamp))

        return self

    def set(self, key: KvKey, value: dict) -> 'AtomicOperation':
        encode_key(key)
        self.mutations.append(KvMutation(key=key, kind=MutationType.SET, value=value))

        return self

    def delete(self, key: KvKey) -> 'AtomicOperation':
        encode_key(key)
        self.mutations.append(KvMutation(key=key, kind=MutationType.DELETE))

        return self

    async def commit(self) -> CommitResult:
        """
        Submit the checks and mutations as one indivisible unit.
        :return: Accepted result with the new versionstamp, or a rejected result
            if any check failed.
        """
        return await self.store.commit_atomic(self.checks, self.mutations)


class KvStore:
    """
    Abstract transactional key-value store with versioned entries.
    """
    def __init__(self,
                 *,
                 page_size: int | None = None,
                 ):
        """
        Abstract transactional key-value store with versioned entries.
        :param page_size: Default maximum number of entries per scan page.
        """
        self.page_size = page_size or SERVICE_CONFIG.scan_page_size
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def ensure_open(self):
        if not self._open:
            raise StoreNotOpenException(
                f'{self.__class__.__name__} must be opened before use.'
            )

    async def open(self):
        """
        Open the store. Opening an open store does nothing.
        """
        self._open = True

    async def close(self):
        """
        Close the store. Closing a closed store does nothing.
        """
        self._open = False

    async def __aenter__(self) -> 'KvStore':
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def get(self, key: KvKey) -> KvEntry:
        """
        Read a single key.
        :param key: The key to read.
        :return: The entry, with value None if the key does not exist.
        """
        entries = await self.get_many([key])

        return entries[0]

    async def get_many(self, keys: list[KvKey]) -> list[KvEntry]:
        """
        Read several keys in one round trip.
        :param keys: The keys to read.
        :return: One entry per key, in the order of the input keys.
        """
        raise NotImplementedError

    async def scan(self,
                   prefix: KvKey,
                   cursor: str | None = None,
                   limit: int | None = None,
                   ) -> ScanPage:
        """
        List entries under a key prefix, in ascending key order.
        :param prefix: Key prefix. Only keys strictly longer than it match.
        :param cursor: Cursor from the previous page, None for the first page.
        :param limit: Maximum entries in the page, defaults to the store page size.
        :return: A page of entries and the cursor for the next page.
        :raises InvalidCursorException: If the cursor is malformed.
        """
        raise NotImplementedError

    def atomic(self) -> AtomicOperation:
        return AtomicOperation(self)

    async def commit_atomic(self,
                            checks: list[KvCheck],
                            mutations: list[KvMutation],
                            ) -> CommitResult:
        """
        Apply mutations if every check holds. Called by AtomicOperation.commit().
        :param checks: Expected versionstamps, None meaning the key must be absent.
        :param mutations: Sets and deletes, applied in order.
        :return: The commit result.
        """
        raise NotImplementedError


def create_store(config: ServiceConfig | None = None) -> KvStore:
    """
    Build the key-value store selected by configuration. The store is
    returned closed; the caller owns its lifecycle.
    :param config: Service configuration, defaults to the loaded one.
    :return: KvStore instance based on the configuration.
    """
    config = config or SERVICE_CONFIG

    try:
        driver = StoreDriver(config.store_driver)
    except ValueError as e:
        raise ConfigurationParsingException(
            f'Unsupported store driver: {config.store_driver}'
        ) from e

    LOGGER.debug('Creating %s key-value store', driver.value)

    if driver == StoreDriver.REDIS:
        import redis.asyncio as redis
        from .redis_driver import RedisKvStore

        redis_client = redis.Redis(
            host=config.redis_host,
            port=config.redis_port,
            db=config.redis_db,
            decode_responses=True,
        )

        return RedisKvStore(
            client=redis_client,
            namespace=config.redis_namespace,
            page_size=config.scan_page_size,
        )

    from .memory import MemoryKvStore

    return MemoryKvStore(page_size=config.scan_page_size)
