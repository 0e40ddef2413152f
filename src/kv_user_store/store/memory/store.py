import asyncio
from copy import deepcopy

from kv_user_store.etc.consts import LOGGER
from kv_user_store.etc.enums import MutationType
from ..keys import KvKey, ScanRange, encode_key, decode_key, encode_cursor
from ..store import KvStore, KvEntry, KvCheck, KvMutation, ScanPage, CommitResult


class MemoryKvStore(KvStore):
    """
    In-memory implementation of the KvStore interface.
    This is intended for development and testing purposes only.
    Do not use in production.
    """
    def __init__(self,
                 *,
                 page_size: int | None = None,
                 ):
        super().__init__(page_size=page_size)

        # encoded key -> (value, versionstamp)
        self._data: dict[str, tuple[dict, str]] = {}
        self._version = 0

    async def get_many(self, keys: list[KvKey]) -> list[KvEntry]:
        self.ensure_open()

        entries = []
        for key in keys:
            record = self._data.get(encode_key(key))

            if record is None:
                entries.append(KvEntry(key=key, value=None, versionstamp=None))
            else:
                value, versionstamp = record
                entries.append(KvEntry(key=key, value=deepcopy(value), versionstamp=versionstamp))

        # Suspend like a network round trip would, after the snapshot is taken
        await asyncio.sleep(0)

        return entries

    async def scan(self,
                   prefix: KvKey,
                   cursor: str | None = None,
                   limit: int | None = None,
                   ) -> ScanPage:
        self.ensure_open()

        limit = limit or self.page_size
        scan_range = ScanRange(prefix, cursor)

        matching = sorted(k for k in self._data if scan_range.accepts(k))
        page_keys = matching[:limit]

        entries = []
        for encoded in page_keys:
            value, versionstamp = self._data[encoded]
            entries.append(KvEntry(
                key=decode_key(encoded),
                value=deepcopy(value),
                versionstamp=versionstamp,
            ))

        next_cursor = None
        if len(matching) > limit:
            next_cursor = encode_cursor(page_keys[-1])

        LOGGER.debug(
            'Memory store scan: prefix=%s, returned=%d, more=%s',
            prefix,
            len(entries),
            next_cursor is not None,
        )

        await asyncio.sleep(0)

        return ScanPage(entries=entries, cursor=next_cursor)

    async def commit_atomic(self,
                            checks: list[KvCheck],
                            mutations: list[KvMutation],
                            ) -> CommitResult:
        self.ensure_open()

        # No awaits until the mutations are applied, so the commit is atomic
        # with respect to every other coroutine on the loop.
        for check in checks:
            record = self._data.get(encode_key(check.key))
            current = record[1] if record else None

            if current != check.versionstamp:
                LOGGER.debug(
                    'Memory store commit rejected: key=%s, expected=%s, current=%s',
                    check.key,
                    check.versionstamp,
                    current,
                )
                return CommitResult(ok=False)

        self._version += 1
        versionstamp = format(self._version, '020x')

        for mutation in mutations:
            encoded = encode_key(mutation.key)

            if mutation.kind == MutationType.SET:
                self._data[encoded] = (deepcopy(mutation.value), versionstamp)
            else:
                self._data.pop(encoded, None)

        LOGGER.debug(
            'Memory store commit accepted: versionstamp=%s, checks=%d, mutations=%d',
            versionstamp,
            len(checks),
            len(mutations),
        )

        return CommitResult(ok=True, versionstamp=versionstamp)
