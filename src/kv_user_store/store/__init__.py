from .keys import KvKey, encode_key, decode_key, encode_cursor, decode_cursor
from .store import KvStore, KvEntry, KvCheck, KvMutation, ScanPage, CommitResult, \
    AtomicOperation, create_store
