"""
Encoding of composite keys and scan cursors.

A key is a tuple of string parts. Its encoded form joins the parts with NUL,
so that ordering the encoded strings orders keys part by part and every key
under a prefix sorts between ``prefix + NUL`` and ``prefix + SOH``.
"""
import base64
import binascii

from kv_user_store.etc.errors import InvalidCursorException


KEY_SEPARATOR = '\x00'
PREFIX_UPPER_BOUND = '\x01'

KvKey = tuple[str, ...]


def encode_key(key: KvKey) -> str:
    """
    Encode a composite key into its storage string.
    :param key: Tuple of string key parts.
    :return: The encoded key.
    :raises ValueError: If the key is empty or a part contains the separator.
    :raises TypeError: If a part is not a string.
    """
    if not key:
        raise ValueError('Key must have at least one part')

    for part in key:
        if not isinstance(part, str):
            raise TypeError(f'Key parts must be strings, got {type(part).__name__}')
        if KEY_SEPARATOR in part:
            raise ValueError(f'Key part {part!r} contains a NUL character')

    return KEY_SEPARATOR.join(key)


def decode_key(encoded: str) -> KvKey:
    return tuple(encoded.split(KEY_SEPARATOR))


def encode_cursor(encoded_key: str) -> str:
    return base64.urlsafe_b64encode(encoded_key.encode('utf-8')).decode('ascii')


def decode_cursor(cursor: str) -> str:
    try:
        return base64.urlsafe_b64decode(cursor.encode('ascii')).decode('utf-8')
    except (binascii.Error, UnicodeError) as e:
        raise InvalidCursorException(f'Malformed scan cursor {cursor!r}') from e


class ScanRange:
    """
    Bounds of a prefix scan over encoded keys.

    Matching keys satisfy ``start <= key < end`` (``end`` is None for an
    unbounded scan) and, when resuming, ``key > after``.
    """
    def __init__(self,
                 prefix: KvKey,
                 cursor: str | None = None,
                 ):
        """
        Bounds of a prefix scan over encoded keys.
        :param prefix: Key prefix to scan, empty for every key.
        :param cursor: Cursor returned by a previous page, if any.
        :raises InvalidCursorException: If the cursor does not belong to the prefix.
        """
        if prefix:
            encoded = encode_key(prefix)
            self.start = encoded + KEY_SEPARATOR
            self.end = encoded + PREFIX_UPPER_BOUND
        else:
            self.start = ''
            self.end = None

        self.after = None

        if cursor is not None:
            after = decode_cursor(cursor)

            if not self.contains(after):
                raise InvalidCursorException(
                    f'Scan cursor {cursor!r} does not belong to prefix {prefix!r}'
                )

            self.after = after

    def contains(self, encoded_key: str) -> bool:
        if encoded_key < self.start:
            return False
        if self.end is not None and encoded_key >= self.end:
            return False
        return True

    def accepts(self, encoded_key: str) -> bool:
        """
        Whether a key belongs to the remaining part of the scan.
        :param encoded_key: The encoded key to test.
        :return: True if the key is inside the prefix and past the cursor.
        """
        if self.after is not None and encoded_key <= self.after:
            return False

        return self.contains(encoded_key)
