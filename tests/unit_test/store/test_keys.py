import pytest

from kv_user_store.etc.errors import InvalidCursorException
from kv_user_store.store.keys import ScanRange, encode_key, decode_key, encode_cursor, \
    decode_cursor


class TestKeyEncoding:
    def test_encode_decode(self):
        encoded = encode_key(('user_by_email', 'a@x.com'))

        assert encoded == 'user_by_email\x00a@x.com'
        assert decode_key(encoded) == ('user_by_email', 'a@x.com')

    def test_empty_key(self):
        with pytest.raises(ValueError):
            encode_key(())

    def test_separator_in_part(self):
        with pytest.raises(ValueError):
            encode_key(('user', 'a\x00b'))

    def test_non_string_part(self):
        with pytest.raises(TypeError):
            encode_key(('user', 1))

    def test_prefix_orders_before_longer_space_name(self):
        # ('user', ...) keys must not interleave with ('user_address', ...) keys
        assert encode_key(('user', 'zzz')) < encode_key(('user_address', '0'))


class TestCursor:
    def test_round_trip(self):
        encoded = encode_key(('user', 'ü-1'))

        assert decode_cursor(encode_cursor(encoded)) == encoded

    def test_malformed(self):
        with pytest.raises(InvalidCursorException):
            decode_cursor('ÿ')


class TestScanRange:
    def test_prefix_bounds(self):
        scan_range = ScanRange(('user',))

        assert scan_range.accepts(encode_key(('user', '1')))
        assert not scan_range.accepts(encode_key(('user',)))
        assert not scan_range.accepts(encode_key(('user_by_email', 'a@x.com')))
        assert not scan_range.accepts(encode_key(('user_address', '1')))

    def test_empty_prefix_accepts_everything(self):
        scan_range = ScanRange(())

        assert scan_range.accepts(encode_key(('user', '1')))
        assert scan_range.accepts(encode_key(('user_address', '1')))

    def test_cursor_skips_seen_keys(self):
        cursor = encode_cursor(encode_key(('user', '2')))
        scan_range = ScanRange(('user',), cursor)

        assert not scan_range.accepts(encode_key(('user', '1')))
        assert not scan_range.accepts(encode_key(('user', '2')))
        assert scan_range.accepts(encode_key(('user', '3')))

    def test_cursor_from_other_prefix(self):
        cursor = encode_cursor(encode_key(('user_address', '1')))

        with pytest.raises(InvalidCursorException):
            ScanRange(('user',), cursor)
