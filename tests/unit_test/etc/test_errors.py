from kv_user_store.etc.errors import KvUserStoreException, UserNotFoundException, \
    EmailAlreadyInUseException, CommitRejectedException, InvalidCursorException


class TestErrors:
    def test_defaults(self):
        e = UserNotFoundException()

        assert isinstance(e, KvUserStoreException)
        assert e.message == 'User not found.'
        assert e.status_code == 404

    def test_custom_message(self):
        e = EmailAlreadyInUseException('Email a@x.com is taken')

        assert str(e) == 'Email a@x.com is taken'
        assert e.status_code == 409

    def test_status_codes(self):
        assert CommitRejectedException().status_code == 409
        assert InvalidCursorException().status_code == 400
