from kv_user_store.etc.consts import LOGGER
from kv_user_store.etc.enums import KeySpace
from kv_user_store.etc.errors import EmailAlreadyInUseException, UserNotFoundException
from kv_user_store.store import KvStore, KvEntry, KvKey, CommitResult
from .user import User, Address


def user_key(user_id: str) -> KvKey:
    return KeySpace.USER.value, user_id


def user_by_email_key(email: str) -> KvKey:
    return KeySpace.USER_BY_EMAIL.value, email


def user_address_key(user_id: str) -> KvKey:
    return KeySpace.USER_ADDRESS.value, user_id


class UserRepository:
    """
    Users and their addresses on top of a transactional key-value store.

    Each user is stored twice, under its ID and under its email, and the
    address lives under the user ID. Every write reads the versionstamps of
    the keys it touches and commits only if none of them changed in the
    meantime. A rejected commit is returned to the caller, never retried.
    """
    def __init__(self, store: KvStore):
        """
        Users and their addresses on top of a transactional key-value store.
        :param store: An opened key-value store. The repository does not own
            its lifecycle.
        """
        self.store = store

    async def _commit_if_unchanged(self,
                                   check_keys: list[KvKey],
                                   *,
                                   writes: list[tuple[KvKey, dict]] = None,
                                   deletes: list[KvKey] = None,
                                   prefetched: list[KvEntry] = None,
                                   ) -> CommitResult:
        """
        Commit writes and deletes guarded by the current versionstamps of check_keys.
        :param check_keys: Keys that must be unchanged since they were read.
        :param writes: Key and value pairs to set.
        :param deletes: Keys to delete.
        :param prefetched: Entries the caller already read. Their versionstamps
            are used as-is instead of reading those keys again.
        :return: The commit result.
        """
        known = {entry.key: entry for entry in prefetched or []}
        missing = [key for key in check_keys if key not in known]

        if missing:
            for entry in await self.store.get_many(missing):
                known[entry.key] = entry

        operation = self.store.atomic()
        operation.check(*(known[key] for key in check_keys))

        for key, value in writes or []:
            operation.set(key, value)
        for key in deletes or []:
            operation.delete(key)

        result = await operation.commit()

        if not result:
            LOGGER.warning('Commit rejected by a concurrent modification of %s', check_keys)

        return result

    async def _save_user(self,
                         user: User,
                         address: Address | None = None,
                         ) -> CommitResult:
        primary_key = user_key(user.user_id)
        email_key = user_by_email_key(user.email)
        keys = [primary_key, email_key]
        if address is not None:
            keys.append(user_address_key(user.user_id))

        entries = await self.store.get_many(keys)
        primary, by_email = entries[0], entries[1]

        if by_email.value is not None and by_email.value['id'] != user.user_id:
            raise EmailAlreadyInUseException(
                f'Email {user.email} is already in use by another user.'
            )

        check_keys = list(keys)
        writes = [
            (primary_key, user.to_dict()),
            (email_key, user.to_dict()),
        ]
        deletes = []

        if address is not None:
            writes.append((user_address_key(user.user_id), address.to_dict()))

        # The email changed, so the index entry of the old email must go
        if primary.value is not None and primary.value['email'] != user.email:
            stale = await self.store.get(user_by_email_key(primary.value['email']))
            entries.append(stale)
            check_keys.append(stale.key)

            if stale.value is not None and stale.value['id'] == user.user_id:
                deletes.append(stale.key)

        return await self._commit_if_unchanged(
            check_keys,
            writes=writes,
            deletes=deletes,
            prefetched=entries,
        )

    async def upsert_user(self, user: User) -> CommitResult:
        """
        Create or replace a user, together with its email index entry.
        :param user: The user to store.
        :return: The commit result, rejected if a concurrent write touched the same keys.
        :raises EmailAlreadyInUseException: If the email belongs to another user.
        """
        return await self._save_user(user)

    async def update_user_and_address(self,
                                      user: User,
                                      address: Address,
                                      ) -> CommitResult:
        """
        Write a user and its address in one commit.
        :param user: The user to store.
        :param address: The address of the user.
        :return: The commit result, rejected if a concurrent write touched the same keys.
        :raises EmailAlreadyInUseException: If the email belongs to another user.
        """
        return await self._save_user(user, address)

    async def get_all_users(self) -> list[User]:
        """
        List every user, following the scan cursor until it runs out.
        The result is in key order and is not a consistent snapshot.
        :return: A list of users.
        """
        users = []
        cursor = None

        while True:
            page = await self.store.scan((KeySpace.USER.value,), cursor)
            users.extend(User.from_dict(entry.value) for entry in page.entries)

            cursor = page.cursor
            if cursor is None:
                break

        return users

    async def get_user_by_id(self, user_id: str) -> User | None:
        entry = await self.store.get(user_key(user_id))

        return User.from_dict(entry.value) if entry.value is not None else None

    async def get_user_by_email(self, email: str) -> User | None:
        entry = await self.store.get(user_by_email_key(email))

        return User.from_dict(entry.value) if entry.value is not None else None

    async def get_address_by_user_id(self, user_id: str) -> Address | None:
        entry = await self.store.get(user_address_key(user_id))

        return Address.from_dict(entry.value) if entry.value is not None else None

    async def delete_user_by_id(self, user_id: str) -> CommitResult:
        """
        Delete a user, its email index entry and its address in one commit.
        :param user_id: The ID of the user to delete.
        :return: The commit result, rejected if a concurrent write touched the same keys.
        :raises UserNotFoundException: If no user has this ID.
        """
        primary = await self.store.get(user_key(user_id))

        if primary.value is None:
            raise UserNotFoundException(f'User with ID {user_id} does not exist.')

        keys = [
            primary.key,
            user_by_email_key(primary.value['email']),
            user_address_key(user_id),
        ]

        result = await self._commit_if_unchanged(
            keys,
            deletes=keys,
            prefetched=[primary],
        )

        if result:
            LOGGER.info('Deleted user %s', user_id)

        return result
