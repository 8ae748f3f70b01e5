"""Anonymous device identity and the last-logged transaction slot."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from pyrevenew._constants import LAST_LOGGED_TRANSACTION_KEY, USER_ID_KEY
from pyrevenew.storage.kv import KeyValueStore


@dataclass(frozen=True)
class Identity:
    user_id: str
    is_first_launch: bool
    """True only for the call that created ``user_id``."""


class IdentityStore:
    """Persists a stable anonymous user id.

    Whether the id survives an uninstall depends on where the backing store
    lives; the SDK does not try to recover it.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def get_or_create_identity(self) -> Identity:
        existing = self._store.get(USER_ID_KEY)
        if existing:
            return Identity(user_id=existing, is_first_launch=False)
        user_id = str(uuid.uuid4()).upper()
        self._store.set(USER_ID_KEY, user_id)
        return Identity(user_id=user_id, is_first_launch=True)


class LastLoggedTransactionStore:
    """The id of the most recently reported transaction.

    A single value, not a seen-set: it only prevents reporting the same
    transaction twice in a row.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def get(self) -> str | None:
        return self._store.get(LAST_LOGGED_TRANSACTION_KEY)

    def set(self, transaction_id: str) -> None:
        self._store.set(LAST_LOGGED_TRANSACTION_KEY, transaction_id)
