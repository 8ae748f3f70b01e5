"""Local persistent state (device lifetime)."""

from pyrevenew.storage.identity import Identity, IdentityStore, LastLoggedTransactionStore
from pyrevenew.storage.kv import JsonFileKeyValueStore, KeyValueStore, MemoryKeyValueStore, open_store

__all__ = [
    "Identity",
    "IdentityStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "LastLoggedTransactionStore",
    "MemoryKeyValueStore",
    "open_store",
]
