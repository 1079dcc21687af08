"""Store interfaces and backends for the migration engine."""

from .base import CanonicalStore, ClaimStore, LegacyStore, MigrationStores, RoomStore
from .errors import RecordNotFoundError, StoreConnectionError, StoreError
from .local import LocalDataStore

__all__ = [
    "CanonicalStore",
    "ClaimStore",
    "LegacyStore",
    "LocalDataStore",
    "MigrationStores",
    "RecordNotFoundError",
    "RoomStore",
    "StoreConnectionError",
    "StoreError",
]
