"""Store abstractions consulted by the migration engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from coldstore.models import CanonicalRecord, RoomAggregate


class LegacyStore(ABC):
    """Read access to legacy produce (plus its references) and outcome flagging."""

    @abstractmethod
    def ping(self) -> None:
        """Raise :class:`StoreConnectionError` when the store is unreachable."""

    @abstractmethod
    def iter_produce_rows(self) -> list[dict[str, Any]]:
        """Return raw legacy produce documents in store order."""

    @abstractmethod
    def iter_farmer_rows(self) -> list[dict[str, Any]]:
        """Return raw farmer documents."""

    @abstractmethod
    def iter_room_rows(self) -> list[dict[str, Any]]:
        """Return raw room documents."""

    @abstractmethod
    def mark_migrated(self, legacy_id: str, *, status: str, note: str) -> None:
        """Set ``status`` on the legacy record and append ``note`` to its notes."""


class CanonicalStore(ABC):
    """Write access to canonical stockings."""

    @abstractmethod
    def insert(self, record: CanonicalRecord) -> str:
        """Persist ``record`` and return the identity assigned to it."""

    @abstractmethod
    def delete(self, record_id: str) -> None:
        """Remove a previously inserted record."""


class RoomStore(ABC):
    """Room aggregates whose occupancy follows migrated stockings."""

    @abstractmethod
    def get(self, room_id: str) -> RoomAggregate | None:
        """Return the room or ``None`` when it does not exist."""

    @abstractmethod
    def adjust_occupancy(self, room_id: str, delta: float) -> RoomAggregate:
        """Add ``delta`` kilograms to the occupancy counter and persist it."""


class ClaimStore(ABC):
    """Per-record mutual exclusion between concurrent migration runs."""

    @abstractmethod
    def claim(self, legacy_id: str, run_id: str) -> bool:
        """Try to claim ``legacy_id`` for ``run_id``; ``False`` if someone else holds it."""

    @abstractmethod
    def release(self, legacy_id: str, run_id: str) -> None:
        """Release a claim held by ``run_id``."""


@dataclass(frozen=True)
class MigrationStores:
    """Collaborators handed to the executor."""

    legacy: LegacyStore
    canonical: CanonicalStore
    rooms: RoomStore
    claims: ClaimStore | None = None


__all__ = [
    "CanonicalStore",
    "ClaimStore",
    "LegacyStore",
    "MigrationStores",
    "RoomStore",
]
