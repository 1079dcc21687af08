"""Exceptions raised by store backends."""

from __future__ import annotations


class StoreError(RuntimeError):
    """Base class for failures reported by a backing store."""


class StoreConnectionError(StoreError):
    """The backing store cannot be reached."""


class RecordNotFoundError(StoreError):
    """A referenced document does not exist."""

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} '{record_id}' not found")
        self.kind = kind
        self.record_id = record_id


__all__ = ["StoreError", "StoreConnectionError", "RecordNotFoundError"]
