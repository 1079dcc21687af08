"""Local-first JSONL store backend.

Layout under ``root``::

    legacy/produce.jsonl   legacy produce documents
    farmers.jsonl          farmer documents
    rooms.jsonl            room documents (capacity, currentOccupancy)
    stockings.jsonl        canonical stockings written by the migration
    claims/<id>.claim      per-record migration claims (id percent-encoded)

Documents keep the field names used by the rest of the cold-storage system
(``_id``, ``produceType``, ``currentOccupancy`` ...). Every mutation rewrites the
affected file through a temporary file and an atomic rename.
"""

from __future__ import annotations

import json
import os
import uuid
from pathlib import Path
from typing import Any
from urllib.parse import quote

from loguru import logger

from coldstore.models import CanonicalRecord, RoomAggregate

from .base import CanonicalStore, ClaimStore, LegacyStore, MigrationStores, RoomStore
from .errors import RecordNotFoundError, StoreConnectionError, StoreError

PRODUCE_FILE = Path("legacy") / "produce.jsonl"
FARMERS_FILE = Path("farmers.jsonl")
ROOMS_FILE = Path("rooms.jsonl")
STOCKINGS_FILE = Path("stockings.jsonl")
CLAIMS_DIR = Path("claims")


def read_jsonl(path: Path) -> list[dict[str, Any]]:
    """Read a JSONL file; a missing file reads as empty."""

    if not path.exists():
        return []
    rows: list[dict[str, Any]] = []
    with path.open("r", encoding="utf-8") as fh:
        for line_number, line in enumerate(fh, start=1):
            if not line.strip():
                continue
            try:
                row = json.loads(line)
            except json.JSONDecodeError as exc:
                raise StoreError(f"Invalid JSONL entry in {path}#{line_number}: {exc.msg}") from exc
            if not isinstance(row, dict):
                raise StoreError(f"Expected an object in {path}#{line_number}")
            rows.append(row)
    return rows


def write_jsonl(path: Path, rows: list[dict[str, Any]]) -> None:
    """Replace ``path`` with ``rows`` atomically."""

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as fh:
        for row in rows:
            fh.write(json.dumps(row, ensure_ascii=False) + "\n")
    os.replace(tmp_path, path)


def _document_id(row: dict[str, Any]) -> str | None:
    value = row.get("_id")
    if isinstance(value, dict) and "$oid" in value:
        value = value["$oid"]
    return None if value is None else str(value)


class LocalDataStore(LegacyStore, CanonicalStore, RoomStore, ClaimStore):
    """All migration collaborators backed by files under one data root."""

    def __init__(self, root: Path) -> None:
        self.root = root

    # ------------------------------------------------------------------
    # Connectivity
    def ping(self) -> None:
        if not self.root.is_dir():
            raise StoreConnectionError(f"Data root {self.root} does not exist or is not a directory")
        if not os.access(self.root, os.R_OK | os.W_OK):
            raise StoreConnectionError(f"Data root {self.root} is not readable and writable")

    # ------------------------------------------------------------------
    # Legacy store
    def iter_produce_rows(self) -> list[dict[str, Any]]:
        return read_jsonl(self.root / PRODUCE_FILE)

    def iter_farmer_rows(self) -> list[dict[str, Any]]:
        return read_jsonl(self.root / FARMERS_FILE)

    def iter_room_rows(self) -> list[dict[str, Any]]:
        return read_jsonl(self.root / ROOMS_FILE)

    def mark_migrated(self, legacy_id: str, *, status: str, note: str) -> None:
        path = self.root / PRODUCE_FILE
        rows = read_jsonl(path)
        for row in rows:
            if _document_id(row) != legacy_id:
                continue
            existing = row.get("notes")
            row["notes"] = f"{existing}\n{note}" if existing else note
            row["status"] = status
            write_jsonl(path, rows)
            logger.debug("Flagged legacy produce {} as {}", legacy_id, status)
            return
        raise RecordNotFoundError("legacy produce", legacy_id)

    # ------------------------------------------------------------------
    # Canonical store
    def insert(self, record: CanonicalRecord) -> str:
        record_id = uuid.uuid4().hex
        payload = record.to_payload()
        payload = {"_id": record_id, **payload}
        path = self.root / STOCKINGS_FILE
        write_jsonl(path, [*read_jsonl(path), payload])
        logger.debug("Inserted stocking {} for legacy produce {}", record_id, record.legacy_id)
        return record_id

    def delete(self, record_id: str) -> None:
        path = self.root / STOCKINGS_FILE
        rows = read_jsonl(path)
        remaining = [row for row in rows if _document_id(row) != record_id]
        if len(remaining) == len(rows):
            raise RecordNotFoundError("stocking", record_id)
        write_jsonl(path, remaining)
        logger.debug("Deleted stocking {}", record_id)

    # ------------------------------------------------------------------
    # Room store
    def get(self, room_id: str) -> RoomAggregate | None:
        for row in self.iter_room_rows():
            if _document_id(row) == room_id:
                return self._room_from_row(row)
        return None

    def adjust_occupancy(self, room_id: str, delta: float) -> RoomAggregate:
        path = self.root / ROOMS_FILE
        rows = read_jsonl(path)
        for row in rows:
            if _document_id(row) != room_id:
                continue
            current = float(row.get("currentOccupancy") or 0)
            row["currentOccupancy"] = current + delta
            write_jsonl(path, rows)
            return self._room_from_row(row)
        raise RecordNotFoundError("room", room_id)

    @staticmethod
    def _room_from_row(row: dict[str, Any]) -> RoomAggregate:
        return RoomAggregate(
            id=_document_id(row) or "",
            room_number=str(row.get("roomNumber") or ""),
            capacity=float(row.get("capacity") or 0),
            current_occupancy=float(row.get("currentOccupancy") or 0),
        )

    # ------------------------------------------------------------------
    # Claims
    def _claim_path(self, legacy_id: str) -> Path:
        return self.root / CLAIMS_DIR / f"{quote(legacy_id, safe='')}.claim"

    def claim(self, legacy_id: str, run_id: str) -> bool:
        path = self._claim_path(legacy_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            logger.debug("Claim for {} already held ({})", legacy_id, path)
            return False
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(run_id)
        return True

    def release(self, legacy_id: str, run_id: str) -> None:
        path = self._claim_path(legacy_id)
        if not path.exists():
            return
        holder = path.read_text(encoding="utf-8").strip()
        if holder != run_id:
            logger.warning("Not releasing claim on {}: held by run {}", legacy_id, holder)
            return
        path.unlink(missing_ok=True)

    def as_stores(self, *, claims: bool = True) -> MigrationStores:
        return MigrationStores(legacy=self, canonical=self, rooms=self, claims=self if claims else None)


__all__ = [
    "LocalDataStore",
    "read_jsonl",
    "write_jsonl",
    "PRODUCE_FILE",
    "FARMERS_FILE",
    "ROOMS_FILE",
    "STOCKINGS_FILE",
    "CLAIMS_DIR",
]
