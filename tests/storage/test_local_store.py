from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from coldstore.models import CanonicalRecord
from coldstore.storage import LocalDataStore, RecordNotFoundError, StoreConnectionError
from coldstore.storage.local import PRODUCE_FILE, STOCKINGS_FILE

from tests.utils import read_jsonl, room_occupancy, write_jsonl


def _record() -> CanonicalRecord:
    return CanonicalRecord(
        legacy_id="legacy-1",
        room_id="room-a",
        owner_id="farmer-1",
        produce_type="Tomatoes",
        quantity=100.0,
        estimated_value=5000.0,
        condition="Fresh",
        target_price=50.0,
        current_market_price=50.0,
        approved_by="admin-1",
        approved_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        stocked_at=None,
        notes="Migrated",
    )


def test_ping_requires_existing_root(tmp_path: Path) -> None:
    with pytest.raises(StoreConnectionError):
        LocalDataStore(tmp_path / "missing").ping()
    LocalDataStore(tmp_path).ping()


def test_insert_and_delete_stocking(data_root: Path) -> None:
    store = LocalDataStore(data_root)

    record_id = store.insert(_record())
    rows = read_jsonl(data_root / STOCKINGS_FILE)
    assert [row["_id"] for row in rows] == [record_id]
    assert rows[0]["produceType"] == "Tomatoes"
    assert rows[0]["approvalStatus"] == "Approved"

    store.delete(record_id)
    assert read_jsonl(data_root / STOCKINGS_FILE) == []
    with pytest.raises(RecordNotFoundError):
        store.delete(record_id)


def test_mark_migrated_appends_note(data_root: Path) -> None:
    store = LocalDataStore(data_root)
    rows = read_jsonl(data_root / PRODUCE_FILE)
    rows[0]["notes"] = "harvested early"
    write_jsonl(data_root / PRODUCE_FILE, rows)

    store.mark_migrated("legacy-1", status="Removed", note="[MIGRATED to Stocking: abc]")
    store.mark_migrated("legacy-2", status="Removed", note="[MIGRATED to Stocking: def]")

    updated = {row["_id"]: row for row in read_jsonl(data_root / PRODUCE_FILE)}
    assert updated["legacy-1"]["status"] == "Removed"
    assert updated["legacy-1"]["notes"] == "harvested early\n[MIGRATED to Stocking: abc]"
    assert updated["legacy-2"]["notes"] == "[MIGRATED to Stocking: def]"
    assert updated["legacy-3"]["status"] == "Listed"

    with pytest.raises(RecordNotFoundError):
        store.mark_migrated("nope", status="Removed", note="x")


def test_adjust_occupancy(data_root: Path) -> None:
    store = LocalDataStore(data_root)

    room = store.adjust_occupancy("room-a", 150)

    assert room.current_occupancy == 350
    assert room_occupancy(data_root, "room-a") == 350
    assert store.get("room-a") == room
    assert store.get("missing") is None
    with pytest.raises(RecordNotFoundError):
        store.adjust_occupancy("missing", 1)


def test_claims_are_exclusive_per_record(data_root: Path) -> None:
    store = LocalDataStore(data_root)

    assert store.claim("legacy-1", "run-a")
    assert not store.claim("legacy-1", "run-b")
    assert store.claim("legacy-2", "run-b")

    store.release("legacy-1", "run-b")
    assert not store.claim("legacy-1", "run-b")

    store.release("legacy-1", "run-a")
    assert store.claim("legacy-1", "run-b")


def test_claim_path_is_sanitised(data_root: Path) -> None:
    store = LocalDataStore(data_root)
    assert store.claim("../../escape", "run-a")
    claims = list((data_root / "claims").iterdir())
    assert len(claims) == 1
    assert claims[0].parent == data_root / "claims"


def test_claims_do_not_collide_for_similar_ids(data_root: Path) -> None:
    store = LocalDataStore(data_root)

    assert store.claim("a/b", "run-a")
    assert store.claim("a_b", "run-a")
    assert len(list((data_root / "claims").iterdir())) == 2


def test_insert_rewrites_file_and_keeps_existing_rows(data_root: Path) -> None:
    write_jsonl(data_root / STOCKINGS_FILE, [{"_id": "existing", "produceType": "Kale"}])
    store = LocalDataStore(data_root)

    record_id = store.insert(_record())

    rows = read_jsonl(data_root / STOCKINGS_FILE)
    assert [row["_id"] for row in rows] == ["existing", record_id]
    assert not (data_root / "stockings.jsonl.tmp").exists()
