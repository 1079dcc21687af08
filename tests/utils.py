"""Helpers for building local data layouts in tests."""

from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from loguru import logger

from coldstore.storage.local import FARMERS_FILE, PRODUCE_FILE, ROOMS_FILE, STOCKINGS_FILE


@contextmanager
def logger_to_stderr(level: str = "INFO"):
    """Temporarily route Loguru output to stderr for assertion."""

    handler_id = logger.add(sys.stderr, level=level)
    try:
        yield
    finally:
        logger.remove(handler_id)


def produce_doc(legacy_id: str, **overrides: Any) -> dict[str, Any]:
    doc: dict[str, Any] = {
        "_id": legacy_id,
        "farmer": "farmer-1",
        "room": "room-a",
        "produceType": "Tomatoes",
        "quantity": 100,
        "currentMarketPrice": 50,
        "condition": "Fresh",
        "storageDate": "2024-03-01T08:00:00Z",
        "createdAt": "2024-02-28T10:00:00Z",
        "status": "Active",
        "sold": False,
    }
    doc.update(overrides)
    return doc


DEFAULT_FARMERS: list[dict[str, Any]] = [
    {"_id": "farmer-1", "firstName": "Wanjiku", "lastName": "Kamau"},
    {"_id": "admin-1", "firstName": "Cold", "lastName": "Admin"},
]
DEFAULT_ROOMS: list[dict[str, Any]] = [
    {"_id": "room-a", "roomNumber": "A1", "capacity": 1000, "currentOccupancy": 200},
    {"_id": "room-b", "roomNumber": "B1", "capacity": 300, "currentOccupancy": 250},
]


def default_produce() -> list[dict[str, Any]]:
    return [
        produce_doc("legacy-1"),
        produce_doc("legacy-2", produceType="potatoes", quantity=250, condition="Good", currentMarketPrice=30),
        produce_doc("legacy-3", produceType="Onions", quantity=40, room="room-b", status="Listed"),
    ]


def write_jsonl(path: Path, rows: list[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        for row in rows:
            fh.write(json.dumps(row) + "\n")


def read_jsonl(path: Path) -> list[dict[str, Any]]:
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def seed_layout(
    root: Path,
    *,
    produce: list[dict[str, Any]] | None = None,
    farmers: list[dict[str, Any]] | None = None,
    rooms: list[dict[str, Any]] | None = None,
) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    write_jsonl(root / PRODUCE_FILE, default_produce() if produce is None else produce)
    write_jsonl(root / FARMERS_FILE, DEFAULT_FARMERS if farmers is None else farmers)
    write_jsonl(root / ROOMS_FILE, DEFAULT_ROOMS if rooms is None else rooms)
    return root


def snapshot(root: Path) -> dict[str, str]:
    """Raw contents of every store file, for asserting that nothing changed."""

    files = {}
    for relative in (PRODUCE_FILE, FARMERS_FILE, ROOMS_FILE, STOCKINGS_FILE):
        path = root / relative
        files[str(relative)] = path.read_text(encoding="utf-8") if path.exists() else ""
    return files


def room_occupancy(root: Path, room_id: str) -> float:
    for row in read_jsonl(root / ROOMS_FILE):
        if row["_id"] == room_id:
            return float(row["currentOccupancy"])
    raise KeyError(room_id)
