"""Selection of legacy produce eligible for migration."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import polars as pl
from loguru import logger

from coldstore.models import Farmer, LegacyRecord, RoomAggregate
from coldstore.storage.base import LegacyStore

from .errors import SelectionError

DEFAULT_STATUSES: tuple[str, ...] = ("Active", "Listed")
# Values the legacy schema fills in when a document omits them.
LEGACY_DEFAULT_STATUS = "Active"

EPOCH_MS_MIN_DIGITS = 10

PRODUCE_SCHEMA: dict[str, pl.DataType] = {
    "id": pl.String(),
    "owner_id": pl.String(),
    "room_id": pl.String(),
    "produce_type": pl.String(),
    "variety": pl.String(),
    "quantity": pl.Float64(),
    "current_market_price": pl.Float64(),
    "expected_peak_price": pl.Float64(),
    "minimum_selling_price": pl.Float64(),
    "condition": pl.String(),
    "storage_date": pl.String(),
    "created_at": pl.String(),
    "status": pl.String(),
    "sold": pl.Boolean(),
    "notes": pl.String(),
}
FARMER_SCHEMA: dict[str, pl.DataType] = {
    "owner_id": pl.String(),
    "owner_first_name": pl.String(),
    "owner_last_name": pl.String(),
}
ROOM_SCHEMA: dict[str, pl.DataType] = {
    "room_id": pl.String(),
    "room_number": pl.String(),
    "room_capacity": pl.Float64(),
    "room_occupancy": pl.Float64(),
}


@dataclass(frozen=True)
class EligibilityCriteria:
    """Predicate deciding which legacy records are migrated."""

    statuses: tuple[str, ...] = DEFAULT_STATUSES
    exclude_sold: bool = True
    legacy_ids: frozenset[str] | None = field(default=None)

    def expression(self) -> pl.Expr:
        predicate = pl.col("status").is_in(list(self.statuses))
        if self.exclude_sold:
            predicate = predicate & ~pl.col("sold")
        if self.legacy_ids is not None:
            predicate = predicate & pl.col("id").is_in(sorted(self.legacy_ids))
        return predicate


class LegacySelector:
    """Query the legacy store and resolve owner/room references."""

    def __init__(self, store: LegacyStore, criteria: EligibilityCriteria | None = None) -> None:
        self.store = store
        self.criteria = criteria or EligibilityCriteria()

    def select(self) -> list[LegacyRecord]:
        try:
            produce = self._produce_frame()
            farmers = self._farmer_frame()
            rooms = self._room_frame()
            selected = (
                produce.with_row_index("__order")
                .filter(self.criteria.expression())
                .join(farmers, on="owner_id", how="left")
                .join(rooms, on="room_id", how="left")
                .sort("__order")
            )
            records = [self._to_record(row) for row in selected.iter_rows(named=True)]
        except Exception as exc:
            raise SelectionError(f"Failed to select legacy produce: {exc}") from exc

        logger.info(
            "Selected {} of {} legacy produce records (statuses={}, exclude_sold={})",
            len(records),
            produce.height,
            list(self.criteria.statuses),
            self.criteria.exclude_sold,
        )
        return records

    # ------------------------------------------------------------------
    # Frame construction
    def _produce_frame(self) -> pl.DataFrame:
        rows = [_normalize_produce_row(row) for row in self.store.iter_produce_rows()]
        return pl.DataFrame(rows, schema=PRODUCE_SCHEMA)

    def _farmer_frame(self) -> pl.DataFrame:
        rows = [
            {
                "owner_id": _as_id(row.get("_id")),
                "owner_first_name": _as_text(row.get("firstName")) or "",
                "owner_last_name": _as_text(row.get("lastName")) or "",
            }
            for row in self.store.iter_farmer_rows()
        ]
        frame = pl.DataFrame(rows, schema=FARMER_SCHEMA)
        return (
            frame.filter(pl.col("owner_id").is_not_null())
            .unique(subset=["owner_id"], keep="first", maintain_order=True)
            .with_columns(pl.lit(True).alias("owner_found"))
        )

    def _room_frame(self) -> pl.DataFrame:
        rows = [
            {
                "room_id": _as_id(row.get("_id")),
                "room_number": _as_text(row.get("roomNumber")) or "",
                "room_capacity": _as_float(row.get("capacity")) or 0.0,
                "room_occupancy": _as_float(row.get("currentOccupancy")) or 0.0,
            }
            for row in self.store.iter_room_rows()
        ]
        frame = pl.DataFrame(rows, schema=ROOM_SCHEMA)
        return (
            frame.filter(pl.col("room_id").is_not_null())
            .unique(subset=["room_id"], keep="first", maintain_order=True)
            .with_columns(pl.lit(True).alias("room_found"))
        )

    @staticmethod
    def _to_record(row: dict[str, Any]) -> LegacyRecord:
        owner = None
        if row.get("owner_found"):
            owner = Farmer(
                id=row["owner_id"],
                first_name=row.get("owner_first_name") or "",
                last_name=row.get("owner_last_name") or "",
            )
        room = None
        if row.get("room_found"):
            room = RoomAggregate(
                id=row["room_id"],
                room_number=row.get("room_number") or "",
                capacity=row.get("room_capacity") or 0.0,
                current_occupancy=row.get("room_occupancy") or 0.0,
            )
        return LegacyRecord(
            id=row["id"],
            owner_id=row.get("owner_id"),
            room_id=row.get("room_id"),
            owner=owner,
            room=room,
            produce_type=row.get("produce_type"),
            variety=row.get("variety"),
            quantity=row.get("quantity"),
            current_market_price=row.get("current_market_price"),
            expected_peak_price=row.get("expected_peak_price"),
            minimum_selling_price=row.get("minimum_selling_price"),
            condition=row.get("condition"),
            storage_date=parse_timestamp(row.get("storage_date")),
            created_at=parse_timestamp(row.get("created_at")),
            status=row.get("status"),
            sold=bool(row.get("sold")),
            notes=row.get("notes"),
        )


# ----------------------------------------------------------------------
# Coercion helpers for loosely typed documents
def _normalize_produce_row(row: dict[str, Any]) -> dict[str, Any]:
    legacy_id = _as_id(row.get("_id"))
    if legacy_id is None:
        raise ValueError(f"Legacy produce document without _id: {row!r}")
    return {
        "id": legacy_id,
        "owner_id": _as_id(row.get("farmer")),
        "room_id": _as_id(row.get("room")),
        "produce_type": _as_text(row.get("produceType")),
        "variety": _as_text(row.get("variety")),
        "quantity": _as_float(row.get("quantity")),
        "current_market_price": _as_float(row.get("currentMarketPrice")),
        "expected_peak_price": _as_float(row.get("expectedPeakPrice")),
        "minimum_selling_price": _as_float(row.get("minimumSellingPrice")),
        "condition": _as_text(row.get("condition")),
        "storage_date": _as_date_text(row.get("storageDate")),
        "created_at": _as_date_text(row.get("createdAt")),
        "status": _as_text(row.get("status")) or LEGACY_DEFAULT_STATUS,
        "sold": row.get("sold") is True,
        "notes": _as_text(row.get("notes")),
    }


def _as_id(value: Any) -> str | None:
    if isinstance(value, dict):
        value = value.get("$oid", value.get("_id"))
    if value is None or value == "":
        return None
    return str(value)


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def _as_date_text(value: Any) -> str | None:
    if isinstance(value, dict):
        value = value.get("$date")
    if value is None or value == "":
        return None
    return str(value)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse ISO-8601 text (``Z`` suffix allowed) or epoch milliseconds.

    Digit strings of ten or more digits are epoch milliseconds; shorter ones
    (``20240115``) are basic ISO dates. Values that cannot be represented are
    logged and treated as missing.
    """

    if not value:
        return None
    cleaned = value.strip()
    digits = cleaned.lstrip("-")
    if digits.isdigit() and len(digits) >= EPOCH_MS_MIN_DIGITS:
        try:
            return datetime.fromtimestamp(int(cleaned) / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.warning("Ignoring out-of-range legacy timestamp {!r}", value)
            return None
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(cleaned)
    except ValueError:
        logger.warning("Ignoring unparseable legacy timestamp {!r}", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


__all__ = ["DEFAULT_STATUSES", "EligibilityCriteria", "LegacySelector", "parse_timestamp"]
