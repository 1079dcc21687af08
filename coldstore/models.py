"""Domain models shared by the storage backends and the migration pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

PRODUCE_TYPES: tuple[str, ...] = (
    "Tomatoes",
    "Potatoes",
    "Onions",
    "Carrots",
    "Cabbage",
    "Spinach",
    "Kale",
    "Lettuce",
    "Broccoli",
    "Cauliflower",
    "Peppers",
    "Cucumbers",
    "Beans",
    "Peas",
    "Maize",
    "Bananas",
    "Mangoes",
    "Avocados",
    "Oranges",
    "Apples",
    "Strawberries",
    "Passion Fruit",
    "Pineapples",
)
OTHER_PRODUCE_TYPE = "Other"
APPROVED = "Approved"


class StockingCondition(str, Enum):
    """Condition levels accepted by stockings."""

    FRESH = "Fresh"
    GOOD = "Good"
    FAIR = "Fair"
    NEEDS_ATTENTION = "Needs Attention"


class OutcomeStatus(str, Enum):
    """Result of pushing one legacy record through the pipeline."""

    MIGRATED = "migrated"
    PREVIEWED = "previewed"
    FAILED = "failed"
    SKIPPED = "skipped"


class PipelineStep(str, Enum):
    """Per-record step that produced a failure or skip."""

    CLAIM = "claim"
    VALIDATE = "validate"
    PERSIST = "persist"
    SIDE_EFFECT = "side_effect"
    FLAG_LEGACY = "flag_legacy"


class RunState(str, Enum):
    NOT_STARTED = "not_started"
    SELECTING = "selecting"
    PROCESSING_RECORDS = "processing_records"
    REPORTING = "reporting"
    DONE = "done"


class RecordStage(str, Enum):
    PENDING = "pending"
    MAPPED = "mapped"
    VALIDATED = "validated"
    PREVIEWED = "previewed"
    PERSISTED = "persisted"
    OUTCOME_RECORDED = "outcome_recorded"


@dataclass(slots=True)
class Farmer:
    """Owner of stored produce."""

    id: str
    first_name: str = ""
    last_name: str = ""

    @property
    def display_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.id


@dataclass(slots=True)
class RoomAggregate:
    """Cold room capacity and occupancy, both in kilograms."""

    id: str
    room_number: str = ""
    capacity: float = 0.0
    current_occupancy: float = 0.0

    @property
    def over_capacity(self) -> bool:
        return self.current_occupancy > self.capacity


@dataclass(slots=True)
class LegacyRecord:
    """A produce record stored under the old, loosely validated schema.

    ``owner`` and ``room`` hold the resolved references; they are ``None`` when
    the referenced document could not be found.
    """

    id: str
    owner_id: str | None = None
    room_id: str | None = None
    owner: Farmer | None = None
    room: RoomAggregate | None = None
    produce_type: str | None = None
    variety: str | None = None
    quantity: float | None = None
    current_market_price: float | None = None
    expected_peak_price: float | None = None
    minimum_selling_price: float | None = None
    condition: str | None = None
    storage_date: datetime | None = None
    created_at: datetime | None = None
    status: str | None = None
    sold: bool = False
    notes: str | None = None


@dataclass(slots=True)
class PriceHistoryEntry:
    price: float
    checked_at: datetime | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "price": self.price,
            "checkedAt": self.checked_at.isoformat() if self.checked_at else None,
        }


@dataclass(slots=True)
class CanonicalRecord:
    """A stocking in the canonical schema.

    Records produced by the mapper are drafts: ``id`` stays ``None`` until the
    canonical store assigns one.
    """

    legacy_id: str
    room_id: str | None
    owner_id: str | None
    produce_type: str | None
    quantity: float | None
    estimated_value: float
    condition: str | None
    target_price: float
    current_market_price: float
    approved_by: str | None
    approved_at: datetime
    stocked_at: datetime | None
    notes: str
    price_history: list[PriceHistoryEntry] = field(default_factory=list)
    status: str = APPROVED
    approval_status: str = APPROVED
    id: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Document representation shared with the rest of the system."""

        payload: dict[str, Any] = {
            "room": self.room_id,
            "farmer": self.owner_id,
            "produceType": self.produce_type,
            "quantity": self.quantity,
            "estimatedValue": self.estimated_value,
            "condition": self.condition,
            "targetPrice": self.target_price,
            "currentMarketPrice": self.current_market_price,
            "status": self.status,
            "approvalStatus": self.approval_status,
            "approvedBy": self.approved_by,
            "approvedAt": self.approved_at.isoformat(),
            "stockedAt": self.stocked_at.isoformat() if self.stocked_at else None,
            "notes": self.notes,
            "priceHistory": [entry.to_dict() for entry in self.price_history],
            "legacyId": self.legacy_id,
        }
        if self.id is not None:
            payload = {"_id": self.id, **payload}
        return payload


@dataclass(slots=True)
class MigrationOutcome:
    """Per-record result consumed by the reporter."""

    legacy_id: str
    produce_type: str | None
    quantity: float | None
    status: OutcomeStatus
    canonical_id: str | None = None
    payload: dict[str, Any] | None = None
    error: str | None = None
    failed_step: PipelineStep | None = None
    compensated: bool | None = None
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "legacy_id": self.legacy_id,
            "produce_type": self.produce_type,
            "quantity": self.quantity,
            "status": self.status.value,
        }
        if self.canonical_id is not None:
            data["canonical_id"] = self.canonical_id
        if self.payload is not None:
            data["payload"] = self.payload
        if self.error is not None:
            data["error"] = self.error
        if self.failed_step is not None:
            data["failed_step"] = self.failed_step.value
        if self.compensated is not None:
            data["compensated"] = self.compensated
        if self.warnings:
            data["warnings"] = list(self.warnings)
        return data


__all__ = [
    "APPROVED",
    "OTHER_PRODUCE_TYPE",
    "PRODUCE_TYPES",
    "CanonicalRecord",
    "Farmer",
    "LegacyRecord",
    "MigrationOutcome",
    "OutcomeStatus",
    "PipelineStep",
    "PriceHistoryEntry",
    "RecordStage",
    "RoomAggregate",
    "RunState",
    "StockingCondition",
]
