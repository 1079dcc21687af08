"""Legacy produce to stocking mapping.

Mapping is total: every legacy record yields a draft, whatever its content.
Deciding whether the draft is acceptable is left to :mod:`.validator`.
"""

from __future__ import annotations

from datetime import datetime

from coldstore.models import (
    OTHER_PRODUCE_TYPE,
    PRODUCE_TYPES,
    CanonicalRecord,
    LegacyRecord,
    PriceHistoryEntry,
    StockingCondition,
)

CONDITION_MAP: dict[str, StockingCondition] = {
    "Excellent": StockingCondition.FRESH,
    "Fresh": StockingCondition.FRESH,
    "Good": StockingCondition.GOOD,
    "Fair": StockingCondition.FAIR,
    "Poor": StockingCondition.NEEDS_ATTENTION,
    "Spoiled": StockingCondition.NEEDS_ATTENTION,
}
DEFAULT_CONDITION = StockingCondition.GOOD

_PRODUCE_TYPES_BY_KEY = {name.lower(): name for name in PRODUCE_TYPES}


def map_produce_type(value: object) -> str:
    """Return the enumerated produce type for free text, or ``"Other"``."""

    if not isinstance(value, str):
        return OTHER_PRODUCE_TYPE
    if value in PRODUCE_TYPES:
        return value
    return _PRODUCE_TYPES_BY_KEY.get(value.lower(), OTHER_PRODUCE_TYPE)


def map_condition(value: object) -> str:
    if isinstance(value, str) and value in CONDITION_MAP:
        return CONDITION_MAP[value].value
    return DEFAULT_CONDITION.value


def resolve_target_price(legacy: LegacyRecord) -> float:
    # expected peak price, then minimum selling price, then market price
    for candidate in (
        legacy.expected_peak_price,
        legacy.minimum_selling_price,
        legacy.current_market_price,
    ):
        if candidate:
            return candidate
    return 0.0


def provenance_note(legacy_id: str) -> str:
    return f"Migrated from legacy produce record. Original ID: {legacy_id}"


def map_legacy_record(
    legacy: LegacyRecord,
    *,
    approved_by: str | None,
    approved_at: datetime,
) -> CanonicalRecord:
    """Map ``legacy`` to a canonical draft (``id`` is left unset)."""

    market_price = legacy.current_market_price or 0.0
    quantity = legacy.quantity
    estimated_value = (quantity or 0.0) * market_price
    stocked_at = legacy.storage_date or legacy.created_at

    return CanonicalRecord(
        legacy_id=legacy.id,
        room_id=legacy.room.id if legacy.room is not None else None,
        owner_id=legacy.owner.id if legacy.owner is not None else None,
        produce_type=map_produce_type(legacy.produce_type),
        quantity=quantity,
        estimated_value=estimated_value,
        condition=map_condition(legacy.condition),
        target_price=resolve_target_price(legacy),
        current_market_price=market_price,
        approved_by=approved_by,
        approved_at=approved_at,
        stocked_at=stocked_at,
        notes=provenance_note(legacy.id),
        price_history=[PriceHistoryEntry(price=market_price, checked_at=stocked_at)],
    )


__all__ = [
    "CONDITION_MAP",
    "DEFAULT_CONDITION",
    "map_condition",
    "map_legacy_record",
    "map_produce_type",
    "provenance_note",
    "resolve_target_price",
]
