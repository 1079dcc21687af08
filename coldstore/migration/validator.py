"""Acceptance checks applied to mapped drafts before they are persisted."""

from __future__ import annotations

import math
from dataclasses import dataclass

from coldstore.models import CanonicalRecord


@dataclass(frozen=True, slots=True)
class ValidationResult:
    ok: bool
    reason: str | None = None

    @classmethod
    def accepted(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def rejected(cls, reason: str) -> "ValidationResult":
        return cls(ok=False, reason=reason)


def validate_draft(draft: CanonicalRecord) -> ValidationResult:
    """Check a draft for completeness; the first problem found is reported."""

    quantity = draft.quantity
    if quantity is None:
        return ValidationResult.rejected("quantity is missing")
    if not math.isfinite(quantity):
        return ValidationResult.rejected(f"quantity is not a finite number ({quantity})")
    if quantity < 0:
        return ValidationResult.rejected(f"quantity must not be negative (got {quantity:g})")
    if not draft.room_id:
        return ValidationResult.rejected("room reference could not be resolved")
    if not draft.owner_id:
        return ValidationResult.rejected("owner reference could not be resolved")
    if not draft.produce_type:
        return ValidationResult.rejected("produce type is missing after mapping")
    if not draft.condition:
        return ValidationResult.rejected("condition is missing after mapping")
    if not math.isfinite(draft.estimated_value) or draft.estimated_value < 0:
        return ValidationResult.rejected(
            f"estimated value must be a non-negative number (got {draft.estimated_value})"
        )
    if not draft.approved_by:
        return ValidationResult.rejected("no approver identity available")
    return ValidationResult.accepted()


__all__ = ["ValidationResult", "validate_draft"]
