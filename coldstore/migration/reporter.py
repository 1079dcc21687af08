"""Run reports for the legacy produce migration."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from loguru import logger

from coldstore.models import MigrationOutcome, OutcomeStatus

RULE = "=" * 60


@dataclass(slots=True)
class MigrationReport:
    """Structured outcome of one run; :meth:`to_dict` is the authoritative form."""

    run_id: str
    dry_run: bool
    started_at: datetime
    finished_at: datetime | None = None
    approved_by: str | None = None
    selected: int = 0
    outcomes: list[MigrationOutcome] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    fatal: bool = False

    def _with_status(self, status: OutcomeStatus) -> list[MigrationOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status is status]

    @property
    def migrated(self) -> list[MigrationOutcome]:
        return self._with_status(OutcomeStatus.MIGRATED)

    @property
    def previewed(self) -> list[MigrationOutcome]:
        return self._with_status(OutcomeStatus.PREVIEWED)

    @property
    def failed(self) -> list[MigrationOutcome]:
        return self._with_status(OutcomeStatus.FAILED)

    @property
    def skipped(self) -> list[MigrationOutcome]:
        return self._with_status(OutcomeStatus.SKIPPED)

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "dry_run": self.dry_run,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "approved_by": self.approved_by,
            "fatal": self.fatal,
            "totals": {
                "selected": self.selected,
                "migrated": len(self.migrated),
                "previewed": len(self.previewed),
                "failed": len(self.failed),
                "skipped": len(self.skipped),
            },
            "migrated": [outcome.to_dict() for outcome in self.migrated],
            "previewed": [outcome.to_dict() for outcome in self.previewed],
            "failed": [outcome.to_dict() for outcome in self.failed],
            "skipped": [outcome.to_dict() for outcome in self.skipped],
            "warnings": list(self.warnings),
            "errors": list(self.errors),
        }

    def render_text(self) -> str:
        lines = ["", RULE, "MIGRATION SUMMARY" + (" (DRY RUN)" if self.dry_run else ""), RULE, ""]

        if self.fatal:
            lines.append("Migration aborted before processing any record:")
            lines.extend(f"  - {error}" for error in self.errors)
            lines.extend(["", RULE])
            return "\n".join(lines)

        lines.append(f"Selected: {self.selected} records")
        if self.dry_run:
            lines.append(f"Would migrate: {len(self.previewed)} records")
        else:
            lines.append(f"Successfully migrated: {len(self.migrated)} records")
        lines.append(f"Failed: {len(self.failed)} records")
        if self.skipped:
            lines.append(f"Skipped (claimed by another run): {len(self.skipped)} records")

        if self.failed:
            lines.extend(["", "Errors:"])
            for outcome in self.failed:
                step = f" [{outcome.failed_step.value}]" if outcome.failed_step else ""
                lines.append(f"  - {outcome.produce_type} ({outcome.legacy_id}){step}: {outcome.error}")

        if self.migrated:
            lines.extend(["", "Migrated records:"])
            for outcome in self.migrated:
                lines.append(f"  {outcome.produce_type} ({_kg(outcome.quantity)})")
                lines.append(f"    {outcome.legacy_id} -> {outcome.canonical_id}")

        if self.previewed:
            lines.extend(["", "Would migrate:"])
            for outcome in self.previewed:
                payload = outcome.payload or {}
                lines.append(
                    f"  {outcome.legacy_id}: {outcome.produce_type} ({_kg(outcome.quantity)}) as "
                    f"{payload.get('produceType')} / {payload.get('condition')}, "
                    f"value {payload.get('estimatedValue')}"
                )

        if self.skipped:
            lines.extend(["", "Skipped:"])
            lines.extend(f"  - {outcome.legacy_id}: {outcome.error}" for outcome in self.skipped)

        if self.warnings:
            lines.extend(["", "Warnings:"])
            lines.extend(f"  - {warning}" for warning in self.warnings)

        if self.dry_run:
            lines.extend(
                [
                    "",
                    "This was a DRY RUN - no changes were made.",
                    "To perform the migration, run:",
                    "  coldstore-migrate --admin-id=<admin-farmer-id>",
                ]
            )
        lines.extend(["", RULE])
        return "\n".join(lines)

    def write_json(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        logger.info("Wrote migration report {}", path)
        return path


def _kg(quantity: float | None) -> str:
    return "?kg" if quantity is None else f"{quantity:g}kg"


class MigrationReporter:
    """Collects outcomes while the executor runs."""

    def __init__(self, run_id: str, *, dry_run: bool, started_at: datetime) -> None:
        self.report = MigrationReport(run_id=run_id, dry_run=dry_run, started_at=started_at)

    def set_selected(self, count: int) -> None:
        self.report.selected = count

    def set_approver(self, approved_by: str | None) -> None:
        self.report.approved_by = approved_by

    def record(self, outcome: MigrationOutcome) -> None:
        self.report.outcomes.append(outcome)
        self.report.warnings.extend(outcome.warnings)
        if outcome.status is OutcomeStatus.FAILED:
            logger.error(
                "Failed to migrate {} ({}): {}",
                outcome.legacy_id,
                outcome.produce_type,
                outcome.error,
            )
        elif outcome.status is OutcomeStatus.SKIPPED:
            logger.warning("Skipped {}: {}", outcome.legacy_id, outcome.error)
        elif outcome.status is OutcomeStatus.PREVIEWED:
            logger.info("[dry-run] Would migrate {} ({})", outcome.legacy_id, outcome.produce_type)
        else:
            logger.info("Migrated {} -> stocking {}", outcome.legacy_id, outcome.canonical_id)

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.report.warnings.append(message)

    def fail_run(self, message: str) -> None:
        logger.error("Migration run aborted: {}", message)
        self.report.errors.append(message)
        self.report.fatal = True

    def finish(self, finished_at: datetime) -> MigrationReport:
        self.report.finished_at = finished_at
        return self.report


__all__ = ["MigrationReport", "MigrationReporter"]
