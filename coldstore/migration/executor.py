"""Orchestration of a legacy produce migration run."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable

from loguru import logger

from coldstore.config import MigrationSettings
from coldstore.models import (
    CanonicalRecord,
    LegacyRecord,
    MigrationOutcome,
    OutcomeStatus,
    PipelineStep,
    RecordStage,
    RunState,
)
from coldstore.storage.base import MigrationStores
from coldstore.storage.errors import StoreError

from .errors import SelectionError
from .mapper import map_legacy_record
from .reporter import MigrationReport, MigrationReporter
from .selector import EligibilityCriteria, LegacySelector
from .side_effects import OccupancyApplier, OccupancyChange
from .validator import validate_draft


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def migration_note(canonical_id: str) -> str:
    return f"[MIGRATED to Stocking: {canonical_id}]"


@dataclass(slots=True)
class MigrationRunConfig:
    """Explicit run configuration, built once by the caller."""

    dry_run: bool = False
    admin_id: str | None = None
    criteria: EligibilityCriteria = field(default_factory=EligibilityCriteria)
    migrated_status: str = "Removed"
    use_claims: bool = True
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @classmethod
    def from_settings(
        cls,
        settings: MigrationSettings,
        *,
        dry_run: bool,
        admin_id: str | None,
    ) -> "MigrationRunConfig":
        return cls(
            dry_run=dry_run,
            admin_id=admin_id or None,
            criteria=EligibilityCriteria(
                statuses=tuple(settings.eligible_statuses),
                exclude_sold=settings.exclude_sold,
            ),
            migrated_status=settings.migrated_status,
            use_claims=settings.claims_enabled,
        )


class MigrationExecutor:
    """Runs selection, per-record migration and reporting.

    Per-record failures become outcomes and never abort the run; only store
    connectivity or selection failures are fatal, and those happen before any
    mutation.
    """

    def __init__(
        self,
        config: MigrationRunConfig,
        stores: MigrationStores,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self.stores = stores
        self.applier = OccupancyApplier(stores.rooms)
        self.state = RunState.NOT_STARTED
        self.record_stages: dict[str, RecordStage] = {}
        self._clock = clock or _utcnow

    def run(self) -> MigrationReport:
        reporter = MigrationReporter(
            self.config.run_id,
            dry_run=self.config.dry_run,
            started_at=self._clock(),
        )
        logger.info(
            "Starting legacy produce migration run {}{}",
            self.config.run_id,
            " [dry-run]" if self.config.dry_run else "",
        )

        self.state = RunState.SELECTING
        try:
            self.stores.legacy.ping()
            records = LegacySelector(self.stores.legacy, self.config.criteria).select()
        except (StoreError, SelectionError) as exc:
            reporter.fail_run(str(exc))
            return self._finish(reporter)

        reporter.set_selected(len(records))
        if not records:
            logger.info("No legacy produce to migrate")

        approved_by = self._resolve_approver(records, reporter)
        reporter.set_approver(approved_by)

        self.state = RunState.PROCESSING_RECORDS
        for legacy in records:
            self.record_stages[legacy.id] = RecordStage.PENDING
            outcome = self._process(legacy, approved_by)
            reporter.record(outcome)
            self.record_stages[legacy.id] = RecordStage.OUTCOME_RECORDED

        return self._finish(reporter)

    def _finish(self, reporter: MigrationReporter) -> MigrationReport:
        self.state = RunState.REPORTING
        report = reporter.finish(self._clock())
        self.state = RunState.DONE
        logger.info(
            "Migration run {} done: {} selected, {} migrated, {} previewed, {} failed, {} skipped",
            report.run_id,
            report.selected,
            len(report.migrated),
            len(report.previewed),
            len(report.failed),
            len(report.skipped),
        )
        return report

    def _resolve_approver(self, records: list[LegacyRecord], reporter: MigrationReporter) -> str | None:
        if self.config.admin_id:
            return self.config.admin_id
        if not records:
            return None
        first = records[0]
        fallback = first.owner.id if first.owner is not None else first.owner_id
        if fallback:
            reporter.warn(f"No admin id provided, using owner of first selected record as approver: {fallback}")
        else:
            reporter.warn("No admin id provided and the first selected record has no owner; records cannot be approved")
        return fallback

    # ------------------------------------------------------------------
    # Per-record pipeline
    def _process(self, legacy: LegacyRecord, approved_by: str | None) -> MigrationOutcome:
        claims = self.stores.claims if self.config.use_claims and not self.config.dry_run else None
        if claims is not None:
            try:
                claimed = claims.claim(legacy.id, self.config.run_id)
            except Exception as exc:
                return self._failure(legacy, f"claim failed: {exc}", step=PipelineStep.CLAIM)
            if not claimed:
                return MigrationOutcome(
                    legacy_id=legacy.id,
                    produce_type=legacy.produce_type,
                    quantity=legacy.quantity,
                    status=OutcomeStatus.SKIPPED,
                    error="claimed by another migration run",
                    failed_step=PipelineStep.CLAIM,
                )

        try:
            outcome = self._migrate(legacy, approved_by)
        except Exception as exc:
            logger.exception("Unexpected error while migrating {}", legacy.id)
            outcome = self._failure(legacy, f"unexpected error: {exc!r}")

        # a held claim marks the record as migrated; failed records are released for a retry
        # unless a stocking was left behind by an incomplete compensation
        if claims is not None and outcome.status is OutcomeStatus.FAILED:
            if outcome.compensated is False:
                outcome.warnings.append(
                    f"Claim on {legacy.id} kept: a stocking was left behind and needs manual repair "
                    f"before the record is migrated again"
                )
                return outcome
            try:
                claims.release(legacy.id, self.config.run_id)
            except Exception as exc:
                outcome.warnings.append(f"Could not release claim on {legacy.id}: {exc}")
        return outcome

    def _migrate(self, legacy: LegacyRecord, approved_by: str | None) -> MigrationOutcome:
        draft = map_legacy_record(legacy, approved_by=approved_by, approved_at=self._clock())
        self.record_stages[legacy.id] = RecordStage.MAPPED

        result = validate_draft(draft)
        if not result.ok:
            return self._failure(legacy, result.reason or "rejected", step=PipelineStep.VALIDATE)
        self.record_stages[legacy.id] = RecordStage.VALIDATED

        if self.config.dry_run:
            self.record_stages[legacy.id] = RecordStage.PREVIEWED
            self._log_preview(legacy, draft)
            return MigrationOutcome(
                legacy_id=legacy.id,
                produce_type=legacy.produce_type,
                quantity=legacy.quantity,
                status=OutcomeStatus.PREVIEWED,
                payload=draft.to_payload(),
            )

        return self._persist(legacy, draft)

    def _persist(self, legacy: LegacyRecord, draft: CanonicalRecord) -> MigrationOutcome:
        assert draft.room_id is not None and draft.quantity is not None  # guaranteed by validation

        try:
            canonical_id = self.stores.canonical.insert(draft)
        except Exception as exc:
            return self._failure(legacy, f"persist failed: {exc}", step=PipelineStep.PERSIST)
        record = replace(draft, id=canonical_id)

        try:
            change = self.applier.apply(record.room_id, record.quantity)
        except Exception as exc:
            return self._compensated_failure(legacy, record, None, PipelineStep.SIDE_EFFECT, exc)

        try:
            self.stores.legacy.mark_migrated(
                legacy.id,
                status=self.config.migrated_status,
                note=migration_note(canonical_id),
            )
        except Exception as exc:
            return self._compensated_failure(legacy, record, change, PipelineStep.FLAG_LEGACY, exc)

        self.record_stages[legacy.id] = RecordStage.PERSISTED
        return MigrationOutcome(
            legacy_id=legacy.id,
            produce_type=legacy.produce_type,
            quantity=legacy.quantity,
            status=OutcomeStatus.MIGRATED,
            canonical_id=canonical_id,
            warnings=[change.warning] if change.warning else [],
        )

    def _compensated_failure(
        self,
        legacy: LegacyRecord,
        record: CanonicalRecord,
        change: OccupancyChange | None,
        step: PipelineStep,
        exc: Exception,
    ) -> MigrationOutcome:
        logger.warning("{} failed for {}; compensating stocking {}", step.value, legacy.id, record.id)
        problems: list[str] = []
        if change is not None:
            try:
                self.applier.revert(change)
            except Exception as revert_exc:
                problems.append(f"occupancy revert failed: {revert_exc}")
        assert record.id is not None
        try:
            self.stores.canonical.delete(record.id)
        except Exception as delete_exc:
            problems.append(f"stocking {record.id} delete failed: {delete_exc}")

        if problems:
            error = f"{step.value} failed: {exc}; compensation incomplete: {'; '.join(problems)}"
        else:
            error = f"{step.value} failed: {exc}; stocking {record.id} rolled back"
        return self._failure(legacy, error, step=step, compensated=not problems)

    @staticmethod
    def _failure(
        legacy: LegacyRecord,
        error: str,
        *,
        step: PipelineStep | None = None,
        compensated: bool | None = None,
    ) -> MigrationOutcome:
        return MigrationOutcome(
            legacy_id=legacy.id,
            produce_type=legacy.produce_type,
            quantity=legacy.quantity,
            status=OutcomeStatus.FAILED,
            error=error,
            failed_step=step,
            compensated=compensated,
        )

    @staticmethod
    def _log_preview(legacy: LegacyRecord, draft: CanonicalRecord) -> None:
        owner = legacy.owner.display_name if legacy.owner is not None else legacy.owner_id
        room = legacy.room.room_number if legacy.room is not None else legacy.room_id
        logger.info(
            "[dry-run] {} ({}kg) of {} in room {} at {}/kg -> {} / {}",
            legacy.produce_type,
            legacy.quantity,
            owner,
            room,
            legacy.current_market_price,
            draft.produce_type,
            draft.condition,
        )


__all__ = ["MigrationExecutor", "MigrationRunConfig", "migration_note"]
