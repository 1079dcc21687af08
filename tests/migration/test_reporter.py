from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from coldstore.migration.reporter import MigrationReporter
from coldstore.models import MigrationOutcome, OutcomeStatus, PipelineStep

STARTED = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _reporter(dry_run: bool = False) -> MigrationReporter:
    reporter = MigrationReporter("run-1", dry_run=dry_run, started_at=STARTED)
    reporter.set_selected(2)
    reporter.set_approver("admin-1")
    return reporter


def test_structured_report_lists_pairs_and_failures(tmp_path: Path) -> None:
    reporter = _reporter()
    reporter.record(
        MigrationOutcome(
            legacy_id="legacy-1",
            produce_type="Tomatoes",
            quantity=100.0,
            status=OutcomeStatus.MIGRATED,
            canonical_id="stock-1",
            warnings=["Room A1 occupancy 1100kg exceeds capacity 1000kg"],
        )
    )
    reporter.record(
        MigrationOutcome(
            legacy_id="legacy-2",
            produce_type="tomatoe",
            quantity=-1.0,
            status=OutcomeStatus.FAILED,
            error="quantity must not be negative (got -1)",
            failed_step=PipelineStep.VALIDATE,
        )
    )
    report = reporter.finish(STARTED)

    data = report.to_dict()

    assert data["totals"] == {"selected": 2, "migrated": 1, "previewed": 0, "failed": 1, "skipped": 0}
    assert data["migrated"][0]["legacy_id"] == "legacy-1"
    assert data["migrated"][0]["canonical_id"] == "stock-1"
    assert data["failed"][0]["failed_step"] == "validate"
    assert data["warnings"] == ["Room A1 occupancy 1100kg exceeds capacity 1000kg"]
    assert data["fatal"] is False

    path = report.write_json(tmp_path / "reports" / "report.json")
    assert json.loads(path.read_text(encoding="utf-8")) == data


def test_text_rendering() -> None:
    reporter = _reporter()
    reporter.record(
        MigrationOutcome(
            legacy_id="legacy-1",
            produce_type="Tomatoes",
            quantity=100.0,
            status=OutcomeStatus.MIGRATED,
            canonical_id="stock-1",
        )
    )
    reporter.record(
        MigrationOutcome(
            legacy_id="legacy-2",
            produce_type="Kale",
            quantity=5.0,
            status=OutcomeStatus.FAILED,
            error="room reference could not be resolved",
            failed_step=PipelineStep.VALIDATE,
        )
    )

    text = reporter.finish(STARTED).render_text()

    assert "Successfully migrated: 1 records" in text
    assert "Failed: 1 records" in text
    assert "legacy-1 -> stock-1" in text
    assert "Kale (legacy-2) [validate]: room reference could not be resolved" in text
    assert "DRY RUN" not in text


def test_dry_run_report_carries_payloads() -> None:
    reporter = _reporter(dry_run=True)
    reporter.record(
        MigrationOutcome(
            legacy_id="legacy-1",
            produce_type="tomatoe",
            quantity=500.0,
            status=OutcomeStatus.PREVIEWED,
            payload={"produceType": "Other", "condition": "Fresh", "estimatedValue": 31000.0},
        )
    )
    report = reporter.finish(STARTED)

    data = report.to_dict()
    assert data["previewed"][0]["payload"]["produceType"] == "Other"
    assert "canonical_id" not in data["previewed"][0]

    text = report.render_text()
    assert "Would migrate: 1 records" in text
    assert "This was a DRY RUN" in text
    assert "legacy-1: tomatoe (500kg) as Other / Fresh" in text


def test_fatal_report() -> None:
    reporter = MigrationReporter("run-1", dry_run=False, started_at=STARTED)
    reporter.fail_run("Data root /nowhere does not exist or is not a directory")
    report = reporter.finish(STARTED)

    assert report.fatal
    assert report.to_dict()["totals"]["migrated"] == 0
    assert "aborted" in report.render_text()
