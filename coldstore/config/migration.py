"""Migration engine configuration models."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator

from coldstore.config.base import BaseConfig


class MigrationSettings(BaseConfig):
    """Tunable behaviour of the legacy produce migration."""

    eligible_statuses: list[str] = Field(
        default_factory=lambda: ["Active", "Listed"],
        description="Legacy lifecycle statuses eligible for migration",
    )
    exclude_sold: bool = Field(True, description="Skip legacy produce already flagged as sold")
    migrated_status: str = Field(
        "Removed",
        description="Lifecycle status assigned to legacy records once migrated",
    )
    claims_enabled: bool = Field(
        True,
        description="Acquire a per-record claim before persisting to guard against concurrent runs",
    )
    write_report: bool = Field(True, description="Persist the JSON report after a real run")
    report_dir: Path = Field(
        Path("reports"),
        description="Report directory, relative to data_root unless absolute",
    )

    @field_validator("eligible_statuses")
    @classmethod
    def _require_statuses(cls, value: list[str]) -> list[str]:
        cleaned = [item.strip() for item in value if item and item.strip()]
        if not cleaned:
            raise ValueError("At least one eligible status must be configured.")
        return list(dict.fromkeys(cleaned))

    @field_validator("migrated_status")
    @classmethod
    def _require_migrated_status(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("migrated_status must not be empty.")
        return value


__all__ = ["MigrationSettings"]
