"""Legacy produce to stocking migration pipeline."""

from __future__ import annotations

from .errors import MigrationError, SelectionError
from .executor import MigrationExecutor, MigrationRunConfig
from .mapper import map_condition, map_legacy_record, map_produce_type
from .reporter import MigrationReport, MigrationReporter
from .selector import EligibilityCriteria, LegacySelector
from .side_effects import OccupancyApplier, OccupancyChange
from .validator import ValidationResult, validate_draft

__all__ = [
    "EligibilityCriteria",
    "LegacySelector",
    "MigrationError",
    "MigrationExecutor",
    "MigrationReport",
    "MigrationReporter",
    "MigrationRunConfig",
    "OccupancyApplier",
    "OccupancyChange",
    "SelectionError",
    "ValidationResult",
    "map_condition",
    "map_legacy_record",
    "map_produce_type",
    "validate_draft",
]
