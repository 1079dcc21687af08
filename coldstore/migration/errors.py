"""Exceptions raised by the migration pipeline."""

from __future__ import annotations


class MigrationError(RuntimeError):
    """Base class for migration failures."""


class SelectionError(MigrationError):
    """Legacy records could not be selected; fatal to the run."""


__all__ = ["MigrationError", "SelectionError"]
