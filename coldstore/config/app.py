"""Application-level configuration models."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field

from coldstore.config.base import BaseConfig
from coldstore.config.migration import MigrationSettings


class AppConfig(BaseConfig):
    """Top-level runtime configuration."""

    data_root: str = Field(
        "./data",
        description="Root of the local-first data layout (path or 'env:VAR_NAME')",
    )
    logging_level: Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR"] = Field(
        "INFO",
        description="Minimum level for the console log sink",
    )
    log_file: Path | None = Field(
        None,
        description="Optional serialized log file; rotated at 5 MB",
    )
    migration: MigrationSettings = Field(
        default_factory=MigrationSettings,
        description="Legacy produce migration settings",
    )


__all__ = ["AppConfig"]
