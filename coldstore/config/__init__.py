"""Configuration namespace for coldstore."""

from __future__ import annotations

from .app import AppConfig
from .base import BaseConfig, load_config
from .migration import MigrationSettings
from .utils import resolve_env_reference, resolve_path

__all__ = [
    "BaseConfig",
    "AppConfig",
    "MigrationSettings",
    "load_config",
    "resolve_env_reference",
    "resolve_path",
]
