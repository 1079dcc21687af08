"""Shared helpers for CLI tests."""

from __future__ import annotations

from pathlib import Path

from pytest import MonkeyPatch

from coldstore.config import AppConfig


def write_config(directory: Path, data_root: str, *, migration: str = "") -> Path:
    """Write a minimal TOML configuration pointing at ``data_root``."""

    config_file = directory / "config.toml"
    lines = [f'data_root = "{data_root}"', 'logging_level = "DEBUG"']
    if migration:
        lines.extend(["", "[migration]", migration.strip()])
    config_file.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return config_file


def patch_load_config(monkeypatch: MonkeyPatch, config: AppConfig) -> None:
    """Force the CLI to return the provided config instead of reading from disk."""

    def _fake_load_config(model: object, path: Path) -> AppConfig:
        if model is not AppConfig:
            raise AssertionError("Unexpected config model request")
        return config

    monkeypatch.setattr("coldstore.cli.load_config", _fake_load_config)
