"""Helpers for resolving configuration values."""

from __future__ import annotations

import os
from pathlib import Path

_ENV_PREFIX = "env:"


def resolve_env_reference(value: str | None, *, required: bool = True) -> str | None:
    """Expand ``"env:VAR_NAME"`` references using ``os.environ``.

    Plain strings and ``None`` pass through untouched. A reference to a missing
    or empty variable raises :class:`EnvironmentError` unless ``required`` is
    ``False``, in which case ``None`` is returned.
    """

    if value is None or not value.startswith(_ENV_PREFIX):
        return value

    var_name = value.split(":", 1)[1]
    resolved = os.getenv(var_name)
    if resolved:
        return resolved
    if required:
        raise EnvironmentError(f"Environment variable '{var_name}' is not set or empty")
    return None


def resolve_path(value: str | Path | None, base_dir: Path) -> Path | None:
    """Turn a configured path (possibly an env reference) into an absolute path.

    Relative paths are anchored at ``base_dir``, usually the directory holding
    the configuration file.
    """

    if value is None:
        return None
    raw = resolve_env_reference(str(value))
    assert raw is not None
    path = Path(raw).expanduser()
    if path.is_absolute():
        return path
    return (base_dir / path).resolve()


__all__ = ["resolve_env_reference", "resolve_path"]
