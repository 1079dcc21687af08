"""Base configuration model and TOML loader."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T", bound="BaseConfig")


class BaseConfig(BaseModel):
    """Shared pydantic settings for every configuration model."""

    model_config = ConfigDict(extra="forbid", validate_default=True)


def load_config(model: type[T], path: Path) -> T:
    """Load ``path`` as TOML and validate it against ``model``."""

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    with path.open("rb") as fh:
        payload = tomllib.load(fh)
    return model.model_validate(payload)


__all__ = ["BaseConfig", "load_config"]
