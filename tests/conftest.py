"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from tests.utils import seed_layout  # noqa: E402


@pytest.fixture()
def data_root(tmp_path: Path) -> Path:
    """A data root seeded with one farmer, two rooms and three eligible records."""

    root = tmp_path / "data"
    seed_layout(root)
    return root
