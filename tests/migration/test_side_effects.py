from __future__ import annotations

from pathlib import Path

from coldstore.migration.side_effects import OccupancyApplier
from coldstore.storage import LocalDataStore

from tests.utils import room_occupancy


def test_apply_increases_occupancy(data_root: Path) -> None:
    applier = OccupancyApplier(LocalDataStore(data_root))

    change = applier.apply("room-a", 300)

    assert change.warning is None
    assert change.room.current_occupancy == 500
    assert room_occupancy(data_root, "room-a") == 500


def test_capacity_overrun_is_a_warning(data_root: Path) -> None:
    applier = OccupancyApplier(LocalDataStore(data_root))

    change = applier.apply("room-b", 100)

    assert room_occupancy(data_root, "room-b") == 350
    assert change.warning is not None
    assert "B1" in change.warning
    assert "exceeds capacity 300kg" in change.warning


def test_revert_restores_previous_value(data_root: Path) -> None:
    applier = OccupancyApplier(LocalDataStore(data_root))

    change = applier.apply("room-a", 75)
    applier.revert(change)

    assert room_occupancy(data_root, "room-a") == 200
