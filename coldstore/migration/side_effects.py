"""Room occupancy updates that follow migrated stockings."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from coldstore.models import RoomAggregate
from coldstore.storage.base import RoomStore


@dataclass(frozen=True, slots=True)
class OccupancyChange:
    """Applied occupancy delta, kept so it can be reverted."""

    room_id: str
    quantity: float
    room: RoomAggregate
    warning: str | None = None


class OccupancyApplier:
    """Adds migrated quantities to room occupancy.

    Capacity is not enforced; an overrun is reported through
    :attr:`OccupancyChange.warning`.
    """

    def __init__(self, rooms: RoomStore) -> None:
        self.rooms = rooms

    def apply(self, room_id: str, quantity: float) -> OccupancyChange:
        room = self.rooms.adjust_occupancy(room_id, quantity)
        warning = None
        if room.over_capacity:
            label = room.room_number or room.id
            warning = (
                f"Room {label} occupancy {room.current_occupancy:g}kg exceeds "
                f"capacity {room.capacity:g}kg"
            )
            logger.warning(warning)
        else:
            logger.debug(
                "Room {} occupancy now {}/{}kg",
                room.room_number or room.id,
                room.current_occupancy,
                room.capacity,
            )
        return OccupancyChange(room_id=room_id, quantity=quantity, room=room, warning=warning)

    def revert(self, change: OccupancyChange) -> RoomAggregate:
        room = self.rooms.adjust_occupancy(change.room_id, -change.quantity)
        logger.info("Reverted {}kg from room {}", change.quantity, room.room_number or room.id)
        return room


__all__ = ["OccupancyApplier", "OccupancyChange"]
