"""In-memory room inventory backed by the repository.

Each room is loaded once and kept for the life of the process so that its
:class:`IntervalSet` is the single authoritative copy of the room's holds.
Attribute edits produce a new frozen ``Room`` that carries the same interval
set forward.
"""

from __future__ import annotations

from dataclasses import replace
from threading import RLock
from typing import Any, Optional

from booking_engine.domain.errors import NotFoundError
from booking_engine.domain.models import HotelPolicy, IntervalSet, Room
from booking_engine.repository.data_repository import DataRepository
from booking_engine.utils.config import Settings, get_settings
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)

_IMMUTABLE_FIELDS = {"room_id", "hotel_id", "intervals"}


class RoomInventoryService:
    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._rooms: dict[str, Room] = {}
        self._cache_lock = RLock()

    def add_room(self, room: Room) -> Room:
        """Register a new room. Any holds already on the object are ignored."""
        with self._cache_lock:
            if room.room_id in self._rooms or self._repository.get_room(room.room_id) is not None:
                raise ValueError(f"room {room.room_id} already exists")
            if self._repository.room_number_in_use(room.hotel_id, room.room_number):
                raise ValueError(
                    f"room number {room.room_number} already exists in hotel {room.hotel_id}"
                )
            stored = replace(room, intervals=IntervalSet())
            self._repository.save_room(stored)
            self._rooms[stored.room_id] = stored
        logger.info("Room registered | room_id=%s | hotel_id=%s", room.room_id, room.hotel_id)
        return stored

    def get_room(self, room_id: str) -> Room:
        with self._cache_lock:
            room = self._rooms.get(room_id)
            if room is None:
                room = self._repository.get_room(room_id)
                if room is None:
                    raise NotFoundError(f"room {room_id} not found")
                self._rooms[room_id] = room
                logger.debug(
                    "Room loaded | room_id=%s | holds=%s",
                    room_id,
                    len(room.intervals),
                )
            return room

    def list_hotel_rooms(self, hotel_id: str) -> list[Room]:
        return [self.get_room(room_id) for room_id in self._repository.list_room_ids(hotel_id)]

    def update_room(self, room_id: str, **changes: Any) -> Room:
        """Apply attribute edits such as ``status`` or ``base_price``."""
        blocked = _IMMUTABLE_FIELDS.intersection(changes)
        if blocked:
            raise ValueError(f"fields cannot be changed: {sorted(blocked)}")
        with self._cache_lock:
            current = self.get_room(room_id)
            updated = replace(current, **changes)
            if updated.room_number != current.room_number and self._repository.room_number_in_use(
                updated.hotel_id, updated.room_number, exclude_room_id=room_id
            ):
                raise ValueError(
                    f"room number {updated.room_number} already exists in hotel {updated.hotel_id}"
                )
            self._repository.save_room(updated)
            self._rooms[room_id] = updated
        logger.info(
            "Room updated | room_id=%s | fields=%s",
            room_id,
            sorted(changes),
        )
        return updated

    def get_hotel_policy(self, hotel_id: str) -> HotelPolicy:
        policy = self._repository.get_hotel_policy(hotel_id)
        if policy is None:
            return HotelPolicy(
                hotel_id=hotel_id,
                cancellation_deadline_hours=self._settings.cancellation_deadline_hours,
            )
        return policy

    def set_hotel_policy(self, policy: HotelPolicy) -> HotelPolicy:
        if policy.cancellation_deadline_hours < 0:
            raise ValueError("cancellation_deadline_hours must be >= 0")
        self._repository.save_hotel_policy(policy)
        logger.info(
            "Hotel policy saved | hotel_id=%s | cancellation_deadline_hours=%s",
            policy.hotel_id,
            policy.cancellation_deadline_hours,
        )
        return policy
