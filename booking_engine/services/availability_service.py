"""Room availability checks, hotel search and per-day calendars."""

from __future__ import annotations

import calendar as month_calendar
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Iterable, Iterator, Optional

from booking_engine.domain.models import (
    DateInterval,
    DateRange,
    GuestCounts,
    PricingBreakdown,
    Room,
    RoomStatus,
)
from booking_engine.services.inventory_service import RoomInventoryService
from booking_engine.services.pricing_service import PricingCalculator
from booking_engine.utils.config import Settings, get_settings
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)


class SearchValidationError(Exception):
    """Raised when hotel search parameters are invalid."""


@dataclass(frozen=True)
class AvailabilityCheck:
    room_id: str
    stay: DateRange
    available: bool
    reason: Optional[str]
    conflicts: tuple[DateInterval, ...]


@dataclass(frozen=True)
class RoomOffer:
    room: Room
    quote: PricingBreakdown


@dataclass(frozen=True)
class CalendarDay:
    date: date
    available: bool
    price: Decimal
    status: str


class AvailableRooms:
    """Lazy, restartable view over the rooms that pass an availability predicate.

    Each iteration re-evaluates the predicate, so a second pass reflects holds
    placed since the first one.
    """

    def __init__(
        self,
        rooms: Iterable[Room],
        predicate: Callable[[Room], bool],
        sort_key: Optional[Callable[[Room], Any]] = None,
    ) -> None:
        self._rooms = tuple(rooms)
        self._predicate = predicate
        self._sort_key = sort_key

    def __iter__(self) -> Iterator[Room]:
        matches = (room for room in self._rooms if self._predicate(room))
        if self._sort_key is None:
            return matches
        return iter(sorted(matches, key=self._sort_key))


SEARCH_SORTS: dict[str, Callable[[RoomOffer], Any]] = {
    "price_low": lambda offer: offer.quote.total,
    "price_high": lambda offer: -offer.quote.total,
    "capacity": lambda offer: (offer.room.capacity.total, offer.quote.total),
}


class AvailabilityResolver:
    def __init__(
        self,
        inventory: Optional[RoomInventoryService] = None,
        pricing: Optional[PricingCalculator] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._inventory = inventory or RoomInventoryService(settings=self._settings)
        self._pricing = pricing or PricingCalculator(settings=self._settings)

    def unavailability_reason(
        self,
        room: Room,
        stay: DateRange,
        guests: Optional[GuestCounts] = None,
    ) -> Optional[str]:
        """Return why the room cannot take the stay, or ``None`` when it can."""
        if room.status is not RoomStatus.ACTIVE:
            return f"room status is {room.status.value}"
        if not room.is_available:
            return "room is closed for booking"
        if guests is not None and not room.capacity.accommodates(guests):
            return "guest counts exceed room capacity"
        if room.intervals.query_overlap(stay):
            return f"room is already held during {stay}"
        return None

    def is_available(
        self,
        room: Room,
        check_in: date,
        check_out: date,
        guests: Optional[GuestCounts] = None,
    ) -> bool:
        return self.unavailability_reason(room, DateRange(check_in, check_out), guests) is None

    def find_available(
        self,
        rooms: Iterable[Room],
        check_in: date,
        check_out: date,
        guests: Optional[GuestCounts] = None,
        sort_key: Optional[Callable[[Room], Any]] = None,
    ) -> AvailableRooms:
        stay = DateRange(check_in, check_out)
        return AvailableRooms(
            rooms,
            lambda room: self.unavailability_reason(room, stay, guests) is None,
            sort_key=sort_key,
        )

    def check(
        self,
        room: Room,
        check_in: date,
        check_out: date,
        guests: Optional[GuestCounts] = None,
    ) -> AvailabilityCheck:
        stay = DateRange(check_in, check_out)
        reason = self.unavailability_reason(room, stay, guests)
        return AvailabilityCheck(
            room_id=room.room_id,
            stay=stay,
            available=reason is None,
            reason=reason,
            conflicts=tuple(room.intervals.overlapping(stay)),
        )

    def search_hotel(
        self,
        hotel_id: str,
        check_in: date,
        check_out: date,
        guests: GuestCounts,
        rooms_needed: int = 1,
        sort: str = "price_low",
    ) -> list[RoomOffer]:
        """Quote every free room of a hotel; empty when fewer than ``rooms_needed`` are free."""
        if rooms_needed < 1:
            raise SearchValidationError("rooms_needed must be >= 1")
        sort_key = SEARCH_SORTS.get(sort)
        if sort_key is None:
            raise SearchValidationError(
                f"sort must be one of {sorted(SEARCH_SORTS)}"
            )

        rooms = self._inventory.list_hotel_rooms(hotel_id)
        available = list(self.find_available(rooms, check_in, check_out, guests))
        if len(available) < rooms_needed:
            logger.info(
                "Hotel search found too few rooms | hotel_id=%s | available=%s | needed=%s",
                hotel_id,
                len(available),
                rooms_needed,
            )
            return []

        offers = [
            RoomOffer(room=room, quote=self._pricing.quote(room, check_in, check_out))
            for room in available
        ]
        offers.sort(key=sort_key)
        logger.info(
            "Hotel search completed | hotel_id=%s | rooms=%s | offers=%s",
            hotel_id,
            len(rooms),
            len(offers),
        )
        return offers

    def calendar(self, room: Room, year: int, month: int) -> list[CalendarDay]:
        if not 1 <= month <= 12:
            raise SearchValidationError("month must be between 1 and 12")
        _, days_in_month = month_calendar.monthrange(year, month)
        days: list[CalendarDay] = []
        for day_number in range(1, days_in_month + 1):
            day = date(year, month, day_number)
            if room.status is not RoomStatus.ACTIVE:
                status = room.status.value
            elif not room.is_available:
                status = "unavailable"
            else:
                hold = room.intervals.interval_on(day)
                status = hold.reason.value if hold is not None else "available"
            days.append(
                CalendarDay(
                    date=day,
                    available=status == "available",
                    price=self._pricing.nightly_rate(room, day),
                    status=status,
                )
            )
        return days
