"""Booking statistics and per-day occupancy reporting."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import numpy as np
import pandas as pd

from booking_engine.domain.models import BookingStatus, DateRange, IntervalReason
from booking_engine.repository.data_repository import DataRepository
from booking_engine.services.inventory_service import RoomInventoryService
from booking_engine.services.pricing_service import quantize_money
from booking_engine.utils.config import Settings, get_settings
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class BookingStatistics:
    total_bookings: int
    total_revenue: Decimal
    average_booking_value: Decimal
    confirmed_bookings: int
    cancelled_bookings: int
    completed_bookings: int
    by_status: dict[str, int]


@dataclass(frozen=True)
class OccupancyDay:
    date: date
    occupied_rooms: int
    blocked_rooms: int
    occupancy_rate: float


@dataclass(frozen=True)
class OccupancyReport:
    hotel_id: str
    range: DateRange
    total_rooms: int
    days: tuple[OccupancyDay, ...]
    average_occupancy_rate: float


class BookingStatisticsService:
    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        inventory: Optional[RoomInventoryService] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._inventory = inventory or RoomInventoryService(
            repository=self._repository,
            settings=self._settings,
        )

    def booking_statistics(
        self,
        hotel_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> BookingStatistics:
        """Aggregate bookings created in ``[start, end]``, optionally for one hotel.

        Revenue sums the priced total of every matched booking, cancelled ones
        included. Amounts are summed per currency-less Decimal, so callers
        mixing currencies should filter by hotel.
        """
        bookings = self._repository.list_bookings(
            hotel_id=hotel_id,
            created_from=start,
            created_to=end,
        )
        frame = pd.DataFrame(
            [
                {
                    "status": booking.status.value,
                    "total": booking.pricing.total,
                    "currency": booking.pricing.currency,
                }
                for booking in bookings
            ],
            columns=["status", "total", "currency"],
        )
        if frame.empty:
            return BookingStatistics(
                total_bookings=0,
                total_revenue=Decimal("0"),
                average_booking_value=Decimal("0"),
                confirmed_bookings=0,
                cancelled_bookings=0,
                completed_bookings=0,
                by_status={},
            )

        currency = str(frame["currency"].mode().iloc[0])
        total_revenue = sum(frame["total"], Decimal("0"))
        average = quantize_money(total_revenue / len(frame), currency)
        by_status = {str(status): int(count) for status, count in frame["status"].value_counts().items()}

        stats = BookingStatistics(
            total_bookings=int(len(frame)),
            total_revenue=total_revenue,
            average_booking_value=average,
            confirmed_bookings=by_status.get(BookingStatus.CONFIRMED.value, 0),
            cancelled_bookings=by_status.get(BookingStatus.CANCELLED.value, 0),
            completed_bookings=by_status.get(BookingStatus.COMPLETED.value, 0),
            by_status=by_status,
        )
        logger.info(
            "Booking statistics completed | hotel_id=%s | bookings=%s | revenue=%s",
            hotel_id,
            stats.total_bookings,
            stats.total_revenue,
        )
        return stats

    def occupancy_report(self, hotel_id: str, start: date, end: date) -> OccupancyReport:
        """Per-day count of booked and blocked rooms over the half-open ``[start, end)``."""
        report_range = DateRange(start, end)
        rooms = self._inventory.list_hotel_rooms(hotel_id)
        days = pd.date_range(start=start, end=end, freq="D", inclusive="left")
        day_values = days.values.astype("datetime64[D]")

        booked = np.zeros((len(rooms), len(days)), dtype=bool)
        blocked = np.zeros((len(rooms), len(days)), dtype=bool)
        for row, room in enumerate(rooms):
            for interval in room.intervals.overlapping(report_range):
                mask = (day_values >= np.datetime64(interval.range.start, "D")) & (
                    day_values < np.datetime64(interval.range.end, "D")
                )
                if interval.reason is IntervalReason.BOOKED:
                    booked[row] |= mask
                else:
                    blocked[row] |= mask

        occupied_counts = booked.sum(axis=0)
        blocked_counts = blocked.sum(axis=0)
        if rooms:
            rates = occupied_counts / float(len(rooms))
        else:
            rates = np.zeros(len(days), dtype=float)

        report_days = tuple(
            OccupancyDay(
                date=day.date(),
                occupied_rooms=int(occupied_counts[index]),
                blocked_rooms=int(blocked_counts[index]),
                occupancy_rate=round(float(rates[index]), 4),
            )
            for index, day in enumerate(days)
        )
        average_rate = round(float(rates.mean()), 4) if len(days) else 0.0
        logger.info(
            "Occupancy report completed | hotel_id=%s | range=%s | rooms=%s | average_rate=%s",
            hotel_id,
            report_range,
            len(rooms),
            average_rate,
        )
        return OccupancyReport(
            hotel_id=hotel_id,
            range=report_range,
            total_rooms=len(rooms),
            days=report_days,
            average_occupancy_rate=average_rate,
        )
