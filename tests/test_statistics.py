from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from booking_engine.domain.errors import InvalidRangeError
from booking_engine.domain.models import DateRange, GuestCounts, IntervalReason
from booking_engine.services.statistics_service import BookingStatisticsService

from conftest import HOTEL_ID, make_room


@pytest.fixture
def statistics(repository, inventory, settings) -> BookingStatisticsService:
    return BookingStatisticsService(repository=repository, inventory=inventory, settings=settings)


def test_statistics_for_empty_store(statistics) -> None:
    stats = statistics.booking_statistics()
    assert stats.total_bookings == 0
    assert stats.total_revenue == Decimal("0")
    assert stats.by_status == {}


def test_statistics_aggregate_by_status(allocator, inventory, statistics) -> None:
    inventory.add_room(make_room("hotel-test-101"))
    inventory.add_room(make_room("hotel-test-102", base_price=Decimal("150.00")))
    stay = DateRange(date(2027, 3, 10), date(2027, 3, 12))

    first = allocator.create("hotel-test-101", "guest-1", stay, GuestCounts(adults=1))
    allocator.confirm(first.booking_id, "desk")
    second = allocator.create("hotel-test-102", "guest-2", stay, GuestCounts(adults=1))
    allocator.cancel(second.booking_id, "guest-2")

    stats = statistics.booking_statistics(hotel_id=HOTEL_ID)

    assert stats.total_bookings == 2
    assert stats.total_revenue == Decimal("500.00")
    assert stats.average_booking_value == Decimal("250.00")
    assert stats.confirmed_bookings == 1
    assert stats.cancelled_bookings == 1
    assert stats.completed_bookings == 0
    assert statistics.booking_statistics(hotel_id="other-hotel").total_bookings == 0


def test_statistics_filter_by_creation_window(allocator, inventory, statistics, clock) -> None:
    inventory.add_room(make_room())
    allocator.create(
        "hotel-test-101",
        "guest-1",
        DateRange(date(2027, 3, 10), date(2027, 3, 12)),
        GuestCounts(adults=1),
    )
    clock.advance(hours=48)
    allocator.create(
        "hotel-test-101",
        "guest-2",
        DateRange(date(2027, 3, 20), date(2027, 3, 22)),
        GuestCounts(adults=1),
    )

    stats = statistics.booking_statistics(start=datetime(2027, 3, 2, tzinfo=timezone.utc))

    assert stats.total_bookings == 1


def test_occupancy_report_counts_booked_and_blocked_rooms(allocator, inventory, statistics) -> None:
    inventory.add_room(make_room("hotel-test-101"))
    inventory.add_room(make_room("hotel-test-102"))
    allocator.create(
        "hotel-test-101",
        "guest-1",
        DateRange(date(2027, 3, 10), date(2027, 3, 12)),
        GuestCounts(adults=1),
    )
    allocator.block_dates(
        "hotel-test-102",
        DateRange(date(2027, 3, 11), date(2027, 3, 13)),
        IntervalReason.MAINTENANCE,
        "ops",
    )

    report = statistics.occupancy_report(HOTEL_ID, date(2027, 3, 9), date(2027, 3, 13))

    assert report.total_rooms == 2
    assert [day.date.day for day in report.days] == [9, 10, 11, 12]
    assert [day.occupied_rooms for day in report.days] == [0, 1, 1, 0]
    assert [day.blocked_rooms for day in report.days] == [0, 0, 1, 1]
    assert report.days[1].occupancy_rate == 0.5
    assert report.average_occupancy_rate == 0.25


def test_occupancy_report_for_unknown_hotel_is_empty(statistics) -> None:
    report = statistics.occupancy_report("no-hotel", date(2027, 3, 1), date(2027, 3, 3))
    assert report.total_rooms == 0
    assert all(day.occupancy_rate == 0.0 for day in report.days)


def test_occupancy_report_rejects_empty_range(statistics) -> None:
    with pytest.raises(InvalidRangeError):
        statistics.occupancy_report(HOTEL_ID, date(2027, 3, 3), date(2027, 3, 3))
