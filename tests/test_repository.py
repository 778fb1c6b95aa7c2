from __future__ import annotations

import sqlite3
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from booking_engine.domain.models import (
    DateInterval,
    DateRange,
    GuestCounts,
    HotelPolicy,
    IntervalReason,
    RoomStatus,
    SeasonalRule,
)

from conftest import make_room


def test_initialize_database_creates_tables(repository, settings) -> None:
    with sqlite3.connect(settings.database_path) as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT name FROM sqlite_master WHERE type = 'table';")
        tables = {row[0] for row in cursor.fetchall()}
    assert {"HotelPolicies", "Rooms", "SeasonalRules", "Bookings", "RoomIntervals"} <= tables


def test_initialize_database_is_idempotent(repository) -> None:
    repository.initialize_database()
    repository.initialize_database()


def test_seed_demo_data_runs_once(repository) -> None:
    assert repository.seed_demo_data("hotel-demo") == 6
    assert repository.seed_demo_data("hotel-demo") == 0

    room_ids = repository.list_room_ids("hotel-demo")
    assert room_ids[0] == "hotel-demo-101"
    assert len(room_ids) == 6
    assert repository.get_hotel_policy("hotel-demo").cancellation_deadline_hours == 24


def test_room_round_trip_keeps_rule_order(repository) -> None:
    july = DateRange(date(2027, 7, 1), date(2027, 8, 1))
    room = make_room(
        status=RoomStatus.MAINTENANCE,
        currency="JPY",
        base_price=Decimal("15000"),
        seasonal_rules=(
            SeasonalRule(name="peak", range=july, multiplier=Decimal("2")),
            SeasonalRule(name="summer", range=july, multiplier=Decimal("1.5")),
        ),
    )
    repository.save_room(room)

    loaded = repository.get_room(room.room_id)

    assert loaded == room
    assert [rule.name for rule in loaded.seasonal_rules] == ["peak", "summer"]
    assert len(loaded.intervals) == 0


def test_missing_room_and_policy_return_none(repository) -> None:
    assert repository.get_room("nope") is None
    assert repository.get_hotel_policy("nope") is None
    assert repository.get_booking("nope") is None
    assert repository.get_booking_by_confirmation_code("NOPE1234") is None


def test_hotel_policy_upsert(repository) -> None:
    repository.save_hotel_policy(HotelPolicy(hotel_id="h-1", cancellation_deadline_hours=12))
    repository.save_hotel_policy(HotelPolicy(hotel_id="h-1", cancellation_deadline_hours=36))
    assert repository.get_hotel_policy("h-1").cancellation_deadline_hours == 36


def test_delete_interval_reports_rows_removed(repository) -> None:
    room = make_room()
    repository.save_room(room)
    block = DateRange(date(2027, 3, 1), date(2027, 3, 4))
    repository.insert_interval(
        room.room_id,
        DateInterval(range=block, reason=IntervalReason.MAINTENANCE),
    )

    assert repository.delete_interval(room.room_id, DateRange(date(2027, 3, 1), date(2027, 3, 3))) == 0
    assert repository.count_intervals(room.room_id) == 1
    assert repository.delete_interval(room.room_id, block) == 1
    assert repository.count_intervals(room.room_id) == 0


def test_duplicate_interval_row_is_rejected(repository) -> None:
    room = make_room()
    repository.save_room(room)
    block = DateInterval(
        range=DateRange(date(2027, 3, 1), date(2027, 3, 4)),
        reason=IntervalReason.BLOCKED,
    )
    repository.insert_interval(room.room_id, block)

    with pytest.raises(sqlite3.IntegrityError):
        repository.insert_interval(room.room_id, block)
    assert repository.count_intervals(room.room_id) == 1


def test_creation_window_filters_compare_instants_not_offsets(allocator, inventory, repository) -> None:
    inventory.add_room(make_room())
    booking = allocator.create(
        "hotel-test-101",
        "guest-1",
        DateRange(date(2027, 3, 10), date(2027, 3, 12)),
        GuestCounts(adults=1),
    )
    plus_two = timezone(timedelta(hours=2))

    # 13:30+02:00 is 11:30 UTC, before the 12:00 UTC creation time.
    after = repository.list_bookings(created_from=datetime(2027, 3, 1, 13, 30, tzinfo=plus_two))
    before = repository.list_bookings(created_to=datetime(2027, 3, 1, 13, 30, tzinfo=plus_two))
    naive = repository.list_bookings(created_from=datetime(2027, 3, 1, 12, 0))

    assert [item.booking_id for item in after] == [booking.booking_id]
    assert before == []
    assert [item.booking_id for item in naive] == [booking.booking_id]
