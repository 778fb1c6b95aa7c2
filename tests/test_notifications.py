from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal

from booking_engine.domain.models import BookingStatus, DateRange, GuestCounts
from booking_engine.services.notification_service import (
    BookingEvent,
    BookingEventPublisher,
    BookingEventType,
)

from conftest import make_room


STAY = DateRange(date(2027, 3, 10), date(2027, 3, 12))


def test_lifecycle_events_are_published(allocator, inventory, publisher, clock) -> None:
    received: list[BookingEvent] = []
    publisher.subscribe(received.append)
    inventory.add_room(make_room())

    booking = allocator.create("hotel-test-101", "guest-1", STAY, GuestCounts(adults=1))
    allocator.confirm(booking.booking_id, "desk")
    allocator.cancel(booking.booking_id, "guest-1")

    assert [event.event_type for event in received] == [
        BookingEventType.CREATED,
        BookingEventType.CONFIRMED,
        BookingEventType.CANCELLED,
    ]
    assert received[0].confirmation_code == booking.confirmation_code
    assert received[-1].refund_amount == Decimal("200.00")


def test_failing_subscriber_does_not_roll_back_booking(allocator, inventory, publisher, caplog) -> None:
    def broken(event: BookingEvent) -> None:
        raise ConnectionError("smtp down")

    received: list[BookingEvent] = []
    publisher.subscribe(broken)
    publisher.subscribe(received.append)
    room = inventory.add_room(make_room())

    with caplog.at_level("ERROR"):
        booking = allocator.create(room.room_id, "guest-1", STAY, GuestCounts(adults=1))

    assert allocator.get_booking(booking.booking_id).status is BookingStatus.PENDING
    assert room.intervals.find_exact(STAY) is not None
    assert len(received) == 1
    assert any("Notification delivery failed" in record.getMessage() for record in caplog.records)


def test_async_publisher_delivers_on_worker_threads(settings, allocator, inventory) -> None:
    async_publisher = BookingEventPublisher(settings=replace(settings, notification_async=True))
    received: list[BookingEvent] = []
    async_publisher.subscribe(received.append)
    inventory.add_room(make_room())
    booking = allocator.create("hotel-test-101", "guest-1", STAY, GuestCounts(adults=1))

    futures = async_publisher.publish(BookingEvent.from_booking(BookingEventType.CREATED, booking))
    for future in futures:
        future.result(timeout=5)
    async_publisher.shutdown()

    assert [event.booking_id for event in received] == [booking.booking_id]
