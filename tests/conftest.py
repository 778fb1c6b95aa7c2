from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from booking_engine.domain.models import Capacity, Room
from booking_engine.repository.data_repository import DataRepository
from booking_engine.services.availability_service import AvailabilityResolver
from booking_engine.services.booking_service import BookingAllocator
from booking_engine.services.inventory_service import RoomInventoryService
from booking_engine.services.notification_service import BookingEventPublisher
from booking_engine.services.pricing_service import PricingCalculator
from booking_engine.utils.config import get_settings


HOTEL_ID = "hotel-test"


class FixedClock:
    """Deterministic replacement for ``datetime.now(timezone.utc)``."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, hours: float) -> None:
        self.now = self.now + timedelta(hours=hours)


def make_room(room_id: str = "hotel-test-101", **overrides) -> Room:
    defaults = {
        "room_id": room_id,
        "hotel_id": HOTEL_ID,
        "room_number": room_id.rsplit("-", 1)[-1],
        "name": "Standard Double",
        "capacity": Capacity(adults=2, children=1, infants=1),
        "base_price": Decimal("100.00"),
        "taxes_and_fees": Decimal("0"),
    }
    defaults.update(overrides)
    return Room(**defaults)


@pytest.fixture
def settings(tmp_path):
    get_settings.cache_clear()
    return replace(
        get_settings(),
        database_path=tmp_path / "booking_engine_test.db",
        notification_async=False,
        seed_demo_data=False,
        lock_timeout_seconds=2.0,
    )


@pytest.fixture
def repository(settings) -> DataRepository:
    repo = DataRepository(settings)
    repo.initialize_database()
    return repo


@pytest.fixture
def inventory(repository, settings) -> RoomInventoryService:
    return RoomInventoryService(repository=repository, settings=settings)


@pytest.fixture
def pricing(settings) -> PricingCalculator:
    return PricingCalculator(settings=settings)


@pytest.fixture
def resolver(inventory, pricing, settings) -> AvailabilityResolver:
    return AvailabilityResolver(inventory=inventory, pricing=pricing, settings=settings)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2027, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def publisher(settings):
    events = BookingEventPublisher(settings=settings)
    yield events
    events.shutdown()


@pytest.fixture
def allocator(repository, inventory, resolver, pricing, publisher, settings, clock) -> BookingAllocator:
    return BookingAllocator(
        repository=repository,
        inventory=inventory,
        resolver=resolver,
        pricing=pricing,
        publisher=publisher,
        settings=settings,
        clock=clock,
    )
