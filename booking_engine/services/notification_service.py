"""Booking lifecycle events handed to out-of-process notifiers.

Publishing never raises into the caller: a booking that has been committed
stays committed even when every subscriber fails.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from threading import Lock
from typing import Callable, Optional

from booking_engine.domain.models import Booking, GuestContact, PricingBreakdown
from booking_engine.utils.config import Settings, get_settings
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)


class BookingEventType(str, Enum):
    CREATED = "booking.created"
    CONFIRMED = "booking.confirmed"
    CANCELLED = "booking.cancelled"


@dataclass(frozen=True)
class BookingEvent:
    event_type: BookingEventType
    room_id: str
    booking_id: str
    confirmation_code: str
    contact: Optional[GuestContact]
    pricing: PricingBreakdown
    refund_amount: Decimal

    @classmethod
    def from_booking(cls, event_type: BookingEventType, booking: Booking) -> "BookingEvent":
        refund = booking.cancellation.refund_amount if booking.cancellation else Decimal("0")
        return cls(
            event_type=event_type,
            room_id=booking.room_id,
            booking_id=booking.booking_id,
            confirmation_code=booking.confirmation_code,
            contact=booking.contact,
            pricing=booking.pricing,
            refund_amount=refund,
        )


Subscriber = Callable[[BookingEvent], None]


def log_subscriber(event: BookingEvent) -> None:
    """Default subscriber standing in for the email collaborator."""
    recipient = event.contact.email if event.contact is not None else "<no contact>"
    logger.info(
        "Notification queued | event=%s | booking_id=%s | room_id=%s | to=%s | total=%s | refund=%s",
        event.event_type.value,
        event.booking_id,
        event.room_id,
        recipient,
        event.pricing.total,
        event.refund_amount,
    )


class BookingEventPublisher:
    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._subscribers: list[Subscriber] = []
        self._subscribers_lock = Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        if self._settings.notification_async:
            self._executor = ThreadPoolExecutor(
                max_workers=self._settings.notification_workers,
                thread_name_prefix="booking-events",
            )

    def subscribe(self, subscriber: Subscriber) -> None:
        with self._subscribers_lock:
            self._subscribers.append(subscriber)

    def publish(self, event: BookingEvent) -> list[Future]:
        with self._subscribers_lock:
            subscribers = list(self._subscribers)
        futures: list[Future] = []
        for subscriber in subscribers:
            if self._executor is None:
                self._deliver(subscriber, event)
            else:
                futures.append(self._executor.submit(self._deliver, subscriber, event))
        return futures

    @staticmethod
    def _deliver(subscriber: Subscriber, event: BookingEvent) -> None:
        try:
            subscriber(event)
        except Exception:
            logger.exception(
                "Notification delivery failed | event=%s | booking_id=%s",
                event.event_type.value,
                event.booking_id,
            )

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
