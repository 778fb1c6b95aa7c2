"""Booking allocation: the transactional boundary around room holds.

``create`` and ``cancel`` run under the room's lock so that the availability
check, the in-memory hold change and the SQLite write form one unit. The
in-memory :class:`IntervalSet` is changed first; if the database write then
fails, the hold change is undone before the error propagates. Notifications
are published only after the lock is released.
"""

from __future__ import annotations

import secrets
import string
from dataclasses import replace
from datetime import datetime, time, timezone
from decimal import Decimal
from typing import Any, Callable, Optional
from uuid import uuid4

from booking_engine.domain.constraints import (
    ACTIVE_BOOKING_STATUSES,
    BookingPolicyConfig,
    determine_refund_policy,
    validate_policy_config,
    validate_stay_dates,
    validate_transition,
)
from booking_engine.domain.errors import (
    CancellationWindowClosedError,
    ConflictError,
    InternalInconsistencyError,
    InvalidTransitionError,
    NotFoundError,
    RoomUnavailableError,
)
from booking_engine.domain.models import (
    Booking,
    BookingStatus,
    CancellationReason,
    CancellationRecord,
    DateInterval,
    DateRange,
    GuestContact,
    GuestCounts,
    IntervalReason,
    PaymentMethod,
    PaymentState,
    PaymentStatus,
    Room,
    RoomStatus,
)
from booking_engine.repository.data_repository import DataRepository
from booking_engine.services.availability_service import AvailabilityResolver
from booking_engine.services.inventory_service import RoomInventoryService
from booking_engine.services.notification_service import (
    BookingEvent,
    BookingEventPublisher,
    BookingEventType,
)
from booking_engine.services.pricing_service import PricingCalculator
from booking_engine.utils.config import Settings, get_settings
from booking_engine.utils.locks import ResourceLockRegistry
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_booking_id() -> str:
    return f"BK{uuid4().hex[:16].upper()}"


def generate_confirmation_code(length: int = 8) -> str:
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))


def policy_config_from_settings(settings: Settings) -> BookingPolicyConfig:
    return BookingPolicyConfig(
        cancellation_deadline_hours=settings.cancellation_deadline_hours,
        full_refund_hours=settings.full_refund_hours,
        partial_refund_hours=settings.partial_refund_hours,
        partial_refund_ratio=settings.partial_refund_ratio,
        lock_timeout_seconds=settings.lock_timeout_seconds,
    )


class BookingAllocator:
    """Creates bookings and drives them through their lifecycle."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        inventory: Optional[RoomInventoryService] = None,
        resolver: Optional[AvailabilityResolver] = None,
        pricing: Optional[PricingCalculator] = None,
        publisher: Optional[BookingEventPublisher] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._config = policy_config_from_settings(self._settings)
        validate_policy_config(self._config)

        self._repository = repository or DataRepository(self._settings)
        self._inventory = inventory or RoomInventoryService(
            repository=self._repository,
            settings=self._settings,
        )
        self._pricing = pricing or PricingCalculator(settings=self._settings)
        self._resolver = resolver or AvailabilityResolver(
            inventory=self._inventory,
            pricing=self._pricing,
            settings=self._settings,
        )
        self._publisher = publisher or BookingEventPublisher(settings=self._settings)
        self._locks = ResourceLockRegistry(self._config.lock_timeout_seconds)
        self._clock = clock or _utc_now

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------
    def create(
        self,
        room_id: str,
        requester_id: str,
        stay: DateRange,
        guests: GuestCounts,
        payment_method: PaymentMethod = PaymentMethod.CARD,
        contact: Optional[GuestContact] = None,
        special_requests: Optional[str] = None,
    ) -> Booking:
        now = self._clock()
        validate_stay_dates(self._inventory.get_room(room_id), stay, now.date())

        with self._locks.hold(room_id):
            room = self._inventory.get_room(room_id)
            reason = self._resolver.unavailability_reason(room, stay, guests)
            if reason is not None:
                logger.info(
                    "Booking rejected | room_id=%s | range=%s | reason=%s",
                    room_id,
                    stay,
                    reason,
                )
                raise RoomUnavailableError(reason)

            quote = self._pricing.quote(room, stay.start, stay.end)
            booking = Booking(
                booking_id=generate_booking_id(),
                confirmation_code=generate_confirmation_code(),
                room_id=room.room_id,
                hotel_id=room.hotel_id,
                requester_id=requester_id,
                guests=guests,
                stay=stay,
                pricing=quote,
                payment=PaymentState(method=payment_method),
                status=BookingStatus.PENDING,
                contact=contact,
                special_requests=special_requests,
                created_at=now,
                updated_at=now,
                last_modified_by=requester_id,
                last_action="created",
            )

            try:
                interval = room.intervals.insert(stay, IntervalReason.BOOKED, booking.booking_id)
            except ConflictError as exc:
                logger.warning(
                    "Hold insert lost to an overlapping hold | room_id=%s | range=%s",
                    room_id,
                    stay,
                )
                raise RoomUnavailableError(str(exc)) from exc

            try:
                self._repository.insert_booking_with_interval(booking, interval)
            except Exception:
                room.intervals.remove_exact(stay)
                logger.exception(
                    "Booking persistence failed; hold released | room_id=%s | booking_id=%s | range=%s",
                    room_id,
                    booking.booking_id,
                    stay,
                )
                raise

        logger.info(
            "Booking created | booking_id=%s | room_id=%s | range=%s | total=%s %s",
            booking.booking_id,
            room_id,
            stay,
            quote.total,
            quote.currency,
        )
        self._publisher.publish(BookingEvent.from_booking(BookingEventType.CREATED, booking))
        return booking

    # ------------------------------------------------------------------
    # Lifecycle transitions
    # ------------------------------------------------------------------
    def confirm(
        self,
        booking_id: str,
        actor_id: str,
        paid_amount: Optional[Decimal] = None,
    ) -> Booking:
        """Confirm a pending booking whose payment the caller already verified."""

        def apply(booking: Booking, now: datetime) -> Booking:
            amount = paid_amount if paid_amount is not None else booking.pricing.total
            if amount < 0:
                raise ValueError("paid_amount cannot be negative")
            payment = replace(
                booking.payment,
                status=PaymentStatus.COMPLETED,
                paid_amount=amount,
                paid_at=now,
            )
            return replace(booking, payment=payment)

        booking = self._transition(booking_id, actor_id, BookingStatus.CONFIRMED, "confirmed", apply)
        self._publisher.publish(BookingEvent.from_booking(BookingEventType.CONFIRMED, booking))
        return booking

    def check_in(self, booking_id: str, actor_id: str) -> Booking:
        return self._transition(booking_id, actor_id, BookingStatus.CHECKED_IN, "checked-in")

    def check_out(self, booking_id: str, actor_id: str) -> Booking:
        return self._transition(booking_id, actor_id, BookingStatus.CHECKED_OUT, "checked-out")

    def mark_no_show(self, booking_id: str, actor_id: str) -> Booking:
        return self._transition(booking_id, actor_id, BookingStatus.NO_SHOW, "no-show")

    def complete(self, booking_id: str, actor_id: str) -> Booking:
        return self._transition(booking_id, actor_id, BookingStatus.COMPLETED, "completed")

    def _transition(
        self,
        booking_id: str,
        actor_id: str,
        target: BookingStatus,
        action: str,
        apply: Optional[Callable[[Booking, datetime], Booking]] = None,
    ) -> Booking:
        room_id = self.get_booking(booking_id).room_id
        with self._locks.hold(room_id):
            booking = self.get_booking(booking_id)
            validate_transition(booking.status, target)
            now = self._clock()
            if apply is not None:
                booking = apply(booking, now)
            updated = replace(
                booking,
                status=target,
                updated_at=now,
                last_modified_by=actor_id,
                last_action=action,
            )
            self._repository.update_booking(updated)
        logger.info(
            "Booking status changed | booking_id=%s | status=%s | actor=%s",
            booking_id,
            target.value,
            actor_id,
        )
        return updated

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------
    def cancel(
        self,
        booking_id: str,
        actor_id: str,
        reason: CancellationReason = CancellationReason.GUEST_REQUEST,
    ) -> Booking:
        room_id = self.get_booking(booking_id).room_id
        with self._locks.hold(room_id):
            booking = self.get_booking(booking_id)
            validate_transition(booking.status, BookingStatus.CANCELLED)

            now = self._clock()
            deadline_hours = self._inventory.get_hotel_policy(
                booking.hotel_id
            ).cancellation_deadline_hours
            check_in_at = datetime.combine(booking.check_in, time.min, tzinfo=timezone.utc)
            hours_until = (check_in_at - now).total_seconds() / 3600
            if hours_until <= deadline_hours:
                raise CancellationWindowClosedError(
                    f"cancellations close {deadline_hours}h before check-in"
                )

            refund_policy = determine_refund_policy(hours_until, self._config)
            refund = self._pricing.refund_amount(
                booking.payment.paid_amount,
                refund_policy,
                booking.pricing.currency,
                partial_ratio=self._config.partial_refund_ratio,
            )

            room = self._inventory.get_room(booking.room_id)
            hold = room.intervals.find_exact(booking.stay)
            if hold is None or hold.booking_id != booking.booking_id:
                self._report_inconsistency(booking, "hold for cancelled booking is missing")
            room.intervals.remove_exact(booking.stay)

            payment = booking.payment
            if refund > 0:
                payment = replace(
                    payment,
                    status=(
                        PaymentStatus.REFUNDED
                        if refund >= payment.paid_amount
                        else PaymentStatus.PARTIALLY_REFUNDED
                    ),
                    refund_amount=refund,
                    refunded_at=now,
                )
            cancelled = replace(
                booking,
                status=BookingStatus.CANCELLED,
                payment=payment,
                cancellation=CancellationRecord(
                    cancelled_at=now,
                    cancelled_by=actor_id,
                    reason=reason,
                    refund_policy=refund_policy,
                    refund_amount=refund,
                    hours_before_check_in=round(hours_until, 2),
                ),
                updated_at=now,
                last_modified_by=actor_id,
                last_action="cancelled",
            )

            try:
                deleted = self._repository.update_booking_and_release(cancelled)
            except Exception:
                self._restore_hold(room.intervals, hold)
                logger.exception(
                    "Cancellation persistence failed; hold restored | booking_id=%s",
                    booking_id,
                )
                raise
            if deleted != 1:
                self._restore_hold(room.intervals, hold)
                self._report_inconsistency(booking, "stored hold row is missing")

        logger.info(
            "Booking cancelled | booking_id=%s | room_id=%s | refund_policy=%s | refund=%s",
            booking_id,
            cancelled.room_id,
            refund_policy.value,
            refund,
        )
        self._publisher.publish(BookingEvent.from_booking(BookingEventType.CANCELLED, cancelled))
        return cancelled

    @staticmethod
    def _restore_hold(intervals, hold: DateInterval) -> None:
        intervals.insert(hold.range, hold.reason, hold.booking_id)

    @staticmethod
    def _report_inconsistency(booking: Booking, detail: str) -> None:
        logger.error(
            "Hold invariant violated | room_id=%s | booking_id=%s | range=%s | status=%s | detail=%s",
            booking.room_id,
            booking.booking_id,
            booking.stay,
            booking.status.value,
            detail,
        )
        raise InternalInconsistencyError(
            f"booking {booking.booking_id} on room {booking.room_id}: {detail}"
        )

    # ------------------------------------------------------------------
    # Manual holds
    # ------------------------------------------------------------------
    def block_dates(
        self,
        room_id: str,
        stay: DateRange,
        reason: IntervalReason,
        actor_id: str,
    ) -> DateInterval:
        if reason is IntervalReason.BOOKED:
            raise ValueError("booked holds are created through bookings only")
        with self._locks.hold(room_id):
            room = self._inventory.get_room(room_id)
            interval = room.intervals.insert(stay, reason)
            try:
                self._repository.insert_interval(room_id, interval)
            except Exception:
                room.intervals.remove_exact(stay)
                logger.exception("Block persistence failed | room_id=%s | range=%s", room_id, stay)
                raise
        logger.info(
            "Room dates blocked | room_id=%s | range=%s | reason=%s | actor=%s",
            room_id,
            stay,
            reason.value,
            actor_id,
        )
        return interval

    def unblock_dates(self, room_id: str, stay: DateRange, actor_id: str) -> DateInterval:
        with self._locks.hold(room_id):
            room = self._inventory.get_room(room_id)
            hold = room.intervals.find_exact(stay)
            if hold is None:
                raise NotFoundError(f"no hold with range {stay} on room {room_id}")
            if hold.reason is IntervalReason.BOOKED:
                raise InvalidTransitionError("booked holds are released by cancelling the booking")
            room.intervals.remove_exact(stay)
            try:
                deleted = self._repository.delete_interval(room_id, stay)
            except Exception:
                self._restore_hold(room.intervals, hold)
                raise
            if deleted != 1:
                self._restore_hold(room.intervals, hold)
                logger.error(
                    "Hold invariant violated | room_id=%s | range=%s | detail=stored block row is missing",
                    room_id,
                    stay,
                )
                raise InternalInconsistencyError(f"stored block {stay} on room {room_id} is missing")
        logger.info("Room dates unblocked | room_id=%s | range=%s | actor=%s", room_id, stay, actor_id)
        return hold

    # ------------------------------------------------------------------
    # Room administration
    # ------------------------------------------------------------------
    def update_room(self, room_id: str, actor_id: str, **changes: Any) -> Room:
        """Edit room attributes under the room lock so no create sees a half-applied change."""
        with self._locks.hold(room_id):
            updated = self._inventory.update_room(room_id, **changes)
        logger.info(
            "Room edited | room_id=%s | fields=%s | actor=%s",
            room_id,
            sorted(changes),
            actor_id,
        )
        return updated

    def retire_room(self, room_id: str, actor_id: str) -> Room:
        """Soft-delete a room by marking it inactive; refused while it has live bookings."""
        with self._locks.hold(room_id):
            self._inventory.get_room(room_id)
            active = self._repository.count_room_bookings(room_id, ACTIVE_BOOKING_STATUSES)
            if active:
                raise InvalidTransitionError(
                    f"room {room_id} has {active} active bookings and cannot be retired"
                )
            retired = self._inventory.update_room(room_id, status=RoomStatus.INACTIVE)
        logger.info("Room retired | room_id=%s | actor=%s", room_id, actor_id)
        return retired

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def get_booking(self, booking_id: str) -> Booking:
        booking = self._repository.get_booking(booking_id)
        if booking is None:
            raise NotFoundError(f"booking {booking_id} not found")
        return booking

    def get_by_confirmation_code(self, confirmation_code: str) -> Booking:
        booking = self._repository.get_booking_by_confirmation_code(confirmation_code)
        if booking is None:
            raise NotFoundError(f"booking with confirmation code {confirmation_code} not found")
        return booking
