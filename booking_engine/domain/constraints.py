"""Domain-level validation rules for stays, status transitions and refunds."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from booking_engine.domain.errors import (
    AlreadyTerminalError,
    InvalidDatesError,
    InvalidRangeError,
    InvalidTransitionError,
)
from booking_engine.domain.models import BookingStatus, DateRange, RefundPolicy, Room


@dataclass(frozen=True)
class BookingPolicyConfig:
    cancellation_deadline_hours: int
    full_refund_hours: int
    partial_refund_hours: int
    partial_refund_ratio: float
    lock_timeout_seconds: float


def validate_policy_config(config: BookingPolicyConfig) -> None:
    if config.cancellation_deadline_hours < 0:
        raise ValueError("cancellation_deadline_hours must be >= 0")
    if config.partial_refund_hours < 0:
        raise ValueError("partial_refund_hours must be >= 0")
    if config.full_refund_hours < config.partial_refund_hours:
        raise ValueError("full_refund_hours must be >= partial_refund_hours")
    if not 0.0 <= config.partial_refund_ratio <= 1.0:
        raise ValueError("partial_refund_ratio must be between 0 and 1")
    if config.lock_timeout_seconds <= 0:
        raise ValueError("lock_timeout_seconds must be > 0")


BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.CHECKED_IN, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
    ),
    BookingStatus.CHECKED_IN: frozenset({BookingStatus.CHECKED_OUT}),
    BookingStatus.CHECKED_OUT: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}

CANCELLATION_TERMINAL_STATUSES = frozenset(
    {
        BookingStatus.CANCELLED,
        BookingStatus.COMPLETED,
        BookingStatus.CHECKED_OUT,
        BookingStatus.NO_SHOW,
    }
)

ACTIVE_BOOKING_STATUSES = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN}
)


def validate_transition(current: BookingStatus, target: BookingStatus) -> None:
    if target is BookingStatus.CANCELLED and current in CANCELLATION_TERMINAL_STATUSES:
        raise AlreadyTerminalError(f"booking is already {current.value}")
    if target not in BOOKING_TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"cannot move booking from {current.value} to {target.value}"
        )


def stay_range(check_in: date, check_out: date) -> DateRange:
    """Build the stay for a new booking; an empty or inverted stay is a date error."""
    try:
        return DateRange(check_in, check_out)
    except InvalidRangeError as exc:
        raise InvalidDatesError(
            f"check-out {check_out.isoformat()} must be after check-in {check_in.isoformat()}"
        ) from exc


def validate_stay_dates(room: Room, stay: DateRange, today: date) -> None:
    """Reject stays in the past, outside stay limits or beyond the booking window."""
    if stay.start < today:
        raise InvalidDatesError("check-in date cannot be in the past")
    if stay.nights < room.minimum_stay:
        raise InvalidDatesError(
            f"stay of {stay.nights} nights is shorter than the minimum of {room.minimum_stay}"
        )
    if stay.nights > room.maximum_stay:
        raise InvalidDatesError(
            f"stay of {stay.nights} nights exceeds the maximum of {room.maximum_stay}"
        )
    if stay.start > today + timedelta(days=room.advance_booking_days):
        raise InvalidDatesError(
            f"check-in is more than {room.advance_booking_days} days ahead"
        )


def determine_refund_policy(
    hours_until_check_in: float,
    config: BookingPolicyConfig,
) -> RefundPolicy:
    """Both tier boundaries are inclusive: exactly 48h is a full refund."""
    if hours_until_check_in >= config.full_refund_hours:
        return RefundPolicy.FULL_REFUND
    if hours_until_check_in >= config.partial_refund_hours:
        return RefundPolicy.PARTIAL_REFUND
    return RefundPolicy.NO_REFUND
