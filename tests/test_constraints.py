"""Tests for booking policy validation, status transitions and stay rules."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from booking_engine.domain.constraints import (
    BookingPolicyConfig,
    determine_refund_policy,
    validate_policy_config,
    validate_stay_dates,
    validate_transition,
)
from booking_engine.domain.errors import (
    AlreadyTerminalError,
    InvalidDatesError,
    InvalidTransitionError,
)
from booking_engine.domain.models import (
    BookingStatus,
    Capacity,
    DateRange,
    RefundPolicy,
    Room,
)


def valid_config(**overrides) -> BookingPolicyConfig:
    """Return a valid baseline BookingPolicyConfig, optionally overriding fields."""
    defaults = {
        "cancellation_deadline_hours": 24,
        "full_refund_hours": 48,
        "partial_refund_hours": 24,
        "partial_refund_ratio": 0.5,
        "lock_timeout_seconds": 5.0,
    }
    defaults.update(overrides)
    return BookingPolicyConfig(**defaults)


def _room(**overrides) -> Room:
    defaults = {
        "room_id": "r-1",
        "hotel_id": "h-1",
        "room_number": "101",
        "name": "Standard",
        "capacity": Capacity(adults=2),
        "base_price": Decimal("100.00"),
        "minimum_stay": 1,
        "maximum_stay": 14,
        "advance_booking_days": 90,
    }
    defaults.update(overrides)
    return Room(**defaults)


# --- Policy config ---

def test_valid_config_passes() -> None:
    validate_policy_config(valid_config())


def test_negative_deadline_raises() -> None:
    with pytest.raises(ValueError):
        validate_policy_config(valid_config(cancellation_deadline_hours=-1))


def test_full_tier_below_partial_tier_raises() -> None:
    with pytest.raises(ValueError):
        validate_policy_config(valid_config(full_refund_hours=12, partial_refund_hours=24))


def test_partial_ratio_above_one_raises() -> None:
    with pytest.raises(ValueError):
        validate_policy_config(valid_config(partial_refund_ratio=1.01))


def test_lock_timeout_zero_raises() -> None:
    with pytest.raises(ValueError):
        validate_policy_config(valid_config(lock_timeout_seconds=0))


# --- Refund tiers ---

@pytest.mark.parametrize(
    ("hours", "expected"),
    [
        (50.0, RefundPolicy.FULL_REFUND),
        (48.0, RefundPolicy.FULL_REFUND),
        (47.99, RefundPolicy.PARTIAL_REFUND),
        (30.0, RefundPolicy.PARTIAL_REFUND),
        (24.0, RefundPolicy.PARTIAL_REFUND),
        (23.5, RefundPolicy.NO_REFUND),
    ],
)
def test_refund_tier_boundaries_are_inclusive(hours: float, expected: RefundPolicy) -> None:
    assert determine_refund_policy(hours, valid_config()) is expected


# --- Transitions ---

def test_pending_can_be_confirmed_and_cancelled() -> None:
    validate_transition(BookingStatus.PENDING, BookingStatus.CONFIRMED)
    validate_transition(BookingStatus.PENDING, BookingStatus.CANCELLED)


def test_pending_cannot_check_in() -> None:
    with pytest.raises(InvalidTransitionError):
        validate_transition(BookingStatus.PENDING, BookingStatus.CHECKED_IN)


def test_checked_in_cannot_be_cancelled() -> None:
    with pytest.raises(InvalidTransitionError):
        validate_transition(BookingStatus.CHECKED_IN, BookingStatus.CANCELLED)


@pytest.mark.parametrize(
    "status",
    [
        BookingStatus.CANCELLED,
        BookingStatus.COMPLETED,
        BookingStatus.CHECKED_OUT,
        BookingStatus.NO_SHOW,
    ],
)
def test_cancel_from_terminal_status_raises_already_terminal(status: BookingStatus) -> None:
    with pytest.raises(AlreadyTerminalError):
        validate_transition(status, BookingStatus.CANCELLED)


def test_checked_out_moves_to_completed() -> None:
    validate_transition(BookingStatus.CHECKED_OUT, BookingStatus.COMPLETED)


# --- Stay dates ---

def test_stay_in_window_passes() -> None:
    validate_stay_dates(_room(), DateRange(date(2027, 3, 10), date(2027, 3, 12)), date(2027, 3, 1))


def test_check_in_today_is_allowed() -> None:
    validate_stay_dates(_room(), DateRange(date(2027, 3, 1), date(2027, 3, 2)), date(2027, 3, 1))


def test_past_check_in_raises() -> None:
    with pytest.raises(InvalidDatesError):
        validate_stay_dates(_room(), DateRange(date(2027, 2, 27), date(2027, 3, 2)), date(2027, 3, 1))


def test_stay_shorter_than_minimum_raises() -> None:
    with pytest.raises(InvalidDatesError):
        validate_stay_dates(
            _room(minimum_stay=3),
            DateRange(date(2027, 3, 10), date(2027, 3, 12)),
            date(2027, 3, 1),
        )


def test_stay_longer_than_maximum_raises() -> None:
    with pytest.raises(InvalidDatesError):
        validate_stay_dates(_room(), DateRange(date(2027, 3, 10), date(2027, 3, 30)), date(2027, 3, 1))


def test_check_in_beyond_advance_window_raises() -> None:
    with pytest.raises(InvalidDatesError):
        validate_stay_dates(_room(), DateRange(date(2027, 6, 1), date(2027, 6, 3)), date(2027, 3, 1))
