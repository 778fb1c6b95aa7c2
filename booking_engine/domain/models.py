"""Domain models for rooms, stays, pricing snapshots and bookings."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from booking_engine.domain.interval_set import (
    DateInterval,
    DateRange,
    IntervalReason,
    IntervalSet,
)


__all__ = [
    "Booking",
    "BookingStatus",
    "CancellationReason",
    "CancellationRecord",
    "Capacity",
    "DateInterval",
    "DateRange",
    "GuestContact",
    "GuestCounts",
    "HotelPolicy",
    "IntervalReason",
    "IntervalSet",
    "NightlyRate",
    "PaymentMethod",
    "PaymentState",
    "PaymentStatus",
    "PricingBreakdown",
    "RefundPolicy",
    "Room",
    "RoomStatus",
    "SeasonalRule",
]


class RoomStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"
    OUT_OF_ORDER = "out-of-order"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"
    COMPLETED = "completed"


class PaymentMethod(str, Enum):
    CARD = "card"
    PAYPAL = "paypal"
    BANK_TRANSFER = "bank-transfer"
    CASH = "cash"
    OTHER = "other"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially-refunded"


class RefundPolicy(str, Enum):
    FULL_REFUND = "full-refund"
    PARTIAL_REFUND = "partial-refund"
    NO_REFUND = "no-refund"


class CancellationReason(str, Enum):
    GUEST_REQUEST = "guest-request"
    HOTEL_CANCELLATION = "hotel-cancellation"
    PAYMENT_FAILURE = "payment-failure"
    OVERBOOKING = "overbooking"
    FORCE_MAJEURE = "force-majeure"
    OTHER = "other"


@dataclass(frozen=True)
class GuestCounts:
    adults: int
    children: int = 0
    infants: int = 0

    def __post_init__(self) -> None:
        if self.adults < 1:
            raise ValueError("at least one adult is required")
        if self.children < 0 or self.infants < 0:
            raise ValueError("guest counts cannot be negative")

    @property
    def total(self) -> int:
        return self.adults + self.children + self.infants


@dataclass(frozen=True)
class Capacity:
    adults: int
    children: int = 0
    infants: int = 0

    def accommodates(self, guests: GuestCounts) -> bool:
        """Each category is checked on its own; spare child beds never seat adults."""
        return (
            guests.adults <= self.adults
            and guests.children <= self.children
            and guests.infants <= self.infants
        )

    @property
    def total(self) -> int:
        return self.adults + self.children + self.infants


@dataclass(frozen=True)
class SeasonalRule:
    name: str
    range: DateRange
    multiplier: Decimal

    def __post_init__(self) -> None:
        if not Decimal("0.1") <= self.multiplier <= Decimal("10"):
            raise ValueError("seasonal multiplier must be between 0.1 and 10")


@dataclass(frozen=True)
class HotelPolicy:
    hotel_id: str
    cancellation_deadline_hours: int = 24


@dataclass(frozen=True)
class Room:
    room_id: str
    hotel_id: str
    room_number: str
    name: str
    capacity: Capacity
    base_price: Decimal
    currency: str = "USD"
    taxes_and_fees: Decimal = Decimal("0")
    discount_percentage: Decimal = Decimal("0")
    seasonal_rules: tuple[SeasonalRule, ...] = ()
    status: RoomStatus = RoomStatus.ACTIVE
    is_available: bool = True
    minimum_stay: int = 1
    maximum_stay: int = 365
    advance_booking_days: int = 365
    intervals: IntervalSet = field(default_factory=IntervalSet, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.base_price < 0:
            raise ValueError("base price cannot be negative")
        if self.taxes_and_fees < 0:
            raise ValueError("taxes and fees cannot be negative")
        if not Decimal("0") <= self.discount_percentage <= Decimal("100"):
            raise ValueError("discount percentage must be between 0 and 100")
        if self.minimum_stay < 1 or self.maximum_stay < 1:
            raise ValueError("stay limits must be at least 1 night")
        if self.minimum_stay > self.maximum_stay:
            raise ValueError("minimum stay cannot exceed maximum stay")
        if self.advance_booking_days < 0:
            raise ValueError("advance booking days cannot be negative")


@dataclass(frozen=True)
class NightlyRate:
    date: date
    rate: Decimal


@dataclass(frozen=True)
class PricingBreakdown:
    """Price of one stay. Stored on the booking as its immutable snapshot."""

    currency: str
    nights: int
    nightly_rates: tuple[NightlyRate, ...]
    base_amount: Decimal
    discount_amount: Decimal
    subtotal: Decimal
    taxes_and_fees: Decimal
    fees: Decimal
    total: Decimal
    average_per_night: Decimal


@dataclass(frozen=True)
class GuestContact:
    first_name: str
    last_name: str
    email: str
    phone: str = ""


@dataclass(frozen=True)
class PaymentState:
    method: PaymentMethod
    status: PaymentStatus = PaymentStatus.PENDING
    paid_amount: Decimal = Decimal("0")
    paid_at: Optional[datetime] = None
    refund_amount: Decimal = Decimal("0")
    refunded_at: Optional[datetime] = None


@dataclass(frozen=True)
class CancellationRecord:
    cancelled_at: datetime
    cancelled_by: str
    reason: CancellationReason
    refund_policy: RefundPolicy
    refund_amount: Decimal
    hours_before_check_in: float


@dataclass(frozen=True)
class Booking:
    booking_id: str
    confirmation_code: str
    room_id: str
    hotel_id: str
    requester_id: str
    guests: GuestCounts
    stay: DateRange
    pricing: PricingBreakdown
    payment: PaymentState
    status: BookingStatus = BookingStatus.PENDING
    contact: Optional[GuestContact] = None
    cancellation: Optional[CancellationRecord] = None
    special_requests: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_modified_by: Optional[str] = None
    last_action: str = "created"

    @property
    def nights(self) -> int:
        return self.stay.nights

    @property
    def check_in(self) -> date:
        return self.stay.start

    @property
    def check_out(self) -> date:
        return self.stay.end
