"""Request and response DTOs shared by the booking, room and hotel routers."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from booking_engine.domain.models import (
    Booking,
    DateInterval,
    GuestCounts,
    PricingBreakdown,
)


class GuestCountsRequest(BaseModel):
    adults: int = Field(default=1, ge=1)
    children: int = Field(default=0, ge=0)
    infants: int = Field(default=0, ge=0)

    def to_domain(self) -> GuestCounts:
        return GuestCounts(adults=self.adults, children=self.children, infants=self.infants)


class NightlyRateResponse(BaseModel):
    date: date
    rate: Decimal


class PricingResponse(BaseModel):
    currency: str
    nights: int = Field(ge=1)
    nightly_rates: list[NightlyRateResponse]
    base_amount: Decimal
    discount_amount: Decimal
    subtotal: Decimal
    taxes_and_fees: Decimal
    fees: Decimal
    total: Decimal
    average_per_night: Decimal

    @classmethod
    def from_domain(cls, pricing: PricingBreakdown) -> "PricingResponse":
        return cls(
            currency=pricing.currency,
            nights=pricing.nights,
            nightly_rates=[
                NightlyRateResponse(date=item.date, rate=item.rate)
                for item in pricing.nightly_rates
            ],
            base_amount=pricing.base_amount,
            discount_amount=pricing.discount_amount,
            subtotal=pricing.subtotal,
            taxes_and_fees=pricing.taxes_and_fees,
            fees=pricing.fees,
            total=pricing.total,
            average_per_night=pricing.average_per_night,
        )


class HoldResponse(BaseModel):
    start: date
    end: date
    reason: str
    booking_id: Optional[str] = None

    @classmethod
    def from_domain(cls, interval: DateInterval) -> "HoldResponse":
        return cls(
            start=interval.range.start,
            end=interval.range.end,
            reason=interval.reason.value,
            booking_id=interval.booking_id,
        )


class ContactPayload(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+$")
    phone: str = Field(default="", max_length=40)


class PaymentResponse(BaseModel):
    method: str
    status: str
    paid_amount: Decimal
    paid_at: Optional[datetime] = None
    refund_amount: Decimal
    refunded_at: Optional[datetime] = None


class CancellationResponse(BaseModel):
    cancelled_at: datetime
    cancelled_by: str
    reason: str
    refund_policy: str
    refund_amount: Decimal
    hours_before_check_in: float


class BookingResponse(BaseModel):
    booking_id: str
    confirmation_code: str
    room_id: str
    hotel_id: str
    requester_id: str
    status: str
    check_in: date
    check_out: date
    nights: int
    guests: GuestCountsRequest
    pricing: PricingResponse
    payment: PaymentResponse
    contact: Optional[ContactPayload] = None
    cancellation: Optional[CancellationResponse] = None
    special_requests: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_modified_by: Optional[str] = None
    last_action: str

    @classmethod
    def from_domain(cls, booking: Booking) -> "BookingResponse":
        contact = None
        if booking.contact is not None:
            contact = ContactPayload(
                first_name=booking.contact.first_name,
                last_name=booking.contact.last_name,
                email=booking.contact.email,
                phone=booking.contact.phone,
            )
        cancellation = None
        if booking.cancellation is not None:
            record = booking.cancellation
            cancellation = CancellationResponse(
                cancelled_at=record.cancelled_at,
                cancelled_by=record.cancelled_by,
                reason=record.reason.value,
                refund_policy=record.refund_policy.value,
                refund_amount=record.refund_amount,
                hours_before_check_in=record.hours_before_check_in,
            )
        return cls(
            booking_id=booking.booking_id,
            confirmation_code=booking.confirmation_code,
            room_id=booking.room_id,
            hotel_id=booking.hotel_id,
            requester_id=booking.requester_id,
            status=booking.status.value,
            check_in=booking.check_in,
            check_out=booking.check_out,
            nights=booking.nights,
            guests=GuestCountsRequest(
                adults=booking.guests.adults,
                children=booking.guests.children,
                infants=booking.guests.infants,
            ),
            pricing=PricingResponse.from_domain(booking.pricing),
            payment=PaymentResponse(
                method=booking.payment.method.value,
                status=booking.payment.status.value,
                paid_amount=booking.payment.paid_amount,
                paid_at=booking.payment.paid_at,
                refund_amount=booking.payment.refund_amount,
                refunded_at=booking.payment.refunded_at,
            ),
            contact=contact,
            cancellation=cancellation,
            special_requests=booking.special_requests,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
            last_modified_by=booking.last_modified_by,
            last_action=booking.last_action,
        )
