"""HTTP controller layer for booking creation, lookup and lifecycle actions."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from booking_engine.controllers.dependencies import (
    error_detail,
    get_booking_allocator,
    get_statistics_service,
    raise_http_error,
    raise_validation_error,
)
from booking_engine.controllers.schemas import (
    BookingResponse,
    ContactPayload,
    GuestCountsRequest,
)
from booking_engine.domain.constraints import stay_range
from booking_engine.domain.errors import BookingError
from booking_engine.domain.models import (
    Booking,
    CancellationReason,
    GuestContact,
    PaymentMethod,
)
from booking_engine.services.booking_service import BookingAllocator
from booking_engine.services.statistics_service import BookingStatisticsService
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])


class CreateBookingRequest(BaseModel):
    room_id: str = Field(min_length=1)
    requester_id: str = Field(min_length=1)
    check_in: date
    check_out: date
    guests: GuestCountsRequest = Field(default_factory=GuestCountsRequest)
    payment_method: PaymentMethod = PaymentMethod.CARD
    contact: Optional[ContactPayload] = None
    special_requests: Optional[str] = Field(default=None, max_length=1000)


class ActionRequest(BaseModel):
    actor_id: str = Field(min_length=1)


class ConfirmBookingRequest(ActionRequest):
    paid_amount: Optional[Decimal] = Field(default=None, ge=0)


class CancelBookingRequest(ActionRequest):
    reason: CancellationReason = CancellationReason.GUEST_REQUEST


class BookingStatisticsResponse(BaseModel):
    total_bookings: int = Field(ge=0)
    total_revenue: Decimal
    average_booking_value: Decimal
    confirmed_bookings: int = Field(ge=0)
    cancelled_bookings: int = Field(ge=0)
    completed_bookings: int = Field(ge=0)
    by_status: dict[str, int]


def _internal_error(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=error_detail("internal_error", message),
    )


def _run_action(action: str, call: Callable[[], Booking]) -> BookingResponse:
    try:
        return BookingResponse.from_domain(call())
    except BookingError as exc:
        raise_http_error(exc)
    except ValueError as exc:
        raise_validation_error(exc)
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected booking action failure | action=%s", action)
        raise _internal_error(f"Failed to {action} booking") from exc


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_booking(
    payload: CreateBookingRequest,
    allocator: BookingAllocator = Depends(get_booking_allocator),
) -> BookingResponse:
    """Validate, price and hold the room in one step; the booking starts pending."""

    def create() -> Booking:
        contact = None
        if payload.contact is not None:
            contact = GuestContact(**payload.contact.model_dump())
        return allocator.create(
            room_id=payload.room_id,
            requester_id=payload.requester_id,
            stay=stay_range(payload.check_in, payload.check_out),
            guests=payload.guests.to_domain(),
            payment_method=payload.payment_method,
            contact=contact,
            special_requests=payload.special_requests,
        )

    return _run_action("create", create)


@router.get(
    "/statistics",
    response_model=BookingStatisticsResponse,
    status_code=status.HTTP_200_OK,
)
def booking_statistics(
    hotel_id: Optional[str] = Query(default=None),
    start: Optional[datetime] = Query(default=None),
    end: Optional[datetime] = Query(default=None),
    service: BookingStatisticsService = Depends(get_statistics_service),
) -> BookingStatisticsResponse:
    try:
        stats = service.booking_statistics(hotel_id=hotel_id, start=start, end=end)
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected statistics failure")
        raise _internal_error("Failed to compute booking statistics") from exc
    return BookingStatisticsResponse(
        total_bookings=stats.total_bookings,
        total_revenue=stats.total_revenue,
        average_booking_value=stats.average_booking_value,
        confirmed_bookings=stats.confirmed_bookings,
        cancelled_bookings=stats.cancelled_bookings,
        completed_bookings=stats.completed_bookings,
        by_status=stats.by_status,
    )


@router.get(
    "/confirmation/{confirmation_code}",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
)
def get_booking_by_confirmation_code(
    confirmation_code: str,
    allocator: BookingAllocator = Depends(get_booking_allocator),
) -> BookingResponse:
    return _run_action("look up", lambda: allocator.get_by_confirmation_code(confirmation_code))


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
)
def get_booking(
    booking_id: str,
    allocator: BookingAllocator = Depends(get_booking_allocator),
) -> BookingResponse:
    return _run_action("load", lambda: allocator.get_booking(booking_id))


@router.post("/{booking_id}/confirm", response_model=BookingResponse)
def confirm_booking(
    booking_id: str,
    payload: ConfirmBookingRequest,
    allocator: BookingAllocator = Depends(get_booking_allocator),
) -> BookingResponse:
    """Mark payment complete and confirm. Payment itself is verified upstream."""
    return _run_action(
        "confirm",
        lambda: allocator.confirm(booking_id, payload.actor_id, paid_amount=payload.paid_amount),
    )


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: str,
    payload: CancelBookingRequest,
    allocator: BookingAllocator = Depends(get_booking_allocator),
) -> BookingResponse:
    return _run_action(
        "cancel",
        lambda: allocator.cancel(booking_id, payload.actor_id, reason=payload.reason),
    )


@router.post("/{booking_id}/check_in", response_model=BookingResponse)
def check_in_booking(
    booking_id: str,
    payload: ActionRequest,
    allocator: BookingAllocator = Depends(get_booking_allocator),
) -> BookingResponse:
    return _run_action("check in", lambda: allocator.check_in(booking_id, payload.actor_id))


@router.post("/{booking_id}/check_out", response_model=BookingResponse)
def check_out_booking(
    booking_id: str,
    payload: ActionRequest,
    allocator: BookingAllocator = Depends(get_booking_allocator),
) -> BookingResponse:
    return _run_action("check out", lambda: allocator.check_out(booking_id, payload.actor_id))


@router.post("/{booking_id}/no_show", response_model=BookingResponse)
def mark_booking_no_show(
    booking_id: str,
    payload: ActionRequest,
    allocator: BookingAllocator = Depends(get_booking_allocator),
) -> BookingResponse:
    return _run_action("mark no-show for", lambda: allocator.mark_no_show(booking_id, payload.actor_id))


@router.post("/{booking_id}/complete", response_model=BookingResponse)
def complete_booking(
    booking_id: str,
    payload: ActionRequest,
    allocator: BookingAllocator = Depends(get_booking_allocator),
) -> BookingResponse:
    return _run_action("complete", lambda: allocator.complete(booking_id, payload.actor_id))
