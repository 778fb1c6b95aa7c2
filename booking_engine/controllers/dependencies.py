"""Shared FastAPI dependency providers and error mapping for the controller layer."""

from __future__ import annotations

from typing import NoReturn

from fastapi import HTTPException, Request, status

from booking_engine.domain.errors import (
    AlreadyTerminalError,
    BookingError,
    BusyError,
    CancellationWindowClosedError,
    ConflictError,
    InternalInconsistencyError,
    InvalidDatesError,
    InvalidRangeError,
    InvalidTransitionError,
    NotFoundError,
    RoomUnavailableError,
)
from booking_engine.services.availability_service import AvailabilityResolver
from booking_engine.services.booking_service import BookingAllocator
from booking_engine.services.inventory_service import RoomInventoryService
from booking_engine.services.pricing_service import PricingCalculator
from booking_engine.services.statistics_service import BookingStatisticsService


_STATUS_BY_ERROR: tuple[tuple[type[BookingError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidDatesError, status.HTTP_400_BAD_REQUEST),
    (InvalidRangeError, status.HTTP_400_BAD_REQUEST),
    (RoomUnavailableError, status.HTTP_409_CONFLICT),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (AlreadyTerminalError, status.HTTP_409_CONFLICT),
    (CancellationWindowClosedError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (BusyError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (InternalInconsistencyError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)

BUSY_RETRY_AFTER_SECONDS = "1"


def error_detail(code: str, message: str) -> dict[str, str]:
    return {"code": code, "message": message}


def raise_http_error(exc: BookingError) -> NoReturn:
    """Translate a booking-core error into an ``HTTPException`` with a stable code."""
    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, mapped_status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = mapped_status
            break
    headers = {"Retry-After": BUSY_RETRY_AFTER_SECONDS} if isinstance(exc, BusyError) else None
    raise HTTPException(
        status_code=status_code,
        detail=error_detail(exc.code, str(exc)),
        headers=headers,
    ) from exc


def raise_validation_error(exc: Exception) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=error_detail("invalid_request", str(exc)),
    ) from exc


def _service_from_state(request: Request, name: str, label: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=error_detail("service_unavailable", f"{label} is not initialized"),
        )
    return service


def get_booking_allocator(request: Request) -> BookingAllocator:
    return _service_from_state(request, "booking_allocator", "Booking allocator")


def get_inventory_service(request: Request) -> RoomInventoryService:
    return _service_from_state(request, "inventory_service", "Inventory service")


def get_availability_resolver(request: Request) -> AvailabilityResolver:
    return _service_from_state(request, "availability_resolver", "Availability resolver")


def get_pricing_calculator(request: Request) -> PricingCalculator:
    return _service_from_state(request, "pricing_calculator", "Pricing calculator")


def get_statistics_service(request: Request) -> BookingStatisticsService:
    return _service_from_state(request, "statistics_service", "Statistics service")
