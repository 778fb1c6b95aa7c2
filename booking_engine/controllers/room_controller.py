"""HTTP controller layer for rooms: administration, availability, quotes, calendars and manual holds."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator

from booking_engine.controllers.dependencies import (
    error_detail,
    get_availability_resolver,
    get_booking_allocator,
    get_inventory_service,
    get_pricing_calculator,
    raise_http_error,
    raise_validation_error,
)
from booking_engine.controllers.schemas import GuestCountsRequest, HoldResponse, PricingResponse
from booking_engine.domain.errors import BookingError
from booking_engine.domain.models import (
    Capacity,
    DateRange,
    IntervalReason,
    Room,
    RoomStatus,
    SeasonalRule,
)
from booking_engine.services.availability_service import (
    AvailabilityResolver,
    SearchValidationError,
)
from booking_engine.services.booking_service import BookingAllocator
from booking_engine.services.inventory_service import RoomInventoryService
from booking_engine.services.pricing_service import PricingCalculator
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/rooms", tags=["rooms"])


class StayRequest(BaseModel):
    check_in: date
    check_out: date


class AvailabilityRequest(StayRequest):
    guests: Optional[GuestCountsRequest] = None


class AvailabilityResponse(BaseModel):
    room_id: str
    check_in: date
    check_out: date
    available: bool
    reason: Optional[str] = None
    conflicts: list[HoldResponse]


class CalendarDayResponse(BaseModel):
    date: date
    available: bool
    price: Decimal
    status: str


class CalendarResponse(BaseModel):
    room_id: str
    year: int
    month: int
    currency: str
    days: list[CalendarDayResponse]


class BlockDatesRequest(BaseModel):
    start: date
    end: date
    reason: IntervalReason = IntervalReason.BLOCKED
    actor_id: str = Field(min_length=1)

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, value: IntervalReason) -> IntervalReason:
        if value is IntervalReason.BOOKED:
            raise ValueError("booked holds are created through bookings only")
        return value


class UnblockDatesRequest(BaseModel):
    start: date
    end: date
    actor_id: str = Field(min_length=1)


class CapacityPayload(BaseModel):
    adults: int = Field(ge=1, le=20)
    children: int = Field(default=0, ge=0, le=20)
    infants: int = Field(default=0, ge=0, le=10)

    def to_domain(self) -> Capacity:
        return Capacity(adults=self.adults, children=self.children, infants=self.infants)


class SeasonalRulePayload(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    start: date
    end: date
    multiplier: Decimal = Field(ge=Decimal("0.1"), le=Decimal("10"))

    def to_domain(self) -> SeasonalRule:
        return SeasonalRule(
            name=self.name,
            range=DateRange(self.start, self.end),
            multiplier=self.multiplier,
        )


class CreateRoomRequest(BaseModel):
    room_id: str = Field(min_length=1, max_length=64)
    hotel_id: str = Field(min_length=1, max_length=64)
    room_number: str = Field(min_length=1, max_length=16)
    name: str = Field(min_length=1, max_length=100)
    capacity: CapacityPayload
    base_price: Decimal = Field(ge=0)
    currency: str = Field(default="USD", pattern=r"^[A-Z]{3}$")
    taxes_and_fees: Decimal = Field(default=Decimal("0"), ge=0)
    discount_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    seasonal_rules: list[SeasonalRulePayload] = Field(default_factory=list)
    status: RoomStatus = RoomStatus.ACTIVE
    is_available: bool = True
    minimum_stay: int = Field(default=1, ge=1)
    maximum_stay: int = Field(default=365, ge=1)
    advance_booking_days: int = Field(default=365, ge=0)

    def to_domain(self) -> Room:
        return Room(
            room_id=self.room_id,
            hotel_id=self.hotel_id,
            room_number=self.room_number,
            name=self.name,
            capacity=self.capacity.to_domain(),
            base_price=self.base_price,
            currency=self.currency,
            taxes_and_fees=self.taxes_and_fees,
            discount_percentage=self.discount_percentage,
            seasonal_rules=tuple(rule.to_domain() for rule in self.seasonal_rules),
            status=self.status,
            is_available=self.is_available,
            minimum_stay=self.minimum_stay,
            maximum_stay=self.maximum_stay,
            advance_booking_days=self.advance_booking_days,
        )


class UpdateRoomRequest(BaseModel):
    """Partial edit; only the fields present in the body are changed."""

    actor_id: str = Field(min_length=1)
    room_number: Optional[str] = Field(default=None, min_length=1, max_length=16)
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    capacity: Optional[CapacityPayload] = None
    base_price: Optional[Decimal] = Field(default=None, ge=0)
    taxes_and_fees: Optional[Decimal] = Field(default=None, ge=0)
    discount_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    seasonal_rules: Optional[list[SeasonalRulePayload]] = None
    status: Optional[RoomStatus] = None
    is_available: Optional[bool] = None
    minimum_stay: Optional[int] = Field(default=None, ge=1)
    maximum_stay: Optional[int] = Field(default=None, ge=1)
    advance_booking_days: Optional[int] = Field(default=None, ge=0)

    def to_changes(self) -> dict[str, Any]:
        changes: dict[str, Any] = {}
        for name in sorted(self.model_fields_set - {"actor_id"}):
            value = getattr(self, name)
            if value is None:
                raise ValueError(f"{name} cannot be null")
            if name == "capacity":
                value = value.to_domain()
            elif name == "seasonal_rules":
                value = tuple(rule.to_domain() for rule in value)
            changes[name] = value
        if not changes:
            raise ValueError("no room fields to update")
        return changes


class SeasonalRuleResponse(BaseModel):
    name: str
    start: date
    end: date
    multiplier: Decimal


class RoomResponse(BaseModel):
    room_id: str
    hotel_id: str
    room_number: str
    name: str
    max_adults: int
    max_children: int
    max_infants: int
    base_price: Decimal
    currency: str
    taxes_and_fees: Decimal
    discount_percentage: Decimal
    seasonal_rules: list[SeasonalRuleResponse]
    status: str
    is_available: bool
    minimum_stay: int
    maximum_stay: int
    advance_booking_days: int
    holds: int = Field(ge=0)

    @classmethod
    def from_domain(cls, room: Room) -> "RoomResponse":
        return cls(
            room_id=room.room_id,
            hotel_id=room.hotel_id,
            room_number=room.room_number,
            name=room.name,
            max_adults=room.capacity.adults,
            max_children=room.capacity.children,
            max_infants=room.capacity.infants,
            base_price=room.base_price,
            currency=room.currency,
            taxes_and_fees=room.taxes_and_fees,
            discount_percentage=room.discount_percentage,
            seasonal_rules=[
                SeasonalRuleResponse(
                    name=rule.name,
                    start=rule.range.start,
                    end=rule.range.end,
                    multiplier=rule.multiplier,
                )
                for rule in room.seasonal_rules
            ],
            status=room.status.value,
            is_available=room.is_available,
            minimum_stay=room.minimum_stay,
            maximum_stay=room.maximum_stay,
            advance_booking_days=room.advance_booking_days,
            holds=len(room.intervals),
        )


def _unexpected(action: str, exc: Exception) -> HTTPException:
    logger.exception("Unexpected room endpoint failure | action=%s", action)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=error_detail("internal_error", f"Failed to {action}"),
    )


@router.post(
    "/{room_id}/availability",
    response_model=AvailabilityResponse,
    status_code=status.HTTP_200_OK,
)
def check_availability(
    room_id: str,
    payload: AvailabilityRequest,
    inventory: RoomInventoryService = Depends(get_inventory_service),
    resolver: AvailabilityResolver = Depends(get_availability_resolver),
) -> AvailabilityResponse:
    """Report availability with the holds that block the requested stay."""
    try:
        room = inventory.get_room(room_id)
        guests = payload.guests.to_domain() if payload.guests is not None else None
        result = resolver.check(room, payload.check_in, payload.check_out, guests)
    except BookingError as exc:
        raise_http_error(exc)
    except ValueError as exc:
        raise_validation_error(exc)
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("check availability", exc) from exc
    return AvailabilityResponse(
        room_id=result.room_id,
        check_in=result.stay.start,
        check_out=result.stay.end,
        available=result.available,
        reason=result.reason,
        conflicts=[HoldResponse.from_domain(item) for item in result.conflicts],
    )


@router.post(
    "/{room_id}/pricing",
    response_model=PricingResponse,
    status_code=status.HTTP_200_OK,
)
def quote_stay(
    room_id: str,
    payload: StayRequest,
    inventory: RoomInventoryService = Depends(get_inventory_service),
    pricing: PricingCalculator = Depends(get_pricing_calculator),
) -> PricingResponse:
    try:
        room = inventory.get_room(room_id)
        quote = pricing.quote(room, payload.check_in, payload.check_out)
    except BookingError as exc:
        raise_http_error(exc)
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("quote stay", exc) from exc
    return PricingResponse.from_domain(quote)


@router.get(
    "/{room_id}/calendar",
    response_model=CalendarResponse,
    status_code=status.HTTP_200_OK,
)
def room_calendar(
    room_id: str,
    year: int = Query(ge=1970, le=9999),
    month: int = Query(ge=1, le=12),
    inventory: RoomInventoryService = Depends(get_inventory_service),
    resolver: AvailabilityResolver = Depends(get_availability_resolver),
) -> CalendarResponse:
    try:
        room = inventory.get_room(room_id)
        days = resolver.calendar(room, year, month)
    except BookingError as exc:
        raise_http_error(exc)
    except SearchValidationError as exc:
        raise_validation_error(exc)
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("build calendar", exc) from exc
    return CalendarResponse(
        room_id=room.room_id,
        year=year,
        month=month,
        currency=room.currency,
        days=[
            CalendarDayResponse(
                date=day.date,
                available=day.available,
                price=day.price,
                status=day.status,
            )
            for day in days
        ],
    )


@router.post(
    "/{room_id}/block",
    response_model=HoldResponse,
    status_code=status.HTTP_201_CREATED,
)
def block_dates(
    room_id: str,
    payload: BlockDatesRequest,
    allocator: BookingAllocator = Depends(get_booking_allocator),
) -> HoldResponse:
    """Place a maintenance, renovation or manual block on the room."""
    try:
        interval = allocator.block_dates(
            room_id,
            DateRange(payload.start, payload.end),
            payload.reason,
            payload.actor_id,
        )
    except BookingError as exc:
        raise_http_error(exc)
    except ValueError as exc:
        raise_validation_error(exc)
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("block dates", exc) from exc
    return HoldResponse.from_domain(interval)


@router.post(
    "/{room_id}/unblock",
    response_model=HoldResponse,
    status_code=status.HTTP_200_OK,
)
def unblock_dates(
    room_id: str,
    payload: UnblockDatesRequest,
    allocator: BookingAllocator = Depends(get_booking_allocator),
) -> HoldResponse:
    try:
        interval = allocator.unblock_dates(
            room_id,
            DateRange(payload.start, payload.end),
            payload.actor_id,
        )
    except BookingError as exc:
        raise_http_error(exc)
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("unblock dates", exc) from exc
    return HoldResponse.from_domain(interval)


@router.post(
    "",
    response_model=RoomResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_room(
    payload: CreateRoomRequest,
    inventory: RoomInventoryService = Depends(get_inventory_service),
) -> RoomResponse:
    """Register a room; room numbers are unique within a hotel."""
    try:
        room = inventory.add_room(payload.to_domain())
    except BookingError as exc:
        raise_http_error(exc)
    except ValueError as exc:
        raise_validation_error(exc)
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("create room", exc) from exc
    return RoomResponse.from_domain(room)


@router.get(
    "/{room_id}",
    response_model=RoomResponse,
    status_code=status.HTTP_200_OK,
)
def get_room(
    room_id: str,
    inventory: RoomInventoryService = Depends(get_inventory_service),
) -> RoomResponse:
    try:
        room = inventory.get_room(room_id)
    except BookingError as exc:
        raise_http_error(exc)
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("load room", exc) from exc
    return RoomResponse.from_domain(room)


@router.put(
    "/{room_id}",
    response_model=RoomResponse,
    status_code=status.HTTP_200_OK,
)
def update_room(
    room_id: str,
    payload: UpdateRoomRequest,
    allocator: BookingAllocator = Depends(get_booking_allocator),
) -> RoomResponse:
    """Edit status, availability flag, pricing or stay rules; holds are kept."""
    try:
        room = allocator.update_room(room_id, payload.actor_id, **payload.to_changes())
    except BookingError as exc:
        raise_http_error(exc)
    except ValueError as exc:
        raise_validation_error(exc)
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("update room", exc) from exc
    return RoomResponse.from_domain(room)


@router.delete(
    "/{room_id}",
    response_model=RoomResponse,
    status_code=status.HTTP_200_OK,
)
def retire_room(
    room_id: str,
    actor_id: str = Query(min_length=1),
    allocator: BookingAllocator = Depends(get_booking_allocator),
) -> RoomResponse:
    """Mark the room inactive. Refused while pending, confirmed or checked-in bookings exist."""
    try:
        room = allocator.retire_room(room_id, actor_id)
    except BookingError as exc:
        raise_http_error(exc)
    except Exception as exc:  # pragma: no cover - defensive fallback
        raise _unexpected("retire room", exc) from exc
    return RoomResponse.from_domain(room)
