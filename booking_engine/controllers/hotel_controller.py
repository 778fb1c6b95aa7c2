"""HTTP controller layer for hotel-wide search, occupancy and cancellation policy."""

from __future__ import annotations

from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from booking_engine.controllers.dependencies import (
    error_detail,
    get_availability_resolver,
    get_inventory_service,
    get_statistics_service,
    raise_http_error,
    raise_validation_error,
)
from booking_engine.controllers.schemas import GuestCountsRequest, PricingResponse
from booking_engine.domain.errors import BookingError
from booking_engine.domain.models import HotelPolicy
from booking_engine.services.availability_service import (
    AvailabilityResolver,
    SearchValidationError,
)
from booking_engine.services.inventory_service import RoomInventoryService
from booking_engine.services.statistics_service import BookingStatisticsService
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/hotels", tags=["hotels"])


class HotelSearchRequest(BaseModel):
    check_in: date
    check_out: date
    guests: GuestCountsRequest = Field(default_factory=GuestCountsRequest)
    rooms_needed: int = Field(default=1, ge=1, le=50)
    sort: Literal["price_low", "price_high", "capacity"] = "price_low"


class RoomOfferResponse(BaseModel):
    room_id: str
    room_number: str
    name: str
    max_adults: int
    max_children: int
    max_infants: int
    pricing: PricingResponse


class HotelSearchResponse(BaseModel):
    hotel_id: str
    offers: list[RoomOfferResponse]


class HotelPolicyRequest(BaseModel):
    actor_id: str = Field(min_length=1)
    cancellation_deadline_hours: int = Field(ge=0, le=720)


class HotelPolicyResponse(BaseModel):
    hotel_id: str
    cancellation_deadline_hours: int


class OccupancyDayResponse(BaseModel):
    date: date
    occupied_rooms: int = Field(ge=0)
    blocked_rooms: int = Field(ge=0)
    occupancy_rate: float = Field(ge=0.0, le=1.0)


class OccupancyResponse(BaseModel):
    hotel_id: str
    start: date
    end: date
    total_rooms: int = Field(ge=0)
    average_occupancy_rate: float = Field(ge=0.0, le=1.0)
    days: list[OccupancyDayResponse]


@router.post(
    "/{hotel_id}/search",
    response_model=HotelSearchResponse,
    status_code=status.HTTP_200_OK,
)
def search_hotel(
    hotel_id: str,
    payload: HotelSearchRequest,
    resolver: AvailabilityResolver = Depends(get_availability_resolver),
) -> HotelSearchResponse:
    """Quote every free room; no offers at all when fewer than ``rooms_needed`` are free."""
    try:
        offers = resolver.search_hotel(
            hotel_id,
            payload.check_in,
            payload.check_out,
            payload.guests.to_domain(),
            rooms_needed=payload.rooms_needed,
            sort=payload.sort,
        )
    except BookingError as exc:
        raise_http_error(exc)
    except (SearchValidationError, ValueError) as exc:
        raise_validation_error(exc)
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected hotel search failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_detail("internal_error", "Failed to search rooms"),
        ) from exc
    return HotelSearchResponse(
        hotel_id=hotel_id,
        offers=[
            RoomOfferResponse(
                room_id=offer.room.room_id,
                room_number=offer.room.room_number,
                name=offer.room.name,
                max_adults=offer.room.capacity.adults,
                max_children=offer.room.capacity.children,
                max_infants=offer.room.capacity.infants,
                pricing=PricingResponse.from_domain(offer.quote),
            )
            for offer in offers
        ],
    )


@router.get(
    "/{hotel_id}/occupancy",
    response_model=OccupancyResponse,
    status_code=status.HTTP_200_OK,
)
def hotel_occupancy(
    hotel_id: str,
    start: date = Query(),
    end: date = Query(),
    service: BookingStatisticsService = Depends(get_statistics_service),
) -> OccupancyResponse:
    try:
        report = service.occupancy_report(hotel_id, start, end)
    except BookingError as exc:
        raise_http_error(exc)
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected occupancy report failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_detail("internal_error", "Failed to build occupancy report"),
        ) from exc
    return OccupancyResponse(
        hotel_id=report.hotel_id,
        start=report.range.start,
        end=report.range.end,
        total_rooms=report.total_rooms,
        average_occupancy_rate=report.average_occupancy_rate,
        days=[
            OccupancyDayResponse(
                date=day.date,
                occupied_rooms=day.occupied_rooms,
                blocked_rooms=day.blocked_rooms,
                occupancy_rate=day.occupancy_rate,
            )
            for day in report.days
        ],
    )


@router.get(
    "/{hotel_id}/policy",
    response_model=HotelPolicyResponse,
    status_code=status.HTTP_200_OK,
)
def get_hotel_policy(
    hotel_id: str,
    inventory: RoomInventoryService = Depends(get_inventory_service),
) -> HotelPolicyResponse:
    """Hotels without a stored policy report the configured default deadline."""
    policy = inventory.get_hotel_policy(hotel_id)
    return HotelPolicyResponse(
        hotel_id=policy.hotel_id,
        cancellation_deadline_hours=policy.cancellation_deadline_hours,
    )


@router.put(
    "/{hotel_id}/policy",
    response_model=HotelPolicyResponse,
    status_code=status.HTTP_200_OK,
)
def update_hotel_policy(
    hotel_id: str,
    payload: HotelPolicyRequest,
    inventory: RoomInventoryService = Depends(get_inventory_service),
) -> HotelPolicyResponse:
    try:
        policy = inventory.set_hotel_policy(
            HotelPolicy(
                hotel_id=hotel_id,
                cancellation_deadline_hours=payload.cancellation_deadline_hours,
            )
        )
    except ValueError as exc:
        raise_validation_error(exc)
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected hotel policy failure | hotel_id=%s", hotel_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_detail("internal_error", "Failed to save hotel policy"),
        ) from exc
    logger.info("Hotel policy updated | hotel_id=%s | actor=%s", hotel_id, payload.actor_id)
    return HotelPolicyResponse(
        hotel_id=policy.hotel_id,
        cancellation_deadline_hours=policy.cancellation_deadline_hours,
    )
