"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires all services, registers routers, and runs startup initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from booking_engine.controllers.booking_controller import router as booking_router
from booking_engine.controllers.hotel_controller import router as hotel_router
from booking_engine.controllers.room_controller import router as room_router
from booking_engine.repository.data_repository import DataRepository
from booking_engine.services.availability_service import AvailabilityResolver
from booking_engine.services.booking_service import BookingAllocator
from booking_engine.services.inventory_service import RoomInventoryService
from booking_engine.services.notification_service import BookingEventPublisher, log_subscriber
from booking_engine.services.pricing_service import PricingCalculator
from booking_engine.services.statistics_service import BookingStatisticsService
from booking_engine.utils.config import Settings, get_settings
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Every service shares one repository and one room inventory, so all
    requests see the same in-memory hold sets.
    """
    settings = settings or get_settings()

    repository = DataRepository(settings)
    inventory_service = RoomInventoryService(repository=repository, settings=settings)
    pricing_calculator = PricingCalculator(settings=settings)
    availability_resolver = AvailabilityResolver(
        inventory=inventory_service,
        pricing=pricing_calculator,
        settings=settings,
    )
    event_publisher = BookingEventPublisher(settings=settings)
    event_publisher.subscribe(log_subscriber)
    booking_allocator = BookingAllocator(
        repository=repository,
        inventory=inventory_service,
        resolver=availability_resolver,
        pricing=pricing_calculator,
        publisher=event_publisher,
        settings=settings,
    )
    statistics_service = BookingStatisticsService(
        repository=repository,
        inventory=inventory_service,
        settings=settings,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app, settings)
        yield
        logger.info("Shutdown: draining notification workers")
        app.state.event_publisher.shutdown()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.include_router(booking_router)
    app.include_router(room_router)
    app.include_router(hotel_router)

    app.state.repository = repository
    app.state.inventory_service = inventory_service
    app.state.pricing_calculator = pricing_calculator
    app.state.availability_resolver = availability_resolver
    app.state.event_publisher = event_publisher
    app.state.booking_allocator = booking_allocator
    app.state.statistics_service = statistics_service

    return app


def _startup(app: FastAPI, settings: Settings) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    The schema must exist before demo rooms are seeded; seeding is skipped
    when the hotel already has rooms.
    """
    repository: DataRepository = app.state.repository

    logger.info("Startup: initializing database schema | path=%s", settings.database_path)
    repository.initialize_database()

    if settings.seed_demo_data:
        seeded = repository.seed_demo_data(settings.demo_hotel_id)
        logger.info(
            "Startup: demo inventory ready | hotel_id=%s | rooms_seeded=%s",
            settings.demo_hotel_id,
            seeded,
        )

    logger.info("Startup complete, accepting bookings")


# Module-level app object for uvicorn
app = create_app()
