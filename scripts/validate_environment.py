#!/usr/bin/env python3
"""Validate local booking engine environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from datetime import date, timedelta
from importlib.metadata import version
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from booking_engine.domain.models import BookingStatus, DateRange, GuestCounts
from booking_engine.repository.data_repository import DataRepository
from booking_engine.services.booking_service import BookingAllocator
from booking_engine.services.inventory_service import RoomInventoryService
from booking_engine.services.pricing_service import PricingCalculator
from booking_engine.utils.config import get_settings

SEPARATOR_LINE = "=" * 44
DEMO_ROOM_COUNT = 6


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="booking-env-")

    # CHECK 1: Python version >= 3.11
    if sys.version_info >= (3, 11):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.11",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable with versions
    package_specs = [
        ("fastapi", "fastapi"),
        ("uvicorn", "uvicorn"),
        ("pydantic", "pydantic"),
        ("numpy", "numpy"),
        ("pandas", "pandas"),
        ("httpx", "httpx"),
        ("pytest", "pytest"),
    ]
    import_errors: list[str] = []
    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
            version(dist_name)
        except Exception as exc:  # pragma: no cover - runtime guard
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        validation_settings = replace(
            get_settings(),
            database_path=Path(temp_dir) / "booking_validation.db",
            notification_async=False,
        )
        repository = DataRepository(validation_settings)
        hotel_id = validation_settings.demo_hotel_id

        # CHECK 3: Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except Exception as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4: Demo inventory seeding
        try:
            seeded = repository.seed_demo_data(hotel_id)
            if seeded != DEMO_ROOM_COUNT:
                raise RuntimeError(f"expected {DEMO_ROOM_COUNT} rooms, got {seeded}")
            ok, line = _print_result("Demo inventory", True, f": {seeded} rooms")
        except Exception as exc:
            ok, line = _print_result("Demo inventory", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        inventory = RoomInventoryService(repository=repository, settings=validation_settings)
        check_in = date.today() + timedelta(days=30)
        stay = DateRange(check_in, check_in + timedelta(days=2))

        # CHECK 5: Stay quote
        try:
            room_id = repository.list_room_ids(hotel_id)[0]
            quote = PricingCalculator(settings=validation_settings).quote(
                inventory.get_room(room_id),
                stay.start,
                stay.end,
            )
            if quote.total <= 0:
                raise RuntimeError(f"expected a positive total, got {quote.total}")
            ok, line = _print_result(
                "Stay quote",
                True,
                f": {quote.nights} nights = {quote.total} {quote.currency}",
            )
        except Exception as exc:
            ok, line = _print_result("Stay quote", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 6: Booking create/confirm/cancel round trip
        try:
            allocator = BookingAllocator(
                repository=repository,
                inventory=inventory,
                settings=validation_settings,
            )
            room_id = repository.list_room_ids(hotel_id)[0]
            booking = allocator.create(room_id, "env-check", stay, GuestCounts(adults=1))
            allocator.confirm(booking.booking_id, "env-check")
            cancelled = allocator.cancel(booking.booking_id, "env-check")
            if cancelled.status is not BookingStatus.CANCELLED:
                raise RuntimeError(f"unexpected status {cancelled.status.value}")
            if repository.count_intervals(room_id) != 0:
                raise RuntimeError("hold was not released after cancellation")
            ok, line = _print_result(
                "Booking round trip",
                True,
                f": refund={cancelled.cancellation.refund_amount}",
            )
        except Exception as exc:
            ok, line = _print_result("Booking round trip", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Booking Engine Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
