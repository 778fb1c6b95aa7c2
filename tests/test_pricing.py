from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from booking_engine.domain.errors import InvalidRangeError
from booking_engine.domain.models import Capacity, DateRange, RefundPolicy, Room, SeasonalRule
from booking_engine.services.pricing_service import PricingCalculator, quantize_money
from booking_engine.utils.config import get_settings


def _build_test_settings(tmp_path):
    get_settings.cache_clear()
    return replace(get_settings(), database_path=tmp_path / "pricing.db")


def _summer_room(**overrides) -> Room:
    defaults = {
        "room_id": "r-1",
        "hotel_id": "h-1",
        "room_number": "101",
        "name": "Standard",
        "capacity": Capacity(adults=2),
        "base_price": Decimal("100"),
        "discount_percentage": Decimal("10"),
        "seasonal_rules": (
            SeasonalRule(
                name="summer",
                range=DateRange(date(2025, 7, 1), date(2025, 8, 1)),
                multiplier=Decimal("1.5"),
            ),
        ),
    }
    defaults.update(overrides)
    return Room(**defaults)


def test_nightly_rate_applies_season_and_discount(tmp_path) -> None:
    calculator = PricingCalculator(settings=_build_test_settings(tmp_path))
    room = _summer_room()

    assert calculator.nightly_rate(room, date(2025, 7, 15)) == Decimal("135.00")
    assert calculator.nightly_rate(room, date(2025, 6, 15)) == Decimal("90.00")
    # rule end is exclusive
    assert calculator.nightly_rate(room, date(2025, 8, 1)) == Decimal("90.00")


def test_first_declared_rule_wins_on_overlap(tmp_path) -> None:
    calculator = PricingCalculator(settings=_build_test_settings(tmp_path))
    july = DateRange(date(2025, 7, 1), date(2025, 8, 1))
    room = _summer_room(
        discount_percentage=Decimal("0"),
        seasonal_rules=(
            SeasonalRule(name="festival", range=july, multiplier=Decimal("2")),
            SeasonalRule(name="summer", range=july, multiplier=Decimal("1.5")),
        ),
    )
    assert calculator.nightly_rate(room, date(2025, 7, 10)) == Decimal("200.00")


def test_quote_sums_nightly_rates_across_season_boundary(tmp_path) -> None:
    calculator = PricingCalculator(settings=_build_test_settings(tmp_path))
    room = _summer_room(taxes_and_fees=Decimal("12.50"))

    quote = calculator.quote(room, date(2025, 6, 30), date(2025, 7, 2))

    assert quote.nights == 2
    assert [item.rate for item in quote.nightly_rates] == [Decimal("90.00"), Decimal("135.00")]
    assert quote.subtotal == Decimal("225.00")
    assert quote.base_amount == Decimal("250.00")
    assert quote.discount_amount == Decimal("25.00")
    assert quote.taxes_and_fees == Decimal("25.00")
    assert quote.total == Decimal("250.00")
    assert quote.average_per_night == Decimal("112.50")


def test_quote_is_deterministic(tmp_path) -> None:
    calculator = PricingCalculator(settings=_build_test_settings(tmp_path))
    room = _summer_room()
    first = calculator.quote(room, date(2025, 7, 20), date(2025, 8, 5))
    second = calculator.quote(room, date(2025, 7, 20), date(2025, 8, 5))
    assert first == second


def test_quote_rejects_empty_range(tmp_path) -> None:
    calculator = PricingCalculator(settings=_build_test_settings(tmp_path))
    with pytest.raises(InvalidRangeError):
        calculator.quote(_summer_room(), date(2025, 7, 5), date(2025, 7, 5))


def test_rounding_is_half_up() -> None:
    assert quantize_money(Decimal("10.005"), "USD") == Decimal("10.01")
    assert quantize_money(Decimal("10.004"), "USD") == Decimal("10.00")
    assert quantize_money(Decimal("1234.5"), "JPY") == Decimal("1235")


def test_jpy_rates_have_no_minor_unit(tmp_path) -> None:
    calculator = PricingCalculator(settings=_build_test_settings(tmp_path))
    room = _summer_room(
        currency="JPY",
        base_price=Decimal("12345"),
        discount_percentage=Decimal("0"),
        seasonal_rules=(),
    )
    rate = calculator.nightly_rate(room, date(2025, 7, 1))
    assert rate == Decimal("12345")
    assert rate.as_tuple().exponent == 0


def test_refund_amount_per_policy(tmp_path) -> None:
    calculator = PricingCalculator(settings=_build_test_settings(tmp_path))
    paid = Decimal("225.01")
    assert calculator.refund_amount(paid, RefundPolicy.FULL_REFUND, "USD") == Decimal("225.01")
    assert calculator.refund_amount(paid, RefundPolicy.PARTIAL_REFUND, "USD") == Decimal("112.51")
    assert calculator.refund_amount(paid, RefundPolicy.NO_REFUND, "USD") == Decimal("0.00")
