"""Nightly rate, stay quote and refund computation."""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from booking_engine.domain.models import (
    DateRange,
    NightlyRate,
    PricingBreakdown,
    RefundPolicy,
    Room,
    SeasonalRule,
)
from booking_engine.utils.config import Settings, get_settings
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)

DEFAULT_MINOR_UNITS = 2
CURRENCY_MINOR_UNITS = {"JPY": 0}

_HUNDRED = Decimal("100")
_ONE = Decimal("1")


def quantize_money(amount: Decimal, currency: str) -> Decimal:
    """Round half-up to the currency's minor unit."""
    places = CURRENCY_MINOR_UNITS.get(currency.upper(), DEFAULT_MINOR_UNITS)
    return amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def matching_rule(rules: Sequence[SeasonalRule], day: date) -> Optional[SeasonalRule]:
    """First declared rule whose range holds ``day``; overlapping rules are not ranked."""
    for rule in rules:
        if rule.range.contains(day):
            return rule
    return None


class PricingCalculator:
    """Pure pricing over a room snapshot; the stay date selects the season."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()

    def _undiscounted_rate(self, room: Room, day: date) -> Decimal:
        rule = matching_rule(room.seasonal_rules, day)
        multiplier = rule.multiplier if rule is not None else _ONE
        return room.base_price * multiplier

    def nightly_rate(self, room: Room, day: date) -> Decimal:
        discount_factor = _ONE - room.discount_percentage / _HUNDRED
        return quantize_money(self._undiscounted_rate(room, day) * discount_factor, room.currency)

    def quote(self, room: Room, check_in: date, check_out: date) -> PricingBreakdown:
        stay = DateRange(check_in, check_out)
        nightly_rates = tuple(
            NightlyRate(date=day, rate=self.nightly_rate(room, day)) for day in stay.days()
        )
        base_amount = sum(
            (quantize_money(self._undiscounted_rate(room, day), room.currency) for day in stay.days()),
            Decimal("0"),
        )
        subtotal = sum((item.rate for item in nightly_rates), Decimal("0"))
        taxes_and_fees = quantize_money(room.taxes_and_fees * stay.nights, room.currency)
        fees = quantize_money(Decimal("0"), room.currency)
        breakdown = PricingBreakdown(
            currency=room.currency,
            nights=stay.nights,
            nightly_rates=nightly_rates,
            base_amount=base_amount,
            discount_amount=base_amount - subtotal,
            subtotal=subtotal,
            taxes_and_fees=taxes_and_fees,
            fees=fees,
            total=subtotal + taxes_and_fees + fees,
            average_per_night=quantize_money(subtotal / stay.nights, room.currency),
        )
        logger.debug(
            "Quote computed | room_id=%s | range=%s | total=%s %s",
            room.room_id,
            stay,
            breakdown.total,
            breakdown.currency,
        )
        return breakdown

    def refund_amount(
        self,
        paid_amount: Decimal,
        policy: RefundPolicy,
        currency: str,
        partial_ratio: Optional[float] = None,
    ) -> Decimal:
        """Refund owed on ``paid_amount``; the partial ratio defaults to the configured one."""
        if policy is RefundPolicy.FULL_REFUND:
            return quantize_money(paid_amount, currency)
        if policy is RefundPolicy.PARTIAL_REFUND:
            if partial_ratio is None:
                partial_ratio = self._settings.partial_refund_ratio
            ratio = Decimal(str(partial_ratio))
            return quantize_money(paid_amount * ratio, currency)
        return quantize_money(Decimal("0"), currency)
