from __future__ import annotations

from datetime import date

import pytest

from booking_engine.domain.errors import ConflictError, InvalidRangeError, NotFoundError
from booking_engine.domain.models import DateInterval, DateRange, IntervalReason, IntervalSet


def _range(start_day: int, end_day: int) -> DateRange:
    return DateRange(date(2027, 3, start_day), date(2027, 3, end_day))


def test_empty_and_inverted_ranges_are_rejected() -> None:
    with pytest.raises(InvalidRangeError):
        _range(10, 10)
    with pytest.raises(InvalidRangeError):
        _range(12, 10)


def test_touching_ranges_do_not_overlap() -> None:
    assert not _range(1, 5).overlaps(_range(5, 8))
    assert not _range(5, 8).overlaps(_range(1, 5))
    assert _range(1, 5).overlaps(_range(4, 8))
    assert _range(1, 10).overlaps(_range(3, 4))


def test_nights_and_days_exclude_check_out() -> None:
    stay = _range(1, 4)
    assert stay.nights == 3
    assert list(stay.days()) == [date(2027, 3, 1), date(2027, 3, 2), date(2027, 3, 3)]
    assert str(stay) == "[2027-03-01, 2027-03-04)"


def test_booked_interval_requires_booking_reference() -> None:
    with pytest.raises(ValueError):
        DateInterval(range=_range(1, 2), reason=IntervalReason.BOOKED)
    with pytest.raises(ValueError):
        DateInterval(range=_range(1, 2), reason=IntervalReason.MAINTENANCE, booking_id="BK1")


def test_insert_keeps_intervals_sorted_and_disjoint() -> None:
    holds = IntervalSet()
    holds.insert(_range(10, 12), IntervalReason.BOOKED, "BK2")
    holds.insert(_range(1, 3), IntervalReason.BOOKED, "BK1")
    holds.insert(_range(12, 15), IntervalReason.MAINTENANCE)

    starts = [interval.range.start for interval in holds]
    assert starts == sorted(starts)
    assert len(holds) == 3

    with pytest.raises(ConflictError):
        holds.insert(_range(11, 13), IntervalReason.BOOKED, "BK3")
    assert len(holds) == 3


def test_query_overlap_finds_long_earlier_interval() -> None:
    holds = IntervalSet()
    holds.insert(_range(1, 20), IntervalReason.RENOVATION)
    assert holds.query_overlap(_range(15, 16))
    assert not holds.query_overlap(_range(20, 22))


def test_overlapping_returns_every_conflict_in_order() -> None:
    holds = IntervalSet()
    holds.insert(_range(1, 3), IntervalReason.BOOKED, "BK1")
    holds.insert(_range(5, 7), IntervalReason.BLOCKED)
    holds.insert(_range(9, 11), IntervalReason.BOOKED, "BK2")

    found = holds.overlapping(_range(2, 10))
    assert [interval.range for interval in found] == [_range(1, 3), _range(5, 7), _range(9, 11)]
    assert holds.overlapping(_range(3, 5)) == []


def test_interval_on_reports_night_holder() -> None:
    holds = IntervalSet()
    holds.insert(_range(5, 7), IntervalReason.MAINTENANCE)
    assert holds.interval_on(date(2027, 3, 6)).reason is IntervalReason.MAINTENANCE
    assert holds.interval_on(date(2027, 3, 7)) is None
    assert holds.interval_on(date(2027, 3, 4)) is None


def test_remove_exact_requires_matching_range() -> None:
    holds = IntervalSet()
    holds.insert(_range(5, 7), IntervalReason.BOOKED, "BK1")

    with pytest.raises(NotFoundError):
        holds.remove_exact(_range(5, 6))

    removed = holds.remove_exact(_range(5, 7))
    assert removed.booking_id == "BK1"
    assert len(holds) == 0
    assert not holds.query_overlap(_range(5, 7))


def test_constructor_rejects_overlapping_seed_intervals() -> None:
    seed = [
        DateInterval(range=_range(1, 4), reason=IntervalReason.BLOCKED),
        DateInterval(range=_range(3, 6), reason=IntervalReason.BLOCKED),
    ]
    with pytest.raises(ConflictError):
        IntervalSet(seed)
