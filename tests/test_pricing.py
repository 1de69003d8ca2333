from datetime import datetime, timedelta

import pytest

from services import pricing

START = datetime(2026, 3, 5, 10, 0)


@pytest.mark.parametrize("minutes, hours", [
    (60, 1),
    (90, 2),
    (61, 2),
    (180, 3),
    (1, 1),
])
def test_hours_rounded_up(minutes, hours):
    assert pricing.hours_rounded_up(START, START + timedelta(minutes=minutes)) == hours


def test_hours_rounded_up_non_positive_duration():
    assert pricing.hours_rounded_up(START, START) == 0
    assert pricing.hours_rounded_up(START, START - timedelta(hours=1)) == 0


def test_compute_price_bills_started_hours():
    assert pricing.compute_price(START, START + timedelta(minutes=90), 500) == 1000
    assert pricing.compute_price(START, START + timedelta(hours=3), 500) == 1500


def test_intervals_overlap_is_half_open():
    a_start, a_end = START, START + timedelta(hours=2)
    assert pricing.intervals_overlap(a_start, a_end, a_start + timedelta(hours=1), a_end + timedelta(hours=1))
    assert pricing.intervals_overlap(a_start, a_end, a_start, a_end)
    # touching at the boundary does not overlap
    assert not pricing.intervals_overlap(a_start, a_end, a_end, a_end + timedelta(hours=1))
    assert not pricing.intervals_overlap(a_end, a_end + timedelta(hours=1), a_start, a_end)


@pytest.mark.parametrize("hours_before, percent", [
    (50, 100),
    (48, 100),
    (30, 50),
    (24, 50),
    (10, 0),
    (-5, 0),
])
def test_refund_percent_tiers(hours_before, percent):
    now = START - timedelta(hours=hours_before)
    assert pricing.refund_percent(now, START) == percent


def test_refund_percent_custom_tiers():
    now = START - timedelta(hours=13)
    assert pricing.refund_percent(now, START, full_hours=12, half_hours=6) == 100


def test_refund_amount_rounds_half_up():
    assert pricing.refund_amount(100, 1500) == 1500
    assert pricing.refund_amount(50, 1500) == 750
    assert pricing.refund_amount(50, 501) == 251
    assert pricing.refund_amount(0, 1500) == 0
    assert pricing.refund_amount(50, None) == 0
