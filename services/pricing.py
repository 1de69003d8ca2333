import math
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

HOUR_SECONDS = 60 * 60

REFUND_FULL_HOURS = 48
REFUND_HALF_HOURS = 24


def hours_rounded_up(start: datetime, end: datetime) -> int:
    """Billed hours; any started hour counts as a full one."""
    seconds = (end - start).total_seconds()
    if seconds <= 0:
        return 0
    return math.ceil(seconds / HOUR_SECONDS)


def compute_price(start: datetime, end: datetime, price_per_hour: int) -> int:
    return hours_rounded_up(start, end) * price_per_hour


def intervals_overlap(s1: datetime, e1: datetime, s2: datetime, e2: datetime) -> bool:
    # half-open: [s1, e1) and [s2, e2)
    return s1 < e2 and s2 < e1


def refund_percent(now: datetime, start: datetime,
                   full_hours: int = REFUND_FULL_HOURS,
                   half_hours: int = REFUND_HALF_HOURS) -> int:
    hours = (start - now).total_seconds() / HOUR_SECONDS
    if hours >= full_hours:
        return 100
    if hours >= half_hours:
        return 50
    return 0


def refund_amount(percent: int, price: int) -> int:
    value = Decimal(percent) * Decimal(price or 0) / Decimal(100)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
