"""Slot pricing and time window generation"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterator, Optional

from ...models import DiscountType
from ...shared.validators import minutes_to_time, time_to_minutes
from ..finance.calculator import money, to_decimal


def calculate_final_price(
    base_price: Decimal, discount: Optional[Decimal], discount_type: Optional[str]
) -> Decimal:
    """Percentage discounts take `discount` percent off; fixed ones subtract it, never below zero"""
    base_price = to_decimal(base_price)
    if not discount or not discount_type:
        return money(base_price)

    discount = to_decimal(discount)
    if discount_type == DiscountType.PERCENTAGE.value:
        return money(base_price - base_price * discount / Decimal(100))
    if discount_type == DiscountType.FIXED.value:
        return money(max(Decimal(0), base_price - discount))
    return money(base_price)


def generate_time_windows(
    start_time: str,
    end_time: str,
    duration: int,
    break_start: Optional[str] = None,
    break_end: Optional[str] = None,
) -> list[tuple[str, str]]:
    """
    Back-to-back (start, end) windows of `duration` minutes between start and end.

    Windows overlapping the break are skipped and generation resumes at the
    break's end.
    """
    current = time_to_minutes(start_time)
    end = time_to_minutes(end_time)
    break_window = None
    if break_start and break_end:
        break_window = (time_to_minutes(break_start), time_to_minutes(break_end))

    windows = []
    while current + duration <= end:
        window_end = current + duration
        if break_window and not (window_end <= break_window[0] or current >= break_window[1]):
            current = max(current, break_window[1])
            continue
        windows.append((minutes_to_time(current), minutes_to_time(window_end)))
        current = window_end
    return windows


def iter_dates(start: date, end: date, days_of_week: Optional[list[int]] = None) -> Iterator[date]:
    """Dates from start to end inclusive; days_of_week uses 0=Monday .. 6=Sunday"""
    current = start
    while current <= end:
        if days_of_week is None or current.weekday() in days_of_week:
            yield current
        current += timedelta(days=1)
