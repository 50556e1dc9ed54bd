"""Tests for slot pricing and window generation."""

from datetime import date
from decimal import Decimal

from practice_api.domain.slots.capacity import status_for
from practice_api.domain.slots.generator import (
    calculate_final_price,
    generate_time_windows,
    iter_dates,
)


class TestFinalPrice:
    def test_no_discount(self):
        assert calculate_final_price(Decimal("500"), None, None) == Decimal("500.00")

    def test_percentage(self):
        assert calculate_final_price(Decimal("500"), Decimal("10"), "PERCENTAGE") == Decimal("450.00")

    def test_fixed(self):
        assert calculate_final_price(Decimal("500"), Decimal("120"), "FIXED") == Decimal("380.00")

    def test_fixed_is_floored_at_zero(self):
        assert calculate_final_price(Decimal("100"), Decimal("150"), "FIXED") == Decimal("0.00")


class TestTimeWindows:
    def test_hourly_windows(self):
        assert generate_time_windows("09:00", "12:00", 60) == [
            ("09:00", "10:00"),
            ("10:00", "11:00"),
            ("11:00", "12:00"),
        ]

    def test_partial_window_is_dropped(self):
        assert generate_time_windows("09:00", "10:45", 30) == [
            ("09:00", "09:30"),
            ("09:30", "10:00"),
            ("10:00", "10:30"),
        ]

    def test_break_is_skipped(self):
        windows = generate_time_windows("09:00", "13:00", 60, "11:00", "12:00")
        assert windows == [("09:00", "10:00"), ("10:00", "11:00"), ("12:00", "13:00")]

    def test_misaligned_break_resumes_at_break_end(self):
        windows = generate_time_windows("09:00", "12:00", 60, "10:30", "11:00")
        assert windows == [("09:00", "10:00"), ("11:00", "12:00")]


class TestIterDates:
    def test_weekdays_only(self):
        # 2026-10-19 is a Monday
        days = list(iter_dates(date(2026, 10, 19), date(2026, 10, 25), [0, 2, 4]))
        assert days == [date(2026, 10, 19), date(2026, 10, 21), date(2026, 10, 23)]

    def test_all_days_when_unfiltered(self):
        assert len(list(iter_dates(date(2026, 10, 19), date(2026, 10, 25)))) == 7


class TestStatusFor:
    def test_available_until_full(self):
        assert status_for(0, 2) == "AVAILABLE"
        assert status_for(1, 2) == "AVAILABLE"
        assert status_for(2, 2) == "BOOKED"

    def test_blocked_wins(self):
        assert status_for(0, 2, blocked=True) == "BLOCKED"
