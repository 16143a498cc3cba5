"""
Calendar-month arithmetic: month keys, clamped month addition, the
next-due-date rule and day counts.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from rental_kernel.domain.months import (
    add_months,
    days_until,
    first_day_of_month_key,
    last_day_of_month,
    month_key,
    next_due_date,
    parse_month_key,
)
from rental_kernel.exceptions import InvalidPaymentMonthError


class TestMonthKeys:
    def test_month_key_zero_pads(self):
        assert month_key(date(2024, 3, 9)) == "2024-03"

    def test_parse_round_trip(self):
        assert parse_month_key("2024-12") == (2024, 12)

    @pytest.mark.parametrize("bad", ["2024-13", "2024-00", "24-01", "2024/01", "", "2024-1"])
    def test_malformed_keys_rejected(self, bad):
        with pytest.raises(InvalidPaymentMonthError) as exc_info:
            parse_month_key(bad)
        assert exc_info.value.code == "INVALID_PAYMENT_MONTH"

    def test_first_day_of_month_key(self):
        assert first_day_of_month_key("2024-02") == date(2024, 2, 1)

    def test_last_day_handles_leap_years(self):
        assert last_day_of_month(2024, 2) == 29
        assert last_day_of_month(2023, 2) == 28


class TestAddMonths:
    def test_simple_addition(self):
        assert add_months(date(2024, 1, 15), 1) == date(2024, 2, 15)

    def test_crosses_year_boundary(self):
        assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)

    def test_clamps_to_short_month(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
        assert add_months(date(2024, 3, 31), 1) == date(2024, 4, 30)

    def test_anchor_restores_day_after_short_month(self):
        feb = add_months(date(2024, 1, 31), 1)
        assert add_months(feb, 1, anchor_day=31) == date(2024, 3, 31)

    def test_preserves_time_and_zone(self):
        start = datetime(2024, 1, 20, 12, 30, tzinfo=timezone.utc)
        assert add_months(start, 3) == datetime(2024, 4, 20, 12, 30, tzinfo=timezone.utc)


class TestNextDueDate:
    def test_nothing_paid_is_one_month_after_start(self):
        assert next_due_date(date(2024, 1, 15)) == date(2024, 2, 15)

    def test_one_month_after_latest_paid(self):
        assert next_due_date(date(2024, 1, 15), date(2024, 3, 15)) == date(2024, 4, 15)

    def test_anchor_survives_clamped_month(self):
        # Lease on the 31st, February paid on its clamped 29th
        assert next_due_date(date(2024, 1, 31), date(2024, 2, 29)) == date(2024, 3, 31)


class TestDaysUntil:
    def test_rounds_partial_days_up(self):
        now = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
        assert days_until(now + timedelta(hours=1), now) == 1

    def test_negative_when_past(self):
        now = datetime(2024, 1, 10, tzinfo=timezone.utc)
        assert days_until(now - timedelta(days=2), now) == -2
