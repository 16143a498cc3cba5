"""Rent pure calculations: overdue checks, late fees, due dates, receipts."""

import re
from datetime import date, datetime, timezone
from decimal import Decimal

from rental_modules.rent.calculations import (
    calculate_late_fee,
    days_overdue,
    generate_receipt_number,
    is_payment_overdue,
    monthly_due_dates,
)


class TestOverdue:
    def test_not_overdue_at_midnight_of_due_date(self):
        assert not is_payment_overdue(date(2024, 2, 15), datetime(2024, 2, 15, tzinfo=timezone.utc))

    def test_overdue_later_that_day(self):
        assert is_payment_overdue(date(2024, 2, 15), datetime(2024, 2, 15, 9, tzinfo=timezone.utc))

    def test_naive_now_treated_as_utc(self):
        assert is_payment_overdue(date(2024, 2, 15), datetime(2024, 2, 16))

    def test_days_overdue_rounds_up(self):
        assert days_overdue(date(2024, 2, 15), datetime(2024, 2, 17, 1, tzinfo=timezone.utc)) == 3

    def test_days_overdue_never_negative(self):
        assert days_overdue(date(2024, 2, 15), datetime(2024, 2, 1, tzinfo=timezone.utc)) == 0


class TestLateFee:
    def test_full_period(self):
        assert calculate_late_fee(Decimal("15000"), 30) == Decimal("750.00")

    def test_prorated_and_rounded(self):
        # 10000 * 0.05 * 7 / 30 = 116.666...
        assert calculate_late_fee(Decimal("10000"), 7) == Decimal("116.67")

    def test_custom_rate(self):
        assert calculate_late_fee(Decimal("15000"), 30, Decimal("0.10")) == Decimal("1500.00")

    def test_zero_days(self):
        assert calculate_late_fee(Decimal("15000"), 0) == Decimal("0.00")


class TestMonthlyDueDates:
    def test_up_to_and_including_until(self):
        assert monthly_due_dates(date(2024, 1, 15), date(2024, 4, 15)) == [
            date(2024, 2, 15), date(2024, 3, 15), date(2024, 4, 15),
        ]

    def test_none_before_first_month(self):
        assert monthly_due_dates(date(2024, 1, 15), date(2024, 2, 14)) == []

    def test_clamped_month_ends(self):
        assert monthly_due_dates(date(2024, 1, 31), date(2024, 4, 30)) == [
            date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30),
        ]


class TestReceiptNumber:
    def test_format(self):
        now = datetime(2024, 1, 15, 10, tzinfo=timezone.utc)
        receipt = generate_receipt_number("ADVANCE-", now)
        assert re.fullmatch(r"ADVANCE-\d{13}-[A-Z0-9]{9}", receipt)
        assert receipt.startswith(f"ADVANCE-{int(now.timestamp() * 1000)}-")

    def test_explicit_token(self):
        now = datetime(2024, 1, 15, tzinfo=timezone.utc)
        assert generate_receipt_number("RENT-", now, token="ABC").endswith("-ABC")
