"""
Engine configuration schema (``rental_config.schema``).

Frozen dataclass holding every tunable of the advance-deposit and
termination engine.  ``__post_init__`` validates values so an invalid
file fails at load time, never mid-sweep.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

SWEEP_FREQUENCIES = ("hourly", "daily", "weekly")


@dataclass(frozen=True)
class EngineConfig:
    """Runtime settings for the rental engine."""

    advance_receipt_prefix: str = "ADVANCE-"
    rent_receipt_prefix: str = "RENT-"
    advance_payment_method: str = "Advance Deposit"
    late_fee_rate: Decimal = Decimal("0.05")
    optimistic_retry_limit: int = 3
    sweep_frequency: str = "daily"
    future_payment_months: int = 6

    def __post_init__(self) -> None:
        if not self.advance_receipt_prefix:
            raise ValueError("advance_receipt_prefix must not be empty")
        if not self.rent_receipt_prefix:
            raise ValueError("rent_receipt_prefix must not be empty")
        if self.advance_receipt_prefix == self.rent_receipt_prefix:
            raise ValueError(
                "advance_receipt_prefix and rent_receipt_prefix must differ"
            )
        if not self.advance_payment_method:
            raise ValueError("advance_payment_method must not be empty")
        if not isinstance(self.late_fee_rate, Decimal):
            object.__setattr__(self, "late_fee_rate", Decimal(str(self.late_fee_rate)))
        if self.late_fee_rate < 0 or self.late_fee_rate > 1:
            raise ValueError(
                f"late_fee_rate must be between 0 and 1, got {self.late_fee_rate}"
            )
        if self.optimistic_retry_limit < 1:
            raise ValueError(
                "optimistic_retry_limit must be >= 1, "
                f"got {self.optimistic_retry_limit}"
            )
        if self.sweep_frequency not in SWEEP_FREQUENCIES:
            raise ValueError(
                f"sweep_frequency must be one of {SWEEP_FREQUENCIES}, "
                f"got {self.sweep_frequency!r}"
            )
        if self.future_payment_months < 0:
            raise ValueError(
                "future_payment_months must be >= 0, "
                f"got {self.future_payment_months}"
            )
