"""
Module: rental_kernel.models.booking
Responsibility:
    SQLAlchemy ORM model for bookings, the record the advance-deposit ledger
    and termination orchestrator mutate.

Architecture position:
    Kernel > Models.  Inherits ``TrackedBase``.  Bookings are created by the
    booking-approval flow (outside this package) and mutated here only.

Invariants enforced:
    - 0 <= remaining_advance_months <= advance_deposit_months whenever
      advance_deposit_months is set (``set_remaining_advance_months``).
    - The termination group (mode, initiated_at, end_date) is written only
      by ``begin_countdown`` and ``clear_termination`` -- all three together.
    - ``version`` is the optimistic-concurrency column; a stale UPDATE raises
      ``sqlalchemy.orm.exc.StaleDataError``.

Failure modes:
    - AdvanceMonthsInvariantError on an out-of-range counter write.
    - StaleDataError on a concurrent modification (translated by the
      mutation guard into OptimisticLockError).
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import BigInteger, Date, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from rental_kernel.db.base import TrackedBase, UUIDString
from rental_kernel.exceptions import AdvanceMonthsInvariantError


class BookingModel(TrackedBase):
    """
    A tenant's booking of a property.

    Guarantees:
        - ``status`` is one of: pending, approved, rejected, cancelled, completed.
        - ``payment_status`` is one of: pending, partial, paid, refunded.
        - ``termination_mode`` is NULL or "countdown"; when set, both
          termination timestamps are set.
    """

    __tablename__ = "bookings"

    __table_args__ = (
        Index("idx_booking_tenant", "tenant_id"),
        Index("idx_booking_property", "property_id"),
        Index("idx_booking_status", "status", "payment_status"),
        Index("idx_booking_termination_mode", "termination_mode"),
    )

    tenant_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    owner_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    property_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    tenant_name: Mapped[str] = mapped_column(String(255), default="")
    owner_name: Mapped[str] = mapped_column(String(255), default="")
    property_title: Mapped[str] = mapped_column(String(255), default="")

    monthly_rent: Mapped[Decimal] = mapped_column(nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[str] = mapped_column(String(50), default="pending")
    payment_status: Mapped[str] = mapped_column(String(50), default="pending")

    advance_deposit_months: Mapped[int | None] = mapped_column(nullable=True)
    remaining_advance_months: Mapped[int | None] = mapped_column(nullable=True)

    termination_mode: Mapped[str | None] = mapped_column(String(50), nullable=True)
    termination_initiated_at: Mapped[datetime | None] = mapped_column(nullable=True)
    termination_end_date: Mapped[datetime | None] = mapped_column(nullable=True)

    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    version: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    # ------------------------------------------------------------------
    # Advance months
    # ------------------------------------------------------------------

    @property
    def effective_remaining_months(self) -> int:
        if self.remaining_advance_months is not None:
            return self.remaining_advance_months
        return self.advance_deposit_months or 0

    def set_remaining_advance_months(self, value: int) -> None:
        total = self.advance_deposit_months
        if value < 0 or (total is not None and value > total):
            raise AdvanceMonthsInvariantError(str(self.id), value, total)
        self.remaining_advance_months = value

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.status == "approved" and self.payment_status == "paid"

    @property
    def has_countdown(self) -> bool:
        return self.termination_mode == "countdown"

    def begin_countdown(self, initiated_at: datetime, end_date: datetime) -> None:
        self.termination_mode = "countdown"
        self.termination_initiated_at = initiated_at
        self.termination_end_date = end_date

    def clear_termination(self) -> None:
        self.termination_mode = None
        self.termination_initiated_at = None
        self.termination_end_date = None

    def mark_completed(self, now: datetime) -> None:
        self.status = "completed"
        self.completed_at = now
        self.updated_at = now

    # ------------------------------------------------------------------
    # DTO conversion
    # ------------------------------------------------------------------

    def termination_state(self):
        from rental_kernel.domain.dtos import Active, Completed, TerminationPending

        if self.status == "completed":
            return Completed(completed_at=self.completed_at)
        if (
            self.termination_mode == "countdown"
            and self.termination_initiated_at is not None
            and self.termination_end_date is not None
        ):
            return TerminationPending(
                initiated_at=self.termination_initiated_at,
                end_date=self.termination_end_date,
            )
        return Active()

    def to_dto(self):
        from rental_kernel.domain.dtos import (
            Booking,
            BookingPaymentStatus,
            BookingStatus,
        )

        return Booking(
            id=self.id,
            tenant_id=self.tenant_id,
            owner_id=self.owner_id,
            property_id=self.property_id,
            monthly_rent=self.monthly_rent,
            start_date=self.start_date,
            status=BookingStatus(self.status),
            payment_status=BookingPaymentStatus(self.payment_status),
            termination=self.termination_state(),
            advance_deposit_months=self.advance_deposit_months,
            remaining_advance_months=self.remaining_advance_months,
            tenant_name=self.tenant_name or "",
            owner_name=self.owner_name or "",
            property_title=self.property_title or "",
            completed_at=self.completed_at,
            updated_at=self.updated_at,
        )

    def __repr__(self) -> str:
        return (
            f"<BookingModel {self.id} ({self.status}/{self.payment_status}) "
            f"advance={self.remaining_advance_months}/{self.advance_deposit_months}>"
        )
