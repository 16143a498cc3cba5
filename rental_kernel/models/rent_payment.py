"""
Module: rental_kernel.models.rent_payment
Responsibility:
    SQLAlchemy ORM model for monthly rent payments.

Architecture position:
    Kernel > Models.  Inherits ``TrackedBase``.

Invariants enforced:
    - (booking_id, payment_month) is unique (uq_rent_payment_booking_month).
      At most one record exists per booking per calendar month, even under
      concurrent writers.
    - ``payment_month`` is a ``YYYY-MM`` key.
    - All monetary fields are Decimal (Numeric(38,9)).

Failure modes:
    - IntegrityError on a duplicate (booking_id, payment_month) insert.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rental_kernel.db.base import TrackedBase, UUIDString


class RentPaymentModel(TrackedBase):
    """
    One month of rent owed on a booking.

    Guarantees:
        - ``status`` is one of: pending, paid, overdue, partial,
          pending_owner_confirmation, rejected.
        - ``booking_id`` references bookings.id.
    """

    __tablename__ = "rent_payments"

    __table_args__ = (
        UniqueConstraint(
            "booking_id", "payment_month", name="uq_rent_payment_booking_month",
        ),
        Index("idx_rent_payment_booking", "booking_id"),
        Index("idx_rent_payment_status", "status"),
        Index("idx_rent_payment_due", "due_date"),
    )

    booking_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("bookings.id"),
        nullable=False,
    )
    tenant_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    owner_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    property_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    amount: Mapped[Decimal] = mapped_column(nullable=False)
    late_fee: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)

    payment_month: Mapped[str] = mapped_column(String(7), nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    paid_date: Mapped[datetime | None] = mapped_column(nullable=True)

    status: Mapped[str] = mapped_column(String(50), default="pending")
    payment_method: Mapped[str | None] = mapped_column(String(100), nullable=True)
    receipt_number: Mapped[str] = mapped_column(String(100), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def is_paid(self) -> bool:
        return self.status == "paid"

    def settle(
        self,
        *,
        paid_at: datetime,
        payment_method: str,
        receipt_number: str,
        notes: str,
        actor_id: UUID | None = None,
    ) -> None:
        self.status = "paid"
        self.paid_date = paid_at
        self.payment_method = payment_method
        self.receipt_number = receipt_number
        self.notes = notes
        self.updated_at = paid_at
        self.updated_by_id = actor_id

    def to_dto(self):
        from rental_kernel.domain.dtos import RentPayment, RentPaymentStatus

        return RentPayment(
            id=self.id,
            booking_id=self.booking_id,
            tenant_id=self.tenant_id,
            owner_id=self.owner_id,
            property_id=self.property_id,
            amount=self.amount,
            late_fee=self.late_fee,
            total_amount=self.total_amount,
            payment_month=self.payment_month,
            due_date=self.due_date,
            status=RentPaymentStatus(self.status),
            receipt_number=self.receipt_number,
            paid_date=self.paid_date,
            payment_method=self.payment_method,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return (
            f"<RentPaymentModel {self.payment_month} {self.status} "
            f"due={self.due_date}>"
        )
