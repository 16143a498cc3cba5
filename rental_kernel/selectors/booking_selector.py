"""
Module: rental_kernel.selectors.booking_selector
Responsibility: Booking lookups for the ledger, the termination orchestrator
    and the countdown sweep.

Invariants enforced:
    - ``get_for_update`` always refreshes the row from the database so a
      retried mutation never works on a stale identity-map copy.
"""

from uuid import UUID

from sqlalchemy import func, select

from rental_kernel.domain.dtos import Booking
from rental_kernel.exceptions import BookingNotFoundError
from rental_kernel.models.booking import BookingModel
from rental_kernel.selectors.base import BaseSelector


class BookingSelector(BaseSelector[BookingModel]):
    """Queries over the bookings table."""

    def get(self, booking_id: UUID) -> Booking | None:
        model = self.session.get(BookingModel, booking_id)
        return model.to_dto() if model is not None else None

    def get_model(self, booking_id: UUID) -> BookingModel | None:
        return self.session.get(BookingModel, booking_id)

    def get_for_update(self, booking_id: UUID) -> BookingModel:
        """
        Load the booking row fresh from the database.

        Raises:
            BookingNotFoundError: If no booking has this id.
        """
        model = self.session.get(
            BookingModel, booking_id, populate_existing=True,
        )
        if model is None:
            raise BookingNotFoundError(str(booking_id))
        return model

    def active_countdown_ids(self) -> list[UUID]:
        """Ids of approved, paid bookings with a running countdown."""
        stmt = (
            select(BookingModel.id)
            .where(
                BookingModel.termination_mode == "countdown",
                BookingModel.status == "approved",
                BookingModel.payment_status == "paid",
            )
            .order_by(BookingModel.termination_end_date, BookingModel.id)
        )
        return list(self.session.scalars(stmt))

    def count_occupied(self, property_id: UUID) -> int:
        """Approved and paid bookings currently holding a slot on a property."""
        stmt = select(func.count()).select_from(BookingModel).where(
            BookingModel.property_id == property_id,
            BookingModel.status == "approved",
            BookingModel.payment_status == "paid",
        )
        return self.session.scalar(stmt) or 0
