"""
Module: rental_kernel.models.listing
Responsibility:
    Published listing capacity and availability, recomputed whenever a
    booking on the listing completes.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from rental_kernel.db.base import TrackedBase


class ListingModel(TrackedBase):
    """
    A published property listing.

    Guarantees:
        - ``id`` is the property id bookings refer to.
        - ``capacity`` >= 1.
        - ``availability_status`` is one of: available, full.
    """

    __tablename__ = "listings"

    title: Mapped[str] = mapped_column(String(255), default="")
    capacity: Mapped[int] = mapped_column(default=1)
    availability_status: Mapped[str] = mapped_column(String(50), default="available")

    def __repr__(self) -> str:
        return f"<ListingModel {self.id} {self.availability_status} cap={self.capacity}>"
