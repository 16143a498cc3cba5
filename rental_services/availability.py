"""
Listing availability recomputation.

Responsibility:
    After a booking completes, the property it occupied may have a free
    slot again.  ``recompute_availability`` counts approved and paid
    bookings on the property against the listing's capacity and stores
    ``available`` or ``full``.

Failure modes:
    - A property with no listing row is logged and reported as
      ``available``; nothing is written.
    - Database errors roll back this unit and propagate to the dispatcher.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from rental_kernel.domain.clock import Clock, SystemClock
from rental_kernel.logging_config import get_logger
from rental_kernel.models.listing import ListingModel
from rental_kernel.selectors.booking_selector import BookingSelector

logger = get_logger("services.availability")

AVAILABLE = "available"
FULL = "full"


def availability_for(occupied: int, capacity: int) -> str:
    """``full`` once occupied slots reach capacity, otherwise ``available``."""
    return FULL if occupied >= max(capacity, 1) else AVAILABLE


class ListingAvailabilityService:
    """Stores the availability status of listings."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()

    def recompute_availability(self, property_id: UUID) -> str:
        listing = self._session.get(ListingModel, property_id)
        occupied = BookingSelector(self._session).count_occupied(property_id)
        if listing is None:
            logger.warning(
                "listing_not_found",
                extra={"property_id": str(property_id), "occupied": occupied},
            )
            return AVAILABLE

        status = availability_for(occupied, listing.capacity)
        try:
            if listing.availability_status != status:
                listing.availability_status = status
                listing.updated_at = self._clock.now()
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info(
            "listing_availability_recomputed",
            extra={
                "property_id": str(property_id),
                "occupied": occupied,
                "capacity": listing.capacity,
                "availability_status": status,
            },
        )
        return status
