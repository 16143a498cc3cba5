"""Listing availability recomputation."""

from uuid import uuid4

import pytest

from rental_kernel.models.listing import ListingModel
from rental_services.availability import (
    AVAILABLE,
    FULL,
    ListingAvailabilityService,
    availability_for,
)


@pytest.mark.parametrize("occupied,capacity,expected", [
    (0, 1, AVAILABLE),
    (1, 1, FULL),
    (1, 2, AVAILABLE),
    (3, 2, FULL),
    (0, 0, AVAILABLE),
])
def test_availability_for(occupied, capacity, expected):
    assert availability_for(occupied, capacity) == expected


def test_full_while_occupied(session, clock, create_booking, create_listing):
    property_id = uuid4()
    create_listing(property_id=property_id, capacity=1, availability_status="available")
    create_booking(property_id=property_id)

    status = ListingAvailabilityService(session, clock).recompute_availability(property_id)

    assert status == FULL
    assert session.get(ListingModel, property_id).availability_status == FULL


def test_available_after_completion(session, clock, create_booking, create_listing):
    property_id = uuid4()
    create_listing(property_id=property_id, capacity=2)
    create_booking(property_id=property_id)
    create_booking(property_id=property_id, status="completed")

    assert ListingAvailabilityService(session, clock).recompute_availability(property_id) == AVAILABLE


def test_missing_listing(session, clock, captured_logs):
    assert ListingAvailabilityService(session, clock).recompute_availability(uuid4()) == AVAILABLE
    assert any(r["message"] == "listing_not_found" for r in captured_logs())
