"""Read-only query selectors."""

from rental_kernel.selectors.booking_selector import BookingSelector
from rental_kernel.selectors.payment_selector import PaymentSelector

__all__ = ["BookingSelector", "PaymentSelector"]
