"""Kernel write-side infrastructure."""

from rental_kernel.services.mutation_guard import BookingMutationGuard

__all__ = ["BookingMutationGuard"]
