"""
Post-commit effect values and the collaborator protocols that run them.

Effects are plain frozen data.  A service that completes a booking returns
``(RecomputeAvailability(...), NotifyOwner(...), EmitEvent(...))`` instead
of calling collaborators inside its transaction, so a collaborator failure
can never unwind a committed state change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

BOOKING_COMPLETED = "bookingCompleted"


@dataclass(frozen=True)
class RecomputeAvailability:
    """Recompute the published availability of a property."""

    property_id: UUID


@dataclass(frozen=True)
class NotifyOwner:
    """Post a message from the tenant into the owner/tenant conversation."""

    owner_id: UUID
    tenant_id: UUID
    property_id: UUID
    text: str
    owner_name: str = ""
    tenant_name: str = ""
    property_title: str = ""


@dataclass(frozen=True)
class EmitEvent:
    """Publish a named domain event."""

    name: str
    payload: dict[str, Any] = field(default_factory=dict)


Effect = RecomputeAvailability | NotifyOwner | EmitEvent


@runtime_checkable
class AvailabilityRecomputer(Protocol):
    def recompute_availability(self, property_id: UUID) -> str: ...


@runtime_checkable
class OwnerNotifier(Protocol):
    def notify(self, effect: NotifyOwner) -> UUID: ...


@runtime_checkable
class EventEmitter(Protocol):
    def emit(self, name: str, payload: dict[str, Any]) -> int: ...
