"""
rental_services -- post-commit side effects of the rental engine.

Module services record what should happen after a successful commit as a
list of effect values; the ``EffectDispatcher`` carries them out against
the in-process collaborators defined here.
"""

from rental_services.availability import ListingAvailabilityService
from rental_services.dispatcher import DispatchReport, EffectDispatcher
from rental_services.effects import (
    AvailabilityRecomputer,
    Effect,
    EmitEvent,
    EventEmitter,
    NotifyOwner,
    OwnerNotifier,
    RecomputeAvailability,
)
from rental_services.events import EventBus
from rental_services.notifications import ConversationNotifier

__all__ = [
    "AvailabilityRecomputer",
    "ConversationNotifier",
    "DispatchReport",
    "Effect",
    "EffectDispatcher",
    "EmitEvent",
    "EventBus",
    "EventEmitter",
    "ListingAvailabilityService",
    "NotifyOwner",
    "OwnerNotifier",
    "RecomputeAvailability",
]
