"""
EffectDispatcher -- runs post-commit effects.

Responsibility:
    Carry out the effects a module service returned, in order, after its
    transaction committed.

Invariants enforced:
    - Each effect runs in its own ``try/except``; a failure is logged with
      ``logger.warning`` and counted, and the remaining effects still run.
    - Nothing here can roll back the state change that produced the effects.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from rental_kernel.logging_config import get_logger
from rental_services.effects import (
    AvailabilityRecomputer,
    Effect,
    EmitEvent,
    EventEmitter,
    NotifyOwner,
    OwnerNotifier,
    RecomputeAvailability,
)

logger = get_logger("services.dispatcher")


@dataclass(frozen=True)
class DispatchReport:
    """Outcome of one ``dispatch`` call."""

    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    failures: tuple[str, ...] = ()

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0


class EffectDispatcher:
    """
    Routes each effect to its collaborator.

    Collaborators are optional; an effect whose collaborator is missing is
    skipped with a debug log and counted as succeeded.
    """

    def __init__(
        self,
        availability: AvailabilityRecomputer | None = None,
        notifier: OwnerNotifier | None = None,
        events: EventEmitter | None = None,
    ):
        self._availability = availability
        self._notifier = notifier
        self._events = events

    def dispatch(self, effects: Iterable[Effect]) -> DispatchReport:
        attempted = succeeded = 0
        failures: list[str] = []
        for effect in effects:
            attempted += 1
            kind = type(effect).__name__
            try:
                self._run(effect)
                succeeded += 1
            except Exception:
                failures.append(kind)
                logger.warning(
                    "effect_failed",
                    extra={"effect": kind},
                    exc_info=True,
                )
        return DispatchReport(
            attempted=attempted,
            succeeded=succeeded,
            failed=len(failures),
            failures=tuple(failures),
        )

    def _run(self, effect: Effect) -> None:
        if isinstance(effect, RecomputeAvailability):
            if self._availability is None:
                logger.debug("effect_skipped", extra={"effect": "RecomputeAvailability"})
                return
            self._availability.recompute_availability(effect.property_id)
        elif isinstance(effect, NotifyOwner):
            if self._notifier is None:
                logger.debug("effect_skipped", extra={"effect": "NotifyOwner"})
                return
            self._notifier.notify(effect)
        elif isinstance(effect, EmitEvent):
            if self._events is None:
                logger.debug("effect_skipped", extra={"effect": "EmitEvent"})
                return
            self._events.emit(effect.name, effect.payload)
        else:
            raise TypeError(f"Unknown effect type: {type(effect).__name__}")
