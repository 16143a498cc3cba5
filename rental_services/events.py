"""
In-process event bus.

Handlers subscribe by event name and are called synchronously, in
subscription order, by ``emit``.  A failing handler is logged and the
remaining handlers still run.
"""

from __future__ import annotations

import threading
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from rental_kernel.logging_config import get_logger

logger = get_logger("services.events")

EventHandler = Callable[[str, dict[str, Any]], None]


class EventBus:
    """Synchronous publish/subscribe keyed by event name."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, name: str, handler: EventHandler) -> Callable[[], None]:
        """Register ``handler`` for ``name``; returns an unsubscribe callable."""
        with self._lock:
            self._handlers[name].append(handler)

        def unsubscribe() -> None:
            with self._lock:
                if handler in self._handlers[name]:
                    self._handlers[name].remove(handler)

        return unsubscribe

    def emit(self, name: str, payload: dict[str, Any]) -> int:
        """Deliver ``payload`` to every handler of ``name``; returns the count delivered."""
        with self._lock:
            handlers = list(self._handlers.get(name, ()))
        delivered = 0
        for handler in handlers:
            try:
                handler(name, payload)
                delivered += 1
            except Exception:
                logger.warning(
                    "event_handler_failed",
                    extra={"event_name": name},
                    exc_info=True,
                )
        logger.debug(
            "event_emitted",
            extra={"event_name": name, "handlers": len(handlers), "delivered": delivered},
        )
        return delivered
