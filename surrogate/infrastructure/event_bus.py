"""
Event Bus Infrastructure

Architectural Intent:
- In-memory event bus delivering build events to async subscribers
- A failing handler is logged and skipped; it never stops delivery to the
  remaining handlers and never fails the build that published the event
"""

import logging
from typing import Callable, Awaitable
from surrogate.domain.events.event_base import DomainEvent

logger = logging.getLogger(__name__)


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[DomainEvent], Awaitable[None]]]] = {}

    async def publish(self, events: list[DomainEvent]) -> None:
        for event in events:
            for event_type, handlers in self._handlers.items():
                if not isinstance(event, event_type):
                    continue
                for handler in handlers:
                    try:
                        await handler(event)
                    except Exception:
                        logger.exception(
                            "Event handler %r failed for %s",
                            handler,
                            type(event).__name__,
                        )

    def subscribe(
        self, event_type: type, handler: Callable[[DomainEvent], Awaitable[None]]
    ) -> None:
        self._handlers.setdefault(event_type, []).append(handler)
