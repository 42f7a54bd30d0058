"""
Event Bus Port

Architectural Intent:
- Abstract interface for publishing build events
- Allows decoupling of the build use case from whoever reports progress
"""

from typing import Protocol, Callable, Awaitable, runtime_checkable
from surrogate.domain.events.event_base import DomainEvent


@runtime_checkable
class EventBusPort(Protocol):
    async def publish(self, events: list[DomainEvent]) -> None: ...

    def subscribe(
        self, event_type: type, handler: Callable[[DomainEvent], Awaitable[None]]
    ) -> None: ...
