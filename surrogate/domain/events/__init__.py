"""
Domain Events Package

Architectural Intent:
- Contains the events an image build emits
- Events are the primary mechanism for reporting build progress outward
"""

from surrogate.domain.events.event_base import DomainEvent
from surrogate.domain.events.build_events import (
    BuildStageReachedEvent,
    ImageBuildCompletedEvent,
    ImageBuildFailedEvent,
    ResourceLeakedEvent,
)

__all__ = [
    "DomainEvent",
    "BuildStageReachedEvent",
    "ImageBuildCompletedEvent",
    "ImageBuildFailedEvent",
    "ResourceLeakedEvent",
]
