"""
Image Build Events

Architectural Intent:
- Events emitted by the ImageBuild aggregate as a build moves through its
  stages, fails, or leaves resources behind
- Plain immutable records; subscribers decide what to do with them
"""

from dataclasses import dataclass

from surrogate.domain.events.event_base import DomainEvent


@dataclass(frozen=True)
class BuildStageReachedEvent(DomainEvent):
    stage: str = ""
    resource_id: str = ""


@dataclass(frozen=True)
class ImageBuildCompletedEvent(DomainEvent):
    image_id: str = ""


@dataclass(frozen=True)
class ImageBuildFailedEvent(DomainEvent):
    step: str = ""
    error_message: str = ""


@dataclass(frozen=True)
class ResourceLeakedEvent(DomainEvent):
    """Cleanup could not remove a resource; it needs manual removal."""
    resource_kind: str = ""
    resource_id: str = ""
    error_message: str = ""
