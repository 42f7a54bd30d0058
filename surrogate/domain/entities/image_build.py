"""
Image Build Module

Architectural Intent:
- ImageBuild aggregate records one run of the build workflow: which stage it
  reached and which cloud resources it created along the way
- State changes produce new instances so every intermediate record survives
  for logging and auditing
- Transition methods enforce the ordering invariants between dependent
  resources (attach after clone, detach before delete, capture after the
  instance is running)
- The created-resource ids are what the orchestrator's cleanup works from

Domain Events:
- BuildStageReachedEvent: Published for every stage transition
- ImageBuildCompletedEvent: Published when the image is built and torn down
- ImageBuildFailedEvent: Published when a step fails
- ResourceLeakedEvent: Published when cleanup could not remove a resource
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from surrogate.domain.events.event_base import DomainEvent
from surrogate.domain.events.build_events import (
    BuildStageReachedEvent,
    ImageBuildCompletedEvent,
    ImageBuildFailedEvent,
    ResourceLeakedEvent,
)


class BuildStage(str, Enum):
    STARTED = "STARTED"
    INSTANCE_LAUNCHED = "INSTANCE_LAUNCHED"
    BOOT_VOLUME_CLONED = "BOOT_VOLUME_CLONED"
    BOOT_VOLUME_ATTACHED = "BOOT_VOLUME_ATTACHED"
    INSTANCE_RUNNING = "INSTANCE_RUNNING"
    PROVISIONED = "PROVISIONED"
    IMAGE_CAPTURED = "IMAGE_CAPTURED"
    IMAGE_AVAILABLE = "IMAGE_AVAILABLE"
    INSTANCE_TERMINATED = "INSTANCE_TERMINATED"
    BOOT_VOLUME_DETACHED = "BOOT_VOLUME_DETACHED"
    BOOT_VOLUME_DELETED = "BOOT_VOLUME_DELETED"
    DONE = "DONE"
    FAILED = "FAILED"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ImageBuild:
    build_id: str
    stage: BuildStage = BuildStage.STARTED
    instance_id: Optional[str] = None
    boot_volume_id: Optional[str] = None
    attachment_id: Optional[str] = None
    image_id: Optional[str] = None
    terminated: bool = False
    detached: bool = False
    volume_deleted: bool = False
    failed_step: Optional[str] = None
    error_message: Optional[str] = None
    stages: tuple[BuildStage, ...] = (BuildStage.STARTED,)
    domain_events: tuple[DomainEvent, ...] = field(default=(), repr=False)

    def __post_init__(self) -> None:
        if not self.build_id:
            raise ValueError("Build id cannot be empty")

    @property
    def is_finished(self) -> bool:
        return self.stage in (BuildStage.DONE, BuildStage.FAILED)

    def has_reached(self, stage: BuildStage) -> bool:
        return stage in self.stages

    def _advance(self, stage: BuildStage, resource_id: str, **changes) -> ImageBuild:
        if self.is_finished:
            raise ValueError(f"Build {self.build_id} is already {self.stage}")
        event = BuildStageReachedEvent(
            aggregate_id=self.build_id, stage=stage.value, resource_id=resource_id
        )
        return replace(
            self,
            stage=stage,
            stages=self.stages + (stage,),
            domain_events=self.domain_events + (event,),
            **changes,
        )

    def instance_launched(self, instance_id: str) -> ImageBuild:
        if self.instance_id is not None:
            raise ValueError("Build already launched an instance")
        return self._advance(
            BuildStage.INSTANCE_LAUNCHED, instance_id, instance_id=instance_id
        )

    def boot_volume_cloned(self, volume_id: str) -> ImageBuild:
        if self.instance_id is None:
            raise ValueError("Boot volume can only be cloned from a launched instance")
        return self._advance(
            BuildStage.BOOT_VOLUME_CLONED, volume_id, boot_volume_id=volume_id
        )

    def boot_volume_attached(self, attachment_id: str) -> ImageBuild:
        if self.instance_id is None or self.boot_volume_id is None:
            raise ValueError("Attach requires both a launched instance and a cloned volume")
        return self._advance(
            BuildStage.BOOT_VOLUME_ATTACHED, attachment_id, attachment_id=attachment_id
        )

    def instance_running(self) -> ImageBuild:
        if self.instance_id is None:
            raise ValueError("No instance has been launched")
        return self._advance(BuildStage.INSTANCE_RUNNING, self.instance_id)

    def provisioned(self) -> ImageBuild:
        if not self.has_reached(BuildStage.INSTANCE_RUNNING):
            raise ValueError("Instance must be RUNNING before provisioning")
        return self._advance(BuildStage.PROVISIONED, self.instance_id)

    def image_captured(self, image_id: str) -> ImageBuild:
        if not self.has_reached(BuildStage.INSTANCE_RUNNING):
            raise ValueError("Image capture requires a RUNNING instance")
        return self._advance(BuildStage.IMAGE_CAPTURED, image_id, image_id=image_id)

    def image_available(self) -> ImageBuild:
        if self.image_id is None:
            raise ValueError("No image has been captured")
        return self._advance(BuildStage.IMAGE_AVAILABLE, self.image_id)

    def instance_terminated(self) -> ImageBuild:
        if self.instance_id is None:
            raise ValueError("No instance has been launched")
        return self._advance(
            BuildStage.INSTANCE_TERMINATED, self.instance_id, terminated=True
        )

    def boot_volume_detached(self) -> ImageBuild:
        if self.attachment_id is None:
            raise ValueError("No boot volume clone is attached")
        return self._advance(
            BuildStage.BOOT_VOLUME_DETACHED, self.attachment_id, detached=True
        )

    def boot_volume_deleted(self) -> ImageBuild:
        if self.boot_volume_id is None:
            raise ValueError("No boot volume clone exists")
        if self.attachment_id is not None and not self.detached:
            raise ValueError("Boot volume clone must be detached before it is deleted")
        return self._advance(
            BuildStage.BOOT_VOLUME_DELETED, self.boot_volume_id, volume_deleted=True
        )

    def complete(self) -> ImageBuild:
        if self.image_id is None or not self.has_reached(BuildStage.IMAGE_AVAILABLE):
            raise ValueError("Build cannot complete without an available image")
        if not self.terminated:
            raise ValueError("Build cannot complete while its instance is alive")
        if self.boot_volume_id is not None and not self.volume_deleted:
            raise ValueError("Build cannot complete while its boot volume clone exists")
        build = self._advance(BuildStage.DONE, self.image_id)
        return replace(
            build,
            domain_events=build.domain_events
            + (ImageBuildCompletedEvent(aggregate_id=self.build_id, image_id=self.image_id),),
        )

    def fail(self, step: str, message: str) -> ImageBuild:
        return replace(
            self,
            stage=BuildStage.FAILED,
            stages=self.stages + (BuildStage.FAILED,),
            failed_step=step,
            error_message=message,
            domain_events=self.domain_events
            + (
                ImageBuildFailedEvent(
                    aggregate_id=self.build_id, step=step, error_message=message
                ),
            ),
        )

    def resource_leaked(self, resource_kind: str, resource_id: str, message: str) -> ImageBuild:
        return replace(
            self,
            domain_events=self.domain_events
            + (
                ResourceLeakedEvent(
                    aggregate_id=self.build_id,
                    resource_kind=resource_kind,
                    resource_id=resource_id,
                    error_message=message,
                ),
            ),
        )
