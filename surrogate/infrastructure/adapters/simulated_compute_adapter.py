"""
Simulated Compute Adapter

Architectural Intent:
- Implements ComputeServicePort entirely in memory, shaped like the compute,
  block storage and virtual network responses of the real provider
- Lets the full build run locally and in tests with zero cloud credentials
- Every resource walks through its lifecycle states as it is polled, the
  way the real service settles asynchronous operations

Design Decisions:
- A resource stays in each intermediate state for ``polls_per_transition``
  reads, then advances; the last state of its path is sticky
- Ids are sequential per resource kind (i-1, img-1, bv-1, ...) so tests can
  name them up front
- fail(operation, error) makes an operation raise until cleared, which is
  how tests inject remote errors
- Every call is appended to ``calls`` as (operation, *ids) for assertions
"""

from __future__ import annotations
import logging
import secrets
from collections import defaultdict
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Sequence

from surrogate.domain.entities.resources import (
    BootVolume,
    BootVolumeAttachment,
    Image,
    Instance,
    InstanceCredentials,
    Vnic,
    VnicAttachment,
    VolumeAttachment,
)
from surrogate.domain.ports.compute_service_port import (
    CreateImageRequest,
    LaunchInstanceRequest,
)
from surrogate.domain.value_objects.launch_source import LaunchFromBootVolume
from surrogate.domain.value_objects.lifecycle_state import (
    BootVolumeState,
    ImageState,
    InstanceState,
    VolumeAttachmentState,
)
from surrogate.domain.value_objects.placement import Placement

logger = logging.getLogger(__name__)


class SimulatedServiceError(Exception):
    """Error raised by the simulated service, modelled on a provider API error."""

    def __init__(self, status: int, code: str, message: str) -> None:
        self.status = status
        self.code = code
        self.message = message
        super().__init__(f"{status} {code}: {message}")


@dataclass
class _Lifecycle:
    """States a simulated resource reports on successive reads."""
    path: list[Any]
    polls_per_transition: int
    position: int = 0
    polls: int = 0

    @property
    def current(self) -> Any:
        return self.path[self.position]

    def observe(self) -> Any:
        state = self.current
        self.polls += 1
        if self.polls >= self.polls_per_transition and self.position < len(self.path) - 1:
            self.position += 1
            self.polls = 0
        return state

    def restart(self, path: Sequence[Any]) -> None:
        self.path = list(path)
        self.position = 0
        self.polls = 0


@dataclass
class _Record:
    descriptor: Any
    lifecycle: _Lifecycle
    extra: dict[str, Any] = field(default_factory=dict)


class SimulatedComputeAdapter:
    def __init__(
        self,
        polls_per_transition: int = 1,
        assign_public_ip: bool = True,
        username: str = "opc",
    ) -> None:
        if polls_per_transition < 1:
            raise ValueError("polls_per_transition must be at least 1")
        self.polls_per_transition = polls_per_transition
        self.assign_public_ip = assign_public_ip
        self.username = username
        self.calls: list[tuple[str, ...]] = []
        self.failures: dict[str, BaseException] = {}
        self._counters: dict[str, int] = defaultdict(int)
        self._instances: dict[str, _Record] = {}
        self._images: dict[str, _Record] = {}
        self._volumes: dict[str, _Record] = {}
        self._attachments: dict[str, _Record] = {}
        self._boot_attachments: dict[str, BootVolumeAttachment] = {}
        self._vnic_attachments: dict[str, VnicAttachment] = {}
        self._vnics: dict[str, Vnic] = {}

    # -- test and local-run helpers -----------------------------------------

    def fail(self, operation: str, error: BaseException) -> None:
        """Make ``operation`` raise ``error`` on every call until cleared."""
        self.failures[operation] = error

    def clear_failures(self) -> None:
        self.failures.clear()

    def add_image(
        self,
        display_name: str,
        compartment_id: str = "",
        state: ImageState = ImageState.AVAILABLE,
        image_id: Optional[str] = None,
    ) -> Image:
        """Seed a pre-existing image, e.g. the base image of a build."""
        image = Image(
            id=image_id or self._next_id("img"),
            lifecycle_state=state,
            display_name=display_name,
        )
        self._images[image.id] = _Record(
            image, self._lifecycle([state]), {"compartment_id": compartment_id}
        )
        return image

    def called(self, operation: str) -> list[tuple[str, ...]]:
        return [call for call in self.calls if call[0] == operation]

    def live_resources(self) -> dict[str, list[str]]:
        """Ids of everything not yet terminated, deleted or detached."""
        return {
            "instances": [
                i for i, r in self._instances.items()
                if r.lifecycle.path[-1] != InstanceState.TERMINATED
            ],
            "images": [
                i for i, r in self._images.items()
                if r.lifecycle.path[-1] != ImageState.DELETED
            ],
            "boot_volumes": [
                i for i, r in self._volumes.items()
                if r.lifecycle.path[-1] != BootVolumeState.TERMINATED
            ],
            "volume_attachments": [
                i for i, r in self._attachments.items()
                if r.lifecycle.path[-1] != VolumeAttachmentState.DETACHED
            ],
        }

    # -- internal helpers ----------------------------------------------------

    def _next_id(self, prefix: str) -> str:
        self._counters[prefix] += 1
        return f"{prefix}-{self._counters[prefix]}"

    def _lifecycle(self, path: Sequence[Any]) -> _Lifecycle:
        return _Lifecycle(list(path), self.polls_per_transition)

    def _call(self, operation: str, *ids: str) -> None:
        self.calls.append((operation, *ids))
        logger.debug("Simulated %s %s", operation, ids)
        error = self.failures.get(operation)
        if error is not None:
            raise error

    @staticmethod
    def _lookup(table: dict[str, Any], resource_id: str, kind: str) -> Any:
        try:
            return table[resource_id]
        except KeyError:
            raise SimulatedServiceError(
                404, "NotAuthorizedOrNotFound", f"{kind} {resource_id} not found"
            ) from None

    def _observe(self, record: _Record) -> Any:
        record.descriptor = replace(record.descriptor, lifecycle_state=record.lifecycle.observe())
        return record.descriptor

    # -- instances -----------------------------------------------------------

    async def launch_instance(self, request: LaunchInstanceRequest) -> Instance:
        self._call("launch_instance")
        placement = request.placement
        source = request.source
        if isinstance(source, LaunchFromBootVolume):
            self._lookup(self._volumes, source.boot_volume_id, "Boot volume")
            boot_volume_id = source.boot_volume_id
            image_id = None
        else:
            self._lookup(self._images, source.image_id, "Image")
            image_id = source.image_id
            volume = BootVolume(
                id=self._next_id("bv"),
                lifecycle_state=BootVolumeState.AVAILABLE,
                size_in_gbs=source.boot_volume_size_in_gbs or 50,
            )
            self._volumes[volume.id] = _Record(
                volume, self._lifecycle([BootVolumeState.AVAILABLE])
            )
            boot_volume_id = volume.id

        instance = Instance(
            id=self._next_id("i"),
            lifecycle_state=InstanceState.PROVISIONING,
            availability_domain=placement.availability_domain,
            shape=request.shape,
            display_name=request.display_name or "",
            image_id=image_id,
        )
        self._instances[instance.id] = _Record(
            instance,
            self._lifecycle([InstanceState.PROVISIONING, InstanceState.RUNNING]),
            {"placement": placement, "metadata": dict(request.metadata)},
        )

        attachment = BootVolumeAttachment(
            id=self._next_id("bva"),
            instance_id=instance.id,
            boot_volume_id=boot_volume_id,
            lifecycle_state=VolumeAttachmentState.ATTACHED,
        )
        self._boot_attachments[attachment.id] = attachment

        index = self._counters["i"]
        vnic = Vnic(
            id=self._next_id("vnic"),
            private_ip=f"10.0.0.{index + 1}",
            public_ip=f"203.0.113.{index + 1}" if self.assign_public_ip else None,
        )
        self._vnics[vnic.id] = vnic
        vnic_attachment = VnicAttachment(
            id=self._next_id("vnica"), instance_id=instance.id, vnic_id=vnic.id
        )
        self._vnic_attachments[vnic_attachment.id] = vnic_attachment

        logger.debug("Simulated instance %s launched from %s", instance.id, source)
        return instance

    async def terminate_instance(self, instance_id: str) -> None:
        self._call("terminate_instance", instance_id)
        record = self._lookup(self._instances, instance_id, "Instance")
        if record.lifecycle.path[-1] != InstanceState.TERMINATED:
            record.lifecycle.restart([InstanceState.TERMINATING, InstanceState.TERMINATED])
            record.descriptor = replace(record.descriptor, lifecycle_state=InstanceState.TERMINATING)
            # Boot volumes go with the instance unless preserved.
            for attachment in self._boot_attachments.values():
                volume = self._volumes.get(attachment.boot_volume_id)
                if attachment.instance_id == instance_id and volume is not None:
                    volume.lifecycle.restart(
                        [BootVolumeState.TERMINATING, BootVolumeState.TERMINATED]
                    )

    async def get_instance(self, instance_id: str) -> Instance:
        self._call("get_instance", instance_id)
        return self._observe(self._lookup(self._instances, instance_id, "Instance"))

    # -- images --------------------------------------------------------------

    async def list_images(self, compartment_id: str, display_name: str) -> list[Image]:
        self._call("list_images", compartment_id, display_name)
        return [
            record.descriptor
            for record in self._images.values()
            if record.descriptor.display_name == display_name
            and record.extra.get("compartment_id", "") in ("", compartment_id)
            and record.lifecycle.path[-1] != ImageState.DELETED
        ]

    async def get_image(self, image_id: str) -> Image:
        self._call("get_image", image_id)
        return self._observe(self._lookup(self._images, image_id, "Image"))

    async def create_image(self, request: CreateImageRequest) -> Image:
        self._call("create_image", request.instance_id)
        self._lookup(self._instances, request.instance_id, "Instance")
        image = Image(
            id=self._next_id("img"),
            lifecycle_state=ImageState.PROVISIONING,
            display_name=request.display_name,
            freeform_tags=dict(request.freeform_tags),
            defined_tags={k: dict(v) for k, v in request.defined_tags.items()},
        )
        self._images[image.id] = _Record(
            image,
            self._lifecycle([ImageState.PROVISIONING, ImageState.AVAILABLE]),
            {"compartment_id": request.compartment_id},
        )
        return image

    async def delete_image(self, image_id: str) -> None:
        self._call("delete_image", image_id)
        record = self._lookup(self._images, image_id, "Image")
        record.lifecycle.restart([ImageState.DELETED])
        record.descriptor = replace(record.descriptor, lifecycle_state=ImageState.DELETED)

    # -- block storage -------------------------------------------------------

    async def create_boot_volume(
        self,
        placement: Placement,
        source_boot_volume_id: str,
        size_in_gbs: Optional[int] = None,
    ) -> BootVolume:
        self._call("create_boot_volume", source_boot_volume_id)
        source = self._lookup(self._volumes, source_boot_volume_id, "Boot volume")
        volume = BootVolume(
            id=self._next_id("bv"),
            lifecycle_state=BootVolumeState.PROVISIONING,
            size_in_gbs=size_in_gbs or source.descriptor.size_in_gbs,
            source_boot_volume_id=source_boot_volume_id,
        )
        self._volumes[volume.id] = _Record(
            volume,
            self._lifecycle([BootVolumeState.PROVISIONING, BootVolumeState.AVAILABLE]),
            {"placement": placement},
        )
        return volume

    async def get_boot_volume(self, boot_volume_id: str) -> BootVolume:
        self._call("get_boot_volume", boot_volume_id)
        return self._observe(self._lookup(self._volumes, boot_volume_id, "Boot volume"))

    async def delete_boot_volume(self, boot_volume_id: str) -> None:
        self._call("delete_boot_volume", boot_volume_id)
        record = self._lookup(self._volumes, boot_volume_id, "Boot volume")
        record.lifecycle.restart([BootVolumeState.TERMINATING, BootVolumeState.TERMINATED])
        record.descriptor = replace(
            record.descriptor, lifecycle_state=BootVolumeState.TERMINATING
        )

    async def attach_volume(self, instance_id: str, volume_id: str) -> VolumeAttachment:
        self._call("attach_volume", instance_id, volume_id)
        self._lookup(self._instances, instance_id, "Instance")
        self._lookup(self._volumes, volume_id, "Boot volume")
        attachment = VolumeAttachment(
            id=self._next_id("va"),
            instance_id=instance_id,
            volume_id=volume_id,
            lifecycle_state=VolumeAttachmentState.ATTACHING,
        )
        self._attachments[attachment.id] = _Record(
            attachment,
            self._lifecycle([VolumeAttachmentState.ATTACHING, VolumeAttachmentState.ATTACHED]),
        )
        return attachment

    async def detach_volume(self, attachment_id: str) -> None:
        self._call("detach_volume", attachment_id)
        record = self._lookup(self._attachments, attachment_id, "Volume attachment")
        record.lifecycle.restart(
            [VolumeAttachmentState.DETACHING, VolumeAttachmentState.DETACHED]
        )
        record.descriptor = replace(
            record.descriptor, lifecycle_state=VolumeAttachmentState.DETACHING
        )

    async def get_volume_attachment(self, attachment_id: str) -> VolumeAttachment:
        self._call("get_volume_attachment", attachment_id)
        return self._observe(
            self._lookup(self._attachments, attachment_id, "Volume attachment")
        )

    async def list_boot_volume_attachments(
        self, placement: Placement, instance_id: str
    ) -> list[BootVolumeAttachment]:
        self._call("list_boot_volume_attachments", instance_id)
        return [a for a in self._boot_attachments.values() if a.instance_id == instance_id]

    # -- virtual network -----------------------------------------------------

    async def list_vnic_attachments(
        self, compartment_id: str, instance_id: str
    ) -> list[VnicAttachment]:
        self._call("list_vnic_attachments", instance_id)
        return [a for a in self._vnic_attachments.values() if a.instance_id == instance_id]

    async def get_vnic(self, vnic_id: str) -> Vnic:
        self._call("get_vnic", vnic_id)
        return self._lookup(self._vnics, vnic_id, "VNIC")

    async def get_instance_initial_credentials(self, instance_id: str) -> InstanceCredentials:
        self._call("get_instance_initial_credentials", instance_id)
        self._lookup(self._instances, instance_id, "Instance")
        return InstanceCredentials(self.username, secrets.token_urlsafe(12))
