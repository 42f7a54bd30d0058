"""
Compute Service Port

Architectural Intent:
- Port interface for the cloud provider's compute, block storage and
  virtual network APIs, narrowed to what an image build consumes
- Implemented by the OCI SDK adapter and by the in-memory simulated adapter

Design Decisions:
- Uses Protocol for structural typing (no inheritance needed)
- Every method is a coroutine; the awaiting task is the cancellation and
  deadline context
- Methods return domain descriptors or raise; transport, auth and
  retry-on-transient-error belong to the implementation, and its errors
  reach callers unchanged
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, runtime_checkable

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
from surrogate.domain.value_objects.launch_source import LaunchSource
from surrogate.domain.value_objects.placement import Placement


@dataclass(frozen=True)
class LaunchInstanceRequest:
    """Everything a launch call needs, resolved by the instance manager."""
    placement: Placement
    shape: str
    subnet_id: str
    source: LaunchSource
    metadata: dict[str, str] = field(default_factory=dict)
    display_name: Optional[str] = None


@dataclass(frozen=True)
class CreateImageRequest:
    compartment_id: str
    instance_id: str
    display_name: str
    freeform_tags: dict[str, str] = field(default_factory=dict)
    defined_tags: dict[str, dict[str, Any]] = field(default_factory=dict)


@runtime_checkable
class ComputeServicePort(Protocol):
    """Port for the remote compute service an image build drives."""

    async def launch_instance(self, request: LaunchInstanceRequest) -> Instance:
        ...

    async def terminate_instance(self, instance_id: str) -> None:
        ...

    async def get_instance(self, instance_id: str) -> Instance:
        ...

    async def list_images(self, compartment_id: str, display_name: str) -> list[Image]:
        """Images in the compartment whose display name matches exactly."""
        ...

    async def get_image(self, image_id: str) -> Image:
        ...

    async def create_image(self, request: CreateImageRequest) -> Image:
        ...

    async def delete_image(self, image_id: str) -> None:
        ...

    async def create_boot_volume(
        self,
        placement: Placement,
        source_boot_volume_id: str,
        size_in_gbs: Optional[int] = None,
    ) -> BootVolume:
        """Create a boot volume cloned from an existing boot volume."""
        ...

    async def get_boot_volume(self, boot_volume_id: str) -> BootVolume:
        ...

    async def delete_boot_volume(self, boot_volume_id: str) -> None:
        ...

    async def attach_volume(self, instance_id: str, volume_id: str) -> VolumeAttachment:
        """Attach a volume to an instance as a paravirtualized volume."""
        ...

    async def detach_volume(self, attachment_id: str) -> None:
        ...

    async def get_volume_attachment(self, attachment_id: str) -> VolumeAttachment:
        ...

    async def list_boot_volume_attachments(
        self, placement: Placement, instance_id: str
    ) -> list[BootVolumeAttachment]:
        ...

    async def list_vnic_attachments(
        self, compartment_id: str, instance_id: str
    ) -> list[VnicAttachment]:
        ...

    async def get_vnic(self, vnic_id: str) -> Vnic:
        ...

    async def get_instance_initial_credentials(self, instance_id: str) -> InstanceCredentials:
        """Provider-generated initial credentials (password based images)."""
        ...
