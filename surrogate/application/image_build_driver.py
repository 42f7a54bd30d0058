"""
Image Build Driver

Architectural Intent:
- Implements ImageBuildDriverPort, the surface the surrounding pipeline
  drives, on top of the instance, boot volume and image managers
- Keeps the pipeline-facing signatures primitive (ids and strings) while the
  managers work with value objects
- Image naming/tagging and the private-vs-public address preference are
  fixed per build and passed in explicitly
"""

from __future__ import annotations
from typing import Any, Collection, Mapping, Optional

from surrogate.application.managers.boot_volume_manager import BootVolumeManager
from surrogate.application.managers.image_manager import ImageManager
from surrogate.application.managers.instance_manager import InstanceManager
from surrogate.domain.entities.resources import Image
from surrogate.domain.value_objects.launch_source import LaunchFromBootVolume
from surrogate.domain.value_objects.lifecycle_state import (
    BootVolumeState,
    InstanceState,
    VolumeAttachmentState,
)


class ImageBuildDriver:
    def __init__(
        self,
        instances: InstanceManager,
        volumes: BootVolumeManager,
        images: ImageManager,
        *,
        image_display_name: str,
        freeform_tags: Optional[Mapping[str, str]] = None,
        defined_tags: Optional[Mapping[str, Mapping[str, Any]]] = None,
        use_private_ip: bool = False,
    ) -> None:
        self.instances = instances
        self.volumes = volumes
        self.images = images
        self.image_display_name = image_display_name
        self.freeform_tags = dict(freeform_tags or {})
        self.defined_tags = {k: dict(v) for k, v in (defined_tags or {}).items()}
        self.use_private_ip = use_private_ip

    async def create_instance(
        self, public_key: str, boot_volume_id: Optional[str] = None
    ) -> str:
        """
        Launch the build instance.

        With a boot_volume_id the instance boots from that volume and the
        base image is never looked up.
        """
        source = LaunchFromBootVolume(boot_volume_id) if boot_volume_id else None
        return await self.instances.launch(public_key, source)

    async def create_boot_clone(self, instance_id: str) -> str:
        return await self.volumes.clone_from_instance(instance_id)

    async def attach_boot_clone(self, instance_id: str, volume_id: str) -> str:
        return await self.volumes.attach(instance_id, volume_id)

    async def detach_boot_clone(self, attachment_id: str) -> str:
        return await self.volumes.detach(attachment_id)

    async def create_image(self, instance_id: str) -> Image:
        return await self.images.capture(
            instance_id,
            self.image_display_name,
            self.freeform_tags,
            self.defined_tags,
        )

    async def delete_image(self, image_id: str) -> None:
        await self.images.delete(image_id)

    async def get_instance_ip(self, instance_id: str) -> str:
        return await self.instances.get_ip(instance_id, self.use_private_ip)

    async def get_instance_initial_credentials(self, instance_id: str) -> tuple[str, str]:
        return await self.instances.get_initial_credentials(instance_id)

    async def terminate_instance(self, instance_id: str) -> None:
        await self.instances.terminate(instance_id)

    async def delete_boot_volume(self, volume_id: str) -> None:
        await self.volumes.delete(volume_id)

    async def wait_for_image_creation(self, image_id: str) -> None:
        await self.images.wait_until_available(image_id)

    async def wait_for_instance_state(
        self,
        instance_id: str,
        waiting_states: Collection[InstanceState],
        terminal_state: InstanceState,
    ) -> None:
        await self.instances.wait_for_state(instance_id, waiting_states, terminal_state)

    async def wait_for_boot_volume_state(
        self,
        volume_id: str,
        waiting_states: Collection[BootVolumeState],
        terminal_state: BootVolumeState,
    ) -> None:
        await self.volumes.wait_for_state(volume_id, waiting_states, terminal_state)

    async def wait_for_volume_attachment_state(
        self,
        attachment_id: str,
        waiting_states: Collection[VolumeAttachmentState],
        terminal_state: VolumeAttachmentState,
    ) -> None:
        await self.volumes.wait_for_attachment_state(
            attachment_id, waiting_states, terminal_state
        )

    async def get_volume_attachment_state(self, attachment_id: str) -> VolumeAttachmentState:
        return await self.volumes.get_attachment_state(attachment_id)
