"""
Image Build Driver Port

Architectural Intent:
- The interface the surrounding image pipeline consumes
- Each operation takes primitive identifiers and returns an identifier, a
  value, or nothing; failures are raised
- Waits block (asynchronously) until the remote side settles; the caller
  runs independent waits on separate tasks if it wants them concurrent
"""

from typing import Collection, Optional, Protocol, runtime_checkable

from surrogate.domain.entities.resources import Image
from surrogate.domain.value_objects.lifecycle_state import (
    BootVolumeState,
    InstanceState,
    VolumeAttachmentState,
)


@runtime_checkable
class ImageBuildDriverPort(Protocol):
    async def create_instance(
        self, public_key: str, boot_volume_id: Optional[str] = None
    ) -> str: ...

    async def create_boot_clone(self, instance_id: str) -> str: ...

    async def attach_boot_clone(self, instance_id: str, volume_id: str) -> str: ...

    async def detach_boot_clone(self, attachment_id: str) -> str: ...

    async def create_image(self, instance_id: str) -> Image: ...

    async def delete_image(self, image_id: str) -> None: ...

    async def get_instance_ip(self, instance_id: str) -> str: ...

    async def get_instance_initial_credentials(self, instance_id: str) -> tuple[str, str]: ...

    async def terminate_instance(self, instance_id: str) -> None: ...

    async def delete_boot_volume(self, volume_id: str) -> None: ...

    async def wait_for_image_creation(self, image_id: str) -> None: ...

    async def wait_for_instance_state(
        self,
        instance_id: str,
        waiting_states: Collection[InstanceState],
        terminal_state: InstanceState,
    ) -> None: ...

    async def wait_for_boot_volume_state(
        self,
        volume_id: str,
        waiting_states: Collection[BootVolumeState],
        terminal_state: BootVolumeState,
    ) -> None: ...

    async def wait_for_volume_attachment_state(
        self,
        attachment_id: str,
        waiting_states: Collection[VolumeAttachmentState],
        terminal_state: VolumeAttachmentState,
    ) -> None: ...

    async def get_volume_attachment_state(
        self, attachment_id: str
    ) -> VolumeAttachmentState: ...
