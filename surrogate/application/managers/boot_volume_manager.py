"""
Boot Volume Manager

Architectural Intent:
- Clones an instance's current boot volume and attaches/detaches the clone
- Attach returns the attachment id, because detach and attachment waits
  key on the attachment rather than on the volume
- A missing boot volume attachment is a precondition failure, not a
  condition to wait out
"""

from __future__ import annotations
import logging
from typing import Collection, Optional

from surrogate.domain.errors import PreconditionError
from surrogate.domain.ports.compute_service_port import ComputeServicePort
from surrogate.domain.services.state_poller import wait_with_policy
from surrogate.domain.value_objects.lifecycle_state import (
    BootVolumeState,
    VolumeAttachmentState,
)
from surrogate.domain.value_objects.placement import Placement
from surrogate.domain.value_objects.wait_policy import WaitPolicy

logger = logging.getLogger(__name__)


class BootVolumeManager:
    def __init__(
        self,
        compute: ComputeServicePort,
        placement: Placement,
        *,
        size_in_gbs: Optional[int] = None,
        wait_policy: WaitPolicy = WaitPolicy(),
    ) -> None:
        self.compute = compute
        self.placement = placement
        self.size_in_gbs = size_in_gbs
        self.wait_policy = wait_policy

    async def clone_from_instance(self, instance_id: str) -> str:
        attachments = await self.compute.list_boot_volume_attachments(
            self.placement, instance_id
        )
        logger.debug("Boot volume attachments of %s: %s", instance_id, attachments)
        if not attachments:
            raise PreconditionError(
                "boot volume attachment", f"instance {instance_id} in {self.placement}"
            )

        source_id = attachments[0].boot_volume_id
        logger.info("Cloning boot volume %s of instance %s", source_id, instance_id)
        clone = await self.compute.create_boot_volume(
            self.placement, source_id, self.size_in_gbs
        )
        logger.info("Created boot volume clone %s", clone.id)
        return clone.id

    async def attach(self, instance_id: str, volume_id: str) -> str:
        logger.info("Attaching volume %s to instance %s", volume_id, instance_id)
        attachment = await self.compute.attach_volume(instance_id, volume_id)
        return attachment.id

    async def detach(self, attachment_id: str) -> str:
        logger.info("Detaching volume attachment %s", attachment_id)
        await self.compute.detach_volume(attachment_id)
        return attachment_id

    async def delete(self, volume_id: str) -> None:
        logger.info("Deleting boot volume %s", volume_id)
        await self.compute.delete_boot_volume(volume_id)

    async def get_state(self, volume_id: str) -> BootVolumeState:
        volume = await self.compute.get_boot_volume(volume_id)
        return volume.lifecycle_state

    async def get_attachment_state(self, attachment_id: str) -> VolumeAttachmentState:
        attachment = await self.compute.get_volume_attachment(attachment_id)
        return attachment.lifecycle_state

    async def wait_for_state(
        self,
        volume_id: str,
        waiting_states: Collection[BootVolumeState],
        terminal_state: BootVolumeState,
    ) -> None:
        await wait_with_policy(
            self.get_state, volume_id, waiting_states, terminal_state, self.wait_policy
        )

    async def wait_for_attachment_state(
        self,
        attachment_id: str,
        waiting_states: Collection[VolumeAttachmentState],
        terminal_state: VolumeAttachmentState,
    ) -> None:
        await wait_with_policy(
            self.get_attachment_state,
            attachment_id,
            waiting_states,
            terminal_state,
            self.wait_policy,
        )
