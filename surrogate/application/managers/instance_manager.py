"""
Instance Lifecycle Manager

Architectural Intent:
- Drives instance creation, address and credential lookup, and termination
  against the ComputeServicePort
- Launch source selection is explicit: a LaunchFromBootVolume never touches
  the image catalogue; otherwise the configured BaseImage is resolved
- All placement and launch settings arrive through the constructor so every
  dependency is visible where the manager is built

Design Decisions:
- terminate() only issues the call; waiting is a separate wait_for_state()
  so callers decide when (and whether) to block on it
- Errors from the compute service propagate unchanged
"""

from __future__ import annotations
import logging
from typing import Collection, Mapping, Optional

from surrogate.domain.errors import MissingAddressError, PreconditionError
from surrogate.domain.ports.compute_service_port import (
    ComputeServicePort,
    LaunchInstanceRequest,
)
from surrogate.domain.services.state_poller import wait_with_policy
from surrogate.domain.value_objects.launch_source import (
    BaseImage,
    LaunchFromImage,
    LaunchSource,
)
from surrogate.domain.value_objects.lifecycle_state import InstanceState
from surrogate.domain.value_objects.placement import Placement
from surrogate.domain.value_objects.wait_policy import WaitPolicy

logger = logging.getLogger(__name__)

AUTHORIZED_KEYS_METADATA_KEY = "ssh_authorized_keys"
USER_DATA_METADATA_KEY = "user_data"


class InstanceManager:
    def __init__(
        self,
        compute: ComputeServicePort,
        placement: Placement,
        *,
        shape: str,
        subnet_id: str,
        base_image: BaseImage,
        boot_volume_size_in_gbs: Optional[int] = None,
        display_name: Optional[str] = None,
        metadata: Optional[Mapping[str, str]] = None,
        user_data: Optional[str] = None,
        wait_policy: WaitPolicy = WaitPolicy(),
    ) -> None:
        self.compute = compute
        self.placement = placement
        self.shape = shape
        self.subnet_id = subnet_id
        self.base_image = base_image
        self.boot_volume_size_in_gbs = boot_volume_size_in_gbs
        self.display_name = display_name
        self.metadata = dict(metadata or {})
        self.user_data = user_data
        self.wait_policy = wait_policy

    def build_metadata(self, public_key: str) -> dict[str, str]:
        """Authorized key first, user metadata merged over it, user data last."""
        metadata = {AUTHORIZED_KEYS_METADATA_KEY: public_key}
        metadata.update(self.metadata)
        if self.user_data:
            metadata[USER_DATA_METADATA_KEY] = self.user_data
        return metadata

    async def resolve_base_image(self) -> LaunchFromImage:
        image_id = self.base_image.image_id
        if self.base_image.needs_lookup:
            display_name = self.base_image.display_name
            logger.info(
                "Looking up base image %r in compartment %s",
                display_name,
                self.placement.compartment_id,
            )
            images = await self.compute.list_images(
                self.placement.compartment_id, display_name
            )
            if not images:
                raise PreconditionError(
                    "image",
                    f"display name {display_name!r} in compartment "
                    f"{self.placement.compartment_id}",
                )
            if len(images) > 1:
                logger.warning(
                    "%d images named %r, using the first (%s)",
                    len(images),
                    display_name,
                    images[0].id,
                )
            image_id = images[0].id
        return LaunchFromImage(
            image_id=image_id, boot_volume_size_in_gbs=self.boot_volume_size_in_gbs
        )

    async def launch(self, public_key: str, source: Optional[LaunchSource] = None) -> str:
        """Launch an instance and return its id without waiting for it to run."""
        if source is None:
            source = await self.resolve_base_image()

        request = LaunchInstanceRequest(
            placement=self.placement,
            shape=self.shape,
            subnet_id=self.subnet_id,
            source=source,
            metadata=self.build_metadata(public_key),
            display_name=self.display_name or None,
        )
        logger.info(
            "Launching %s instance in %s from %s", self.shape, self.placement, source
        )
        instance = await self.compute.launch_instance(request)
        logger.info("Launched instance %s (%s)", instance.id, instance.lifecycle_state)
        return instance.id

    async def get_ip(self, instance_id: str, prefer_private: bool) -> str:
        attachments = await self.compute.list_vnic_attachments(
            self.placement.compartment_id, instance_id
        )
        if not attachments:
            raise PreconditionError("VNIC", f"instance {instance_id} has zero VNICs")
        if len(attachments) > 1:
            logger.warning(
                "Instance %s has %d VNICs, using the first", instance_id, len(attachments)
            )

        vnic = await self.compute.get_vnic(attachments[0].vnic_id)
        if prefer_private:
            if not vnic.private_ip:
                raise PreconditionError(
                    "private IP address", f"VNIC {vnic.id} of instance {instance_id}"
                )
            return vnic.private_ip
        if not vnic.public_ip:
            raise MissingAddressError(instance_id)
        return vnic.public_ip

    async def get_initial_credentials(self, instance_id: str) -> tuple[str, str]:
        credentials = await self.compute.get_instance_initial_credentials(instance_id)
        logger.info("Fetched initial credentials for instance %s", instance_id)
        return credentials.username, credentials.password

    async def terminate(self, instance_id: str) -> None:
        logger.info("Terminating instance %s", instance_id)
        await self.compute.terminate_instance(instance_id)

    async def get_state(self, instance_id: str) -> InstanceState:
        instance = await self.compute.get_instance(instance_id)
        return instance.lifecycle_state

    async def wait_for_state(
        self,
        instance_id: str,
        waiting_states: Collection[InstanceState],
        terminal_state: InstanceState,
    ) -> None:
        await wait_with_policy(
            self.get_state, instance_id, waiting_states, terminal_state, self.wait_policy
        )
