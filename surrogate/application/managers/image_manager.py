import logging
from typing import Any, Mapping, Optional

from surrogate.domain.entities.resources import Image
from surrogate.domain.ports.compute_service_port import (
    ComputeServicePort,
    CreateImageRequest,
)
from surrogate.domain.services.state_poller import wait_with_policy
from surrogate.domain.value_objects.lifecycle_state import ImageState
from surrogate.domain.value_objects.wait_policy import WaitPolicy

logger = logging.getLogger(__name__)


class ImageManager:
    """Captures custom images from instances and deletes them on rollback."""

    WAITING_STATES = (ImageState.PROVISIONING,)

    def __init__(
        self,
        compute: ComputeServicePort,
        compartment_id: str,
        wait_policy: WaitPolicy = WaitPolicy(),
    ) -> None:
        self.compute = compute
        self.compartment_id = compartment_id
        self.wait_policy = wait_policy

    async def capture(
        self,
        instance_id: str,
        display_name: str,
        freeform_tags: Optional[Mapping[str, str]] = None,
        defined_tags: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ) -> Image:
        request = CreateImageRequest(
            compartment_id=self.compartment_id,
            instance_id=instance_id,
            display_name=display_name,
            freeform_tags=dict(freeform_tags or {}),
            defined_tags={k: dict(v) for k, v in (defined_tags or {}).items()},
        )
        logger.info("Creating image %r from instance %s", display_name, instance_id)
        image = await self.compute.create_image(request)
        logger.info("Created image %s (%s)", image.id, image.lifecycle_state)
        return image

    async def delete(self, image_id: str) -> None:
        logger.info("Deleting image %s", image_id)
        await self.compute.delete_image(image_id)

    async def get_state(self, image_id: str) -> ImageState:
        image = await self.compute.get_image(image_id)
        return image.lifecycle_state

    async def wait_until_available(self, image_id: str) -> None:
        await wait_with_policy(
            self.get_state,
            image_id,
            self.WAITING_STATES,
            ImageState.AVAILABLE,
            self.wait_policy,
        )
