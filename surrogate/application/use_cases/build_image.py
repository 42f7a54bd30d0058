"""
Build Image Use Case

Architectural Intent:
- Orchestrates one custom image build: launch, optional boot volume
  clone-and-attach, provisioning hook, capture, teardown
- Steps run through the sequential Workflow runner; the ImageBuild aggregate
  records every stage and every resource created
- On any step failure the resources created so far are removed in reverse
  (image, clone attachment, clone volume, instance) on a best-effort basis
  and the step's original exception is re-raised to the caller

Design Decisions:
- Cleanup failures are logged and recorded as ResourceLeakedEvent; they are
  never raised, so the caller always sees the error that broke the build
- Cancellation (an operator abort or an asyncio.timeout deadline) fails the
  build at the step being awaited and runs the same cleanup, shielded so the
  teardown calls are not cancelled along with the build; the CancelledError
  then propagates
- A clone attachment is only detached while it still reports attached;
  terminating the instance already detaches it on the platform
- With capture_from_terminating_instance the instance is terminated right
  after the capture request, before the image becomes AVAILABLE; otherwise
  termination strictly follows the image becoming AVAILABLE
"""

from __future__ import annotations
import asyncio
import logging
import uuid
from typing import Any, Awaitable, Callable, Optional

from surrogate.application.dtos.build_dtos import BuildImageRequest, BuildImageResponse
from surrogate.application.orchestration.workflow import Workflow, WorkflowStep
from surrogate.domain.entities.image_build import ImageBuild
from surrogate.domain.errors import WorkflowStepError
from surrogate.domain.ports.event_bus_port import EventBusPort
from surrogate.domain.ports.image_build_driver_port import ImageBuildDriverPort
from surrogate.domain.value_objects.lifecycle_state import (
    BootVolumeState,
    InstanceState,
    VolumeAttachmentState,
)

logger = logging.getLogger(__name__)

ProvisionHook = Callable[[str, str], Awaitable[None]]

INSTANCE_STARTING_STATES = (InstanceState.PROVISIONING, InstanceState.STARTING)
INSTANCE_STOPPING_STATES = (
    InstanceState.RUNNING,
    InstanceState.CREATING_IMAGE,
    InstanceState.STOPPING,
    InstanceState.STOPPED,
    InstanceState.TERMINATING,
)
CLONE_PENDING_STATES = (BootVolumeState.PROVISIONING, BootVolumeState.RESTORING)
CLONE_DELETING_STATES = (BootVolumeState.AVAILABLE, BootVolumeState.TERMINATING)
ATTACHING_STATES = (VolumeAttachmentState.ATTACHING,)
DETACHING_STATES = (VolumeAttachmentState.ATTACHED, VolumeAttachmentState.DETACHING)


class BuildImage:
    def __init__(
        self,
        driver: ImageBuildDriverPort,
        event_bus: Optional[EventBusPort] = None,
        *,
        clone_boot_volume: bool = False,
        capture_from_terminating_instance: bool = False,
    ) -> None:
        self.driver = driver
        self.event_bus = event_bus
        self.clone_boot_volume = clone_boot_volume
        self.capture_from_terminating_instance = capture_from_terminating_instance

    def _steps(
        self, request: BuildImageRequest, provision: Optional[ProvisionHook]
    ) -> list[WorkflowStep]:
        driver = self.driver

        async def launch(ctx: dict[str, Any], results: dict[str, Any]) -> str:
            instance_id = await driver.create_instance(request.public_key)
            ctx["build"] = ctx["build"].instance_launched(instance_id)
            return instance_id

        async def wait_running(ctx: dict[str, Any], results: dict[str, Any]) -> None:
            instance_id = results["launch"]
            await driver.wait_for_instance_state(
                instance_id, INSTANCE_STARTING_STATES, InstanceState.RUNNING
            )
            ctx["build"] = ctx["build"].instance_running()

        async def clone(ctx: dict[str, Any], results: dict[str, Any]) -> str:
            volume_id = await driver.create_boot_clone(results["launch"])
            ctx["build"] = ctx["build"].boot_volume_cloned(volume_id)
            await driver.wait_for_boot_volume_state(
                volume_id, CLONE_PENDING_STATES, BootVolumeState.AVAILABLE
            )
            return volume_id

        async def attach(ctx: dict[str, Any], results: dict[str, Any]) -> str:
            attachment_id = await driver.attach_boot_clone(results["launch"], results["clone"])
            ctx["build"] = ctx["build"].boot_volume_attached(attachment_id)
            await driver.wait_for_volume_attachment_state(
                attachment_id, ATTACHING_STATES, VolumeAttachmentState.ATTACHED
            )
            return attachment_id

        async def run_provisioner(ctx: dict[str, Any], results: dict[str, Any]) -> None:
            instance_id = results["launch"]
            ip = await driver.get_instance_ip(instance_id)
            logger.info("Provisioning instance %s at %s", instance_id, ip)
            await provision(instance_id, ip)
            ctx["build"] = ctx["build"].provisioned()

        async def capture(ctx: dict[str, Any], results: dict[str, Any]):
            image = await driver.create_image(results["launch"])
            ctx["build"] = ctx["build"].image_captured(image.id)
            return image

        async def wait_image(ctx: dict[str, Any], results: dict[str, Any]) -> None:
            await driver.wait_for_image_creation(results["capture"].id)
            ctx["build"] = ctx["build"].image_available()

        async def terminate(ctx: dict[str, Any], results: dict[str, Any]) -> None:
            await driver.terminate_instance(results["launch"])

        async def wait_terminated(ctx: dict[str, Any], results: dict[str, Any]) -> None:
            await driver.wait_for_instance_state(
                results["launch"], INSTANCE_STOPPING_STATES, InstanceState.TERMINATED
            )
            ctx["build"] = ctx["build"].instance_terminated()

        async def detach(ctx: dict[str, Any], results: dict[str, Any]) -> None:
            await self._release_attachment(results["attach"])
            ctx["build"] = ctx["build"].boot_volume_detached()

        async def delete_volume(ctx: dict[str, Any], results: dict[str, Any]) -> None:
            volume_id = results["clone"]
            await driver.delete_boot_volume(volume_id)
            await driver.wait_for_boot_volume_state(
                volume_id, CLONE_DELETING_STATES, BootVolumeState.TERMINATED
            )
            ctx["build"] = ctx["build"].boot_volume_deleted()

        steps = [
            WorkflowStep("launch", launch),
            WorkflowStep("wait_running", wait_running, depends_on=["launch"]),
        ]
        ready_for_capture = "wait_running"
        # Clone only once RUNNING: the source attachment settles and the
        # platform accepts a second attachment only on a running instance.
        if self.clone_boot_volume:
            steps += [
                WorkflowStep("clone", clone, depends_on=["wait_running"]),
                WorkflowStep("attach", attach, depends_on=["wait_running", "clone"]),
            ]
            ready_for_capture = "attach"
        if provision is not None:
            steps.append(
                WorkflowStep("provision", run_provisioner, depends_on=[ready_for_capture])
            )
            ready_for_capture = "provision"

        steps.append(WorkflowStep("capture", capture, depends_on=[ready_for_capture]))
        if self.capture_from_terminating_instance:
            steps += [
                WorkflowStep("terminate", terminate, depends_on=["capture"]),
                WorkflowStep("wait_image", wait_image, depends_on=["terminate"]),
                WorkflowStep("wait_terminated", wait_terminated, depends_on=["wait_image"]),
            ]
        else:
            steps += [
                WorkflowStep("wait_image", wait_image, depends_on=["capture"]),
                WorkflowStep("terminate", terminate, depends_on=["wait_image"]),
                WorkflowStep("wait_terminated", wait_terminated, depends_on=["terminate"]),
            ]

        if self.clone_boot_volume:
            steps += [
                WorkflowStep("detach", detach, depends_on=["attach", "wait_terminated"]),
                WorkflowStep("delete_volume", delete_volume, depends_on=["detach"]),
            ]
        return steps

    async def execute(
        self,
        request: BuildImageRequest,
        provision: Optional[ProvisionHook] = None,
    ) -> BuildImageResponse:
        build_id = request.build_id or uuid.uuid4().hex[:12]
        context: dict[str, Any] = {"build": ImageBuild(build_id)}
        workflow = Workflow(self._steps(request, provision))

        logger.info(
            "Starting image build %s (clone_boot_volume=%s)", build_id, self.clone_boot_volume
        )
        try:
            results = await workflow.run(context)
        except WorkflowStepError as err:
            build = context["build"].fail(err.step, str(err.cause))
            logger.error("Image build %s failed at step %s: %s", build_id, err.step, err.cause)
            build = await self._cleanup(build)
            await self._publish(build)
            raise err.cause from None
        except asyncio.CancelledError:
            step = workflow.current or "launch"
            logger.warning(
                "Image build %s cancelled during step %s, cleaning up", build_id, step
            )
            await asyncio.shield(self._abandon(context["build"].fail(step, "cancelled")))
            raise

        build = context["build"].complete()
        await self._publish(build)
        image = results["capture"]
        logger.info("Image build %s produced image %s", build_id, image.id)
        return BuildImageResponse(
            build_id=build_id,
            image_id=image.id,
            image_name=image.display_name,
            instance_id=build.instance_id,
            freeform_tags=dict(image.freeform_tags),
            stages=tuple(stage.value for stage in build.stages),
        )

    async def _cleanup(self, build: ImageBuild) -> ImageBuild:
        """Best-effort reverse teardown. Never raises."""
        if build.image_id is not None:
            build = await self._attempt(
                build, "image", build.image_id, self.driver.delete_image(build.image_id)
            )

        if build.attachment_id is not None and not build.detached:
            build = await self._attempt(
                build,
                "volume attachment",
                build.attachment_id,
                self._release_attachment(build.attachment_id),
            )

        if build.boot_volume_id is not None and not build.volume_deleted:
            build = await self._attempt(
                build,
                "boot volume",
                build.boot_volume_id,
                self.driver.delete_boot_volume(build.boot_volume_id),
            )

        if build.instance_id is not None and not build.terminated:
            build = await self._attempt(
                build,
                "instance",
                build.instance_id,
                self.driver.terminate_instance(build.instance_id),
            )
        return build

    async def _abandon(self, build: ImageBuild) -> None:
        await self._publish(await self._cleanup(build))

    async def _release_attachment(self, attachment_id: str) -> None:
        state = await self.driver.get_volume_attachment_state(attachment_id)
        if state == VolumeAttachmentState.DETACHED:
            logger.info("Volume attachment %s already detached", attachment_id)
            return
        await self.driver.detach_boot_clone(attachment_id)
        await self.driver.wait_for_volume_attachment_state(
            attachment_id, DETACHING_STATES, VolumeAttachmentState.DETACHED
        )

    async def _attempt(
        self,
        build: ImageBuild,
        resource_kind: str,
        resource_id: str,
        operation: Awaitable[Any],
    ) -> ImageBuild:
        logger.info("Cleaning up %s %s", resource_kind, resource_id)
        try:
            await operation
        except Exception as e:
            logger.warning(
                "Failed to clean up %s %s, remove it manually: %s",
                resource_kind,
                resource_id,
                e,
            )
            return build.resource_leaked(resource_kind, resource_id, str(e))
        return build

    async def _publish(self, build: ImageBuild) -> None:
        if self.event_bus is not None:
            await self.event_bus.publish(list(build.domain_events))
