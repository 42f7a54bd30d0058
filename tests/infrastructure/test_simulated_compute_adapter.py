"""Tests for the in-memory simulated compute service."""

import pytest

from surrogate.domain.ports.compute_service_port import (
    ComputeServicePort,
    CreateImageRequest,
    LaunchInstanceRequest,
)
from surrogate.domain.value_objects.launch_source import LaunchFromBootVolume, LaunchFromImage
from surrogate.domain.value_objects.lifecycle_state import (
    BootVolumeState,
    ImageState,
    InstanceState,
    VolumeAttachmentState,
)
from surrogate.infrastructure.adapters.simulated_compute_adapter import (
    SimulatedComputeAdapter,
    SimulatedServiceError,
)


def launch_request(placement, source=None):
    return LaunchInstanceRequest(
        placement=placement,
        shape="VM.Standard.E4.Flex",
        subnet_id="subnet-1",
        source=source or LaunchFromImage("img-1"),
        metadata={"ssh_authorized_keys": "ssh-rsa KEY"},
    )


class TestSimulatedComputeAdapter:
    def test_satisfies_port(self, simulated):
        assert isinstance(simulated, ComputeServicePort)

    def test_rejects_zero_polls(self):
        with pytest.raises(ValueError):
            SimulatedComputeAdapter(polls_per_transition=0)

    @pytest.mark.asyncio
    async def test_instance_lifecycle(self, simulated, placement):
        instance = await simulated.launch_instance(launch_request(placement))
        assert instance.id == "i-1"
        assert instance.lifecycle_state == InstanceState.PROVISIONING

        states = [(await simulated.get_instance("i-1")).lifecycle_state for _ in range(3)]
        assert states == [
            InstanceState.PROVISIONING,
            InstanceState.RUNNING,
            InstanceState.RUNNING,
        ]

        await simulated.terminate_instance("i-1")
        states = [(await simulated.get_instance("i-1")).lifecycle_state for _ in range(2)]
        assert states == [InstanceState.TERMINATING, InstanceState.TERMINATED]

    @pytest.mark.asyncio
    async def test_polls_per_transition(self, placement):
        adapter = SimulatedComputeAdapter(polls_per_transition=3)
        adapter.add_image("base")
        await adapter.launch_instance(launch_request(placement))

        states = [(await adapter.get_instance("i-1")).lifecycle_state for _ in range(4)]
        assert states == [InstanceState.PROVISIONING] * 3 + [InstanceState.RUNNING]

    @pytest.mark.asyncio
    async def test_launch_from_unknown_image(self, simulated, placement):
        with pytest.raises(SimulatedServiceError) as exc_info:
            await simulated.launch_instance(launch_request(placement, LaunchFromImage("img-9")))
        assert exc_info.value.status == 404

    @pytest.mark.asyncio
    async def test_list_images_by_name(self, simulated, placement):
        images = await simulated.list_images(placement.compartment_id, "Oracle-Linux-9")
        assert [i.id for i in images] == ["img-1"]
        assert await simulated.list_images(placement.compartment_id, "other") == []

    @pytest.mark.asyncio
    async def test_image_capture_and_delete(self, simulated, placement):
        await simulated.launch_instance(launch_request(placement))
        image = await simulated.create_image(
            CreateImageRequest(placement.compartment_id, "i-1", "custom", {"team": "infra"})
        )
        assert image.id == "img-2"
        assert image.lifecycle_state == ImageState.PROVISIONING
        assert (await simulated.get_image("img-2")).lifecycle_state == ImageState.PROVISIONING
        assert (await simulated.get_image("img-2")).lifecycle_state == ImageState.AVAILABLE

        await simulated.delete_image("img-2")
        assert (await simulated.get_image("img-2")).lifecycle_state == ImageState.DELETED
        assert "img-2" not in simulated.live_resources()["images"]

    @pytest.mark.asyncio
    async def test_boot_volume_clone_attach_detach(self, simulated, placement):
        await simulated.launch_instance(launch_request(placement))
        attachments = await simulated.list_boot_volume_attachments(placement, "i-1")
        assert len(attachments) == 1
        source_id = attachments[0].boot_volume_id

        clone = await simulated.create_boot_volume(placement, source_id, 80)
        assert clone.source_boot_volume_id == source_id
        assert clone.size_in_gbs == 80
        assert (await simulated.get_boot_volume(clone.id)).lifecycle_state == BootVolumeState.PROVISIONING
        assert (await simulated.get_boot_volume(clone.id)).lifecycle_state == BootVolumeState.AVAILABLE

        attachment = await simulated.attach_volume("i-1", clone.id)
        assert attachment.lifecycle_state == VolumeAttachmentState.ATTACHING
        await simulated.get_volume_attachment(attachment.id)
        assert (
            await simulated.get_volume_attachment(attachment.id)
        ).lifecycle_state == VolumeAttachmentState.ATTACHED

        await simulated.detach_volume(attachment.id)
        await simulated.get_volume_attachment(attachment.id)
        assert (
            await simulated.get_volume_attachment(attachment.id)
        ).lifecycle_state == VolumeAttachmentState.DETACHED

        await simulated.delete_boot_volume(clone.id)
        await simulated.get_boot_volume(clone.id)
        assert (await simulated.get_boot_volume(clone.id)).lifecycle_state == BootVolumeState.TERMINATED

    @pytest.mark.asyncio
    async def test_launch_from_boot_volume(self, simulated, placement):
        await simulated.launch_instance(launch_request(placement))
        source_id = (await simulated.list_boot_volume_attachments(placement, "i-1"))[0].boot_volume_id
        clone = await simulated.create_boot_volume(placement, source_id)

        instance = await simulated.launch_instance(
            launch_request(placement, LaunchFromBootVolume(clone.id))
        )

        assert instance.image_id is None
        attachments = await simulated.list_boot_volume_attachments(placement, instance.id)
        assert attachments[0].boot_volume_id == clone.id
        assert simulated.called("list_images") == []

    @pytest.mark.asyncio
    async def test_addresses(self, placement):
        adapter = SimulatedComputeAdapter(assign_public_ip=False)
        adapter.add_image("base", image_id="img-1")
        await adapter.launch_instance(launch_request(placement))

        attachments = await adapter.list_vnic_attachments(placement.compartment_id, "i-1")
        vnic = await adapter.get_vnic(attachments[0].vnic_id)
        assert vnic.private_ip
        assert vnic.public_ip is None

    @pytest.mark.asyncio
    async def test_injected_failure(self, simulated, placement):
        error = SimulatedServiceError(500, "InternalError", "capture failed")
        simulated.fail("create_image", error)
        await simulated.launch_instance(launch_request(placement))

        with pytest.raises(SimulatedServiceError) as exc_info:
            await simulated.create_image(CreateImageRequest(placement.compartment_id, "i-1", "x"))
        assert exc_info.value is error

        simulated.clear_failures()
        image = await simulated.create_image(CreateImageRequest(placement.compartment_id, "i-1", "x"))
        assert image.id == "img-2"

    @pytest.mark.asyncio
    async def test_records_calls(self, simulated, placement):
        await simulated.launch_instance(launch_request(placement))
        await simulated.terminate_instance("i-1")
        assert simulated.called("terminate_instance") == [("terminate_instance", "i-1")]

    @pytest.mark.asyncio
    async def test_initial_credentials(self, simulated, placement):
        await simulated.launch_instance(launch_request(placement))
        credentials = await simulated.get_instance_initial_credentials("i-1")
        assert credentials.username == "opc"
        assert credentials.password
