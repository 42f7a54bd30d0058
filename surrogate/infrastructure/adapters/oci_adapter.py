"""
OCI Compute Adapter

Architectural Intent:
- Implements ComputeServicePort with the Oracle Cloud Infrastructure Python
  SDK: ComputeClient, BlockstorageClient and VirtualNetworkClient
- Translates SDK models into the domain descriptors so nothing above this
  module ever sees an oci type

Design Decisions:
- The SDK is blocking; every call runs on a worker thread via
  asyncio.to_thread so a cancelled build stops waiting immediately
- List calls go through oci.pagination.list_call_get_all_results
- SDK errors (oci.exceptions.ServiceError and friends) propagate unchanged;
  retries on transient errors are left to the SDK's retry strategy
- A lifecycle state the domain enums do not know is passed through as the
  raw string, so the state poller reports it as unexpected
"""

from __future__ import annotations
import asyncio
import logging
from typing import Any, Callable, Optional

import oci
from oci.core.models import (
    AttachParavirtualizedVolumeDetails,
    BootVolumeSourceFromBootVolumeDetails,
    CreateBootVolumeDetails,
    CreateImageDetails,
    CreateVnicDetails,
    InstanceSourceViaBootVolumeDetails,
    InstanceSourceViaImageDetails,
    LaunchInstanceDetails,
)

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
from surrogate.domain.value_objects.launch_source import LaunchFromBootVolume, LaunchSource
from surrogate.domain.value_objects.lifecycle_state import (
    BootVolumeState,
    ImageState,
    InstanceState,
    VolumeAttachmentState,
)
from surrogate.domain.value_objects.placement import Placement

logger = logging.getLogger(__name__)


def _state(enum_cls, value: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        logger.debug("Unknown %s value %r", enum_cls.__name__, value)
        return value


def _instance(data: Any) -> Instance:
    return Instance(
        id=data.id,
        lifecycle_state=_state(InstanceState, data.lifecycle_state),
        availability_domain=data.availability_domain or "",
        shape=data.shape or "",
        display_name=data.display_name or "",
        image_id=data.image_id,
    )


def _image(data: Any) -> Image:
    return Image(
        id=data.id,
        lifecycle_state=_state(ImageState, data.lifecycle_state),
        display_name=data.display_name or "",
        freeform_tags=dict(data.freeform_tags or {}),
        defined_tags={k: dict(v) for k, v in (data.defined_tags or {}).items()},
    )


def _boot_volume(data: Any) -> BootVolume:
    source = getattr(data, "source_details", None)
    return BootVolume(
        id=data.id,
        lifecycle_state=_state(BootVolumeState, data.lifecycle_state),
        size_in_gbs=data.size_in_gbs,
        source_boot_volume_id=getattr(source, "id", None),
    )


def _volume_attachment(data: Any) -> VolumeAttachment:
    return VolumeAttachment(
        id=data.id,
        instance_id=data.instance_id,
        volume_id=data.volume_id,
        lifecycle_state=_state(VolumeAttachmentState, data.lifecycle_state),
    )


def _source_details(source: LaunchSource) -> Any:
    if isinstance(source, LaunchFromBootVolume):
        return InstanceSourceViaBootVolumeDetails(boot_volume_id=source.boot_volume_id)
    kwargs: dict[str, Any] = {"image_id": source.image_id}
    if source.boot_volume_size_in_gbs:
        kwargs["boot_volume_size_in_gbs"] = source.boot_volume_size_in_gbs
    return InstanceSourceViaImageDetails(**kwargs)


class OCIComputeAdapter:
    def __init__(self, compute: Any, blockstorage: Any, network: Any) -> None:
        self.compute = compute
        self.blockstorage = blockstorage
        self.network = network

    @classmethod
    def from_config(
        cls, config_file: str = oci.config.DEFAULT_LOCATION, profile: str = "DEFAULT"
    ) -> "OCIComputeAdapter":
        """Build the three SDK clients from an OCI CLI style config file."""
        config = oci.config.from_file(file_location=config_file, profile_name=profile)
        oci.config.validate_config(config)
        logger.info("Loaded OCI profile %s from %s", profile, config_file)
        return cls(
            oci.core.ComputeClient(config),
            oci.core.BlockstorageClient(config),
            oci.core.VirtualNetworkClient(config),
        )

    async def _call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        logger.debug("OCI call %s %s", getattr(fn, "__name__", fn), args)
        response = await asyncio.to_thread(fn, *args, **kwargs)
        return response.data

    async def _list(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> list[Any]:
        logger.debug("OCI list %s %s", getattr(fn, "__name__", fn), args)
        response = await asyncio.to_thread(
            oci.pagination.list_call_get_all_results, fn, *args, **kwargs
        )
        return list(response.data)

    # -- instances -----------------------------------------------------------

    async def launch_instance(self, request: LaunchInstanceRequest) -> Instance:
        details = LaunchInstanceDetails(
            availability_domain=request.placement.availability_domain,
            compartment_id=request.placement.compartment_id,
            shape=request.shape,
            create_vnic_details=CreateVnicDetails(subnet_id=request.subnet_id),
            source_details=_source_details(request.source),
            metadata=dict(request.metadata),
        )
        if request.display_name:
            details.display_name = request.display_name
        return _instance(await self._call(self.compute.launch_instance, details))

    async def terminate_instance(self, instance_id: str) -> None:
        await asyncio.to_thread(self.compute.terminate_instance, instance_id)

    async def get_instance(self, instance_id: str) -> Instance:
        return _instance(await self._call(self.compute.get_instance, instance_id))

    # -- images --------------------------------------------------------------

    async def list_images(self, compartment_id: str, display_name: str) -> list[Image]:
        items = await self._list(
            self.compute.list_images, compartment_id, display_name=display_name
        )
        return [_image(item) for item in items]

    async def get_image(self, image_id: str) -> Image:
        return _image(await self._call(self.compute.get_image, image_id))

    async def create_image(self, request: CreateImageRequest) -> Image:
        details = CreateImageDetails(
            compartment_id=request.compartment_id,
            instance_id=request.instance_id,
            display_name=request.display_name,
            freeform_tags=dict(request.freeform_tags),
            defined_tags={k: dict(v) for k, v in request.defined_tags.items()},
        )
        return _image(await self._call(self.compute.create_image, details))

    async def delete_image(self, image_id: str) -> None:
        await asyncio.to_thread(self.compute.delete_image, image_id)

    # -- block storage -------------------------------------------------------

    async def create_boot_volume(
        self,
        placement: Placement,
        source_boot_volume_id: str,
        size_in_gbs: Optional[int] = None,
    ) -> BootVolume:
        details = CreateBootVolumeDetails(
            availability_domain=placement.availability_domain,
            compartment_id=placement.compartment_id,
            source_details=BootVolumeSourceFromBootVolumeDetails(id=source_boot_volume_id),
        )
        if size_in_gbs:
            details.size_in_gbs = size_in_gbs
        return _boot_volume(await self._call(self.blockstorage.create_boot_volume, details))

    async def get_boot_volume(self, boot_volume_id: str) -> BootVolume:
        return _boot_volume(await self._call(self.blockstorage.get_boot_volume, boot_volume_id))

    async def delete_boot_volume(self, boot_volume_id: str) -> None:
        await asyncio.to_thread(self.blockstorage.delete_boot_volume, boot_volume_id)

    async def attach_volume(self, instance_id: str, volume_id: str) -> VolumeAttachment:
        details = AttachParavirtualizedVolumeDetails(
            instance_id=instance_id, volume_id=volume_id
        )
        return _volume_attachment(await self._call(self.compute.attach_volume, details))

    async def detach_volume(self, attachment_id: str) -> None:
        await asyncio.to_thread(self.compute.detach_volume, attachment_id)

    async def get_volume_attachment(self, attachment_id: str) -> VolumeAttachment:
        return _volume_attachment(
            await self._call(self.compute.get_volume_attachment, attachment_id)
        )

    async def list_boot_volume_attachments(
        self, placement: Placement, instance_id: str
    ) -> list[BootVolumeAttachment]:
        items = await self._list(
            self.compute.list_boot_volume_attachments,
            placement.availability_domain,
            placement.compartment_id,
            instance_id=instance_id,
        )
        return [
            BootVolumeAttachment(
                id=item.id,
                instance_id=item.instance_id,
                boot_volume_id=item.boot_volume_id,
                lifecycle_state=_state(VolumeAttachmentState, item.lifecycle_state),
            )
            for item in items
        ]

    # -- virtual network -----------------------------------------------------

    async def list_vnic_attachments(
        self, compartment_id: str, instance_id: str
    ) -> list[VnicAttachment]:
        items = await self._list(
            self.compute.list_vnic_attachments, compartment_id, instance_id=instance_id
        )
        return [
            VnicAttachment(id=item.id, instance_id=item.instance_id, vnic_id=item.vnic_id)
            for item in items
        ]

    async def get_vnic(self, vnic_id: str) -> Vnic:
        data = await self._call(self.network.get_vnic, vnic_id)
        return Vnic(id=data.id, private_ip=data.private_ip, public_ip=data.public_ip)

    async def get_instance_initial_credentials(self, instance_id: str) -> InstanceCredentials:
        data = await self._call(self.compute.get_windows_instance_initial_credentials, instance_id)
        return InstanceCredentials(data.username, data.password)
