"""
Remote Resource Descriptors

Architectural Intent:
- Transient, immutable snapshots of cloud-side resources as last reported
  by the compute API
- The core only ever holds ids and these descriptors; lifecycle state is
  mutated by the remote service alone, so there are no transition methods
- Adapters translate provider payloads into these types
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Optional

from surrogate.domain.value_objects.lifecycle_state import (
    BootVolumeState,
    ImageState,
    InstanceState,
    VolumeAttachmentState,
)


@dataclass(frozen=True)
class Instance:
    id: str
    lifecycle_state: InstanceState
    availability_domain: str = ""
    shape: str = ""
    display_name: str = ""
    image_id: Optional[str] = None


@dataclass(frozen=True)
class BootVolume:
    id: str
    lifecycle_state: BootVolumeState
    size_in_gbs: Optional[int] = None
    source_boot_volume_id: Optional[str] = None


@dataclass(frozen=True)
class BootVolumeAttachment:
    id: str
    instance_id: str
    boot_volume_id: str
    lifecycle_state: VolumeAttachmentState


@dataclass(frozen=True)
class VolumeAttachment:
    id: str
    instance_id: str
    volume_id: str
    lifecycle_state: VolumeAttachmentState


@dataclass(frozen=True)
class Image:
    id: str
    lifecycle_state: ImageState
    display_name: str = ""
    freeform_tags: dict[str, str] = field(default_factory=dict)
    defined_tags: dict[str, dict[str, Any]] = field(default_factory=dict)


@dataclass(frozen=True)
class VnicAttachment:
    id: str
    instance_id: str
    vnic_id: str


@dataclass(frozen=True)
class Vnic:
    id: str
    private_ip: Optional[str] = None
    public_ip: Optional[str] = None


@dataclass(frozen=True)
class InstanceCredentials:
    username: str
    password: str = field(repr=False)
