"""
Lifecycle State Value Objects

Architectural Intent:
- Explicit enumerations of the lifecycle states the compute API reports
- One enum per resource kind so a poller contract can never mix vocabularies
- str-valued so adapters can build members straight from API payloads
"""

from enum import Enum


class InstanceState(str, Enum):
    PROVISIONING = "PROVISIONING"
    RUNNING = "RUNNING"
    STARTING = "STARTING"
    STOPPING = "STOPPING"
    STOPPED = "STOPPED"
    CREATING_IMAGE = "CREATING_IMAGE"
    TERMINATING = "TERMINATING"
    TERMINATED = "TERMINATED"

    def __str__(self) -> str:
        return self.value


class BootVolumeState(str, Enum):
    PROVISIONING = "PROVISIONING"
    RESTORING = "RESTORING"
    AVAILABLE = "AVAILABLE"
    TERMINATING = "TERMINATING"
    TERMINATED = "TERMINATED"
    FAULTY = "FAULTY"

    def __str__(self) -> str:
        return self.value


class VolumeAttachmentState(str, Enum):
    ATTACHING = "ATTACHING"
    ATTACHED = "ATTACHED"
    DETACHING = "DETACHING"
    DETACHED = "DETACHED"

    def __str__(self) -> str:
        return self.value


class ImageState(str, Enum):
    PROVISIONING = "PROVISIONING"
    IMPORTING = "IMPORTING"
    AVAILABLE = "AVAILABLE"
    EXPORTING = "EXPORTING"
    DISABLED = "DISABLED"
    DELETED = "DELETED"

    def __str__(self) -> str:
        return self.value
