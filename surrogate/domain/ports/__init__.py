"""
Domain Ports Package

Architectural Intent:
- Contains port interfaces (abstract contracts) for external dependencies
- Ports define what the build core needs, adapters implement how
- Follows Hexagonal Architecture principles
"""

from surrogate.domain.ports.compute_service_port import (
    ComputeServicePort,
    CreateImageRequest,
    LaunchInstanceRequest,
)
from surrogate.domain.ports.image_build_driver_port import ImageBuildDriverPort
from surrogate.domain.ports.event_bus_port import EventBusPort

__all__ = [
    "ComputeServicePort",
    "CreateImageRequest",
    "LaunchInstanceRequest",
    "ImageBuildDriverPort",
    "EventBusPort",
]
