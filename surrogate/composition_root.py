"""
Composition Root

Architectural Intent:
- Dependency injection composition root for one image build
- Single place where the compute adapter, managers, driver, event bus and
  the build use case are wired together
- No adapter instantiation should occur outside this module (except tests)

Design Decisions:
- Uses a simple dataclass container instead of a DI framework
- Factory function creates and wires all dependencies from a SurrogateConfig
- A compute adapter can be injected; otherwise provider.name picks one
"""

from dataclasses import dataclass
from typing import Optional

from surrogate.application.image_build_driver import ImageBuildDriver
from surrogate.application.managers.boot_volume_manager import BootVolumeManager
from surrogate.application.managers.image_manager import ImageManager
from surrogate.application.managers.instance_manager import InstanceManager
from surrogate.application.use_cases.build_image import BuildImage
from surrogate.domain.errors import ConfigError
from surrogate.domain.ports.compute_service_port import ComputeServicePort
from surrogate.infrastructure.adapters.simulated_compute_adapter import (
    SimulatedComputeAdapter,
)
from surrogate.infrastructure.config import SurrogateConfig, resolve_user_data
from surrogate.infrastructure.event_bus import EventBus
from surrogate.infrastructure.logging import configure_logging
from surrogate.infrastructure.telemetry.otel_exporter import OTELExporter, create_exporter


@dataclass
class SurrogateContainer:
    """DI container holding all wired dependencies."""

    config: SurrogateConfig
    compute: ComputeServicePort
    instances: InstanceManager
    volumes: BootVolumeManager
    images: ImageManager
    driver: ImageBuildDriver
    event_bus: EventBus
    build_image: BuildImage
    telemetry: OTELExporter


def _create_compute(config: SurrogateConfig) -> ComputeServicePort:
    if config.provider.name == "oci":
        # Imported here so a simulated run does not need SDK credentials.
        from surrogate.infrastructure.adapters.oci_adapter import OCIComputeAdapter

        return OCIComputeAdapter.from_config(config.provider.config_file, config.provider.profile)
    if config.provider.name == "simulated":
        adapter = SimulatedComputeAdapter()
        adapter.add_image(
            config.source.image_name or "base",
            config.instance.compartment_id,
            image_id=config.source.image_id or None,
        )
        return adapter
    raise ConfigError(f"Unknown provider {config.provider.name!r}")


def create_container(
    config: SurrogateConfig,
    compute: Optional[ComputeServicePort] = None,
) -> SurrogateContainer:
    """Create and wire all dependencies."""
    configure_logging(config.log_level, config.json_logs)

    placement = config.instance.placement()
    base_image = config.source.base_image()
    wait_policy = config.wait.policy()
    user_data = resolve_user_data(config.instance)
    if compute is None:
        compute = _create_compute(config)

    instances = InstanceManager(
        compute,
        placement,
        shape=config.instance.shape,
        subnet_id=config.instance.subnet_id,
        base_image=base_image,
        boot_volume_size_in_gbs=config.source.boot_volume_size_in_gbs,
        display_name=config.instance.display_name or None,
        metadata=config.instance.metadata,
        user_data=user_data,
        wait_policy=wait_policy,
    )
    volumes = BootVolumeManager(
        compute,
        placement,
        size_in_gbs=config.source.boot_volume_size_in_gbs,
        wait_policy=wait_policy,
    )
    images = ImageManager(compute, placement.compartment_id, wait_policy)
    driver = ImageBuildDriver(
        instances,
        volumes,
        images,
        image_display_name=config.image.display_name,
        freeform_tags=config.image.freeform_tags,
        defined_tags=config.image.defined_tags,
        use_private_ip=config.instance.use_private_ip,
    )
    event_bus = EventBus()
    try:
        telemetry = create_exporter(
            config.telemetry.endpoint,
            config.telemetry.service_name,
            config.telemetry.insecure,
        )
    except ValueError as e:
        raise ConfigError(str(e)) from e
    telemetry.subscribe(event_bus)
    build_image = BuildImage(
        driver,
        event_bus,
        clone_boot_volume=config.build.clone_boot_volume,
        capture_from_terminating_instance=config.build.capture_from_terminating_instance,
    )

    return SurrogateContainer(
        config=config,
        compute=compute,
        instances=instances,
        volumes=volumes,
        images=images,
        driver=driver,
        event_bus=event_bus,
        build_image=build_image,
        telemetry=telemetry,
    )
