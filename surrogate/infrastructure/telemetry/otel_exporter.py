"""
OpenTelemetry Exporter for image builds

Architectural Intent:
- Turns build domain events into OpenTelemetry counters
- Exports to an OTLP-compatible backend when an endpoint is configured;
  otherwise the OpenTelemetry API's no-op meter (or whatever global meter
  provider the host application installed) receives the counts
- Hooks in through the event bus, so the build core never imports it

Security:
- Endpoint defaults to empty string (must be explicitly configured)
- Non-localhost http:// endpoints rejected unless insecure=True
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlparse
import logging

from opentelemetry import metrics
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, Resource

from surrogate.domain.events.build_events import (
    BuildStageReachedEvent,
    ImageBuildCompletedEvent,
    ImageBuildFailedEvent,
    ResourceLeakedEvent,
)
from surrogate.domain.events.event_base import DomainEvent
from surrogate.domain.ports.event_bus_port import EventBusPort

logger = logging.getLogger(__name__)

STAGE_COUNTER = "surrogate.build.stage"
COMPLETED_COUNTER = "surrogate.build.completed"
FAILED_COUNTER = "surrogate.build.failed"
LEAKED_COUNTER = "surrogate.resource.leaked"
LOOPBACK_HOSTS = ("localhost", "127.0.0.1", "::1")


def _plaintext_remote(endpoint: str) -> bool:
    parsed = urlparse(endpoint)
    return parsed.scheme == "http" and parsed.hostname not in LOOPBACK_HOSTS


@dataclass
class OTELConfig:
    endpoint: str = ""
    service_name: str = "surrogate"
    insecure: bool = False

    def __post_init__(self) -> None:
        if self.endpoint and _plaintext_remote(self.endpoint) and not self.insecure:
            raise ValueError(
                f"Refusing plaintext export to {self.endpoint}: use https:// "
                "or set insecure=True"
            )


class OTELExporter:
    """Counts build stages, outcomes and leaked resources."""

    def __init__(self, config: OTELConfig):
        self.config = config
        self._initialized = False
        self._meter: Any = metrics.get_meter(__name__)
        self._counters: dict[str, Any] = {}

    def initialize(self) -> None:
        """Set up the OTLP metric pipeline when an endpoint is configured."""
        if not self.config.endpoint:
            logger.info("OTEL endpoint not configured, metrics are not exported")
            return

        try:
            resource = Resource(attributes={SERVICE_NAME: self.config.service_name})
            reader = PeriodicExportingMetricReader(
                OTLPMetricExporter(
                    endpoint=self.config.endpoint, insecure=self.config.insecure
                )
            )
            provider = MeterProvider(resource=resource, metric_readers=[reader])
            self.use_meter(provider.get_meter(__name__))
            self._initialized = True
        except Exception as e:
            logger.error("Failed to initialize OTEL: %s", e)
            self._initialized = False

    def use_meter(self, meter: Any) -> None:
        """Route all further counts to ``meter``."""
        self._meter = meter
        self._counters.clear()

    def _get_counter(self, name: str) -> Any:
        if name not in self._counters:
            self._counters[name] = self._meter.create_counter(name)
        return self._counters[name]

    def record_metric(
        self,
        name: str,
        value: float = 1.0,
        attributes: Optional[dict[str, str]] = None,
    ) -> None:
        """Add to a counter."""
        self._get_counter(name).add(value, attributes=attributes or {})

    async def on_event(self, event: DomainEvent) -> None:
        if isinstance(event, BuildStageReachedEvent):
            self.record_metric(STAGE_COUNTER, attributes={"stage": event.stage})
        elif isinstance(event, ImageBuildCompletedEvent):
            self.record_metric(COMPLETED_COUNTER)
        elif isinstance(event, ImageBuildFailedEvent):
            self.record_metric(FAILED_COUNTER, attributes={"step": event.step})
        elif isinstance(event, ResourceLeakedEvent):
            self.record_metric(LEAKED_COUNTER, attributes={"kind": event.resource_kind})

    def subscribe(self, event_bus: EventBusPort) -> None:
        event_bus.subscribe(DomainEvent, self.on_event)


def create_exporter(
    endpoint: Optional[str] = None,
    service_name: str = "surrogate",
    insecure: bool = False,
) -> OTELExporter:
    """Factory function to create OTEL exporter."""
    config = OTELConfig(
        endpoint=endpoint or "",
        service_name=service_name,
        insecure=insecure,
    )
    exporter = OTELExporter(config)
    exporter.initialize()
    return exporter
