"""
Surrogate Telemetry Infrastructure

Architectural Intent:
- OpenTelemetry metrics for image builds
- Fed from the build event bus
"""

from surrogate.infrastructure.telemetry.otel_exporter import (
    OTELExporter,
    OTELConfig,
    create_exporter,
)

__all__ = [
    "OTELExporter",
    "OTELConfig",
    "create_exporter",
]
