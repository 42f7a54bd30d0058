"""Tests for OTELExporter."""

import pytest

from surrogate.domain.events import (
    BuildStageReachedEvent,
    ImageBuildCompletedEvent,
    ImageBuildFailedEvent,
    ResourceLeakedEvent,
)
from surrogate.infrastructure.event_bus import EventBus
from surrogate.infrastructure.telemetry import OTELConfig, OTELExporter, create_exporter


class TestOTELConfig:
    def test_default_empty_endpoint(self):
        assert OTELConfig().endpoint == ""

    def test_localhost_http_allowed(self):
        config = OTELConfig(endpoint="http://localhost:4317")
        assert config.endpoint == "http://localhost:4317"

    def test_remote_http_rejected(self):
        with pytest.raises(ValueError, match="insecure=True"):
            OTELConfig(endpoint="http://collector.example.com:4317")

    def test_remote_http_with_insecure(self):
        config = OTELConfig(endpoint="http://collector.example.com:4317", insecure=True)
        assert config.insecure is True


class TestOTELExporter:
    def test_record_metric_adds_to_counter(self, metric_reader):
        meter, points = metric_reader
        exporter = OTELExporter(OTELConfig())
        exporter.use_meter(meter)

        exporter.record_metric("surrogate.test", 2.0, {"k": "v"})
        exporter.record_metric("surrogate.test", 1.0, {"k": "v"})

        assert points() == {("surrogate.test", frozenset({("k", "v")})): 3.0}

    def test_record_metric_without_meter_pipeline_is_noop(self):
        exporter = OTELExporter(OTELConfig())
        exporter.record_metric("surrogate.test")
        assert "surrogate.test" in exporter._counters

    def test_initialize_without_endpoint(self):
        exporter = create_exporter()
        assert exporter._initialized is False

    @pytest.mark.asyncio
    async def test_counts_build_events_from_bus(self, metric_reader):
        meter, points = metric_reader
        bus = EventBus()
        exporter = create_exporter()
        exporter.use_meter(meter)
        exporter.subscribe(bus)

        await bus.publish(
            [
                BuildStageReachedEvent(aggregate_id="b-1", stage="INSTANCE_LAUNCHED"),
                BuildStageReachedEvent(aggregate_id="b-2", stage="INSTANCE_LAUNCHED"),
                ImageBuildFailedEvent(aggregate_id="b-1", step="capture"),
                ResourceLeakedEvent(aggregate_id="b-1", resource_kind="instance"),
                ImageBuildCompletedEvent(aggregate_id="b-2", image_id="img-2"),
            ]
        )

        assert points() == {
            ("surrogate.build.stage", frozenset({("stage", "INSTANCE_LAUNCHED")})): 2,
            ("surrogate.build.failed", frozenset({("step", "capture")})): 1,
            ("surrogate.resource.leaked", frozenset({("kind", "instance")})): 1,
            ("surrogate.build.completed", frozenset()): 1,
        }
