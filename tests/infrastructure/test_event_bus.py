"""Tests for EventBus infrastructure."""

import logging
import pytest

from surrogate.domain.events import (
    BuildStageReachedEvent,
    DomainEvent,
    ImageBuildCompletedEvent,
)
from surrogate.infrastructure.event_bus import EventBus


class TestEventBus:
    @pytest.mark.asyncio
    async def test_publish_to_subscriber(self):
        bus = EventBus()
        received = []

        async def handler(event):
            received.append(event)

        bus.subscribe(BuildStageReachedEvent, handler)

        await bus.publish([BuildStageReachedEvent(aggregate_id="b-1", stage="DONE")])

        assert len(received) == 1
        assert received[0].aggregate_id == "b-1"

    @pytest.mark.asyncio
    async def test_no_subscriber(self):
        bus = EventBus()
        # Should not raise
        await bus.publish([ImageBuildCompletedEvent(aggregate_id="b-1")])

    @pytest.mark.asyncio
    async def test_dispatch_by_type(self):
        bus = EventBus()
        stages, completions = [], []

        async def on_stage(event):
            stages.append(event)

        async def on_completed(event):
            completions.append(event)

        bus.subscribe(BuildStageReachedEvent, on_stage)
        bus.subscribe(ImageBuildCompletedEvent, on_completed)

        await bus.publish(
            [
                BuildStageReachedEvent(aggregate_id="b-1"),
                ImageBuildCompletedEvent(aggregate_id="b-1", image_id="img-2"),
            ]
        )

        assert len(stages) == 1
        assert completions[0].image_id == "img-2"

    @pytest.mark.asyncio
    async def test_base_type_receives_everything(self):
        bus = EventBus()
        received = []

        async def handler(event):
            received.append(type(event).__name__)

        bus.subscribe(DomainEvent, handler)
        await bus.publish(
            [BuildStageReachedEvent(), ImageBuildCompletedEvent()]
        )

        assert received == ["BuildStageReachedEvent", "ImageBuildCompletedEvent"]

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_delivery(self, caplog):
        bus = EventBus()
        received = []

        async def broken(event):
            raise RuntimeError("handler bug")

        async def healthy(event):
            received.append(event)

        bus.subscribe(BuildStageReachedEvent, broken)
        bus.subscribe(BuildStageReachedEvent, healthy)

        with caplog.at_level(logging.ERROR, logger="surrogate"):
            await bus.publish([BuildStageReachedEvent(), BuildStageReachedEvent()])

        assert len(received) == 2
        assert "handler bug" in caplog.text
