"""
Domain Layer Tests

Architectural Intent:
- Tests for the ImageBuild aggregate
- Stage ordering invariants and emitted events
"""

import pytest

from surrogate.domain.entities.image_build import BuildStage, ImageBuild
from surrogate.domain.events import (
    BuildStageReachedEvent,
    ImageBuildCompletedEvent,
    ImageBuildFailedEvent,
    ResourceLeakedEvent,
)


def running_build() -> ImageBuild:
    return ImageBuild("b-1").instance_launched("i-1").instance_running()


class TestImageBuild:
    def test_initial_state(self):
        build = ImageBuild("b-1")
        assert build.stage == BuildStage.STARTED
        assert build.stages == (BuildStage.STARTED,)
        assert build.instance_id is None
        assert build.domain_events == ()
        assert not build.is_finished

    def test_empty_id_rejected(self):
        with pytest.raises(ValueError):
            ImageBuild("")

    def test_transitions_are_immutable(self):
        build = ImageBuild("b-1")
        launched = build.instance_launched("i-1")
        assert build.instance_id is None
        assert launched.instance_id == "i-1"
        assert launched.stage == BuildStage.INSTANCE_LAUNCHED

    def test_each_stage_emits_event(self):
        build = running_build()
        events = build.domain_events
        assert [type(e) for e in events] == [BuildStageReachedEvent] * 2
        assert events[0].stage == "INSTANCE_LAUNCHED"
        assert events[0].resource_id == "i-1"
        assert events[0].aggregate_id == "b-1"

    def test_cannot_launch_twice(self):
        with pytest.raises(ValueError):
            running_build().instance_launched("i-2")

    def test_capture_requires_running_instance(self):
        build = ImageBuild("b-1").instance_launched("i-1")
        with pytest.raises(ValueError, match="RUNNING"):
            build.image_captured("img-2")

    def test_attach_requires_clone(self):
        with pytest.raises(ValueError):
            running_build().boot_volume_attached("va-1")

    def test_clone_requires_instance(self):
        with pytest.raises(ValueError):
            ImageBuild("b-1").boot_volume_cloned("bv-2")

    def test_delete_requires_detach_first(self):
        build = running_build().boot_volume_cloned("bv-2").boot_volume_attached("va-1")
        with pytest.raises(ValueError, match="detached"):
            build.boot_volume_deleted()
        deleted = build.boot_volume_detached().boot_volume_deleted()
        assert deleted.volume_deleted is True

    def test_complete_simple_build(self):
        build = (
            running_build()
            .image_captured("img-2")
            .image_available()
            .instance_terminated()
            .complete()
        )
        assert build.stage == BuildStage.DONE
        assert build.is_finished
        assert build.stages == (
            BuildStage.STARTED,
            BuildStage.INSTANCE_LAUNCHED,
            BuildStage.INSTANCE_RUNNING,
            BuildStage.IMAGE_CAPTURED,
            BuildStage.IMAGE_AVAILABLE,
            BuildStage.INSTANCE_TERMINATED,
            BuildStage.DONE,
        )
        assert isinstance(build.domain_events[-1], ImageBuildCompletedEvent)
        assert build.domain_events[-1].image_id == "img-2"

    def test_complete_requires_terminated_instance(self):
        build = running_build().image_captured("img-2").image_available()
        with pytest.raises(ValueError, match="alive"):
            build.complete()

    def test_complete_requires_available_image(self):
        build = running_build().image_captured("img-2").instance_terminated()
        with pytest.raises(ValueError):
            build.complete()

    def test_complete_requires_clone_deleted(self):
        build = (
            running_build()
            .boot_volume_cloned("bv-2")
            .boot_volume_attached("va-1")
            .image_captured("img-2")
            .image_available()
            .instance_terminated()
            .boot_volume_detached()
        )
        with pytest.raises(ValueError, match="clone"):
            build.complete()
        assert build.boot_volume_deleted().complete().stage == BuildStage.DONE

    def test_fail_records_step(self):
        build = running_build().fail("capture", "quota exceeded")
        assert build.stage == BuildStage.FAILED
        assert build.failed_step == "capture"
        assert build.error_message == "quota exceeded"
        assert build.instance_id == "i-1"
        event = build.domain_events[-1]
        assert isinstance(event, ImageBuildFailedEvent)
        assert event.step == "capture"

    def test_no_transitions_after_failure(self):
        build = running_build().fail("capture", "boom")
        with pytest.raises(ValueError, match="already FAILED"):
            build.image_captured("img-2")

    def test_resource_leaked_keeps_stage(self):
        build = running_build().fail("capture", "boom")
        leaked = build.resource_leaked("instance", "i-1", "503")
        assert leaked.stage == BuildStage.FAILED
        event = leaked.domain_events[-1]
        assert isinstance(event, ResourceLeakedEvent)
        assert event.resource_kind == "instance"
        assert event.resource_id == "i-1"
        assert event.to_dict()["event_type"] == "ResourceLeakedEvent"
