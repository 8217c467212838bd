"""
Tests for ClipService and ExportService (synchronous operations).
"""

import math

import pytest

from videostitch.clips.errors import (
    ClipNotFoundError,
    InvalidRangeError,
    ProjectNotFoundError,
)
from videostitch.clips.models import ProcessingStatus
from videostitch.export.models import ExportStatus
from videostitch.services.clips import ClipService, validate_range
from videostitch.services.exports import ExportNotFoundError, ExportService


@pytest.fixture
def clip_service(store, layout):
    return ClipService(store=store, layout=layout)


@pytest.fixture
def ready_clip(store, project, make_clip):
    return store.create_clip(make_clip(
        project.id,
        duration=20.0,
        processing_status=ProcessingStatus.READY,
        proxy_url="/proxies/x.mp4",
        thumbnail_url="/thumbnails/x.jpg",
    ))


class TestValidateRange:

    @pytest.mark.parametrize("in_point,out_point,duration", [
        (0, 5, 20),
        (19, 20, 20),
        (0, 100, None),  # unknown duration: no upper bound
        (0, 100, 0),  # zero duration: no upper bound
    ])
    def test_valid(self, in_point, out_point, duration):
        validate_range(in_point, out_point, duration)

    @pytest.mark.parametrize("in_point,out_point,duration", [
        (5, 5, 20),  # empty
        (6, 5, 20),  # reversed
        (-1, 5, 20),  # negative
        (0, 21, 20),  # past the end
        (math.nan, 5, 20),
        (0, math.inf, None),
    ])
    def test_invalid(self, in_point, out_point, duration):
        with pytest.raises(InvalidRangeError):
            validate_range(in_point, out_point, duration)


class TestMarks:

    def test_add_mark(self, clip_service, ready_clip):
        mark = clip_service.add_mark(ready_clip.id, 2.0, 5.5)

        assert mark.clip_id == ready_clip.id
        assert mark.duration == pytest.approx(3.5)
        assert clip_service.get_clip(ready_clip.id).marks == [mark]

    def test_add_mark_invalid_range_not_stored(self, clip_service, ready_clip):
        with pytest.raises(InvalidRangeError):
            clip_service.add_mark(ready_clip.id, 10.0, 2.0)
        assert clip_service.get_clip(ready_clip.id).marks == []

    def test_add_mark_past_duration(self, clip_service, ready_clip):
        with pytest.raises(InvalidRangeError) as exc_info:
            clip_service.add_mark(ready_clip.id, 0.0, 25.0)
        assert "InvalidRange" in str(exc_info.value)

    def test_add_mark_unknown_clip(self, clip_service):
        with pytest.raises(ClipNotFoundError):
            clip_service.add_mark("missing", 0.0, 1.0)

    def test_add_mark_while_processing(self, clip_service, store, project, make_clip):
        """
        GIVEN: A clip whose duration is not known yet
        WHEN: A mark is added
        THEN: Only the ordering constraints apply
        """
        clip = store.create_clip(make_clip(project.id))
        mark = clip_service.add_mark(clip.id, 0.0, 500.0)
        assert mark.out_point == 500.0

    def test_remove_mark_is_idempotent(self, clip_service, ready_clip):
        mark = clip_service.add_mark(ready_clip.id, 0.0, 1.0)

        clip_service.remove_mark(mark.id)
        clip_service.remove_mark(mark.id)

        assert clip_service.get_clip(ready_clip.id).marks == []


class TestClipOperations:

    def test_current_status(self, clip_service, ready_clip):
        assert clip_service.current_status(ready_clip.id) == ProcessingStatus.READY

    def test_current_status_unknown(self, clip_service):
        with pytest.raises(ClipNotFoundError):
            clip_service.current_status("missing")

    def test_update_editorial(self, clip_service, ready_clip):
        clip = clip_service.update_editorial(ready_clip.id, included=False, order_index=3)
        assert clip.included is False
        assert clip.order_index == 3
        assert clip.processing_status == ProcessingStatus.READY

    def test_update_editorial_noop(self, clip_service, ready_clip):
        assert clip_service.update_editorial(ready_clip.id).id == ready_clip.id

    def test_sorted_clips_unknown_project(self, clip_service):
        with pytest.raises(ProjectNotFoundError):
            clip_service.sorted_clips("missing")

    def test_delete_clip_removes_files_and_marks(self, clip_service, store, layout, project, make_clip, tmp_path):
        original = tmp_path / "upload.mp4"
        original.write_bytes(b"raw")
        clip = store.create_clip(make_clip(project.id, original_path=str(original)))
        mark = clip_service.add_mark(clip.id, 0.0, 1.0)
        layout.proxy_path(clip.id).write_bytes(b"proxy")
        layout.thumbnail_path(clip.id).write_bytes(b"jpeg")

        assert clip_service.delete_clip(clip.id) is True

        assert store.get_clip(clip.id) is None
        assert store.get_mark(mark.id) is None
        assert not original.exists()
        assert not layout.proxy_path(clip.id).exists()
        assert not layout.thumbnail_path(clip.id).exists()

    def test_delete_clip_is_idempotent(self, clip_service):
        assert clip_service.delete_clip("missing") is False

    def test_create_project_requires_name(self, clip_service):
        with pytest.raises(ValueError):
            clip_service.create_project("   ")


class TestExportPlanAndJobs:

    def test_export_plan_uses_marks(self, clip_service, ready_clip, project):
        clip_service.add_mark(ready_clip.id, 0.0, 5.0)
        clip_service.add_mark(ready_clip.id, 10.0, 12.0)

        plan = clip_service.export_plan(project.id)

        assert plan.range_count == 2
        assert plan.total_duration == pytest.approx(7.0)

    def test_export_plan_follows_manual_order(self, clip_service, store, project, make_clip):
        for name, index in (("second.mp4", 1), ("first.mp4", 0)):
            store.create_clip(make_clip(
                project.id,
                name,
                duration=1.0,
                order_index=index,
                processing_status=ProcessingStatus.READY,
                proxy_url="/p",
                thumbnail_url="/t",
            ))

        plan = clip_service.export_plan(project.id)

        assert [e.clip.original_filename for e in plan.per_clip] == ["first.mp4", "second.mp4"]

    def test_start_export_records_plan(self, clip_service, store, ready_clip, project):
        clip_service.add_mark(ready_clip.id, 0.0, 5.0)
        exports = ExportService(store=store, clips=clip_service)

        job = exports.start_export(project.id, "final cut")

        assert job.status == ExportStatus.READY
        assert job.progress == 100
        assert job.range_count == 1
        assert job.total_duration == pytest.approx(5.0)
        assert job.completed_at is not None
        assert exports.get_export(job.id).name == "final cut"

    def test_start_export_unknown_project(self, clip_service, store):
        exports = ExportService(store=store, clips=clip_service)
        with pytest.raises(ProjectNotFoundError):
            exports.start_export("missing")

    def test_get_export_unknown(self, clip_service, store):
        exports = ExportService(store=store, clips=clip_service)
        with pytest.raises(ExportNotFoundError):
            exports.get_export("missing")
