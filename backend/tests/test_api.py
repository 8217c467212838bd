"""
HTTP API tests.

The app is built with a fake transcoder and prober; uploads run through
the real ingestion service and tests wait for it to go idle before
polling status.
"""

import pytest
from fastapi.testclient import TestClient

from conftest import FakeProber, FakeTranscoder
from videostitch.main import create_app
from videostitch.metadata.models import ClipMetadata
from videostitch.settings import AppSettings


def _client(tmp_path, transcoder=None, duration=20.0):
    settings = AppSettings(data_dir=str(tmp_path / "data"))
    app = create_app(
        settings,
        transcoder=transcoder or FakeTranscoder(),
        prober=FakeProber(ClipMetadata(duration=duration, width=1920, height=1080)),
    )
    return TestClient(app)


@pytest.fixture
def client(tmp_path):
    with _client(tmp_path) as test_client:
        yield test_client


def _create_project(client, name="Wedding"):
    response = client.post("/api/projects", json={"name": name})
    assert response.status_code == 201
    return response.json()["project"]


def _upload(client, project_id, filename="VID_20230514_183012.mp4", uploaded_by="alice"):
    return client.post(
        f"/api/projects/{project_id}/videos",
        files={"video": (filename, b"\x00\x00\x00\x18ftypmp42", "video/mp4")},
        data={"uploadedBy": uploaded_by},
    )


def _wait_idle(client):
    assert client.app.state.ingestion_service.wait_idle(timeout=5)


def _ready_video(client):
    project = _create_project(client)
    video = _upload(client, project["id"]).json()["video"]
    _wait_idle(client)
    return project, video


class TestHealth:

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["mode"] == "local"
        assert body["timestamp"]

    def test_check_ffmpeg(self, client):
        response = client.get("/api/check-ffmpeg")
        assert response.json() == {"available": True, "version": None}

    def test_check_ffmpeg_missing(self, tmp_path):
        with _client(tmp_path, transcoder=FakeTranscoder(missing_tool=True)) as client:
            assert client.get("/api/check-ffmpeg").json()["available"] is False

    def test_root(self, client):
        assert client.get("/").json()["status"] == "running"


class TestProjects:

    def test_create_and_get(self, client):
        project = _create_project(client, "Trip")

        response = client.get(f"/api/projects/{project['id']}")

        assert response.status_code == 200
        body = response.json()
        assert body["project"]["name"] == "Trip"
        assert body["sort"] == "smart"
        assert body["videos"] == []

    def test_create_requires_name(self, client):
        assert client.post("/api/projects", json={"name": "  "}).status_code == 400
        assert client.post("/api/projects", json={}).status_code == 422

    def test_unknown_project(self, client):
        assert client.get("/api/projects/missing").status_code == 404

    def test_bad_sort_mode(self, client):
        project = _create_project(client)
        assert client.get(f"/api/projects/{project['id']}?sort=random").status_code == 400


class TestUpload:

    def test_upload_then_ready(self, client):
        """
        GIVEN: A project
        WHEN: A clip is uploaded and its pipeline finishes
        THEN: The upload returns PROCESSING immediately and status ends READY
        """
        project = _create_project(client)

        response = _upload(client, project["id"])

        assert response.status_code == 201
        video = response.json()["video"]
        assert video["processing_status"] == "processing"
        assert video["source"] == "android"
        assert video["uploaded_by"] == "alice"
        assert video["original_filename"] == "VID_20230514_183012.mp4"

        _wait_idle(client)
        status = client.get(f"/api/videos/{video['id']}/status").json()

        assert status["processing_status"] == "ready"
        assert status["proxy_url"] == f"/proxies/{video['id']}.mp4"
        assert status["thumbnail_url"] == f"/thumbnails/{video['id']}.jpg"
        assert status["failure_reason"] is None

    def test_proxy_is_served(self, client):
        project = _create_project(client)
        video = _upload(client, project["id"]).json()["video"]
        _wait_idle(client)

        proxy_url = client.get(f"/api/videos/{video['id']}/status").json()["proxy_url"]

        response = client.get(proxy_url)
        assert response.status_code == 200
        assert response.content == b"proxy"

    def test_uploaded_by_defaults_to_anonymous(self, client):
        project = _create_project(client)
        response = client.post(
            f"/api/projects/{project['id']}/videos",
            files={"video": ("clip.mov", b"data", "video/quicktime")},
        )
        assert response.json()["video"]["uploaded_by"] == "anonymous"
        _wait_idle(client)

    def test_bad_extension_rejected(self, client):
        project = _create_project(client)
        response = _upload(client, project["id"], filename="notes.txt")
        assert response.status_code == 400
        assert client.get(f"/api/projects/{project['id']}").json()["videos"] == []

    def test_unknown_project(self, client):
        assert _upload(client, "missing").status_code == 404

    def test_failed_pipeline_reports_reason(self, tmp_path):
        with _client(tmp_path, transcoder=FakeTranscoder(fail_proxy=True)) as client:
            project = _create_project(client)
            video = _upload(client, project["id"]).json()["video"]
            _wait_idle(client)

            status = client.get(f"/api/videos/{video['id']}/status").json()

            assert status["processing_status"] == "failed"
            assert status["failure_reason"]
            assert status["proxy_url"] is None

    def test_status_unknown_clip(self, client):
        assert client.get("/api/videos/missing/status").status_code == 404

    def test_upload_order_index(self, client):
        project = _create_project(client)
        first = _upload(client, project["id"], "a.mp4").json()["video"]
        second = _upload(client, project["id"], "b.mp4").json()["video"]
        _wait_idle(client)
        assert (first["order_index"], second["order_index"]) == (0, 1)


class TestClipEditing:

    def test_patch_editorial_fields(self, client):
        _, video = _ready_video(client)

        response = client.patch(f"/api/videos/{video['id']}", json={"included": False, "order_index": 7})

        assert response.status_code == 200
        updated = response.json()["video"]
        assert updated["included"] is False
        assert updated["order_index"] == 7
        assert updated["processing_status"] == "ready"

    def test_patch_rejects_pipeline_fields(self, client):
        _, video = _ready_video(client)
        response = client.patch(f"/api/videos/{video['id']}", json={"processing_status": "pending"})
        assert response.status_code == 422

    def test_patch_unknown_clip(self, client):
        assert client.patch("/api/videos/missing", json={"included": False}).status_code == 404

    def test_reprocess_ready_clip_conflicts(self, client):
        _, video = _ready_video(client)
        assert client.post(f"/api/videos/{video['id']}/reprocess").status_code == 409

    def test_reprocess_unknown_clip(self, client):
        assert client.post("/api/videos/missing/reprocess").status_code == 404

    def test_delete_clip(self, client):
        project, video = _ready_video(client)

        assert client.delete(f"/api/videos/{video['id']}").json() == {"success": True}

        assert client.get(f"/api/videos/{video['id']}/status").status_code == 404
        assert client.get(f"/api/projects/{project['id']}").json()["videos"] == []
        assert client.delete(f"/api/videos/{video['id']}").status_code == 200


class TestMarksAndExport:

    def test_add_and_remove_mark(self, client):
        project, video = _ready_video(client)

        response = client.post(f"/api/videos/{video['id']}/marks", json={"in_point": 2.0, "out_point": 5.0})

        assert response.status_code == 201
        mark = response.json()["mark"]
        assert mark["clip_id"] == video["id"]

        videos = client.get(f"/api/projects/{project['id']}").json()["videos"]
        assert [m["id"] for m in videos[0]["marks"]] == [mark["id"]]

        assert client.delete(f"/api/marks/{mark['id']}").json() == {"success": True}
        assert client.delete(f"/api/marks/{mark['id']}").status_code == 200

    @pytest.mark.parametrize("in_point,out_point", [(5.0, 5.0), (6.0, 2.0), (-1.0, 2.0), (0.0, 25.0)])
    def test_invalid_mark_rejected(self, client, in_point, out_point):
        _, video = _ready_video(client)
        response = client.post(
            f"/api/videos/{video['id']}/marks",
            json={"in_point": in_point, "out_point": out_point},
        )
        assert response.status_code == 400

    def test_mark_on_unknown_clip(self, client):
        response = client.post("/api/videos/missing/marks", json={"in_point": 0, "out_point": 1})
        assert response.status_code == 404

    def test_export_plan(self, client):
        project, video = _ready_video(client)
        client.post(f"/api/videos/{video['id']}/marks", json={"in_point": 0.0, "out_point": 5.0})
        client.post(f"/api/videos/{video['id']}/marks", json={"in_point": 10.0, "out_point": 12.0})

        plan = client.get(f"/api/projects/{project['id']}/export-plan").json()

        assert plan["range_count"] == 2
        assert plan["mark_count"] == 2
        assert plan["clip_count"] == 1
        assert plan["total_duration"] == pytest.approx(7.0)
        assert plan["clips"][0]["clip_id"] == video["id"]

    def test_export_plan_whole_clip(self, client):
        project, _ = _ready_video(client)
        plan = client.get(f"/api/projects/{project['id']}/export-plan").json()
        assert plan["range_count"] == 1
        assert plan["total_duration"] == pytest.approx(20.0)

    def test_export_plan_unknown_project(self, client):
        assert client.get("/api/projects/missing/export-plan").status_code == 404

    def test_start_and_get_export(self, client):
        project, video = _ready_video(client)
        client.post(f"/api/videos/{video['id']}/marks", json={"in_point": 0.0, "out_point": 5.0})

        response = client.post(f"/api/projects/{project['id']}/export", json={"name": "final"})

        assert response.status_code == 201
        export = response.json()["export"]
        assert export["status"] == "ready"
        assert export["range_count"] == 1
        assert export["name"] == "final"

        fetched = client.get(f"/api/exports/{export['id']}").json()["export"]
        assert fetched["id"] == export["id"]

    def test_start_export_without_body(self, client):
        project = _create_project(client)
        response = client.post(f"/api/projects/{project['id']}/export")
        assert response.status_code == 201
        assert response.json()["export"]["name"] == "export"

    def test_export_unknown(self, client):
        assert client.get("/api/exports/missing").status_code == 404
        assert client.post("/api/projects/missing/export").status_code == 404


class TestDebugLogs:

    def test_logs_newest_first(self, client):
        project = _create_project(client)
        _upload(client, project["id"])
        _wait_idle(client)

        entries = client.get("/api/debug/logs").json()

        assert entries
        assert all({"timestamp", "type", "logger", "message"} <= set(e) for e in entries)
        assert entries[0]["timestamp"] >= entries[-1]["timestamp"]
        assert any("[UPLOAD]" in e["message"] for e in entries)

    def test_logs_limit(self, client):
        _create_project(client)
        assert len(client.get("/api/debug/logs?limit=1").json()) == 1
