"""
Shared test doubles.

No test needs ffmpeg or ffprobe: the pipeline is exercised with the fake
transcoder and prober below, and subprocess calls are mocked elsewhere.
"""

import threading
from pathlib import Path
from typing import List, Optional

import pytest

from videostitch.clips.models import Clip, Project
from videostitch.execution.base import Transcoder, TranscodeResult
from videostitch.execution.errors import TranscodeFailedError, TranscodeToolMissingError
from videostitch.execution.failure_types import TranscodeFailureType
from videostitch.execution.paths import ArtifactLayout
from videostitch.metadata.models import ClipMetadata
from videostitch.persistence.memory import InMemoryClipStore


class FakeTranscoder(Transcoder):
    """
    Writes small placeholder files instead of running ffmpeg.

    fail_proxy / fail_thumbnail: raise TranscodeFailedError for that step
    missing_tool: raise TranscodeToolMissingError for every call
    gate: optional Event the proxy step waits on (for in-flight tests)
    """

    def __init__(
        self,
        fail_proxy: bool = False,
        fail_thumbnail: bool = False,
        missing_tool: bool = False,
        gate: Optional[threading.Event] = None,
    ):
        self.fail_proxy = fail_proxy
        self.fail_thumbnail = fail_thumbnail
        self.missing_tool = missing_tool
        self.gate = gate
        self.calls: List[tuple] = []
        self._calls_lock = threading.Lock()

    @property
    def name(self) -> str:
        return "Fake"

    @property
    def available(self) -> bool:
        return not self.missing_tool

    def _record(self, *call) -> None:
        with self._calls_lock:
            self.calls.append(call)

    def make_proxy(self, input_path: str, output_path: str) -> TranscodeResult:
        self._record("proxy", input_path, output_path)
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.missing_tool:
            raise TranscodeToolMissingError("ffmpeg", "not configured and not on PATH")
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        Path(output_path).write_bytes(b"proxy")
        if self.fail_proxy:
            Path(output_path).unlink()
            raise TranscodeFailedError(
                "proxy",
                input_path,
                exit_code=1,
                stderr_tail="Invalid data found when processing input",
                failure_type=TranscodeFailureType.INVALID_INPUT,
            )
        return TranscodeResult(output_path=output_path, command=["fake", "proxy"])

    def make_thumbnail(
        self,
        input_path: str,
        output_path: str,
        seek_seconds: float = 1.0,
    ) -> TranscodeResult:
        self._record("thumbnail", input_path, output_path, seek_seconds)
        if self.missing_tool:
            raise TranscodeToolMissingError("ffmpeg", "not configured and not on PATH")
        if self.fail_thumbnail:
            raise TranscodeFailedError(
                "thumbnail",
                input_path,
                exit_code=1,
                stderr_tail="Output file is empty, nothing was encoded",
                failure_type=TranscodeFailureType.ENCODE_FAILED,
            )
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        Path(output_path).write_bytes(b"jpeg")
        return TranscodeResult(output_path=output_path, command=["fake", "thumbnail"])


class FakeProber:
    """Returns fixed metadata (or None) and records probed paths."""

    def __init__(self, metadata: Optional[ClipMetadata] = None):
        self.metadata = metadata
        self.paths: List[str] = []

    def __call__(self, filepath: str) -> Optional[ClipMetadata]:
        self.paths.append(filepath)
        return self.metadata


@pytest.fixture
def store():
    return InMemoryClipStore()


@pytest.fixture
def layout(tmp_path):
    artifact_layout = ArtifactLayout(
        proxy_dir=tmp_path / "proxies",
        thumbnail_dir=tmp_path / "thumbnails",
    )
    artifact_layout.ensure_directories()
    return artifact_layout


@pytest.fixture
def project(store):
    return store.create_project(Project(name="Wedding"))


def build_clip(project_id: str, original_filename: str = "clip.mp4", **fields) -> Clip:
    """Clip with sensible defaults for tests."""
    fields.setdefault("original_path", f"/uploads/{original_filename}")
    return Clip(project_id=project_id, original_filename=original_filename, **fields)


@pytest.fixture
def make_clip():
    return build_clip
