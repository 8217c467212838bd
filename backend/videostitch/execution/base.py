"""
Transcoder abstraction.

The clip pipeline depends on this interface only, so tests and alternate
backends can stand in for ffmpeg.

Contract for both operations:
- Return a TranscodeResult on success
- Raise TranscodeToolMissingError if the tool cannot be launched
- Raise TranscodeFailedError if this input cannot be converted
- Never leave a partial output file behind on failure
"""

from abc import ABC, abstractmethod
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class TranscodeResult(BaseModel):
    """Outcome of one successful transcoder invocation."""

    model_config = ConfigDict(extra="forbid")

    output_path: str
    command: List[str] = Field(default_factory=list)
    duration_seconds: float = 0.0


class Transcoder(ABC):
    """Produces a proxy video and a thumbnail image for one input file."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for logs."""
        pass

    @property
    @abstractmethod
    def available(self) -> bool:
        """True if the underlying tool can be launched."""
        pass

    @abstractmethod
    def make_proxy(self, input_path: str, output_path: str) -> TranscodeResult:
        """Produce a small, fast-to-decode MP4 rendition of the input."""
        pass

    @abstractmethod
    def make_thumbnail(
        self,
        input_path: str,
        output_path: str,
        seek_seconds: float = 1.0,
    ) -> TranscodeResult:
        """Extract a single scaled frame near seek_seconds."""
        pass
