"""
Metadata data models.

Technical metadata comes from ffprobe; source classification comes from
the uploaded filename. Unknown values are explicit (None or 0), never guessed.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class SourceCategory(str, Enum):
    """Device family a clip was most likely recorded on."""

    ANDROID = "android"
    IPHONE = "iphone"
    GOPRO = "gopro"
    DJI = "dji"
    WHATSAPP = "whatsapp"
    OTHER = "other"


class ClipMetadata(BaseModel):
    """
    Technical metadata for one media file.

    duration/width/height are 0 when ffprobe could not report them.
    creation_time is the container's creation_time tag, if any.
    """

    model_config = ConfigDict(extra="forbid")

    duration: float = 0.0
    width: int = 0
    height: int = 0
    creation_time: Optional[datetime] = None

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, v: float) -> float:
        """Duration is never negative."""
        if v < 0:
            raise ValueError("Duration cannot be negative")
        return v

    @field_validator("width", "height")
    @classmethod
    def validate_dimensions(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Dimensions cannot be negative")
        return v
