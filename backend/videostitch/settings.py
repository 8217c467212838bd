"""
Application settings.

Read once from environment variables at startup and passed explicitly to
everything that needs them. Nothing below the app factory reads the
environment itself.
"""

import os
from pathlib import Path
from typing import List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ENV_PREFIX = "VIDEOSTITCH_"

ENV_DATABASE_PATH = "VIDEOSTITCH_DATABASE_PATH"
ENV_DATA_DIR = "VIDEOSTITCH_DATA_DIR"
ENV_ENVIRONMENT = "VIDEOSTITCH_ENV"
ENV_FFMPEG_PATH = "VIDEOSTITCH_FFMPEG_PATH"
ENV_FFPROBE_PATH = "VIDEOSTITCH_FFPROBE_PATH"
ENV_PROBE_TIMEOUT = "VIDEOSTITCH_PROBE_TIMEOUT"
ENV_TRANSCODE_TIMEOUT = "VIDEOSTITCH_TRANSCODE_TIMEOUT"
ENV_MAX_WORKERS = "VIDEOSTITCH_MAX_WORKERS"
ENV_LOG_LEVEL = "VIDEOSTITCH_LOG_LEVEL"
ENV_CORS_ORIGINS = "VIDEOSTITCH_CORS_ORIGINS"
ENV_PORT = "PORT"

DEFAULT_DATA_DIR = "./data"
PRODUCTION_DATA_DIR = "/tmp"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class AppSettings(BaseModel):
    """Runtime configuration for the backend."""

    model_config = ConfigDict(extra="forbid")

    database_path: Optional[str] = None  # None -> in-memory store
    data_dir: str = DEFAULT_DATA_DIR
    environment: str = "development"
    ffmpeg_path: Optional[str] = None  # None -> auto-detect
    ffprobe_path: Optional[str] = None
    probe_timeout_seconds: float = Field(default=30.0, gt=0)
    transcode_timeout_seconds: float = Field(default=1800.0, gt=0)
    max_workers: int = Field(default=2, ge=1)
    log_level: str = "INFO"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    port: int = Field(default=3333, ge=1, le=65535)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppSettings":
        """
        Build settings from environment variables.

        Unset or empty variables keep their defaults. Invalid values raise
        pydantic.ValidationError.
        """
        if environ is None:
            environ = os.environ

        def read(name: str) -> Optional[str]:
            value = environ.get(name, "").strip()
            return value or None

        values = {}
        environment = read(ENV_ENVIRONMENT)
        if environment:
            values["environment"] = environment

        data_dir = read(ENV_DATA_DIR)
        if data_dir:
            values["data_dir"] = data_dir
        elif environment == "production":
            values["data_dir"] = PRODUCTION_DATA_DIR

        for env_name, field in (
            (ENV_DATABASE_PATH, "database_path"),
            (ENV_FFMPEG_PATH, "ffmpeg_path"),
            (ENV_FFPROBE_PATH, "ffprobe_path"),
            (ENV_PROBE_TIMEOUT, "probe_timeout_seconds"),
            (ENV_TRANSCODE_TIMEOUT, "transcode_timeout_seconds"),
            (ENV_MAX_WORKERS, "max_workers"),
            (ENV_LOG_LEVEL, "log_level"),
            (ENV_PORT, "port"),
        ):
            value = read(env_name)
            if value is not None:
                values[field] = value

        cors = read(ENV_CORS_ORIGINS)
        if cors:
            values["cors_origins"] = [o.strip() for o in cors.split(",") if o.strip()]

        return cls(**values)

    @property
    def storage_mode(self) -> str:
        return "database" if self.database_path else "local"

    @property
    def upload_dir(self) -> Path:
        return Path(self.data_dir) / "uploads"

    @property
    def proxy_dir(self) -> Path:
        return Path(self.data_dir) / "proxies"

    @property
    def thumbnail_dir(self) -> Path:
        return Path(self.data_dir) / "thumbnails"

    @property
    def export_dir(self) -> Path:
        return Path(self.data_dir) / "exports"

    def ensure_directories(self) -> None:
        for directory in (self.upload_dir, self.proxy_dir, self.thumbnail_dir, self.export_dir):
            directory.mkdir(parents=True, exist_ok=True)
