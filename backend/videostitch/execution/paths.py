"""
Artifact path layout.

Proxy and thumbnail locations are namespaced by clip id, so two pipelines
never write the same path and no locking is needed on the filesystem.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

PROXY_URL_PREFIX = "/proxies"
THUMBNAIL_URL_PREFIX = "/thumbnails"
PROXY_EXTENSION = ".mp4"
THUMBNAIL_EXTENSION = ".jpg"


@dataclass(frozen=True)
class ArtifactLayout:
    """Where a clip's derived artifacts live on disk and how they are served."""

    proxy_dir: Path
    thumbnail_dir: Path

    def proxy_path(self, clip_id: str) -> Path:
        return self.proxy_dir / f"{clip_id}{PROXY_EXTENSION}"

    def thumbnail_path(self, clip_id: str) -> Path:
        return self.thumbnail_dir / f"{clip_id}{THUMBNAIL_EXTENSION}"

    def proxy_url(self, clip_id: str) -> str:
        return f"{PROXY_URL_PREFIX}/{clip_id}{PROXY_EXTENSION}"

    def thumbnail_url(self, clip_id: str) -> str:
        return f"{THUMBNAIL_URL_PREFIX}/{clip_id}{THUMBNAIL_EXTENSION}"

    def ensure_directories(self) -> None:
        self.proxy_dir.mkdir(parents=True, exist_ok=True)
        self.thumbnail_dir.mkdir(parents=True, exist_ok=True)

    def discard(self, clip_id: str) -> int:
        """
        Remove both artifacts for a clip.

        Safe to call when nothing was written.

        Returns:
            Number of files removed
        """
        removed = 0
        for path in (self.proxy_path(clip_id), self.thumbnail_path(clip_id)):
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Could not remove artifact {path}: {e}")
        return removed
