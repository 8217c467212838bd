"""
Clip processing pipeline: probe, proxy, thumbnail, final state.
"""

from .processor import ClipProcessor, Prober, thumbnail_seek, THUMBNAIL_SEEK_SECONDS

__all__ = [
    "ClipProcessor",
    "Prober",
    "thumbnail_seek",
    "THUMBNAIL_SEEK_SECONDS",
]
