"""
Service layer: the operations exposed to the HTTP adapter and CLI.
"""

from .ingestion import IngestionService, IngestionError
from .clips import ClipService, validate_range
from .exports import ExportService, ExportNotFoundError

__all__ = [
    "IngestionService",
    "IngestionError",
    "ClipService",
    "validate_range",
    "ExportService",
    "ExportNotFoundError",
]
