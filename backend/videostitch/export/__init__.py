"""
Export planning: which ranges of which clips an export would render.

The render itself is not implemented here; export jobs record the plan
summary and complete.
"""

from .models import (
    ExportRange,
    ClipExportRanges,
    ExportPlan,
    ExportStatus,
    ExportJob,
)
from .plan import compute_export_plan, clip_ranges, is_exportable

__all__ = [
    "ExportRange",
    "ClipExportRanges",
    "ExportPlan",
    "ExportStatus",
    "ExportJob",
    "compute_export_plan",
    "clip_ranges",
    "is_exportable",
]
