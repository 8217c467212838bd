"""
Export plan aggregation.

Pure function over a clip snapshot. Used both for the pre-export summary
(no transcoding triggered) and to drive an export job.

Rules:
- Only included, READY clips contribute; all others are omitted
- A clip with marks contributes exactly its marks, in insertion order
- A clip without marks contributes one whole-clip range
"""

from typing import Iterable, List

from ..clips.models import Clip, ProcessingStatus
from .models import ClipExportRanges, ExportPlan, ExportRange


def is_exportable(clip: Clip) -> bool:
    return clip.included and clip.processing_status == ProcessingStatus.READY


def clip_ranges(clip: Clip) -> List[ExportRange]:
    """Exportable ranges for one clip (marks, or the whole clip)."""
    if clip.marks:
        return [
            ExportRange(in_point=mark.in_point, out_point=mark.out_point, mark_id=mark.id)
            for mark in clip.marks
        ]
    return [ExportRange(in_point=0.0, out_point=clip.known_duration)]


def compute_export_plan(clips: Iterable[Clip]) -> ExportPlan:
    """
    Compute the export plan for clips in the given order.

    Args:
        clips: Clips (with marks populated), already in export order

    Returns:
        ExportPlan with per-clip ranges and summary statistics
    """
    per_clip: List[ClipExportRanges] = []
    range_count = 0
    mark_count = 0
    total_duration = 0.0

    for clip in clips:
        if not is_exportable(clip):
            continue

        ranges = clip_ranges(clip)
        per_clip.append(ClipExportRanges(clip=clip, ranges=ranges))

        range_count += len(ranges)
        mark_count += len(clip.marks)
        total_duration += sum(r.duration for r in ranges)

    return ExportPlan(
        range_count=range_count,
        total_duration=total_duration,
        mark_count=mark_count,
        clip_count=len(per_clip),
        per_clip=per_clip,
    )
