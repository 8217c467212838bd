"""
Clip ordering: best-timestamp precedence and selectable stable sorts.
"""

from .ranking import SortMode, best_timestamp, parse_sort_mode, sort_clips

__all__ = [
    "SortMode",
    "best_timestamp",
    "parse_sort_mode",
    "sort_clips",
]
