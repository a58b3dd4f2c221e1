"""Box-plot statistics per group and their Plotly rendering."""

from keyrhythm.box_stats.figure import box_figure_dict
from keyrhythm.box_stats.summary import (
    BatchSummary,
    EmptySampleError,
    GroupSummary,
    format_summary_text,
    summarize,
    summarize_groups,
)

__all__ = [
    "BatchSummary",
    "EmptySampleError",
    "GroupSummary",
    "box_figure_dict",
    "format_summary_text",
    "summarize",
    "summarize_groups",
]
