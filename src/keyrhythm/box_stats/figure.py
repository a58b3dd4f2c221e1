"""Plotly box figure from precomputed group summaries.

Boxes are drawn from BatchSummary values (q1/median/q3 and the clipped
whiskers as fences), so the plot shows exactly what summarize() computed.
Returns a figure dict for ui.plotly.
"""

from __future__ import annotations

import plotly.graph_objects as go

from keyrhythm.box_stats.summary import BatchSummary, format_summary_text
from keyrhythm.utils.logging import get_logger

logger = get_logger(__name__)

# Fraction of the shared value range added above and below the whiskers.
Y_RANGE_PADDING = 0.05


def padded_range(lo: float, hi: float, padding: float = Y_RANGE_PADDING) -> list[float]:
    """Expand [lo, hi] by ``padding`` of its span (1.0 either side if the span is zero)."""
    span = hi - lo
    pad = span * padding if span > 0 else 1.0
    return [lo - pad, hi + pad]


def box_figure_dict(batch: BatchSummary, *, show_legend: bool = False) -> dict:
    """Create a box plot with one box per summarized group on a shared y scale.

    Groups listed in ``batch.errors`` keep their x position and get a
    "no data" annotation instead of a box.
    """
    summaries = batch.summaries
    fig = go.Figure()
    if summaries:
        fig.add_trace(go.Box(
            x=[s.group for s in summaries],
            q1=[s.q1 for s in summaries],
            median=[s.median for s in summaries],
            q3=[s.q3 for s in summaries],
            lowerfence=[s.min for s in summaries],
            upperfence=[s.max for s in summaries],
            name=batch.metric.value,
            hovertext=[format_summary_text(s).replace("\n", "<br>") for s in summaries],
            hoverinfo="text",
            line=dict(width=1.5),
            showlegend=show_legend,
        ))

    annotations = [
        dict(x=group, y=0.5, yref="paper", text="no data", showarrow=False)
        for group in batch.groups
        if group in batch.errors
    ]

    layout = dict(
        margin=dict(l=50, r=30, t=20, b=40),
        xaxis=dict(
            title=dict(text="Medication"),
            type="category",
            categoryorder="array",
            categoryarray=list(batch.groups),
        ),
        yaxis=dict(title=dict(text=f"{batch.metric.value} (ms)")),
        showlegend=show_legend,
        annotations=annotations,
        uirevision="keep",
    )
    value_range = batch.value_range()
    if value_range is not None:
        layout["yaxis"]["range"] = padded_range(*value_range)
    fig.update_layout(**layout)

    logger.debug(f"box figure: {len(summaries)} box(es), {len(annotations)} empty group(s)")
    return fig.to_dict()
