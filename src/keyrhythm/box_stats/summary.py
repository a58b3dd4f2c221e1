"""Box-plot statistics per group - pure numpy/pandas.

Quartiles use linear interpolation between order statistics
(index = p * (n - 1)), whiskers follow the 1.5 x IQR rule and are clipped
to the observed data range. Non-finite values are dropped and counted;
a group with nothing left raises EmptySampleError.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from keyrhythm.errors import KeyRhythmError
from keyrhythm.typing_events.events import Metric, TypingEvent
from keyrhythm.typing_events.store import TypingEventStore
from keyrhythm.utils.logging import get_logger

logger = get_logger(__name__)

# Whisker reach in units of IQR.
IQR_WHISKER_FACTOR = 1.5

# Group label used when summarize() gets no records and no explicit group.
UNKNOWN_GROUP = "<unknown>"

# Columns for BatchSummary.to_frame().
STATS_COLUMNS = ["group", "metric", "count", "excluded", "min", "q1", "median", "q3", "max", "iqr"]


class EmptySampleError(KeyRhythmError, ValueError):
    """A group has no finite values for the requested metric."""

    def __init__(self, group: str, metric: Metric) -> None:
        self.group = group
        self.metric = metric
        super().__init__(f"No valid {metric.value} values for group {group!r}")


@dataclass(frozen=True)
class GroupSummary:
    """Box-plot summary of one metric within one group.

    Attributes:
        min: Lower whisker, max(actual min, q1 - 1.5 * iqr).
        max: Upper whisker, min(actual max, q3 + 1.5 * iqr).
        count: Number of finite values used.
        excluded: Number of non-finite values dropped.
    """
    group: str
    metric: Metric
    q1: float
    median: float
    q3: float
    iqr: float
    min: float
    max: float
    count: int
    excluded: int = 0

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["metric"] = self.metric.value
        return d


def _metric_values(records: Iterable[TypingEvent], metric: Metric) -> np.ndarray:
    return np.asarray([metric.value_of(r) for r in records], dtype=float)


def summarize(
    records: Sequence[TypingEvent],
    metric: Any,
    *,
    group: Optional[str] = None,
) -> GroupSummary:
    """Summarize ``metric`` over one group's records.

    Args:
        records: Records of a single group (order does not matter).
        metric: A Metric, or a name Metric.parse() accepts.
        group: Label for the summary; defaults to the first record's group.

    Returns:
        GroupSummary with quartiles and clipped whiskers.

    Raises:
        EmptySampleError: If no finite values remain after filtering.
        ValueError: If metric is not recognized.
    """
    metric = Metric.parse(metric)
    records = list(records)
    if group is None:
        group = records[0].group if records else UNKNOWN_GROUP

    values = _metric_values(records, metric)
    finite = np.isfinite(values)
    excluded = int(values.size - np.count_nonzero(finite))
    if excluded:
        logger.warning(f"group {group!r}: excluded {excluded} non-finite {metric.value} value(s)")

    sample = np.sort(values[finite])
    if sample.size == 0:
        raise EmptySampleError(group, metric)

    q1, median, q3 = (float(v) for v in np.quantile(sample, [0.25, 0.5, 0.75], method="linear"))
    iqr = q3 - q1
    lower = max(float(sample[0]), q1 - IQR_WHISKER_FACTOR * iqr)
    upper = min(float(sample[-1]), q3 + IQR_WHISKER_FACTOR * iqr)

    return GroupSummary(
        group=group,
        metric=metric,
        q1=q1,
        median=median,
        q3=q3,
        iqr=iqr,
        min=lower,
        max=upper,
        count=int(sample.size),
        excluded=excluded,
    )


@dataclass
class BatchSummary:
    """Summaries of every group for one metric, computed together.

    Groups that raised EmptySampleError are listed in ``errors`` instead of
    ``summaries``; ``groups`` keeps the full requested order so renderers
    can keep empty groups positioned on the shared axis.
    """
    metric: Metric
    groups: list[str]
    summaries: list[GroupSummary] = field(default_factory=list)
    errors: dict[str, EmptySampleError] = field(default_factory=dict)

    def get(self, group: str) -> Optional[GroupSummary]:
        for s in self.summaries:
            if s.group == group:
                return s
        return None

    def value_range(self) -> Optional[tuple[float, float]]:
        """Shared scale domain: (lowest whisker, highest whisker), or None."""
        if not self.summaries:
            return None
        return (
            min(s.min for s in self.summaries),
            max(s.max for s in self.summaries),
        )

    def to_frame(self) -> pd.DataFrame:
        """One row per summarized group (errored groups omitted)."""
        return pd.DataFrame([s.to_dict() for s in self.summaries], columns=STATS_COLUMNS)


def summarize_groups(
    store: TypingEventStore,
    metric: Any,
    *,
    groups: Optional[Iterable[str]] = None,
) -> BatchSummary:
    """Recompute the summary of every group for ``metric`` in one batch.

    An EmptySampleError for one group is recorded and the rest continue.

    Raises:
        KeyError: If ``groups`` names a group the store does not have.
        ValueError: If metric is not recognized.
    """
    metric = Metric.parse(metric)
    group_list = list(groups) if groups is not None else list(store.groups)
    batch = BatchSummary(metric=metric, groups=group_list)
    for group in group_list:
        try:
            batch.summaries.append(summarize(store.events_for(group), metric, group=group))
        except EmptySampleError as e:
            logger.warning(str(e))
            batch.errors[group] = e
    logger.info(
        f"summarize_groups: metric={metric.value} summarized={len(batch.summaries)} "
        f"empty={list(batch.errors)}"
    )
    return batch


def format_summary_text(summary: GroupSummary) -> str:
    """Tooltip text for one box: group, metric and the five whisker/box values."""
    return "\n".join([
        summary.group,
        f"{summary.metric.value} stats:",
        f"Min: {summary.min:.1f}",
        f"Q1:  {summary.q1:.1f}",
        f"Med: {summary.median:.1f}",
        f"Q3:  {summary.q3:.1f}",
        f"Max: {summary.max:.1f}",
    ])
