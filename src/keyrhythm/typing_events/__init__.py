"""Typing event records, the per-group store and CSV ingestion."""

from keyrhythm.typing_events.events import BOX_PLOT_METRICS, Metric, TypingEvent
from keyrhythm.typing_events.loader import (
    MEDICATION_GROUPS,
    MedicationGroup,
    load_dataset,
    load_group_csv,
)
from keyrhythm.typing_events.store import TypingEventStore

__all__ = [
    "BOX_PLOT_METRICS",
    "MEDICATION_GROUPS",
    "MedicationGroup",
    "Metric",
    "TypingEvent",
    "TypingEventStore",
    "load_dataset",
    "load_group_csv",
]
