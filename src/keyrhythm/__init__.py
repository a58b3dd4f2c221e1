"""
keyrhythm: per-medication keystroke timing statistics and rhythm replay.

This package provides:
- TypingEventStore and CSV loading for per-group keystroke records
- summarize / summarize_groups: box-plot statistics per group
- PlaybackScheduler: cancellable, tempo-scaled replay of a group's keystrokes
- RhythmContext: wiring of both for a loaded dataset
- Logging utilities for library and application use

For logging configuration in standalone scripts:
    ```python
    from keyrhythm.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```
"""

import logging

from keyrhythm.box_stats import (
    BatchSummary,
    EmptySampleError,
    GroupSummary,
    summarize,
    summarize_groups,
)
from keyrhythm.context import RhythmContext
from keyrhythm.errors import KeyRhythmError
from keyrhythm.playback import (
    AsyncioTimerQueue,
    InvalidTempoError,
    PlaybackScheduler,
    PlaybackSession,
    PlaybackSignal,
    SignalKind,
)
from keyrhythm.typing_events import Metric, TypingEvent, TypingEventStore, load_dataset
from keyrhythm.utils.logging import configure_logging, get_logger

# NullHandler so library logs don't reach root unless an application
# calls configure_logging().
_logger = logging.getLogger("keyrhythm")
if not _logger.handlers:
    _logger.addHandler(logging.NullHandler())

__all__ = [
    "AsyncioTimerQueue",
    "BatchSummary",
    "EmptySampleError",
    "GroupSummary",
    "InvalidTempoError",
    "KeyRhythmError",
    "Metric",
    "PlaybackScheduler",
    "PlaybackSession",
    "PlaybackSignal",
    "RhythmContext",
    "SignalKind",
    "TypingEvent",
    "TypingEventStore",
    "configure_logging",
    "get_logger",
    "load_dataset",
    "summarize",
    "summarize_groups",
]

__version__ = "0.1.0"
