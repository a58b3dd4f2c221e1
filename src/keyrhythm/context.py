"""RhythmContext: explicit wiring of store, aggregator and scheduler.

Created once the dataset is loaded. The aggregator reads the store snapshot
on every metric change; the scheduler replays one group's events on every
group selection. Nothing here is module-level state.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from keyrhythm.box_stats.summary import BatchSummary, summarize_groups
from keyrhythm.config import RhythmConfig
from keyrhythm.playback.scheduler import PlaybackScheduler
from keyrhythm.playback.session import PlaybackSession
from keyrhythm.playback.timers import TimerQueue
from keyrhythm.typing_events.events import Metric
from keyrhythm.typing_events.loader import load_dataset
from keyrhythm.typing_events.store import TypingEventStore
from keyrhythm.utils.logging import get_logger

logger = get_logger(__name__)


class RhythmContext:
    """Per-dataset state shared by the box plot and the replay.

    Attributes:
        store: Immutable event store (the dataset snapshot).
        scheduler: PlaybackScheduler driving the replay.
    """

    def __init__(
        self,
        store: TypingEventStore,
        *,
        scheduler: PlaybackScheduler,
        metric: Any = Metric.HOLD,
    ) -> None:
        self.store = store
        self.scheduler = scheduler
        self._metric = Metric.parse(metric)
        self._summary: Optional[BatchSummary] = None

    @classmethod
    def from_data_dir(
        cls,
        data_dir: Optional[Union[str, Path]] = None,
        *,
        timer_queue: TimerQueue,
        config: Optional[RhythmConfig] = None,
        skip_missing: bool = True,
    ) -> "RhythmContext":
        """Load the per-medication CSVs and build a context from config.

        Args:
            data_dir: CSV directory; defaults to the config's data_dir, then
                the bundled data/ directory.
            timer_queue: Scheduling primitive for the PlaybackScheduler.
            config: Settings; RhythmConfig defaults when None.
            skip_missing: Skip (and log) groups whose CSV is missing.
        """
        cfg_data = config.data if config is not None else None
        if data_dir is None and config is not None:
            data_dir = config.get_data_dir()
        store = load_dataset(data_dir, skip_missing=skip_missing)

        if cfg_data is None:
            scheduler = PlaybackScheduler(timer_queue)
            metric: Any = Metric.HOLD
        else:
            scheduler = PlaybackScheduler(
                timer_queue,
                tempo=cfg_data.default_tempo,
                settle_delay_ms=cfg_data.settle_delay_ms,
                release_delay_ms=cfg_data.release_delay_ms,
            )
            metric = cfg_data.default_metric
        return cls(store, scheduler=scheduler, metric=metric)

    @property
    def groups(self) -> tuple[str, ...]:
        return self.store.groups

    @property
    def metric(self) -> Metric:
        return self._metric

    @property
    def summary(self) -> Optional[BatchSummary]:
        """Most recent batch from select_metric(), if any."""
        return self._summary

    def select_metric(self, metric: Any) -> BatchSummary:
        """Switch the shared metric and recompute every group's summary.

        Raises:
            ValueError: If metric is not recognized (current metric kept).
        """
        metric = Metric.parse(metric)
        self._summary = summarize_groups(self.store, metric)
        self._metric = metric
        return self._summary

    def select_group(self, group: str, tempo: Optional[float] = None) -> PlaybackSession:
        """Replay ``group``'s events, superseding any running replay.

        Raises:
            KeyError: If group is unknown (running replay untouched).
            InvalidTempoError: If tempo is given and invalid (running replay untouched).
        """
        events = self.store.events_for(group)
        logger.info(f"select_group: {group!r} ({len(events)} event(s))")
        return self.scheduler.start_session(events, tempo=tempo)

    def set_tempo(self, tempo: float) -> None:
        self.scheduler.set_tempo(tempo)

    def stop(self) -> None:
        self.scheduler.stop()
