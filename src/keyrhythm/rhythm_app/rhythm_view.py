"""Rhythm view: NiceGUI rendering of box-plot summaries and keystroke replay.

The view owns no statistics and no timing. Metric changes go to
RhythmContext.select_metric() and are drawn as a Plotly box figure;
medication buttons go to RhythmContext.select_group() and the scheduler's
signals animate a single "key" button and an info label.
"""

from __future__ import annotations

import math
from functools import partial
from typing import Any, Optional

from nicegui import ui

from keyrhythm.box_stats.figure import box_figure_dict
from keyrhythm.box_stats.summary import BatchSummary
from keyrhythm.config import RhythmConfig, RhythmConfigData
from keyrhythm.context import RhythmContext
from keyrhythm.playback.scheduler import InvalidTempoError
from keyrhythm.playback.signals import PlaybackSignal, SignalKind, format_event_info
from keyrhythm.typing_events.events import BOX_PLOT_METRICS, Metric
from keyrhythm.utils.logging import get_logger

logger = get_logger(__name__)

# Scale of the key button while "held".
PRESSED_SCALE = 0.8
ACTIVE_GROUP_CLASS = "bg-primary text-white"


def format_tempo(tempo: float) -> str:
    return f"{tempo:g}×"


class RhythmView:
    """Box plot + replay controls bound to one RhythmContext."""

    def __init__(self, context: RhythmContext, *, config: Optional[RhythmConfig] = None) -> None:
        self._ctx = context
        self._config = config
        self._cfg = config.data if config is not None else RhythmConfigData()
        self._active_group: Optional[str] = None

        self._metric_select: Any = None
        self._plot: Any = None
        self._empty_label: Any = None
        self._group_buttons: dict[str, Any] = {}
        self._tempo_slider: Any = None
        self._tempo_label: Any = None
        self._key: Any = None
        self._info_label: Any = None
        self._status_label: Any = None

        self._ctx.scheduler.on_signal(self._on_signal)

    @property
    def active_group(self) -> Optional[str]:
        return self._active_group

    def build(self) -> None:
        """Build the UI inside the current NiceGUI container."""
        batch = self._ctx.select_metric(self._ctx.metric)

        with ui.card().classes("w-full"):
            with ui.row().classes("w-full items-center gap-4"):
                ui.label("Keystroke timing by medication").classes("text-lg")
                self._metric_select = ui.select(
                    [m.value for m in BOX_PLOT_METRICS],
                    value=self._ctx.metric.value,
                    label="Metric",
                    on_change=lambda e: self._on_metric_change(str(e.value)),
                )
            self._plot = ui.plotly(box_figure_dict(batch)).classes("w-full h-96")
            self._empty_label = ui.label("").classes("text-sm text-gray-500")
            self._show_empty_groups(batch)

        with ui.card().classes("w-full"):
            with ui.row().classes("w-full items-center gap-2"):
                for group in self._ctx.groups:
                    self._group_buttons[group] = ui.button(
                        group, on_click=partial(self._on_group_click, group)
                    ).props("outline")
                ui.button("Stop", on_click=self._on_stop_click).props("flat")

            with ui.row().classes("w-full items-center gap-2"):
                ui.label("Tempo:").classes("w-16")
                self._tempo_slider = ui.slider(
                    min=self._cfg.tempo_min,
                    max=self._cfg.tempo_max,
                    step=self._cfg.tempo_step,
                    value=self._ctx.scheduler.tempo,
                    on_change=lambda e: self._on_tempo_change(e.value),
                ).classes("flex-1")
                self._tempo_label = ui.label(format_tempo(self._ctx.scheduler.tempo)).classes("w-16")

            with ui.column().classes("w-full items-center gap-2"):
                self._key = ui.button("").classes("w-32 h-32 rounded-full").style("transform: scale(1)")
                self._info_label = ui.label("").classes("whitespace-pre-line")
                self._status_label = ui.label("Pick a medication to replay its typing rhythm.").classes(
                    "text-sm text-gray-500"
                )

    # ------------- settings -------------

    def _save_config(
        self,
        *,
        default_metric: Optional[Metric] = None,
        default_tempo: Optional[float] = None,
    ) -> None:
        """Persist the user's metric/tempo choice, if the view has a config manager."""
        if self._config is None:
            return
        if default_metric is not None:
            self._config.set_default_metric(default_metric)
        if default_tempo is not None:
            self._config.set_default_tempo(default_tempo)
        try:
            self._config.save()
        except OSError as e:
            ui.notify(f"Could not save settings: {e}", type="negative")

    # ------------- box plot -------------

    def _show_empty_groups(self, batch: BatchSummary) -> None:
        if self._empty_label is None:
            return
        if batch.errors:
            self._empty_label.text = "; ".join(f"No data for group {g}" for g in batch.errors)
        else:
            self._empty_label.text = ""

    def _on_metric_change(self, metric: str) -> None:
        try:
            batch = self._ctx.select_metric(metric)
        except ValueError as e:
            logger.warning(f"metric change rejected: {e}")
            ui.notify(str(e), type="warning")
            return
        if self._plot is not None:
            self._plot.update_figure(box_figure_dict(batch))
        self._show_empty_groups(batch)
        if self._ctx.metric in BOX_PLOT_METRICS:
            self._save_config(default_metric=self._ctx.metric)

    # ------------- replay controls -------------

    def _set_active_group(self, group: Optional[str]) -> None:
        for name, button in self._group_buttons.items():
            if name == group:
                button.classes(add=ACTIVE_GROUP_CLASS)
            else:
                button.classes(remove=ACTIVE_GROUP_CLASS)
        self._active_group = group

    def _on_group_click(self, group: str) -> None:
        try:
            self._ctx.select_group(group)
        except (KeyError, InvalidTempoError) as e:
            logger.warning(f"replay of {group!r} rejected: {e}")
            ui.notify(str(e), type="warning")
            return
        self._set_active_group(group)
        if self._status_label is not None:
            self._status_label.text = f"Replaying {group}"

    def _on_stop_click(self) -> None:
        self._ctx.stop()
        self._set_active_group(None)
        self._reset_key()
        if self._status_label is not None:
            self._status_label.text = "Stopped"

    def _on_tempo_change(self, value: Any) -> None:
        try:
            self._ctx.set_tempo(value)
        except InvalidTempoError as e:
            ui.notify(str(e), type="warning")
            if self._tempo_slider is not None:
                self._tempo_slider.value = self._ctx.scheduler.tempo
            return
        if self._tempo_label is not None:
            self._tempo_label.text = format_tempo(self._ctx.scheduler.tempo)
        self._save_config(default_tempo=self._ctx.scheduler.tempo)

    # ------------- playback rendering -------------

    def _reset_key(self) -> None:
        if self._key is not None:
            self._key.style("transform: scale(1); transition: none")

    def _on_signal(self, signal: PlaybackSignal) -> None:
        tempo = self._ctx.scheduler.tempo
        if signal.kind is SignalKind.PRESS_START:
            duration = max(0.0, signal.hold / tempo) if math.isfinite(signal.hold) else 0.0
            if self._key is not None:
                self._key.style(f"transform: scale({PRESSED_SCALE}); transition: transform {duration:.0f}ms")
        elif signal.kind is SignalKind.PRESS_END:
            if self._key is not None:
                self._key.style(
                    f"transform: scale(1); transition: transform {self._ctx.scheduler.release_delay_ms:.0f}ms"
                )
        elif signal.kind is SignalKind.EVENT_INFO:
            if self._info_label is not None and signal.event is not None:
                self._info_label.text = format_event_info(signal.event)
        elif signal.kind is SignalKind.SESSION_ENDED:
            finished = self._active_group or ""
            self._set_active_group(None)
            if self._status_label is not None:
                self._status_label.text = f"Finished {finished}".strip()
