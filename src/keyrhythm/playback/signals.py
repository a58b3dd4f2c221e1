"""Signals the playback scheduler emits to its renderer."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from keyrhythm.typing_events.events import TypingEvent


class SignalKind(Enum):
    PRESS_START = "press_start"
    PRESS_END = "press_end"
    EVENT_INFO = "event_info"
    SESSION_ENDED = "session_ended"


@dataclass(frozen=True)
class PlaybackSignal:
    """One observable step of a playback session.

    ``event`` is the keystroke the step belongs to; it is None only for
    SESSION_ENDED.
    """
    kind: SignalKind
    token: int
    index: int
    event: Optional[TypingEvent] = None

    @property
    def hold(self) -> float:
        return self.event.hold if self.event is not None else math.nan

    @property
    def flight(self) -> float:
        return self.event.flight if self.event is not None else math.nan


OnPlaybackSignal = Callable[[PlaybackSignal], None]


def format_event_info(event: TypingEvent) -> str:
    """Info text shown after each release, e.g. 'Hold: 100.0 ms\\nFlight: 50.0 ms'."""
    return f"Hold: {event.hold:.1f} ms\nFlight: {event.flight:.1f} ms"
