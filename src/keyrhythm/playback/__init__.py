"""Sequential keystroke replay."""

from keyrhythm.playback.scheduler import (
    DEFAULT_RELEASE_DELAY_MS,
    DEFAULT_SETTLE_DELAY_MS,
    InvalidTempoError,
    PlaybackScheduler,
    validate_tempo,
)
from keyrhythm.playback.session import PlaybackSession, SessionHandle, SessionState
from keyrhythm.playback.signals import (
    OnPlaybackSignal,
    PlaybackSignal,
    SignalKind,
    format_event_info,
)
from keyrhythm.playback.timers import AsyncioTimerQueue, TimerHandle, TimerQueue

__all__ = [
    "AsyncioTimerQueue",
    "DEFAULT_RELEASE_DELAY_MS",
    "DEFAULT_SETTLE_DELAY_MS",
    "InvalidTempoError",
    "OnPlaybackSignal",
    "PlaybackScheduler",
    "PlaybackSession",
    "PlaybackSignal",
    "SessionHandle",
    "SessionState",
    "SignalKind",
    "TimerHandle",
    "TimerQueue",
    "format_event_info",
    "validate_tempo",
]
