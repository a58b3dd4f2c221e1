"""PlaybackSession: the per-replay state the scheduler advances."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

from keyrhythm.playback.timers import TimerHandle
from keyrhythm.typing_events.events import TypingEvent


class SessionState(Enum):
    IDLE = "idle"
    PRESSING = "pressing"
    RELEASED = "released"
    ENDED = "ended"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset({SessionState.ENDED, SessionState.CANCELLED})


class PlaybackSession:
    """One replay of a group's events; also the handle returned to callers.

    Attributes:
        token: Identity compared against the scheduler's live token.
        events: Snapshot of the events taken at session start.
        tempo: Tempo at session start. Delays use the scheduler's tempo at
            the moment each delay is computed.
        cursor: Index of the event being played (or next to play).
        state: Current SessionState.
    """

    def __init__(self, token: int, events: Iterable[TypingEvent], tempo: float) -> None:
        self.token = token
        self.events: tuple[TypingEvent, ...] = tuple(events)
        self.tempo = tempo
        self.cursor = 0
        self.state = SessionState.IDLE
        self.pending: Optional[TimerHandle] = None

    @property
    def cancelled(self) -> bool:
        return self.state is SessionState.CANCELLED

    @property
    def done(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def current_event(self) -> Optional[TypingEvent]:
        if 0 <= self.cursor < len(self.events):
            return self.events[self.cursor]
        return None

    def __repr__(self) -> str:
        return (
            f"PlaybackSession(token={self.token}, state={self.state.value}, "
            f"cursor={self.cursor}/{len(self.events)})"
        )


# Callers hold sessions only as handles for cancel().
SessionHandle = PlaybackSession
