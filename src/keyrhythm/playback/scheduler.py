"""Sequential, cancellable, tempo-scaled replay of keystroke timings.

Each session walks its events through a small state machine:

    IDLE --settle--> PRESSING --hold/tempo--> RELEASED --release--> (info)
         --flight/tempo--> PRESSING (next event) | ENDED

Any state can move to CANCELLED. Every step is a continuation scheduled on
a TimerQueue. Before acting, a continuation compares its session token with
the scheduler's live token, so continuations of a superseded session do
nothing even if their timer still fires. Settle and release delays are
fixed; hold and flight delays are divided by the tempo read at the moment
the delay is computed (a tempo change never stretches a wait already in
progress).
"""

from __future__ import annotations

import itertools
import math
from typing import Callable, Iterable, Optional

from keyrhythm.errors import KeyRhythmError
from keyrhythm.playback.session import PlaybackSession, SessionState
from keyrhythm.playback.signals import OnPlaybackSignal, PlaybackSignal, SignalKind
from keyrhythm.playback.timers import TimerQueue
from keyrhythm.typing_events.events import TypingEvent
from keyrhythm.utils.logging import get_logger

logger = get_logger(__name__)

# Grace period before the first press so the previous session's visuals can reset.
DEFAULT_SETTLE_DELAY_MS = 100.0
# Visual release time between PRESS_END and EVENT_INFO.
DEFAULT_RELEASE_DELAY_MS = 50.0

_Step = Callable[[PlaybackSession], None]


class InvalidTempoError(KeyRhythmError, ValueError):
    """Tempo is not a finite number greater than zero."""

    def __init__(self, tempo: object) -> None:
        self.tempo = tempo
        super().__init__(f"Tempo must be a finite number > 0, got {tempo!r}")


def validate_tempo(tempo: object) -> float:
    """Return ``tempo`` as float or raise InvalidTempoError."""
    try:
        value = float(tempo)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise InvalidTempoError(tempo) from None
    if not math.isfinite(value) or value <= 0:
        raise InvalidTempoError(tempo)
    return value


def _validate_delay(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"{name} must be a finite number >= 0, got {value!r}")
    return value


class PlaybackScheduler:
    """Drives at most one live PlaybackSession at a time.

    Signals are delivered to handlers registered with on_signal(); a failing
    handler is logged and does not interrupt the session.
    """

    def __init__(
        self,
        timer_queue: TimerQueue,
        *,
        tempo: float = 1.0,
        settle_delay_ms: float = DEFAULT_SETTLE_DELAY_MS,
        release_delay_ms: float = DEFAULT_RELEASE_DELAY_MS,
        on_signal: Optional[OnPlaybackSignal] = None,
    ) -> None:
        self._timers = timer_queue
        self._tempo = validate_tempo(tempo)
        self.settle_delay_ms = _validate_delay("settle_delay_ms", settle_delay_ms)
        self.release_delay_ms = _validate_delay("release_delay_ms", release_delay_ms)

        self._tokens = itertools.count(1)
        self._live_token: Optional[int] = None
        self._live: Optional[PlaybackSession] = None

        self._signal_handlers: list[OnPlaybackSignal] = []
        if on_signal is not None:
            self._signal_handlers.append(on_signal)

    # ------------- tempo -------------

    @property
    def tempo(self) -> float:
        return self._tempo

    @tempo.setter
    def tempo(self, value: float) -> None:
        self.set_tempo(value)

    def set_tempo(self, value: float) -> None:
        """Set the live tempo; it applies from the next computed delay on.

        Raises:
            InvalidTempoError: If value is not finite and > 0 (tempo unchanged).
        """
        self._tempo = validate_tempo(value)
        logger.debug(f"tempo set to {self._tempo}")

    # ------------- public event registration API -------------

    def on_signal(self, handler: OnPlaybackSignal) -> None:
        """Register a callback for playback signals.

        Handler is called with: PlaybackSignal
        """
        self._signal_handlers.append(handler)

    def remove_signal_handler(self, handler: OnPlaybackSignal) -> None:
        if handler in self._signal_handlers:
            self._signal_handlers.remove(handler)

    # ------------- sessions -------------

    @property
    def live_session(self) -> Optional[PlaybackSession]:
        return self._live

    def start_session(
        self,
        events: Iterable[TypingEvent],
        tempo: Optional[float] = None,
    ) -> PlaybackSession:
        """Supersede any live session and start replaying ``events``.

        Args:
            events: Events in replay order (snapshotted here).
            tempo: Optional new tempo, validated before anything changes.

        Returns:
            The new session, usable as a handle for cancel().

        Raises:
            InvalidTempoError: If tempo is given and invalid. The live
                session, if any, keeps playing.
        """
        if tempo is not None:
            tempo = validate_tempo(tempo)
        snapshot = tuple(events)

        if tempo is not None:
            self._tempo = tempo
        self.stop()

        session = PlaybackSession(next(self._tokens), snapshot, self._tempo)
        self._live = session
        self._live_token = session.token
        logger.info(
            f"session {session.token}: start, {len(snapshot)} event(s), tempo={self._tempo}"
        )
        self._schedule(session, self.settle_delay_ms, self._press)
        return session

    def cancel(self, session: PlaybackSession) -> None:
        """Cancel ``session`` if it is live; otherwise do nothing."""
        if not self._is_live(session):
            logger.debug(f"cancel: session {session.token} not live ({session.state.value}), ignoring")
            return
        self._terminate(session, SessionState.CANCELLED)
        logger.info(f"session {session.token}: cancelled at event {session.cursor}")

    def stop(self) -> None:
        """Cancel the live session, if any."""
        if self._live is not None:
            self.cancel(self._live)

    # ------------- state machine -------------

    def _is_live(self, session: PlaybackSession) -> bool:
        return session.token == self._live_token and not session.done

    def _terminate(self, session: PlaybackSession, state: SessionState) -> None:
        session.state = state
        pending, session.pending = session.pending, None
        if pending is not None:
            # Best effort only; stale continuations also check liveness.
            pending.cancel()
        if self._live_token == session.token:
            self._live_token = None
            self._live = None

    def _schedule(self, session: PlaybackSession, delay_ms: float, step: _Step) -> None:
        def _continuation() -> None:
            if not self._is_live(session):
                logger.debug(f"session {session.token}: dropping stale {step.__name__}")
                return
            session.pending = None
            step(session)

        session.pending = self._timers.call_later(delay_ms, _continuation)

    def _scaled(self, duration_ms: float, session: PlaybackSession, what: str) -> float:
        if not math.isfinite(duration_ms) or duration_ms < 0:
            logger.debug(
                f"session {session.token}: event {session.cursor} has {what}={duration_ms}, using 0 ms"
            )
            return 0.0
        return duration_ms / self._tempo

    def _emit(self, signal: PlaybackSignal) -> None:
        for handler in list(self._signal_handlers):
            try:
                handler(signal)
            except Exception:
                logger.exception("Error in playback signal handler")

    def _press(self, session: PlaybackSession) -> None:
        if session.cursor >= len(session.events):
            self._end(session)
            return
        ev = session.events[session.cursor]
        session.state = SessionState.PRESSING
        self._emit(PlaybackSignal(SignalKind.PRESS_START, session.token, session.cursor, ev))
        if self._is_live(session):
            self._schedule(session, self._scaled(ev.hold, session, "hold"), self._release)

    def _release(self, session: PlaybackSession) -> None:
        ev = session.events[session.cursor]
        session.state = SessionState.RELEASED
        self._emit(PlaybackSignal(SignalKind.PRESS_END, session.token, session.cursor, ev))
        if self._is_live(session):
            self._schedule(session, self.release_delay_ms, self._show_info)

    def _show_info(self, session: PlaybackSession) -> None:
        ev = session.events[session.cursor]
        self._emit(PlaybackSignal(SignalKind.EVENT_INFO, session.token, session.cursor, ev))
        if self._is_live(session):
            # The gap before the next key comes from the current event's flight.
            self._schedule(session, self._scaled(ev.flight, session, "flight"), self._advance)

    def _advance(self, session: PlaybackSession) -> None:
        session.cursor += 1
        self._press(session)

    def _end(self, session: PlaybackSession) -> None:
        self._terminate(session, SessionState.ENDED)
        logger.info(f"session {session.token}: ended after {len(session.events)} event(s)")
        self._emit(PlaybackSignal(SignalKind.SESSION_ENDED, session.token, session.cursor))
