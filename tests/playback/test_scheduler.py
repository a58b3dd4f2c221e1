"""Unit tests for PlaybackScheduler using a virtual-clock timer queue."""

from __future__ import annotations

import math
from typing import Any, List, Tuple

import pytest

from keyrhythm.playback.scheduler import (
    DEFAULT_RELEASE_DELAY_MS,
    DEFAULT_SETTLE_DELAY_MS,
    InvalidTempoError,
    PlaybackScheduler,
    validate_tempo,
)
from keyrhythm.playback.session import SessionState
from keyrhythm.playback.signals import PlaybackSignal, SignalKind
from keyrhythm.typing_events.events import TypingEvent

PS, PE, INFO, END = (
    SignalKind.PRESS_START,
    SignalKind.PRESS_END,
    SignalKind.EVENT_INFO,
    SignalKind.SESSION_ENDED,
)


def _ev(hold: float, flight: float, group: str = "DA") -> TypingEvent:
    return TypingEvent(group=group, hold=hold, flight=flight)


class _Recorder:
    """Collects (time, kind, index, token) for every signal."""

    def __init__(self, timers: Any) -> None:
        self._timers = timers
        self.log: List[Tuple[float, SignalKind, int, int]] = []

    def __call__(self, signal: PlaybackSignal) -> None:
        self.log.append((self._timers.now, signal.kind, signal.index, signal.token))

    def timeline(self, *kinds: SignalKind) -> List[Tuple[float, SignalKind, int]]:
        return [(t, k, i) for t, k, i, _ in self.log if not kinds or k in kinds]

    def for_token(self, token: int) -> list:
        return [entry for entry in self.log if entry[3] == token]


def _scheduler(timers: Any, **kwargs: Any) -> Tuple[PlaybackScheduler, _Recorder]:
    rec = _Recorder(timers)
    sched = PlaybackScheduler(timers, **kwargs)
    sched.on_signal(rec)
    return sched, rec


TWO_EVENTS = [_ev(100, 50), _ev(80, 0)]


# --- timelines ---


def test_timeline_without_fixed_delays(timers) -> None:
    """hold/flight timeline matches the recorded timings at tempo 1."""
    sched, rec = _scheduler(timers, settle_delay_ms=0, release_delay_ms=0)
    sched.start_session(TWO_EVENTS, tempo=1)
    timers.run_all()

    assert rec.timeline(PS, PE, END) == [
        (0, PS, 0),
        (100, PE, 0),
        (150, PS, 1),
        (230, PE, 1),
        (230, END, 2),
    ]


def test_timeline_with_default_settle_and_release(timers) -> None:
    """Settle delay precedes the first press; release delay precedes each info signal."""
    sched, rec = _scheduler(timers)
    sched.start_session(TWO_EVENTS)
    timers.run_all()

    s, r = DEFAULT_SETTLE_DELAY_MS, DEFAULT_RELEASE_DELAY_MS
    assert rec.timeline() == [
        (s, PS, 0),
        (s + 100, PE, 0),
        (s + 100 + r, INFO, 0),
        (s + 150 + r, PS, 1),
        (s + 230 + r, PE, 1),
        (s + 230 + 2 * r, INFO, 1),
        (s + 230 + 2 * r, END, 2),
    ]


def test_tempo_two_halves_scaled_delays(timers) -> None:
    """Tempo 2 halves hold and flight waits but not the fixed constants."""
    sched, rec = _scheduler(timers, settle_delay_ms=10, release_delay_ms=20)
    sched.start_session(TWO_EVENTS, tempo=2)
    timers.run_all()

    assert rec.timeline(PS, PE, END) == [
        (10, PS, 0),
        (10 + 50, PE, 0),
        (10 + 75 + 20, PS, 1),
        (10 + 115 + 20, PE, 1),
        (10 + 115 + 40, END, 2),
    ]


def test_gap_uses_current_event_flight(timers) -> None:
    """The wait before the next press is the current event's flight, not the next one's."""
    sched, rec = _scheduler(timers, settle_delay_ms=0, release_delay_ms=0)
    sched.start_session([_ev(10, 40), _ev(10, 999), _ev(10, 0)])
    timers.advance(60)

    assert rec.timeline(PS) == [(0, PS, 0), (50, PS, 1)]


def test_each_transition_emits_one_signal_in_event_order(timers) -> None:
    """Every event produces PRESS_START, PRESS_END, EVENT_INFO once, strictly by index."""
    events = [_ev(5 * i + 1, 3) for i in range(6)]
    sched, rec = _scheduler(timers)
    sched.start_session(events)
    timers.run_all()

    kinds = [k for _, k, _ in rec.timeline()]
    assert kinds == [PS, PE, INFO] * 6 + [END]
    indices = [i for _, _, i in rec.timeline(PS)]
    assert indices == list(range(6))


def test_empty_session_ends_after_settle(timers) -> None:
    sched, rec = _scheduler(timers, settle_delay_ms=100)
    session = sched.start_session([])
    timers.run_all()

    assert rec.timeline() == [(100, END, 0)]
    assert session.state is SessionState.ENDED
    assert sched.live_session is None


def test_non_finite_durations_use_zero_delay(timers) -> None:
    """NaN hold/flight never stall the replay."""
    sched, rec = _scheduler(timers, settle_delay_ms=0, release_delay_ms=0)
    sched.start_session([_ev(math.nan, math.nan), _ev(-5, 10), _ev(20, 0)])
    timers.run_all()

    assert rec.timeline(PS, END) == [(0, PS, 0), (0, PS, 1), (10, PS, 2), (30, END, 3)]


def test_session_snapshots_events(timers) -> None:
    """Mutating the caller's list after start does not change the replay."""
    events = [_ev(10, 10)]
    sched, rec = _scheduler(timers)
    session = sched.start_session(events)
    events.append(_ev(10, 10))
    timers.run_all()

    assert len(session.events) == 1
    assert len(rec.timeline(PS)) == 1


# --- states ---


def test_session_states_follow_transitions(timers) -> None:
    sched, _ = _scheduler(timers, settle_delay_ms=100, release_delay_ms=50)
    session = sched.start_session([_ev(100, 50)])
    assert session.state is SessionState.IDLE

    timers.advance(100)
    assert session.state is SessionState.PRESSING
    timers.advance(100)
    assert session.state is SessionState.RELEASED
    timers.run_all()
    assert session.state is SessionState.ENDED
    assert session.done is True
    assert session.cancelled is False


# --- cancellation ---


@pytest.mark.parametrize("timer_fixture", ["timers", "leaky_timers"])
def test_new_session_silences_previous_mid_delay(timer_fixture: str, request) -> None:
    """Starting B while A waits mid-hold produces zero further signals from A."""
    timers = request.getfixturevalue(timer_fixture)
    sched, rec = _scheduler(timers, settle_delay_ms=100, release_delay_ms=50)

    a = sched.start_session([_ev(100, 50), _ev(100, 50)])
    timers.advance(150)  # A pressed at 100, hold wait runs until 200
    assert rec.for_token(a.token) == [(100, PS, 0, a.token)]

    b = sched.start_session([_ev(30, 0)])
    timers.run_all()

    assert rec.for_token(a.token) == [(100, PS, 0, a.token)]
    assert a.state is SessionState.CANCELLED
    assert [k for _, k, _, _ in rec.for_token(b.token)] == [PS, PE, INFO, END]
    assert b.state is SessionState.ENDED


def test_leaky_timer_fires_but_is_ignored(leaky_timers) -> None:
    """When timer removal does not work, the stale continuation still does nothing."""
    sched, rec = _scheduler(leaky_timers, settle_delay_ms=10, release_delay_ms=0)
    a = sched.start_session([_ev(100, 0)])
    leaky_timers.advance(20)
    sched.cancel(a)
    fired_before = leaky_timers.fired

    leaky_timers.run_all()

    assert leaky_timers.fired == fired_before + 1
    assert rec.for_token(a.token) == [(10, PS, 0, a.token)]


def test_supersede_cancels_pending_timer_handle(timers) -> None:
    sched, _ = _scheduler(timers)
    a = sched.start_session([_ev(100, 0)])
    pending = a.pending
    assert pending is not None

    sched.start_session([])

    assert pending.cancel_calls == 1
    assert a.pending is None


def test_at_most_one_live_session(timers) -> None:
    sched, _ = _scheduler(timers)
    a = sched.start_session([_ev(10, 10)])
    b = sched.start_session([_ev(10, 10)])

    assert sched.live_session is b
    assert a.cancelled is True
    assert b.token > a.token


def test_cancel_live_session_stops_signals(timers) -> None:
    sched, rec = _scheduler(timers, settle_delay_ms=0, release_delay_ms=0)
    session = sched.start_session(TWO_EVENTS)
    timers.advance(120)
    sched.cancel(session)
    count = len(rec.log)
    timers.run_all()

    assert len(rec.log) == count
    assert session.state is SessionState.CANCELLED
    assert sched.live_session is None


def test_cancel_ended_session_is_noop(timers) -> None:
    """Cancelling an already-ended session raises nothing and emits nothing."""
    sched, rec = _scheduler(timers)
    session = sched.start_session(TWO_EVENTS)
    timers.run_all()
    count = len(rec.log)

    sched.cancel(session)
    sched.cancel(session)

    assert len(rec.log) == count
    assert session.state is SessionState.ENDED


def test_cancel_stale_handle_leaves_live_session_alone(timers) -> None:
    sched, rec = _scheduler(timers, settle_delay_ms=0, release_delay_ms=0)
    a = sched.start_session(TWO_EVENTS)
    b = sched.start_session(TWO_EVENTS)

    sched.cancel(a)
    timers.run_all()

    assert b.state is SessionState.ENDED
    assert [k for _, k, _, _ in rec.for_token(b.token)][-1] is END


def test_stop_without_session_is_noop(timers) -> None:
    sched, rec = _scheduler(timers)
    sched.stop()
    assert rec.log == []
    assert sched.live_session is None


def test_handler_stopping_playback_halts_chain(timers) -> None:
    """A handler calling stop() during PRESS_START prevents any further scheduling."""
    sched, rec = _scheduler(timers, settle_delay_ms=0, release_delay_ms=0)

    def _stop_on_press(signal: PlaybackSignal) -> None:
        if signal.kind is PS:
            sched.stop()

    sched.on_signal(_stop_on_press)
    session = sched.start_session(TWO_EVENTS)
    timers.run_all()

    assert rec.timeline() == [(0, PS, 0)]
    assert session.state is SessionState.CANCELLED
    assert timers.pending == 0


# --- tempo ---


@pytest.mark.parametrize("bad", [0, -1, math.nan, math.inf, "fast"])
def test_invalid_tempo_rejected_without_side_effects(timers, bad) -> None:
    """InvalidTempoError at start leaves the running session and tempo untouched."""
    sched, rec = _scheduler(timers, settle_delay_ms=0, release_delay_ms=0, tempo=1.5)
    running = sched.start_session(TWO_EVENTS)
    timers.advance(10)

    with pytest.raises(InvalidTempoError) as exc_info:
        sched.start_session([_ev(1, 1)], tempo=bad)

    assert exc_info.value.tempo is bad
    assert sched.live_session is running
    assert sched.tempo == 1.5
    timers.run_all()
    assert running.state is SessionState.ENDED


def test_invalid_tempo_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        validate_tempo(-2)
    with pytest.raises(InvalidTempoError):
        validate_tempo(None)
    assert validate_tempo("2.5") == 2.5


def test_set_tempo_rejects_invalid_and_keeps_value(timers) -> None:
    sched, _ = _scheduler(timers, tempo=2)
    with pytest.raises(InvalidTempoError):
        sched.set_tempo(0)
    assert sched.tempo == 2.0
    sched.tempo = 3
    assert sched.tempo == 3.0


def test_tempo_change_applies_to_next_delay_only(timers) -> None:
    """A tempo change mid-hold does not shorten the hold already being waited on."""
    sched, rec = _scheduler(timers, settle_delay_ms=0, release_delay_ms=0)
    sched.start_session([_ev(100, 100), _ev(100, 0)], tempo=1)
    timers.advance(50)
    sched.set_tempo(2)
    timers.run_all()

    assert rec.timeline(PS, PE) == [
        (0, PS, 0),
        (100, PE, 0),
        (150, PS, 1),
        (200, PE, 1),
    ]


def test_session_records_start_tempo(timers) -> None:
    sched, _ = _scheduler(timers, tempo=1)
    session = sched.start_session([], tempo=4)
    assert session.tempo == 4.0
    assert sched.tempo == 4.0


# --- handlers / construction ---


def test_failing_handler_does_not_break_chain(timers, caplog) -> None:
    sched, rec = _scheduler(timers)

    def _boom(_signal: PlaybackSignal) -> None:
        raise RuntimeError("renderer gone")

    sched.on_signal(_boom)
    with caplog.at_level("ERROR", logger="keyrhythm"):
        session = sched.start_session(TWO_EVENTS)
        timers.run_all()

    assert session.state is SessionState.ENDED
    assert rec.timeline()[-1][1] is END
    assert "Error in playback signal handler" in caplog.text


def test_remove_signal_handler(timers) -> None:
    sched, rec = _scheduler(timers)
    sched.remove_signal_handler(rec)
    sched.remove_signal_handler(rec)
    sched.start_session(TWO_EVENTS)
    timers.run_all()
    assert rec.log == []


def test_constructor_on_signal_and_validation(timers) -> None:
    seen: list = []
    sched = PlaybackScheduler(timers, on_signal=seen.append, settle_delay_ms=0)
    sched.start_session([])
    timers.run_all()
    assert [s.kind for s in seen] == [END]

    with pytest.raises(InvalidTempoError):
        PlaybackScheduler(timers, tempo=0)
    with pytest.raises(ValueError):
        PlaybackScheduler(timers, settle_delay_ms=-1)
    with pytest.raises(ValueError):
        PlaybackScheduler(timers, release_delay_ms=math.nan)
