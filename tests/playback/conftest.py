"""Fixtures for playback tests: a virtual-clock timer queue."""

from __future__ import annotations

import heapq
import itertools
import sys
from pathlib import Path
from typing import Callable, List

import pytest


def pytest_configure() -> None:
    # Ensure keyrhythm package is importable when running tests from repo root.
    repo_root = Path(__file__).resolve().parents[2]
    src_dir = repo_root / "src"
    if src_dir.exists() and str(src_dir) not in sys.path:
        sys.path.insert(0, str(src_dir))


class FakeTimerHandle:
    def __init__(self) -> None:
        self.cancel_calls = 0

    def cancel(self) -> None:
        self.cancel_calls += 1


class FakeTimerQueue:
    """Virtual-clock TimerQueue.

    With honor_cancel=False, cancelled timers still fire; this mimics
    runtimes where timer removal is unreliable.
    """

    def __init__(self, *, honor_cancel: bool = True) -> None:
        self.now = 0.0
        self.honor_cancel = honor_cancel
        self.fired = 0
        self._seq = itertools.count()
        self._heap: List[tuple[float, int, Callable[[], None], FakeTimerHandle]] = []

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> FakeTimerHandle:
        handle = FakeTimerHandle()
        heapq.heappush(self._heap, (self.now + float(delay_ms), next(self._seq), callback, handle))
        return handle

    @property
    def pending(self) -> int:
        return len(self._heap)

    def advance(self, ms: float) -> None:
        """Run every timer due within the next ``ms`` milliseconds."""
        target = self.now + ms
        while self._heap and self._heap[0][0] <= target:
            due, _, callback, handle = heapq.heappop(self._heap)
            self.now = due
            if handle.cancel_calls and self.honor_cancel:
                continue
            self.fired += 1
            callback()
        self.now = target

    def run_all(self, limit: int = 10_000) -> None:
        """Run timers until none are left."""
        for _ in range(limit):
            if not self._heap:
                return
            self.advance(self._heap[0][0] - self.now)
        raise AssertionError("timer queue did not drain")


@pytest.fixture
def timers() -> FakeTimerQueue:
    return FakeTimerQueue()


@pytest.fixture
def leaky_timers() -> FakeTimerQueue:
    return FakeTimerQueue(honor_cancel=False)
