"""The single scheduling primitive the playback scheduler runs on.

A TimerQueue accepts a delay in milliseconds and a zero-argument
continuation. Handle cancellation is best-effort only: callers must still
guard every continuation themselves.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerQueue(Protocol):
    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioTimerQueue:
    """TimerQueue on an asyncio event loop (NiceGUI runs on one).

    The loop is resolved lazily on first use, so the queue can be built
    before the loop starts and used from any callback running on it.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        delay_sec = max(0.0, float(delay_ms)) / 1000.0
        return self.loop.call_later(delay_sec, callback)
