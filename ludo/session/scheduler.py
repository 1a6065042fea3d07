"""
Scheduler - Non-blocking timers for paced actions.

Sessions schedule bot rolls, bot moves and auto-passes through a Scheduler.
The delay is cosmetic: every scheduled callback re-validates the session
when it runs, so dropping or reordering timers never breaks a game.

Two implementations:
- AsyncioScheduler: real delays on the running event loop (server)
- ManualScheduler: queued callbacks run on demand, in order (tests, CLI)
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from collections import deque
from typing import Callable
import asyncio
import logging

logger = logging.getLogger(__name__)


class TimerHandle(ABC):
    @abstractmethod
    def cancel(self):
        pass


class Scheduler(ABC):
    """Interface used by sessions to defer work."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback after roughly `delay` seconds without blocking."""
        pass


class _AsyncioHandle(TimerHandle):
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self):
        self._handle.cancel()


class AsyncioScheduler(Scheduler):
    """
    Schedules on an asyncio event loop.

    Uses the loop passed in, or the running loop at call time.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return _AsyncioHandle(loop.call_later(max(delay, 0.0), callback))


class _ManualHandle(TimerHandle):
    def __init__(self, callback: Callable[[], None]):
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler(Scheduler):
    """
    Zero-delay scheduler for headless play.

    Callbacks queue up and run only when run_next()/run_all() is called,
    in FIFO order. Delays are recorded but ignored.
    """

    def __init__(self):
        self._queue: deque[_ManualHandle] = deque()
        self.delays: list[float] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = _ManualHandle(callback)
        self._queue.append(handle)
        self.delays.append(delay)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for handle in self._queue if not handle.cancelled)

    def run_next(self) -> bool:
        """Run the oldest live callback. Returns False if none was queued."""
        while self._queue:
            handle = self._queue.popleft()
            if handle.cancelled:
                continue
            handle.callback()
            return True
        return False

    def run_all(self, max_steps: int = 100_000) -> int:
        """
        Run callbacks until the queue is empty, including ones scheduled
        along the way. Returns the number run.
        """
        steps = 0
        while steps < max_steps and self.run_next():
            steps += 1
        if steps >= max_steps and self.pending:
            logger.warning("ManualScheduler stopped after %d steps with work left", steps)
        return steps
