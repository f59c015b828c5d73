"""
Cancellable delayed callbacks for the room orchestrator.

Two interchangeable schedulers share one small interface:

    handle = scheduler.call_later(delay, callback, *args)
    handle.cancel()
    scheduler.now()

ThreadingScheduler runs callbacks on daemon timer threads and is what a live
server uses. ManualScheduler keeps a virtual clock that only moves when
advance() is called, which makes timer-driven behaviour deterministic for
tests and instant for simulations.
"""

import heapq
import itertools
import threading
import time
from typing import Any, Callable, List, Optional, Tuple


class TimerHandle:
    """
    Handle to one scheduled callback.

    Attributes:
        due: Scheduler time at which the callback fires
        cancelled: True once cancel() has been called
    """

    def __init__(self, due: float, timer: Optional[threading.Timer] = None):
        self.due = due
        self.cancelled = False
        self._timer = timer

    def cancel(self) -> None:
        self.cancelled = True
        if self._timer is not None:
            self._timer.cancel()


class ThreadingScheduler:
    """
    Scheduler backed by threading.Timer.

    Callbacks run on their own daemon thread; the orchestrator takes the
    room lock inside every callback, so no ordering beyond the room lock is
    assumed here.
    """

    def __init__(self):
        self._handles: List[TimerHandle] = []
        self._lock = threading.Lock()

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[..., Any], *args) -> TimerHandle:
        timer = threading.Timer(delay, callback, args)
        timer.daemon = True
        handle = TimerHandle(self.now() + delay, timer)

        with self._lock:
            self._handles = [h for h in self._handles if not h.cancelled and h._timer.is_alive()]
            self._handles.append(handle)

        timer.start()
        return handle

    def shutdown(self) -> None:
        """Cancel every pending timer."""
        with self._lock:
            handles, self._handles = self._handles, []
        for handle in handles:
            handle.cancel()


class ManualScheduler:
    """
    Virtual-clock scheduler.

    Timers fire in (due time, scheduling order) order, and only from inside
    advance() or run_until_idle(). Callbacks may schedule further timers;
    those due within the advanced window fire in the same call.

    Example:
        >>> scheduler = ManualScheduler()
        >>> fired = []
        >>> handle = scheduler.call_later(5.0, fired.append, "x")
        >>> _ = scheduler.advance(4.9)
        >>> fired
        []
        >>> _ = scheduler.advance(0.1)
        >>> fired
        ['x']
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: List[Tuple[float, int, TimerHandle, Callable[..., Any], tuple]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[..., Any], *args) -> TimerHandle:
        handle = TimerHandle(self._now + delay)
        heapq.heappush(self._queue, (handle.due, next(self._counter), handle, callback, args))
        return handle

    def pending(self) -> int:
        """Number of timers still due to fire."""
        return sum(1 for _, _, handle, _, _ in self._queue if not handle.cancelled)

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, firing every timer that comes due.

        Returns:
            Number of callbacks run
        """
        target = self._now + seconds
        fired = 0

        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback, args = heapq.heappop(self._queue)
            self._now = max(self._now, due)
            if handle.cancelled:
                continue
            callback(*args)
            fired += 1

        self._now = target
        return fired

    def run_until_idle(self, max_callbacks: int = 100_000) -> int:
        """
        Fire timers in order until none remain.

        Raises:
            RuntimeError: If more than max_callbacks fire (runaway rescheduling)
        """
        fired = 0
        while self._queue:
            due = self._queue[0][0]
            fired += self.advance(max(0.0, due - self._now))
            if fired > max_callbacks:
                raise RuntimeError(f"Scheduler did not go idle after {max_callbacks} callbacks")
        return fired
