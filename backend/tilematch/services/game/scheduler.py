"""Deferred callbacks for rollbacks and clock ticks.

Two schedulers share one small interface (``now``, ``call_later``):

- ``BackgroundScheduler`` sleeps in a Socket.IO background task, so it works
  under threading, eventlet and gevent alike.
- ``ManualScheduler`` keeps virtual time and only fires callbacks when a test
  (or a TESTING app) advances it.

Handles are cancellable; cancelling twice, or after the callback fired, is
harmless.
"""
import heapq
import itertools
import logging
import time
from typing import Any, Callable, List, Tuple

logger = logging.getLogger(__name__)


class TimerHandle:
    def __init__(self, when: float, label: str = ''):
        self.when = when
        self.label = label
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def __repr__(self):
        state = 'cancelled' if self.cancelled else 'fired' if self.fired else 'pending'
        return f"<TimerHandle {self.label or '?'} when={self.when:.3f} {state}>"


def _run(handle: TimerHandle, callback: Callable[..., Any], args: Tuple[Any, ...]) -> None:
    if not handle.pending:
        return
    handle.fired = True
    try:
        callback(*args)
    except Exception:
        logger.exception(f"[timer-error] callback {handle.label or callback!r} failed")


class BackgroundScheduler:
    def __init__(self, socketio, clock: Callable[[], float] = time.time, step: float = 0.5):
        self._socketio = socketio
        self._clock = clock
        # Longest single sleep; a cancelled handle frees its task within one step
        self._step = step

    def now(self) -> float:
        return self._clock()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any, label: str = '') -> TimerHandle:
        handle = TimerHandle(self.now() + max(0.0, delay), label)

        def _worker():
            # Sleep towards the deadline rather than for ``delay`` so a late
            # start does not push the callback further out.
            while handle.pending:
                remaining = handle.when - self.now()
                if remaining <= 0:
                    break
                self._socketio.sleep(min(self._step, remaining))
            _run(handle, callback, args)

        self._socketio.start_background_task(_worker)
        return handle


class ManualScheduler:
    def __init__(self, start: float = 0.0):
        self._now = float(start)
        self._queue: List[Tuple[float, int, TimerHandle, Callable[..., Any], Tuple[Any, ...]]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any, label: str = '') -> TimerHandle:
        handle = TimerHandle(self._now + max(0.0, delay), label)
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle, callback, args))
        return handle

    @property
    def pending(self) -> List[TimerHandle]:
        return [entry[2] for entry in sorted(self._queue) if entry[2].pending]

    def advance(self, seconds: float) -> None:
        """Move virtual time forward, firing due callbacks in order."""
        target = self._now + seconds
        while self._queue and self._queue[0][0] <= target:
            when, _, handle, callback, args = heapq.heappop(self._queue)
            self._now = max(self._now, when)
            _run(handle, callback, args)
        self._now = target

    def suspend(self, seconds: float) -> None:
        """Move virtual time forward without firing anything.

        Models a host process that was paused; the next ``run_pending`` or
        ``advance`` call fires whatever became overdue at the new time.
        """
        self._now += seconds

    def run_pending(self) -> None:
        self.advance(0)
