import logging
import math
from typing import Callable, Optional

from .scheduler import TimerHandle

logger = logging.getLogger(__name__)

# Absorbs float error when comparing timestamps against second boundaries
_EPSILON = 1e-6


class CountdownClock:
    """Countdown driven by timestamps, not by counting wake-ups.

    Each wake-up derives ``remaining`` from ``scheduler.now() - started_at``.
    If the host was suspended for a while, the next wake-up reports the
    caught-up value in a single tick instead of replaying every missed
    second. ``on_tick(remaining)`` fires only when the whole-second value
    changes; ``on_expire()`` fires once, at zero, after which the clock is
    stopped.
    """

    def __init__(self, duration: int, scheduler, on_tick: Callable[[int], None],
                 on_expire: Callable[[], None], label: str = 'clock'):
        self.duration = int(duration)
        self._scheduler = scheduler
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._label = label
        self._started_at: Optional[float] = None
        self._handle: Optional[TimerHandle] = None
        self._remaining = self.duration
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def remaining(self) -> int:
        return self._remaining

    def start(self) -> None:
        if self._running:
            return
        self._started_at = self._scheduler.now()
        self._remaining = self.duration
        self._running = True
        self._schedule_next()

    def cancel(self) -> None:
        self._running = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _elapsed(self) -> float:
        return max(0.0, self._scheduler.now() - self._started_at)

    def _schedule_next(self) -> None:
        elapsed = self._elapsed()
        # Wake at the next whole-second boundary since start
        delay = (math.floor(elapsed + _EPSILON) + 1) - elapsed
        self._handle = self._scheduler.call_later(delay, self._fire, label=self._label)

    def _fire(self) -> None:
        if not self._running:
            return
        self._handle = None
        remaining = max(0, self.duration - int(math.floor(self._elapsed() + _EPSILON)))
        if remaining != self._remaining:
            if self._remaining - remaining > 1:
                logger.info(f"[clock-catchup] {self._label} skipped {self._remaining - remaining - 1}s")
            self._remaining = remaining
            self._on_tick(remaining)
        if not self._running:
            # on_tick may have ended the session
            return
        if remaining <= 0:
            self._running = False
            self._on_expire()
            return
        self._schedule_next()
