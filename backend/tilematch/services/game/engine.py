"""Flip state machine and the session that owns one round at a time.

Everything that mutates a ``GameState`` goes through a ``GameSession``:
player flips, the mismatch rollback and the countdown ticks. Mutations are
serialized by a per-session re-entrant lock, and every deferred callback
carries the generation it was scheduled under. ``init_game`` starts a new
generation, so a callback from a previous round finds a different number at
fire time and does nothing.
"""
import logging
import threading
from typing import Callable, List, Optional

from .clock import CountdownClock
from .constants import GameSettings
from .deck import generate_deck
from .scheduler import TimerHandle
from .scoring import evaluate_end, hint_for, summarize
from .state import GameState, GameStatus

logger = logging.getLogger(__name__)

ChangeListener = Callable[[dict], None]
EndListener = Callable[[GameStatus, dict], None]


class GameSession:
    def __init__(self, scheduler, settings: Optional[GameSettings] = None, rng=None, session_id: str = ''):
        self.settings = settings or GameSettings()
        self.scheduler = scheduler
        self.session_id = session_id
        self._rng = rng
        self._lock = threading.RLock()
        self._state = GameState(time_remaining=self.settings.duration)
        self._clock: Optional[CountdownClock] = None
        self._rollback: Optional[TimerHandle] = None
        self._change_listeners: List[ChangeListener] = []
        self._end_listeners: List[EndListener] = []

    # ---- read side ----

    @property
    def state(self) -> GameState:
        """A detached copy of the current state."""
        with self._lock:
            return self._state.copy()

    @property
    def generation(self) -> int:
        return self._state.generation

    @property
    def status(self) -> GameStatus:
        return self._state.status

    @property
    def clock_running(self) -> bool:
        return bool(self._clock and self._clock.running)

    @property
    def rollback_pending(self) -> bool:
        return bool(self._rollback and self._rollback.pending)

    def snapshot(self) -> dict:
        with self._lock:
            payload = self._state.to_dict()
            payload['total_pairs'] = self.settings.total_pairs
            payload['max_flips'] = self.settings.max_flips
            payload['hint'] = hint_for(
                self._state.matched_pairs,
                self._state.time_remaining if self._state.status == GameStatus.PLAYING else None,
                total_pairs=self.settings.total_pairs,
                warning=self.settings.time_warning,
            )
            return payload

    def summary(self) -> dict:
        with self._lock:
            return summarize(self._state, self.settings)

    # ---- listeners ----

    def on_change(self, listener: ChangeListener) -> ChangeListener:
        self._change_listeners.append(listener)
        return listener

    def on_end(self, listener: EndListener) -> EndListener:
        self._end_listeners.append(listener)
        return listener

    # ---- lifecycle ----

    def init_game(self) -> None:
        with self._lock:
            self._cancel_timers()
            generation = self._state.generation + 1
            duration = self.settings.duration
            self._state = GameState(
                tiles=generate_deck(self.settings.icons, self._rng),
                time_remaining=duration,
                status=GameStatus.PLAYING,
                generation=generation,
            )
            self._clock = CountdownClock(
                duration,
                self.scheduler,
                on_tick=lambda remaining: self._on_tick(generation, remaining),
                on_expire=lambda: self._on_expire(generation),
                label=f'clock:{self.session_id}:{generation}',
            )
            self._clock.start()
            logger.info(f"[session-start] session={self.session_id} generation={generation} duration={duration}s")
            self._notify_change()

    def cancel(self) -> None:
        """Stop all timers of the current generation."""
        with self._lock:
            self._cancel_timers()

    def _cancel_timers(self) -> None:
        if self._clock is not None:
            self._clock.cancel()
            self._clock = None
        if self._rollback is not None:
            self._rollback.cancel()
            self._rollback = None

    # ---- flips ----

    def _can_flip(self, index) -> bool:
        state = self._state
        if state.status != GameStatus.PLAYING or state.is_locked:
            return False
        if isinstance(index, bool) or not isinstance(index, int):
            return False
        if not 0 <= index < len(state.tiles):
            return False
        tile = state.tiles[index]
        if tile.is_flipped or tile.is_matched:
            return False
        return len(state.pending_flips) < 2 and state.flips_count < self.settings.max_flips

    def flip_tile(self, index) -> bool:
        """Reveal a tile. Returns False, without changing anything, when the
        flip is not allowed right now."""
        with self._lock:
            if not self._can_flip(index):
                return False
            state = self._state
            state.tiles[index].is_flipped = True
            state.flips_count += 1
            state.pending_flips.append(index)

            if len(state.pending_flips) == 2:
                first, second = (state.tiles[i] for i in state.pending_flips)
                if first.pair_id == second.pair_id:
                    first.is_matched = True
                    second.is_matched = True
                    state.matched_pairs += 1
                    state.pending_flips = []
                    logger.debug(f"[match] session={self.session_id} pair={first.pair_id} matched={state.matched_pairs}")
                else:
                    state.is_locked = True
                    self._rollback = self.scheduler.call_later(
                        self.settings.mismatch_delay,
                        self._resolve_mismatch,
                        state.generation,
                        label=f'rollback:{self.session_id}:{state.generation}',
                    )
            self._after_mutation()
            return True

    def _resolve_mismatch(self, generation: int) -> None:
        with self._lock:
            if generation != self._state.generation:
                logger.info(f"[timer-abort] session={self.session_id} stale rollback generation={generation}")
                return
            self._rollback = None
            state = self._state
            for i in state.pending_flips:
                state.tiles[i].is_flipped = False
            state.pending_flips = []
            state.is_locked = False
            self._after_mutation()

    # ---- clock ----

    def _on_tick(self, generation: int, remaining: int) -> None:
        with self._lock:
            if generation != self._state.generation or self._state.status != GameStatus.PLAYING:
                return
            self._state.time_remaining = remaining
            hb = self.settings.heartbeat_sec
            if hb and remaining % hb == 0:
                logger.info(f"[timer-heartbeat] session={self.session_id} generation={generation} remaining={remaining}s")
            self._after_mutation()

    def _on_expire(self, generation: int) -> None:
        with self._lock:
            if generation != self._state.generation or self._state.status != GameStatus.PLAYING:
                return
            self._state.time_remaining = 0
            self._after_mutation()

    # ---- end evaluation ----

    def _after_mutation(self) -> None:
        ended = evaluate_end(
            self._state,
            duration=self.settings.duration,
            total_pairs=self.settings.total_pairs,
            max_flips=self.settings.max_flips,
        )
        if ended is not None and self._clock is not None:
            self._clock.cancel()
        self._notify_change()
        if ended is not None:
            logger.info(
                f"[session-end] session={self.session_id} generation={self._state.generation} reason={ended.value} "
                f"pairs={self._state.matched_pairs} flips={self._state.flips_count} elapsed={self._state.elapsed_seconds}s"
            )
            self._notify_end(ended)

    def _notify_change(self) -> None:
        if not self._change_listeners:
            return
        snap = self.snapshot()
        for listener in list(self._change_listeners):
            try:
                listener(snap)
            except Exception:
                logger.exception(f"[listener-error] session={self.session_id} change listener failed")

    def _notify_end(self, status: GameStatus) -> None:
        if not self._end_listeners:
            return
        snap = self.snapshot()
        for listener in list(self._end_listeners):
            try:
                listener(status, snap)
            except Exception:
                logger.exception(f"[listener-error] session={self.session_id} end listener failed")
