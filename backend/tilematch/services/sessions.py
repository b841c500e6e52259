"""In-memory registry of live game sessions.

Sessions are ephemeral: they live in this process only and are dropped on
restart. Each entry wires its ``GameSession`` events to Socket.IO rooms and
records the score once per finished round when a player is attached.

An entry leaves the registry when it is deleted, when an owning socket quits,
``SESSION_ABANDON_GRACE_SEC`` after its last owning socket disconnects, or
the same grace period after a round ends while no owner is connected.
"""
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from tilematch import socketio
from tilematch.services.game import GameSession, GameSettings, GameStatus
from tilematch.services.game.scheduler import BackgroundScheduler, ManualScheduler, TimerHandle
from tilematch.services.leads import submit_score


@dataclass
class SessionEntry:
    session: GameSession
    user: Optional[Dict[str, Any]] = None
    lead_id: Optional[int] = None
    scored_generations: set = field(default_factory=set)
    owners: int = 0
    discard_handle: Optional[TimerHandle] = None

    @property
    def session_id(self) -> str:
        return self.session.session_id


_sessions: Dict[str, SessionEntry] = {}
_registry_lock = threading.Lock()


def init_game_services(app) -> None:
    """Attach game settings and a scheduler to the app.

    TESTING apps get a ``ManualScheduler`` so tests drive time explicitly,
    unless ``ENABLE_SCHEDULER_IN_TESTS`` is set.
    """
    app.extensions['tilematch_settings'] = GameSettings.from_config(app.config)
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        scheduler = ManualScheduler()
    else:
        scheduler = BackgroundScheduler(socketio)
    app.extensions['tilematch_scheduler'] = scheduler


def get_settings(app) -> GameSettings:
    return app.extensions['tilematch_settings']


def get_scheduler(app):
    return app.extensions['tilematch_scheduler']


def room_for(session_id: str) -> str:
    return f"session:{session_id}"


def create_session(app, user: Optional[Dict[str, Any]] = None, lead_id: Optional[int] = None) -> SessionEntry:
    session_id = uuid.uuid4().hex[:12]
    session = GameSession(get_scheduler(app), settings=get_settings(app), session_id=session_id)
    entry = SessionEntry(session=session, user=user, lead_id=lead_id)

    @session.on_change
    def _emit_state(snapshot):
        socketio.emit('state_update', {'session_id': session_id, 'state': snapshot},
                      to=room_for(session_id), namespace='/ws')

    @session.on_end
    def _on_end(status, snapshot):
        _handle_session_end(app, entry, status, snapshot)

    with _registry_lock:
        _sessions[session_id] = entry
    session.init_game()
    app.logger.info(f"[session-create] session={session_id} lead={lead_id}")
    return entry


def _handle_session_end(app, entry: SessionEntry, status: GameStatus, snapshot) -> None:
    # Runs under the session lock: only emit and schedule here
    summary = entry.session.summary()
    socketio.emit('session_ended', {
        'session_id': entry.session_id,
        'reason': status.value,
        'generation': snapshot['generation'],
        'summary': summary,
    }, to=room_for(entry.session_id), namespace='/ws')

    if entry.owners == 0:
        schedule_discard(app, entry, only_if_finished=True)

    generation = snapshot['generation']
    if entry.user is None or generation in entry.scored_generations:
        return
    entry.scored_generations.add(generation)
    get_scheduler(app).call_later(
        0, _record_score, app, entry.user, summary, status.value, entry.lead_id,
        label=f'score:{entry.session_id}:{generation}',
    )


def _record_score(app, user, summary, reason: str, lead_id: Optional[int]) -> None:
    with app.app_context():
        submit_score(
            user,
            summary['score'],
            summary['flips_count'],
            summary['elapsed_seconds'],
            reason=reason,
            lead_id=lead_id,
        )


def get_session(session_id: str) -> Optional[SessionEntry]:
    return _sessions.get(session_id)


def discard_session(session_id: str) -> bool:
    with _registry_lock:
        entry = _sessions.pop(session_id, None)
    if entry is None:
        return False
    _cancel_discard(entry)
    entry.owners = 0
    entry.session.cancel()
    return True


def clear_sessions() -> None:
    with _registry_lock:
        entries = list(_sessions.values())
        _sessions.clear()
    for entry in entries:
        _cancel_discard(entry)
        entry.session.cancel()


# ---- owners and delayed discard ----

def add_owner(session_id: str) -> bool:
    """Count an owning socket; a pending discard is called off."""
    entry = get_session(session_id)
    if entry is None:
        return False
    entry.owners += 1
    _cancel_discard(entry)
    return True


def remove_owner(app, session_id: str) -> None:
    entry = get_session(session_id)
    if entry is None:
        return
    entry.owners = max(0, entry.owners - 1)
    if entry.owners == 0:
        app.logger.info(f"[session-orphaned] session={session_id} ending in "
                        f"{app.config.get('SESSION_ABANDON_GRACE_SEC', 30)}s unless an owner rejoins")
        schedule_discard(app, entry)


def schedule_discard(app, entry: SessionEntry, only_if_finished: bool = False) -> None:
    """Drop the entry after the grace period unless an owner joins first.

    With ``only_if_finished`` the entry is kept when a new round is playing
    by the time the timer fires.
    """
    _cancel_discard(entry)
    grace = float(app.config.get('SESSION_ABANDON_GRACE_SEC', 30))
    entry.discard_handle = get_scheduler(app).call_later(
        grace, _discard_if_unowned, app, entry.session_id, only_if_finished,
        label=f'discard:{entry.session_id}',
    )


def _discard_if_unowned(app, session_id: str, only_if_finished: bool) -> None:
    entry = get_session(session_id)
    if entry is None:
        return
    entry.discard_handle = None
    if entry.owners > 0:
        return
    if only_if_finished and not entry.session.status.is_terminal:
        return
    app.logger.info(f"[session-discard] session={session_id} status={entry.session.status.value}")
    discard_session(session_id)


def _cancel_discard(entry: SessionEntry) -> None:
    if entry.discard_handle is not None:
        entry.discard_handle.cancel()
        entry.discard_handle = None
