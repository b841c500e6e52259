from flask_socketio import join_room, leave_room, emit
from flask import current_app, request
from typing import Dict, Any

from tilematch.services.sessions import add_owner, discard_session, get_session, remove_owner, room_for


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    # When the last owning socket of a session goes away, the session is
    # discarded after a grace period unless an owner reconnects
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if not ctx:
        return
    session_id = ctx.get('session_id')
    if ctx.get('is_session_owner') and session_id:
        remove_owner(current_app._get_current_object(), session_id)


def handle_join_session(data):
    session_id = (data or {}).get('session_id')
    is_session_owner = bool((data or {}).get('is_session_owner'))
    if not session_id:
        emit('error', {'message': 'session_id is required'})
        return
    entry = get_session(session_id)
    if entry is None:
        emit('error', {'message': 'Session not found'})
        return
    room = room_for(session_id)
    join_room(room)
    _sid_to_ctx[_get_sid()] = {'session_id': session_id, 'is_session_owner': is_session_owner}
    if is_session_owner:
        add_owner(session_id)
    emit('joined', {'room': room})
    # Late joiners get the current board right away
    emit('state_update', {'session_id': session_id, 'state': entry.session.snapshot()})


def handle_leave_session(data):
    session_id = (data or {}).get('session_id')
    if not session_id:
        emit('error', {'message': 'session_id is required'})
        return
    room = room_for(session_id)
    leave_room(room)
    emit('left', {'room': room})
    ctx = _sid_to_ctx.get(_get_sid())
    if ctx and ctx.get('is_session_owner') and ctx.get('session_id') == session_id:
        # Explicit quit: end immediately
        _sid_to_ctx.pop(_get_sid(), None)
        current_app.logger.info(f"[session-quit] session={session_id}")
        discard_session(session_id)


def handle_ping(data):
    emit('pong', data or {})

# ---- Socket bookkeeping ----

_sid_to_ctx: Dict[str, Dict[str, Any]] = {}

def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    from tilematch import socketio

    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
        socketio.on_event('join_session', handle_join_session, namespace=namespace)
        socketio.on_event('leave_session', handle_leave_session, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
