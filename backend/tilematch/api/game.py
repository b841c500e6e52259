from flask import Blueprint, jsonify, request, current_app
from tilematch import db
from tilematch.models import Lead
from tilematch.services.leads import submit_lead, submit_score
from tilematch.services.sessions import (
    create_session, discard_session, get_session, get_settings,
)


game_api = Blueprint('game_api', __name__)


def _user_from(data):
    name = (data.get('name') or '').strip()
    phone = (data.get('phone') or '').strip()
    if not (name and phone):
        return None
    return {'name': name, 'phone': phone}


def _session_or_404(session_id):
    entry = get_session(session_id)
    if entry is None:
        return None, (jsonify({'error': 'Session not found'}), 404)
    return entry, None


@game_api.route('/config', methods=['GET'])
def get_game_config():
    return jsonify(get_settings(current_app).to_dict())


@game_api.route('/leads', methods=['POST'])
def create_lead():
    data = request.get_json(silent=True) or {}
    user = _user_from(data)
    if not user:
        return jsonify({'error': 'Name and phone are required'}), 400
    lead = submit_lead(user)
    if lead is None:
        return jsonify({'error': 'Lead could not be saved'}), 503
    return jsonify(lead.to_dict()), 201


@game_api.route('/scores', methods=['POST'])
def create_score():
    data = request.get_json(silent=True) or {}
    try:
        score = int(data['score'])
        flips = int(data.get('flips', 0))
        elapsed = data.get('elapsed')
        elapsed = int(elapsed) if elapsed is not None else None
    except (KeyError, TypeError, ValueError):
        return jsonify({'error': 'score, flips and elapsed must be integers'}), 400
    entry = submit_score(_user_from(data), score, flips, elapsed, lead_id=data.get('lead_id'))
    if entry is None:
        return jsonify({'error': 'Score could not be saved'}), 503
    return jsonify(entry.to_dict()), 201


@game_api.route('/sessions', methods=['POST'])
def start_session():
    data = request.get_json(silent=True) or {}
    user = _user_from(data)
    lead_id = data.get('lead_id')
    if lead_id is not None:
        lead = db.session.get(Lead, lead_id)
        if lead is None:
            return jsonify({'error': 'Lead not found'}), 404
        user = user or {'name': lead.name, 'phone': lead.phone}
    elif user is not None:
        # A failed lead write must not keep the player from starting
        lead = submit_lead(user)
        lead_id = lead.id if lead else None

    entry = create_session(current_app._get_current_object(), user=user, lead_id=lead_id)
    return jsonify({
        'session_id': entry.session_id,
        'lead_id': lead_id,
        'state': entry.session.snapshot(),
    }), 201


@game_api.route('/sessions/<string:session_id>', methods=['DELETE'])
def end_session(session_id):
    if not discard_session(session_id):
        return jsonify({'error': 'Session not found'}), 404
    return jsonify({'ok': True})


@game_api.route('/sessions/<string:session_id>/state', methods=['GET'])
def get_session_state(session_id):
    entry, error = _session_or_404(session_id)
    if error:
        return error
    return jsonify(entry.session.snapshot())


@game_api.route('/sessions/<string:session_id>/summary', methods=['GET'])
def get_session_summary(session_id):
    entry, error = _session_or_404(session_id)
    if error:
        return error
    payload = entry.session.summary()
    payload['status'] = entry.session.status.value
    payload['finished'] = entry.session.status.is_terminal
    return jsonify(payload)


@game_api.route('/sessions/<string:session_id>/flip', methods=['POST'])
def flip(session_id):
    entry, error = _session_or_404(session_id)
    if error:
        return error
    data = request.get_json(silent=True) or {}
    index = data.get('index')
    if index is None:
        return jsonify({'error': 'Tile index is required'}), 400
    # Disallowed flips (locked board, revealed tile, finished round) are
    # reported as not applied rather than as errors
    applied = entry.session.flip_tile(index)
    return jsonify({'applied': applied, 'state': entry.session.snapshot()})


@game_api.route('/sessions/<string:session_id>/restart', methods=['POST'])
def restart_session(session_id):
    entry, error = _session_or_404(session_id)
    if error:
        return error
    entry.session.init_game()
    current_app.logger.info(f"[session-restart] session={session_id} generation={entry.session.generation}")
    return jsonify(entry.session.snapshot())
