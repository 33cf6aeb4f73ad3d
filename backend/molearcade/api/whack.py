from flask import Blueprint, jsonify, request, current_app
from molearcade.models import ScoreSubmission
from molearcade.services.whack.runner import (
    create_live_session,
    end_live_session,
    get_live_session,
)
from molearcade.services.whack.session import BOARD_SIZE


whack = Blueprint('whack', __name__)


class BadRequest(ValueError):
    pass


def _parse_difficulty(data):
    """Return (nightmare, speed_multiplier) from a start payload."""
    nightmare = data.get('nightmare')
    if nightmare is not None and not isinstance(nightmare, bool):
        raise BadRequest('nightmare must be a boolean')
    speed = data.get('speed_multiplier')
    if speed is not None:
        try:
            speed = float(speed)
        except (TypeError, ValueError):
            raise BadRequest('speed_multiplier must be a number')
        if not 0 < speed <= 1:
            raise BadRequest('speed_multiplier must be in (0, 1]')
    return nightmare, speed


def _parse_cell(data):
    cell = data.get('cell')
    if isinstance(cell, bool) or not isinstance(cell, int):
        raise BadRequest('cell must be an integer')
    if not 0 <= cell < BOARD_SIZE:
        raise BadRequest(f'cell must be between 0 and {BOARD_SIZE - 1}')
    return cell


def _live_or_404(play_code):
    live = get_live_session(play_code)
    if live is None:
        return None, (jsonify({'error': 'Session not found'}), 404)
    return live, None


def _command_response(live, accepted):
    data = live.to_dict()
    data['accepted'] = accepted
    return jsonify(data)


@whack.errorhandler(BadRequest)
def _bad_request(exc):
    return jsonify({'error': str(exc)}), 400


@whack.route('/sessions', methods=['POST'])
def create_session():
    data = request.get_json(silent=True) or {}
    game_id = data.get('game_id')
    if not game_id:
        return jsonify({'error': 'game_id is required'}), 400
    nightmare, speed = _parse_difficulty(data)
    live = create_live_session(current_app._get_current_object(), str(game_id),
                               nightmare=bool(nightmare), speed_multiplier=speed)
    live.start()
    return jsonify(live.to_dict()), 201


@whack.route('/sessions/<string:play_code>', methods=['DELETE'])
def delete_session(play_code):
    if not end_live_session(play_code):
        return jsonify({'error': 'Session not found'}), 404
    return jsonify({'message': 'Session ended', 'play_code': play_code.upper()})


@whack.route('/sessions/<string:play_code>/state', methods=['GET'])
def get_state(play_code):
    live, error = _live_or_404(play_code)
    if error:
        return error
    live.advance()
    return jsonify(live.to_dict())


@whack.route('/sessions/<string:play_code>/start', methods=['POST'])
def start_session(play_code):
    live, error = _live_or_404(play_code)
    if error:
        return error
    nightmare, speed = _parse_difficulty(request.get_json(silent=True) or {})
    return _command_response(live, live.start(nightmare=nightmare, speed_multiplier=speed))


@whack.route('/sessions/<string:play_code>/pause', methods=['POST'])
def pause_session(play_code):
    live, error = _live_or_404(play_code)
    if error:
        return error
    return _command_response(live, live.command('pause'))


@whack.route('/sessions/<string:play_code>/resume', methods=['POST'])
def resume_session(play_code):
    live, error = _live_or_404(play_code)
    if error:
        return error
    accepted = live.command('resume')
    live.ensure_worker()
    return _command_response(live, accepted)


@whack.route('/sessions/<string:play_code>/exit', methods=['POST'])
def exit_session(play_code):
    live, error = _live_or_404(play_code)
    if error:
        return error
    return _command_response(live, live.command('exit'))


@whack.route('/sessions/<string:play_code>/dismiss-gate', methods=['POST'])
def dismiss_gate(play_code):
    live, error = _live_or_404(play_code)
    if error:
        return error
    accepted = live.command('dismiss_gate')
    live.ensure_worker()
    return _command_response(live, accepted)


@whack.route('/sessions/<string:play_code>/whack', methods=['POST'])
def whack_cell(play_code):
    live, error = _live_or_404(play_code)
    if error:
        return error
    cell = _parse_cell(request.get_json(silent=True) or {})
    return _command_response(live, live.command('whack', cell))


@whack.route('/games/<string:game_id>/leaderboard', methods=['GET'])
def leaderboard(game_id):
    limit = int(current_app.config.get('LEADERBOARD_SIZE', 10))
    rows = (
        ScoreSubmission.query.filter_by(game_id=game_id)
        .order_by(ScoreSubmission.score.desc(), ScoreSubmission.time_remaining.desc(), ScoreSubmission.id.asc())
        .limit(limit)
        .all()
    )
    return jsonify({'game_id': game_id, 'scores': [r.to_dict() for r in rows]})


@whack.route('/games/<string:game_id>/plays', methods=['GET'])
def play_count(game_id):
    total = ScoreSubmission.query.filter_by(game_id=game_id).count()
    return jsonify({'game_id': game_id, 'total_played': int(total)})
