from flask_socketio import join_room, leave_room, emit
from flask import request
from molearcade import socketio
from typing import Dict, Any
from molearcade.services.whack.runner import get_live_session
from molearcade.services.whack.session import BOARD_SIZE


_sid_to_ctx: Dict[str, Dict[str, Any]] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    _sid_to_ctx.pop(_get_sid(), None)


def _play_code(data):
    play_code = data.get('play_code') if isinstance(data, dict) else None
    return play_code if isinstance(play_code, str) and play_code else None


def handle_join_session(data):
    play_code = _play_code(data)
    if not play_code:
        emit('error', {'message': 'play_code is required'})
        return
    room = f"whack:{play_code.upper()}"
    join_room(room)
    _sid_to_ctx[_get_sid()] = {'play_code': play_code.upper()}
    emit('joined', {'room': room})
    live = get_live_session(play_code)
    if live is not None:
        emit('state_update', live.to_dict())


def handle_leave_session(data):
    play_code = _play_code(data)
    if not play_code:
        emit('error', {'message': 'play_code is required'})
        return
    room = f"whack:{play_code.upper()}"
    leave_room(room)
    _sid_to_ctx.pop(_get_sid(), None)
    emit('left', {'room': room})


def handle_whack(data):
    """Socket twin of POST /sessions/<code>/whack, for low-latency clients."""
    data = data if isinstance(data, dict) else {}
    play_code = _play_code(data) or (_sid_to_ctx.get(_get_sid()) or {}).get('play_code')
    live = get_live_session(play_code) if play_code else None
    if live is None:
        emit('error', {'message': 'Session not found'})
        return
    cell = data.get('cell')
    if isinstance(cell, bool) or not isinstance(cell, int) or not 0 <= cell < BOARD_SIZE:
        emit('error', {'message': f'cell must be an integer between 0 and {BOARD_SIZE - 1}'})
        return
    accepted = live.command('whack', cell)
    emit('whack_result', {'play_code': live.play_code, 'cell': cell, 'accepted': accepted})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'join_session': handle_join_session,
        'leave_session': handle_leave_session,
        'whack': handle_whack,
        'ping': handle_ping,
    }
    for event, handler in handlers.items():
        socketio.on_event(event, handler, namespace='/ws')
    if testing:
        # Test-only mirror on default namespace
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace='/')
