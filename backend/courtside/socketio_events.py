from flask_socketio import join_room, leave_room, emit
from courtside import db, socketio
from courtside.models import Game


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_game(data):
    game_id = (data or {}).get('game_id')
    if game_id is None:
        emit('error', {'message': 'game_id is required'})
        return
    try:
        game_id = int(game_id)
    except (TypeError, ValueError):
        emit('error', {'message': 'game_id must be an integer'})
        return
    game = db.session.get(Game, game_id)
    if not game:
        emit('error', {'message': f'Game {game_id} not found'})
        return
    room = f"game:{game_id}"
    join_room(room)
    emit('joined', {'room': room, 'possession': game.possession, 'status': game.status})


def handle_leave_game(data):
    game_id = (data or {}).get('game_id')
    if game_id is None:
        emit('error', {'message': 'game_id is required'})
        return
    room = f"game:{game_id}"
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'join_game': handle_join_game,
        'leave_game': handle_leave_game,
        'ping': handle_ping,
    }
    for name, handler in handlers.items():
        socketio.on_event(name, handler, namespace='/ws')
        if testing:
            socketio.on_event(name, handler, namespace='/')
