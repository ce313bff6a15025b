from flask import Blueprint, jsonify, request
from courtside import socketio
from courtside.services.tracking.errors import TrackingError
from courtside.services.tracking import tracker


games = Blueprint('games', __name__)


def _room(game_id: int) -> str:
    return f"game:{game_id}"


@games.errorhandler(TrackingError)
def handle_tracking_error(exc: TrackingError):
    return jsonify(exc.to_dict()), exc.status_code


@games.route('', methods=['POST'])
def create_game():
    data = request.get_json(silent=True) or {}
    game = tracker.create_game(
        data.get('team1_name'),
        data.get('team2_name'),
        data.get('players') or [],
        initial_possession=data.get('initial_possession'),
    )
    return jsonify(game.to_dict()), 201


@games.route('/<int:game_id>', methods=['GET'])
def get_game_state(game_id):
    game = tracker.get_game(game_id)
    return jsonify(game.to_dict())


@games.route('/<int:game_id>/events', methods=['POST'])
def submit_event(game_id):
    data = request.get_json(silent=True)
    accepted = tracker.submit_event(game_id, data)
    game = tracker.get_game(game_id)

    # Let scoreboards watching this game refetch
    socketio.emit(
        'state_update',
        {'game_id': game.id, 'possession': game.possession, 'sequence_index': accepted[-1].sequence_index},
        to=_room(game.id),
        namespace='/ws',
    )
    return jsonify({
        'events': [e.to_dict() for e in accepted],
        'possession': game.possession,
        'pending_miss': game.pending_miss_id,
    }), 201


@games.route('/<int:game_id>/events', methods=['GET'])
def list_events(game_id):
    order = request.args.get('order', 'asc').lower()
    if order not in ('asc', 'desc'):
        return jsonify({'error': 'order must be asc or desc'}), 400
    events = tracker.get_events(game_id, newest_first=(order == 'desc'))
    return jsonify([e.to_dict() for e in events])


@games.route('/<int:game_id>/stats', methods=['GET'])
def get_stats(game_id):
    game = tracker.get_game(game_id)
    stats = tracker.get_stats(game_id)
    players = []
    for player in game.players:
        line = stats['players'][player.id].to_dict()
        line.update({'player_id': player.id, 'name': player.name, 'team': player.team})
        players.append(line)
    return jsonify({
        'game_id': game.id,
        'players': players,
        'teams': {team: totals.to_dict() for team, totals in stats['teams'].items()},
    })


@games.route('/<int:game_id>/audit', methods=['GET'])
def audit_game(game_id):
    return jsonify(tracker.audit_game(game_id))


@games.route('/<int:game_id>/end', methods=['POST'])
def end_game(game_id):
    game = tracker.end_game(game_id)
    socketio.emit('game_ended', {'game_id': game.id, 'possession': game.possession}, to=_room(game.id), namespace='/ws')
    return jsonify(game.to_dict())
