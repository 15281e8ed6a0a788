"""
HTTP API routes for the Rolecall server.

Read-only views of the live rooms and the round catalogue, for dashboards and
debugging. Game play itself happens over Socket.IO.
"""

from flask import Blueprint, current_app, jsonify
from .session_registry import RoomNotFoundError, Session

api_bp = Blueprint('api', __name__, url_prefix='/api')


def _controller():
    return current_app.extensions['rolecall']


def _room_summary(session: Session, total_rounds: int) -> dict:
    return {
        'roomId': session.room_id,
        'state': session.state.value,
        'currentRound': session.current_round,
        'totalRounds': total_rounds,
        'players': [
            {'playerName': player.display_name, 'connectionId': player.connection_id}
            for player in session.players
        ],
        'createdAt': session.created_at
    }


@api_bp.route('/health', methods=['GET'])
def health():
    """Liveness check."""
    return jsonify({
        'success': True,
        'data': {
            'status': 'ok',
            'rooms': len(_controller().registry)
        }
    }), 200


@api_bp.route('/rooms', methods=['GET'])
def get_all_rooms():
    """Get information about all rooms on the server."""
    controller = _controller()
    total_rounds = len(controller.catalogue)
    rooms = [_room_summary(session, total_rounds) for session in controller.registry.list_sessions()]

    return jsonify({
        'success': True,
        'data': {
            'rooms': rooms,
            'total_rooms': len(rooms)
        }
    }), 200


@api_bp.route('/rooms/<room_id>', methods=['GET'])
def get_room(room_id):
    """Get information about a specific room."""
    controller = _controller()
    try:
        session = controller.registry.get_session(room_id)
    except RoomNotFoundError:
        return jsonify({'success': False, 'error': 'Room not found'}), 404

    return jsonify({
        'success': True,
        'data': _room_summary(session, len(controller.catalogue))
    }), 200


@api_bp.route('/rounds', methods=['GET'])
def get_rounds():
    """List the round catalogue."""
    catalogue = _controller().catalogue
    rounds = [
        {'round': i, 'prompt': definition.prompt, 'roles': list(definition.roles)}
        for i, definition in enumerate(catalogue)
    ]

    return jsonify({
        'success': True,
        'data': {
            'totalRounds': len(catalogue),
            'rounds': rounds
        }
    }), 200
