"""
WebSocket event handlers for real-time game communication.

This module binds the Socket.IO wire events to the session controller. Each
handler passes the sender's connection id explicitly; the controller never
reads the request context itself.
"""

from flask import request
from flask_socketio import emit
from loguru import logger


def init_socketio_handlers(socketio, controller):
    """Initialize WebSocket event handlers."""

    @socketio.on('connect')
    def handle_connect(auth=None):
        """Greet a new connection."""
        logger.debug(f"Connection {request.sid} opened")
        controller.connect(request.sid)

    @socketio.on('disconnect')
    def handle_disconnect(reason=None):
        """Drop the connection from its rooms."""
        logger.debug(f"Connection {request.sid} closed")
        controller.disconnect(request.sid)

    # Host events

    @socketio.on('create-game')
    def handle_create_game(data=None):
        controller.create_game(request.sid)

    @socketio.on('room-full')
    def handle_room_full(data):
        controller.room_full(request.sid, data)

    @socketio.on('countdown-finished')
    def handle_countdown_finished(data, roster=None):
        controller.countdown_finished(request.sid, data, roster)

    @socketio.on('round-complete')
    def handle_round_complete(data, roster=None):
        controller.round_complete(request.sid, data, roster)

    # Player events

    @socketio.on('player-join')
    def handle_player_join(data):
        controller.player_join(request.sid, data)

    @socketio.on('player-answer')
    def handle_player_answer(data):
        controller.player_answer(request.sid, data)

    @socketio.on('player-restart')
    def handle_player_restart(data):
        controller.player_restart(request.sid, data)

    @socketio.on_error_default
    def handle_error(e):
        """Log anything a handler didn't expect, without touching other rooms."""
        event = request.event.get('message') if getattr(request, 'event', None) else None
        logger.opt(exception=e).error(f"Unhandled error in event '{event}' from {request.sid}")
        emit('error', {'message': 'Something went wrong handling that request.'})
