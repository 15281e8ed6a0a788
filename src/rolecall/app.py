"""
Flask application factory and main application entry point.

This module creates and configures the Flask application instance
with WebSocket support for real-time game communication.
"""

import sys
from flask import Flask
from flask_socketio import SocketIO
from flask_cors import CORS
from loguru import logger
from .round_catalogue import RoundCatalogue, default_rounds_path, load_round_catalogue
from .session_controller import SessionController
from .session_registry import SessionRegistry, default_room_id_factory
from .transport import SocketIOTransport


def create_app(config=None):
    """
    Create and configure the Flask application.

    Args:
        config: Configuration object or dictionary

    Returns:
        Tuple of the Flask application and its SocketIO instance
    """
    app = Flask(__name__)

    # Default configuration
    app.config.update({
        'SECRET_KEY': 'dev-key-change-in-production',
        'DEBUG': True,
        'ROUNDS_FILE': default_rounds_path(),
        'ROUNDS': None,
        'ROOM_ID_LENGTH': 8,
        'ROOM_ID_ATTEMPTS': 100,
        'LOG_LEVEL': 'INFO',
        'CORS_ORIGINS': '*'
    })

    if config:
        app.config.update(config)

    # Configure logging
    logger.remove()  # Remove default handler
    logger.add(
        sys.stderr,
        format="{time} | {level} | {message}",
        level=app.config['LOG_LEVEL'],
        colorize=True
    )
    logger.info("Starting Rolecall game server")

    # Enable CORS for all HTTP requests
    CORS(app, origins=app.config['CORS_ORIGINS'])

    # Initialize SocketIO for WebSocket support
    socketio = SocketIO(app, cors_allowed_origins=app.config['CORS_ORIGINS'])

    if app.config['ROUNDS'] is not None:
        catalogue = RoundCatalogue.from_records(app.config['ROUNDS'])
    else:
        catalogue = load_round_catalogue(app.config['ROUNDS_FILE'])
    logger.info(f"Loaded {len(catalogue)} rounds")

    registry = SessionRegistry(
        room_id_factory=default_room_id_factory(app.config['ROOM_ID_LENGTH']),
        max_attempts=app.config['ROOM_ID_ATTEMPTS']
    )
    controller = SessionController(registry, catalogue, SocketIOTransport(socketio))
    app.extensions['rolecall'] = controller

    from . import api
    app.register_blueprint(api.api_bp)

    # Initialize WebSocket handlers
    from . import websocket_handlers
    websocket_handlers.init_socketio_handlers(socketio, controller)

    return app, socketio
