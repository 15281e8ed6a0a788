"""
Tests for Flask application factory and basic functionality.
"""

import json
import os
import tempfile
import pytest
from src.rolecall.app import create_app
from src.rolecall.session_controller import SessionController


def test_create_app():
    """Test that the app factory creates a valid Flask app."""
    app, socketio = create_app()
    assert app is not None
    assert socketio is not None
    assert app.config['SECRET_KEY'] is not None
    assert isinstance(app.extensions['rolecall'], SessionController)
    assert len(app.extensions['rolecall'].catalogue) > 0


def test_create_app_with_rounds_file():
    """ROUNDS_FILE points the app at another catalogue"""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
        json.dump([{'prompt': 'only', 'roles': ['A', 'B']}], f)
        path = f.name

    try:
        app, _ = create_app({'ROUNDS_FILE': path})
        catalogue = app.extensions['rolecall'].catalogue
        assert len(catalogue) == 1
        assert catalogue.get(0).prompt == 'only'
    finally:
        os.unlink(path)


def test_create_app_missing_rounds_file():
    with pytest.raises(FileNotFoundError):
        create_app({'ROUNDS_FILE': '/nonexistent/rounds.json'})


def test_room_id_length_config():
    app, _ = create_app({'ROUNDS': [{'prompt': 'p', 'roles': ['A']}], 'ROOM_ID_LENGTH': 12})
    room_id = app.extensions['rolecall'].registry.create_session()
    assert len(room_id) == 12
