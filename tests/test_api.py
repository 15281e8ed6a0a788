"""
Tests for the HTTP API endpoints.

This module tests the read-only REST endpoints that expose rooms and the
round catalogue.
"""

import json
import pytest
from src.rolecall.app import create_app
from src.rolecall.role_assignment import Player

ROUNDS = [
    {'prompt': 'first', 'roles': ['A', 'B', 'C']},
    {'prompt': 'second', 'roles': ['D', 'E']},
]


@pytest.fixture
def app():
    """Create a test Flask application."""
    app, socketio = create_app({'TESTING': True, 'ROUNDS': ROUNDS})
    app.socketio = socketio  # Store socketio instance for testing
    return app


@pytest.fixture
def client(app):
    """Create a test client for the Flask application."""
    return app.test_client()


@pytest.fixture
def registry(app):
    return app.extensions['rolecall'].registry


class TestHealth:

    def test_health(self, client, registry):
        registry.create_session()

        response = client.get('/api/health')
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['success'] is True
        assert data['data'] == {'status': 'ok', 'rooms': 1}


class TestRooms:

    def test_no_rooms(self, client):
        response = client.get('/api/rooms')
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['data']['rooms'] == []
        assert data['data']['total_rooms'] == 0

    def test_list_rooms(self, client, registry):
        room_a = registry.create_session()
        room_b = registry.create_session()

        response = client.get('/api/rooms')
        data = json.loads(response.data)
        assert data['data']['total_rooms'] == 2
        assert {room['roomId'] for room in data['data']['rooms']} == {room_a, room_b}

    def test_get_room(self, client, registry):
        room_id = registry.create_session(host_id='host-sid')
        registry.add_player(room_id, Player('Alice', 'sid-a'))
        registry.add_player(room_id, Player('Bob', 'sid-b'))

        response = client.get(f'/api/rooms/{room_id}')
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['success'] is True
        room = data['data']
        assert room['roomId'] == room_id
        assert room['state'] == 'lobby'
        assert room['currentRound'] == 0
        assert room['totalRounds'] == 2
        assert room['players'] == [
            {'playerName': 'Alice', 'connectionId': 'sid-a'},
            {'playerName': 'Bob', 'connectionId': 'sid-b'},
        ]
        assert room['createdAt']

    def test_get_room_not_found(self, client):
        response = client.get('/api/rooms/99999')
        assert response.status_code == 404
        data = json.loads(response.data)
        assert data['success'] is False
        assert data['error'] == 'Room not found'

    def test_room_follows_the_game(self, app, client):
        """The room summary reflects rounds played over Socket.IO"""
        host = app.socketio.test_client(app)
        host.emit('create-game')
        room_id = [msg['args'][0]['roomId'] for msg in host.get_received()
                   if msg['name'] == 'new-game-created'][0]
        host.emit('countdown-finished', {'roomId': room_id})
        host.emit('round-complete', {'round': 0, 'roomId': room_id})

        room = json.loads(client.get(f'/api/rooms/{room_id}').data)['data']
        assert room['state'] == 'playing'
        assert room['currentRound'] == 1


class TestRounds:

    def test_get_rounds(self, client):
        response = client.get('/api/rounds')
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['data']['totalRounds'] == 2
        assert data['data']['rounds'] == [
            {'round': 0, 'prompt': 'first', 'roles': ['A', 'B', 'C']},
            {'round': 1, 'prompt': 'second', 'roles': ['D', 'E']},
        ]
