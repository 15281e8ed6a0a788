#!/usr/bin/env python3
"""
Socket.IO driver that plays a whole Rolecall game against a running server.

One host and several simulated players connect, join a room, and play every
round in the catalogue: each player sends an answer, then the host completes
the round. When the game is over the room summary is fetched from the HTTP
API and printed.

Usage:
    python scripts/party_driver.py http://localhost:5000 --players Alice Bob Carol
"""

import argparse
import json
import queue
import sys
from typing import Any, Dict, List, Optional

import requests
import socketio

TIMEOUT_SECONDS = 10


class PartyClient:
    """One Socket.IO connection that queues every event it receives."""

    def __init__(self, server_url: str, label: str):
        self.server_url = server_url.rstrip('/')
        self.label = label
        self.sio = socketio.Client()
        self.events: "queue.Queue[tuple]" = queue.Queue()
        self.sid: Optional[str] = None

        @self.sio.on('*')
        def on_any(event, data=None, *args):
            self.events.put((event, data))

    def connect(self):
        self.sio.connect(self.server_url)
        self.sid = self.sio.get_sid()
        self.wait_for('connected')

    def disconnect(self):
        if self.sio.connected:
            self.sio.disconnect()

    def emit(self, event: str, *args):
        self.sio.emit(event, args[0] if len(args) == 1 else args)

    def wait_for(self, *names: str) -> tuple:
        """Block until one of the named events arrives, skipping others.

        An 'error' event always ends the wait with a RuntimeError.

        """
        while True:
            try:
                event, data = self.events.get(timeout=TIMEOUT_SECONDS)
            except queue.Empty:
                raise RuntimeError(f"{self.label}: timed out waiting for {', '.join(names)}")
            if event == 'error':
                raise RuntimeError(f"{self.label}: server error: {data.get('message', data)}")
            if event in names:
                return event, data


def print_round(data: Dict[str, Any]):
    """Print the prompt and who plays which role."""
    print("\n" + "=" * 60)
    print(f"ROUND {data['round']}: {data['prompt']}")
    print("=" * 60)
    for name, role_index in data['assignment'].items():
        print(f"  {name}: [{role_index}] {data['roles'][role_index]}")


def play(server_url: str, player_names: List[str]):
    host = PartyClient(server_url, 'host')
    players = [PartyClient(server_url, name) for name in player_names]
    clients = [host] + players

    try:
        for client in clients:
            client.connect()

        host.emit('create-game', {})
        _, created = host.wait_for('new-game-created')
        room_id = created['roomId']
        print(f"✓ Created room {room_id}")

        for name, player in zip(player_names, players):
            player.emit('player-join', {'playerName': name, 'roomId': room_id})
            player.wait_for('player-joined-room')
            print(f"✓ {name} joined")

        host.emit('room-full', {'roomId': room_id})
        host.wait_for('begin-new-game')
        host.emit('countdown-finished', {'roomId': room_id})

        while True:
            event, data = host.wait_for('new-round-data', 'game-over')
            if event == 'game-over':
                print(f"\n🏁 Game over after {data['round']} rounds")
                break

            print_round(data)
            for name, player in zip(player_names, players):
                player.emit('player-answer', {
                    'playerId': player.sid,
                    'answer': data['assignment'].get(name),
                    'roomId': room_id
                })
            host.emit('round-complete', {'round': data['round'], 'roomId': room_id})

        response = requests.get(f"{server_url.rstrip('/')}/api/rooms/{room_id}")
        print(json.dumps(response.json(), indent=2, ensure_ascii=False))
    finally:
        for client in clients:
            client.disconnect()


def main():
    parser = argparse.ArgumentParser(description="Play a full Rolecall game against a server")
    parser.add_argument('server_url')
    parser.add_argument('--players', nargs='+', default=['Alice', 'Bob'])
    args = parser.parse_args()

    try:
        play(args.server_url, args.players)
    except RuntimeError as e:
        print(f"✗ {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
