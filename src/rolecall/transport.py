"""
Socket.IO transport used by the session controller.

Wraps a Flask-SocketIO server behind the few operations the controller needs:
replying to one connection, broadcasting to a room, joining rooms, and
noticing when a room has no members left.
"""

import threading
from typing import Dict, List, Optional, Set
from loguru import logger


class SocketIOTransport(object):
    """Sends controller output through Flask-SocketIO.

    Room membership is tracked here as well as in Socket.IO, since the
    Socket.IO server doesn't report when a room becomes empty.

    """
    def __init__(self, socketio, namespace: str = '/'):
        self.socketio = socketio
        self.namespace = namespace
        self._rooms: Dict[str, Set[str]] = {}  # room_id -> set of socket ids
        self._lock = threading.Lock()

    def reply(self, sid: str, event: str, data: dict):
        """Send an event to a single connection."""
        self.socketio.emit(event, data, room=sid, namespace=self.namespace)

    def broadcast(self, room_id: str, event: str, data: dict, skip_sid: Optional[str] = None):
        """Send an event to every connection in the room, optionally skipping one."""
        self.socketio.emit(event, data, room=room_id, skip_sid=skip_sid, namespace=self.namespace)

    def join(self, sid: str, room_id: str):
        """Add a connection to a room."""
        self.socketio.server.enter_room(sid, room_id, namespace=self.namespace)
        with self._lock:
            if room_id not in self._rooms:
                self._rooms[room_id] = set()
            self._rooms[room_id].add(sid)
            size = len(self._rooms[room_id])
        logger.debug(f"Connection {sid} joined room {room_id} (room size: {size})")

    def members(self, room_id: str) -> Set[str]:
        with self._lock:
            return set(self._rooms.get(room_id, set()))

    def leave_all(self, sid: str) -> List[str]:
        """Drop a connection from all its rooms.

        Returns the ids of the rooms that are now empty.

        """
        emptied = []
        with self._lock:
            for room_id, sids in list(self._rooms.items()):
                if sid not in sids:
                    continue
                sids.discard(sid)
                if not sids:
                    del self._rooms[room_id]
                    emptied.append(room_id)
        return emptied
