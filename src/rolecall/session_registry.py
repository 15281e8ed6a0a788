import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional
from .role_assignment import Player


class RoomNotFoundError(KeyError):
    """Exception raised when a room id is unknown to the registry."""

    def __init__(self, room_id: str):
        self.room_id = room_id
        super().__init__(room_id)

    def __str__(self):
        return "This room does not exist."


class CapacityError(RuntimeError):
    """Exception raised when no unused room id could be generated."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        message = f"Could not allocate a free room id after {attempts} attempts"
        super().__init__(message)


class SessionState(str, Enum):
    LOBBY = 'lobby'
    PLAYING = 'playing'
    FINISHED = 'finished'


@dataclass
class Session(object):
    """Mutable state of one room.

    Attributes
    ----------
    room_id : str
        Identifier shared with the transport room
    players : List[Player]
        Players in join order
    current_round : int
        Index of the round being played, or the catalogue length once the
        game is over
    state : SessionState
        Lobby, playing or finished
    host_id : str, optional
        Connection id of the host that created the room
    """
    room_id: str
    players: List[Player] = field(default_factory=list)
    current_round: int = 0
    state: SessionState = SessionState.LOBBY
    host_id: Optional[str] = None
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def snapshot(self) -> 'Session':
        """Copy that is safe to read without holding the lock."""
        return replace(self, players=list(self.players))


def default_room_id_factory(length: int = 8) -> Callable[[], str]:
    """Returns a factory of random uppercase hex room ids of the given length."""
    if length < 1 or length > 32:
        raise ValueError("Room id length must be between 1 and 32")

    def make_room_id() -> str:
        return uuid.uuid4().hex[:length].upper()

    return make_room_id


class SessionRegistry(object):
    """Holds every live session, keyed by room id.

    The model here is:
    - Each session belongs to exactly one transport room and shares its id.
    - A session's roster only grows while it is in the lobby.
    - The round counter only moves forward.
    - Every session carries its own lock; mutations of one room never block
      or observe half-finished mutations of another.

    """
    def __init__(self, room_id_factory: Optional[Callable[[], str]] = None, max_attempts: int = 100):
        """Initialize the registry with no sessions."""
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()
        self._room_id_factory = room_id_factory or default_room_id_factory()
        self._max_attempts = max_attempts

    def __contains__(self, room_id: str) -> bool:
        with self._lock:
            return room_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _live_session(self, room_id: str) -> Session:
        with self._lock:
            session = self._sessions.get(room_id)
        if session is None:
            raise RoomNotFoundError(room_id)
        return session

    @contextmanager
    def locked(self, room_id: str) -> Iterator[Session]:
        """Hold the room's lock and yield the live session.

        Raises RoomNotFoundError if the room doesn't exist, including when it
        was removed while waiting for the lock.

        """
        while True:
            session = self._live_session(room_id)
            with session.lock:
                with self._lock:
                    current = self._sessions.get(room_id)
                if current is session:
                    yield session
                    return
            # Replaced by restart_session while we waited; retry on the new one
            if current is None:
                raise RoomNotFoundError(room_id)

    def create_session(self, host_id: Optional[str] = None) -> str:
        """Create an empty lobby session and return its room id.

        Raises CapacityError if every generated id is already taken.

        """
        with self._lock:
            for _ in range(self._max_attempts):
                room_id = self._room_id_factory()
                if room_id not in self._sessions:
                    self._sessions[room_id] = Session(room_id=room_id, host_id=host_id)
                    return room_id
        raise CapacityError(self._max_attempts)

    def get_session(self, room_id: str) -> Session:
        """Return a snapshot of the session.  Raises RoomNotFoundError."""
        with self.locked(room_id) as session:
            return session.snapshot()

    def list_sessions(self) -> List[Session]:
        with self._lock:
            sessions = list(self._sessions.values())
        snapshots = []
        for session in sessions:
            with session.lock:
                snapshots.append(session.snapshot())
        return snapshots

    def add_player(self, room_id: str, player: Player) -> Session:
        """Append a player to the room's roster, keeping join order."""
        with self.locked(room_id) as session:
            session.players.append(player)
            return session.snapshot()

    def advance_round(self, room_id: str, limit: Optional[int] = None) -> int:
        """Increment and return the room's round index.

        If limit is given the index never goes past it.

        """
        with self.locked(room_id) as session:
            if limit is None or session.current_round < limit:
                session.current_round += 1
            return session.current_round

    def set_state(self, room_id: str, state: SessionState) -> Session:
        with self.locked(room_id) as session:
            session.state = SessionState(state)
            return session.snapshot()

    def restart_session(self, room_id: str, players: Optional[List[Player]] = None) -> Session:
        """Replace the room's session with a fresh lobby under the same id.

        The host is carried over.  The round counter starts again at 0 and the
        roster starts with the given players, if any.

        """
        with self.locked(room_id) as session:
            fresh = Session(room_id=room_id, players=list(players or []), host_id=session.host_id)
            with self._lock:
                self._sessions[room_id] = fresh
            return fresh.snapshot()

    def remove_session(self, room_id: str):
        """Remove the given session.  Does nothing if it doesn't exist."""
        with self._lock:
            self._sessions.pop(room_id, None)
