"""
Session state machine.

Reacts to host and player events, updates the session registry, assigns roles
at the start of each round and sends the results through the transport.
Every method takes the id of the connection that sent the event.
"""

from functools import wraps
from typing import Optional
import numpy as np
from loguru import logger
from .role_assignment import InsufficientRolesError, Player, assign_roles
from .round_catalogue import RoundCatalogue, RoundOutOfRangeError
from .session_registry import CapacityError, RoomNotFoundError, Session, SessionRegistry, SessionState


class InvalidEventError(ValueError):
    """Exception raised when an event is malformed or not allowed right now."""


# Reported back to the sender as an 'error' event instead of being broadcast
REJECTIONS = (RoomNotFoundError, InsufficientRolesError, InvalidEventError, CapacityError)


def replies_errors(handler):
    """Decorator that turns rejected events into an 'error' reply to the sender."""
    @wraps(handler)
    def decorated_function(self, sid, *args, **kwargs):
        try:
            return handler(self, sid, *args, **kwargs)
        except REJECTIONS as e:
            logger.warning(f"Rejected {handler.__name__} from {sid}: {e}")
            self.transport.reply(sid, 'error', {'message': str(e)})
            return None
    return decorated_function


def _room_id(data) -> str:
    """Pull the room id out of an event payload.

    Accepts either a dict with a 'roomId' key or the bare id.

    """
    if isinstance(data, dict):
        data = data.get('roomId')
    if isinstance(data, bool) or not isinstance(data, (str, int)) or str(data).strip() == '':
        raise InvalidEventError("A roomId is required.")
    return str(data).strip()


def _payload(data) -> dict:
    """Copy of an event payload as a dict, wrapping a bare room id."""
    if isinstance(data, dict):
        return dict(data)
    return {'roomId': data}


def _require_state(session: Session, state: SessionState, event: str):
    if session.state != state:
        raise InvalidEventError(f"Cannot handle '{event}' while the game is {session.state.value}.")


class SessionController(object):
    """Drives every room through lobby, playing and finished.

    Parameters
    ----------
    registry : SessionRegistry
        Live sessions
    catalogue : RoundCatalogue
        Rounds served in order
    transport
        Anything with reply, broadcast, join and leave_all, normally a
        SocketIOTransport
    rng : np.random.Generator, optional
        Randomness for role assignment
    """

    def __init__(self, registry: SessionRegistry, catalogue: RoundCatalogue, transport,
                 rng: Optional[np.random.Generator] = None):
        self.registry = registry
        self.catalogue = catalogue
        self.transport = transport
        self.rng = rng if rng is not None else np.random.default_rng()

    def connect(self, sid: str):
        self.transport.reply(sid, 'connected', {'message': 'You are connected!'})

    def disconnect(self, sid: str):
        """Forget the connection and tear down any room it leaves empty."""
        for room_id in self.transport.leave_all(sid):
            if room_id in self.registry:
                self.registry.remove_session(room_id)
                logger.info(f"Room {room_id} is empty, session removed")

    # Host events

    @replies_errors
    def create_game(self, sid: str) -> Optional[str]:
        """Create a room for the host and return its id."""
        room_id = self.registry.create_session(host_id=sid)
        self.transport.join(sid, room_id)
        logger.info(f"Room {room_id} created by host {sid}")
        self.transport.reply(sid, 'new-game-created', {'roomId': room_id, 'connectionId': sid})
        return room_id

    @replies_errors
    def room_full(self, sid: str, data):
        """All players are in; tell everyone in the room to get ready."""
        room_id = _room_id(data)
        with self.registry.locked(room_id) as session:
            _require_state(session, SessionState.LOBBY, 'room-full')
            logger.info(f"Room {room_id} is full with {len(session.players)} players, preparing game")
            self.transport.broadcast(room_id, 'begin-new-game', {'connectionId': sid, 'roomId': room_id})

    @replies_errors
    def countdown_finished(self, sid: str, data, roster=None):
        """The countdown is over: start round 0."""
        room_id = _room_id(data)
        with self.registry.locked(room_id) as session:
            _require_state(session, SessionState.LOBBY, 'countdown-finished')
            self._check_roster(session, roster)
            try:
                round_data = self._round_data(session, session.current_round)
            except RoundOutOfRangeError:
                self._finish(session, session.current_round)
                return
            self.registry.set_state(room_id, SessionState.PLAYING)
            logger.info(f"Game started in room {room_id}")
            self.transport.broadcast(room_id, 'new-round-data', round_data)

    @replies_errors
    def round_complete(self, sid: str, data, roster=None):
        """The host finished a round: serve the next one or end the game.

        If the payload names a round, it must be the round in progress.
        Otherwise the signal is treated as stale and nothing advances.

        """
        room_id = _room_id(data)
        completed = data.get('round') if isinstance(data, dict) else None
        with self.registry.locked(room_id) as session:
            _require_state(session, SessionState.PLAYING, 'round-complete')
            if completed is not None and (isinstance(completed, bool) or completed != session.current_round):
                raise InvalidEventError(f"Round {completed} is not in progress.")
            self._check_roster(session, roster)

            next_round = session.current_round + 1
            try:
                # A failed assignment must leave the round counter untouched
                round_data = self._round_data(session, next_round)
            except RoundOutOfRangeError:
                self.registry.advance_round(room_id, limit=len(self.catalogue))
                self._finish(session, next_round)
                return
            self.registry.advance_round(room_id, limit=len(self.catalogue))
            self.transport.broadcast(room_id, 'new-round-data', round_data)

    # Player events

    @replies_errors
    def player_join(self, sid: str, data):
        """A player asked to join the room they typed in."""
        room_id = _room_id(data)
        player_name = self._player_name(data)
        logger.info(f"Player '{player_name}' attempting to join room {room_id}")

        with self.registry.locked(room_id) as session:
            _require_state(session, SessionState.LOBBY, 'player-join')
            self.registry.add_player(room_id, Player(display_name=player_name, connection_id=sid))
            self.transport.join(sid, room_id)

            payload = _payload(data)
            payload.update({'playerName': player_name, 'roomId': room_id, 'connectionId': sid})
            logger.info(f"Player '{player_name}' joined room {room_id} ({len(session.players)} players)")
            self.transport.broadcast(room_id, 'player-joined-room', payload)

    @replies_errors
    def player_answer(self, sid: str, data):
        """Pass a player's answer on to the rest of the room, unchecked."""
        room_id = _room_id(data)
        if room_id not in self.registry:
            raise RoomNotFoundError(room_id)
        payload = _payload(data)
        logger.info(f"Player {payload.get('playerId')} answered in room {room_id}: {payload.get('answer')!r}")
        self.transport.broadcast(room_id, 'check-answer', payload, skip_sid=sid)

    @replies_errors
    def player_restart(self, sid: str, data):
        """A player wants another game in the same room.

        The first restart after game over resets the room to an empty lobby.
        A sender whose name is known, from the payload or the previous roster,
        is added back to the roster and to the room.  The update is relayed
        to the room either way, with the sender's connection id attached.

        """
        room_id = _room_id(data)
        payload = _payload(data)
        with self.registry.locked(room_id) as session:
            if session.state == SessionState.PLAYING:
                raise InvalidEventError("This game is still in progress.")

            previous_names = {p.connection_id: p.display_name for p in session.players}
            player_name = payload.get('playerName') or previous_names.get(sid)
            player = None
            if isinstance(player_name, str) and player_name.strip():
                player = Player(display_name=player_name.strip(), connection_id=sid)

            if session.state == SessionState.FINISHED:
                self.registry.restart_session(room_id, players=[player] if player else [])
                logger.info(f"Room {room_id} restarted by {sid}")
            elif player and sid not in previous_names:
                self.registry.add_player(room_id, player)

            if player:
                self.transport.join(sid, room_id)
                payload['playerName'] = player.display_name
            payload.update({'roomId': room_id, 'playerId': sid})
            self.transport.broadcast(room_id, 'player-joined-room', payload)

    # Helpers

    def _round_data(self, session: Session, index: int) -> dict:
        """Build the 'new-round-data' payload for the given round.

        Raises RoundOutOfRangeError past the last round and
        InsufficientRolesError if the round can't seat every player.

        """
        definition = self.catalogue.get(index)
        assignment = assign_roles(definition, session.players, rng=self.rng)
        logger.info(f"Room {session.room_id} round {index}: '{definition.prompt}' for {len(assignment)} players")
        return {
            'round': index,
            'prompt': definition.prompt,
            'assignment': assignment,
            'roles': list(definition.roles),
            'roomId': session.room_id,
        }

    def _finish(self, session: Session, final_round: int):
        self.registry.set_state(session.room_id, SessionState.FINISHED)
        logger.info(f"Game over in room {session.room_id} after {final_round} rounds")
        self.transport.broadcast(session.room_id, 'game-over', {'round': final_round, 'roomId': session.room_id})

    @staticmethod
    def _player_name(data) -> str:
        name = data.get('playerName') if isinstance(data, dict) else None
        if not isinstance(name, str) or not name.strip():
            raise InvalidEventError("A playerName is required.")
        return name.strip()

    @staticmethod
    def _check_roster(session: Session, roster):
        """Log when the host's idea of the roster differs from the registry's."""
        if isinstance(roster, list) and len(roster) != len(session.players):
            logger.warning(f"Room {session.room_id}: host sent {len(roster)} players, "
                           f"registry has {len(session.players)}; using the registry")
