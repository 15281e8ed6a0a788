"""Role assignment for a single round.

Each player in the round gets a distinct role index, drawn uniformly at random
without replacement from the round's roles.

"""
from dataclasses import dataclass
from typing import Dict, Optional, Sequence
import numpy as np
from .round_catalogue import RoundDefinition


class InsufficientRolesError(ValueError):
    """Exception raised when a round has fewer roles than there are players.

    Attributes
    ----------
    num_players : int
        Number of players that needed a role
    num_roles : int
        Number of roles the round offers
    """

    def __init__(self, num_players: int, num_roles: int):
        self.num_players = num_players
        self.num_roles = num_roles
        message = f"Cannot assign roles to {num_players} players: this round only has {num_roles} roles"
        super().__init__(message)


@dataclass(frozen=True)
class Player(object):
    """A connected participant.

    Attributes
    ----------
    display_name : str
        Name chosen by the player.  Not guaranteed to be unique.
    connection_id : str
        Socket.IO session id of the player's connection
    """
    display_name: str
    connection_id: str


def assign_roles(round_definition: RoundDefinition,
                 players: Sequence[Player],
                 rng: Optional[np.random.Generator] = None) -> Dict[str, int]:
    """Assign a distinct role index to every player.

    Parameters
    ----------
    round_definition : RoundDefinition
        The round being played
    players : Sequence[Player]
        Players in join order.  The i-th player receives the i-th draw.
    rng : np.random.Generator, optional
        Source of randomness.  A fresh default generator is used if omitted.

    Returns
    -------
    Dict[str, int]
        Mapping from display name to role index in ``[0, num_roles)``.  If two
        players share a display name, the one that joined later wins.

    Raises
    ------
    InsufficientRolesError
        If there are more players than roles

    """
    num_roles = round_definition.num_roles
    if len(players) > num_roles:
        raise InsufficientRolesError(len(players), num_roles)

    if not players:
        return {}

    if rng is None:
        rng = np.random.default_rng()

    # Sampling without replacement is a partial shuffle of the role indices
    draws = rng.choice(num_roles, size=len(players), replace=False)

    assignment = {}
    for player, role_index in zip(players, draws):
        assignment[player.display_name] = int(role_index)
    return assignment
